"""Unit tests for the tree-sitter Rust parser."""

from pathlib import Path

import pytest

from rust_grapher.core.models import SymbolType
from rust_grapher.languages import CallKind, ParseResult, RustParser

SERVICE_RS = """\
use crate::db::{self, Store as Db};
use super::*;

pub struct Service {
    store: Db,
    cache: Arc<Cache>,
}

impl Service {
    pub fn new() -> Self {
        Service { store: Db::open(), cache: Arc::new(Cache::default()) }
    }

    pub async fn run(&self, input: &str) -> Result<(), Error> {
        let parsed = parse(input)?;
        self.store.save(&parsed);
        helper::<u8>(1);
        let cb = |x: i32| log(x);
        cb(2);
        println!("{}", format_it(parsed));
        Some(1);
        Ok(())
    }
}

impl Display for Service {
    fn fmt(&self, f: &mut Formatter) -> fmt::Result {
        <Service as Named>::name(self);
        f.write_str("svc")
    }
}

pub trait Named {
    fn name(&self) -> String {
        default_name()
    }
    fn id(&self) -> u32;
}

fn outer() {
    fn inner() {
        leaf();
    }
    inner();
}

mod nested {
    pub fn deep() {
        super::outer();
    }
}
"""


@pytest.fixture
def parsed(temp_dir: Path) -> ParseResult:
    file_path = temp_dir / "svc.rs"
    file_path.write_text(SERVICE_RS)
    return RustParser().parse(file_path, "app::svc", "app")


def by_id(result: ParseResult):
    return {f.id: f for f in result.functions}


class TestSymbols:
    """Tests for function-like item extraction."""

    def test_ids(self, parsed: ParseResult) -> None:
        assert set(by_id(parsed)) == {
            "app::svc::Service::new",
            "app::svc::Service::run",
            "app::svc::Service::run::cb",
            "app::svc::<Service as Display>::fmt",
            "app::svc::Named::name",
            "app::svc::outer",
            "app::svc::outer::inner",
            "app::svc::nested::deep",
        }

    def test_required_trait_method_is_not_a_symbol(self, parsed: ParseResult) -> None:
        assert not any(f.symbol.name == "id" for f in parsed.functions)

    def test_inherent_method(self, parsed: ParseResult) -> None:
        symbol = by_id(parsed)["app::svc::Service::run"].symbol

        assert symbol.type == SymbolType.METHOD
        assert symbol.display_name == "Service::run"
        assert symbol.impl_type == "Service"
        assert symbol.trait_name is None
        assert symbol.is_public
        assert symbol.is_async
        assert symbol.module_path == "app::svc"
        assert symbol.crate == "app"
        assert symbol.line == 14
        assert symbol.signature == "pub async fn run(&self, input: &str) -> Result<(), Error>"

    def test_trait_impl_method(self, parsed: ParseResult) -> None:
        symbol = by_id(parsed)["app::svc::<Service as Display>::fmt"].symbol

        assert symbol.display_name == "Service::fmt"
        assert symbol.impl_type == "Service"
        assert symbol.trait_name == "Display"
        assert symbol.is_public
        assert not symbol.is_async

    def test_trait_default_method(self, parsed: ParseResult) -> None:
        symbol = by_id(parsed)["app::svc::Named::name"].symbol

        assert symbol.display_name == "Named::name"
        assert symbol.impl_type is None
        assert symbol.trait_name == "Named"

    def test_private_function(self, parsed: ParseResult) -> None:
        symbol = by_id(parsed)["app::svc::outer"].symbol

        assert symbol.type == SymbolType.FUNCTION
        assert not symbol.is_public

    def test_named_closure(self, parsed: ParseResult) -> None:
        closure = by_id(parsed)["app::svc::Service::run::cb"]

        assert closure.symbol.type == SymbolType.CLOSURE
        assert closure.parent is by_id(parsed)["app::svc::Service::run"]
        assert [c.name for c in closure.calls] == ["log"]

    def test_nested_function_owns_its_calls(self, parsed: ParseResult) -> None:
        functions = by_id(parsed)

        assert [c.name for c in functions["app::svc::outer::inner"].calls] == ["leaf"]
        assert [c.name for c in functions["app::svc::outer"].calls] == ["inner"]

    def test_inline_module(self, parsed: ParseResult) -> None:
        deep = by_id(parsed)["app::svc::nested::deep"]

        assert deep.symbol.module_path == "app::svc::nested"
        assert deep.calls[0].segments == ("super", "outer")


class TestCallSites:
    """Tests for call site extraction."""

    def test_call_order_and_filtering(self, parsed: ParseResult) -> None:
        run = by_id(parsed)["app::svc::Service::run"]

        # macros are opaque, constructors such as Some/Ok are not calls
        assert [c.name for c in run.calls] == ["parse", "save", "helper", "cb"]

    def test_method_call(self, parsed: ParseResult) -> None:
        save = by_id(parsed)["app::svc::Service::run"].calls[1]

        assert save.kind == CallKind.METHOD
        assert save.receiver == "self.store"
        assert save.raw == "self.store.save"
        assert save.line == 16

    def test_turbofish_call(self, parsed: ParseResult) -> None:
        helper = by_id(parsed)["app::svc::Service::run"].calls[2]

        assert helper.kind == CallKind.PATH
        assert helper.segments == ("helper",)

    def test_path_calls(self, parsed: ParseResult) -> None:
        new = by_id(parsed)["app::svc::Service::new"]

        assert [c.segments for c in new.calls] == [
            ("Db", "open"),
            ("Arc", "new"),
            ("Cache", "default"),
        ]

    def test_qualified_call(self, parsed: ParseResult) -> None:
        fmt_calls = by_id(parsed)["app::svc::<Service as Display>::fmt"].calls
        qualified = fmt_calls[0]

        assert qualified.kind == CallKind.QUALIFIED
        assert qualified.qualified_type == "Service"
        assert qualified.qualified_trait == "Named"
        assert qualified.name == "name"
        assert fmt_calls[1].receiver == "f"

    def test_unresolvable_callee_shape(self, temp_dir: Path) -> None:
        file_path = temp_dir / "lib.rs"
        file_path.write_text("fn f() { (make())(); }\n")

        result = RustParser().parse(file_path, "app", "app")
        kinds = [c.kind for c in result.functions[0].calls]

        assert CallKind.OTHER in kinds


class TestBindingsAndScopes:
    """Tests for imports, struct fields and local type bindings."""

    def test_imports(self, parsed: ParseResult) -> None:
        assert parsed.imports["app::svc"] == {"db": "app::db", "Db": "app::db::Store"}
        assert parsed.glob_imports["app::svc"] == ["app"]

    def test_struct_fields(self, parsed: ParseResult) -> None:
        assert parsed.struct_fields["app::svc::Service"] == {"store": "Db", "cache": "Cache"}

    def test_parameter_bindings(self, parsed: ParseResult) -> None:
        fmt = by_id(parsed)["app::svc::<Service as Display>::fmt"]
        assert fmt.bindings == {"f": "Formatter"}

    def test_let_bindings(self, temp_dir: Path) -> None:
        file_path = temp_dir / "lib.rs"
        file_path.write_text(
            "fn f() {\n"
            "    let a: Client = make();\n"
            "    let mut b = Pool::connect(1)?;\n"
            "    let c = Config { debug: true };\n"
            "    let d = plain();\n"
            "}\n"
        )

        result = RustParser().parse(file_path, "app", "app")

        assert result.functions[0].bindings == {"a": "Client", "b": "Pool", "c": "Config"}

    def test_local_names(self, temp_dir: Path) -> None:
        file_path = temp_dir / "lib.rs"
        file_path.write_text(
            "fn f(a: u8, (b, mut c): (u8, u8), Point { x, y: z }: Point) {\n"
            "    let (d, Some(e)) = pair();\n"
            "    for g in list {}\n"
            "    if let Some(h) = opt {}\n"
            "    let k = |m, n: u8| m;\n"
            "    each(|p| p);\n"
            "}\n"
        )

        result = RustParser().parse(file_path, "app", "app")

        functions = by_id(result)
        assert functions["app::f"].locals == {"a", "b", "c", "x", "z", "d", "e", "g", "h", "p"}
        assert functions["app::f::k"].locals == {"m", "n"}

    def test_smart_pointer_parameters(self, temp_dir: Path) -> None:
        file_path = temp_dir / "lib.rs"
        file_path.write_text("fn f(a: Box<Engine>, b: &mut Rc<Store>, c: crate::x::Port) {}\n")

        result = RustParser().parse(file_path, "app", "app")

        assert result.functions[0].bindings == {"a": "Engine", "b": "Store", "c": "Port"}
