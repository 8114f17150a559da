"""Rust source parser built on tree-sitter-rust."""

from __future__ import annotations

from pathlib import Path

import tree_sitter_rust as ts_rust
from tree_sitter import Language, Node, Parser

from rust_grapher.core.exceptions import ParseError
from rust_grapher.core.models import Symbol, SymbolType
from rust_grapher.languages.models import CallKind, CallSite, ParsedFunction, ParseResult
from rust_grapher.languages.paths import join_path, normalize_path, split_path

RUST_LANGUAGE = Language(ts_rust.language())

# Wrappers looked through when inferring the type of a binding
SMART_POINTERS = frozenset({"Box", "Rc", "Arc", "RefCell", "Mutex", "RwLock", "Cell"})

# Items that open their own scope; their bodies never belong to the enclosing function
_NESTED_ITEMS = frozenset(
    {
        "impl_item",
        "trait_item",
        "mod_item",
        "struct_item",
        "enum_item",
        "union_item",
        "foreign_mod_item",
        "macro_definition",
        "macro_invocation",
        "const_item",
        "static_item",
    }
)

# Pattern nodes whose children may bind names
_PATTERNS = frozenset(
    {
        "mut_pattern",
        "ref_pattern",
        "reference_pattern",
        "tuple_pattern",
        "tuple_struct_pattern",
        "struct_pattern",
        "field_pattern",
        "slice_pattern",
        "or_pattern",
        "captured_pattern",
        "match_pattern",
    }
)

# Expressions binding names in a pattern other than `let` and parameters
_PATTERN_SITES = frozenset(
    {"for_expression", "let_condition", "if_let_expression", "while_let_expression", "match_arm"}
)


def node_text(node: Node, source: bytes) -> str:
    """Extract the text of a tree-sitter node."""
    return source[node.start_byte : node.end_byte].decode("utf8")


def _line(node: Node) -> int:
    return node.start_point[0] + 1


def _is_constructor(name: str) -> bool:
    return name[:1].isupper()


class RustParser:
    """Parser for Rust source files using tree-sitter."""

    def __init__(self) -> None:
        self._parser = Parser(RUST_LANGUAGE)

    def parse(self, file: Path, module_path: str, crate: str) -> ParseResult:
        """Parse a Rust file defining ``module_path`` of ``crate``."""
        try:
            source = file.read_bytes()
            source.decode("utf-8")
        except OSError as e:
            raise ParseError(f"Cannot read {file}: {e}") from e
        except UnicodeDecodeError as e:
            raise ParseError(f"Cannot decode {file}: {e}") from e

        tree = self._parser.parse(source)
        if tree.root_node.has_error:
            raise ParseError(f"Syntax error in {file}")

        visitor = _RustVisitor(file, source, crate, module_path)
        try:
            visitor.visit_items(tree.root_node, module_path)
        except RecursionError as e:
            raise ParseError(f"Expression nesting too deep in {file}") from e
        return visitor.result


class _RustVisitor:
    """Walks a syntax tree and collects functions, calls, imports and fields."""

    def __init__(self, file: Path, source: bytes, crate: str, module_path: str) -> None:
        self.file = file
        self.source = source
        self.crate = crate
        self.result = ParseResult(file=file, crate=crate, module_path=module_path)

    def _text(self, node: Node) -> str:
        return node_text(node, self.source)

    def visit_items(self, node: Node, module_path: str) -> None:
        """Visit the item-level children of a file or inline module."""
        for child in node.named_children:
            if child.type == "function_item":
                self._visit_function(child, module_path)
            elif child.type == "impl_item":
                self._visit_impl(child, module_path)
            elif child.type == "trait_item":
                self._visit_trait(child, module_path)
            elif child.type == "mod_item":
                name = child.child_by_field_name("name")
                body = child.child_by_field_name("body")
                # `mod name;` declarations are collected as separate files
                if name is not None and body is not None:
                    self.visit_items(body, f"{module_path}::{self._text(name)}")
            elif child.type == "use_declaration":
                argument = child.child_by_field_name("argument")
                if argument is not None:
                    self._visit_use(argument, [], module_path)
            elif child.type == "struct_item":
                self._visit_struct(child, module_path)

    def _visit_impl(self, node: Node, module_path: str) -> None:
        type_node = node.child_by_field_name("type")
        body = node.child_by_field_name("body")
        if type_node is None or body is None:
            return
        impl_type = self._type_name(type_node, unwrap=False)
        if impl_type is None:
            return
        trait_node = node.child_by_field_name("trait")
        trait_name = self._type_name(trait_node, unwrap=False) if trait_node else None

        for item in body.named_children:
            if item.type == "function_item":
                self._visit_function(
                    item,
                    module_path,
                    impl_type=impl_type,
                    trait_name=trait_name,
                    # trait impl items are as visible as the trait
                    is_public=True if trait_name else None,
                )

    def _visit_trait(self, node: Node, module_path: str) -> None:
        name = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        if name is None or body is None:
            return
        trait_public = self._is_public(node)
        for item in body.named_children:
            # Required methods (function_signature_item) have nothing to call
            if item.type == "function_item":
                self._visit_function(
                    item, module_path, trait_name=self._text(name), is_public=trait_public
                )

    def _visit_struct(self, node: Node, module_path: str) -> None:
        name = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        if name is None or body is None or body.type != "field_declaration_list":
            return
        fields: dict[str, str] = {}
        for decl in body.named_children:
            if decl.type != "field_declaration":
                continue
            field_name = decl.child_by_field_name("name")
            field_type = decl.child_by_field_name("type")
            if field_name is None or field_type is None:
                continue
            type_name = self._type_name(field_type)
            if type_name:
                fields[self._text(field_name)] = type_name
        if fields:
            self.result.struct_fields[f"{module_path}::{self._text(name)}"] = fields

    def _visit_use(self, node: Node, prefix: list[str], module_path: str) -> None:
        """Expand a use tree into alias -> path entries of ``module_path``."""
        kind = node.type
        if kind in ("identifier", "scoped_identifier", "crate", "self", "super", "metavariable"):
            segments = prefix + split_path(self._text(node))
            if segments and segments[-1] == "self":
                segments = segments[:-1]
            if segments:
                self._add_import(segments[-1], segments, module_path)
        elif kind == "use_as_clause":
            path = node.child_by_field_name("path")
            alias = node.child_by_field_name("alias")
            if path is None or alias is None:
                return
            segments = prefix + split_path(self._text(path))
            if segments and segments[-1] == "self":
                segments = segments[:-1]
            alias_name = self._text(alias)
            if segments and alias_name != "_":
                self._add_import(alias_name, segments, module_path)
        elif kind == "use_wildcard":
            text = self._text(node)
            path_text = text.rsplit("::", 1)[0] if "::" in text else ""
            segments = normalize_path(prefix + split_path(path_text), module_path, self.crate)
            if segments:
                globs = self.result.glob_imports.setdefault(module_path, [])
                globs.append(join_path(segments))
        elif kind == "scoped_use_list":
            path = node.child_by_field_name("path")
            use_list = node.child_by_field_name("list")
            new_prefix = prefix + (split_path(self._text(path)) if path is not None else [])
            if use_list is not None:
                for child in use_list.named_children:
                    self._visit_use(child, new_prefix, module_path)
        elif kind == "use_list":
            for child in node.named_children:
                self._visit_use(child, prefix, module_path)

    def _add_import(self, alias: str, segments: list[str], module_path: str) -> None:
        normalized = normalize_path(segments, module_path, self.crate)
        if normalized:
            self.result.imports.setdefault(module_path, {})[alias] = join_path(normalized)

    def _visit_function(
        self,
        node: Node,
        module_path: str,
        impl_type: str | None = None,
        trait_name: str | None = None,
        is_public: bool | None = None,
        parent: ParsedFunction | None = None,
    ) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        name = self._text(name_node)

        symbol_type = SymbolType.FUNCTION
        display_name = name
        if parent is not None:
            symbol_id = f"{parent.id}::{name}"
        elif impl_type and trait_name:
            symbol_id = f"{module_path}::<{impl_type} as {trait_name}>::{name}"
            display_name = f"{impl_type}::{name}"
            symbol_type = SymbolType.METHOD
        elif impl_type:
            symbol_id = f"{module_path}::{impl_type}::{name}"
            display_name = f"{impl_type}::{name}"
            symbol_type = SymbolType.METHOD
        elif trait_name:
            symbol_id = f"{module_path}::{trait_name}::{name}"
            display_name = f"{trait_name}::{name}"
            symbol_type = SymbolType.METHOD
        else:
            symbol_id = f"{module_path}::{name}"

        body = node.child_by_field_name("body")
        symbol = Symbol(
            id=symbol_id,
            name=name,
            display_name=display_name,
            module_path=module_path,
            file=self.file,
            line=_line(node),
            end_line=node.end_point[0] + 1,
            type=symbol_type,
            crate=self.crate,
            impl_type=impl_type,
            trait_name=trait_name,
            is_public=self._is_public(node) if is_public is None else is_public,
            is_async=self._is_async(node),
            signature=self._signature(node, body),
        )
        parsed = ParsedFunction(symbol=symbol, parent=parent)
        self.result.functions.append(parsed)

        self._bind_parameters(node.child_by_field_name("parameters"), parsed)
        if body is not None:
            for child in body.children:
                self._walk(child, parsed)

    def _visit_closure(self, name: str, node: Node, owner: ParsedFunction) -> None:
        parameters = node.child_by_field_name("parameters")
        symbol = Symbol(
            id=f"{owner.id}::{name}",
            name=name,
            display_name=name,
            module_path=owner.symbol.module_path,
            file=self.file,
            line=_line(node),
            end_line=node.end_point[0] + 1,
            type=SymbolType.CLOSURE,
            crate=self.crate,
            is_async=self._text(node).startswith("async"),
            signature=" ".join(self._text(parameters).split()) if parameters else None,
        )
        closure = ParsedFunction(symbol=symbol, parent=owner)
        self.result.functions.append(closure)

        self._bind_parameters(parameters, closure)
        body = node.child_by_field_name("body")
        if body is not None:
            self._walk(body, closure)

    def _walk(self, node: Node, owner: ParsedFunction) -> None:
        """Collect call sites and bindings of ``owner`` below ``node``."""
        kind = node.type
        if kind == "function_item":
            self._visit_function(node, owner.symbol.module_path, parent=owner)
            return
        if kind in _NESTED_ITEMS:
            return
        if kind == "let_declaration":
            if self._visit_let(node, owner):
                return
        elif kind == "closure_expression":
            self._bind_parameters(node.child_by_field_name("parameters"), owner)
        elif kind in _PATTERN_SITES:
            owner.locals.update(self._pattern_names(node.child_by_field_name("pattern")))
        elif kind == "call_expression":
            call = self._call_site(node)
            if call is not None:
                owner.calls.append(call)

        for child in node.children:
            self._walk(child, owner)

    def _visit_let(self, node: Node, owner: ParsedFunction) -> bool:
        """Record the binding of a let statement.

        Returns True when the statement defined a named closure, whose body
        has then already been visited.
        """
        pattern = node.child_by_field_name("pattern")
        name = self._binding_name(pattern)
        value = node.child_by_field_name("value")
        if name is not None and value is not None and value.type == "closure_expression":
            self._visit_closure(name, value, owner)
            return True

        owner.locals.update(self._pattern_names(pattern))
        if name is None:
            return False

        type_node = node.child_by_field_name("type")
        type_name = None
        if type_node is not None:
            type_name = self._type_name(type_node)
        elif value is not None:
            type_name = self._value_type(value)
        if type_name:
            owner.bindings[name] = type_name
        return False

    def _bind_parameters(self, parameters: Node | None, owner: ParsedFunction) -> None:
        if parameters is None:
            return
        for param in parameters.named_children:
            if param.type != "parameter":
                # untyped closure parameters are bare patterns
                if parameters.type == "closure_parameters":
                    owner.locals.update(self._pattern_names(param))
                continue
            pattern = param.child_by_field_name("pattern")
            owner.locals.update(self._pattern_names(pattern))
            name = self._binding_name(pattern)
            type_node = param.child_by_field_name("type")
            if name is None or type_node is None:
                continue
            type_name = self._type_name(type_node)
            if type_name:
                owner.bindings[name] = type_name

    def _call_site(self, node: Node) -> CallSite | None:
        func = node.child_by_field_name("function")
        if func is None:
            return None
        line = _line(node)
        if func.type == "generic_function":
            func = func.child_by_field_name("function") or func

        if func.type == "identifier":
            name = self._text(func)
            if _is_constructor(name):
                return None
            return CallSite(raw=name, line=line, kind=CallKind.PATH, segments=(name,))

        if func.type == "scoped_identifier":
            return self._scoped_call(func, line)

        if func.type == "field_expression":
            field = func.child_by_field_name("field")
            value = func.child_by_field_name("value")
            if field is not None and value is not None and field.type == "field_identifier":
                receiver = " ".join(self._text(value).split())
                name = self._text(field)
                return CallSite(
                    raw=f"{receiver}.{name}",
                    line=_line(field),
                    kind=CallKind.METHOD,
                    segments=(name,),
                    receiver=receiver,
                )

        return CallSite(raw=" ".join(self._text(func).split()), line=line, kind=CallKind.OTHER)

    def _scoped_call(self, func: Node, line: int) -> CallSite | None:
        path = func.child_by_field_name("path")
        name_node = func.child_by_field_name("name")
        if name_node is None:
            return None
        name = self._text(name_node)
        if _is_constructor(name):
            return None

        if path is not None and path.type == "bracketed_type":
            inner = path.named_children[0] if path.named_children else None
            if inner is not None and inner.type == "qualified_type":
                type_node = inner.child_by_field_name("type")
                trait_node = inner.child_by_field_name("alias")
                type_name = self._type_name(type_node, unwrap=False) if type_node else None
                trait_name = self._type_name(trait_node, unwrap=False) if trait_node else None
                return CallSite(
                    raw=" ".join(self._text(func).split()),
                    line=line,
                    kind=CallKind.QUALIFIED,
                    segments=(name,),
                    qualified_type=type_name,
                    qualified_trait=trait_name,
                )
            type_name = self._type_name(inner, unwrap=False) if inner is not None else None
            if type_name is None:
                return CallSite(raw=self._text(func), line=line, kind=CallKind.OTHER)
            return CallSite(
                raw=f"{type_name}::{name}",
                line=line,
                kind=CallKind.PATH,
                segments=(type_name, name),
            )

        segments = tuple(split_path(self._text(func)))
        return CallSite(raw=join_path(segments), line=line, kind=CallKind.PATH, segments=segments)

    def _binding_name(self, pattern: Node | None) -> str | None:
        if pattern is None:
            return None
        if pattern.type == "mut_pattern":
            pattern = next((c for c in pattern.named_children if c.type == "identifier"), None)
            if pattern is None:
                return None
        if pattern.type == "identifier":
            return self._text(pattern)
        return None

    def _pattern_names(self, pattern: Node | None) -> set[str]:
        """Names bound by a pattern: ``(a, Some(mut b))`` -> ``{a, b}``."""
        if pattern is None:
            return set()
        if pattern.type in ("identifier", "shorthand_field_identifier"):
            name = self._text(pattern)
            return set() if _is_constructor(name) else {name}
        if pattern.type not in _PATTERNS:
            return set()
        skipped = {
            child.id
            for child in (
                pattern.child_by_field_name("type"),
                pattern.child_by_field_name("condition"),
            )
            if child is not None
        }
        names: set[str] = set()
        for child in pattern.named_children:
            if child.id not in skipped:
                names |= self._pattern_names(child)
        return names

    def _type_name(self, node: Node, unwrap: bool = True) -> str | None:
        """Base type name of a type node (``&mut Foo<T>`` -> ``Foo``).

        With ``unwrap`` smart pointers are looked through: ``Arc<Foo>`` -> ``Foo``.
        """
        kind = node.type
        if kind == "type_identifier":
            return self._text(node)
        if kind == "reference_type":
            inner = node.child_by_field_name("type")
            return self._type_name(inner, unwrap) if inner is not None else None
        if kind == "scoped_type_identifier":
            name = node.child_by_field_name("name")
            return self._text(name) if name is not None else None
        if kind == "generic_type":
            base = node.child_by_field_name("type")
            base_name = self._type_name(base, unwrap) if base is not None else None
            if unwrap and base_name in SMART_POINTERS:
                arguments = node.child_by_field_name("type_arguments")
                for argument in arguments.named_children if arguments else []:
                    inner_name = self._type_name(argument, unwrap)
                    if inner_name:
                        return inner_name
            return base_name
        return None

    def _value_type(self, value: Node) -> str | None:
        """Type constructed by a let initializer, when syntactically obvious."""
        while value.type in ("try_expression", "await_expression", "parenthesized_expression"):
            if not value.named_children:
                return None
            value = value.named_children[0]
        if value.type == "struct_expression":
            name = value.child_by_field_name("name")
            segments = split_path(self._text(name)) if name is not None else []
            return segments[-1] if segments else None
        if value.type == "call_expression":
            func = value.child_by_field_name("function")
            if func is not None and func.type == "generic_function":
                func = func.child_by_field_name("function")
            if func is not None and func.type == "scoped_identifier":
                segments = split_path(self._text(func))
                if len(segments) >= 2 and _is_constructor(segments[-2]):
                    return segments[-2]
        return None

    def _is_public(self, node: Node) -> bool:
        return any(child.type == "visibility_modifier" for child in node.children)

    def _is_async(self, node: Node) -> bool:
        for child in node.children:
            if child.type == "function_modifiers" and "async" in self._text(child).split():
                return True
            if not child.is_named and self._text(child) == "async":
                return True
        return False

    def _signature(self, node: Node, body: Node | None) -> str:
        end = body.start_byte if body is not None else node.end_byte
        text = self.source[node.start_byte : end].decode("utf8")
        return " ".join(text.split()).rstrip(";").strip()
