"""Call resolution: match parsed call sites to known symbols."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from rust_grapher.core.models import (
    Diagnostic,
    DiagnosticKind,
    Edge,
    EdgeType,
    Resolution,
    Symbol,
    SymbolType,
)
from rust_grapher.languages.models import CallKind, CallSite, ParsedFunction, ParseResult
from rust_grapher.languages.paths import (
    ancestors,
    join_path,
    module_distance,
    normalize_path,
    parent_module,
    split_path,
)

logger = logging.getLogger(__name__)

_SELF_PREFIX = "self."


def base_id(symbol_id: str) -> str:
    """Identifier without its ordinal suffix: ``a::f#2`` -> ``a::f``."""
    return symbol_id.partition("#")[0]


class CallResolver:
    """Resolves call sites against an immutable snapshot of all symbols.

    Lookup order for each call site:
    1. Nested fns and named closures of the caller (and its enclosing functions),
       unless a parameter or local variable of that name shadows them
    2. Exact path, after expanding crate/self/super/Self and `use` aliases
    3. Simple name in the caller's module, then ancestor modules, then glob imports
    4. Methods of impls matching the receiver type, or `Type::name` associated items
    5. Otherwise unresolved, keeping the raw callee text
    """

    def __init__(self, symbols: Iterable[Symbol], parse_results: Iterable[ParseResult]) -> None:
        self._results = list(parse_results)
        self._symbols: dict[str, Symbol] = {s.id: s for s in symbols}

        self._by_path: dict[str, list[Symbol]] = defaultdict(list)
        self._methods_by_type: dict[str, list[Symbol]] = defaultdict(list)
        self._trait_defaults: dict[tuple[str, str], list[Symbol]] = defaultdict(list)
        self._children: dict[str, dict[str, list[str]]] = defaultdict(lambda: defaultdict(list))
        self._nested: set[str] = set()

        for result in self._results:
            for parsed in result.functions:
                if parsed.parent is not None:
                    self._nested.add(parsed.id)
                    self._children[parsed.parent.id][parsed.symbol.name].append(parsed.id)

        for symbol in self._symbols.values():
            if symbol.id in self._nested:
                continue
            self._by_path[base_id(symbol.id)].append(symbol)
            if symbol.impl_type is not None:
                self._methods_by_type[symbol.impl_type].append(symbol)
            elif symbol.trait_name is not None:
                self._trait_defaults[(symbol.trait_name, symbol.name)].append(symbol)

        self._imports: dict[str, dict[str, str]] = defaultdict(dict)
        self._globs: dict[str, list[str]] = defaultdict(list)
        self._struct_fields: dict[str, dict[str, str]] = {}
        self._fields_by_struct_name: dict[str, list[dict[str, str]]] = defaultdict(list)
        for result in self._results:
            for module, aliases in result.imports.items():
                self._imports[module].update(aliases)
            for module, globs in result.glob_imports.items():
                self._globs[module].extend(globs)
            for struct, fields in result.struct_fields.items():
                self._struct_fields[struct] = fields
                self._fields_by_struct_name[struct.rsplit("::", 1)[-1]].append(fields)

    def resolve(self) -> tuple[list[Edge], list[Diagnostic]]:
        """Resolve every call site, in file then source order."""
        edges: list[Edge] = []
        diagnostics: list[Diagnostic] = []
        for result in self._results:
            for parsed in result.functions:
                for call in parsed.calls:
                    edge, diagnostic = self._resolve_call(parsed, call)
                    edges.append(edge)
                    if diagnostic is not None:
                        diagnostics.append(diagnostic)

        unresolved = sum(1 for e in edges if not e.is_resolved)
        logger.debug(
            "Resolved %d of %d call sites (%d ambiguous)",
            len(edges) - unresolved,
            len(edges),
            len(diagnostics),
        )
        return edges, diagnostics

    def _resolve_call(
        self, caller: ParsedFunction, call: CallSite
    ) -> tuple[Edge, Diagnostic | None]:
        edge_type = EdgeType.METHOD_CALL if call.kind is CallKind.METHOD else EdgeType.CALL
        module = caller.symbol.module_path

        candidates: list[Symbol] = []
        hint = module
        if call.kind is CallKind.PATH:
            candidates, hint = self._resolve_path(caller, call.segments)
        elif call.kind is CallKind.METHOD:
            candidates, hint = self._resolve_method(caller, call)
        elif call.kind is CallKind.QUALIFIED:
            candidates = self._resolve_qualified(call)

        if not candidates:
            return (
                Edge(
                    caller=caller.id,
                    callee=None,
                    raw=call.raw,
                    call_lines=(call.line,),
                    type=edge_type,
                    resolution=Resolution.UNRESOLVED,
                ),
                None,
            )

        chosen, ambiguous = _pick(candidates, hint)
        edge = Edge(
            caller=caller.id,
            callee=chosen.id,
            raw=call.raw,
            call_lines=(call.line,),
            type=edge_type,
            resolution=Resolution.AMBIGUOUS if ambiguous else Resolution.RESOLVED,
        )
        if not ambiguous:
            return edge, None

        message = (
            f"Ambiguous call '{call.raw}' in {caller.id}: picked {chosen.id} "
            f"among {len(candidates)} candidates"
        )
        logger.info("%s:%d: %s", caller.symbol.file, call.line, message)
        return edge, Diagnostic(
            kind=DiagnosticKind.AMBIGUOUS_CALL,
            message=message,
            file=caller.symbol.file,
            line=call.line,
        )

    def _resolve_path(
        self, caller: ParsedFunction, segments: tuple[str, ...]
    ) -> tuple[list[Symbol], str]:
        module = caller.symbol.module_path
        crate = caller.symbol.crate

        if len(segments) == 1:
            local = self._local_scope(caller, segments[0])
            if local is None:
                return [], module
            if local:
                return local, module

        head = segments[0]
        if head == "Self":
            impl_type = self._impl_type(caller)
            if impl_type is None or len(segments) != 2:
                return [], module
            return self._associated(impl_type, segments[1], module, caller)

        if head in ("crate", "self", "super"):
            normalized = normalize_path(list(segments), module, crate)
            if normalized is None:
                return [], module
            found = self._exact(join_path(normalized))
            if found:
                return found, module
            return self._associated_path(normalized, module, caller)

        # `use` aliases of the caller's module
        aliases = self._imports.get(module, {})
        if head in aliases:
            expanded = split_path(aliases[head]) + list(segments[1:])
            found = self._lookup(expanded, module)
            if found:
                return found, module
            return self._associated_path(expanded, module, caller)

        found = self._lookup(list(segments), module)
        if found:
            return found, module

        for glob in self._globs.get(module, []):
            found = self._lookup(split_path(glob) + list(segments), module)
            if found:
                return found, module

        return self._associated_path(list(segments), module, caller)

    def _local_scope(self, caller: ParsedFunction, name: str) -> list[Symbol] | None:
        """Nested fns and named closures called ``name`` visible from ``caller``.

        Returns None when a parameter or local variable of that name shadows
        every item. Only closures see the locals of their enclosing function.
        """
        scope: ParsedFunction | None = caller
        captures = True
        while scope is not None:
            ids = self._children.get(scope.id, {}).get(name)
            if ids:
                return [self._symbols[i] for i in ids if i in self._symbols]
            if captures and name in scope.locals:
                return None
            captures = captures and scope.symbol.type is SymbolType.CLOSURE
            scope = scope.parent
        return []

    def _exact(self, path: str) -> list[Symbol]:
        return list(self._by_path.get(path, []))

    def _lookup(self, segments: list[str], module: str) -> list[Symbol]:
        """Try a path relative to ``module`` and its ancestors, then as absolute."""
        rest = join_path(segments)
        for scope in ancestors(module):
            found = self._exact(f"{scope}::{rest}")
            if found:
                return found
        return self._exact(rest)

    def _associated_path(
        self, segments: list[str], module: str, caller: ParsedFunction
    ) -> tuple[list[Symbol], str]:
        """Resolve ``...::Type::name`` through the methods of ``Type``.

        A bare ``Type::name`` matches the type in any module. With a module
        prefix, the impl must live in the module the prefix names, relative to
        ``module`` and its ancestors, then as an absolute path.
        """
        if len(segments) < 2:
            return [], module
        type_name = segments[-2]
        if type_name == "Self":
            impl_type = self._impl_type(caller)
            if impl_type is None:
                return [], module
            type_name = impl_type
        if len(segments) == 2:
            return self._associated(type_name, segments[-1], module, caller)

        prefix = join_path(segments[:-2])
        for scope in [f"{s}::{prefix}" for s in ancestors(module)] + [prefix]:
            found, hint = self._associated(type_name, segments[-1], scope, caller, within=scope)
            if found:
                return found, hint
        return [], module

    def _associated(
        self,
        type_name: str,
        name: str,
        hint: str,
        caller: ParsedFunction,
        within: str | None = None,
    ) -> tuple[list[Symbol], str]:
        hint = self._type_module_hint(type_name, hint, caller)
        methods = self._methods_named(type_name, name, within)
        if methods:
            return methods, hint
        # Trait::method(x) may name a default method
        defaults = self._trait_defaults.get((type_name, name), [])
        return [s for s in defaults if within is None or s.module_path == within], hint

    def _resolve_method(
        self, caller: ParsedFunction, call: CallSite
    ) -> tuple[list[Symbol], str]:
        module = caller.symbol.module_path
        receiver_type = self._receiver_type(caller, call.receiver or "")
        if receiver_type is None:
            return [], module
        hint = self._type_module_hint(receiver_type, module, caller)
        return self._methods_named(receiver_type, call.name), hint

    def _resolve_qualified(self, call: CallSite) -> list[Symbol]:
        if call.qualified_type is None:
            return []
        methods = [
            s
            for s in self._methods_by_type.get(call.qualified_type, [])
            if s.name == call.name and s.trait_name == call.qualified_trait
        ]
        if methods:
            return methods
        if call.qualified_trait is None:
            return []
        return list(self._trait_defaults.get((call.qualified_trait, call.name), []))

    def _methods_named(self, type_name: str, name: str, within: str | None = None) -> list[Symbol]:
        """Impl methods of a type, optionally only those in module ``within``.

        Inherent impls win over trait impls.
        """
        methods = [
            s
            for s in self._methods_by_type.get(type_name, [])
            if s.name == name and (within is None or s.module_path == within)
        ]
        inherent = [s for s in methods if s.trait_name is None]
        return inherent or methods

    def _receiver_type(self, caller: ParsedFunction, receiver: str) -> str | None:
        if receiver == "self":
            return self._impl_type(caller)
        if receiver.startswith(_SELF_PREFIX):
            field = receiver[len(_SELF_PREFIX) :]
            if not field.isidentifier():
                return None
            impl_type = self._impl_type(caller)
            if impl_type is None:
                return None
            return self._field_type(impl_type, caller.symbol.module_path, field)
        if receiver.isidentifier():
            scope: ParsedFunction | None = caller
            while scope is not None:
                if receiver in scope.bindings:
                    return scope.bindings[receiver]
                scope = scope.parent
        return None

    def _field_type(self, struct: str, module: str, field: str) -> str | None:
        fields = self._struct_fields.get(f"{module}::{struct}")
        if fields is not None:
            return fields.get(field)
        for candidate in self._fields_by_struct_name.get(struct, []):
            if field in candidate:
                return candidate[field]
        return None

    def _impl_type(self, caller: ParsedFunction) -> str | None:
        scope: ParsedFunction | None = caller
        while scope is not None:
            if scope.symbol.impl_type is not None:
                return scope.symbol.impl_type
            scope = scope.parent
        return None

    def _type_module_hint(self, type_name: str, default: str, caller: ParsedFunction) -> str:
        """Module a type name most likely refers to, from the caller's imports."""
        imported = self._imports.get(caller.symbol.module_path, {}).get(type_name)
        if imported is not None:
            return parent_module(imported) or default
        return default


def _pick(candidates: list[Symbol], module: str) -> tuple[Symbol, bool]:
    """Choose among candidates: nearest module first, then first id.

    Returns the chosen symbol and whether the choice was ambiguous.
    """
    if len(candidates) == 1:
        return candidates[0], False
    best = min(module_distance(module, c.module_path) for c in candidates)
    nearest = sorted(
        (c for c in candidates if module_distance(module, c.module_path) == best),
        key=lambda c: c.id,
    )
    return nearest[0], len(nearest) > 1
