"""Helpers for Rust paths such as ``crate::a::b``."""

from __future__ import annotations

import re

_GENERIC_ARGS = re.compile(r"<[^<>]*>")


def strip_generics(text: str) -> str:
    """Remove generic arguments: ``Vec::<u8>::new`` -> ``Vec::new``."""
    previous = None
    while previous != text:
        previous = text
        text = _GENERIC_ARGS.sub("", text)
    return text.replace("::::", "::")


def split_path(text: str) -> list[str]:
    """Split a path expression into its segments."""
    text = "".join(strip_generics(text).split())
    return [segment for segment in text.split("::") if segment]


def join_path(segments: list[str] | tuple[str, ...]) -> str:
    return "::".join(segments)


def parent_module(module_path: str) -> str | None:
    head, sep, _ = module_path.rpartition("::")
    return head if sep else None


def ancestors(module_path: str) -> list[str]:
    """The module itself followed by each enclosing module, outward."""
    result = [module_path]
    current = parent_module(module_path)
    while current is not None:
        result.append(current)
        current = parent_module(current)
    return result


def normalize_path(segments: list[str], module_path: str, crate: str) -> list[str] | None:
    """Expand a leading ``crate``, ``self`` or ``super`` against a module.

    Returns None when ``super`` climbs above the crate root. Paths with any
    other first segment are returned unchanged.
    """
    if not segments:
        return segments
    head = segments[0]
    if head == "crate":
        return [crate, *segments[1:]]
    if head == "self":
        return [*module_path.split("::"), *segments[1:]]
    if head == "super":
        current: str | None = module_path
        rest = list(segments)
        while rest and rest[0] == "super":
            current = parent_module(current) if current else None
            if current is None:
                return None
            rest.pop(0)
        return [*current.split("::"), *rest]
    return list(segments)


def module_distance(a: str, b: str) -> int:
    """Number of differing segments between two module paths."""
    left = a.split("::")
    right = b.split("::")
    common = 0
    for x, y in zip(left, right):
        if x != y:
            break
        common += 1
    return (len(left) - common) + (len(right) - common)
