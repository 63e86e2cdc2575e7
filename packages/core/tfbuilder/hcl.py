"""Minimal HCL syntax tree and renderer.

Templates build lists of nodes instead of filling placeholder strings, so
optional parts (tags, nested blocks) are plain Python conditionals and every
string value is quoted and escaped in one place.

Output follows ``terraform fmt`` layout: two-space indent, and ``=`` aligned
across consecutive single-line attributes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Union

INDENT = "  "

_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")


@dataclass(frozen=True)
class Expr:
    """A raw HCL expression, emitted verbatim (``module.resource_group.name``)."""

    text: str

    def attr(self, name: str) -> Expr:
        return Expr(f"{self.text}.{name}")


@dataclass(frozen=True)
class Call:
    """A function call expression such as ``jsonencode({...})``."""

    name: str
    args: tuple[Any, ...] = ()


@dataclass
class Attr:
    key: str
    value: Any


@dataclass
class Comment:
    text: str


@dataclass
class Blank:
    pass


@dataclass
class Block:
    type: str
    labels: list[str] = field(default_factory=list)
    body: list[Node] = field(default_factory=list)

    @property
    def address(self) -> str:
        """Reference address for resource/module/data blocks."""
        if self.type == "resource":
            return ".".join(self.labels)
        if self.type == "module":
            return f"module.{self.labels[0]}"
        if self.type == "data":
            return "data." + ".".join(self.labels)
        raise ValueError(f"Block {self.type!r} has no address")

    def ref(self, attribute: str) -> Expr:
        return Expr(f"{self.address}.{attribute}")


Node = Union[Attr, Block, Comment, Blank]

BLANK = Blank()


def call(name: str, *args: Any) -> Call:
    return Call(name, tuple(args))


def resource(resource_type: str, label: str, *body: Node | None) -> Block:
    return Block("resource", [resource_type, label], [n for n in body if n is not None])


def block(block_type: str, *body: Node | None) -> Block:
    return Block(block_type, [], [n for n in body if n is not None])


def quote(value: str) -> str:
    """Quote a string literal. ``${...}`` interpolation is left intact."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def render_key(key: str) -> str:
    return key if _IDENT.match(key) else quote(key)


def render_value(value: Any, level: int = 0) -> str:
    if isinstance(value, Expr):
        return value.text
    if isinstance(value, Call):
        args = ", ".join(render_value(a, level) for a in value.args)
        return f"{value.name}({args})"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return quote(value)
    if isinstance(value, Mapping):
        return _render_map(value, level)
    if isinstance(value, (list, tuple)):
        return _render_list(value, level)
    raise TypeError(f"Cannot render {type(value).__name__} as HCL")


def _render_map(value: Mapping, level: int) -> str:
    if not value:
        return "{}"
    inner = INDENT * (level + 1)
    entries = [(render_key(str(k)), render_value(v, level + 1)) for k, v in value.items()]
    lines = ["{"]
    lines.extend(_aligned(entries, inner))
    lines.append(f"{INDENT * level}}}")
    return "\n".join(lines)


def _render_list(value: Iterable, level: int) -> str:
    items = list(value)
    if not any(isinstance(i, (Mapping, list, tuple)) for i in items):
        return "[" + ", ".join(render_value(i, level) for i in items) + "]"
    inner = INDENT * (level + 1)
    lines = ["["]
    lines.extend(f"{inner}{render_value(i, level + 1)}," for i in items)
    lines.append(f"{INDENT * level}]")
    return "\n".join(lines)


def _aligned(entries: list[tuple[str, str]], indent: str) -> list[str]:
    """Render ``key = value`` pairs, aligning runs of single-line values."""
    lines: list[str] = []
    run: list[tuple[str, str]] = []

    def flush() -> None:
        if run:
            width = max(len(k) for k, _ in run)
            lines.extend(f"{indent}{k.ljust(width)} = {v}" for k, v in run)
            run.clear()

    for key, rendered in entries:
        if "\n" in rendered:
            flush()
            lines.append(f"{indent}{key} = {rendered}")
        else:
            run.append((key, rendered))
    flush()
    return lines


def _render_body(nodes: Iterable[Node], level: int) -> list[str]:
    indent = INDENT * level
    lines: list[str] = []
    pending: list[tuple[str, str]] = []

    def flush() -> None:
        lines.extend(_aligned(pending, indent))
        pending.clear()

    for node in nodes:
        if isinstance(node, Attr):
            pending.append((node.key, render_value(node.value, level)))
            continue
        flush()
        if isinstance(node, Blank):
            if lines and lines[-1] != "":
                lines.append("")
        elif isinstance(node, Comment):
            lines.append(f"{indent}# {node.text}")
        elif isinstance(node, Block):
            lines.extend(_render_block(node, level))
        else:
            raise TypeError(f"Unknown HCL node: {node!r}")
    flush()

    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _render_block(node: Block, level: int) -> list[str]:
    indent = INDENT * level
    header = " ".join([node.type, *(quote(label) for label in node.labels)])
    body = _render_body(node.body, level + 1)
    if not body:
        return [f"{indent}{header} {{}}"]
    return [f"{indent}{header} {{", *body, f"{indent}}}"]


def render(nodes: Iterable[Node]) -> str:
    """Render top-level nodes to HCL text (no trailing newline)."""
    return "\n".join(_render_body(nodes, 0))
