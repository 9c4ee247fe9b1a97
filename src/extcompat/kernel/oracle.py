"""Capabilities the kernel needs from a language front end.

The kernel never parses or type-checks anything itself. A loaded program hands
it source files, a syntax adapter for walking and reading nodes, and a type
checker that answers two questions per node:

- what is the static type at this node (and does it carry a symbol)?
- what is the fully qualified name of a symbol?

Anything satisfying these protocols can drive the analysis; tests use a stub,
the CLI uses the tree-sitter front end.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol, Sequence


@dataclass(frozen=True)
class SourcePosition:
    """Zero-based location of a node."""
    file: str
    line: int
    column: int


class ResolvedType(Protocol):
    """Static type at a node."""

    @property
    def symbol(self) -> Optional[Any]:
        """Symbol the type is associated with, if any."""
        ...

    @property
    def literal_value(self) -> Optional[str]:
        """Value of a string literal type, None for any other type."""
        ...


class TypeOracle(Protocol):
    """Type-checking capability injected into the kernel."""

    def get_type_at_location(self, node: Any) -> Optional[ResolvedType]:
        ...

    def get_fully_qualified_name(self, symbol: Any) -> str:
        ...


class SyntaxAdapter(Protocol):
    """Structural view over nodes of one front end."""

    def children(self, node: Any) -> Sequence[Any]:
        ...

    def parent(self, node: Any) -> Optional[Any]:
        ...

    def string_literal_text(self, node: Any) -> Optional[str]:
        """Literal text without delimiters, None if the node is not string-literal-like."""
        ...

    def is_call_expression(self, node: Any) -> bool:
        ...

    def call_arguments(self, node: Any) -> Sequence[Any]:
        ...

    def source_text(self, node: Any) -> str:
        ...

    def position(self, node: Any) -> SourcePosition:
        ...


class SourceFile(Protocol):
    file_name: str
    is_declaration_file: bool
    root: Any


class Program(Protocol):
    """A loaded program: files plus the capabilities to inspect them."""
    syntax: SyntaxAdapter

    def get_source_files(self) -> Iterable[SourceFile]:
        ...

    def get_type_checker(self) -> TypeOracle:
        ...


def qualified_name_at(checker: TypeOracle, node: Any) -> Optional[str]:
    """Fully qualified name of the symbol behind the type at node, if any."""
    resolved = checker.get_type_at_location(node)
    if resolved is None:
        return None
    symbol = resolved.symbol
    if symbol is None:
        return None
    return checker.get_fully_qualified_name(symbol)
