"""tree-sitter parsing and node helpers for TypeScript sources."""

from pathlib import Path
from typing import Dict, List, Optional

import tree_sitter_typescript as tstypescript
from tree_sitter import Language, Node, Parser, Tree

from extcompat.kernel.oracle import SourcePosition

TYPESCRIPT_LANGUAGE = Language(tstypescript.language_typescript())
TSX_LANGUAGE = Language(tstypescript.language_tsx())

_typescript_parser = Parser(TYPESCRIPT_LANGUAGE)
_tsx_parser = Parser(TSX_LANGUAGE)

# .js may contain JSX but never TypeScript angle-bracket assertions
_TSX_SUFFIXES = {".tsx", ".jsx", ".js", ".mjs", ".cjs"}

SKIPPED_NODE_TYPES = {"comment"}


def is_declaration_path(path: Path) -> bool:
    return path.name.endswith((".d.ts", ".d.mts", ".d.cts"))


def parse_source(source: bytes, path: Path) -> Tree:
    """Parse source bytes with the grammar matching the file extension."""
    parser = _tsx_parser if path.suffix in _TSX_SUFFIXES else _typescript_parser
    return parser.parse(source)


def parse_text(text: str, tsx: bool = False) -> Tree:
    parser = _tsx_parser if tsx else _typescript_parser
    return parser.parse(text.encode("utf-8"))


# Helper to avoid type-checking warnings.
def node_text(node: Node) -> str:
    assert node.text is not None
    return node.text.decode("utf-8")


def named_children(node: Node) -> List[Node]:
    return [child for child in node.named_children if child.type not in SKIPPED_NODE_TYPES]


def first_named_child(node: Node) -> Optional[Node]:
    children = named_children(node)
    return children[0] if children else None


def has_token(node: Node, token: str) -> bool:
    """True if an anonymous child token (keyword) is present, e.g. 'static'."""
    return any(not child.is_named and child.type == token for child in node.children)


def string_literal_text(node: Node) -> Optional[str]:
    """Text of a string literal with its delimiters stripped.

    Quoted strings and templates without substitutions are string-literal-like;
    the raw text is returned, escapes are not interpreted.
    """
    if node.type == "string":
        text = node_text(node)
        return text[1:-1]
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.named_children):
            return None
        text = node_text(node)
        return text[1:-1]
    return None


def dotted_name(node: Node) -> List[str]:
    """Segments of an identifier, nested_identifier or nested_type_identifier."""
    return [part.strip() for part in node_text(node).split(".") if part.strip()]


def character_column(source: bytes, start_byte: int, byte_column: int) -> int:
    """Column in UTF-16 code units, the way editors and tsc count characters."""
    prefix = source[start_byte - byte_column:start_byte].decode("utf-8", errors="replace")
    return len(prefix.encode("utf-16-le")) // 2


def root_of(node: Node) -> Node:
    while node.parent is not None:
        node = node.parent
    return node


class TreeSitterSyntax:
    """SyntaxAdapter over tree-sitter nodes of a loaded program."""

    def __init__(self):
        self._file_names: Dict[int, str] = {}  # root node id -> file name
        self._sources: Dict[int, bytes] = {}  # root node id -> source bytes

    def register(self, tree: Tree, file_name: str, source: bytes) -> None:
        self._file_names[tree.root_node.id] = file_name
        self._sources[tree.root_node.id] = source

    def file_name(self, node: Node) -> str:
        return self._file_names.get(root_of(node).id, "")

    def children(self, node: Node) -> List[Node]:
        return named_children(node)

    def parent(self, node: Node) -> Optional[Node]:
        return node.parent

    def string_literal_text(self, node: Node) -> Optional[str]:
        return string_literal_text(node)

    def is_call_expression(self, node: Node) -> bool:
        return node.type == "call_expression"

    def call_arguments(self, node: Node) -> List[Node]:
        arguments = node.child_by_field_name("arguments")
        if arguments is None or arguments.type != "arguments":
            return []
        return named_children(arguments)

    def source_text(self, node: Node) -> str:
        return node_text(node)

    def position(self, node: Node) -> SourcePosition:
        line, byte_column = node.start_point
        source = self._sources.get(root_of(node).id, b"")
        column = character_column(source, node.start_byte, byte_column)
        return SourcePosition(file=self.file_name(node), line=line, column=column)
