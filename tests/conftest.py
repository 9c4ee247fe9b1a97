"""Pytest configuration for tests.

No sys.path hacks - tests import from the installed extcompat package.

Kernel tests drive the analysis through a stub front end: nodes carry the
answers a real type checker would give, so traversal and classification can be
checked without parsing anything.
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import SimpleNamespace
from typing import List, Optional

import pytest

from extcompat.kernel.oracle import SourcePosition

FIXTURES = Path(__file__).resolve().parent / "fixtures"


@dataclass(eq=False)
class StubNode:
    kind: str
    text: str = ""
    symbol: Optional[str] = None  # qualified name of the type's symbol
    literal: Optional[str] = None  # set when the node is a string literal
    literal_type: Optional[str] = None  # string literal type the checker proves
    raises: bool = False  # checker fails on this node
    file: str = "src/extension.ts"
    line: int = 0
    column: int = 0
    children: List["StubNode"] = field(default_factory=list)
    parent: Optional["StubNode"] = None


@dataclass(frozen=True)
class StubType:
    symbol: Optional[str]
    literal_value: Optional[str]


class StubChecker:
    def __init__(self):
        self.resolved: List[StubNode] = []

    def get_type_at_location(self, node: StubNode) -> Optional[StubType]:
        self.resolved.append(node)
        if node.raises:
            raise RuntimeError(f"cannot resolve {node.kind}")
        if node.symbol is None and node.literal_type is None:
            return None
        return StubType(node.symbol, node.literal_type)

    def get_fully_qualified_name(self, symbol: str) -> str:
        return symbol


class StubSyntax:
    def children(self, node: StubNode) -> List[StubNode]:
        return node.children

    def parent(self, node: StubNode) -> Optional[StubNode]:
        return node.parent

    def string_literal_text(self, node: StubNode) -> Optional[str]:
        return node.literal

    def is_call_expression(self, node: StubNode) -> bool:
        return node.kind == "call"

    def call_arguments(self, node: StubNode) -> List[StubNode]:
        # first child is the callee
        return node.children[1:]

    def source_text(self, node: StubNode) -> str:
        return node.text

    def position(self, node: StubNode) -> SourcePosition:
        return SourcePosition(file=node.file, line=node.line, column=node.column)


@dataclass
class StubSourceFile:
    file_name: str
    root: StubNode
    is_declaration_file: bool = False


class StubProgram:
    def __init__(self, *files: StubSourceFile):
        self.files = list(files)
        self.syntax = StubSyntax()
        self.checker = StubChecker()

    def get_source_files(self) -> List[StubSourceFile]:
        return self.files

    def get_type_checker(self) -> StubChecker:
        return self.checker


def make_node(kind: str, *children: StubNode, **attrs) -> StubNode:
    node = StubNode(kind, children=list(children), **attrs)
    for child in children:
        child.parent = node
    return node


def string_node(value: str, **attrs) -> StubNode:
    return make_node("string", text=f'"{value}"', literal=value, **attrs)


def execute_command_call(*arguments: StubNode, namespace: str = '"vscode"') -> StubNode:
    """`vscode.commands.executeCommand(<arguments>)` as the checker sees it."""
    callee = make_node(
        "member",
        text="vscode.commands.executeCommand",
        symbol=f"{namespace}.commands.executeCommand",
    )
    return make_node("call", callee, *arguments)


def source_file(*statements: StubNode, file_name: str = "src/extension.ts", declaration: bool = False) -> StubSourceFile:
    return StubSourceFile(file_name=file_name, root=make_node("program", *statements), is_declaration_file=declaration)


@pytest.fixture
def stubs():
    """Builders for stub programs."""
    return SimpleNamespace(
        node=make_node,
        string=string_node,
        execute_command=execute_command_call,
        source_file=source_file,
        program=StubProgram,
    )


@pytest.fixture
def sample_package() -> Path:
    return FIXTURES / "sample_extension"


@pytest.fixture
def empty_package() -> Path:
    return FIXTURES / "empty_extension"


@pytest.fixture
def theia_declarations(sample_package) -> Path:
    return sample_package / "node_modules" / "@theia" / "plugin" / "src" / "theia.d.ts"
