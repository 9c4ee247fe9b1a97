"""Walk a loaded program and classify every Source-API usage.

Two independent checks run at every node of every non-declaration file:

1. A string literal shaped like a command id (see ``commands.COMMAND_PREFIXES``)
   is classified as a command, whether or not it sits in a call.
2. A node whose type symbol lives in the Source-API namespace is classified
   through the symbol mapper. When that symbol is ``executeCommand`` and the
   node is the callee of a call, the call's first argument is classified as a
   command too, or recorded as a dynamic call when its value is not static.

All outcomes land on a ``TraversalContext`` owned by one ``analyze_program``
call. Classification is memoized: the first outcome for a name sticks.
"""

from dataclasses import dataclass, field
from typing import AbstractSet, Any, Optional, Set

from .commands import command_from_literal, is_supported_command
from .mapper import SOURCE_NAMESPACE, is_supported_symbol, namespace_prefix
from .oracle import Program, SyntaxAdapter, TypeOracle, qualified_name_at
from .walker import visit_safely, walk

EXECUTE_COMMAND_SUFFIX = ".executeCommand"


@dataclass(frozen=True)
class DynamicCommandCall:
    """A command execution whose argument is only known at run time."""
    text: str
    file: str
    line: int  # 0-based
    column: int  # 0-based

    def describe(self) -> str:
        return f"{self.text} ({self.file} {self.line}:{self.column})"


@dataclass
class TraversalContext:
    """Accumulators for one analysis pass. Append-only."""
    symbol_index: AbstractSet[str]
    used_symbols: Set[str] = field(default_factory=set)
    missing_symbols: Set[str] = field(default_factory=set)
    used_commands: Set[str] = field(default_factory=set)
    missing_commands: Set[str] = field(default_factory=set)
    dynamic_command_calls: Set[DynamicCommandCall] = field(default_factory=set)

    def classify_symbol(self, qualified_name: str) -> bool:
        """Classify a Source-API name once; later calls return the first outcome."""
        if qualified_name in self.used_symbols:
            return True
        if qualified_name in self.missing_symbols:
            return False
        if is_supported_symbol(qualified_name, self.symbol_index):
            self.used_symbols.add(qualified_name)
            return True
        self.missing_symbols.add(qualified_name)
        return False

    def classify_command(self, command: str) -> bool:
        if is_supported_command(command):
            self.used_commands.add(command)
            return True
        self.missing_commands.add(command)
        return False

    def record_dynamic_call(self, call: DynamicCommandCall) -> None:
        self.dynamic_command_calls.add(call)

    @property
    def has_symbol_usages(self) -> bool:
        return bool(self.used_symbols or self.missing_symbols)


class UsageCollector:
    """Per-node visitor feeding a TraversalContext."""

    def __init__(
        self,
        syntax: SyntaxAdapter,
        checker: TypeOracle,
        context: TraversalContext,
        namespace: str = SOURCE_NAMESPACE,
    ):
        self.syntax = syntax
        self.checker = checker
        self.context = context
        self.prefix = namespace_prefix(namespace)

    def __call__(self, node: Any) -> None:
        visit_safely(self.check_literal, node)
        visit_safely(self.check_symbol, node)

    def check_literal(self, node: Any) -> None:
        command = command_from_literal(self.syntax.string_literal_text(node))
        if command is not None:
            self.context.classify_command(command)

    def check_symbol(self, node: Any) -> None:
        qualified_name = qualified_name_at(self.checker, node)
        if qualified_name is None or not qualified_name.startswith(self.prefix):
            return
        if qualified_name.endswith(EXECUTE_COMMAND_SUFFIX):
            parent = self.syntax.parent(node)
            if parent is not None and self.syntax.is_call_expression(parent):
                visit_safely(self.check_command_call, parent)
        self.context.classify_symbol(qualified_name)

    def check_command_call(self, call: Any) -> None:
        arguments = self.syntax.call_arguments(call)
        if not arguments:
            return
        argument = arguments[0]
        command = self.command_value(argument)
        if command:
            self.context.classify_command(command)
            return
        position = self.syntax.position(argument)
        self.context.record_dynamic_call(DynamicCommandCall(
            text=self.syntax.source_text(argument),
            file=position.file,
            line=position.line,
            column=position.column,
        ))

    def command_value(self, argument: Any) -> Optional[str]:
        """Static value of a command argument: literal text, then literal type."""
        value = self.syntax.string_literal_text(argument)
        if value:
            return value
        try:
            resolved = self.checker.get_type_at_location(argument)
        except Exception:
            return None
        if resolved is None:
            return None
        return resolved.literal_value


def analyze_program(
    program: Program,
    symbol_index: AbstractSet[str],
    namespace: str = SOURCE_NAMESPACE,
) -> TraversalContext:
    """Run the single classification pass over every non-declaration file."""
    context = TraversalContext(symbol_index=symbol_index)
    collector = UsageCollector(program.syntax, program.get_type_checker(), context, namespace)
    for source_file in program.get_source_files():
        if source_file.is_declaration_file:
            continue
        walk(source_file.root, program.syntax.children, collector)
    return context
