"""Command allow-list and classification."""

from typing import FrozenSet, Optional, Tuple

# Commands the Reference API is known to implement.
SUPPORTED_COMMANDS: FrozenSet[str] = frozenset({
    "vscode.open",
    "vscode.diff",
    "setContext",
    "vscode.previewHtml",
})

# A string literal starting with one of these is treated as a command id,
# wherever it appears in the program.
COMMAND_PREFIXES: Tuple[str, ...] = (
    "vscode.",
    "workbench.",
    "editor.",
    "history.",
    "search.",
    "markdown.",
    "actions.",
)


def is_command_shaped(value: str) -> bool:
    return value.startswith(COMMAND_PREFIXES)


def is_supported_command(command: str) -> bool:
    """Verbatim allow-list membership; commands are never rewritten."""
    return command in SUPPORTED_COMMANDS


def command_from_literal(value: Optional[str]) -> Optional[str]:
    """Return the literal if it looks like a command id, else None."""
    if value and is_command_shaped(value):
        return value
    return None
