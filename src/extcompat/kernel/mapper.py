"""Map Source-API qualified names onto Reference-API candidates.

The mapping is a fixed, ordered list of textual substitutions over the whole
qualified name. Each rule sees the output of the previous one, and the
execution-context rule runs before the generic ``Extension`` rule.

The heuristic is one-directional. A Reference-API symbol whose real name does
not follow these rules can never be matched and is reported missing.
"""

from typing import AbstractSet, Tuple

SOURCE_NAMESPACE = '"vscode"'
REFERENCE_NAMESPACE = '"@theia/plugin"'

RenameRule = Tuple[str, str]

# Applied in order; the first rule only ever touches the leading marker.
RENAME_RULES: Tuple[RenameRule, ...] = (
    (SOURCE_NAMESPACE, REFERENCE_NAMESPACE),
    ("ExtensionContext", "PluginContext"),
    ("Extension", "Plugin"),
    ("extensions", "plugins"),
)


def namespace_prefix(namespace: str) -> str:
    """Prefix every member of a namespace starts with, e.g. '"vscode".'."""
    return namespace + "."


def apply_rename_rules(qualified_name: str, rules: Tuple[RenameRule, ...] = RENAME_RULES) -> str:
    """Rewrite a Source-API qualified name into a Reference-API candidate."""
    if not rules:
        return qualified_name
    (marker, replacement), rest = rules[0], rules[1:]
    candidate = qualified_name
    if candidate.startswith(marker):
        candidate = replacement + candidate[len(marker):]
    for find, replace in rest:
        candidate = candidate.replace(find, replace)
    return candidate


def is_supported_symbol(qualified_name: str, symbol_index: AbstractSet[str]) -> bool:
    """True if the rewritten name is exported by the Reference API."""
    return apply_rename_rules(qualified_name) in symbol_index
