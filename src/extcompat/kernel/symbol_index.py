"""Build the set of qualified names a Reference API exports."""

from typing import FrozenSet, Set

from .mapper import REFERENCE_NAMESPACE, namespace_prefix
from .oracle import Program, SourceFile, qualified_name_at
from .walker import walk


def build_symbol_index(
    program: Program,
    source_file: SourceFile,
    namespace: str = REFERENCE_NAMESPACE,
) -> FrozenSet[str]:
    """
    Collect every symbol reachable from the declaration file's nodes.

    Every node of the file is visited in pre-order; the type at each node is
    resolved and, when it carries a symbol whose qualified name lives in the
    given namespace, that name is kept. Nodes whose type cannot be resolved
    contribute nothing and do not stop the walk.

    Args:
        program: Program the declaration file was loaded into
        source_file: The Reference API declaration file
        namespace: Quoted namespace marker, e.g. '"@theia/plugin"'

    Returns:
        Immutable set of qualified names
    """
    checker = program.get_type_checker()
    prefix = namespace_prefix(namespace)
    symbols: Set[str] = set()

    def visit(node) -> None:
        qualified_name = qualified_name_at(checker, node)
        if qualified_name is not None and qualified_name.startswith(prefix):
            symbols.add(qualified_name)

    walk(source_file.root, program.syntax.children, visit)
    return frozenset(symbols)
