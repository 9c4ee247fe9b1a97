"""Load a TypeScript program: root files plus everything they pull in."""

from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Deque, Dict, Iterable, List, Optional, Sequence, Tuple

from tree_sitter import Node, Tree

from .checker import TypeChecker
from .declarations import Declaration, DeclarationTable
from .resolution import ModuleResolver, normalize
from .syntax import TreeSitterSyntax, is_declaration_path, named_children, parse_source, root_of, string_literal_text
from .tsconfig import CompilerOptions

_REFERENCE_PREFIX = "///"


@dataclass
class SourceFile:
    """One parsed file of a program."""
    file_name: str  # posix path as the program was given it
    path: Path
    tree: Tree
    is_declaration_file: bool

    @property
    def root(self) -> Node:
        return self.tree.root_node


def _module_specifiers(root: Node) -> List[str]:
    """Specifiers a file imports, re-exports, requires or dynamically imports."""
    specifiers: List[str] = []
    stack = [root]
    while stack:
        node = stack.pop()
        kind = node.type
        if kind in ("import_statement", "export_statement"):
            source = node.child_by_field_name("source")
            if source is not None:
                value = string_literal_text(source)
                if value:
                    specifiers.append(value)
        elif kind == "import_require_clause":
            source = node.child_by_field_name("source")
            if source is not None and string_literal_text(source):
                specifiers.append(string_literal_text(source) or "")
        elif kind == "call_expression":
            callee = node.child_by_field_name("function")
            arguments = node.child_by_field_name("arguments")
            if callee is not None and arguments is not None and callee.text in (b"require", b"import"):
                first = named_children(arguments)[:1]
                value = string_literal_text(first[0]) if first else None
                if value:
                    specifiers.append(value)
        stack.extend(reversed(node.named_children))
    return specifiers


def _triple_slash_references(root: Node) -> List[Tuple[str, str]]:
    """('path' | 'types', value) pairs from leading `/// <reference .../>` comments."""
    references = []
    for child in root.children:
        if child.type != "comment":
            break
        text = (child.text or b"").decode("utf-8").strip()
        if not text.startswith(_REFERENCE_PREFIX) or "<reference" not in text:
            continue
        for attribute in ("path", "types"):
            for quote in ('"', "'"):
                marker = f"{attribute}={quote}"
                start = text.find(marker)
                if start == -1:
                    continue
                start += len(marker)
                end = text.find(quote, start)
                if end != -1:
                    references.append((attribute, text[start:end]))
    return references


class Program:
    """Parsed files, their declarations, and a lazily created type checker."""

    def __init__(self, options: CompilerOptions, project_dir: Path):
        self.options = options
        self.resolver = ModuleResolver(options, project_dir)
        self.syntax = TreeSitterSyntax()
        self.declarations = DeclarationTable()
        self._files: Dict[Path, SourceFile] = {}
        self._files_by_root: Dict[int, SourceFile] = {}
        self._checker: Optional[TypeChecker] = None

    def add_file(self, path: Path) -> SourceFile:
        path = normalize(path)
        existing = self._files.get(path)
        if existing is not None:
            return existing
        source = path.read_bytes()
        tree = parse_source(source, path)
        source_file = SourceFile(
            file_name=path.as_posix(),
            path=path,
            tree=tree,
            is_declaration_file=is_declaration_path(path),
        )
        self._files[path] = source_file
        self._files_by_root[tree.root_node.id] = source_file
        self.syntax.register(tree, source_file.file_name, source)
        self.declarations.add_file(path, tree.root_node, source_file.is_declaration_file)
        return source_file

    def get_source_files(self) -> List[SourceFile]:
        return list(self._files.values())

    def get_source_file(self, path) -> Optional[SourceFile]:
        return self._files.get(normalize(Path(path)))

    def get_type_checker(self) -> TypeChecker:
        if self._checker is None:
            self._checker = TypeChecker(self)
        return self._checker

    def file_of(self, node: Node) -> Optional[SourceFile]:
        return self._files_by_root.get(root_of(node).id)

    def resolve_module_declaration(self, specifier: str, origin: Node) -> Optional[Declaration]:
        """Module declaration an import specifier names, seen from origin's file."""
        source_file = self.file_of(origin)
        if source_file is not None:
            resolved = self.resolver.resolve(specifier, source_file.path)
            if resolved is not None:
                module = self.declarations.file_modules.get(normalize(resolved))
                if module is not None:
                    return module
        return self.declarations.module(specifier)


def create_program(
    root_names: Sequence,
    options: Optional[CompilerOptions] = None,
    project_dir: Optional[Path] = None,
) -> Program:
    """
    Parse root files and, transitively, every file they reference.

    Imports resolve through the project's compiler options; declaration
    packages from the type roots are included unless `types` restricts them.

    Args:
        root_names: Paths of the root files
        options: Compiler options; defaults when omitted
        project_dir: Directory automatic type roots are searched from

    Returns:
        The loaded Program
    """
    options = options or CompilerOptions()
    project = normalize(Path(project_dir)) if project_dir is not None else Path.cwd()
    program = Program(options, project)

    queue: Deque[Path] = deque(normalize(Path(name)) for name in root_names)
    queue.extend(program.resolver.automatic_type_files())

    while queue:
        path = queue.popleft()
        if program.get_source_file(path) is not None or not path.is_file():
            continue
        source_file = program.add_file(path)
        queue.extend(_referenced_files(program, source_file))
    return program


def _referenced_files(program: Program, source_file: SourceFile) -> Iterable[Path]:
    resolver = program.resolver
    for attribute, value in _triple_slash_references(source_file.root):
        if attribute == "path":
            yield normalize(source_file.path.parent / value)
        else:
            resolved = resolver.resolve_type_reference(value)
            if resolved is not None:
                yield resolved
    for specifier in _module_specifiers(source_file.root):
        resolved = resolver.resolve(specifier, source_file.path)
        if resolved is not None:
            yield resolved
