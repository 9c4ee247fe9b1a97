"""Declaration table: the symbols declared by a program's declaration files.

Every ambient module (``declare module "vscode" { ... }``), namespace, class,
interface, enum, function, variable and type alias becomes a ``Declaration``
with a TypeScript-style fully qualified name::

    "vscode"                         the ambient module
    "vscode".window                  a namespace inside it
    "vscode".window.showQuickPick    a function in that namespace
    "vscode".ExtensionContext.secrets  an interface member

Declarations with the same qualified name merge (interfaces re-opened,
namespace + function pairs, overloads); the first declared type wins.

The table also remembers which syntax node declared what, so the checker can
answer "what is the type at this declaration name" and find the declaration
that encloses any node of a declaration file.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from tree_sitter import Node

from .syntax import dotted_name, has_token, named_children, node_text, string_literal_text


class DeclarationKind(str, Enum):
    GLOBAL = "global"
    MODULE = "module"
    NAMESPACE = "namespace"
    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    ENUM_MEMBER = "enum_member"
    FUNCTION = "function"
    METHOD = "method"
    PROPERTY = "property"
    VARIABLE = "variable"
    TYPE_ALIAS = "type_alias"


# Kinds whose members are reachable as `Name.member` on the value itself.
CONTAINER_KINDS = {DeclarationKind.GLOBAL, DeclarationKind.MODULE, DeclarationKind.NAMESPACE}
CALLABLE_KINDS = {DeclarationKind.FUNCTION, DeclarationKind.METHOD}

_FUNCTION_NODES = {"function_signature", "function_declaration", "generator_function_declaration"}
_CLASS_NODES = {"class_declaration", "abstract_class_declaration", "class"}
_VARIABLE_NODES = {"lexical_declaration", "variable_declaration"}
_METHOD_NODES = {"method_signature", "method_definition", "abstract_method_signature"}
_PROPERTY_NODES = {"public_field_definition", "property_signature"}


@dataclass(eq=False)
class Declaration:
    """A named declaration; plays the role of a type checker symbol."""
    name: str
    kind: DeclarationKind
    parent: Optional["Declaration"] = None
    type_node: Optional[Node] = None  # declared type, return type or alias target
    parameters: Optional[Node] = None  # formal parameters of a function or method
    call_signatures: List[Node] = field(default_factory=list)  # `(x: T): R` members of an interface
    heritage: List[Node] = field(default_factory=list)  # extends / implements
    type_parameters: Tuple[str, ...] = ()
    members: Dict[str, "Declaration"] = field(default_factory=dict)  # exports or instance members
    static_members: Dict[str, "Declaration"] = field(default_factory=dict)

    @property
    def qualified_name(self) -> str:
        if self.parent is None or self.parent.kind is DeclarationKind.GLOBAL:
            return self.name
        return f"{self.parent.qualified_name}.{self.name}"

    def __repr__(self) -> str:
        return f"Declaration({self.qualified_name!r}, {self.kind.value})"


def quote_module_name(name: str) -> str:
    return f'"{name}"'


def type_parameter_names(node: Node) -> Tuple[str, ...]:
    params = node.child_by_field_name("type_parameters")
    if params is None:
        return ()
    names = []
    for param in named_children(params):
        name = param.child_by_field_name("name")
        if name is not None:
            names.append(node_text(name))
    return tuple(names)


def member_name(name_node: Node) -> Optional[str]:
    """Name of a class/interface/enum member; computed names are skipped."""
    if name_node.type in ("property_identifier", "identifier", "type_identifier", "private_property_identifier"):
        return node_text(name_node)
    if name_node.type == "string":
        return string_literal_text(name_node)
    return None


def unwrap_statement(node: Node) -> Optional[Node]:
    """Strip `export` and `declare` wrappers off a statement."""
    if node.type == "expression_statement":
        # a bare `namespace x {}` may parse as an expression
        children = named_children(node)
        return children[0] if children and children[0].type == "internal_module" else None
    while node.type in ("export_statement", "ambient_declaration"):
        inner = node.child_by_field_name("declaration")
        if inner is None:
            children = named_children(node)
            if not children or children[0].type in ("string", "export_clause", "namespace_export"):
                return None
            inner = children[0]
        node = inner
    return node


def is_external_module(root: Node) -> bool:
    """A file with top-level import/export is a module, not a global script."""
    for child in named_children(root):
        if child.type in ("import_statement", "export_statement"):
            return True
    return False


class DeclarationTable:
    """All declarations of a program, indexed by name and by syntax node."""

    def __init__(self):
        self.global_scope = Declaration(name="", kind=DeclarationKind.GLOBAL)
        self.ambient_modules: Dict[str, Declaration] = {}  # unquoted module name -> module
        self.file_modules: Dict[Path, Declaration] = {}  # external-module .d.ts path -> module
        self.by_node: Dict[int, Declaration] = {}  # declaration or name node id -> declaration
        self.scope_nodes: Dict[int, Declaration] = {}  # node id -> declaration opening a scope there

    # ------------------------------------------------------------------ build

    def add_file(self, path: Path, root: Node, is_declaration_file: bool) -> None:
        """Declare everything a file contributes.

        Declaration files contribute all their declarations. Implementation
        files only contribute ambient blocks (`declare module`, `declare global`).
        """
        container = self.global_scope
        if is_declaration_file and is_external_module(root):
            module_name = quote_module_name(path.as_posix()[:-len(".d.ts")])
            container = self._declare(self.global_scope, module_name, DeclarationKind.MODULE, root)
            self.file_modules[path] = container
        if is_declaration_file:
            self._declare_statements(named_children(root), container)
        else:
            ambient = [child for child in named_children(root) if child.type == "ambient_declaration"]
            self._declare_statements(ambient, container)

    def _declare(
        self,
        container: Declaration,
        name: str,
        kind: DeclarationKind,
        node: Node,
        name_node: Optional[Node] = None,
        static: bool = False,
    ) -> Declaration:
        target = container.static_members if static else container.members
        declaration = target.get(name)
        if declaration is None:
            declaration = Declaration(name=name, kind=kind, parent=container)
            target[name] = declaration
        self.by_node[node.id] = declaration
        if name_node is not None:
            self.by_node[name_node.id] = declaration
        return declaration

    def _declare_statements(self, statements: Iterable[Node], container: Declaration) -> None:
        for statement in statements:
            self._declare_statement(statement, container)

    def _declare_statement(self, statement: Node, container: Declaration) -> None:
        if statement.type == "ambient_declaration":
            children = named_children(statement)
            if children and children[0].type == "statement_block":
                # declare global { ... }
                self._declare_statements(named_children(children[0]), self.global_scope)
                return
        node = unwrap_statement(statement)
        if node is None:
            return
        kind = node.type
        if kind in ("module", "internal_module"):
            self._declare_module(node, container)
        elif kind in _FUNCTION_NODES:
            self._declare_function(node, container)
        elif kind in _CLASS_NODES:
            self._declare_class(node, container)
        elif kind == "interface_declaration":
            self._declare_interface(node, container)
        elif kind == "enum_declaration":
            self._declare_enum(node, container)
        elif kind == "type_alias_declaration":
            self._declare_type_alias(node, container)
        elif kind in _VARIABLE_NODES:
            self._declare_variables(node, container)

    def _declare_module(self, node: Node, container: Declaration) -> None:
        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        if name_node is None:
            return
        if name_node.type == "string":
            module_name = string_literal_text(name_node) or ""
            declaration = self.ambient_modules.get(module_name)
            if declaration is None:
                declaration = self._declare(
                    self.global_scope, quote_module_name(module_name), DeclarationKind.MODULE, node, name_node
                )
                self.ambient_modules[module_name] = declaration
            else:
                self.by_node[node.id] = declaration
                self.by_node[name_node.id] = declaration
        else:
            # namespace a.b.c { } declares a, a.b and a.b.c
            declaration = container
            segments = dotted_name(name_node)
            for index, segment in enumerate(segments):
                is_last = index == len(segments) - 1
                declaration = self._declare(
                    declaration, segment, DeclarationKind.NAMESPACE, node, name_node if is_last else None
                )
        self.scope_nodes[node.id] = declaration
        if body is not None:
            self.scope_nodes[body.id] = declaration
            self._declare_statements(named_children(body), declaration)

    def _declare_function(self, node: Node, container: Declaration) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        declaration = self._declare(container, node_text(name_node), DeclarationKind.FUNCTION, node, name_node)
        if declaration.type_node is None:
            declaration.type_node = node.child_by_field_name("return_type")
            declaration.type_parameters = type_parameter_names(node)
        if declaration.parameters is None:
            declaration.parameters = node.child_by_field_name("parameters")
        self.scope_nodes[node.id] = declaration

    def _declare_class(self, node: Node, container: Declaration) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        declaration = self._declare(container, node_text(name_node), DeclarationKind.CLASS, node, name_node)
        declaration.type_parameters = declaration.type_parameters or type_parameter_names(node)
        self.scope_nodes[node.id] = declaration
        for child in named_children(node):
            if child.type == "class_heritage":
                for clause in named_children(child):
                    declaration.heritage.extend(
                        part for part in named_children(clause) if part.type != "type_arguments"
                    )
        body = node.child_by_field_name("body")
        if body is not None:
            self._declare_members(body, declaration)

    def _declare_interface(self, node: Node, container: Declaration) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        declaration = self._declare(container, node_text(name_node), DeclarationKind.INTERFACE, node, name_node)
        declaration.type_parameters = declaration.type_parameters or type_parameter_names(node)
        self.scope_nodes[node.id] = declaration
        for child in named_children(node):
            if child.type == "extends_type_clause":
                declaration.heritage.extend(named_children(child))
        body = node.child_by_field_name("body")
        if body is not None:
            self._declare_members(body, declaration)

    def _declare_members(self, body: Node, owner: Declaration) -> None:
        for member in named_children(body):
            if member.type == "call_signature":
                owner.call_signatures.append(member)
                continue
            if member.type in _METHOD_NODES:
                kind = DeclarationKind.METHOD
            elif member.type in _PROPERTY_NODES:
                kind = DeclarationKind.PROPERTY
            else:
                continue
            name_node = member.child_by_field_name("name")
            if name_node is None:
                continue
            name = member_name(name_node)
            if name is None or name == "constructor":
                continue
            static = has_token(member, "static") and owner.kind is DeclarationKind.CLASS
            declaration = self._declare(owner, name, kind, member, name_node, static=static)
            if declaration.type_node is None:
                if kind is DeclarationKind.METHOD:
                    declaration.type_node = member.child_by_field_name("return_type")
                    declaration.type_parameters = type_parameter_names(member)
                    self.scope_nodes[member.id] = declaration
                else:
                    declaration.type_node = member.child_by_field_name("type")
            if kind is DeclarationKind.METHOD and declaration.parameters is None:
                declaration.parameters = member.child_by_field_name("parameters")

    def _declare_enum(self, node: Node, container: Declaration) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        declaration = self._declare(container, node_text(name_node), DeclarationKind.ENUM, node, name_node)
        self.scope_nodes[node.id] = declaration
        body = node.child_by_field_name("body")
        if body is None:
            return
        for member in named_children(body):
            member_node = member.child_by_field_name("name") if member.type == "enum_assignment" else member
            if member_node is None:
                continue
            name = member_name(member_node)
            if name is not None:
                self._declare(declaration, name, DeclarationKind.ENUM_MEMBER, member, member_node)

    def _declare_type_alias(self, node: Node, container: Declaration) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        declaration = self._declare(container, node_text(name_node), DeclarationKind.TYPE_ALIAS, node, name_node)
        if declaration.type_node is None:
            declaration.type_node = node.child_by_field_name("value")
            declaration.type_parameters = type_parameter_names(node)
        self.scope_nodes[node.id] = declaration

    def _declare_variables(self, node: Node, container: Declaration) -> None:
        for declarator in named_children(node):
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                continue
            declaration = self._declare(
                container, node_text(name_node), DeclarationKind.VARIABLE, declarator, name_node
            )
            if declaration.type_node is None:
                declaration.type_node = declarator.child_by_field_name("type")

    # ----------------------------------------------------------------- lookup

    def declaration_of(self, node: Node) -> Optional[Declaration]:
        """Declaration a node (or its name) declares, if any."""
        return self.by_node.get(node.id)

    def enclosing_scope(self, node: Node) -> Optional[Declaration]:
        """Innermost declaration whose scope contains node (node itself excluded)."""
        current = node.parent
        while current is not None:
            declaration = self.scope_nodes.get(current.id)
            if declaration is not None:
                return declaration
            current = current.parent
        return None

    def module(self, name: str) -> Optional[Declaration]:
        return self.ambient_modules.get(name)
