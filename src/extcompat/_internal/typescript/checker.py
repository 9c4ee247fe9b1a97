"""A lightweight TypeScript type checker over tree-sitter trees.

This is not tsc. It answers the one question the kernel asks, "which declared
symbol does the type at this node belong to", for the shapes extension code
actually uses:

- import bindings: ``import * as vscode``, ``import { window }``,
  ``import vscode = require("vscode")``, ``const vscode = require("vscode")``;
- lexical scopes: variables, parameters, ``for...of`` variables, destructuring
  of module members;
- annotations: ``vscode.ExtensionContext``, ``Thenable<TextEditor>``,
  ``TextEditor[]``. ``T | undefined`` collapses to ``T`` unless strict null
  checks are on; then it has no symbol of its own but member access still
  reaches ``T``;
- expressions: member access (namespace exports, static and instance members,
  inherited members), ``this`` inside program classes, calls (declared return
  type), ``new``, ``await`` on ``Thenable``/``Promise``, ``as`` and non-null
  assertions;
- callback parameters without annotations, typed from the callee's declared
  parameter (``.then(editor => ...)``, ``onDidChange(e => ...)``);
- string literal types: literals, ``const`` bindings and literal annotations.

Anything else resolves to None ("no type information").
"""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Dict, List, Optional, Set, Tuple

from tree_sitter import Node

from .declarations import (
    CALLABLE_KINDS,
    CONTAINER_KINDS,
    Declaration,
    DeclarationKind,
    DeclarationTable,
    member_name,
)
from .syntax import dotted_name, first_named_child, has_token, named_children, node_text, string_literal_text

if TYPE_CHECKING:
    from .program import Program

PROMISE_LIKE = {"Thenable", "Promise", "PromiseLike"}
ARRAY_LIKE = {"Array", "ReadonlyArray", "Set", "ReadonlySet", "Iterable", "IterableIterator"}
NULLISH_TYPES = {"undefined", "null", "void"}

_FUNCTION_SCOPES = {
    "function_declaration",
    "function_expression",
    "function",
    "arrow_function",
    "method_definition",
    "generator_function_declaration",
    "generator_function",
}
_CALLBACK_NODES = {"arrow_function", "function_expression", "function"}
_LOCAL_CLASSES = {"class_declaration", "abstract_class_declaration"}
_LOCAL_FUNCTIONS = {"function_declaration", "generator_function_declaration"}
_BLOCK_SCOPES = {"program", "statement_block", "switch_case", "switch_default"}
_PARAMETER_NODES = {"required_parameter", "optional_parameter"}
_TYPE_NODES = {"type_identifier", "nested_type_identifier", "generic_type", "literal_type", "type_query"}
_PASS_THROUGH = {"parenthesized_expression", "satisfies_expression"}
_MAX_DEPTH = 64


@dataclass(frozen=True)
class Type:
    """Static type of an expression or type node."""
    symbol: Optional[Declaration] = None
    literal_value: Optional[str] = None
    static: bool = False  # the value is the declaration itself (namespace, class, enum)
    name: Optional[str] = None  # referenced name, kept when the symbol is not declared
    type_arguments: Tuple[Optional["Type"], ...] = ()
    element: Optional["Type"] = None  # element type of an array
    without_nullish: Optional["Type"] = None  # T of a `T | undefined` under strict null checks
    class_node: Optional[Node] = None  # class declared in program code
    signature: Optional[Node] = None  # function or method declared in program code


@dataclass(frozen=True)
class Binding:
    """What a local name refers to."""
    kind: str  # "import_namespace" | "import_named" | "import_default" | "variable" | "destructured" | "parameter" | "for_of" | "local"
    node: Node  # declarator, parameter, import statement, for statement or local declaration
    specifier: Optional[str] = None  # module specifier for imports
    member: Optional[str] = None  # imported or destructured member name
    is_const: bool = False


def literal_type(value: str) -> Type:
    return Type(literal_value=value)


class TypeChecker:
    """Resolve types and symbols for nodes of one program."""

    def __init__(self, program: "Program"):
        self.program = program
        self.table: DeclarationTable = program.declarations
        self.null_checks = program.options.null_checks
        self._node_types: Dict[int, Optional[Type]] = {}
        self._declared_types: Dict[int, Optional[Type]] = {}
        self._scopes: Dict[int, Dict[str, Binding]] = {}
        self._resolving: Set[object] = set()  # node ids and ("declaration", id) pairs in progress
        self._truncated = False  # a recursion guard cut the current resolution short

    # ---------------------------------------------------------------- oracle

    def get_type_at_location(self, node: Node) -> Optional[Type]:
        key = node.id
        if key in self._node_types:
            return self._node_types[key]
        if key in self._resolving or len(self._resolving) > _MAX_DEPTH:
            self._truncated = True
            return None
        outer_truncated, self._truncated = self._truncated, False
        self._resolving.add(key)
        try:
            resolved = self._type_at(node)
            # a result cut short by a guard depends on where the lookup started
            if not self._truncated:
                self._node_types[key] = resolved
        finally:
            self._resolving.discard(key)
            self._truncated = self._truncated or outer_truncated
        return resolved

    def get_fully_qualified_name(self, symbol: Declaration) -> str:
        return symbol.qualified_name

    # ------------------------------------------------------------- dispatch

    def _type_at(self, node: Node) -> Optional[Type]:
        declaration = self.table.declaration_of(node)
        if declaration is not None:
            return self.declared_type(declaration)

        kind = node.type
        if kind in ("identifier", "shorthand_property_identifier"):
            return self._identifier_type(node)
        if kind == "property_identifier":
            parent = node.parent
            if parent is not None and parent.type == "member_expression":
                return self.get_type_at_location(parent)
            if parent is not None and parent.type == "public_field_definition" and parent.child_by_field_name("name") == node:
                return self._field_type(parent)
            return None
        if kind == "this":
            return self._this_type(node)
        if kind in _TYPE_NODES:
            return self._type_node_at(node)
        if kind in ("string", "template_string"):
            value = string_literal_text(node)
            return literal_type(value) if value is not None else None
        if kind == "member_expression":
            return self._member_expression_type(node)
        if kind == "subscript_expression":
            obj = node.child_by_field_name("object")
            return element_type(self.get_type_at_location(obj)) if obj is not None else None
        if kind == "call_expression":
            return self._call_type(node)
        if kind == "new_expression":
            return self._new_type(node)
        if kind == "await_expression":
            return self._await_type(node)
        if kind in _PASS_THROUGH:
            inner = first_named_child(node)
            return self.get_type_at_location(inner) if inner is not None else None
        if kind == "non_null_expression":
            inner = first_named_child(node)
            return strip_nullish(self.get_type_at_location(inner)) if inner is not None else None
        if kind == "as_expression":
            return self._assertion_type(node)
        if kind == "type_assertion":
            return self._angle_assertion_type(node)
        if kind == "assignment_expression":
            right = node.child_by_field_name("right")
            return self.get_type_at_location(right) if right is not None else None
        if kind == "variable_declarator" or kind in _PARAMETER_NODES:
            name = node.child_by_field_name("name") or node.child_by_field_name("pattern")
            if name is not None and name.type == "identifier":
                return self.get_type_at_location(name)
        return None

    # ---------------------------------------------------------- declarations

    def declared_type(self, declaration: Declaration) -> Optional[Type]:
        """Type of a declaration at its own name."""
        if declaration.kind in (DeclarationKind.INTERFACE, DeclarationKind.TYPE_ALIAS):
            return self.type_of_type_declaration(declaration)
        return self.value_type(declaration)

    def value_type(self, declaration: Declaration) -> Optional[Type]:
        """Type of an expression referring to the declaration as a value."""
        kind = declaration.kind
        if kind in CONTAINER_KINDS or kind in (DeclarationKind.CLASS, DeclarationKind.ENUM):
            return Type(symbol=declaration, static=True)
        if kind in CALLABLE_KINDS or kind is DeclarationKind.ENUM_MEMBER:
            return Type(symbol=declaration)
        if kind in (DeclarationKind.VARIABLE, DeclarationKind.PROPERTY):
            return self._annotated_type(declaration)
        return None

    def type_of_type_declaration(self, declaration: Declaration) -> Optional[Type]:
        """Type denoted by a declaration used in a type position."""
        kind = declaration.kind
        if kind in (DeclarationKind.CLASS, DeclarationKind.INTERFACE, DeclarationKind.ENUM, DeclarationKind.ENUM_MEMBER):
            return Type(symbol=declaration)
        if kind is DeclarationKind.TYPE_ALIAS:
            return self._annotated_type(declaration)
        return None

    def _annotated_type(self, declaration: Declaration) -> Optional[Type]:
        """Resolve the type node a declaration carries, in the declaration's scope."""
        key = id(declaration)
        if key in self._declared_types:
            return self._declared_types[key]
        guard = ("declaration", key)
        if guard in self._resolving:
            self._truncated = True
            return None
        outer_truncated, self._truncated = self._truncated, False
        self._resolving.add(guard)
        try:
            resolved = None
            if declaration.type_node is not None:
                resolved = self.resolve_type_node(declaration.type_node, declaration)
            if not self._truncated:
                self._declared_types[key] = resolved
        finally:
            self._resolving.discard(guard)
            self._truncated = self._truncated or outer_truncated
        return resolved

    def return_type(self, declaration: Declaration) -> Optional[Type]:
        if declaration.kind not in CALLABLE_KINDS:
            return None
        return self._annotated_type(declaration)

    # --------------------------------------------------------------- members

    def member_type(self, owner: Type, name: str) -> Optional[Type]:
        """Type of `owner.name`."""
        if owner.class_node is not None:
            return self._class_member_type(owner, name, set())
        member = self.lookup_member(owner, name)
        return self.value_type(member) if member is not None else None

    def lookup_member(self, owner: Type, name: str) -> Optional[Declaration]:
        symbol = owner.symbol
        if symbol is None:
            return None
        if owner.static:
            if symbol.kind is DeclarationKind.CLASS:
                return self._find_member(symbol, name, static=True, seen=set())
            return symbol.members.get(name)
        if symbol.kind in (DeclarationKind.CLASS, DeclarationKind.INTERFACE):
            return self._find_member(symbol, name, static=False, seen=set())
        return None

    def _find_member(self, owner: Declaration, name: str, static: bool, seen: Set[int]) -> Optional[Declaration]:
        if id(owner) in seen:
            return None
        seen.add(id(owner))
        members = owner.static_members if static else owner.members
        if name in members:
            return members[name]
        for heritage in owner.heritage:
            base = self._heritage_declaration(heritage, owner)
            if base is None or base.kind not in (DeclarationKind.CLASS, DeclarationKind.INTERFACE):
                continue
            found = self._find_member(base, name, static, seen)
            if found is not None:
                return found
        return None

    def _heritage_declaration(self, node: Node, owner: Declaration) -> Optional[Declaration]:
        if node.type == "generic_type":
            node = node.child_by_field_name("name") or node
        if node.type in ("identifier", "type_identifier", "member_expression", "nested_type_identifier", "nested_identifier"):
            return self._resolve_path(dotted_name(node), owner.parent or owner)
        return None

    # --------------------------------------------------------- program classes

    def _this_type(self, node: Node) -> Optional[Type]:
        """`this` inside a class body of program code; arrow functions are transparent."""
        static = False
        current = node.parent
        while current is not None:
            kind = current.type
            if kind in ("method_definition", "public_field_definition"):
                if current.parent is None or current.parent.type != "class_body":
                    return None
                static = has_token(current, "static")
            elif kind == "class_body":
                owner = current.parent
                return Type(class_node=owner, static=static) if owner is not None else None
            elif kind in _FUNCTION_SCOPES and kind != "arrow_function":
                return None
            current = current.parent
        return None

    def _class_member_type(self, owner: Type, name: str, seen: Set[int]) -> Optional[Type]:
        class_node = owner.class_node
        if class_node is None or class_node.id in seen:
            return None
        seen.add(class_node.id)
        body = class_node.child_by_field_name("body")
        for member in named_children(body) if body is not None else []:
            name_node = member.child_by_field_name("name")
            if name_node is None:
                continue
            if member.type == "method_definition" and node_text(name_node) == "constructor":
                parameter = None if owner.static else _parameter_property(member, name)
                if parameter is not None:
                    annotation = parameter.child_by_field_name("type")
                    return self.resolve_type_node(annotation, None, origin=parameter) if annotation is not None else None
                continue
            if member_name(name_node) != name or has_token(member, "static") != owner.static:
                continue
            if member.type == "public_field_definition":
                return self._field_type(member)
            if member.type == "method_definition":
                if has_token(member, "get"):
                    return self._signature_return_type(member)
                return Type(signature=member)
        base = self._class_base_type(class_node)
        if base is None:
            return None
        base = replace(base, static=owner.static)
        if base.class_node is not None:
            return self._class_member_type(base, name, seen)
        member = self.lookup_member(base, name)
        return self.value_type(member) if member is not None else None

    def _class_base_type(self, class_node: Node) -> Optional[Type]:
        for child in named_children(class_node):
            if child.type != "class_heritage":
                continue
            for clause in named_children(child):
                if clause.type != "extends_clause":
                    continue
                value = clause.child_by_field_name("value")
                if value is not None:
                    return self.get_type_at_location(value)
        return None

    def _field_type(self, field: Node) -> Optional[Type]:
        annotation = field.child_by_field_name("type")
        if annotation is not None:
            return self.resolve_type_node(annotation, None, origin=field)
        value = field.child_by_field_name("value")
        return self.get_type_at_location(value) if value is not None else None

    def _signature_return_type(self, signature: Node) -> Optional[Type]:
        annotation = signature.child_by_field_name("return_type")
        if annotation is None:
            return None
        return self.resolve_type_node(annotation, None, origin=signature)

    # ---------------------------------------------------------------- scopes

    def _scope_origin(self, node: Node) -> Optional[Declaration]:
        """Declaration scope for nodes inside declaration blocks, None for code."""
        return self.table.enclosing_scope(node)

    def _resolve_in_declarations(self, name: str, scope: Optional[Declaration]) -> Optional[Declaration]:
        """Walk declaration scopes outwards; type parameters shadow everything."""
        current = scope
        while current is not None:
            if name in current.type_parameters:
                return None
            if current.kind in CONTAINER_KINDS and name in current.members:
                return current.members[name]
            current = current.parent
        return self.table.global_scope.members.get(name)

    def _resolve_path(self, segments: List[str], scope: Optional[Declaration], origin: Optional[Node] = None) -> Optional[Declaration]:
        """Resolve `a.b.c` starting from a scope (declaration or lexical)."""
        if not segments:
            return None
        head = segments[0]
        current: Optional[Declaration] = None
        if origin is not None and scope is None:
            binding = self.find_binding(origin, head)
            if binding is not None:
                current = self._binding_declaration(binding, origin)
                if current is None:
                    return None
        if current is None:
            current = self._resolve_in_declarations(head, scope)
        for segment in segments[1:]:
            if current is None:
                return None
            if current.kind in CONTAINER_KINDS or current.kind is DeclarationKind.ENUM:
                current = current.members.get(segment)
            elif current.kind is DeclarationKind.CLASS:
                current = current.static_members.get(segment)
            else:
                return None
        return current

    def find_binding(self, node: Node, name: str) -> Optional[Binding]:
        """Nearest lexical binding of name visible from node."""
        current = node
        while current.parent is not None:
            current = current.parent
            bindings = self._scope_bindings(current)
            if name in bindings:
                return bindings[name]
        return None

    def _scope_bindings(self, scope: Node) -> Dict[str, Binding]:
        cached = self._scopes.get(scope.id)
        if cached is not None:
            return cached
        bindings: Dict[str, Binding] = {}
        if scope.type in _BLOCK_SCOPES:
            for statement in named_children(scope):
                self._collect_statement_bindings(statement, bindings)
        elif scope.type in _FUNCTION_SCOPES:
            self._collect_parameter_bindings(scope, bindings)
        elif scope.type == "for_statement":
            initializer = scope.child_by_field_name("initializer")
            if initializer is not None:
                self._collect_statement_bindings(initializer, bindings)
        elif scope.type == "for_in_statement" and has_token(scope, "of"):
            left = scope.child_by_field_name("left")
            if left is not None and left.type == "identifier":
                bindings[node_text(left)] = Binding(kind="for_of", node=scope)
            elif left is not None and left.type == "object_pattern":
                self._collect_object_pattern(left, scope, bindings)
        self._scopes[scope.id] = bindings
        return bindings

    def _collect_statement_bindings(self, statement: Node, bindings: Dict[str, Binding]) -> None:
        if statement.type == "export_statement":
            inner = statement.child_by_field_name("declaration")
            if inner is None:
                return
            statement = inner
        kind = statement.type
        if kind == "import_statement":
            self._collect_import_bindings(statement, bindings)
        elif kind in ("lexical_declaration", "variable_declaration"):
            is_const = has_token(statement, "const")
            for declarator in named_children(statement):
                if declarator.type == "variable_declarator":
                    self._collect_declarator_bindings(declarator, is_const, bindings)
        elif kind in ("function_declaration", "generator_function_declaration", "class_declaration",
                      "abstract_class_declaration", "interface_declaration", "enum_declaration",
                      "type_alias_declaration"):
            name = statement.child_by_field_name("name")
            if name is not None:
                bindings.setdefault(node_text(name), Binding(kind="local", node=statement))

    def _collect_import_bindings(self, statement: Node, bindings: Dict[str, Binding]) -> None:
        source = statement.child_by_field_name("source")
        for child in named_children(statement):
            if child.type == "import_require_clause":
                name = first_named_child(child)
                source = child.child_by_field_name("source") or source
                if name is not None and name.type == "identifier" and source is not None:
                    bindings[node_text(name)] = Binding(
                        kind="import_namespace", node=statement, specifier=string_literal_text(source)
                    )
        if source is None:
            return
        specifier = string_literal_text(source)
        for clause in named_children(statement):
            if clause.type != "import_clause":
                continue
            for part in named_children(clause):
                if part.type == "identifier":
                    bindings[node_text(part)] = Binding(kind="import_default", node=statement, specifier=specifier)
                elif part.type == "namespace_import":
                    name = first_named_child(part)
                    if name is not None:
                        bindings[node_text(name)] = Binding(
                            kind="import_namespace", node=statement, specifier=specifier
                        )
                elif part.type == "named_imports":
                    for spec in named_children(part):
                        if spec.type != "import_specifier":
                            continue
                        imported = spec.child_by_field_name("name")
                        alias = spec.child_by_field_name("alias") or imported
                        if imported is None or alias is None:
                            continue
                        bindings[node_text(alias)] = Binding(
                            kind="import_named", node=statement, specifier=specifier, member=node_text(imported)
                        )

    def _collect_declarator_bindings(self, declarator: Node, is_const: bool, bindings: Dict[str, Binding]) -> None:
        name = declarator.child_by_field_name("name")
        if name is None:
            return
        if name.type == "identifier":
            bindings[node_text(name)] = Binding(kind="variable", node=declarator, is_const=is_const)
        elif name.type == "object_pattern":
            self._collect_object_pattern(name, declarator, bindings)

    def _collect_object_pattern(self, pattern: Node, source: Node, bindings: Dict[str, Binding]) -> None:
        """`{ a, b: c }` taken apart from a declarator's value or a for...of element."""
        for part in named_children(pattern):
            if part.type == "shorthand_property_identifier_pattern":
                member = node_text(part)
                bindings[member] = Binding(kind="destructured", node=source, member=member)
            elif part.type == "pair_pattern":
                key = part.child_by_field_name("key")
                value = part.child_by_field_name("value")
                if key is not None and value is not None and value.type == "identifier":
                    bindings[node_text(value)] = Binding(
                        kind="destructured", node=source, member=node_text(key)
                    )

    def _collect_parameter_bindings(self, function: Node, bindings: Dict[str, Binding]) -> None:
        single = function.child_by_field_name("parameter")
        if single is not None and single.type == "identifier":
            bindings[node_text(single)] = Binding(kind="parameter", node=single)
        parameters = function.child_by_field_name("parameters")
        if parameters is None:
            return
        for parameter in named_children(parameters):
            if parameter.type not in _PARAMETER_NODES:
                continue
            pattern = parameter.child_by_field_name("pattern")
            if pattern is not None and pattern.type == "identifier":
                bindings[node_text(pattern)] = Binding(kind="parameter", node=parameter)

    # -------------------------------------------------------------- bindings

    def _module_declaration(self, specifier: Optional[str], origin: Node) -> Optional[Declaration]:
        if specifier is None:
            return None
        return self.program.resolve_module_declaration(specifier, origin)

    def _binding_declaration(self, binding: Binding, origin: Node) -> Optional[Declaration]:
        """Declaration an import binding names, for use in paths like `vscode.Uri`."""
        module = self._module_declaration(binding.specifier, origin)
        if module is None:
            return None
        if binding.kind == "import_namespace":
            return module
        if binding.kind == "import_named":
            return module.members.get(binding.member or "")
        if binding.kind == "import_default":
            return module.members.get("default", module)
        return None

    def _binding_type(self, binding: Binding, origin: Node) -> Optional[Type]:
        kind = binding.kind
        if kind.startswith("import_"):
            declaration = self._binding_declaration(binding, origin)
            if declaration is None:
                return None
            if kind == "import_named" and declaration.kind in (DeclarationKind.INTERFACE, DeclarationKind.TYPE_ALIAS):
                return self.type_of_type_declaration(declaration)
            return self.value_type(declaration)
        if kind == "variable":
            return self._variable_type(binding)
        if kind == "destructured":
            owner = strip_nullish(self._destructured_source_type(binding.node))
            member = self.lookup_member(owner, binding.member or "") if owner is not None else None
            return self.value_type(member) if member is not None else None
        if kind == "for_of":
            return self._iterated_type(binding.node)
        if kind == "parameter":
            annotation = binding.node.child_by_field_name("type")
            if annotation is None:
                return self._contextual_parameter_type(binding.node)
            return self.resolve_type_node(annotation, None, origin=binding.node)
        if kind == "local":
            statement = binding.node
            if statement.type in _LOCAL_CLASSES:
                return Type(class_node=statement, static=True)
            if statement.type in _LOCAL_FUNCTIONS:
                return Type(signature=statement)
        return None

    def _variable_type(self, binding: Binding) -> Optional[Type]:
        declarator = binding.node
        annotation = declarator.child_by_field_name("type")
        if annotation is not None:
            return self.resolve_type_node(annotation, None, origin=declarator)
        value = declarator.child_by_field_name("value")
        if value is None:
            return None
        resolved = self.get_type_at_location(value)
        if resolved is None:
            return None
        if resolved.literal_value is not None and not binding.is_const:
            # let/var widen string literal types to string
            return None
        return resolved

    def _destructured_source_type(self, source: Node) -> Optional[Type]:
        if source.type == "for_in_statement":
            return self._iterated_type(source)
        value = source.child_by_field_name("value")
        return self.get_type_at_location(value) if value is not None else None

    def _iterated_type(self, statement: Node) -> Optional[Type]:
        """Element type a `for (... of right)` loop binds."""
        right = statement.child_by_field_name("right")
        return element_type(self.get_type_at_location(right)) if right is not None else None

    def _identifier_type(self, node: Node) -> Optional[Type]:
        parent = node.parent
        if parent is not None and parent.type == "import_specifier":
            statement = parent
            while statement is not None and statement.type != "import_statement":
                statement = statement.parent
            if statement is None:
                return None
            imported = parent.child_by_field_name("name")
            source = statement.child_by_field_name("source")
            binding = Binding(
                kind="import_named",
                node=statement,
                specifier=string_literal_text(source) if source is not None else None,
                member=node_text(imported) if imported is not None else None,
            )
            return self._binding_type(binding, node)
        if parent is not None and parent.type in ("nested_identifier", "nested_type_identifier"):
            return self._nested_prefix_type(node)
        if self._scope_origin(node) is not None:
            return None
        binding = self.find_binding(node, node_text(node))
        if binding is None:
            if node_text(node) == "require":
                return None
            declaration = self.table.global_scope.members.get(node_text(node))
            return self.value_type(declaration) if declaration is not None else None
        return self._binding_type(binding, node)

    def _nested_prefix_type(self, node: Node) -> Optional[Type]:
        """Type of `vscode` in `vscode.Uri` (type position): the namespace itself."""
        top = node
        while top.parent is not None and top.parent.type in ("nested_identifier", "nested_type_identifier"):
            top = top.parent
        prefix: List[str] = []
        for segment in dotted_name(top):
            prefix.append(segment)
            if segment == node_text(node):
                break
        declaration = self._resolve_path(prefix, self._scope_origin(node), origin=node)
        return self.value_type(declaration) if declaration is not None else None

    # ------------------------------------------------------ contextual typing

    def _contextual_parameter_type(self, parameter: Node) -> Optional[Type]:
        """Type of an unannotated callback parameter, from the parameter the callee declares."""
        if parameter.type == "identifier":
            function, index = parameter.parent, 0
        else:
            parameters = parameter.parent
            if parameters is None:
                return None
            function = parameters.parent
            index = _index_of(_parameter_nodes(parameters), parameter)
        if function is None or function.type not in _CALLBACK_NODES or index < 0:
            return None
        arguments = function.parent
        call = arguments.parent if arguments is not None and arguments.type == "arguments" else None
        if call is None or call.type != "call_expression":
            return None
        callee = call.child_by_field_name("function")
        if callee is None:
            return None
        position = _index_of(named_children(arguments), function)
        contextual = self._declared_callback_parameter(callee, position, index)
        if contextual is not None:
            return contextual
        return self._then_callback_parameter(callee, position, index)

    def _declared_callback_parameter(self, callee: Node, position: int, index: int) -> Optional[Type]:
        found = self._signature_parameters(callee)
        if found is None:
            return None
        parameters, scope, substitutions = found
        expected = _parameter_at(parameters, position)
        annotation = expected.child_by_field_name("type") if expected is not None else None
        function_type = _function_type_node(annotation) if annotation is not None else None
        callback_parameters = function_type.child_by_field_name("parameters") if function_type is not None else None
        if callback_parameters is None:
            return None
        inner = _parameter_at(callback_parameters, index)
        inner_annotation = inner.child_by_field_name("type") if inner is not None else None
        if inner_annotation is None:
            return None
        return self._resolve_substituted(inner_annotation, scope, substitutions)

    def _then_callback_parameter(self, callee: Node, position: int, index: int) -> Optional[Type]:
        """`thenable.then(value => ...)` when `then` itself is not declared."""
        if position != 0 or index != 0 or callee.type != "member_expression":
            return None
        obj = callee.child_by_field_name("object")
        prop = callee.child_by_field_name("property")
        if obj is None or prop is None or node_text(prop) != "then":
            return None
        owner = strip_nullish(self.get_type_at_location(obj))
        if owner is None or not owner.type_arguments:
            return None
        name = owner.name or (owner.symbol.name if owner.symbol is not None else None)
        return owner.type_arguments[0] if name in PROMISE_LIKE else None

    def _signature_parameters(
        self, callee: Node
    ) -> Optional[Tuple[Node, Declaration, Dict[str, Optional[Type]]]]:
        """Declared parameters of what a call invokes, their scope and type argument substitutions."""
        callee_type = strip_nullish(self.get_type_at_location(callee))
        if callee_type is None or callee_type.symbol is None:
            return None
        symbol = callee_type.symbol
        if symbol.kind in CALLABLE_KINDS and symbol.parameters is not None:
            holder = symbol.parent
            names = holder.type_parameters if holder is not None else ()
            arguments: Tuple[Optional[Type], ...] = ()
            if names and callee.type == "member_expression":
                obj = callee.child_by_field_name("object")
                owner = strip_nullish(self.get_type_at_location(obj)) if obj is not None else None
                arguments = owner.type_arguments if owner is not None else ()
            # the method's own type parameters shadow its owner's
            substitutions = {
                name: argument for name, argument in zip(names, arguments) if name not in symbol.type_parameters
            }
            return symbol.parameters, symbol, substitutions
        if symbol.kind is DeclarationKind.INTERFACE and symbol.call_signatures and not callee_type.static:
            parameters = symbol.call_signatures[0].child_by_field_name("parameters")
            if parameters is None:
                return None
            return parameters, symbol, dict(zip(symbol.type_parameters, callee_type.type_arguments))
        return None

    def _resolve_substituted(
        self, node: Node, scope: Declaration, substitutions: Dict[str, Optional[Type]]
    ) -> Optional[Type]:
        target = first_named_child(node) if node.type == "type_annotation" else node
        if target is None:
            return None
        if target.type == "type_identifier" and node_text(target) in substitutions:
            return substitutions[node_text(target)]
        return self.resolve_type_node(target, scope)

    # ----------------------------------------------------------- expressions

    def _member_expression_type(self, node: Node) -> Optional[Type]:
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if obj is None or prop is None:
            return None
        owner = strip_nullish(self.get_type_at_location(obj))
        if owner is None:
            return None
        return self.member_type(owner, node_text(prop))

    def _call_type(self, node: Node) -> Optional[Type]:
        callee = node.child_by_field_name("function")
        if callee is None:
            return None
        if callee.type in ("identifier", "import") and node_text(callee) in ("require", "import"):
            if callee.type == "import" or self.find_binding(callee, "require") is None:
                arguments = node.child_by_field_name("arguments")
                first = first_named_child(arguments) if arguments is not None else None
                specifier = string_literal_text(first) if first is not None else None
                module = self._module_declaration(specifier, node)
                return self.value_type(module) if module is not None else None
        callee_type = strip_nullish(self.get_type_at_location(callee))
        if callee_type is None:
            return None
        if callee_type.signature is not None:
            return self._signature_return_type(callee_type.signature)
        symbol = callee_type.symbol
        if symbol is None:
            return None
        if symbol.kind is DeclarationKind.INTERFACE and symbol.call_signatures and not callee_type.static:
            annotation = symbol.call_signatures[0].child_by_field_name("return_type")
            if annotation is None:
                return None
            return self._resolve_substituted(annotation, symbol, dict(zip(symbol.type_parameters, callee_type.type_arguments)))
        return self.return_type(symbol)

    def _new_type(self, node: Node) -> Optional[Type]:
        constructor = node.child_by_field_name("constructor")
        if constructor is None:
            return None
        constructed = self.get_type_at_location(constructor)
        if constructed is None:
            return None
        if constructed.class_node is not None and constructed.static:
            return Type(class_node=constructed.class_node)
        if constructed.symbol is not None and constructed.symbol.kind is DeclarationKind.CLASS:
            return Type(symbol=constructed.symbol)
        return None

    def _await_type(self, node: Node) -> Optional[Type]:
        inner = first_named_child(node)
        if inner is None:
            return None
        awaited = self.get_type_at_location(inner)
        return unwrap_promise(awaited)

    def _assertion_type(self, node: Node) -> Optional[Type]:
        children = named_children(node)
        if not children:
            return None
        if len(children) > 1:
            return self.resolve_type_node(children[-1], self._scope_origin(node), origin=node)
        return self.get_type_at_location(children[0])

    def _angle_assertion_type(self, node: Node) -> Optional[Type]:
        children = named_children(node)
        if not children:
            return None
        target = children[0]
        if target.type == "type_arguments":
            target = first_named_child(target) or target
        return self.resolve_type_node(target, self._scope_origin(node), origin=node)

    # ----------------------------------------------------------------- types

    def _type_node_at(self, node: Node) -> Optional[Type]:
        parent = node.parent
        if node.type == "type_identifier" and parent is not None:
            if parent.type == "nested_type_identifier":
                return self.get_type_at_location(parent)
            if parent.type == "generic_type" and parent.child_by_field_name("name") == node:
                return self.get_type_at_location(parent)
        return self.resolve_type_node(node, self._scope_origin(node), origin=node)

    def resolve_type_node(
        self,
        node: Node,
        scope: Optional[Declaration],
        origin: Optional[Node] = None,
    ) -> Optional[Type]:
        """Resolve a type node.

        Names are looked up through declaration scopes when `scope` is set
        (declaration files), otherwise through the lexical bindings visible
        from `origin` and then the global declarations.
        """
        kind = node.type
        if kind == "type_annotation":
            inner = first_named_child(node)
            return self.resolve_type_node(inner, scope, origin) if inner is not None else None
        if kind in ("type_identifier", "nested_type_identifier", "identifier", "member_expression", "nested_identifier"):
            return self._named_type(dotted_name(node), scope, origin or node)
        if kind == "generic_type":
            name = node.child_by_field_name("name")
            if name is None:
                return None
            base = self._named_type(dotted_name(name), scope, origin or node)
            arguments = node.child_by_field_name("type_arguments")
            resolved_args: Tuple[Optional[Type], ...] = ()
            if arguments is not None:
                resolved_args = tuple(
                    self.resolve_type_node(argument, scope, origin) for argument in named_children(arguments)
                )
            return Type(
                symbol=base.symbol if base else None,
                name=dotted_name(name)[-1],
                type_arguments=resolved_args,
            )
        if kind == "union_type":
            members = flatten_union(node)
            present = [member for member in members if node_text(member).strip() not in NULLISH_TYPES]
            if len(present) != 1:
                return None
            resolved = self.resolve_type_node(present[0], scope, origin)
            if resolved is None or len(present) == len(members) or not self.null_checks:
                return resolved
            return Type(without_nullish=resolved)
        if kind in ("parenthesized_type", "readonly_type"):
            inner = first_named_child(node)
            return self.resolve_type_node(inner, scope, origin) if inner is not None else None
        if kind == "literal_type":
            inner = first_named_child(node)
            value = string_literal_text(inner) if inner is not None else None
            return literal_type(value) if value is not None else None
        if kind == "type_query":
            inner = first_named_child(node)
            if inner is None:
                return None
            declaration = self._resolve_path(dotted_name(inner), scope, origin=origin or node)
            return self.value_type(declaration) if declaration is not None else None
        if kind == "array_type":
            inner = first_named_child(node)
            element = self.resolve_type_node(inner, scope, origin) if inner is not None else None
            return Type(name="Array", element=element)
        if kind == "tuple_type":
            return Type(name="Array")
        return None

    def _named_type(self, segments: List[str], scope: Optional[Declaration], origin: Node) -> Optional[Type]:
        if len(segments) == 1 and scope is None:
            binding = self.find_binding(origin, segments[0])
            if binding is not None and binding.kind not in ("import_named", "import_namespace", "import_default"):
                # a type declared in the program itself
                if binding.kind == "local" and binding.node.type in _LOCAL_CLASSES:
                    return Type(class_node=binding.node)
                return None
        declaration = self._resolve_path(segments, scope, origin=origin)
        if declaration is None:
            return Type(name=segments[-1]) if segments else None
        resolved = self.type_of_type_declaration(declaration)
        if resolved is None and declaration.kind in CONTAINER_KINDS:
            return None
        return resolved


def flatten_union(node: Node) -> List[Node]:
    members: List[Node] = []
    for child in named_children(node):
        if child.type == "union_type":
            members.extend(flatten_union(child))
        else:
            members.append(child)
    return members


def strip_nullish(resolved: Optional[Type]) -> Optional[Type]:
    """`T` of a nullable `T | undefined`; other types unchanged."""
    if resolved is not None and resolved.without_nullish is not None:
        return resolved.without_nullish
    return resolved


def unwrap_promise(awaited: Optional[Type]) -> Optional[Type]:
    """`await x` on a Thenable/Promise yields its first type argument."""
    awaited = strip_nullish(awaited)
    if awaited is None:
        return None
    name = awaited.name or (awaited.symbol.name if awaited.symbol is not None else None)
    if name in PROMISE_LIKE and awaited.type_arguments:
        return awaited.type_arguments[0]
    return awaited


def element_type(iterable: Optional[Type]) -> Optional[Type]:
    """Element of an array (`T[]`, `readonly T[]`, `Array<T>` and friends)."""
    iterable = strip_nullish(iterable)
    if iterable is None:
        return None
    if iterable.element is not None:
        return iterable.element
    name = iterable.name or (iterable.symbol.name if iterable.symbol is not None else None)
    if name in ARRAY_LIKE and iterable.type_arguments:
        return iterable.type_arguments[0]
    return None


def _index_of(nodes: List[Node], target: Node) -> int:
    for index, node in enumerate(nodes):
        if node == target:
            return index
    return -1


def _parameter_nodes(parameters: Node) -> List[Node]:
    return [parameter for parameter in named_children(parameters) if parameter.type in _PARAMETER_NODES]


def _parameter_at(parameters: Node, index: int) -> Optional[Node]:
    """The index-th declared parameter; rest parameters are not matched."""
    listed = _parameter_nodes(parameters)
    if index < 0 or index >= len(listed):
        return None
    pattern = listed[index].child_by_field_name("pattern")
    if pattern is not None and pattern.type == "rest_pattern":
        return None
    return listed[index]


def _parameter_property(constructor: Node, name: str) -> Optional[Node]:
    """Constructor parameter declaring a field (`private readonly name: T`)."""
    parameters = constructor.child_by_field_name("parameters")
    for parameter in _parameter_nodes(parameters) if parameters is not None else []:
        pattern = parameter.child_by_field_name("pattern")
        if pattern is None or pattern.type != "identifier" or node_text(pattern) != name:
            continue
        if has_token(parameter, "readonly") or any(
            child.type == "accessibility_modifier" for child in parameter.named_children
        ):
            return parameter
    return None


def _function_type_node(annotation: Node) -> Optional[Node]:
    """The function type an annotation denotes, looking through parentheses and nullable unions."""
    node: Optional[Node] = annotation
    while node is not None:
        if node.type == "function_type":
            return node
        if node.type in ("type_annotation", "parenthesized_type"):
            node = first_named_child(node)
        elif node.type == "union_type":
            present = [member for member in flatten_union(node) if node_text(member).strip() not in NULLISH_TYPES]
            node = present[0] if len(present) == 1 else None
        else:
            return None
    return None
