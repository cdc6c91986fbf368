"""
Defines the abstract syntax tree (AST) node structure for the FLYUX language.

Classes:
    ASTNode:
        One tagged node type for every expression, statement and function definition.
        The evaluator dispatches on `kind`; nodes are never mutated after parsing.

    ASTDict:
        TypedDict representation for serializing ASTNode instances to plain Python
        dictionaries, used by the `--ast` dump.

Node kinds and their fields:

    Expressions
        number       value=raw numeric text
        string       value=string contents
        identifier   value=name
        call         value=function name, children=arguments
        binary       value=operator, children=[left, right]
        logical      value="&&", children=[left, right]   (chained relations)
        array        children=elements
        index        children=[target, index]
        object       children=pair nodes
        pair         value=key, children=[value]
        access       value=property name, children=[target]
        increment    value=variable name, type="prefix" | "postfix"
        decrement    value=variable name, type="prefix" | "postfix"
        input        children=[prompt, read type, limit]

    Statements
        const_decl   value=name, type=declared type or None, children=[expr]
        var_decl     value=name, type=declared type, children=[expr]
        assign       value=name, children=[expr]
        prop_assign  children=[access-or-index target, expr]
        expr_stmt    children=[call]
        return       children=[expr]
        loop         value="times" | "foreach" | "while" | "for", children=header, body=statements
                       times:   [count]
                       foreach: [identifier(array), identifier(item)]
                       while:   [condition]
                       for:     [init statement, condition, step statement]
        if           children=branch nodes
        branch       children=[condition] or [] for an unconditional branch, body=statements
        increment / decrement (as above, used as statements)

    Definitions
        func         value=name, children=param nodes, body=statements
        param        value=name, type=declared type or None
"""

from typing import Any, TypedDict


class ASTDict(TypedDict, total=False):
    """
    TypedDict representation of an ASTNode used for serialization.

    Fields:
        kind (str): The type of AST node (e.g., "func", "call", "loop").
        value (Any): The node's value, usually a name, operator or literal text.
        line (int): Line number in the source code where the node originates.
        col (int): Column number in the source code where the node originates.
        type (Optional[str]): Declared type, or prefix/postfix for increments.
        children (List[ASTDict]): Operands, arguments, parameters or loop header.
        body (List[ASTDict]): Statement list of functions, loops and branches.
    """

    kind: str
    value: Any
    line: int
    col: int
    type: str | None
    children: list["ASTDict"]
    body: list["ASTDict"]


class ASTNode:
    """
    Represents a node in the abstract syntax tree (AST) for the FLYUX language.

    Args:
        kind (str): The type of node (e.g., "func", "call", "binary", "loop").
        value (str, optional): Name, operator, literal text or loop kind.
        children (list[ASTNode], optional): Operands, arguments or header nodes.
        body (list[ASTNode], optional): Statements of a block.
        line (int): Source line number (default is 0).
        col (int): Source column number (default is 0).
        type_ (str, optional): Declared type annotation or increment position.
    """

    def __init__(
        self,
        kind: str,
        value: str | None = None,
        children: list["ASTNode"] | None = None,
        line: int = 0,
        col: int = 0,
        type_: str | None = None,
        body: list["ASTNode"] | None = None,
    ):
        self.kind = kind
        self.value = value
        self.children: list["ASTNode"] = children or []
        self.body: list["ASTNode"] = body or []
        self.line = line
        self.col = col
        self.type = type_

    def __repr__(self) -> str:
        parts = [f"{self.kind}"]
        if self.value is not None:
            parts.append(f"value={repr(self.value)}")
        if self.type is not None:
            parts.append(f"type_={self.type}")
        if self.children:
            preview = ", ".join(repr(c) for c in self.children[:3])
            if len(self.children) > 3:
                preview += ", ..."
            parts.append(f"children=[{preview}]")
        if self.body:
            preview = ", ".join(repr(c) for c in self.body[:3])
            if len(self.body) > 3:
                preview += ", ..."
            parts.append(f"body=[{preview}]")
        return f"ASTNode({', '.join(parts)})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ASTNode):
            return False
        return (
            self.kind == other.kind
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
            and self.type == other.type
            and self.children == other.children
            and self.body == other.body
        )

    def to_dict(self) -> ASTDict:
        return {
            "kind": self.kind,
            "value": self.value,
            "line": self.line,
            "col": self.col,
            "type": self.type,
            "children": [c.to_dict() for c in self.children],
            "body": [c.to_dict() for c in self.body],
        }
