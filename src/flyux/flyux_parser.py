"""
FLYUX Language Parser

Parses FLYUX tokens into a list of function definitions.

This module implements a recursive-descent parser over a flat list of lexer-generated
`Token` objects with an explicit, mutable cursor. Comment tokens are dropped before any
grammar runs. The result is a list of `func` ASTNodes; nothing outside an `F>` definition
is kept.

Supported Constructs
--------------------
- Functions: `F>name(a, b(int)) { ... }`
- Declarations: `x := e`, `x:(int) = e` (constant), `x:[int] = e` (variable)
- Assignment: `x = e`, nested `o.a.b = e`, `a[i] = e`, `o.list[2] = e`
- Loops: `L>[n]{}`, `L>arr:item{}`, `L>(cond){}`, `L>(init; cond; step){}`
- Conditionals: `if (c) {} elif (c) {} (c) {} else {}`
- Increment/decrement: `++x`, `--x`, `x++`, `x--`
- Return: `R> expr`
- Expressions: literals, arrays, records, calls, `.name` / `[index]` chains,
  `I>[prompt, type, limit]` input, arithmetic, relations and `&&` / `||`

Expression Precedence
---------------------
There is no precedence climbing. Operators are read left to right over a flat operand
list: `+ - * / =` fold immediately into the latest operand, while relational and logical
operators accumulate. A run of accumulated operators becomes a chained conjunction, so
`a > b > c` parses as `(a > b) && (b > c)`.

Raises
------
SyntaxError
    On any structural mismatch, with the offending line and column in the message.
"""

from __future__ import annotations

from flyux.flyux_ast import ASTNode
from flyux.flyux_constants import INPUT_SIGIL, folding_ops, logical_ops, relational_ops
from flyux.flyux_lexer import Token, tokenize


class Parser:
    """
    FLYUX Parser Class

    Attributes
    ----------
    tokens : list[Token]
        The input token stream with comments removed.
    position : int
        Current index into the token stream.

    Methods
    -------
    parse() -> list[ASTNode]
        Parse a complete program into its function definitions.
    parse_statement() -> ASTNode
        Parse a single statement inside a block.
    parse_binary_expr() -> ASTNode
        Parse an operator expression with chained-relation folding.
    parse_expr() -> ASTNode
        Parse a primary expression and its postfix chain.
    """

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens: list[Token] = [t for t in tokens if t.kind != "COMMENT"]
        self.position: int = 0

    # Cursor helpers

    def current(self) -> Token:
        return self.peek(0)

    def peek(self, offset: int = 1) -> Token:
        index = self.position + offset
        if index < len(self.tokens):
            return self.tokens[index]
        if self.tokens:
            last = self.tokens[-1]
            return Token("EOF", "EOF", last.line, last.col)
        return Token("EOF", "EOF", 1, 1)

    def advance(self) -> Token:
        tok = self.current()
        self.position += 1
        return tok

    def save(self) -> int:
        return self.position

    def restore(self, position: int) -> None:
        self.position = position

    def check(self, kind: str) -> bool:
        return self.current().kind == kind

    def error(self, message: str, tok: Token | None = None) -> SyntaxError:
        tok = tok or self.current()
        return SyntaxError(f"Parse error at line {tok.line}, col {tok.col}: {message}")

    def expect(self, kind: str, message: str) -> Token:
        if not self.check(kind):
            raise self.error(message)
        return self.advance()

    # Program structure

    def parse(self) -> list[ASTNode]:
        """Parse a full program and return its `func` nodes in source order."""
        functions: list[ASTNode] = []
        while not self.check("EOF"):
            if self.check("FN"):
                functions.append(self.parse_function())
            else:
                self.advance()
        return functions

    def parse_function(self) -> ASTNode:
        fn_tok = self.advance()
        name_tok = self.expect("IDENT", "Expected function name")

        params: list[ASTNode] = []
        if self.check("LPAREN"):
            self.advance()
            while not self.check("RPAREN"):
                p_tok = self.expect("IDENT", "Expected parameter name")
                p_type = None
                if self.check("LPAREN"):
                    self.advance()
                    p_type = self.expect("IDENT", "Expected type after (").value
                    self.expect("RPAREN", "Expected ) after type")
                params.append(
                    ASTNode("param", p_tok.value, line=p_tok.line, col=p_tok.col, type_=p_type)
                )
                if self.check("COMMA"):
                    self.advance()
            self.advance()

        # Anything between the signature and the body is ignored.
        while not self.check("LBRACE"):
            if self.check("EOF"):
                raise self.error(f"Expected '{{' to open body of '{name_tok.value}'")
            self.advance()

        body = self.parse_block()
        return ASTNode(
            "func", name_tok.value, params, line=fn_tok.line, col=fn_tok.col, body=body
        )

    def parse_block(self, message: str = "Expected '{'") -> list[ASTNode]:
        """Parse a `{ ... }` statement list."""
        self.expect("LBRACE", message)
        statements: list[ASTNode] = []
        while not self.check("RBRACE"):
            if self.check("EOF"):
                raise self.error("Expected '}' to close block")
            statements.append(self.parse_statement())
        self.advance()
        return statements

    # Statements

    def parse_statement(self) -> ASTNode:
        """Parse a single statement inside a function, loop or branch body."""
        tok = self.current()

        for op, kind in (("+", "increment"), ("-", "decrement")):
            if tok.is_op(op) and self.peek().is_op(op) and self.peek(2).kind == "IDENT":
                self.position += 2
                name = self.advance()
                return ASTNode(kind, name.value, line=tok.line, col=tok.col, type_="prefix")

        if tok.kind == "RETURN":
            self.advance()
            return ASTNode(
                "return", children=[self.parse_binary_expr()], line=tok.line, col=tok.col
            )
        if tok.kind == "LOOP":
            return self.parse_loop()
        if tok.kind == "IF":
            return self.parse_if()

        if tok.kind == "IDENT":
            if self.peek().kind == "LPAREN":
                self.advance()
                args = self.parse_call_args()
                call = ASTNode("call", tok.value, args, line=tok.line, col=tok.col)
                return ASTNode("expr_stmt", children=[call], line=tok.line, col=tok.col)

            for op, kind in (("+", "increment"), ("-", "decrement")):
                if self.peek().is_op(op) and self.peek(2).is_op(op):
                    self.position += 3
                    return ASTNode(kind, tok.value, line=tok.line, col=tok.col, type_="postfix")

            nested = self.parse_nested_assignment()
            if nested is not None:
                return nested
            return self.parse_declaration()

        raise self.error("Unknown statement", tok)

    def parse_nested_assignment(self) -> ASTNode | None:
        """Speculatively parse `target.path = value`; rewinds and returns None otherwise."""
        start = self.save()
        tok = self.current()
        target = self.parse_expr()
        if target.kind in ("access", "index") and self.current().kind in ("ASSIGN", "EQ"):
            self.advance()
            value = self.parse_binary_expr()
            return ASTNode("prop_assign", children=[target, value], line=tok.line, col=tok.col)
        self.restore(start)
        return None

    def parse_declaration(self) -> ASTNode:
        """Parse `x := e`, `x:(t) = e`, `x:[t] = e` or `x = e`."""
        name_tok = self.advance()
        name = name_tok.value
        line, col = name_tok.line, name_tok.col

        if self.check("ASSIGN"):
            self.advance()
            expr = self.parse_binary_expr()
            return ASTNode("const_decl", name, [expr], line=line, col=col)

        if self.check("COLON"):
            self.advance()
            if self.check("LPAREN"):
                self.advance()
                const_type = self.expect("IDENT", "Expected type after :(").value
                self.expect("RPAREN", "Expected ) after constant type")
                self.expect("EQ", "Expected = after constant type")
                expr = self.parse_binary_expr()
                return ASTNode("const_decl", name, [expr], line=line, col=col, type_=const_type)
            if self.check("LBRACK"):
                self.advance()
                var_type = self.expect("IDENT", "Expected type after :[").value
                self.expect("RBRACK", "Expected ] after variable type")
                self.expect("EQ", "Expected = after variable type")
                expr = self.parse_binary_expr()
                return ASTNode("var_decl", name, [expr], line=line, col=col, type_=var_type)
            raise self.error("Expected :() or :[] for type declaration")

        if self.check("EQ"):
            self.advance()
            expr = self.parse_binary_expr()
            return ASTNode("assign", name, [expr], line=line, col=col)

        raise self.error(f"Expected := after variable name '{name}'")

    def parse_if(self) -> ASTNode:
        if_tok = self.advance()
        if not self.check("LPAREN"):
            raise self.error("Expected '(' after if")
        branches = [self.parse_conditional_branch("if")]

        while True:
            if self.check("ELIF"):
                self.advance()
                if not self.check("LPAREN"):
                    raise self.error("Expected '(' after elif")
                branches.append(self.parse_conditional_branch("elif"))
            elif self.check("LPAREN"):
                branches.append(self.parse_conditional_branch("branch"))
            elif self.check("ELSE") or self.check("LBRACE"):
                else_tok = self.current()
                if else_tok.kind == "ELSE":
                    self.advance()
                body = self.parse_block("Expected '{' after else")
                branches.append(
                    ASTNode("branch", line=else_tok.line, col=else_tok.col, body=body)
                )
                break
            else:
                break

        return ASTNode("if", children=branches, line=if_tok.line, col=if_tok.col)

    def parse_conditional_branch(self, label: str) -> ASTNode:
        open_tok = self.advance()
        cond = self.parse_binary_expr()
        self.expect("RPAREN", f"Expected ')' after {label} condition")
        body = self.parse_block(f"Expected '{{' after {label} condition")
        return ASTNode("branch", children=[cond], line=open_tok.line, col=open_tok.col, body=body)

    def count_header_separators(self) -> int:
        """Count `;` at depth 1 inside the loop header starting at the current `(`.

        Does not move the cursor.
        """
        count = 0
        depth = 1
        for tok in self.tokens[self.position + 1 :]:
            if tok.kind == "LPAREN":
                depth += 1
            elif tok.kind == "RPAREN":
                depth -= 1
                if depth == 0:
                    break
            elif tok.is_op(";") and depth == 1:
                count += 1
        return count

    def parse_loop(self) -> ASTNode:
        """Parse `L>` and pick the loop shape from the tokens that follow."""
        loop_tok = self.advance()
        tok = self.current()

        if tok.kind == "LBRACK":
            self.advance()
            count = self.parse_binary_expr()
            if not (self.check("RBRACK") or self.check("LBRACE")):
                raise self.error("Expected ']' or '{' after loop expression")
            if self.check("RBRACK"):
                self.advance()
            kind, header = "times", [count]

        elif tok.kind == "IDENT":
            self.advance()
            self.expect("COLON", "Expected ':' after iterable identifier")
            item = self.expect("IDENT", "Expected variable name after ':'")
            kind = "foreach"
            header = [
                ASTNode("identifier", tok.value, line=tok.line, col=tok.col),
                ASTNode("identifier", item.value, line=item.line, col=item.col),
            ]

        elif tok.kind == "LPAREN":
            if self.count_header_separators() == 2:
                kind, header = "for", self.parse_for_header()
            else:
                self.advance()
                cond = self.parse_binary_expr()
                if self.check("RPAREN"):
                    self.advance()
                elif not self.check("LBRACE"):
                    raise self.error("Invalid while-loop header: expected 1 condition expression")
                kind, header = "while", [cond]

        else:
            raise self.error("Unknown loop format", tok)

        body = self.parse_block("Expected '{' after loop header")
        return ASTNode("loop", kind, header, line=loop_tok.line, col=loop_tok.col, body=body)

    def parse_for_header(self) -> list[ASTNode]:
        self.advance()
        init = self.parse_statement()
        if not self.current().is_op(";"):
            raise self.error("Expected ';' after init in for-loop header")
        self.advance()
        cond = self.parse_binary_expr()
        if not self.current().is_op(";"):
            raise self.error("Expected ';' after condition in for-loop header")
        self.advance()
        step = self.parse_statement()
        if self.check("RPAREN"):
            self.advance()
        return [init, cond, step]

    # Expressions

    def read_operator(self) -> str | None:
        """Consume and return the next binary operator, or None without consuming."""
        tok = self.current()
        nxt = self.peek()

        if (tok.is_op("<") or tok.is_op(">")) and nxt.kind == "EQ":
            self.position += 2
            return tok.value + "="
        if tok.kind == "EQ" and nxt.kind == "EQ":
            self.position += 2
            return "=="
        for op in ("&", "|"):
            if tok.is_op(op) and nxt.is_op(op):
                self.position += 2
                return op * 2
        # `++`/`--` here starts the next statement
        if (tok.is_op("+") or tok.is_op("-")) and nxt.is_op(tok.value):
            return None

        if tok.kind == "UNKNOWN" and (tok.value in folding_ops or tok.value in relational_ops):
            self.advance()
            return tok.value
        if tok.kind == "EQ":
            self.advance()
            return "="
        return None

    def parse_binary_expr(self) -> ASTNode:
        """Parse operands and operators left to right, folding relation chains."""
        operands = [self.parse_expr()]
        ops: list[str] = []

        while True:
            op = self.read_operator()
            if op is None:
                break
            rhs = self.parse_expr()
            if op in relational_ops or op in logical_ops:
                operands.append(rhs)
                ops.append(op)
            else:
                left = operands.pop()
                operands.append(ASTNode("binary", op, [left, rhs], line=left.line, col=left.col))

        if not ops:
            return operands[0]

        first = operands[0]
        result = ASTNode("binary", ops[0], [first, operands[1]], line=first.line, col=first.col)
        for i in range(1, len(ops)):
            left = operands[i]
            cmp = ASTNode("binary", ops[i], [left, operands[i + 1]], line=left.line, col=left.col)
            result = ASTNode("logical", "&&", [result, cmp], line=first.line, col=first.col)
        return result

    def parse_expr(self) -> ASTNode:
        """Parse a primary expression followed by any `.name` / `[index]` chain."""
        tok = self.current()

        if tok.kind == "LPAREN":
            self.advance()
            inner = self.parse_binary_expr()
            self.expect("RPAREN", "Expected ')' to close grouping")
            return inner

        for op, kind in (("+", "increment"), ("-", "decrement")):
            if tok.is_op(op) and self.peek().is_op(op) and self.peek(2).kind == "IDENT":
                self.position += 2
                name = self.advance()
                return ASTNode(kind, name.value, line=tok.line, col=tok.col, type_="prefix")

        if tok.kind == "NUMBER":
            self.advance()
            return ASTNode("number", tok.value, line=tok.line, col=tok.col)

        if tok.kind == "STRING":
            self.advance()
            return ASTNode("string", tok.value, line=tok.line, col=tok.col)

        if tok.kind == "LBRACK":
            return self.parse_postfix(self.parse_array_literal())

        if tok.kind == "LBRACE":
            return self.parse_object_literal()

        if tok.kind == "IDENT":
            if (
                tok.value == INPUT_SIGIL
                and self.peek().is_op(">")
                and self.peek(2).kind == "LBRACK"
            ):
                return self.parse_input()

            self.advance()
            if self.check("LPAREN"):
                args = self.parse_call_args()
                call = ASTNode("call", tok.value, args, line=tok.line, col=tok.col)
                return self.parse_postfix(call)

            expr = self.parse_postfix(ASTNode("identifier", tok.value, line=tok.line, col=tok.col))
            if expr.kind == "identifier":
                for op, kind in (("+", "increment"), ("-", "decrement")):
                    if self.current().is_op(op) and self.peek().is_op(op):
                        self.position += 2
                        return ASTNode(kind, tok.value, line=tok.line, col=tok.col, type_="postfix")
            return expr

        raise self.error(f"Unsupported expression starting with {tok.value!r}", tok)

    def parse_postfix(self, expr: ASTNode) -> ASTNode:
        while True:
            if self.check("DOT"):
                self.advance()
                prop = self.expect("IDENT", "Expected property name after '.'")
                expr = ASTNode("access", prop.value, [expr], line=prop.line, col=prop.col)
            elif self.check("LBRACK"):
                open_tok = self.advance()
                idx = self.parse_binary_expr()
                self.expect("RBRACK", "Expected closing bracket ] for array index")
                expr = ASTNode("index", children=[expr, idx], line=open_tok.line, col=open_tok.col)
            else:
                return expr

    def parse_array_literal(self) -> ASTNode:
        open_tok = self.advance()
        elements: list[ASTNode] = []
        while not self.check("RBRACK"):
            if self.check("EOF"):
                raise self.error("Expected ']' to close array literal")
            elements.append(self.parse_binary_expr())
            if self.check("COMMA"):
                self.advance()
        self.advance()
        return ASTNode("array", children=elements, line=open_tok.line, col=open_tok.col)

    def parse_object_literal(self) -> ASTNode:
        open_tok = self.advance()
        pairs: list[ASTNode] = []
        while not self.check("RBRACE"):
            key = self.current()
            if key.kind not in ("IDENT", "STRING"):
                raise self.error("Expected key in object literal")
            self.advance()
            self.expect("COLON", "Expected ':' after object key")
            value = self.parse_binary_expr()
            pairs.append(ASTNode("pair", key.value, [value], line=key.line, col=key.col))
            if self.check("COMMA"):
                self.advance()
        self.advance()
        return ASTNode("object", children=pairs, line=open_tok.line, col=open_tok.col)

    def parse_call_args(self) -> list[ASTNode]:
        self.expect("LPAREN", "Expected '(' to open argument list")
        args: list[ASTNode] = []
        while not self.check("RPAREN"):
            if self.check("EOF"):
                raise self.error("Expected ')' to close argument list")
            args.append(self.parse_binary_expr())
            if self.check("COMMA"):
                self.advance()
        self.advance()
        return args

    def parse_input(self) -> ASTNode:
        """Parse `I>[prompt, type, limit]`; omitted positions become empty strings."""
        start = self.advance()
        self.position += 2
        args: list[ASTNode] = []
        need_default = True

        while not self.check("RBRACK"):
            if self.check("EOF"):
                raise self.error("Expected ']' to close input expression")
            if self.check("COMMA"):
                comma = self.advance()
                if need_default:
                    args.append(ASTNode("string", "", line=comma.line, col=comma.col))
                need_default = True
                continue
            args.append(self.parse_binary_expr())
            need_default = False
            if self.check("COMMA"):
                self.advance()
                need_default = True
        self.advance()

        while len(args) < 3:
            args.append(ASTNode("string", "", line=start.line, col=start.col))
        return ASTNode("input", children=args[:3], line=start.line, col=start.col)


def parse_source(source: str) -> list[ASTNode]:
    """Tokenize and parse `source` into its function definitions."""
    return Parser(tokenize(source)).parse()
