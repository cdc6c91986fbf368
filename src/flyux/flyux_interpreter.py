"""
Tree-walking evaluator for FLYUX.

The `Interpreter` executes `func` ASTNodes produced by the parser. Each function
activation owns one flat environment (name -> `Binding`). Loop and branch bodies
run against that same environment, so declarations made inside a block stay
visible after it. A call builds a brand-new environment from its parameters
only; the caller's names are never visible to the callee.

All values are text (see `flyux.flyux_values`). Statements dispatch to
`exec_<kind>` methods and expressions to `eval_<kind>` methods.

Recursion is not bounded: a program that recurses without end fails with
Python's `RecursionError`.

Example:
    >>> run_source("F>main(){ x := 5 R> x }")
    '5'
"""

import logging
import sys
from typing import TextIO

from flyux.flyux_ast import ASTNode
from flyux.flyux_constants import BAD_OP, PASSTHROUGH_IDENTS, PRINT_BUILTIN, UNKNOWN_FN, VOID
from flyux.flyux_parser import parse_source
from flyux.flyux_values import (
    FlyuxRuntimeError,
    check_declared_type,
    coerce,
    format_number,
    infer_type,
    is_array,
    is_truthy,
    parse_array,
    parse_float,
    parse_int,
    read_index,
    read_property,
    serialize_array,
    serialize_record,
    write_path,
)

logger = logging.getLogger("flyux.interpreter")
logger.addHandler(logging.NullHandler())


class Binding:
    """One environment entry: current text, declared type, constant flag."""

    __slots__ = ("value", "type", "is_const")

    def __init__(self, value: str, type_: str | None = None, is_const: bool = False):
        self.value = value
        self.type = type_
        self.is_const = is_const

    def __repr__(self) -> str:
        const = ", const" if self.is_const else ""
        return f"Binding({self.value!r}, {self.type}{const})"


Environment = dict[str, Binding]


class ReturnSignal(Exception):
    """Unwinds nested blocks when `R>` executes."""

    def __init__(self, value: str):
        super().__init__(value)
        self.value = value


class Interpreter:
    """Runs a parsed FLYUX program.

    Attributes:
        functions (dict[str, ASTNode]): Function table keyed by name, built from the
            whole program before anything runs.
        stdin (TextIO | None): Stream read by the input expression; `sys.stdin` if None.
        stdout (TextIO | None): Stream written by `print` and input prompts;
            `sys.stdout` if None.
    """

    def __init__(
        self,
        functions: list[ASTNode],
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self.functions: dict[str, ASTNode] = {f.value: f for f in functions if f.value}
        self.stdin = stdin
        self.stdout = stdout

    def run(self, entry: str = "main") -> str | None:
        """Call the `entry` function with no arguments and return its result."""
        func = self.functions.get(entry)
        if func is None:
            logger.debug("no '%s' function defined, nothing to run", entry)
            return None
        return self.call_function(func, [])

    def call_function(self, func: ASTNode, args: list[str]) -> str | None:
        """Run `func` in a fresh environment; None means it fell off the end."""
        env: Environment = {}
        for i, param in enumerate(func.children):
            if i >= len(args):
                # missing arguments are empty and untyped
                env[str(param.value)] = Binding("")
                continue
            arg = args[i]
            if param.type is not None:
                check_declared_type(param.type)
                arg = coerce(arg, param.type)
            env[str(param.value)] = Binding(arg, param.type)

        logger.debug("call %s(%s)", func.value, ", ".join(args))
        try:
            self.exec_block(func.body, env)
        except ReturnSignal as ret:
            return ret.value
        return None

    def exec_block(self, statements: list[ASTNode], env: Environment) -> None:
        for stmt in statements:
            self.exec_stmt(stmt, env)

    def exec_stmt(self, node: ASTNode, env: Environment) -> None:
        method = getattr(self, f"exec_{node.kind}", None)
        if method is None:
            raise NotImplementedError(f"Interpreter: no executor for {node.kind}")
        method(node, env)

    def eval_expr(self, node: ASTNode, env: Environment) -> str:
        method = getattr(self, f"eval_{node.kind}", None)
        if method is None:
            raise NotImplementedError(f"Interpreter: no evaluator for {node.kind}")
        return str(method(node, env))

    # Statements

    def exec_const_decl(self, node: ASTNode, env: Environment) -> None:
        self.declare(node, env, bool_text=("true", "false"), is_const=node.type is not None)

    def exec_var_decl(self, node: ASTNode, env: Environment) -> None:
        self.declare(node, env, bool_text=("1", "0"), is_const=False)

    def declare(
        self, node: ASTNode, env: Environment, bool_text: tuple[str, str], is_const: bool
    ) -> None:
        name = str(node.value)
        value = self.eval_expr(node.children[0], env)
        if node.type is not None:
            check_declared_type(node.type)
        declared = node.type or infer_type(value)
        value = coerce(value, declared, bool_text)

        existing = env.get(name)
        if existing is not None and existing.is_const:
            raise FlyuxRuntimeError(f"Cannot redefine constant '{name}'")
        env[name] = Binding(value, declared, is_const)

    def exec_assign(self, node: ASTNode, env: Environment) -> None:
        name = str(node.value)
        value = self.eval_expr(node.children[0], env)
        binding = self.writable(name, env)
        try:
            binding.value = coerce(value, binding.type)
        except FlyuxRuntimeError as err:
            raise FlyuxRuntimeError(
                f"Type mismatch: expected {binding.type}, got '{value}'"
            ) from err

    def exec_prop_assign(self, node: ASTNode, env: Environment) -> None:
        target, value_node = node.children
        value = self.eval_expr(value_node, env)

        path: list[tuple[bool, str]] = []
        expr = target
        while expr.kind in ("access", "index"):
            if expr.kind == "access":
                path.append((False, str(expr.value)))
            else:
                path.append((True, self.eval_expr(expr.children[1], env).strip('"')))
            expr = expr.children[0]
        path.reverse()

        if expr.kind != "identifier":
            raise FlyuxRuntimeError(f"Invalid nested assignment target: {target!r}")
        binding = self.writable(str(expr.value), env)
        binding.value = write_path(binding.value, path, value)

    def exec_expr_stmt(self, node: ASTNode, env: Environment) -> None:
        call = node.children[0]
        name = str(call.value)
        if name == PRINT_BUILTIN:
            self.builtin_print(call.children, env)
        elif name in self.functions:
            args = [self.eval_expr(a, env) for a in call.children]
            self.call_function(self.functions[name], args)
        else:
            logger.warning("ignoring call to unknown function '%s' at line %d", name, call.line)

    def exec_return(self, node: ASTNode, env: Environment) -> None:
        raise ReturnSignal(self.eval_expr(node.children[0], env))

    def exec_increment(self, node: ASTNode, env: Environment) -> None:
        self.eval_increment(node, env)

    def exec_decrement(self, node: ASTNode, env: Environment) -> None:
        self.eval_decrement(node, env)

    def exec_if(self, node: ASTNode, env: Environment) -> None:
        for branch in node.children:
            if not branch.children or is_truthy(self.eval_expr(branch.children[0], env)):
                self.exec_block(branch.body, env)
                return

    def exec_loop(self, node: ASTNode, env: Environment) -> None:
        logger.debug("%s loop at line %d", node.value, node.line)
        getattr(self, f"loop_{node.value}")(node, env)

    def loop_times(self, node: ASTNode, env: Environment) -> None:
        raw = self.eval_expr(node.children[0], env)
        count = parse_int(raw)
        if count is None or count < 0:
            raise FlyuxRuntimeError(f"Invalid loop count: '{raw}'")
        for i in range(count):
            env["_"] = Binding(str(i), "int")
            self.exec_block(node.body, env)

    def loop_foreach(self, node: ASTNode, env: Environment) -> None:
        source, item = node.children
        array = self.eval_expr(source, env)
        if not is_array(array):
            raise FlyuxRuntimeError(f"For-each target is not an array: {array}")
        for element in parse_array(array):
            env[str(item.value)] = Binding(element, "string")
            self.exec_block(node.body, env)

    def loop_while(self, node: ASTNode, env: Environment) -> None:
        cond = node.children[0]
        while is_truthy(self.eval_expr(cond, env)):
            self.exec_block(node.body, env)

    def loop_for(self, node: ASTNode, env: Environment) -> None:
        init, cond, step = node.children
        self.exec_stmt(init, env)
        while is_truthy(self.eval_expr(cond, env)):
            self.exec_block(node.body, env)
            self.exec_stmt(step, env)

    # Expressions

    def eval_number(self, node: ASTNode, env: Environment) -> str:
        number = parse_float(str(node.value))
        if number is None:
            raise FlyuxRuntimeError(f"Invalid number literal: '{node.value}'")
        return format_number(number)

    def eval_string(self, node: ASTNode, env: Environment) -> str:
        return str(node.value)

    def eval_identifier(self, node: ASTNode, env: Environment) -> str:
        name = str(node.value)
        if name == "true":
            return "1"
        if name == "false":
            return "0"
        binding = env.get(name)
        if binding is not None:
            return binding.value
        if parse_float(name) is not None or name.lower() in PASSTHROUGH_IDENTS:
            return name
        raise FlyuxRuntimeError(f"Undefined identifier: '{name}'")

    def eval_call(self, node: ASTNode, env: Environment) -> str:
        name = str(node.value)
        if name == PRINT_BUILTIN:
            self.builtin_print(node.children, env)
            return VOID
        func = self.functions.get(name)
        if func is None:
            return UNKNOWN_FN
        args = [self.eval_expr(a, env) for a in node.children]
        result = self.call_function(func, args)
        return VOID if result is None else result

    def eval_binary(self, node: ASTNode, env: Environment) -> str:
        op = node.value
        left = self.eval_expr(node.children[0], env)
        right = self.eval_expr(node.children[1], env)

        if op in ("=", "=="):
            return _bool_text(left == right)
        if op == "&&":
            return _bool_text(is_truthy(left) and is_truthy(right))
        if op == "||":
            return _bool_text(is_truthy(left) or is_truthy(right))

        lnum = parse_float(left)
        rnum = parse_float(right)
        lnum = 0.0 if lnum is None else lnum
        rnum = 0.0 if rnum is None else rnum
        if op == "+":
            return format_number(lnum + rnum)
        if op == "-":
            return format_number(lnum - rnum)
        if op == "*":
            return format_number(lnum * rnum)
        if op == "/":
            return format_number(lnum / rnum if rnum != 0.0 else 0.0)
        if op == ">":
            return _bool_text(lnum > rnum)
        if op == "<":
            return _bool_text(lnum < rnum)
        if op == ">=":
            return _bool_text(lnum >= rnum)
        if op == "<=":
            return _bool_text(lnum <= rnum)
        return BAD_OP

    def eval_logical(self, node: ASTNode, env: Environment) -> str:
        left = self.eval_expr(node.children[0], env) == "true"
        right = self.eval_expr(node.children[1], env) == "true"
        if node.value == "||":
            return _bool_text(left or right)
        return _bool_text(left and right)

    def eval_array(self, node: ASTNode, env: Environment) -> str:
        return serialize_array([self.eval_expr(e, env) for e in node.children])

    def eval_object(self, node: ASTNode, env: Environment) -> str:
        fields = {str(p.value): self.eval_expr(p.children[0], env) for p in node.children}
        return serialize_record(fields)

    def eval_index(self, node: ASTNode, env: Environment) -> str:
        target = self.eval_expr(node.children[0], env)
        key = self.eval_expr(node.children[1], env)
        return read_index(target, key)

    def eval_access(self, node: ASTNode, env: Environment) -> str:
        return read_property(self.eval_expr(node.children[0], env), str(node.value))

    def eval_increment(self, node: ASTNode, env: Environment) -> str:
        return self.step_variable(str(node.value), env, 1)

    def eval_decrement(self, node: ASTNode, env: Environment) -> str:
        return self.step_variable(str(node.value), env, -1)

    def eval_input(self, node: ASTNode, env: Environment) -> str:
        prompt_node, type_node, limit_node = node.children
        prompt = self.eval_expr(prompt_node, env)
        if type_node.kind == "identifier":
            read_type = str(type_node.value).lower()
        else:
            read_type = self.eval_expr(type_node, env).lower()
        limit = parse_int(self.eval_expr(limit_node, env)) or 0

        out = self.stdout or sys.stdout
        out.write(prompt)
        out.flush()
        text = (self.stdin or sys.stdin).readline().rstrip("\r\n")
        if limit > 0:
            text = text[:limit]

        if read_type == "number":
            whole = parse_int(text)
            if whole is not None:
                return str(whole)
            number = parse_float(text)
            return "0" if number is None else format_number(number)
        return text

    # Helpers

    def writable(self, name: str, env: Environment) -> Binding:
        binding = env.get(name)
        if binding is None:
            raise FlyuxRuntimeError(f"Undefined variable '{name}'")
        if binding.is_const:
            raise FlyuxRuntimeError(f"Cannot assign to constant '{name}'")
        return binding

    def step_variable(self, name: str, env: Environment, delta: int) -> str:
        """Apply `++`/`--` to an int or float binding and return the new value."""
        binding = self.writable(name, env)
        if binding.type == "int":
            current = parse_int(binding.value)
            if current is None:
                raise FlyuxRuntimeError(f"Invalid int for increment: '{binding.value}'")
            binding.value = str(current + delta)
        elif binding.type == "float":
            number = parse_float(binding.value)
            if number is None:
                raise FlyuxRuntimeError(f"Invalid float for increment: '{binding.value}'")
            binding.value = format_number(number + delta)
        else:
            raise FlyuxRuntimeError(f"Unsupported type '{binding.type}' for increment of '{name}'")
        return binding.value

    def builtin_print(self, args: list[ASTNode], env: Environment) -> None:
        values = [self.eval_expr(a, env) for a in args]
        print(" ".join(values), file=self.stdout or sys.stdout)


def _bool_text(flag: bool) -> str:
    return "true" if flag else "false"


def run_source(
    source: str, stdin: TextIO | None = None, stdout: TextIO | None = None
) -> str | None:
    """Parse `source` and run its `main` function, returning main's result if any."""
    return Interpreter(parse_source(source), stdin=stdin, stdout=stdout).run()


__all__ = ["Binding", "FlyuxRuntimeError", "Interpreter", "run_source"]
