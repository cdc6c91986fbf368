import json

import hypothesis.strategies as st
from hypothesis import given

from flyux.flyux_ast import ASTNode
from flyux.flyux_parser import parse_source


def test_astnode_repr() -> None:
    node = ASTNode("identifier", "x")
    assert repr(node) == "ASTNode(identifier, value='x')"


def test_astnode_repr_with_type_children_and_body() -> None:
    node = ASTNode(
        "func",
        "f",
        [ASTNode("param", "a", type_="int")],
        body=[ASTNode("return", children=[ASTNode("number", "1")])],
    )
    assert repr(node) == (
        "ASTNode(func, value='f', "
        "children=[ASTNode(param, value='a', type_=int)], "
        "body=[ASTNode(return, children=[ASTNode(number, value='1')])])"
    )


def test_astnode_repr_truncates_long_lists() -> None:
    node = ASTNode("array", children=[ASTNode("number", str(i)) for i in range(5)])
    assert repr(node).endswith(", ...])")


def test_astnode_eq_equal() -> None:
    assert ASTNode("assign", "x", [ASTNode("number", "1")]) == ASTNode(
        "assign", "x", [ASTNode("number", "1")]
    )


def test_astnode_eq_not_equal_kind() -> None:
    assert ASTNode("assign", "x") != ASTNode("const_decl", "x")


def test_astnode_eq_not_equal_children() -> None:
    n1 = ASTNode("assign", "x", [ASTNode("identifier", "x")])
    n2 = ASTNode("assign", "x", [ASTNode("identifier", "y")])
    assert n1 != n2


def test_astnode_eq_not_equal_body() -> None:
    n1 = ASTNode("loop", "times", body=[ASTNode("return")])
    n2 = ASTNode("loop", "times")
    assert n1 != n2


def test_astnode_eq_different_type() -> None:
    assert ASTNode("const_decl", "x", type_="int") != ASTNode("const_decl", "x", type_="float")


def test_astnode_eq_non_astnode() -> None:
    assert ASTNode("assign", "x") != "not an ast"


def test_astnode_defaults() -> None:
    node = ASTNode("return")
    assert node.value is None
    assert node.children == []
    assert node.body == []
    assert node.type is None
    assert (node.line, node.col) == (0, 0)


def test_astnode_to_dict_basic() -> None:
    node = ASTNode("assign", "x", [ASTNode("number", "1")], line=1, col=2)
    d = node.to_dict()
    assert d["kind"] == "assign"
    assert d["value"] == "x"
    assert d["line"] == 1
    assert d["col"] == 2
    assert d["type"] is None
    assert d["children"][0]["kind"] == "number"
    assert d["body"] == []


def test_astnode_to_dict_is_json_serializable() -> None:
    functions = parse_source("F>main(){ L>[2]{ print(_) } R> [1, {a: 2}] }")
    dumped = json.dumps([f.to_dict() for f in functions])
    loaded = json.loads(dumped)
    assert loaded[0]["kind"] == "func"
    assert loaded[0]["body"][0]["value"] == "times"
    assert loaded[0]["body"][0]["body"][0]["children"][0]["value"] == "print"


@given(st.text(min_size=1), st.text(min_size=1))  # type: ignore[misc]
def test_astnode_eq_same_kind_value(kind: str, value: str) -> None:
    assert ASTNode(kind, value) == ASTNode(kind, value)


@given(st.text(min_size=1), st.text(min_size=1))  # type: ignore[misc]
def test_astnode_eq_different_kind_value(kind: str, value: str) -> None:
    assert ASTNode(kind, value) != ASTNode(kind + "x", value + "x")


@given(st.text(min_size=1), st.text(), st.integers(min_value=0))  # type: ignore[misc]
def test_astnode_to_dict_preserves_fields(kind: str, value: str, line: int) -> None:
    d = ASTNode(kind, value, line=line).to_dict()
    assert (d["kind"], d["value"], d["line"]) == (kind, value, line)
