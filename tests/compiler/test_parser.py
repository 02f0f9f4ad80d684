"""Pon Parser Tests.

Precedence climbing, associativity, calls, prototypes and definitions, plus
the failure policy: a malformed statement yields None and a diagnostic,
never a partial node.
"""

import dataclasses

import pytest

from pon.ast_nodes import (
    NumberLiteral, VariableRef, BinaryOp, Call, Prototype, FunctionDef, to_dict,
)
from pon.errors import ErrorKind
from pon.lexer import TokenKind
from pon.parser import Parser, DEFAULT_PRECEDENCE, validate_precedence


def _expr(source, precedence=None):
    func = Parser.from_string(source, precedence).parse_top_level_expression()
    assert func is not None
    return func.body


def _expr_text(source, precedence=None):
    return str(_expr(source, precedence))


class TestPrecedence:
    """Operators bind according to the precedence table."""

    def test_mul_binds_tighter_than_add_on_right(self):
        assert _expr_text("1+2*3") == "(1+(2*3))"

    def test_mul_binds_tighter_than_add_on_left(self):
        assert _expr_text("1*2+3") == "((1*2)+3)"

    def test_less_than_is_loosest(self):
        assert _expr_text("1<2+3") == "(1<(2+3))"

    def test_mixed_chain(self):
        assert _expr_text("1+2*3-4") == "((1+(2*3))-4)"

    def test_products_of_sums(self):
        assert _expr_text("a*b+c*d") == "((a*b)+(c*d))"

    def test_parentheses_override(self):
        assert _expr_text("(1+2)*3") == "((1+2)*3)"

    def test_structure_not_just_text(self):
        expected = BinaryOp(
            op="+",
            left=NumberLiteral(1.0),
            right=BinaryOp(op="*", left=NumberLiteral(2.0), right=NumberLiteral(3.0)),
        )
        assert _expr("1+2*3") == expected

    def test_custom_precedence_table(self):
        table = {"+": 50, "*": 10}
        assert _expr_text("1+2*3", table) == "((1+2)*3)"


class TestAssociativity:
    """Equal-precedence chains group to the left."""

    def test_subtraction_chain(self):
        assert _expr_text("1-2-3") == "((1-2)-3)"

    def test_mixed_equal_precedence(self):
        assert _expr_text("a-b+c") == "((a-b)+c)"

    def test_comparison_chain(self):
        assert _expr_text("a<b<c") == "((a<b)<c)"


class TestUnknownOperators:
    """A character missing from the table ends the expression."""

    def test_expression_stops_at_unknown_operator(self):
        parser = Parser.from_string("1 / 2")
        func = parser.parse_top_level_expression()
        assert func.body == NumberLiteral(1.0)
        assert parser.current.is_char("/")
        assert parser.diagnostics == []

    def test_operator_added_through_table(self):
        table = dict(DEFAULT_PRECEDENCE, **{"/": 40})
        assert _expr_text("1+4/2", table) == "(1+(4/2))"


class TestCallsAndPrimaries:

    def test_variable(self):
        assert _expr("x") == VariableRef("x")

    def test_call_with_arguments(self):
        node = _expr("foo(1, x, bar())")
        assert isinstance(node, Call)
        assert node.callee == "foo"
        assert node.args == (NumberLiteral(1.0), VariableRef("x"), Call("bar", ()))
        assert str(node) == "foo(1, x, bar())"

    def test_call_arguments_are_expressions(self):
        node = _expr("f(a+1, b*2)")
        assert [str(a) for a in node.args] == ["(a+1)", "(b*2)"]

    def test_call_inside_expression(self):
        assert _expr_text("1+f(2)*3") == "(1+(f(2)*3))"


class TestTopLevel:
    """Definitions, externs and anonymous top-level expressions."""

    def test_definition(self):
        func = Parser.from_string("def foo(a b) a*a + 2*a*b + b*b").parse_definition()
        assert isinstance(func, FunctionDef)
        assert func.prototype == Prototype("foo", ("a", "b"))
        assert str(func) == "def foo(a b) (((a*a)+((2*a)*b))+(b*b))"

    def test_extern(self):
        proto = Parser.from_string("extern cos(x)").parse_extern()
        assert proto == Prototype("cos", ("x",))
        assert proto.arity == 1

    def test_nullary_extern(self):
        assert Parser.from_string("extern now()").parse_extern() == Prototype("now", ())

    def test_duplicate_parameter_names_accepted(self):
        proto = Parser.from_string("extern f(a a)").parse_extern()
        assert proto.params == ("a", "a")

    def test_top_level_expression_is_anonymous(self):
        func = Parser.from_string("4+5").parse_top_level_expression()
        assert func.prototype.is_anonymous
        assert func.prototype.params == ()

    def test_stops_before_terminator(self):
        parser = Parser.from_string("def f(x) x; 1")
        parser.parse_definition()
        assert parser.current.is_char(";")

    def test_nodes_are_immutable(self):
        node = _expr("1+2")
        with pytest.raises(dataclasses.FrozenInstanceError):
            node.op = "-"

    def test_to_dict(self):
        func = Parser.from_string("def sq(x) x*x").parse_definition()
        d = to_dict(func)
        assert d["prototype"] == {"node": "prototype", "name": "sq", "params": ["x"]}
        assert d["body"]["op"] == "*"


class TestSyntaxErrors:
    """Every failing production yields None plus one diagnostic."""

    @pytest.mark.parametrize("source, message", [
        ("(1+2", "expected ')'"),
        ("foo(1 2)", "Expected ')' or ',' in argument list"),
        (")", "when expecting an expression"),
        ("1 + ", "when expecting an expression"),
    ])
    def test_expression_errors(self, source, message):
        parser = Parser.from_string(source)
        assert parser.parse_top_level_expression() is None
        assert len(parser.diagnostics) == 1
        err = parser.diagnostics[0]
        assert err.kind is ErrorKind.SYNTAX_ERROR
        assert message in err.message

    @pytest.mark.parametrize("source, message", [
        ("def 1(x) x", "Expected function name in prototype"),
        ("def foo x", "Expected '(' in prototype"),
        ("def foo(a, b) a", "Expected ')' in prototype"),
    ])
    def test_prototype_errors(self, source, message):
        parser = Parser.from_string(source)
        assert parser.parse_definition() is None
        assert parser.diagnostics[0].message == message

    def test_extern_error(self):
        parser = Parser.from_string("extern (x)")
        assert parser.parse_extern() is None
        assert parser.diagnostics[0].kind is ErrorKind.SYNTAX_ERROR

    def test_error_location_points_at_offending_token(self):
        parser = Parser.from_string("(1+2;")
        parser.parse_top_level_expression()
        loc = parser.diagnostics[0].location
        assert (loc.line, loc.column) == (1, 5)

    def test_lexical_error_inside_expression(self):
        parser = Parser.from_string("1 + 1.2.3")
        assert parser.parse_top_level_expression() is None
        assert parser.diagnostics[0].kind is ErrorKind.LEXICAL_ERROR

    def test_parsing_resumes_after_skip(self):
        parser = Parser.from_string("(1+2; 3-1")
        assert parser.parse_top_level_expression() is None
        parser.skip_token()
        func = parser.parse_top_level_expression()
        assert str(func.body) == "(3-1)"
        assert parser.current.kind is TokenKind.EOF


class TestPrecedenceValidation:

    def test_default_table(self):
        assert validate_precedence(DEFAULT_PRECEDENCE) == {"<": 10, "+": 20, "-": 20, "*": 40}

    @pytest.mark.parametrize("table", [
        {"+": 0},
        {"+": -5},
        {"+": True},
        {"+": 2.5},
        {"<=": 10},
        {"a": 10},
        {"(": 10},
    ])
    def test_invalid_tables(self, table):
        with pytest.raises(ValueError):
            Parser.from_string("1", precedence=table)
