"""
Тесты парсера выражений.
"""

import pytest

from elt.expr.lexer import ExpressionSyntaxError
from elt.expr.model import (
    AddOp,
    EqualityOp,
    Expression,
    MultiplyOp,
    RelationalOp,
    UnaryOp,
    ValueKind,
)
from elt.expr.parser import ExpressionParser, parse_expression


def _single_value(expr: Expression):
    """Спускается по проходным узлам до единственного ValueExpression."""
    and_node = expr.root.terms[0]
    equality = and_node.terms[0]
    add = equality.left.left
    unary = add.first.left
    return unary


class TestExpressionParser:

    def setup_method(self):
        self.parser = ExpressionParser()

    def test_empty_expression(self):
        with pytest.raises(ExpressionSyntaxError, match="Empty expression"):
            self.parser.parse("")
        with pytest.raises(ExpressionSyntaxError, match="Empty expression"):
            self.parser.parse("   ")

    def test_literals(self):
        assert _single_value(self.parser.parse("true")).value.literal is True
        assert _single_value(self.parser.parse("false")).value.literal is False
        assert _single_value(self.parser.parse("42")).value.kind == ValueKind.INTEGER
        assert _single_value(self.parser.parse("4.5")).value.kind == ValueKind.DOUBLE
        assert _single_value(self.parser.parse("'s'")).value.literal == "s"
        assert _single_value(self.parser.parse("null")).value.kind == ValueKind.NULL

    def test_variable_reference(self):
        value = _single_value(self.parser.parse("user.age.toInt")).value
        assert value.kind == ValueKind.VARIABLE
        assert value.variable.path == "user.age.toInt"
        assert value.variable.conversion == "toInt"
        assert value.variable.base_path == "user.age"

    def test_variable_without_conversion(self):
        ref = _single_value(self.parser.parse("toInt")).value.variable
        assert ref.conversion is None
        assert ref.base_path == "toInt"

    def test_unary_operators(self):
        assert _single_value(self.parser.parse("!flag")).op == UnaryOp.NOT
        assert _single_value(self.parser.parse("-5")).op == UnaryOp.MINUS
        assert _single_value(self.parser.parse("empty name")).op == UnaryOp.EMPTY
        assert _single_value(self.parser.parse("not flag")).op == UnaryOp.NOT

    def test_double_unary_is_rejected(self):
        with pytest.raises(ExpressionSyntaxError, match="Unexpected token '-'"):
            self.parser.parse("--5")

    def test_precedence_multiply_over_add(self):
        """1 + 2 * 3 → Add(1, [(+, Mul(2 * 3))])"""
        expr = self.parser.parse("1 + 2 * 3")
        add = expr.root.terms[0].terms[0].left.left
        assert add.first.op is None
        assert len(add.rest) == 1
        op, term = add.rest[0]
        assert op == AddOp.PLUS
        assert term.op == MultiplyOp.MUL

    def test_add_chain_is_flat(self):
        expr = self.parser.parse("a - b + c")
        add = expr.root.terms[0].terms[0].left.left
        assert [op for op, _ in add.rest] == [AddOp.MINUS, AddOp.PLUS]

    def test_or_and_structure(self):
        expr = self.parser.parse("a || b && c || d")
        assert len(expr.root.terms) == 3
        assert len(expr.root.terms[1].terms) == 2

    def test_equality_and_relational(self):
        expr = self.parser.parse("a + 1 >= 2 == true")
        equality = expr.root.terms[0].terms[0]
        assert equality.op == EqualityOp.EQ
        assert equality.left.op == RelationalOp.GE

    def test_comparison_is_not_associative(self):
        with pytest.raises(ExpressionSyntaxError, match="Unexpected token '=='"):
            self.parser.parse("1 == 2 == 3")
        with pytest.raises(ExpressionSyntaxError, match="Unexpected token '<'"):
            self.parser.parse("1 < 2 < 3")
        with pytest.raises(ExpressionSyntaxError, match="Unexpected token '\\*'"):
            self.parser.parse("2 * 3 * 4")

    def test_parenthesized_expression(self):
        expr = self.parser.parse("(a || b) && c")
        first = expr.root.terms[0].terms[0]
        value = first.left.left.first.left.value
        assert value.kind == ValueKind.NESTED
        assert len(value.nested.root.terms) == 2

    def test_grouping_allows_chains(self):
        self.parser.parse("(2 * 3) * 4")
        self.parser.parse("(1 == 2) == false")

    def test_missing_closing_paren(self):
        with pytest.raises(ExpressionSyntaxError, match="Expected '\\)'"):
            self.parser.parse("(1 + 2")

    def test_unexpected_end(self):
        with pytest.raises(ExpressionSyntaxError, match="Unexpected end of expression"):
            self.parser.parse("1 +")

    def test_trailing_garbage(self):
        with pytest.raises(ExpressionSyntaxError, match="Unexpected token 'b'") as exc:
            self.parser.parse("a b")
        assert exc.value.position == 2

    def test_parameter_count(self):
        assert self.parser.parse("1").num_parameters == 0
        assert self.parser.parse("?0").num_parameters == 1
        assert self.parser.parse("?0 + ?2").num_parameters == 3
        assert self.parser.parse("(?3 > 1) || ?1").num_parameters == 4

    def test_integer_out_of_range(self):
        self.parser.parse("9223372036854775807")
        with pytest.raises(ExpressionSyntaxError, match="Integer literal out of range"):
            self.parser.parse("9223372036854775808")
        with pytest.raises(ExpressionSyntaxError, match="Integer literal out of range"):
            self.parser.parse("0 - 9223372036854775808")

    def test_int64_min_after_unary_minus(self):
        unary = _single_value(self.parser.parse("-9223372036854775808"))
        assert unary.op is None
        assert unary.value.kind == ValueKind.INTEGER
        assert unary.value.literal == -(2 ** 63)

    def test_str_round_trip(self):
        for text in ["a == 1", "x + 1 - y", "!flag || empty name && b", "(a || b) && ?0 >= 2.5"]:
            expr = self.parser.parse(text)
            assert str(expr) == text
            assert parse_expression(str(expr)) == expr

    def test_expression_source_kept(self):
        expr = self.parser.parse("a  ==  1")
        assert expr.source == "a  ==  1"

    def test_parser_reuse(self):
        """Один парсер можно использовать для нескольких выражений"""
        first = self.parser.parse("?1")
        second = self.parser.parse("a")
        assert first.num_parameters == 2
        assert second.num_parameters == 0
