"""
Tests for the Constraint Expression System

These tests verify:
    - Var / Op construction and immutability
    - Arity validation at construction time
    - Builders and two-variable templates
    - Textual rendering and parenthesization
    - Referenced feature collection
"""

import pytest
from featuremodel.errors import ExpressionArityError
from featuremodel.expressions import (
    ASCII_SYMBOLS,
    ConstraintPattern,
    LogicExpression,
    LogicOperator,
    Op,
    Var,
    all_referenced_features,
    always,
    expression_depth,
    expression_to_string,
    if_then,
    if_then_not,
    logic_and,
    logic_equiv,
    logic_implies,
    logic_not,
    logic_or,
    never,
    pattern_to_expression,
    referenced_features,
)


class TestVar:
    """Test feature reference leaves."""

    def test_create_var(self):
        """Should reference a feature by name."""
        var = Var("memory")
        assert var.name == "memory"
        assert isinstance(var, LogicExpression)

    def test_var_immutable(self):
        """Leaves should be immutable."""
        var = Var("memory")
        with pytest.raises(AttributeError):
            var.name = "cpus"

    def test_var_equality(self):
        """Two leaves naming the same feature are equal."""
        assert Var("a") == Var("a")
        assert Var("a") != Var("b")


class TestOp:
    """Test operator nodes and arity checks."""

    def test_binary_operator(self):
        """Should hold an operator and two operands."""
        expr = Op(LogicOperator.IMPLIES, (Var("cpus"), Var("memory")))
        assert expr.operator == LogicOperator.IMPLIES
        assert expr.operands == (Var("cpus"), Var("memory"))

    def test_operands_normalized_to_tuple(self):
        """A list of operands is stored as a tuple."""
        expr = Op(LogicOperator.AND, [Var("a"), Var("b")])
        assert isinstance(expr.operands, tuple)
        assert hash(expr) == hash(Op(LogicOperator.AND, (Var("a"), Var("b"))))

    def test_not_takes_one_operand(self):
        """NOT with two operands is rejected."""
        with pytest.raises(ExpressionArityError):
            Op(LogicOperator.NOT, (Var("a"), Var("b")))

    def test_binary_takes_two_operands(self):
        """Binary operators with one or three operands are rejected."""
        for operator in (LogicOperator.AND, LogicOperator.OR, LogicOperator.IMPLIES, LogicOperator.EQUIV):
            with pytest.raises(ExpressionArityError):
                Op(operator, (Var("a"),))
            with pytest.raises(ExpressionArityError):
                Op(operator, (Var("a"), Var("b"), Var("c")))

    def test_arity_error_is_value_error(self):
        """Callers may catch arity errors as ValueError."""
        with pytest.raises(ValueError):
            Op(LogicOperator.NOT, ())

    def test_operands_must_be_expressions(self):
        """Raw strings are not accepted as operands of Op."""
        with pytest.raises(TypeError):
            Op(LogicOperator.NOT, ("a",))

    def test_operator_tags(self):
        """Enum values are the XML tags."""
        assert [op.value for op in LogicOperator] == ["not", "conj", "disj", "imp", "eq"]


class TestBuilders:
    """Test builder helpers and templates."""

    def test_builders_promote_strings(self):
        """Feature names passed to builders become Var leaves."""
        assert logic_not("a") == Op(LogicOperator.NOT, (Var("a"),))
        assert logic_and("a", "b").operands == (Var("a"), Var("b"))
        assert logic_or("a", Var("b")).operator == LogicOperator.OR
        assert logic_equiv("a", "b").operator == LogicOperator.EQUIV
        assert logic_implies(logic_not("a"), "b").operands[0] == logic_not("a")

    def test_templates(self):
        """The four editor templates map onto the documented shapes."""
        assert always("X") == Var("X")
        assert never("X") == logic_not(Var("X"))
        assert if_then("X", "Y") == logic_implies(Var("X"), Var("Y"))
        assert if_then_not("X", "Y") == logic_implies(Var("X"), logic_not(Var("Y")))

    def test_pattern_to_expression(self):
        """Patterns build the same expressions as the templates."""
        assert pattern_to_expression(ConstraintPattern.X_ENABLED, ["a"]) == always("a")
        assert pattern_to_expression(ConstraintPattern.X_DISABLED, ["a"]) == never("a")
        assert pattern_to_expression(ConstraintPattern.IF_X_THEN_Y, ["a", "b"]) == if_then("a", "b")
        assert pattern_to_expression(ConstraintPattern.IF_X_NO_Y, ["a", "b"]) == if_then_not("a", "b")

    def test_pattern_missing_variables(self):
        """Too few names for a pattern is an error."""
        with pytest.raises(ValueError):
            pattern_to_expression(ConstraintPattern.IF_X_THEN_Y, ["a"])
        with pytest.raises(ValueError):
            pattern_to_expression(ConstraintPattern.X_ENABLED, [])


class TestRendering:
    """Test textual rendering."""

    def test_leaf(self):
        assert expression_to_string(Var("memory")) == "memory"

    def test_not_is_prefix(self):
        assert expression_to_string(never("a")) == "¬ a"

    def test_binary_is_infix(self):
        assert expression_to_string(if_then("cpus", "memory")) == "cpus ⇒ memory"
        assert expression_to_string(logic_and("a", "b")) == "a ∧ b"
        assert expression_to_string(logic_or("a", "b")) == "a ∨ b"
        assert expression_to_string(logic_equiv("a", "b")) == "a ⇔ b"

    def test_compound_operands_parenthesized(self):
        """Only operands whose rendering contains whitespace get parentheses."""
        expr = logic_implies(logic_and("a", "b"), logic_not("c"))
        assert expression_to_string(expr) == "(a ∧ b) ⇒ (¬ c)"

    def test_ascii_symbols(self):
        expr = if_then_not("X", "Y")
        assert expression_to_string(expr, ASCII_SYMBOLS) == "X implies (not Y)"

    def test_nested_not(self):
        assert expression_to_string(logic_not(logic_not("a")), ASCII_SYMBOLS) == "not (not a)"


class TestInspection:
    """Test feature reference collection and depth."""

    def test_referenced_features(self):
        expr = logic_implies(logic_and("a", "b"), logic_not("a"))
        assert referenced_features(expr) == {"a", "b"}

    def test_all_referenced_features(self):
        assert all_referenced_features([always("a"), if_then("b", "c")]) == {"a", "b", "c"}

    def test_expression_depth(self):
        assert expression_depth(Var("a")) == 0
        assert expression_depth(never("a")) == 1
        assert expression_depth(if_then_not("a", "b")) == 2
