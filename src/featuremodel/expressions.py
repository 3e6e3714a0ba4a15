"""
Constraint Expression System

Cross-tree constraints are boolean formulas over feature names,
represented as small Abstract Syntax Trees, never as strings.

An expression is either:
    - Var(name): a reference to a feature by name
    - Op(operator, operands): a logic operator applied to sub-expressions

ARCHITECTURAL RULE:
    Operator arity is checked when an Op is built.
    A malformed tree cannot exist, so renderers and encoders
    never need to re-validate it.

    Expressions reference features by NAME ONLY.
    They are not rewritten when features are renamed or removed.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Set, Tuple, Union

from featuremodel.errors import ExpressionArityError


class LogicExpression(ABC):
    """
    Base class for all constraint expressions.

    This class is structure only.
    It does NOT evaluate itself (the engine never solves constraints).
    """
    pass


class LogicOperator(Enum):
    """
    Logic operators allowed in cross-tree constraints.

    The enum value is the tag used in the XML wire format.
    """

    NOT = "not"
    AND = "conj"
    OR = "disj"
    IMPLIES = "imp"
    EQUIV = "eq"

    @property
    def arity(self) -> int:
        return 1 if self is LogicOperator.NOT else 2


@dataclass(frozen=True)
class Var(LogicExpression):
    """
    References a feature by name.

    Examples:
        - memory
        - cpu@0

    IMPORTANT:
        This object does NOT validate that the feature exists.
        A constraint may outlive the feature it names.
    """

    name: str


@dataclass(frozen=True)
class Op(LogicExpression):
    """
    Applies a logic operator to its operands.

    Example:
        cpus implies memory

    Becomes:
        Op(LogicOperator.IMPLIES, (Var("cpus"), Var("memory")))

    Properties:
        operator: LogicOperator enum
        operands: Tuple of sub-expressions, length fixed by the operator
    """

    operator: LogicOperator
    operands: Tuple[LogicExpression, ...]

    def __post_init__(self):
        operands = tuple(self.operands)
        if len(operands) != self.operator.arity:
            raise ExpressionArityError(
                f"<{self.operator.value}> takes {self.operator.arity} operand(s), "
                f"got {len(operands)}"
            )
        for operand in operands:
            if not isinstance(operand, LogicExpression):
                raise TypeError(f"Unsupported operand type: {type(operand)}")
        object.__setattr__(self, "operands", operands)


ExpressionLike = Union[LogicExpression, str]


def as_expression(value: ExpressionLike) -> LogicExpression:
    """Promote a bare feature name to a Var; pass expressions through."""
    if isinstance(value, LogicExpression):
        return value
    if isinstance(value, str):
        return Var(value)
    raise TypeError(f"Unsupported expression type: {type(value)}")


# =============================================================================
# Builders
# =============================================================================

def logic_not(p: ExpressionLike) -> Op:
    return Op(LogicOperator.NOT, (as_expression(p),))


def logic_and(p: ExpressionLike, q: ExpressionLike) -> Op:
    return Op(LogicOperator.AND, (as_expression(p), as_expression(q)))


def logic_or(p: ExpressionLike, q: ExpressionLike) -> Op:
    return Op(LogicOperator.OR, (as_expression(p), as_expression(q)))


def logic_implies(p: ExpressionLike, q: ExpressionLike) -> Op:
    return Op(LogicOperator.IMPLIES, (as_expression(p), as_expression(q)))


def logic_equiv(p: ExpressionLike, q: ExpressionLike) -> Op:
    return Op(LogicOperator.EQUIV, (as_expression(p), as_expression(q)))


# =============================================================================
# Two-variable constraint templates
# =============================================================================

def always(x: str) -> LogicExpression:
    """X is always present."""
    return Var(x)


def never(x: str) -> LogicExpression:
    """X is never present."""
    return logic_not(x)


def if_then(x: str, y: str) -> LogicExpression:
    """If X is present then Y is present."""
    return logic_implies(x, y)


def if_then_not(x: str, y: str) -> LogicExpression:
    """If X is present then Y is absent."""
    return logic_implies(x, logic_not(y))


class ConstraintPattern(Enum):
    """Constraint templates offered to the editor shell."""
    X_ENABLED = "always"
    X_DISABLED = "never"
    IF_X_THEN_Y = "if_then"
    IF_X_NO_Y = "if_then_not"

    @property
    def variable_count(self) -> int:
        if self in (ConstraintPattern.X_ENABLED, ConstraintPattern.X_DISABLED):
            return 1
        return 2


def pattern_to_expression(pattern: ConstraintPattern, names: List[str]) -> LogicExpression:
    """
    Build a constraint from a template and the chosen feature names.

    Extra names beyond what the pattern needs are ignored.

    Raises:
        ValueError: If fewer names than the pattern needs are given
    """
    if len(names) < pattern.variable_count:
        raise ValueError(f"missing variables for pattern {pattern.value}: {names}")
    if pattern is ConstraintPattern.X_ENABLED:
        return always(names[0])
    if pattern is ConstraintPattern.X_DISABLED:
        return never(names[0])
    if pattern is ConstraintPattern.IF_X_THEN_Y:
        return if_then(names[0], names[1])
    return if_then_not(names[0], names[1])


# =============================================================================
# Rendering and inspection
# =============================================================================

UNICODE_SYMBOLS: Dict[LogicOperator, str] = {
    LogicOperator.NOT: "¬",
    LogicOperator.AND: "∧",
    LogicOperator.OR: "∨",
    LogicOperator.IMPLIES: "⇒",
    LogicOperator.EQUIV: "⇔",
}

ASCII_SYMBOLS: Dict[LogicOperator, str] = {
    LogicOperator.NOT: "not",
    LogicOperator.AND: "and",
    LogicOperator.OR: "or",
    LogicOperator.IMPLIES: "implies",
    LogicOperator.EQUIV: "equiv",
}


def _wrap(text: str) -> str:
    # compound operands are the only renderings that contain whitespace
    return f"({text})" if any(ch.isspace() for ch in text) else text


def expression_to_string(
    expr: LogicExpression,
    symbols: Dict[LogicOperator, str] = UNICODE_SYMBOLS,
) -> str:
    """
    Render an expression for manual reading.

    Leaves render as their name, NOT as a prefix and binary
    operators infix. Operands are parenthesized only when their own
    rendering contains whitespace.

    Example:
        >>> expression_to_string(if_then_not("a", "b"), ASCII_SYMBOLS)
        'a implies (not b)'
    """
    if isinstance(expr, Var):
        return expr.name
    if isinstance(expr, Op):
        op = symbols[expr.operator]
        p = _wrap(expression_to_string(expr.operands[0], symbols))
        if expr.operator is LogicOperator.NOT:
            return f"{op} {p}"
        q = _wrap(expression_to_string(expr.operands[1], symbols))
        return f"{p} {op} {q}"
    raise TypeError(f"Unsupported expression type: {type(expr)}")


def referenced_features(expr: LogicExpression) -> Set[str]:
    """Collect every feature name an expression refers to."""
    if isinstance(expr, Var):
        return {expr.name}
    if isinstance(expr, Op):
        names: Set[str] = set()
        for operand in expr.operands:
            names.update(referenced_features(operand))
        return names
    raise TypeError(f"Unsupported expression type: {type(expr)}")


def expression_depth(expr: LogicExpression) -> int:
    if isinstance(expr, Op):
        return 1 + max(expression_depth(operand) for operand in expr.operands)
    return 0


def all_referenced_features(constraints: Iterable[LogicExpression]) -> Set[str]:
    names: Set[str] = set()
    for expr in constraints:
        names.update(referenced_features(expr))
    return names
