"""
Exception taxonomy for the feature model engine.

Every failure is synchronous and surfaced to the caller unchanged.
Operations validate their preconditions before mutating anything,
so a raised error means the aggregate was left as it was.
"""


class FeatureModelError(Exception):
    """Base class for all feature model errors."""
    pass


class StructuralError(FeatureModelError):
    """
    Raised when an operation would break the tree or naming invariants.

    Examples:
        - creating or renaming onto an existing feature name
        - removing or deselecting the root feature
        - a parent/child link found inconsistent mid-operation
        - a configuration name that is already taken
    """
    pass


class ParseError(FeatureModelError):
    """Raised when an XML document or snapshot cannot be decoded."""
    pass


class FeatureNotFoundError(FeatureModelError, LookupError):
    """Unknown feature id."""
    pass


class ConfigurationNotFoundError(FeatureModelError, LookupError):
    """Unknown configuration name."""
    pass


class ExpressionArityError(FeatureModelError, ValueError):
    """Raised when a logic operator is built with the wrong operand count."""
    pass
