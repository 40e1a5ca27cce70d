from __future__ import annotations


class MTreeError(Exception):
    """Base class for errors raised by mtreex."""


class DimensionMismatch(MTreeError, ValueError):
    """A coordinate vector does not match the dimension fixed by the tree."""

    def __init__(self, expected: int, actual: int, *, operation: str = "insert") -> None:
        self.expected = int(expected)
        self.actual = int(actual)
        self.operation = operation
        super().__init__(
            f"{operation} expected a {self.expected}-dimensional vector, got {self.actual}."
        )


class ConfigurationError(MTreeError, ValueError):
    """Invalid tree construction arguments or runtime configuration."""


class InvariantViolation(MTreeError, RuntimeError):
    """A node's stored centroid or covering radius no longer bounds its subtree."""


__all__ = [
    "MTreeError",
    "DimensionMismatch",
    "ConfigurationError",
    "InvariantViolation",
]
