"""Exception types raised while generating the length tables."""

from __future__ import annotations


class GenerationError(Exception):
    """Base class for every fatal table generation failure."""


class DatabaseError(GenerationError, ValueError):
    """The instruction database is malformed or misses a required field."""


class InvariantViolation(GenerationError, AssertionError):
    """Extracted metadata breaks one of the packing rules of the tables."""


class ConsistencyError(GenerationError, RuntimeError):
    """The compressed table no longer agrees with the dense table."""
