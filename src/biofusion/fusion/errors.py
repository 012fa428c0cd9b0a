"""Exceptions raised by the fusion core."""

from __future__ import annotations


class FusionError(Exception):
    """Base class for every fusion failure."""


class InvalidInputError(FusionError, ValueError):
    """The modality records cannot be fused as given.

    Raised for an empty record set, duplicate labels, negative or NaN
    uncertainty, reliability outside ``(0, 1]``, mixed value shapes and
    non-finite component values.
    """


class DivisionByZeroError(FusionError, ZeroDivisionError):
    """A weight or a distribution would have to be divided by zero.

    Raised for an uncertainty of exactly ``0`` (before any weight is
    computed) and when the total weight or probability mass is ``0``.
    """
