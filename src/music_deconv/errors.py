# src/music_deconv/errors.py
"""
Exception types raised by the basis pipeline.

Hard preconditions (bad label columns, malformed cell-size tables) raise
immediately. Soft missingness (empty groups, too few subjects for a
variance) is never an exception; it is carried as NaN in the matrices.
"""

from __future__ import annotations


class MusicDeconvError(Exception):
    """Base class for all package errors."""


class ConfigurationError(MusicDeconvError, ValueError):
    """A user-supplied option (e.g. the cell_size table) is malformed."""


class InvalidInputError(MusicDeconvError, ValueError):
    """The reference data itself is unusable (missing column, shape mismatch, ...)."""


__all__ = ["MusicDeconvError", "ConfigurationError", "InvalidInputError"]
