"""Exceptions raised by the analysis core.

Only input-contract violations raise. Analytic shortfalls (too little signal,
no periodicity) are reported through ``TempoStatus`` on the result instead.
"""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for keytempo analysis errors."""


class InvalidInputError(AnalysisError, ValueError):
    """The caller supplied a buffer or configuration the core cannot accept."""


__all__ = ["AnalysisError", "InvalidInputError"]
