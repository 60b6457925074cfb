"""Exceptions raised by the progression services.

Routes translate these into HTTP responses; services never raise HTTPException.
"""

from typing import List, Optional


class ProgressionError(Exception):
    """Base exception for progression engine errors"""
    pass


class InputError(ProgressionError):
    """Malformed or missing input, or configuration out of range"""
    pass


class NotFoundError(InputError):
    """Unknown tournament or match"""
    pass


class PreconditionError(ProgressionError):
    """Operation attempted before its prerequisites are satisfied"""

    def __init__(self, message: str, unfinished_match_ids: Optional[List[int]] = None):
        super().__init__(message)
        self.unfinished_match_ids = list(unfinished_match_ids or [])


class ValidationError(ProgressionError):
    """Match result rejected before persistence"""
    pass


class ConsistencyError(ProgressionError):
    """Derived state violates an engine invariant; the transaction is aborted"""
    pass
