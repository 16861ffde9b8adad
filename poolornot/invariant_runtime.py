"""
Runtime invariant enforcement for the evidence pipeline.

Fail-closed: any violated invariant raises InvariantViolation immediately.
Invariant ids are short kebab-case names of the property being checked.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class InvariantViolation(RuntimeError):
    """Raised when a runtime invariant fails."""

    def __init__(self, invariant_id: str, message: str, data: Optional[Dict[str, Any]] = None):
        self.invariant_id = invariant_id
        self.data = data or {}
        super().__init__(f"[InvariantViolation:{invariant_id}] {message} | data={self.data}")


def require_invariant(condition: bool, invariant_id: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
    """Assert an invariant and fail-closed on violation."""

    if condition:
        return
    raise InvariantViolation(invariant_id, message, data=dict(data or {}))
