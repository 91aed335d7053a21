"""
Error taxonomy for the preview pipeline.

Stages raise these internally; the pipeline catches them at its boundary and
folds them into a `Failed(ErrorInfo)` outcome. None of them is fatal.
"""

from __future__ import annotations

from cardflow.kernel.types import ErrorInfo


class CardflowError(Exception):
    """Base class. Carries the user-facing ErrorInfo."""

    kind = "syntax"

    def __init__(self, message: str, position: int | None = None, suggestion: str = "") -> None:
        super().__init__(message)
        self.info = ErrorInfo(kind=self.kind, message=message, position=position, suggestion=suggestion)


class CardSyntaxError(CardflowError):
    """Strict parse failed. Recoverable: triggers partial recovery."""

    kind = "syntax"


class RecoveryExhausted(CardflowError):
    """No usable fragment could be recovered. The previous preview is kept."""

    kind = "recovery_exhausted"


class StructuralError(CardflowError):
    """Parsed, but required top-level fields are missing or malformed."""

    kind = "structural"
