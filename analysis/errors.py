"""Failure taxonomy for the capture → upload → analyze → persist chain.

Every failure that can reach the Error step carries an explicit FailureCode
set where the failure happens. Callers read the tag; message text is for
display only and is never parsed.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict

from config import FAILURE_GUIDANCE


class FailureCode(str, Enum):
    RATE_LIMIT = "rate_limit"
    CREDITS = "credits"
    AUTH = "auth"
    UPLOAD = "upload"
    UNKNOWN = "unknown"


class AnalysisFailure(Exception):
    def __init__(self, code: FailureCode, message: str) -> None:
        super().__init__(message)
        self.code = FailureCode(code)
        self.message = message

    def __repr__(self) -> str:
        return f"AnalysisFailure(code={self.code.value!r}, message={self.message!r})"


def classify_failure(exc: BaseException) -> FailureCode:
    if isinstance(exc, AnalysisFailure):
        return exc.code
    return FailureCode.UNKNOWN


def as_failure(exc: BaseException) -> AnalysisFailure:
    """Wrap any exception so the Error step always has a tagged failure."""
    if isinstance(exc, AnalysisFailure):
        return exc
    return AnalysisFailure(FailureCode.UNKNOWN, str(exc) or "Something went wrong.")


def guidance_for(code: FailureCode) -> Dict[str, str]:
    return FAILURE_GUIDANCE.get(FailureCode(code).value, FAILURE_GUIDANCE["unknown"])
