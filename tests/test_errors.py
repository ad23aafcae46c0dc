from __future__ import annotations

from analysis.errors import AnalysisFailure, FailureCode, as_failure, classify_failure, guidance_for


def test_tag_comes_from_the_failure_not_the_message():
    failure = AnalysisFailure(FailureCode.CREDITS, "Rate limit exceeded")
    assert classify_failure(failure) is FailureCode.CREDITS


def test_untagged_exceptions_are_unknown():
    assert classify_failure(RuntimeError("429 Too Many Requests")) is FailureCode.UNKNOWN
    wrapped = as_failure(KeyError("x"))
    assert wrapped.code is FailureCode.UNKNOWN


def test_as_failure_passes_tagged_failures_through():
    failure = AnalysisFailure(FailureCode.AUTH, "Unauthorized")
    assert as_failure(failure) is failure


def test_every_code_has_guidance():
    for code in FailureCode:
        guidance = guidance_for(code)
        assert guidance["title"] and guidance["hint"]
    assert guidance_for("rate_limit")["title"] == "Too many requests"
