"""End-to-end submission chain: local store + in-memory SQLite + mocked Claude."""
from __future__ import annotations

from unittest.mock import MagicMock

import anthropic
import httpx
import pytest
from sqlalchemy import func, select

from analysis.classifier import NO_STRUCTURED_MESSAGE, HairAnalysisClassifier
from analysis.errors import FailureCode
from analysis.pipeline import AnalysisSubmission, build_storage_key, submit_analysis, upload_photos
from components.auth import AuthContext
from components.capture_wizard import ANALYZING, ERROR, RESULTS, REVIEW, CaptureWizard
from storage.models import AnalysisPhoto, AnalysisSession
from storage.object_store import StorageError
from conftest import TickingClock, analysis_payload, filled_slots, text_message, tool_message

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _count(session_factory, model) -> int:
    with session_factory() as db:
        return db.scalar(select(func.count()).select_from(model))


@pytest.fixture
def client():
    client = MagicMock()
    client.messages.create.return_value = tool_message(analysis_payload())
    return client


@pytest.fixture
def submission(store, client, repository):
    classifier = HairAnalysisClassifier(client=client, fetch_image=store.fetch)
    return AnalysisSubmission(store, classifier, repository, clock=TickingClock())


def test_storage_key_layout():
    assert build_storage_key("user-1", 1700000000123, "left_temple", "jpg") == "user-1/1700000000123_left_temple.jpg"


def test_three_photos_make_one_session_and_three_photo_rows(submission, auth, session_factory, png_bytes):
    slots = filled_slots(["top", "hairline", "crown"], png_bytes)
    outcome = submission.run(auth, slots)

    assert outcome.ok, outcome.failure
    assert outcome.result.overall_score == 72
    assert _count(session_factory, AnalysisSession) == 1
    assert _count(session_factory, AnalysisPhoto) == 3
    assert [p.angle for p in outcome.photos] == ["top", "hairline", "crown"]


def test_classifier_sees_each_uploaded_photo(submission, client, auth, png_bytes):
    submission.run(auth, filled_slots(["top", "crown"], png_bytes))
    content = client.messages.create.call_args.kwargs["messages"][0]["content"]
    assert len([c for c in content if c["type"] == "image"]) == 2


def test_second_analysis_sends_previous_scores(submission, client, auth, png_bytes):
    submission.run(auth, filled_slots(["top", "crown"], png_bytes))
    submission.run(auth, filled_slots(["top", "crown"], png_bytes))
    system = client.messages.create.call_args.kwargs["system"]
    assert "Previous analysis scores" in system
    assert "Overall: 72/100" in system


def test_signed_out_user_gets_auth_failure(submission, client, png_bytes):
    outcome = submission.run(AuthContext.signed_out(), filled_slots(["top", "crown"], png_bytes))
    assert outcome.failure.code is FailureCode.AUTH
    client.messages.create.assert_not_called()


def test_upload_failure_stops_at_the_failing_photo(store, user, png_bytes):
    store_upload = store.upload
    calls = []

    def flaky_upload(bucket, key, data, content_type):
        calls.append(key)
        if "_hairline." in key:
            raise StorageError("disk full")
        store_upload(bucket, key, data, content_type)

    store.upload = flaky_upload
    slots = filled_slots(["top", "hairline", "crown"], png_bytes)
    outcome = upload_photos(store, user.id, slots, clock=TickingClock())

    assert not outcome.ok
    assert outcome.failure.code is FailureCode.UPLOAD
    assert outcome.failure.message == "Failed to upload Hairline photo"
    assert len(calls) == 2


def test_upload_failure_writes_nothing(submission, store, auth, client, session_factory, png_bytes):
    def broken_upload(bucket, key, data, content_type):
        raise StorageError("network down")

    store.upload = broken_upload
    outcome = submission.run(auth, filled_slots(["top", "crown"], png_bytes))
    assert outcome.failure.code is FailureCode.UPLOAD
    assert _count(session_factory, AnalysisSession) == 0
    client.messages.create.assert_not_called()


def test_unsigned_photo_is_left_out(store, user, png_bytes):
    store.create_signed_url = lambda bucket, key, ttl: None if "_top." in key else f"local://{bucket}/{key}"
    outcome = upload_photos(store, user.id, filled_slots(["top", "crown"], png_bytes), clock=TickingClock())
    assert outcome.ok
    assert [p.angle for p in outcome.photos] == ["crown"]


def test_missing_tool_payload_persists_nothing(submission, client, auth, session_factory, png_bytes):
    client.messages.create.return_value = text_message()
    outcome = submission.run(auth, filled_slots(["top", "crown"], png_bytes))
    assert outcome.failure.code is FailureCode.UNKNOWN
    assert outcome.failure.message == NO_STRUCTURED_MESSAGE
    assert _count(session_factory, AnalysisSession) == 0


@pytest.mark.parametrize(
    "status, expected",
    [(429, FailureCode.RATE_LIMIT), (402, FailureCode.CREDITS), (503, FailureCode.UNKNOWN)],
)
def test_gateway_status_codes_are_tagged(submission, client, auth, png_bytes, status, expected):
    client.messages.create.side_effect = anthropic.APIStatusError(
        "gateway", response=httpx.Response(status, request=_REQUEST), body=None
    )
    outcome = submission.run(auth, filled_slots(["top", "crown"], png_bytes))
    assert outcome.failure.code is expected


def test_unexpected_exception_is_tagged_unknown(submission, client, auth, png_bytes):
    client.messages.create.side_effect = RuntimeError("socket closed")
    outcome = submission.run(auth, filled_slots(["top", "crown"], png_bytes))
    assert outcome.failure.code is FailureCode.UNKNOWN


def test_retry_reruns_the_chain_with_the_same_photos(submission, client, auth, session_factory, png_bytes):
    client.messages.create.side_effect = [
        anthropic.RateLimitError("slow down", response=httpx.Response(429, request=_REQUEST), body=None),
        tool_message(analysis_payload(overall_score=80)),
    ]
    wizard = CaptureWizard(filled_slots(["top", "left_temple", "crown"], png_bytes))
    wizard.step = REVIEW
    wizard.submit()

    outcome = submission.run(auth, wizard.slots)
    wizard.fail(outcome.failure)
    assert wizard.step == ERROR
    assert wizard.failure.code is FailureCode.RATE_LIMIT

    wizard.retry()
    assert wizard.step == ANALYZING
    outcome = submission.run(auth, wizard.slots)
    wizard.complete(outcome.result, outcome.session_id)

    assert wizard.step == RESULTS
    assert wizard.result.overall_score == 80
    assert _count(session_factory, AnalysisSession) == 1
    assert _count(session_factory, AnalysisPhoto) == 3
    first_angles = [b for b in client.messages.create.call_args_list[0].kwargs["messages"][0]["content"] if b["type"] == "image"]
    second_angles = [b for b in client.messages.create.call_args_list[1].kwargs["messages"][0]["content"] if b["type"] == "image"]
    assert len(first_angles) == len(second_angles) == 3


def test_submit_analysis_function_matches_submission(store, client, repository, auth, png_bytes):
    classifier = HairAnalysisClassifier(client=client, fetch_image=store.fetch)
    outcome = submit_analysis(auth, filled_slots(["top", "crown"], png_bytes), store, classifier, repository, clock=TickingClock())
    assert outcome.ok
    assert outcome.session_id
