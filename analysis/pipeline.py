"""Submission chain: upload → sign → analyze → persist.

``upload_photos`` is an ordered stage that returns an UploadOutcome (the
uploaded photos, or the first failure) instead of raising mid-loop.
``submit_analysis`` runs the whole chain and is the single place where
failures are caught and tagged for the Error step.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from analysis.classifier import HairAnalysisClassifier
from analysis.errors import AnalysisFailure, FailureCode, as_failure
from analysis.results import AnalysisResult, UploadedPhoto
from components.auth import AuthContext
from components.photo_capture import PhotoSlot
from config import PHOTO_BUCKET, SIGNED_URL_TTL_SECONDS
from storage.object_store import ObjectStore, StorageError, build_object_store
from storage.repository import AnalysisRepository, PersistenceError

logger = logging.getLogger(__name__)


@dataclass
class UploadOutcome:
    photos: List[UploadedPhoto] = field(default_factory=list)
    failure: Optional[AnalysisFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class SubmissionOutcome:
    result: Optional[AnalysisResult] = None
    session_id: Optional[str] = None
    photos: List[UploadedPhoto] = field(default_factory=list)
    failure: Optional[AnalysisFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.result is not None


def build_storage_key(user_id: str, timestamp_ms: int, angle: str, extension: str) -> str:
    return f"{user_id}/{timestamp_ms}_{angle}.{extension}"


def upload_photos(
    store: ObjectStore,
    user_id: str,
    slots: List[PhotoSlot],
    bucket: str = PHOTO_BUCKET,
    ttl_seconds: int = SIGNED_URL_TTL_SECONDS,
    clock=time.time,
) -> UploadOutcome:
    outcome = UploadOutcome()
    for slot in slots:
        if slot.file is None:
            continue
        key = build_storage_key(user_id, int(clock() * 1000), slot.angle, slot.file.extension)
        try:
            store.upload(bucket, key, slot.file.data, slot.file.content_type)
        except StorageError as exc:
            logger.error("Upload error for %s: %s", slot.angle, exc)
            outcome.failure = AnalysisFailure(FailureCode.UPLOAD, f"Failed to upload {slot.label} photo")
            return outcome

        signed_url = store.create_signed_url(bucket, key, ttl_seconds)
        if not signed_url:
            logger.warning("No signed URL for %s/%s, leaving it out of the analysis", bucket, key)
            continue
        outcome.photos.append(
            UploadedPhoto(url=signed_url, angle=slot.angle, object_url=store.object_url(bucket, key))
        )
    return outcome


class AnalysisSubmission:
    """Everything one submission needs, so Retry can re-run the same chain."""

    def __init__(
        self,
        store: ObjectStore,
        classifier: HairAnalysisClassifier,
        repository: AnalysisRepository,
        clock=time.time,
    ) -> None:
        self.store = store
        self.classifier = classifier
        self.repository = repository
        self.clock = clock

    def run(self, auth: AuthContext, slots: List[PhotoSlot]) -> SubmissionOutcome:
        return submit_analysis(auth, slots, self.store, self.classifier, self.repository, clock=self.clock)


def build_submission(store: Optional[ObjectStore] = None) -> AnalysisSubmission:
    """Wire the configured object store, classifier and repository together."""
    store = store or build_object_store()
    classifier = HairAnalysisClassifier(fetch_image=store.fetch)
    return AnalysisSubmission(store, classifier, AnalysisRepository())


def submit_analysis(
    auth: AuthContext,
    slots: List[PhotoSlot],
    store: ObjectStore,
    classifier: HairAnalysisClassifier,
    repository: AnalysisRepository,
    clock=time.time,
) -> SubmissionOutcome:
    outcome = SubmissionOutcome()
    try:
        if not auth.is_authenticated:
            raise AnalysisFailure(FailureCode.AUTH, "Unauthorized")
        user_id = auth.user.id

        uploaded = upload_photos(store, user_id, slots, clock=clock)
        if not uploaded.ok:
            raise uploaded.failure
        outcome.photos = uploaded.photos

        previous = repository.latest_scores(user_id)
        result = classifier.analyze(uploaded.photos, previous)

        try:
            session_row = repository.record_analysis(user_id, result, uploaded.photos)
        except PersistenceError as exc:
            raise AnalysisFailure(FailureCode.UNKNOWN, str(exc)) from exc

        outcome.result = result
        outcome.session_id = session_row.id
    except Exception as exc:
        failure = as_failure(exc)
        if failure is exc:
            logger.warning("Analysis failed [%s]: %s", failure.code.value, failure.message)
        else:
            logger.exception("Unexpected error during analysis")
        outcome.failure = failure
    return outcome
