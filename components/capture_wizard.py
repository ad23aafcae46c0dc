"""Capture wizard state machine.

Steps:
    0      intro
    1..5   one capture step per angle, in ANGLES order
    6      review
    7      analyzing
    8      results
    9      error

The wizard owns the photo slots and the current step only. Running the
submission chain is the caller's job: ``submit()``/``retry()`` move to
ANALYZING, then the caller reports back with ``complete()`` or ``fail()``.
Each attempt is run at most once: the caller ``claim()``s it before starting
the chain, and a rerun that finds the attempt already claimed must not start
another one.
"""
from __future__ import annotations

from typing import List, Optional

from analysis.errors import AnalysisFailure, FailureCode
from analysis.results import AnalysisResult
from components.photo_capture import ImageFile, PhotoSlot, empty_slots
from config import ANGLES, MIN_PHOTOS_TO_SUBMIT

INTRO = 0
FIRST_CAPTURE = 1
LAST_CAPTURE = len(ANGLES)
REVIEW = LAST_CAPTURE + 1
ANALYZING = REVIEW + 1
RESULTS = ANALYZING + 1
ERROR = RESULTS + 1


class WizardStateError(ValueError):
    pass


class SubmissionBlocked(WizardStateError):
    pass


class CaptureWizard:
    def __init__(self, slots: Optional[List[PhotoSlot]] = None) -> None:
        self.slots: List[PhotoSlot] = slots if slots is not None else empty_slots()
        self.step = INTRO
        self.result: Optional[AnalysisResult] = None
        self.session_id: Optional[str] = None
        self.failure: Optional[AnalysisFailure] = None
        self.attempts = 0
        self.claimed_attempt = 0

    # ── Queries ───────────────────────────────────────────────────────

    @property
    def is_capturing(self) -> bool:
        return FIRST_CAPTURE <= self.step <= LAST_CAPTURE

    @property
    def current_slot(self) -> Optional[PhotoSlot]:
        if not self.is_capturing:
            return None
        return self.slots[self.step - 1]

    @property
    def filled_slots(self) -> List[PhotoSlot]:
        return [s for s in self.slots if s.filled]

    @property
    def filled_count(self) -> int:
        return len(self.filled_slots)

    @property
    def can_submit(self) -> bool:
        return self.filled_count >= MIN_PHOTOS_TO_SUBMIT

    @property
    def progress(self) -> float:
        """Fraction of the capture steps completed, for the progress bar."""
        if self.step <= INTRO:
            return 0.0
        return min(1.0, self.step / REVIEW)

    def slot(self, angle: str) -> PhotoSlot:
        for s in self.slots:
            if s.angle == angle:
                return s
        raise KeyError(angle)

    def _require(self, *steps: int) -> None:
        if self.step not in steps:
            raise WizardStateError(f"Not allowed at step {self.step}")

    # ── Slot mutation (acquisition step only) ─────────────────────────

    def set_photo(self, angle: str, file: ImageFile, preview: str) -> None:
        if not (self.is_capturing or self.step == REVIEW):
            raise WizardStateError("Photos can only change while capturing or reviewing.")
        slot = self.slot(angle)
        slot.file = file
        slot.preview = preview

    def remove_photo(self, angle: str) -> None:
        if not (self.is_capturing or self.step == REVIEW):
            raise WizardStateError("Photos can only change while capturing or reviewing.")
        slot = self.slot(angle)
        slot.file = None
        slot.preview = None

    # ── Transitions ───────────────────────────────────────────────────

    def start(self) -> None:
        self._require(INTRO)
        self.step = FIRST_CAPTURE

    def next(self) -> None:
        if not self.is_capturing:
            raise WizardStateError(f"Not allowed at step {self.step}")
        self.step = REVIEW if self.step == LAST_CAPTURE else self.step + 1

    # A missing photo is allowed; skipping is just moving on.
    skip = next

    def back(self) -> None:
        if self.step == REVIEW:
            self.step = LAST_CAPTURE
        elif self.step == FIRST_CAPTURE:
            self.step = INTRO
        elif self.is_capturing:
            self.step -= 1
        else:
            raise WizardStateError(f"Not allowed at step {self.step}")

    def submit(self) -> None:
        if self.step == ANALYZING:
            raise WizardStateError("An analysis is already running.")
        self._require(REVIEW)
        if not self.can_submit:
            raise SubmissionBlocked(
                f"At least {MIN_PHOTOS_TO_SUBMIT} photos are needed, got {self.filled_count}."
            )
        self._begin_attempt()

    def retry(self) -> None:
        self._require(ERROR)
        self._begin_attempt()

    def _begin_attempt(self) -> None:
        self.failure = None
        self.result = None
        self.session_id = None
        self.attempts += 1
        self.step = ANALYZING

    def claim(self) -> bool:
        """Mark the current attempt as started. False if it already was."""
        self._require(ANALYZING)
        if self.claimed_attempt == self.attempts:
            return False
        self.claimed_attempt = self.attempts
        return True

    def interrupted(self) -> None:
        """A claimed attempt never reported back; its outcome is unknown."""
        self.fail(
            AnalysisFailure(
                FailureCode.UNKNOWN,
                "The previous analysis was interrupted. Check your history before trying again.",
            )
        )

    def complete(self, result: AnalysisResult, session_id: Optional[str] = None) -> None:
        self._require(ANALYZING)
        self.result = result
        self.session_id = session_id
        self.step = RESULTS

    def fail(self, failure: AnalysisFailure) -> None:
        self._require(ANALYZING)
        self.failure = failure
        self.step = ERROR

    def edit_photos(self) -> None:
        self._require(ERROR)
        self.failure = None
        self.step = REVIEW

    def restart(self) -> None:
        self._require(RESULTS)
        self.slots = empty_slots()
        self.result = None
        self.session_id = None
        self.attempts = 0
        self.claimed_attempt = 0
        self.step = INTRO
