"""Persistence for analysis sessions and their photos.

A session and all of its photo rows are written in one transaction: the
session is flushed first so the photo rows can reference its id, and any
failure rolls back both.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from analysis.results import AnalysisResult, PreviousScores, UploadedPhoto
from storage.database import SessionLocal
from storage.models import AnalysisPhoto, AnalysisSession

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    pass


class AnalysisRepository:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    def latest_scores(self, user_id: str) -> Optional[PreviousScores]:
        with self._session_factory() as db:
            row = db.execute(
                select(
                    AnalysisSession.overall_score,
                    AnalysisSession.density_score,
                    AnalysisSession.hairline_score,
                    AnalysisSession.crown_score,
                )
                .where(AnalysisSession.user_id == user_id)
                .order_by(AnalysisSession.created_at.desc())
                .limit(1)
            ).first()
        if row is None:
            return None
        return PreviousScores(overall=row[0], density=row[1], hairline=row[2], crown=row[3])

    def record_analysis(
        self,
        user_id: str,
        result: AnalysisResult,
        photos: List[UploadedPhoto],
    ) -> AnalysisSession:
        with self._session_factory() as db:
            try:
                session_row = AnalysisSession(
                    user_id=user_id,
                    overall_score=result.overall_score,
                    density_score=result.density_score,
                    hairline_score=result.hairline_score,
                    crown_score=result.crown_score,
                    ai_summary=result.ai_summary,
                    comparison_notes=result.comparison_notes or None,
                    alert_triggered=result.alert_triggered,
                )
                db.add(session_row)
                db.flush()

                for position, photo in enumerate(photos):
                    db.add(
                        AnalysisPhoto(
                            session_id=session_row.id,
                            user_id=user_id,
                            angle=photo.angle,
                            photo_url=photo.object_url,
                            position=position,
                        )
                    )
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("Could not save analysis session for user %s", user_id)
                raise PersistenceError("Could not save analysis results.") from exc

            db.refresh(session_row)
            db.expunge(session_row)
        logger.info("Saved analysis session %s with %d photos", session_row.id, len(photos))
        return session_row

    def list_sessions(self, user_id: str, newest_first: bool = True) -> List[AnalysisSession]:
        order = AnalysisSession.created_at.desc() if newest_first else AnalysisSession.created_at.asc()
        with self._session_factory() as db:
            rows = db.scalars(
                select(AnalysisSession).where(AnalysisSession.user_id == user_id).order_by(order)
            ).all()
            db.expunge_all()
        return list(rows)

    def get_session(self, user_id: str, session_id: str) -> Optional[AnalysisSession]:
        with self._session_factory() as db:
            row = db.scalars(
                select(AnalysisSession).where(
                    AnalysisSession.id == session_id,
                    AnalysisSession.user_id == user_id,
                )
            ).first()
            if row is not None:
                db.expunge(row)
        return row

    def list_photos(self, user_id: str) -> List[AnalysisPhoto]:
        with self._session_factory() as db:
            rows = db.scalars(
                select(AnalysisPhoto)
                .where(AnalysisPhoto.user_id == user_id)
                .order_by(AnalysisPhoto.session_id, AnalysisPhoto.position)
            ).all()
            db.expunge_all()
        return list(rows)

    def photos_for_session(self, user_id: str, session_id: str) -> List[AnalysisPhoto]:
        with self._session_factory() as db:
            rows = db.scalars(
                select(AnalysisPhoto)
                .where(
                    AnalysisPhoto.session_id == session_id,
                    AnalysisPhoto.user_id == user_id,
                )
                .order_by(AnalysisPhoto.position)
            ).all()
            db.expunge_all()
        return list(rows)
