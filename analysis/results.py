from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class UploadedPhoto:
    url: str  # short-lived signed URL handed to the classifier
    angle: str
    object_url: str  # permanent reference stored on the photo row


@dataclass(frozen=True)
class PreviousScores:
    overall: int
    density: int
    hairline: int
    crown: int


@dataclass(frozen=True)
class AnalysisResult:
    overall_score: int
    density_score: int
    hairline_score: int
    crown_score: int
    ai_summary: str
    alert_triggered: bool
    comparison_notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
