"""Centralized configuration for Manetain.

Single source of truth for scalp angles, upload limits, failure guidance and
listing enums, plus the environment-backed settings for the datastore, object
storage and the AI classifier. Every module that needs one of these values
should import it from here.
"""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

# ── Capture angles (fixed order) ──────────────────────────────────────
# Used by: photo capture, capture wizard, upload stage, history labels.

ANGLES = [
    {
        "angle": "top",
        "label": "Top of Head",
        "instruction": "Hold the camera directly above your head, about 12 inches away. Part your hair naturally.",
    },
    {
        "angle": "hairline",
        "label": "Hairline",
        "instruction": "Face the camera and pull your hair back. Capture your full frontal hairline clearly.",
    },
    {
        "angle": "left_temple",
        "label": "Left Temple",
        "instruction": "Turn your head to show the left temple area. Keep the camera at eye level.",
    },
    {
        "angle": "right_temple",
        "label": "Right Temple",
        "instruction": "Turn your head to show the right temple area. Keep the camera at eye level.",
    },
    {
        "angle": "crown",
        "label": "Crown",
        "instruction": "Tilt your head forward and photograph the crown area from above and slightly behind.",
    },
]

ANGLE_NAMES = [a["angle"] for a in ANGLES]
ANGLE_SET = set(ANGLE_NAMES)

# Short labels for history thumbnails
ANGLE_LABELS = {
    "top": "Top",
    "hairline": "Hairline",
    "left_temple": "Left Temple",
    "right_temple": "Right Temple",
    "crown": "Crown",
}

# ── Capture limits ─────────────────────────────────────────────────────

MIN_PHOTOS_TO_SUBMIT = 2
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# Camera/gallery frames are re-encoded to fit this box
CAPTURE_MAX_SIZE = (1200, 900)
CAPTURE_JPEG_QUALITY = 90

# Media types the vision model accepts; anything else is converted to JPEG
SUPPORTED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}

# ── Storage ────────────────────────────────────────────────────────────

PHOTO_BUCKET = "analysis-photos"
SIGNED_URL_TTL_SECONDS = 600

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")
STORAGE_DIR = Path(os.getenv("STORAGE_DIR", str(BASE_DIR / "data" / "storage")))
STORAGE_SIGNING_SECRET = os.getenv("STORAGE_SIGNING_SECRET", "change-me-in-production")
S3_BUCKET_PREFIX = os.getenv("S3_BUCKET_PREFIX", "")
FETCH_TIMEOUT_SECONDS = int(os.getenv("FETCH_TIMEOUT_SECONDS", "25"))

# ── Datastore ──────────────────────────────────────────────────────────

DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'manetain.db'}")

# ── AI classifier ──────────────────────────────────────────────────────

ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-5-20250929")
ANALYSIS_TOOL_NAME = "submit_hair_analysis"
SCORE_FIELDS = ["overall_score", "density_score", "hairline_score", "crown_score"]

# ── Failure taxonomy (user-facing copy) ────────────────────────────────

FAILURE_GUIDANCE = {
    "rate_limit": {
        "title": "Too many requests",
        "hint": "The analysis service is busy. Wait a moment and try again.",
    },
    "credits": {
        "title": "Analysis temporarily unavailable",
        "hint": "The analysis service has run out of credits. Please contact support.",
    },
    "auth": {
        "title": "Session expired",
        "hint": "Please sign in again to continue.",
    },
    "upload": {
        "title": "Upload failed",
        "hint": "Check your connection and make sure each photo is under 10MB.",
    },
    "unknown": {
        "title": "Analysis failed",
        "hint": "Something went wrong. Please try again.",
    },
}

# ── Profile + auth ─────────────────────────────────────────────────────

HAIR_TYPES = ["straight", "wavy", "curly", "coily", "thinning"]
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128
EMAIL_MAX_LENGTH = 255
NAME_MAX_LENGTH = 100

# ── Treatments + specialists listings ──────────────────────────────────

TREATMENT_CATEGORIES = ["topical", "supplement", "lifestyle", "professional"]
LEVELS = ["low", "medium", "high"]
COST_LABELS = {"low": "$", "medium": "$$", "high": "$$$"}
COMMITMENT_LABELS = {"low": "Low effort", "medium": "Regular", "high": "High effort"}

TREATMENTS_PATH = BASE_DIR / "data" / "treatments.json"
CLINICS_PATH = BASE_DIR / "data" / "clinics.json"

# ── Logging ────────────────────────────────────────────────────────────

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
