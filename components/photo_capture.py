"""Per-angle image acquisition: camera, gallery or file picker.

Each method returns a validated ImageFile plus a ``data:`` URL preview, or
raises ImageRejected with a notice for the user. Nothing here touches the
wizard; callers only store the photo once it has been accepted.
"""
from __future__ import annotations

import base64
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Dict, List, Optional

from PIL import Image, UnidentifiedImageError

from config import ANGLES, CAPTURE_JPEG_QUALITY, CAPTURE_MAX_SIZE, MAX_UPLOAD_BYTES, SUPPORTED_IMAGE_TYPES


class ImageRejected(ValueError):
    def __init__(self, title: str, description: str) -> None:
        super().__init__(f"{title}: {description}")
        self.title = title
        self.description = description


@dataclass(frozen=True)
class ImageFile:
    name: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return self.name.rsplit(".", 1)[-1].lower() if "." in self.name else "jpg"


@dataclass
class PhotoSlot:
    angle: str
    label: str
    instruction: str
    file: Optional[ImageFile] = None
    preview: Optional[str] = None

    @property
    def filled(self) -> bool:
        return self.file is not None


def empty_slots() -> List[PhotoSlot]:
    return [PhotoSlot(**a) for a in ANGLES]


def build_preview(file: ImageFile) -> str:
    encoded = base64.b64encode(file.data).decode("utf-8")
    return f"data:{file.content_type};base64,{encoded}"


def validate_image_file(name: str, content_type: Optional[str], data: bytes) -> ImageFile:
    content_type = (content_type or "").lower()
    if content_type == "image/jpg":
        content_type = "image/jpeg"
    if not content_type.startswith("image/"):
        raise ImageRejected("Invalid file", "Please upload an image file.")
    if len(data) > MAX_UPLOAD_BYTES:
        raise ImageRejected("File too large", "Please use an image under 10MB.")
    return ImageFile(name=name, content_type=content_type, data=data)


def _reencode_frame(stem: str, data: bytes) -> ImageFile:
    """Fit a frame in CAPTURE_MAX_SIZE and save it as JPEG."""
    img = Image.open(BytesIO(data))
    img = img.convert("RGB")
    img.thumbnail(CAPTURE_MAX_SIZE)
    out = BytesIO()
    img.save(out, format="JPEG", quality=CAPTURE_JPEG_QUALITY)
    return ImageFile(name=f"{stem}.jpg", content_type="image/jpeg", data=out.getvalue())


def _from_device(angle: str, data: bytes, error_title: str, error_hint: str) -> Dict[str, Any]:
    try:
        file = _reencode_frame(angle, data)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageRejected(error_title, error_hint) from exc
    file = validate_image_file(file.name, file.content_type, file.data)
    return {"file": file, "preview": build_preview(file)}


def from_camera(angle: str, data: bytes) -> Dict[str, Any]:
    return _from_device(
        angle, data, "Camera error", "Could not access camera. Try uploading a photo instead."
    )


def from_gallery(angle: str, data: bytes) -> Dict[str, Any]:
    return _from_device(
        angle, data, "Gallery error", "Could not access gallery. Try uploading a file instead."
    )


def from_file(name: str, content_type: Optional[str], data: bytes) -> Dict[str, Any]:
    """Accept a picked file as-is when the model can read it, otherwise convert to JPEG."""
    file = validate_image_file(name, content_type, data)
    if file.content_type not in SUPPORTED_IMAGE_TYPES:
        stem = name.rsplit(".", 1)[0] if "." in name else name
        try:
            file = _reencode_frame(stem or "photo", data)
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise ImageRejected(
                "Unsupported format", "Please upload a JPEG, PNG, WebP or GIF image."
            ) from exc
    return {"file": file, "preview": build_preview(file)}
