"""
Media materialization: decode a base64 payload, shrink images, store the file
under a unique name in the upload directory and hand back its public URL.
"""

from __future__ import annotations

import base64
import binascii
import io
import mimetypes
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from relaydesk.exceptions import MediaError
from relaydesk.infra.logging_config import get_logger
from relaydesk.schemas.relay import MediaPayload

logger = get_logger("media_service")

UPLOAD_URL_PREFIX = "/uploads"
DEFAULT_MAX_WIDTH = 800
DEFAULT_JPEG_QUALITY = 80


@dataclass(frozen=True)
class MediaAsset:
    file_name: str
    path: Path
    url: str
    mimetype: str


def _safe_extension(candidate: str) -> Optional[str]:
    candidate = candidate.strip().lower()
    if candidate and candidate.isascii() and candidate.isalnum():
        return candidate
    return None


def extension_for(mimetype: str, filename: Optional[str] = None) -> str:
    """Extension from the original file name, else the mime subtype, else 'bin'."""
    if filename and "." in filename:
        ext = _safe_extension(filename.rsplit(".", 1)[-1])
        if ext:
            return ext
    subtype = mimetype.split("/", 1)[1] if "/" in mimetype else ""
    # image/svg+xml -> svg
    subtype = subtype.split(";", 1)[0].split("+", 1)[0]
    return _safe_extension(subtype) or "bin"


class MediaStore:
    def __init__(
        self,
        upload_dir: str | Path,
        max_width: int = DEFAULT_MAX_WIDTH,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
    ) -> None:
        self.upload_dir = Path(upload_dir)
        self.max_width = max_width
        self.jpeg_quality = jpeg_quality

    def ensure_dir(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def materialize(self, payload: MediaPayload, optimize: bool = True) -> MediaAsset:
        """
        Store a provider media payload. Images are downscaled and re-encoded as
        JPEG when `optimize` is set; everything else is written verbatim.
        """
        raw = self._decode(payload.data)
        mimetype = payload.mimetype or "application/octet-stream"
        ext = extension_for(mimetype)
        if optimize and mimetype.startswith("image/"):
            raw = self._shrink_image(raw)
            mimetype = "image/jpeg"
            ext = "jpeg"
        return self._write(raw, ext, mimetype)

    def store_upload(self, data: bytes, filename: str, mimetype: Optional[str] = None) -> MediaAsset:
        """Store bytes received from the dashboard, keeping the original extension."""
        guessed = mimetype or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        return self._write(data, extension_for(guessed, filename), guessed)

    def store_file(self, payload: MediaPayload) -> MediaAsset:
        """Store a base64 file sent from the dashboard verbatim."""
        raw = self._decode(payload.data)
        return self.store_upload(raw, payload.filename or "", payload.mimetype)

    def _decode(self, data: str) -> bytes:
        if not data:
            raise MediaError("Empty media payload")
        try:
            return base64.b64decode(data, validate=False)
        except (binascii.Error, ValueError) as e:
            raise MediaError(f"Invalid base64 media payload: {e}") from e

    def _shrink_image(self, raw: bytes) -> bytes:
        try:
            with Image.open(io.BytesIO(raw)) as im:
                im = ImageOps.exif_transpose(im).convert("RGB")
                if im.width > self.max_width:
                    height = max(1, round(im.height * self.max_width / im.width))
                    im = im.resize((self.max_width, height), Image.Resampling.LANCZOS)
                buf = io.BytesIO()
                im.save(buf, format="JPEG", quality=self.jpeg_quality, optimize=True)
                return buf.getvalue()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise MediaError(f"Could not transcode image: {e}") from e

    def _write(self, raw: bytes, ext: str, mimetype: str) -> MediaAsset:
        file_name = f"{uuid.uuid4()}.{ext}"
        path = self.upload_dir / file_name
        try:
            self.ensure_dir()
            path.write_bytes(raw)
        except OSError as e:
            raise MediaError(f"Could not store media {file_name}: {e}") from e
        logger.debug("Stored media %s (%s, %d bytes)", file_name, mimetype, len(raw))
        return MediaAsset(
            file_name=file_name,
            path=path,
            url=f"{UPLOAD_URL_PREFIX}/{file_name}",
            mimetype=mimetype,
        )
