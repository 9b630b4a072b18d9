"""Upload validation and product media storage.

Files are checked against an upload profile (content type allow-list, size,
extension, magic bytes and, for images, pixel dimensions read from the file
header) before anything is written to disk.
"""

import hashlib
import os
import re
import secrets
import struct
import time
from pathlib import Path

from fastapi import Request
from loguru import logger
from pydantic import BaseModel, Field

from src.storefront.core.services.security_log import (
    SecurityEventType,
    SecurityLevel,
    SecurityLogger,
)
from src.storefront.runtime.config.config_data import UploadsConfig

MB = 1024 * 1024

IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif")
SVG_TYPE = "image/svg+xml"
DOCUMENT_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
)
VIDEO_TYPES = ("video/mp4", "video/webm")

EXTENSIONS: dict[str, tuple[str, ...]] = {
    "image/jpeg": (".jpg", ".jpeg"),
    "image/jpg": (".jpg", ".jpeg"),
    "image/png": (".png",),
    "image/webp": (".webp",),
    "image/gif": (".gif",),
    SVG_TYPE: (".svg",),
    "application/pdf": (".pdf",),
    "application/msword": (".doc",),
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": (".docx",),
    "text/plain": (".txt",),
    "video/mp4": (".mp4",),
    "video/webm": (".webm",),
}


class UploadProfile(BaseModel):
    name: str
    allowed_types: tuple[str, ...]
    max_size: int
    max_width: int | None = None
    max_height: int | None = None
    require_dimensions: bool = False
    allow_svg: bool = False


PRODUCT_IMAGE = UploadProfile(
    name="product_image",
    allowed_types=IMAGE_TYPES,
    max_size=5 * MB,
    max_width=4096,
    max_height=4096,
    require_dimensions=True,
)
AVATAR = UploadProfile(
    name="avatar",
    allowed_types=IMAGE_TYPES,
    max_size=2 * MB,
    max_width=1024,
    max_height=1024,
    require_dimensions=True,
)
BANNER = UploadProfile(
    name="banner",
    allowed_types=IMAGE_TYPES,
    max_size=5 * MB,
    max_width=1920,
    max_height=1080,
    require_dimensions=True,
)
DOCUMENT = UploadProfile(name="document", allowed_types=DOCUMENT_TYPES, max_size=10 * MB)
PRODUCT_VIDEO = UploadProfile(name="product_video", allowed_types=VIDEO_TYPES, max_size=50 * MB)

UPLOAD_PROFILES = {
    profile.name: profile for profile in (PRODUCT_IMAGE, AVATAR, BANNER, DOCUMENT, PRODUCT_VIDEO)
}


class FileValidationResult(BaseModel):
    valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    sanitized_filename: str = ""
    file_type: str
    file_size: int
    width: int | None = None
    height: int | None = None

    def reject(self, message: str) -> None:
        self.valid = False
        self.errors.append(message)


class StoredFile(BaseModel):
    filename: str
    relative_path: str
    url: str
    size: int
    sha256: str


def sanitize_filename(filename: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9._-]", "_", filename)
    cleaned = re.sub(r"_{2,}", "_", cleaned)
    return cleaned.strip("_").lower()


def generate_unique_filename(original_name: str, user_id: str | None = None) -> str:
    """``<base>_<ms timestamp>_<random><ext>``, prefixed with ``user_<id>_`` when given."""
    base, extension = os.path.splitext(os.path.basename(original_name))
    base = sanitize_filename(base) or "file"
    extension = sanitize_filename(extension)
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    filename = f"{base}_{int(time.time() * 1000)}_{secrets.token_hex(3)}{extension}"
    if user_id:
        filename = f"user_{sanitize_filename(user_id)}_{filename}"
    return filename


def calculate_file_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def is_duplicate_file(data: bytes, existing_hashes: list[str] | set[str]) -> bool:
    return calculate_file_hash(data) in existing_hashes


def content_matches_type(data: bytes, content_type: str) -> bool:
    """Compare the leading magic bytes with the declared content type."""
    if content_type in ("image/jpeg", "image/jpg"):
        return data[:3] == b"\xff\xd8\xff"
    if content_type == "image/png":
        return data[:4] == b"\x89PNG"
    if content_type == "image/webp":
        return data[:4] == b"RIFF" and data[8:12] == b"WEBP"
    if content_type == "image/gif":
        return data[:3] == b"GIF"
    if content_type == SVG_TYPE:
        head = data[:100].decode("utf-8", errors="ignore").strip()
        return head.startswith("<?xml") or head.startswith("<svg")
    if content_type == "application/pdf":
        return data[:4] == b"%PDF"
    if "word" in content_type:
        return data[:4] in (b"\xd0\xcf\x11\xe0", b"PK\x03\x04")
    if content_type == "text/plain":
        return b"\x00" not in data
    if content_type == "video/mp4":
        return data[4:8] == b"ftyp"
    if content_type == "video/webm":
        return data[:4] == b"\x1a\x45\xdf\xa3"
    return False


def read_image_dimensions(data: bytes) -> tuple[int, int] | None:
    """Width and height from a PNG, GIF, WebP or JPEG header, or ``None``."""
    if data[:8] == b"\x89PNG\r\n\x1a\n" and len(data) >= 24:
        width, height = struct.unpack(">II", data[16:24])
        return width, height

    if data[:6] in (b"GIF87a", b"GIF89a") and len(data) >= 10:
        width, height = struct.unpack("<HH", data[6:10])
        return width, height

    if data[:4] == b"RIFF" and data[8:12] == b"WEBP" and len(data) >= 30:
        chunk = data[12:16]
        if chunk == b"VP8X":
            width = int.from_bytes(data[24:27], "little") + 1
            height = int.from_bytes(data[27:30], "little") + 1
            return width, height
        if chunk == b"VP8 ":
            width, height = struct.unpack("<HH", data[26:30])
            return width & 0x3FFF, height & 0x3FFF
        if chunk == b"VP8L":
            bits = int.from_bytes(data[21:25], "little")
            return (bits & 0x3FFF) + 1, ((bits >> 14) & 0x3FFF) + 1
        return None

    if data[:2] == b"\xff\xd8":
        return _jpeg_dimensions(data)
    return None


def _jpeg_dimensions(data: bytes) -> tuple[int, int] | None:
    offset = 2
    length = len(data)
    while offset + 9 < length:
        if data[offset] != 0xFF:
            offset += 1
            continue
        marker = data[offset + 1]
        if marker in (0xD8, 0x01) or 0xD0 <= marker <= 0xD7:
            offset += 2
            continue
        segment_length = struct.unpack(">H", data[offset + 2 : offset + 4])[0]
        # SOF0..SOF15 except DHT, JPG and DAC carry the frame size
        if 0xC0 <= marker <= 0xCF and marker not in (0xC4, 0xC8, 0xCC):
            height, width = struct.unpack(">HH", data[offset + 5 : offset + 9])
            return width, height
        offset += 2 + segment_length
    return None


class SecureUploadService:
    """Validates uploads and stores accepted product media on local disk."""

    def __init__(
        self,
        security_logger: SecurityLogger | None = None,
        config: UploadsConfig | None = None,
    ) -> None:
        self._security_logger = security_logger
        self._config = config or UploadsConfig()

    @property
    def root(self) -> Path:
        return Path(self._config.directory).resolve()

    def _log(
        self,
        event_type: SecurityEventType,
        level: SecurityLevel,
        request: Request | None,
        details: dict,
        user_id: str | None = None,
    ) -> None:
        if self._security_logger is not None:
            self._security_logger.log(event_type, level, request, details, user_id=user_id)

    def validate_file(
        self,
        filename: str,
        content_type: str | None,
        data: bytes,
        profile: UploadProfile,
        request: Request | None = None,
        user_id: str | None = None,
    ) -> FileValidationResult:
        content_type = (content_type or "").lower()
        result = FileValidationResult(
            file_type=content_type,
            file_size=len(data),
            sanitized_filename=sanitize_filename(filename),
        )

        if content_type == SVG_TYPE and not profile.allow_svg:
            result.reject("SVG files are not allowed")
        elif content_type not in profile.allowed_types:
            result.reject(f"File type not allowed: {content_type or 'unknown'}")

        if len(data) == 0:
            result.reject("File is empty")
        elif len(data) > profile.max_size:
            result.reject(
                f"File too large: {len(data) / MB:.2f}MB (maximum {profile.max_size / MB:.2f}MB)"
            )

        extension = os.path.splitext(filename)[1].lower()
        allowed_extensions = {
            ext for allowed in profile.allowed_types for ext in EXTENSIONS.get(allowed, ())
        }
        if extension not in allowed_extensions:
            result.reject(f"File extension not allowed: {extension or 'none'}")
        elif content_type in EXTENSIONS and extension not in EXTENSIONS[content_type]:
            result.warnings.append(f"Extension {extension} does not match {content_type}")

        if result.valid and not content_matches_type(data, content_type):
            result.reject("File content does not match the declared type")

        if result.valid and profile.require_dimensions and content_type.startswith("image/"):
            dimensions = read_image_dimensions(data)
            if dimensions is None:
                result.reject("Could not read the image dimensions")
            else:
                result.width, result.height = dimensions
                if (profile.max_width and result.width > profile.max_width) or (
                    profile.max_height and result.height > profile.max_height
                ):
                    result.reject(
                        f"Image too large: {result.width}x{result.height} "
                        f"(maximum {profile.max_width}x{profile.max_height})"
                    )

        details = {
            "filename": filename,
            "file_type": content_type,
            "file_size": len(data),
            "profile": profile.name,
        }
        if result.valid:
            self._log(
                SecurityEventType.FILE_UPLOAD_SUCCESS,
                SecurityLevel.INFO,
                request,
                details | {"width": result.width, "height": result.height},
                user_id,
            )
        else:
            self._log(
                SecurityEventType.FILE_UPLOAD_REJECTED,
                SecurityLevel.WARNING,
                request,
                details | {"errors": result.errors},
                user_id,
            )
        return result

    def store_product_media(self, product_id: str, filename: str, data: bytes) -> StoredFile:
        """Write ``data`` below ``<uploads>/products/<product_id>/`` under a unique name."""
        safe_product = sanitize_filename(product_id)
        unique_name = generate_unique_filename(filename)
        relative = Path("products") / safe_product / unique_name
        target = self.root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

        logger.info("Stored product media {} ({} bytes)", relative.as_posix(), len(data))
        prefix = self._config.public_prefix.rstrip("/")
        return StoredFile(
            filename=unique_name,
            relative_path=relative.as_posix(),
            url=f"{prefix}/{relative.as_posix()}",
            size=len(data),
            sha256=calculate_file_hash(data),
        )

    def resolve_public_path(self, relative_path: str) -> Path | None:
        """Map a path below the uploads root to a file, refusing anything outside it."""
        if not relative_path or "\x00" in relative_path:
            return None
        candidate = (self.root / relative_path).resolve()
        if not candidate.is_relative_to(self.root):
            return None
        if not candidate.is_file():
            return None
        return candidate

    def delete_media(self, url: str) -> bool:
        prefix = self._config.public_prefix.rstrip("/") + "/"
        if not url.startswith(prefix):
            return False
        path = self.resolve_public_path(url[len(prefix) :])
        if path is None:
            return False
        path.unlink()
        logger.info("Deleted media file {}", url)
        return True
