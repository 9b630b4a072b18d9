"""Secure file uploads."""

from .secure_upload import (
    AVATAR,
    BANNER,
    DOCUMENT,
    PRODUCT_IMAGE,
    PRODUCT_VIDEO,
    UPLOAD_PROFILES,
    FileValidationResult,
    SecureUploadService,
    StoredFile,
    UploadProfile,
    calculate_file_hash,
    content_matches_type,
    generate_unique_filename,
    is_duplicate_file,
    read_image_dimensions,
    sanitize_filename,
)

__all__ = [
    "AVATAR",
    "BANNER",
    "DOCUMENT",
    "PRODUCT_IMAGE",
    "PRODUCT_VIDEO",
    "UPLOAD_PROFILES",
    "FileValidationResult",
    "SecureUploadService",
    "StoredFile",
    "UploadProfile",
    "calculate_file_hash",
    "content_matches_type",
    "generate_unique_filename",
    "is_duplicate_file",
    "read_image_dimensions",
    "sanitize_filename",
]
