"""
Local-disk storage for profile pictures and resumes.

Files are stored under `<upload_dir>/<kind>/` with a random name that
keeps only the original extension. Paths handed back to callers are
relative to the upload directory so they can be served under `/uploads`.
"""

import logging
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from jobmarket.core.errors import ValidationFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadKind:
    directory: str
    extensions: frozenset
    content_types: frozenset


PROFILE_PICTURE = UploadKind(
    directory="profile_pictures",
    extensions=frozenset({"jpg", "jpeg", "png", "gif"}),
    content_types=frozenset({"image/jpeg", "image/png", "image/gif"}),
)

RESUME = UploadKind(
    directory="resumes",
    extensions=frozenset({"pdf", "doc", "docx"}),
    content_types=frozenset({
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }),
)


def get_safe_filename(filename: str) -> str:
    """Generate a safe filename while preserving extension."""
    ext = Path(filename).suffix.lower()
    return f"{secrets.token_urlsafe(16)}{ext}"


class UploadStore:
    """Validate and persist uploaded files on local disk."""

    def __init__(self, root: Path, max_bytes: int):
        self.root = Path(root)
        self.max_bytes = max_bytes

    def ensure_dirs(self) -> None:
        for kind in (PROFILE_PICTURE, RESUME):
            (self.root / kind.directory).mkdir(parents=True, exist_ok=True)

    def validate(self, file: UploadFile, kind: UploadKind) -> None:
        """Validate uploaded file."""
        if not file.filename:
            raise ValidationFailed("No file uploaded")

        ext = Path(file.filename).suffix.lower().lstrip(".")
        if ext not in kind.extensions:
            raise ValidationFailed(
                f"File type '{ext}' not allowed. Allowed: {', '.join(sorted(kind.extensions))}"
            )

        if file.content_type and file.content_type not in kind.content_types:
            raise ValidationFailed(f"Content type '{file.content_type}' not allowed")

    async def save(self, file: UploadFile, kind: UploadKind) -> str:
        """
        Store an upload and return its path relative to the upload root.

        Raises:
            ValidationFailed: Wrong type, empty, or larger than the size limit
        """
        self.validate(file, kind)

        content = await file.read()
        if not content:
            raise ValidationFailed("Uploaded file is empty")
        if len(content) > self.max_bytes:
            raise ValidationFailed(
                f"File too large. Maximum size is {self.max_bytes // (1024 * 1024)} MB"
            )

        relative = Path(kind.directory) / get_safe_filename(file.filename)
        storage_path = self.root / relative
        storage_path.parent.mkdir(parents=True, exist_ok=True)
        await run_in_threadpool(storage_path.write_bytes, content)

        logger.info("Stored %s upload (%d bytes)", kind.directory, len(content))
        return relative.as_posix()

    def delete(self, relative_path: Optional[str]) -> None:
        """Remove a stored file. Missing files and foreign paths are ignored."""
        if not relative_path:
            return

        path = (self.root / relative_path).resolve()
        if self.root.resolve() not in path.parents:
            logger.warning("Refusing to delete path outside upload dir: %s", relative_path)
            return

        path.unlink(missing_ok=True)
