"""
Document records produced by the file-storage collaborator.

The service never moves bytes itself: the storage side hands back a URL and the
intake flow keeps {id, name, type, url, uploaded_at}. Type and size limits are
checked here before a document is attached to a draft.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from config import settings

BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class DocumentConstraints:
    allowed_types: tuple[str, ...] = ("image/jpeg", "image/png", "application/pdf")
    max_size_mb: int = 5
    multiple: bool = True

    @classmethod
    def from_settings(cls) -> "DocumentConstraints":
        return cls(
            allowed_types=tuple(settings.allowed_upload_types),
            max_size_mb=settings.upload_max_size_mb,
        )

    @property
    def max_size_bytes(self) -> int:
        return self.max_size_mb * BYTES_PER_MB


def check_document_type(media_type: str, constraints: Optional[DocumentConstraints] = None) -> Optional[str]:
    """Stored document records carry no size, so only the type can be re-checked."""
    constraints = constraints or DocumentConstraints()
    if media_type not in constraints.allowed_types:
        return f"File type not allowed: {media_type}"
    return None


def check_document(
    name: str,
    media_type: str,
    size_bytes: int,
    constraints: Optional[DocumentConstraints] = None,
) -> Optional[str]:
    """Return an error message if the file breaks a constraint, else None."""
    constraints = constraints or DocumentConstraints()
    type_error = check_document_type(media_type, constraints)
    if type_error:
        return type_error
    if size_bytes > constraints.max_size_bytes:
        return f"File too large: {name}"
    return None


def make_document(name: str, media_type: str, url: str, uploaded_at: Optional[datetime] = None) -> dict[str, Any]:
    return {
        "id": f"doc-{uuid.uuid4().hex[:16]}",
        "name": name,
        "type": media_type,
        "url": url,
        "uploaded_at": (uploaded_at or datetime.now(timezone.utc)).isoformat(),
    }


@dataclass
class DocumentBatch:
    """Result of attaching several files: accepted documents plus per-file errors."""

    accepted: list[dict[str, Any]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def collect_documents(
    files: list[dict[str, Any]],
    constraints: Optional[DocumentConstraints] = None,
) -> DocumentBatch:
    """
    files: [{name, type, size, url}] as reported by the storage collaborator.
    Rejected files are skipped and reported; the rest become document records.
    """
    constraints = constraints or DocumentConstraints()
    batch = DocumentBatch()
    for f in files:
        error = check_document(f["name"], f["type"], int(f.get("size") or 0), constraints)
        if error:
            batch.errors.append(error)
            continue
        batch.accepted.append(make_document(f["name"], f["type"], f["url"]))
    return batch
