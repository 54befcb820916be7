"""Shared data type definitions (UploadEntry, RemoteFileRecord, Category, etc.)."""

import mimetypes
import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

_ID_ALPHABET = string.ascii_lowercase + string.digits


class UploadStatus(str, Enum):
    """Upload lifecycle: pending -> uploading -> success | error."""
    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class LocalFile:
    """
    A user-selected file on the local filesystem.
    """
    path: Path
    name: str
    size: int
    mime_type: str

    @classmethod
    def from_path(cls, path: Path | str) -> "LocalFile":
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            path=path,
            name=path.name,
            size=path.stat().st_size,
            mime_type=mime_type or "application/octet-stream",
        )

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


@dataclass(frozen=True)
class PreviewHandle:
    """
    Revocable local preview reference owned by one UploadEntry.
    """
    handle_id: str
    uri: str


@dataclass
class UploadEntry:
    """
    One user-selected file tracked through upload.
    """
    entry_id: str
    source: LocalFile
    preview: Optional[PreviewHandle]
    categories: tuple[str, ...]
    status: UploadStatus = UploadStatus.PENDING
    progress: int = 0
    remote_url: Optional[str] = None
    error: Optional[str] = None
    copied: bool = False

    @property
    def name(self) -> str:
        return self.source.name


@dataclass(frozen=True)
class RemoteFileRecord:
    """
    A file present in the backing store, or a fixed immutable gallery item.
    """
    key: str
    url: str
    thumbnail_url: str
    size: Optional[int] = None
    uploaded_at: Optional[datetime] = None
    categories: tuple[str, ...] = ()
    original_name: Optional[str] = None
    is_immutable: bool = False

    @property
    def display_name(self) -> str:
        return self.original_name or self.key.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class Category:
    """
    Gallery category. Default categories cannot be deleted.
    """
    id: str
    title: str
    is_default: bool = False


@dataclass(frozen=True)
class UploadResult:
    """
    Key and public URL returned by a successful upload.
    """
    key: str
    url: str


@dataclass(frozen=True)
class Notification:
    """
    Transient user-visible message (success or error).
    """
    message: str
    kind: str = "success"
    created_at: float = field(default_factory=time.time)


def generate_entry_id() -> str:
    """Time-based id with a random suffix, e.g. '1718000000000-k3j9x0a2b'."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{int(time.time() * 1000)}-{suffix}"
