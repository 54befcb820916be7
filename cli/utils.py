"""Utility functions for CLI operations."""

from pathlib import Path
from typing import Iterable

from cli.constants import GREEN, RED, RESET, YELLOW
from common.types import LocalFile, RemoteFileRecord, UploadEntry, UploadStatus

STATUS_LABELS = {
    UploadStatus.PENDING: f"{YELLOW}Pending{RESET}",
    UploadStatus.UPLOADING: "Uploading...",
    UploadStatus.SUCCESS: f"{GREEN}Uploaded{RESET}",
    UploadStatus.ERROR: f"{RED}Failed{RESET}",
}


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def collect_image_files(paths: Iterable[str]) -> tuple[list[LocalFile], list[str]]:
    """
    Resolve user-supplied paths to image files.

    Non-image and missing files are reported, not raised, so one bad path
    does not drop the rest of the selection.

    Args:
        paths: File paths as typed by the user

    Returns:
        Tuple of (image files, error messages)
    """
    files = []
    errors = []
    for raw in paths:
        path = Path(raw).expanduser()
        if not path.exists():
            errors.append(f"File not found: {raw}")
            continue
        if not path.is_file():
            errors.append(f"Not a file: {raw}")
            continue
        local = LocalFile.from_path(path)
        if not local.is_image:
            errors.append(f"Not an image: {raw} ({local.mime_type})")
            continue
        files.append(local)
    return files, errors


def format_entry(position: int, entry: UploadEntry) -> str:
    line = f"  {position}. {entry.name} [{STATUS_LABELS[entry.status]}]"
    if entry.status is UploadStatus.UPLOADING:
        line += f" {entry.progress}%"
    line += f"\n     ID: {entry.entry_id}  Size: {format_file_size(entry.source.size)}"
    if entry.categories:
        line += f"  Categories: {', '.join(entry.categories)}"
    if entry.remote_url:
        line += f"\n     URL: {entry.remote_url}"
        if entry.copied:
            line += f" ({GREEN}Copied!{RESET})"
    if entry.status is UploadStatus.ERROR:
        line += f"\n     Error: {entry.error or 'Upload failed'}"
    return line


def format_record(position: int, record: RemoteFileRecord) -> str:
    line = f"  {position}. {record.display_name}"
    if record.is_immutable:
        line += " (fixed)"
    details = [f"Key: {record.key}"]
    if record.size is not None:
        details.append(f"Size: {format_file_size(record.size)}")
    if record.uploaded_at is not None:
        details.append(f"Uploaded: {record.uploaded_at:%b %d, %Y}")
    line += f"\n     {'  '.join(details)}"
    if record.categories:
        shown = ', '.join(record.categories[:2])
        extra = len(record.categories) - 2
        line += f"\n     Categories: {shown}" + (f" +{extra}" if extra > 0 else "")
    return line
