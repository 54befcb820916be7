"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from common.exceptions import GalleryError, ValidationError
from common.logging_config import get_logger
from common.types import UploadEntry
from cli.config import Config
from cli.models import (
    AddCommand,
    CategoriesCommand,
    CategoryAddCommand,
    CategoryDeleteCommand,
    CategoryMoveCommand,
    ClearCompletedCommand,
    CopyCommand,
    DeleteCommand,
    GalleryCommand,
    MoveCommand,
    QueueCommand,
    RefreshCommand,
    RemoveCommand,
    SaveCommand,
    SelectCommand,
    SetKeyCommand,
    StatusCommand,
    UploadCommand,
)
from cli.session import GallerySession
from cli.utils import collect_image_files, format_entry, format_record

logger = get_logger(__name__)


_session: Optional[GallerySession] = None


def get_session() -> GallerySession:
    """
    Get or create global GallerySession instance.

    Returns:
        GallerySession instance
    """
    global _session
    if _session is None:
        logger.debug("Creating new GallerySession instance")
        config = Config(Path.home() / '.gallery-uploader' / 'config.json')
        _session = GallerySession(config)
    return _session


def resolve_entry(session: GallerySession, entry_ref: str) -> UploadEntry:
    """
    Find a queued entry by 1-based queue position, full id or unique id prefix.

    Raises:
        ValidationError: If no single entry matches
    """
    entries = session.tracker.entries
    if entry_ref.isdigit():
        position = int(entry_ref)
        if 1 <= position <= len(entries):
            return entries[position - 1]
        raise ValidationError(f"No queued file at position {position}")

    matches = [e for e in entries if e.entry_id.startswith(entry_ref)]
    exact = [e for e in matches if e.entry_id == entry_ref]
    if exact:
        return exact[0]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise ValidationError(f"No queued file with id {entry_ref}")
    raise ValidationError(f"Ambiguous id prefix {entry_ref} ({len(matches)} matches)")


def _format_queue(session: GallerySession) -> str:
    entries = session.tracker.entries
    if not entries:
        return "Upload queue is empty."

    counts = session.tracker.counts()
    output = [
        f"Files ({len(entries)})  Pending: {counts['pending']}  Uploaded: {counts['success']}"
        f"  Failed: {counts['error']}\n"
    ]
    output.extend(format_entry(i, entry) for i, entry in enumerate(entries, start=1))
    return '\n'.join(output)


async def handle_add(cmd: AddCommand, session: Optional[GallerySession] = None) -> str:
    """
    Handle 'add' command.

    Args:
        cmd: AddCommand with file_list
        session: Optional GallerySession for dependency injection (testing)

    Returns:
        Summary of queued files and rejected paths
    """
    if session is None:
        session = get_session()
    logger.info(f"Executing add command: {len(cmd.file_list)} path(s)")

    files, errors = collect_image_files(cmd.file_list)
    results = [f"Error: {error}" for error in errors]
    if files:
        entries = session.tracker.add_files(files, session.categories.selected)
        categories = ', '.join(session.categories.selected) or 'none'
        results.append(f"Queued {len(entries)} file(s) [categories: {categories}]")
    elif not errors:
        results.append("No files queued.")
    return '\n'.join(results)


async def handle_queue(cmd: QueueCommand, session: Optional[GallerySession] = None) -> str:
    if session is None:
        session = get_session()
    return _format_queue(session)


async def handle_remove(cmd: RemoveCommand, session: Optional[GallerySession] = None) -> str:
    if session is None:
        session = get_session()
    try:
        entry = resolve_entry(session, cmd.entry_ref)
    except ValidationError as e:
        return f"Error: {e}"
    session.tracker.remove_entry(entry.entry_id)
    return f"Removed: {entry.name}"


async def handle_upload(cmd: UploadCommand, session: Optional[GallerySession] = None) -> str:
    """
    Handle 'upload' command.

    The batch runs in the background so the queue stays editable;
    results arrive as notifications.

    Args:
        cmd: UploadCommand
        session: Optional GallerySession for dependency injection (testing)

    Returns:
        Status message
    """
    if session is None:
        session = get_session()
    pending = session.tracker.pending_count
    if pending == 0:
        return "No pending files to upload."
    if session.upload_running:
        return "An upload is already in progress. Run 'queue' to follow it."

    logger.info(f"Executing upload command: {pending} pending")
    session.start_upload()
    return f"Uploading {pending} file(s) in the background. Run 'queue' to follow progress."


async def handle_clear_completed(cmd: ClearCompletedCommand, session: Optional[GallerySession] = None) -> str:
    if session is None:
        session = get_session()
    cleared = session.tracker.clear_completed()
    return f"Cleared {cleared} completed upload(s)."


async def handle_copy(cmd: CopyCommand, session: Optional[GallerySession] = None) -> str:
    if session is None:
        session = get_session()
    try:
        entry = resolve_entry(session, cmd.entry_ref)
    except ValidationError as e:
        return f"Error: {e}"

    url = session.tracker.copy_url(entry.entry_id)
    if url is None:
        return f"Error: {entry.name} has not been uploaded yet"
    session.clipboard.set_text(url)
    return url


async def handle_gallery(cmd: GalleryCommand, session: Optional[GallerySession] = None) -> str:
    """
    Handle 'gallery' command.

    Loads the gallery on first use, then shows the in-memory order
    (including unsaved moves).

    Args:
        cmd: GalleryCommand with optional category filter
        session: Optional GallerySession for dependency injection (testing)

    Returns:
        Formatted gallery listing
    """
    if session is None:
        session = get_session()
    gallery = session.gallery

    if not gallery.items:
        try:
            await gallery.refresh()
        except GalleryError as e:
            return f"Error loading gallery: {e}\nRun 'refresh' to retry."

    items = gallery.items
    if not items:
        return "No files uploaded yet."

    if cmd.category is None:
        shown = list(enumerate(items, start=1))
    else:
        in_category = {r.key for r in gallery.filter_by_category(cmd.category)}
        shown = [(i, r) for i, r in enumerate(items, start=1) if r.key in in_category]
    if not shown:
        return f"No files in category: {cmd.category}"

    header = f"{len(items)} file(s)"
    if cmd.category is not None:
        header = f"{len(shown)} of {header} in {cmd.category}"
    output = [header + "\n"]
    output.extend(format_record(position, record) for position, record in shown)
    if gallery.dirty:
        output.append("\nOrder has unsaved changes. Run 'save' to keep them.")
    return '\n'.join(output)


async def handle_refresh(cmd: RefreshCommand, session: Optional[GallerySession] = None) -> str:
    if session is None:
        session = get_session()
    try:
        await session.gallery.refresh()
    except GalleryError as e:
        return f"Error loading gallery: {e}"
    return f"Gallery refreshed: {len(session.gallery.items)} file(s)."


async def handle_delete(cmd: DeleteCommand, session: Optional[GallerySession] = None) -> str:
    if session is None:
        session = get_session()
    gallery = session.gallery
    record = gallery.get(cmd.key)
    if record is None:
        return f"Error: No gallery file with key {cmd.key}"
    if record.is_immutable:
        return f"Error: {record.display_name} is a fixed gallery item and cannot be deleted"

    try:
        await gallery.delete(cmd.key)
    except GalleryError as e:
        return f"Failed to delete: {e}"
    return f"Deleted: {record.display_name}\nOrder has unsaved changes. Run 'save' to keep them."


async def handle_move(cmd: MoveCommand, session: Optional[GallerySession] = None) -> str:
    """
    Handle 'move' command by replaying it as a pointer drag and drop.

    Args:
        cmd: MoveCommand with zero-based indices
        session: Optional GallerySession for dependency injection (testing)

    Returns:
        Result message
    """
    if session is None:
        session = get_session()
    size = len(session.gallery.items)
    if not (cmd.from_index < size and cmd.to_index < size):
        return f"Error: Positions must be between 1 and {size}"
    if cmd.from_index == cmd.to_index:
        return "Nothing to move."

    controller = session.reorder
    controller.drag_start(cmd.from_index)
    controller.drag_over(cmd.to_index)
    controller.drop()

    state = "unsaved changes" if session.gallery.dirty else "matches saved order"
    return f"Moved {cmd.from_index + 1} -> {cmd.to_index + 1} ({state})."


async def handle_save(cmd: SaveCommand, session: Optional[GallerySession] = None) -> str:
    if session is None:
        session = get_session()
    if not session.gallery.dirty:
        return "Gallery order already saved."
    try:
        keys = await session.gallery.commit()
    except GalleryError as e:
        return f"Failed to save order: {e}"
    return f"Gallery order saved ({len(keys)} items)."


async def _ensure_categories(session: GallerySession) -> None:
    if not session.categories.categories:
        await session.categories.load()


async def handle_categories(cmd: CategoriesCommand, session: Optional[GallerySession] = None) -> str:
    if session is None:
        session = get_session()
    try:
        await _ensure_categories(session)
    except GalleryError as e:
        return f"Error loading categories: {e}"

    book = session.categories
    if not book.categories:
        return "No categories defined."

    output = [f"{len(book.categories)} categories (* = selected for upload):"]
    for category in book.categories:
        mark = "*" if category.title in book.selected else " "
        default = " (default)" if category.is_default else ""
        output.append(f"  {mark} {category.title}{default}  [id: {category.id}]")
    return '\n'.join(output)


async def handle_select(cmd: SelectCommand, session: Optional[GallerySession] = None) -> str:
    if session is None:
        session = get_session()
    try:
        await _ensure_categories(session)
        for title in cmd.titles:
            session.categories.toggle(title)
    except GalleryError as e:
        return f"Error: {e}"
    selected = ', '.join(session.categories.selected) or 'none'
    return f"Selected categories: {selected}"


async def handle_category_add(cmd: CategoryAddCommand, session: Optional[GallerySession] = None) -> str:
    if session is None:
        session = get_session()
    try:
        await _ensure_categories(session)
        category = await session.categories.create(cmd.title)
    except GalleryError as e:
        return f"Error: {e}"
    return f"Created category: {category.title} [id: {category.id}]"


async def handle_category_delete(cmd: CategoryDeleteCommand, session: Optional[GallerySession] = None) -> str:
    if session is None:
        session = get_session()
    try:
        await _ensure_categories(session)
        category = await session.categories.delete(cmd.category_id)
    except GalleryError as e:
        return f"Error: {e}"
    return f"Deleted category: {category.title}"


async def handle_category_move(cmd: CategoryMoveCommand, session: Optional[GallerySession] = None) -> str:
    if session is None:
        session = get_session()
    try:
        await _ensure_categories(session)
        categories = await session.categories.move(cmd.from_index, cmd.to_index)
    except GalleryError as e:
        return f"Error: {e}"
    return "Category order: " + ', '.join(c.title for c in categories)


async def handle_set_key(cmd: SetKeyCommand, session: Optional[GallerySession] = None) -> str:
    if session is None:
        session = get_session()
    key = cmd.key.strip()
    if not key:
        return "Error: API key cannot be empty"
    session.config.set_api_key(key)
    logger.info("Upload API key updated")
    return f"API key saved to {session.config.config_path}"


async def handle_status(cmd: StatusCommand, session: Optional[GallerySession] = None) -> str:
    """
    Handle 'status' command.

    Shows endpoint and key state, the result of a health check and the
    queue and gallery counts.
    """
    if session is None:
        session = get_session()
    config = session.config
    counts = session.tracker.counts()
    lines = [
        f"Upload API: {config.get_base_url() or 'not set'}",
        f"API key: {'set' if config.get_api_key() else 'not set'}",
    ]
    if config.get_base_url():
        try:
            health = await session.directory.check_health()
            lines.append(f"Server: {health.get('status', 'ok')}")
        except GalleryError as e:
            lines.append(f"Server: unreachable ({e})")
    if not config.is_configured():
        lines.append(f"Warning: uploads disabled until api_url and api_key are set in {config.config_path}")
    lines.append(
        f"Queue: {counts['pending']} pending, {counts['uploading']} uploading, "
        f"{counts['success']} uploaded, {counts['error']} failed"
    )
    lines.append(f"Gallery: {len(session.gallery.items)} item(s)"
                 + (", unsaved order changes" if session.gallery.dirty else ""))
    return '\n'.join(lines)
