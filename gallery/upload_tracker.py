"""Tracks selected files through pending -> uploading -> success/error."""

import asyncio
from typing import Any, Awaitable, Callable, Iterable, Optional, Sequence

from common.constants import (
    COPIED_RESET_SECONDS,
    INITIAL_UPLOAD_PROGRESS,
    MAX_IN_FLIGHT_PROGRESS,
)
from common.exceptions import GalleryError
from common.logging_config import get_logger
from common.types import (
    LocalFile,
    Notification,
    UploadEntry,
    UploadStatus,
    generate_entry_id,
)
from gallery.directory import DirectoryClient
from gallery.previews import PreviewRegistry

logger = get_logger(__name__)

Scheduler = Callable[[float, Callable[[], None]], Any]
Notifier = Callable[[Notification], None]


def _loop_call_later(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


class UploadTracker:
    """
    Owns the upload entries and drives each through its state machine.

    Uploads run strictly one at a time in insertion order. Removing,
    clearing or copying other entries is allowed while an upload is
    suspended on the network.
    """

    def __init__(
        self,
        directory: DirectoryClient,
        previews: Optional[PreviewRegistry] = None,
        notify: Optional[Notifier] = None,
        on_batch_complete: Optional[Callable[[], Awaitable[Any]]] = None,
        call_later: Optional[Scheduler] = None,
    ):
        """
        Initialize the tracker.

        Args:
            directory: Remote file directory used for uploads
            previews: Registry issuing preview handles (a private one if None)
            notify: Callback receiving transient notifications
            on_batch_complete: Coroutine function started (not awaited) after each batch
            call_later: Timer scheduler, defaults to the running loop's call_later
        """
        self.directory = directory
        self.previews = previews or PreviewRegistry()
        self._notify_callback = notify
        self.on_batch_complete = on_batch_complete
        self._call_later = call_later or _loop_call_later
        self._entries: dict[str, UploadEntry] = {}
        self._uploading = False
        self._background: set[asyncio.Task] = set()

    @property
    def entries(self) -> list[UploadEntry]:
        return list(self._entries.values())

    @property
    def is_uploading(self) -> bool:
        return self._uploading

    @property
    def background_tasks(self) -> set[asyncio.Task]:
        return set(self._background)

    def get(self, entry_id: str) -> Optional[UploadEntry]:
        return self._entries.get(entry_id)

    def counts(self) -> dict[str, int]:
        counts = {status.value: 0 for status in UploadStatus}
        for entry in self._entries.values():
            counts[entry.status.value] += 1
        return counts

    @property
    def pending_count(self) -> int:
        return self.counts()[UploadStatus.PENDING.value]

    @property
    def success_count(self) -> int:
        return self.counts()[UploadStatus.SUCCESS.value]

    def add_files(self, files: Iterable[LocalFile], current_categories: Sequence[str]) -> list[UploadEntry]:
        """
        Create one pending entry per file, appended after existing entries.

        Args:
            files: Selected files
            current_categories: Category titles selected right now (snapshotted)

        Returns:
            The newly created entries in selection order
        """
        snapshot = tuple(current_categories)
        created = []
        for file in files:
            entry = UploadEntry(
                entry_id=generate_entry_id(),
                source=file,
                preview=self.previews.create(file),
                categories=snapshot,
            )
            while entry.entry_id in self._entries:
                entry.entry_id = generate_entry_id()
            self._entries[entry.entry_id] = entry
            created.append(entry)

        logger.info(f"Added {len(created)} file(s) to upload queue [categories={list(snapshot)}]")
        return created

    def remove_entry(self, entry_id: str) -> bool:
        entry = self._entries.pop(entry_id, None)
        if entry is None:
            logger.debug(f"Remove ignored, unknown entry [entry_id={entry_id}]")
            return False
        self._release_preview(entry)
        logger.info(f"Removed {entry.name} from upload queue [entry_id={entry_id}]")
        return True

    def clear_completed(self) -> int:
        completed = [e for e in self._entries.values() if e.status is UploadStatus.SUCCESS]
        for entry in completed:
            self._release_preview(entry)
            del self._entries[entry.entry_id]
        logger.info(f"Cleared {len(completed)} completed upload(s)")
        return len(completed)

    def copy_url(self, entry_id: str) -> Optional[str]:
        """
        Mark an uploaded entry as copied and schedule the flag reset.

        Returns:
            The entry's remote URL, or None if the entry has no URL to copy
        """
        entry = self._entries.get(entry_id)
        if entry is None or entry.status is not UploadStatus.SUCCESS or not entry.remote_url:
            return None

        entry.copied = True
        self._call_later(COPIED_RESET_SECONDS, lambda: self._reset_copied(entry_id))
        self._notify("URL copied to clipboard!")
        return entry.remote_url

    def _reset_copied(self, entry_id: str) -> None:
        entry = self._entries.get(entry_id)
        if entry is not None:
            entry.copied = False

    async def upload_all_pending(self) -> int:
        """
        Upload every pending entry sequentially.

        A failed entry keeps its error message and the batch moves on.
        When the batch finishes, on_batch_complete is started in the
        background.

        Returns:
            Number of entries uploaded successfully
        """
        pending = [e for e in self._entries.values() if e.status is UploadStatus.PENDING]
        if not pending:
            return 0
        if self._uploading:
            logger.warning("Upload batch already running, ignoring request")
            return 0
        if not self.directory.is_configured():
            logger.error("Upload aborted: upload API not configured")
            self._notify("Upload API not configured. Set api_url and api_key in the config file.", "error")
            return 0

        self._uploading = True
        succeeded = 0
        failed = 0
        logger.info(f"Starting upload batch of {len(pending)} file(s)")
        try:
            for entry in pending:
                if self._entries.get(entry.entry_id) is not entry or entry.status is not UploadStatus.PENDING:
                    continue
                if await self._upload_entry(entry):
                    succeeded += 1
                else:
                    failed += 1
        finally:
            self._uploading = False

        logger.info(f"Upload batch finished [succeeded={succeeded}, failed={failed}]")
        if succeeded:
            self._notify(f"Successfully uploaded {succeeded} file(s)!")
        if failed:
            self._notify(f"{failed} file(s) failed to upload", "error")

        self._start_batch_complete()
        return succeeded

    async def _upload_entry(self, entry: UploadEntry) -> bool:
        entry.status = UploadStatus.UPLOADING
        entry.progress = INITIAL_UPLOAD_PROGRESS
        logger.debug(f"Uploading {entry.name} [entry_id={entry.entry_id}]")

        try:
            result = await self.directory.upload_one(
                entry.source, entry.categories, self._progress_callback(entry)
            )
        except GalleryError as e:
            entry.status = UploadStatus.ERROR
            entry.error = str(e)
            logger.warning(f"Upload failed for {entry.name}: {e} [entry_id={entry.entry_id}]")
            return False
        except Exception as e:
            entry.status = UploadStatus.ERROR
            entry.error = str(e)
            logger.error(f"Unexpected upload error for {entry.name}: {e}", exc_info=True)
            return False

        entry.status = UploadStatus.SUCCESS
        entry.progress = 100
        entry.remote_url = result.url
        logger.info(f"Uploaded {entry.name} [key={result.key}]")
        return True

    def _progress_callback(self, entry: UploadEntry) -> Callable[[int], None]:
        def on_progress(value: int) -> None:
            if entry.status is not UploadStatus.UPLOADING:
                return
            value = min(int(value), MAX_IN_FLIGHT_PROGRESS)
            if value > entry.progress:
                entry.progress = value
        return on_progress

    def _start_batch_complete(self) -> None:
        if self.on_batch_complete is None:
            return
        task = asyncio.create_task(self.on_batch_complete())
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Gallery refresh after upload failed: {error}")

    def close(self) -> None:
        """Release every remaining preview handle and forget all entries."""
        for entry in self._entries.values():
            self._release_preview(entry)
        self._entries.clear()

    def _release_preview(self, entry: UploadEntry) -> None:
        if entry.preview is not None:
            self.previews.release(entry.preview)
            entry.preview = None

    def _notify(self, message: str, kind: str = "success") -> None:
        if self._notify_callback is not None:
            self._notify_callback(Notification(message=message, kind=kind))
