"""Wires the gallery core components to one directory client."""

import asyncio
from typing import Callable, Optional

from prompt_toolkit.clipboard import InMemoryClipboard

from common.logging_config import get_logger
from common.types import Notification
from cli.config import Config
from cli.directory_client import HttpDirectoryClient
from gallery.categories import CategoryBook
from gallery.directory import DirectoryClient
from gallery.order_engine import GalleryOrderEngine
from gallery.previews import PreviewRegistry
from gallery.reorder_controller import ReorderController
from gallery.upload_tracker import UploadTracker

logger = get_logger(__name__)


class GallerySession:
    """Upload queue, gallery order and categories sharing one client."""

    def __init__(self, config: Config, directory: DirectoryClient | None = None):
        self.config = config
        self.directory = directory if directory is not None else HttpDirectoryClient(config)
        self.notifications: list[Notification] = []
        self.clipboard = InMemoryClipboard()
        self.previews = PreviewRegistry()
        self.gallery = GalleryOrderEngine(self.directory, config.get_static_entries())
        self.categories = CategoryBook(self.directory, config.get_default_categories())
        self.tracker = UploadTracker(
            self.directory,
            previews=self.previews,
            notify=self.notifications.append,
            on_batch_complete=self.gallery.refresh,
        )
        self.reorder = ReorderController(self.gallery.reorder)
        self.on_upload_done: Optional[Callable[[], None]] = None
        self._uploads: set[asyncio.Task] = set()

    @property
    def upload_running(self) -> bool:
        return any(not task.done() for task in self._uploads)

    def drain_notifications(self) -> list[Notification]:
        pending = list(self.notifications)
        self.notifications.clear()
        return pending

    def start_upload(self) -> Optional[asyncio.Task]:
        """
        Run the pending batch as a background task.

        Returns:
            The batch task, or None if nothing is pending or a batch is running
        """
        if self.tracker.pending_count == 0 or self.upload_running:
            return None
        task = asyncio.create_task(self.tracker.upload_all_pending())
        self._uploads.add(task)
        task.add_done_callback(self._upload_finished)
        return task

    def _upload_finished(self, task: asyncio.Task) -> None:
        self._uploads.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Upload batch crashed: {error}", exc_info=error)
        if self.on_upload_done is not None:
            self.on_upload_done()

    async def wait_for_uploads(self) -> None:
        if self._uploads:
            await asyncio.gather(*self._uploads, return_exceptions=True)

    async def close(self) -> None:
        """Cancel running uploads and background refreshes, release previews and close the client."""
        uploads = list(self._uploads)
        for task in uploads:
            task.cancel()
        if uploads:
            await asyncio.gather(*uploads, return_exceptions=True)
        for task in self.tracker.background_tasks:
            task.cancel()
        self.tracker.close()
        close = getattr(self.directory, "close", None)
        if close is not None:
            await close()
        logger.info("Gallery session closed")
