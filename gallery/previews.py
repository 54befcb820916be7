"""Registry of local preview handles for selected files."""

import itertools

from common.logging_config import get_logger
from common.types import LocalFile, PreviewHandle

logger = get_logger(__name__)


class PreviewRegistry:
    """Issues revocable preview handles and tracks which are still live."""

    def __init__(self):
        self._counter = itertools.count(1)
        self._live: dict[str, PreviewHandle] = {}
        self.released_count = 0

    def create(self, file: LocalFile) -> PreviewHandle:
        handle = PreviewHandle(
            handle_id=f"preview-{next(self._counter)}",
            uri=file.path.resolve().as_uri(),
        )
        self._live[handle.handle_id] = handle
        logger.debug(f"Created preview {handle.handle_id} for {file.name}")
        return handle

    def release(self, handle: PreviewHandle) -> bool:
        """
        Revoke a preview handle.

        Returns:
            True if the handle was live, False if it was already released
        """
        if self._live.pop(handle.handle_id, None) is None:
            logger.warning(f"Preview {handle.handle_id} already released")
            return False
        self.released_count += 1
        logger.debug(f"Released preview {handle.handle_id}")
        return True

    def is_live(self, handle: PreviewHandle) -> bool:
        return handle.handle_id in self._live

    @property
    def live(self) -> list[PreviewHandle]:
        return list(self._live.values())
