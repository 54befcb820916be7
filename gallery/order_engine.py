"""Merges the remote listing, immutable entries and the persisted display order."""

import asyncio
from dataclasses import replace
from typing import Iterable, Optional, Sequence

from common.exceptions import GalleryError
from common.logging_config import get_logger
from common.types import RemoteFileRecord
from gallery.categories import record_has_category
from gallery.directory import DirectoryClient

logger = get_logger(__name__)


def merge_gallery_order(
    remote: Sequence[RemoteFileRecord],
    immutable: Sequence[RemoteFileRecord],
    order: Sequence[str],
) -> list[RemoteFileRecord]:
    """
    Produce one ordered, de-duplicated display sequence.

    Remote records win over immutable entries on key collision. With a
    persisted order, records are placed in that order (stale keys skipped)
    and records the order does not mention are prepended in arrival order.
    Without one, remote records come first, then immutable entries.

    Args:
        remote: Records from the live listing, in arrival order
        immutable: Fixed gallery items, in definition order
        order: Persisted key sequence (may be empty)

    Returns:
        Merged list of records
    """
    pool: dict[str, RemoteFileRecord] = {}
    for record in list(remote) + list(immutable):
        if record.key not in pool:
            pool[record.key] = record

    if not order:
        return list(pool.values())

    ordered = []
    for key in order:
        record = pool.pop(key, None)
        if record is not None:
            ordered.append(record)

    return list(pool.values()) + ordered


class GalleryOrderEngine:
    """
    Holds the merged gallery sequence and tracks divergence from the
    last persisted order.
    """

    def __init__(self, directory: DirectoryClient, immutable_entries: Iterable[RemoteFileRecord] = ()):
        self.directory = directory
        self.immutable_entries = [
            r if r.is_immutable else replace(r, is_immutable=True)
            for r in immutable_entries
        ]
        self._items: list[RemoteFileRecord] = []
        self._baseline: list[str] = []
        self._generation = 0
        self.dirty = False
        self.loading = False
        self.error: Optional[str] = None

    @property
    def items(self) -> list[RemoteFileRecord]:
        return list(self._items)

    @property
    def baseline(self) -> list[str]:
        return list(self._baseline)

    def keys(self) -> list[str]:
        return [record.key for record in self._items]

    def get(self, key: str) -> Optional[RemoteFileRecord]:
        for record in self._items:
            if record.key == key:
                return record
        return None

    def filter_by_category(self, title: str) -> list[RemoteFileRecord]:
        return [record for record in self._items if record_has_category(record, title)]

    async def refresh(self) -> bool:
        """
        Re-fetch the listing and persisted order and rebuild the sequence.

        A failed order fetch degrades to no saved order. A failed listing
        sets error and re-raises. Results of a refresh superseded by a
        newer one are discarded.

        Returns:
            True if this refresh's result was applied
        """
        self._generation += 1
        generation = self._generation
        self.loading = True

        try:
            listing, order = await asyncio.gather(
                self.directory.list_files(),
                self.directory.get_persisted_order(),
                return_exceptions=True,
            )
        finally:
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            logger.debug(f"Discarding stale refresh [generation={generation}, latest={self._generation}]")
            return False

        if isinstance(order, BaseException):
            if not isinstance(order, Exception):
                raise order
            logger.warning(f"Could not load saved gallery order, using default order: {order}")
            order = []

        if isinstance(listing, BaseException):
            self.error = str(listing)
            logger.error(f"Gallery refresh failed: {listing}")
            raise listing

        self._items = merge_gallery_order(listing, self.immutable_entries, order)
        self._baseline = self.keys()
        self.dirty = False
        self.error = None
        logger.info(
            f"Gallery refreshed [files={len(listing)}, immutable={len(self.immutable_entries)}, "
            f"saved_order={len(order)}]"
        )
        return True

    async def delete(self, key: str) -> bool:
        """
        Delete a remote file and drop it from the sequence.

        Immutable and unknown keys are rejected without a network call.
        Remote failures propagate and leave the sequence untouched.

        Returns:
            True if the file was deleted
        """
        record = self.get(key)
        if record is None:
            logger.warning(f"Delete rejected, unknown key [key={key}]")
            return False
        if record.is_immutable:
            logger.warning(f"Delete rejected, immutable entry [key={key}]")
            return False

        await self.directory.delete_file(key)

        self._items = [r for r in self._items if r.key != key]
        self.dirty = True
        logger.info(f"Deleted {key} from gallery")
        return True

    def reorder(self, from_index: int, to_index: int) -> bool:
        """Move one element from from_index to to_index."""
        size = len(self._items)
        if not (0 <= from_index < size and 0 <= to_index < size):
            logger.warning(f"Reorder rejected, index out of range [from={from_index}, to={to_index}, size={size}]")
            return False
        if from_index == to_index:
            return False

        record = self._items.pop(from_index)
        self._items.insert(to_index, record)
        self.dirty = self.keys() != self._baseline
        logger.debug(f"Moved {record.key} from {from_index} to {to_index} [dirty={self.dirty}]")
        return True

    async def commit(self) -> list[str]:
        """
        Persist the current order and make it the new baseline.

        On failure the error propagates; order and dirty flag are unchanged.
        Moves made while the save is pending leave the engine dirty.

        Returns:
            The committed key sequence
        """
        keys = self.keys()
        try:
            await self.directory.save_persisted_order(keys)
        except GalleryError as e:
            logger.error(f"Saving gallery order failed: {e}")
            raise

        # the order may have moved again while the save was in flight
        self._baseline = keys
        self.dirty = self.keys() != keys
        logger.info(f"Saved gallery order [items={len(keys)}, dirty={self.dirty}]")
        return keys
