"""Capability set the gallery core needs from the remote file directory."""

from typing import Callable, Protocol, Sequence

from common.types import Category, LocalFile, RemoteFileRecord, UploadResult

ProgressCallback = Callable[[int], None]


class DirectoryClient(Protocol):
    """
    Remote file directory: files, persisted gallery order and categories.

    Implementations raise the exceptions in common.exceptions:
    ConfigurationError before any network call when unconfigured,
    ConnectivityError on transport failure, RemoteError subclasses on
    non-2xx answers.
    """

    def is_configured(self) -> bool: ...

    async def list_files(self) -> list[RemoteFileRecord]: ...

    async def delete_file(self, key: str) -> bool: ...

    async def upload_one(
        self,
        file: LocalFile,
        categories: Sequence[str],
        on_progress: ProgressCallback | None = None,
    ) -> UploadResult: ...

    async def get_persisted_order(self) -> list[str]: ...

    async def save_persisted_order(self, keys: Sequence[str]) -> bool: ...

    async def list_categories(self) -> list[Category]: ...

    async def create_category(self, title: str) -> Category: ...

    async def delete_category(self, category_id: str) -> bool: ...

    async def save_category_order(self, category_ids: Sequence[str]) -> bool: ...

    async def check_health(self) -> dict: ...
