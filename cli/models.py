"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class AddCommand:
    """Queue local image files for upload."""

    file_list: tuple[str, ...]
    command: Literal["add"] = "add"


@dataclass(frozen=True)
class QueueCommand:
    """Show the upload queue."""

    command: Literal["queue"] = "queue"


@dataclass(frozen=True)
class RemoveCommand:
    """Remove a queued entry by position or id."""

    entry_ref: str
    command: Literal["remove"] = "remove"


@dataclass(frozen=True)
class UploadCommand:
    """Upload all pending entries."""

    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class ClearCompletedCommand:
    """Drop successfully uploaded entries from the queue."""

    command: Literal["clear-completed"] = "clear-completed"


@dataclass(frozen=True)
class CopyCommand:
    """Copy the URL of an uploaded entry."""

    entry_ref: str
    command: Literal["copy"] = "copy"


@dataclass(frozen=True)
class GalleryCommand:
    """Show the gallery, optionally filtered by category title."""

    category: str | None = None
    command: Literal["gallery"] = "gallery"


@dataclass(frozen=True)
class RefreshCommand:
    """Reload the gallery from the server."""

    command: Literal["refresh"] = "refresh"


@dataclass(frozen=True)
class DeleteCommand:
    """Delete a gallery file by key."""

    key: str
    command: Literal["delete"] = "delete"


@dataclass(frozen=True)
class MoveCommand:
    """Move a gallery item (zero-based indices)."""

    from_index: int
    to_index: int
    command: Literal["move"] = "move"


@dataclass(frozen=True)
class SaveCommand:
    """Persist the current gallery order."""

    command: Literal["save"] = "save"


@dataclass(frozen=True)
class CategoriesCommand:
    """List categories."""

    command: Literal["categories"] = "categories"


@dataclass(frozen=True)
class SelectCommand:
    """Toggle categories in the upload selection."""

    titles: tuple[str, ...]
    command: Literal["select"] = "select"


@dataclass(frozen=True)
class CategoryAddCommand:
    """Create a category."""

    title: str
    command: Literal["category-add"] = "category-add"


@dataclass(frozen=True)
class CategoryDeleteCommand:
    """Delete a category by id."""

    category_id: str
    command: Literal["category-delete"] = "category-delete"


@dataclass(frozen=True)
class CategoryMoveCommand:
    """Move a category in the list (zero-based indices)."""

    from_index: int
    to_index: int
    command: Literal["category-move"] = "category-move"


@dataclass(frozen=True)
class SetKeyCommand:
    """Store the upload API key in the config file."""

    key: str
    command: Literal["set-key"] = "set-key"


@dataclass(frozen=True)
class StatusCommand:
    """Show configuration and queue counts."""

    command: Literal["status"] = "status"


CommandRequest = (
    AddCommand
    | QueueCommand
    | RemoveCommand
    | UploadCommand
    | ClearCompletedCommand
    | CopyCommand
    | GalleryCommand
    | RefreshCommand
    | DeleteCommand
    | MoveCommand
    | SaveCommand
    | CategoriesCommand
    | SelectCommand
    | CategoryAddCommand
    | CategoryDeleteCommand
    | CategoryMoveCommand
    | SetKeyCommand
    | StatusCommand
)
