"""Category list, selection state and the title-based category join."""

from typing import Iterable, Optional, Sequence

from common.constants import DEFAULT_CATEGORY_TITLES
from common.exceptions import DuplicateError, ForbiddenError, NotFoundError, ValidationError
from common.logging_config import get_logger
from common.types import Category, RemoteFileRecord
from gallery.directory import DirectoryClient

logger = get_logger(__name__)


def find_category(categories: Iterable[Category], title: str) -> Optional[Category]:
    """
    Resolve a category label to its Category.

    Entries and files reference categories by title, not id, so renaming
    a category orphans earlier references. Every lookup goes through here.
    """
    for category in categories:
        if category.title == title:
            return category
    return None


def record_has_category(record: RemoteFileRecord, title: str) -> bool:
    return title in record.categories


class CategoryBook:
    """Ordered category list plus the selection used to tag new uploads."""

    def __init__(self, directory: DirectoryClient, default_selection: Sequence[str] = DEFAULT_CATEGORY_TITLES):
        self.directory = directory
        self.categories: list[Category] = []
        self._selected: list[str] = list(default_selection)

    @property
    def selected(self) -> tuple[str, ...]:
        return tuple(self._selected)

    def find(self, title: str) -> Optional[Category]:
        return find_category(self.categories, title)

    def resolve(self, titles: Iterable[str]) -> list[Category]:
        """Map labels to known categories, skipping labels that no longer match."""
        resolved = []
        for title in titles:
            category = self.find(title)
            if category is not None:
                resolved.append(category)
        return resolved

    def toggle(self, title: str) -> bool:
        """
        Toggle a category in the current selection.

        Returns:
            True if the category is selected afterwards
        """
        if title in self._selected:
            self._selected.remove(title)
            return False
        if self.categories and self.find(title) is None:
            raise ValidationError(f"Unknown category: {title}")
        self._selected.append(title)
        return True

    async def load(self) -> list[Category]:
        self.categories = await self.directory.list_categories()
        known = {c.title for c in self.categories}
        self._selected = [t for t in self._selected if t in known]
        logger.info(f"Loaded {len(self.categories)} categories")
        return self.categories

    async def create(self, title: str) -> Category:
        title = title.strip()
        if not title:
            raise ValidationError("Category title cannot be empty")
        if self.find(title) is not None:
            raise DuplicateError(f"Category '{title}' already exists", status_code=409)

        category = await self.directory.create_category(title)
        self.categories.append(category)
        logger.info(f"Created category {category.title} [id={category.id}]")
        return category

    async def delete(self, category_id: str) -> Category:
        category = next((c for c in self.categories if c.id == category_id), None)
        if category is None:
            raise NotFoundError(f"Category not found: {category_id}", status_code=404)
        if category.is_default:
            raise ForbiddenError(f"Cannot delete default category '{category.title}'", status_code=403)

        await self.directory.delete_category(category_id)
        self.categories = [c for c in self.categories if c.id != category_id]
        if category.title in self._selected:
            self._selected.remove(category.title)
        logger.info(f"Deleted category {category.title} [id={category_id}]")
        return category

    async def move(self, from_index: int, to_index: int) -> list[Category]:
        size = len(self.categories)
        if not (0 <= from_index < size and 0 <= to_index < size):
            raise ValidationError(f"Category index out of range (0-{size - 1})")

        reordered = list(self.categories)
        reordered.insert(to_index, reordered.pop(from_index))
        await self.directory.save_category_order([c.id for c in reordered])
        self.categories = reordered
        return self.categories
