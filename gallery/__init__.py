"""Gallery core: upload tracking, order merging and interactive reordering."""

from gallery.categories import CategoryBook, find_category
from gallery.order_engine import GalleryOrderEngine, merge_gallery_order
from gallery.previews import PreviewRegistry
from gallery.reorder_controller import GestureState, Rect, ReorderController
from gallery.upload_tracker import UploadTracker

__all__ = [
    "CategoryBook",
    "GalleryOrderEngine",
    "GestureState",
    "PreviewRegistry",
    "Rect",
    "ReorderController",
    "UploadTracker",
    "find_category",
    "merge_gallery_order",
]
