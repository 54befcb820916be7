"""Turns pointer drags and touch long-press drags into reorder(from, to) calls."""

import asyncio
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from common.constants import TOUCH_HOLD_SECONDS, TOUCH_MOVE_THRESHOLD_PX
from common.logging_config import get_logger

logger = get_logger(__name__)


class GestureState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    DRAGGING = "dragging"


class InputModality(str, Enum):
    POINTER = "pointer"
    TOUCH = "touch"


@dataclass(frozen=True)
class Rect:
    """Rendered bounding box of one gallery item."""
    left: float
    top: float
    width: float
    height: float

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.left + self.width and self.top <= y <= self.top + self.height


class ReorderController:
    """
    Single gesture state machine shared by both input modalities.

    Pointer: drag_start -> drag_over* -> drop. Touch: touch_start arms a
    hold timer; moving past the threshold before it fires is a scroll,
    otherwise the gesture becomes a drag hit-tested against the rendered
    item rectangles, and touch_end commits it.
    """

    def __init__(
        self,
        reorder: Callable[[int, int], Any],
        bounds_provider: Optional[Callable[[], Sequence[Rect]]] = None,
        call_later: Optional[Callable[[float, Callable[[], None]], Any]] = None,
        hold_delay: float = TOUCH_HOLD_SECONDS,
        move_threshold: float = TOUCH_MOVE_THRESHOLD_PX,
    ):
        self._reorder = reorder
        self._bounds_provider = bounds_provider or (lambda: ())
        self._call_later = call_later
        self.hold_delay = hold_delay
        self.move_threshold = move_threshold

        self.state = GestureState.IDLE
        self.modality: Optional[InputModality] = None
        self.source_index: Optional[int] = None
        self.hover_index: Optional[int] = None
        self._start_point: Optional[tuple[float, float]] = None
        self._hold_timer = None

    def drag_start(self, index: int) -> None:
        self.cancel()
        self.state = GestureState.DRAGGING
        self.modality = InputModality.POINTER
        self.source_index = index
        logger.debug(f"Pointer drag started [index={index}]")

    def drag_over(self, index: int) -> None:
        if self._is_dragging(InputModality.POINTER):
            self.hover_index = index

    def drag_leave(self) -> None:
        if self._is_dragging(InputModality.POINTER):
            self.hover_index = None

    def drop(self) -> bool:
        if not self._is_dragging(InputModality.POINTER):
            return False
        return self._finish()

    def drag_end(self) -> None:
        """Pointer released without a drop."""
        if self.modality is InputModality.POINTER:
            self.cancel()

    def touch_start(self, index: int, x: float, y: float) -> None:
        self.cancel()
        self.state = GestureState.ARMED
        self.modality = InputModality.TOUCH
        self.source_index = index
        self._start_point = (x, y)
        self._hold_timer = self._schedule(self.hold_delay, self._on_hold)

    def touch_move(self, x: float, y: float) -> None:
        if self.modality is not InputModality.TOUCH:
            return

        if self.state is GestureState.ARMED:
            start_x, start_y = self._start_point
            if math.hypot(x - start_x, y - start_y) > self.move_threshold:
                logger.debug("Touch moved before hold delay, treating as scroll")
                self.cancel()
            return

        if self.state is GestureState.DRAGGING:
            self.hover_index = self.hit_test(x, y)

    def touch_end(self) -> bool:
        if self.modality is not InputModality.TOUCH:
            return False
        if self.state is GestureState.DRAGGING:
            return self._finish()
        self.cancel()
        return False

    def touch_cancel(self) -> None:
        if self.modality is InputModality.TOUCH:
            self.cancel()

    def cancel(self) -> None:
        """Return to idle without reordering."""
        if self._hold_timer is not None:
            self._hold_timer.cancel()
        self._hold_timer = None
        self.state = GestureState.IDLE
        self.modality = None
        self.source_index = None
        self.hover_index = None
        self._start_point = None

    def hit_test(self, x: float, y: float) -> Optional[int]:
        for index, rect in enumerate(self._bounds_provider()):
            if rect.contains(x, y):
                return index
        return None

    def _on_hold(self) -> None:
        self._hold_timer = None
        if self.state is GestureState.ARMED:
            self.state = GestureState.DRAGGING
            logger.debug(f"Touch drag started [index={self.source_index}]")

    def _finish(self) -> bool:
        source, target = self.source_index, self.hover_index
        self.cancel()
        if target is None or target == source:
            return False
        self._reorder(source, target)
        return True

    def _is_dragging(self, modality: InputModality) -> bool:
        return self.state is GestureState.DRAGGING and self.modality is modality

    def _schedule(self, delay: float, callback: Callable[[], None]):
        if self._call_later is not None:
            return self._call_later(delay, callback)
        return asyncio.get_running_loop().call_later(delay, callback)
