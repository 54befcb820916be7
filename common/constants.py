"""Project-wide constants (timers, progress steps, defaults)."""

COPIED_RESET_SECONDS: float = 2.0
TOUCH_HOLD_SECONDS: float = 0.3
TOUCH_MOVE_THRESHOLD_PX: float = 10.0

INITIAL_UPLOAD_PROGRESS: int = 10
MAX_IN_FLIGHT_PROGRESS: int = 99
SIMULATED_PROGRESS_STEPS: tuple[int, ...] = (10, 30, 80)

DEFAULT_CATEGORY_TITLES: tuple[str, ...] = ("Library",)
DEFAULT_AUTH_HEADER: str = "X-Upload-Key"
