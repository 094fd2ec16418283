"""Drive Sentinel - Application state and console output."""

import re
from typing import Optional, Any

__version__ = "0.2.0"


def _strip_rich_markup(text: str) -> str:
    """Remove Rich markup tags like [red], [/red], [bold], etc."""
    return re.sub(r'\[/?[a-zA-Z_]+\]', '', text)


class Sentinel:
    """Central console for Drive Sentinel.

    Scanner runs may happen inside the Textual UI or headless (CLI, HTTP
    services). All output goes through this class so the same workflow code
    works in both modes.
    """

    # UI app reference (None = headless)
    _app: Optional[Any] = None

    @classmethod
    def set_app(cls, app: Any) -> None:
        """Set the Textual app reference for UI updates."""
        cls._app = app

    @classmethod
    def print_left(cls, line1: str, line2: str) -> None:
        """Add entry to the proposal log (left panel in TUI, stdout otherwise)."""
        if cls._app is not None:
            cls._app.call_from_thread(cls._app.add_proposal, line1, line2)
        else:
            print(_strip_rich_markup(line1))
            print(_strip_rich_markup(line2))

    @classmethod
    def print_right(cls, message: str) -> None:
        """Add line to debug log (right panel in TUI, stdout otherwise)."""
        if cls._app is not None:
            cls._app.call_from_thread(cls._app.add_debug, message)
        else:
            print(_strip_rich_markup(message), flush=True)

    @classmethod
    def warn(cls, message: str) -> None:
        """Report a non-fatal problem (best-effort step failed)."""
        cls.print_right(f"[yellow]⚠ {message}[/yellow]")

    @classmethod
    def set_progress(cls, current: int, total: int) -> None:
        """Update progress bar and label."""
        if cls._app is not None:
            cls._app.call_from_thread(cls._app.set_progress, current, total)

    @classmethod
    def set_total_files(cls, total: int) -> None:
        """Set total file count for progress tracking."""
        if cls._app is not None:
            cls._app.call_from_thread(cls._app.set_progress, 0, total)
