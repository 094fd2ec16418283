"""TextUI - Textual-based terminal UI for Drive Sentinel."""

import threading
from typing import Callable, Optional

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Header, Footer, Static, RichLog, ProgressBar, Label
from textual.binding import Binding

from sentinel import Sentinel, __version__


class HeaderInfo(Static):
    """Header widget showing the watched inbox and the scan schedule."""

    def __init__(self, inbox: str = "", schedule: str = "", **kwargs) -> None:
        super().__init__(**kwargs)
        self.inbox = inbox
        self.schedule = schedule

    def compose(self) -> ComposeResult:
        yield Static(f"Inbox: {self.inbox}", id="inbox-line")
        yield Static(f"Schedule: {self.schedule}", id="schedule-line")

    def update_schedule(self, schedule: str) -> None:
        self.schedule = schedule
        self.query_one("#schedule-line", Static).update(f"Schedule: {schedule}")


class SentinelApp(App):
    """Textual app that scans the inbox on a timer.

    Left panel lists approval requests sent, right panel is the debug log.
    A tick that arrives while a scan is still running is dropped.
    """

    CSS = """
    Screen {
        layout: grid;
        grid-size: 1;
        grid-rows: auto 1fr auto;
    }

    #header-info {
        height: auto;
        padding: 0 1;
        background: $surface;
        border-bottom: solid $primary;
    }

    #main-content {
        height: 1fr;
    }

    #left-panel {
        width: 1fr;
        border-right: solid $primary;
    }

    #right-panel {
        width: 1fr;
    }

    .panel-title {
        height: 1;
        background: $primary;
        color: $text;
        text-align: center;
        text-style: bold;
    }

    .log-panel {
        height: 1fr;
    }

    #footer-bar {
        height: 3;
        padding: 0 1;
        background: $surface;
        border-top: solid $primary;
    }

    #progress-container {
        height: 1;
        margin-top: 1;
    }

    #progress-bar {
        width: 1fr;
    }

    #progress-label {
        width: auto;
        min-width: 15;
        text-align: right;
        margin-left: 1;
    }
    """

    BINDINGS = [
        Binding("s", "scan_now", "Scan now"),
        Binding("q", "quit", "Quit"),
        Binding("ctrl+c", "quit", "Quit"),
    ]

    def __init__(self, inbox: str = "", interval: int = 300,
                 scan_func: Optional[Callable[[], None]] = None) -> None:
        super().__init__()
        self.inbox = inbox
        self.interval = interval
        self._scan_func = scan_func
        self._scan_lock = threading.Lock()

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield HeaderInfo(self.inbox, f"every {self.interval}s", id="header-info")

        with Horizontal(id="main-content"):
            with Vertical(id="left-panel"):
                yield Static("PROPOSALS", classes="panel-title")
                yield RichLog(id="proposal-log", classes="log-panel", highlight=True, markup=True)

            with Vertical(id="right-panel"):
                yield Static("DEBUG LOG", classes="panel-title")
                yield RichLog(id="debug-log", classes="log-panel", highlight=True, markup=True)

        with Horizontal(id="footer-bar"):
            with Horizontal(id="progress-container"):
                yield ProgressBar(id="progress-bar", show_eta=False)
                yield Label("0/0 files", id="progress-label")

        yield Footer()

    def on_mount(self) -> None:
        """Wire up Sentinel output and start the scan timer."""
        self.title = f"Drive Sentinel v{__version__}"
        self.theme = "textual-light"

        Sentinel.set_app(self)

        if self._scan_func:
            self.action_scan_now()
            self.set_interval(self.interval, self.action_scan_now)

    def on_unmount(self) -> None:
        Sentinel.set_app(None)

    def action_scan_now(self) -> None:
        """Start a scan in a background thread unless one is running."""
        if self._scan_func is None:
            return
        if not self._scan_lock.acquire(blocking=False):
            self.add_debug("[yellow]Scan still running, skipping this tick[/yellow]")
            return
        thread = threading.Thread(target=self._run_scan, daemon=True)
        thread.start()

    def _run_scan(self) -> None:
        try:
            self._scan_func()
        except Exception as e:
            Sentinel.print_right(f"[red]Scan failed: {e}[/red]")
        finally:
            self._scan_lock.release()

    def add_proposal(self, line1: str, line2: str) -> None:
        """Add a proposal entry to the left log."""
        log = self.query_one("#proposal-log", RichLog)
        log.write(f"{line1}\n{line2}\n")

    def add_debug(self, message: str) -> None:
        """Add a debug message to the right log."""
        log = self.query_one("#debug-log", RichLog)
        log.write(message)

    def set_progress(self, current: int, total: int) -> None:
        """Update the progress bar."""
        bar = self.query_one("#progress-bar", ProgressBar)
        bar.update(total=total, progress=current)
        self.query_one("#progress-label", Label).update(f"{current}/{total} files")
