"""Modal widgets for the analyze-image command"""

from __future__ import annotations

import asyncio

from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static, TextArea

from vision_relay.core.commands import AnalysisJob
from vision_relay.core.delegation import DelegationOutcome


class AnalysisSpinner(Static):
    """Animated spinner with a status line"""

    DEFAULT_CSS = """
    AnalysisSpinner {
        height: auto;
        color: $accent;
        padding: 0 1;
    }
    """

    FRAMES = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]

    def __init__(self, status: str):
        super().__init__(f"{self.FRAMES[0]} {status}", id="analysis-spinner", markup=False)
        self._frame = 0
        self._status = status

    def on_mount(self) -> None:
        self.set_interval(0.1, self._animate)

    def _animate(self) -> None:
        self._frame = (self._frame + 1) % len(self.FRAMES)
        self.update(f"{self.FRAMES[self._frame]} {self._status}")

    def set_status(self, status: str) -> None:
        self._status = status


class AnalysisLoader(ModalScreen[DelegationOutcome | None]):
    """Runs an analysis job behind a bordered spinner; Esc aborts it.

    Dismisses with the job's outcome. Aborting sets the cancel event, so the
    job itself resolves Cancelled and the child process is terminated.
    """

    CSS = """
    AnalysisLoader {
        align: center middle;
    }

    #loader-dialog {
        width: 60;
        height: auto;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }

    #loader-hint {
        color: $text-muted;
        margin-top: 1;
    }
    """

    BINDINGS = [
        ("escape", "abort", "Abort"),
    ]

    def __init__(self, title: str, job: AnalysisJob):
        super().__init__()
        self._title = title
        self._job = job
        self.cancel_event = asyncio.Event()

    def compose(self) -> ComposeResult:
        with Container(id="loader-dialog"):
            yield AnalysisSpinner(self._title)
            yield Static("Esc to cancel", id="loader-hint")

    def on_mount(self) -> None:
        self.run_worker(self._run(), exclusive=True)

    async def _run(self) -> None:
        outcome = await self._job(self.cancel_event)
        self.dismiss(outcome)

    def action_abort(self) -> None:
        if not self.cancel_event.is_set():
            self.cancel_event.set()
            self.query_one(AnalysisSpinner).set_status("Cancelling...")


class AnalysisViewer(ModalScreen[None]):
    """Read-only view of an analysis summary"""

    CSS = """
    AnalysisViewer {
        align: center middle;
    }

    #viewer-dialog {
        width: 90%;
        height: 85%;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }

    #viewer-title {
        width: 100%;
        content-align: center middle;
        text-style: bold;
        color: $accent;
        margin-bottom: 1;
    }

    #viewer-text {
        height: 1fr;
        margin-bottom: 1;
    }
    """

    BINDINGS = [
        ("escape", "close", "Close"),
    ]

    def __init__(self, title: str, text: str):
        super().__init__()
        self._title = title
        self._text = text

    def compose(self) -> ComposeResult:
        with Container(id="viewer-dialog"):
            yield Label(self._title, id="viewer-title")
            yield TextArea(self._text, read_only=True, id="viewer-text")
            yield Button("Close", variant="primary", id="close-btn")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "close-btn":
            self.dismiss(None)

    def action_close(self) -> None:
        self.dismiss(None)
