"""Textual app hosting the /analyze-image command"""

from __future__ import annotations

from pathlib import Path

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical, VerticalScroll
from textual.widgets import Footer, Header, Input, Static

from vision_relay.config.schema import ImageRelaySettings
from vision_relay.core.commands import AnalysisJob, AnalyzeImageCommand, parse_command
from vision_relay.core.delegation import AnalysisBackend, DelegationOutcome
from vision_relay.tui.widgets import AnalysisLoader, AnalysisViewer

SEVERITY = {
    "info": "information",
    "warning": "warning",
    "error": "error",
}


class LogLine(Static):
    """One line in the session log"""

    DEFAULT_CSS = """
    LogLine {
        height: auto;
        color: $text-muted;
    }
    """


class TuiCommandContext:
    """CommandContext backed by the running VisionRelayApp."""

    has_ui = True

    def __init__(self, app: VisionRelayApp):
        self.app = app
        self.cwd = str(app.workspace_root)

    def notify(self, message: str, level: str = "info") -> None:
        self.app.notify(message, severity=SEVERITY.get(level, "information"))

    async def run_with_loader(self, title: str, job: AnalysisJob) -> DelegationOutcome | None:
        return await self.app.push_screen_wait(AnalysisLoader(title, job))

    async def show_editor(self, title: str, text: str) -> None:
        await self.app.push_screen_wait(AnalysisViewer(title, text))


class VisionRelayApp(App):
    """vision-relay interactive session"""

    TITLE = "vision-relay"

    CSS = """
    Screen {
        layout: vertical;
    }

    #log-container {
        height: 1fr;
        padding: 1 2;
        background: $background;
    }

    #messages {
        height: auto;
    }

    #command-input {
        margin: 0 2 1 2;
        border: solid $primary;
    }
    """

    BINDINGS = [
        Binding("ctrl+d", "quit", "Quit", show=False),
        Binding("ctrl+l", "clear_log", "Clear", show=False),
    ]

    def __init__(
        self,
        workspace_root: Path,
        settings: ImageRelaySettings | None = None,
        backend: AnalysisBackend | None = None,
    ):
        super().__init__()
        self.workspace_root = workspace_root
        self.settings = settings or ImageRelaySettings()
        self.analyze_command = AnalyzeImageCommand(backend=backend, settings=self.settings)

    def compose(self) -> ComposeResult:
        yield Header()
        with VerticalScroll(id="log-container"):
            yield Vertical(id="messages")
        yield Input(placeholder=f"/{self.analyze_command.name} <path-to-image>", id="command-input")
        yield Footer()

    def on_mount(self) -> None:
        self._append_log(f"Workspace: {self.workspace_root}")
        self._append_log("Type /help for commands")
        self.query_one("#command-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        line = event.value.strip()
        event.input.value = ""
        if not line:
            return

        parsed = parse_command(line)
        if parsed is None:
            self.notify("Commands start with /. Try /help", severity="warning")
            return

        name, args = parsed
        if name == "help":
            self._show_help()
        elif name == "clear":
            self.action_clear_log()
        elif name in ("exit", "quit"):
            self.exit()
        elif name == self.analyze_command.name:
            self._append_log(f"> {line}")
            self.run_analyze(args)
        else:
            self.notify(f"Unknown command: /{name}", severity="warning")

    @work(exclusive=True)
    async def run_analyze(self, args: str) -> None:
        summary = await self.analyze_command.run(args, TuiCommandContext(self))
        if summary is not None:
            self._append_log(f"Analysis complete ({len(summary):,} chars)")

    def action_clear_log(self) -> None:
        self.query_one("#messages", Vertical).remove_children()

    def _show_help(self) -> None:
        self._append_log(
            "Commands:\n"
            f"  /{self.analyze_command.name} <path>  {self.analyze_command.description}\n"
            "  /clear                 Clear the log\n"
            "  /exit, /quit           Quit"
        )

    def _append_log(self, text: str) -> None:
        self.query_one("#messages", Vertical).mount(LogLine(text, markup=False))
        container = self.query_one("#log-container", VerticalScroll)
        self.call_after_refresh(lambda: container.scroll_end(animate=False))
