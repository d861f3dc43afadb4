"""Form view: runs a ``GuidedFlow`` one step at a time."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual.app import ComposeResult
from textual.widgets import Input, Static

from kairos.cli.dispatch import CommandDispatcher
from kairos.cli.flows import ConfirmFlow, FormStep, GuidedFlow, StepKind
from kairos.cli.tui.messages import ViewFinished
from kairos.cli.tui.types import ViewID
from kairos.cli.tui.views.base import FAIL, HEADING, NORMAL, StackView


def describe_step(step: FormStep) -> Text:
    text = Text()
    if step.kind == StepKind.SELECT:
        for i, choice in enumerate(step.choices, 1):
            text.append(f"  {i}. {choice.label}\n", style=NORMAL)
    hint = ""
    if step.kind == StepKind.CONFIRM:
        hint = " [Y/n]" if step.default == "yes" else " [y/N]"
    elif step.default:
        hint = f" [{step.default}]"
    text.append(f"{step.prompt}{hint}", style=HEADING)
    return text


class FormView(StackView):
    """Capturing view over a guided flow or a pending confirmation.

    Finishing runs the flow's command through the dispatcher and hands the
    result back to the app with ``ViewFinished``.
    """

    view_id = ViewID.FORM
    captures_input = True
    short_help = "[Enter] Submit  [Esc] Cancel"

    DEFAULT_CSS = """
    FormView {
        layout: vertical;
    }
    FormView #form-body {
        height: 1fr;
    }
    FormView #form-input {
        dock: bottom;
    }
    """

    def __init__(self, dispatcher: CommandDispatcher, flow: GuidedFlow, **kwargs: Any) -> None:
        super().__init__(dispatcher, **kwargs)
        self.flow = flow
        self.problem = ""

    @property
    def title(self) -> str:
        return self.flow.title

    def compose(self) -> ComposeResult:
        yield Static(id="form-body")
        yield Input(id="form-input")

    def on_mount(self) -> None:
        self._show()

    def focus_input(self) -> None:
        self.query_one("#form-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        event.input.value = ""
        self.answer(event.value)

    def answer(self, raw: str) -> None:
        """Submit ``raw`` to the current step and finish the flow when nothing is left."""
        if self.flow.current() is None:
            return
        self.problem = self.flow.submit(raw) or ""
        if self.flow.aborted:
            self.post_message(ViewFinished(cancelled=True, message=self.flow.error))
            return
        if self.flow.current() is None:
            result = self.dispatcher.complete_flow(self.flow)
            self.post_message(ViewFinished(result=result))
            return
        self._show()

    def cancel(self) -> None:
        if isinstance(self.flow, ConfirmFlow):
            self.post_message(ViewFinished(result=self.dispatcher.confirm(self.flow.action, False)))
            return
        super().cancel()

    def _show(self) -> None:
        if not self.is_mounted:
            return
        self.query_one("#form-body", Static).update(self.body())

    def body(self) -> Text:
        text = Text()
        step = self.flow.current()
        if step is not None:
            text.append_text(describe_step(step))
        if self.problem:
            text.append(f"\n{self.problem}", style=FAIL)
        return text
