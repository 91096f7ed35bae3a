"""
Modal dialog state machine.

At most one dialog is open at a time. A dialog either asks for a yes/no
confirmation before running an action, or asks for a line of text and hands
it to a callback. Every way out of a dialog returns to Idle.

    Idle --request_confirmation--> AwaitingConfirmation --confirm--> Idle (action run)
                                                        --decline/cancel--> Idle
    Idle --request_input--> AwaitingInput --submit--> Idle (callback run)
                                          --cancel--> Idle
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


class DialogBusy(Exception):
    """Raised when a dialog is requested while another one is open."""

    pass


class InvalidTransition(Exception):
    """Raised when a dialog event does not apply to the current state."""

    pass


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class AwaitingConfirmation:
    title: str
    message: str
    action: Callable[[], None]


@dataclass(frozen=True)
class AwaitingInput:
    prompt: str
    on_submit: Callable[[str], None]
    default: str = ""


DialogState = Idle | AwaitingConfirmation | AwaitingInput


class DialogMachine:
    """Tracks the open dialog and runs its callbacks on the right transitions."""

    def __init__(self) -> None:
        self.state: DialogState = Idle()

    @property
    def is_open(self) -> bool:
        return not isinstance(self.state, Idle)

    def _open(self, state: DialogState) -> None:
        if self.is_open:
            raise DialogBusy(f"Cannot open a dialog while in {type(self.state).__name__}")
        self.state = state

    def request_confirmation(self, title: str, message: str, action: Callable[[], None]) -> None:
        self._open(AwaitingConfirmation(title, message, action))

    def request_input(self, prompt: str, on_submit: Callable[[str], None], default: str = "") -> None:
        self._open(AwaitingInput(prompt, on_submit, default))

    def confirm(self) -> None:
        match self.state:
            case AwaitingConfirmation(action=action):
                self.state = Idle()
                action()
            case _:
                raise InvalidTransition(f"confirm() in state {type(self.state).__name__}")

    def decline(self) -> None:
        if not isinstance(self.state, AwaitingConfirmation):
            raise InvalidTransition(f"decline() in state {type(self.state).__name__}")
        self.state = Idle()

    def submit(self, text: str) -> None:
        match self.state:
            case AwaitingInput(on_submit=on_submit, default=default):
                self.state = Idle()
                on_submit(text.strip() or default)
            case _:
                raise InvalidTransition(f"submit() in state {type(self.state).__name__}")

    def cancel(self) -> None:
        """Close whatever is open without running anything. Idle stays Idle."""
        if self.is_open:
            logger.debug("Dialog %s cancelled", type(self.state).__name__)
        self.state = Idle()
