"""Count-and-confirm gate in front of recursive deletions."""
import logging
import sys
from collections.abc import Callable
from enum import Enum
from typing import TextIO

from ..codec.key_path import as_key_bytes, as_key_str

logger = logging.getLogger(__name__)


class ConfirmState(Enum):
    IDLE = 'idle'
    COUNTING = 'counting'
    AUTO_PROCEED = 'auto-proceed'
    AWAITING_CONFIRMATION = 'awaiting-confirmation'
    PROCEED = 'proceed'
    ABORTED = 'aborted'


class RemovalAborted(Exception):
    """The operator declined a recursive deletion."""

    def __init__(self, label: str, count: int):
        super().__init__(f"Removal of {count} keys in {label!r} aborted")
        self.label = label
        self.count = count


def is_affirmative(answer: str | None) -> bool:
    """An answer confirms when its first character is Y or y."""
    return bool(answer) and answer[0].upper() == 'Y'


def prompt_confirmation(
        count: int,
        label: str,
        *,
        input_stream: TextIO | None = None,
        output_stream: TextIO | None = None) -> bool:
    """Ask on the terminal whether count keys under label may be deleted.

    The question goes to standard error so it does not mix with command output.
    End of input counts as a refusal.
    """
    if input_stream is None:
        input_stream = sys.stdin
    if output_stream is None:
        output_stream = sys.stderr

    output_stream.write(f"WARNING: About to delete {count} keys in {label}!  Continue [Y/*]? ")
    output_stream.flush()
    return is_affirmative(input_stream.readline().strip())


class RemovalConfirmer:
    """State machine gating a deletion.

    IDLE -> PROCEED                        non-recursive, or forced
    IDLE -> COUNTING -> AUTO_PROCEED       nothing matches the prefix
    IDLE -> COUNTING -> AWAITING_CONFIRMATION -> PROCEED | ABORTED

    count_keys returns the number of keys under a prefix; confirm receives the
    count and the label and answers yes or no. Both are injected so tests can
    drive the machine without a terminal.
    """

    def __init__(
            self,
            count_keys: Callable[[str | bytes], int],
            confirm: Callable[[int, str], bool] = prompt_confirmation,
            *,
            force: bool = False):
        self._count_keys = count_keys
        self._confirm = confirm
        self._force = force
        self.state = ConfirmState.IDLE
        self.history: list[ConfirmState] = [ConfirmState.IDLE]
        self.count: int | None = None

    def _enter(self, state: ConfirmState):
        self.state = state
        self.history.append(state)

    def check(self, label: str | bytes, recursive: bool) -> ConfirmState:
        """Run the gate for one deletion and return the final state (PROCEED,
        AUTO_PROCEED or ABORTED)."""
        self.state = ConfirmState.IDLE
        self.history = [ConfirmState.IDLE]
        self.count = None

        if not recursive or self._force:
            self._enter(ConfirmState.PROCEED)
            return self.state

        self._enter(ConfirmState.COUNTING)
        self.count = self._count_keys(label)
        if self.count == 0:
            self._enter(ConfirmState.AUTO_PROCEED)
            return self.state

        self._enter(ConfirmState.AWAITING_CONFIRMATION)
        text_label = as_key_str(as_key_bytes(label))
        if self._confirm(self.count, text_label):
            self._enter(ConfirmState.PROCEED)
        else:
            self._enter(ConfirmState.ABORTED)
        return self.state

    def require(self, label: str | bytes, recursive: bool):
        """Like check(), raising RemovalAborted instead of returning ABORTED."""
        if self.check(label, recursive) is ConfirmState.ABORTED:
            logger.error("Aborted.")
            text_label = as_key_str(as_key_bytes(label))
            raise RemovalAborted(text_label, self.count)
