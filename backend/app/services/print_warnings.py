"""
Print Warning Flow

Two-stage confirmation before printing a partial label sheet:

    IDLE -> FIRST_WARNING -> SECOND_WARNING -> PROCESSING -> IDLE
                                    ^               |
                                    +-- retryable --+

A full sheet skips both warnings and goes straight to PROCESSING. The
confirmation callback is normally a call to mark the batch printed; errors
carrying ``retryable = True`` keep the second warning open so the operator
can retry without re-reading both dialogs.
"""
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from app.core.settings import settings
from app.exceptions import InvalidStateError
from app.logging_config import get_logger
from app.services.batch_policy import waste_for

logger = get_logger(__name__)

CONFIRMATION_PHRASE = "PRINT"


class WarningStage(str, Enum):
    IDLE = "idle"
    FIRST_WARNING = "first_warning"
    SECOND_WARNING = "second_warning"
    PROCESSING = "processing"


@dataclass(frozen=True)
class WarningMessage:
    title: str
    message: str
    confirm_text: str
    confirmation_phrase: Optional[str] = None


@dataclass(frozen=True)
class WarningMessages:
    first: WarningMessage
    second: WarningMessage


def _labels(count: int, word: str = "label") -> str:
    return f"1 {word}" if count == 1 else f"{count} {word}s"


def warning_messages(label_count: int, capacity: Optional[int] = None) -> Optional[WarningMessages]:
    """Operator-facing texts for a partial sheet, or None when no warning applies."""
    capacity = settings.PRINT_QUEUE_BATCH_SIZE if capacity is None else capacity
    if label_count < 1 or label_count >= capacity:
        return None

    wasted, percentage = waste_for(label_count, capacity)
    spaces = "1 label space" if wasted == 1 else f"{wasted} label spaces"
    more = "one more label" if wasted == 1 else "more labels"

    first = WarningMessage(
        title=f"Incomplete Batch - Only {_labels(label_count, 'Label')}",
        message=(
            f"You're about to print only {_labels(label_count)} on a {capacity}-label sheet. "
            f"This will waste {spaces} ({percentage}% waste). "
            f"Consider adding {more} to the queue for efficient printing."
        ),
        confirm_text="Continue Anyway",
    )
    second = WarningMessage(
        title="Final Confirmation - Paper Waste Warning",
        message=(
            "Are you absolutely sure you want to proceed? "
            f"This will waste {percentage}% of the label sheet. "
            f"You can cancel now and add {more} to the queue, "
            f"or proceed with printing just {_labels(label_count)}."
        ),
        confirm_text=f"Yes, Print {_labels(label_count, 'Label')}",
        confirmation_phrase=CONFIRMATION_PHRASE,
    )
    return WarningMessages(first=first, second=second)


class PrintWarningFlow:
    """
    Confirmation state machine for one print station.

    Thread-safe: every transition happens under one condition variable, and
    cancel() during PROCESSING waits for the confirmation to resolve.
    The callback itself runs outside the lock.
    """

    def __init__(
        self,
        on_confirm_print: Callable[[], Any],
        on_cancel: Optional[Callable[[], Any]] = None,
        capacity: Optional[int] = None,
    ):
        self.on_confirm_print = on_confirm_print
        self.on_cancel = on_cancel
        self.capacity = settings.PRINT_QUEUE_BATCH_SIZE if capacity is None else capacity

        self._cond = threading.Condition()
        self._stage = WarningStage.IDLE
        self._label_count = 0
        self._last_error: Optional[BaseException] = None
        self._confirming_thread: Optional[int] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def stage(self) -> WarningStage:
        with self._cond:
            return self._stage

    @property
    def label_count(self) -> int:
        with self._cond:
            return self._label_count

    @property
    def last_error(self) -> Optional[BaseException]:
        with self._cond:
            return self._last_error

    @property
    def has_active_warning(self) -> bool:
        return self.stage in (WarningStage.FIRST_WARNING, WarningStage.SECOND_WARNING)

    @property
    def messages(self) -> Optional[WarningMessages]:
        return warning_messages(self.label_count, self.capacity)

    @property
    def paper_waste(self) -> dict:
        count = self.label_count
        wasted, percentage = waste_for(count, self.capacity)
        return {
            "used_labels": count,
            "wasted_labels": wasted,
            "waste_percentage": percentage,
            "total_labels": self.capacity,
        }

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, label_count: int) -> Any:
        """
        Begin a print for ``label_count`` labels.

        A full sheet calls the confirmation callback immediately and returns
        its result. Zero or fewer labels is a no-op.
        """
        with self._cond:
            self._require(WarningStage.IDLE, "start")
            if label_count <= 0:
                return None
            self._label_count = label_count
            self._last_error = None
            if label_count < self.capacity:
                self._stage = WarningStage.FIRST_WARNING
                logger.info(f"Partial batch of {label_count}: showing first warning")
                return None
            self._enter_processing()
        return self._run_confirmation(allow_retry=False)

    def confirm_first(self) -> None:
        with self._cond:
            self._require(WarningStage.FIRST_WARNING, "confirm_first")
            self._stage = WarningStage.SECOND_WARNING

    def confirm_second(self) -> Any:
        with self._cond:
            self._require(WarningStage.SECOND_WARNING, "confirm_second")
            self._last_error = None
            self._enter_processing()
        return self._run_confirmation(allow_retry=True)

    def cancel(self) -> None:
        """Return to IDLE, waiting out an in-flight confirmation first."""
        with self._cond:
            if self._stage == WarningStage.PROCESSING:
                if self._confirming_thread == threading.get_ident():
                    raise InvalidStateError(
                        "Cannot cancel from inside the print confirmation",
                        current_state=self._stage.value,
                    )
                self._cond.wait_for(lambda: self._stage != WarningStage.PROCESSING)
            self._reset()
        if self.on_cancel is not None:
            self.on_cancel()

    # ------------------------------------------------------------------
    # Internals (call with the lock held unless noted)
    # ------------------------------------------------------------------

    def _require(self, expected: WarningStage, action: str) -> None:
        if self._stage != expected:
            raise InvalidStateError(
                f"Cannot {action} while {self._stage.value}",
                current_state=self._stage.value,
                allowed_states=[expected.value],
            )

    def _enter_processing(self) -> None:
        self._stage = WarningStage.PROCESSING
        self._confirming_thread = threading.get_ident()

    def _reset(self) -> None:
        self._stage = WarningStage.IDLE
        self._label_count = 0
        self._confirming_thread = None

    def _run_confirmation(self, allow_retry: bool) -> Any:
        # Lock NOT held: the callback may take a while and cancel() must be able to wait
        try:
            result = self.on_confirm_print()
        except Exception as e:
            retryable = bool(getattr(e, "retryable", False))
            with self._cond:
                self._last_error = e
                if allow_retry and retryable:
                    logger.warning(f"Print failed with retryable error, keeping confirmation open: {e}")
                    self._stage = WarningStage.SECOND_WARNING
                    self._confirming_thread = None
                else:
                    logger.error(f"Print failed: {e}")
                    self._reset()
                self._cond.notify_all()
            raise

        with self._cond:
            self._reset()
            self._cond.notify_all()
        return result
