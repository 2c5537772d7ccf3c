"""Structured failures raised by the Intcode machine.

Fatal conditions derive from MachineFault. Once one is raised the machine
that raised it is marked FAULTED and refuses to run again. Caller mistakes
(supplying input nobody asked for, running to completion without enough
input, exhausting a step budget) are separate RuntimeError subclasses and
leave the machine usable.
"""

from typing import Optional


class MachineFault(RuntimeError):
    """Base class for conditions that abort one machine's execution.

    Attributes:
        pointer: Instruction pointer at the time of the fault (if known)
    """

    def __init__(self, message: str, pointer: Optional[int] = None):
        self.pointer = pointer
        if pointer is not None:
            message = f"{message} (at pointer {pointer})"
        super().__init__(message)

    def locate(self, pointer: int) -> "MachineFault":
        """Attach the fault pointer if it was not known when raised."""
        if self.pointer is None:
            self.pointer = pointer
            self.args = (f"{self.args[0]} (at pointer {pointer})",)
        return self


class DecodeError(MachineFault):
    """Unknown opcode, negative instruction word or bad parameter mode."""


class MemoryAccessError(MachineFault):
    """Read or write at a negative address."""


class InvalidWriteModeError(MachineFault):
    """Immediate mode used as a write target."""


class InputQueueEmptyError(MachineFault):
    """Input instruction reached with nothing queued in QUEUE mode."""


class InputNotExpectedError(RuntimeError):
    """supply_input() called while the machine is not awaiting input."""


class InputRequiredError(RuntimeError):
    """A run-to-completion helper hit AWAITING_INPUT with nothing queued."""


class StepLimitExceeded(RuntimeError):
    """A caller-imposed step budget ran out before a suspension point."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Max steps ({limit}) exceeded")


class ProgramFormatError(ValueError):
    """Program text contains something other than integers."""
