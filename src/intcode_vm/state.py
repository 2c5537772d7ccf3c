"""MachineState: everything that makes up one Intcode machine.

State Components:
    - Memory: program image, mutated in place as the program runs
    - Pointer: instruction pointer (non-negative index into memory)
    - Relative base: signed offset used by RELATIVE-mode operands
    - Status: RUNNING, AWAITING_INPUT, HALTED or FAULTED
    - Inputs: FIFO of values waiting to be consumed by INPUT instructions
    - Step count: total executed instructions

State is mutated in place by the control unit. copy() produces a fully
independent snapshot for callers that fork a machine to explore several
futures.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Iterable, Optional

from .memory import Memory


class Status(Enum):
    """Execution status of a machine."""
    RUNNING = "running"
    AWAITING_INPUT = "awaiting_input"
    HALTED = "halted"
    FAULTED = "faulted"


class InputMode(Enum):
    """What an INPUT instruction does when no value is queued.

    PULL suspends with AWAITING_INPUT; QUEUE treats it as a fatal fault.
    """
    PULL = "pull"
    QUEUE = "queue"


class SignalKind(Enum):
    """Why run() returned control to the caller."""
    OUTPUT = "output"
    AWAITING_INPUT = "awaiting_input"
    HALTED = "halted"


@dataclass(frozen=True)
class Signal:
    """Suspension signal returned by run().

    Attributes:
        kind: Reason for suspension
        value: Produced value (OUTPUT only)
    """
    kind: SignalKind
    value: Optional[int] = None

    @classmethod
    def output(cls, value: int) -> "Signal":
        return cls(SignalKind.OUTPUT, value)

    @property
    def is_output(self) -> bool:
        return self.kind is SignalKind.OUTPUT

    @property
    def is_halted(self) -> bool:
        return self.kind is SignalKind.HALTED

    @property
    def is_awaiting_input(self) -> bool:
        return self.kind is SignalKind.AWAITING_INPUT

    def __str__(self) -> str:
        if self.kind is SignalKind.OUTPUT:
            return f"Output({self.value})"
        if self.kind is SignalKind.AWAITING_INPUT:
            return "AwaitingInput"
        return "Halted"


AWAITING_INPUT = Signal(SignalKind.AWAITING_INPUT)
HALTED = Signal(SignalKind.HALTED)


@dataclass
class MachineState:
    """Mutable state of one Intcode machine.

    Attributes:
        memory: Program/data memory
        pointer: Instruction pointer
        relative_base: Offset for RELATIVE-mode operands
        status: Current execution status
        input_mode: Behaviour of INPUT on an empty queue
        inputs: Queued input values (FIFO)
        step_count: Number of executed instructions
    """
    memory: Memory = field(default_factory=Memory)
    pointer: int = 0
    relative_base: int = 0
    status: Status = Status.RUNNING
    input_mode: InputMode = InputMode.PULL
    inputs: Deque[int] = field(default_factory=deque)
    step_count: int = 0

    def snapshot(self) -> dict:
        """Create a lightweight snapshot of the registers for tracing.

        Returns:
            Dictionary of pointer, relative base, status, queue and step count
        """
        return {
            "pointer": self.pointer,
            "relative_base": self.relative_base,
            "status": self.status.value,
            "inputs": list(self.inputs),
            "step_count": self.step_count,
            # Memory excluded: it can be large and is rarely needed per step
        }

    def validate(self) -> bool:
        """Validate state integrity.

        Checks:
            - Pointer and step count are non-negative integers
            - Relative base is an integer
            - Queued inputs are integers

        Returns:
            True if state is valid, False otherwise
        """
        if not isinstance(self.pointer, int) or self.pointer < 0:
            return False
        if not isinstance(self.relative_base, int):
            return False
        if not isinstance(self.step_count, int) or self.step_count < 0:
            return False
        return all(isinstance(v, int) for v in self.inputs)

    def copy(self) -> "MachineState":
        """Create a deep, independent copy of this state."""
        return MachineState(
            memory=self.memory.copy(),
            pointer=self.pointer,
            relative_base=self.relative_base,
            status=self.status,
            input_mode=self.input_mode,
            inputs=deque(self.inputs),
            step_count=self.step_count,
        )

    def __str__(self) -> str:
        """Human-readable state representation."""
        return (
            f"[Step {self.step_count}] IP={self.pointer} RB={self.relative_base} "
            f"MEM={len(self.memory)} {self.status.name}"
        )


def create_initial_state(
    program: Iterable[int],
    input_mode: InputMode = InputMode.PULL,
) -> MachineState:
    """Create initial machine state with a loaded program.

    Args:
        program: Initial memory image (copied)
        input_mode: Behaviour of INPUT on an empty queue

    Returns:
        Fresh MachineState with pointer 0 and relative base 0
    """
    return MachineState(
        memory=Memory(program),
        pointer=0,
        relative_base=0,
        status=Status.RUNNING,
        input_mode=input_mode,
        inputs=deque(),
        step_count=0,
    )
