"""IntcodeMachine: resumable driver around the Intcode control unit.

Execution pipeline per step:
    MEMORY[IP] -> DECODE -> CONTROL UNIT -> STATE (+ optional trace entry)

run() repeats steps and returns to the caller at exactly three points:
right after an OUTPUT, when an INPUT has nothing to consume, and on HALT.
That turns the interpreter into a coroutine the caller drives:

    machine = IntcodeMachine(program)
    while True:
        signal = machine.run()
        if signal.is_output:
            record(signal.value)
        elif signal.is_awaiting_input:
            machine.supply_input(next_value())
        else:
            break
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

from .control import ControlUnit, get_control_unit
from .decode import DecodedInstruction, decode, parse_program
from .errors import InputNotExpectedError, InputRequiredError, MachineFault, StepLimitExceeded
from .state import AWAITING_INPUT, HALTED, InputMode, Signal, Status, create_initial_state


@dataclass
class ExecutionTraceEntry:
    """Single entry in the execution trace.

    Attributes:
        step: Step number (0-indexed)
        pointer: Instruction pointer the instruction was fetched from
        word: Raw instruction word
        instruction: Decoded instruction (None if decoding failed)
        text: Rendered mnemonic
        pre_state: State snapshot before execution
        post_state: State snapshot after execution
        signal: Signal produced by the step, if any
        error: Fault message if execution failed
    """
    step: int
    pointer: int
    word: int
    instruction: Optional[DecodedInstruction]
    text: str
    pre_state: dict
    post_state: dict
    signal: Optional[Signal] = None
    error: Optional[str] = None


class IntcodeMachine:
    """Stored-program Intcode interpreter with a suspend/resume contract.

    Machines are independent values: copy() takes a deep snapshot that
    shares nothing with the original, so forks can be driven separately
    (even from different threads).

    Attributes:
        state: Current machine state
        control: Shared ControlUnit
        record_trace: Whether to record an ExecutionTraceEntry per step
        trace: Recorded trace entries
        fault: Fatal error that stopped the machine, if any
    """

    def __init__(
        self,
        program: Iterable[int],
        input_mode: InputMode = InputMode.PULL,
        record_trace: bool = False,
    ):
        """Initialize a machine with a program loaded at address 0.

        Args:
            program: Initial memory image (copied)
            input_mode: PULL suspends on empty input, QUEUE faults instead
            record_trace: Record a trace entry for every executed step
        """
        self.state = create_initial_state(program, input_mode=input_mode)
        self.control: ControlUnit = get_control_unit()
        self.record_trace = record_trace
        self.trace: List[ExecutionTraceEntry] = []
        self.fault: Optional[MachineFault] = None

    @classmethod
    def from_text(cls, source: str, **kwargs) -> "IntcodeMachine":
        """Create a machine from program text (comma or newline separated)."""
        return cls(parse_program(source), **kwargs)

    # =========================================================================
    # Execution
    # =========================================================================

    def step(self) -> Optional[Signal]:
        """Execute a single instruction.

        Returns:
            None if execution can continue, otherwise the suspension Signal

        Raises:
            MachineFault: On a fatal condition (the machine becomes FAULTED)
        """
        status = self.state.status
        if status is Status.HALTED:
            return HALTED
        if status is Status.FAULTED:
            raise self.fault
        if status is Status.AWAITING_INPUT and not self.state.inputs:
            return AWAITING_INPUT

        pointer = self.state.pointer
        pre_state = self.state.snapshot() if self.record_trace else None
        word = 0
        instruction = None
        text = ""
        try:
            word = self.state.memory.read(pointer)
            instruction = decode(word)
            if self.record_trace:
                text = self._render(pointer, instruction)
            signal = self.control.execute(self.state, instruction)
        except MachineFault as e:
            e.locate(pointer)
            self.fault = e
            self.state.status = Status.FAULTED
            if self.record_trace:
                self._record(pointer, word, instruction, text or f"<{word}>", pre_state, None, error=str(e))
            raise

        if self.record_trace:
            self._record(pointer, word, instruction, text, pre_state, signal)
        return signal

    def run(self, max_steps: Optional[int] = None) -> Signal:
        """Run until the next suspension point.

        Args:
            max_steps: Optional budget of instructions for this call

        Returns:
            Signal.output(value), AWAITING_INPUT or HALTED

        Raises:
            MachineFault: On a fatal condition (also re-raised on later calls)
            StepLimitExceeded: If max_steps instructions ran without suspending
        """
        steps = 0
        while True:
            if max_steps is not None and steps >= max_steps and self._can_execute():
                raise StepLimitExceeded(max_steps)
            signal = self.step()
            if signal is not None:
                return signal
            steps += 1

    def _can_execute(self) -> bool:
        """True if the next step() would execute an instruction."""
        status = self.state.status
        if status is Status.AWAITING_INPUT:
            return bool(self.state.inputs)
        return status is Status.RUNNING

    def supply_input(self, value: int) -> None:
        """Provide the value a suspended INPUT instruction is waiting for.

        Args:
            value: Input value

        Raises:
            InputNotExpectedError: If the machine is not awaiting input
        """
        if self.state.status is not Status.AWAITING_INPUT:
            raise InputNotExpectedError(
                f"Machine is not awaiting input (status: {self.state.status.name})"
            )
        self.state.inputs.append(value)
        self.state.status = Status.RUNNING

    def push_input(self, *values: int) -> None:
        """Queue input values to be consumed in FIFO order.

        Args:
            values: Input values
        """
        self.state.inputs.extend(values)
        if self.state.status is Status.AWAITING_INPUT and self.state.inputs:
            self.state.status = Status.RUNNING

    def outputs(self, max_steps: Optional[int] = None) -> Iterator[int]:
        """Yield output values until the machine halts.

        Raises:
            InputRequiredError: If the machine asks for input nobody queued
                (not a fault: the machine stays AWAITING_INPUT and resumable)
        """
        while True:
            signal = self.run(max_steps=max_steps)
            if signal.is_output:
                yield signal.value
            elif signal.is_halted:
                return
            else:
                raise InputRequiredError(
                    f"Program requested input but none was queued (at pointer {self.state.pointer})"
                )

    def run_until_halt(self, inputs: Iterable[int] = (), max_steps: Optional[int] = None) -> List[int]:
        """Queue inputs, then collect every output until HALT.

        Args:
            inputs: Values to queue before running
            max_steps: Optional budget per run() call

        Returns:
            List of output values in order
        """
        self.push_input(*inputs)
        return list(self.outputs(max_steps=max_steps))

    def copy(self) -> "IntcodeMachine":
        """Fork the machine into an independent deep copy."""
        clone = IntcodeMachine.__new__(IntcodeMachine)
        clone.state = self.state.copy()
        clone.control = self.control
        clone.record_trace = self.record_trace
        clone.trace = list(self.trace)
        clone.fault = self.fault
        return clone

    def __copy__(self) -> "IntcodeMachine":
        return self.copy()

    def __deepcopy__(self, memo) -> "IntcodeMachine":
        return self.copy()

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def status(self) -> Status:
        return self.state.status

    @property
    def pointer(self) -> int:
        return self.state.pointer

    @property
    def relative_base(self) -> int:
        return self.state.relative_base

    @property
    def step_count(self) -> int:
        return self.state.step_count

    @property
    def memory(self) -> List[int]:
        """Copy of the full memory contents."""
        return self.state.memory.dump()

    def read(self, addr: int) -> int:
        """Read one memory cell (0 past the end)."""
        return self.state.memory.read(addr)

    def is_halted(self) -> bool:
        return self.state.status is Status.HALTED

    def is_awaiting_input(self) -> bool:
        return self.state.status is Status.AWAITING_INPUT

    # =========================================================================
    # Trace and summary
    # =========================================================================

    def _render(self, pointer: int, instruction: DecodedInstruction) -> str:
        operands = [self.state.memory.read(pointer + 1 + i) for i in range(len(instruction.modes))]
        return instruction.render(operands)

    def _record(
        self,
        pointer: int,
        word: int,
        instruction: Optional[DecodedInstruction],
        text: str,
        pre_state: dict,
        signal: Optional[Signal],
        error: Optional[str] = None,
    ) -> None:
        self.trace.append(ExecutionTraceEntry(
            step=len(self.trace),
            pointer=pointer,
            word=word,
            instruction=instruction,
            text=text,
            pre_state=pre_state,
            post_state=self.state.snapshot(),
            signal=signal,
            error=error,
        ))

    def print_trace(self) -> None:
        """Print execution trace in human-readable format."""
        print("=" * 70)
        print("INTCODE EXECUTION TRACE")
        print("=" * 70)

        for entry in self.trace:
            status = "OK" if not entry.error else f"ERROR: {entry.error}"
            print(f"\n[Step {entry.step}] IP={entry.pointer} {status}")
            print(f"  Word: {entry.word}")
            print(f"  Instruction: {entry.text}")
            if entry.signal is not None:
                print(f"  Signal: {entry.signal}")

            pre_rb = entry.pre_state.get("relative_base", 0)
            post_rb = entry.post_state.get("relative_base", 0)
            if pre_rb != post_rb:
                print(f"  RB: {pre_rb} → {post_rb}")

            post_ip = entry.post_state.get("pointer", 0)
            length = entry.instruction.length if entry.instruction else 0
            if post_ip not in (entry.pointer, entry.pointer + length):
                print(f"  IP: {entry.pointer} → {post_ip}")

        print("\n" + "=" * 70)
        print("FINAL STATE")
        print("=" * 70)
        print(f"  IP: {self.pointer}")
        print(f"  RB: {self.relative_base}")
        print(f"  Memory: {len(self.state.memory)} cells")
        print(f"  Steps: {self.step_count}")
        print(f"  Status: {self.status.name}")

    def get_summary(self) -> Dict:
        """Get execution summary.

        Returns:
            Dictionary with execution statistics and final state
        """
        return {
            "steps": self.step_count,
            "status": self.status.name,
            "halted": self.is_halted(),
            "pointer": self.pointer,
            "relative_base": self.relative_base,
            "memory_size": len(self.state.memory),
            "pending_inputs": list(self.state.inputs),
            "trace_length": len(self.trace),
            "error": str(self.fault) if self.fault else None,
        }


def run_program(program: Iterable[int], inputs: Iterable[int] = (), max_steps: Optional[int] = None) -> List[int]:
    """Run a program to completion with pre-queued inputs.

    Args:
        program: Initial memory image
        inputs: Input values consumed in order
        max_steps: Optional budget per suspension

    Returns:
        All output values in order

    Raises:
        InputQueueEmptyError: If the program needs more inputs than given
    """
    machine = IntcodeMachine(program, input_mode=InputMode.QUEUE)
    return machine.run_until_halt(inputs, max_steps=max_steps)
