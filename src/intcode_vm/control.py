"""ControlUnit: executes one decoded Intcode instruction.

Each opcode maps to exactly one handler in a frozen registry:

    ADD / MULTIPLY          write a op b to target; IP += 4
    INPUT                   consume one queued value into target; IP += 2
    OUTPUT                  emit operand; IP += 2
    JUMP_IF_TRUE / _FALSE   IP = target if cond != 0 / == 0, else IP += 3
    LESS_THAN / EQUALS      write 1 or 0 to target; IP += 4
    ADJUST_RELATIVE_BASE    relative base += operand; IP += 2
    HALT                    stop forever

A handler is a function (state, instruction) -> Optional[Signal]. None
means keep running; a Signal means the machine must return to its caller.
"""

from typing import Callable, Dict, Optional

from .decode import DecodedInstruction, Opcode, ParameterMode
from .errors import InputQueueEmptyError, InvalidWriteModeError
from .state import AWAITING_INPUT, HALTED, InputMode, MachineState, Signal, Status

Handler = Callable[[MachineState, DecodedInstruction], Optional[Signal]]


class ControlUnit:
    """Frozen registry of opcode handlers.

    Handlers hold no state of their own, so one instance can be shared by
    any number of machines.

    Attributes:
        _handlers: Dictionary mapping opcodes to handler functions
        _frozen: Whether the registry is locked against modifications
    """

    def __init__(self):
        """Initialize the registry with every opcode handler."""
        self._handlers: Dict[Opcode, Handler] = {}
        self._frozen = False
        self._register_all_handlers()
        self.freeze()

    def _register_all_handlers(self) -> None:
        # Arithmetic
        self.register(Opcode.ADD, self._op_add)
        self.register(Opcode.MULTIPLY, self._op_multiply)

        # I/O
        self.register(Opcode.INPUT, self._op_input)
        self.register(Opcode.OUTPUT, self._op_output)

        # Control flow
        self.register(Opcode.JUMP_IF_TRUE, self._op_jump_if_true)
        self.register(Opcode.JUMP_IF_FALSE, self._op_jump_if_false)

        # Comparison
        self.register(Opcode.LESS_THAN, self._op_less_than)
        self.register(Opcode.EQUALS, self._op_equals)

        # Special
        self.register(Opcode.ADJUST_RELATIVE_BASE, self._op_adjust_relative_base)
        self.register(Opcode.HALT, self._op_halt)

    def register(self, opcode: Opcode, handler: Handler) -> None:
        """Register an opcode handler.

        Args:
            opcode: Opcode to handle
            handler: Function taking (state, instruction)

        Raises:
            RuntimeError: If registry is frozen
            ValueError: If opcode already registered
        """
        if self._frozen:
            raise RuntimeError("Cannot register handlers: control unit is frozen")
        if opcode in self._handlers:
            raise ValueError(f"Handler already registered: {opcode.name}")
        self._handlers[opcode] = handler

    def freeze(self) -> None:
        """Freeze the registry to prevent further modifications."""
        self._frozen = True

    def is_frozen(self) -> bool:
        return self._frozen

    def get_opcodes(self) -> set:
        """Get set of all handled opcodes."""
        return set(self._handlers)

    def execute(self, state: MachineState, instruction: DecodedInstruction) -> Optional[Signal]:
        """Execute one decoded instruction against the state.

        Args:
            state: Machine state (mutated in place)
            instruction: Instruction decoded from the word at state.pointer

        Returns:
            None to keep running, or the Signal to suspend with

        Raises:
            MachineFault: On any fatal condition
        """
        signal = self._handlers[instruction.opcode](state, instruction)
        if signal is not AWAITING_INPUT:
            state.step_count += 1
        return signal

    # =========================================================================
    # Operand access
    # =========================================================================

    def _read(self, state: MachineState, instruction: DecodedInstruction, n: int) -> int:
        """Read the value of operand n (0-based) according to its mode."""
        raw = state.memory.read(state.pointer + 1 + n)
        mode = instruction.modes[n]
        if mode == ParameterMode.IMMEDIATE:
            return raw
        if mode == ParameterMode.RELATIVE:
            return state.memory.read(state.relative_base + raw)
        return state.memory.read(raw)

    def _target(self, state: MachineState, instruction: DecodedInstruction, n: int) -> int:
        """Compute the write address for operand n (0-based)."""
        raw = state.memory.read(state.pointer + 1 + n)
        mode = instruction.modes[n]
        if mode == ParameterMode.RELATIVE:
            return state.relative_base + raw
        if mode == ParameterMode.IMMEDIATE:
            raise InvalidWriteModeError(
                f"Immediate mode used as write target for {instruction.opcode.name}",
                pointer=state.pointer,
            )
        return raw

    # =========================================================================
    # Arithmetic
    # =========================================================================

    def _op_add(self, state: MachineState, instruction: DecodedInstruction) -> Optional[Signal]:
        """ADD a, b -> target."""
        a = self._read(state, instruction, 0)
        b = self._read(state, instruction, 1)
        state.memory.write(self._target(state, instruction, 2), a + b)
        state.pointer += 4
        return None

    def _op_multiply(self, state: MachineState, instruction: DecodedInstruction) -> Optional[Signal]:
        """MULTIPLY a, b -> target."""
        a = self._read(state, instruction, 0)
        b = self._read(state, instruction, 1)
        state.memory.write(self._target(state, instruction, 2), a * b)
        state.pointer += 4
        return None

    # =========================================================================
    # I/O
    # =========================================================================

    def _op_input(self, state: MachineState, instruction: DecodedInstruction) -> Optional[Signal]:
        """INPUT -> target.

        With an empty queue the pointer stays put so the same instruction
        is retried once a value arrives.
        """
        target = self._target(state, instruction, 0)
        if not state.inputs:
            if state.input_mode is InputMode.QUEUE:
                raise InputQueueEmptyError("Input queue is empty", pointer=state.pointer)
            state.status = Status.AWAITING_INPUT
            return AWAITING_INPUT

        state.memory.write(target, state.inputs.popleft())
        state.status = Status.RUNNING
        state.pointer += 2
        return None

    def _op_output(self, state: MachineState, instruction: DecodedInstruction) -> Optional[Signal]:
        """OUTPUT a."""
        value = self._read(state, instruction, 0)
        state.pointer += 2
        return Signal.output(value)

    # =========================================================================
    # Control flow
    # =========================================================================

    def _op_jump_if_true(self, state: MachineState, instruction: DecodedInstruction) -> Optional[Signal]:
        """JUMP_IF_TRUE cond, target."""
        if self._read(state, instruction, 0) != 0:
            state.pointer = self._read(state, instruction, 1)
        else:
            state.pointer += 3
        return None

    def _op_jump_if_false(self, state: MachineState, instruction: DecodedInstruction) -> Optional[Signal]:
        """JUMP_IF_FALSE cond, target."""
        if self._read(state, instruction, 0) == 0:
            state.pointer = self._read(state, instruction, 1)
        else:
            state.pointer += 3
        return None

    # =========================================================================
    # Comparison
    # =========================================================================

    def _op_less_than(self, state: MachineState, instruction: DecodedInstruction) -> Optional[Signal]:
        """LESS_THAN a, b -> target (1 if a < b else 0)."""
        a = self._read(state, instruction, 0)
        b = self._read(state, instruction, 1)
        state.memory.write(self._target(state, instruction, 2), 1 if a < b else 0)
        state.pointer += 4
        return None

    def _op_equals(self, state: MachineState, instruction: DecodedInstruction) -> Optional[Signal]:
        """EQUALS a, b -> target (1 if a == b else 0)."""
        a = self._read(state, instruction, 0)
        b = self._read(state, instruction, 1)
        state.memory.write(self._target(state, instruction, 2), 1 if a == b else 0)
        state.pointer += 4
        return None

    # =========================================================================
    # Special
    # =========================================================================

    def _op_adjust_relative_base(self, state: MachineState, instruction: DecodedInstruction) -> Optional[Signal]:
        """ADJUST_RELATIVE_BASE a."""
        state.relative_base += self._read(state, instruction, 0)
        state.pointer += 2
        return None

    def _op_halt(self, state: MachineState, instruction: DecodedInstruction) -> Optional[Signal]:
        """HALT - Stop execution for good."""
        state.status = Status.HALTED
        return HALTED


# Singleton control unit instance
_control_unit: Optional[ControlUnit] = None


def get_control_unit() -> ControlUnit:
    """Get the shared, frozen ControlUnit instance."""
    global _control_unit
    if _control_unit is None:
        _control_unit = ControlUnit()
    return _control_unit
