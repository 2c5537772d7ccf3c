"""intcode-vm: Resumable Intcode virtual machine.

The machine interprets a flat, growable array of signed integers that
holds both code and data. Instead of running to completion in one call,
it suspends whenever it produces an output, needs an input, or halts,
so external code can drive it interactively.

Architecture:
    MEMORY -> FETCH -> DECODE -> CONTROL UNIT -> STATE
                |         |           |            |
           [IP-based] [digits]  [frozen opcode  [mutable,
                                   registry]     forkable]

Modules:
    errors: MachineFault hierarchy and caller errors
    memory: Zero-extending, growable Memory
    decode: Instruction decoding and program-text loading
    state: MachineState, Status and the Signal values
    control: ControlUnit executing one instruction per call
    machine: Main IntcodeMachine driver
"""

__version__ = "0.1.0"
__author__ = "Intcode VM Project"

from .errors import (
    DecodeError,
    InputNotExpectedError,
    InputRequiredError,
    InputQueueEmptyError,
    InvalidWriteModeError,
    MachineFault,
    MemoryAccessError,
    ProgramFormatError,
    StepLimitExceeded,
)
from .memory import Memory
from .decode import DecodedInstruction, Opcode, ParameterMode, decode, load_program, parse_program
from .state import AWAITING_INPUT, HALTED, InputMode, MachineState, Signal, SignalKind, Status
from .control import ControlUnit
from .machine import IntcodeMachine, run_program

__all__ = [
    "IntcodeMachine", "run_program",
    "Memory", "MachineState", "ControlUnit",
    "DecodedInstruction", "Opcode", "ParameterMode", "decode", "parse_program", "load_program",
    "Signal", "SignalKind", "Status", "InputMode", "AWAITING_INPUT", "HALTED",
    "MachineFault", "DecodeError", "MemoryAccessError", "InvalidWriteModeError",
    "InputQueueEmptyError", "InputNotExpectedError", "InputRequiredError", "StepLimitExceeded", "ProgramFormatError",
]
