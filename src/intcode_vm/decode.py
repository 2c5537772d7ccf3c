"""Instruction decoding and program loading for the Intcode machine.

An instruction word packs the operation and its parameter modes as
decimal digits:

    ABCDE
      |||
      |++-- opcode (word % 100)
      +---- mode of operand 1 (hundreds digit)
     +----- mode of operand 2 (thousands digit)
    +------ mode of operand 3 (ten-thousands digit)

    1002 -> MULTIPLY, modes (POSITION, IMMEDIATE, POSITION)

Decoding is pure: the same word always yields the same DecodedInstruction.
"""

import re
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Dict, List, Sequence, Tuple, Union

from .errors import DecodeError, ProgramFormatError


class ParameterMode(IntEnum):
    """How an operand is turned into an address or value."""
    POSITION = 0   # operand is an address
    IMMEDIATE = 1  # operand is the value itself (read-only)
    RELATIVE = 2   # operand plus relative base is an address


class Opcode(IntEnum):
    """Operation selector (instruction word modulo 100)."""
    ADD = 1
    MULTIPLY = 2
    INPUT = 3
    OUTPUT = 4
    JUMP_IF_TRUE = 5
    JUMP_IF_FALSE = 6
    LESS_THAN = 7
    EQUALS = 8
    ADJUST_RELATIVE_BASE = 9
    HALT = 99


# Number of operands following each opcode in memory
OPERAND_COUNTS: Dict[Opcode, int] = {
    Opcode.ADD: 3,
    Opcode.MULTIPLY: 3,
    Opcode.INPUT: 1,
    Opcode.OUTPUT: 1,
    Opcode.JUMP_IF_TRUE: 2,
    Opcode.JUMP_IF_FALSE: 2,
    Opcode.LESS_THAN: 3,
    Opcode.EQUALS: 3,
    Opcode.ADJUST_RELATIVE_BASE: 1,
    Opcode.HALT: 0,
}

MNEMONICS: Dict[Opcode, str] = {
    Opcode.ADD: "ADD",
    Opcode.MULTIPLY: "MUL",
    Opcode.INPUT: "IN",
    Opcode.OUTPUT: "OUT",
    Opcode.JUMP_IF_TRUE: "JT",
    Opcode.JUMP_IF_FALSE: "JF",
    Opcode.LESS_THAN: "LT",
    Opcode.EQUALS: "EQ",
    Opcode.ADJUST_RELATIVE_BASE: "ARB",
    Opcode.HALT: "HALT",
}

# Opcodes whose last operand is a write target
WRITE_OPCODES = frozenset({
    Opcode.ADD, Opcode.MULTIPLY, Opcode.INPUT, Opcode.LESS_THAN, Opcode.EQUALS,
})


@dataclass(frozen=True)
class DecodedInstruction:
    """Result of decoding one instruction word.

    Attributes:
        word: Raw instruction word
        opcode: Decoded operation
        modes: One parameter mode per operand (length == operand count)
    """
    word: int
    opcode: Opcode
    modes: Tuple[ParameterMode, ...]

    @property
    def length(self) -> int:
        """Words occupied by the instruction, including the opcode word."""
        return 1 + len(self.modes)

    def render(self, operands: Sequence[int] = ()) -> str:
        """Format the instruction as a mnemonic line for traces.

        Args:
            operands: Raw operand words following the opcode

        Returns:
            e.g. "MUL [4], #3 -> [4]"
        """
        parts = [_format_operand(mode, value) for mode, value in zip(self.modes, operands)]
        name = MNEMONICS[self.opcode]
        if not parts:
            return name
        if self.opcode in WRITE_OPCODES:
            sources, target = parts[:-1], parts[-1]
            if sources:
                return f"{name} {', '.join(sources)} -> {target}"
            return f"{name} -> {target}"
        return f"{name} {', '.join(parts)}"


def _format_operand(mode: ParameterMode, value: int) -> str:
    if mode == ParameterMode.IMMEDIATE:
        return f"#{value}"
    if mode == ParameterMode.RELATIVE:
        return f"[rb{value:+d}]"
    return f"[{value}]"


def parse_operation(word: int) -> Tuple[int, Tuple[int, int, int]]:
    """Split an instruction word into its opcode value and mode digits.

    No validation is performed; see decode() for that.

    Args:
        word: Instruction word

    Returns:
        Tuple of (opcode value, (mode1, mode2, mode3))
    """
    return word % 100, (word // 100 % 10, word // 1000 % 10, word // 10000 % 10)


def decode(word: int) -> DecodedInstruction:
    """Decode an instruction word to an opcode and operand modes.

    Only the mode digits of operands the opcode actually uses are checked;
    higher digits are ignored.

    Args:
        word: Instruction word read at the instruction pointer

    Returns:
        DecodedInstruction

    Raises:
        DecodeError: Negative word, unknown opcode, or mode digit not in {0,1,2}
    """
    if word < 0:
        raise DecodeError(f"Negative instruction word: {word}")

    value, digits = parse_operation(word)
    try:
        opcode = Opcode(value)
    except ValueError:
        raise DecodeError(f"Unknown opcode {value} in word {word}") from None

    modes = []
    for digit in digits[:OPERAND_COUNTS[opcode]]:
        try:
            modes.append(ParameterMode(digit))
        except ValueError:
            raise DecodeError(f"Unknown parameter mode {digit} in word {word}") from None

    return DecodedInstruction(word=word, opcode=opcode, modes=tuple(modes))


_INTEGER = re.compile(r"[+-]?\d+", re.ASCII)


def parse_program(source: str) -> List[int]:
    """Parse program text into an initial memory image.

    Handles:
        - Comma-separated integers on one line
        - One integer per line
        - Surrounding whitespace and empty fields (e.g. a trailing comma)

    Args:
        source: Program text

    Returns:
        List of integers

    Raises:
        ProgramFormatError: If a field is not an integer
    """
    program = []
    for token in re.split(r"[,\n]", source):
        token = token.strip()
        if not token:
            continue
        if not _INTEGER.fullmatch(token):
            raise ProgramFormatError(f"Invalid program value: {token!r}")
        program.append(int(token))
    return program


def load_program(path: Union[str, Path]) -> List[int]:
    """Read and parse a program file.

    Args:
        path: Path to the program text

    Returns:
        List of integers
    """
    return parse_program(Path(path).read_text())
