"""Memory: the single, uniformly addressable store of an Intcode machine.

Code and data share one buffer, so programs can read and overwrite their
own instruction stream. Cells hold Python ints, which never truncate.

Addressing rules:
    - Reads past the end return 0 and do not grow the buffer
    - Writes past the end grow the buffer, zero-filling the gap
    - Negative addresses are fatal in both directions
"""

from typing import Iterable, List

from .errors import MemoryAccessError


class Memory:
    """Growable, zero-extending array of signed integers.

    Attributes:
        _cells: Backing list (never accessed from outside this class)
    """

    __slots__ = ("_cells",)

    def __init__(self, program: Iterable[int] = ()):
        """Initialize memory with a copy of the program image.

        Args:
            program: Initial memory contents
        """
        self._cells: List[int] = [int(v) for v in program]

    def read(self, addr: int) -> int:
        """Read the value stored at an address.

        Args:
            addr: Non-negative address

        Returns:
            Stored value, or 0 for any address beyond the current length

        Raises:
            MemoryAccessError: If addr is negative
        """
        if addr < 0:
            raise MemoryAccessError(f"Read from negative address {addr}")
        if addr >= len(self._cells):
            return 0
        return self._cells[addr]

    def write(self, addr: int, value: int) -> None:
        """Store a value, growing memory if needed.

        Args:
            addr: Non-negative address
            value: Value to store

        Raises:
            MemoryAccessError: If addr is negative
        """
        if addr < 0:
            raise MemoryAccessError(f"Write to negative address {addr}")
        if addr >= len(self._cells):
            self._cells.extend([0] * (addr + 1 - len(self._cells)))
        self._cells[addr] = value

    def dump(self) -> List[int]:
        """Get a copy of all memory cells."""
        return list(self._cells)

    def copy(self) -> "Memory":
        """Create an independent copy (no shared backing list)."""
        return Memory(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Memory):
            return NotImplemented
        return self._cells == other._cells

    def __repr__(self) -> str:
        return f"Memory(len={len(self._cells)})"
