"""Loader for E20 machine code files.

Each line has the form `ram[ADDR] = 16'bBITS;` with an optional trailing
comment. Addresses must start at 0 and increase by one.
"""
import re
from typing import Iterable, List

from e20sim.core.isa import MEM_SIZE

MACHINE_CODE_RE = re.compile(r"^ram\[(\d+)\] = 16'b(\d+);.*$")


class ProgramLoadError(ValueError):
    """Raised when a machine code file cannot be turned into a memory image."""


def load_machine_code(lines: Iterable[str]) -> List[int]:
    """Parse machine code lines into a list of words, one per address."""
    words: List[int] = []
    for line in lines:
        line = line.rstrip('\r\n')
        match = MACHINE_CODE_RE.match(line)
        if not match:
            raise ProgramLoadError(f"Can't parse line: {line}")
        addr = int(match.group(1), 10)
        try:
            instr = int(match.group(2), 2)
        except ValueError:
            raise ProgramLoadError(f"Can't parse line: {line}") from None
        if addr != len(words):
            raise ProgramLoadError(f"Memory addresses encountered out of sequence: {addr}")
        if addr >= MEM_SIZE:
            raise ProgramLoadError("Program too big for memory")
        words.append(instr)
    return words


def load_program_file(path: str) -> List[int]:
    try:
        with open(path) as fh:
            return load_machine_code(fh)
    except OSError as exc:
        raise ProgramLoadError(f"Can't open file {path}") from exc
