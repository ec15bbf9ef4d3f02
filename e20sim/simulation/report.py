"""Text formatting for the simulator's console output.

These produce the exact line layouts of the E20 cache trace format; the
CLI prints them, tests compare them.
"""
from typing import List

from e20sim.core.engine import AccessEvent, MachineState


def format_cache_config(cache_name, size, assoc, blocksize, num_rows) -> str:
    return (f"Cache {cache_name} has size {size}, associativity {assoc}, "
            f"blocksize {blocksize}, rows {num_rows}")


def format_log_entry(event: AccessEvent) -> str:
    label = f"{event.cache_name} {event.status}"
    return f"{label:8s} pc:{event.pc:5d}\taddr:{event.address:5d}\trow:{event.row:4d}"


def format_state(state: MachineState, memquantity: int = 128) -> List[str]:
    """Final pc, registers and the first `memquantity` memory words."""
    lines = ["Final state:", "\tpc=" + format(state.pc, "5d")]
    for reg, regval in enumerate(state.registers):
        lines.append(f"\t${reg}=" + format(regval, "5d"))
    line = ""
    for count, word in enumerate(state.memory.dump(memquantity)):
        line += format(word, "04x") + " "
        if count % 8 == 7:
            lines.append(line)
            line = ""
    if line != "":
        lines.append(line)
    return lines
