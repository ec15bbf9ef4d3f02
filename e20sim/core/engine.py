"""E20 fetch/decode/execute engine.

The engine owns one `MachineState` and steps it one instruction at a
time. Loads and stores are routed through the L1 cache level and, when
one is configured, the L2 level; each cache lookup is reported as an
`AccessEvent` to the `on_access` callback before the next fetch.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from e20sim.core import isa
from e20sim.core.cache import CacheHierarchy
from e20sim.core.isa import Instruction
from e20sim.core.ram import Memory

logger = logging.getLogger(__name__)

HIT = "HIT"
MISS = "MISS"
SW = "SW"


class StepLimitExceeded(RuntimeError):
    """Raised by `run(max_steps=...)` when the program has not halted in time."""


@dataclass(frozen=True)
class AccessEvent:
    cache_name: str
    status: str
    pc: int
    address: int
    row: int


@dataclass
class MachineState:
    """Architectural state: pc, register file and memory."""

    pc: int = 0
    registers: List[int] = field(default_factory=lambda: [0] * isa.NUM_REGS)
    memory: Memory = field(default_factory=Memory)
    halted: bool = False

    @classmethod
    def from_image(cls, image) -> "MachineState":
        return cls(memory=Memory(image))


class ExecutionEngine:
    def __init__(
        self,
        state: MachineState,
        l1: Optional[CacheHierarchy] = None,
        l2: Optional[CacheHierarchy] = None,
        on_access: Optional[Callable[[AccessEvent], None]] = None,
    ):
        if l2 is not None and l1 is None:
            raise ValueError("an L2 cache requires an L1 cache")
        self.state = state
        self.l1 = l1
        self.l2 = l2
        self.on_access = on_access
        self.steps = 0
        self._families = {}
        for ops, handler in (
            (isa.REGISTER_OPS, self._execute_register),
            (isa.IMMEDIATE_OPS, self._execute_immediate),
            (isa.JUMP_OPS, self._execute_jump),
        ):
            for op in ops:
                self._families[op] = handler

    def fetch(self) -> Instruction:
        return isa.decode(self.state.memory.read(self.state.pc))

    def step(self) -> bool:
        """Execute one instruction. Returns False once the machine has halted."""
        state = self.state
        if state.halted:
            return False
        instr = self.fetch()
        if instr.opcode == isa.OP_J and instr.imm13 == state.pc:
            state.halted = True
            logger.debug("halted at pc=%d after %d instructions", state.pc, self.steps)
            return False
        state.pc = self._families[instr.opcode](instr) & isa.WORD_MASK
        state.registers[0] = 0
        self.steps += 1
        return True

    def run(self, max_steps: Optional[int] = None) -> MachineState:
        """Step until halted. Without `max_steps` this never gives up."""
        executed = 0
        while self.step():
            executed += 1
            # the halting jump itself is not counted against the limit
            if max_steps is not None and executed >= max_steps and not self._halts_next():
                raise StepLimitExceeded(f"no halt after {executed} instructions")
        return self.state

    def _halts_next(self) -> bool:
        instr = self.fetch()
        return instr.opcode == isa.OP_J and instr.imm13 == self.state.pc

    def _emit(self, cache_name: str, status: str, address: int, row: int) -> None:
        if self.on_access is not None:
            self.on_access(AccessEvent(cache_name, status, self.state.pc, address, row))

    # instruction families; each returns the next pc

    def _execute_register(self, instr: Instruction) -> int:
        regs = self.state.registers
        a, b = regs[instr.reg_a], regs[instr.reg_b]
        pc = self.state.pc
        if instr.func == isa.FUNC_ADD:
            regs[instr.reg_c] = (a + b) & isa.WORD_MASK
        elif instr.func == isa.FUNC_SUB:
            regs[instr.reg_c] = (a - b) & isa.WORD_MASK
        elif instr.func == isa.FUNC_OR:
            regs[instr.reg_c] = a | b
        elif instr.func == isa.FUNC_AND:
            regs[instr.reg_c] = a & b
        elif instr.func == isa.FUNC_SLT:
            regs[instr.reg_c] = 1 if a < b else 0
        elif instr.func == isa.FUNC_JR:
            pc = a - 1
        return pc + 1

    def _execute_immediate(self, instr: Instruction) -> int:
        regs = self.state.registers
        pc = self.state.pc
        src = regs[instr.reg_a]
        if instr.opcode == isa.OP_ADDI:
            regs[instr.reg_b] = (src + instr.simm7) & isa.WORD_MASK
        elif instr.opcode == isa.OP_SLTI:
            regs[instr.reg_b] = 1 if src < instr.imm7 else 0
        elif instr.opcode == isa.OP_JEQ:
            if src == regs[instr.reg_b]:
                return pc + 1 + instr.simm7
        elif instr.opcode == isa.OP_LW:
            address = (src + instr.simm7) & isa.ADDR_MASK
            self._load(address)
            regs[instr.reg_b] = self.state.memory.read(address)
        elif instr.opcode == isa.OP_SW:
            address = (src + instr.simm7) & isa.ADDR_MASK
            self.state.memory.write(address, regs[instr.reg_b])
            self._store(address)
        return pc + 1

    def _execute_jump(self, instr: Instruction) -> int:
        if instr.opcode == isa.OP_JAL:
            self.state.registers[isa.LINK_REG] = (self.state.pc + 1) & isa.WORD_MASK
        return instr.imm13

    def _load(self, address: int) -> None:
        if self.l1 is None:
            return
        hit, row = self.l1.load_word(address)
        self._emit(self.l1.name, HIT if hit else MISS, address, row)
        if not hit and self.l2 is not None:
            hit, row = self.l2.load_word(address)
            self._emit(self.l2.name, HIT if hit else MISS, address, row)

    def _store(self, address: int) -> None:
        for cache in (self.l1, self.l2):
            if cache is not None:
                row = cache.store_word(address)
                self._emit(cache.name, SW, address, row)
