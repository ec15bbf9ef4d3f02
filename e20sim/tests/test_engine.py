"""Instruction-level tests for the execution engine.

Programs are assembled with the encode_* helpers from `e20sim.core.isa`
and run without caches unless a test needs the access trace.
"""

import pytest

from e20sim.core import isa
from e20sim.core.cache import CacheHierarchy
from e20sim.core.engine import ExecutionEngine, MachineState, StepLimitExceeded
from e20sim.core.isa import (
    FUNC_ADD, FUNC_AND, FUNC_JR, FUNC_OR, FUNC_SLT, FUNC_SUB,
    OP_ADDI, OP_J, OP_JAL, OP_JEQ, OP_LW, OP_SLTI, OP_SW,
    encode_imm, encode_jump, encode_reg,
)


def addi(dst, src, imm):
    return encode_imm(OP_ADDI, src, dst, imm)


def halt(addr):
    return encode_jump(OP_J, addr)


def run(program, **caches):
    engine = ExecutionEngine(MachineState.from_image(program), **caches)
    state = engine.run(max_steps=10000)
    return state, engine


def test_decode_fields():
    instr = isa.decode(encode_reg(FUNC_SLT, 3, 5, 6))
    assert (instr.opcode, instr.reg_a, instr.reg_b, instr.reg_c, instr.func) == (0, 3, 5, 6, FUNC_SLT)
    instr = isa.decode(encode_imm(OP_LW, 2, 4, -1))
    assert (instr.opcode, instr.reg_a, instr.reg_b) == (OP_LW, 2, 4)
    assert instr.imm7 == 0x7F
    assert instr.simm7 == -1
    assert isa.decode(encode_jump(OP_JAL, 8191)).imm13 == 8191


def test_sign_extend7():
    assert isa.sign_extend7(0x3F) == 63
    assert isa.sign_extend7(0x40) == -64
    assert isa.sign_extend7(0x7F) == -1


def test_register_alu_ops():
    program = [
        addi(1, 0, 5),
        addi(2, 0, -3),
        encode_reg(FUNC_ADD, 1, 2, 3),
        encode_reg(FUNC_SUB, 2, 1, 4),
        encode_reg(FUNC_OR, 1, 2, 5),
        encode_reg(FUNC_AND, 1, 2, 6),
        encode_reg(FUNC_SLT, 1, 2, 7),
        halt(7),
    ]
    state, _ = run(program)
    regs = state.registers
    assert regs[1] == 5
    assert regs[2] == 0xFFFD
    assert regs[3] == 2
    assert regs[4] == 0xFFF8
    assert regs[5] == 0xFFFD
    assert regs[6] == 5
    # unsigned compare: 5 < 65533
    assert regs[7] == 1
    assert state.pc == 7


def test_unknown_function_code_is_noop():
    program = [addi(1, 0, 1), encode_reg(0b0101, 1, 1, 2), halt(2)]
    state, engine = run(program)
    assert state.registers[2] == 0
    assert state.pc == 2
    assert engine.steps == 2


def test_register_zero_stays_zero():
    program = [
        addi(0, 0, 5),
        addi(1, 0, 7),
        encode_reg(FUNC_ADD, 1, 1, 0),
        encode_imm(OP_SLTI, 0, 0, 1),
        halt(4),
    ]
    engine = ExecutionEngine(MachineState.from_image(program))
    while engine.step():
        assert engine.state.registers[0] == 0
    assert engine.state.registers[1] == 7


def test_slti_immediate_is_unsigned():
    # imm 0x7F would be -1 if sign extended; slti compares against 127
    program = [
        addi(1, 0, 5),
        encode_imm(OP_SLTI, 1, 2, 0x7F),
        encode_imm(OP_SLTI, 1, 3, 3),
        halt(3),
    ]
    state, _ = run(program)
    assert state.registers[2] == 1
    assert state.registers[3] == 0


def test_jeq_taken_and_not_taken():
    program = [
        addi(1, 0, 1),
        encode_imm(OP_JEQ, 1, 0, 5),   # not taken
        encode_imm(OP_JEQ, 0, 0, 1),   # taken, skips the next word
        addi(2, 0, 7),
        halt(4),
    ]
    state, _ = run(program)
    assert state.registers[2] == 0
    assert state.pc == 4


def test_jeq_backwards():
    program = [halt(2), halt(1), encode_imm(OP_JEQ, 0, 0, -2)]
    # word 0 jumps to 2, which branches back to the self-jump at 1
    state, engine = run(program)
    assert state.pc == 1
    assert engine.steps == 2


def test_countdown_loop():
    program = [
        addi(1, 0, 3),
        addi(1, 1, -1),
        encode_imm(OP_JEQ, 1, 0, 1),
        halt(1),  # j 1, not a self-jump at address 3
        halt(4),
    ]
    state, _ = run(program)
    assert state.registers[1] == 0
    assert state.pc == 4


def test_jr_skips_ahead():
    program = [addi(1, 0, 3), encode_reg(FUNC_JR, 1, 0, 0), addi(2, 0, 9), halt(3)]
    state, _ = run(program)
    assert state.registers[2] == 0
    assert state.pc == 3


def test_jal_then_jr_returns_after_call():
    program = [
        encode_jump(OP_JAL, 3),
        addi(2, 0, 1),
        halt(2),
        addi(3, 0, 4),
        encode_reg(FUNC_JR, 7, 0, 0),
    ]
    state, _ = run(program)
    assert state.registers[7] == 1
    assert state.registers[2] == 1
    assert state.registers[3] == 4
    assert state.pc == 2


def test_self_jump_halts_without_side_effects():
    state = MachineState.from_image([halt(0), addi(1, 0, 1)])
    engine = ExecutionEngine(state)
    assert engine.step() is False
    assert state.halted is True
    assert state.pc == 0
    assert state.registers == [0] * isa.NUM_REGS
    assert engine.step() is False
    assert engine.steps == 0


def test_load_and_store_hit_backing_memory():
    program = [
        addi(1, 0, 42),
        encode_imm(OP_SW, 0, 1, 20),
        encode_imm(OP_LW, 0, 2, 20),
        halt(3),
    ]
    state, _ = run(program)
    assert state.memory[20] == 42
    assert state.registers[2] == 42


def test_effective_address_wraps():
    program = [
        addi(1, 0, -1),
        encode_imm(OP_LW, 1, 2, 1),    # 0xFFFF + 1 -> address 0
        encode_imm(OP_SW, 0, 1, -1),   # 0 - 1 -> address 8191
        halt(3),
    ]
    state, _ = run(program)
    assert state.registers[2] == program[0]
    assert state.memory[8191] == 0xFFFF


def test_load_reads_memory_on_hit():
    events = []
    program = [
        addi(1, 0, 9),
        encode_imm(OP_SW, 0, 1, 6),
        encode_imm(OP_LW, 0, 2, 6),
        halt(3),
    ]
    l1 = CacheHierarchy(4, 1, 1)
    engine = ExecutionEngine(MachineState.from_image(program), l1=l1, on_access=events.append)
    state = engine.run()
    assert [(e.status, e.pc, e.address, e.row) for e in events] == [('SW', 1, 6, 2), ('HIT', 2, 6, 2)]
    assert state.registers[2] == 9


def test_l2_without_l1_rejected():
    with pytest.raises(ValueError):
        ExecutionEngine(MachineState(), l2=CacheHierarchy(4, 1, 1, name='L2'))


def test_step_limit_guard():
    program = [halt(1), halt(0)]   # 0 -> 1 -> 0 -> ... never a self-jump
    engine = ExecutionEngine(MachineState.from_image(program))
    with pytest.raises(StepLimitExceeded):
        engine.run(max_steps=10)


def test_step_limit_not_hit_by_halting_jump():
    engine = ExecutionEngine(MachineState.from_image([addi(1, 0, 1), halt(1)]))
    state = engine.run(max_steps=1)
    assert state.halted is True
    assert state.registers[1] == 1


def test_independent_runs_do_not_share_state():
    program = [addi(1, 0, 3), halt(1)]
    a, _ = run(program)
    b, _ = run([halt(0)])
    assert a.registers[1] == 3
    assert b.registers[1] == 0
    assert a.memory is not b.memory


def test_fetch_wraps_pc_past_memory_size():
    # Input: jr to 8192+4. The word at address 4 is `j 4`.
    # Expected: fetch reads memory[4]; since pc is 8196 the jump is not a
    # self-jump, so it transfers to 4, where the same word now halts.
    program = [
        encode_imm(OP_LW, 0, 1, 6),
        encode_reg(FUNC_JR, 1, 0, 0),
        halt(2),
        halt(3),
        halt(4),
        0,
        isa.MEM_SIZE + 4,
    ]
    engine = ExecutionEngine(MachineState.from_image(program))
    assert engine.step() and engine.step()
    assert engine.state.pc == isa.MEM_SIZE + 4
    assert engine.step() is True
    assert engine.state.halted is False
    assert engine.state.pc == 4
    assert engine.step() is False
    assert engine.state.halted is True
    assert engine.steps == 3


def test_wrapped_pc_executes_ordinary_instructions():
    program = [
        encode_imm(OP_LW, 0, 1, 7),
        encode_reg(FUNC_JR, 1, 0, 0),
        halt(2),
        halt(3),
        addi(2, 0, 5),
        halt(5),
        0,
        isa.MEM_SIZE + 4,
    ]
    state, _ = run(program)
    # addi ran at pc 8196, then pc 8197 fetched `j 5`, which jumped to 5 and halted there
    assert state.registers[2] == 5
    assert state.pc == 5
