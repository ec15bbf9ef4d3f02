"""E20 instruction set constants and field decoding.

Instruction words are 16 bits with a 3-bit opcode at the top:

  000  register-register  rA(12-10) rB(9-7) rDst(6-4) func(3-0)
  001  addi               rSrc(12-10) rDst(9-7) imm7
  010  j                  imm13
  011  jal                imm13
  100  lw                 rAddr(12-10) rDst(9-7) imm7
  101  sw                 rAddr(12-10) rSrc(9-7) imm7
  110  jeq                rA(12-10) rB(9-7) imm7
  111  slti               rSrc(12-10) rDst(9-7) imm7 (unsigned)
"""

from dataclasses import dataclass

NUM_REGS = 8
MEM_SIZE = 1 << 13
REG_SIZE = 1 << 16

ADDR_MASK = MEM_SIZE - 1
WORD_MASK = REG_SIZE - 1

# opcodes
OP_REG = 0b000
OP_ADDI = 0b001
OP_J = 0b010
OP_JAL = 0b011
OP_LW = 0b100
OP_SW = 0b101
OP_JEQ = 0b110
OP_SLTI = 0b111

# register-register function codes
FUNC_ADD = 0b0000
FUNC_SUB = 0b0001
FUNC_OR = 0b0010
FUNC_AND = 0b0011
FUNC_SLT = 0b0100
FUNC_JR = 0b1000

LINK_REG = 7

REGISTER_OPS = (OP_REG,)
IMMEDIATE_OPS = (OP_ADDI, OP_LW, OP_SW, OP_JEQ, OP_SLTI)
JUMP_OPS = (OP_J, OP_JAL)


def sign_extend7(value: int) -> int:
    """Interpret the low 7 bits of `value` as two's complement."""
    value &= 0x7F
    if value & 0x40:
        return value - 128
    return value


@dataclass(frozen=True)
class Instruction:
    """Fields of one decoded instruction word.

    Only the fields that apply to `opcode` are meaningful; the others hold
    whatever those bits happen to be.
    """

    word: int
    opcode: int
    reg_a: int
    reg_b: int
    reg_c: int
    func: int
    imm7: int
    imm13: int

    @property
    def simm7(self) -> int:
        return sign_extend7(self.imm7)


def decode(word: int) -> Instruction:
    word &= WORD_MASK
    return Instruction(
        word=word,
        opcode=(word >> 13) & 0b111,
        reg_a=(word >> 10) & 0b111,
        reg_b=(word >> 7) & 0b111,
        reg_c=(word >> 4) & 0b111,
        func=word & 0b1111,
        imm7=word & 0x7F,
        imm13=word & ADDR_MASK,
    )


def encode_reg(func: int, reg_a: int, reg_b: int, reg_dst: int) -> int:
    return (OP_REG << 13) | (reg_a << 10) | (reg_b << 7) | (reg_dst << 4) | func


def encode_imm(opcode: int, reg_a: int, reg_b: int, imm: int) -> int:
    return (opcode << 13) | (reg_a << 10) | (reg_b << 7) | (imm & 0x7F)


def encode_jump(opcode: int, target: int) -> int:
    return (opcode << 13) | (target & ADDR_MASK)
