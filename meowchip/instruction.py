"""CHIP-8 instruction decoding and disassembly"""

from dataclasses import dataclass
from enum import Enum

from .errors import InvalidOpcode


class Op(Enum):
    """One member per canonical CHIP-8 opcode"""
    CLS = "CLS"                 # 00E0
    RET = "RET"                 # 00EE
    SYS = "SYS"                 # 0NNN
    JP = "JP"                   # 1NNN
    CALL = "CALL"               # 2NNN
    SE_BYTE = "SE_BYTE"         # 3XNN
    SNE_BYTE = "SNE_BYTE"       # 4XNN
    SE_REG = "SE_REG"           # 5XY0
    LD_BYTE = "LD_BYTE"         # 6XNN
    ADD_BYTE = "ADD_BYTE"       # 7XNN
    LD_REG = "LD_REG"           # 8XY0
    OR = "OR"                   # 8XY1
    AND = "AND"                 # 8XY2
    XOR = "XOR"                 # 8XY3
    ADD_REG = "ADD_REG"         # 8XY4
    SUB = "SUB"                 # 8XY5
    SHR = "SHR"                 # 8XY6
    SUBN = "SUBN"               # 8XY7
    SHL = "SHL"                 # 8XYE
    SNE_REG = "SNE_REG"         # 9XY0
    LD_I = "LD_I"               # ANNN
    JP_V0 = "JP_V0"             # BNNN
    RND = "RND"                 # CXNN
    DRW = "DRW"                 # DXYN
    SKP = "SKP"                 # EX9E
    SKNP = "SKNP"               # EXA1
    LD_VX_DT = "LD_VX_DT"       # FX07
    LD_VX_K = "LD_VX_K"         # FX0A
    LD_DT_VX = "LD_DT_VX"       # FX15
    LD_ST_VX = "LD_ST_VX"       # FX18
    ADD_I = "ADD_I"             # FX1E
    LD_F = "LD_F"               # FX29
    LD_B = "LD_B"               # FX33
    LD_MEM_VX = "LD_MEM_VX"     # FX55
    LD_VX_MEM = "LD_VX_MEM"     # FX65


ALU_OPS = {
    0x0: Op.LD_REG, 0x1: Op.OR, 0x2: Op.AND, 0x3: Op.XOR, 0x4: Op.ADD_REG,
    0x5: Op.SUB, 0x6: Op.SHR, 0x7: Op.SUBN, 0xE: Op.SHL,
}

KEY_OPS = {0x9E: Op.SKP, 0xA1: Op.SKNP}

MISC_OPS = {
    0x07: Op.LD_VX_DT, 0x0A: Op.LD_VX_K, 0x15: Op.LD_DT_VX, 0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I, 0x29: Op.LD_F, 0x33: Op.LD_B, 0x55: Op.LD_MEM_VX,
    0x65: Op.LD_VX_MEM,
}

# opcodes fully identified by their first nibble
NIBBLE_OPS = {
    0x1: Op.JP, 0x2: Op.CALL, 0x3: Op.SE_BYTE, 0x4: Op.SNE_BYTE,
    0x6: Op.LD_BYTE, 0x7: Op.ADD_BYTE, 0xA: Op.LD_I, 0xB: Op.JP_V0,
    0xC: Op.RND, 0xD: Op.DRW,
}

MNEMONICS = {
    Op.CLS: "CLS",
    Op.RET: "RET",
    Op.SYS: "SYS ${nnn:03X}",
    Op.JP: "JP ${nnn:03X}",
    Op.CALL: "CALL ${nnn:03X}",
    Op.SE_BYTE: "SE V{x:X}, ${nn:02X}",
    Op.SNE_BYTE: "SNE V{x:X}, ${nn:02X}",
    Op.SE_REG: "SE V{x:X}, V{y:X}",
    Op.LD_BYTE: "LD V{x:X}, ${nn:02X}",
    Op.ADD_BYTE: "ADD V{x:X}, ${nn:02X}",
    Op.LD_REG: "LD V{x:X}, V{y:X}",
    Op.OR: "OR V{x:X}, V{y:X}",
    Op.AND: "AND V{x:X}, V{y:X}",
    Op.XOR: "XOR V{x:X}, V{y:X}",
    Op.ADD_REG: "ADD V{x:X}, V{y:X}",
    Op.SUB: "SUB V{x:X}, V{y:X}",
    Op.SHR: "SHR V{x:X}, V{y:X}",
    Op.SUBN: "SUBN V{x:X}, V{y:X}",
    Op.SHL: "SHL V{x:X}, V{y:X}",
    Op.SNE_REG: "SNE V{x:X}, V{y:X}",
    Op.LD_I: "LD I, ${nnn:03X}",
    Op.JP_V0: "JP V0, ${nnn:03X}",
    Op.RND: "RND V{x:X}, ${nn:02X}",
    Op.DRW: "DRW V{x:X}, V{y:X}, {n}",
    Op.SKP: "SKP V{x:X}",
    Op.SKNP: "SKNP V{x:X}",
    Op.LD_VX_DT: "LD V{x:X}, DT",
    Op.LD_VX_K: "LD V{x:X}, K",
    Op.LD_DT_VX: "LD DT, V{x:X}",
    Op.LD_ST_VX: "LD ST, V{x:X}",
    Op.ADD_I: "ADD I, V{x:X}",
    Op.LD_F: "LD F, V{x:X}",
    Op.LD_B: "LD B, V{x:X}",
    Op.LD_MEM_VX: "LD [I], V{x:X}",
    Op.LD_VX_MEM: "LD V{x:X}, [I]",
}


@dataclass(frozen=True)
class Instruction:
    """Decoded CHIP-8 instruction with extracted operands"""
    raw: int
    op: Op
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)

    def __str__(self):
        return MNEMONICS[self.op].format(x=self.x, y=self.y, n=self.n, nn=self.nn, nnn=self.nnn)


def _classify(opcode: int):
    """Return the Op for a 16-bit word, or None if it matches nothing"""
    op = (opcode >> 12) & 0xF    # First nibble
    n = opcode & 0x000F
    nn = opcode & 0x00FF

    if op == 0x0:
        if opcode == 0x00E0:
            return Op.CLS
        if opcode == 0x00EE:
            return Op.RET
        return Op.SYS
    if op in NIBBLE_OPS:
        return NIBBLE_OPS[op]
    if op == 0x5:
        return Op.SE_REG if n == 0 else None
    if op == 0x9:
        return Op.SNE_REG if n == 0 else None
    if op == 0x8:
        return ALU_OPS.get(n)
    if op == 0xE:
        return KEY_OPS.get(nn)
    # op == 0xF
    return MISC_OPS.get(nn)


def decode(opcode: int, pc: int = 0) -> Instruction:
    """
    Decode a 16-bit instruction word

    Raises:
        InvalidOpcode: the word matches no CHIP-8 opcode; `pc` is reported
            as the address it was fetched from
    """
    opcode &= 0xFFFF
    op = _classify(opcode)
    if op is None:
        raise InvalidOpcode(opcode, pc)
    return Instruction(
        raw=opcode,
        op=op,
        x=(opcode >> 8) & 0x0F,
        y=(opcode >> 4) & 0x0F,
        n=opcode & 0x000F,
        nn=opcode & 0x00FF,
        nnn=opcode & 0x0FFF,
    )


def disassemble(opcode: int) -> str:
    """Disassemble opcode to human-readable string"""
    try:
        return str(decode(opcode))
    except InvalidOpcode:
        return f"??? ${opcode & 0xFFFF:04X}"
