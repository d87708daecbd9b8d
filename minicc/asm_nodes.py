"""
Assembly Node Definitions for minicc

x86-64 instructions as produced by the code generator and rewritten by the
legalizer. Operand order follows AT&T syntax: `Binary(op, src, dst)` means
`dst = dst op src` and `Cmp(src, dst)` sets flags from `dst - src`.

`Pseudo` operands only exist between code generation and legalization.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Union


class Reg(Enum):
    AX = "ax"
    DX = "dx"
    # scratch registers reserved for the legalizer
    R10 = "r10"
    R11 = "r11"


class CondCode(Enum):
    E = "e"
    NE = "ne"
    L = "l"
    LE = "le"
    G = "g"
    GE = "ge"


class UnaryOperator(Enum):
    NEG = "neg"
    NOT = "not"


class BinaryOperator(Enum):
    ADD = "add"
    SUB = "sub"
    MULT = "imul"


# ============== Operands ==============

@dataclass(frozen=True)
class Imm:
    value: int


@dataclass(frozen=True)
class Register:
    reg: Reg


@dataclass(frozen=True)
class Pseudo:
    name: str


@dataclass(frozen=True)
class Stack:
    offset: int  # relative to %rbp, always negative


Operand = Union[Imm, Register, Pseudo, Stack]


# ============== Instructions ==============

@dataclass(frozen=True)
class Instruction:
    """Base class for assembly instructions"""
    pass


@dataclass(frozen=True)
class Mov(Instruction):
    src: Operand
    dst: Operand


@dataclass(frozen=True)
class Unary(Instruction):
    operator: UnaryOperator
    operand: Operand


@dataclass(frozen=True)
class Binary(Instruction):
    operator: BinaryOperator
    src: Operand
    dst: Operand


@dataclass(frozen=True)
class Cmp(Instruction):
    src: Operand
    dst: Operand


@dataclass(frozen=True)
class Idiv(Instruction):
    operand: Operand


@dataclass(frozen=True)
class Cdq(Instruction):
    pass


@dataclass(frozen=True)
class Jmp(Instruction):
    target: str


@dataclass(frozen=True)
class JmpCC(Instruction):
    cond: CondCode
    target: str


@dataclass(frozen=True)
class SetCC(Instruction):
    cond: CondCode
    operand: Operand


@dataclass(frozen=True)
class Label(Instruction):
    name: str


@dataclass(frozen=True)
class AllocateStack(Instruction):
    size: int


@dataclass(frozen=True)
class Ret(Instruction):
    pass


@dataclass
class AsmFunction:
    name: str
    instructions: List[Instruction] = field(default_factory=list)


@dataclass
class AsmProgram:
    functions: List[AsmFunction] = field(default_factory=list)
