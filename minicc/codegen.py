"""minicc.codegen

x86-64 instruction selection.

Turns TAC into `minicc.asm_nodes` instructions. Every TAC variable becomes
a `Pseudo` operand of the same name; placing those in memory and fixing
operand shapes is left to `minicc.legalize`. Only registers the instruction
set itself demands are named here:

- return values go through %eax
- `idivl` takes its dividend in %edx:%eax (after `cdq`) and leaves the
  quotient in %eax and the remainder in %edx
"""

from __future__ import annotations

from typing import Dict, List

from minicc.errors import InternalCompilerError
from minicc import ir
from minicc.asm_nodes import (
    Reg,
    CondCode,
    UnaryOperator,
    BinaryOperator,
    Imm,
    Register,
    Pseudo,
    Operand,
    Instruction,
    Mov,
    Unary,
    Binary,
    Cmp,
    Idiv,
    Cdq,
    Jmp,
    JmpCC,
    SetCC,
    Label,
    Ret,
    AsmFunction,
    AsmProgram,
)


UNARY_OPS: Dict[str, UnaryOperator] = {
    "-": UnaryOperator.NEG,
    "~": UnaryOperator.NOT,
}

ARITH_OPS: Dict[str, BinaryOperator] = {
    "+": BinaryOperator.ADD,
    "-": BinaryOperator.SUB,
    "*": BinaryOperator.MULT,
}

RELATIONAL_OPS: Dict[str, CondCode] = {
    "==": CondCode.E,
    "!=": CondCode.NE,
    "<": CondCode.L,
    "<=": CondCode.LE,
    ">": CondCode.G,
    ">=": CondCode.GE,
}


class CodeGenerator:
    """Generates x86-64 instructions over pseudo-registers"""

    def generate(self, program: ir.TacProgram) -> AsmProgram:
        return AsmProgram(functions=[self._gen_function(fn) for fn in program.functions])

    def _gen_function(self, fn: ir.TacFunction) -> AsmFunction:
        out: List[Instruction] = []
        for ins in fn.instructions:
            out.extend(self._gen_instruction(ins))
        return AsmFunction(name=fn.name, instructions=out)

    def _operand(self, value: ir.Value) -> Operand:
        if isinstance(value, ir.Constant):
            return Imm(value.value)
        if isinstance(value, ir.Var):
            return Pseudo(value.name)
        raise InternalCompilerError("code generation", value)

    # -----------------
    # Instruction selection
    # -----------------

    def _gen_instruction(self, ins: ir.IRInstruction) -> List[Instruction]:
        if isinstance(ins, ir.Return):
            return [
                Mov(self._operand(ins.value), Register(Reg.AX)),
                Ret(),
            ]

        if isinstance(ins, ir.Copy):
            return [Mov(self._operand(ins.src), self._operand(ins.dst))]

        if isinstance(ins, ir.Unary):
            src = self._operand(ins.src)
            dst = self._operand(ins.dst)
            if ins.operator == "!":
                return [
                    Cmp(Imm(0), src),
                    Mov(Imm(0), dst),
                    SetCC(CondCode.E, dst),
                ]
            op = UNARY_OPS.get(ins.operator)
            if op is None:
                raise InternalCompilerError("code generation", ins)
            return [Mov(src, dst), Unary(op, dst)]

        if isinstance(ins, ir.Binary):
            return self._gen_binary(ins)

        if isinstance(ins, ir.Jump):
            return [Jmp(ins.target)]

        if isinstance(ins, ir.JumpIfZero):
            return [
                Cmp(Imm(0), self._operand(ins.condition)),
                JmpCC(CondCode.E, ins.target),
            ]

        if isinstance(ins, ir.JumpIfNotZero):
            return [
                Cmp(Imm(0), self._operand(ins.condition)),
                JmpCC(CondCode.NE, ins.target),
            ]

        if isinstance(ins, ir.Label):
            return [Label(ins.name)]

        raise InternalCompilerError("code generation", ins)

    def _gen_binary(self, ins: ir.Binary) -> List[Instruction]:
        src1 = self._operand(ins.src1)
        src2 = self._operand(ins.src2)
        dst = self._operand(ins.dst)
        bop = ins.operator

        if bop in ARITH_OPS:
            # two-operand form is destructive: dst = dst op src
            out: List[Instruction] = []
            if src1 != dst:
                out.append(Mov(src1, dst))
            out.append(Binary(ARITH_OPS[bop], src2, dst))
            return out

        if bop in {"/", "%"}:
            result = Reg.AX if bop == "/" else Reg.DX
            return [
                Mov(src1, Register(Reg.AX)),
                Cdq(),
                Idiv(src2),
                Mov(Register(result), dst),
            ]

        if bop in RELATIONAL_OPS:
            # `mov` leaves the flags alone, so zeroing dst between cmp and
            # setcc zero-extends the byte result.
            return [
                Cmp(src2, src1),
                Mov(Imm(0), dst),
                SetCC(RELATIONAL_OPS[bop], dst),
            ]

        # && and || never reach here: they are lowered to jumps.
        raise InternalCompilerError("code generation", ins)
