"""minicc.legalize

Register/operand legalization, run per function in two passes.

Pass A (`replace_pseudo_registers`) gives every pseudo-register a 4-byte
stack slot below %rbp. Slots are handed out in the order pseudos are first
seen, so the same input always yields the same frame. Once every pseudo is
known the frame size is prepended as `AllocateStack`.

Pass B (`fix_up_instructions`) rewrites instructions whose operand shapes
x86-64 rejects. %r10 and %r11 are never given to a pseudo, so they can be
used as scratch at any point without liveness analysis:

- %r10 stands in for a source operand (`mov`, `add`, `sub`, `cmp`, `idiv`)
- %r11 stands in for a destination operand (`imul`, `cmp` with an immediate)

Every rewritten instruction is checked against `is_legal`; a rewrite that is
still illegal is an internal error rather than silently bad output. Legal
instructions pass through untouched, which makes pass B idempotent.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Dict, List, Tuple

from minicc.errors import InternalCompilerError
from minicc.asm_nodes import (
    Reg,
    BinaryOperator,
    Imm,
    Register,
    Pseudo,
    Stack,
    Operand,
    Instruction,
    Mov,
    Unary,
    Binary,
    Cmp,
    Idiv,
    SetCC,
    AllocateStack,
    AsmFunction,
    AsmProgram,
)

logger = logging.getLogger(__name__)

# every value in the subset is a 32-bit int
SLOT_SIZE = 4

R10 = Register(Reg.R10)
R11 = Register(Reg.R11)


class StackFrame:
    """Maps pseudo-register names to stack offsets for one function"""

    def __init__(self) -> None:
        self.slots: Dict[str, int] = {}
        self.size = 0

    def slot_for(self, name: str) -> Stack:
        offset = self.slots.get(name)
        if offset is None:
            self.size += SLOT_SIZE
            offset = -self.size
            self.slots[name] = offset
        return Stack(offset)


def _is_memory(op: Operand) -> bool:
    return isinstance(op, Stack)


def _operands(ins: Instruction) -> List[Operand]:
    return [
        getattr(ins, f.name)
        for f in dataclasses.fields(ins)
        if isinstance(getattr(ins, f.name), (Imm, Register, Pseudo, Stack))
    ]


def is_legal(ins: Instruction) -> bool:
    """Check one instruction against the x86-64 operand-shape rules"""
    if any(isinstance(op, Pseudo) for op in _operands(ins)):
        return False
    if isinstance(ins, Mov):
        return not isinstance(ins.dst, Imm) and not (_is_memory(ins.src) and _is_memory(ins.dst))
    if isinstance(ins, Binary):
        if isinstance(ins.dst, Imm):
            return False
        if ins.operator == BinaryOperator.MULT:
            return not _is_memory(ins.dst)
        return not (_is_memory(ins.src) and _is_memory(ins.dst))
    if isinstance(ins, Cmp):
        return not isinstance(ins.dst, Imm) and not (_is_memory(ins.src) and _is_memory(ins.dst))
    if isinstance(ins, Idiv):
        return not isinstance(ins.operand, Imm)
    if isinstance(ins, (Unary, SetCC)):
        return not isinstance(ins.operand, Imm)
    return True


class Legalizer:
    """Turns pseudo-register code into concrete, encodable x86-64"""

    def legalize(self, program: AsmProgram) -> AsmProgram:
        return AsmProgram(functions=[self.legalize_function(fn) for fn in program.functions])

    def legalize_function(self, fn: AsmFunction) -> AsmFunction:
        instructions, frame = self.replace_pseudo_registers(fn.instructions)
        instructions = [AllocateStack(frame.size)] + instructions
        fixed = self.fix_up_instructions(instructions)
        logger.debug(
            "legalized %s: %d pseudo(s), frame %d bytes, %d -> %d instructions",
            fn.name, len(frame.slots), frame.size, len(instructions), len(fixed),
        )
        return AsmFunction(name=fn.name, instructions=fixed)

    # -----------------
    # Pass A
    # -----------------

    def replace_pseudo_registers(self, instructions: List[Instruction]) -> Tuple[List[Instruction], StackFrame]:
        frame = StackFrame()
        out: List[Instruction] = []
        for ins in instructions:
            if not isinstance(ins, Instruction):
                raise InternalCompilerError("pseudo-register replacement", ins)
            changes = {}
            # fields are visited in declaration order (src before dst)
            for f in dataclasses.fields(ins):
                value = getattr(ins, f.name)
                if isinstance(value, Pseudo):
                    changes[f.name] = frame.slot_for(value.name)
            out.append(dataclasses.replace(ins, **changes) if changes else ins)
        return out, frame

    # -----------------
    # Pass B
    # -----------------

    def fix_up_instructions(self, instructions: List[Instruction]) -> List[Instruction]:
        out: List[Instruction] = []
        for ins in instructions:
            rewritten = self._fix_instruction(ins)
            for new in rewritten:
                if not is_legal(new):
                    raise InternalCompilerError("instruction legalization", new)
            out.extend(rewritten)
        return out

    def _fix_instruction(self, ins: Instruction) -> List[Instruction]:
        if is_legal(ins):
            return [ins]

        if isinstance(ins, Mov) and _is_memory(ins.src) and _is_memory(ins.dst):
            return [Mov(ins.src, R10), Mov(R10, ins.dst)]

        if isinstance(ins, Binary):
            if ins.operator == BinaryOperator.MULT and _is_memory(ins.dst):
                return [
                    Mov(ins.dst, R11),
                    Binary(ins.operator, ins.src, R11),
                    Mov(R11, ins.dst),
                ]
            if _is_memory(ins.src) and _is_memory(ins.dst):
                return [Mov(ins.src, R10), Binary(ins.operator, R10, ins.dst)]

        if isinstance(ins, Idiv) and isinstance(ins.operand, Imm):
            return [Mov(ins.operand, R10), Idiv(R10)]

        if isinstance(ins, Cmp):
            fixes: List[Instruction] = []
            src, dst = ins.src, ins.dst
            if isinstance(dst, Imm):
                fixes.append(Mov(dst, R11))
                dst = R11
            if _is_memory(src) and _is_memory(dst):
                fixes.append(Mov(src, R10))
                src = R10
            return fixes + [Cmp(src, dst)]

        raise InternalCompilerError("instruction legalization", ins)
