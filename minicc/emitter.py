"""minicc.emitter

Renders a legalized `AsmProgram` as GNU assembler (AT&T) text.

All arithmetic is 32-bit (`movl`, `addl`, ...); `setCC` writes the low byte
of its operand. Local labels get the platform's local prefix so they never
show up in the symbol table.
"""

from __future__ import annotations

import sys
from typing import Dict, List, Optional

from minicc.errors import InternalCompilerError
from minicc.asm_nodes import (
    Reg,
    Imm,
    Register,
    Stack,
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
    AllocateStack,
    Ret,
    AsmFunction,
    AsmProgram,
)


REG_32: Dict[Reg, str] = {
    Reg.AX: "%eax",
    Reg.DX: "%edx",
    Reg.R10: "%r10d",
    Reg.R11: "%r11d",
}

REG_8: Dict[Reg, str] = {
    Reg.AX: "%al",
    Reg.DX: "%dl",
    Reg.R10: "%r10b",
    Reg.R11: "%r11b",
}


class Emitter:
    """Formats assembly for Linux (ELF) or macOS (Mach-O)"""

    def __init__(self, platform: Optional[str] = None):
        self.platform = platform or sys.platform
        self.assembly_lines: List[str] = []

    @property
    def is_macos(self) -> bool:
        return self.platform == "darwin"

    def emit(self, program: AsmProgram) -> str:
        self.assembly_lines = []
        for fn in program.functions:
            self._emit_function(fn)
        if not self.is_macos:
            self._emit('  .section .note.GNU-stack,"",@progbits')
        return "\n".join(self.assembly_lines) + "\n"

    # -----------------
    # Names
    # -----------------

    def _symbol(self, name: str) -> str:
        return f"_{name}" if self.is_macos else name

    def _local_label(self, name: str) -> str:
        return f"L{name}" if self.is_macos else f".L{name}"

    # -----------------
    # Functions and instructions
    # -----------------

    def _emit_function(self, fn: AsmFunction) -> None:
        sym = self._symbol(fn.name)
        self._emit(f"  .globl {sym}")
        self._emit(f"{sym}:")
        self._emit("  pushq %rbp")
        self._emit("  movq %rsp, %rbp")
        for ins in fn.instructions:
            self._emit_ins(ins)

    def _emit_ins(self, ins: Instruction) -> None:
        if isinstance(ins, Mov):
            self._emit(f"  movl {self._operand(ins.src)}, {self._operand(ins.dst)}")
        elif isinstance(ins, Unary):
            self._emit(f"  {ins.operator.value}l {self._operand(ins.operand)}")
        elif isinstance(ins, Binary):
            self._emit(f"  {ins.operator.value}l {self._operand(ins.src)}, {self._operand(ins.dst)}")
        elif isinstance(ins, Cmp):
            self._emit(f"  cmpl {self._operand(ins.src)}, {self._operand(ins.dst)}")
        elif isinstance(ins, Idiv):
            self._emit(f"  idivl {self._operand(ins.operand)}")
        elif isinstance(ins, Cdq):
            self._emit("  cdq")
        elif isinstance(ins, Jmp):
            self._emit(f"  jmp {self._local_label(ins.target)}")
        elif isinstance(ins, JmpCC):
            self._emit(f"  j{ins.cond.value} {self._local_label(ins.target)}")
        elif isinstance(ins, SetCC):
            self._emit(f"  set{ins.cond.value} {self._operand(ins.operand, byte=True)}")
        elif isinstance(ins, Label):
            self._emit(f"{self._local_label(ins.name)}:")
        elif isinstance(ins, AllocateStack):
            if ins.size:
                self._emit(f"  subq ${ins.size}, %rsp")
        elif isinstance(ins, Ret):
            self._emit("  movq %rbp, %rsp")
            self._emit("  popq %rbp")
            self._emit("  ret")
        else:
            raise InternalCompilerError("emission", ins)

    def _operand(self, op: Operand, byte: bool = False) -> str:
        if isinstance(op, Imm):
            return f"${op.value}"
        if isinstance(op, Register):
            return (REG_8 if byte else REG_32)[op.reg]
        if isinstance(op, Stack):
            return f"{op.offset}(%rbp)"
        # Pseudo operands must be gone after legalization
        raise InternalCompilerError("emission", op)

    def _emit(self, line: str) -> None:
        self.assembly_lines.append(line)
