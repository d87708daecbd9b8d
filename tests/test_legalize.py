import pytest

from minicc.errors import InternalCompilerError
from minicc.legalize import Legalizer, StackFrame, is_legal
from minicc.asm_nodes import (
    AllocateStack,
    AsmFunction,
    AsmProgram,
    Binary,
    BinaryOperator,
    Cdq,
    Cmp,
    CondCode,
    Idiv,
    Imm,
    JmpCC,
    Label,
    Mov,
    Pseudo,
    Reg,
    Register,
    Ret,
    SetCC,
    Stack,
    Unary,
    UnaryOperator,
)


AX = Register(Reg.AX)
R10 = Register(Reg.R10)
R11 = Register(Reg.R11)


def _fix(*instructions):
    return Legalizer().fix_up_instructions(list(instructions))


class TestStackFrame:
    def test_slots_in_first_seen_order(self):
        frame = StackFrame()
        assert frame.slot_for("a") == Stack(-4)
        assert frame.slot_for("b") == Stack(-8)
        assert frame.slot_for("a") == Stack(-4)
        assert frame.size == 8
        assert frame.slots == {"a": -4, "b": -8}


class TestReplacePseudoRegisters:
    def test_replaces_every_pseudo(self):
        out, frame = Legalizer().replace_pseudo_registers([
            Mov(Imm(1), Pseudo("x")),
            Binary(BinaryOperator.ADD, Pseudo("y"), Pseudo("x")),
            SetCC(CondCode.E, Pseudo("z")),
            Mov(Pseudo("x"), AX),
            Ret(),
        ])
        assert out == [
            Mov(Imm(1), Stack(-4)),
            Binary(BinaryOperator.ADD, Stack(-8), Stack(-4)),
            SetCC(CondCode.E, Stack(-12)),
            Mov(Stack(-4), AX),
            Ret(),
        ]
        assert frame.size == 12

    def test_source_is_numbered_before_destination(self):
        out, _ = Legalizer().replace_pseudo_registers([Mov(Pseudo("src"), Pseudo("dst"))])
        assert out == [Mov(Stack(-4), Stack(-8))]

    def test_no_pseudos_means_empty_frame(self):
        out, frame = Legalizer().replace_pseudo_registers([Mov(Imm(2), AX), Ret()])
        assert out == [Mov(Imm(2), AX), Ret()]
        assert frame.size == 0

    def test_frame_is_deterministic(self):
        code = [
            Mov(Imm(1), Pseudo("b")),
            Mov(Pseudo("b"), Pseudo("a")),
            Cmp(Imm(0), Pseudo("c")),
        ]
        first = Legalizer().replace_pseudo_registers(code)[0]
        second = Legalizer().replace_pseudo_registers(code)[0]
        assert first == second


class TestFixUp:
    def test_mov_memory_to_memory(self):
        assert _fix(Mov(Stack(-4), Stack(-8))) == [
            Mov(Stack(-4), R10),
            Mov(R10, Stack(-8)),
        ]

    @pytest.mark.parametrize("op", [BinaryOperator.ADD, BinaryOperator.SUB])
    def test_add_sub_memory_to_memory(self, op):
        assert _fix(Binary(op, Stack(-4), Stack(-8))) == [
            Mov(Stack(-4), R10),
            Binary(op, R10, Stack(-8)),
        ]

    def test_imul_memory_destination(self):
        assert _fix(Binary(BinaryOperator.MULT, Imm(3), Stack(-4))) == [
            Mov(Stack(-4), R11),
            Binary(BinaryOperator.MULT, Imm(3), R11),
            Mov(R11, Stack(-4)),
        ]

    def test_imul_memory_both(self):
        out = _fix(Binary(BinaryOperator.MULT, Stack(-8), Stack(-4)))
        assert out == [
            Mov(Stack(-4), R11),
            Binary(BinaryOperator.MULT, Stack(-8), R11),
            Mov(R11, Stack(-4)),
        ]

    def test_idiv_immediate(self):
        assert _fix(Idiv(Imm(3))) == [Mov(Imm(3), R10), Idiv(R10)]

    def test_cmp_immediate_destination(self):
        assert _fix(Cmp(Imm(0), Imm(5))) == [Mov(Imm(5), R11), Cmp(Imm(0), R11)]

    def test_cmp_memory_to_memory(self):
        assert _fix(Cmp(Stack(-4), Stack(-8))) == [
            Mov(Stack(-4), R10),
            Cmp(R10, Stack(-8)),
        ]

    def test_cmp_memory_source_immediate_destination(self):
        assert _fix(Cmp(Stack(-4), Imm(1))) == [Mov(Imm(1), R11), Cmp(Stack(-4), R11)]

    def test_legal_instructions_pass_through(self):
        code = [
            AllocateStack(8),
            Mov(Imm(1), Stack(-4)),
            Unary(UnaryOperator.NEG, Stack(-4)),
            Binary(BinaryOperator.ADD, Imm(2), Stack(-4)),
            Mov(Stack(-4), AX),
            Cdq(),
            Idiv(Stack(-8)),
            Cmp(Imm(0), Stack(-4)),
            JmpCC(CondCode.E, "x"),
            SetCC(CondCode.NE, Stack(-4)),
            Label("x"),
            Ret(),
        ]
        assert _fix(*code) == code

    def test_fix_up_is_idempotent(self):
        code = [
            Mov(Stack(-4), Stack(-8)),
            Binary(BinaryOperator.MULT, Stack(-4), Stack(-8)),
            Binary(BinaryOperator.SUB, Stack(-4), Stack(-8)),
            Idiv(Imm(3)),
            Cmp(Stack(-4), Imm(2)),
        ]
        once = _fix(*code)
        assert _fix(*once) == once
        assert all(is_legal(ins) for ins in once)

    def test_pseudo_left_over_is_internal_error(self):
        with pytest.raises(InternalCompilerError):
            _fix(Mov(Pseudo("x"), AX))


class TestIsLegal:
    def test_pseudo_is_illegal(self):
        assert not is_legal(Mov(Imm(1), Pseudo("x")))

    def test_immediate_destination_is_illegal(self):
        assert not is_legal(Mov(AX, Imm(1)))
        assert not is_legal(Binary(BinaryOperator.ADD, Imm(1), Imm(2)))

    def test_register_forms_are_legal(self):
        assert is_legal(Binary(BinaryOperator.MULT, Stack(-4), R11))
        assert is_legal(Mov(Stack(-4), R10))


def test_legalize_function_prepends_frame():
    fn = AsmFunction("main", [
        Mov(Imm(2), Pseudo("a")),
        Mov(Pseudo("a"), Pseudo("b")),
        Mov(Pseudo("b"), AX),
        Ret(),
    ])
    out = Legalizer().legalize(AsmProgram([fn])).functions[0]
    assert out.name == "main"
    assert out.instructions == [
        AllocateStack(8),
        Mov(Imm(2), Stack(-4)),
        Mov(Stack(-4), R10),
        Mov(R10, Stack(-8)),
        Mov(Stack(-8), AX),
        Ret(),
    ]


def test_each_function_gets_its_own_frame():
    fns = [
        AsmFunction("f", [Mov(Imm(1), Pseudo("x")), Ret()]),
        AsmFunction("main", [Mov(Imm(1), Pseudo("y")), Mov(Imm(1), Pseudo("z")), Ret()]),
    ]
    out = Legalizer().legalize(AsmProgram(fns))
    assert out.functions[0].instructions[0] == AllocateStack(4)
    assert out.functions[1].instructions[0] == AllocateStack(8)
    assert out.functions[1].instructions[1] == Mov(Imm(1), Stack(-4))
