from minicc.lexer import Lexer
from minicc.parser import Parser
from minicc.names import NameGenerator
from minicc.semantics import SemanticAnalyzer
from minicc.ir import (
    IRGenerator,
    Binary,
    Constant,
    Copy,
    Jump,
    JumpIfNotZero,
    JumpIfZero,
    Label,
    Return,
    Unary,
    Var,
)


def _tac(code: str):
    names = NameGenerator()
    ast = Parser(Lexer(code).tokenize()).parse()
    ast = SemanticAnalyzer(names).analyze(ast)
    return IRGenerator(names).generate(ast)


def _main(code: str):
    return _tac(code).functions[0].instructions


def test_return_constant():
    ins = _main("int main(void) { return 2; }")
    assert ins[0] == Return(Constant(2))
    # implicit trailing return 0
    assert ins[-1] == Return(Constant(0))


def test_nested_unary_uses_fresh_temporaries():
    ins = _main("int main(void) { return ~(-3); }")
    neg, inv, ret = ins[:3]
    assert isinstance(neg, Unary) and neg.operator == "-" and neg.src == Constant(3)
    assert isinstance(inv, Unary) and inv.operator == "~" and inv.src == neg.dst
    assert neg.dst != inv.dst
    assert ret == Return(inv.dst)


def test_binary_evaluates_left_then_right():
    ins = _main("int main(void) { return (1 + 2) * (3 - 4); }")
    add, sub, mul = ins[:3]
    assert isinstance(add, Binary) and add.operator == "+"
    assert isinstance(sub, Binary) and sub.operator == "-"
    assert mul == Binary("*", add.dst, sub.dst, mul.dst)


def test_temporaries_are_unique():
    ins = _main("int main(void) { return -1 + -2 + -3; }")
    dsts = [i.dst for i in ins if isinstance(i, (Unary, Binary))]
    assert len(dsts) == len(set(dsts))
    assert all(d.name.startswith("tmp.") for d in dsts)


def test_logical_and_short_circuits():
    ins = _main("int main(void) { return 1 && 2; }")
    j1, j2, one, jmp, lbl_false, zero, lbl_end, ret = ins[:8]
    assert j1 == JumpIfZero(Constant(1), j1.target)
    # the right operand is only evaluated after the first test
    assert j2 == JumpIfZero(Constant(2), j1.target)
    dst = one.dst
    assert one == Copy(Constant(1), dst)
    assert jmp == Jump(lbl_end.name)
    assert lbl_false == Label(j1.target)
    assert zero == Copy(Constant(0), dst)
    assert isinstance(lbl_end, Label)
    assert ret == Return(dst)


def test_logical_or_short_circuits():
    ins = _main("int main(void) { return 0 || 5; }")
    j1, j2, zero, jmp, lbl_true, one, lbl_end = ins[:7]
    assert j1 == JumpIfNotZero(Constant(0), j1.target)
    assert j2 == JumpIfNotZero(Constant(5), j1.target)
    assert zero == Copy(Constant(0), zero.dst)
    assert jmp == Jump(lbl_end.name)
    assert lbl_true == Label(j1.target)
    assert one == Copy(Constant(1), zero.dst)


def test_right_operand_code_follows_first_jump():
    ins = _main("int main(void) { return 1 && -2; }")
    assert isinstance(ins[0], JumpIfZero)
    assert isinstance(ins[1], Unary)
    assert ins[2] == JumpIfZero(ins[1].dst, ins[0].target)


def test_labels_are_unique_within_program():
    tac = _tac(
        """
int f(void) { return 1 && 2 || 3; }
int main(void) { return (1 ? 2 : 3) && (0 || 1); }
"""
    )
    labels = [i.name for fn in tac.functions for i in fn.instructions if isinstance(i, Label)]
    assert len(labels) == len(set(labels))


def test_conditional_expression():
    ins = _main("int main(void) { return 1 ? 2 : 3; }")
    jz, c1, jmp, else_lbl, c2, end_lbl, ret = ins[:7]
    assert jz == JumpIfZero(Constant(1), else_lbl.name)
    assert c1 == Copy(Constant(2), c1.dst)
    assert jmp == Jump(end_lbl.name)
    assert c2 == Copy(Constant(3), c1.dst)
    assert ret == Return(c1.dst)


def test_assignment_copies_into_variable():
    ins = _main("int main(void) { int a = 1; a = a + 2; return a; }")
    init, add, assign, ret = ins[:4]
    assert isinstance(init, Copy) and init.src == Constant(1)
    a = init.dst
    assert add == Binary("+", a, Constant(2), add.dst)
    assert assign == Copy(add.dst, a)
    assert ret == Return(a)


def test_declaration_without_initializer_emits_nothing():
    ins = _main("int main(void) { int a; return 0; }")
    assert ins[0] == Return(Constant(0))


def test_if_else_shape():
    ins = _main("int main(void) { if (1) return 2; else return 3; }")
    jz, r2, jmp, else_lbl, r3, end_lbl = ins[:6]
    assert jz == JumpIfZero(Constant(1), else_lbl.name)
    assert r2 == Return(Constant(2))
    assert jmp == Jump(end_lbl.name)
    assert r3 == Return(Constant(3))


def test_while_loop_shape():
    ins = _main("int main(void) { int a = 3; while (a) { a = a - 1; } return a; }")
    labels = [i.name for i in ins if isinstance(i, Label)]
    cont, brk = labels
    assert cont.startswith("continue_while.")
    assert brk.startswith("break_while.")
    assert Jump(cont) in ins
    assert JumpIfZero(Var(ins[0].dst.name), brk) in ins


def test_do_while_jumps_back_to_start():
    ins = _main("int main(void) { int a = 3; do a = a - 1; while (a); return a; }")
    start = [i for i in ins if isinstance(i, Label)][0]
    assert start.name.startswith("start_do.")
    assert any(isinstance(i, JumpIfNotZero) and i.target == start.name for i in ins)


def test_for_break_and_continue_targets():
    ins = _main(
        """
int main(void) {
  for (int i = 0; i < 10; i = i + 1) {
    if (i == 2) continue;
    if (i == 5) break;
  }
  return 0;
}
"""
    )
    names = {i.name for i in ins if isinstance(i, Label)}
    jumps = {i.target for i in ins if isinstance(i, Jump)}
    cont = next(n for n in names if n.startswith("continue_for."))
    brk = next(n for n in names if n.startswith("break_for."))
    start = next(n for n in names if n.startswith("start_for."))
    assert {cont, brk, start} <= jumps


def test_every_function_ends_with_return():
    tac = _tac("int f(void) { int a = 1; } int main(void) { return 0; }")
    for fn in tac.functions:
        assert fn.instructions[-1] == Return(Constant(0))
