"""minicc.ir

Intermediate Representation (IR) for minicc: three-address code ("TAC").

Every instruction has at most one operator and writes at most one
destination. Control flow is explicit: `&&`, `||`, `?:`, `if` and loops are
lowered into labels and (conditional) jumps, so later stages only ever see a
straight list executed top to bottom.

Values are either `Constant(int)` or `Var(name)`; temporaries are named
`tmp.<n>` and come from the run's `NameGenerator`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from minicc.errors import InternalCompilerError
from minicc.names import NameGenerator
from minicc.ast_nodes import (
    Program,
    FunctionDecl,
    Declaration,
    Statement,
    CompoundStmt,
    ReturnStmt,
    ExpressionStmt,
    NullStmt,
    IfStmt,
    WhileStmt,
    DoWhileStmt,
    ForStmt,
    BreakStmt,
    ContinueStmt,
    Expression,
    IntLiteral,
    Identifier,
    UnaryOp,
    BinaryOp,
    Assignment,
    TernaryOp,
)


# ============== Values ==============

@dataclass(frozen=True)
class Constant:
    value: int


@dataclass(frozen=True)
class Var:
    name: str


Value = Union[Constant, Var]


# ============== Instructions ==============

@dataclass(frozen=True)
class IRInstruction:
    """Base class for TAC instructions"""
    pass


@dataclass(frozen=True)
class Return(IRInstruction):
    value: Value


@dataclass(frozen=True)
class Unary(IRInstruction):
    operator: str  # '-', '~' or '!'
    src: Value
    dst: Var


@dataclass(frozen=True)
class Binary(IRInstruction):
    operator: str  # arithmetic or relational; never '&&' / '||'
    src1: Value
    src2: Value
    dst: Var


@dataclass(frozen=True)
class Copy(IRInstruction):
    src: Value
    dst: Var


@dataclass(frozen=True)
class Jump(IRInstruction):
    target: str


@dataclass(frozen=True)
class JumpIfZero(IRInstruction):
    condition: Value
    target: str


@dataclass(frozen=True)
class JumpIfNotZero(IRInstruction):
    condition: Value
    target: str


@dataclass(frozen=True)
class Label(IRInstruction):
    name: str


@dataclass
class TacFunction:
    name: str
    instructions: List[IRInstruction] = field(default_factory=list)


@dataclass
class TacProgram:
    functions: List[TacFunction] = field(default_factory=list)


class IRGenerator:
    """Generates intermediate representation (3-Address Code)"""

    def __init__(self, names: Optional[NameGenerator] = None):
        self.names = names or NameGenerator()
        self.instructions: List[IRInstruction] = []

    def generate(self, ast: Program) -> TacProgram:
        """Generate IR from AST"""
        return TacProgram(functions=[self._gen_function(fn) for fn in ast.functions])

    def _emit(self, ins: IRInstruction) -> None:
        self.instructions.append(ins)

    def _new_temp(self) -> Var:
        return Var(self.names.temporary())

    # -------------
    # Functions
    # -------------

    def _gen_function(self, fn: FunctionDecl) -> TacFunction:
        self.instructions = []
        self._gen_stmt(fn.body)
        # Falling off the end of a function returns 0.
        self._emit(Return(Constant(0)))
        return TacFunction(name=fn.name, instructions=self.instructions)

    # -------------
    # Statements
    # -------------

    def _gen_declaration(self, decl: Declaration) -> None:
        if decl.initializer is not None:
            v = self._gen_expr(decl.initializer)
            self._emit(Copy(v, Var(decl.name)))

    def _gen_stmt(self, stmt: Statement) -> None:
        if isinstance(stmt, ReturnStmt):
            v = self._gen_expr(stmt.value)
            self._emit(Return(v))
            return
        if isinstance(stmt, ExpressionStmt):
            self._gen_expr(stmt.expression)
            return
        if isinstance(stmt, NullStmt):
            return
        if isinstance(stmt, CompoundStmt):
            for item in stmt.statements:
                if isinstance(item, Declaration):
                    self._gen_declaration(item)
                else:
                    self._gen_stmt(item)
            return
        if isinstance(stmt, IfStmt):
            self._gen_if(stmt)
            return
        if isinstance(stmt, WhileStmt):
            label = self._loop_label(stmt)
            cont, brk = f"continue_{label}", f"break_{label}"
            self._emit(Label(cont))
            c = self._gen_expr(stmt.condition)
            self._emit(JumpIfZero(c, brk))
            self._gen_stmt(stmt.body)
            self._emit(Jump(cont))
            self._emit(Label(brk))
            return
        if isinstance(stmt, DoWhileStmt):
            label = self._loop_label(stmt)
            start, cont, brk = f"start_{label}", f"continue_{label}", f"break_{label}"
            self._emit(Label(start))
            self._gen_stmt(stmt.body)
            self._emit(Label(cont))
            c = self._gen_expr(stmt.condition)
            self._emit(JumpIfNotZero(c, start))
            self._emit(Label(brk))
            return
        if isinstance(stmt, ForStmt):
            self._gen_for(stmt)
            return
        if isinstance(stmt, BreakStmt):
            self._emit(Jump(f"break_{self._loop_label(stmt)}"))
            return
        if isinstance(stmt, ContinueStmt):
            self._emit(Jump(f"continue_{self._loop_label(stmt)}"))
            return
        raise InternalCompilerError("IR lowering", stmt)

    def _loop_label(self, stmt: Statement) -> str:
        label = getattr(stmt, "label", None)
        if label is None:
            # loop labeling runs during semantic analysis
            raise InternalCompilerError("IR lowering", stmt)
        return label

    def _gen_if(self, stmt: IfStmt) -> None:
        end = self.names.label("if_end")
        c = self._gen_expr(stmt.condition)
        if stmt.else_stmt is None:
            self._emit(JumpIfZero(c, end))
            self._gen_stmt(stmt.then_stmt)
            self._emit(Label(end))
            return
        else_label = self.names.label("if_else")
        self._emit(JumpIfZero(c, else_label))
        self._gen_stmt(stmt.then_stmt)
        self._emit(Jump(end))
        self._emit(Label(else_label))
        self._gen_stmt(stmt.else_stmt)
        self._emit(Label(end))

    def _gen_for(self, stmt: ForStmt) -> None:
        label = self._loop_label(stmt)
        start, cont, brk = f"start_{label}", f"continue_{label}", f"break_{label}"
        if isinstance(stmt.init, Declaration):
            self._gen_declaration(stmt.init)
        elif stmt.init is not None:
            self._gen_expr(stmt.init)
        self._emit(Label(start))
        if stmt.condition is not None:
            c = self._gen_expr(stmt.condition)
            self._emit(JumpIfZero(c, brk))
        self._gen_stmt(stmt.body)
        self._emit(Label(cont))
        if stmt.update is not None:
            self._gen_expr(stmt.update)
        self._emit(Jump(start))
        self._emit(Label(brk))

    # -------------
    # Expressions
    # -------------

    def _gen_expr(self, expr: Expression) -> Value:
        if isinstance(expr, IntLiteral):
            return Constant(expr.value)
        if isinstance(expr, Identifier):
            return Var(expr.name)
        if isinstance(expr, UnaryOp):
            src = self._gen_expr(expr.operand)
            dst = self._new_temp()
            self._emit(Unary(expr.operator, src, dst))
            return dst
        if isinstance(expr, BinaryOp):
            if expr.operator == "&&":
                return self._gen_logical_and(expr)
            if expr.operator == "||":
                return self._gen_logical_or(expr)
            v1 = self._gen_expr(expr.left)
            v2 = self._gen_expr(expr.right)
            dst = self._new_temp()
            self._emit(Binary(expr.operator, v1, v2, dst))
            return dst
        if isinstance(expr, Assignment):
            if not isinstance(expr.target, Identifier):
                raise InternalCompilerError("IR lowering", expr.target)
            rhs = self._gen_expr(expr.value)
            dst = Var(expr.target.name)
            self._emit(Copy(rhs, dst))
            return dst
        if isinstance(expr, TernaryOp):
            return self._gen_conditional(expr)
        raise InternalCompilerError("IR lowering", expr)

    def _gen_logical_and(self, expr: BinaryOp) -> Value:
        false_label = self.names.label("and_false")
        end = self.names.label("and_end")
        dst = self._new_temp()
        v1 = self._gen_expr(expr.left)
        self._emit(JumpIfZero(v1, false_label))
        # right operand is only reached when the left one is nonzero
        v2 = self._gen_expr(expr.right)
        self._emit(JumpIfZero(v2, false_label))
        self._emit(Copy(Constant(1), dst))
        self._emit(Jump(end))
        self._emit(Label(false_label))
        self._emit(Copy(Constant(0), dst))
        self._emit(Label(end))
        return dst

    def _gen_logical_or(self, expr: BinaryOp) -> Value:
        true_label = self.names.label("or_true")
        end = self.names.label("or_end")
        dst = self._new_temp()
        v1 = self._gen_expr(expr.left)
        self._emit(JumpIfNotZero(v1, true_label))
        # right operand is only reached when the left one is zero
        v2 = self._gen_expr(expr.right)
        self._emit(JumpIfNotZero(v2, true_label))
        self._emit(Copy(Constant(0), dst))
        self._emit(Jump(end))
        self._emit(Label(true_label))
        self._emit(Copy(Constant(1), dst))
        self._emit(Label(end))
        return dst

    def _gen_conditional(self, expr: TernaryOp) -> Value:
        else_label = self.names.label("cond_else")
        end = self.names.label("cond_end")
        dst = self._new_temp()
        c = self._gen_expr(expr.condition)
        self._emit(JumpIfZero(c, else_label))
        v1 = self._gen_expr(expr.true_expr)
        self._emit(Copy(v1, dst))
        self._emit(Jump(end))
        self._emit(Label(else_label))
        v2 = self._gen_expr(expr.false_expr)
        self._emit(Copy(v2, dst))
        self._emit(Label(end))
        return dst
