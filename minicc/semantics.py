"""minicc.semantics

Semantic analysis between parsing and IR lowering.

Two jobs, done in one walk over each function:

- variable resolution: every local is renamed to a unique `<name>.<n>` so
  later stages never have to think about scopes. Duplicate declarations in
  one block, undeclared variables and assignments to non-variables are
  errors.
- loop labeling: every loop gets a unique label and each `break` /
  `continue` is annotated with the label of its innermost enclosing loop.

The input tree is left untouched; a new tree is returned.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Union

from minicc.errors import CompileError
from minicc.names import NameGenerator
from minicc.ast_nodes import (
    ASTNode,
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


class SemanticError(CompileError):
    """Semantic analysis error"""
    def __init__(self, message: str, node: Optional[ASTNode] = None):
        self.message = message
        self.node = node
        if node is not None:
            super().__init__(f"{message} at {node.line}:{node.column}")
        else:
            super().__init__(message)


@dataclass
class _Binding:
    unique_name: str
    from_current_block: bool


Scope = Dict[str, _Binding]


def _enter_block(scope: Scope) -> Scope:
    return {name: _Binding(b.unique_name, False) for name, b in scope.items()}


class SemanticAnalyzer:
    """Resolves variables and labels loops for a whole program"""

    def __init__(self, names: Optional[NameGenerator] = None):
        self.names = names or NameGenerator()

    def analyze(self, program: Program) -> Program:
        seen: Set[str] = set()
        functions: List[FunctionDecl] = []
        for fn in program.functions:
            if fn.name in seen:
                raise SemanticError(f"Duplicate definition of function '{fn.name}'", fn)
            seen.add(fn.name)
            body = self._resolve_block(fn.body, {}, None)
            functions.append(FunctionDecl(name=fn.name, body=body, line=fn.line, column=fn.column))
        return Program(functions=functions, line=program.line, column=program.column)

    # -----------------
    # Blocks and declarations
    # -----------------

    def _resolve_block(self, block: CompoundStmt, scope: Scope, loop: Optional[str]) -> CompoundStmt:
        inner = _enter_block(scope)
        items: List[Union[Statement, Declaration]] = []
        for item in block.statements:
            if isinstance(item, Declaration):
                items.append(self._resolve_declaration(item, inner))
            else:
                items.append(self._resolve_stmt(item, inner, loop))
        return CompoundStmt(statements=items, line=block.line, column=block.column)

    def _resolve_declaration(self, decl: Declaration, scope: Scope) -> Declaration:
        existing = scope.get(decl.name)
        if existing is not None and existing.from_current_block:
            raise SemanticError(f"Duplicate declaration of '{decl.name}'", decl)
        unique = self.names.make(decl.name)
        scope[decl.name] = _Binding(unique, True)
        # the new name is already visible inside its own initializer
        initializer = None
        if decl.initializer is not None:
            initializer = self._resolve_expr(decl.initializer, scope)
        return Declaration(name=unique, initializer=initializer, line=decl.line, column=decl.column)

    # -----------------
    # Statements
    # -----------------

    def _resolve_stmt(self, stmt: Statement, scope: Scope, loop: Optional[str]) -> Statement:
        if isinstance(stmt, ReturnStmt):
            return ReturnStmt(value=self._resolve_expr(stmt.value, scope), line=stmt.line, column=stmt.column)
        if isinstance(stmt, ExpressionStmt):
            return ExpressionStmt(expression=self._resolve_expr(stmt.expression, scope), line=stmt.line, column=stmt.column)
        if isinstance(stmt, NullStmt):
            return stmt
        if isinstance(stmt, CompoundStmt):
            return self._resolve_block(stmt, scope, loop)
        if isinstance(stmt, IfStmt):
            condition = self._resolve_expr(stmt.condition, scope)
            then_stmt = self._resolve_stmt(stmt.then_stmt, scope, loop)
            else_stmt = None
            if stmt.else_stmt is not None:
                else_stmt = self._resolve_stmt(stmt.else_stmt, scope, loop)
            return IfStmt(
                condition=condition,
                then_stmt=then_stmt,
                else_stmt=else_stmt,
                line=stmt.line,
                column=stmt.column,
            )
        if isinstance(stmt, WhileStmt):
            label = self.names.label("while")
            return WhileStmt(
                condition=self._resolve_expr(stmt.condition, scope),
                body=self._resolve_stmt(stmt.body, scope, label),
                label=label,
                line=stmt.line,
                column=stmt.column,
            )
        if isinstance(stmt, DoWhileStmt):
            label = self.names.label("do")
            return DoWhileStmt(
                body=self._resolve_stmt(stmt.body, scope, label),
                condition=self._resolve_expr(stmt.condition, scope),
                label=label,
                line=stmt.line,
                column=stmt.column,
            )
        if isinstance(stmt, ForStmt):
            return self._resolve_for(stmt, scope)
        if isinstance(stmt, BreakStmt):
            if loop is None:
                raise SemanticError("'break' statement not in loop", stmt)
            return BreakStmt(label=loop, line=stmt.line, column=stmt.column)
        if isinstance(stmt, ContinueStmt):
            if loop is None:
                raise SemanticError("'continue' statement not in loop", stmt)
            return ContinueStmt(label=loop, line=stmt.line, column=stmt.column)
        raise SemanticError(f"Unsupported statement {type(stmt).__name__}", stmt)

    def _resolve_for(self, stmt: ForStmt, scope: Scope) -> ForStmt:
        label = self.names.label("for")
        # the loop header opens its own scope
        header = _enter_block(scope)
        init: Optional[Union[Declaration, Expression]] = None
        if isinstance(stmt.init, Declaration):
            init = self._resolve_declaration(stmt.init, header)
        elif stmt.init is not None:
            init = self._resolve_expr(stmt.init, header)
        condition = self._resolve_expr(stmt.condition, header) if stmt.condition is not None else None
        update = self._resolve_expr(stmt.update, header) if stmt.update is not None else None
        body = self._resolve_stmt(stmt.body, header, label)
        return ForStmt(
            init=init,
            condition=condition,
            update=update,
            body=body,
            label=label,
            line=stmt.line,
            column=stmt.column,
        )

    # -----------------
    # Expressions
    # -----------------

    def _resolve_expr(self, expr: Expression, scope: Scope) -> Expression:
        if isinstance(expr, IntLiteral):
            return expr
        if isinstance(expr, Identifier):
            binding = scope.get(expr.name)
            if binding is None:
                raise SemanticError(f"Undeclared variable '{expr.name}'", expr)
            return Identifier(name=binding.unique_name, line=expr.line, column=expr.column)
        if isinstance(expr, UnaryOp):
            return UnaryOp(
                operator=expr.operator,
                operand=self._resolve_expr(expr.operand, scope),
                line=expr.line,
                column=expr.column,
            )
        if isinstance(expr, BinaryOp):
            return BinaryOp(
                operator=expr.operator,
                left=self._resolve_expr(expr.left, scope),
                right=self._resolve_expr(expr.right, scope),
                line=expr.line,
                column=expr.column,
            )
        if isinstance(expr, Assignment):
            if not isinstance(expr.target, Identifier):
                raise SemanticError("Invalid lvalue in assignment", expr)
            return Assignment(
                target=self._resolve_expr(expr.target, scope),
                value=self._resolve_expr(expr.value, scope),
                line=expr.line,
                column=expr.column,
            )
        if isinstance(expr, TernaryOp):
            return TernaryOp(
                condition=self._resolve_expr(expr.condition, scope),
                true_expr=self._resolve_expr(expr.true_expr, scope),
                false_expr=self._resolve_expr(expr.false_expr, scope),
                line=expr.line,
                column=expr.column,
            )
        raise SemanticError(f"Unsupported expression {type(expr).__name__}", expr)
