"""
Abstract Syntax Tree (AST) Node Definitions for minicc

Defines the structure of AST nodes used to represent C subset programs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass
class ASTNode:
    """Base class for all AST nodes"""
    # Location fields (line/column) are required constructor arguments
    # so subclasses' non-default fields don't follow defaults.
    line: int
    column: int


# ============== Expression Nodes ==============

@dataclass
class Expression(ASTNode):
    """Base class for expressions"""
    pass


@dataclass
class IntLiteral(Expression):
    """Integer constant"""
    value: int


@dataclass
class Identifier(Expression):
    """Variable reference"""
    name: str


@dataclass
class UnaryOp(Expression):
    """Unary operation: '-', '~' or '!'"""
    operator: str
    operand: Expression


@dataclass
class BinaryOp(Expression):
    """Binary operation, arithmetic, relational or logical"""
    operator: str
    left: Expression
    right: Expression


@dataclass
class Assignment(Expression):
    """Simple assignment `target = value`"""
    target: Expression
    value: Expression


@dataclass
class TernaryOp(Expression):
    """Conditional expression `condition ? true_expr : false_expr`"""
    condition: Expression
    true_expr: Expression
    false_expr: Expression


# ============== Declaration Nodes ==============

@dataclass
class Declaration(ASTNode):
    """Local `int` variable declaration"""
    name: str
    initializer: Optional[Expression] = None


# ============== Statement Nodes ==============

@dataclass
class Statement(ASTNode):
    """Base class for statements"""
    pass


@dataclass
class ReturnStmt(Statement):
    """Return statement"""
    value: Expression


@dataclass
class ExpressionStmt(Statement):
    """Expression statement"""
    expression: Expression


@dataclass
class NullStmt(Statement):
    """Empty statement `;`"""
    pass


@dataclass
class CompoundStmt(Statement):
    """Block statement { ... }"""
    statements: List[Union[Statement, Declaration]] = field(default_factory=list)


@dataclass
class IfStmt(Statement):
    """If statement"""
    condition: Expression
    then_stmt: Statement
    else_stmt: Optional[Statement] = None


@dataclass
class WhileStmt(Statement):
    """While loop"""
    condition: Expression
    body: Statement
    label: Optional[str] = None


@dataclass
class DoWhileStmt(Statement):
    """Do-while loop"""
    body: Statement
    condition: Expression
    label: Optional[str] = None


@dataclass
class ForStmt(Statement):
    """For loop; `init` is a declaration, an expression, or None"""
    init: Optional[Union[Declaration, Expression]]
    condition: Optional[Expression]
    update: Optional[Expression]
    body: Statement
    label: Optional[str] = None


@dataclass
class BreakStmt(Statement):
    """Break statement; `label` is filled in by loop labeling"""
    label: Optional[str] = None


@dataclass
class ContinueStmt(Statement):
    """Continue statement; `label` is filled in by loop labeling"""
    label: Optional[str] = None


# ============== Top Level ==============

@dataclass
class FunctionDecl(ASTNode):
    """Function definition `int name(void) { ... }`"""
    name: str
    body: CompoundStmt


@dataclass
class Program(ASTNode):
    """Root node: one translation unit"""
    functions: List[FunctionDecl] = field(default_factory=list)
