"""minicc.parser

Recursive-descent parser for the minicc C subset.

The grammar covers:

- function definitions `int name(void) { ... }`
- local `int` declarations with optional initializer
- statements: compound, if/else, while, do/while, for, break, continue,
  return, expression and null statements
- expressions with C operator precedence for: assignment, ?:, ||, &&,
  equality, relational, additive, multiplicative, unary (- ~ !)

Binary operators are folded by precedence climbing over a single table
instead of one function per grammar level. Unary operators recurse into
`_parse_factor`, so any chain of them nests to the right.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Union

from minicc.errors import CompileError
from minicc.lexer import Token, TokenType
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


INT_MAX = 2**31 - 1

# Binary operator precedence, higher binds tighter.
BINARY_PRECEDENCE: Dict[TokenType, int] = {
    TokenType.STAR: 50,
    TokenType.SLASH: 50,
    TokenType.PERCENT: 50,
    TokenType.PLUS: 45,
    TokenType.MINUS: 45,
    TokenType.LT: 35,
    TokenType.LTE: 35,
    TokenType.GT: 35,
    TokenType.GTE: 35,
    TokenType.EQ: 30,
    TokenType.NEQ: 30,
    TokenType.LAND: 10,
    TokenType.LOR: 5,
    TokenType.QUESTION: 3,
    TokenType.ASSIGN: 1,
}

UNARY_OPERATORS = {TokenType.MINUS, TokenType.TILDE, TokenType.BANG}


class ParserError(CompileError):
    """Syntax error: the token found cannot continue the current rule"""
    def __init__(self, expected: str, token: Optional[Token] = None):
        self.expected = expected
        self.token = token
        if token is None:
            super().__init__(f"Expected {expected}, found end of input")
        elif token.type == TokenType.EOF:
            super().__init__(f"Expected {expected}, found end of input at {token.line}:{token.column}")
        else:
            super().__init__(f"Expected {expected}, found '{token.value}' at {token.line}:{token.column}")


class Parser:
    """Parser for the C subset"""

    def __init__(self, tokens: List[Token]):
        self.tokens: List[Token] = list(tokens)
        self.position = 0
        self.current_token: Optional[Token] = self.tokens[0] if self.tokens else None

    def parse(self) -> Program:
        """Parse entire program"""
        functions: List[FunctionDecl] = []
        while not self._at(TokenType.EOF):
            if self.current_token is None:
                raise ParserError("function definition")
            functions.append(self._parse_function())

        if not functions:
            raise ParserError("function definition", self.current_token)

        first = self.tokens[0]
        return Program(functions=functions, line=first.line, column=first.column)

    def advance(self) -> Optional[Token]:
        """Move to next token"""
        if self.position < len(self.tokens) - 1:
            self.position += 1
            self.current_token = self.tokens[self.position]
        return self.current_token

    # -----------------
    # Helpers
    # -----------------

    def _at(self, t: TokenType) -> bool:
        return self.current_token is not None and self.current_token.type == t

    def _at_keyword(self, kw: str) -> bool:
        return self._at(TokenType.KEYWORD) and self.current_token.value == kw

    def _match(self, t: TokenType) -> bool:
        if self._at(t):
            self.advance()
            return True
        return False

    def _expect(self, t: TokenType, expected: str) -> Token:
        tok = self.current_token
        if tok is None or tok.type != t:
            raise ParserError(expected, tok)
        self.advance()
        return tok

    def _expect_keyword(self, kw: str) -> Token:
        tok = self.current_token
        if not self._at_keyword(kw):
            raise ParserError(f"'{kw}'", tok)
        self.advance()
        return tok

    # -----------------
    # Functions
    # -----------------

    def _parse_function(self) -> FunctionDecl:
        self._expect_keyword("int")
        name_tok = self._expect(TokenType.IDENTIFIER, "function name")
        self._expect(TokenType.LPAREN, "'('")
        self._expect_keyword("void")
        self._expect(TokenType.RPAREN, "')'")
        body = self._parse_compound_statement()
        return FunctionDecl(name=name_tok.value, body=body, line=name_tok.line, column=name_tok.column)

    # -----------------
    # Statements
    # -----------------

    def _parse_compound_statement(self) -> CompoundStmt:
        lbrace = self._expect(TokenType.LBRACE, "'{'")
        items: List[Union[Statement, Declaration]] = []
        while not self._at(TokenType.RBRACE):
            if self._at(TokenType.EOF):
                raise ParserError("'}'", self.current_token)
            if self._at_keyword("int"):
                items.append(self._parse_declaration())
            else:
                items.append(self._parse_statement())
        self._expect(TokenType.RBRACE, "'}'")
        return CompoundStmt(statements=items, line=lbrace.line, column=lbrace.column)

    def _parse_declaration(self) -> Declaration:
        int_tok = self._expect_keyword("int")
        name_tok = self._expect(TokenType.IDENTIFIER, "variable name")
        initializer = None
        if self._match(TokenType.ASSIGN):
            initializer = self._parse_expression()
        self._expect(TokenType.SEMICOLON, "';'")
        return Declaration(name=name_tok.value, initializer=initializer, line=int_tok.line, column=int_tok.column)

    def _parse_statement(self) -> Statement:
        tok = self.current_token
        if tok is None:
            raise ParserError("statement")

        if self._at(TokenType.LBRACE):
            return self._parse_compound_statement()

        if self._match(TokenType.SEMICOLON):
            return NullStmt(line=tok.line, column=tok.column)

        if tok.type == TokenType.KEYWORD:
            kw = tok.value
            if kw == "return":
                self.advance()
                val = self._parse_expression()
                self._expect(TokenType.SEMICOLON, "';'")
                return ReturnStmt(value=val, line=tok.line, column=tok.column)
            if kw == "if":
                self.advance()
                self._expect(TokenType.LPAREN, "'('")
                cond = self._parse_expression()
                self._expect(TokenType.RPAREN, "')'")
                then_stmt = self._parse_statement()
                else_stmt = None
                if self._at_keyword("else"):
                    self.advance()
                    else_stmt = self._parse_statement()
                return IfStmt(condition=cond, then_stmt=then_stmt, else_stmt=else_stmt, line=tok.line, column=tok.column)
            if kw == "while":
                self.advance()
                self._expect(TokenType.LPAREN, "'('")
                cond = self._parse_expression()
                self._expect(TokenType.RPAREN, "')'")
                body = self._parse_statement()
                return WhileStmt(condition=cond, body=body, line=tok.line, column=tok.column)
            if kw == "do":
                self.advance()
                body = self._parse_statement()
                self._expect_keyword("while")
                self._expect(TokenType.LPAREN, "'('")
                cond = self._parse_expression()
                self._expect(TokenType.RPAREN, "')'")
                self._expect(TokenType.SEMICOLON, "';'")
                return DoWhileStmt(body=body, condition=cond, line=tok.line, column=tok.column)
            if kw == "for":
                return self._parse_for_statement()
            if kw == "break":
                self.advance()
                self._expect(TokenType.SEMICOLON, "';'")
                return BreakStmt(line=tok.line, column=tok.column)
            if kw == "continue":
                self.advance()
                self._expect(TokenType.SEMICOLON, "';'")
                return ContinueStmt(line=tok.line, column=tok.column)
            if kw == "int":
                # declarations are block items, not statements (e.g. `if (x) int y;`)
                raise ParserError("statement", tok)

        expr = self._parse_expression()
        self._expect(TokenType.SEMICOLON, "';'")
        return ExpressionStmt(expression=expr, line=tok.line, column=tok.column)

    def _parse_for_statement(self) -> ForStmt:
        tok = self._expect_keyword("for")
        self._expect(TokenType.LPAREN, "'('")

        init: Optional[Union[Declaration, Expression]] = None
        if self._at_keyword("int"):
            init = self._parse_declaration()
        else:
            if not self._at(TokenType.SEMICOLON):
                init = self._parse_expression()
            self._expect(TokenType.SEMICOLON, "';'")

        cond = None
        if not self._at(TokenType.SEMICOLON):
            cond = self._parse_expression()
        self._expect(TokenType.SEMICOLON, "';'")

        update = None
        if not self._at(TokenType.RPAREN):
            update = self._parse_expression()
        self._expect(TokenType.RPAREN, "')'")

        body = self._parse_statement()
        return ForStmt(init=init, condition=cond, update=update, body=body, line=tok.line, column=tok.column)

    # -----------------
    # Expressions (precedence climbing)
    # -----------------

    def _parse_expression(self, min_precedence: int = 0) -> Expression:
        left = self._parse_factor()
        while True:
            tok = self.current_token
            prec = BINARY_PRECEDENCE.get(tok.type) if tok is not None else None
            if prec is None or prec < min_precedence:
                return left
            self.advance()
            if tok.type == TokenType.ASSIGN:
                # right associative
                right = self._parse_expression(prec)
                left = Assignment(target=left, value=right, line=tok.line, column=tok.column)
            elif tok.type == TokenType.QUESTION:
                middle = self._parse_expression(0)
                self._expect(TokenType.COLON, "':'")
                right = self._parse_expression(prec)
                left = TernaryOp(condition=left, true_expr=middle, false_expr=right, line=tok.line, column=tok.column)
            else:
                right = self._parse_expression(prec + 1)
                left = BinaryOp(operator=tok.value, left=left, right=right, line=tok.line, column=tok.column)

    def _parse_factor(self) -> Expression:
        tok = self.current_token
        if tok is None:
            raise ParserError("expression")

        if tok.type == TokenType.NUMBER:
            value = int(tok.value)
            if value > INT_MAX:
                raise ParserError("integer constant that fits in int", tok)
            self.advance()
            return IntLiteral(value=value, line=tok.line, column=tok.column)
        if tok.type == TokenType.IDENTIFIER:
            self.advance()
            return Identifier(name=tok.value, line=tok.line, column=tok.column)
        if tok.type in UNARY_OPERATORS:
            self.advance()
            operand = self._parse_factor()
            return UnaryOp(operator=tok.value, operand=operand, line=tok.line, column=tok.column)
        if self._match(TokenType.LPAREN):
            expr = self._parse_expression(0)
            self._expect(TokenType.RPAREN, "')'")
            return expr

        raise ParserError("expression", tok)
