"""
Lexical Analyzer (Lexer) for the minicc C subset

Converts source code into a stream of tokens for the parser.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Set

from minicc.errors import CompileError


class TokenType(Enum):
    """Token types for the C subset"""
    # Literals
    NUMBER = auto()

    # Identifiers and Keywords
    IDENTIFIER = auto()
    KEYWORD = auto()

    # Operators
    PLUS = auto()                # +
    MINUS = auto()               # -
    STAR = auto()                # *
    SLASH = auto()               # /
    PERCENT = auto()             # %
    TILDE = auto()               # ~
    BANG = auto()                # !
    LAND = auto()                # &&
    LOR = auto()                 # ||
    EQ = auto()                  # ==
    NEQ = auto()                 # !=
    LT = auto()                  # <
    GT = auto()                  # >
    LTE = auto()                 # <=
    GTE = auto()                 # >=
    ASSIGN = auto()              # =
    QUESTION = auto()            # ?
    COLON = auto()               # :

    # Delimiters
    LPAREN = auto()              # (
    RPAREN = auto()              # )
    LBRACE = auto()              # {
    RBRACE = auto()              # }
    SEMICOLON = auto()           # ;

    # Special
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """Represents a lexical token"""
    type: TokenType
    value: str
    line: int
    column: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {repr(self.value)}, {self.line}:{self.column})"


class LexerError(CompileError):
    """Lexer error with line and column information"""
    def __init__(self, message: str, line: int, column: int):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"{message} at {line}:{column}")


# Operators that are a single character and never start a longer token.
_SINGLE_CHAR_TOKENS = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '%': TokenType.PERCENT,
    '~': TokenType.TILDE,
    '?': TokenType.QUESTION,
    ':': TokenType.COLON,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    ';': TokenType.SEMICOLON,
}

# first char -> (second char, two-char type, one-char type or None)
_TWO_CHAR_TOKENS = {
    '=': ('=', TokenType.EQ, TokenType.ASSIGN),
    '!': ('=', TokenType.NEQ, TokenType.BANG),
    '<': ('=', TokenType.LTE, TokenType.LT),
    '>': ('=', TokenType.GTE, TokenType.GT),
    '&': ('&', TokenType.LAND, None),
    '|': ('|', TokenType.LOR, None),
}


# ASCII only: str.isdigit() and str.isalpha() also accept '²' and 'é'.
def _is_digit(c: Optional[str]) -> bool:
    return c is not None and '0' <= c <= '9'


def _is_ident_start(c: Optional[str]) -> bool:
    return c is not None and ('a' <= c <= 'z' or 'A' <= c <= 'Z' or c == '_')


def _is_ident_char(c: Optional[str]) -> bool:
    return _is_ident_start(c) or _is_digit(c)


class Lexer:
    """Lexical analyzer for C subset source code"""

    KEYWORDS: Set[str] = {
        'int', 'void', 'return', 'if', 'else', 'do', 'while', 'for',
        'break', 'continue',
    }

    def __init__(self, source: str):
        """Initialize lexer with source code"""
        self.source = source
        self.position = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []
        self.errors: List[LexerError] = []

    def current_char(self) -> Optional[str]:
        """Get current character without consuming"""
        if self.position >= len(self.source):
            return None
        return self.source[self.position]

    def peek_char(self, offset: int = 1) -> Optional[str]:
        """Peek ahead at character"""
        pos = self.position + offset
        if pos >= len(self.source):
            return None
        return self.source[pos]

    def advance(self) -> Optional[str]:
        """Consume and return current character"""
        if self.position >= len(self.source):
            return None

        char = self.source[self.position]
        self.position += 1

        if char == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1

        return char

    def skip_whitespace(self) -> None:
        """Skip whitespace characters, newlines included"""
        while self.current_char() and self.current_char() in ' \t\r\n\f\v':
            self.advance()

    def skip_line_comment(self) -> None:
        """Skip single-line comment (//...)"""
        self.advance()  # skip first /
        self.advance()  # skip second /

        while self.current_char() and self.current_char() != '\n':
            self.advance()

    def skip_block_comment(self) -> None:
        """Skip multi-line comment (/* ... */)"""
        line, column = self.line, self.column
        self.advance()  # skip /
        self.advance()  # skip *

        while self.current_char():
            if self.current_char() == '*' and self.peek_char() == '/':
                self.advance()  # skip *
                self.advance()  # skip /
                return
            self.advance()

        # Reached EOF without closing comment
        self.errors.append(LexerError("Unterminated block comment", line, column))

    def read_number(self) -> str:
        """Read a decimal integer constant"""
        num_str = ""
        while _is_digit(self.current_char()):
            num_str += self.advance()
        return num_str

    def read_identifier(self) -> str:
        """Read identifier or keyword"""
        ident = ""
        while _is_ident_char(self.current_char()):
            ident += self.advance()
        return ident

    def tokenize(self) -> List[Token]:
        """Tokenize entire source code"""
        self.tokens = []
        self.errors = []

        while self.position < len(self.source):
            self.skip_whitespace()

            if self.position >= len(self.source):
                break

            # Save token start position
            token_line = self.line
            token_column = self.column

            char = self.current_char()

            # Comments
            if char == '/' and self.peek_char() == '/':
                self.skip_line_comment()
                continue
            elif char == '/' and self.peek_char() == '*':
                self.skip_block_comment()
                continue

            # Numbers: a constant must not run into an identifier (`123abc`)
            elif _is_digit(char):
                value = self.read_number()
                nxt = self.current_char()
                if _is_ident_start(nxt):
                    bad = value + self.read_identifier()
                    self.errors.append(LexerError(f"Invalid constant '{bad}'", token_line, token_column))
                    continue
                self.tokens.append(Token(TokenType.NUMBER, value, token_line, token_column))

            # Identifiers and keywords
            elif _is_ident_start(char):
                ident = self.read_identifier()
                if ident in self.KEYWORDS:
                    self.tokens.append(Token(TokenType.KEYWORD, ident, token_line, token_column))
                else:
                    self.tokens.append(Token(TokenType.IDENTIFIER, ident, token_line, token_column))

            elif char in _TWO_CHAR_TOKENS:
                second, pair_type, single_type = _TWO_CHAR_TOKENS[char]
                self.advance()
                if self.current_char() == second:
                    self.advance()
                    self.tokens.append(Token(pair_type, char + second, token_line, token_column))
                elif single_type is not None:
                    self.tokens.append(Token(single_type, char, token_line, token_column))
                else:
                    self.errors.append(LexerError(f"Unexpected character '{char}'", token_line, token_column))

            # Every '-' is its own token: there is no decrement operator, so
            # `---3` is three negations.
            elif char in _SINGLE_CHAR_TOKENS:
                self.advance()
                self.tokens.append(Token(_SINGLE_CHAR_TOKENS[char], char, token_line, token_column))

            else:
                self.errors.append(LexerError(f"Unexpected character '{char}'", token_line, token_column))
                self.advance()

        # Add EOF token
        self.tokens.append(Token(TokenType.EOF, '', self.line, self.column))

        return self.tokens

    def has_errors(self) -> bool:
        """Check if any lexer errors occurred"""
        return len(self.errors) > 0

    def get_errors(self) -> List[LexerError]:
        """Get all lexer errors"""
        return self.errors
