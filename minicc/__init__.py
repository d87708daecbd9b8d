"""
minicc - a small C subset compiler targeting x86-64

Lexer -> parser -> semantic analysis -> three-address code -> instruction
selection over pseudo-registers -> legalization -> AT&T assembly text.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .errors import CompileError, InternalCompilerError
from .lexer import Lexer, Token, TokenType, LexerError
from .parser import Parser, ParserError
from .semantics import SemanticAnalyzer, SemanticError
from .ir import IRGenerator
from .codegen import CodeGenerator
from .legalize import Legalizer
from .emitter import Emitter
from .compiler import Compiler, CompilationResult, compile_tokens

__all__ = [
    'CompileError',
    'InternalCompilerError',
    'Lexer',
    'Token',
    'TokenType',
    'LexerError',
    'Parser',
    'ParserError',
    'SemanticAnalyzer',
    'SemanticError',
    'IRGenerator',
    'CodeGenerator',
    'Legalizer',
    'Emitter',
    'Compiler',
    'CompilationResult',
    'compile_tokens',
]
