"""
Main Compiler Driver

Orchestrates the compilation pipeline:

    tokens -> AST -> resolved AST -> TAC -> assembly (pseudo) -> assembly -> text

`compile_tokens` is the core boundary (tokens in, legalized `AsmProgram`
out). `Compiler` wraps it with the lexer, the emitter and the external
toolchain, and reports failures as a `CompilationResult` instead of raising.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from dataclasses import dataclass
from typing import List, Optional

from minicc.errors import CompileError
from minicc.names import NameGenerator
from minicc.lexer import Lexer, Token
from minicc.parser import Parser
from minicc.semantics import SemanticAnalyzer
from minicc.ir import IRGenerator, TacProgram
from minicc.codegen import CodeGenerator
from minicc.legalize import Legalizer
from minicc.emitter import Emitter
from minicc.ast_nodes import Program
from minicc.asm_nodes import AsmProgram

logger = logging.getLogger(__name__)

# Stages after which the pipeline can be stopped, in pipeline order.
STAGES = ("lex", "parse", "validate", "tacky", "codegen")

# The parser, the analyzer and the IR lowerer recurse once per nesting level.
NESTED_TOO_DEEPLY = "expression nested too deeply"


def compile_tokens(tokens: List[Token], names: Optional[NameGenerator] = None) -> AsmProgram:
    """Compile a token stream into legalized x86-64 instructions.

    Raises a `CompileError` subclass on the first problem; nothing is
    returned on failure.
    """
    names = names or NameGenerator()
    ast = Parser(tokens).parse()
    ast = SemanticAnalyzer(names).analyze(ast)
    tac = IRGenerator(names).generate(ast)
    asm = CodeGenerator().generate(tac)
    return Legalizer().legalize(asm)


@dataclass
class CompilationResult:
    """Result of compilation"""
    success: bool
    output_file: Optional[str] = None
    errors: List[str] = None
    assembly: Optional[str] = None
    tokens: Optional[List[Token]] = None
    ast: Optional[Program] = None
    tac: Optional[TacProgram] = None
    asm: Optional[AsmProgram] = None

    def __post_init__(self):
        if self.errors is None:
            self.errors = []


class Compiler:
    """Main compiler class orchestrating all compilation stages"""

    def __init__(
        self,
        *,
        stop_after: Optional[str] = None,
        use_system_cpp: bool = False,
        platform: Optional[str] = None,
    ):
        if stop_after is not None and stop_after not in STAGES:
            raise ValueError(f"unknown stage {stop_after!r}; expected one of {', '.join(STAGES)}")
        self.stop_after = stop_after
        self._use_system_cpp = use_system_cpp
        self.platform = platform

        # Toolchain default: the C driver assembles and links.
        self.cc = os.environ.get("MINICC_CC", "gcc")

    def compile_file(self, source_file: str, output_file: Optional[str] = None) -> CompilationResult:
        """Compile a source file.

        If output_file endswith:
        - .s : emit assembly
        - .o : assemble with the system toolchain
        - otherwise: link to an executable
        """
        if not os.path.isfile(source_file):
            return CompilationResult(success=False, errors=[f"Failed to read source file: no such file '{source_file}'"])

        if self._use_system_cpp:
            try:
                source_code = self._preprocess_with_system_cpp(source_file)
            except (OSError, subprocess.CalledProcessError) as e:
                detail = getattr(e, "stderr", None)
                return CompilationResult(success=False, errors=[f"Preprocess failed: {detail or e}"])
        else:
            try:
                with open(source_file, 'r') as f:
                    source_code = f.read()
            except OSError as e:
                return CompilationResult(success=False, errors=[f"Failed to read source file: {e}"])

        return self.compile_code(source_code, output_file, source_path=source_file)

    def _preprocess_with_system_cpp(self, source_file: str) -> str:
        # -P: no linemarkers, the lexer does not understand them
        p = self._run([self.cc, "-E", "-P", source_file], "preprocess")
        return p.stdout

    def compile_code(self, source_code: str, output_file: Optional[str] = None, source_path: str = "<input>") -> CompilationResult:
        """Compile source code"""
        names = NameGenerator()
        result = CompilationResult(success=False)

        # Phase 1: Lexical Analysis
        try:
            result.tokens = self.get_tokens(source_code, source_path)
        except CompileError as e:
            return self._fail(result, f"Lexical analysis failed: {e}")
        if self.stop_after == "lex":
            return self._done(result)

        # Phase 2: Syntax Analysis
        try:
            result.ast = self.get_ast(result.tokens)
        except CompileError as e:
            return self._fail(result, f"Syntax analysis failed: {e}")
        except RecursionError:
            return self._fail(result, f"Syntax analysis failed: {NESTED_TOO_DEEPLY}")
        if self.stop_after == "parse":
            return self._done(result)

        # Phase 3: Semantic Analysis
        try:
            result.ast = self.analyze_semantics(result.ast, names)
        except CompileError as e:
            return self._fail(result, f"Semantic analysis failed: {e}")
        except RecursionError:
            return self._fail(result, f"Semantic analysis failed: {NESTED_TOO_DEEPLY}")
        if self.stop_after == "validate":
            return self._done(result)

        # Phase 4: IR Generation
        try:
            result.tac = self.get_ir(result.ast, names)
        except CompileError as e:
            return self._fail(result, f"IR generation failed: {e}")
        except RecursionError:
            return self._fail(result, f"IR generation failed: {NESTED_TOO_DEEPLY}")
        if self.stop_after == "tacky":
            return self._done(result)

        # Phase 5: Code Generation and legalization
        try:
            result.asm = self.get_assembly(result.tac)
        except CompileError as e:
            return self._fail(result, f"Code generation failed: {e}")
        if self.stop_after == "codegen":
            return self._done(result)

        # Phase 6: Emission
        try:
            result.assembly = self.emit(result.asm)
        except CompileError as e:
            return self._fail(result, f"Code emission failed: {e}")

        # Write output / assemble / link
        if output_file:
            error = self._write_output(result.assembly, output_file)
            if error is not None:
                return self._fail(result, error)
            result.output_file = output_file

        return self._done(result)

    def _write_output(self, assembly: str, out: str) -> Optional[str]:
        ext = os.path.splitext(out)[1]

        if ext == ".s":
            try:
                with open(out, 'w') as f:
                    f.write(assembly)
            except OSError as e:
                return f"Failed to write output file: {e}"
            return None

        what = "assemble" if ext == ".o" else "link"
        with tempfile.TemporaryDirectory(prefix="minicc_") as td:
            s_path = os.path.join(td, "out.s")
            cmd = [self.cc, s_path, "-o", out]
            if ext == ".o":
                cmd.insert(1, "-c")
            try:
                with open(s_path, 'w') as f:
                    f.write(assembly)
                self._run(cmd, what)
            except OSError as e:
                return f"{'Assembling' if ext == '.o' else 'Linking'} failed: {e}"
            except subprocess.CalledProcessError as e:
                detail = e.stderr or e.output
                msg = f"{'Assembling' if ext == '.o' else 'Linking'} failed: {e}"
                return f"{msg}\n{detail}" if detail else msg
        return None

    def _run(self, cmd: List[str], what: str) -> subprocess.CompletedProcess:
        logger.info("%s: %s", what, " ".join(cmd))
        p = subprocess.run(cmd, check=False, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        if p.returncode != 0:
            msg = p.stderr.strip() or p.stdout.strip() or "(no output)"
            raise subprocess.CalledProcessError(p.returncode, cmd, output=p.stdout, stderr=msg)
        return p

    def _fail(self, result: CompilationResult, error: str) -> CompilationResult:
        logger.debug("compilation failed: %s", error)
        result.success = False
        result.errors = [error]
        return result

    def _done(self, result: CompilationResult) -> CompilationResult:
        result.success = True
        return result

    # -----------------
    # Phases
    # -----------------

    def get_tokens(self, source_code: str, filename: str = "<input>") -> List[Token]:
        """Get tokens from source code"""
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
        if lexer.has_errors():
            # first error only; compilation stops here
            raise lexer.get_errors()[0]
        logger.debug("lexed %d token(s) from %s", len(tokens), filename)
        return tokens

    def get_ast(self, tokens: List[Token]) -> Program:
        """Get AST from tokens"""
        ast = Parser(tokens).parse()
        logger.debug("parsed %d function(s)", len(ast.functions))
        return ast

    def analyze_semantics(self, ast: Program, names: NameGenerator) -> Program:
        """Resolve variables and label loops"""
        return SemanticAnalyzer(names).analyze(ast)

    def get_ir(self, ast: Program, names: NameGenerator) -> TacProgram:
        """Generate IR from AST"""
        tac = IRGenerator(names).generate(ast)
        for fn in tac.functions:
            logger.debug("lowered %s to %d TAC instruction(s)", fn.name, len(fn.instructions))
        return tac

    def get_assembly(self, tac: TacProgram) -> AsmProgram:
        """Select instructions, then legalize them"""
        asm = CodeGenerator().generate(tac)
        return Legalizer().legalize(asm)

    def emit(self, asm: AsmProgram) -> str:
        """Render assembly text"""
        return Emitter(self.platform).emit(asm)
