#!/usr/bin/env python3
"""minicc - top-level CLI wrapper

Usage examples:
  ./minicc.py examples/return_2.c            # links ./examples/return_2
  ./minicc.py input.c -S                     # writes input.s
  ./minicc.py input.c -o out.o
  ./minicc.py input.c --tacky                # stop after TAC lowering
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from minicc.compiler import Compiler


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    ap = argparse.ArgumentParser(prog="minicc", description="C subset compiler for x86-64")
    ap.add_argument("source", help="Input C source file")
    ap.add_argument("-o", dest="output", required=False, help="Output: .s, .o, or executable")
    kind = ap.add_mutually_exclusive_group()
    kind.add_argument("-S", dest="asm_only", action="store_true", help="Emit assembly (.s) only")
    kind.add_argument("-c", dest="object_only", action="store_true", help="Assemble to an object file (.o)")
    ap.add_argument("--cpp", action="store_true", help="Run the system preprocessor first")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log each compilation phase")
    stages = ap.add_mutually_exclusive_group()
    stages.add_argument("--lex", dest="stop_after", action="store_const", const="lex", help="Stop after lexing")
    stages.add_argument("--parse", dest="stop_after", action="store_const", const="parse", help="Stop after parsing")
    stages.add_argument("--validate", dest="stop_after", action="store_const", const="validate", help="Stop after semantic analysis")
    stages.add_argument("--tacky", dest="stop_after", action="store_const", const="tacky", help="Stop after TAC lowering")
    stages.add_argument("--codegen", dest="stop_after", action="store_const", const="codegen", help="Stop after legalization")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(name)s: %(message)s")

    output = args.output
    # the output extension selects what gets written, so it must agree with -S / -c
    if output is not None and args.asm_only and not output.endswith(".s"):
        ap.error("-S requires an output file ending in .s")
    if output is not None and args.object_only and not output.endswith(".o"):
        ap.error("-c requires an output file ending in .o")
    if output is None and args.stop_after is None:
        base = os.path.splitext(args.source)[0]
        if args.asm_only:
            output = base + ".s"
        elif args.object_only:
            output = base + ".o"
        else:
            output = base

    compiler = Compiler(stop_after=args.stop_after, use_system_cpp=args.cpp)
    result = compiler.compile_file(args.source, None if args.stop_after else output)
    if not result.success:
        for e in result.errors:
            print("Error:", e, file=sys.stderr)
        return 1
    if result.output_file:
        print("Done:", result.output_file)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
