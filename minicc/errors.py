"""minicc.errors

Exception hierarchy shared by every compiler stage.

User-facing errors (bad tokens, bad syntax, bad names) derive from
`CompileError`. `InternalCompilerError` marks a shape a later stage has no
rule for, which is a bug in an earlier stage rather than in the input.
"""

from __future__ import annotations


class CompileError(Exception):
    """Base class for errors that stop compilation of a translation unit"""
    pass


class InternalCompilerError(CompileError):
    """A stage received a construct it cannot handle"""

    def __init__(self, stage: str, construct: object):
        self.stage = stage
        self.construct = construct
        super().__init__(f"internal error in {stage}: unsupported {construct!r}")
