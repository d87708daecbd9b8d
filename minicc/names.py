"""minicc.names

Unique name supply for one compilation run.

Variable resolution, loop labeling and TAC lowering all draw from the same
counter so that no two generated names collide. A fresh `NameGenerator` is
created for every run, which keeps the output of two runs over the same
input identical.
"""

from __future__ import annotations


class NameGenerator:
    def __init__(self) -> None:
        self._counter = 0

    def make(self, prefix: str) -> str:
        """Return `<prefix>.<n>` with `n` never handed out before."""
        self._counter += 1
        return f"{prefix}.{self._counter}"

    def temporary(self) -> str:
        return self.make("tmp")

    def label(self, prefix: str) -> str:
        return self.make(prefix)
