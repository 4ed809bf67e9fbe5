"""Character n-gram counting into the shared symbol space."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from codeswitch_lm.normalize.stages import SPACE
from codeswitch_lm.symbols import SymbolTable

BOUNDARY_TOKEN = SPACE

Context = tuple[int, ...]


@dataclass(frozen=True)
class NgramCounts:
    """Snapshot of one language's counts.

    ``table[context][symbol]`` counts how often ``symbol`` followed the
    ``order - 1`` symbol ids in ``context``.
    """

    order: int
    table: dict[Context, dict[int, int]]
    active_symbols: frozenset[int]
    char_count: int

    def ngrams(self) -> list[tuple[Context, int, int]]:
        """Flat ``(context, symbol, count)`` rows in a stable order."""
        return [
            (context, symbol, count)
            for context in sorted(self.table)
            for symbol, count in sorted(self.table[context].items())
        ]

    @classmethod
    def from_ngrams(cls, order: int, rows: Iterable[tuple[Context, int, int]]) -> NgramCounts:
        table: dict[Context, dict[int, int]] = {}
        char_count = 0
        for context, symbol, count in rows:
            table.setdefault(tuple(context), {})[symbol] = count
            char_count += count
        active = frozenset(symbol for successors in table.values() for symbol in successors)
        return cls(order=order, table=table, active_symbols=active, char_count=char_count)


class NgramCounter:
    """Accumulate context -> symbol counts from a normalized token stream.

    The stream is continuous across :meth:`add` calls; only the very start is
    padded with the boundary symbol. When ``max_chars`` is reached counting
    stops and the state gathered so far stays valid.
    """

    def __init__(self, symbol_table: SymbolTable, order: int, *, max_chars: int | None = None) -> None:
        if order < 1:
            raise ValueError(f"n-gram order must be at least 1, got {order}")
        if max_chars is not None and max_chars < 0:
            raise ValueError(f"max_chars must be non-negative, got {max_chars}")
        self.symbol_table = symbol_table
        self.order = order
        self.max_chars = max_chars
        self._table: defaultdict[Context, defaultdict[int, int]] = defaultdict(lambda: defaultdict(int))
        self._active: set[int] = set()
        self._history: Context | None = None
        self._char_count = 0

    @property
    def char_count(self) -> int:
        return self._char_count

    @property
    def exhausted(self) -> bool:
        return self.max_chars is not None and self._char_count >= self.max_chars

    def add(self, tokens: Iterable[str]) -> int:
        """Count tokens until the budget is spent; return how many were consumed."""
        consumed = 0
        for token in tokens:
            if self.exhausted:
                break
            if self._history is None:
                self._history = self._start_context()
            symbol = self.symbol_table.intern(token)
            self._table[self._history][symbol] += 1
            self._active.add(symbol)
            if self.order > 1:
                self._history = self._history[1:] + (symbol,)
            self._char_count += 1
            consumed += 1
        return consumed

    def _start_context(self) -> Context:
        if self.order == 1:
            return ()
        boundary = self.symbol_table.intern(BOUNDARY_TOKEN)
        return (boundary,) * (self.order - 1)

    def active_symbols(self) -> frozenset[int]:
        return frozenset(self._active)

    def counts(self) -> NgramCounts:
        table = {context: dict(successors) for context, successors in self._table.items()}
        return NgramCounts(
            order=self.order,
            table=table,
            active_symbols=self.active_symbols(),
            char_count=self._char_count,
        )
