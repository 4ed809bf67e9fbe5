"""Interpolated Kneser-Ney character model for a single language.

The highest-order level uses raw counts; every lower level uses
continuation counts (how many distinct symbols precede an n-gram). The empty
context is the normalized continuation distribution over the language's
active symbols, so every active symbol keeps non-zero mass in every context.
"""

from __future__ import annotations

import functools
from collections import defaultdict
from collections.abc import Sequence

import numpy as np

from codeswitch_lm.errors import UnknownSymbolError
from codeswitch_lm.lm.counts import BOUNDARY_TOKEN, Context, NgramCounts
from codeswitch_lm.symbols import SymbolTable

DEFAULT_DISCOUNT = 0.75
_DISTRIBUTION_CACHE_SIZE = 8192


def kneser_ney_levels(counts: NgramCounts) -> list[dict[Context, dict[int, int]]]:
    """Return per-level tables indexed by context length.

    Level ``order - 1`` is the raw count table; levels below hold
    continuation counts derived from the level above.
    """
    order = counts.order
    top = {context: dict(successors) for context, successors in counts.table.items()}
    if order == 1:
        return [top]

    extenders: list[defaultdict[tuple[Context, int], set[int]]] = [
        defaultdict(set) for _ in range(order - 1)
    ]
    for context, successors in counts.table.items():
        for symbol in successors:
            gram = context + (symbol,)
            for length in range(order - 1):
                lower_context = gram[order - 1 - length : order - 1]
                extenders[length][(lower_context, symbol)].add(gram[order - 2 - length])

    levels: list[dict[Context, dict[int, int]]] = []
    for length in range(order - 1):
        level: dict[Context, dict[int, int]] = {}
        for (context, symbol), left in extenders[length].items():
            level.setdefault(context, {})[symbol] = len(left)
        levels.append(level)
    levels.append(top)
    return levels


def estimate_discounts(levels: Sequence[dict[Context, dict[int, int]]]) -> tuple[float, ...]:
    """Absolute discount per non-empty context length, ``n1 / (n1 + 2 * n2)``."""
    discounts: list[float] = []
    for level in levels[1:]:
        n1 = 0
        n2 = 0
        for successors in level.values():
            for count in successors.values():
                if count == 1:
                    n1 += 1
                elif count == 2:
                    n2 += 1
        discounts.append(n1 / (n1 + 2 * n2) if n1 > 0 else DEFAULT_DISCOUNT)
    return tuple(discounts)


class SingleLanguageModel:
    """Smoothed P(next symbol | context) for one language.

    Probabilities are raised to ``power`` and renormalized per context, which
    sharpens (``power > 1``) or flattens the distribution without changing
    its ranking.
    """

    def __init__(
        self,
        symbol_table: SymbolTable,
        counts: NgramCounts,
        *,
        power: float = 4.0,
        discounts: Sequence[float] | None = None,
    ) -> None:
        if power <= 0:
            raise ValueError(f"power must be positive, got {power}")
        self.symbol_table = symbol_table
        self.counts = counts
        self.order = counts.order
        self.power = float(power)

        levels = kneser_ney_levels(counts)
        resolved = tuple(float(d) for d in discounts) if discounts is not None else estimate_discounts(levels)
        if len(resolved) != self.order - 1:
            raise ValueError(f"expected {self.order - 1} discounts for order {self.order}, got {len(resolved)}")
        if any(not 0.0 < d <= 1.0 for d in resolved):
            raise ValueError(f"discounts must lie in (0, 1], got {resolved}")
        self.discounts = resolved

        self._active = np.array(sorted(counts.active_symbols), dtype=np.int64)
        self._positions = {int(symbol): index for index, symbol in enumerate(self._active)}
        self._base = self._base_distribution(levels[0])
        self._levels = [self._compile_level(level) for level in levels[1:]]
        self._boundary = symbol_table.id_of(BOUNDARY_TOKEN) if BOUNDARY_TOKEN in symbol_table else -1
        self._cached_distribution = functools.lru_cache(maxsize=_DISTRIBUTION_CACHE_SIZE)(
            self._compute_distribution
        )

    @classmethod
    def fit(cls, symbol_table: SymbolTable, counts: NgramCounts, *, power: float = 4.0) -> SingleLanguageModel:
        return cls(symbol_table, counts, power=power)

    @property
    def active_symbols(self) -> frozenset[int]:
        return self.counts.active_symbols

    def score_next(self, context: Sequence[int], symbol: int) -> float:
        """Probability of ``symbol`` following ``context``.

        An interned symbol this language never observed scores ``0.0``; an id
        the symbol table never issued raises :class:`UnknownSymbolError`.
        """
        self._check_interned(symbol)
        key = self._context_key(context)
        position = self._positions.get(int(symbol))
        if position is None:
            return 0.0
        return float(self._cached_distribution(key)[position])

    def distribution(self, context: Sequence[int]) -> dict[int, float]:
        probs = self._cached_distribution(self._context_key(context))
        return {int(symbol): float(prob) for symbol, prob in zip(self._active, probs)}

    def _check_interned(self, symbol: int) -> None:
        if not 0 <= int(symbol) < self.symbol_table.size():
            raise UnknownSymbolError(symbol)

    def _context_key(self, context: Sequence[int]) -> Context:
        for symbol in context:
            self._check_interned(symbol)
        width = self.order - 1
        if width == 0:
            return ()
        tail = tuple(int(symbol) for symbol in context[-width:]) if len(context) else ()
        return (self._boundary,) * (width - len(tail)) + tail

    def _base_distribution(self, level: dict[Context, dict[int, int]]) -> np.ndarray:
        weights = np.zeros(len(self._active), dtype=np.float64)
        for symbol, count in level.get((), {}).items():
            weights[self._positions[symbol]] = count
        total = weights.sum()
        return weights / total if total > 0 else weights

    def _compile_level(
        self, level: dict[Context, dict[int, int]]
    ) -> dict[Context, tuple[np.ndarray, np.ndarray, float]]:
        compiled: dict[Context, tuple[np.ndarray, np.ndarray, float]] = {}
        for context, successors in level.items():
            positions = np.array([self._positions[symbol] for symbol in successors], dtype=np.int64)
            values = np.array(list(successors.values()), dtype=np.float64)
            compiled[context] = (positions, values, float(values.sum()))
        return compiled

    def _compute_distribution(self, context: Context) -> np.ndarray:
        probs = self._base
        for length, level in enumerate(self._levels, start=1):
            entry = level.get(context[len(context) - length :])
            if entry is None:
                continue
            positions, values, total = entry
            discount = self.discounts[length - 1]
            mixed = probs * (discount * len(values) / total)
            mixed[positions] += np.maximum(values - discount, 0.0) / total
            probs = mixed

        if not len(probs):
            return probs
        with np.errstate(divide="ignore"):
            scaled = np.log(probs) * self.power
        scaled -= scaled.max()
        sharpened = np.exp(scaled)
        sharpened /= sharpened.sum()
        sharpened.setflags(write=False)
        return sharpened

    def __repr__(self) -> str:
        return (
            f"SingleLanguageModel(order={self.order}, power={self.power}, "
            f"active={len(self._active)}, chars={self.counts.char_count})"
        )
