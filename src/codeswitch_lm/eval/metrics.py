"""Held-out evaluation metrics for code-switch language models."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from statistics import mean, median

from codeswitch_lm.errors import UnknownSymbolError
from codeswitch_lm.lm.codeswitch import CodeSwitchModel
from codeswitch_lm.lm.trellis import forward_log_likelihood


@dataclass(frozen=True)
class LineScore:
    """Score of one ground-truth line; ``log_prob`` is None if it had unknown symbols."""

    line_id: str
    char_count: int
    log_prob: float | None

    @property
    def bits_per_char(self) -> float | None:
        if self.log_prob is None or self.char_count == 0:
            return None
        return -self.log_prob / math.log(2) / self.char_count


def score_lines(model: CodeSwitchModel, lines: Sequence[tuple[str, Sequence[str]]]) -> list[LineScore]:
    """Score ``(line_id, tokens)`` pairs with the forward algorithm."""
    scores: list[LineScore] = []
    for line_id, tokens in lines:
        try:
            symbol_ids = [model.symbol_table.id_of(token) for token in tokens]
        except UnknownSymbolError:
            scores.append(LineScore(line_id=line_id, char_count=len(tokens), log_prob=None))
            continue
        scores.append(
            LineScore(
                line_id=line_id,
                char_count=len(symbol_ids),
                log_prob=forward_log_likelihood(model, symbol_ids),
            )
        )
    return scores


def summarize_line_scores(
    scores: Sequence[LineScore],
    *,
    total_runtime_sec: float,
) -> dict[str, float]:
    """Summarize held-out scores for release-gate reporting."""
    scored = [
        score
        for score in scores
        if score.log_prob is not None and score.char_count > 0 and math.isfinite(score.log_prob)
    ]
    per_line_bits = [-score.log_prob / math.log(2) / score.char_count for score in scored if score.log_prob is not None]

    scored_chars = sum(score.char_count for score in scored)
    total_log_prob = sum(score.log_prob for score in scored if score.log_prob is not None)
    bits_per_char = -total_log_prob / math.log(2) / scored_chars if scored_chars else 0.0
    perplexity = 2.0**bits_per_char if scored_chars else 0.0
    coverage = len(scored) / len(scores) if scores else 0.0
    throughput = scored_chars / total_runtime_sec if total_runtime_sec > 0 else 0.0

    return {
        "bits_per_char": round(bits_per_char, 4),
        "perplexity": round(perplexity, 4),
        "line_bits_per_char_mean": round(mean(per_line_bits), 4) if per_line_bits else 0.0,
        "line_bits_per_char_median": round(median(per_line_bits), 4) if per_line_bits else 0.0,
        "line_bits_per_char_p90": round(_percentile(per_line_bits, 90.0), 4),
        "line_coverage": round(coverage, 4),
        "scored_lines": float(len(scored)),
        "total_lines": float(len(scores)),
        "scored_chars": float(scored_chars),
        "chars_per_sec": round(throughput, 2),
        "total_runtime_sec": round(total_runtime_sec, 4),
    }


def _percentile(values: list[float], pct: float) -> float:
    if not values:
        return 0.0
    sorted_vals = sorted(values)
    if len(sorted_vals) == 1:
        return sorted_vals[0]

    rank = (pct / 100.0) * (len(sorted_vals) - 1)
    lower = int(rank)
    upper = min(lower + 1, len(sorted_vals) - 1)
    weight = rank - lower
    return sorted_vals[lower] * (1.0 - weight) + sorted_vals[upper] * weight
