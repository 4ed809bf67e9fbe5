"""Evaluation utilities."""

from codeswitch_lm.eval.metrics import LineScore, score_lines, summarize_line_scores

__all__ = ["LineScore", "score_lines", "summarize_line_scores"]
