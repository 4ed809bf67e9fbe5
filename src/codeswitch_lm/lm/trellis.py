"""Dynamic programming over the latent language of a code-switch model.

States are languages; a state may only change on the first symbol after a
word separator, mirroring the generative story of :class:`CodeSwitchModel`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from codeswitch_lm.lm.codeswitch import CodeSwitchModel


def emission_log_probs(model: CodeSwitchModel, symbol_ids: Sequence[int]) -> np.ndarray:
    """``emissions[t][k]`` is log P(symbol t | preceding symbols, language k)."""
    width = model.order - 1
    emissions = np.zeros((len(symbol_ids), len(model.languages)), dtype=np.float64)
    for position, symbol in enumerate(symbol_ids):
        context = symbol_ids[max(0, position - width) : position] if width else ()
        for index, language in enumerate(model.languages):
            emissions[position, index] = model.sub_model(language).score_next(context, symbol)
    with np.errstate(divide="ignore"):
        return np.log(emissions)


def forward_log_likelihood(model: CodeSwitchModel, symbol_ids: Sequence[int]) -> float:
    """Log-probability of a symbol sequence summed over all language paths."""
    if not len(symbol_ids):
        return 0.0
    emissions = emission_log_probs(model, symbol_ids)
    log_priors, log_transitions = _log_parameters(model)

    alpha = log_priors + emissions[0]
    for position in range(1, len(symbol_ids)):
        if model.is_word_boundary(int(symbol_ids[position - 1])):
            alpha = np.logaddexp.reduce(alpha[:, None] + log_transitions, axis=0)
        alpha = alpha + emissions[position]
    return float(np.logaddexp.reduce(alpha))


def viterbi_language_path(model: CodeSwitchModel, symbol_ids: Sequence[int]) -> list[str]:
    """Most probable language for every symbol of the sequence."""
    frame_count = len(symbol_ids)
    if frame_count == 0:
        return []
    emissions = emission_log_probs(model, symbol_ids)
    log_priors, log_transitions = _log_parameters(model)
    state_count = len(model.languages)

    scores = log_priors + emissions[0]
    backptr = np.zeros((frame_count, state_count), dtype=np.int64)
    backptr[0] = np.arange(state_count)
    for position in range(1, frame_count):
        if model.is_word_boundary(int(symbol_ids[position - 1])):
            candidates = scores[:, None] + log_transitions
            backptr[position] = np.argmax(candidates, axis=0)
            scores = candidates.max(axis=0)
        else:
            backptr[position] = np.arange(state_count)
        scores = scores + emissions[position]

    cursor = int(np.argmax(scores))
    if scores[cursor] == float("-inf"):
        raise ValueError("sequence has zero probability under every language path")

    path = [0] * frame_count
    for position in range(frame_count - 1, -1, -1):
        path[position] = cursor
        cursor = int(backptr[position, cursor])
    return [model.languages[state] for state in path]


@dataclass(frozen=True)
class LanguageSpan:
    """Contiguous run of symbols attributed to one language."""

    language: str
    start: int
    end: int


def language_spans(path: Sequence[str]) -> list[LanguageSpan]:
    """Collapse a per-symbol language path into spans (``end`` exclusive)."""
    spans: list[LanguageSpan] = []
    start = 0
    for index in range(1, len(path) + 1):
        if index == len(path) or path[index] != path[start]:
            spans.append(LanguageSpan(language=path[start], start=start, end=index))
            start = index
    return spans


def _log_parameters(model: CodeSwitchModel) -> tuple[np.ndarray, np.ndarray]:
    with np.errstate(divide="ignore"):
        return np.log(model.initial_distribution()), np.log(model.transition_matrix())
