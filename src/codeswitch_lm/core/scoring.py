"""Read-only use of trained models: summaries, text scoring, model cache."""

from __future__ import annotations

import math
import threading
from pathlib import Path

from codeswitch_lm.io.artifact import load_model
from codeswitch_lm.lm.codeswitch import CodeSwitchModel
from codeswitch_lm.lm.trellis import forward_log_likelihood, language_spans, viterbi_language_path
from codeswitch_lm.models import LanguageSegment, LanguageSummary, ModelSummary, ScoreResponse
from codeswitch_lm.normalize import TextNormalizationPipeline

_MODEL_CACHE: dict[Path, CodeSwitchModel] = {}
_MODEL_CACHE_LOCK = threading.Lock()


def get_model(model_path: str | Path) -> CodeSwitchModel:
    """Load a model once per resolved path and share it between callers."""
    path = Path(model_path).resolve()
    with _MODEL_CACHE_LOCK:
        model = _MODEL_CACHE.get(path)
        if model is None:
            model = load_model(path)
            _MODEL_CACHE[path] = model
        return model


def clear_model_cache() -> None:
    with _MODEL_CACHE_LOCK:
        _MODEL_CACHE.clear()


def model_pipeline(model: CodeSwitchModel) -> TextNormalizationPipeline:
    """Rebuild the long-s and diacritic handling the model was trained with.

    Per-language replacement rules are not part of it; they rewrite one
    language's corpus and cannot be applied to text of unknown language.
    """
    return TextNormalizationPipeline(use_long_s=model.use_long_s, keep_diacritics=model.keep_diacritics)


def summarize_model(model: CodeSwitchModel) -> ModelSummary:
    languages = [
        LanguageSummary(
            name=language,
            prior=round(model.prior(language), 6),
            char_count=component.model.counts.char_count,
            active_symbol_count=len(component.model.active_symbols),
            context_count=len(component.model.counts.table),
            discounts=[round(discount, 6) for discount in component.model.discounts],
        )
        for language, component in model.components.items()
    ]
    return ModelSummary(
        order=model.order,
        p_keep_same_language=model.p_keep_same_language,
        symbol_count=model.symbol_table.size(),
        normalizer_id=model_pipeline(model).normalizer_id,
        languages=languages,
    )


def score_text(
    model: CodeSwitchModel,
    text: str,
    pipeline: TextNormalizationPipeline | None = None,
) -> ScoreResponse:
    """Score one line of text and attribute its characters to languages.

    Without an explicit ``pipeline`` the model's own normalization is used.
    Tokens outside the model's vocabulary raise ``UnknownSymbolError``.
    """
    resolved_pipeline = pipeline or model_pipeline(model)
    tokens = resolved_pipeline.normalize_tokens(text)
    symbol_ids = [model.symbol_table.id_of(token) for token in tokens]

    log_prob = forward_log_likelihood(model, symbol_ids)
    bits_per_char = -log_prob / math.log(2) / len(symbol_ids) if symbol_ids else 0.0

    segments: list[LanguageSegment] = []
    if symbol_ids and math.isfinite(log_prob):
        path = viterbi_language_path(model, symbol_ids)
        segments = [
            LanguageSegment(
                language=span.language,
                start=span.start,
                end=span.end,
                text="".join(tokens[span.start : span.end]),
            )
            for span in language_spans(path)
        ]

    return ScoreResponse(
        normalizer_id=resolved_pipeline.normalizer_id,
        char_count=len(symbol_ids),
        log_prob=log_prob,
        bits_per_char=bits_per_char,
        segments=segments,
    )
