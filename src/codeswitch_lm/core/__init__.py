"""Training and scoring entry points."""

from codeswitch_lm.core.scoring import get_model, model_pipeline, score_text, summarize_model
from codeswitch_lm.core.training import (
    LanguageSpec,
    TrainingOrchestrator,
    resolve_language_specs,
    train_code_switch_model,
)

__all__ = [
    "LanguageSpec",
    "TrainingOrchestrator",
    "get_model",
    "model_pipeline",
    "resolve_language_specs",
    "score_text",
    "summarize_model",
    "train_code_switch_model",
]
