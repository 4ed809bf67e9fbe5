"""Shared data models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ARTIFACT_FORMAT_VERSION = 1

LanguageMapValue = str | dict[str, str]


class HealthResponse(BaseModel):
    """Response payload for the API health endpoint."""

    status: Literal["ok"]
    version: str
    env: str


class TrainingOptions(BaseModel):
    """Everything a training run needs, used by both CLI and profiles.

    Multi-language values take either ``"lang->value,lang->value"`` text or a
    mapping.
    """

    lm_path: str = Field(min_length=1)
    text_paths: LanguageMapValue
    language_priors: str | dict[str, float] | None = None
    alternate_spelling_replacement_paths: LanguageMapValue | None = None
    use_long_s: bool = False
    keep_diacritics: bool = True
    max_lines: int | None = Field(default=1_000_000, ge=0)
    char_n: int = Field(default=6, ge=1, le=32)
    power: float = Field(default=4.0, gt=0.0)
    lm_char_count: int = Field(default=-1, ge=-1)
    p_keep_same_language: float = Field(default=0.999999, ge=0.0, le=1.0)

    @property
    def max_chars(self) -> int | None:
        return None if self.lm_char_count < 0 else self.lm_char_count


class ArtifactLanguage(BaseModel):
    """Fitted parameters of one language inside a persisted model."""

    name: str = Field(min_length=1)
    prior: float = Field(ge=0.0)
    power: float = Field(gt=0.0)
    discounts: list[float]
    ngrams: list[list[int]] = Field(description="Rows of [*context_ids, symbol_id, count].")


class NormalizationSettings(BaseModel):
    """Corpus normalization shared by every language of a model."""

    use_long_s: bool = False
    keep_diacritics: bool = True


class ModelArtifact(BaseModel):
    """Versioned on-disk schema of a composed code-switch model."""

    format_version: Literal[1] = ARTIFACT_FORMAT_VERSION
    order: int = Field(ge=1)
    p_keep_same_language: float = Field(ge=0.0, le=1.0)
    word_separators: list[str]
    normalization: NormalizationSettings = Field(default_factory=NormalizationSettings)
    symbols: list[str]
    languages: list[ArtifactLanguage] = Field(min_length=1)
    generated_at: datetime


class LanguageSummary(BaseModel):
    """Per-language statistics of a trained model."""

    name: str
    prior: float = Field(ge=0.0, le=1.0)
    char_count: int = Field(ge=0)
    active_symbol_count: int = Field(ge=0)
    context_count: int = Field(ge=0)
    discounts: list[float]


class ModelSummary(BaseModel):
    """Human-readable overview of a code-switch model."""

    order: int
    p_keep_same_language: float
    symbol_count: int
    normalizer_id: str
    languages: list[LanguageSummary]


class TrainingSummary(BaseModel):
    """Result of a training run."""

    output_path: str
    generated_at: datetime
    model: ModelSummary


class ScoreRequest(BaseModel):
    """Text to score against the loaded model."""

    text: str = Field(min_length=1)


class LanguageSegment(BaseModel):
    """Span of normalized text attributed to one language."""

    language: str
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    text: str


class ScoreResponse(BaseModel):
    """Scoring output for one line of text."""

    normalizer_id: str
    char_count: int = Field(ge=0)
    log_prob: float
    bits_per_char: float
    segments: list[LanguageSegment]
