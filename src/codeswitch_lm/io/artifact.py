"""Persistence of composed models as gzip-compressed, versioned JSON."""

from __future__ import annotations

import gzip
import logging
import os
import zlib
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from codeswitch_lm.errors import ArtifactError, CodeSwitchLMError, MissingResourceError
from codeswitch_lm.lm.codeswitch import CodeSwitchModel
from codeswitch_lm.lm.counts import NgramCounts
from codeswitch_lm.lm.kneser_ney import SingleLanguageModel
from codeswitch_lm.models import ArtifactLanguage, ModelArtifact, NormalizationSettings
from codeswitch_lm.symbols import SymbolTable

logger = logging.getLogger(__name__)


def to_artifact(model: CodeSwitchModel) -> ModelArtifact:
    """Flatten a composed model into its on-disk schema."""
    languages: list[ArtifactLanguage] = []
    for name, component in model.components.items():
        sub_model = component.model
        rows = [[*context, symbol, count] for context, symbol, count in sub_model.counts.ngrams()]
        languages.append(
            ArtifactLanguage(
                name=name,
                prior=component.prior,
                power=sub_model.power,
                discounts=list(sub_model.discounts),
                ngrams=rows,
            )
        )
    return ModelArtifact(
        order=model.order,
        p_keep_same_language=model.p_keep_same_language,
        word_separators=list(model.word_separators),
        normalization=NormalizationSettings(
            use_long_s=model.use_long_s,
            keep_diacritics=model.keep_diacritics,
        ),
        symbols=model.symbol_table.tokens(),
        languages=languages,
        generated_at=datetime.now(UTC),
    )


def from_artifact(artifact: ModelArtifact) -> CodeSwitchModel:
    """Rebuild a read-only model; structural problems raise :class:`ArtifactError`."""
    table = SymbolTable.frozen(artifact.symbols)
    if table.size() != len(artifact.symbols):
        raise ArtifactError("symbol list contains duplicate tokens")

    language_models: dict[str, tuple[SingleLanguageModel, float]] = {}
    for entry in artifact.languages:
        if entry.name in language_models:
            raise ArtifactError(f"language {entry.name!r} appears more than once")
        counts = _counts_from_rows(entry, artifact.order, table.size())
        try:
            sub_model = SingleLanguageModel(table, counts, power=entry.power, discounts=entry.discounts)
        except ValueError as exc:
            raise ArtifactError(f"language {entry.name!r}: {exc}") from exc
        language_models[entry.name] = (sub_model, entry.prior)

    try:
        return CodeSwitchModel.compose(
            language_models,
            table,
            artifact.p_keep_same_language,
            artifact.order,
            word_separators=artifact.word_separators,
            use_long_s=artifact.normalization.use_long_s,
            keep_diacritics=artifact.normalization.keep_diacritics,
        )
    except CodeSwitchLMError as exc:
        raise ArtifactError(str(exc)) from exc


def save_model(model: CodeSwitchModel, output_path: str | Path) -> Path:
    """Write the model in one piece; the target only appears once complete."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = to_artifact(model).model_dump_json().encode("utf-8")
    partial = path.with_name(path.name + ".partial")
    try:
        with gzip.open(partial, "wb") as handle:
            handle.write(payload)
        os.replace(partial, path)
    except BaseException:
        partial.unlink(missing_ok=True)
        raise
    logger.info("Wrote code-switch model to %s (%d bytes)", path, path.stat().st_size)
    return path


def load_model(model_path: str | Path) -> CodeSwitchModel:
    """Load a persisted model; absent or invalid files are fatal."""
    path = Path(model_path)
    if not path.is_file():
        raise MissingResourceError(path, what="code-switch model")
    try:
        with gzip.open(path, "rb") as handle:
            raw = handle.read()
    except (OSError, EOFError, zlib.error) as exc:
        raise ArtifactError(f"{path}: not a gzip-compressed model ({exc})") from exc
    try:
        artifact = ModelArtifact.model_validate_json(raw)
    except ValidationError as exc:
        raise ArtifactError(f"{path}: invalid model artifact: {exc}") from exc
    return from_artifact(artifact)


def _counts_from_rows(entry: ArtifactLanguage, order: int, symbol_count: int) -> NgramCounts:
    rows: list[tuple[tuple[int, ...], int, int]] = []
    for row in entry.ngrams:
        if len(row) != order + 1:
            raise ArtifactError(f"language {entry.name!r}: n-gram row {row} does not match order {order}")
        *ids, count = row
        if count <= 0:
            raise ArtifactError(f"language {entry.name!r}: non-positive count in row {row}")
        if any(not 0 <= symbol_id < symbol_count for symbol_id in ids):
            raise ArtifactError(f"language {entry.name!r}: symbol id out of range in row {row}")
        rows.append((tuple(ids[:-1]), ids[-1], count))
    return NgramCounts.from_ngrams(order, rows)
