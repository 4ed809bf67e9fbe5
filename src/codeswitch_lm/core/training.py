"""Training orchestration: configuration -> counts -> models -> artifact.

Configuration is validated in full before any corpus is opened. Counting may
run per language in parallel; the symbol table is locked only after every
language has been counted, and models are fit and composed after that.
"""

from __future__ import annotations

import concurrent.futures
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from codeswitch_lm.core.scoring import summarize_model
from codeswitch_lm.errors import ConfigurationError
from codeswitch_lm.io.artifact import save_model
from codeswitch_lm.io.corpus import corpus_files, iter_corpus_lines
from codeswitch_lm.lm.codeswitch import CodeSwitchModel
from codeswitch_lm.lm.counts import NgramCounter, NgramCounts
from codeswitch_lm.lm.kneser_ney import SingleLanguageModel
from codeswitch_lm.models import TrainingOptions, TrainingSummary
from codeswitch_lm.normalize import SPACE, TextNormalizationPipeline, build_pipeline
from codeswitch_lm.symbols import SymbolTable

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "und"
_ARROW = "->"


@dataclass(frozen=True)
class LanguageSpec:
    """Resolved training inputs for one language."""

    language: str
    corpus_path: Path
    prior: float
    rules_path: Path | None = None


def parse_language_pairs(raw: str | Mapping[str, object], *, option: str) -> dict[str, str]:
    """Parse ``"lang->value,lang->value"`` (or a mapping) into an ordered dict."""
    if isinstance(raw, Mapping):
        items = [(str(language), str(value)) for language, value in raw.items()]
    else:
        items = []
        for part in raw.split(","):
            subparts = part.strip().split(_ARROW)
            if len(subparts) != 2:
                raise ConfigurationError(
                    f"malformed {option} argument: comma-separated part must be of the form "
                    f'"LANGUAGE->VALUE", was: {part!r}'
                )
            items.append((subparts[0], subparts[1]))

    pairs: dict[str, str] = {}
    for raw_language, raw_value in items:
        language = raw_language.strip()
        value = raw_value.strip()
        if not language or not value:
            raise ConfigurationError(f"malformed {option} argument: empty language or value in {raw_language!r}")
        if language in pairs:
            raise ConfigurationError(f"language {language!r} appears more than once in {option}")
        pairs[language] = value
    return pairs


def resolve_language_specs(options: TrainingOptions) -> list[LanguageSpec]:
    """Cross-check the per-language options; nothing is read from disk."""
    text_paths = options.text_paths
    if isinstance(text_paths, str) and _ARROW not in text_paths:
        text_paths = {DEFAULT_LANGUAGE: text_paths}
    paths = parse_language_pairs(text_paths, option="text_paths")
    priors = _resolve_priors(options.language_priors, paths)

    rules: dict[str, str] = {}
    if options.alternate_spelling_replacement_paths is not None:
        rules = parse_language_pairs(
            options.alternate_spelling_replacement_paths,
            option="alternate_spelling_replacement_paths",
        )
        for language in rules:
            if language not in paths:
                raise ConfigurationError(
                    f"language {language!r} appears in alternate_spelling_replacement_paths "
                    f"but not in text_paths ({sorted(paths)})"
                )

    return [
        LanguageSpec(
            language=language,
            corpus_path=Path(path),
            prior=priors[language],
            rules_path=Path(rules[language]) if language in rules else None,
        )
        for language, path in paths.items()
    ]


def _resolve_priors(raw: str | Mapping[str, float] | None, paths: Mapping[str, str]) -> dict[str, float]:
    if raw is None:
        return {language: 1.0 for language in paths}

    priors: dict[str, float] = {}
    for language, value in parse_language_pairs(raw, option="language_priors").items():
        try:
            prior = float(value)
        except ValueError:
            raise ConfigurationError(f"prior for language {language!r} is not a number: {value!r}") from None
        if not math.isfinite(prior) or prior < 0:
            raise ConfigurationError(f"prior for language {language!r} must be non-negative, got {value}")
        priors[language] = prior

    if set(priors) != set(paths):
        raise ConfigurationError(
            "text_paths and language_priors do not have the same set of languages: "
            f"{sorted(paths)} vs {sorted(priors)}"
        )
    return priors


class TrainingOrchestrator:
    """Drive normalization, counting, fitting and composition for all languages."""

    def __init__(self, options: TrainingOptions, *, workers: int = 1) -> None:
        if workers < 1:
            raise ConfigurationError(f"workers must be at least 1, got {workers}")
        self.options = options
        self.workers = workers
        self.specs = resolve_language_specs(options)
        self.symbol_table = SymbolTable()

    def build_pipelines(self) -> dict[str, TextNormalizationPipeline]:
        pipelines: dict[str, TextNormalizationPipeline] = {}
        for spec in self.specs:
            logger.info(
                "For language %r, using text in %s, prior=%s%s",
                spec.language,
                spec.corpus_path,
                spec.prior,
                f", replacement rules {spec.rules_path}" if spec.rules_path else "",
            )
            pipelines[spec.language] = build_pipeline(
                use_long_s=self.options.use_long_s,
                keep_diacritics=self.options.keep_diacritics,
                rules_path=spec.rules_path,
                language=spec.language,
            )
        return pipelines

    def count_language(self, spec: LanguageSpec, pipeline: TextNormalizationPipeline) -> NgramCounts:
        logger.info("%s text pipeline: %s", spec.language, pipeline.normalizer_id)
        counter = NgramCounter(self.symbol_table, self.options.char_n, max_chars=self.options.max_chars)
        lines = iter_corpus_lines(spec.corpus_path, language=spec.language, max_lines=self.options.max_lines)
        for line in lines:
            if counter.exhausted:
                break
            tokens = pipeline.normalize_tokens(line)
            if tokens:
                counter.add([*tokens, SPACE])
        counts = counter.counts()
        logger.info(
            "  using %d characters for %s read from %s",
            counts.char_count,
            spec.language,
            spec.corpus_path,
        )
        return counts

    def count_all(self, pipelines: Mapping[str, TextNormalizationPipeline]) -> dict[str, NgramCounts]:
        if self.workers == 1 or len(self.specs) == 1:
            return {spec.language: self.count_language(spec, pipelines[spec.language]) for spec in self.specs}

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures = {
                spec.language: pool.submit(self.count_language, spec, pipelines[spec.language])
                for spec in self.specs
            }
            return {language: future.result() for language, future in futures.items()}

    def fit_all(self, counts: Mapping[str, NgramCounts]) -> dict[str, tuple[SingleLanguageModel, float]]:
        models: dict[str, tuple[SingleLanguageModel, float]] = {}
        for spec in self.specs:
            language_counts = counts[spec.language]
            if logger.isEnabledFor(logging.DEBUG):
                chars = sorted(self.symbol_table.lookup(symbol) for symbol in language_counts.active_symbols)
                logger.debug("%s: %s", spec.language, chars)
            model = SingleLanguageModel.fit(self.symbol_table, language_counts, power=self.options.power)
            models[spec.language] = (model, spec.prior)
        return models

    def train(self) -> CodeSwitchModel:
        """Run every stage up to composition; nothing is written."""
        self.symbol_table = SymbolTable()
        pipelines = self.build_pipelines()
        for spec in self.specs:
            corpus_files(spec.corpus_path, language=spec.language)

        counts = self.count_all(pipelines)
        self.symbol_table.lock()
        models = self.fit_all(counts)

        logger.info("pKeepSameLanguage = %s", self.options.p_keep_same_language)
        logger.info("charN = %s", self.options.char_n)
        return CodeSwitchModel.compose(
            models,
            self.symbol_table,
            self.options.p_keep_same_language,
            self.options.char_n,
            use_long_s=self.options.use_long_s,
            keep_diacritics=self.options.keep_diacritics,
        )

    def run(self) -> TrainingSummary:
        model = self.train()
        logger.info("writing LM to %s", self.options.lm_path)
        path = save_model(model, self.options.lm_path)
        return TrainingSummary(
            output_path=str(path),
            generated_at=datetime.now(UTC),
            model=summarize_model(model),
        )


def train_code_switch_model(options: TrainingOptions, *, workers: int = 1) -> TrainingSummary:
    """Train, compose and persist a code-switch model."""
    return TrainingOrchestrator(options, workers=workers).run()
