"""Alternate-spelling replacement rules.

Rule files hold one rule per line::

    SOURCE -> TARGET
    SOURCE -> TARGET<TAB>PRIORITY

Both sides are tokenized like corpus text, so ``ſ -> s`` rewrites the long-s
glyph. The target may be empty to delete the source. Blank lines and lines
starting with ``#`` are ignored; any other line that does not parse is fatal.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from codeswitch_lm.errors import MalformedRuleError, MissingResourceError
from codeswitch_lm.normalize.stages import tokenize

logger = logging.getLogger(__name__)

_ARROW = "->"


@dataclass(frozen=True)
class NormalizationRule:
    """Rewrite of a source token sequence to a target token sequence."""

    source: tuple[str, ...]
    target: tuple[str, ...]
    priority: int = 0

    def __str__(self) -> str:
        return f"{''.join(self.source)} -> {''.join(self.target)} (priority {self.priority})"


def parse_rule_line(line: str, *, path: str | Path = "<rules>", line_number: int = 0) -> NormalizationRule:
    body, sep, raw_priority = line.partition("\t")
    priority = 0
    if sep:
        try:
            priority = int(raw_priority.strip())
        except ValueError:
            raise MalformedRuleError(path, line_number, line, "priority must be an integer") from None

    if body.count(_ARROW) != 1:
        raise MalformedRuleError(path, line_number, line, f"expected exactly one {_ARROW!r}")
    raw_source, _, raw_target = body.partition(_ARROW)
    source = tuple(tokenize(raw_source))
    if not source:
        raise MalformedRuleError(path, line_number, line, "rule source is empty")
    return NormalizationRule(source=source, target=tuple(tokenize(raw_target)), priority=priority)


def load_rules(path: str | Path, *, language: str | None = None) -> list[NormalizationRule]:
    """Load an ordered rule list; a missing file or malformed line is fatal."""
    rules_path = Path(path)
    if not rules_path.is_file():
        raise MissingResourceError(rules_path, what="replacement rules file", language=language)

    rules: list[NormalizationRule] = []
    text = rules_path.read_text(encoding="utf-8")
    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.rstrip("\r")
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        rule = parse_rule_line(line, path=rules_path, line_number=line_number)
        logger.debug("    %s", rule)
        rules.append(rule)
    return rules


class RuleReplacementStage:
    """Greedy, left-to-right, non-overlapping application of a rule list.

    At each position the highest-priority matching rule wins; among equal
    priorities the longer source wins, then the earlier rule in the file.
    """

    name = "replace-rules"

    def __init__(self, rules: Iterable[NormalizationRule]) -> None:
        ordered = list(rules)
        ranked = sorted(
            enumerate(ordered),
            key=lambda item: (-item[1].priority, -len(item[1].source), item[0]),
        )
        self.rules: tuple[NormalizationRule, ...] = tuple(ordered)
        self._ranked: tuple[NormalizationRule, ...] = tuple(rule for _, rule in ranked)

    def __call__(self, tokens: list[str]) -> list[str]:
        output: list[str] = []
        position = 0
        while position < len(tokens):
            rule = self._match(tokens, position)
            if rule is None:
                output.append(tokens[position])
                position += 1
            else:
                output.extend(rule.target)
                position += len(rule.source)
        return output

    def _match(self, tokens: Sequence[str], position: int) -> NormalizationRule | None:
        for rule in self._ranked:
            end = position + len(rule.source)
            if end <= len(tokens) and tuple(tokens[position:end]) == rule.source:
                return rule
        return None
