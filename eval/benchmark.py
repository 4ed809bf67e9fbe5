#!/usr/bin/env python3
"""Score held-out text with a trained model and write release-gate artifacts.

Manifest format (JSONL), one entry per line; either inline text or a
document image whose ground truth sits in the sibling ``.txt`` file:
{"id": "en-001", "text": "the quick brown fox"}
{"id": "page-17", "image_path": "path/to/page17.png"}
"""

from __future__ import annotations

import argparse
import csv
import json
import subprocess
import sys
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from codeswitch_lm.eval import score_lines, summarize_line_scores
from codeswitch_lm.io import TextFileDocument, load_model
from codeswitch_lm.lm import CodeSwitchModel
from codeswitch_lm.normalize import TextNormalizationPipeline, build_pipeline


@dataclass(frozen=True)
class BenchmarkCase:
    case_id: str
    lines: list[list[str]]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Score held-out text with a codeswitch-lm model.")
    parser.add_argument("--model", required=True, help="Path to a trained model")
    parser.add_argument("--manifest", required=True, help="Path to benchmark JSONL manifest")
    parser.add_argument("--output-root", default="eval/runs", help="Artifact root directory")
    parser.add_argument(
        "--use-long-s",
        action="store_const",
        const=True,
        default=None,
        help="Render medial s as long s (default: as the model was trained)",
    )
    parser.add_argument(
        "--no-diacritics",
        dest="keep_diacritics",
        action="store_const",
        const=False,
        default=None,
        help="Strip diacritics before scoring (default: as the model was trained)",
    )
    parser.add_argument("--rules", default=None, help="Alternate-spelling rule file to apply")
    return parser.parse_args()


def load_manifest(path: Path, pipeline: TextNormalizationPipeline) -> list[BenchmarkCase]:
    cases: list[BenchmarkCase] = []
    for line_num, raw_line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue
        payload = json.loads(line)
        case_id = str(payload.get("id") or f"line-{line_num}")
        if "image_path" in payload:
            document = TextFileDocument(payload["image_path"], pipeline=pipeline)
            lines = document.load_line_text() or []
        else:
            lines = [pipeline.normalize_tokens(str(payload["text"]))]
        cases.append(BenchmarkCase(case_id=case_id, lines=[tokens for tokens in lines if tokens]))
    return cases


def run_benchmark(model: CodeSwitchModel, cases: list[BenchmarkCase]) -> dict[str, Any]:
    rows: list[dict[str, Any]] = []
    all_scores = []

    started = time.perf_counter()
    for case in cases:
        case_started = time.perf_counter()
        scores = score_lines(
            model,
            [(f"{case.case_id}:{index}", tokens) for index, tokens in enumerate(case.lines)],
        )
        elapsed = time.perf_counter() - case_started
        all_scores.extend(scores)
        case_summary = summarize_line_scores(scores, total_runtime_sec=elapsed)
        rows.append(
            {
                "case_id": case.case_id,
                "lines": len(case.lines),
                "runtime_sec": round(elapsed, 6),
                "bits_per_char": case_summary["bits_per_char"],
                "perplexity": case_summary["perplexity"],
                "line_coverage": case_summary["line_coverage"],
            }
        )
    total_runtime_sec = time.perf_counter() - started

    summary = summarize_line_scores(all_scores, total_runtime_sec=total_runtime_sec)
    return {"summary": summary, "rows": rows}


def write_artifacts(
    output_root: Path,
    *,
    model_path: str,
    manifest: Path,
    result: dict[str, Any],
) -> Path:
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
    git_sha = _git_sha()
    out_dir = output_root / f"{timestamp}_{git_sha[:8]}"
    out_dir.mkdir(parents=True, exist_ok=True)

    metrics_payload = {
        "generated_at": datetime.now(UTC).isoformat(),
        "git_sha": git_sha,
        "model_path": model_path,
        "manifest_path": str(manifest),
        "summary": result["summary"],
    }
    (out_dir / "metrics.json").write_text(
        json.dumps(metrics_payload, indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )

    with (out_dir / "per_case.csv").open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(result["rows"][0].keys()) if result["rows"] else [])
        if result["rows"]:
            writer.writeheader()
            writer.writerows(result["rows"])

    command_payload = {
        "command": " ".join([sys.executable, *sys.argv]),
    }
    (out_dir / "run.json").write_text(
        json.dumps(command_payload, indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    return out_dir


def _git_sha() -> str:
    try:
        proc = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            check=True,
            text=True,
            capture_output=True,
        )
        return proc.stdout.strip()
    except (OSError, subprocess.CalledProcessError):
        return "unknown"


def main() -> int:
    args = parse_args()
    model = load_model(args.model)
    pipeline = build_pipeline(
        use_long_s=model.use_long_s if args.use_long_s is None else args.use_long_s,
        keep_diacritics=model.keep_diacritics if args.keep_diacritics is None else args.keep_diacritics,
        rules_path=args.rules,
    )
    manifest = Path(args.manifest)
    cases = load_manifest(manifest, pipeline)
    result = run_benchmark(model, cases)
    out_dir = write_artifacts(
        Path(args.output_root),
        model_path=args.model,
        manifest=manifest,
        result=result,
    )
    print(json.dumps(result["summary"], indent=2))
    print(f"Artifacts written to: {out_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
