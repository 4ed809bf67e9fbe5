"""CLI entrypoint for codeswitch_lm."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from codeswitch_lm.config import configure_logging, load_config, load_training_options
from codeswitch_lm.core import score_text, summarize_model, train_code_switch_model
from codeswitch_lm.errors import CodeSwitchLMError
from codeswitch_lm.io import load_model, to_json, write_json
from codeswitch_lm.normalize import build_pipeline


def build_parser() -> argparse.ArgumentParser:
    """Create the top-level CLI parser."""
    parser = argparse.ArgumentParser(
        prog="codeswitch-lm",
        description="Code-switching character language model trainer.",
    )
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command")

    train = subparsers.add_parser("train", help="Train and write a code-switch language model")
    train.add_argument("--config", default=None, help="TOML profile with a [training] table")
    train.add_argument("--lm-path", default=None, help="Output LM file path")
    train.add_argument(
        "--text-paths",
        default=None,
        help='Training text per language: "english->texts/en,french->texts/fr.txt"',
    )
    train.add_argument(
        "--language-priors",
        default=None,
        help='Prior per language, e.g. "english->0.7,french->0.3"; omit for uniform priors',
    )
    train.add_argument(
        "--alt-spelling-paths",
        dest="alternate_spelling_replacement_paths",
        default=None,
        help='Alternate-spelling rule file per language: "english->rules/en.txt"',
    )
    train.add_argument(
        "--use-long-s",
        action="store_const",
        const=True,
        default=None,
        help="Use a separate character type for long s",
    )
    train.add_argument(
        "--no-diacritics",
        dest="keep_diacritics",
        action="store_const",
        const=False,
        default=None,
        help="Strip diacritics from training text",
    )
    train.add_argument("--max-lines", type=int, default=None, help="Maximum corpus lines per language")
    train.add_argument("--char-n", type=int, default=None, help="Character n-gram length")
    train.add_argument("--power", type=float, default=None, help="Exponent on LM scores")
    train.add_argument(
        "--lm-char-count",
        type=int,
        default=None,
        help="Characters per language to train on; -1 uses the full corpus",
    )
    train.add_argument(
        "--p-keep-same-language",
        type=float,
        default=None,
        help="Prior probability of staying in the same language between words",
    )
    train.add_argument("--workers", type=int, default=None, help="Languages counted in parallel")

    inspect = subparsers.add_parser("inspect", help="Summarize a trained model")
    inspect.add_argument("model_path", help="Path to a trained model")
    inspect.add_argument("-o", "--output", default=None, help="Output JSON path")

    score = subparsers.add_parser("score", help="Score a line of text")
    score.add_argument("model_path", help="Path to a trained model")
    score.add_argument("text", help="Text to score")
    score.add_argument(
        "--use-long-s",
        action="store_const",
        const=True,
        default=None,
        help="Render medial s as long s (default: as the model was trained)",
    )
    score.add_argument(
        "--no-diacritics",
        dest="keep_diacritics",
        action="store_const",
        const=False,
        default=None,
        help="Strip diacritics before scoring (default: as the model was trained)",
    )
    score.add_argument("--rules", default=None, help="Alternate-spelling rule file to apply")

    serve = subparsers.add_parser("serve", help="Run the codeswitch-lm HTTP API")
    serve.add_argument("--host", default=None, help="Override API host")
    serve.add_argument("--port", type=int, default=None, help="Override API port")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    config = load_config()
    try:
        configure_logging(args.log_level or config.log_level)
        if args.command == "train":
            return _train(args, workers=args.workers or config.workers)
        if args.command == "inspect":
            summary = summarize_model(load_model(args.model_path))
            if args.output:
                write_json(summary, args.output)
                print(f"Wrote model summary JSON to {args.output}")
                return 0
            print(to_json(summary))
            return 0
        if args.command == "score":
            model = load_model(args.model_path)
            pipeline = build_pipeline(
                use_long_s=model.use_long_s if args.use_long_s is None else args.use_long_s,
                keep_diacritics=model.keep_diacritics if args.keep_diacritics is None else args.keep_diacritics,
                rules_path=args.rules,
            )
            print(to_json(score_text(model, args.text, pipeline)))
            return 0
    except CodeSwitchLMError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.command == "serve":
        try:
            import uvicorn
        except ModuleNotFoundError:
            print(
                "`codeswitch-lm serve` requires uvicorn. Install project dependencies first.",
                file=sys.stderr,
            )
            return 1

        host = args.host or config.api_host
        port = args.port or config.api_port
        uvicorn.run(
            "codeswitch_lm.api:app",
            host=host,
            port=port,
            workers=config.workers,
            reload=False,
        )
        return 0

    parser.error(f"Unknown command: {args.command}")
    return 2


def _train(args: argparse.Namespace, *, workers: int) -> int:
    options = load_training_options(
        args.config,
        {
            "lm_path": args.lm_path,
            "text_paths": args.text_paths,
            "language_priors": args.language_priors,
            "alternate_spelling_replacement_paths": args.alternate_spelling_replacement_paths,
            "use_long_s": args.use_long_s,
            "keep_diacritics": args.keep_diacritics,
            "max_lines": args.max_lines,
            "char_n": args.char_n,
            "power": args.power,
            "lm_char_count": args.lm_char_count,
            "p_keep_same_language": args.p_keep_same_language,
        },
    )
    summary = train_code_switch_model(options, workers=workers)
    print(to_json(summary))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
