from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from .check import evaluate_files, format_report
from .config import HMMConfig
from .console import run_console
from .errors import DataError, DecodeError, EmptyInputError
from .io_plain import read_parallel_corpus, read_sentences, tokenize, write_tag_lines
from .model import HMMModel, train
from .viterbi import decode_batch

TASK_CHOICES = ["train", "tag", "check", "console", "run", "config"]

logger = logging.getLogger("flexihmm")


def _configure_logging(args: argparse.Namespace) -> None:
    if getattr(args, "debug", False):
        level = logging.DEBUG
    elif getattr(args, "verbose", False):
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="[flexihmm] %(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _build_config(args: argparse.Namespace) -> HMMConfig:
    from .model_storage import get_default_penalty

    penalty = getattr(args, "penalty", None)
    if penalty is None:
        penalty = get_default_penalty()
    return HMMConfig(
        penalty=penalty,
        lowercase=not getattr(args, "keep_case", False),
        debug=getattr(args, "debug", False),
    )


def build_parser() -> argparse.ArgumentParser:
    from . import __version__

    parser = argparse.ArgumentParser(
        prog="python -m flexihmm",
        description="HMM part-of-speech tagger with Viterbi decoding",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    # Common arguments that all subcommands inherit
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument("--debug", action="store_true", help="Enable verbose debug logging")
    parent_parser.add_argument("--verbose", action="store_true", help="Print high-level progress messages")

    subparsers = parser.add_subparsers(dest="task", required=False)

    def add_training_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--penalty",
            type=float,
            default=None,
            help="Score for words never seen with a tag (negative; default: derived from the corpus)",
        )
        p.add_argument(
            "--keep-case",
            action="store_true",
            help="Compare tags and words case-sensitively",
        )

    # train ---------------------------------------------------------------
    train_parser = subparsers.add_parser("train", parents=[parent_parser], help="Train a model from a tag file and a sentence file")
    train_parser.add_argument("--tags", type=Path, required=True, help="Training tags, one sentence per line")
    train_parser.add_argument("--sentences", type=Path, required=True, help="Training sentences, one per line, aligned with --tags")
    train_parser.add_argument(
        "--output",
        required=True,
        help="Model file to write (a bare name is stored in the models directory)",
    )
    train_parser.add_argument("--name", default=None, help="Model name stored in the model file")
    add_training_args(train_parser)

    # tag -----------------------------------------------------------------
    tag_parser = subparsers.add_parser("tag", parents=[parent_parser], help="Tag a file of sentences")
    tag_parser.add_argument("input", nargs="?", default="-", help='Sentence file (use "-" or omit for stdin)')
    tag_parser.add_argument("--model", required=True, help="Model file or model name")
    tag_parser.add_argument("--output", "-o", default="-", help='Output tag file (use "-" for stdout)')

    # check ---------------------------------------------------------------
    check_parser = subparsers.add_parser("check", parents=[parent_parser], help="Report accuracy of predicted tags against gold tags")
    check_parser.add_argument("--gold", type=Path, required=True, help="Gold tag file")
    check_parser.add_argument("--pred", type=Path, required=True, help="Predicted tag file")

    # console -------------------------------------------------------------
    console_parser = subparsers.add_parser("console", parents=[parent_parser], help="Tag sentences typed at the console")
    console_parser.add_argument("--model", required=True, help="Model file or model name")

    # run -----------------------------------------------------------------
    run_parser = subparsers.add_parser(
        "run",
        parents=[parent_parser],
        help="Train, tag a test file and report accuracy in one go",
    )
    run_parser.add_argument("--train-tags", type=Path, required=True)
    run_parser.add_argument("--train-sentences", type=Path, required=True)
    run_parser.add_argument("--test-tags", type=Path, required=True)
    run_parser.add_argument("--test-sentences", type=Path, required=True)
    run_parser.add_argument(
        "--predictions",
        type=Path,
        default=None,
        help="Where to write predicted tags (default: predictions/<test sentences stem>-predictions.txt)",
    )
    run_parser.add_argument("--console", action="store_true", help="Start the console tagger afterwards")
    add_training_args(run_parser)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser("config", parents=[parent_parser], help="Configure flexihmm settings")
    config_parser.add_argument("--show", action="store_true", help="Show current configuration")
    config_parser.add_argument("--set-models-dir", type=Path, metavar="PATH", help="Set the models directory")
    config_parser.add_argument(
        "--set-default-penalty",
        type=float,
        metavar="X",
        help="Set the default unseen-word penalty (negative number)",
    )
    config_parser.add_argument(
        "--clear-default-penalty",
        action="store_true",
        help="Derive the penalty from the training corpus again",
    )

    return parser


def _load(model_arg: str) -> HMMModel:
    from .model_storage import load_model

    return load_model(model_arg)


def _tag_sentences(model: HMMModel, sentences: List[List[str]]) -> List[Optional[List[str]]]:
    """Tag every sentence; blank or untaggable sentences come back as None."""
    results = decode_batch(model, sentences)
    failed = 0
    for index, result in enumerate(results, 1):
        if result.ok or isinstance(result.error, EmptyInputError):
            continue
        failed += 1
        logger.warning("Sentence %d could not be tagged: %s", index, result.error)
    if failed:
        print(f"[flexihmm] {failed} of {len(results)} sentence(s) could not be tagged", file=sys.stderr)
    return [result.tags for result in results]


def run_train(args: argparse.Namespace) -> int:
    from .model_storage import save_model

    config = _build_config(args)
    start = time.time()
    corpus = read_parallel_corpus(args.tags, args.sentences)
    model = train(corpus, config)
    path = save_model(model, args.output, name=args.name)
    print(
        f"[flexihmm] Trained on {model.sentence_count} sentences "
        f"({len(model.tags)} tags, {len(model.vocabulary)} word types) in {time.time() - start:.2f}s",
        file=sys.stderr,
    )
    print(f"[flexihmm] Model saved to: {path}", file=sys.stderr)
    return 0


def run_tag(args: argparse.Namespace) -> int:
    model = _load(args.model)
    if args.input in ("-", "", None):
        if sys.stdin.isatty():
            print("[flexihmm] Error: No input provided and stdin is a terminal", file=sys.stderr)
            return 1
        sentences = [tokenize(line) for line in sys.stdin]
    else:
        sentences = read_sentences(args.input, keep_blank=True)

    tag_lines = _tag_sentences(model, sentences)
    if args.output in ("-", "", None):
        for tags in tag_lines:
            sys.stdout.write(" ".join(tags or []) + "\n")
    else:
        write_tag_lines(args.output, tag_lines)
        print(f"[flexihmm] Wrote {len(tag_lines)} tag lines to {args.output}", file=sys.stderr)
    return 0


def run_check(args: argparse.Namespace) -> int:
    result = evaluate_files(args.gold, args.pred)
    print(format_report(result))
    return 0


def run_console_task(args: argparse.Namespace) -> int:
    model = _load(args.model)
    run_console(model)
    return 0


def run_pipeline(args: argparse.Namespace) -> int:
    config = _build_config(args)
    model = train(read_parallel_corpus(args.train_tags, args.train_sentences), config)
    print(f"[flexihmm] Trained on {model.sentence_count} sentences", file=sys.stderr)

    predictions = args.predictions
    if predictions is None:
        predictions = Path("predictions") / f"{args.test_sentences.stem}-predictions.txt"
    tag_lines = _tag_sentences(model, read_sentences(args.test_sentences, keep_blank=True))
    write_tag_lines(predictions, tag_lines)
    print(f"[flexihmm] Predictions written to {predictions}", file=sys.stderr)

    print(format_report(evaluate_files(args.test_tags, predictions)))

    if args.console:
        run_console(model)
    return 0


def run_config(args: argparse.Namespace) -> int:
    """Run config command to manage flexihmm settings."""
    from .model_storage import (
        get_config_file,
        get_default_penalty,
        get_models_dir,
        set_default_penalty,
        set_models_dir,
    )

    changed = False
    if args.set_models_dir:
        models_dir = set_models_dir(args.set_models_dir)
        print(f"[flexihmm] Models directory set to: {models_dir}")
        changed = True
    if args.set_default_penalty is not None:
        HMMConfig(penalty=args.set_default_penalty)  # validates
        set_default_penalty(args.set_default_penalty)
        print(f"[flexihmm] Default penalty set to: {args.set_default_penalty}")
        changed = True
    if args.clear_default_penalty:
        set_default_penalty(None)
        print("[flexihmm] Default penalty cleared (derived from training data)")
        changed = True
    if changed:
        print(f"[flexihmm] Configuration saved to: {get_config_file()}")

    if args.show or not changed:
        penalty = get_default_penalty()
        print(f"Config file:      {get_config_file(create_dir=False)}")
        print(f"Models directory: {get_models_dir(create=False)}")
        print(f"Default penalty:  {penalty if penalty is not None else 'derived from training data'}")
    return 0


TASK_HANDLERS = {
    "train": run_train,
    "tag": run_tag,
    "check": run_check,
    "console": run_console_task,
    "run": run_pipeline,
    "config": run_config,
}


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    else:
        argv = list(argv)

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.task:
        parser.error("No task specified. Use one of: " + ", ".join(TASK_CHOICES))

    _configure_logging(args)
    handler = TASK_HANDLERS[args.task]
    try:
        return handler(args)
    except FileNotFoundError as exc:
        print(f"[flexihmm] Error: File not found: {exc.filename}", file=sys.stderr)
    except (DataError, DecodeError, ValueError) as exc:
        print(f"[flexihmm] Error: {exc}", file=sys.stderr)
    except OSError as exc:
        print(f"[flexihmm] Error: {exc}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
