"""
Plain-text corpus files for flexihmm.

Sentences are stored one per line with tokens separated by single spaces.
A tag file and a sentence file are parallel: line k of one pairs with line k
of the other.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .errors import DataError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def tokenize(line: str) -> List[str]:
    """Split a line on single spaces, ignoring empty tokens from repeated spaces."""
    return [token for token in line.rstrip("\r\n").split(" ") if token]


def _read_lines(path: PathLike) -> List[str]:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return [line.rstrip("\r\n") for line in f]


def read_sentences(path: PathLike, keep_blank: bool = False) -> List[List[str]]:
    """
    Read a sentence file into token lists. Blank lines are skipped unless
    ``keep_blank`` is set, in which case they become empty sentences so that
    line positions are preserved.
    """
    return [tokenize(line) for line in _read_lines(path) if keep_blank or line.strip()]


def read_parallel_corpus(tag_file: PathLike, sentence_file: PathLike) -> List[Tuple[List[str], List[str]]]:
    """
    Read a tag file and its sentence file as (tags, words) pairs.

    Lines that are blank in both files are skipped. Token-level length
    mismatches are returned as-is so training can report them.

    Raises:
        DataError: if the files have a different number of lines, or only one
            side of a line pair is blank
    """
    tag_lines = _read_lines(tag_file)
    word_lines = _read_lines(sentence_file)
    if len(tag_lines) != len(word_lines):
        raise DataError(
            f"{len(tag_lines)} tag lines but {len(word_lines)} sentence lines in {sentence_file}",
            path=tag_file,
        )
    corpus: List[Tuple[List[str], List[str]]] = []
    for line_no, (tag_line, word_line) in enumerate(zip(tag_lines, word_lines), 1):
        if not tag_line.strip() and not word_line.strip():
            continue
        if not tag_line.strip() or not word_line.strip():
            raise DataError(f"line {line_no} is blank in only one of the files", path=tag_file)
        corpus.append((tokenize(tag_line), tokenize(word_line)))
    logger.info("Read %d sentence pairs from %s and %s", len(corpus), tag_file, sentence_file)
    return corpus


def read_tag_lines(path: PathLike) -> List[List[str]]:
    """Read a tag file keeping blank lines, so positions stay aligned with the input."""
    return [tokenize(line) for line in _read_lines(path)]


def format_tag_line(tags: Optional[Sequence[str]]) -> str:
    return " ".join(tags) if tags else ""


def write_tag_lines(path: PathLike, tag_sequences: Iterable[Optional[Sequence[str]]]) -> int:
    """
    Write one space-joined line per sentence. ``None`` (a sentence that could
    not be tagged) becomes an empty line. Returns the number of lines written.
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(output_path, "w", encoding="utf-8") as f:
        for tags in tag_sequences:
            f.write(format_tag_line(tags) + "\n")
            count += 1
    logger.info("Wrote %d tag lines to %s", count, output_path)
    return count
