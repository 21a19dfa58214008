"""
Interactive console tagging for flexihmm.
"""
from __future__ import annotations

from typing import Callable

from .errors import DecodeError
from .io_plain import format_tag_line, tokenize
from .model import HMMModel
from .viterbi import decode

QUIT_COMMAND = "q"


def run_console(
    model: HMMModel,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[..., None] = print,
) -> int:
    """
    Read sentences from the console and print their tags until the user quits.

    Entering "q" (or closing stdin) ends the loop. Returns the number of
    sentences tagged.
    """
    tagged = 0
    while True:
        output_fn(f"Enter {QUIT_COMMAND} to quit the console input test.")
        try:
            line = input_fn("Enter a sentence to test > ")
        except EOFError:
            output_fn("")
            break
        sentence = line.strip()
        if sentence == QUIT_COMMAND:
            break
        words = tokenize(sentence)
        if not words:
            continue
        try:
            tags = decode(model, words)
        except DecodeError as exc:
            output_fn(f"[flexihmm] Could not tag sentence: {exc}")
        else:
            output_fn(format_tag_line(tags))
            tagged += 1
        output_fn("")
    return tagged
