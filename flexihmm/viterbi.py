"""
Viterbi module for flexihmm.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from .errors import DataError, DecodeError, EmptyInputError, NoReachableStateError
from .model import HMMModel

logger = logging.getLogger(__name__)


def decode(model: HMMModel, words: Sequence[str]) -> List[str]:
    """
    Tag a sentence with the highest-scoring tag sequence under the model.

    Only tag sequences made of transitions observed in training are
    considered. A word never seen with a candidate tag scores the model's
    penalty instead of excluding that tag.

    Ties are resolved by strict comparison: the first predecessor (in frontier
    order) reaching the best score keeps the back-pointer, and the first tag in
    the final frontier with the best score ends the path.

    Args:
        model: Trained HMMModel
        words: Tokens of one sentence

    Returns:
        One tag per word, rendered according to model.config

    Raises:
        EmptyInputError: if ``words`` is empty
        NoReachableStateError: if no tag is reachable at some position
    """
    config = model.config
    sentence = [config.normalize_token(word) for word in words]
    if not sentence:
        raise EmptyInputError()

    transition = model.transition
    emission = model.emission
    penalty = model.penalty

    # Frontier: live tag -> best cumulative log score so far
    scores: Dict[str, float] = {model.start_symbol: 0.0}
    # backpointers[i][tag] = predecessor of tag at position i
    backpointers: List[Dict[str, str]] = []

    for position, word in enumerate(sentence):
        next_scores: Dict[str, float] = {}
        pointers: Dict[str, str] = {}
        for cur, cur_score in scores.items():
            row = transition.get(cur)
            if row is None:
                # Dead end: tag was only ever seen sentence-final
                continue
            for nxt, trans_score in row.items():
                candidate = cur_score + trans_score + emission[nxt].get(word, penalty)
                if nxt not in next_scores or candidate > next_scores[nxt]:
                    next_scores[nxt] = candidate
                    pointers[nxt] = cur
        if not next_scores:
            raise NoReachableStateError(position, word)
        backpointers.append(pointers)
        scores = next_scores

    best_tag = None
    best_score = -math.inf
    for tag, score in scores.items():
        if best_tag is None or score > best_score:
            best_tag = tag
            best_score = score

    path = [best_tag]
    for pointers in reversed(backpointers[1:]):
        path.append(pointers[path[-1]])
    path.reverse()

    if config.debug:
        logger.debug("Decoded %d words with score %.4f: %s", len(sentence), best_score, " ".join(path))
    return [config.render_tag(tag) for tag in path]


@dataclass
class TaggedSentence:
    """Outcome of decoding one sentence: tags on success, the DecodeError otherwise."""
    words: List[str]
    tags: Optional[List[str]] = None
    error: Optional[DecodeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def decode_batch(model: HMMModel, sentences: Iterable[Sequence[str]]) -> List[TaggedSentence]:
    """Decode independent sentences; failures are recorded per sentence instead of raised."""
    results: List[TaggedSentence] = []
    for index, words in enumerate(sentences):
        words = list(words)
        try:
            tags = decode(model, words)
        except DecodeError as exc:
            logger.debug("Sentence %d could not be decoded: %s", index + 1, exc)
            results.append(TaggedSentence(words=words, error=exc))
        else:
            results.append(TaggedSentence(words=words, tags=tags))
    return results


def score_sequence(model: HMMModel, words: Sequence[str], tags: Sequence[str]) -> float:
    """
    Total log score of ``tags`` for ``words``, scored the same way decode() does.

    Transitions missing from the model score -inf.
    """
    if len(words) != len(tags):
        raise DataError(f"{len(tags)} tags but {len(words)} words")
    config = model.config
    total = 0.0
    prev = model.start_symbol
    for word, tag in zip(words, tags):
        tag = config.normalize_token(tag)
        total += model.transition_score(prev, tag) + model.emission_score(tag, config.normalize_token(word))
        prev = tag
    return total
