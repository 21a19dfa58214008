"""
Model store and trainer for flexihmm.

Training accumulates raw transition and emission counts from paired tag/word
sentences, then normalizes every row once into natural-log probabilities:

    transition[prev_tag][tag] = ln(count(prev_tag -> tag) / count(prev_tag -> *))
    emission[tag][word]       = ln(count(tag emits word) / count(tag emits *))

Only pairs actually observed in training get an entry. The resulting
HMMModel is frozen; extending it means building a new one.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .config import HMMConfig
from .errors import DataError

logger = logging.getLogger(__name__)

Table = Mapping[str, Mapping[str, float]]
CountTable = Dict[str, Dict[str, int]]
TokenSequence = Union[str, Sequence[str]]
TrainingInstance = Tuple[TokenSequence, TokenSequence]

# Derived penalty scale relative to the lowest observed log score
PENALTY_SCORE_FACTOR = 3

MODEL_FORMAT = "flexihmm-bigram"


def _freeze(table: Mapping[str, Mapping[str, Any]]) -> Mapping[str, Mapping[str, Any]]:
    return MappingProxyType({key: MappingProxyType(dict(row)) for key, row in table.items()})


def _copy_counts(table: Mapping[str, Mapping[str, Any]]) -> CountTable:
    return {key: {inner: int(count) for inner, count in row.items()} for key, row in table.items()}


def _checked_counts(table: Any, name: str) -> CountTable:
    """Copy a count table loaded from a file, rejecting anything but positive integers."""
    if not isinstance(table, Mapping):
        raise DataError(f"Invalid model data: {name} must be a mapping")
    counts: CountTable = {}
    for key, row in table.items():
        if not isinstance(row, Mapping):
            raise DataError(f"Invalid model data: {name}[{key!r}] must be a mapping")
        for inner, count in row.items():
            if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
                raise DataError(
                    f"Invalid model data: {name}[{key!r}][{inner!r}] must be a positive integer, got {count!r}"
                )
        counts[key] = dict(row)
    return counts


def normalize_log_scores(counts: Mapping[str, Mapping[str, float]]) -> Dict[str, Dict[str, float]]:
    """Turn each row of raw counts into natural-log probabilities over that row."""
    scores: Dict[str, Dict[str, float]] = {}
    for source, row in counts.items():
        total = sum(row.values())
        if total <= 0:
            continue
        scores[source] = {target: math.log(count / total) for target, count in row.items()}
    return scores


def derive_penalty(config: HMMConfig, *tables: Table) -> float:
    """
    Resolve the score used for unseen (tag, word) emissions.

    An explicit config.penalty is returned unchanged. Otherwise the penalty sits
    below PENALTY_SCORE_FACTOR times the lowest observed log score, so a single
    unseen emission always costs more than the worst observed emission together
    with the worst transitions into and out of its position.
    """
    if config.penalty is not None:
        return config.penalty
    lowest = min(
        (score for table in tables for row in table.values() for score in row.values()),
        default=0.0,
    )
    return PENALTY_SCORE_FACTOR * lowest - config.penalty_margin


@dataclass(frozen=True)
class HMMModel:
    """
    Trained bigram HMM: sparse log-probability tables plus the counts behind them.

    Row and entry order is the order in which tags and words were first seen in
    training; the decoder relies on it for deterministic tie-breaking.
    """

    transition: Table
    emission: Table
    transition_counts: Mapping[str, Mapping[str, int]]
    emission_counts: Mapping[str, Mapping[str, int]]
    penalty: float
    config: HMMConfig = field(default_factory=HMMConfig)
    sentence_count: int = 0

    @property
    def start_symbol(self) -> str:
        return self.config.start_symbol

    @property
    def tags(self) -> List[str]:
        """Output tags in first-seen order (the start symbol is never one)."""
        return list(self.emission.keys())

    @property
    def vocabulary(self) -> List[str]:
        seen: Dict[str, None] = {}
        for row in self.emission.values():
            for word in row:
                seen.setdefault(word, None)
        return list(seen)

    @property
    def token_count(self) -> int:
        return sum(sum(row.values()) for row in self.emission_counts.values())

    def transition_score(self, prev_tag: str, tag: str) -> float:
        row = self.transition.get(prev_tag)
        if row is None:
            return -math.inf
        return row.get(tag, -math.inf)

    def emission_score(self, tag: str, word: str) -> float:
        row = self.emission.get(tag)
        if row is None:
            return self.penalty
        return row.get(word, self.penalty)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": MODEL_FORMAT,
            "config": self.config.to_dict(),
            "penalty": self.penalty,
            "sentence_count": self.sentence_count,
            "transition_counts": {key: dict(row) for key, row in self.transition_counts.items()},
            "emission_counts": {key: dict(row) for key, row in self.emission_counts.items()},
            "transition": {key: dict(row) for key, row in self.transition.items()},
            "emission": {key: dict(row) for key, row in self.emission.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HMMModel":
        """Rebuild a model from to_dict() output. Scores are recomputed from the counts."""
        fmt = data.get("format")
        if fmt != MODEL_FORMAT:
            raise DataError(f"Unsupported model format: {fmt!r} (expected {MODEL_FORMAT!r})")
        try:
            config = HMMConfig.from_dict(data.get("config") or {})
            transition_counts = _checked_counts(data["transition_counts"], "transition_counts")
            emission_counts = _checked_counts(data["emission_counts"], "emission_counts")
            penalty = float(data["penalty"])
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise DataError(f"Invalid model data: {exc}") from exc
        # Every reachable tag needs an emission row for the decoder
        for source, row in transition_counts.items():
            for tag in row:
                if tag not in emission_counts:
                    raise DataError(
                        f"Invalid model data: transition {source!r} -> {tag!r} has no emission row for {tag!r}"
                    )
        return cls(
            transition=_freeze(normalize_log_scores(transition_counts)),
            emission=_freeze(normalize_log_scores(emission_counts)),
            transition_counts=_freeze(transition_counts),
            emission_counts=_freeze(emission_counts),
            penalty=penalty,
            config=config,
            sentence_count=int(data.get("sentence_count", 0)),
        )


class ModelBuilder:
    """
    Accumulates counts from training sentences and builds an HMMModel once.

    Input is validated before any count is touched, so a rejected sentence or
    corpus leaves the builder exactly as it was.
    """

    def __init__(self, config: Optional[HMMConfig] = None):
        self.config = replace(config) if config is not None else HMMConfig()
        self._transition_counts: CountTable = {}
        self._emission_counts: CountTable = {}
        self._sentence_count = 0
        self._built = False

    @classmethod
    def from_model(cls, model: HMMModel, config: Optional[HMMConfig] = None) -> "ModelBuilder":
        """Start a builder from the counts of an existing model, leaving the model as is."""
        builder = cls(config if config is not None else model.config)
        builder._transition_counts = _copy_counts(model.transition_counts)
        builder._emission_counts = _copy_counts(model.emission_counts)
        builder._sentence_count = model.sentence_count
        return builder

    @property
    def sentence_count(self) -> int:
        return self._sentence_count

    def _check_open(self) -> None:
        if self._built:
            raise RuntimeError("ModelBuilder has already built its model; start a new builder")

    def _prepare(
        self, tags: TokenSequence, words: TokenSequence, index: Optional[int] = None
    ) -> Tuple[List[str], List[str]]:
        if isinstance(tags, str):
            tags = tags.split()
        if isinstance(words, str):
            words = words.split()
        tags = [self.config.normalize_token(tag) for tag in tags]
        words = [self.config.normalize_token(word) for word in words]
        if len(tags) != len(words):
            raise DataError(f"{len(tags)} tags but {len(words)} words", index=index)
        for position, (tag, word) in enumerate(zip(tags, words)):
            if not tag or not word:
                raise DataError(f"empty tag or word at position {position + 1}", index=index)
            if tag == self.config.start_symbol:
                raise DataError(
                    f"tag at position {position + 1} is the reserved start symbol '{tag}'",
                    index=index,
                )
        return tags, words

    def _count(self, tags: List[str], words: List[str]) -> None:
        if not tags:
            return
        prev = self.config.start_symbol
        for tag, word in zip(tags, words):
            row = self._emission_counts.setdefault(tag, {})
            row[word] = row.get(word, 0) + 1
            row = self._transition_counts.setdefault(prev, {})
            row[tag] = row.get(tag, 0) + 1
            prev = tag
        self._sentence_count += 1

    def add_sentence(self, tags: TokenSequence, words: TokenSequence) -> None:
        self._check_open()
        prepared_tags, prepared_words = self._prepare(tags, words)
        self._count(prepared_tags, prepared_words)

    def add_corpus(self, instances: Iterable[TrainingInstance]) -> int:
        """Add a whole corpus atomically. Returns the number of sentences counted."""
        self._check_open()
        prepared = []
        for index, instance in enumerate(instances):
            try:
                tags, words = instance
            except (TypeError, ValueError) as exc:
                raise DataError("expected a (tags, words) pair", index=index) from exc
            prepared.append(self._prepare(tags, words, index=index))
        before = self._sentence_count
        for tags, words in prepared:
            self._count(tags, words)
        return self._sentence_count - before

    def build(self) -> HMMModel:
        self._check_open()
        self._built = True
        transition = normalize_log_scores(self._transition_counts)
        emission = normalize_log_scores(self._emission_counts)
        penalty = derive_penalty(self.config, transition, emission)
        model = HMMModel(
            transition=_freeze(transition),
            emission=_freeze(emission),
            transition_counts=_freeze(self._transition_counts),
            emission_counts=_freeze(self._emission_counts),
            penalty=penalty,
            config=self.config,
            sentence_count=self._sentence_count,
        )
        logger.info(
            "Trained HMM on %d sentences: %d tags, %d word types, %d tokens",
            model.sentence_count,
            len(model.emission),
            len(model.vocabulary),
            model.token_count,
        )
        logger.debug("Unseen-emission penalty: %.4f", penalty)
        return model


def train(
    instances: Iterable[TrainingInstance],
    config: Optional[HMMConfig] = None,
    base: Optional[HMMModel] = None,
) -> HMMModel:
    """
    Train a fresh model, or extend ``base`` with more sentences.

    Raises DataError if any tag sequence and word sequence differ in length;
    in that case no model is produced and ``base`` is unaffected.
    """
    if base is not None:
        builder = ModelBuilder.from_model(base, config)
    else:
        builder = ModelBuilder(config)
    builder.add_corpus(instances)
    return builder.build()
