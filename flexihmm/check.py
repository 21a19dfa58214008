"""Tagging accuracy: per-tag metrics, confusion counts and a printable report."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence, Union

from tabulate import tabulate

from .errors import DataError
from .io_plain import read_tag_lines

logger = logging.getLogger(__name__)

# Placeholder for a position present on only one side
MISSING_TAG = "_"


@dataclass
class Metric:
    correct: int = 0
    total: int = 0

    def add(self, is_correct: bool) -> None:
        self.correct += int(bool(is_correct))
        self.total += 1

    @property
    def wrong(self) -> int:
        return self.total - self.correct

    @property
    def accuracy(self) -> float | None:
        if self.total == 0:
            return None
        return self.correct / self.total


@dataclass
class EvaluationResult:
    overall: Metric = field(default_factory=Metric)
    per_tag: Dict[str, Metric] = field(default_factory=dict)
    # gold tag -> Counter of wrong predicted tags
    confusion: Dict[str, Counter] = field(default_factory=dict)
    sentences: int = 0

    @property
    def wrong(self) -> int:
        return self.overall.wrong

    @property
    def accuracy(self) -> float | None:
        return self.overall.accuracy

    def add(self, gold_tag: str, pred_tag: str) -> None:
        is_correct = gold_tag == pred_tag
        self.overall.add(is_correct)
        self.per_tag.setdefault(gold_tag, Metric()).add(is_correct)
        if not is_correct:
            self.confusion.setdefault(gold_tag, Counter())[pred_tag] += 1


def evaluate_sequences(
    gold: Sequence[Sequence[str]], predicted: Sequence[Sequence[str]]
) -> EvaluationResult:
    """
    Compare gold and predicted tag sequences position by position.

    Tags are compared upper-cased. When a predicted sentence is shorter or
    longer than its gold sentence, every unmatched position counts as wrong.

    Raises:
        DataError: if the number of sentences differs
    """
    if len(gold) != len(predicted):
        raise DataError(f"{len(gold)} gold sentences but {len(predicted)} predicted sentences")
    result = EvaluationResult()
    for index, (gold_tags, pred_tags) in enumerate(zip(gold, predicted)):
        if len(gold_tags) != len(pred_tags):
            logger.debug(
                "Sentence %d: %d gold tags but %d predicted tags", index + 1, len(gold_tags), len(pred_tags)
            )
        for position in range(max(len(gold_tags), len(pred_tags))):
            gold_tag = gold_tags[position].upper() if position < len(gold_tags) else MISSING_TAG
            pred_tag = pred_tags[position].upper() if position < len(pred_tags) else MISSING_TAG
            result.add(gold_tag, pred_tag)
        result.sentences += 1
    return result


def evaluate_files(gold_file: Union[str, Path], pred_file: Union[str, Path]) -> EvaluationResult:
    gold = read_tag_lines(gold_file)
    predicted = read_tag_lines(pred_file)
    try:
        return evaluate_sequences(gold, predicted)
    except DataError as exc:
        raise DataError(str(exc), path=pred_file) from exc


def _percent(metric: Metric) -> str:
    accuracy = metric.accuracy
    return "n/a" if accuracy is None else f"{accuracy * 100:.2f}%"


def format_report(result: EvaluationResult) -> str:
    """Render totals, per-tag accuracy and the confusion table as plain text."""
    lines: List[str] = []
    rule = "_" * 84
    lines.append(rule)
    lines.append("")
    lines.append(f"Sentences:               {result.sentences}")
    lines.append(f"Total wrong:             {result.wrong}")
    lines.append(f"Out of:                  {result.overall.total}")
    lines.append(f"Percentage accuracy:     {_percent(result.overall)}")
    lines.append("")

    if result.per_tag:
        tag_rows = []
        for tag, metric in sorted(result.per_tag.items()):
            tag_rows.append([tag, metric.correct, metric.total, _percent(metric)])
        lines.append("Accuracy by gold tag:")
        lines.append("")
        lines.append(tabulate(tag_rows, headers=["Tag", "Correct", "Total", "Accuracy"]))
        lines.append("")

    if result.confusion:
        confusion_rows = []
        for gold_tag in sorted(result.confusion):
            predictions = result.confusion[gold_tag]
            formatted = "  ".join(f"{pred}:{count}" for pred, count in predictions.most_common())
            confusion_rows.append([gold_tag, sum(predictions.values()), formatted])
        lines.append("Incorrectly identified:")
        lines.append("")
        lines.append(tabulate(confusion_rows, headers=["Gold", "Wrong", "Predicted as"], tablefmt="simple"))
        lines.append("")

    lines.append(rule)
    return "\n".join(lines)
