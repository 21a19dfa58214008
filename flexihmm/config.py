"""
Configuration classes for flexihmm.
"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class HMMConfig:
    """Configuration for training and decoding an HMM tagger."""
    start_symbol: str = "#"  # Pseudo-tag for the context before the first word
    penalty: Optional[float] = None  # Score for unseen (tag, word) pairs; None derives it from the corpus
    penalty_margin: float = 10.0  # How far below the derived bound the penalty sits
    lowercase: bool = True  # Compare tags and words case-insensitively
    uppercase_tags: bool = True  # Render decoded tags upper-case
    debug: bool = False  # Enable debug output

    def __post_init__(self) -> None:
        if not self.start_symbol:
            raise ValueError("start_symbol must be a non-empty string")
        if self.penalty is not None:
            self.penalty = float(self.penalty)
            if not math.isfinite(self.penalty) or self.penalty >= 0:
                raise ValueError(f"penalty must be a finite negative number, got {self.penalty}")
        if self.penalty_margin <= 0:
            raise ValueError(f"penalty_margin must be > 0, got {self.penalty_margin}")

    def normalize_token(self, token: str) -> str:
        return token.lower() if self.lowercase else token

    def render_tag(self, tag: str) -> str:
        return tag.upper() if self.uppercase_tags else tag

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HMMConfig":
        known = {key: value for key, value in data.items() if key in cls.__dataclass_fields__}
        return cls(**known)
