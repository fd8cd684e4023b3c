"""
Hyperparameters that describe the shape of the sentence CNN.

Values come from the dataclass defaults, an optional JSON settings file and
finally command-line overrides, in that order.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .vocab import PAD_INDEX

INT_FIELDS = ("sentence_length", "embedding_size", "num_filters", "num_classes", "seed", "padding_index")


def _require_int(name: str, value: Any) -> int:
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}.")
    return value


@dataclass
class ModelConfig:
    """Container for the sizes that flow through every layer."""

    sentence_length: int = 20
    embedding_size: int = 50
    window_sizes: Tuple[int, ...] = (3, 4, 5)
    num_filters: int = 8
    num_classes: int = 2
    dropout: float = 0.5
    seed: int = 42
    padding_index: int = 0
    vocab_size: Optional[int] = None

    def __post_init__(self) -> None:
        for name in INT_FIELDS:
            _require_int(name, getattr(self, name))
        if self.vocab_size is not None:
            _require_int("vocab_size", self.vocab_size)
        if isinstance(self.dropout, bool) or not isinstance(self.dropout, (int, float)):
            raise ValueError(f"dropout must be a number, got {self.dropout!r}.")
        self.dropout = float(self.dropout)
        # JSON hands us lists.
        if not isinstance(self.window_sizes, (list, tuple)):
            raise ValueError(f"window_sizes must be a list of integers, got {self.window_sizes!r}.")
        self.window_sizes = tuple(_require_int("window_sizes", window) for window in self.window_sizes)

    def validate(self) -> "ModelConfig":
        """
        Check that the sizes describe a network that can be built.

        Raises:
            ValueError: When a size is non-positive, a word window does not fit
                in the sentence, the dropout probability is out of range, or
                the padding row differs from the one the vocabulary pads with.
        """
        for name in ("sentence_length", "embedding_size", "num_filters", "num_classes"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}.")
        if not self.window_sizes:
            raise ValueError("window_sizes must contain at least one word window.")
        for window in self.window_sizes:
            if window <= 0:
                raise ValueError(f"Word window must be positive, got {window}.")
            if window > self.sentence_length:
                raise ValueError(
                    f"Word window {window} is wider than the sentence length {self.sentence_length}."
                )
        if not 0.0 <= self.dropout < 1.0:
            raise ValueError(f"dropout must be in [0, 1), got {self.dropout}.")
        if self.vocab_size is None:
            raise ValueError("vocab_size is not set; build the vocabulary first.")
        if self.padding_index != PAD_INDEX:
            raise ValueError(
                f"padding_index must be {PAD_INDEX}, the index the vocabulary pads with; got {self.padding_index}."
            )
        if not 0 <= self.padding_index < self.vocab_size:
            raise ValueError(
                f"padding_index {self.padding_index} is outside the vocabulary of size {self.vocab_size}."
            )
        return self

    @property
    def pooled_lengths(self) -> Dict[int, int]:
        """Number of positions each word window slides over."""
        return {window: self.sentence_length - window + 1 for window in self.window_sizes}

    def with_overrides(self, **overrides: Any) -> "ModelConfig":
        """Return a copy with every non-`None` override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["window_sizes"] = list(self.window_sizes)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelConfig":
        known = {field.name for field in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_json(cls, path: Path) -> "ModelConfig":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a JSON object.")
        return cls.from_dict(data)
