"""
Vocabulary-to-index mapping used to feed sentences into the embedding layer.

Index 0 is reserved for padding and index 1 for unknown words, so a sentence
always encodes to indices that are valid rows of the embedding matrix.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

import torch

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"[a-z0-9']+")
PAD_TOKEN = "<pad>"
UNK_TOKEN = "<unk>"
PAD_INDEX = 0
UNK_INDEX = 1
RESERVED_TOKENS = (PAD_TOKEN, UNK_TOKEN)


def tokenize(text: str) -> List[str]:
    return TOKEN_PATTERN.findall(text.lower())


def check_indices(indices, vocab_size: int) -> None:
    """
    Ensure every index addresses a row of a `vocab_size`-row embedding matrix.

    Raises:
        ValueError: If any index is negative or `>= vocab_size`.
    """
    values = torch.as_tensor(indices)
    if values.numel() == 0:
        return
    low = int(values.min())
    high = int(values.max())
    if low < 0 or high >= vocab_size:
        bad = low if low < 0 else high
        raise ValueError(f"Index {bad} is out of range for a vocabulary of size {vocab_size}.")


class Vocabulary:
    """Bidirectional token/index mapping with reserved padding and unknown entries."""

    def __init__(self, tokens: Iterable[str] = ()) -> None:
        self._tokens: List[str] = list(RESERVED_TOKENS)
        self._index: Dict[str, int] = {token: idx for idx, token in enumerate(self._tokens)}
        for token in tokens:
            if token in self._index:
                continue
            self._index[token] = len(self._tokens)
            self._tokens.append(token)

    @classmethod
    def build(
        cls,
        sentences: Iterable[str],
        min_count: int = 1,
        max_size: Optional[int] = None,
    ) -> "Vocabulary":
        """
        Build a vocabulary from raw sentences.

        Tokens are ordered by descending frequency and then alphabetically so the
        same corpus always produces the same indices.

        Args:
            sentences: Raw sentences to tokenize.
            min_count: Drop tokens seen fewer times than this.
            max_size: Keep at most this many corpus tokens (reserved entries
                are not counted).
        """
        counts: Counter = Counter()
        for sentence in sentences:
            counts.update(tokenize(sentence))
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        tokens = [token for token, count in ranked if count >= min_count]
        if max_size is not None:
            tokens = tokens[: max(0, max_size)]
        vocabulary = cls(tokens)
        logger.info("Built vocabulary with %d entries (%d distinct tokens seen).", len(vocabulary), len(counts))
        return vocabulary

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, token: object) -> bool:
        return token in self._index

    @property
    def tokens(self) -> List[str]:
        return list(self._tokens)

    def index(self, token: str) -> int:
        return self._index.get(token, UNK_INDEX)

    def token(self, index: int) -> str:
        if not 0 <= index < len(self._tokens):
            raise ValueError(f"Index {index} is out of range for a vocabulary of size {len(self)}.")
        return self._tokens[index]

    def encode(self, text: str, sentence_length: int) -> List[int]:
        """Map a sentence to exactly `sentence_length` indices (truncate or pad)."""
        if sentence_length <= 0:
            raise ValueError(f"sentence_length must be positive, got {sentence_length}.")
        indices = [self.index(token) for token in tokenize(text)[:sentence_length]]
        indices.extend([PAD_INDEX] * (sentence_length - len(indices)))
        return indices

    def encode_batch(self, texts: Sequence[str], sentence_length: int) -> torch.Tensor:
        """Encode sentences into a `(batch, sentence_length)` LongTensor."""
        rows = [self.encode(text, sentence_length) for text in texts]
        if not rows:
            return torch.empty((0, sentence_length), dtype=torch.long)
        return torch.tensor(rows, dtype=torch.long)

    def decode(self, indices: Iterable[int]) -> List[str]:
        tokens: List[str] = []
        for index in indices:
            index = int(index)
            if index == PAD_INDEX:
                break
            tokens.append(self.token(index))
        return tokens

    def to_dict(self) -> Dict[str, List[str]]:
        return {"tokens": self.tokens}

    @classmethod
    def from_dict(cls, data: Dict[str, List[str]]) -> "Vocabulary":
        tokens = list(data.get("tokens", []))
        if tuple(tokens[: len(RESERVED_TOKENS)]) != RESERVED_TOKENS:
            raise ValueError(f"Vocabulary must start with the reserved tokens {RESERVED_TOKENS}.")
        return cls(tokens[len(RESERVED_TOKENS):])
