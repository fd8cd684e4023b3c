"""
Index-to-vector embedding matrices.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

import torch

from .vocab import Vocabulary

logger = logging.getLogger(__name__)


def random_embedding_matrix(
    vocab_size: int,
    embedding_size: int,
    padding_index: int = 0,
    seed: int = 42,
) -> torch.Tensor:
    """Seeded standard-normal matrix whose padding row is all zeros."""
    if vocab_size <= 0 or embedding_size <= 0:
        raise ValueError(
            f"Embedding matrix needs positive sizes, got {vocab_size}x{embedding_size}."
        )
    generator = torch.Generator().manual_seed(seed)
    matrix = torch.randn(vocab_size, embedding_size, generator=generator)
    matrix[padding_index].zero_()
    return matrix


def load_word_vectors(
    path: Path,
    vocabulary: Vocabulary,
    embedding_size: int,
    padding_index: int = 0,
    seed: int = 42,
) -> Tuple[torch.Tensor, int]:
    """
    Fill an embedding matrix from a whitespace-separated word-vector file.

    Each line reads `word v1 v2 ... vN`. A leading `count dimension` header
    line (word2vec text format) is skipped. Words missing from the file keep a
    random vector and the padding row stays zero.

    Args:
        path: Text file with one vector per line.
        vocabulary: Vocabulary whose rows should be filled.
        embedding_size: Expected vector dimensionality.
        padding_index: Row kept at zero.
        seed: Seed for the rows of words not present in the file.

    Returns:
        A tuple of `(matrix, found)` where `found` counts filled vocabulary rows.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Word-vector file not found: {path}")

    matrix = random_embedding_matrix(len(vocabulary), embedding_size, padding_index, seed)
    filled = set()
    with path.open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            parts = line.rstrip().split()
            if not parts:
                continue
            if line_number == 1 and len(parts) == 2 and all(part.isdigit() for part in parts):
                continue
            word, values = parts[0].lower(), parts[1:]
            if len(values) != embedding_size:
                raise ValueError(
                    f"{path}:{line_number}: expected {embedding_size} values for '{word}', got {len(values)}."
                )
            if word not in vocabulary:
                continue
            index = vocabulary.index(word)
            if index == padding_index or index in filled:
                continue
            try:
                matrix[index] = torch.tensor([float(value) for value in values])
            except ValueError as exc:
                raise ValueError(f"{path}:{line_number}: non-numeric vector for '{word}'.") from exc
            filled.add(index)

    logger.info("Loaded pretrained vectors for %d of %d vocabulary entries.", len(filled), len(vocabulary))
    return matrix, len(filled)
