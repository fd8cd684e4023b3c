"""
Gradient-free inference with an (untrained or externally initialized) sentence CNN.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import torch
from torch.utils.data import DataLoader

from .model import SentenceCNN
from .vocab import Vocabulary


@dataclass
class Prediction:
    text: str
    label: str
    confidence: float
    probabilities: List[float]


def classify(
    model: SentenceCNN,
    vocabulary: Vocabulary,
    texts: Sequence[str],
    labels: Optional[Sequence[str]] = None,
) -> List[Prediction]:
    """
    Predict a class for each sentence.

    Args:
        model: Network producing `num_classes` outputs.
        vocabulary: Vocabulary the network's embedding rows refer to.
        texts: Raw sentences.
        labels: Optional class names, one per output; class indices are used
            as names otherwise.
    """
    if labels is not None and len(labels) != model.config.num_classes:
        raise ValueError(
            f"Got {len(labels)} label names for a model with {model.config.num_classes} classes."
        )
    if not texts:
        return []

    indices = vocabulary.encode_batch(texts, model.config.sentence_length)
    probabilities = model.predict_proba(indices)

    predictions: List[Prediction] = []
    for text, row in zip(texts, probabilities):
        best = int(row.argmax())
        predictions.append(
            Prediction(
                text=text,
                label=labels[best] if labels is not None else str(best),
                confidence=float(row[best]),
                probabilities=[float(value) for value in row],
            )
        )
    return predictions


def accuracy(model: SentenceCNN, data_loader: DataLoader, device: torch.device) -> float:
    """
    Compute classification accuracy for a labelled loader.

    Args:
        model: Sentence CNN to score.
        data_loader: Loader yielding `(indices, label_index)` batches, e.g. over a
            `SentenceDataset` built with a label mapping. Indices are shaped
            `(batch_size, sentence_length)`.
        device: Torch device used for inference (CPU by default).

    Returns:
        Accuracy as a percentage in the `[0, 100]` range.
    """
    model.eval()
    correct = 0
    total = 0

    with torch.inference_mode():
        for inputs, targets in data_loader:
            inputs = inputs.to(device)
            targets = targets.to(device)
            logits = model(inputs)
            predictions = logits.argmax(dim=1)
            correct += (predictions == targets).sum().item()
            total += targets.size(0)

    return 100.0 * correct / max(total, 1)
