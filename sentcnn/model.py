"""
Neural network architecture used for sentence classification.

The network is the classic single-layer sentence CNN: every word becomes an
embedding row, the sentence becomes a one-channel "image" of shape
`(sentence_length, embedding_size)`, and each convolution filter spans a
window of words across the full embedding width. Max pooling over time turns
each filter's response into one number, giving a fixed-length sentence
representation regardless of where in the sentence a feature fired.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

import torch
from torch import nn

from .config import ModelConfig
from .vocab import check_indices

logger = logging.getLogger(__name__)

# Ordered name -> tensor mapping of every intermediate result.
StageOutputs = Dict[str, torch.Tensor]


class SentenceCNN(nn.Module):
    """
    Maps `(batch_size, sentence_length)` word indices to `num_classes` logits.

    One `Conv2d` + `MaxPool2d` branch is built per word window. The pooled
    features of all branches are flattened, concatenated and fed into a
    dropout-regularized dense layer.
    """

    def __init__(self, config: ModelConfig, embedding_matrix: Optional[torch.Tensor] = None) -> None:
        super().__init__()
        self.config = config.validate()

        self.embedding = nn.Embedding(
            num_embeddings=config.vocab_size,
            embedding_dim=config.embedding_size,
            padding_idx=config.padding_index,
        )
        if embedding_matrix is not None:
            expected = (config.vocab_size, config.embedding_size)
            if tuple(embedding_matrix.shape) != expected:
                raise ValueError(
                    f"Embedding matrix has shape {tuple(embedding_matrix.shape)}, expected {expected}."
                )
            with torch.no_grad():
                self.embedding.weight.copy_(embedding_matrix)

        # Convolutional "feature extractor": one branch per word window. The
        # kernel covers the whole embedding width, so it only slides over time.
        self.convolutions = nn.ModuleDict()
        self.poolings = nn.ModuleDict()
        for window, positions in config.pooled_lengths.items():
            key = str(window)
            self.convolutions[key] = nn.Conv2d(
                in_channels=1,
                out_channels=config.num_filters,
                kernel_size=(window, config.embedding_size),
            )
            self.poolings[key] = nn.MaxPool2d(kernel_size=(positions, 1))
        self.activation = nn.ReLU()
        self.flatten = nn.Flatten()

        # Classification head over the concatenated pooled features.
        self.dropout = nn.Dropout(p=config.dropout)
        self.classifier = nn.Linear(in_features=self.feature_size, out_features=config.num_classes)

        logger.debug(
            "Built SentenceCNN: vocab=%d embedding=%d windows=%s filters=%d classes=%d",
            config.vocab_size,
            config.embedding_size,
            config.window_sizes,
            config.num_filters,
            config.num_classes,
        )

    @property
    def feature_size(self) -> int:
        """Length of the fixed-size sentence representation."""
        return self.config.num_filters * len(self.config.window_sizes)

    def _check_input(self, indices: torch.Tensor) -> None:
        if indices.dim() != 2 or indices.shape[1] != self.config.sentence_length:
            raise ValueError(
                f"Expected input of shape (batch_size, {self.config.sentence_length}), "
                f"got {tuple(indices.shape)}."
            )
        check_indices(indices, self.config.vocab_size)

    def forward_stages(self, indices: torch.Tensor) -> StageOutputs:
        """
        Run the network and keep every intermediate tensor.

        Args:
            indices: LongTensor of word indices shaped `(batch_size, sentence_length)`.

        Returns:
            Mapping from stage name (`input`, `embedding`, `reshape`, `conv[w]`,
            `relu[w]`, `pool[w]`, `flatten[w]`, `concat`, `logits`,
            `probabilities`) to its output tensor, in execution order.
        """
        self._check_input(indices)
        stages: StageOutputs = {"input": indices}

        embedded = self.embedding(indices)
        stages["embedding"] = embedded

        # Conv2d wants (batch, channels, height, width): add a single channel.
        image = embedded.unsqueeze(1)
        stages["reshape"] = image

        pooled_features = []
        for window in self.config.window_sizes:
            key = str(window)
            conved = self.convolutions[key](image)
            activated = self.activation(conved)
            pooled = self.poolings[key](activated)
            flat = self.flatten(pooled)
            stages[f"conv[{window}]"] = conved
            stages[f"relu[{window}]"] = activated
            stages[f"pool[{window}]"] = pooled
            stages[f"flatten[{window}]"] = flat
            pooled_features.append(flat)

        features = torch.cat(pooled_features, dim=1)
        stages["concat"] = features

        logits = self.classifier(self.dropout(features))
        stages["logits"] = logits
        stages["probabilities"] = torch.softmax(logits, dim=1)
        return stages

    def forward(self, indices: torch.Tensor) -> torch.Tensor:
        """
        Run a forward pass through the network.

        Returns:
            Raw, unnormalized class logits of shape `(batch_size, num_classes)`.
        """
        return self.forward_stages(indices)["logits"]

    def predict_proba(self, indices: torch.Tensor) -> torch.Tensor:
        """Softmax class probabilities, computed in eval mode without gradients."""
        self.eval()
        with torch.no_grad():
            return self.forward_stages(indices)["probabilities"]

    def expected_shapes(self, batch_size: int) -> Dict[str, Tuple[int, ...]]:
        """Shape each stage of `forward_stages` must have for `batch_size` sentences."""
        config = self.config
        length = config.sentence_length
        shapes: Dict[str, Tuple[int, ...]] = {
            "input": (batch_size, length),
            "embedding": (batch_size, length, config.embedding_size),
            "reshape": (batch_size, 1, length, config.embedding_size),
        }
        for window, positions in config.pooled_lengths.items():
            shapes[f"conv[{window}]"] = (batch_size, config.num_filters, positions, 1)
            shapes[f"relu[{window}]"] = (batch_size, config.num_filters, positions, 1)
            shapes[f"pool[{window}]"] = (batch_size, config.num_filters, 1, 1)
            shapes[f"flatten[{window}]"] = (batch_size, config.num_filters)
        shapes["concat"] = (batch_size, self.feature_size)
        shapes["logits"] = (batch_size, config.num_classes)
        shapes["probabilities"] = (batch_size, config.num_classes)
        return shapes
