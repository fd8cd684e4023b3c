"""
Layer-by-layer convolutional neural network for sentence classification.

The network is a straight chain of PyTorch layers (embedding, reshape,
convolution, max pooling over time, flatten, dense/softmax). The package adds
the glue around it: a vocabulary, an embedding matrix, a configuration object
and a harness that checks the shape and value of every intermediate tensor.
"""

from .config import ModelConfig
from .model import SentenceCNN
from .verification import VerificationError, VerificationReport, verify_model
from .vocab import Vocabulary, tokenize

__all__ = [
    "ModelConfig",
    "SentenceCNN",
    "VerificationError",
    "VerificationReport",
    "Vocabulary",
    "tokenize",
    "verify_model",
]

__version__ = "0.1.0"
