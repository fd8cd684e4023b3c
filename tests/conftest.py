import pytest
import torch

from sentcnn.config import ModelConfig
from sentcnn.embeddings import random_embedding_matrix
from sentcnn.model import SentenceCNN
from sentcnn.vocab import Vocabulary

SENTENCES = [
    "the movie was great",
    "a dull and tiresome film",
    "great acting and a great story",
]


@pytest.fixture
def sentences():
    return list(SENTENCES)


@pytest.fixture
def vocabulary(sentences):
    return Vocabulary.build(sentences)


@pytest.fixture
def config(vocabulary):
    return ModelConfig(
        sentence_length=7,
        embedding_size=5,
        window_sizes=(2, 3),
        num_filters=4,
        num_classes=2,
        dropout=0.5,
        vocab_size=len(vocabulary),
    )


@pytest.fixture
def model(config):
    torch.manual_seed(0)
    matrix = random_embedding_matrix(config.vocab_size, config.embedding_size, seed=0)
    return SentenceCNN(config, embedding_matrix=matrix)


@pytest.fixture
def batch(vocabulary, config, sentences):
    return vocabulary.encode_batch(sentences, config.sentence_length)
