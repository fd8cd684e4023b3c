import pytest
import torch

from sentcnn.embeddings import load_word_vectors, random_embedding_matrix


def test_random_matrix_is_seeded_with_zero_padding():
    first = random_embedding_matrix(6, 3, padding_index=0, seed=7)
    second = random_embedding_matrix(6, 3, padding_index=0, seed=7)

    assert first.shape == (6, 3)
    assert torch.equal(first, second)
    assert torch.count_nonzero(first[0]) == 0


def test_random_matrix_rejects_empty_sizes():
    with pytest.raises(ValueError):
        random_embedding_matrix(0, 3)


def test_load_word_vectors_fills_known_words(tmp_path, vocabulary):
    path = tmp_path / "vectors.txt"
    path.write_text(
        "3 2\n"
        "great 1.0 2.0\n"
        "Movie 0.5 -0.5\n"
        "unseen 9.0 9.0\n",
        encoding="utf-8",
    )

    matrix, found = load_word_vectors(path, vocabulary, embedding_size=2)

    assert found == 2
    assert torch.equal(matrix[vocabulary.index("great")], torch.tensor([1.0, 2.0]))
    assert torch.equal(matrix[vocabulary.index("movie")], torch.tensor([0.5, -0.5]))
    assert torch.count_nonzero(matrix[0]) == 0


def test_load_word_vectors_checks_dimension(tmp_path, vocabulary):
    path = tmp_path / "vectors.txt"
    path.write_text("great 1.0 2.0 3.0\n", encoding="utf-8")
    with pytest.raises(ValueError, match="expected 2 values"):
        load_word_vectors(path, vocabulary, embedding_size=2)


def test_load_word_vectors_missing_file(tmp_path, vocabulary):
    with pytest.raises(FileNotFoundError):
        load_word_vectors(tmp_path / "nope.txt", vocabulary, embedding_size=2)
