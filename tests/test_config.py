import json

import pytest

from sentcnn.config import ModelConfig


def test_defaults_need_vocab_size():
    with pytest.raises(ValueError, match="vocab_size"):
        ModelConfig().validate()


def test_validate_accepts_defaults_with_vocab():
    config = ModelConfig(vocab_size=10).validate()
    assert config.pooled_lengths == {3: 18, 4: 17, 5: 16}


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"sentence_length": 0}, "sentence_length"),
        ({"num_filters": -1}, "num_filters"),
        ({"window_sizes": ()}, "window_sizes"),
        ({"window_sizes": (3, 30)}, "wider than the sentence length"),
        ({"dropout": 1.0}, "dropout"),
        ({"padding_index": 10}, "padding_index"),
        ({"padding_index": 2}, "the vocabulary pads with"),
    ],
)
def test_validate_rejects_bad_sizes(overrides, message):
    config = ModelConfig(vocab_size=10).with_overrides(**overrides)
    with pytest.raises(ValueError, match=message):
        config.validate()


def test_with_overrides_ignores_none():
    config = ModelConfig().with_overrides(num_filters=None, num_classes=3)
    assert config.num_filters == ModelConfig.num_filters
    assert config.num_classes == 3


def test_from_json_converts_window_list(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"window_sizes": [2, 4], "num_filters": 16}), encoding="utf-8")

    config = ModelConfig.from_json(path)

    assert config.window_sizes == (2, 4)
    assert config.num_filters == 16
    assert config.to_dict()["window_sizes"] == [2, 4]


def test_from_json_rejects_unknown_keys(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"learning_rate": 0.1}), encoding="utf-8")
    with pytest.raises(ValueError, match="learning_rate"):
        ModelConfig.from_json(path)


def test_from_json_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ModelConfig.from_json(tmp_path / "absent.json")


@pytest.mark.parametrize(
    "data, key",
    [
        ({"window_sizes": 3}, "window_sizes"),
        ({"window_sizes": [2, "3"]}, "window_sizes"),
        ({"num_filters": "8"}, "num_filters"),
        ({"sentence_length": 7.5}, "sentence_length"),
        ({"num_classes": True}, "num_classes"),
        ({"dropout": "0.5"}, "dropout"),
        ({"vocab_size": "10"}, "vocab_size"),
    ],
)
def test_wrong_types_raise_value_error(data, key):
    with pytest.raises(ValueError, match=key):
        ModelConfig.from_dict(data)


def test_integer_dropout_becomes_float():
    assert ModelConfig(dropout=0).dropout == 0.0
