import pytest
import torch
from torch import nn
from torch.nn import functional as F

from sentcnn.verification import (
    ShapeMismatchError,
    ValueMismatchError,
    VerificationError,
    manual_convolution,
    manual_max_pool,
    verify_model,
)


def test_manual_convolution_small_example():
    embedded = torch.tensor([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])
    weight = torch.ones(1, 1, 2, 2)
    bias = torch.tensor([0.5])

    result = manual_convolution(embedded, weight, bias)

    assert torch.equal(result, torch.tensor([[10.5, 18.5]]))


def test_manual_convolution_matches_conv2d():
    torch.manual_seed(3)
    embedded = torch.randn(6, 4)
    weight = torch.randn(3, 1, 2, 4)
    bias = torch.randn(3)

    expected = F.conv2d(embedded.view(1, 1, 6, 4), weight, bias)[0, :, :, 0]

    assert torch.allclose(manual_convolution(embedded, weight, bias), expected, atol=1e-5)


def test_manual_convolution_rejects_mismatched_width():
    with pytest.raises(ValueError, match="columns"):
        manual_convolution(torch.zeros(4, 3), torch.zeros(1, 1, 2, 5))


def test_manual_max_pool_over_time():
    feature_map = torch.tensor([[1.0, 3.0, 2.0], [0.0, -1.0, -5.0]])
    assert torch.equal(manual_max_pool(feature_map), torch.tensor([3.0, 0.0]))


def test_verify_model_passes(model, batch):
    report = verify_model(model, batch)

    assert report.passed
    assert report.failures() == []
    shape_checks = [check for check in report.checks if check.kind == "shape"]
    value_checks = [check for check in report.checks if check.kind == "value"]
    assert len(shape_checks) == len(model.expected_shapes(3))
    # padding rows, conv and pool for both windows, plus the probability sums.
    assert [check.stage for check in value_checks] == [
        "padding",
        "conv[2]",
        "pool[2]",
        "conv[3]",
        "pool[3]",
        "probabilities",
    ]


def test_summary_lists_every_check(model, batch):
    report = verify_model(model, batch)
    lines = report.summary()
    assert len(lines) == len(report.checks) + 2
    assert lines[0].startswith("stage")
    assert any(line.startswith("conv[2]") and line.endswith("ok") for line in lines)


def test_wrong_pooling_raises_value_mismatch(model, batch):
    model.poolings["2"] = nn.AvgPool2d(kernel_size=(6, 1))
    with pytest.raises(ValueMismatchError) as excinfo:
        verify_model(model, batch)
    assert excinfo.value.stage == "pool[2]"
    assert isinstance(excinfo.value, AssertionError)


def test_non_strict_collects_failures(model, batch):
    model.poolings["2"] = nn.AvgPool2d(kernel_size=(6, 1))

    report = verify_model(model, batch, strict=False)

    assert not report.passed
    assert [check.stage for check in report.failures()] == ["pool[2]"]
    with pytest.raises(ValueMismatchError):
        report.raise_for_failures()


def test_shape_mismatch(model, batch, monkeypatch):
    original = model.expected_shapes

    def wrong_shapes(batch_size):
        shapes = original(batch_size)
        shapes["concat"] = (batch_size, 99)
        return shapes

    monkeypatch.setattr(model, "expected_shapes", wrong_shapes)
    with pytest.raises(ShapeMismatchError) as excinfo:
        verify_model(model, batch)
    assert excinfo.value.expected == (3, 99)
    assert excinfo.value.actual == (3, 8)
    assert isinstance(excinfo.value, VerificationError)


def test_verify_model_needs_a_batch(model, config):
    with pytest.raises(ValueError):
        verify_model(model, torch.empty((0, config.sentence_length), dtype=torch.long))


def test_non_zero_padding_row_is_reported(model, batch):
    with torch.no_grad():
        model.embedding.weight[0].fill_(0.5)

    with pytest.raises(ValueMismatchError) as excinfo:
        verify_model(model, batch)

    assert excinfo.value.stage == "padding"
    assert excinfo.value.actual == pytest.approx(0.5)
