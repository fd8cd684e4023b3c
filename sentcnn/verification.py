"""
Shape and value checks for every layer of `SentenceCNN`.

Each stage's tensor shape is compared with the shape derived from the
configuration. The convolution and pooling results for the first sentence are
recomputed by hand (slide the word window, multiply, sum, take the maximum
over time) and compared with what the library produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

import torch

from .model import SentenceCNN

logger = logging.getLogger(__name__)


class VerificationError(AssertionError):
    """A stage of the network did not match its expectation."""

    def __init__(self, stage: str, expected: Any, actual: Any, message: Optional[str] = None) -> None:
        self.stage = stage
        self.expected = expected
        self.actual = actual
        super().__init__(message or f"{stage}: expected {expected}, got {actual}")


class ShapeMismatchError(VerificationError):
    pass


class ValueMismatchError(VerificationError):
    pass


@dataclass
class Check:
    stage: str
    kind: str  # "shape" or "value"
    expected: Any
    actual: Any
    passed: bool

    def describe(self) -> str:
        status = "ok" if self.passed else "FAIL"
        if self.kind == "shape":
            return f"{self.stage:<16} shape  {str(self.expected):<22} {str(self.actual):<22} {status}"
        return f"{self.stage:<16} value  |diff|<={self.expected:<16g} {self.actual:<22.3g} {status}"

    def to_error(self) -> VerificationError:
        if self.kind == "shape":
            return ShapeMismatchError(self.stage, self.expected, self.actual)
        return ValueMismatchError(
            self.stage,
            self.expected,
            self.actual,
            f"{self.stage}: max absolute difference {self.actual:g} exceeds tolerance {self.expected:g}",
        )


@dataclass
class VerificationReport:
    checks: List[Check] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(check.passed for check in self.checks)

    def failures(self) -> List[Check]:
        return [check for check in self.checks if not check.passed]

    def summary(self) -> List[str]:
        header = f"{'stage':<16} {'check':<6} {'expected':<22} {'actual':<22} status"
        lines = [header, "-" * len(header)]
        lines.extend(check.describe() for check in self.checks)
        return lines

    def raise_for_failures(self) -> None:
        failures = self.failures()
        if failures:
            raise failures[0].to_error()


def manual_convolution(
    embedded: torch.Tensor,
    weight: torch.Tensor,
    bias: Optional[torch.Tensor] = None,
) -> torch.Tensor:
    """
    Convolve one embedded sentence with full-width filters, one window at a time.

    Args:
        embedded: `(sentence_length, embedding_size)` matrix of one sentence.
        weight: `(num_filters, 1, window, embedding_size)` filter bank.
        bias: Optional `(num_filters,)` bias.

    Returns:
        `(num_filters, sentence_length - window + 1)` feature map.
    """
    num_filters, _, window, width = weight.shape
    length, embedding_size = embedded.shape
    if embedding_size != width:
        raise ValueError(f"Filters span {width} columns but embeddings have {embedding_size}.")
    if window > length:
        raise ValueError(f"Word window {window} is wider than the sentence length {length}.")

    positions = length - window + 1
    feature_map = torch.empty(num_filters, positions, dtype=embedded.dtype)
    for filter_index in range(num_filters):
        kernel = weight[filter_index, 0]
        offset = bias[filter_index] if bias is not None else 0.0
        for start in range(positions):
            region = embedded[start : start + window]
            feature_map[filter_index, start] = (region * kernel).sum() + offset
    return feature_map


def manual_max_pool(feature_map: torch.Tensor) -> torch.Tensor:
    """Max pooling over time: keep each filter's strongest response."""
    return feature_map.max(dim=1).values


def _record(report: VerificationReport, check: Check, strict: bool) -> None:
    report.checks.append(check)
    if check.passed:
        logger.debug("Check passed: %s", check.describe())
        return
    logger.warning("Check failed: %s", check.describe())
    if strict:
        raise check.to_error()


def _value_check(stage: str, expected: torch.Tensor, actual: torch.Tensor, atol: float) -> Check:
    difference = float((expected - actual).abs().max()) if expected.numel() else 0.0
    return Check(stage=stage, kind="value", expected=atol, actual=difference, passed=difference <= atol)


def verify_model(
    model: SentenceCNN,
    indices: torch.Tensor,
    atol: float = 1e-4,
    strict: bool = True,
) -> VerificationReport:
    """
    Run the network on `indices` and check every stage.

    Args:
        model: Network under inspection (switched to eval mode).
        indices: `(batch_size, sentence_length)` LongTensor, at least one row.
        atol: Absolute tolerance for the numeric comparisons.
        strict: Raise on the first failing check instead of collecting them.

    Returns:
        The report with one entry per check.

    Raises:
        ShapeMismatchError: A stage tensor has an unexpected shape (strict only).
        ValueMismatchError: A recomputed value disagrees with the library (strict only).
    """
    if indices.dim() != 2 or indices.shape[0] == 0:
        raise ValueError(f"Need a non-empty (batch_size, sentence_length) batch, got {tuple(indices.shape)}.")

    report = VerificationReport()
    model.eval()
    with torch.no_grad():
        stages = model.forward_stages(indices)

        for stage, expected_shape in model.expected_shapes(indices.shape[0]).items():
            actual_shape = tuple(stages[stage].shape)
            _record(
                report,
                Check(stage, "shape", expected_shape, actual_shape, actual_shape == expected_shape),
                strict,
            )

        # Padded positions must look up the all-zero padding row.
        padded = stages["embedding"][indices == model.config.padding_index]
        _record(report, _value_check("padding", torch.zeros_like(padded), padded, atol), strict)

        # Values are recomputed for the first sentence only.
        embedded = stages["embedding"][0]
        for window in model.config.window_sizes:
            convolution = model.convolutions[str(window)]
            expected_map = manual_convolution(embedded, convolution.weight, convolution.bias)
            library_map = stages[f"conv[{window}]"][0, :, :, 0]
            _record(report, _value_check(f"conv[{window}]", expected_map, library_map, atol), strict)

            expected_pool = manual_max_pool(stages[f"relu[{window}]"][0, :, :, 0])
            library_pool = stages[f"flatten[{window}]"][0]
            _record(report, _value_check(f"pool[{window}]", expected_pool, library_pool, atol), strict)

        totals = stages["probabilities"].sum(dim=1)
        _record(report, _value_check("probabilities", torch.ones_like(totals), totals, atol), strict)

    logger.info(
        "Verified %d checks over %d sentence(s): %s",
        len(report.checks),
        indices.shape[0],
        "all passed" if report.passed else f"{len(report.failures())} failed",
    )
    return report
