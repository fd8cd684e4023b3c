"""
Walk a few sentences through the sentence CNN, layer by layer.

The command builds a vocabulary from the given sentences, an embedding matrix
(random or from a word-vector file) and the network, then prints the shape of
every intermediate tensor, the outcome of each check and the class
probabilities for each sentence.

Example:
    python -m sentcnn "the movie was great" "a dull and tiresome film" --window-sizes 2 3
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional, Sequence

import torch
from torch.utils.data import DataLoader

from .config import ModelConfig
from .data import Record, SentenceDataset, build_label_mapping, load_records
from .embeddings import load_word_vectors, random_embedding_matrix
from .inference import accuracy, classify
from .logging_config import setup_logging
from .model import SentenceCNN
from .verification import VerificationError, verify_model
from .vocab import Vocabulary

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sentcnn",
        description="Build a sentence-classification CNN and verify every layer's output.",
    )
    parser.add_argument("sentences", nargs="*", help="Sentences to push through the network.")
    parser.add_argument(
        "--input",
        type=Path,
        help="File of sentences: .jsonl rows with 'text' (and optional 'label'), or one sentence per line.",
    )
    parser.add_argument("--config", type=Path, help="JSON file with ModelConfig fields.")
    parser.add_argument("--sentence-length", type=int, help=f"Words per sentence (default: {ModelConfig.sentence_length})")
    parser.add_argument("--embedding-size", type=int, help=f"Embedding width (default: {ModelConfig.embedding_size})")
    parser.add_argument(
        "--window-sizes",
        type=int,
        nargs="+",
        help=f"Word-window widths (default: {' '.join(map(str, ModelConfig.window_sizes))})",
    )
    parser.add_argument("--num-filters", type=int, help=f"Filters per word window (default: {ModelConfig.num_filters})")
    parser.add_argument("--num-classes", type=int, help=f"Output classes (default: {ModelConfig.num_classes})")
    parser.add_argument("--dropout", type=float, help=f"Dropout before the dense layer (default: {ModelConfig.dropout})")
    parser.add_argument("--seed", type=int, help=f"Random seed (default: {ModelConfig.seed})")
    parser.add_argument("--word-vectors", type=Path, help="Pretrained word-vector text file.")
    parser.add_argument("--labels", nargs="+", help="Class names, one per output class.")
    parser.add_argument("--atol", type=float, default=1e-4, help="Tolerance for value checks (default: %(default)s)")
    parser.add_argument("--no-strict", action="store_true", help="Report every failing check instead of stopping.")
    parser.add_argument("--json", action="store_true", help="Print the results as JSON.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: %(default)s)")
    parser.add_argument("--log-file", help="Also write log records to this file.")
    return parser


def resolve_config(args: argparse.Namespace, label_names: Optional[List[str]]) -> ModelConfig:
    config = ModelConfig.from_json(args.config) if args.config else ModelConfig()
    num_classes = len(label_names) if label_names else args.num_classes
    return config.with_overrides(
        sentence_length=args.sentence_length,
        embedding_size=args.embedding_size,
        window_sizes=tuple(args.window_sizes) if args.window_sizes else None,
        num_filters=args.num_filters,
        num_classes=num_classes,
        dropout=args.dropout,
        seed=args.seed,
    )


def collect_records(args: argparse.Namespace) -> List[Record]:
    records = [Record(text=sentence) for sentence in args.sentences]
    if args.input:
        records.extend(load_records(args.input))
    if not records:
        raise ValueError("No sentences given; pass them as arguments or via --input.")
    return records


def run(args: argparse.Namespace) -> int:
    records = collect_records(args)
    label_map = build_label_mapping(records)
    label_names = list(args.labels) if args.labels else (list(label_map) or None)

    config = resolve_config(args, label_names)
    texts = [record.text for record in records]
    vocabulary = Vocabulary.build(texts)
    config = config.with_overrides(vocab_size=len(vocabulary)).validate()

    if args.word_vectors:
        matrix, _ = load_word_vectors(
            args.word_vectors, vocabulary, config.embedding_size, config.padding_index, config.seed
        )
    else:
        matrix = random_embedding_matrix(len(vocabulary), config.embedding_size, config.padding_index, config.seed)

    torch.manual_seed(config.seed)
    model = SentenceCNN(config, embedding_matrix=matrix)

    indices = vocabulary.encode_batch(texts, config.sentence_length)
    report = verify_model(model, indices, atol=args.atol, strict=not args.no_strict)
    predictions = classify(model, vocabulary, texts, label_names)

    score = None
    if label_map and not args.labels:
        labelled = [record for record in records if record.label is not None]
        dataset = SentenceDataset(labelled, vocabulary, config.sentence_length, label_map)
        score = accuracy(model, DataLoader(dataset, batch_size=32), torch.device("cpu"))

    if args.json:
        payload = {
            "config": config.to_dict(),
            "passed": report.passed,
            "checks": [
                {
                    "stage": check.stage,
                    "kind": check.kind,
                    "expected": list(check.expected) if check.kind == "shape" else check.expected,
                    "actual": list(check.actual) if check.kind == "shape" else check.actual,
                    "passed": check.passed,
                }
                for check in report.checks
            ],
            "predictions": [asdict(prediction) for prediction in predictions],
        }
        if score is not None:
            payload["accuracy"] = score
        print(json.dumps(payload, indent=2))
    else:
        print(f"Vocabulary: {len(vocabulary)} entries; sentence representation: {model.feature_size} features")
        print()
        print("\n".join(report.summary()))
        print()
        for prediction in predictions:
            print(f"- {prediction.label} ({prediction.confidence:.2f}): {prediction.text}")
        if score is not None:
            print(f"\nAccuracy against given labels (untrained weights): {score:.2f}%")

    return 0 if report.passed else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    level = logging.getLevelName(str(args.log_level).upper())
    setup_logging(level if isinstance(level, int) else logging.WARNING, args.log_file)

    try:
        return run(args)
    except (ValueError, FileNotFoundError, VerificationError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
