"""
Sentence input: JSONL/plain-text readers and a PyTorch dataset over them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import torch
from torch.utils.data import Dataset

from .vocab import Vocabulary

UNLABELLED = -1


@dataclass
class Record:
    text: str
    label: Optional[str] = None


def load_jsonl(path: Path) -> List[Record]:
    """Read `{"text": ..., "label": ...}` rows; the label is optional."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    records: List[Record] = []
    with path.open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(f"{path}:{line_number}: invalid JSON ({exc.msg}).") from exc
            if not isinstance(payload, dict) or not isinstance(payload.get("text"), str):
                raise ValueError(f"{path}:{line_number}: row has no 'text' field.")
            label = payload.get("label")
            records.append(Record(text=payload["text"], label=None if label is None else str(label)))
    return records


def load_lines(path: Path) -> List[Record]:
    """Read one unlabelled sentence per non-empty line."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        return [Record(text=line.strip()) for line in handle if line.strip()]


def load_records(path: Path) -> List[Record]:
    path = Path(path)
    if path.suffix == ".jsonl":
        return load_jsonl(path)
    return load_lines(path)


def build_label_mapping(records: Iterable[Record]) -> Dict[str, int]:
    labels = sorted({record.label for record in records if record.label is not None})
    return {label: idx for idx, label in enumerate(labels)}


class SentenceDataset(Dataset[Tuple[torch.Tensor, int]]):
    def __init__(
        self,
        records: List[Record],
        vocabulary: Vocabulary,
        sentence_length: int,
        label_map: Optional[Dict[str, int]] = None,
    ) -> None:
        if label_map is not None:
            missing = {record.label for record in records if record.label is not None and record.label not in label_map}
            if missing:
                raise ValueError(f"Labels {sorted(missing)} are not in the label mapping.")
        self.records = records
        self.vocabulary = vocabulary
        self.sentence_length = sentence_length
        self.label_map = label_map

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, idx: int) -> Tuple[torch.Tensor, int]:
        record = self.records[idx]
        indices = torch.tensor(self.vocabulary.encode(record.text, self.sentence_length), dtype=torch.long)
        if self.label_map is None or record.label is None:
            return indices, UNLABELLED
        return indices, self.label_map[record.label]
