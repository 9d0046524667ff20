"""
Dataset Loader

Reads labeled training datasets from disk into TrainingRecords.

Supported formats:
- .json: list of {"features": [...], "label": "...", "genre": "..."?}
  (a {"records": [...]} wrapper is accepted too)
- .csv: one row per record with the feature columns, a "label" column
  and an optional "genre" column. Feature columns are taken from the
  header in schema order when present, otherwise positionally.

ARCHITECTURE: The loader only parses. Arity and label-set membership
are validated by the trainer, which names the offending record.
"""

import csv
import json
from pathlib import Path
from typing import Any, Optional, Union

from synesoul.config.logging_config import get_logger
from synesoul.domain.errors import DatasetError
from synesoul.domain.models import FEATURE_NAMES, TrainingRecord

logger = get_logger(__name__)


def load_dataset(
    path: Union[str, Path],
    feature_names: tuple[str, ...] = FEATURE_NAMES,
) -> list[TrainingRecord]:
    """
    Load a labeled dataset.

    Args:
        path: Dataset file (.json or .csv)
        feature_names: Feature columns expected in CSV headers

    Returns:
        Parsed records in file order

    Raises:
        DatasetError: If the file is missing, unreadable or malformed
    """
    path = Path(path)
    if not path.is_file():
        raise DatasetError(None, f"dataset file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".json":
        records = _load_json(path)
    elif suffix == ".csv":
        records = _load_csv(path, feature_names)
    else:
        raise DatasetError(None, f"unsupported dataset format: {suffix or path.name}")

    logger.info("Dataset loaded", path=str(path), records=len(records))
    return records


def _load_json(path: Path) -> list[TrainingRecord]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DatasetError(None, f"cannot parse JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get("records")
    if not isinstance(data, list):
        raise DatasetError(None, "expected a list of records")

    return [_parse_mapping(index, raw) for index, raw in enumerate(data)]


def _parse_mapping(index: int, raw: Any) -> TrainingRecord:
    if not isinstance(raw, dict):
        raise DatasetError(index, "record is not an object")
    if "features" not in raw:
        raise DatasetError(index, "missing 'features'")
    if "label" not in raw:
        raise DatasetError(index, "missing 'label'")

    features = raw["features"]
    if isinstance(features, dict):
        # Named features keep their insertion order
        features = list(features.values())
    if not isinstance(features, list):
        raise DatasetError(index, "'features' must be a list")

    label = raw["label"]
    if not isinstance(label, str):
        raise DatasetError(index, "'label' must be a string")

    genre = raw.get("genre")
    if genre is not None and not isinstance(genre, str):
        raise DatasetError(index, "'genre' must be a string")

    return TrainingRecord(features=tuple(features), label=label, genre=genre or None)


def _load_csv(path: Path, feature_names: tuple[str, ...]) -> list[TrainingRecord]:
    try:
        with path.open(newline="", encoding="utf-8") as handle:
            rows = list(csv.reader(handle))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise DatasetError(None, f"cannot parse CSV: {e}") from e

    rows = [row for row in rows if any(cell.strip() for cell in row)]
    if not rows:
        return []

    header = [cell.strip().lower() for cell in rows[0]]
    if "label" not in header:
        raise DatasetError(None, "CSV header must contain a 'label' column")

    label_col = header.index("label")
    genre_col: Optional[int] = header.index("genre") if "genre" in header else None

    if all(name in header for name in feature_names):
        feature_cols = [header.index(name) for name in feature_names]
    else:
        feature_cols = [
            i for i in range(len(header)) if i not in (label_col, genre_col)
        ]

    records = []
    for index, row in enumerate(rows[1:]):
        if len(row) != len(header):
            raise DatasetError(
                index, f"expected {len(header)} columns, got {len(row)}"
            )
        try:
            features = tuple(float(row[col]) for col in feature_cols)
        except ValueError as e:
            raise DatasetError(index, f"non-numeric feature: {e}") from e

        genre = row[genre_col].strip() if genre_col is not None else ""
        records.append(
            TrainingRecord(
                features=features,
                label=row[label_col].strip(),
                genre=genre or None,
            )
        )

    return records


def save_dataset(records: list[TrainingRecord], path: Union[str, Path]) -> Path:
    """Write records as a JSON dataset readable by load_dataset()."""
    path = Path(path)
    path.write_text(
        json.dumps([record.to_dict() for record in records], indent=2),
        encoding="utf-8",
    )
    return path
