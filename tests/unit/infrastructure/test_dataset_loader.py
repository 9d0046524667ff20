"""
Unit Tests for the Dataset Loader
"""

import json

import pytest

from synesoul.domain.errors import DatasetError
from synesoul.infrastructure.datasets import load_dataset, save_dataset
from synesoul.services.baseline import generate_reference_dataset

HEADER = "energy,tempo,spectral_centroid,harmonicity,rhythm_complexity,bass_level,mid_level,treble_level,label,genre"


class TestJson:
    """Tests for JSON datasets."""

    def test_list_of_records(self, tmp_path) -> None:
        """Test a plain list of records."""
        path = tmp_path / "data.json"
        path.write_text(json.dumps([
            {"features": [0.1] * 8, "label": "joy", "genre": "pop"},
            {"features": [0.2] * 8, "label": "awe"},
        ]))

        records = load_dataset(path)

        assert len(records) == 2
        assert records[0].genre == "pop"
        assert records[1].genre is None

    def test_records_wrapper(self, tmp_path) -> None:
        """Test the {"records": [...]} wrapper."""
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"records": [{"features": [0.1] * 8, "label": "joy"}]}))
        assert load_dataset(path)[0].label == "joy"

    def test_missing_label_names_record(self, tmp_path) -> None:
        """Test malformed records are reported by index."""
        path = tmp_path / "data.json"
        path.write_text(json.dumps([
            {"features": [0.1] * 8, "label": "joy"},
            {"features": [0.1] * 8},
        ]))

        with pytest.raises(DatasetError) as exc_info:
            load_dataset(path)
        assert exc_info.value.record_index == 1

    def test_invalid_json(self, tmp_path) -> None:
        """Test unparsable files."""
        path = tmp_path / "data.json"
        path.write_text("{not json")
        with pytest.raises(DatasetError):
            load_dataset(path)

    def test_save_then_load(self, tmp_path) -> None:
        """Test saved datasets load back."""
        records = generate_reference_dataset(size=5, seed=1)
        loaded = load_dataset(save_dataset(records, tmp_path / "reference.json"))
        assert [r.label for r in loaded] == [r.label for r in records]


class TestCsv:
    """Tests for CSV datasets."""

    def test_named_columns(self, tmp_path) -> None:
        """Test header-named feature columns."""
        path = tmp_path / "data.csv"
        path.write_text(HEADER + "\n" + "0.9,0.8,0.7,0.6,0.5,0.4,0.3,0.2,passion,rock\n")

        record = load_dataset(path)[0]

        assert record.features[0] == 0.9
        assert record.label == "passion"
        assert record.genre == "rock"

    def test_positional_columns(self, tmp_path) -> None:
        """Test unnamed feature columns are taken in order."""
        path = tmp_path / "data.csv"
        path.write_text("a,b,c,d,e,f,g,h,label\n" + "0,1,0,1,0,1,0,1,joy\n\n")

        records = load_dataset(path)

        assert len(records) == 1
        assert records[0].features == (0.0, 1.0, 0.0, 1.0, 0.0, 1.0, 0.0, 1.0)
        assert records[0].genre is None

    def test_non_numeric_row(self, tmp_path) -> None:
        """Test non-numeric features name the row."""
        path = tmp_path / "data.csv"
        path.write_text(
            HEADER + "\n"
            + "0.9,0.8,0.7,0.6,0.5,0.4,0.3,0.2,passion,rock\n"
            + "loud,0.8,0.7,0.6,0.5,0.4,0.3,0.2,passion,rock\n"
        )
        with pytest.raises(DatasetError) as exc_info:
            load_dataset(path)
        assert exc_info.value.record_index == 1

    def test_missing_label_column(self, tmp_path) -> None:
        """Test a header without a label column."""
        path = tmp_path / "data.csv"
        path.write_text("a,b\n1,2\n")
        with pytest.raises(DatasetError):
            load_dataset(path)


class TestFiles:
    """Tests for file-level errors."""

    def test_missing_file(self, tmp_path) -> None:
        """Test a missing path."""
        with pytest.raises(DatasetError):
            load_dataset(tmp_path / "absent.json")

    def test_unsupported_format(self, tmp_path) -> None:
        """Test unknown extensions."""
        path = tmp_path / "data.parquet"
        path.write_bytes(b"")
        with pytest.raises(DatasetError):
            load_dataset(path)
