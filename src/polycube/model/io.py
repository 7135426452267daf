"""
Input/Output Manager (CSV / JSON)
Loads datasets and network layout positions, coercing raw strings into typed
records before they reach the DataStore.
"""
from __future__ import annotations

import csv
import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from polycube.model.records import NO_CATEGORY, Record

logger = logging.getLogger(__name__)

LIST_DELIMITER = ";"
_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m-%d %H:%M:%S", "%d/%m/%Y", "%d.%m.%Y", "%m/%d/%Y", "%Y")
_KNOWN_COLUMNS = {
    "id", "date_time", "category_1", "category_2", "category_3", "category_4", "category_5",
    "longitude", "latitude", "target_nodes", "label",
}


class DatasetError(ValueError):
    """Raised when a dataset or positions file cannot be read."""


def parse_date(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if not text:
        raise DatasetError("Empty date value.")
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise DatasetError(f"Unrecognized date '{text}'.")


def split_list(value: Any) -> List[str]:
    """Split a ';'-delimited cell into non-empty, stripped items."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(LIST_DELIMITER)
    result = []
    for item in items:
        text = str(item).strip()
        if not text:
            continue
        # Spreadsheet exports turn integer ids into floats ("12.0")
        if text.endswith(".0") and text[:-2].lstrip("-").isdigit():
            text = text[:-2]
        result.append(text)
    return result


def _to_float(value: Any, default: float = 0.0) -> float:
    if value is None or str(value).strip() == "":
        return default
    return float(value)


class IOManager:
    @staticmethod
    def parse_row(row: Mapping[str, Any]) -> Record:
        """
        Coerce one raw row (strings) into a Record.

        Raises:
            DatasetError: Missing id or unparsable date/coordinates.
        """
        raw_id = str(row.get("id", "") or "").strip()
        if not raw_id:
            raise DatasetError("Row without id.")
        try:
            return Record(
                id=split_list(raw_id)[0],
                date_time=parse_date(row.get("date_time", "")),
                category_1=str(row.get("category_1") or "").strip() or NO_CATEGORY,
                category_2=str(row.get("category_2") or "").strip(),
                category_3=str(row.get("category_3") or "").strip(),
                category_4=str(row.get("category_4") or "").strip(),
                category_5=str(row.get("category_5") or "").strip(),
                longitude=_to_float(row.get("longitude")),
                latitude=_to_float(row.get("latitude")),
                target_nodes=split_list(row.get("target_nodes")),
                label=split_list(row.get("label")),
                extra={k: v for k, v in row.items() if k not in _KNOWN_COLUMNS and k},
            )
        except (TypeError, ValueError) as e:
            raise DatasetError(f"Row '{raw_id}': {e}") from e

    @staticmethod
    def parse_rows(rows: Iterable[Mapping[str, Any]], skip_invalid: bool = True) -> List[Record]:
        records: List[Record] = []
        for n, row in enumerate(rows, start=1):
            if not any(str(v).strip() for v in row.values() if v is not None):
                continue
            try:
                records.append(IOManager.parse_row(row))
            except DatasetError as e:
                if not skip_invalid:
                    raise
                logger.warning(f"Skipping row {n}: {e}")
        return records

    @staticmethod
    def load_records(filepath: str, skip_invalid: bool = True) -> List[Record]:
        """Load a .csv or .json dataset."""
        logger.info(f"Loading dataset from: {filepath}")
        if not os.path.exists(filepath):
            raise DatasetError(f"File not found: {filepath}")

        ext = os.path.splitext(filepath)[1].lower()
        try:
            if ext == ".json":
                with open(filepath, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    data = data.get("records", [])
                rows: Iterable[Mapping[str, Any]] = data
            elif ext in (".csv", ".tsv"):
                with open(filepath, "r", encoding="utf-8-sig", newline="") as f:
                    delimiter = "\t" if ext == ".tsv" else ","
                    rows = list(csv.DictReader(f, delimiter=delimiter))
            else:
                raise DatasetError(f"Unsupported dataset format '{ext}'.")
        except (OSError, json.JSONDecodeError, csv.Error) as e:
            raise DatasetError(f"Failed to read {filepath}: {e}") from e

        records = IOManager.parse_rows(rows, skip_invalid=skip_invalid)
        logger.info(f"Loaded {len(records)} records.")
        return records

    @staticmethod
    def load_positions(filepath: str) -> Dict[str, Tuple[float, float]]:
        """
        Load layout positions: a JSON list of ``{"id", "x", "y"}`` objects or
        a mapping ``id -> [x, y]``.
        """
        logger.info(f"Loading layout positions from: {filepath}")
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DatasetError(f"Failed to read {filepath}: {e}") from e

        positions: Dict[str, Tuple[float, float]] = {}
        try:
            if isinstance(data, dict):
                for key, value in data.items():
                    positions[str(key)] = (float(value[0]), float(value[1]))
            else:
                for item in data:
                    positions[str(item["id"])] = (float(item["x"]), float(item["y"]))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise DatasetError(f"Malformed positions file {filepath}: {e}") from e
        return positions

    @staticmethod
    def save_positions(filepath: str, positions: Mapping[str, Tuple[float, float]]) -> None:
        logger.info(f"Saving {len(positions)} layout positions to: {filepath}")
        data = [{"id": k, "x": v[0], "y": v[1]} for k, v in positions.items()]
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
