import json
from datetime import datetime

import pytest

from polycube.model.io import DatasetError, IOManager, parse_date, split_list
from polycube.model.records import NO_CATEGORY

CSV_TEXT = """id,date_time,category_1,longitude,latitude,target_nodes,label,title
1,1936-03-01,Letter,2.35,48.85,2;3,a;b,First
2,1937-01-01,,13.4,52.5,3.0,,Second
3,01/02/1938,Travel,,,,,Third
,1938-01-01,Letter,0,0,,,No id
4,not a date,Letter,0,0,,,Broken
"""


def test_parse_date_formats():
    assert parse_date("1936-03-01") == datetime(1936, 3, 1)
    assert parse_date("1936-03-01T10:30:00Z") == datetime(1936, 3, 1, 10, 30)
    assert parse_date("01.02.1938") == datetime(1938, 2, 1)
    assert parse_date("1940") == datetime(1940, 1, 1)
    with pytest.raises(DatasetError):
        parse_date("")
    with pytest.raises(DatasetError):
        parse_date("yesterday")


def test_split_list_strips_and_normalizes_float_ids():
    assert split_list(" 1; 2.0 ;;x ") == ["1", "2", "x"]
    assert split_list(None) == []
    assert split_list(["a", " ", 3]) == ["a", "3"]


def test_load_csv_skips_invalid_rows(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")

    records = IOManager.load_records(str(path))

    assert [r.id for r in records] == ["1", "2", "3"]
    first, second, third = records
    assert first.target_nodes == ["2", "3"]
    assert first.label == ["a", "b"]
    assert first.longitude == pytest.approx(2.35)
    assert first.title == "First"
    assert second.category_1 == NO_CATEGORY
    assert second.target_nodes == ["3"]
    assert third.date_time == datetime(1938, 2, 1)
    assert third.longitude == 0.0


def test_load_csv_strict_raises(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")
    with pytest.raises(DatasetError):
        IOManager.load_records(str(path), skip_invalid=False)


def test_load_json_records_object(tmp_path):
    path = tmp_path / "data.json"
    path.write_text(json.dumps({"records": [
        {"id": 7, "date_time": "1939-09-01", "category_1": "Meeting", "target_nodes": [8, 9]},
    ]}), encoding="utf-8")

    (record,) = IOManager.load_records(str(path))
    assert record.id == "7"
    assert record.target_nodes == ["8", "9"]


def test_load_errors(tmp_path):
    with pytest.raises(DatasetError):
        IOManager.load_records(str(tmp_path / "missing.csv"))

    other = tmp_path / "data.xlsx"
    other.write_text("", encoding="utf-8")
    with pytest.raises(DatasetError):
        IOManager.load_records(str(other))

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(DatasetError):
        IOManager.load_records(str(broken))


def test_positions_save_and_load(tmp_path):
    path = tmp_path / "layout.json"
    IOManager.save_positions(str(path), {"a": (1.0, 2.0), "b": (-3.5, 0.0)})
    assert IOManager.load_positions(str(path)) == {"a": (1.0, 2.0), "b": (-3.5, 0.0)}


def test_positions_mapping_and_malformed(tmp_path):
    mapping = tmp_path / "mapping.json"
    mapping.write_text(json.dumps({"a": [1, 2]}), encoding="utf-8")
    assert IOManager.load_positions(str(mapping)) == {"a": (1.0, 2.0)}

    malformed = tmp_path / "malformed.json"
    malformed.write_text(json.dumps([{"id": "a", "x": 1}]), encoding="utf-8")
    with pytest.raises(DatasetError):
        IOManager.load_positions(str(malformed))


def test_setup_logging_writes_file_and_replaces_handlers(tmp_path):
    import logging

    from polycube.logging_config import setup_logging

    log_file = tmp_path / "polycube.log"
    setup_logging(logging.DEBUG, str(log_file))
    logger = setup_logging(logging.DEBUG, str(log_file))
    logging.getLogger("polycube.test").debug("hello")
    for handler in logger.handlers:
        handler.flush()

    assert len(logger.handlers) == 2
    assert "hello" in log_file.read_text(encoding="utf-8")
    assert logging.getLogger("matplotlib").level == logging.WARNING
    setup_logging(logging.WARNING)
