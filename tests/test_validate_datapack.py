from pathlib import Path

import pandas as pd
import pytest

from datapack_sync.scripts import validate_datapack
from datapack_sync.scripts.validate_datapack import (
    ValidationFailed,
    data_file_exists,
    data_file_valid_json,
    entity_count_in_range,
    post_ingestion_checks,
    pre_ingestion_checks,
    run_validation_checks,
    write_validation_report,
)
from tests._helpers import write_json


def _stage_valid_datapack(data_dir: Path) -> None:
    write_json(data_dir / "products.json", [{"sku": "P1"}, {"sku": "P2"}])
    write_json(data_dir / "variants.json", [{"sku": "V1"}])
    write_json(data_dir / "metadata.json", [{"code": "color"}])
    write_json(data_dir / "price-books.json", [{"priceBookId": "default"}])
    write_json(data_dir / "prices.json", [{"sku": "P1", "regular": 10}])


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("count", "expected"),
    [(0, False), (1, True), (250, True), (500, True), (501, False)],
)
def test_entity_count_in_range_is_inclusive(count: int, expected: bool) -> None:
    result = entity_count_in_range(count, 1, 500, "Products")
    assert result["passed"] is expected
    assert "Products" in result["message"]


def test_data_file_exists_reports_missing_file(tmp_path: Path) -> None:
    result = data_file_exists("products.json", tmp_path)
    assert result == {"passed": False, "message": "Data file missing: products.json"}


def test_data_file_valid_json_rejects_non_array(tmp_path: Path) -> None:
    write_json(tmp_path / "products.json", {"products": []})
    result = data_file_valid_json("products.json", tmp_path)
    assert result["passed"] is False
    assert result["message"] == "products.json is not an array"


def test_data_file_valid_json_rejects_bad_json(tmp_path: Path) -> None:
    (tmp_path / "products.json").write_text("[{", encoding="utf-8")
    result = data_file_valid_json("products.json", tmp_path)
    assert result["passed"] is False
    assert result["message"].startswith("products.json is not valid JSON")


def test_data_file_valid_json_returns_count_and_items(tmp_path: Path) -> None:
    write_json(tmp_path / "variants.json", [{"sku": "A"}, {"sku": "B"}])
    result = data_file_valid_json("variants.json", tmp_path)
    assert result["passed"] is True
    assert result["data"]["count"] == 2
    assert result["data"]["items"][1] == {"sku": "B"}


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------


def test_pre_ingestion_checks_pass_for_valid_datapack(tmp_path: Path) -> None:
    _stage_valid_datapack(tmp_path)

    result = pre_ingestion_checks(tmp_path)

    assert result["passed"] is True
    # 4 files with exists/json/count + price books with exists/json
    assert len(result["checks"]) == 14
    assert all(check["passed"] for check in result["checks"])


def test_pre_ingestion_checks_skip_downstream_checks_for_missing_file(tmp_path: Path) -> None:
    _stage_valid_datapack(tmp_path)
    (tmp_path / "variants.json").unlink()

    with pytest.raises(ValidationFailed) as excinfo:
        pre_ingestion_checks(tmp_path)

    names = [check["name"] for check in excinfo.value.checks]
    assert "Variants file exists" in names
    assert "Variants JSON valid" not in names
    assert "Variants count" not in names
    failed = [check for check in excinfo.value.checks if not check["passed"]]
    assert [check["name"] for check in failed] == ["Variants file exists"]


def test_pre_ingestion_checks_run_every_file_before_failing(tmp_path: Path) -> None:
    # Nothing staged at all: every file still gets its existence check
    with pytest.raises(ValidationFailed, match="Pre-ingestion validation failed") as excinfo:
        pre_ingestion_checks(tmp_path)

    names = [check["name"] for check in excinfo.value.checks]
    assert names == [
        "Products file exists",
        "Variants file exists",
        "Metadata file exists",
        "Price books file exists",
        "Prices file exists",
    ]


def test_pre_ingestion_checks_fail_on_out_of_range_count(tmp_path: Path) -> None:
    _stage_valid_datapack(tmp_path)
    write_json(tmp_path / "metadata.json", [{"code": f"attr_{i}"} for i in range(101)])

    with pytest.raises(ValidationFailed) as excinfo:
        pre_ingestion_checks(tmp_path)

    failed = [check for check in excinfo.value.checks if not check["passed"]]
    assert len(failed) == 1
    assert failed[0]["name"] == "Metadata count"
    assert "Attributes count 101 outside expected range 1-100" == failed[0]["message"]


def test_price_books_have_no_count_check(tmp_path: Path) -> None:
    _stage_valid_datapack(tmp_path)
    write_json(tmp_path / "price-books.json", [])

    result = pre_ingestion_checks(tmp_path)

    names = [check["name"] for check in result["checks"]]
    assert "Price books JSON valid" in names
    assert "Price books count" not in names


def test_post_ingestion_checks_always_skip() -> None:
    assert post_ingestion_checks() == {"passed": True, "skipped": True}


def test_run_validation_checks_dispatches_phases(tmp_path: Path) -> None:
    _stage_valid_datapack(tmp_path)
    assert run_validation_checks("pre-ingest", tmp_path)["passed"] is True
    assert run_validation_checks("post-ingest")["skipped"] is True


def test_run_validation_checks_rejects_unknown_phase() -> None:
    with pytest.raises(ValueError, match="Unknown validation phase: mid-ingest"):
        run_validation_checks("mid-ingest")


def test_pre_ingestion_checks_default_to_configured_data_dir(tmp_path: Path, monkeypatch) -> None:
    _stage_valid_datapack(tmp_path / "staged")
    monkeypatch.setenv("DATAPACK_DATA_DIR", str(tmp_path / "staged"))

    assert pre_ingestion_checks()["passed"] is True


# ---------------------------------------------------------------------------
# Report + CLI
# ---------------------------------------------------------------------------


def test_write_validation_report_writes_one_row_per_check(tmp_path: Path) -> None:
    checks = [
        {"name": "Products file exists", "passed": True, "message": "ok"},
        {"name": "Products JSON valid", "passed": False, "message": "bad", "data": {"count": 3}},
    ]

    path = write_validation_report(checks, tmp_path / "reports", "pre-ingest")

    assert path.exists()
    assert path.name.startswith("validation_pre-ingest_")
    df = pd.read_csv(path)
    assert list(df.columns) == ["name", "passed", "message"]
    assert df["passed"].tolist() == [True, False]


def test_main_exits_zero_for_valid_datapack(tmp_path: Path) -> None:
    _stage_valid_datapack(tmp_path)

    with pytest.raises(SystemExit) as excinfo:
        validate_datapack.main(["--data-dir", str(tmp_path)])

    assert excinfo.value.code == 0


def test_main_exits_one_and_writes_report_on_failure(tmp_path: Path) -> None:
    report_dir = tmp_path / "reports"

    with pytest.raises(SystemExit) as excinfo:
        validate_datapack.main(["pre-ingest", "--data-dir", str(tmp_path / "empty"), "--report-dir", str(report_dir)])

    assert excinfo.value.code == 1
    assert len(list(report_dir.glob("*.csv"))) == 1


def test_main_exits_one_for_unknown_phase() -> None:
    with pytest.raises(SystemExit) as excinfo:
        validate_datapack.main(["sideways"])

    assert excinfo.value.code == 1
