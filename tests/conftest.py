from pathlib import Path

import pytest

from tests._helpers import write_json


@pytest.fixture
def store_config() -> dict:
    return {
        "site_code": "buildright",
        "site_name": "BuildRight Website",
        "store_code": "buildright_store",
        "store_name": "BuildRight Store",
        "store_root_category": "BuildRight Catalog",
        "store_view_code": "buildright_us",
        "view_name": "BuildRight US",
        "view_is_active": "Y",
    }


@pytest.fixture
def stores_file(tmp_path: Path, store_config: dict) -> Path:
    return write_json(tmp_path / "accs_stores.json", [store_config])
