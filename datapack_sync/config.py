#!/usr/bin/env python3
"""
config.py
Reads COMMERCE_* and DATAPACK_* settings from .env and exposes them
as a frozen `CommerceConfig` plus datapack path helpers.
"""

from __future__ import annotations
import os
import pathlib
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DATA_DIR = "data/buildright"
DEFAULT_OUTPUT_DIR = "output/buildright"
DEFAULT_STORES_PATH = "output/buildright-datapack/data/accs/accs_stores.json"
DEFAULT_SERVICE_DATA_DIR = "../buildright-service/lib/data"

API_VERSION = "V1"
ADMIN_TOKEN_PATH = "/integration/admin/token"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class CommerceConfig:
    base_url: str
    admin_token: Optional[str] = None
    admin_username: Optional[str] = None
    admin_password: Optional[str] = None
    dry_run: bool = False
    verbose: bool = False
    timeout: Optional[float] = None
    display_name: str = "BuildRight"


def load_commerce_config() -> CommerceConfig:
    base_url = os.getenv("COMMERCE_BASE_URL", "").rstrip("/")
    if not base_url:
        raise EnvironmentError("Missing COMMERCE_BASE_URL in .env")

    timeout = os.getenv("COMMERCE_TIMEOUT")
    return CommerceConfig(
        base_url=base_url,
        admin_token=os.getenv("COMMERCE_ADMIN_TOKEN") or None,
        admin_username=os.getenv("COMMERCE_ADMIN_USERNAME") or None,
        admin_password=os.getenv("COMMERCE_ADMIN_PASSWORD") or None,
        dry_run=_env_flag("COMMERCE_DRY_RUN"),
        verbose=verbose_enabled(),
        timeout=float(timeout) if timeout else None,
        display_name=project_display_name(),
    )


def verbose_enabled() -> bool:
    return _env_flag("VERBOSE") or _env_flag("COMMERCE_DEBUG")


def project_display_name() -> str:
    return os.getenv("PROJECT_DISPLAY_NAME", "BuildRight")


# --- Datapack paths -----------------------------------------------------------

def data_dir() -> pathlib.Path:
    """Staged data files checked before ingestion."""
    return pathlib.Path(os.getenv("DATAPACK_DATA_DIR", DEFAULT_DATA_DIR))


def output_dir() -> pathlib.Path:
    """Generated templates / variants / packages / BOM criteria."""
    return pathlib.Path(os.getenv("DATAPACK_OUTPUT_DIR", DEFAULT_OUTPUT_DIR))


def stores_path() -> pathlib.Path:
    return pathlib.Path(os.getenv("DATAPACK_STORES_PATH", DEFAULT_STORES_PATH))


def service_data_dir() -> pathlib.Path:
    return pathlib.Path(os.getenv("SERVICE_DATA_DIR", DEFAULT_SERVICE_DATA_DIR))
