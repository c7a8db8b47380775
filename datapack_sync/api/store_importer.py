#!/usr/bin/env python3
"""
store_importer.py

Ensures the website -> store group -> store view hierarchy described in the
committed datapack (accs_stores.json) exists in Commerce.

- Store groups and store views are created via REST when missing.
- Websites cannot be created via REST: when one is missing the root category
  is prepared, manual setup instructions are printed, and the run aborts.
- If the store admin endpoints are locked down (HTML / 404 / non-array
  response), the whole batch is skipped and the structure is assumed to exist.

Usage:
    python -m datapack_sync.api.store_importer
"""

from __future__ import annotations
import json
import logging
import pathlib
import sys

from datapack_sync import config
from datapack_sync.api.commerce_client import CommerceAPIError, CommerceClient
from datapack_sync.utils.import_results import ImportResults, format_duration
from datapack_sync.utils.log import setup_logging

WEBSITES_PATH = "/rest/V1/store/websites"
STORE_GROUPS_PATH = "/store/storeGroups"
STORE_VIEWS_PATH = "/store/storeViews"
CATEGORIES_PATH = "/categories"

DEFAULT_PARENT_CATEGORY_ID = 2  # "Default Category"
FALLBACK_ROOT_CATEGORY_ID = 1

UNREACHABLE_MARKERS = ("<!doctype html>", "Invalid response", "not an array")


class ManualSetupRequired(RuntimeError):
    """A website is missing; Commerce cannot create websites over REST."""


def is_store_api_unreachable(error: Exception) -> bool:
    message = str(error)
    if any(marker in message for marker in UNREACHABLE_MARKERS):
        return True
    return getattr(error, "status", None) == 404


def category_name_filter(name: str) -> dict:
    return {
        "searchCriteria": {
            "filterGroups": [{
                "filters": [{"field": "name", "value": name, "conditionType": "eq"}]
            }]
        }
    }


def first_category_id(response):
    """Id of the first category in a search response, or None for no hit / unexpected shape."""
    if not isinstance(response, dict):
        return None
    items = response.get("items")
    if not isinstance(items, list) or not items or not isinstance(items[0], dict):
        return None
    return items[0].get("id")


class StoreImporter:
    def __init__(self, client, results: ImportResults | None = None, logger: logging.Logger | None = None,
                 stores_path: str | pathlib.Path | None = None, display_name: str | None = None):
        self.name = "Stores"
        self.api = client
        self.results = results or ImportResults()
        self.logger = logger or logging.getLogger(__name__)
        self.stores_path = pathlib.Path(stores_path or config.stores_path())
        self.display_name = display_name or config.project_display_name()
        self.website_ids = []
        self.store_ids = []

    # --- Loading ----------------------------------------------------------------

    def load_stores(self) -> list:
        self.logger.info(f"Loading stores from datapack: {self.stores_path}")
        with open(self.stores_path, "r", encoding="utf-8") as f:
            return json.load(f)

    # --- Batch ------------------------------------------------------------------

    def import_stores(self) -> dict:
        stores = self.load_stores()
        self.logger.info(f"Stores to process: {len(stores)}")

        try:
            websites = self.api.get(WEBSITES_PATH)
            if not isinstance(websites, list):
                raise CommerceAPIError("Store API returned invalid response (not an array)")
            self.logger.info(f"Store API accessible. Found {len(websites)} existing websites.")

            # Only the first record's site is checked before treating the batch as existing
            site_code = stores[0]["site_code"] if stores else None
            if site_code and any(w.get("code") == site_code for w in websites):
                self.logger.info(f"Store '{site_code}' already exists. Skipping store creation.")
                self.results.add_existing({"type": "store", "code": site_code})
            else:
                for store_config in stores:
                    self.process_store(store_config)

        except ManualSetupRequired:
            raise
        except Exception as e:
            if not is_store_api_unreachable(e):
                raise
            self.logger.info("Store management API not accessible (normal for locked demos).")
            self.logger.info("Assuming store structure already exists in Commerce.")
            self.results.add_skipped(
                {"store": "all"}, "Store API not accessible - assuming stores already configured"
            )

        return {
            "total": len(stores),
            "created": len(self.results.created),
            "existing": len(self.results.existing),
            "failed": len(self.results.failed),
            "skipped": len(self.results.skipped),
            "website_ids": self.website_ids,
            "store_ids": self.store_ids,
        }

    def process_store(self, store_config: dict) -> None:
        try:
            website_id = self.ensure_website(store_config)
            self.website_ids.append(website_id)

            store_id = self.ensure_store_group(store_config, website_id)
            self.store_ids.append(store_id)

            self.ensure_store_view(store_config, website_id, store_id)
            self.results.add_created({
                "site_code": store_config.get("site_code"),
                "store_code": store_config.get("store_code"),
                "store_view_code": store_config.get("store_view_code"),
            })
        except ManualSetupRequired:
            raise
        except Exception as e:
            self.results.add_failed({"code": store_config.get("site_code")}, e)
            self.logger.error(f"Failed to process store {store_config.get('site_code')}: {e}")

    # --- Website ----------------------------------------------------------------

    def ensure_website(self, store_config: dict):
        websites = self.api.get(WEBSITES_PATH)
        site_code = store_config["site_code"]
        existing = next((w for w in websites if w.get("code") == site_code), None)

        if existing:
            self.logger.debug(f"Website '{site_code}' already exists (ID: {existing.get('id')})")
            self.results.add_existing({"type": "website", "code": site_code})
            return existing.get("id")

        site_name = store_config.get("site_name") or f"{self.display_name} Website"
        root_category = store_config.get("store_root_category")
        self.logger.error(f"{site_name} doesn't exist yet...")
        self.logger.error(f"Creating the {root_category} root category...")

        self.ensure_root_category(root_category)

        self.print_manual_setup_instructions(store_config, [w.get("code") for w in websites])
        raise ManualSetupRequired(
            f"Website '{site_code}' not found - manual setup required (see instructions above)"
        )

    def print_manual_setup_instructions(self, store_config: dict, available_codes: list) -> None:
        site_name = store_config.get("site_name") or f"{self.display_name} Website"
        store_name = store_config.get("store_name") or f"{self.display_name} Store"
        view_name = store_config.get("view_name") or f"{self.display_name} US"

        lines = [
            "",
            f"Website '{store_config['site_code']}' not found in Commerce.",
            "",
            "Commerce does not support website creation via REST API.",
            "You must create the website structure manually in Commerce Admin:",
            "",
            "📋 Required Setup (Commerce Admin → Stores → All Stores):",
            "",
            "1. Create Website:",
            f"   - Code: {store_config['site_code']}",
            f"   - Name: {site_name}",
            "",
            "2. Create Store (Store Group):",
            f"   - Website: {site_name}",
            f"   - Code: {store_config.get('store_code')}",
            f"   - Name: {store_name}",
            f"   - Root Category: {store_config.get('store_root_category')} (already created for you)",
            "",
            "3. Create Store View:",
            f"   - Code: {store_config.get('store_view_code')}",
            f"   - Name: {view_name}",
            "   - Status: Enabled",
            "",
            f"Available websites: {', '.join(str(c) for c in available_codes)}",
            "",
        ]
        for line in lines:
            self.logger.error(line)

    # --- Categories -------------------------------------------------------------

    def ensure_root_category(self, category_name: str):
        """Finds or creates the root category. Never raises; returns None on failure."""
        try:
            response = self.api.get(CATEGORIES_PATH, category_name_filter(category_name))
            existing_id = first_category_id(response)
            if existing_id is not None:
                self.logger.info(f"Root category '{category_name}' already exists (ID: {existing_id})")
                return existing_id

            self.logger.info(f"Creating root category '{category_name}'...")
            category = self.api.post(CATEGORIES_PATH, {
                "category": {
                    "parent_id": DEFAULT_PARENT_CATEGORY_ID,
                    "name": category_name,
                    "is_active": True,
                    "include_in_menu": True,
                }
            })
            category_id = (category or {}).get("id")
            self.logger.info(f"Created root category '{category_name}' (ID: {category_id})")
            return category_id

        except Exception as e:
            self.logger.warning(f"Failed to ensure root category '{category_name}': {e}")
            self.logger.warning('Users will need to create this category manually or use "Default Category"')
            return None

    def find_root_category(self, category_name: str):
        """Root category id by exact name; falls back to 1 when missing or on error."""
        try:
            response = self.api.get(CATEGORIES_PATH, category_name_filter(category_name))
        except Exception as e:
            self.logger.debug(f"Root category lookup failed for '{category_name}': {e}")
            return FALLBACK_ROOT_CATEGORY_ID

        category_id = first_category_id(response)
        if category_id is None:
            return FALLBACK_ROOT_CATEGORY_ID
        return category_id

    # --- Store group / view -----------------------------------------------------

    def ensure_store_group(self, store_config: dict, website_id):
        try:
            groups = self.api.get(STORE_GROUPS_PATH)
            existing = next((g for g in groups if g.get("code") == store_config["store_code"]), None)
            if existing:
                return existing.get("id")

            root_category_id = self.find_root_category(store_config.get("store_root_category"))
            group = self.api.post(STORE_GROUPS_PATH, {
                "group": {
                    "website_id": website_id,
                    "code": store_config["store_code"],
                    "name": store_config.get("store_name"),
                    "root_category_id": root_category_id,
                    "default_store_id": 0,
                }
            })
            return (group or {}).get("id")
        except Exception as e:
            raise RuntimeError(f"Failed to ensure store group: {e}") from e

    def ensure_store_view(self, store_config: dict, website_id, store_id):
        try:
            views = self.api.get(STORE_VIEWS_PATH)
            existing = next((v for v in views if v.get("code") == store_config["store_view_code"]), None)
            if existing:
                return existing.get("id")

            view = self.api.post(STORE_VIEWS_PATH, {
                "storeView": {
                    "code": store_config["store_view_code"],
                    "name": store_config.get("view_name"),
                    "website_id": website_id,
                    "store_group_id": store_id,
                    "is_active": 1 if store_config.get("view_is_active") == "Y" else 0,
                }
            })
            return (view or {}).get("id")
        except Exception as e:
            raise RuntimeError(f"Failed to ensure store view: {e}") from e

    # --- Run --------------------------------------------------------------------

    def log_header(self, dry_run: bool = False) -> None:
        self.logger.info(f"=== Importing {self.name} ===")
        self.logger.info(f"Mode: {'DRY RUN' if dry_run else 'LIVE'}")

    def log_summary(self) -> None:
        self.logger.info(f"=== {self.name} Summary ===")
        self.logger.info(f"Created: {len(self.results.created)}")
        self.logger.info(f"Already Existing: {len(self.results.existing)}")
        if self.results.skipped:
            self.logger.info(f"Skipped: {len(self.results.skipped)}")
        self.logger.info(f"Failed: {len(self.results.failed)}")
        self.logger.info(f"Duration: {format_duration(self.results.duration_seconds)}")

        if self.results.failed:
            self.logger.warning("Failed items:")
            for failure in self.results.failed[:10]:
                self.logger.warning(f"  - {failure.get('code')}: {failure.get('error')}")
            if len(self.results.failed) > 10:
                self.logger.warning(f"  ... and {len(self.results.failed) - 10} more")

    def run(self) -> dict:
        self.log_header(getattr(self.api, "dry_run", False))
        summary = self.import_stores()
        self.results.finalize()
        self.log_summary()
        return {"success": self.results.success, "results": self.results.to_dict(), **summary}


def import_stores(client=None, **kwargs) -> dict:
    importer = StoreImporter(client or CommerceClient(), **kwargs)
    return importer.run()


def main() -> None:
    setup_logging(config.verbose_enabled())
    try:
        import_stores()
    except Exception as e:
        logging.getLogger(__name__).error(f"Import failed: {e}")
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
