#!/usr/bin/env python3
"""
generate_service_data.py

Reshapes the generated BuildRight datapack files into the lookup files
read by buildright-service:

    templates.json             -> templates.json             (keyed by id)
    template-variants.json     -> variants.json              (keyed by id)
    material-packages.json     -> packages.json              (keyed by id)
    bom-product-criteria.json  -> bom-product-criteria.json  (passed through)

A missing source file only skips that output; anything else (unreadable
file, bad JSON) aborts the run.

Usage:
    python -m datapack_sync.scripts.generate_service_data
    python -m datapack_sync.scripts.generate_service_data --output-dir ../buildright-service/lib/data --dry-run
"""

from __future__ import annotations
import argparse
import json
import logging
import os
import pathlib
import sys

from datapack_sync import config
from datapack_sync.utils.log import setup_logging

logger = logging.getLogger(__name__)

OUTPUT_FILES = ["templates.json", "variants.json", "packages.json", "bom-product-criteria.json"]


def _load_source(filename: str, source_dir) -> list | dict | None:
    path = pathlib.Path(source_dir or config.output_dir()) / filename
    if not path.exists():
        logger.warning(f"{filename} not found in datapack output ({path.parent}).")
        return None
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def key_by_id(records: list, source: str = "records") -> dict:
    """{record['id']: record} for every record; later duplicates win."""
    keyed = {}
    for index, record in enumerate(records):
        if not isinstance(record, dict) or "id" not in record:
            raise ValueError(f"{source}: record {index} has no 'id' field")
        keyed[record["id"]] = record
    return keyed


def _generate_keyed(filename: str, label: str, source_dir) -> dict | None:
    logger.info(f"Generating service {label} from datapack...")
    records = _load_source(filename, source_dir)
    if records is None:
        return None
    keyed = key_by_id(records, filename)
    logger.info(f"Transformed {len(records)} {label} to service format")
    return keyed


def generate_service_templates(source_dir=None) -> dict | None:
    return _generate_keyed("templates.json", "templates", source_dir)


def generate_service_variants(source_dir=None) -> dict | None:
    return _generate_keyed("template-variants.json", "variants", source_dir)


def generate_service_packages(source_dir=None) -> dict | None:
    return _generate_keyed("material-packages.json", "packages", source_dir)


def generate_bom_product_criteria(source_dir=None) -> dict | None:
    """
    BOM criteria are already shaped phase -> product type -> rule.
    Counted for the log, otherwise passed through untouched.
    """
    logger.info("Generating BOM product criteria from datapack...")
    criteria = _load_source("bom-product-criteria.json", source_dir)
    if criteria is None:
        return None

    phase_count = len(criteria)
    total_criteria = sum(len(phase) for phase in criteria.values())
    logger.info(f"Transformed BOM criteria: {phase_count} phases, {total_criteria} product types")
    return criteria


def write_service_file(data: dict, path: pathlib.Path) -> pathlib.Path:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    return path


def run(source_dir=None, output_dir=None, dry_run: bool = False) -> dict:
    """
    Runs all four transforms independently and writes whatever they produced.
    Returns {output filename: written path}.
    """
    source_dir = pathlib.Path(source_dir or config.output_dir())
    output_dir = pathlib.Path(output_dir or config.service_data_dir())

    logger.info("Starting BuildRight service data generation...")
    logger.info(f"Datapack directory: {source_dir}")
    logger.info(f"Service output directory: {output_dir}")

    if not output_dir.exists() and not dry_run:
        output_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Created service data directory")

    jobs = [
        ("templates.json", generate_service_templates, "templates"),
        ("variants.json", generate_service_variants, "variants"),
        ("packages.json", generate_service_packages, "packages"),
        ("bom-product-criteria.json", generate_bom_product_criteria, None),
    ]

    written = {}
    for out_name, transform, label in jobs:
        data = transform(source_dir)
        if data is None:
            continue
        out_path = output_dir / out_name
        summary = f" ({len(data)} {label})" if label else ""
        if dry_run:
            logger.info(f"[dry-run] Would write {out_name}{summary}")
            continue
        write_service_file(data, out_path)
        written[out_name] = out_path
        logger.info(f"✓ Wrote {out_name}{summary}")

    logger.info("✓ BuildRight service data generation complete!")
    logger.info("Generated files:")
    for out_name in OUTPUT_FILES:
        logger.info(f"  - {os.path.relpath(output_dir / out_name)}")
    logger.info("Next steps:")
    logger.info(f"  1. Review generated files in {output_dir}")
    logger.info("  2. Deploy buildright-service to use the new data")
    return written


def main(argv: list | None = None) -> None:
    parser = argparse.ArgumentParser(description="Generate buildright-service data files from the datapack output.")
    parser.add_argument("--source-dir", help="Datapack output directory (default: DATAPACK_OUTPUT_DIR).")
    parser.add_argument("--output-dir", help="Service data directory (default: SERVICE_DATA_DIR).")
    parser.add_argument("--dry-run", action="store_true", help="Report what would be written without writing.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)

    setup_logging(args.verbose or config.verbose_enabled())

    try:
        run(args.source_dir, args.output_dir, args.dry_run)
    except Exception as e:
        logger.error(f"Error generating service data: {e}")
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
