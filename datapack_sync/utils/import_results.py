#!/usr/bin/env python3
"""
import_results.py

Accumulator for the outcome of one import run.

Every processed record ends up in exactly one bucket:
- created   : written to Commerce by this run
- existing  : already present, nothing to do
- failed    : an API error scoped to that record
- skipped   : not attempted (e.g. store API locked down)

Created at the start of a run, mutated in record order, read once at the end.
"""

from __future__ import annotations
import time
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any


def _stamp(item: Optional[dict], **extra) -> dict:
    entry = dict(item or {})
    entry.update(extra)
    entry["timestamp"] = time.time()
    return entry


@dataclass
class ImportResults:
    created: List[Dict[str, Any]] = field(default_factory=list)
    existing: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)
    skipped: List[Dict[str, Any]] = field(default_factory=list)
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None

    # --- Recording ------------------------------------------------------------

    def add_created(self, item: Optional[dict] = None) -> None:
        self.created.append(_stamp(item))

    def add_existing(self, item: Optional[dict] = None) -> None:
        self.existing.append(_stamp(item))

    def add_failed(self, item: Optional[dict] = None, error=None) -> None:
        message = str(error) if error is not None else None
        self.failed.append(_stamp(item, error=message))

    def add_skipped(self, item: Optional[dict] = None, reason: Optional[str] = None) -> None:
        self.skipped.append(_stamp(item, reason=reason))

    def finalize(self) -> "ImportResults":
        self.end_time = time.time()
        return self

    # --- Derived --------------------------------------------------------------

    @property
    def duration_seconds(self) -> int:
        end = self.end_time or time.time()
        return round(end - self.start_time)

    @property
    def total_processed(self) -> int:
        return len(self.created) + len(self.existing) + len(self.failed) + len(self.skipped)

    @property
    def success(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "created": self.created,
            "existing": self.existing,
            "failed": self.failed,
            "skipped": self.skipped,
            "duration": self.duration_seconds,
            "success": self.success,
        }


def format_duration(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds}s"
    mins, secs = divmod(seconds, 60)
    return f"{mins}m {secs}s"
