"""
Loader for Inventory Planner catalog exports.

THIS FILE CONTAINS SOURCE-SPECIFIC LOGIC:
- The wrapper shapes exports arrive in (plain list, {"variants": [...]},
  n8n's [{"json": {"variants": [...]}}], double-wrapped {"body": {...}})
- Where the export records the last completed sync
- Which Inventory Planner fields the engine needs

To add another planning tool:
1. Copy this file as a template
2. Update extract_variants() for its wrapper shape
3. Map its field names onto VariantRecord's in FIELD_RENAMES
4. The catalog_health engine can be reused as-is
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from catalog_health.analysis import CatalogReport, build_catalog_report
from catalog_health.config import ScoringConfig
from catalog_health.fields import detect_field_mappings
from catalog_health.models import FieldMappingDetection
from catalog_health.records import ValidationResult, VariantRecord, validate_variants

logger = logging.getLogger(__name__)


@dataclass
class LoadedCatalog:
    """Container for one validated catalog snapshot."""

    records: list[VariantRecord]
    validation: ValidationResult
    last_completed_sync: datetime | None
    field_mappings: FieldMappingDetection


def extract_variants(payload: Any) -> list[dict]:
    """Pull the variant objects out of whichever wrapper the export used."""
    if isinstance(payload, list):
        variants: list[dict] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            if isinstance(item.get("json"), dict):
                variants.extend(extract_variants(item["json"]))
            elif isinstance(item.get("variants"), list):
                variants.extend(item["variants"])
            elif item.get("id") and item.get("sku"):
                variants.append(item)
        return variants

    if isinstance(payload, dict):
        if isinstance(payload.get("body"), dict):
            return extract_variants(payload["body"])
        for key in ("variants", "data"):
            if isinstance(payload.get(key), list):
                return list(payload[key])

    return []


class InventoryPlannerLoader:
    """
    Loads an Inventory Planner export and turns it into a catalog snapshot.

    Source-specific quirks handled:
    - Exports come wrapped differently depending on how they were pulled
    - Some exports call stock `stock_on_hand` and the variant id `variant_id`
    - Sync time is stamped on the export as `last_completed_sync`
      (or `synced_at` on older n8n flows)
    """

    # Export field -> VariantRecord field, applied only when the target is absent
    FIELD_RENAMES = {
        "variant_id": "id",
        "stock_on_hand": "in_stock",
        "name": "title",
        "vendor": "brand",
    }

    SYNC_TIMESTAMP_KEYS = ("last_completed_sync", "synced_at")

    def __init__(self, data_dir: Path | str, filename: str = "variants.json"):
        self.data_dir = Path(data_dir)
        self.filename = filename

    def load(self) -> LoadedCatalog:
        """Load, normalize and validate the export."""
        with open(self.data_dir / self.filename, encoding="utf-8") as f:
            payload = json.load(f)

        raw_variants = [self._rename_fields(v) for v in extract_variants(payload)]
        if not raw_variants:
            logger.warning("No variants found in %s", self.data_dir / self.filename)

        validation = validate_variants(raw_variants)
        summary = validation.summary()
        logger.info(
            "Loaded %d variants (%d valid, %d invalid, %d with warnings)",
            summary["total"],
            summary["passed"],
            summary["failed"],
            summary["with_warnings"],
        )

        return LoadedCatalog(
            records=validation.valid,
            validation=validation,
            last_completed_sync=self._parse_sync_time(payload),
            field_mappings=detect_field_mappings(validation.valid),
        )

    def analyze(
        self, config: ScoringConfig | None = None, now: datetime | None = None
    ) -> CatalogReport:
        """Load the export and build the full catalog report."""
        catalog = self.load()
        return build_catalog_report(
            catalog.records, catalog.last_completed_sync, config=config, now=now
        )

    def _rename_fields(self, variant: Any) -> Any:
        if not isinstance(variant, dict):
            return variant
        renamed = dict(variant)
        for source, target in self.FIELD_RENAMES.items():
            if source in renamed and target not in renamed:
                renamed[target] = renamed.pop(source)
        return renamed

    def _parse_sync_time(self, payload: Any) -> datetime | None:
        """
        Find the export's last completed sync time.

        Returns None when the export has none or it can't be parsed; the
        health score then treats the catalog as never synced.
        """
        if not isinstance(payload, dict):
            return None

        for key in self.SYNC_TIMESTAMP_KEYS:
            value = payload.get(key)
            if not value:
                continue
            parsed = pd.to_datetime(value, utc=True, errors="coerce")
            if pd.isna(parsed):
                logger.warning("Unparseable %s in export: %r", key, value)
                return None
            return parsed.to_pydatetime()
        return None
