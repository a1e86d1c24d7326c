"""
COGS CSV Import Service

Imports per-SKU unit costs from a CSV file.

Expected format (header names are case-insensitive):
    SKU,COGS
    TEE-BLK-M,4.20
    MUG-01,1.50
"""
import csv
import io
from decimal import Decimal
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from doughboard.services.settings_service import SettingsService
from doughboard.utils.helpers import to_decimal
from doughboard.utils.logger import log

SKU_COLUMN = "sku"
COGS_COLUMN = "cogs"


class CogsImportError(ValueError):
    """Raised when an upload can't be read as a COGS file"""


class CogsImportService:
    def __init__(self, db: Session):
        self.db = db

    def parse_csv(self, csv_content: str) -> Dict:
        """
        Parse CSV content into a SKU -> unit cost mapping

        Rows with an empty SKU or a non-numeric COGS are skipped. A later row
        for the same SKU overwrites an earlier one.

        Returns:
            {"costs": {sku: Decimal}, "skipped": int, "total_rows": int}
        """
        reader = csv.DictReader(io.StringIO(csv_content))
        column_map = self._map_columns(reader.fieldnames or [])

        if SKU_COLUMN not in column_map or COGS_COLUMN not in column_map:
            raise CogsImportError("CSV must have SKU and COGS columns")

        costs: Dict[str, Decimal] = {}
        skipped = 0
        total_rows = 0

        for row in reader:
            total_rows += 1
            sku = (row.get(column_map[SKU_COLUMN]) or "").strip()
            cost = to_decimal(row.get(column_map[COGS_COLUMN]), default=None)
            if not sku or cost is None:
                skipped += 1
                continue
            costs[sku] = cost

        return {"costs": costs, "skipped": skipped, "total_rows": total_rows}

    def import_csv(self, shop: str, csv_content: str) -> Dict:
        """
        Import a COGS CSV for a shop

        The uploaded mapping replaces the shop's custom COGS.
        """
        parsed = self.parse_csv(csv_content)
        costs = parsed["costs"]

        SettingsService(self.db).save_settings(shop, custom_cogs=costs)

        log.info(
            f"Imported {len(costs)} SKU costs for {shop} "
            f"({parsed['skipped']} of {parsed['total_rows']} rows skipped)"
        )

        return {
            "success": True,
            "itemsProcessed": len(costs),
            "skipped": parsed["skipped"],
        }

    @staticmethod
    def _map_columns(headers: Iterable[Optional[str]]) -> Dict[str, str]:
        """Map CSV headers to sku/cogs, first match wins"""
        column_map = {}
        for header in headers:
            if header is None:
                continue
            normalized = header.strip().lower()
            if normalized in (SKU_COLUMN, COGS_COLUMN) and normalized not in column_map:
                column_map[normalized] = header
        return column_map


def decode_upload(content: bytes) -> str:
    """Decode uploaded bytes, handling the BOM Excel adds to CSV exports"""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CogsImportError("CSV must be UTF-8 encoded") from e


