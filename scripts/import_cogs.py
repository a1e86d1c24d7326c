#!/usr/bin/env python3
"""
COGS Import Script

Imports per-SKU unit costs from a CSV file for an installed shop, the same
way the dashboard's "Upload COGS" action does.

Usage:
    python scripts/import_cogs.py --shop my-store.myshopify.com --file costs.csv
    python scripts/import_cogs.py --shop my-store.myshopify.com --file costs.csv --dry-run
"""
import argparse
import sys
from pathlib import Path

from doughboard.models.base import SessionLocal, init_db
from doughboard.services.cogs_import_service import CogsImportError, CogsImportService, decode_upload
from doughboard.utils.logger import log


def main() -> int:
    parser = argparse.ArgumentParser(description="Import per-SKU COGS from a CSV file")
    parser.add_argument("--shop", required=True, help="Shop domain, e.g. my-store.myshopify.com")
    parser.add_argument("--file", required=True, type=Path, help="CSV with SKU and COGS columns")
    parser.add_argument("--dry-run", action="store_true", help="Parse and report without saving")
    args = parser.parse_args()

    if not args.file.exists():
        log.error(f"File not found: {args.file}")
        return 1

    init_db()
    db = SessionLocal()
    try:
        service = CogsImportService(db)
        csv_text = decode_upload(args.file.read_bytes())

        if args.dry_run:
            parsed = service.parse_csv(csv_text)
            log.info(
                f"Dry run: {len(parsed['costs'])} SKU costs, "
                f"{parsed['skipped']} of {parsed['total_rows']} rows skipped"
            )
            return 0

        result = service.import_csv(args.shop.strip().lower(), csv_text)
        log.info(f"Imported {result['itemsProcessed']} SKU costs ({result['skipped']} rows skipped)")
        return 0
    except CogsImportError as e:
        log.error(f"Invalid COGS file: {str(e)}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
