"""
Store Settings API

COGS settings: default percentage, per-SKU costs, and CSV upload.
"""
from decimal import Decimal
from typing import Dict, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from doughboard.api.deps import get_shop_session
from doughboard.models.base import get_db
from doughboard.models.store import ShopSession
from doughboard.services.cogs_import_service import CogsImportError, CogsImportService, decode_upload
from doughboard.services.settings_service import SettingsService
from doughboard.utils.logger import log

router = APIRouter(prefix="/api", tags=["settings"])


class SettingsUpdate(BaseModel):
    default_cogs_percentage: Decimal = Field(..., alias="defaultCOGSPercentage", ge=0, le=100)
    custom_cogs: Optional[Dict[str, Decimal]] = Field(None, alias="customCOGS")

    model_config = {"populate_by_name": True}


@router.get("/settings")
def get_store_settings(
    session: ShopSession = Depends(get_shop_session),
    db: Session = Depends(get_db),
):
    """Stored COGS settings, or defaults for a shop that never saved any"""
    return SettingsService(db).get_or_default(session.shop)


@router.post("/settings")
def save_store_settings(
    payload: SettingsUpdate,
    session: ShopSession = Depends(get_shop_session),
    db: Session = Depends(get_db),
):
    """
    Save COGS settings

    customCOGS, when omitted, keeps the stored per-SKU costs.
    """
    try:
        record = SettingsService(db).save_settings(
            session.shop,
            default_cogs_percentage=payload.default_cogs_percentage,
            custom_cogs=payload.custom_cogs,
        )
        return record.to_dict()
    except Exception as e:
        db.rollback()
        log.error(f"Settings API error for {session.shop}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to save settings")


@router.post("/upload-cogs")
async def upload_cogs(
    cogs_file: UploadFile = File(..., alias="cogsFile", description="CSV with SKU and COGS columns"),
    session: ShopSession = Depends(get_shop_session),
    db: Session = Depends(get_db),
):
    """
    Upload per-SKU unit costs from a CSV file.

    Expected CSV format:
    ```
    SKU,COGS
    TEE-BLK-M,4.20
    MUG-01,1.50
    ```

    Column names are case-insensitive. Rows missing a SKU or a numeric COGS
    are skipped. The upload replaces previously uploaded SKU costs.
    """
    content = await cogs_file.read()

    try:
        csv_text = decode_upload(content)
        return CogsImportService(db).import_csv(session.shop, csv_text)
    except CogsImportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        log.error(f"COGS upload error for {session.shop}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to process COGS file")
