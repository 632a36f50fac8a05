# tutorbill/api/routers/backup.py - Full data export / import
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, Any
import logging

from tutorbill.core.db import get_db
from tutorbill.api.deps.auth import require_admin
from tutorbill.services.backup import export_all, import_all

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/export")
async def export_backup(
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    logger.info(f"Backup exported by {ctx['email']}")
    return export_all(db)


@router.post("/import")
async def import_backup(
    data: Dict[str, Any],
    overwrite: bool = Query(False, description="Replace existing documents instead of merging"),
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    counts = import_all(db, data, overwrite=overwrite)
    return {"message": "Backup imported", "imported": counts}
