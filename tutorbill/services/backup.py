# tutorbill/services/backup.py - JSON export / import of students, invoices, attendance and settings
import logging
import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from tutorbill.core.errors import ValidationError, StoreError
from tutorbill.models.attendance import MonthlyAttendance
from tutorbill.models.invoice import Invoice
from tutorbill.models.setting import AppSetting
from tutorbill.models.student import Student
from tutorbill.schemas.attendance import AttendanceRecordOut
from tutorbill.schemas.business import BusinessProfile
from tutorbill.schemas.invoice import InvoiceOut
from tutorbill.schemas.student import StudentOut
from tutorbill.services.business_settings import BUSINESS_KEY, load_business_profile

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"

STUDENT_FIELDS = ("name", "parent_name", "phone", "email", "address", "course", "photo")
INVOICE_FIELDS = (
    "type", "status", "student_id", "start_month", "start_year", "end_month", "end_year",
    "month_count", "monthly_breakdown", "class_count", "actual_attendance_count", "sessions",
    "rate_per_class", "adjustment", "adj_label", "total_amount", "is_manual_billing",
    "student_snapshot", "bank_snapshot", "custom_invoice_no", "paid_at", "created_at",
)
ATTENDANCE_FIELDS = ("student_id", "month", "year", "sessions", "class_count")


def export_all(db: Session) -> Dict[str, Any]:
    students = db.execute(select(Student)).scalars().all()
    invoices = db.execute(select(Invoice)).scalars().all()
    attendance = db.execute(select(MonthlyAttendance)).scalars().all()
    settings_row = db.get(AppSetting, BUSINESS_KEY)

    data = {
        "export_date": datetime.utcnow().isoformat(),
        "version": BACKUP_VERSION,
        "students": [StudentOut.model_validate(s).model_dump(mode="json") for s in students],
        "invoices": [InvoiceOut.model_validate(i).model_dump(mode="json") for i in invoices],
        "attendance": [AttendanceRecordOut.model_validate(a).model_dump(mode="json") for a in attendance],
        "settings": load_business_profile(db).model_dump(mode="json") if settings_row else None,
    }
    logger.info(
        f"Exported {len(data['students'])} students, {len(data['invoices'])} invoices, "
        f"{len(data['attendance'])} attendance records"
    )
    return data


def _upsert(db: Session, model, key, values: Dict[str, Any], overwrite: bool):
    row = db.get(model, key)
    if row is None:
        db.add(model(**values))
        return
    for field, value in values.items():
        if overwrite or value is not None:
            setattr(row, field, value)


def _pick(doc: Dict[str, Any], fields) -> Dict[str, Any]:
    return {f: doc[f] for f in fields if f in doc}


def _invoice_values(doc: Dict[str, Any]) -> Dict[str, Any]:
    values = _pick(doc, INVOICE_FIELDS)
    for field in ("paid_at", "created_at"):
        if isinstance(values.get(field), str):
            values[field] = datetime.fromisoformat(values[field])
    for field in ("rate_per_class", "adjustment", "total_amount"):
        if field in values:
            values[field] = Decimal(str(values[field]))
    if "student_id" in values:
        values["student_id"] = uuid.UUID(str(values["student_id"]))
    return values


def import_all(db: Session, data: Dict[str, Any], overwrite: bool = False) -> Dict[str, int]:
    """
    Upsert every document in a backup by id.

    Without overwrite, fields missing from the backup keep their current value.
    """
    if not data.get("version") or not data.get("export_date"):
        raise ValidationError("Invalid backup file format")

    counts = {"students": 0, "invoices": 0, "attendance": 0}
    try:
        for doc in data.get("students") or []:
            sid = uuid.UUID(str(doc["id"]))
            _upsert(db, Student, sid, {"id": sid, **_pick(doc, STUDENT_FIELDS)}, overwrite)
            counts["students"] += 1

        for doc in data.get("invoices") or []:
            iid = uuid.UUID(str(doc["id"]))
            values = _invoice_values(doc)
            _upsert(db, Invoice, iid, {"id": iid, **values}, overwrite)
            counts["invoices"] += 1

        for doc in data.get("attendance") or []:
            values = _pick(doc, ATTENDANCE_FIELDS)
            values["student_id"] = uuid.UUID(str(values["student_id"]))
            _upsert(db, MonthlyAttendance, doc["id"], {"id": doc["id"], **values}, overwrite)
            counts["attendance"] += 1

        if data.get("settings"):
            incoming = BusinessProfile.model_validate(data["settings"]).model_dump()
            row = db.get(AppSetting, BUSINESS_KEY)
            if row is None:
                db.add(AppSetting(key=BUSINESS_KEY, value=incoming))
            elif overwrite:
                row.value = incoming
            else:
                row.value = {**row.value, **incoming}

        db.commit()
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        db.rollback()
        raise ValidationError(f"Invalid backup document: {e}") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Backup import failed: {e}")
        raise StoreError("Could not import backup") from e

    logger.info(f"Imported backup: {counts}")
    return counts
