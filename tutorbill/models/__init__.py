# tutorbill/models/__init__.py - Import all models so SQLAlchemy can discover them

from tutorbill.models.base import Base

from tutorbill.models.student import Student
from tutorbill.models.attendance import MonthlyAttendance
from tutorbill.models.invoice import Invoice
from tutorbill.models.setting import AppSetting
from tutorbill.models.expense import Expense
from tutorbill.models.schedule import Schedule

__all__ = [
    "Base",
    "Student",
    "MonthlyAttendance",
    "Invoice",
    "AppSetting",
    "Expense",
    "Schedule",
]
