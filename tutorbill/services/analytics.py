# tutorbill/services/analytics.py - Revenue, attendance and churn statistics over fetched documents
import calendar
from collections import Counter, defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Iterable

from tutorbill.models.attendance import MonthlyAttendance
from tutorbill.models.expense import Expense
from tutorbill.models.invoice import Invoice
from tutorbill.models.student import Student

TOP_PERFORMER_CLASSES = 8


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def recent_months(today: date, count: int = 6) -> List[tuple[int, int]]:
    """(year, month) pairs for the last `count` months including today's, oldest first"""
    return [_shift_month(today.year, today.month, -offset) for offset in range(count - 1, -1, -1)]


def monthly_stats(
    invoices: Iterable[Invoice],
    attendance: Iterable[MonthlyAttendance],
    today: date,
    months: int = 6,
) -> List[dict]:
    """Invoiced / paid revenue by billing end month alongside classes held"""
    invoices = [i for i in invoices if not i.is_quotation]
    attendance = list(attendance)
    stats = []
    for year, month in recent_months(today, months):
        mm, yyyy = f"{month:02d}", f"{year:04d}"
        month_invoices = [i for i in invoices if i.end_month == mm and i.end_year == yyyy]
        revenue = sum((i.total_amount for i in month_invoices), Decimal('0'))
        paid = sum((i.total_amount for i in month_invoices if i.status == "Paid"), Decimal('0'))
        classes = sum(a.class_count for a in attendance if a.month == mm and a.year == yyyy)
        stats.append({
            "month": calendar.month_abbr[month],
            "full_month": f"{calendar.month_name[month]} {yyyy}",
            "revenue": revenue,
            "paid": paid,
            "outstanding": revenue - paid,
            "classes": classes,
            "invoices": len(month_invoices),
        })
    return stats


def course_distribution(students: Iterable[Student]) -> List[dict]:
    counts = Counter({"Beginner": 0, "Intermediate": 0, "Advanced": 0})
    for student in students:
        counts[student.course or "Beginner"] += 1
    return [{"name": name, "value": value} for name, value in counts.items()]


def top_students(attendance: Iterable[MonthlyAttendance], students: Iterable[Student], limit: int = 5) -> List[dict]:
    """Students with the most classes overall; attendance of deleted students is skipped"""
    by_id = {s.id: s for s in students}
    totals: Dict = defaultdict(int)
    for record in attendance:
        if record.student_id in by_id:
            totals[record.student_id] += record.class_count
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)[:limit]
    return [
        {"student_id": sid, "name": by_id[sid].name, "course": by_id[sid].course, "classes": count}
        for sid, count in ranked
    ]


def insights(
    students: List[Student],
    attendance: List[MonthlyAttendance],
    expenses: List[Expense],
    pricing: Dict[str, int],
    today: date,
) -> dict:
    """
    Month-to-date business health.

    Churn risk flags students who attended last month but have no classes
    this month after the first week (high), or under half of last month's
    classes after the 20th (medium).
    """
    cur_key = (f"{today.month:02d}", f"{today.year:04d}")
    prev_year, prev_month = _shift_month(today.year, today.month, -1)
    prev_key = (f"{prev_month:02d}", f"{prev_year:04d}")

    by_student_month = {(a.student_id, a.month, a.year): a.class_count for a in attendance}
    fees = {s.id: pricing.get(s.course, 0) for s in students}

    current_active = previous_active = 0
    forecast = 0
    churn_risk = []
    top_performers = []
    for student in students:
        current = by_student_month.get((student.id, *cur_key), 0)
        previous = by_student_month.get((student.id, *prev_key), 0)

        if current > 0:
            current_active += 1
            forecast += current * fees[student.id]
        if previous > 0:
            previous_active += 1
            if current == 0 and today.day > 7:
                churn_risk.append({"student_id": student.id, "name": student.name,
                                   "reason": "No classes this month", "severity": "high"})
            elif current < previous * 0.5 and today.day > 20:
                churn_risk.append({"student_id": student.id, "name": student.name,
                                   "reason": "Attendance dropped 50%", "severity": "medium"})
        if current >= TOP_PERFORMER_CLASSES:
            top_performers.append({"student_id": student.id, "name": student.name, "classes": current})

    month_expenses = sum(
        (e.amount for e in expenses if e.spent_on.year == today.year and e.spent_on.month == today.month),
        Decimal('0'),
    )
    growth = ((current_active - previous_active) / previous_active * 100) if previous_active else 0.0

    return {
        "total_students": len(students),
        "active_students": current_active,
        "growth_rate": round(growth, 1),
        "revenue_forecast": Decimal(forecast),
        "total_expenses": month_expenses,
        "net_profit": Decimal(forecast) - month_expenses,
        "churn_risk": churn_risk,
        "top_performers": top_performers,
        "revenue_chart": attendance_revenue_chart(students, attendance, pricing),
    }


def attendance_revenue_chart(
    students: List[Student],
    attendance: List[MonthlyAttendance],
    pricing: Dict[str, int],
    months: int = 6,
) -> List[dict]:
    """Earned revenue (classes x fee) and active students for the latest months with attendance"""
    fees = {s.id: pricing.get(s.course, 0) for s in students}
    buckets: Dict[str, dict] = {}
    for record in attendance:
        key = f"{record.year}-{record.month}"
        bucket = buckets.setdefault(key, {
            "name": f"{record.month}/{record.year[2:]}", "revenue": 0, "students": set()
        })
        if record.class_count > 0:
            bucket["revenue"] += record.class_count * fees.get(record.student_id, 0)
            bucket["students"].add(record.student_id)
    return [
        {"name": buckets[k]["name"], "revenue": buckets[k]["revenue"], "active": len(buckets[k]["students"])}
        for k in sorted(buckets)
    ][-months:]
