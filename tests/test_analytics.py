# tests/test_analytics.py
from datetime import date
from decimal import Decimal

from tutorbill.models.expense import Expense
from tutorbill.schemas.invoice import GenerateInvoiceRequest
from tutorbill.services import analytics
from tutorbill.services.billing import BillingService, list_invoices
from tutorbill.services.attendance import month_roster

PRICING = {"Beginner": 999, "Intermediate": 1499, "Advanced": 1499}


def _dates(month, days):
    return [date(2024, month, d) for d in days]


def test_recent_months_cross_year():
    assert analytics.recent_months(date(2024, 2, 10), 3) == [(2023, 12), (2024, 1), (2024, 2)]


def test_monthly_stats_excludes_quotations(db, make_student, record_classes, business_profile):
    business_profile()
    student = make_student()
    record_classes(student, 4, 2024, _dates(4, [6, 13]))
    service = BillingService(db)
    invoice = service.generate(GenerateInvoiceRequest(student_id=student.id, end_month=4, end_year=2024))
    service.toggle_status(invoice.id)
    service.generate(GenerateInvoiceRequest(student_id=student.id, end_month=4, end_year=2024, type="quotation"))

    stats = analytics.monthly_stats(list_invoices(db), month_roster(db, 4, 2024).values(), date(2024, 5, 15))

    assert [s["month"] for s in stats] == ["Dec", "Jan", "Feb", "Mar", "Apr", "May"]
    april = stats[4]
    assert april["revenue"] == Decimal("1998")
    assert april["paid"] == Decimal("1998")
    assert april["invoices"] == 1
    assert april["classes"] == 2


def test_insights_churn_and_forecast(db, make_student, record_classes):
    steady = make_student("Steady", "Beginner")
    gone = make_student("Gone", "Intermediate")
    fading = make_student("Fading", "Advanced")
    star = make_student("Star", "Beginner")

    record_classes(steady, 4, 2024, _dates(4, [6, 13]))
    record_classes(steady, 5, 2024, _dates(5, [4, 11]))
    record_classes(gone, 4, 2024, _dates(4, [6, 7, 13]))
    record_classes(fading, 4, 2024, _dates(4, [6, 7, 13, 14, 20, 21]))
    record_classes(fading, 5, 2024, _dates(5, [4, 5]))
    record_classes(star, 5, 2024, _dates(5, [1, 2, 3, 4, 5, 6, 7, 8]))
    db.add(Expense(description="Arduino kits", amount=Decimal("2500"), spent_on=date(2024, 5, 3)))
    db.add(Expense(description="April rent", amount=Decimal("9000"), spent_on=date(2024, 4, 1)))
    db.commit()

    students = [steady, gone, fading, star]
    attendance = list(month_roster(db, 4, 2024).values()) + list(month_roster(db, 5, 2024).values())
    expenses = db.query(Expense).all()

    result = analytics.insights(students, attendance, expenses, PRICING, date(2024, 5, 25))

    assert result["active_students"] == 3
    assert result["growth_rate"] == 0.0
    assert result["revenue_forecast"] == Decimal(2 * 999 + 2 * 1499 + 8 * 999)
    assert result["total_expenses"] == Decimal("2500")
    assert result["net_profit"] == result["revenue_forecast"] - Decimal("2500")
    assert {(c["name"], c["severity"]) for c in result["churn_risk"]} == {("Gone", "high"), ("Fading", "medium")}
    assert [p["name"] for p in result["top_performers"]] == ["Star"]
    assert [m["name"] for m in result["revenue_chart"]] == ["04/24", "05/24"]


def test_early_month_does_not_flag_churn(make_student, record_classes, db):
    student = make_student()
    record_classes(student, 4, 2024, _dates(4, [6]))
    attendance = list(month_roster(db, 4, 2024).values())

    result = analytics.insights([student], attendance, [], PRICING, date(2024, 5, 5))
    assert result["churn_risk"] == []
    assert result["growth_rate"] == -100.0


def test_course_distribution_and_top_students(make_student, record_classes, db):
    a = make_student("A", "Beginner")
    b = make_student("B", "Advanced")
    record_classes(a, 4, 2024, _dates(4, [6]))
    record_classes(b, 4, 2024, _dates(4, [6, 7]))

    assert analytics.course_distribution([a, b]) == [
        {"name": "Beginner", "value": 1},
        {"name": "Intermediate", "value": 0},
        {"name": "Advanced", "value": 1},
    ]
    top = analytics.top_students(month_roster(db, 4, 2024).values(), [a, b])
    assert [t["name"] for t in top] == ["B", "A"]


def test_stats_route(auth_client, make_student, record_classes, business_profile):
    business_profile()
    record_classes(make_student(), 4, 2024, _dates(4, [6, 13]))

    response = auth_client.get("/api/analytics/stats", params={"today": "2024-04-30", "months": 2})

    assert response.status_code == 200
    body = response.json()
    assert [m["month"] for m in body["monthly"]] == ["Mar", "Apr"]
    assert body["total_classes"] == 2
