# tests/test_billing.py
import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from tutorbill.core.errors import NotFoundError, ValidationError, StoreError
from tutorbill.schemas.invoice import (
    GenerateInvoiceRequest, BulkGenerateRequest, InvoiceEdit, StudentSnapshot
)
from tutorbill.services.billing import (
    BillingService, BillingMonth, billing_months, weekend_dates, compute_total,
    default_adjustment_label, list_invoices, invoice_stats,
)

MARCH_CLASSES = [date(2024, 3, 2), date(2024, 3, 9), date(2024, 3, 16), date(2024, 3, 23)]


@pytest.fixture
def beginner(make_student, record_classes, business_profile):
    business_profile()
    student = make_student("Aarav Shah", "Beginner")
    record_classes(student, 3, 2024, MARCH_CLASSES)
    return student


def _request(student, **overrides):
    fields = {"student_id": student.id, "end_month": 4, "end_year": 2024, "month_count": 2}
    fields.update(overrides)
    return GenerateInvoiceRequest(**fields)


# -------- period helpers --------

def test_billing_months_are_chronological_across_year_boundary():
    months = billing_months(1, 2024, 3)
    assert months == [BillingMonth(11, 2023), BillingMonth(12, 2023), BillingMonth(1, 2024)]
    assert [m.label for m in months] == ["Nov 2023", "Dec 2023", "Jan 2024"]


def test_billing_months_rejects_unsupported_span():
    with pytest.raises(ValidationError):
        billing_months(4, 2024, 5)


def test_weekend_dates_for_february_leap_year():
    days = weekend_dates([BillingMonth(2, 2024)])
    assert days == [
        date(2024, 2, 3), date(2024, 2, 4), date(2024, 2, 10), date(2024, 2, 11),
        date(2024, 2, 17), date(2024, 2, 18), date(2024, 2, 24), date(2024, 2, 25),
    ]


def test_compute_total_and_default_labels():
    assert compute_total(6, Decimal("999"), Decimal("-200")) == Decimal("5794")
    assert default_adjustment_label(Decimal("-1")) == "Discount"
    assert default_adjustment_label(Decimal("0")) == "Additional Fee"
    assert default_adjustment_label(Decimal("250")) == "Additional Fee"


# -------- generation --------

def test_attendance_based_invoice(db, beginner):
    invoice = BillingService(db).generate(_request(beginner))

    assert invoice.actual_attendance_count == 4
    assert invoice.class_count == 4
    assert invoice.total_amount == Decimal("3996")
    assert invoice.is_manual_billing is False
    assert invoice.status == "Unpaid"
    assert (invoice.start_month, invoice.start_year, invoice.end_month, invoice.end_year) == ("03", "2024", "04", "2024")
    assert [(m["label"], m["class_count"]) for m in invoice.monthly_breakdown] == [("Mar 2024", 4), ("Apr 2024", 0)]
    assert [s["date"] for s in invoice.sessions] == [d.isoformat() for d in MARCH_CLASSES]
    assert invoice.adj_label == "Additional Fee"


def test_manual_count_with_discount(db, beginner):
    invoice = BillingService(db).generate(
        _request(beginner, manual_class_count=6, adjustment=-200, adj_label="Sibling Discount")
    )

    assert invoice.class_count == 6
    assert invoice.actual_attendance_count == 4
    assert invoice.total_amount == Decimal("5794")
    assert invoice.is_manual_billing is True
    assert invoice.adj_label == "Sibling Discount"
    assert [s["date"] for s in invoice.sessions] == [
        "2024-03-02", "2024-03-03", "2024-03-09", "2024-03-10", "2024-03-16", "2024-03-17"
    ]
    assert all(s["topic"] == "Planned Session" for s in invoice.sessions)
    assert all(s["location"] == "MAKER WORKS" for s in invoice.sessions)


def test_explicit_dates_set_count_and_sessions(db, beginner):
    invoice = BillingService(db).generate(
        _request(beginner, month_count=1, session_dates=[date(2024, 4, 6), date(2024, 4, 7)])
    )

    assert [s["date"] for s in invoice.sessions] == ["2024-04-06", "2024-04-07"]
    assert all(s["topic"] == "Class Session" for s in invoice.sessions)
    assert invoice.class_count == 2
    assert invoice.is_manual_billing is True
    assert invoice.total_amount == Decimal("1998")


def test_explicit_dates_take_precedence_over_weekend_synthesis(db, beginner):
    invoice = BillingService(db).generate(
        _request(beginner, manual_class_count=5, session_dates=[date(2024, 4, 10)])
    )

    assert invoice.class_count == 5
    assert [s["date"] for s in invoice.sessions] == ["2024-04-10"]


def test_unpriced_course_bills_only_the_adjustment(db, make_student, business_profile):
    business_profile()
    student = make_student("Kabir", "Drone Racing")

    invoice = BillingService(db).generate(_request(student, manual_class_count=4, adjustment="150"))

    assert invoice.rate_per_class == Decimal("0")
    assert invoice.total_amount == Decimal("150")


def test_manual_count_of_zero_is_an_override(db, beginner):
    invoice = BillingService(db).generate(_request(beginner, manual_class_count=0))

    assert invoice.class_count == 0
    assert invoice.sessions == []
    assert invoice.is_manual_billing is True
    assert invoice.total_amount == Decimal("0")


def test_short_weekend_supply_truncates_sessions(db, beginner):
    invoice = BillingService(db).generate(
        _request(beginner, end_month=2, month_count=1, manual_class_count=12)
    )

    assert invoice.class_count == 12
    assert len(invoice.sessions) == 8
    assert invoice.total_amount == Decimal("11988")


def test_cancelled_sessions_are_not_billed(db, make_student, record_classes, business_profile):
    business_profile()
    student = make_student("Diya", "Intermediate")
    record_classes(student, 5, 2024, [date(2024, 5, 4), date(2024, 5, 11)])
    record_classes(student, 6, 2024, [date(2024, 6, 1)], status="cancelled")

    invoice = BillingService(db).generate(_request(student, end_month=6, month_count=2))

    assert invoice.actual_attendance_count == 2
    assert invoice.total_amount == Decimal("2998")


def test_non_numeric_adjustment_is_zero(db, beginner):
    invoice = BillingService(db).generate(_request(beginner, adjustment="ten rupees"))
    assert invoice.adjustment == Decimal("0")
    assert invoice.total_amount == Decimal("3996")


@pytest.mark.parametrize("raw, stored", [
    ("1.005", "1.01"),
    ("2.675", "2.68"),
    ("0.045", "0.05"),
    ("0.005", "0.01"),
    ("-0.005", "-0.01"),
    ("250.5", "250.50"),
])
def test_sub_paise_adjustment_keeps_stored_total_consistent(db, beginner, raw, stored):
    invoice = BillingService(db).generate(_request(beginner, adjustment=raw))
    returned = (invoice.adjustment, invoice.total_amount)

    db.expire_all()
    reloaded = BillingService(db).get(invoice.id)

    assert reloaded.adjustment == Decimal(stored)
    assert reloaded.total_amount == reloaded.class_count * reloaded.rate_per_class + reloaded.adjustment
    assert returned == (reloaded.adjustment, reloaded.total_amount)


def test_regenerating_from_same_attendance_gives_same_figures(db, beginner):
    service = BillingService(db)
    first = service.generate(_request(beginner, adjustment="-100"))
    second = service.generate(_request(beginner, adjustment="-100"))

    assert first.id != second.id
    assert second.actual_attendance_count == first.actual_attendance_count == 4
    assert second.class_count == first.class_count
    assert second.monthly_breakdown == first.monthly_breakdown
    assert second.sessions == first.sessions
    assert second.total_amount == first.total_amount == Decimal("3896")


def test_unknown_student_raises_not_found(db, business_profile):
    business_profile()
    with pytest.raises(NotFoundError):
        BillingService(db).generate(GenerateInvoiceRequest(student_id=uuid.uuid4(), end_month=4, end_year=2024))


def test_quotation_starts_in_quotation_status(db, beginner):
    quote = BillingService(db).generate(_request(beginner, type="quotation"))
    assert quote.type == "quotation"
    assert quote.status == "Quotation"
    assert quote.paid_at is None


# -------- snapshots --------

def test_snapshots_do_not_follow_later_changes(db, beginner, business_profile, hdfc_account):
    business_profile(banks=[hdfc_account])
    invoice = BillingService(db).generate(_request(beginner))

    beginner.name = "Aarav S."
    db.commit()
    business_profile(banks=[hdfc_account.model_copy(update={"upi_id": "changed@upi"})])

    db.refresh(invoice)
    assert invoice.student_snapshot["name"] == "Aarav Shah"
    assert invoice.bank_snapshot["upi_id"] == "makerworks@hdfcbank"


def test_bank_selection(db, beginner, business_profile, hdfc_account):
    sbi = hdfc_account.model_copy(update={"id": "sbi01", "bank_name": "SBI", "upi_id": "mw@sbi"})
    business_profile(banks=[hdfc_account, sbi])
    service = BillingService(db)

    assert service.generate(_request(beginner)).bank_snapshot["id"] == "hdfc01"
    assert service.generate(_request(beginner, bank_account_id="sbi01")).bank_snapshot["bank_name"] == "SBI"
    with pytest.raises(ValidationError):
        service.generate(_request(beginner, bank_account_id="missing"))
    assert len(list_invoices(db)) == 2


def test_no_bank_accounts_leaves_snapshot_empty(db, beginner):
    assert BillingService(db).generate(_request(beginner)).bank_snapshot is None


# -------- bulk --------

def test_bulk_generation_aborts_on_first_missing_student(db, make_student, record_classes, business_profile):
    business_profile()
    first = make_student("Aarav")
    third = make_student("Ira")
    record_classes(first, 4, 2024, [date(2024, 4, 6)])
    progress = []

    request = BulkGenerateRequest(student_ids=[first.id, uuid.uuid4(), third.id], end_month=4, end_year=2024)
    with pytest.raises(NotFoundError):
        BillingService(db).generate_bulk(request, on_progress=lambda cur, total: progress.append((cur, total)))

    invoices = list_invoices(db)
    assert [i.student_id for i in invoices] == [first.id]
    assert progress == [(1, 3)]


def test_bulk_generation_applies_shared_manual_count(db, make_student, business_profile):
    business_profile()
    students = [make_student("Aarav"), make_student("Ira", "Advanced")]

    invoices = BillingService(db).generate_bulk(BulkGenerateRequest(
        student_ids=[s.id for s in students], end_month=4, end_year=2024, manual_class_count=4
    ))

    assert [i.total_amount for i in invoices] == [Decimal("3996"), Decimal("5996")]
    assert all(i.type == "invoice" and i.adjustment == 0 for i in invoices)


# -------- edit / status / delete --------

def test_edit_recomputes_total(db, beginner):
    service = BillingService(db)
    invoice = service.generate(_request(beginner))

    edited = service.edit(invoice.id, InvoiceEdit(
        class_count=5,
        rate_per_class=Decimal("1100"),
        adjustment="-500",
        adj_label="Scholarship",
        sessions=[],
        student_snapshot=StudentSnapshot(name="Aarav Shah", parent_name="Meera Shah"),
        custom_invoice_no="MW-2024-017",
    ))

    assert edited.total_amount == Decimal("5000")
    assert edited.display_number == "MW-2024-017"
    assert edited.bank_snapshot is None


def test_edit_rounds_rate_and_adjustment_to_paise(db, beginner):
    service = BillingService(db)
    invoice = service.generate(_request(beginner))

    service.edit(invoice.id, InvoiceEdit(
        class_count=3,
        rate_per_class=Decimal("999.995"),
        adjustment="0.005",
        student_snapshot=StudentSnapshot(name="Aarav Shah"),
    ))
    db.expire_all()
    reloaded = service.get(invoice.id)

    assert reloaded.rate_per_class == Decimal("1000.00")
    assert reloaded.adjustment == Decimal("0.01")
    assert reloaded.total_amount == Decimal("3000.01")


def _failing_commit():
    raise OperationalError("COMMIT", {}, Exception("database is locked"))


def test_failed_edit_leaves_invoice_unchanged(db, beginner, monkeypatch):
    service = BillingService(db)
    invoice = service.generate(_request(beginner))
    monkeypatch.setattr(db, "commit", _failing_commit)

    with pytest.raises(StoreError):
        service.edit(invoice.id, InvoiceEdit(
            class_count=10,
            rate_per_class=Decimal("1500"),
            student_snapshot=StudentSnapshot(name="Someone Else"),
        ))

    monkeypatch.undo()
    db.expire_all()
    reloaded = service.get(invoice.id)
    assert reloaded.class_count == 4
    assert reloaded.total_amount == Decimal("3996")
    assert reloaded.student_snapshot["name"] == "Aarav Shah"


def test_failed_status_toggle_leaves_invoice_unpaid(db, beginner, monkeypatch):
    service = BillingService(db)
    invoice = service.generate(_request(beginner))
    monkeypatch.setattr(db, "commit", _failing_commit)

    with pytest.raises(StoreError):
        service.toggle_status(invoice.id)

    monkeypatch.undo()
    db.expire_all()
    reloaded = service.get(invoice.id)
    assert reloaded.status == "Unpaid"
    assert reloaded.paid_at is None


def test_edit_unknown_invoice(db):
    patch = InvoiceEdit(class_count=1, rate_per_class=Decimal("1"), student_snapshot=StudentSnapshot())
    with pytest.raises(NotFoundError):
        BillingService(db).edit(uuid.uuid4(), patch)


def test_toggle_status_round_trip(db, beginner):
    service = BillingService(db)
    invoice = service.generate(_request(beginner))

    paid = service.toggle_status(invoice.id)
    assert paid.status == "Paid"
    assert paid.paid_at is not None

    unpaid = service.toggle_status(invoice.id)
    assert unpaid.status == "Unpaid"
    assert unpaid.paid_at is None


def test_quotations_cannot_be_paid(db, beginner):
    service = BillingService(db)
    quote = service.generate(_request(beginner, type="quotation"))

    with pytest.raises(ValidationError):
        service.toggle_status(quote.id)
    assert service.get(quote.id).status == "Quotation"


def test_delete_invoice(db, beginner):
    service = BillingService(db)
    invoice = service.generate(_request(beginner))
    service.delete(invoice.id)

    with pytest.raises(NotFoundError):
        service.get(invoice.id)


def test_invoice_stats_exclude_quotations(db, beginner):
    service = BillingService(db)
    paid = service.generate(_request(beginner))
    service.toggle_status(paid.id)
    service.generate(_request(beginner, manual_class_count=1))
    service.generate(_request(beginner, type="quotation"))

    stats = invoice_stats(list_invoices(db))
    assert stats["total"] == 2
    assert stats["paid"] == 1
    assert stats["unpaid"] == 1
    assert stats["total_amount"] == Decimal("4995")
    assert stats["paid_amount"] == Decimal("3996")
    assert len(list_invoices(db, doc_type="quotation")) == 1
