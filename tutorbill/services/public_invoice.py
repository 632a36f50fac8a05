# tutorbill/services/public_invoice.py - Read-only projection of an invoice for the shareable link
import calendar
import logging
from datetime import timedelta
from decimal import Decimal, ROUND_FLOOR
from typing import Optional

from tutorbill.core.config import settings
from tutorbill.models.invoice import Invoice
from tutorbill.schemas.business import BusinessProfile, BankAccount
from tutorbill.schemas.invoice import InvoiceOut, BusinessDetails, PublicInvoiceOut

logger = logging.getLogger(__name__)

ONES = [
    "", "ONE", "TWO", "THREE", "FOUR", "FIVE", "SIX", "SEVEN", "EIGHT", "NINE", "TEN",
    "ELEVEN", "TWELVE", "THIRTEEN", "FOURTEEN", "FIFTEEN", "SIXTEEN", "SEVENTEEN",
    "EIGHTEEN", "NINETEEN",
]
TENS = ["", "", "TWENTY", "THIRTY", "FORTY", "FIFTY", "SIXTY", "SEVENTY", "EIGHTY", "NINETY"]

ONE_CRORE = 10_000_000


def _words(n: int) -> str:
    if n < 20:
        return ONES[n]
    if n < 100:
        return TENS[n // 10] + (" " + ONES[n % 10] if n % 10 else "")
    if n < 1000:
        return ONES[n // 100] + " HUNDRED" + (" " + _words(n % 100) if n % 100 else "")
    if n < 100_000:
        return _words(n // 1000) + " THOUSAND" + (" " + _words(n % 1000) if n % 1000 else "")
    return _words(n // 100_000) + " LAKH" + (" " + _words(n % 100_000) if n % 100_000 else "")


def amount_in_words(amount) -> str:
    """
    Rupee amount in Indian-system words, e.g. 3996 -> "THREE THOUSAND NINE
    HUNDRED NINETY SIX RUPEES ONLY". Paise are dropped.
    """
    value = int(Decimal(amount).to_integral_value(rounding=ROUND_FLOOR))
    prefix = ""
    if value < 0:
        prefix, value = "MINUS ", -value
    if value >= ONE_CRORE:
        return "WAY TOO BIG"
    words = _words(value) if value else "ZERO"
    return f"{prefix}{words} RUPEES ONLY"


def plain_amount(amount) -> str:
    """3996.00 -> "3996", 5794.50 -> "5794.5" """
    value = Decimal(amount)
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def format_period(invoice: Invoice) -> str:
    """"Mar 2024" for one month, "Mar - Apr 2024" for a span"""
    end = f"{calendar.month_abbr[int(invoice.end_month)]}"
    if invoice.month_count > 1:
        start = calendar.month_abbr[int(invoice.start_month)]
        return f"{start} - {end} {invoice.end_year}"
    return f"{end} {invoice.end_year}"


def invoice_link(invoice_id) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/invoice/{invoice_id}"


def resolve_upi_id(invoice: Invoice, profile: BusinessProfile) -> str:
    """Bank snapshot first, then the first configured account, then the profile-level id"""
    if invoice.bank_snapshot and invoice.bank_snapshot.get("upi_id"):
        return invoice.bank_snapshot["upi_id"]
    if profile.bank_accounts and profile.bank_accounts[0].upi_id:
        return profile.bank_accounts[0].upi_id
    return profile.upi_id


def upi_payload(upi_id: str, business_name: str, amount) -> str:
    return f"upi://pay?pa={upi_id}&pn={business_name}&am={plain_amount(amount)}&cu=INR"


def build_public_view(invoice: Invoice, profile: BusinessProfile) -> PublicInvoiceOut:
    bank: Optional[BankAccount] = None
    if invoice.bank_snapshot:
        bank = BankAccount.model_validate(invoice.bank_snapshot)
    elif profile.bank_accounts:
        bank = profile.bank_accounts[0]

    upi_id = resolve_upi_id(invoice, profile)
    payload = upi_payload(upi_id, profile.business_name, invoice.total_amount) if upi_id else None

    return PublicInvoiceOut(
        invoice=InvoiceOut.model_validate(invoice),
        business=BusinessDetails(
            name=profile.business_name,
            tagline=profile.tagline,
            address=profile.address,
            email=profile.email,
            phone=profile.phone,
            website=profile.website,
            gstin=profile.gstin,
            pan=profile.pan,
        ),
        bank=bank,
        upi_id=upi_id,
        upi_payload=payload,
        amount_in_words=amount_in_words(invoice.total_amount),
        period=format_period(invoice),
        due_date=(invoice.created_at + timedelta(days=settings.INVOICE_DUE_DAYS)).date(),
        is_paid=invoice.status == "Paid",
    )
