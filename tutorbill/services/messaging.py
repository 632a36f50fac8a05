# tutorbill/services/messaging.py - WhatsApp message templates for parents
import logging
import re
from typing import Optional, Dict, List
from urllib.parse import quote

from jinja2 import Template

from tutorbill.core.config import settings
from tutorbill.core.errors import NotFoundError
from tutorbill.models.invoice import Invoice
from tutorbill.models.student import Student
from tutorbill.services.public_invoice import format_period, invoice_link

logger = logging.getLogger(__name__)


class MessageTemplates:
    """Message templates shared over WhatsApp"""

    INVOICE = """Hello {{ parent_name }}!

Here is the invoice from {{ business_name }} for {{ student_name }}:

📄 Invoice: #{{ invoice_id }}
📅 Period: {{ period }}
📚 Classes: {{ class_count }}
💰 Amount: ₹{{ amount }}

🔗 View Invoice: {{ invoice_link }}

Thank you!"""

    REMINDER = """Hi {{ parent_name }},

This is a friendly reminder from {{ business_name }}.

Your payment of ₹{{ amount }} for {{ student_name }}'s classes is pending.

📄 Invoice: #{{ invoice_id }}

🔗 Pay Now: {{ invoice_link }}

Please make the payment at your earliest convenience. Thank you!"""

    RECEIPT = """Hi {{ parent_name }}! 🎉

Thank you for your payment!

We have received ₹{{ amount }} for {{ student_name }}'s classes.

📄 Invoice: #{{ invoice_id }}
✅ Status: PAID

📥 Download Receipt: {{ invoice_link }}

Thank you for choosing {{ business_name }}!"""

    CLASS_UPDATE = """Hi {{ parent_name }}!

Quick update about {{ student_name }}'s progress at {{ business_name }}:

📅 This month: {{ class_count }} classes attended
📊 Total classes: {{ total_classes }}

Keep up the great work! 🌟

Regards,
{{ business_name }}"""

    SCHEDULE = """Hi {{ parent_name }}!

Here's {{ student_name }}'s upcoming schedule at {{ business_name }}:

📅 Day: {{ weekday }}
⏰ Time: {{ class_time }}
📍 Topic: {{ topic }}

See you soon! 🚀

{{ business_name }}"""

    WELCOME = """Welcome to {{ business_name }}! 🎉

Hi {{ parent_name }},

We're excited to have {{ student_name }} join us!

📚 Course: {{ course }}
📅 Start Date: {{ start_date }}

If you have any questions, feel free to reach out.

Let's learn and grow together! 🚀

Best regards,
{{ business_name }}"""

    CATALOG: Dict[str, Dict[str, str]] = {
        "invoice": {"name": "Invoice Share", "template": INVOICE},
        "reminder": {"name": "Payment Reminder", "template": REMINDER},
        "receipt": {"name": "Payment Received", "template": RECEIPT},
        "class_update": {"name": "Class Update", "template": CLASS_UPDATE},
        "schedule": {"name": "Class Schedule", "template": SCHEDULE},
        "welcome": {"name": "Welcome Message", "template": WELCOME},
    }

    @classmethod
    def names(cls) -> List[dict]:
        return [{"id": key, "name": entry["name"]} for key, entry in cls.CATALOG.items()]


def format_rupees(amount) -> str:
    """Indian digit grouping: 123456 -> 1,23,456"""
    value = int(amount) if amount == int(amount) else float(amount)
    whole, _, fraction = f"{value}".partition(".")
    sign = ""
    if whole.startswith("-"):
        sign, whole = "-", whole[1:]
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return sign + whole + (f".{fraction}" if fraction else "")


def build_context(
    business_name: str,
    invoice: Optional[Invoice] = None,
    student: Optional[Student] = None,
    extra: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """Placeholder values, preferring the invoice's frozen snapshot over the live student"""
    snapshot = invoice.student_snapshot if invoice else {}
    context = {
        "parent_name": snapshot.get("parent_name") or (student.parent_name if student else "") or "Parent",
        "student_name": snapshot.get("name") or (student.name if student else "") or "Student",
        "business_name": business_name,
        "invoice_id": invoice.display_number if invoice else "XXXXXX",
        "period": format_period(invoice) if invoice else "Month Year",
        "class_count": str(invoice.class_count) if invoice else "0",
        "amount": format_rupees(invoice.total_amount) if invoice else "0",
        "invoice_link": invoice_link(invoice.id) if invoice else "",
        "course": snapshot.get("course") or (student.course if student else "") or "Beginner",
        "total_classes": "0",
        "weekday": "Saturday",
        "class_time": "10:00 AM",
        "topic": "Class Session",
        "start_date": "Today",
    }
    if extra:
        context.update({k: v for k, v in extra.items() if v is not None})
    return context


def render_message(template_id: str, context: Dict[str, str]) -> str:
    entry = MessageTemplates.CATALOG.get(template_id)
    if entry is None:
        raise NotFoundError(f"Unknown message template: {template_id}")
    return Template(entry["template"]).render(**context)


def whatsapp_link(phone: str, message: str) -> str:
    """wa.me deep link; non-digits are stripped from the phone number"""
    digits = re.sub(r"\D", "", phone or "")
    return f"https://wa.me/{settings.WHATSAPP_COUNTRY_CODE}{digits}?text={quote(message, safe='')}"


def compose(
    template_id: str,
    business_name: str,
    invoice: Optional[Invoice] = None,
    student: Optional[Student] = None,
    extra: Optional[Dict[str, str]] = None,
) -> dict:
    """Render a template and the link that opens it in WhatsApp"""
    context = build_context(business_name, invoice=invoice, student=student, extra=extra)
    message = render_message(template_id, context)
    phone = (invoice.student_snapshot.get("phone") if invoice else "") or (student.phone if student else "")
    logger.debug(f"Composed '{template_id}' message for {context['student_name']}")
    return {
        "template_id": template_id,
        "message": message,
        "phone": phone or "",
        "whatsapp_url": whatsapp_link(phone or "", message),
    }
