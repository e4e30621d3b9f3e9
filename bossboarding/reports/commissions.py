"""
Commission reporting.

Entries are derived per (customer, sales rep assignment) on every request and
never stored. Only customers with a positive deal amount and at least one rep
assignment produce entries.
"""

import csv
import io
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from bossboarding.config import settings
from bossboarding.schemas.customer import Customer
from bossboarding.schemas.report import CommissionEntry, CommissionReport, RepSummary

SALES_REPS = (
    {"id": "sr1", "name": "Jim Law", "email": "jlaw@laundryboss.com"},
    {"id": "sr2", "name": "John Altieri", "email": "jaltieri@laundryboss.com"},
    {"id": "sr3", "name": "Gary Rantz", "email": "grantz@laundryboss.com"},
    {"id": "sr4", "name": "Jim Garrity", "email": "jgarrity@laundryboss.com"},
)

COMMISSION_STATUS_FILTERS = ("paid_full", "paid_partial", "unpaid", "complete", "owed_now")

CSV_HEADERS = [
    "Customer", "Sales Rep", "Deal Amount", "Commission Rate", "Rep Split %",
    "Total Commission", "Rep Commission", "Payment Status", "Paid to Date",
    "Commission Owed Now", "Commission Paid", "Monthly Commission", "Paid Date", "Status",
]


def resolve_deal_amount(customer: Customer) -> float:
    """Stored deal amount, or the sum of the revenue lines when none is stored."""
    if customer.deal_amount:
        return float(customer.deal_amount)
    return float(
        (customer.non_recurring_revenue or 0)
        + (customer.monthly_recurring_fee or 0)
        + (customer.other_fees or 0)
    )


def build_commission_entries(customers: Iterable[Customer]) -> List[CommissionEntry]:
    entries = []
    for customer in customers:
        deal_amount = resolve_deal_amount(customer)
        if deal_amount <= 0 or not customer.sales_rep_assignments:
            continue

        commission_rate = customer.commission_rate or settings.DEFAULT_COMMISSION_RATE
        payment_term_months = customer.payment_term_months or settings.DEFAULT_PAYMENT_TERM_MONTHS
        paid_to_date = customer.paid_to_date_amount or 0
        commission_paid = customer.commission_paid_amount or 0

        total_commission = deal_amount * commission_rate / 100
        commission_on_paid = paid_to_date * commission_rate / 100
        monthly_base = (deal_amount - paid_to_date) / payment_term_months * commission_rate / 100

        for assignment in customer.sales_rep_assignments:
            split = assignment.commission_percent
            rep_commission_on_paid = commission_on_paid * split / 100
            entries.append(CommissionEntry(
                customer_id=customer.id,
                customer_name=customer.business_name,
                sales_rep_id=assignment.sales_rep_id,
                sales_rep_name=assignment.sales_rep_name or rep_name(assignment.sales_rep_id),
                deal_amount=deal_amount,
                commission_rate=commission_rate,
                commission_percent=split,
                total_commission=total_commission,
                rep_commission=total_commission * split / 100,
                payment_status=customer.payment_status,
                paid_to_date=paid_to_date,
                commission_on_paid=commission_on_paid,
                rep_commission_on_paid=rep_commission_on_paid,
                commission_paid=commission_paid,
                commission_owed_now=max(0.0, rep_commission_on_paid - commission_paid),
                payment_term_months=payment_term_months,
                monthly_commission=monthly_base * split / 100,
                paid_date=customer.paid_date,
                status=customer.status,
            ))
    return entries


def rep_name(sales_rep_id: str) -> str:
    for rep in SALES_REPS:
        if rep["id"] == sales_rep_id:
            return rep["name"]
    return sales_rep_id


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        return date.fromisoformat(value[:10])


def _matches_status(entry: CommissionEntry, status: str) -> bool:
    if status == "paid_full":
        return entry.payment_status == "paid_in_full"
    if status in ("paid_partial", "unpaid"):
        return entry.payment_status == status
    if status == "complete":
        return entry.status == "complete"
    if status == "owed_now":
        return entry.commission_owed_now > 0
    return True


def filter_commission_entries(
    entries: Iterable[CommissionEntry],
    rep_id: Optional[str] = None,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[CommissionEntry]:
    """
    Apply the report filters.

    The date range only applies to entries that have a paid date; entries
    without one always pass.
    """
    filtered = []
    for entry in entries:
        if rep_id and rep_id != "all" and entry.sales_rep_id != rep_id:
            continue
        if status and status != "all" and not _matches_status(entry, status):
            continue

        paid = _parse_date(entry.paid_date)
        if paid and date_from and paid < date_from:
            continue
        if paid and date_to and paid > date_to:
            continue

        filtered.append(entry)
    return filtered


def summarize_by_rep(entries: Iterable[CommissionEntry]) -> List[RepSummary]:
    """Per-rep totals. Known reps are always listed, even with no deals."""
    summaries: Dict[str, RepSummary] = {
        rep["id"]: RepSummary(sales_rep_id=rep["id"], sales_rep_name=rep["name"])
        for rep in SALES_REPS
    }
    for entry in entries:
        summary = summaries.setdefault(
            entry.sales_rep_id,
            RepSummary(sales_rep_id=entry.sales_rep_id, sales_rep_name=entry.sales_rep_name),
        )
        summary.total_deals += 1
        summary.total_commission += entry.rep_commission
        summary.commission_owed_now += entry.commission_owed_now
        summary.commission_paid += entry.commission_paid
        if entry.payment_status != "paid_in_full":
            summary.monthly_commission += entry.monthly_commission
    return list(summaries.values())


def commission_report(
    customers: Iterable[Customer],
    rep_id: Optional[str] = None,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> CommissionReport:
    entries = build_commission_entries(customers)
    filtered = filter_commission_entries(entries, rep_id, status, date_from, date_to)
    return CommissionReport(
        entries=filtered,
        # Summaries cover every entry; totals follow the filters
        summaries=summarize_by_rep(entries),
        total_commission=sum(e.rep_commission for e in filtered),
        total_owed_now=sum(e.commission_owed_now for e in filtered),
        total_paid=sum(e.commission_paid for e in filtered),
        total_monthly=sum(e.monthly_commission for e in filtered if e.payment_status != "paid_in_full"),
    )


def commissions_to_csv(entries: Iterable[CommissionEntry]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for e in entries:
        paid = _parse_date(e.paid_date)
        writer.writerow([
            e.customer_name,
            e.sales_rep_name,
            f"{e.deal_amount:.2f}",
            f"{e.commission_rate:.1f}%",
            f"{e.commission_percent:.1f}%",
            f"{e.total_commission:.2f}",
            f"{e.rep_commission:.2f}",
            e.payment_status,
            f"{e.paid_to_date:.2f}",
            f"{e.commission_owed_now:.2f}",
            f"{e.commission_paid:.2f}",
            f"{e.monthly_commission:.2f}",
            paid.isoformat() if paid else "",
            e.status,
        ])
    return output.getvalue()


def csv_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"commissions-report-{today.isoformat()}.csv"
