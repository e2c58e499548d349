# Overview: Read-only debt and profit reports computed over job snapshots.

"""
Report Service

WHY: Bookkeepers chase receivables per customer, payables per shipping line,
and jobs with missing paperwork (no invoice, no bank, deposits with no
customer). Management looks at profit per month and per year.

DESIGN:
- Report builders are pure functions over JobRecord lists; build_report()
  and the profit rollups load the snapshot from the database.
- A job counts as paid once a receiving bank is set.
- Customer identity: id or code first, then a trimmed case-insensitive
  name/code match, else the raw name (key "NAME_<name>").
- Deposits are not receivables; they are reported in their own column.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional

from flask import current_app

from ..extensions import db
from ..models import Customer
from ..records import JobRecord
from .booking_service import aggregate_booking, load_authoritative_details
from .job_service import load_job_records

DEFAULT_EXCHANGE_RATE = 23500


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


# =============================================================================
# CUSTOMER / LINE DEBT
# =============================================================================

def _customer_key(customer: dict) -> str:
    return str(customer.get("id") or customer.get("code") or "")


def resolve_customer(
    customers: list[dict],
    customer_id: Optional[str],
    name: Optional[str],
) -> Optional[tuple[str, str]]:
    """(key, display name) for a job's customer, or None when nothing identifies it."""
    if customer_id:
        wanted = str(customer_id).strip()
        for c in customers:
            if wanted in (str(c.get("id") or ""), str(c.get("code") or "")):
                return _customer_key(c), c.get("name") or ""
    if name and name.strip():
        folded = name.strip().lower()
        for c in customers:
            if folded in ((c.get("name") or "").strip().lower(), (c.get("code") or "").strip().lower()):
                return _customer_key(c), c.get("name") or ""
        return f"NAME_{name.strip()}", name.strip()
    return None


def customer_debt(jobs: Iterable[JobRecord], customers: list[dict]) -> list[dict]:
    """
    Receivables per customer.

    Local charge (sell + localChargeTotal) and extensions count while the
    job has no receiving bank. Deposits count while thuCuoc > 0 and the
    refund date (ngayThuHoan) is empty; they go to maKhCuocId when set.
    """
    grouped: dict[str, dict] = {}

    def _row(identity: tuple[str, str]) -> dict:
        key, name = identity
        if key not in grouped:
            grouped[key] = {
                "id": key,
                "name": name,
                "localChargeDebt": 0,
                "extensionDebt": 0,
                "depositDebt": 0,
            }
        return grouped[key]

    for job in jobs:
        main = resolve_customer(customers, job.customer_id, job.customer_name)

        ext_total = sum((e.total for e in job.extensions), 0)
        local_charge = job.sell + job.local_charge_total
        if (local_charge > 0 or ext_total > 0) and not job.bank and main:
            row = _row(main)
            row["localChargeDebt"] += local_charge
            row["extensionDebt"] += ext_total

        if job.thu_cuoc > 0 and not job.ngay_thu_hoan:
            deposit_id = job.ma_kh_cuoc_id or job.customer_id
            same_customer = deposit_id == job.customer_id
            identity = resolve_customer(customers, deposit_id, job.customer_name if same_customer else None)
            if identity is None and job.customer_name:
                identity = resolve_customer(customers, None, job.customer_name)
            if identity:
                _row(identity)["depositDebt"] += job.thu_cuoc

    rows = [
        {**row, "totalReceivable": row["localChargeDebt"] + row["extensionDebt"]}
        for row in grouped.values()
    ]
    rows.sort(key=lambda r: r["totalReceivable"], reverse=True)
    return rows


def line_debt(jobs: Iterable[JobRecord]) -> list[dict]:
    """Amounts paid out to each shipping line (chiPayment), largest first."""
    grouped: dict[str, dict] = {}
    for job in jobs:
        if job.chi_payment <= 0:
            continue
        line = job.line or "Unknown"
        row = grouped.setdefault(line, {"line": line, "totalCost": 0, "jobCount": 0})
        row["totalCost"] += job.chi_payment
        row["jobCount"] += 1
    return sorted(grouped.values(), key=lambda r: r["totalCost"], reverse=True)


# =============================================================================
# CONTROL LISTS
# =============================================================================

def _has_revenue(job: JobRecord) -> bool:
    return job.sell > 0 or job.local_charge_total > 0


def unpaid_jobs(jobs: Iterable[JobRecord]) -> list[JobRecord]:
    return [j for j in jobs if not j.bank and _has_revenue(j)]


def no_invoice_jobs(jobs: Iterable[JobRecord]) -> list[JobRecord]:
    return [j for j in jobs if _has_revenue(j) and not j.local_charge_invoice]


def deposit_missing_info(jobs: Iterable[JobRecord]) -> list[JobRecord]:
    """Deposits collected with no deposit customer selected."""
    return [j for j in jobs if j.thu_cuoc > 0 and not j.ma_kh_cuoc_id]


def missing_hbl_jobs(jobs: Iterable[JobRecord], customer: str) -> list[JobRecord]:
    """Jobs of customers whose name contains `customer` that have no HBL."""
    needle = customer.strip().lower()
    return [j for j in jobs if needle in (j.customer_name or "").lower() and not j.hbl]


def bank_payment_jobs(jobs: Iterable[JobRecord], bank: str) -> list[JobRecord]:
    wanted = bank.strip().lower()
    return [j for j in jobs if (j.bank or "").strip().lower() == wanted]


def booking_no_invoice(
    jobs: Iterable[JobRecord],
    cost_details_by_booking: Optional[dict] = None,
) -> list[JobRecord]:
    """First job of each booking whose local-charge invoice number or date is missing."""
    jobs = list(jobs)
    overrides = cost_details_by_booking or {}
    flagged: list[JobRecord] = []
    seen: set[str] = set()
    for job in jobs:
        if not job.booking or job.booking in seen:
            continue
        seen.add(job.booking)
        summary = aggregate_booking(jobs, job.booking, overrides.get(job.booking))
        local_charge = summary.cost_details.local_charge
        if not local_charge.invoice or not local_charge.date:
            flagged.append(job)
    return flagged


def _job_row(job: JobRecord) -> dict:
    return {
        "id": job.id,
        "month": job.month,
        "year": job.year,
        "jobCode": job.job_code,
        "booking": job.booking,
        "line": job.line,
        "customerName": job.customer_name,
        "amount": job.local_charge_total or job.sell or job.thu_cuoc,
    }


def matches_search(row: dict, term: str) -> bool:
    """Match on the row's first identifying field: jobCode, name, line, booking."""
    lower = term.lower()
    for key in ("jobCode", "name", "line", "booking"):
        if row.get(key):
            return lower in str(row[key]).lower()
    return False


# =============================================================================
# ENTRY POINTS
# =============================================================================

JOB_LIST_REPORTS: dict[str, Callable[..., list[JobRecord]]] = {
    "UNPAID_JOBS": unpaid_jobs,
    "NO_INVOICE_JOBS": no_invoice_jobs,
    "DEPOSIT_MISSING_INFO": deposit_missing_info,
}

REPORT_TYPES = (
    "CUSTOMER_DEBT",
    "LINE_DEBT",
    "UNPAID_JOBS",
    "MISSING_HBL",
    "NO_INVOICE_JOBS",
    "BANK_PAYMENT",
    "DEPOSIT_MISSING_INFO",
    "BOOKING_NO_INVOICE",
)


def run_report(
    report_type: str,
    jobs: list[JobRecord],
    customers: Optional[list[dict]] = None,
    cost_details_by_booking: Optional[dict] = None,
    search: Optional[str] = None,
    params: Optional[dict[str, Any]] = None,
) -> list[dict]:
    """
    Rows of one debt/control report over a job snapshot.

    Raises:
        ReportError: unknown report type or missing parameter
    """
    kind = (report_type or "").strip().upper()
    params = params or {}

    if kind == "CUSTOMER_DEBT":
        rows = customer_debt(jobs, customers or [])
    elif kind == "LINE_DEBT":
        rows = line_debt(jobs)
    elif kind in JOB_LIST_REPORTS:
        rows = [_job_row(j) for j in JOB_LIST_REPORTS[kind](jobs)]
    elif kind == "MISSING_HBL":
        customer = (params.get("customer") or "").strip()
        if not customer:
            raise ReportError("customer is required")
        rows = [_job_row(j) for j in missing_hbl_jobs(jobs, customer)]
    elif kind == "BANK_PAYMENT":
        bank = (params.get("bank") or "").strip()
        if not bank:
            raise ReportError("bank is required")
        rows = [_job_row(j) for j in bank_payment_jobs(jobs, bank)]
    elif kind == "BOOKING_NO_INVOICE":
        rows = [_job_row(j) for j in booking_no_invoice(jobs, cost_details_by_booking)]
    else:
        raise ReportError(f"report type must be one of {', '.join(REPORT_TYPES)}")

    if search:
        rows = [r for r in rows if matches_search(r, search)]
    return rows


def build_report(report_type: str, search: str | None = None, params: dict | None = None) -> dict:
    customers = [c.to_dict() for c in db.session.query(Customer).order_by(Customer.id.asc()).all()]
    rows = run_report(
        report_type,
        load_job_records(),
        customers,
        load_authoritative_details(),
        search,
        params,
    )
    return {"report_type": report_type.strip().upper(), "items": rows, "count": len(rows)}


# =============================================================================
# PROFIT
# =============================================================================

def yearly_profit(jobs: Iterable[JobRecord], exchange_rate: float | int = DEFAULT_EXCHANGE_RATE) -> list[dict]:
    """Profit per year, newest first. Jobs without a year are left out."""
    if exchange_rate <= 0:
        exchange_rate = DEFAULT_EXCHANGE_RATE
    grouped: dict[int, dict] = {}
    for job in jobs:
        if job.year is None:
            continue
        row = grouped.setdefault(job.year, {"year": job.year, "profitVND": 0, "jobCount": 0})
        row["profitVND"] += job.profit
        row["jobCount"] += 1

    rows = []
    for year in sorted(grouped, reverse=True):
        row = grouped[year]
        row["exchangeRate"] = exchange_rate
        row["profitUSD"] = round(row["profitVND"] / exchange_rate, 2)
        rows.append(row)
    return rows


def _month_order(month: str) -> int:
    return int(month) if str(month).isdigit() else 99


def monthly_profit(jobs: Iterable[JobRecord], year: int | None = None) -> list[dict]:
    """Cost, sell and profit per month, in calendar order."""
    grouped: dict[str, dict] = {}
    for job in jobs:
        if year is not None and job.year != year:
            continue
        month = job.month or ""
        row = grouped.setdefault(
            month,
            {"month": month, "totalCost": 0, "totalSell": 0, "totalProfit": 0, "jobCount": 0},
        )
        row["totalCost"] += job.cost
        row["totalSell"] += job.sell
        row["totalProfit"] += job.profit
        row["jobCount"] += 1
    return [grouped[m] for m in sorted(grouped, key=_month_order)]


def profit_report(period: str, year: int | None = None, exchange_rate: float | None = None) -> dict:
    """
    Raises:
        ReportError: unknown period, or a monthly report without a year
    """
    jobs = load_job_records()
    if period == "yearly":
        rate = exchange_rate or current_app.config.get("EXCHANGE_RATE", DEFAULT_EXCHANGE_RATE)
        rows = yearly_profit(jobs, rate)
    elif period == "monthly":
        if year is None:
            raise ReportError("year is required")
        rows = monthly_profit(jobs, year)
    else:
        raise ReportError("period must be yearly or monthly")

    return {
        "period": period,
        "year": year,
        "items": rows,
        "totalProfit": sum((r.get("profitVND", r.get("totalProfit", 0)) for r in rows), 0),
    }
