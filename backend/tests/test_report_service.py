import pytest

from freightdesk.records import BookingCostDetails
from freightdesk.services import job_service, registry_service, report_service
from freightdesk.models import Customer
from freightdesk.services.report_service import (
    ReportError,
    booking_no_invoice,
    customer_debt,
    line_debt,
    monthly_profit,
    run_report,
    yearly_profit,
)

from conftest import make_job, job_payload


CUSTOMERS = [
    {"id": 1, "code": "ACME", "name": "Acme Logistics"},
    {"id": 2, "code": "LH", "name": "Long Hoang"},
]


# =============================================================================
# CUSTOMER DEBT
# =============================================================================

def test_customer_debt_counts_unpaid_local_charge_and_extensions():
    jobs = [
        make_job(id="1", jobCode="J1", customerId="1", sell=100, localChargeTotal=900,
                 extensions=[{"id": "e1", "total": 50}]),
        make_job(id="2", jobCode="J2", customerId="1", localChargeTotal=500, bank="VCB"),
    ]

    rows = customer_debt(jobs, CUSTOMERS)

    assert rows == [{
        "id": "1",
        "name": "Acme Logistics",
        "localChargeDebt": 1000,
        "extensionDebt": 50,
        "depositDebt": 0,
        "totalReceivable": 1050,
    }]


def test_customer_debt_matches_by_name_or_code_and_falls_back_to_name():
    jobs = [
        make_job(id="1", jobCode="J1", customerName="  acme logistics ", localChargeTotal=10),
        make_job(id="2", jobCode="J2", customerName="lh", localChargeTotal=20),
        make_job(id="3", jobCode="J3", customerName="Walk In Co", localChargeTotal=30),
    ]

    rows = {r["id"]: r for r in customer_debt(jobs, CUSTOMERS)}

    assert rows["1"]["localChargeDebt"] == 10
    assert rows["2"]["name"] == "Long Hoang"
    assert rows["NAME_Walk In Co"]["localChargeDebt"] == 30


def test_deposit_debt_goes_to_deposit_customer_until_refunded():
    jobs = [
        make_job(id="1", jobCode="J1", customerId="1", maKhCuocId="2", thuCuoc=2000000),
        make_job(id="2", jobCode="J2", customerId="1", thuCuoc=1000000, ngayThuHoan="2023-11-01"),
        make_job(id="3", jobCode="J3", customerId="1", thuCuoc=500000),
    ]

    rows = {r["id"]: r for r in customer_debt(jobs, CUSTOMERS)}

    assert rows["2"]["depositDebt"] == 2000000
    assert rows["1"]["depositDebt"] == 500000
    assert rows["1"]["totalReceivable"] == 0


def test_customer_debt_sorted_by_receivable():
    jobs = [
        make_job(id="1", jobCode="J1", customerId="1", localChargeTotal=10),
        make_job(id="2", jobCode="J2", customerId="2", localChargeTotal=99),
    ]
    assert [r["id"] for r in customer_debt(jobs, CUSTOMERS)] == ["2", "1"]


def test_line_debt_groups_payments_by_line():
    jobs = [
        make_job(id="1", jobCode="J1", line="MSC", chiPayment=100),
        make_job(id="2", jobCode="J2", line="MSC", chiPayment=200),
        make_job(id="3", jobCode="J3", chiPayment=500),
        make_job(id="4", jobCode="J4", line="ONE"),
    ]

    assert line_debt(jobs) == [
        {"line": "Unknown", "totalCost": 500, "jobCount": 1},
        {"line": "MSC", "totalCost": 300, "jobCount": 2},
    ]


# =============================================================================
# CONTROL LISTS
# =============================================================================

def _codes(rows):
    return [r["jobCode"] for r in rows]


def test_control_lists():
    jobs = [
        make_job(id="1", jobCode="UNPAID", sell=100, localChargeInvoice="INV1"),
        make_job(id="2", jobCode="NOINV", localChargeTotal=100, bank="VCB"),
        make_job(id="3", jobCode="DEPOSIT", thuCuoc=100, bank="TCB Bank", localChargeInvoice="X"),
        make_job(id="4", jobCode="EMPTY"),
    ]

    assert _codes(run_report("UNPAID_JOBS", jobs)) == ["UNPAID"]
    assert _codes(run_report("no_invoice_jobs", jobs)) == ["NOINV"]
    assert _codes(run_report("DEPOSIT_MISSING_INFO", jobs)) == ["DEPOSIT"]
    assert _codes(run_report("BANK_PAYMENT", jobs, params={"bank": "tcb bank"})) == ["DEPOSIT"]


def test_missing_hbl_filters_by_customer_name():
    jobs = [
        make_job(id="1", jobCode="J1", customerName="Công ty Long Hoàng"),
        make_job(id="2", jobCode="J2", customerName="Long Hoàng", hbl="HBL1"),
        make_job(id="3", jobCode="J3", customerName="Acme"),
    ]
    assert _codes(run_report("MISSING_HBL", jobs, params={"customer": "long hoàng"})) == ["J1"]


def test_parameterised_reports_require_their_parameter():
    with pytest.raises(ReportError):
        run_report("MISSING_HBL", [])
    with pytest.raises(ReportError):
        run_report("BANK_PAYMENT", [], params={"bank": "  "})


def test_unknown_report_type_raises():
    with pytest.raises(ReportError):
        run_report("NOPE", [])


def test_booking_no_invoice_reports_each_booking_once():
    complete = {"localCharge": {"invoice": "INV1", "date": "2023-10-06", "net": 1}}
    jobs = [
        make_job(id="1", jobCode="J1", booking="B1", bookingCostDetails={"localCharge": {"invoice": "INV1"}}),
        make_job(id="2", jobCode="J2", booking="B1"),
        make_job(id="3", jobCode="J3", booking="B2", bookingCostDetails=complete),
        make_job(id="4", jobCode="J4"),
    ]

    assert [j.job_code for j in booking_no_invoice(jobs)] == ["J1"]


def test_booking_no_invoice_uses_authoritative_details():
    jobs = [make_job(id="1", jobCode="J1", booking="B1")]
    details = {"B1": BookingCostDetails.from_dict({"localCharge": {"invoice": "INV", "date": "2023-10-06"}})}
    assert booking_no_invoice(jobs, details) == []


def test_search_matches_job_code_or_name():
    jobs = [
        make_job(id="1", jobCode="ABC-1", sell=1),
        make_job(id="2", jobCode="XYZ-2", sell=1),
    ]
    assert _codes(run_report("UNPAID_JOBS", jobs, search="abc")) == ["ABC-1"]

    debts = run_report(
        "CUSTOMER_DEBT",
        [make_job(id="1", customerId="1", sell=1), make_job(id="2", customerId="2", sell=1)],
        CUSTOMERS,
        search="long",
    )
    assert [r["name"] for r in debts] == ["Long Hoang"]


# =============================================================================
# PROFIT
# =============================================================================

def test_yearly_profit_converts_at_exchange_rate():
    jobs = [
        make_job(id="1", jobCode="J1", year=2023, profit=2350000),
        make_job(id="2", jobCode="J2", year=2023, profit=2350000),
        make_job(id="3", jobCode="J3", year=2024, profit=47000),
        make_job(id="4", jobCode="J4", profit=999),
    ]

    rows = yearly_profit(jobs, 23500)

    assert [r["year"] for r in rows] == [2024, 2023]
    assert rows[1]["profitVND"] == 4700000
    assert rows[1]["profitUSD"] == 200
    assert rows[1]["jobCount"] == 2
    assert yearly_profit(jobs, 0)[0]["exchangeRate"] == report_service.DEFAULT_EXCHANGE_RATE


def test_monthly_profit_in_calendar_order():
    jobs = [
        make_job(id="1", jobCode="J1", year=2023, month="10", cost=100, sell=150, profit=50),
        make_job(id="2", jobCode="J2", year=2023, month="9", cost=10, sell=30, profit=20),
        make_job(id="3", jobCode="J3", year=2023, month="10", cost=1, sell=2, profit=1),
        make_job(id="4", jobCode="J4", year=2022, month="1", profit=1000),
    ]

    rows = monthly_profit(jobs, 2023)

    assert [r["month"] for r in rows] == ["9", "10"]
    assert rows[1] == {"month": "10", "totalCost": 101, "totalSell": 152, "totalProfit": 51, "jobCount": 2}


def test_build_report_reads_stored_jobs_and_customers(db_session):
    registry_service.create_entry(Customer, {"code": "ACME", "name": "Acme Logistics"})
    job_service.create_job(job_payload("J1", customerName="ACME", localChargeTotal=700))

    report = report_service.build_report("customer_debt")

    assert report["report_type"] == "CUSTOMER_DEBT"
    assert report["count"] == 1
    assert report["items"][0]["name"] == "Acme Logistics"
    assert report["items"][0]["localChargeDebt"] == 700
