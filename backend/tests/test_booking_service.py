import copy

import pytest

from freightdesk.records import BookingCostDetails
from freightdesk.services import booking_service
from freightdesk.services.booking_service import (
    BookingNotFoundError,
    aggregate_booking,
    booking_deposit_total,
    booking_invoice_total,
    invoice_amount,
    list_booking_summaries,
    normalize_cost_details,
)
from freightdesk.records import InvoiceLine
from freightdesk.services import job_service
from freightdesk.validation import ValidationError

from conftest import make_job, job_payload


ZERO_LOCAL_CHARGE = {"invoice": "", "date": "", "net": 0, "vat": 0, "total": 0}


def _two_job_booking():
    return [
        make_job(id="1", jobCode="J1", booking="B1", month="10", line="MSC",
                 cost=100, sell=150, profit=50, cont20=1, cont40=0),
        make_job(id="2", jobCode="J2", booking="B1", month="11", line="ONE",
                 cost=200, sell=300, profit=100, cont20=0, cont40=2),
    ]


# =============================================================================
# AGGREGATION
# =============================================================================

def test_aggregate_sums_every_member():
    summary = aggregate_booking(_two_job_booking(), "B1")

    assert summary.job_count == 2
    assert summary.total_cost == 300
    assert summary.total_sell == 450
    assert summary.total_profit == 150
    assert summary.total_cont20 == 1
    assert summary.total_cont40 == 2
    assert [j.job_code for j in summary.jobs] == ["J1", "J2"]


def test_first_job_supplies_month_and_line():
    summary = aggregate_booking(_two_job_booking(), "B1")
    assert summary.month == "10"
    assert summary.line == "MSC"


def test_unknown_booking_returns_none():
    assert aggregate_booking(_two_job_booking(), "NONEXISTENT") is None
    assert aggregate_booking([], "B1") is None


def test_booking_match_is_exact():
    jobs = _two_job_booking()
    assert aggregate_booking(jobs, " B1") is None
    assert aggregate_booking(jobs, "b1") is None


def test_aggregate_is_deterministic_and_pure():
    jobs = _two_job_booking()
    jobs[0].booking_cost_details = {"localCharge": {"net": 1000, "vat": 80}}
    before = copy.deepcopy([j.to_dict() for j in jobs])

    first = aggregate_booking(jobs, "B1")
    second = aggregate_booking(jobs, "B1")

    assert first.to_dict() == second.to_dict()
    assert [j.to_dict() for j in jobs] == before


def test_missing_cost_details_get_defaults():
    summary = aggregate_booking([make_job(id="1", booking="B2")], "B2")

    details = summary.to_dict()["costDetails"]
    assert details["localCharge"] == ZERO_LOCAL_CHARGE
    assert details["extensionCosts"] == []
    assert details["deposits"] == []
    assert details["additionalLocalCharges"] == []


@pytest.mark.parametrize("raw", [
    "garbage",
    {"localCharge": None, "extensionCosts": "nope", "deposits": {"a": 1}},
    {"extensionCosts": [1, 2, "x"]},
])
def test_malformed_cost_details_are_repaired(raw):
    details = normalize_cost_details(raw)
    assert details.local_charge.to_dict() == ZERO_LOCAL_CHARGE
    assert details.extension_costs == []
    assert details.deposits == []


def test_appending_a_job_changes_totals_by_its_contribution():
    jobs = _two_job_booking()
    before = aggregate_booking(jobs, "B1")

    jobs.append(make_job(id="3", jobCode="J3", booking="B1", cost=40, sell=90, profit=50, cont20=3, cont40=1))
    after = aggregate_booking(jobs, "B1")

    assert after.job_count - before.job_count == 1
    assert after.total_cost - before.total_cost == 40
    assert after.total_sell - before.total_sell == 90
    assert after.total_profit - before.total_profit == 50
    assert after.total_cont20 - before.total_cont20 == 3
    assert after.total_cont40 - before.total_cont40 == 1


def test_divergent_copies_are_reported_not_merged():
    jobs = _two_job_booking()
    jobs[0].booking_cost_details = {"deposits": [{"id": "d1", "amount": 500}]}
    jobs[1].booking_cost_details = {"deposits": [{"id": "d1", "amount": 900}]}

    summary = aggregate_booking(jobs, "B1")

    assert booking_deposit_total(summary.cost_details) == 500
    assert summary.divergent_job_ids == ["2"]


def test_jobs_without_a_copy_are_not_divergent():
    jobs = _two_job_booking()
    jobs[0].booking_cost_details = {"deposits": [{"id": "d1", "amount": 500}]}
    assert aggregate_booking(jobs, "B1").divergent_job_ids == []


def test_authoritative_details_override_job_copies():
    jobs = _two_job_booking()
    jobs[0].booking_cost_details = {"localCharge": {"net": 1, "vat": 0}}
    authoritative = BookingCostDetails.from_dict({"localCharge": {"net": 1000, "vat": 100}})

    summary = aggregate_booking(jobs, "B1", authoritative)

    assert booking_invoice_total(summary.cost_details) == 1100


def test_normalize_returns_a_copy_of_parsed_details():
    details = BookingCostDetails.from_dict({"localCharge": {"net": 1000, "vat": 100}})

    normalized = normalize_cost_details(details)
    normalized.local_charge.total = 999

    assert normalized is not details
    assert normalized.local_charge is not details.local_charge
    assert details.local_charge.total != 999


def test_save_cost_details_leaves_caller_payload_untouched(db_session):
    job_service.create_job(job_payload("J1", booking="B1"))
    payload = {"localCharge": {"invoice": "INV", "net": 1000, "vat": 100, "total": 5}}
    before = copy.deepcopy(payload)

    summary = booking_service.save_cost_details("B1", payload)

    assert summary.cost_details.local_charge.total == 1100
    assert payload == before


def test_list_booking_summaries_keeps_first_seen_order():
    jobs = [
        make_job(id="1", jobCode="A", booking="B2"),
        make_job(id="2", jobCode="B", booking=""),
        make_job(id="3", jobCode="C", booking="B1"),
        make_job(id="4", jobCode="D", booking="B2"),
    ]
    summaries = list_booking_summaries(jobs)
    assert [s.booking_id for s in summaries] == ["B2", "B1"]
    assert summaries[0].job_count == 2


# =============================================================================
# INVOICE TOTALS
# =============================================================================

def test_invoice_amount_uses_net_plus_vat():
    assert invoice_amount(InvoiceLine(net=1000, vat=80, total=5)) == 1080


def test_invoice_amount_uses_total_without_invoice():
    assert invoice_amount(InvoiceLine(net=1000, vat=80, total=700, has_invoice=False)) == 700


def test_booking_invoice_total_includes_additional_charges():
    details = normalize_cost_details({
        "localCharge": {"net": 1000000, "vat": 80000},
        "additionalLocalCharges": [
            {"id": "a1", "net": 100000, "vat": 8000},
            {"id": "a2", "total": 50000, "hasInvoice": False},
        ],
    })
    assert booking_invoice_total(details) == 1238000


# =============================================================================
# PERSISTENCE
# =============================================================================

def test_save_cost_details_becomes_authoritative(db_session):
    job_service.create_job(job_payload("J1", booking="BK9", cost=10, sell=20))
    job_service.create_job(job_payload("J2", booking="BK9", cost=30, sell=50))

    summary = booking_service.save_cost_details("BK9", {
        "localCharge": {"invoice": "INV-1", "net": 1000, "vat": 80, "total": 0},
        "deposits": [{"id": "d1", "amount": 2000}],
    })

    assert summary.job_count == 2
    assert summary.cost_details.local_charge.total == 1080
    assert booking_deposit_total(summary.cost_details) == 2000
    assert booking_service.get_authoritative_details("BK9").local_charge.invoice == "INV-1"


def test_save_cost_details_keeps_flat_totals(db_session):
    job_service.create_job(job_payload("J1", booking="BK9"))
    summary = booking_service.save_cost_details("BK9", {
        "localCharge": {"total": 750},
        "extensionCosts": [{"id": "e1", "total": 300, "hasInvoice": False}],
    })
    assert summary.cost_details.local_charge.total == 750
    assert summary.cost_details.extension_costs[0].total == 300


def test_save_cost_details_unknown_booking(db_session):
    with pytest.raises(BookingNotFoundError):
        booking_service.save_cost_details("NOPE", {"deposits": []})


def test_save_cost_details_rejects_bad_shape(db_session):
    job_service.create_job(job_payload("J1", booking="BK9"))
    with pytest.raises(ValidationError):
        booking_service.save_cost_details("BK9", {"deposits": "many"})


def test_list_bookings_filters_by_month(db_session):
    job_service.create_job(job_payload("J1", booking="BK1", month="9"))
    job_service.create_job(job_payload("J2", booking="BK2", month="10"))

    assert [s.booking_id for s in booking_service.list_bookings(month="10")] == ["BK2"]


def test_summary_reports_cost_totals():
    job = make_job(id="1", booking="B1", bookingCostDetails={
        "localCharge": {"net": 100, "vat": 10},
        "extensionCosts": [{"id": "e1", "net": 50, "vat": 5}, {"id": "e2", "total": 20, "hasInvoice": False}],
        "deposits": [{"id": "d1", "amount": 1000}],
    })
    out = aggregate_booking([job], "B1").to_dict()
    assert out["invoiceTotal"] == 110
    assert out["extensionCostTotal"] == 75
    assert out["depositTotal"] == 1000
