"""
HTTP API tests: status codes, error mapping and response shapes.
"""


def _create_job(client, code, **fields):
    payload = {"jobCode": code, "month": "10", "year": 2023}
    payload.update(fields)
    response = client.post("/api/jobs", json=payload)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def test_health(client, db_session):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.get_json()["database"]["status"] == "healthy"


# =============================================================================
# JOBS
# =============================================================================

def test_job_crud(client, db_session):
    job = _create_job(client, "JOB-1", booking="BK1", cost=100, sell=130)
    assert job["profit"] == 30
    assert job["createdAt"].endswith("Z")

    response = client.put(f"/api/jobs/{job['id']}", json={"cost": 110})
    assert response.status_code == 200
    assert response.get_json()["profit"] == 20

    assert client.get(f"/api/jobs/{job['id']}").get_json()["cost"] == 110
    assert client.get("/api/jobs?booking=BK1").get_json()["count"] == 1

    assert client.delete(f"/api/jobs/{job['id']}").status_code == 200
    assert client.get(f"/api/jobs/{job['id']}").status_code == 404


def test_job_errors_map_to_status_codes(client, db_session):
    assert client.post("/api/jobs", json={"jobCode": "has space"}).status_code == 400
    assert client.post("/api/jobs", json={"jobCode": "J1", "cont20": -2}).status_code == 400
    _create_job(client, "J1")
    assert client.post("/api/jobs", json={"jobCode": "J1"}).status_code == 409
    assert client.put("/api/jobs/999", json={"cost": 1}).status_code == 404
    assert client.delete("/api/jobs/999").status_code == 404


def test_voucher_locked_edit_is_conflict(client, db_session):
    job = _create_job(client, "J1", thuCuoc=1000, amisDepositDocNo="NTTK00002")
    response = client.put(f"/api/jobs/{job['id']}", json={"thuCuoc": 2000})
    assert response.status_code == 409
    assert "NTTK00002" in response.get_json()["error"]


def test_import_jobs(client, db_session):
    response = client.post("/api/jobs/import", json={"jobs": [{"jobCode": "A"}, {"jobCode": "B"}]})
    assert response.status_code == 200
    assert response.get_json() == {"added": 2, "updated": 0, "errors": []}

    assert client.post("/api/jobs/import", json={"jobs": "nope"}).status_code == 400


# =============================================================================
# BOOKINGS
# =============================================================================

def test_booking_summary_and_cost_details(client, db_session):
    _create_job(client, "J1", booking="BK1", cost=100, sell=150, cont20=1)
    _create_job(client, "J2", booking="BK1", cost=200, sell=300, cont40=2)

    summary = client.get("/api/bookings/BK1").get_json()
    assert summary["jobCount"] == 2
    assert summary["totalProfit"] == 150
    assert summary["costDetails"]["localCharge"] == {"invoice": "", "date": "", "net": 0, "vat": 0, "total": 0}

    response = client.put("/api/bookings/BK1/cost-details", json={
        "localCharge": {"invoice": "INV1", "net": 1000, "vat": 80},
    })
    assert response.status_code == 200
    assert response.get_json()["costDetails"]["localCharge"]["total"] == 1080
    assert response.get_json()["invoiceTotal"] == 1080

    listing = client.get("/api/bookings").get_json()
    assert listing["count"] == 1
    assert listing["items"][0]["costDetails"]["localCharge"]["invoice"] == "INV1"


def test_booking_not_found(client, db_session):
    assert client.get("/api/bookings/NOPE").status_code == 404
    assert client.put("/api/bookings/NOPE/cost-details", json={}).status_code == 404


# =============================================================================
# DOCUMENT NUMBERS
# =============================================================================

def test_next_doc_no_preview_does_not_reserve(client, db_session):
    _create_job(client, "J1", amisLcDocNo="NTTK00005")

    first = client.get("/api/documents/next?prefix=NTTK").get_json()
    second = client.get("/api/documents/next?prefix=NTTK&reserved=NTTK00009").get_json()

    assert first["doc_no"] == "NTTK00006"
    assert client.get("/api/documents/next?prefix=NTTK").get_json()["doc_no"] == "NTTK00006"
    assert second["doc_no"] == "NTTK00010"


def test_reserve_doc_no(client, db_session):
    first = client.post("/api/documents/reserve", json={"prefix": "UNC"})
    second = client.post("/api/documents/reserve", json={"prefix": "UNC"})

    assert first.status_code == 201
    assert first.get_json()["doc_no"] == "UNC00001"
    assert second.get_json()["doc_no"] == "UNC00002"


def test_doc_no_bad_input(client, db_session):
    assert client.get("/api/documents/next").status_code == 400
    assert client.get("/api/documents/next?prefix=NTTK&width=0").status_code == 400
    assert client.post("/api/documents/reserve", json={"prefix": "9X"}).status_code == 400
    assert client.get("/api/documents/next?prefix=NTTK&width=abc").status_code == 400
    assert client.get("/api/documents/next?prefix=NTTK&width=3.5").status_code == 400


def test_next_doc_no_preview_follows_reservations(client, db_session):
    reserved = client.post("/api/documents/reserve", json={"prefix": "NTTK"}).get_json()

    preview = client.get("/api/documents/next?prefix=NTTK").get_json()

    assert reserved["doc_no"] == "NTTK00001"
    assert preview["doc_no"] == "NTTK00002"


def test_doc_no_owners(client, db_session):
    job = _create_job(client, "J1", amisLcDocNo="NTTK00003")
    client.post("/api/receipts", json={"doc_no": "NTTK00003", "amount": 100})

    body = client.get("/api/documents/NTTK00003/owners").get_json()
    assert body["count"] == 2
    assert body["owners"][0]["job_id"] == job["id"]
    assert body["owners"][0]["field"] == "amisLcDocNo"


# =============================================================================
# PAYMENTS
# =============================================================================

def test_job_payment_status(client, db_session):
    job = _create_job(client, "J1", booking="BK1", localChargeTotal=800000)
    client.put("/api/bookings/BK1/cost-details", json={"localCharge": {"net": 1000000, "vat": 0}})

    body = client.get(f"/api/payments/jobs/{job['id']}/status").get_json()

    assert body["status"]["hasMismatch"] is True
    assert body["status"]["lcDiff"] == -200000
    assert body["vouchers"]["LOCAL_CHARGE"]["status"] == "PENDING"

    mismatches = client.get("/api/payments/mismatches").get_json()
    assert [m["job_code"] for m in mismatches["items"]] == ["J1"]


def test_payment_status_unknown_job(client, db_session):
    assert client.get("/api/payments/jobs/404/status").status_code == 404


# =============================================================================
# RECEIPTS AND REGISTRIES
# =============================================================================

def test_receipt_crud(client, db_session):
    response = client.post("/api/receipts", json={"doc_no": "NTTK00001", "amount": "1,500,000", "date": "06/10/2023"})
    assert response.status_code == 201
    receipt = response.get_json()
    assert receipt["amount"] == 1500000
    assert receipt["date"] == "2023-10-06"

    assert client.post("/api/receipts", json={"amount": 1}).status_code == 400
    assert client.put(f"/api/receipts/{receipt['id']}", json={"date": "31/02/2023"}).status_code == 400
    assert client.put(f"/api/receipts/{receipt['id']}", json={"amount": 10}).get_json()["amount"] == 10
    assert client.delete(f"/api/receipts/{receipt['id']}").status_code == 200
    assert client.delete(f"/api/receipts/{receipt['id']}").status_code == 404


def test_customer_and_line_registries(client, db_session):
    response = client.post("/api/customers", json={"code": "KH001", "name": "ACME", "mst": "0312345678"})
    assert response.status_code == 201
    customer = response.get_json()

    assert client.post("/api/customers", json={"code": "KH001", "name": "Other"}).status_code == 409
    assert client.post("/api/customers", json={"code": "KH002"}).status_code == 400
    assert client.put(f"/api/customers/{customer['id']}", json={"name": "ACME Ltd"}).get_json()["name"] == "ACME Ltd"
    assert client.get("/api/customers?q=acme").get_json()["count"] == 1

    line = client.post("/api/lines", json={"code": "MSC", "name": "Mediterranean", "item_name": "FREIGHT"})
    assert line.status_code == 201
    assert line.get_json()["item_name"] == "FREIGHT"
    assert client.put("/api/lines/999", json={"name": "x"}).status_code == 404
    assert client.delete(f"/api/customers/{customer['id']}").status_code == 200


# =============================================================================
# REPORTS
# =============================================================================

def test_debt_reports(client, db_session):
    client.post("/api/customers", json={"code": "KH001", "name": "ACME"})
    _create_job(client, "J1", customerName="acme", localChargeTotal=500, line="MSC", chiPayment=300)
    _create_job(client, "J2", localChargeTotal=200, bank="VCB", localChargeInvoice="INV2")

    debt = client.get("/api/reports/customer_debt").get_json()
    assert debt["items"][0]["name"] == "ACME"
    assert debt["items"][0]["totalReceivable"] == 500

    lines = client.get("/api/reports/LINE_DEBT").get_json()
    assert lines["items"] == [{"line": "MSC", "totalCost": 300, "jobCount": 1}]

    unpaid = client.get("/api/reports/UNPAID_JOBS?q=j1").get_json()
    assert [r["jobCode"] for r in unpaid["items"]] == ["J1"]

    assert "BOOKING_NO_INVOICE" in client.get("/api/reports").get_json()["report_types"]


def test_report_bad_input(client, db_session):
    assert client.get("/api/reports/NOPE").status_code == 400
    assert client.get("/api/reports/BANK_PAYMENT").status_code == 400
    assert client.get("/api/reports/profit/weekly").status_code == 400
    assert client.get("/api/reports/profit/monthly").status_code == 400


def test_profit_reports(client, db_session):
    _create_job(client, "J1", cost=1000000, sell=3350000)
    _create_job(client, "J2", month="11", cost=0, sell=1175000)

    yearly = client.get("/api/reports/profit/yearly?exchange_rate=23500").get_json()
    assert yearly["items"][0]["year"] == 2023
    assert yearly["items"][0]["profitUSD"] == 150

    monthly = client.get("/api/reports/profit/monthly?year=2023").get_json()
    assert [r["month"] for r in monthly["items"]] == ["10", "11"]
    assert monthly["totalProfit"] == 3525000
