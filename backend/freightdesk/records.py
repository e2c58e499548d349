# Overview: In-memory job records exchanged with the accounting UI (camelCase JSON).

"""
Job Records

WHY: Bookings, voucher numbers and payment reconciliation are all computed
over a snapshot of job records. The UI exchanges these as camelCase JSON
(the shape the legacy local-storage store used), so every record here
parses from and serializes back to that shape.

DESIGN:
- Parsing is permissive: missing numbers become 0, missing strings "",
  missing lists []. Legacy data has dozens of independently-optional fields.
- bookingCostDetails is kept raw on the job. It is a denormalized copy and
  may be malformed; booking_service normalizes it.
- Voucher fields (amis*DocNo/Desc/Date) stay None until written, so an
  update can tell "omitted" apart from "cleared".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


def to_number(value: Any) -> float | int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip().replace(",", "")
    if not text:
        return 0
    try:
        number = float(text)
    except ValueError:
        return 0
    return int(number) if number.is_integer() else number


def to_count(value: Any) -> int:
    number = to_number(value)
    return max(int(number), 0)


def to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def to_optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def to_optional_number(value: Any) -> Optional[float | int]:
    if value is None:
        return None
    return to_number(value)


def _dict_list(value: Any) -> list[dict]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


# =============================================================================
# BOOKING COST DETAILS (shared per booking)
# =============================================================================

@dataclass
class InvoiceLine:
    """The booking's main local-charge invoice from the shipping line."""
    invoice: str = ""
    date: str = ""
    net: float | int = 0
    vat: float | int = 0
    total: float | int = 0
    has_invoice: Optional[bool] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "InvoiceLine":
        has_invoice = data.get("hasInvoice")
        return cls(
            invoice=to_text(data.get("invoice")),
            date=to_text(data.get("date")),
            net=to_number(data.get("net")),
            vat=to_number(data.get("vat")),
            total=to_number(data.get("total")),
            has_invoice=None if has_invoice is None else bool(has_invoice),
            file_url=to_optional_text(data.get("fileUrl")),
            file_name=to_optional_text(data.get("fileName")),
        )

    def to_dict(self) -> dict:
        out = {
            "invoice": self.invoice,
            "date": self.date,
            "net": self.net,
            "vat": self.vat,
            "total": self.total,
        }
        if self.has_invoice is not None:
            out["hasInvoice"] = self.has_invoice
        if self.file_url is not None:
            out["fileUrl"] = self.file_url
        if self.file_name is not None:
            out["fileName"] = self.file_name
        return out


@dataclass
class ExtensionCost(InvoiceLine):
    """Additional local-charge or extension invoice billed by the line."""
    id: str = ""
    amis_doc_no: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ExtensionCost":
        base = InvoiceLine.from_dict(data)
        return cls(
            **base.__dict__,
            id=to_text(data.get("id")),
            amis_doc_no=to_optional_text(data.get("amisDocNo")),
        )

    def to_dict(self) -> dict:
        out = {"id": self.id}
        out.update(super().to_dict())
        if self.amis_doc_no is not None:
            out["amisDocNo"] = self.amis_doc_no
        return out


@dataclass
class BookingDeposit:
    id: str = ""
    amount: float | int = 0
    date_out: str = ""
    date_in: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "BookingDeposit":
        return cls(
            id=to_text(data.get("id")),
            amount=to_number(data.get("amount")),
            date_out=to_text(data.get("dateOut")),
            date_in=to_text(data.get("dateIn")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": self.amount,
            "dateOut": self.date_out,
            "dateIn": self.date_in,
        }


@dataclass
class BookingCostDetails:
    local_charge: InvoiceLine = field(default_factory=InvoiceLine)
    additional_local_charges: list[ExtensionCost] = field(default_factory=list)
    extension_costs: list[ExtensionCost] = field(default_factory=list)
    deposits: list[BookingDeposit] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "BookingCostDetails":
        local_charge = data.get("localCharge")
        return cls(
            local_charge=InvoiceLine.from_dict(local_charge) if isinstance(local_charge, dict) else InvoiceLine(),
            additional_local_charges=[ExtensionCost.from_dict(i) for i in _dict_list(data.get("additionalLocalCharges"))],
            extension_costs=[ExtensionCost.from_dict(i) for i in _dict_list(data.get("extensionCosts"))],
            deposits=[BookingDeposit.from_dict(i) for i in _dict_list(data.get("deposits"))],
        )

    def to_dict(self) -> dict:
        return {
            "localCharge": self.local_charge.to_dict(),
            "additionalLocalCharges": [c.to_dict() for c in self.additional_local_charges],
            "extensionCosts": [c.to_dict() for c in self.extension_costs],
            "deposits": [d.to_dict() for d in self.deposits],
        }


# =============================================================================
# JOB SUB-RECORDS
# =============================================================================

@dataclass
class Extension:
    """Extension (detention) revenue billed to the customer after the job."""
    id: str = ""
    customer_id: str = ""
    invoice: str = ""
    invoice_date: str = ""
    net: float | int = 0
    vat: float | int = 0
    total: float | int = 0
    amis_doc_no: Optional[str] = None
    amis_desc: Optional[str] = None
    amis_amount: Optional[float | int] = None
    amis_date: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Extension":
        return cls(
            id=to_text(data.get("id")),
            customer_id=to_text(data.get("customerId")),
            invoice=to_text(data.get("invoice")),
            invoice_date=to_text(data.get("invoiceDate")),
            net=to_number(data.get("net")),
            vat=to_number(data.get("vat")),
            total=to_number(data.get("total")),
            amis_doc_no=to_optional_text(data.get("amisDocNo")),
            amis_desc=to_optional_text(data.get("amisDesc")),
            amis_amount=to_optional_number(data.get("amisAmount")),
            amis_date=to_optional_text(data.get("amisDate")),
        )

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "customerId": self.customer_id,
            "invoice": self.invoice,
            "invoiceDate": self.invoice_date,
            "net": self.net,
            "vat": self.vat,
            "total": self.total,
        }
        for key, value in (
            ("amisDocNo", self.amis_doc_no),
            ("amisDesc", self.amis_desc),
            ("amisAmount", self.amis_amount),
            ("amisDate", self.amis_date),
        ):
            if value is not None:
                out[key] = value
        return out


RECEIPT_TYPES = ("local", "deposit", "extension", "other")


@dataclass
class AdditionalReceipt:
    """A follow-up collection against a job (partial payments)."""
    id: str = ""
    type: str = "other"
    date: str = ""
    doc_no: str = ""
    desc: str = ""
    amount: float | int = 0
    extension_id: Optional[str] = None
    tk_no: Optional[str] = None
    tk_co: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "AdditionalReceipt":
        receipt_type = to_text(data.get("type")) or "other"
        return cls(
            id=to_text(data.get("id")),
            type=receipt_type if receipt_type in RECEIPT_TYPES else "other",
            date=to_text(data.get("date")),
            doc_no=to_text(data.get("docNo")),
            desc=to_text(data.get("desc")),
            amount=to_number(data.get("amount")),
            extension_id=to_optional_text(data.get("extensionId")),
            tk_no=to_optional_text(data.get("tkNo")),
            tk_co=to_optional_text(data.get("tkCo")),
        )

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "type": self.type,
            "date": self.date,
            "docNo": self.doc_no,
            "desc": self.desc,
            "amount": self.amount,
        }
        for key, value in (("extensionId", self.extension_id), ("tkNo", self.tk_no), ("tkCo", self.tk_co)):
            if value is not None:
                out[key] = value
        return out


@dataclass
class RefundRecord:
    """Refund of an overpayment back to the customer."""
    id: str = ""
    date: str = ""
    doc_no: str = ""
    amount: float | int = 0
    desc: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "RefundRecord":
        return cls(
            id=to_text(data.get("id")),
            date=to_text(data.get("date")),
            doc_no=to_text(data.get("docNo")),
            amount=to_number(data.get("amount")),
            desc=to_text(data.get("desc")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "docNo": self.doc_no,
            "amount": self.amount,
            "desc": self.desc,
        }


@dataclass
class ExternalReceiptRecord:
    """Standalone receipt not tied to any job ("thu khác")."""
    id: str = ""
    doc_no: str = ""
    date: str = ""
    amount: float | int = 0
    customer_id: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "ExternalReceiptRecord":
        return cls(
            id=to_text(data.get("id")),
            doc_no=to_text(data.get("docNo")),
            date=to_text(data.get("date")),
            amount=to_number(data.get("amount")),
            customer_id=to_text(data.get("customerId")),
            description=to_text(data.get("description") if "description" in data else data.get("desc")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "docNo": self.doc_no,
            "date": self.date,
            "amount": self.amount,
            "customerId": self.customer_id,
            "description": self.description,
        }


# =============================================================================
# JOB RECORD
# =============================================================================

# (wire key, attribute)
_JOB_TEXT_FIELDS = (
    ("id", "id"),
    ("month", "month"),
    ("jobCode", "job_code"),
    ("booking", "booking"),
    ("consol", "consol"),
    ("line", "line"),
    ("customerId", "customer_id"),
    ("customerName", "customer_name"),
    ("hbl", "hbl"),
    ("transit", "transit"),
    ("ngayChiCuoc", "ngay_chi_cuoc"),
    ("ngayChiHoan", "ngay_chi_hoan"),
    ("localChargeInvoice", "local_charge_invoice"),
    ("localChargeDate", "local_charge_date"),
    ("bank", "bank"),
    ("maKhCuocId", "ma_kh_cuoc_id"),
    ("ngayThuCuoc", "ngay_thu_cuoc"),
    ("ngayThuHoan", "ngay_thu_hoan"),
)

_JOB_NUMBER_FIELDS = (
    ("cost", "cost"),
    ("sell", "sell"),
    ("profit", "profit"),
    ("feeCic", "fee_cic"),
    ("feeKimberry", "fee_kimberry"),
    ("feePsc", "fee_psc"),
    ("feeEmc", "fee_emc"),
    ("feeOther", "fee_other"),
    ("chiPayment", "chi_payment"),
    ("chiCuoc", "chi_cuoc"),
    ("localChargeNet", "local_charge_net"),
    ("localChargeVat", "local_charge_vat"),
    ("localChargeTotal", "local_charge_total"),
    ("thuCuoc", "thu_cuoc"),
)

_JOB_COUNT_FIELDS = (
    ("cont20", "cont20"),
    ("cont40", "cont40"),
)

# Accounting voucher fields: absent until a voucher is written
AMIS_TEXT_FIELDS = (
    ("amisPaymentDocNo", "amis_payment_doc_no"),
    ("amisPaymentDesc", "amis_payment_desc"),
    ("amisPaymentDate", "amis_payment_date"),
    ("amisDepositOutDocNo", "amis_deposit_out_doc_no"),
    ("amisDepositOutDesc", "amis_deposit_out_desc"),
    ("amisDepositOutDate", "amis_deposit_out_date"),
    ("amisExtensionPaymentDocNo", "amis_extension_payment_doc_no"),
    ("amisExtensionPaymentDesc", "amis_extension_payment_desc"),
    ("amisExtensionPaymentDate", "amis_extension_payment_date"),
    ("amisLcDocNo", "amis_lc_doc_no"),
    ("amisLcDesc", "amis_lc_desc"),
    ("amisDepositDocNo", "amis_deposit_doc_no"),
    ("amisDepositDesc", "amis_deposit_desc"),
    ("amisDepositRefundDocNo", "amis_deposit_refund_doc_no"),
    ("amisDepositRefundDesc", "amis_deposit_refund_desc"),
    ("amisDepositRefundDate", "amis_deposit_refund_date"),
)

AMIS_NUMBER_FIELDS = (
    ("amisExtensionPaymentAmount", "amis_extension_payment_amount"),
    ("amisLcAmount", "amis_lc_amount"),
    ("amisDepositAmount", "amis_deposit_amount"),
    ("amisDepositRefundAmount", "amis_deposit_refund_amount"),
)

_JOB_OPTIONAL_TEXT_FIELDS = (
    ("cvhcUrl", "cvhc_url"),
    ("cvhcFileName", "cvhc_file_name"),
)

AMIS_EXTENSION_WIRE_KEYS = ("amisDocNo", "amisDesc", "amisAmount", "amisDate")


@dataclass
class JobRecord:
    id: str = ""

    # General
    month: str = ""
    year: Optional[int] = None
    job_code: str = ""
    booking: str = ""
    consol: str = ""
    line: str = ""
    customer_id: str = ""
    customer_name: str = ""
    hbl: str = ""
    transit: str = ""

    # Financials
    cost: float | int = 0
    sell: float | int = 0
    profit: float | int = 0
    cont20: int = 0
    cont40: int = 0

    fee_cic: float | int = 0
    fee_kimberry: float | int = 0
    fee_psc: float | int = 0
    fee_emc: float | int = 0
    fee_other: float | int = 0

    # Paid out to the shipping line
    chi_payment: float | int = 0
    chi_cuoc: float | int = 0
    ngay_chi_cuoc: str = ""
    ngay_chi_hoan: str = ""

    # Local charge collected from the customer
    local_charge_invoice: str = ""
    local_charge_date: str = ""
    local_charge_net: float | int = 0
    local_charge_vat: float | int = 0
    local_charge_total: float | int = 0
    bank: str = ""

    # Container deposit collected from the customer
    ma_kh_cuoc_id: str = ""
    thu_cuoc: float | int = 0
    ngay_thu_cuoc: str = ""
    ngay_thu_hoan: str = ""

    amis_payment_doc_no: Optional[str] = None
    amis_payment_desc: Optional[str] = None
    amis_payment_date: Optional[str] = None
    amis_deposit_out_doc_no: Optional[str] = None
    amis_deposit_out_desc: Optional[str] = None
    amis_deposit_out_date: Optional[str] = None
    amis_extension_payment_doc_no: Optional[str] = None
    amis_extension_payment_desc: Optional[str] = None
    amis_extension_payment_date: Optional[str] = None
    amis_extension_payment_amount: Optional[float | int] = None
    amis_lc_doc_no: Optional[str] = None
    amis_lc_desc: Optional[str] = None
    amis_lc_amount: Optional[float | int] = None
    amis_deposit_doc_no: Optional[str] = None
    amis_deposit_desc: Optional[str] = None
    amis_deposit_amount: Optional[float | int] = None
    amis_deposit_refund_doc_no: Optional[str] = None
    amis_deposit_refund_desc: Optional[str] = None
    amis_deposit_refund_date: Optional[str] = None
    amis_deposit_refund_amount: Optional[float | int] = None

    cvhc_url: Optional[str] = None
    cvhc_file_name: Optional[str] = None

    extensions: list[Extension] = field(default_factory=list)
    booking_cost_details: Any = None
    additional_receipts: list[AdditionalReceipt] = field(default_factory=list)
    refunds: list[RefundRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "JobRecord":
        kwargs: dict[str, Any] = {}
        for key, attr in _JOB_TEXT_FIELDS:
            kwargs[attr] = to_text(data.get(key))
        for key, attr in _JOB_NUMBER_FIELDS:
            kwargs[attr] = to_number(data.get(key))
        for key, attr in _JOB_COUNT_FIELDS:
            kwargs[attr] = to_count(data.get(key))
        for key, attr in AMIS_TEXT_FIELDS + _JOB_OPTIONAL_TEXT_FIELDS:
            kwargs[attr] = to_optional_text(data.get(key))
        for key, attr in AMIS_NUMBER_FIELDS:
            kwargs[attr] = to_optional_number(data.get(key))

        year = data.get("year")
        kwargs["year"] = int(to_number(year)) if year not in (None, "") else None

        kwargs["extensions"] = [Extension.from_dict(e) for e in _dict_list(data.get("extensions"))]
        kwargs["additional_receipts"] = [
            AdditionalReceipt.from_dict(r) for r in _dict_list(data.get("additionalReceipts"))
        ]
        kwargs["refunds"] = [RefundRecord.from_dict(r) for r in _dict_list(data.get("refunds"))]
        kwargs["booking_cost_details"] = data.get("bookingCostDetails")
        return cls(**kwargs)

    def to_dict(self) -> dict:
        out: dict[str, Any] = {}
        for key, attr in _JOB_TEXT_FIELDS:
            out[key] = getattr(self, attr)
        out["year"] = self.year
        for key, attr in _JOB_NUMBER_FIELDS + _JOB_COUNT_FIELDS:
            out[key] = getattr(self, attr)
        for key, attr in AMIS_TEXT_FIELDS + AMIS_NUMBER_FIELDS + _JOB_OPTIONAL_TEXT_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                out[key] = value
        out["extensions"] = [e.to_dict() for e in self.extensions]
        out["additionalReceipts"] = [r.to_dict() for r in self.additional_receipts]
        out["refunds"] = [r.to_dict() for r in self.refunds]
        if self.booking_cost_details is not None:
            out["bookingCostDetails"] = self.booking_cost_details
        return out


# =============================================================================
# VOUCHER TYPES AND STATES
# =============================================================================

VOUCHER_LOCAL_CHARGE = "LOCAL_CHARGE"
VOUCHER_DEPOSIT = "DEPOSIT"
VOUCHER_PAYMENT_OUT = "PAYMENT_OUT"
VOUCHER_DEPOSIT_OUT = "DEPOSIT_OUT"
VOUCHER_DEPOSIT_REFUND = "DEPOSIT_REFUND"
VOUCHER_EXTENSION_PAYMENT = "EXTENSION_PAYMENT"

STATE_NOT_CREATED = "NOT_CREATED"
STATE_PENDING = "PENDING"
STATE_RECORDED = "RECORDED"


@dataclass(frozen=True)
class VoucherType:
    key: str
    doc_no_attr: str
    date_attr: str
    desc_attr: str
    amount_attr: str
    # Wire keys of the money fields frozen once a doc no is assigned
    locked_fields: tuple[str, ...]

    @property
    def doc_no_key(self) -> str:
        return _ATTR_TO_WIRE[self.doc_no_attr]


_ATTR_TO_WIRE = {attr: key for key, attr in AMIS_TEXT_FIELDS}

VOUCHER_TYPES: dict[str, VoucherType] = {
    VOUCHER_LOCAL_CHARGE: VoucherType(
        VOUCHER_LOCAL_CHARGE, "amis_lc_doc_no", "local_charge_date", "amis_lc_desc",
        "local_charge_total", ("localChargeNet", "localChargeVat", "localChargeTotal"),
    ),
    VOUCHER_DEPOSIT: VoucherType(
        VOUCHER_DEPOSIT, "amis_deposit_doc_no", "ngay_thu_cuoc", "amis_deposit_desc",
        "thu_cuoc", ("thuCuoc",),
    ),
    VOUCHER_PAYMENT_OUT: VoucherType(
        VOUCHER_PAYMENT_OUT, "amis_payment_doc_no", "amis_payment_date", "amis_payment_desc",
        "chi_payment", ("chiPayment",),
    ),
    VOUCHER_DEPOSIT_OUT: VoucherType(
        VOUCHER_DEPOSIT_OUT, "amis_deposit_out_doc_no", "amis_deposit_out_date", "amis_deposit_out_desc",
        "chi_cuoc", ("chiCuoc",),
    ),
    VOUCHER_DEPOSIT_REFUND: VoucherType(
        VOUCHER_DEPOSIT_REFUND, "amis_deposit_refund_doc_no", "amis_deposit_refund_date", "amis_deposit_refund_desc",
        "amis_deposit_refund_amount", ("amisDepositRefundAmount",),
    ),
    VOUCHER_EXTENSION_PAYMENT: VoucherType(
        VOUCHER_EXTENSION_PAYMENT, "amis_extension_payment_doc_no", "amis_extension_payment_date",
        "amis_extension_payment_desc", "amis_extension_payment_amount", ("amisExtensionPaymentAmount",),
    ),
}


@dataclass(frozen=True)
class VoucherState:
    voucher_type: str
    status: str
    doc_no: Optional[str] = None
    date: Optional[str] = None
    desc: Optional[str] = None
    amount: float | int = 0

    @property
    def is_paid(self) -> bool:
        return self.status == STATE_RECORDED

    def to_dict(self) -> dict:
        return {
            "voucher_type": self.voucher_type,
            "status": self.status,
            "is_paid": self.is_paid,
            "doc_no": self.doc_no,
            "date": self.date,
            "desc": self.desc,
            "amount": self.amount,
        }


def voucher_state(job: JobRecord, voucher_type: str) -> VoucherState:
    """
    Explicit state of one voucher on a job.

    RECORDED once a doc no is assigned; PENDING when money or a date was
    entered (or, for local charge, a receiving bank) without a voucher;
    NOT_CREATED otherwise.
    """
    vt = VOUCHER_TYPES[voucher_type]
    doc_no = getattr(job, vt.doc_no_attr)
    date = getattr(job, vt.date_attr) or None
    amount = getattr(job, vt.amount_attr) or 0

    if doc_no and doc_no.strip():
        return VoucherState(voucher_type, STATE_RECORDED, doc_no, date, getattr(job, vt.desc_attr), amount)

    pending = amount > 0 or bool(date)
    if voucher_type == VOUCHER_LOCAL_CHARGE and job.bank:
        pending = True
    return VoucherState(voucher_type, STATE_PENDING if pending else STATE_NOT_CREATED, None, date, None, amount)
