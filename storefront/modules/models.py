import re
import math
import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional, Union, Dict, Any
from pydantic import BaseModel, Field, field_validator, model_validator

# Regex Patterns
GSTIN_PATTERN = r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$"
EMAIL_PATTERN = r"\S+@\S+\.\S+"


class Currency(str, Enum):
    INR = "INR"
    USD = "USD"


class Recurrence(str, Enum):
    ONE_TIME = "one-time"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class TaxType(str, Enum):
    NONE = "none"
    CGST_SGST = "cgst_sgst"
    IGST = "igst"


class PaymentGateway(str, Enum):
    RAZORPAY = "razorpay"
    PAYPAL = "paypal"


def parse_amount(v, allow_none: bool = False):
    """Validates a monetary input: finite, non-negative, returned as Decimal."""
    if v is None:
        if allow_none:
            return None
        raise ValueError("Amount is required")
    if isinstance(v, bool):
        raise ValueError(f"Invalid amount: {v}")
    if isinstance(v, float) and (math.isnan(v) or math.isinf(v)):
        raise ValueError(f"Invalid amount: {v}")
    try:
        dec = Decimal(str(v).replace(",", "")) if not isinstance(v, Decimal) else v
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {v}")
    if not dec.is_finite():
        raise ValueError(f"Invalid amount: {v}")
    if dec < 0:
        raise ValueError(f"Amount cannot be negative: {v}")
    return dec


# --- Cart Models ---

class LineItem(BaseModel):
    base_price: Decimal
    currency: Currency = Currency.INR
    recurrence: Recurrence = Recurrence.ONE_TIME

    model_config = {"frozen": True}

    @field_validator("base_price", mode="before")
    def parse_price(cls, v):
        return parse_amount(v)


class BookingDetails(BaseModel):
    """Form data captured for one service booking."""
    booking_date: Optional[datetime.date] = None
    beneficiary_name: Optional[str] = None
    booker_name: Optional[str] = None
    booker_email: Optional[str] = None
    booker_phone: Optional[str] = None
    intention_text: Optional[str] = None

    @field_validator("booker_email")
    def validate_email(cls, v):
        if v and not re.search(EMAIL_PATTERN, v):
            raise ValueError(f"Invalid email address: {v}")
        return v


class CartItem(BaseModel):
    id: str
    service_key: str
    line_item: LineItem
    details: BookingDetails = Field(default_factory=BookingDetails)


class CartState(BaseModel):
    items: List[CartItem] = []
    currency: Currency = Currency.INR
    payment_gateway: PaymentGateway = PaymentGateway.RAZORPAY
    buyer_state: Optional[str] = None
    buyer_country: Optional[str] = None

    @model_validator(mode="after")
    def check_single_currency(self):
        for item in self.items:
            if item.line_item.currency != self.currency:
                raise ValueError(
                    f"Cart item {item.id} is priced in {item.line_item.currency.value}, "
                    f"cart currency is {self.currency.value}"
                )
        return self

    @property
    def line_items(self) -> List[LineItem]:
        return [item.line_item for item in self.items]


# --- Computed Models ---

class TaxBreakdown(BaseModel):
    cgst: Decimal = Decimal("0.00")
    sgst: Decimal = Decimal("0.00")
    igst: Decimal = Decimal("0.00")
    total_tax: Decimal = Decimal("0.00")
    tax_type: TaxType = TaxType.NONE

    model_config = {"frozen": True}


class InvoiceTotals(BaseModel):
    subtotal: Decimal = Decimal("0.00")
    cgst: Decimal = Decimal("0.00")
    sgst: Decimal = Decimal("0.00")
    igst: Decimal = Decimal("0.00")
    total_tax: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    tax_type: TaxType = TaxType.NONE

    def breakdown(self) -> TaxBreakdown:
        return TaxBreakdown(
            cgst=self.cgst,
            sgst=self.sgst,
            igst=self.igst,
            total_tax=self.total_tax,
            tax_type=self.tax_type,
        )


class PaymentOrder(BaseModel):
    gateway: PaymentGateway
    currency: Currency
    amount: Decimal
    amount_minor: int


# --- Booking / Invoice Models ---

class BookerInfo(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = "India"
    pincode: Optional[str] = None
    gstin: Optional[str] = None

    @field_validator("gstin")
    def validate_gstin(cls, v):
        if v and not re.match(GSTIN_PATTERN, v):
            raise ValueError(f"Invalid GSTIN format: {v}")
        return v


class BookingRecord(BaseModel):
    """A confirmed booking as persisted by the backend, carrying its own tax fields."""
    id: Optional[str] = None
    service_type: Optional[str] = None
    service_name: Optional[str] = None
    beneficiary_name: Optional[str] = None
    booker_name: Optional[str] = None
    booker_email: Optional[str] = None
    booker_phone: Optional[str] = None
    intention_text: Optional[str] = None
    booking_date: Optional[Union[str, datetime.date]] = None
    booking_type: Recurrence = Recurrence.ONE_TIME
    amount: Decimal = Decimal("0.00")
    cgst_amount: Decimal = Decimal("0.00")
    sgst_amount: Decimal = Decimal("0.00")
    igst_amount: Decimal = Decimal("0.00")
    tax_amount: Optional[Decimal] = None
    tax_type: TaxType = TaxType.NONE
    currency: Currency = Currency.INR
    status: str = "confirmed"
    order_id: Optional[str] = None
    payment_id: Optional[str] = None
    trn: Optional[str] = None
    created_date: Optional[datetime.datetime] = None
    meta: Dict[str, Any] = {}

    @field_validator("amount", "cgst_amount", "sgst_amount", "igst_amount", mode="before")
    def parse_money(cls, v):
        if v is None or v == "":
            return Decimal("0.00")
        return parse_amount(v)

    @field_validator("tax_amount", mode="before")
    def parse_tax(cls, v):
        if v == "":
            return None
        return parse_amount(v, allow_none=True)

    @model_validator(mode="after")
    def fill_tax_amount(self):
        if self.tax_amount is None:
            self.tax_amount = self.cgst_amount + self.sgst_amount + self.igst_amount
        return self


class TaxRow(BaseModel):
    label: str
    rate_desc: str = ""
    amount: Decimal


class InvoiceDocument(BaseModel):
    """Structured invoice payload handed to rendering and e-mail collaborators."""
    invoice_number: str
    order_id: Optional[str] = None
    invoice_date: datetime.date
    currency: Currency
    booker: BookerInfo
    lines: List[BookingRecord]
    totals: InvoiceTotals
    tax_rows: List[TaxRow] = []
    amount_in_words: Optional[str] = None
