import math
from decimal import Decimal, InvalidOperation
from typing import List, Dict, Any, Optional, Literal

from pydantic import BaseModel, Field, field_validator

# --- Tax Models ---

_TRUE_STRINGS = {"true", "1", "yes", "on"}

# Alternate key names used by the storefront settings records
_RECORD_ALIASES = {
    "is_enabled": "is_tax_enabled",
    "rate_cgst": "cgst_rate",
    "rate_sgst": "sgst_rate",
    "rate_igst": "igst_rate",
}


def parse_rate(v) -> Decimal:
    """Coerces a loosely-typed rate to a non-negative Decimal, 0 when malformed."""
    if v is None or isinstance(v, bool):
        return Decimal("0")
    try:
        rate = Decimal(str(v).strip().rstrip("%"))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not rate.is_finite() or rate < 0:
        return Decimal("0")
    return rate


def parse_flag(v) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in _TRUE_STRINGS
    return bool(v)


class TaxConfiguration(BaseModel):
    is_tax_enabled: bool = False
    home_state: str = ""
    home_country: str = "India"
    home_currency: str = "INR"
    cgst_rate: Decimal = Decimal("0")
    sgst_rate: Decimal = Decimal("0")
    igst_rate: Decimal = Decimal("0")
    international_tax: Literal["igst", "exempt"] = "igst"

    @field_validator("cgst_rate", "sgst_rate", "igst_rate", mode="before")
    def coerce_rate(cls, v):
        return parse_rate(v)

    @field_validator("is_tax_enabled", mode="before")
    def coerce_flag(cls, v):
        return parse_flag(v)

    @field_validator("home_state", "home_country", mode="before")
    def coerce_text(cls, v):
        return "" if v is None else str(v)

    @field_validator("international_tax", mode="before")
    def coerce_policy(cls, v):
        if v is None:
            return "igst"
        return str(v).strip().lower()

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]], **defaults) -> Optional["TaxConfiguration"]:
        """Builds a config from a raw settings record, or None when there is no record."""
        if not record:
            return None
        data = dict(defaults)
        for key, value in record.items():
            data[_RECORD_ALIASES.get(key, key)] = value
        # Records tagged with a tax regime other than Indian GST carry no tax
        regime = data.pop("type", None)
        if regime is not None and str(regime).upper() != "GST_INDIA":
            data["is_tax_enabled"] = False
        known = {k: v for k, v in data.items() if k in cls.model_fields}
        return cls(**known)

    @classmethod
    def from_content_records(
        cls, records: List[Dict[str, Any]], section: str = "tax_config", **defaults
    ) -> Optional["TaxConfiguration"]:
        """Folds key-value content rows ({section, content_key, content_value}) into a config."""
        flat = {
            r.get("content_key"): r.get("content_value")
            for r in records or []
            if r.get("section") == section and r.get("content_key")
        }
        return cls.from_record(flat, **defaults)


# --- Business Rules Models ---

class SellerProfile(BaseModel):
    name: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    gstin: Optional[str] = None
    home_state: str = "Tamil Nadu"
    home_country: str = "India"
    home_currency: str = "INR"


class TaxProfile(BaseModel):
    is_tax_enabled: bool = True
    cgst_rate: float = 9.0
    sgst_rate: float = 9.0
    igst_rate: float = 18.0
    international_tax: str = "igst"


class PaymentRules(BaseModel):
    gateways: Dict[str, str] = {"INR": "razorpay", "USD": "paypal"}
    minor_unit_factor: int = 100


class CartRules(BaseModel):
    storage_key: str = "madha_tv_booking_cart"


class InvoiceDefaults(BaseModel):
    file_prefix: str = "Invoice"
    words_currencies: List[str] = ["INR"]
    terms: List[str] = []
    declaration: str = ""


class BusinessRulesConfig(BaseModel):
    seller: SellerProfile
    tax_profiles: Dict[str, TaxProfile]
    recurrence_multipliers: Dict[str, int] = {"one-time": 1, "monthly": 12, "yearly": 12}
    payment: PaymentRules = Field(default_factory=PaymentRules)
    cart: CartRules = Field(default_factory=CartRules)
    invoice_defaults: InvoiceDefaults = Field(default_factory=InvoiceDefaults)

    def tax_config(self, profile: str = "services") -> TaxConfiguration:
        tax_profile = self.tax_profiles.get(profile)
        if tax_profile is None:
            raise ValueError(f"Unknown tax profile: {profile}")
        return TaxConfiguration(
            home_state=self.seller.home_state,
            home_country=self.seller.home_country,
            home_currency=self.seller.home_currency,
            **tax_profile.model_dump(),
        )


# --- Catalog Models ---

class ServiceDef(BaseModel):
    key: str
    title: str
    title_tamil: Optional[str] = None
    price_inr: Decimal
    price_usd: Decimal
    recurrence_options: List[str] = ["one-time"]
    requires_image: bool = False

    @field_validator("price_inr", "price_usd", mode="before")
    def parse_price(cls, v):
        if isinstance(v, float):
            if math.isnan(v) or math.isinf(v):
                raise ValueError(f"Invalid price: {v}")
            return Decimal(str(v))
        if isinstance(v, (int, str)):
            return Decimal(str(v))
        return v

    @field_validator("price_inr", "price_usd")
    def check_price(cls, v):
        if not v.is_finite() or v < 0:
            raise ValueError(f"Invalid price: {v}")
        return v

    def price_for(self, currency: str) -> Decimal:
        if currency == "INR":
            return self.price_inr
        if currency == "USD":
            return self.price_usd
        raise ValueError(f"Unsupported currency: {currency}")

    @property
    def supports_recurring(self) -> bool:
        return any(opt != "one-time" for opt in self.recurrence_options)


class CatalogConfig(BaseModel):
    services: Dict[str, ServiceDef]
    key_aliases: Dict[str, str] = {}
    memorial_keywords: List[str] = []
    usd_fallback_divisor: int = 80

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogConfig":
        services = {}
        for k, v in data.get("services", {}).items():
            services[k] = ServiceDef(key=k, **v)
        return cls(
            services=services,
            key_aliases=data.get("key_aliases", {}),
            memorial_keywords=data.get("memorial_keywords", []),
            usd_fallback_divisor=data.get("usd_fallback_divisor", 80),
        )
