import logging
from decimal import Decimal
from typing import List, Optional, Dict, Union

from storefront.modules.config_models import TaxConfiguration
from storefront.modules.models import (
    LineItem,
    BookingRecord,
    InvoiceTotals,
    TaxBreakdown,
    TaxType,
    Currency,
)
from storefront.modules.pricing import compute_line_total, money, to_dec
from storefront.modules.tax_engine import compute_tax, split_amount

logger = logging.getLogger(__name__)


def cart_subtotal(line_items: List[LineItem], multipliers: Optional[Dict[str, int]] = None) -> Decimal:
    subtotal = Decimal("0.00")
    for item in line_items:
        subtotal += compute_line_total(item.base_price, item.recurrence, multipliers)
    return money(subtotal)


def totals_from_breakdown(subtotal: Decimal, breakdown: TaxBreakdown) -> InvoiceTotals:
    return InvoiceTotals(
        subtotal=money(subtotal),
        cgst=breakdown.cgst,
        sgst=breakdown.sgst,
        igst=breakdown.igst,
        total_tax=breakdown.total_tax,
        total=money(subtotal + breakdown.total_tax),
        tax_type=breakdown.tax_type,
    )


def build_invoice(
    line_items: List[LineItem],
    tax_config: Optional[TaxConfiguration],
    buyer_state: Optional[str],
    buyer_country: Optional[str],
    multipliers: Optional[Dict[str, int]] = None,
    currency: Optional[Union[str, Currency]] = None,
) -> InvoiceTotals:
    """Reduces cart line items to subtotal, tax breakdown and grand total."""
    subtotal = cart_subtotal(line_items, multipliers)
    if currency is None and line_items:
        currency = line_items[0].currency
    breakdown = compute_tax(subtotal, buyer_state, buyer_country, tax_config, currency)
    return totals_from_breakdown(subtotal, breakdown)


def _tax_type_from_sums(cgst: Decimal, sgst: Decimal, igst: Decimal) -> TaxType:
    if cgst > 0 or sgst > 0:
        return TaxType.CGST_SGST
    if igst > 0:
        return TaxType.IGST
    return TaxType.NONE


def _stored_tax_type(bookings: List[BookingRecord]) -> Optional[TaxType]:
    stored = {b.tax_type for b in bookings if b.tax_type != TaxType.NONE}
    if len(stored) > 1:
        logger.warning(f"Bookings carry mixed tax types: {sorted(t.value for t in stored)}")
        return None
    return stored.pop() if stored else None


def summarize_bookings(
    bookings: List[BookingRecord],
    tax_config: Optional[TaxConfiguration] = None,
    buyer_state: Optional[str] = None,
    buyer_country: Optional[str] = None,
) -> InvoiceTotals:
    """
    Sums the tax fields stored on each booking. Tax is not recomputed here:
    the tax_amount values persisted at booking time are the source of truth.

    Bookings that stored only tax_amount take their tax type from the stored
    tax_type, or else from the buyer location, and the stored total is split
    into the matching components.
    """
    subtotal = sum((b.amount for b in bookings), Decimal("0.00"))
    cgst = sum((b.cgst_amount for b in bookings), Decimal("0.00"))
    sgst = sum((b.sgst_amount for b in bookings), Decimal("0.00"))
    igst = sum((b.igst_amount for b in bookings), Decimal("0.00"))
    total_tax = sum((b.tax_amount for b in bookings), Decimal("0.00"))

    component_sum = cgst + sgst + igst
    tax_type = _stored_tax_type(bookings) or _tax_type_from_sums(cgst, sgst, igst)

    if component_sum > 0 and component_sum != total_tax:
        logger.warning(
            f"Stored tax_amount total {total_tax} differs from CGST+SGST+IGST {component_sum}"
        )
    elif component_sum == 0 and total_tax > 0:
        if tax_type == TaxType.NONE:
            tax_type = compute_tax(
                subtotal, buyer_state, buyer_country, tax_config, bookings[0].currency
            ).tax_type
        if tax_type == TaxType.IGST:
            igst = total_tax
        elif tax_type == TaxType.CGST_SGST:
            weights = [tax_config.cgst_rate, tax_config.sgst_rate] if tax_config else [1, 1]
            cgst, sgst = split_amount(total_tax, [to_dec(w) for w in weights])
        else:
            logger.warning(f"Stored tax {total_tax} has no GST classification")

    return InvoiceTotals(
        subtotal=money(subtotal),
        cgst=money(cgst),
        sgst=money(sgst),
        igst=money(igst),
        total_tax=money(total_tax),
        total=money(subtotal + total_tax),
        tax_type=tax_type,
    )
