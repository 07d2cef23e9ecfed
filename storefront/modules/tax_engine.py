import logging
from decimal import Decimal, ROUND_DOWN
from typing import List, Optional, Union

from storefront.modules.config_models import TaxConfiguration
from storefront.modules.models import TaxBreakdown, TaxType, Currency
from storefront.modules.pricing import CENT, to_dec, money, format_currency, currency_symbol

logger = logging.getLogger(__name__)

NO_TAX = TaxBreakdown()


def normalize_region(value: Optional[str]) -> str:
    """Lowercases and strips all whitespace so 'Tamil Nadu' matches 'tamilnadu'."""
    return "".join((value or "").lower().split())


def is_domestic(buyer_country: Optional[str], config: TaxConfiguration) -> bool:
    # No country on file counts as foreign
    return (buyer_country or "").strip().casefold() == config.home_country.strip().casefold()


def _igst(subtotal: Decimal, config: TaxConfiguration) -> TaxBreakdown:
    igst = money(subtotal * config.igst_rate / 100)
    return TaxBreakdown(igst=igst, total_tax=igst, tax_type=TaxType.IGST)


def compute_tax(
    subtotal,
    buyer_state: Optional[str],
    buyer_country: Optional[str],
    config: Optional[TaxConfiguration],
    currency: Optional[Union[str, Currency]] = None,
) -> TaxBreakdown:
    """
    Computes the GST breakdown for a subtotal.

    Same state as the seller gives CGST + SGST, any other state gives IGST.
    Buyers outside the seller's country are charged IGST unless the config's
    international_tax policy is 'exempt', in which case transactions outside
    the home currency carry no tax.
    """
    if config is None or not config.is_tax_enabled:
        return NO_TAX

    amount = to_dec(subtotal)
    if amount <= 0:
        return NO_TAX

    if config.international_tax == "exempt" and currency is not None:
        code = currency.value if isinstance(currency, Currency) else str(currency)
        if code.upper() != config.home_currency.upper():
            logger.debug("No tax on %s transaction under exempt policy", code)
            return NO_TAX

    if not is_domestic(buyer_country, config):
        logger.debug("International buyer (%s): IGST", buyer_country)
        return _igst(amount, config)

    if normalize_region(buyer_state) == normalize_region(config.home_state):
        cgst = money(amount * config.cgst_rate / 100)
        sgst = money(amount * config.sgst_rate / 100)
        logger.debug("Intra-state buyer (%s): CGST + SGST", buyer_state)
        return TaxBreakdown(
            cgst=cgst, sgst=sgst, total_tax=cgst + sgst, tax_type=TaxType.CGST_SGST
        )

    logger.debug("Inter-state buyer (%s): IGST", buyer_state)
    return _igst(amount, config)


def format_rate(rate: Decimal) -> str:
    return format(rate.normalize(), "f")


def tax_label(breakdown: TaxBreakdown, config: Optional[TaxConfiguration]) -> str:
    if breakdown.tax_type == TaxType.CGST_SGST and config:
        return f"CGST ({format_rate(config.cgst_rate)}%) + SGST ({format_rate(config.sgst_rate)}%)"
    if breakdown.tax_type == TaxType.IGST and config:
        return f"IGST ({format_rate(config.igst_rate)}%)"
    return "No Tax"


def format_tax_breakdown(breakdown: TaxBreakdown, currency: Union[str, Currency] = "INR") -> List[str]:
    symbol = currency_symbol(currency)
    if breakdown.tax_type == TaxType.CGST_SGST:
        return [
            f"CGST: {symbol}{format_currency(breakdown.cgst)}",
            f"SGST: {symbol}{format_currency(breakdown.sgst)}",
        ]
    if breakdown.tax_type == TaxType.IGST:
        return [f"IGST: {symbol}{format_currency(breakdown.igst)}"]
    return []


def split_amount(total: Decimal, weights: List[Decimal]) -> List[Decimal]:
    """Splits total proportionally to weights; earlier shares round down and the last absorbs the remainder."""
    weight_sum = sum(weights, Decimal("0"))
    shares = []
    allotted = Decimal("0.00")
    for i, weight in enumerate(weights):
        if i == len(weights) - 1:
            share = total - allotted
        elif weight_sum > 0:
            share = (total * weight / weight_sum).quantize(CENT, rounding=ROUND_DOWN)
        else:
            share = (total / len(weights)).quantize(CENT, rounding=ROUND_DOWN)
        shares.append(share)
        allotted += share
    return shares


def apportion_tax(breakdown: TaxBreakdown, line_totals: List[Decimal]) -> List[TaxBreakdown]:
    """
    Distributes a cart-level breakdown over its lines so the per-line values
    sum exactly to the cart values. These per-line values are what gets stored
    on each booking.
    """
    if not line_totals:
        return []
    weights = [to_dec(t) for t in line_totals]
    cgst = split_amount(breakdown.cgst, weights)
    sgst = split_amount(breakdown.sgst, weights)
    igst = split_amount(breakdown.igst, weights)
    return [
        TaxBreakdown(
            cgst=c,
            sgst=s,
            igst=i,
            total_tax=c + s + i,
            tax_type=breakdown.tax_type,
        )
        for c, s, i in zip(cgst, sgst, igst)
    ]
