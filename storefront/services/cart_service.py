import uuid
import logging
from typing import Optional, Dict, Any, Union

from storefront.modules.config_models import BusinessRulesConfig, TaxConfiguration
from storefront.modules.models import (
    CartItem,
    CartState,
    BookingDetails,
    Currency,
    Recurrence,
    PaymentGateway,
    PaymentOrder,
    InvoiceTotals,
)
from storefront.modules.pricing import compute_line_total, to_minor_units
from storefront.modules.tax_engine import tax_label, format_tax_breakdown
from storefront.services.cart_repository import CartRepository
from storefront.services.catalog_service import ServiceCatalog
from storefront.services.invoice_aggregator import build_invoice

logger = logging.getLogger(__name__)


class CartService:
    """Booking cart: one currency at a time, persisted through the repository on every change."""

    def __init__(
        self,
        repository: CartRepository,
        catalog: ServiceCatalog,
        rules: BusinessRulesConfig,
        tax_config: Optional[TaxConfiguration] = None,
    ):
        self.repository = repository
        self.catalog = catalog
        self.rules = rules
        self.tax_config = tax_config
        self.cart = repository.load()

    # --- Mutations ---

    def _commit(self, cart: CartState) -> CartState:
        self.cart = CartState.model_validate(cart.model_dump())
        self.repository.save(self.cart)
        return self.cart

    def gateway_for(self, currency: Union[str, Currency]) -> PaymentGateway:
        code = Currency(currency).value
        gateway = self.rules.payment.gateways.get(code)
        if gateway is None:
            raise ValueError(f"No payment gateway configured for {code}")
        return PaymentGateway(gateway)

    def add_item(
        self,
        service_key: str,
        recurrence: Union[str, Recurrence] = Recurrence.ONE_TIME,
        details: Optional[Union[BookingDetails, Dict[str, Any]]] = None,
    ) -> CartItem:
        key = self.catalog.resolve_key(service_key)
        line_item = self.catalog.line_item(key, self.cart.currency, recurrence)
        if isinstance(details, dict):
            details = BookingDetails(**details)
        item = CartItem(
            id=uuid.uuid4().hex,
            service_key=key,
            line_item=line_item,
            details=details or BookingDetails(),
        )
        cart = self.cart.model_copy(update={"items": [*self.cart.items, item]})
        self._commit(cart)
        logger.info(f"Added {key} ({line_item.recurrence.value}) to cart")
        return item

    def remove_item(self, item_id: str) -> None:
        remaining = [item for item in self.cart.items if item.id != item_id]
        if len(remaining) == len(self.cart.items):
            raise ValueError(f"Cart item {item_id} not found")
        self._commit(self.cart.model_copy(update={"items": remaining}))

    def switch_currency(self, currency: Union[str, Currency]) -> CartState:
        """Re-prices every item from the catalog in the new currency; no conversion rate is applied."""
        currency = Currency(currency)
        items = []
        for item in self.cart.items:
            line_item = self.catalog.line_item(
                item.service_key, currency, item.line_item.recurrence
            )
            items.append(item.model_copy(update={"line_item": line_item}))
        cart = self.cart.model_copy(
            update={
                "items": items,
                "currency": currency,
                "payment_gateway": self.gateway_for(currency),
            }
        )
        logger.info(f"Cart currency switched to {currency.value}")
        return self._commit(cart)

    def set_buyer_location(self, state: Optional[str], country: Optional[str]) -> CartState:
        return self._commit(
            self.cart.model_copy(update={"buyer_state": state, "buyer_country": country})
        )

    def clear(self) -> None:
        self.cart = CartState()
        self.repository.clear()

    # --- Totals ---

    @property
    def buyer_country(self) -> str:
        return self.cart.buyer_country or self.rules.seller.home_country

    def line_total(self, item: CartItem):
        return compute_line_total(
            item.line_item.base_price,
            item.line_item.recurrence,
            self.rules.recurrence_multipliers,
        )

    def totals(self) -> InvoiceTotals:
        return build_invoice(
            self.cart.line_items,
            self.tax_config,
            self.cart.buyer_state,
            self.buyer_country,
            multipliers=self.rules.recurrence_multipliers,
            currency=self.cart.currency,
        )

    def tax_summary(self) -> Dict[str, Any]:
        breakdown = self.totals().breakdown()
        return {
            "label": tax_label(breakdown, self.tax_config),
            "lines": format_tax_breakdown(breakdown, self.cart.currency),
        }

    def payment_order(self) -> PaymentOrder:
        if not self.cart.items:
            raise ValueError("Your cart is empty")
        totals = self.totals()
        return PaymentOrder(
            gateway=self.gateway_for(self.cart.currency),
            currency=self.cart.currency,
            amount=totals.total,
            amount_minor=to_minor_units(totals.total, self.rules.payment.minor_unit_factor),
        )
