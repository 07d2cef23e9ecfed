import re
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, List

from storefront.modules.config_models import CatalogConfig, ServiceDef
from storefront.modules.models import Currency, LineItem, Recurrence, parse_amount

logger = logging.getLogger(__name__)


class ServiceCatalog:
    """Service price table: every service publishes a price in each currency."""

    def __init__(self, catalog: CatalogConfig):
        self.catalog = catalog
        self.services: Dict[str, ServiceDef] = dict(catalog.services)

    def get(self, key: str) -> ServiceDef:
        service = self.services.get(self.resolve_key(key))
        if service is None:
            raise ValueError(f"Unknown service: {key}")
        return service

    def price(self, key: str, currency: Currency) -> Decimal:
        return self.get(key).price_for(Currency(currency).value)

    def line_item(self, key: str, currency: Currency, recurrence: Recurrence) -> LineItem:
        """Prices a service for the cart, enforcing the service's recurrence options."""
        service = self.get(key)
        recurrence = Recurrence(recurrence)
        if recurrence.value not in service.recurrence_options:
            raise ValueError(
                f"{service.title} does not support {recurrence.value} bookings"
            )
        currency = Currency(currency)
        return LineItem(
            base_price=service.price_for(currency.value),
            currency=currency,
            recurrence=recurrence,
        )

    def resolve_key(self, title_or_key: str) -> str:
        """Maps a backend service title (or raw key) onto a catalog key."""
        original = str(title_or_key or "").lower().strip()
        if any(word in original for word in self.catalog.memorial_keywords):
            return "prayer_for_dead"
        raw_key = re.sub(r"[^a-z0-9]+", "_", original).strip("_")
        return self.catalog.key_aliases.get(raw_key, raw_key)

    def load_api_records(self, records: List[Dict[str, Any]]) -> List[ServiceDef]:
        """
        Replaces catalog prices with the ones published by the services API.
        Records look like {"services": "Holy Mass", "rate": "500", "usrate": "10"};
        a missing USD rate falls back to the INR rate over the fallback divisor.
        """
        loaded = []
        for record in records:
            title = record.get("services")
            key = self.resolve_key(title)
            existing = self.services.get(key)

            rate = parse_amount(record.get("rate") or 0)
            us_rate = str(record.get("usrate") or "").strip()
            if us_rate:
                price_usd = parse_amount(us_rate)
            else:
                price_usd = (rate / self.catalog.usd_fallback_divisor).quantize(
                    Decimal("1"), rounding=ROUND_HALF_UP
                )

            service = ServiceDef(
                key=key,
                title=title or key,
                title_tamil=record.get("service_title_tn")
                or (existing.title_tamil if existing else None),
                price_inr=rate,
                price_usd=price_usd,
                recurrence_options=existing.recurrence_options if existing else ["one-time"],
                requires_image=existing.requires_image if existing else False,
            )
            if existing is None:
                logger.warning(f"Service '{title}' has no booking rules, one-time only")
            self.services[key] = service
            loaded.append(service)
        return loaded

    def display_name(self, key: str, language: str = "english") -> str:
        service = self.get(key)
        if language == "tamil" and service.title_tamil:
            return service.title_tamil
        return service.title
