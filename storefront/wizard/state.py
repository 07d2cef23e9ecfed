from typing import List, Optional

from storefront.config import StorefrontConfig
from storefront.modules.config_models import TaxConfiguration, ServiceDef
from storefront.services.cart_repository import JsonCartRepository
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import ServiceCatalog
from storefront.services.booking_service import BookingService


class WizardState:
    def __init__(self, config: Optional[StorefrontConfig] = None, tax_profile: str = "services"):
        self.config = config or StorefrontConfig.load_default()
        rules = self.config.business_rules
        self.catalog = ServiceCatalog(self.config.catalog)
        self.repository = JsonCartRepository(self.config.cart_path, rules.cart.storage_key)
        self.tax_config: TaxConfiguration = rules.tax_config(tax_profile)
        self.cart_service = CartService(self.repository, self.catalog, rules, self.tax_config)
        self.booking_service = BookingService(self.cart_service)

    @property
    def services(self) -> List[ServiceDef]:
        return list(self.catalog.services.values())

    def service_choices(self, language: str = "english") -> List[str]:
        return [self.catalog.display_name(s.key, language) for s in self.services]

    def key_for_choice(self, choice: str, language: str = "english") -> str:
        for service in self.services:
            if self.catalog.display_name(service.key, language) == choice:
                return service.key
        raise ValueError(f"Unknown service: {choice}")
