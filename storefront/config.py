import os
import yaml
import logging
from pathlib import Path
from typing import Any, Optional
from pydantic import BaseModel, Field
from storefront.modules.config_models import BusinessRulesConfig, CatalogConfig


class StorefrontConfig(BaseModel):
    root_dir: Path

    # Fields derived from root_dir, calculated during initialization
    data_dir: Path = Field(default=None)
    config_dir: Path = Field(default=None)
    output_dir: Path = Field(default=None)
    templates_dir: Path = Field(default=None)
    bookings_dir: Path = Field(default=None)
    cart_path: Path = Field(default=None)
    business_rules_path: Path = Field(default=None)
    catalog_path: Path = Field(default=None)

    _business_rules: Optional[BusinessRulesConfig] = None
    _catalog: Optional[CatalogConfig] = None

    model_config = {"arbitrary_types_allowed": True}

    def model_post_init(self, __context: Any) -> None:
        """Initialize dependent paths after root_dir is set."""
        if not self.data_dir: self.data_dir = self.root_dir / "data"
        if not self.config_dir: self.config_dir = self.root_dir / "config"
        if not self.output_dir: self.output_dir = self.root_dir / "output"
        if not self.templates_dir: self.templates_dir = Path(__file__).parent / "templates"
        if not self.bookings_dir: self.bookings_dir = self.data_dir / "bookings"
        if not self.cart_path: self.cart_path = self.data_dir / "cart.json"
        if not self.business_rules_path: self.business_rules_path = self.config_dir / "business_rules.yaml"
        if not self.catalog_path: self.catalog_path = self.config_dir / "services.yaml"

    @property
    def business_rules(self) -> BusinessRulesConfig:
        if self._business_rules is None:
            with open(self.business_rules_path, 'r') as f:
                raw = yaml.safe_load(f)
            self._business_rules = BusinessRulesConfig(**raw)
        return self._business_rules

    @property
    def catalog(self) -> CatalogConfig:
        if self._catalog is None:
            with open(self.catalog_path, 'r') as f:
                raw = yaml.safe_load(f)
            self._catalog = CatalogConfig.from_dict(raw)
        return self._catalog

    @classmethod
    def load_default(cls) -> 'StorefrontConfig':
        package_dir = Path(__file__).parent
        root_dir = package_dir.parent
        return cls(root_dir=root_dir)


def setup_logging(config: StorefrontConfig):
    log_dir = config.root_dir / "logs"
    os.makedirs(log_dir, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_dir / 'storefront.log'),
            logging.StreamHandler()
        ]
    )
