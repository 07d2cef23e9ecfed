import os
import json
import yaml
import logging
import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Any, Optional

from jinja2 import Environment, FileSystemLoader

from storefront.config import StorefrontConfig
from storefront.modules.config_models import TaxConfiguration
from storefront.modules.models import BookingRecord, BookerInfo
from storefront.modules.pricing import format_currency
from storefront.services.view_model_service import ViewModelService

config = StorefrontConfig.load_default()
logger = logging.getLogger(__name__)


class DecimalEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, Decimal): return float(o)
        if isinstance(o, Enum): return o.value
        if isinstance(o, (datetime.date, datetime.datetime)): return o.isoformat()
        if hasattr(o, 'model_dump'): return o.model_dump()
        return super(DecimalEncoder, self).default(o)


def sanitize_context_for_export(context):
    return json.loads(json.dumps(context, cls=DecimalEncoder))


def load_bookings_file(path: str, cfg: StorefrontConfig = None):
    """
    Reads a bookings YAML/JSON export:
      booker: {...}
      bookings: [{...}, ...]
      tax_config: {...}   # optional raw settings record
    """
    cfg = cfg or config
    with open(path, 'r') as f:
        raw = yaml.safe_load(f) or {}

    bookings = [BookingRecord(**b) for b in raw.get("bookings", [])]
    booker_data = raw.get("booker")
    if not booker_data and bookings:
        first = bookings[0]
        booker_data = {
            "name": first.booker_name,
            "email": first.booker_email,
            "phone": first.booker_phone,
        }
    booker = BookerInfo(**(booker_data or {}))

    seller = cfg.business_rules.seller
    tax_config = TaxConfiguration.from_record(
        raw.get("tax_config"),
        home_state=seller.home_state,
        home_country=seller.home_country,
        home_currency=seller.home_currency,
    )
    return bookings, booker, tax_config


def render_html(context: Dict[str, Any], cfg: StorefrontConfig = None) -> str:
    cfg = cfg or config
    env = Environment(loader=FileSystemLoader(str(cfg.templates_dir)), autoescape=True)
    env.filters['currency'] = format_currency
    return env.get_template("invoice.html").render(context)


def write_pdf(html: str, out_path, base_url: str):
    from weasyprint import HTML
    HTML(string=html, base_url=base_url).write_pdf(out_path)


def generate(path: str, cfg: StorefrontConfig = None) -> Optional[Dict[str, Any]]:
    """Renders the invoice PDF and a YAML sidecar of its context for a bookings file."""
    cfg = cfg or config
    try:
        logger.info(f"Processing: {path}")
        view_model_service = ViewModelService(cfg)
        bookings, booker, tax_config = load_bookings_file(path, cfg)
        document = view_model_service.build_document(bookings, booker, tax_config)
        context = view_model_service.build_context(document)

        print(f"Invoice Number: {document.invoice_number}")

        os.makedirs(cfg.output_dir, exist_ok=True)
        prefix = cfg.business_rules.invoice_defaults.file_prefix
        safe_id = document.invoice_number.replace('/', '_')
        out_path = cfg.output_dir / f"{prefix}-{safe_id}.pdf"

        html = render_html(context, cfg)
        write_pdf(html, out_path, str(cfg.templates_dir))

        with open(cfg.output_dir / f"{prefix}-{safe_id}.yaml", 'w') as f:
            yaml.dump(sanitize_context_for_export(context), f, sort_keys=False, allow_unicode=True)

        return {
            "pdf_path": str(out_path),
            "document": document,
            "invoice_number": document.invoice_number,
        }

    except Exception as e:
        logger.error(f"Failed to generate {path}: {e}", exc_info=True)
        print(f"Failed to generate {path}: {e}")
        return None
