import datetime
import logging
from typing import Dict, Any, List, Optional

from storefront.config import StorefrontConfig
from storefront.modules.amount_words import amount_in_words
from storefront.modules.config_models import TaxConfiguration
from storefront.modules.models import (
    BookingRecord,
    BookerInfo,
    InvoiceDocument,
    TaxRow,
    Currency,
)
from storefront.modules.pricing import currency_symbol
from storefront.modules.tax_engine import format_rate
from storefront.services.invoice_aggregator import summarize_bookings
from storefront.services.numbering import NumberingService

logger = logging.getLogger(__name__)

DESCRIPTION_LIMIT = 90


class ViewModelService:
    """Assembles invoice documents and prepares the dictionary for template rendering."""

    def __init__(self, config: StorefrontConfig, numbering: Optional[NumberingService] = None):
        self.config = config
        self.rules = config.business_rules
        self.numbering = numbering or NumberingService()

    def build_document(
        self,
        bookings: List[BookingRecord],
        booker: BookerInfo,
        tax_config: Optional[TaxConfiguration] = None,
        invoice_date: Optional[datetime.date] = None,
    ) -> InvoiceDocument:
        if not bookings:
            raise ValueError("Cannot build an invoice without bookings")
        currency = bookings[0].currency
        for booking in bookings[1:]:
            if booking.currency != currency:
                raise ValueError(
                    f"Booking {booking.id} is in {booking.currency.value}, invoice is in {currency.value}"
                )

        tax_config = tax_config or self.rules.tax_config()
        totals = summarize_bookings(bookings, tax_config, booker.state, booker.country)

        return InvoiceDocument(
            invoice_number=self.numbering.resolve_invoice_number(bookings),
            order_id=self.numbering.resolve_order_id(bookings),
            invoice_date=invoice_date or datetime.date.today(),
            currency=currency,
            booker=booker,
            lines=bookings,
            totals=totals,
            tax_rows=self._tax_rows(totals, tax_config),
            amount_in_words=self._words(totals.total, currency),
        )

    def _tax_rows(self, totals, tax_config: TaxConfiguration) -> List[TaxRow]:
        rows = []
        if totals.cgst > 0:
            rows.append(TaxRow(label="CGST", rate_desc=f"{format_rate(tax_config.cgst_rate)}%", amount=totals.cgst))
        if totals.sgst > 0:
            rows.append(TaxRow(label="SGST", rate_desc=f"{format_rate(tax_config.sgst_rate)}%", amount=totals.sgst))
        if totals.igst > 0:
            rows.append(TaxRow(label="IGST", rate_desc=f"{format_rate(tax_config.igst_rate)}%", amount=totals.igst))
        if not rows and totals.total_tax > 0:
            rows.append(TaxRow(label="Tax", amount=totals.total_tax))
        return rows

    def _words(self, total, currency: Currency) -> Optional[str]:
        if currency.value not in self.rules.invoice_defaults.words_currencies:
            return None
        try:
            return amount_in_words(total)
        except ValueError as e:
            logger.warning(f"Amount in words skipped: {e}")
            return None

    def build_context(self, document: InvoiceDocument) -> Dict[str, Any]:
        """Maps the invoice document to a template-friendly dictionary."""
        seller = self.rules.seller
        defaults = self.rules.invoice_defaults
        booker = document.booker

        return {
            "invoice": {
                "number": document.invoice_number,
                "order_id": document.order_id or "N/A",
                "date": document.invoice_date.strftime("%d/%m/%Y"),
                "currency": document.currency.value,
                "symbol": currency_symbol(document.currency),
                "amount_in_words": document.amount_in_words,
            },
            "seller": seller,
            "booker": {
                "name": booker.name or "N/A",
                "address": booker.address or "N/A",
                "state_country": f"{booker.state or 'N/A'}, {booker.country or 'N/A'}",
                "pincode": booker.pincode or "N/A",
                "email": booker.email or "N/A",
                "phone": booker.phone or "N/A",
            },
            "rows": [self._row(b) for b in document.lines],
            "totals": document.totals,
            "tax_rows": document.tax_rows,
            "terms": defaults.terms,
            "declaration": defaults.declaration,
        }

    def _row(self, booking: BookingRecord) -> Dict[str, Any]:
        message = booking.intention_text or "-"
        if len(message) > DESCRIPTION_LIMIT:
            message = message[:DESCRIPTION_LIMIT]

        date_text = "-"
        if booking.booking_date:
            value = booking.booking_date
            if isinstance(value, str):
                try:
                    value = datetime.date.fromisoformat(value[:10])
                except ValueError:
                    value = None
            if value:
                date_text = value.strftime("%d/%m/%Y")

        return {
            "description": booking.service_name or self._service_title(booking.service_type),
            "dedicated_to": booking.beneficiary_name or "N/A",
            "dedicated_by": booking.booker_name or "N/A",
            "message": message,
            "date": date_text,
            "amount": booking.amount,
            "recurrence": booking.booking_type.value,
        }

    def _service_title(self, service_type: Optional[str]) -> str:
        if not service_type:
            return ""
        service = self.config.catalog.services.get(service_type)
        if service:
            return service.title
        return service_type.replace("_", " ").title()
