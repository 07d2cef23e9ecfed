import datetime
import logging
from typing import List, Optional

from storefront.modules.models import BookingRecord, BookerInfo, CartState
from storefront.modules.tax_engine import apportion_tax
from storefront.services.cart_service import CartService

logger = logging.getLogger(__name__)


class BookingService:
    """Turns a paid cart into booking records that carry their own tax fields."""

    def __init__(self, cart_service: CartService):
        self.cart_service = cart_service

    def validate_cart(self, cart: CartState) -> None:
        if not cart.items:
            raise ValueError("Your cart is empty")
        for idx, item in enumerate(cart.items, start=1):
            name = self.cart_service.catalog.display_name(item.service_key)
            details = item.details
            if not details.booking_date:
                raise ValueError(f"({name} - Item {idx}) Telecast date is required")
            if not (details.beneficiary_name or "").strip():
                raise ValueError(f"({name} - Item {idx}) Beneficiary name is required")
            if not (details.booker_name or "").strip():
                raise ValueError(f"({name} - Item {idx}) Your name is required")
            if not (details.booker_email or "").strip():
                raise ValueError(f"({name} - Item {idx}) Email is required")
            if not (details.booker_phone or "").strip():
                raise ValueError(f"({name} - Item {idx}) Phone number is required")

    def create_bookings(
        self,
        booker: BookerInfo,
        order_id: Optional[str] = None,
        payment_id: Optional[str] = None,
        created: Optional[datetime.datetime] = None,
    ) -> List[BookingRecord]:
        cart = self.cart_service.cart
        self.validate_cart(cart)

        totals = self.cart_service.totals()
        line_totals = [self.cart_service.line_total(item) for item in cart.items]
        shares = apportion_tax(totals.breakdown(), line_totals)
        created = created or datetime.datetime.now()

        bookings = []
        for item, line_total, share in zip(cart.items, line_totals, shares):
            details = item.details
            bookings.append(
                BookingRecord(
                    id=item.id,
                    service_type=item.service_key,
                    service_name=self.cart_service.catalog.display_name(item.service_key),
                    beneficiary_name=details.beneficiary_name,
                    booker_name=details.booker_name or booker.name,
                    booker_email=details.booker_email or booker.email,
                    booker_phone=details.booker_phone or booker.phone,
                    intention_text=details.intention_text or "",
                    booking_date=details.booking_date,
                    booking_type=item.line_item.recurrence,
                    amount=line_total,
                    cgst_amount=share.cgst,
                    sgst_amount=share.sgst,
                    igst_amount=share.igst,
                    tax_amount=share.total_tax,
                    tax_type=share.tax_type,
                    currency=cart.currency,
                    order_id=order_id,
                    payment_id=payment_id,
                    created_date=created,
                    meta={
                        "state": booker.state,
                        "country": booker.country,
                        "base_price": str(item.line_item.base_price),
                    },
                )
            )
        logger.info(f"Created {len(bookings)} bookings for order {order_id}")
        return bookings
