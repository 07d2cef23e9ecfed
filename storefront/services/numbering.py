import datetime
import logging
from typing import List, Optional

from storefront.modules.models import BookingRecord

logger = logging.getLogger(__name__)


class NumberingService:
    def __init__(self, width: int = 3):
        self.width = width

    def resolve_invoice_number(self, bookings: List[BookingRecord]) -> str:
        """
        Determines the invoice number shown on the document.
        Priority: TRN of the first booking, then its order id, then a short id.
        """
        if not bookings:
            return "INV-UNKNOWN"
        first = bookings[0]
        if first.trn:
            return first.trn
        if first.order_id:
            return first.order_id
        if first.id:
            return f"INV-{first.id[-8:].upper()}"
        return "INV-UNKNOWN"

    def resolve_order_id(self, bookings: List[BookingRecord]) -> Optional[str]:
        for booking in bookings:
            if booking.order_id:
                return booking.order_id
        return None

    def assign_sequential_trns(self, bookings: List[BookingRecord]) -> List[BookingRecord]:
        """
        Re-numbers TRNs sequentially (001, 002, ...) in order of creation.
        Bookings with no creation date sort first, ties keep their input order.
        """
        def sort_key(item):
            idx, booking = item
            created = booking.created_date
            if created is None:
                return (datetime.datetime.min, idx)
            if created.tzinfo is not None:
                created = created.astimezone(datetime.timezone.utc).replace(tzinfo=None)
            return (created, idx)

        ordered = sorted(enumerate(bookings), key=sort_key)
        renumbered = []
        for rank, (_, booking) in enumerate(ordered, start=1):
            trn = f"{rank:0{self.width}d}"
            if booking.trn != trn:
                logger.info(f"Booking {booking.id}: TRN {booking.trn} -> {trn}")
            renumbered.append(booking.model_copy(update={"trn": trn}))
        return renumbered

    def next_trn(self, bookings: List[BookingRecord]) -> str:
        """Next free TRN after the highest numeric TRN on file."""
        max_seq = 0
        for booking in bookings:
            if booking.trn and booking.trn.isdigit():
                max_seq = max(max_seq, int(booking.trn))
        return f"{max_seq + 1:0{self.width}d}"
