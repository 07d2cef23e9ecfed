import sys
import yaml
from datetime import date
import questionary

from storefront.modules.models import BookerInfo
from storefront.modules.pricing import format_amount
from storefront.wizard.state import WizardState

# Custom Style for Legibility
style = questionary.Style(
    [
        ("qmark", "fg:#b71c1c bold"),
        ("question", "bold"),
        ("answer", "fg:#ff9d00 bold"),
        ("pointer", "fg:#ff9d00 bold"),
        ("highlighted", "fg:#ffffff bg:#b71c1c"),
        ("selected", "fg:#ff9d00"),
        ("separator", "fg:#6C6C6C"),
        ("instruction", "fg:#6C6C6C italic"),
        ("text", ""),
        ("disabled", "fg:#858585 italic"),
    ]
)


def validate_date(val):
    try:
        date.fromisoformat(val)
        return True
    except ValueError:
        return "Please enter a date as YYYY-MM-DD"


class CheckoutWizard:
    def __init__(self, state: WizardState = None):
        self.state = state or WizardState()
        self.cart = self.state.cart_service

    def run(self):
        print("\n🛒  SERVICE BOOKING CHECKOUT\n")
        print("(Ctrl+C or Ctrl+D to quit)\n")

        if self.cart.cart.items and not questionary.confirm(
            f"Resume saved cart ({len(self.cart.cart.items)} items)?", style=style
        ).ask():
            self.cart.clear()

        currency = questionary.select(
            "Currency:", choices=["INR", "USD"], default=self.cart.cart.currency.value, style=style
        ).ask()
        if not currency:
            sys.exit(0)
        if currency != self.cart.cart.currency.value:
            self.cart.switch_currency(currency)

        while True:
            self.add_service()
            if not questionary.confirm("Add another service?", default=False, style=style).ask():
                break

        state = questionary.text("Your State:", default=self.cart.cart.buyer_state or "").ask()
        country = questionary.text("Your Country:", default=self.cart.buyer_country).ask()
        self.cart.set_buyer_location(state, country)

        if not self.show_summary():
            return

        if questionary.confirm("Confirm bookings and write the bookings file?", style=style).ask():
            self.write_bookings(BookerInfo(state=state, country=country))

    def add_service(self):
        choice = questionary.select(
            "Service:", choices=self.state.service_choices(), style=style
        ).ask()
        if not choice:
            sys.exit(0)
        key = self.state.key_for_choice(choice)
        service = self.state.catalog.get(key)

        recurrence = "one-time"
        if service.supports_recurring:
            recurrence = questionary.select(
                "Booking Type:", choices=service.recurrence_options, style=style
            ).ask()

        details = {
            "booking_date": questionary.text(
                "Telecast Date (YYYY-MM-DD):", default=str(date.today()), validate=validate_date
            ).ask(),
            "beneficiary_name": questionary.text("Dedicated to:").ask(),
            "booker_name": questionary.text("Your Name:").ask(),
            "booker_email": questionary.text("Email:").ask(),
            "booker_phone": questionary.text("Phone:").ask(),
            "intention_text": questionary.text("Message / Intention:").ask(),
        }
        try:
            self.cart.add_item(key, recurrence, details)
        except ValueError as e:
            print(f"\n❌ {e}\n")

    def show_summary(self):
        currency = self.cart.cart.currency
        print("\n--- CART ---")
        for idx, item in enumerate(self.cart.cart.items, start=1):
            name = self.state.catalog.display_name(item.service_key)
            total = self.cart.line_total(item)
            print(f"{idx}. {name} ({item.line_item.recurrence.value}): {format_amount(total, currency)}")

        totals = self.cart.totals()
        tax = self.cart.tax_summary()
        print(f"\nSubtotal: {format_amount(totals.subtotal, currency)}")
        print(f"Tax: {tax['label']}")
        for line in tax["lines"]:
            print(f"  {line}")
        print(f"Total: {format_amount(totals.total, currency)}")

        try:
            order = self.cart.payment_order()
        except ValueError as e:
            print(f"\n❌ {e}")
            return False
        print(f"\nPayment via {order.gateway.value}: {order.amount_minor} minor units")
        return True

    def write_bookings(self, booker: BookerInfo):
        if not self.cart.cart.items:
            print("\n❌ ERROR: Your cart is empty")
            return
        first = self.cart.cart.items[0].details
        booker = booker.model_copy(
            update={"name": first.booker_name, "email": first.booker_email, "phone": first.booker_phone}
        )
        try:
            bookings = self.state.booking_service.create_bookings(booker)
        except ValueError as e:
            print(f"\n❌ ERROR: {e}")
            return

        out_dir = self.state.config.bookings_dir
        out_dir.mkdir(parents=True, exist_ok=True)
        slug = f"{date.today()}-{bookings[0].id[-8:]}.yaml"
        filename = questionary.text("Filename:", default=slug, style=style).ask()
        out_path = out_dir / filename

        payload = {
            "booker": booker.model_dump(mode="json"),
            "bookings": [b.model_dump(mode="json") for b in bookings],
            "tax_config": self.state.tax_config.model_dump(mode="json"),
        }
        with open(out_path, "w") as f:
            yaml.dump(payload, f, sort_keys=False, allow_unicode=True)

        self.cart.clear()
        print(f"Saved to {out_path}")
