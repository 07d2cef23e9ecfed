#!/usr/bin/env python3

import sys
import os
import argparse
import glob
import yaml
from storefront.invoice_controller import generate, config
from storefront.config import setup_logging
from storefront.modules.models import BookingRecord
from storefront.services.numbering import NumberingService


def handle_wizard_mode():
    from storefront.wizard.cli import CheckoutWizard
    CheckoutWizard().run()


def handle_renumber(path):
    with open(path, 'r') as f:
        raw = yaml.safe_load(f) or {}

    bookings = [BookingRecord(**b) for b in raw.get("bookings", [])]
    if not bookings:
        print(f"No bookings found in {path}")
        return

    raw["bookings"] = [
        b.model_dump(mode="json") for b in NumberingService().assign_sequential_trns(bookings)
    ]
    with open(path, 'w') as f:
        yaml.dump(raw, f, sort_keys=False, allow_unicode=True)
    print(f"Renumbered {len(bookings)} bookings in {path}")


def process_file(path, args):
    """Unified handler for a single bookings file."""
    if args.renumber:
        handle_renumber(path)
        return True
    result = generate(str(path))
    if result:
        print(f"Generated PDF: {result['pdf_path']}")
        return True
    return False


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Service booking checkout and invoice generation.")
    parser.add_argument("filenames", nargs="*", help="Bookings YAML files to invoice")
    parser.add_argument("--wizard", action="store_true", help="Run the interactive checkout wizard")
    parser.add_argument("--renumber", action="store_true", help="Re-assign sequential TRNs by creation date")

    args = parser.parse_args()
    setup_logging(config)

    if args.wizard:
        handle_wizard_mode()
        sys.exit(0)

    files = args.filenames
    if not files:
        print("No filenames provided. Scanning bookings directory...")
        files = sorted(glob.glob(str(config.bookings_dir / "*.yaml")))

    count = 0
    for path in files:
        if process_file(path, args):
            count += 1
        else:
            print(f"Skipped {os.path.basename(path)}")

    print(f"\nSummary: Processed {count} of {len(files)} files.")
