from decimal import Decimal, ROUND_HALF_UP

from storefront.modules.pricing import to_dec

ONES = [
    "", "ONE", "TWO", "THREE", "FOUR", "FIVE", "SIX", "SEVEN", "EIGHT", "NINE",
    "TEN", "ELEVEN", "TWELVE", "THIRTEEN", "FOURTEEN", "FIFTEEN", "SIXTEEN",
    "SEVENTEEN", "EIGHTEEN", "NINETEEN",
]
TENS = ["", "", "TWENTY", "THIRTY", "FORTY", "FIFTY", "SIXTY", "SEVENTY", "EIGHTY", "NINETY"]

# Indian grouping: crore (2 digits), lakh (2), thousand (2), hundred (1), units (2)
GROUPS = [(2, "CRORE"), (2, "LAKH"), (2, "THOUSAND"), (1, "HUNDRED"), (2, "")]
MAX_DIGITS = sum(width for width, _ in GROUPS)


def two_digit_words(n: int) -> str:
    if n < 20:
        return ONES[n]
    return f"{TENS[n // 10]} {ONES[n % 10]}".strip()


def number_to_words(num: int) -> str:
    """Spells a whole number up to 99,99,99,999 using crore/lakh grouping."""
    if num < 0:
        raise ValueError(f"Cannot spell a negative amount: {num}")
    digits = str(num)
    if len(digits) > MAX_DIGITS:
        raise ValueError(f"Amount too large to spell: {num}")
    digits = digits.zfill(MAX_DIGITS)

    parts = []
    pos = 0
    for width, scale in GROUPS:
        chunk = int(digits[pos:pos + width])
        pos += width
        if chunk:
            parts.append(f"{two_digit_words(chunk)} {scale}".strip())
    return " ".join(parts)


def amount_in_words(amount, unit: str = "RUPEES") -> str:
    """Rounds to whole units and spells the amount, e.g. 'TWO THOUSAND SIXTY FIVE RUPEES'."""
    whole = int(to_dec(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    words = number_to_words(whole)
    if not words:
        return ""
    return f"{words} {unit}"
