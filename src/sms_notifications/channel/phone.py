"""Phone number normalisation to the E.164 digit form the gateway expects.

E.164 numbers carry no ``+`` prefix here, only digits: the country code
followed by the subscriber number, at most 15 digits.
"""

import re

# Country code -> accepted subscriber number lengths (without the trunk 0).
COUNTRY_CODES: dict[str, tuple[int, ...]] = {
    "44": (10,),  # UK
    "48": (9,),  # Poland
}

E164_MAX_DIGITS = 15
E164_MIN_DIGITS = 7


def format_phone_number(phone_number: str) -> str:
    digits = re.sub(r"\D", "", phone_number)

    for code, lengths in COUNTRY_CODES.items():
        if digits.startswith(code) and len(digits) - len(code) in lengths:
            return digits

    # National numbers: trunk 0 followed by the subscriber number.
    if digits.startswith("0"):
        for code, lengths in COUNTRY_CODES.items():
            if len(digits) - 1 in lengths:
                return code + digits[1:]

    return digits[:E164_MAX_DIGITS]


def is_valid_phone_number(phone_number: str) -> bool:
    formatted = format_phone_number(phone_number)
    if not E164_MIN_DIGITS <= len(formatted) <= E164_MAX_DIGITS:
        return False

    for code, lengths in COUNTRY_CODES.items():
        if formatted.startswith(code) and len(formatted) - len(code) in lengths:
            return True

    return 10 <= len(formatted) <= E164_MAX_DIGITS
