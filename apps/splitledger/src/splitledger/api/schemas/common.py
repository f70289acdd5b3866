"""Shared schema constants."""

MONEY_PATTERN = r"^[0-9]+\.[0-9]{2}$"
SIGNED_MONEY_PATTERN = r"^-?[0-9]+\.[0-9]{2}$"
PERCENTAGE_PATTERN = r"^[0-9]+(\.[0-9]{1,4})?$"
