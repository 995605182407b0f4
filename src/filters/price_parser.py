# src/filters/price_parser.py

"""Normalise heterogeneous price text into a numeric value."""

import logging
import math
import re

logger = logging.getLogger("pricewatch.parser")

# Country-code dollar prefixes (CA$, US$ ...) plus anything that is not
# a digit or a separator.
_STRIP_RE = re.compile(r"(?:CA|US|AU|NZ|HK|SG)\$|[^\d.,]")

_THOUSANDS_RUN_RE = re.compile(r"[\d,]+\.?\d*")
_NUMBER_RUN_RE = re.compile(r"\d+(?:\.\d+)?")


class PriceParser:
    """Turn price strings like ``'CA$1,299.99'`` into floats."""

    @staticmethod
    def clean(text: str) -> str:
        """Drop currency prefixes/symbols and keep digits, ``,`` and ``.``."""
        return _STRIP_RE.sub("", text)

    @staticmethod
    def parse(text: object) -> float:
        """Parse a price string, returning ``0.0`` when nothing usable.

        Separator handling:

        - both ``,`` and ``.``: comma is a thousands separator.
        - only ``,``: a single comma followed by at most two digits is
          a decimal separator (``29,99``); otherwise commas are
          thousands separators (``1,500``).
        - otherwise the first integer-or-decimal run is used.
        """
        if not isinstance(text, str) or not text.strip():
            return 0.0

        cleaned = PriceParser.clean(text)
        if not any(ch.isdigit() for ch in cleaned):
            return 0.0

        if "," in cleaned and "." in cleaned:
            match = _THOUSANDS_RUN_RE.search(cleaned)
            candidate = match.group(0).replace(",", "") if match else ""
        elif "," in cleaned:
            parts = cleaned.split(",")
            if len(parts) == 2 and len(parts[1]) <= 2:
                candidate = cleaned.replace(",", ".")
            else:
                candidate = cleaned.replace(",", "")
        else:
            match = _NUMBER_RUN_RE.search(cleaned)
            candidate = match.group(0) if match else ""

        try:
            value = float(candidate)
        except ValueError:
            logger.debug("Could not parse price from %r", text)
            return 0.0

        if not math.isfinite(value) or value < 0:
            return 0.0
        return value
