# ==============================================================================
# partner_tracker/ingest/invoice.py
# ------------------------------------------------------------------------------
# Decodes invoice codes of the form "<fiscalYear>-...-<MON>" into the fiscal
# period they were disbursed in. The period is derived on demand and never
# stored, so a change to these rules applies to every existing payment.
# ==============================================================================

from collections import namedtuple

FiscalPeriod = namedtuple('FiscalPeriod', ['fiscal_year', 'month', 'month_number', 'display_year'])

MONTH_CODES = {
    'JAN': ('January', 1),
    'FEB': ('February', 2),
    'MAR': ('March', 3),
    'APR': ('April', 4),
    'MAY': ('May', 5),
    'JUN': ('June', 6),
    'JUL': ('July', 7),
    'AUG': ('August', 8),
    'SEP': ('September', 9),
    'OCT': ('October', 10),
    'NOV': ('November', 11),
    'DEC': ('December', 12),
}

MONTH_NAMES = [name for name, _ in sorted(MONTH_CODES.values(), key=lambda item: item[1])]
MONTH_ABBREVIATIONS = [name[:3] for name in MONTH_NAMES]

UNKNOWN_PERIOD = FiscalPeriod(fiscal_year='', month='Unknown', month_number=0, display_year='')


def decode(code):
    """
    Returns the FiscalPeriod encoded in an invoice code.

    The first hyphen-separated segment is the fiscal year (kept verbatim, it
    is not required to be numeric) and the last one is a three-letter month
    code. Anything in between is batch/sequence data and is ignored.
    Malformed codes, including None, decode to UNKNOWN_PERIOD.

    Example: decode('2024-001-JAN') -> FiscalPeriod('2024', 'January', 1, 'FY2024')
    """
    if code is None:
        return UNKNOWN_PERIOD

    parts = str(code).split('-')
    if len(parts) < 3:
        return UNKNOWN_PERIOD

    month_info = MONTH_CODES.get(parts[-1].upper())
    if month_info is None:
        return UNKNOWN_PERIOD

    fiscal_year = parts[0]
    month, month_number = month_info
    return FiscalPeriod(fiscal_year=fiscal_year, month=month, month_number=month_number,
                        display_year=f"FY{fiscal_year}")


def is_known(period):
    """True when the period decoded to a real month (the Unknown sentinel has no fiscal year)."""
    return bool(period.fiscal_year) and period.month_number > 0


def month_label(period):
    """Short chart label, e.g. 'Jan FY2024'."""
    return f"{MONTH_ABBREVIATIONS[period.month_number - 1]} FY{period.fiscal_year}"
