# ==============================================================================
# partner_tracker/ingest/aggregation.py
# ------------------------------------------------------------------------------
# Read-only summaries over payment lists. Payments can be PaymentRecord tuples
# or Payment model rows; only attribute access is used.
# ==============================================================================

from collections import namedtuple

from .invoice import MONTH_NAMES, decode, is_known, month_label

MonthlySpend = namedtuple('MonthlySpend', ['fiscal_year', 'month_number', 'label', 'amount'])
PartnerSpend = namedtuple('PartnerSpend', ['partner_id', 'partner_name', 'amount'])
AvailablePeriods = namedtuple('AvailablePeriods', ['months', 'years'])


def _is_set(value):
    return value is not None and value != ''


def total_spent(payments):
    return sum((payment.amount for payment in payments), 0.0)


def monthly_series(payments):
    """
    Groups spend by (fiscal year, month number) decoded from the invoice code.
    Payments with an undecodable code are left out. Sorted oldest first.
    """
    totals = {}
    labels = {}
    for payment in payments:
        period = decode(payment.invoice_code)
        if not is_known(period):
            continue
        key = (period.fiscal_year, period.month_number)
        totals[key] = totals.get(key, 0.0) + payment.amount
        labels[key] = month_label(period)

    return [
        MonthlySpend(fiscal_year=fiscal_year, month_number=month_number,
                     label=labels[(fiscal_year, month_number)], amount=amount)
        for (fiscal_year, month_number), amount in sorted(totals.items())
    ]


def spend_by_partner(payments, partners):
    """Spend per partner, largest first. Partners with nothing spent are dropped."""
    totals = {}
    for payment in payments:
        totals[payment.partner_id] = totals.get(payment.partner_id, 0.0) + payment.amount

    rows = [
        PartnerSpend(partner_id=partner.id, partner_name=partner.name, amount=totals.get(partner.id, 0.0))
        for partner in partners
    ]
    return sorted((row for row in rows if row.amount != 0), key=lambda row: row.amount, reverse=True)


def filter_payments(payments, partner_id=None, player_name=None, month=None, fiscal_year=None):
    """
    Returns the payments matching every given criterion. None or '' means
    "any". `player_name` is a case-insensitive substring; `month` is a month
    name such as 'January' (case-insensitive) and `fiscal_year` the verbatim
    first segment of the invoice code.
    """
    needle = player_name.lower() if _is_set(player_name) else None
    wanted_month = month.lower() if _is_set(month) else None

    selected = []
    for payment in payments:
        if _is_set(partner_id) and payment.partner_id != partner_id:
            continue
        if needle is not None and needle not in (payment.player_name or '').lower():
            continue
        if wanted_month is not None or _is_set(fiscal_year):
            period = decode(payment.invoice_code)
            if wanted_month is not None and period.month.lower() != wanted_month:
                continue
            if _is_set(fiscal_year) and period.fiscal_year != fiscal_year:
                continue
        selected.append(payment)
    return selected


def available_periods(payments):
    """Distinct months (calendar order) and fiscal years (sorted) present in the payments."""
    months, years = set(), set()
    for payment in payments:
        period = decode(payment.invoice_code)
        if is_known(period):
            months.add(period.month)
            years.add(period.fiscal_year)
    return AvailablePeriods(months=[name for name in MONTH_NAMES if name in months], years=sorted(years))


def partner_detail(partner, payments):
    """Summary for one partner's page, computed over that partner's payments only."""
    own_payments = [payment for payment in payments if payment.partner_id == partner.id]
    spent = total_spent(own_payments)
    deal_ids = {payment.deal_id for payment in own_payments if payment.deal_id}

    return {
        'total_spent': spent,
        'payment_count': len(own_payments),
        'player_deals_count': len(deal_ids),
        'monthly_series': monthly_series(own_payments),
        'available_periods': available_periods(own_payments),
        'contract_total': partner.contract_total,
        'is_flex_fund': partner.is_flex_fund,
        # A flex fund has no ceiling to count down from.
        'contract_remaining': None if partner.is_flex_fund else (partner.contract_total or 0) - spent,
    }
