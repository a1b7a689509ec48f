# ==============================================================================
# partner_tracker/main/utils.py
# ------------------------------------------------------------------------------
# Glue between the ingestion/aggregation code and the JSON responses.
# ==============================================================================

from werkzeug.datastructures import ImmutableMultiDict
from partner_tracker import db
from partner_tracker.models import Payment
from partner_tracker.ingest.workbook import PaymentRecord
from partner_tracker.ingest.aggregation import (available_periods, monthly_series, partner_detail,
                                                spend_by_partner, total_spent)

NO_PAYMENTS_MESSAGE = 'No valid payments found. Make sure partner names match.'
SAVE_FAILED_MESSAGE = 'Error saving payments to database'


def _form_value(value):
    # BooleanField only reads 'false' and '' as false
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return value


def json_formdata(payload):
    """Wraps a JSON object for a WTForms form, dropping nulls (they mean 'not given')."""
    return ImmutableMultiDict({key: _form_value(value) for key, value in (payload or {}).items()
                               if value is not None})


def _text_or_none(value):
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def record_from_form(form):
    """Builds a PaymentRecord from a validated PaymentForm."""
    return PaymentRecord(
        partner_id=str(form.partner_id.data).strip(),
        player_name=str(form.player_name.data).strip(),
        amount=form.amount.data,
        total_player_amount=form.total_player_amount.data or 0.0,
        invoice_code=str(form.invoice_code.data).strip(),
        deal_type=_text_or_none(form.deal_type.data),
        deal_detail=_text_or_none(form.deal_detail.data),
        batch_name=_text_or_none(form.batch_name.data),
        deal_id=_text_or_none(form.deal_id.data),
    )


def save_payments(records, mode='replace'):
    """
    Adds payments to the current session. In 'replace' mode the existing
    payments are deleted first. The caller commits or rolls back, so both
    steps land in one transaction.
    """
    if mode == 'replace':
        deleted = Payment.query.delete()
        db.session.flush()
    else:
        deleted = 0
    payments = [Payment(**record._asdict()) for record in records]
    db.session.add_all(payments)
    db.session.flush()
    return payments, deleted


def upload_message(report):
    return (f"Success! Loaded {report.payment_count} payments from {report.sheets_processed} "
            f"sheet(s): {', '.join(report.sheet_summary)}")


def _as_dicts(rows):
    return [row._asdict() for row in rows]


def serialize_detail(detail):
    data = dict(detail)
    data['monthly_series'] = _as_dicts(detail['monthly_series'])
    data['available_periods'] = detail['available_periods']._asdict()
    return data


def prepare_dashboard_data(user, payments, partners, player_guarantee):
    """
    Builds the dashboard payload. Admins get the totals across all partners;
    a partner contact gets the summary for their own partner only.
    """
    if not user.is_admin:
        partner = user.partner
        if partner is None:
            return {'partner': None, 'total_spent': 0.0, 'payment_count': 0,
                    'monthly_series': [], 'available_periods': {'months': [], 'years': []}}
        data = serialize_detail(partner_detail(partner, payments))
        data['partner'] = partner.to_dict()
        return data

    spent = total_spent(payments)
    return {
        'total_spent': spent,
        'player_guarantee': player_guarantee,
        'remaining': player_guarantee - spent,
        'payment_count': len(payments),
        'partner_count': len(partners),
        'monthly_series': _as_dicts(monthly_series(payments)),
        'spend_by_partner': _as_dicts(spend_by_partner(payments, partners)),
        'available_periods': available_periods(payments)._asdict(),
    }
