# tests/test_aggregation.py

from collections import namedtuple

import pytest

from partner_tracker.ingest.aggregation import (available_periods, filter_payments, monthly_series,
                                                partner_detail, spend_by_partner, total_spent)
from partner_tracker.ingest.workbook import PaymentRecord

PartnerRef = namedtuple('PartnerRef', ['id', 'name', 'contract_total', 'is_flex_fund'])


def _payment(partner_id, player_name, amount, invoice_code, deal_id=None):
    return PaymentRecord(partner_id=partner_id, player_name=player_name, amount=amount,
                         total_player_amount=0.0, invoice_code=invoice_code, deal_type=None,
                         deal_detail=None, batch_name=None, deal_id=deal_id)


@pytest.fixture
def payments():
    return [
        _payment('p-nike', 'Jordan Smith', 100.0, '2024-001-FEB', deal_id='D1'),
        _payment('p-nike', 'Alex Jordan', 50.0, '2023-010-DEC', deal_id='D1'),
        _payment('p-gatorade', 'Sam Lee', 25.0, '2024-002-JAN', deal_id='D2'),
        _payment('p-gatorade', 'Sam Lee', 10.0, '2024-003-jan'),
        _payment('p-nike', 'Chris Park', 40.0, 'no-code'),
    ]


def test_total_spent_includes_unknown_periods(payments):
    assert total_spent(payments) == pytest.approx(225.0)


def test_monthly_series_groups_and_sorts(payments):
    series = monthly_series(payments)
    assert [(m.fiscal_year, m.month_number, m.label, m.amount) for m in series] == [
        ('2023', 12, 'Dec FY2023', 50.0),
        ('2024', 1, 'Jan FY2024', 35.0),
        ('2024', 2, 'Feb FY2024', 100.0),
    ]


def test_spend_by_partner_sorted_and_without_zero_spend(payments, registry):
    rows = spend_by_partner(payments, registry)
    assert [(r.partner_name, r.amount) for r in rows] == [('Nike', 190.0), ('Gatorade', 35.0)]


def test_filter_payments(payments):
    assert len(filter_payments(payments)) == 5
    assert len(filter_payments(payments, partner_id='p-gatorade')) == 2
    assert [p.player_name for p in filter_payments(payments, player_name='JORDAN')] == ['Jordan Smith', 'Alex Jordan']
    assert [p.amount for p in filter_payments(payments, month='January')] == [25.0, 10.0]
    assert [p.amount for p in filter_payments(payments, fiscal_year='2023')] == [50.0]
    assert filter_payments(payments, partner_id='p-nike', month='January') == []
    assert [p.amount for p in filter_payments(payments, partner_id='p-nike', fiscal_year='2024', player_name='smith')] == [100.0]


def test_filter_empty_values_mean_any(payments):
    assert filter_payments(payments, partner_id='', player_name='', month='', fiscal_year='') == payments


def test_available_periods(payments):
    periods = available_periods(payments)
    assert periods.months == ['January', 'February', 'December']
    assert periods.years == ['2023', '2024']


def test_partner_detail(payments, registry):
    nike, gatorade, ea = registry
    detail = partner_detail(nike, payments)
    assert detail['total_spent'] == 190.0
    assert detail['payment_count'] == 3
    assert detail['player_deals_count'] == 1
    assert [m.label for m in detail['monthly_series']] == ['Dec FY2023', 'Feb FY2024']
    assert detail['contract_remaining'] == 5000000.0 - 190.0

    flex = partner_detail(ea, payments)
    assert flex['total_spent'] == 0.0
    assert flex['contract_remaining'] is None


def test_empty_inputs_are_safe(registry):
    assert total_spent([]) == 0.0
    assert monthly_series([]) == []
    assert spend_by_partner([], registry) == []
    assert spend_by_partner([], []) == []
    assert filter_payments([], partner_id='x') == []
    assert available_periods([]) == ([], [])
    assert partner_detail(PartnerRef('p-x', 'X', 0.0, False), [])['contract_remaining'] == 0.0
