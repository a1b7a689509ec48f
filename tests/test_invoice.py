# tests/test_invoice.py

import pytest

from partner_tracker.ingest.invoice import FiscalPeriod, UNKNOWN_PERIOD, decode, is_known, month_label


def test_decode_valid_code():
    assert decode('2024-001-JAN') == FiscalPeriod(fiscal_year='2024', month='January',
                                                  month_number=1, display_year='FY2024')


def test_decode_ignores_middle_segments_and_case():
    period = decode('fy25-batch-07-x-dec')
    assert period.fiscal_year == 'fy25'
    assert period.month == 'December'
    assert period.month_number == 12
    assert period.display_year == 'FYfy25'


@pytest.mark.parametrize('code', ['ABC', '2024-AAA-XXX', '2024-JAN', '', None, '--', '2024-001-JANUARY'])
def test_decode_malformed_codes_are_unknown(code):
    period = decode(code)
    assert period == UNKNOWN_PERIOD
    assert period.month == 'Unknown'
    assert period.fiscal_year == ''
    assert period.display_year == ''
    assert period.month_number == 0
    assert not is_known(period)


def test_decode_non_string_input():
    assert decode(12345) == UNKNOWN_PERIOD


def test_month_label():
    assert month_label(decode('2023-17-SEP')) == 'Sep FY2023'
