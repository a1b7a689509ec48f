# tests/test_workbook.py

from partner_tracker.ingest.scanner import MISSING_PARTNER, SUBTOTAL_ROW, UNMATCHED_PARTNER
from partner_tracker.ingest.workbook import MISSING_HEADERS, TOO_FEW_ROWS, PaymentRecord, ingest_workbook

HEADER = ['Company', 'Player Name', 'Amount', 'Invoice']


def test_two_sheet_workbook_end_to_end(registry):
    workbook = {
        'Q1 Deals': [
            HEADER,
            ['Nike', 'Player A', 100, '2024-001-JAN'],
            ['', 'Player B', '$250.00', '2024-002-FEB'],
            ['Gatorade', 'Player C', 75.5, '2024-003-FEB'],
        ],
        'Notes': [
            ['Company', 'Player', 'Comment'],
            ['Nike', 'Player A', 'follow up'],
        ],
    }
    report = ingest_workbook(workbook, registry)

    assert report.sheets_scanned == 2
    assert report.sheets_processed == 1
    assert report.payment_count == 3
    assert report.sheet_summary == ['Q1 Deals (3)']
    assert report.rejected_sheets == [('Notes', MISSING_HEADERS)]
    assert report.payments[0] == PaymentRecord(
        partner_id='p-nike', player_name='Player A', amount=100.0, total_player_amount=0.0,
        invoice_code='2024-001-JAN', deal_type=None, deal_detail=None, batch_name=None, deal_id=None,
    )
    assert [p.partner_id for p in report.payments] == ['p-nike', 'p-nike', 'p-gatorade']


def test_payments_keep_sheet_then_row_order(registry):
    workbook = {
        'B': [HEADER, ['Gatorade', 'Player 1', 10, ''], ['Gatorade', 'Player 2', 20, '']],
        'A': [HEADER, ['Nike', 'Player 3', 30, '']],
    }
    report = ingest_workbook(workbook, registry)
    assert [p.player_name for p in report.payments] == ['Player 1', 'Player 2', 'Player 3']
    assert report.sheet_summary == ['B (2)', 'A (1)']


def test_unmatched_partners_are_counted_not_raised(registry):
    workbook = {
        'Sheet1': [HEADER, ['Under Armour', 'Player A', 100, ''], ['Nike', 'Player B', 100, '']],
        'Sheet2': [HEADER, ['Puma', 'Player C', 100, '']],
    }
    report = ingest_workbook(workbook, registry)
    assert report.payment_count == 1
    assert report.unmatched_count == 2
    assert report.sheet_summary == ['Sheet1 (1)']
    skipped = [(s.sheet, s.row_index, s.reason) for s in report.skipped]
    assert ('Sheet1', 1, UNMATCHED_PARTNER) in skipped
    assert ('Sheet2', 1, UNMATCHED_PARTNER) in skipped


def test_carried_partner_resets_for_each_sheet(registry):
    workbook = {
        'First': [HEADER, ['Nike', 'Player A', 100, '']],
        'Second': [HEADER, ['', 'Player B', 100, '']],
    }
    report = ingest_workbook(workbook, registry)
    assert report.payment_count == 1
    assert [(s.sheet, s.reason) for s in report.skipped] == [('Second', MISSING_PARTNER)]


def test_skip_reasons_and_rejections_are_structured(registry):
    workbook = {
        'Tiny': [HEADER],
        'Data': [HEADER, ['Nike', 'Team Total', 500, ''], ['Nike', 'Player A', 100, 'bad-code']],
    }
    report = ingest_workbook(workbook, registry)
    assert report.rejected_sheets == [('Tiny', TOO_FEW_ROWS)]
    assert report.skip_counts == {SUBTOTAL_ROW: 1}
    assert report.unknown_period_count == 1

    data = report.to_dict(include_skipped=True)
    assert data['payment_count'] == 1
    assert data['rejected_sheets'] == [{'sheet': 'Tiny', 'reason': TOO_FEW_ROWS}]
    assert data['skipped'] == [{'sheet': 'Data', 'row_index': 1, 'reason': SUBTOTAL_ROW}]


def test_empty_workbook(registry):
    report = ingest_workbook({}, registry)
    assert report.payments == []
    assert report.sheets_scanned == 0
    assert report.sheet_summary == []


def test_custom_matcher_is_used(registry):
    class ExactOnly:
        def match(self, text, partners):
            return next((p for p in partners if p.name == text), None)

    workbook = {'Sheet1': [HEADER, ['Nike Inc', 'Player A', 100, ''], ['Nike', 'Player B', 100, '']]}
    report = ingest_workbook(workbook, registry, matcher=ExactOnly())
    assert [p.player_name for p in report.payments] == ['Player B']
