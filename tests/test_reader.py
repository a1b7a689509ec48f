# tests/test_reader.py

from partner_tracker.ingest.reader import read_workbook
from partner_tracker.ingest.workbook import ingest_workbook


def test_read_workbook_keeps_sheet_order_and_blank_cells(tmp_path, workbook_bytes):
    path = tmp_path / 'payments.xlsx'
    path.write_bytes(workbook_bytes({
        'Summary': [['Partner Payments'], ['Generated by finance']],
        'Deals': [
            ['Company Name', 'Player Name', 'Amount'],
            ['Nike', 'Player A', 100],
            [None, 'Player B', '$1,250.50'],
        ],
    }))

    workbook, errors = read_workbook(str(path))

    assert errors == []
    assert list(workbook) == ['Summary', 'Deals']
    deals = workbook['Deals']
    assert deals[0] == ['Company Name', 'Player Name', 'Amount']
    assert deals[1] == ['Nike', 'Player A', 100]
    assert deals[2] == [None, 'Player B', '$1,250.50']


def test_read_workbook_then_ingest(tmp_path, workbook_bytes, registry):
    path = tmp_path / 'payments.xlsx'
    path.write_bytes(workbook_bytes({
        'Deals': [
            ['Disbursements', None, None, None],
            ['Company', 'Player', 'Deal Invoice Amount', 'Invoice Number'],
            ['Nike', 'Player A', 100, '2024-001-JAN'],
            [None, 'Player B', 200, '2024-002-JAN'],
            [None, 'Nike Total', 300, None],
        ],
    }))

    workbook, _ = read_workbook(str(path))
    report = ingest_workbook(workbook, registry)

    assert report.sheet_summary == ['Deals (2)']
    assert [(p.partner_id, p.amount) for p in report.payments] == [('p-nike', 100.0), ('p-nike', 200.0)]


def test_unreadable_file_returns_error(tmp_path):
    path = tmp_path / 'broken.xlsx'
    path.write_text('this is not a workbook')

    workbook, errors = read_workbook(str(path))

    assert workbook is None
    assert len(errors) == 1
    assert errors[0].startswith('Error reading file')
