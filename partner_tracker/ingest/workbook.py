# ==============================================================================
# partner_tracker/ingest/workbook.py
# ------------------------------------------------------------------------------
# Runs the sheet scanner over every sheet of an uploaded workbook, matches the
# partner names against the registry and collects the resulting payments into
# an IngestionReport. Persisting the payments is left to the caller.
# ==============================================================================

import logging
from collections import Counter, OrderedDict, namedtuple

from .invoice import decode, is_known
from .matcher import ContainmentMatcher
from .scanner import UNMATCHED_PARTNER, SkippedRow, scan_sheet

PaymentRecord = namedtuple('PaymentRecord', [
    'partner_id', 'player_name', 'amount', 'total_player_amount', 'invoice_code',
    'deal_type', 'deal_detail', 'batch_name', 'deal_id',
])

# Sheet-level rejection reasons
TOO_FEW_ROWS = 'too_few_rows'
MISSING_HEADERS = 'missing_headers'


class IngestionReport:
    """Outcome of ingesting a single workbook. Not persisted as-is."""

    def __init__(self):
        self.sheets_scanned = 0
        self.sheet_counts = OrderedDict()
        self.rejected_sheets = []
        self.payments = []
        self.skipped = []
        self.unknown_period_count = 0

    @property
    def sheets_processed(self):
        return len(self.sheet_counts)

    @property
    def payment_count(self):
        return len(self.payments)

    @property
    def sheet_summary(self):
        """Human-readable entries such as 'Q1 Deals (3)' for sheets that produced payments."""
        return [f"{name} ({count})" for name, count in self.sheet_counts.items()]

    @property
    def skip_counts(self):
        return dict(Counter(skip.reason for skip in self.skipped))

    @property
    def unmatched_count(self):
        return self.skip_counts.get(UNMATCHED_PARTNER, 0)

    def to_dict(self, include_skipped=False):
        data = {
            'sheets_scanned': self.sheets_scanned,
            'sheets_processed': self.sheets_processed,
            'sheet_counts': dict(self.sheet_counts),
            'sheet_summary': self.sheet_summary,
            'rejected_sheets': [{'sheet': sheet, 'reason': reason} for sheet, reason in self.rejected_sheets],
            'payment_count': self.payment_count,
            'skip_counts': self.skip_counts,
            'unknown_period_count': self.unknown_period_count,
        }
        if include_skipped:
            data['skipped'] = [skip._asdict() for skip in self.skipped]
        return data

    def __repr__(self):
        return f'<IngestionReport {self.payment_count} payments from {self.sheets_processed}/{self.sheets_scanned} sheets>'


def ingest_workbook(workbook, registry, matcher=None):
    """
    Turns a workbook into payment records.

    Args:
        workbook (Mapping[str, list]): sheet name -> list of rows, in workbook order.
        registry (list): partners, anything exposing `.id` and `.name`.
        matcher: object with `match(text, registry)`; defaults to ContainmentMatcher().

    Returns:
        IngestionReport: payments in sheet order then row order, plus the
        reasons every skipped sheet and row was left out.
    """
    matcher = matcher or ContainmentMatcher()
    registry = list(registry)
    report = IngestionReport()

    for sheet_name, rows in workbook.items():
        report.sheets_scanned += 1
        result = scan_sheet(rows)
        if result is None:
            reason = TOO_FEW_ROWS if rows is None or len(rows) < 2 else MISSING_HEADERS
            report.rejected_sheets.append((sheet_name, reason))
            logging.info(f"Sheet '{sheet_name}' skipped: {reason}")
            continue

        report.skipped.extend(skip._replace(sheet=sheet_name) for skip in result.skipped)

        sheet_count = 0
        for candidate in result.candidates:
            partner = matcher.match(candidate.partner_name, registry)
            if partner is None:
                report.skipped.append(SkippedRow(sheet=sheet_name, row_index=candidate.row_index,
                                                 reason=UNMATCHED_PARTNER))
                logging.debug(f"Sheet '{sheet_name}' row {candidate.row_index}: "
                              f"no partner matches '{candidate.partner_name}'")
                continue

            if not is_known(decode(candidate.invoice_code)):
                report.unknown_period_count += 1

            report.payments.append(PaymentRecord(
                partner_id=partner.id,
                player_name=candidate.player_name,
                amount=candidate.amount,
                total_player_amount=candidate.total_player_amount,
                invoice_code=candidate.invoice_code,
                deal_type=candidate.deal_type,
                deal_detail=candidate.deal_detail,
                batch_name=candidate.batch_name,
                deal_id=candidate.deal_id,
            ))
            sheet_count += 1

        if sheet_count > 0:
            report.sheet_counts[sheet_name] = sheet_count
        logging.info(f"Sheet '{sheet_name}': header at row {result.header_row_index}, "
                     f"{sheet_count} payments, {len(result.candidates) - sheet_count} unmatched")

    logging.info(f"Ingestion finished: {report!r}")
    return report
