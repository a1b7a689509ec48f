# ==============================================================================
# partner_tracker/ingest/scanner.py
# ------------------------------------------------------------------------------
# Reads one worksheet's raw rows: finds the header row, maps columns to the
# payment fields and turns every data row into either a payment candidate or
# a skip reason. Works on plain lists of cells so it never touches files.
# ==============================================================================

import logging
import math
import numbers
import re
from collections import namedtuple

from .schema import (COLUMN_KEYWORDS, CURRENCY_NOISE, OPTIONAL_TEXT_COLUMNS,
                     REQUIRED_COLUMNS, REQUIRED_HEADER_FAMILIES, SUBTOTAL_MARKER)

ScanResult = namedtuple('ScanResult', ['header_row_index', 'columns', 'candidates', 'skipped'])

RowCandidate = namedtuple('RowCandidate', [
    'row_index', 'partner_name', 'player_name', 'amount', 'total_player_amount',
    'invoice_code', 'deal_type', 'deal_detail', 'batch_name', 'deal_id',
])

SkippedRow = namedtuple('SkippedRow', ['sheet', 'row_index', 'reason'])

# Row-level skip reasons
BLANK_ROW = 'blank_row'
SUBTOTAL_ROW = 'subtotal_row'
MISSING_PLAYER = 'missing_player'
MISSING_PARTNER = 'missing_partner'
INVALID_AMOUNT = 'invalid_amount'
UNMATCHED_PARTNER = 'unmatched_partner'

# Plain decimal text such as '1250.50', '-3' or '.5'
DECIMAL_PATTERN = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)$')

# --- Cell Helpers ---

def cell_text(value):
    """Trimmed text of a cell. Blank cells (None/NaN) become ''."""
    if value is None:
        return ''
    if isinstance(value, float):
        if math.isnan(value):
            return ''
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def parse_amount(value):
    """
    Parses a monetary cell. Numbers are used as they are; anything else is
    read as text with '$' and ',' removed. Returns None when the result is
    not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Number):
        try:
            amount = float(value)
        except (TypeError, ValueError):
            return None
    else:
        text = str(value)
        for noise in CURRENCY_NOISE:
            text = text.replace(noise, '')
        text = text.strip()
        if not DECIMAL_PATTERN.match(text):
            return None
        amount = float(text)
    if not math.isfinite(amount):
        return None
    return amount


def _cell_at(row, index):
    if index is None or index >= len(row):
        return None
    return row[index]

# --- Header Detection ---

def normalize_header(row):
    return [cell_text(cell).lower() for cell in (row or [])]


def is_valid_header(headers):
    """A header needs one cell from each required keyword family."""
    return all(
        any(keyword in header for header in headers for keyword in family)
        for family in REQUIRED_HEADER_FAMILIES
    )


def find_column(headers, keywords):
    """Index of the first header containing a keyword, trying keywords in order, or None."""
    # Keyword priority beats column position: 'deal invoice amount' wins over an earlier 'total player amount'.
    for keyword in keywords:
        for index, header in enumerate(headers):
            if header and keyword in header:
                return index
    return None


def locate_header(rows):
    """
    Returns (header_row_index, headers) or None. Row 0 is tried first, then
    row 1 for sheets that carry a title line above the header.
    """
    for header_row_index in (0, 1):
        if header_row_index >= len(rows):
            break
        headers = normalize_header(rows[header_row_index])
        if is_valid_header(headers):
            return header_row_index, headers
    return None


def resolve_columns(headers):
    return {field: find_column(headers, keywords) for field, keywords in COLUMN_KEYWORDS.items()}

# --- Row Processing ---

def read_row(row, row_index, columns, last_partner):
    """
    Classifies a single data row.

    `last_partner` is the most recent non-blank company name seen above this
    row in the same sheet. Returns a tuple (last_partner, candidate, reason)
    where exactly one of candidate/reason is set and last_partner is the
    value to carry into the next row.
    """
    if not row or all(cell_text(cell) == '' for cell in row):
        return last_partner, None, BLANK_ROW

    player_name = cell_text(_cell_at(row, columns['player']))
    if SUBTOTAL_MARKER in player_name.lower():
        return last_partner, None, SUBTOTAL_ROW

    partner_name = cell_text(_cell_at(row, columns['partner']))
    if partner_name:
        last_partner = partner_name
    else:
        partner_name = last_partner

    if not player_name:
        return last_partner, None, MISSING_PLAYER
    if not partner_name:
        return last_partner, None, MISSING_PARTNER

    amount = parse_amount(_cell_at(row, columns['amount']))
    if amount is None or amount <= 0:
        return last_partner, None, INVALID_AMOUNT

    total_player_amount = parse_amount(_cell_at(row, columns['total_player_amount'])) or 0.0
    optional_text = {
        field: cell_text(_cell_at(row, columns[field])) or None
        for field in OPTIONAL_TEXT_COLUMNS
    }

    candidate = RowCandidate(
        row_index=row_index,
        partner_name=partner_name,
        player_name=player_name,
        amount=amount,
        total_player_amount=total_player_amount,
        invoice_code=cell_text(_cell_at(row, columns['invoice'])),
        **optional_text
    )
    return last_partner, candidate, None


def scan_sheet(rows):
    """
    Scans one sheet given as a list of rows (each a list of cells).

    Returns None when the sheet has fewer than two rows or no recognisable
    header in its first two rows. Otherwise returns a ScanResult holding the
    payment candidates and the reasons for every skipped row. Partner names
    are not matched here; that is left to the workbook ingestor.
    """
    if rows is None or len(rows) < 2:
        return None

    located = locate_header(rows)
    if located is None:
        return None
    header_row_index, headers = located

    columns = resolve_columns(headers)
    if any(columns[field] is None for field in REQUIRED_COLUMNS):
        return None

    candidates, skipped = [], []
    last_partner = ''
    for row_index in range(header_row_index + 1, len(rows)):
        last_partner, candidate, reason = read_row(rows[row_index], row_index, columns, last_partner)
        if candidate is not None:
            candidates.append(candidate)
        else:
            skipped.append(SkippedRow(sheet=None, row_index=row_index, reason=reason))
            logging.debug(f"Skipping row {row_index}: {reason}")

    return ScanResult(header_row_index=header_row_index, columns=columns,
                      candidates=candidates, skipped=skipped)
