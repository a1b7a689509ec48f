# ==============================================================================
# partner_tracker/ingest/__init__.py
# ------------------------------------------------------------------------------
# Spreadsheet ingestion and reconciliation. Nothing in this package imports
# Flask or the database.
# ==============================================================================

from .invoice import FiscalPeriod, UNKNOWN_PERIOD, decode
from .matcher import ContainmentMatcher, match_partner
from .scanner import ScanResult, scan_sheet
from .workbook import IngestionReport, PaymentRecord, ingest_workbook
from .reader import read_workbook
from .aggregation import (available_periods, filter_payments, monthly_series,
                          partner_detail, spend_by_partner, total_spent)
