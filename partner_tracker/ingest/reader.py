# ==============================================================================
# partner_tracker/ingest/reader.py
# ------------------------------------------------------------------------------
# Loads an uploaded Excel file into plain rows of cells for the ingestor.
# ==============================================================================

import logging
import pandas as pd


def _to_cell(value):
    if value is None or (not isinstance(value, (list, tuple)) and pd.isna(value)):
        return None
    if hasattr(value, 'item'):
        # numpy scalars
        return value.item()
    return value


def read_workbook(filepath):
    """
    Reads every sheet of an Excel workbook without interpreting headers.

    Args:
        filepath (str | file-like): The .xlsx/.xls file to read.

    Returns:
        tuple: A tuple containing:
            - dict: sheet name -> list of rows (lists of cells, blank cells as None),
              in workbook order, or None if the file could not be read.
            - list: human-readable error messages.
    """
    try:
        xls = pd.ExcelFile(filepath)
    except Exception as e:
        logging.warning(f"Could not open workbook: {e}")
        return None, [f"Error reading file: {e}"]

    workbook = {}
    errors = []
    for sheet_name in xls.sheet_names:
        try:
            df = pd.read_excel(xls, sheet_name=sheet_name, header=None, dtype=object)
        except Exception as e:
            logging.warning(f"Could not read sheet '{sheet_name}': {e}")
            errors.append(f"Error reading sheet '{sheet_name}': {e}")
            continue
        workbook[sheet_name] = [[_to_cell(value) for value in row] for row in df.itertuples(index=False, name=None)]
        logging.debug(f"Read sheet '{sheet_name}' with {len(workbook[sheet_name])} rows.")

    return workbook, errors
