# ==============================================================================
# partner_tracker/ingest/schema.py
# ------------------------------------------------------------------------------
# Defines the header keywords used to recognise columns in uploaded sheets.
# This schema is the single source of truth for the sheet scanner.
# ==============================================================================

# A header row is only accepted when every family below is present in at
# least one of its cells.
REQUIRED_HEADER_FAMILIES = [
    ('company', 'partner'),
    ('player',),
    ('amount',),
]

# Keywords per field, most specific first. The first header cell containing
# any keyword (tried in order) wins.
COLUMN_KEYWORDS = {
    'partner': ['company name', 'company', 'partner'],
    'player': ['player name', 'player'],
    'amount': ['deal invoice amount', 'invoice amount', 'amount'],
    'total_player_amount': ['total player amount', 'total player'],
    'invoice': ['invoice number', 'invoice'],
    'deal_type': ['deal type'],
    'deal_detail': ['deal detail'],
    'batch_name': ['batch name', 'batch'],
    'deal_id': ['deal id', 'deal_id'],
}

REQUIRED_COLUMNS = ['partner', 'player', 'amount']

OPTIONAL_TEXT_COLUMNS = ['deal_type', 'deal_detail', 'batch_name', 'deal_id']

# Player cells containing this word are subtotal or footer rows.
SUBTOTAL_MARKER = 'total'

# Characters stripped from text amounts before parsing.
CURRENCY_NOISE = ('$', ',')
