# ==============================================================================
# partner_tracker/ingest/matcher.py
# ------------------------------------------------------------------------------
# Resolves the free-text company names found in upload sheets against the
# canonical partner registry.
# ==============================================================================

import logging


def normalize_name(value):
    """Trims and lowercases a name for comparison. None becomes ''."""
    if value is None:
        return ''
    return str(value).strip().lower()


class ContainmentMatcher:
    """
    Default matching strategy: a case-insensitive exact match first, then the
    first partner (in registry order) whose name contains the text or is
    contained in it.

    Containment can pick the wrong partner when two partner names are
    substrings of each other ("Nike" vs "Nike Inc"). That risk is accepted and
    handled by curating the registry. `min_length` can narrow it: the
    containment step is skipped when the shorter of the two names has fewer
    characters than `min_length`. The default of 0 keeps the plain behavior.

    Any object with a `match(text, registry)` method can be used in place of
    this class by the workbook ingestor.
    """

    def __init__(self, min_length=0):
        self.min_length = min_length or 0

    def match(self, text, registry):
        search_name = normalize_name(text)
        if not search_name:
            return None

        candidates = [(partner, normalize_name(partner.name)) for partner in registry]

        for partner, partner_name in candidates:
            if partner_name == search_name:
                return partner

        for partner, partner_name in candidates:
            if not partner_name:
                continue
            if min(len(partner_name), len(search_name)) < self.min_length:
                continue
            if search_name in partner_name or partner_name in search_name:
                logging.debug(f"Partner '{text}' matched '{partner.name}' by containment.")
                return partner

        return None


def match_partner(text, registry, min_length=0):
    """Shortcut for a one-off match with the default strategy."""
    return ContainmentMatcher(min_length=min_length).match(text, registry)
