# ==============================================================================
# partner_tracker/settings.py
# ------------------------------------------------------------------------------
# Loads the admin-editable business rules from the AppSetting table.
# ==============================================================================

import logging
from partner_tracker.models import AppSetting

DEFAULT_PLAYER_GUARANTEE = 30439528.20
DEFAULT_PARTNER_MATCH_MIN_LENGTH = 0
DEFAULT_UPLOAD_MODE = 'replace'
UPLOAD_MODES = ('replace', 'append')


class TrackerSettings:
    """
    A singleton holding the business rules from the database. It is loaded on
    first use and kept until `reset()` is called, which happens whenever an
    admin edits a setting.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            logging.info("Creating and loading TrackerSettings instance...")
            instance = super(TrackerSettings, cls).__new__(cls)
            try:
                instance.load_settings()
            except Exception as e:
                logging.error(f"Could not load settings from database: {e}", exc_info=True)
                raise
            cls._instance = instance
            logging.info("TrackerSettings loaded successfully.")
        return cls._instance

    @classmethod
    def reset(cls):
        cls._instance = None

    def load_settings(self):
        """Loads all settings from the AppSetting table into attributes."""
        settings = AppSetting.query.all()
        settings_dict = {s.key: s.get_value() for s in settings}

        self.PLAYER_GUARANTEE = settings_dict.get('PLAYER_GUARANTEE', DEFAULT_PLAYER_GUARANTEE)
        self.PARTNER_MATCH_MIN_LENGTH = settings_dict.get('PARTNER_MATCH_MIN_LENGTH', DEFAULT_PARTNER_MATCH_MIN_LENGTH)
        self.DEFAULT_UPLOAD_MODE = settings_dict.get('DEFAULT_UPLOAD_MODE', DEFAULT_UPLOAD_MODE)
        if self.DEFAULT_UPLOAD_MODE not in UPLOAD_MODES:
            logging.warning(f"Unknown DEFAULT_UPLOAD_MODE '{self.DEFAULT_UPLOAD_MODE}', using '{DEFAULT_UPLOAD_MODE}'.")
            self.DEFAULT_UPLOAD_MODE = DEFAULT_UPLOAD_MODE
