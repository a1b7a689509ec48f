# ==============================================================================
# run.py
# ------------------------------------------------------------------------------
# The main entry point to launch the Flask application.
# ==============================================================================

from partner_tracker import create_app, db
from partner_tracker.models import AppSetting, Partner, Payment, UploadRun, User

# Create the Flask application instance using the factory function
app = create_app()

@app.shell_context_processor
def make_shell_context():
    """Provides a shell context for the `flask shell` command."""
    return {
        'db': db,
        'AppSetting': AppSetting,
        'Partner': Partner,
        'Payment': Payment,
        'UploadRun': UploadRun,
        'User': User
    }

if __name__ == '__main__':
    app.run(debug=True)
