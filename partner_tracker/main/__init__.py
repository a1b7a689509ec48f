from flask import Blueprint

bp = Blueprint('main', __name__)

# Import routes at the bottom
from partner_tracker.main import routes
