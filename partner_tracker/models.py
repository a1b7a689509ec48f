# ==============================================================================
# partner_tracker/models.py
# ------------------------------------------------------------------------------
# Defines the database schema using SQLAlchemy ORM models.
# ==============================================================================

import json
import uuid
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from partner_tracker import db
from partner_tracker.ingest.invoice import decode


def _new_id():
    return uuid.uuid4().hex


class Partner(db.Model):
    """
    A sponsor with a contract. Names are unique as stored and matched
    case-insensitively during uploads.
    """
    __tablename__ = 'partner'
    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    name = db.Column(db.String(128), unique=True, nullable=False, index=True)
    # Zero for flex-fund partners, whose contract has no spending ceiling
    contract_total = db.Column(db.Float, default=0, nullable=False)
    is_flex_fund = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Deleting a partner deletes its payments.
    payments = db.relationship('Payment', backref='partner', lazy='dynamic', cascade="all, delete-orphan")

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'contract_total': self.contract_total,
            'is_flex_fund': self.is_flex_fund,
        }

    def __repr__(self):
        return f'<Partner {self.id}: {self.name}>'


class Payment(db.Model):
    """
    A single disbursement to a player under a partner's contract.
    Rows are only created by uploads and are never edited in place.
    """
    __tablename__ = 'payment'
    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    partner_id = db.Column(db.String(32), db.ForeignKey('partner.id'), nullable=False, index=True)
    player_name = db.Column(db.String(256), nullable=False, index=True)
    amount = db.Column(db.Float, nullable=False)
    # Copied from the sheet as-is; not reconciled against amount
    total_player_amount = db.Column(db.Float, default=0, nullable=False)
    invoice_code = db.Column(db.String(128), default='', nullable=False)
    deal_type = db.Column(db.String(128))
    deal_detail = db.Column(db.String(512))
    batch_name = db.Column(db.String(128))
    deal_id = db.Column(db.String(128))
    created_at = db.Column(db.DateTime, index=True, default=datetime.utcnow)

    __table_args__ = (db.CheckConstraint('amount > 0', name='ck_payment_amount_positive'),)

    @property
    def fiscal_period(self):
        return decode(self.invoice_code)

    def to_dict(self):
        period = self.fiscal_period
        return {
            'id': self.id,
            'partner_id': self.partner_id,
            'partner': {'id': self.partner.id, 'name': self.partner.name} if self.partner else None,
            'player_name': self.player_name,
            'amount': self.amount,
            'total_player_amount': self.total_player_amount,
            'invoice_code': self.invoice_code,
            'deal_type': self.deal_type,
            'deal_detail': self.deal_detail,
            'batch_name': self.batch_name,
            'deal_id': self.deal_id,
            'month': period.month,
            'fiscal_year': period.fiscal_year,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Payment {self.id}: {self.player_name} {self.amount}>'


class User(db.Model):
    """
    A dashboard login. Full admins manage everything, view-only admins
    (is_admin without is_full_admin) can read all data and manage partners
    and contacts, and partner contacts only see their own partner.
    """
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(128), unique=True, nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    is_full_admin = db.Column(db.Boolean, default=False, nullable=False)
    partner_id = db.Column(db.String(32), db.ForeignKey('partner.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    partner = db.relationship('Partner')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def can_manage_payments(self):
        return self.is_admin and self.is_full_admin

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'is_admin': self.is_admin,
            'is_full_admin': self.is_full_admin,
            'partner_id': self.partner_id,
            'partner_name': self.partner.name if self.partner else None,
        }

    def __repr__(self):
        return f'<User {self.id}: {self.email}>'


class UploadRun(db.Model):
    """
    Stores metadata for each workbook upload that was saved.
    """
    __tablename__ = 'upload_run'
    id = db.Column(db.Integer, primary_key=True)
    filename = db.Column(db.String(128), nullable=False)
    upload_timestamp = db.Column(db.DateTime, index=True, default=datetime.utcnow)
    mode = db.Column(db.String(16), nullable=False, default='replace')
    payment_count = db.Column(db.Integer, default=0)
    sheets_scanned = db.Column(db.Integer, default=0)
    sheets_processed = db.Column(db.Integer, default=0)
    # IngestionReport.to_dict() as a JSON string
    report_json = db.Column(db.Text, nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'filename': self.filename,
            'upload_timestamp': self.upload_timestamp.isoformat() if self.upload_timestamp else None,
            'mode': self.mode,
            'payment_count': self.payment_count,
            'sheets_scanned': self.sheets_scanned,
            'sheets_processed': self.sheets_processed,
            'report': json.loads(self.report_json) if self.report_json else None,
        }

    def __repr__(self):
        return f'<UploadRun {self.id}: {self.filename}>'


class AppSetting(db.Model):
    """
    Stores key-value pairs for business rules that admins can change
    without a deployment.
    """
    __tablename__ = 'app_setting'
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(128), unique=True, nullable=False, index=True)
    value = db.Column(db.String(256), nullable=False)
    description = db.Column(db.String(512)) # For hints in the admin panel
    value_type = db.Column(db.String(32), default='string') # e.g., 'float', 'int', 'string', 'json'

    def __repr__(self):
        return f'<AppSetting {self.key}: {self.value}>'

    def get_value(self):
        """Casts the string value to its correct Python type."""
        if self.value_type == 'float':
            return float(self.value)
        if self.value_type == 'int':
            return int(self.value)
        if self.value_type == 'json':
            return json.loads(self.value)
        return self.value

    def to_dict(self):
        return {
            'id': self.id,
            'key': self.key,
            'value': self.value,
            'description': self.description,
            'value_type': self.value_type,
        }
