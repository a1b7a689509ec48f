# ==============================================================================
# partner_tracker/main/forms.py
# ------------------------------------------------------------------------------
# Defines the Flask-WTF forms used to validate JSON request bodies.
# ==============================================================================

from flask_wtf import FlaskForm
from wtforms import StringField, FloatField, BooleanField, PasswordField
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional, ValidationError


class LoginForm(FlaskForm):
    """Form for dashboard login."""
    email = StringField('Email', validators=[DataRequired(message="Email is required.")])
    password = PasswordField('Password', validators=[DataRequired(message="Password is required.")])


class PartnerForm(FlaskForm):
    """Form for adding a partner."""
    name = StringField('Name', validators=[DataRequired(message="Name is required.")])
    contract_total = FloatField('Contract total', validators=[Optional(), NumberRange(min=0)])
    is_flex_fund = BooleanField('Flex fund')


class EditPartnerForm(FlaskForm):
    """Form for editing a partner. Every field is optional, but a given name can't be blank."""
    name = StringField('Name')
    contract_total = FloatField('Contract total', validators=[Optional(), NumberRange(min=0)])
    is_flex_fund = BooleanField('Flex fund')

    def validate_name(self, field):
        if field.raw_data and not str(field.data or '').strip():
            raise ValidationError("Name cannot be blank.")


class ContactForm(FlaskForm):
    """Form for adding a dashboard user (an admin or a partner contact)."""
    name = StringField('Name', validators=[DataRequired(message="Name is required.")])
    email = StringField('Email', validators=[DataRequired(message="Email is required."), Email(message="Invalid email")])
    password = PasswordField('Password', validators=[
        DataRequired(message="Password is required."),
        Length(min=6, message="Password must be at least 6 characters"),
    ])
    partner_id = StringField('Partner', validators=[Optional()])
    is_admin = BooleanField('Admin')
    is_full_admin = BooleanField('Full admin')


class PaymentForm(FlaskForm):
    """Form for a single payment posted as JSON, alone or inside a bulk list."""
    partner_id = StringField('Partner', validators=[DataRequired(message="Partner ID is required")])
    player_name = StringField('Player name', validators=[DataRequired(message="Player name is required")])
    amount = FloatField('Amount', validators=[DataRequired(message="Amount must be positive")])
    total_player_amount = FloatField('Total player amount', validators=[Optional()])
    invoice_code = StringField('Invoice code', validators=[DataRequired(message="Invoice code is required")])
    deal_type = StringField('Deal type', validators=[Optional()])
    deal_detail = StringField('Deal detail', validators=[Optional()])
    batch_name = StringField('Batch name', validators=[Optional()])
    deal_id = StringField('Deal ID', validators=[Optional()])

    def validate_amount(self, field):
        if field.data is None or field.data <= 0:
            raise ValidationError("Amount must be positive")


class AppSettingForm(FlaskForm):
    """Form for editing a single application setting."""
    value = StringField('Value', validators=[DataRequired()])
