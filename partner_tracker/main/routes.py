# ==============================================================================
# partner_tracker/main/routes.py
# ------------------------------------------------------------------------------
# Defines the JSON API for the dashboard.
# This file acts as the main controller for the web interface.
# ==============================================================================

import os
import json
from datetime import datetime
from functools import wraps
from flask import jsonify, request, current_app, session, g
from flask_wtf.csrf import generate_csrf
from werkzeug.utils import secure_filename
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from partner_tracker import db
from partner_tracker.main import bp
from partner_tracker.models import Partner, Payment, User, UploadRun, AppSetting
from partner_tracker.settings import TrackerSettings, UPLOAD_MODES
from partner_tracker.ingest.matcher import ContainmentMatcher
from partner_tracker.ingest.reader import read_workbook
from partner_tracker.ingest.workbook import ingest_workbook
from partner_tracker.ingest.aggregation import filter_payments, partner_detail, total_spent
from partner_tracker.main.forms import (LoginForm, PartnerForm, EditPartnerForm, ContactForm,
                                        PaymentForm, AppSettingForm)
from partner_tracker.main.utils import (json_formdata, record_from_form, save_payments, upload_message,
                                        serialize_detail, prepare_dashboard_data,
                                        NO_PAYMENTS_MESSAGE, SAVE_FAILED_MESSAGE)

# --- Helper Functions ---

def allowed_file(filename):
    """Checks if the file extension is allowed based on the app config."""
    return '.' in filename and \
           os.path.splitext(filename)[1].lower() in current_app.config['ALLOWED_EXTENSIONS']

def error_response(message, status, **extra):
    return jsonify({'error': message, **extra}), status

def json_object():
    """The JSON body when it is an object, otherwise an empty dict."""
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}

def current_user():
    user_id = session.get('user_id')
    if user_id is None:
        return None
    return db.session.get(User, user_id)

def _role_required(check, forbidden_status=401):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = current_user()
            if user is None:
                return error_response('Unauthorized', 401)
            if not check(user):
                return error_response('Unauthorized', forbidden_status)
            g.user = user
            return f(*args, **kwargs)
        return decorated_function
    return decorator

login_required = _role_required(lambda user: True)
admin_required = _role_required(lambda user: user.is_admin)
full_admin_required = _role_required(lambda user: user.can_manage_payments)

def _filter_arg(name):
    """Query-string filter value; missing, empty and 'all' all mean no filter."""
    value = request.args.get(name, '').strip()
    return None if value in ('', 'all') else value

def visible_payments(user):
    """Payments the user may see, newest first. Partner contacts only see their own partner."""
    query = Payment.query.order_by(Payment.created_at.desc())
    if not user.is_admin:
        query = query.filter(Payment.partner_id == user.partner_id)
    return query.all()

def registry():
    """The partner registry, read fresh for every upload."""
    return Partner.query.order_by(Partner.name).all()

# --- Session Routes ---

@bp.route('/api/login', methods=['POST'])
def login():
    form = LoginForm(formdata=json_formdata(json_object()))
    if not form.validate():
        return error_response('Invalid request', 400, errors=form.errors)

    user = User.query.filter(func.lower(User.email) == form.email.data.strip().lower()).first()
    if user is None or not user.check_password(form.password.data):
        current_app.logger.info(f"Failed login for '{form.email.data}'")
        return error_response('Invalid email or password.', 401)

    session['user_id'] = user.id
    current_app.logger.info(f"User {user.email} logged in")
    return jsonify(user.to_dict())

@bp.route('/api/logout', methods=['POST'])
def logout():
    session.pop('user_id', None)
    return jsonify({'success': True})

@bp.route('/api/session')
def session_info():
    user = current_user()
    return jsonify({'user': user.to_dict() if user else None, 'csrf_token': generate_csrf()})

# --- Dashboard ---

@bp.route('/api/dashboard')
@login_required
def dashboard():
    payments = visible_payments(g.user)
    partners = registry() if g.user.is_admin else []
    settings = TrackerSettings()
    return jsonify(prepare_dashboard_data(g.user, payments, partners, settings.PLAYER_GUARANTEE))

# --- Payment Routes ---

@bp.route('/api/payments', methods=['GET'])
@login_required
def list_payments():
    partner_id = _filter_arg('partner_id') if g.user.is_admin else None
    payments = filter_payments(
        visible_payments(g.user),
        partner_id=partner_id,
        player_name=_filter_arg('player_name'),
        month=_filter_arg('month'),
        fiscal_year=_filter_arg('year'),
    )
    return jsonify({
        'payments': [payment.to_dict() for payment in payments],
        'count': len(payments),
        'total': total_spent(payments),
    })

@bp.route('/api/payments', methods=['POST'])
@full_admin_required
def create_payments():
    """Creates one payment from a JSON object, or replaces all payments with a JSON list."""
    payload = request.get_json(silent=True)
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        items = [payload]
    else:
        return error_response('Expected a JSON object or list', 400)

    forms = [PaymentForm(formdata=json_formdata(item if isinstance(item, dict) else {})) for item in items]
    errors = {index: form.errors for index, form in enumerate(forms) if not form.validate()}
    if errors:
        return error_response('Invalid payment data', 400, errors=errors if isinstance(payload, list) else errors[0])

    records = [record_from_form(form) for form in forms]
    known_ids = {partner.id for partner in Partner.query.filter(Partner.id.in_({r.partner_id for r in records}))}
    unknown = sorted({record.partner_id for record in records} - known_ids)
    if unknown:
        return error_response('Unknown partner', 400, partner_ids=unknown)

    mode = 'replace' if isinstance(payload, list) else 'append'
    try:
        payments, deleted = save_payments(records, mode)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Saving payments failed: {e}", exc_info=True)
        return error_response(SAVE_FAILED_MESSAGE, 500)

    if mode == 'replace':
        current_app.logger.info(f"Bulk replace: removed {deleted} payments, added {len(payments)}")
        return jsonify({'success': True, 'count': len(payments)}), 201
    return jsonify(payments[0].to_dict()), 201

@bp.route('/api/payments/upload', methods=['POST'])
@full_admin_required
def upload_payments():
    """Parses an uploaded workbook and saves the payments it yields."""
    if 'file' not in request.files:
        return error_response('No file part in the request.', 400)

    file = request.files['file']
    if file.filename == '':
        return error_response('No file selected.', 400)
    if not allowed_file(file.filename):
        return error_response('File type not allowed. Please upload an .xlsx or .xls file.', 400)

    settings = TrackerSettings()
    mode = request.form.get('mode') or settings.DEFAULT_UPLOAD_MODE
    if mode not in UPLOAD_MODES:
        return error_response(f"Unknown upload mode '{mode}'", 400)

    filename = secure_filename(file.filename)
    os.makedirs(current_app.config['UPLOAD_FOLDER'], exist_ok=True)
    filepath = os.path.join(current_app.config['UPLOAD_FOLDER'], filename)
    file.save(filepath)

    workbook, read_errors = read_workbook(filepath)
    if workbook is None:
        return error_response(read_errors[0], 400)
    for read_error in read_errors:
        current_app.logger.warning(f"{filename}: {read_error}")

    matcher = ContainmentMatcher(min_length=settings.PARTNER_MATCH_MIN_LENGTH)
    report = ingest_workbook(workbook, registry(), matcher=matcher)
    if not report.payments:
        current_app.logger.info(f"{filename}: no valid payments ({report.skip_counts})")
        return error_response(NO_PAYMENTS_MESSAGE, 400, report=report.to_dict(include_skipped=True),
                              warnings=read_errors)

    try:
        payments, deleted = save_payments(report.payments, mode)
        run = UploadRun(
            filename=filename,
            upload_timestamp=datetime.utcnow(),
            mode=mode,
            payment_count=report.payment_count,
            sheets_scanned=report.sheets_scanned,
            sheets_processed=report.sheets_processed,
            report_json=json.dumps(report.to_dict(), ensure_ascii=False),
        )
        db.session.add(run)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Saving uploaded payments failed: {e}", exc_info=True)
        return error_response(SAVE_FAILED_MESSAGE, 500)

    current_app.logger.info(f"{filename}: saved {len(payments)} payments ({mode}, {deleted} removed)")
    return jsonify({
        'success': True,
        'message': upload_message(report),
        'upload_id': run.id,
        'report': report.to_dict(include_skipped=True),
        'warnings': read_errors,
    }), 201

@bp.route('/api/payments', methods=['DELETE'])
@full_admin_required
def delete_all_payments():
    deleted = Payment.query.delete()
    db.session.commit()
    current_app.logger.info(f"Deleted all {deleted} payments")
    return jsonify({'success': True, 'deleted': deleted})

@bp.route('/api/payments/<payment_id>', methods=['DELETE'])
@full_admin_required
def delete_payment(payment_id):
    payment = db.get_or_404(Payment, payment_id)
    db.session.delete(payment)
    db.session.commit()
    return jsonify({'success': True})

# --- Partner Routes ---

@bp.route('/api/partners', methods=['GET'])
@login_required
def list_partners():
    """Partners with their payment count and total spent. Partner contacts only see their own."""
    query = Partner.query.order_by(Partner.name)
    if not g.user.is_admin:
        query = query.filter(Partner.id == g.user.partner_id)
    partners = query.all()

    totals = dict(
        (partner_id, (count, amount)) for partner_id, count, amount in
        db.session.query(Payment.partner_id, func.count(Payment.id), func.sum(Payment.amount))
        .group_by(Payment.partner_id)
    )
    result = []
    for partner in partners:
        count, amount = totals.get(partner.id, (0, 0.0))
        result.append({**partner.to_dict(), 'payment_count': count, 'total_spent': amount or 0.0})
    return jsonify(result)

@bp.route('/api/partners', methods=['POST'])
@admin_required
def create_partner():
    form = PartnerForm(formdata=json_formdata(json_object()))
    if not form.validate():
        return error_response('Invalid partner data', 400, errors=form.errors)

    is_flex_fund = bool(form.is_flex_fund.data)
    partner = Partner(
        name=form.name.data.strip(),
        contract_total=0 if is_flex_fund else (form.contract_total.data or 0),
        is_flex_fund=is_flex_fund,
    )
    try:
        db.session.add(partner)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return error_response('A partner with this name already exists.', 400)
    current_app.logger.info(f"Created partner '{partner.name}'")
    return jsonify(partner.to_dict()), 201

@bp.route('/api/partners/<partner_id>', methods=['GET'])
@login_required
def get_partner(partner_id):
    if not g.user.is_admin and g.user.partner_id != partner_id:
        return error_response('Forbidden', 403)
    partner = db.get_or_404(Partner, partner_id)
    payments = partner.payments.order_by(Payment.created_at.desc()).all()
    return jsonify({
        **partner.to_dict(),
        **serialize_detail(partner_detail(partner, payments)),
        'payments': [payment.to_dict() for payment in payments],
    })

@bp.route('/api/partners/<partner_id>', methods=['PATCH'])
@admin_required
def update_partner(partner_id):
    partner = db.get_or_404(Partner, partner_id)
    payload = json_object()
    form = EditPartnerForm(formdata=json_formdata(payload))
    if not form.validate():
        return error_response('Invalid partner data', 400, errors=form.errors)

    if payload.get('name') is not None:
        partner.name = str(form.name.data).strip()
    if payload.get('contract_total') is not None:
        partner.contract_total = form.contract_total.data
    if payload.get('is_flex_fund') is not None:
        partner.is_flex_fund = bool(form.is_flex_fund.data)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return error_response('A partner with this name already exists.', 400)
    return jsonify(partner.to_dict())

@bp.route('/api/partners/<partner_id>', methods=['DELETE'])
@full_admin_required
def delete_partner(partner_id):
    partner = db.get_or_404(Partner, partner_id)
    User.query.filter_by(partner_id=partner.id).update({'partner_id': None})
    db.session.delete(partner)
    db.session.commit()
    current_app.logger.info(f"Deleted partner '{partner.name}' and its payments")
    return jsonify({'success': True})

# --- Contact Routes ---

@bp.route('/api/contacts', methods=['GET'])
@admin_required
def list_contacts():
    users = User.query.order_by(User.name).all()
    return jsonify([user.to_dict() for user in users])

@bp.route('/api/contacts', methods=['POST'])
@admin_required
def create_contact():
    payload = json_object()
    if (payload.get('is_admin') or payload.get('is_full_admin')) and not g.user.is_full_admin:
        return error_response('Only full admins can create admin users', 403)

    form = ContactForm(formdata=json_formdata(payload))
    if not form.validate():
        return error_response('Invalid contact data', 400, errors=form.errors)

    email = form.email.data.strip().lower()
    if User.query.filter(func.lower(User.email) == email).first():
        return error_response('Email already exists', 400)

    partner_id = (form.partner_id.data or '').strip() or None
    if partner_id and db.session.get(Partner, partner_id) is None:
        return error_response('Unknown partner', 400)

    is_full_admin = bool(form.is_full_admin.data)
    user = User(
        name=form.name.data.strip(),
        email=email,
        partner_id=partner_id,
        is_admin=bool(form.is_admin.data) or is_full_admin,
        is_full_admin=is_full_admin,
    )
    user.set_password(form.password.data)
    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return error_response('Email already exists', 400)
    current_app.logger.info(f"Created user {user.email}")
    return jsonify(user.to_dict()), 201

# --- Upload History & Settings ---

@bp.route('/api/uploads')
@admin_required
def upload_history():
    runs = UploadRun.query.order_by(UploadRun.upload_timestamp.desc()).all()
    return jsonify([run.to_dict() for run in runs])

@bp.route('/api/settings', methods=['GET'])
@admin_required
def list_settings():
    settings = AppSetting.query.order_by(AppSetting.key).all()
    return jsonify([setting.to_dict() for setting in settings])

@bp.route('/api/settings/<int:setting_id>', methods=['PATCH'])
@full_admin_required
def edit_setting(setting_id):
    setting = db.get_or_404(AppSetting, setting_id)
    form = AppSettingForm(formdata=json_formdata(json_object()))
    if not form.validate():
        return error_response('Invalid setting value', 400, errors=form.errors)

    new_value = str(form.value.data).strip()
    try:
        if setting.value_type == 'json':
            new_value = json.dumps(json.loads(new_value), ensure_ascii=False)
        elif setting.value_type == 'float':
            float(new_value)
        elif setting.value_type == 'int':
            int(new_value)
    except ValueError:
        return error_response(f"'{new_value}' is not a valid {setting.value_type} value.", 400)

    setting.value = new_value
    db.session.commit()
    TrackerSettings.reset()
    current_app.logger.info(f"Setting {setting.key} changed to {new_value}; settings cache cleared")
    return jsonify(setting.to_dict())

# --- Errors ---

@bp.app_errorhandler(404)
def not_found(e):
    return error_response('Not found', 404)

@bp.app_errorhandler(413)
def too_large(e):
    return error_response('File is too large.', 413)
