from flask import current_app
from partner_tracker import db
from partner_tracker.models import AppSetting, Partner, User
from partner_tracker.settings import TrackerSettings

DEFAULT_SETTINGS = {
    # key: [value, description, value_type]
    'PLAYER_GUARANTEE': ['30439528.20', 'Total player guarantee that the dashboard counts spend down from', 'float'],
    'PARTNER_MATCH_MIN_LENGTH': ['0', 'Shortest name allowed to match a partner by containment (0 turns the guard off)', 'int'],
    'DEFAULT_UPLOAD_MODE': ['replace', "What an upload does to existing payments: 'replace' or 'append'", 'string'],
}

DEFAULT_PARTNERS = [
    # (name, contract_total, is_flex_fund)
    ('Nike', 5000000, False),
    ('Gatorade', 3000000, False),
    ('EA Sports', 0, True),
]

def seed_data():
    """Populates the database with default settings, the first admin and sample partners."""
    # Seed App Settings
    for key, data in DEFAULT_SETTINGS.items():
        setting = AppSetting.query.filter_by(key=key).first()
        if not setting: # Only add if it doesn't exist
            setting = AppSetting(key=key, value=data[0], description=data[1], value_type=data[2])
            db.session.add(setting)
            print(f'Seeding setting: {key}')

    # Seed the full admin
    admin_email = current_app.config['ADMIN_EMAIL']
    if not User.query.filter_by(email=admin_email).first():
        admin = User(email=admin_email, name='Admin', is_admin=True, is_full_admin=True)
        admin.set_password(current_app.config['ADMIN_PASSWORD'])
        db.session.add(admin)
        print(f'Seeding admin user: {admin_email}')

    # Seed sample partners
    if Partner.query.count() == 0:
        print('Seeding sample partners...')
        for name, contract_total, is_flex_fund in DEFAULT_PARTNERS:
            db.session.add(Partner(name=name, contract_total=contract_total, is_flex_fund=is_flex_fund))

    db.session.commit()
    TrackerSettings.reset()
    print('Seeding complete.')
