from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_mail import Mail
from flask_migrate import Migrate
from flask_cors import CORS
from apscheduler.schedulers.background import BackgroundScheduler
from werkzeug.exceptions import HTTPException
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Initialize Flask extensions
db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
mail = Mail()
migrate = Migrate()
cors = CORS()
scheduler = BackgroundScheduler()


def create_app(test_config=None):
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'default_secret_key_for_development')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv('DATABASE_URI', 'sqlite:///blood_bank.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SECURITY_PASSWORD_SALT'] = os.getenv('SECURITY_PASSWORD_SALT', 'password-reset-salt')
    app.config['AUTH_TOKEN_MAX_AGE'] = int(os.getenv('AUTH_TOKEN_MAX_AGE', 7 * 24 * 3600))
    app.config['CORS_ORIGINS'] = os.getenv('CORS_ORIGINS', '*')

    # Blood bank rules
    app.config['LOW_INVENTORY_THRESHOLD'] = int(os.getenv('LOW_INVENTORY_THRESHOLD', 10))
    app.config['EXPIRY_WARNING_DAYS'] = int(os.getenv('EXPIRY_WARNING_DAYS', 7))
    app.config['DONATION_INTERVAL_DAYS'] = int(os.getenv('DONATION_INTERVAL_DAYS', 90))
    app.config['SCHEDULER_ENABLED'] = os.getenv('SCHEDULER_ENABLED', 'false').lower() == 'true'

    # Email configuration
    app.config['MAIL_SERVER'] = os.getenv('MAIL_SERVER', 'smtp.gmail.com')
    app.config['MAIL_PORT'] = int(os.getenv('MAIL_PORT', 587))
    app.config['MAIL_USE_TLS'] = True
    app.config['MAIL_USERNAME'] = os.getenv('MAIL_USERNAME')
    app.config['MAIL_PASSWORD'] = os.getenv('MAIL_PASSWORD')
    app.config['MAIL_DEFAULT_SENDER'] = os.getenv('MAIL_DEFAULT_SENDER')

    # Twilio configuration
    app.config['TWILIO_ACCOUNT_SID'] = os.getenv('TWILIO_ACCOUNT_SID')
    app.config['TWILIO_AUTH_TOKEN'] = os.getenv('TWILIO_AUTH_TOKEN')
    app.config['TWILIO_PHONE_NUMBER'] = os.getenv('TWILIO_PHONE_NUMBER')

    if test_config is not None:
        app.config.update(test_config)

    # Initialize extensions with app
    db.init_app(app)
    bcrypt.init_app(app)
    login_manager.init_app(app)
    mail.init_app(app)
    migrate.init_app(app, db)
    cors.init_app(app, resources={r'/api/*': {'origins': app.config['CORS_ORIGINS']}})

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'message': error.description}), error.code

    # Register blueprints
    from bloodbank.routes.main import main
    from bloodbank.routes.auth import auth
    from bloodbank.routes.donors import donors
    from bloodbank.routes.inventory import inventory
    from bloodbank.routes.blood_requests import blood_requests
    from bloodbank.routes.drives import drives
    from bloodbank.routes.notifications import notifications
    from bloodbank.routes.admin import admin
    from bloodbank.routes.reports import reports
    from bloodbank.routes.utils import utils

    app.register_blueprint(main, url_prefix='/api')
    app.register_blueprint(auth, url_prefix='/api/auth')
    app.register_blueprint(donors, url_prefix='/api/donors')
    app.register_blueprint(inventory, url_prefix='/api/inventory')
    app.register_blueprint(blood_requests, url_prefix='/api/requests')
    app.register_blueprint(drives, url_prefix='/api/drives')
    app.register_blueprint(notifications, url_prefix='/api/notifications')
    app.register_blueprint(admin, url_prefix='/api/admin')
    app.register_blueprint(reports, url_prefix='/api/reports')
    app.register_blueprint(utils, url_prefix='/api/utils')

    from bloodbank.utils.scheduler import register_commands, start_scheduler
    register_commands(app)

    # Create database tables
    from bloodbank.models import user, donor, blood, drive, notification
    with app.app_context():
        db.create_all()

    if app.config['SCHEDULER_ENABLED']:
        start_scheduler(app)

    return app
