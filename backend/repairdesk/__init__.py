from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from datetime import timedelta
from typing import Optional, Dict, Any
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal
    app = Flask(__name__)

    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = timedelta(seconds=int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', 7 * 24 * 3600)))
    app.config['DATABASE_URL'] = os.getenv('DATABASE_URL', 'sqlite:///dev.db')
    # Lifecycle knobs: 'permissive' keeps any listed status reachable, 'strict' enforces the graph
    app.config['ORDER_TRANSITION_MODE'] = os.getenv('ORDER_TRANSITION_MODE', 'permissive')
    app.config['ORDER_CONCEAL_EXISTENCE'] = _env_bool('ORDER_CONCEAL_EXISTENCE', True)
    # SMS
    app.config['SMS_BACKEND'] = os.getenv('SMS_BACKEND', 'log')
    app.config['SMS_GATEWAY_URL'] = os.getenv('SMS_GATEWAY_URL', '')
    app.config['SMS_GATEWAY_TOKEN'] = os.getenv('SMS_GATEWAY_TOKEN', '')
    app.config['SMS_GATEWAY_TIMEOUT'] = float(os.getenv('SMS_GATEWAY_TIMEOUT', 5))
    app.config['SMS_SIGN_NAME'] = os.getenv('SMS_SIGN_NAME', 'RepairDesk')
    app.config['SMS_TEMPLATE_VERIFICATION'] = os.getenv('SMS_TEMPLATE_CODE', 'SMS_VERIFICATION')
    app.config['SMS_TEMPLATE_ORDER_CREATED'] = os.getenv('SMS_TEMPLATE_ORDER_CREATED', 'SMS_ORDER_CREATED')
    app.config['SMS_TEMPLATE_ORDER_ASSIGNED'] = os.getenv('SMS_TEMPLATE_ORDER_ASSIGNED', 'SMS_ORDER_ASSIGNED')
    app.config['SMS_TEMPLATE_ORDER_COMPLETED'] = os.getenv('SMS_TEMPLATE_ORDER_COMPLETED', 'SMS_ORDER_COMPLETED')
    app.config['VERIFICATION_CODE_TTL'] = int(os.getenv('VERIFICATION_CODE_TTL', 300))
    # Uploads
    app.config['UPLOAD_FOLDER'] = os.getenv('UPLOAD_FOLDER', os.path.join(os.getcwd(), 'uploads'))
    app.config['MAX_CONTENT_LENGTH'] = int(os.getenv('MAX_CONTENT_LENGTH', 10 * 1024 * 1024))

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    @app.teardown_appcontext
    def remove_session(exc):  # type: ignore
        SessionLocal.remove()

    jwt.init_app(app)

    # Collaborators owned by the app instance
    from .services.notifications import build_gateway
    from .services.verification import VerificationCodeStore
    from .services.uploads import LocalImageStore
    app.extensions['sms_gateway'] = build_gateway(app.config)
    app.extensions['verification_codes'] = VerificationCodeStore(default_ttl=app.config['VERIFICATION_CODE_TTL'])
    app.extensions['image_store'] = LocalImageStore(app.config['UPLOAD_FOLDER'])

    from .routes.auth import auth_bp
    from .routes.orders import orders_bp
    from .routes.users import users_bp
    from .routes.uploads import uploads_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(orders_bp, url_prefix='/orders')
    app.register_blueprint(users_bp, url_prefix='/users')
    app.register_blueprint(uploads_bp, url_prefix='/uploads')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            payload = {
                'success': False,
                'message': e.description,
                'error': {
                    'status': e.code,
                    'title': e.name,
                    'kind': getattr(e, 'kind', None),
                }
            }
            return payload, e.code
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return {
            'success': False,
            'message': 'Unexpected error',
            'error': {
                'status': 500,
                'title': 'Internal Server Error',
                'kind': 'Internal',
            }
        }, 500

    return app


def get_db():
    return SessionLocal()
