# pos_backend/app.py
from datetime import datetime, timezone

import structlog
from flask import Flask, jsonify, request
from flask_cors import CORS
from sqlalchemy import event
from werkzeug.exceptions import HTTPException

from .auth import TokenSigner
from .config import Config
from .errors import ApiError
from .log import configure_logging
from .models import User, UserRole, db
from .routes import register_blueprints
from .services import build_services

logger = structlog.get_logger(__name__)


class PosBackend:
    """Per-application state kept in ``app.extensions['pos_backend']``."""

    def __init__(self, services, tokens):
        self.services = services
        self.tokens = tokens


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


def create_app(config_object=None, **overrides):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)
    app.config.update(overrides)

    configure_logging(app.config['LOG_LEVEL'], json=app.config['LOG_JSON'])

    CORS(
        app,
        resources={r'/api/*': {'origins': app.config['CORS_ORIGINS']}},
        methods=['GET', 'POST', 'PUT', 'DELETE', 'PATCH', 'OPTIONS'],
        allow_headers=['Content-Type', 'Authorization'],
        supports_credentials=True
    )

    # initialize db with app
    db.init_app(app)

    with app.app_context():
        if db.engine.dialect.name == 'sqlite':
            event.listen(db.engine, 'connect', _enable_sqlite_foreign_keys)
        db.create_all()

        services = build_services(db.session, app.config)
        tokens = TokenSigner(app.config['SECRET_KEY'], app.config['TOKEN_MAX_AGE'])
        app.extensions['pos_backend'] = PosBackend(services, tokens)

        if app.config['BOOTSTRAP_ADMIN']:
            _bootstrap_admin(app, services)

        logger.info('Market store API ready', db=db.engine.url.render_as_string(hide_password=True))

    register_blueprints(app)
    _register_error_handlers(app)

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({
            'success': True,
            'data': {'status': 'ok', 'timestamp': datetime.now(timezone.utc).isoformat()}
        })

    return app


def _bootstrap_admin(app, services):
    """Create a default admin when the users table is empty."""
    if db.session.query(User.id).first():
        return
    email = app.config['ADMIN_EMAIL']
    services.users.create_user(email, password=app.config['ADMIN_PASSWORD'], name='admin', role=UserRole.ADMIN)
    logger.warning('Created default admin user, change its password immediately', email=email)


# -------------------------
# Error envelope
# -------------------------
def _register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(err):
        if err.status_code >= 500:
            logger.error('Request failed', method=request.method, path=request.path, error=err.message)
        return jsonify({'success': False, 'error': err.to_dict()}), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        message = 'Endpoint not found' if err.code == 404 else err.description
        return jsonify({'success': False, 'error': {'message': message}}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err):
        db.session.rollback()
        logger.exception('Unhandled error', method=request.method, path=request.path)
        return jsonify({'success': False, 'error': {'message': 'Internal server error'}}), 500
