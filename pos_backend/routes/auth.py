# pos_backend/routes/auth.py
import structlog
from flask import Blueprint, current_app, g, request

from ..auth import login_required, roles_required
from ..errors import AuthenticationError
from ..models import UserRole
from ..schemas import CreateUserRequest, LoginRequest, parse
from . import ok, services

logger = structlog.get_logger(__name__)

bp = Blueprint('auth', __name__, url_prefix='/api/auth')


@bp.route('/login', methods=['POST'])
def login():
    """
    Login using email and password.
    JSON: { email, password }
    Returns the user and a bearer token.
    """
    body = parse(LoginRequest, request.get_json(silent=True))
    users = services().users

    user = users.get_user_by_email(body.email)
    if not users.verify_password(user, body.password):
        raise AuthenticationError('Invalid email or password')

    token = current_app.extensions['pos_backend'].tokens.issue(user)
    logger.info('User login successful', user_id=user.id, email=user.email)
    return ok({'user': user.to_dict(), 'token': token})


@bp.route('/register', methods=['POST'])
@roles_required(UserRole.ADMIN)
def register():
    body = parse(CreateUserRequest, request.get_json(silent=True))
    user = services().users.create_user(body.email, password=body.password, name=body.name, role=body.role)
    return ok(user.to_dict(), 201)


@bp.route('/me', methods=['GET'])
@login_required
def me():
    return ok(g.current_user.to_dict())
