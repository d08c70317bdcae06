# pos_backend/routes/users.py
from flask import Blueprint, request

from ..auth import roles_required
from ..errors import NotFoundError
from ..models import UserRole
from ..schemas import CreateUserRequest, Pagination, ResetPasswordRequest, UpdateUserRequest, parse
from . import ok, page_meta, services

bp = Blueprint('users', __name__, url_prefix='/api/users')


@bp.route('', methods=['GET'])
@roles_required(UserRole.ADMIN)
def list_users():
    pagination = parse(Pagination, request.args.to_dict())
    users, total = services().users.list_users(pagination.limit, pagination.offset)
    return ok([u.to_dict() for u in users], meta=page_meta(pagination, total))


@bp.route('/<user_id>', methods=['GET'])
@roles_required(UserRole.ADMIN)
def get_user(user_id):
    user = services().users.get_user_by_id(user_id)
    if not user:
        raise NotFoundError('User not found')
    return ok(user.to_dict())


@bp.route('', methods=['POST'])
@roles_required(UserRole.ADMIN)
def create_user():
    body = parse(CreateUserRequest, request.get_json(silent=True))
    user = services().users.create_user(body.email, password=body.password, name=body.name, role=body.role)
    return ok(user.to_dict(), 201)


@bp.route('/<user_id>', methods=['PUT'])
@roles_required(UserRole.ADMIN)
def update_user(user_id):
    body = parse(UpdateUserRequest, request.get_json(silent=True))
    user = services().users.update_user(user_id, email=body.email, name=body.name)
    return ok(user.to_dict())


@bp.route('/<user_id>', methods=['DELETE'])
@roles_required(UserRole.ADMIN)
def delete_user(user_id):
    services().users.delete_user(user_id)
    return ok()


@bp.route('/<user_id>/password', methods=['POST'])
@roles_required(UserRole.ADMIN)
def reset_password(user_id):
    """
    Change a user's password.
    JSON: { password }
    """
    body = parse(ResetPasswordRequest, request.get_json(silent=True))
    services().users.reset_password(user_id, body.password)
    return ok()
