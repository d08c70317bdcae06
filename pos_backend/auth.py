# pos_backend/auth.py
from functools import wraps

from flask import current_app, g, request
from itsdangerous import BadData, URLSafeTimedSerializer

from .errors import AuthenticationError, AuthorizationError


class TokenSigner:
    """Signed, time-limited bearer tokens carrying ``{userId, email, role}``."""

    salt = 'pos-backend.auth-token'

    def __init__(self, secret_key, max_age):
        self.max_age = max_age
        self._serializer = URLSafeTimedSerializer(secret_key, salt=self.salt)

    def issue(self, user):
        return self._serializer.dumps({
            'userId': user.id,
            'email': user.email,
            'role': user.role.value,
        })

    def verify(self, token):
        """Return the claims, or None for a malformed, tampered or expired token."""
        if not token:
            return None
        try:
            claims = self._serializer.loads(token, max_age=self.max_age)
        except BadData:
            return None
        if not isinstance(claims, dict) or not claims.get('userId'):
            return None
        return claims


def role_allowed(role, allowed):
    value = getattr(role, 'value', role)
    return value in {getattr(r, 'value', r) for r in allowed}


def extract_bearer_token(header):
    if not header or not header.startswith('Bearer '):
        return None
    return header[len('Bearer '):].strip() or None


def _authenticate():
    token = extract_bearer_token(request.headers.get('Authorization'))
    if not token:
        raise AuthenticationError('No token provided')

    pos = current_app.extensions['pos_backend']
    claims = pos.tokens.verify(token)
    if not claims:
        raise AuthenticationError('Invalid or expired token')

    user = pos.services.users.get_user_by_id(claims['userId'])
    if not user:
        raise AuthenticationError('User not found')
    g.current_user = user
    return user


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        _authenticate()
        return view(*args, **kwargs)
    return wrapped


def roles_required(*roles):
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            user = _authenticate()
            if not role_allowed(user.role, roles):
                raise AuthorizationError('Insufficient permissions')
            return view(*args, **kwargs)
        return wrapped
    return decorator
