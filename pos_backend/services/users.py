# pos_backend/services/users.py
import structlog
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from ..errors import ConflictError, NotFoundError
from ..ids import generate_user_id
from ..models import User, UserRole, utcnow

logger = structlog.get_logger(__name__)


def normalize_email(email):
    return (email or '').strip().lower()


class UserDirectory:
    """User and credential records; emails are unique case-insensitively."""

    def __init__(self, session):
        self.session = session

    def create_user(self, email, password=None, name=None, role=UserRole.CASHIER):
        email = normalize_email(email)
        if self._email_taken(email):
            raise ConflictError(f'User with email {email} already exists')

        now = utcnow()
        user = User(
            id=generate_user_id(),
            email=email,
            password_hash=generate_password_hash(password) if password else None,
            name=name or None,
            role=UserRole(role),
            created_at=now,
            updated_at=now
        )
        self.session.add(user)
        self._commit(f'User with email {email} already exists')
        logger.info('User created', user_id=user.id, email=email, role=user.role.value)
        return user

    def get_user_by_id(self, user_id):
        return self.session.get(User, user_id)

    def get_user_by_email(self, email):
        """Login lookup. The returned record carries the credential hash."""
        return self.session.query(User).filter_by(email=normalize_email(email)).first()

    def list_users(self, limit=20, offset=0):
        query = self.session.query(User)
        total = query.count()
        users = query.order_by(User.created_at, User.id).limit(limit).offset(offset).all()
        return users, total

    def update_user(self, user_id, email=None, name=None):
        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError(f'User with id {user_id} not found')

        if email:
            email = normalize_email(email)
            if email != user.email and self._email_taken(email, exclude_id=user_id):
                raise ConflictError(f'Email {email} is already in use')
            user.email = email
        if name:
            user.name = name
        user.updated_at = utcnow()

        self._commit(f'Email {user.email} is already in use')
        return user

    def delete_user(self, user_id):
        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError(f'User with id {user_id} not found')
        self.session.delete(user)
        self.session.commit()
        logger.info('User deleted', user_id=user_id)

    def verify_password(self, user, password):
        if not user or not user.password_hash or not password:
            return False
        return check_password_hash(user.password_hash, password)

    def reset_password(self, user_id, new_password):
        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError(f'User with id {user_id} not found')
        user.password_hash = generate_password_hash(new_password)
        user.updated_at = utcnow()
        self.session.commit()
        logger.info('Password reset', user_id=user_id)

    def _email_taken(self, email, exclude_id=None):
        query = self.session.query(User.id).filter(User.email == email)
        if exclude_id:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    def _commit(self, conflict_message):
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError(conflict_message)
