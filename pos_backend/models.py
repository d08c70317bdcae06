# pos_backend/models.py
import enum
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# Largest quantity a single order line may carry.
MAX_LINE_QUANTITY = 1_000_000


def utcnow():
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class UserRole(str, enum.Enum):
    ADMIN = 'ADMIN'
    CASHIER = 'CASHIER'


class OrderStatus(str, enum.Enum):
    PENDING = 'PENDING'
    PROCESSING = 'PROCESSING'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'


class PaymentStatus(str, enum.Enum):
    UNPAID = 'UNPAID'
    PAID = 'PAID'
    REFUNDED = 'REFUNDED'


class PaymentMethod(str, enum.Enum):
    CASH = 'CASH'
    CARD = 'CARD'
    MOBILE_PAYMENT = 'MOBILE_PAYMENT'
    OTHER = 'OTHER'


def _enum_column(enum_cls, **kwargs):
    # Stored as plain strings; unknown values fail to load instead of leaking through.
    return db.Column(
        db.Enum(enum_cls, native_enum=False, validate_strings=True, length=32),
        **kwargs
    )


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.String(40), primary_key=True)
    email = db.Column(db.String(255), unique=True, index=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=True)
    name = db.Column(db.String(100), nullable=True)
    role = _enum_column(UserRole, nullable=False, default=UserRole.CASHIER)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f'<User id={self.id} email={self.email!r} role={self.role.value}>'

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'role': self.role.value,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }


class Product(db.Model):
    __tablename__ = 'products'
    id = db.Column(db.String(40), primary_key=True)
    sku = db.Column(db.String(50), unique=True, index=True, nullable=False)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Float, nullable=False)
    color = db.Column(db.String(50), nullable=True)
    image_url = db.Column(db.String(2048), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f'<Product id={self.id} sku={self.sku!r} price={self.price}>'

    def to_dict(self):
        return {
            'id': self.id,
            'sku': self.sku,
            'name': self.name,
            'description': self.description,
            'price': self.price,
            'color': self.color,
            'imageUrl': self.image_url,
            'isActive': self.is_active,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }


class Order(db.Model):
    __tablename__ = 'orders'
    id = db.Column(db.String(40), primary_key=True)
    code = db.Column(db.String(8), unique=True, index=True, nullable=False)
    status = _enum_column(OrderStatus, nullable=False, default=OrderStatus.PENDING, index=True)
    subtotal = db.Column(db.Float, nullable=False)
    tax = db.Column(db.Float, nullable=False)
    total = db.Column(db.Float, nullable=False)
    payment_method = _enum_column(PaymentMethod, nullable=True)
    payment_status = _enum_column(PaymentStatus, nullable=False, default=PaymentStatus.UNPAID)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)
    notes = db.Column(db.String(500), nullable=True)
    items = db.relationship(
        'OrderItem',
        backref='order',
        lazy=True,
        cascade='all, delete-orphan',
        order_by='OrderItem.line_number'
    )

    def __repr__(self):
        return f'<Order id={self.id} code={self.code} status={self.status.value}>'

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'status': self.status.value,
            'subtotal': self.subtotal,
            'tax': self.tax,
            'total': self.total,
            'paymentMethod': self.payment_method.value if self.payment_method else None,
            'paymentStatus': self.payment_status.value,
            'items': [i.to_dict() for i in self.items],
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
            'completedAt': _iso(self.completed_at),
            'notes': self.notes
        }


class OrderItem(db.Model):
    __tablename__ = 'order_items'
    id = db.Column(db.String(40), primary_key=True)
    order_id = db.Column(
        db.String(40),
        db.ForeignKey('orders.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    line_number = db.Column(db.Integer, nullable=False)
    # Copied from the catalog at order time, not a foreign key.
    product_id = db.Column(db.String(40), nullable=False, index=True)
    sku = db.Column(db.String(50), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Float, nullable=False)
    color = db.Column(db.String(50), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'orderId': self.order_id,
            'productId': self.product_id,
            'sku': self.sku,
            'name': self.name,
            'quantity': self.quantity,
            'unitPrice': self.unit_price,
            'color': self.color,
            'createdAt': _iso(self.created_at)
        }


class CsvImport(db.Model):
    __tablename__ = 'csv_imports'
    id = db.Column(db.String(40), primary_key=True)
    user_id = db.Column(db.String(40), db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    filename = db.Column(db.String(255), nullable=False)
    total_rows = db.Column(db.Integer, nullable=False)
    successful_rows = db.Column(db.Integer, nullable=False)
    failed_rows = db.Column(db.Integer, nullable=False)
    errors = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'filename': self.filename,
            'totalRows': self.total_rows,
            'successfulRows': self.successful_rows,
            'failedRows': self.failed_rows,
            'errors': self.errors,
            'createdAt': _iso(self.created_at)
        }
