# pos_backend/services/orders.py
"""Order lifecycle and pricing.

An order is priced from live catalog data when it is created: every cart line
is resolved by SKU, the product's price is copied onto the order item, and the
header plus all items are written in one transaction. Later changes to the
catalog never touch an existing order.
"""
from collections.abc import Mapping
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

import structlog
from sqlalchemy import case, distinct, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from ..errors import ConflictError, InternalError, NotFoundError, UnknownProductError, ValidationError
from ..ids import generate_order_code, generate_order_id, generate_order_item_id
from ..models import MAX_LINE_QUANTITY, Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus, utcnow

logger = structlog.get_logger(__name__)

CENT = Decimal('0.01')
MAX_CODE_ATTEMPTS = 5


def round_currency(value):
    """Round half-up to two decimals."""
    return float(Decimal(repr(value)).quantize(CENT, rounding=ROUND_HALF_UP))


def compute_tax(subtotal, tax_rate):
    return round_currency(subtotal * tax_rate)


def _field(line, name):
    if isinstance(line, Mapping):
        return line.get(name)
    return getattr(line, name, None)


def _coerce(enum_cls, value, field):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ', '.join(m.value for m in enum_cls)
        raise ValidationError(f'Invalid {field} {value!r}', details={field: f'must be one of {allowed}'})


def _as_naive_utc(value):
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class OrderEngine:
    """Creates, prices and transitions orders.

    ``tax_rate`` is fixed at construction; ``code_factory`` produces candidate
    customer-facing codes and is retried when the store rejects a duplicate.
    """

    def __init__(self, session, catalog, tax_rate, code_factory=generate_order_code):
        self.session = session
        self.catalog = catalog
        self.tax_rate = float(tax_rate)
        self.code_factory = code_factory

    # -------------------------
    # Creation
    # -------------------------
    def create_order(self, items, notes=None):
        items = list(items or [])
        if not items:
            raise ValidationError('Order must have at least one item', details={'reason': 'EMPTY_ORDER'})

        lines = self._snapshot_lines(items)
        subtotal = sum(line['unit_price'] * line['quantity'] for line in lines)
        tax = compute_tax(subtotal, self.tax_rate)
        total = subtotal + tax

        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            order = self._persist(lines, subtotal, tax, total, notes)
            if order is not None:
                logger.info('Order created', order_id=order.id, code=order.code,
                            items=len(lines), total=total)
                return order
            logger.warning('Order code collision, retrying', attempt=attempt)

        raise ConflictError('Could not allocate a unique order code')

    def _snapshot_lines(self, items):
        lines = []
        for item in items:
            sku = _field(item, 'sku')
            quantity = _field(item, 'quantity')
            if (isinstance(quantity, bool) or not isinstance(quantity, int)
                    or not 0 < quantity <= MAX_LINE_QUANTITY):
                raise ValidationError(
                    f'Quantity for SKU {sku} must be a whole number from 1 to {MAX_LINE_QUANTITY}',
                    details={'sku': sku, 'quantity': quantity}
                )
            product = self.catalog.get_product_by_sku(sku) if sku else None
            if not product:
                raise UnknownProductError(sku)
            lines.append({
                'product_id': product.id,
                'sku': product.sku,
                'name': product.name,
                'unit_price': product.price,
                'quantity': quantity,
                'color': _field(item, 'color') or None,
            })
        return lines

    def _persist(self, lines, subtotal, tax, total, notes):
        """Write header and items in one transaction.

        Returns None when the generated code is already taken; everything else
        that goes wrong rolls the whole order back and propagates.
        """
        now = utcnow()
        order = Order(
            id=generate_order_id(),
            code=self.code_factory(),
            status=OrderStatus.PENDING,
            subtotal=subtotal,
            tax=tax,
            total=total,
            payment_status=PaymentStatus.UNPAID,
            notes=notes or None,
            created_at=now,
            updated_at=now
        )
        try:
            self.session.add(order)
            self.session.flush()
            for number, line in enumerate(lines, start=1):
                order.items.append(OrderItem(
                    id=generate_order_item_id(),
                    line_number=number,
                    created_at=now,
                    **line
                ))
            self.session.flush()
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if self._code_taken(order.code):
                return None
            raise InternalError('Failed to create order') from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise InternalError('Failed to create order') from exc
        except Exception:
            self.session.rollback()
            raise
        return order

    def _code_taken(self, code):
        return self.session.query(Order.id).filter(Order.code == code).first() is not None

    # -------------------------
    # Lookup
    # -------------------------
    def get_order_by_id(self, order_id):
        return self.session.get(Order, order_id)

    def get_order_by_code(self, code):
        return self.session.query(Order).filter(Order.code == code).first()

    def list_orders(self, limit=20, offset=0, status=None, start_date=None, end_date=None):
        if limit < 0 or offset < 0:
            raise ValidationError('limit and offset must be non-negative')

        query = self.session.query(Order)
        if status:
            query = query.filter(Order.status == _coerce(OrderStatus, status, 'status'))
        if start_date:
            query = query.filter(Order.created_at >= _as_naive_utc(start_date))
        if end_date:
            query = query.filter(Order.created_at <= _as_naive_utc(end_date))

        total = query.count()
        orders = (
            query.options(selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        return orders, total

    # -------------------------
    # Transitions
    # -------------------------
    def update_order_status(self, order_id, status, notes=None):
        order = self._require(order_id)
        status = _coerce(OrderStatus, status, 'status')

        now = utcnow()
        order.status = status
        if status is OrderStatus.COMPLETED:
            order.completed_at = now
        if notes:
            order.notes = notes
        order.updated_at = now
        self.session.commit()
        logger.info('Order status updated', order_id=order_id, status=status.value)
        return order

    def complete_order(self, order_id, payment_method, notes=None):
        order = self._require(order_id)
        payment_method = _coerce(PaymentMethod, payment_method, 'paymentMethod')

        now = utcnow()
        order.status = OrderStatus.COMPLETED
        order.payment_status = PaymentStatus.PAID
        order.payment_method = payment_method
        if notes:
            order.notes = notes
        order.completed_at = now
        order.updated_at = now
        self.session.commit()
        logger.info('Order completed', order_id=order_id, code=order.code,
                    payment_method=payment_method.value)
        return order

    def update_order_payment(self, order_id, payment_method, payment_status):
        order = self._require(order_id)
        order.payment_method = _coerce(PaymentMethod, payment_method, 'paymentMethod')
        order.payment_status = _coerce(PaymentStatus, payment_status, 'paymentStatus')
        order.updated_at = utcnow()
        self.session.commit()
        logger.info('Order payment updated', order_id=order_id,
                    payment_status=order.payment_status.value)
        return order

    def _require(self, order_id):
        order = self.get_order_by_id(order_id)
        if not order:
            raise NotFoundError(f'Order with id {order_id} not found')
        return order

    # -------------------------
    # Statistics
    # -------------------------
    def get_order_stats(self):
        completed = Order.status == OrderStatus.COMPLETED
        total_orders, completed_orders, pending_orders, revenue = self.session.query(
            func.count(Order.id),
            func.sum(case((completed, 1), else_=0)),
            func.sum(case((Order.status == OrderStatus.PENDING, 1), else_=0)),
            func.sum(case((completed, Order.total), else_=0)),
        ).one()
        average = self.session.query(func.avg(Order.total)).filter(completed).scalar()

        return {
            'totalOrders': total_orders or 0,
            'completedOrders': int(completed_orders or 0),
            'pendingOrders': int(pending_orders or 0),
            'totalRevenue': float(revenue or 0),
            'averageOrderValue': float(average or 0),
        }

    def get_top_products(self, limit=10):
        if limit < 0:
            raise ValidationError('limit must be non-negative')

        total_quantity = func.sum(OrderItem.quantity).label('total_quantity')
        rows = (
            self.session.query(
                OrderItem.sku,
                func.max(OrderItem.name),
                total_quantity,
                func.count(distinct(OrderItem.order_id)),
                func.sum(OrderItem.quantity * OrderItem.unit_price),
            )
            .join(Order, OrderItem.order_id == Order.id)
            .filter(Order.status == OrderStatus.COMPLETED)
            .group_by(OrderItem.sku)
            .order_by(total_quantity.desc(), OrderItem.sku)
            .limit(limit)
            .all()
        )
        return [
            {
                'sku': sku,
                'name': name,
                'totalQuantity': int(quantity),
                'orderCount': int(order_count),
                'totalRevenue': float(revenue),
            }
            for sku, name, quantity, order_count, revenue in rows
        ]
