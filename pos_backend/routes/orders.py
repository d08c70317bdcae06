# pos_backend/routes/orders.py
import structlog
from flask import Blueprint, g, request

from ..auth import login_required, roles_required
from ..errors import NotFoundError
from ..models import UserRole
from ..schemas import (CompleteOrderRequest, CreateOrderRequest, OrderFilter, UpdateOrderPaymentRequest,
                       UpdateOrderStatusRequest, parse)
from . import ok, page_meta, services

logger = structlog.get_logger(__name__)

bp = Blueprint('orders', __name__, url_prefix='/api/orders')


@bp.route('', methods=['POST'])
def create_order():
    """
    Place an order from a cart.
    JSON: { items: [ { productId, sku, quantity, color? } ], notes? }
    Prices are taken from the catalog, never from the request.
    """
    body = parse(CreateOrderRequest, request.get_json(silent=True))
    order = services().orders.create_order(body.items, notes=body.notes)
    return ok(order.to_dict(), 201)


@bp.route('/code/<code>', methods=['GET'])
def get_order_by_code(code):
    order = services().orders.get_order_by_code(code)
    if not order:
        raise NotFoundError('Order not found')
    return ok(order.to_dict())


@bp.route('/<order_id>', methods=['GET'])
@login_required
def get_order(order_id):
    order = services().orders.get_order_by_id(order_id)
    if not order:
        raise NotFoundError('Order not found')
    return ok(order.to_dict())


@bp.route('', methods=['GET'])
@login_required
def list_orders():
    filters = parse(OrderFilter, request.args.to_dict())
    orders, total = services().orders.list_orders(
        filters.limit,
        filters.offset,
        status=filters.status,
        start_date=filters.start_date,
        end_date=filters.end_date
    )
    return ok([o.to_dict() for o in orders], meta=page_meta(filters, total))


@bp.route('/<order_id>/complete', methods=['POST'])
@login_required
def complete_order(order_id):
    body = parse(CompleteOrderRequest, request.get_json(silent=True))
    order = services().orders.complete_order(order_id, body.payment_method, notes=body.notes)
    logger.info('Order completed by user', order_id=order_id, completed_by=g.current_user.id)
    return ok(order.to_dict())


@bp.route('/<order_id>/status', methods=['PATCH'])
@login_required
def update_order_status(order_id):
    body = parse(UpdateOrderStatusRequest, request.get_json(silent=True))
    order = services().orders.update_order_status(order_id, body.status, notes=body.notes)
    return ok(order.to_dict())


@bp.route('/<order_id>/payment', methods=['PATCH'])
@roles_required(UserRole.ADMIN)
def update_order_payment(order_id):
    body = parse(UpdateOrderPaymentRequest, request.get_json(silent=True))
    order = services().orders.update_order_payment(order_id, body.payment_method, body.payment_status)
    return ok(order.to_dict())
