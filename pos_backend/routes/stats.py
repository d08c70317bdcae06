# pos_backend/routes/stats.py
from flask import Blueprint, request

from ..auth import login_required
from ..schemas import TopProductsQuery, parse
from . import ok, services

bp = Blueprint('stats', __name__, url_prefix='/api/stats')


@bp.route('/orders', methods=['GET'])
@login_required
def order_stats():
    return ok(services().orders.get_order_stats())


@bp.route('/top-products', methods=['GET'])
@login_required
def top_products():
    query = parse(TopProductsQuery, request.args.to_dict())
    return ok(services().orders.get_top_products(query.limit))
