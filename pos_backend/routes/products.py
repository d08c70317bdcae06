# pos_backend/routes/products.py
from flask import Blueprint, request

from ..auth import roles_required
from ..errors import NotFoundError, ValidationError
from ..models import UserRole
from ..schemas import CreateProductRequest, Pagination, UpdateProductRequest, parse
from . import ok, page_meta, services

bp = Blueprint('products', __name__, url_prefix='/api/products')


@bp.route('', methods=['GET'])
def list_products():
    """Public listing of active products."""
    pagination = parse(Pagination, request.args.to_dict())
    products, total = services().catalog.list_products(pagination.limit, pagination.offset, active_only=True)
    return ok([p.to_dict() for p in products], meta=page_meta(pagination, total))


@bp.route('/search', methods=['GET'])
def search_products():
    sku = request.args.get('sku', '')
    if not sku:
        raise ValidationError('SKU parameter is required')
    products = services().catalog.search_products_by_sku(sku)
    return ok([p.to_dict() for p in products])


@bp.route('/<product_id>', methods=['GET'])
def get_product(product_id):
    product = services().catalog.get_product_by_id(product_id)
    if not product:
        raise NotFoundError('Product not found')
    return ok(product.to_dict())


@bp.route('', methods=['POST'])
@roles_required(UserRole.ADMIN)
def create_product():
    body = parse(CreateProductRequest, request.get_json(silent=True))
    product = services().catalog.create_product(**body.model_dump())
    return ok(product.to_dict(), 201)


@bp.route('/<product_id>', methods=['PUT'])
@roles_required(UserRole.ADMIN)
def update_product(product_id):
    body = parse(UpdateProductRequest, request.get_json(silent=True))
    product = services().catalog.update_product(product_id, body.changes())
    return ok(product.to_dict())


@bp.route('/<product_id>', methods=['DELETE'])
@roles_required(UserRole.ADMIN)
def delete_product(product_id):
    services().catalog.delete_product(product_id)
    return ok()
