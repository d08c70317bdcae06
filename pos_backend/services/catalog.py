# pos_backend/services/catalog.py
import math

import structlog
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..ids import generate_product_id
from ..models import Product, utcnow

logger = structlog.get_logger(__name__)

# fields that may be cleared to an empty string through an update
NULLABLE_TEXT_FIELDS = ('description', 'color', 'image_url')
UPDATABLE_FIELDS = ('sku', 'name', 'price', 'is_active') + NULLABLE_TEXT_FIELDS


def _check_price(price):
    if not math.isfinite(price) or price <= 0:
        raise ValidationError('Price must be a positive finite number', details={'price': str(price)})


class ProductCatalog:
    """Product records with SKU uniqueness."""

    def __init__(self, session):
        self.session = session

    def create_product(self, sku, name, price, description=None, color=None,
                       image_url=None, is_active=True):
        _check_price(price)
        if self._sku_taken(sku):
            raise ConflictError(f'Product with SKU {sku} already exists')

        now = utcnow()
        product = Product(
            id=generate_product_id(),
            sku=sku,
            name=name,
            description=description or None,
            price=price,
            color=color or None,
            image_url=image_url or None,
            is_active=bool(is_active),
            created_at=now,
            updated_at=now
        )
        self.session.add(product)
        self._commit(sku)
        logger.info('Product created', product_id=product.id, sku=sku)
        return product

    def get_product_by_id(self, product_id):
        return self.session.get(Product, product_id)

    def get_product_by_sku(self, sku):
        return self.session.query(Product).filter_by(sku=sku).first()

    def list_products(self, limit=20, offset=0, active_only=True):
        query = self.session.query(Product)
        if active_only:
            query = query.filter(Product.is_active.is_(True))
        total = query.count()
        products = query.order_by(Product.name, Product.id).limit(limit).offset(offset).all()
        return products, total

    def search_products_by_sku(self, fragment):
        """Active products whose SKU contains ``fragment`` (case-sensitive)."""
        candidates = (
            self.session.query(Product)
            .filter(Product.is_active.is_(True))
            .filter(Product.sku.contains(fragment, autoescape=True))
            .order_by(Product.sku)
            .all()
        )
        # LIKE is case-insensitive on some backends
        return [p for p in candidates if fragment in p.sku]

    def update_product(self, product_id, changes):
        """Apply a partial update. Absent or ``None`` values leave the field unchanged."""
        product = self.get_product_by_id(product_id)
        if not product:
            raise NotFoundError(f'Product with id {product_id} not found')

        if changes.get('price') is not None:
            _check_price(changes['price'])

        new_sku = changes.get('sku')
        if new_sku and new_sku != product.sku and self._sku_taken(new_sku, exclude_id=product_id):
            raise ConflictError(f'Product with SKU {new_sku} already exists')

        for field in UPDATABLE_FIELDS:
            value = changes.get(field)
            if value is None:
                continue
            if field in ('sku', 'name') and not value:
                continue
            setattr(product, field, value)
        product.updated_at = utcnow()

        self._commit(new_sku or product.sku)
        logger.info('Product updated', product_id=product_id, fields=sorted(k for k, v in changes.items() if v is not None))
        return product

    def delete_product(self, product_id):
        product = self.get_product_by_id(product_id)
        if not product:
            raise NotFoundError(f'Product with id {product_id} not found')
        self.session.delete(product)
        self.session.commit()
        logger.info('Product deleted', product_id=product_id)

    def _sku_taken(self, sku, exclude_id=None):
        query = self.session.query(Product.id).filter(Product.sku == sku)
        if exclude_id:
            query = query.filter(Product.id != exclude_id)
        return query.first() is not None

    def _commit(self, sku):
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError(f'Product with SKU {sku} already exists')
