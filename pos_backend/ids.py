# pos_backend/ids.py
import secrets

ORDER_CODE_ALPHABET = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'
ORDER_CODE_LENGTH = 8


def generate_id(prefix):
    """Opaque entity id, e.g. ``ORD_3f2a...`` (prefix + 32 hex chars)."""
    return f'{prefix}_{secrets.token_hex(16)}'


def generate_product_id():
    return generate_id('PRD')


def generate_user_id():
    return generate_id('USR')


def generate_order_id():
    return generate_id('ORD')


def generate_order_item_id():
    return generate_id('OIT')


def generate_import_id():
    return generate_id('IMP')


def generate_order_code():
    """Short customer-facing code. Uniqueness is enforced by the store, not here."""
    return ''.join(secrets.choice(ORDER_CODE_ALPHABET) for _ in range(ORDER_CODE_LENGTH))
