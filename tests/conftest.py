import pytest

from pos_backend import create_app
from pos_backend.config import TestConfig
from pos_backend.models import UserRole, db


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def services(app):
    return app.extensions['pos_backend'].services


@pytest.fixture()
def catalog(services):
    return services.catalog


@pytest.fixture()
def engine(services):
    return services.orders


@pytest.fixture()
def directory(services):
    return services.users


@pytest.fixture()
def products(catalog):
    """A small catalog: three active products and one hidden one."""
    return {
        'PROD-001': catalog.create_product('PROD-001', 'Blue Mug', 50.0, color='Blue'),
        'PROD-002': catalog.create_product('PROD-002', 'Notebook', 19.99),
        'PROD-003': catalog.create_product('PROD-003', 'Pencil', 10.0),
        'INACTIVE-001': catalog.create_product('INACTIVE-001', 'Old Stock', 5.0, is_active=False),
    }


@pytest.fixture()
def admin(directory):
    return directory.create_user('admin@example.com', password='admin-pass-1', name='Admin', role=UserRole.ADMIN)


@pytest.fixture()
def cashier(directory):
    return directory.create_user('cashier@example.com', password='cashier-pass-1', name='Till 1')


def _headers(app, user):
    token = app.extensions['pos_backend'].tokens.issue(user)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture()
def admin_headers(app, admin):
    return _headers(app, admin)


@pytest.fixture()
def cashier_headers(app, cashier):
    return _headers(app, cashier)
