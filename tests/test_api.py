"""HTTP surface: envelopes, status codes and access control."""
import io
import re

import pytest

from pos_backend import create_app
from pos_backend.config import TestConfig
from pos_backend.models import User, UserRole, db


def _place(client, *lines, notes=None):
    payload = {'items': [{'productId': 'ignored', 'sku': sku, 'quantity': qty} for sku, qty in lines]}
    if notes:
        payload['notes'] = notes
    return client.post('/api/orders', json=payload)


class TestApplication:
    def test_health(self, client):
        response = client.get('/api/health')

        assert response.status_code == 200
        assert response.get_json()['data']['status'] == 'ok'

    def test_unknown_endpoint(self, client):
        response = client.get('/api/nothing-here')

        assert response.status_code == 404
        assert response.get_json() == {'success': False, 'error': {'message': 'Endpoint not found'}}

    def test_unexpected_errors_are_hidden(self, app, client, monkeypatch, cashier_headers):
        def explode():
            raise RuntimeError('database on fire')

        monkeypatch.setattr(app.extensions['pos_backend'].services.orders, 'get_order_stats', explode)

        response = client.get('/api/stats/orders', headers=cashier_headers)

        assert response.status_code == 500
        assert response.get_json() == {'success': False, 'error': {'message': 'Internal server error'}}

    def test_default_admin_is_bootstrapped(self):
        app = create_app(TestConfig, BOOTSTRAP_ADMIN=True, ADMIN_EMAIL='Owner@Example.com')
        with app.app_context():
            users = db.session.query(User).all()
            assert [(u.email, u.role) for u in users] == [('owner@example.com', UserRole.ADMIN)]
            db.session.remove()
            db.drop_all()


class TestOrderEndpoints:
    def test_create_order(self, client, products):
        response = _place(client, ('PROD-001', 2), notes='table 4')

        body = response.get_json()
        assert response.status_code == 201
        assert body['success'] is True
        order = body['data']
        assert re.match(r'^[A-Z0-9]{8}$', order['code'])
        assert (order['subtotal'], order['tax'], order['total']) == (100.0, 21.0, 121.0)
        assert order['status'] == 'PENDING'
        assert order['paymentStatus'] == 'UNPAID'
        assert order['paymentMethod'] is None
        assert order['notes'] == 'table 4'
        assert order['items'][0]['unitPrice'] == 50.0
        assert order['items'][0]['productId'] == products['PROD-001'].id

    def test_empty_items(self, client):
        response = client.post('/api/orders', json={'items': []})

        assert response.status_code == 400
        assert response.get_json()['success'] is False

    @pytest.mark.parametrize('quantity', [10 ** 20, 1_000_001])
    def test_oversized_quantity(self, client, engine, products, quantity):
        response = client.post('/api/orders', json={'items': [{'sku': 'PROD-001', 'quantity': quantity}]})

        assert response.status_code == 400
        assert engine.list_orders()[1] == 0

    def test_unknown_sku(self, client, products):
        response = _place(client, ('NOPE-1', 1))

        assert response.status_code == 400
        assert response.get_json()['error']['message'] == 'Product with SKU NOPE-1 not found'

    def test_bad_quantity(self, client, products):
        response = client.post('/api/orders', json={'items': [{'sku': 'PROD-001', 'quantity': 0}]})

        assert response.status_code == 400

    def test_public_lookup_by_code(self, client, products):
        order = _place(client, ('PROD-003', 1)).get_json()['data']

        response = client.get(f"/api/orders/code/{order['code']}")

        assert response.status_code == 200
        assert response.get_json()['data']['id'] == order['id']

    def test_lookup_by_unknown_code(self, client):
        response = client.get('/api/orders/code/ZZZZZZZZ')

        assert response.status_code == 404
        assert response.get_json()['error']['message'] == 'Order not found'

    def test_lookup_by_id_requires_auth(self, client, products, cashier_headers):
        order = _place(client, ('PROD-003', 1)).get_json()['data']

        assert client.get(f"/api/orders/{order['id']}").status_code == 401
        assert client.get(f"/api/orders/{order['id']}", headers=cashier_headers).status_code == 200
        assert client.get('/api/orders/ORD_missing', headers=cashier_headers).status_code == 404

    def test_list_orders_with_meta(self, client, products, cashier_headers):
        for _ in range(7):
            _place(client, ('PROD-003', 1))

        response = client.get('/api/orders?page=2&limit=5', headers=cashier_headers)

        body = response.get_json()
        assert response.status_code == 200
        assert len(body['data']) == 2
        assert body['meta'] == {'page': 2, 'limit': 5, 'total': 7}

    @pytest.mark.parametrize('query', ['limit=101', 'page=0', 'status=LOST', 'startDate=yesterday'])
    def test_list_orders_rejects_bad_query(self, client, cashier_headers, query):
        response = client.get(f'/api/orders?{query}', headers=cashier_headers)

        assert response.status_code == 400

    def test_list_orders_filters(self, client, products, cashier_headers):
        first = _place(client, ('PROD-003', 1)).get_json()['data']
        _place(client, ('PROD-003', 1))
        client.post(f"/api/orders/{first['id']}/complete", json={'paymentMethod': 'CASH'}, headers=cashier_headers)

        response = client.get(
            '/api/orders?status=COMPLETED&startDate=2000-01-01T00:00:00Z', headers=cashier_headers
        )

        body = response.get_json()
        assert body['meta']['total'] == 1
        assert body['data'][0]['id'] == first['id']

    def test_complete_order(self, client, products, cashier_headers):
        order = _place(client, ('PROD-001', 1)).get_json()['data']

        response = client.post(
            f"/api/orders/{order['id']}/complete",
            json={'paymentMethod': 'CARD', 'notes': 'visa'},
            headers=cashier_headers
        )

        data = response.get_json()['data']
        assert response.status_code == 200
        assert data['status'] == 'COMPLETED'
        assert data['paymentStatus'] == 'PAID'
        assert data['paymentMethod'] == 'CARD'
        assert data['completedAt'] is not None

    def test_complete_order_validation(self, client, products, cashier_headers):
        order = _place(client, ('PROD-001', 1)).get_json()['data']

        response = client.post(
            f"/api/orders/{order['id']}/complete", json={'paymentMethod': 'IOU'}, headers=cashier_headers
        )

        assert response.status_code == 400

    def test_complete_missing_order(self, client, cashier_headers):
        response = client.post('/api/orders/ORD_missing/complete', json={'paymentMethod': 'CASH'},
                               headers=cashier_headers)

        assert response.status_code == 404

    def test_update_status(self, client, products, cashier_headers):
        order = _place(client, ('PROD-001', 1), notes='keep me').get_json()['data']

        response = client.patch(
            f"/api/orders/{order['id']}/status", json={'status': 'PROCESSING'}, headers=cashier_headers
        )

        data = response.get_json()['data']
        assert response.status_code == 200
        assert data['status'] == 'PROCESSING'
        assert data['notes'] == 'keep me'

    def test_update_payment_is_admin_only(self, client, products, cashier_headers, admin_headers):
        order = _place(client, ('PROD-001', 1)).get_json()['data']
        payload = {'paymentMethod': 'CARD', 'paymentStatus': 'REFUNDED'}
        url = f"/api/orders/{order['id']}/payment"

        assert client.patch(url, json=payload, headers=cashier_headers).status_code == 403
        response = client.patch(url, json=payload, headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()['data']['paymentStatus'] == 'REFUNDED'


class TestStatsEndpoints:
    def test_stats(self, client, products, cashier_headers):
        order = _place(client, ('PROD-001', 2)).get_json()['data']
        client.post(f"/api/orders/{order['id']}/complete", json={'paymentMethod': 'CASH'}, headers=cashier_headers)

        stats = client.get('/api/stats/orders', headers=cashier_headers).get_json()['data']
        top = client.get('/api/stats/top-products?limit=5', headers=cashier_headers).get_json()['data']

        assert stats['completedOrders'] == 1
        assert stats['totalRevenue'] == pytest.approx(121.0)
        assert top[0]['sku'] == 'PROD-001'
        assert top[0]['totalQuantity'] == 2

    def test_stats_require_auth(self, client):
        assert client.get('/api/stats/orders').status_code == 401
        assert client.get('/api/stats/top-products').status_code == 401

    @pytest.mark.parametrize('limit', ['0', '101', 'ten'])
    def test_top_products_limit_bounds(self, client, cashier_headers, limit):
        response = client.get(f'/api/stats/top-products?limit={limit}', headers=cashier_headers)

        assert response.status_code == 400


class TestProductEndpoints:
    def test_public_listing(self, client, products):
        response = client.get('/api/products?limit=2')

        body = response.get_json()
        assert response.status_code == 200
        assert len(body['data']) == 2
        assert body['meta'] == {'page': 1, 'limit': 2, 'total': 3}

    def test_search(self, client, products):
        response = client.get('/api/products/search?sku=PROD-00')

        assert {p['sku'] for p in response.get_json()['data']} == {'PROD-001', 'PROD-002', 'PROD-003'}

    def test_search_requires_sku(self, client):
        response = client.get('/api/products/search')

        assert response.status_code == 400
        assert response.get_json()['error']['message'] == 'SKU parameter is required'

    def test_get_inactive_product_by_id(self, client, products):
        response = client.get(f"/api/products/{products['INACTIVE-001'].id}")

        assert response.status_code == 200
        assert response.get_json()['data']['isActive'] is False

    def test_get_missing_product(self, client):
        assert client.get('/api/products/PRD_missing').status_code == 404

    def test_create_requires_admin(self, client, cashier_headers):
        payload = {'sku': 'NEW-1', 'name': 'Tape', 'price': 3.5}

        assert client.post('/api/products', json=payload).status_code == 401
        assert client.post('/api/products', json=payload, headers=cashier_headers).status_code == 403

    def test_create_update_delete(self, client, admin_headers):
        created = client.post(
            '/api/products',
            json={'sku': 'NEW-1', 'name': 'Tape', 'price': 3.5, 'imageUrl': 'https://example.com/tape.png'},
            headers=admin_headers
        )
        assert created.status_code == 201
        product = created.get_json()['data']
        assert product['imageUrl'] == 'https://example.com/tape.png'

        updated = client.put(f"/api/products/{product['id']}", json={'price': 4.0}, headers=admin_headers)
        assert updated.status_code == 200
        assert updated.get_json()['data']['price'] == 4.0
        assert updated.get_json()['data']['name'] == 'Tape'

        deleted = client.delete(f"/api/products/{product['id']}", headers=admin_headers)
        assert deleted.status_code == 200
        assert deleted.get_json() == {'success': True}
        assert client.get(f"/api/products/{product['id']}").status_code == 404

    @pytest.mark.parametrize('price', [float('inf'), float('-inf'), float('nan')])
    def test_non_finite_price_is_rejected(self, client, admin_headers, products, price):
        created = client.post('/api/products', json={'sku': 'INF-1', 'name': 'Widget', 'price': price},
                              headers=admin_headers)
        updated = client.put(f"/api/products/{products['PROD-001'].id}", json={'price': price},
                             headers=admin_headers)

        assert created.status_code == 400
        assert updated.status_code == 400
        assert client.get('/api/products/search?sku=INF-1').get_json()['data'] == []
        order = _place(client, ('PROD-001', 1))
        assert order.status_code == 201
        assert order.get_json()['data']['subtotal'] == 50.0

    def test_duplicate_sku(self, client, products, admin_headers):
        response = client.post('/api/products', json={'sku': 'PROD-001', 'name': 'Dup', 'price': 1},
                               headers=admin_headers)

        assert response.status_code == 409
        assert response.get_json()['error']['message'] == 'Product with SKU PROD-001 already exists'

    @pytest.mark.parametrize('payload', [
        {'sku': '', 'name': 'x', 'price': 1},
        {'sku': 'X' * 51, 'name': 'x', 'price': 1},
        {'sku': 'OK-1', 'name': 'x', 'price': 0},
        {'sku': 'OK-1', 'name': 'x', 'price': 1, 'imageUrl': 'not a url'},
    ])
    def test_create_validation(self, client, admin_headers, payload):
        response = client.post('/api/products', json=payload, headers=admin_headers)

        assert response.status_code == 400
        assert response.get_json()['error']['details']


class TestUserEndpoints:
    def test_admin_manages_users(self, client, admin, admin_headers):
        created = client.post('/api/users', json={'email': 'Till2@example.com', 'password': 'till-two-pass'},
                              headers=admin_headers)
        assert created.status_code == 201
        user = created.get_json()['data']
        assert user['email'] == 'till2@example.com'
        assert user['role'] == 'CASHIER'

        listing = client.get('/api/users', headers=admin_headers).get_json()
        assert listing['meta']['total'] == 2

        renamed = client.put(f"/api/users/{user['id']}", json={'name': 'Till Two'}, headers=admin_headers)
        assert renamed.get_json()['data']['name'] == 'Till Two'

        reset = client.post(f"/api/users/{user['id']}/password", json={'password': 'brand-new-pass'},
                            headers=admin_headers)
        assert reset.status_code == 200
        login = client.post('/api/auth/login', json={'email': 'till2@example.com', 'password': 'brand-new-pass'})
        assert login.status_code == 200

        assert client.delete(f"/api/users/{user['id']}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/users/{user['id']}", headers=admin_headers).status_code == 404

    def test_duplicate_email(self, client, cashier, admin_headers):
        response = client.post('/api/users', json={'email': 'CASHIER@example.com', 'password': 'long-enough'},
                               headers=admin_headers)

        assert response.status_code == 409

    def test_cashier_cannot_manage_users(self, client, cashier_headers):
        response = client.get('/api/users', headers=cashier_headers)

        assert response.status_code == 403
        assert response.get_json()['error']['message'] == 'Insufficient permissions'


class TestImportEndpoint:
    def test_upload(self, client, admin, admin_headers):
        data = {'file': (io.BytesIO(b'sku,name,price\nA-1,Apple,0.5\nB-1,,1\n'), 'fruit.csv')}

        response = client.post('/api/import/csv', data=data, headers=admin_headers,
                               content_type='multipart/form-data')

        summary = response.get_json()['data']
        assert response.status_code == 200
        assert summary['filename'] == 'fruit.csv'
        assert (summary['totalRows'], summary['successfulRows'], summary['failedRows']) == (2, 1, 1)
        assert summary['errors'][0].startswith('Row 3:')

    def test_upload_requires_file(self, client, admin_headers):
        response = client.post('/api/import/csv', data={}, headers=admin_headers,
                               content_type='multipart/form-data')

        assert response.status_code == 400
        assert response.get_json()['error']['message'] == 'File is required'

    def test_upload_is_admin_only(self, client, cashier_headers):
        data = {'file': (io.BytesIO(b'sku,name,price\n'), 'x.csv')}

        response = client.post('/api/import/csv', data=data, headers=cashier_headers,
                               content_type='multipart/form-data')

        assert response.status_code == 403
