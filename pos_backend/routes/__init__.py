# pos_backend/routes/__init__.py
from flask import current_app, jsonify


def services():
    return current_app.extensions['pos_backend'].services


def ok(data=None, status=200, meta=None):
    body = {'success': True}
    if data is not None:
        body['data'] = data
    if meta is not None:
        body['meta'] = meta
    return jsonify(body), status


def page_meta(pagination, total):
    return {'page': pagination.page, 'limit': pagination.limit, 'total': total}


def register_blueprints(app):
    from .auth import bp as auth_bp
    from .imports import bp as import_bp
    from .orders import bp as orders_bp
    from .products import bp as products_bp
    from .stats import bp as stats_bp
    from .users import bp as users_bp

    for bp in (auth_bp, products_bp, orders_bp, users_bp, import_bp, stats_bp):
        app.register_blueprint(bp)
