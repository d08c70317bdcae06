# pos_backend/routes/imports.py
from flask import Blueprint, g, request

from ..auth import roles_required
from ..errors import ValidationError
from ..models import UserRole
from . import ok, services

bp = Blueprint('import', __name__, url_prefix='/api/import')


@bp.route('/csv', methods=['POST'])
@roles_required(UserRole.ADMIN)
def import_csv():
    """
    Bulk upsert products by SKU.
    multipart/form-data with a ``file`` field; header: sku,name,description,price,color,image_url
    """
    upload = request.files.get('file')
    if not upload:
        raise ValidationError('File is required')

    try:
        text = upload.read().decode('utf-8-sig')
    except UnicodeDecodeError:
        raise ValidationError('File must be UTF-8 encoded CSV')

    result = services().imports.import_csv(text, upload.filename or 'upload.csv', user_id=g.current_user.id)
    return ok(result.to_dict())
