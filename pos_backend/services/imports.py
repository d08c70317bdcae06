# pos_backend/services/imports.py
import csv
import io
from dataclasses import dataclass, field

import structlog
from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import SQLAlchemyError

from ..errors import ApiError, ValidationError
from ..ids import generate_import_id
from ..models import CsvImport, utcnow
from ..schemas import ProductImportRow

logger = structlog.get_logger(__name__)

# CSV header -> ProductImportRow field
COLUMNS = {
    'sku': 'sku',
    'name': 'name',
    'description': 'description',
    'price': 'price',
    'color': 'color',
    'image_url': 'image_url',
    'imageurl': 'image_url',
}


def _describe(exc):
    return '; '.join(
        f"{'.'.join(str(p) for p in err['loc']) or 'row'}: {err['msg']}" for err in exc.errors()
    )


@dataclass
class ImportResult:
    record: CsvImport
    imported: list = field(default_factory=list)

    def to_dict(self):
        return {
            'importId': self.record.id,
            'filename': self.record.filename,
            'totalRows': self.record.total_rows,
            'successfulRows': self.record.successful_rows,
            'failedRows': self.record.failed_rows,
            'errors': self.record.errors,
            'importedProducts': [p.to_dict() for p in self.imported],
        }


class CsvImporter:
    """Upserts catalog products from CSV text, one row at a time.

    A bad row is recorded and skipped; it never aborts the rest of the file.
    Every run leaves a ``CsvImport`` audit record.
    """

    def __init__(self, session, catalog, error_limit=10):
        self.session = session
        self.catalog = catalog
        self.error_limit = error_limit

    def import_csv(self, text, filename, user_id=None):
        reader = csv.reader(io.StringIO(text))
        header = next((row for row in reader if any(cell.strip() for cell in row)), None)
        if not header:
            raise ValidationError('CSV file is empty')
        columns = [COLUMNS.get(h.strip().lower()) for h in header]

        total = 0
        imported = []
        errors = []
        for row in reader:
            if not any(cell.strip() for cell in row):
                continue
            total += 1
            line = reader.line_num
            data = {col: value for col, value in zip(columns, row) if col}
            try:
                imported.append(self._upsert(ProductImportRow.model_validate(data)))
            except SchemaError as exc:
                errors.append(f'Row {line}: {_describe(exc)}')
            except ApiError as exc:
                errors.append(f'Row {line}: {exc.message}')
            except SQLAlchemyError as exc:
                self.session.rollback()
                logger.warning('CSV row failed to persist', row=line, error=str(exc))
                errors.append(f'Row {line}: could not be saved')

        record = CsvImport(
            id=generate_import_id(),
            user_id=user_id,
            filename=filename,
            total_rows=total,
            successful_rows=len(imported),
            failed_rows=len(errors),
            errors=errors[:self.error_limit],
            created_at=utcnow()
        )
        self.session.add(record)
        self.session.commit()

        logger.info('CSV import completed', import_id=record.id, filename=filename,
                    successful=record.successful_rows, failed=record.failed_rows, user_id=user_id)
        return ImportResult(record=record, imported=imported)

    def _upsert(self, row):
        values = row.model_dump()
        existing = self.catalog.get_product_by_sku(row.sku)
        if existing:
            return self.catalog.update_product(existing.id, {**values, 'is_active': True})
        return self.catalog.create_product(is_active=True, **values)
