# pos_backend/services/__init__.py
from dataclasses import dataclass

from .catalog import ProductCatalog
from .imports import CsvImporter, ImportResult
from .orders import OrderEngine
from .users import UserDirectory


@dataclass
class Services:
    catalog: ProductCatalog
    users: UserDirectory
    orders: OrderEngine
    imports: CsvImporter


def build_services(session, config):
    """Wire the domain services around one session handle."""
    catalog = ProductCatalog(session)
    return Services(
        catalog=catalog,
        users=UserDirectory(session),
        orders=OrderEngine(session, catalog, tax_rate=config['TAX_RATE']),
        imports=CsvImporter(session, catalog, error_limit=config['IMPORT_ERROR_LIMIT']),
    )


__all__ = [
    'CsvImporter',
    'ImportResult',
    'OrderEngine',
    'ProductCatalog',
    'Services',
    'UserDirectory',
    'build_services',
]
