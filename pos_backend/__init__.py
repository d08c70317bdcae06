"""Market store point-of-sale backend."""
from .app import create_app

__all__ = ['create_app']
