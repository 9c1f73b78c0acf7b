"""
Orchestration package for the sync drivers.

Each driver sequences the entity kinds in dependency order:
Load -> Materialize -> Map -> (Accumulate | Emit) -> Report.
"""

from .data_sync import DataSync
from .strapi_migration import StrapiMigration
from .sync_report import SyncReport

__all__ = [
    'DataSync',
    'StrapiMigration',
    'SyncReport'
]
