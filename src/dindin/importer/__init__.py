"""
Importer Package

Validated, deduplicated bulk import of accounts, categories and transactions.
"""

from .service import ImportService, ImportStage, collect_resources

__all__ = ["ImportService", "ImportStage", "collect_resources"]
