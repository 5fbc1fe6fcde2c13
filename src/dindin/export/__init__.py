"""
Export Package

Owner-scoped JSON and CSV export.
"""

from .csv_writer import format_cell, rows_to_csv
from .service import EXPORT_COLUMNS, ExportResult, ExportService, parse_resource

__all__ = ["EXPORT_COLUMNS", "ExportResult", "ExportService", "format_cell", "parse_resource", "rows_to_csv"]
