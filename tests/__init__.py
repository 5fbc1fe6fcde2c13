"""
Test Suite for dindin

Test Structure:
- unit/: Unit tests mirroring src/ package structure
- integration/: CLI and end-to-end workflow tests

Test Categories:
- Core primitives (currency, dates, models, config, row store)
- Validation and duplicate detection
- Installment splitting
- Backup, restore, import and export orchestration

Test Data:
All test data uses synthetic financial information.
"""
