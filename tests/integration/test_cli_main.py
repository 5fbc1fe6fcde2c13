#!/usr/bin/env python3
"""
Integration tests for CLI Main Entry Point

Tests end-to-end CLI command execution against a JSON-file row store.
"""

import pytest
from click.testing import CliRunner

from dindin.cli.main import main
from dindin.core.datastore import JsonFileRowStore
from dindin.core.json_utils import read_json, write_json

OWNER_ID = "owner-1"


@pytest.fixture
def store_file(tmp_path, populated_store):
    """JSON store file holding the populated test data."""
    path = tmp_path / "data" / "store.json"
    write_json(path, populated_store.tables())
    return path


@pytest.mark.integration
class TestCLIMainIntegration:
    """Test main CLI entry point with real command execution."""

    def setup_method(self):
        """Set up test environment."""
        self.runner = CliRunner()

    def test_help_command_lists_all_subcommands(self):
        result = self.runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "dindin" in result.output
        for command in ["backup", "restore", "import", "export", "dedupe", "version", "config"]:
            assert command in result.output

    def test_version_command_shows_version_info(self):
        result = self.runner.invoke(main, ["version"])

        assert result.exit_code == 0
        assert "dindin v" in result.output

    def test_config_command_shows_configuration(self, tmp_path):
        result = self.runner.invoke(main, ["config"])

        assert result.exit_code == 0
        assert "Current Configuration:" in result.output
        assert "Environment: test" in result.output
        assert f"Store File: {tmp_path / 'data' / 'store.json'}" in result.output
        assert "Max Installments: 48" in result.output

    def test_verbose_flag_enables_verbose_output(self):
        result = self.runner.invoke(main, ["--verbose", "config"])

        assert result.exit_code == 0
        assert "Store file:" in result.output
        assert "Current Configuration:" in result.output

    def test_invalid_command_shows_error(self):
        result = self.runner.invoke(main, ["invalid-command"])
        assert result.exit_code != 0

    def test_owner_required(self, store_file):
        result = self.runner.invoke(main, ["backup"])

        assert result.exit_code != 0
        assert "No owner configured" in result.output

    def test_owner_from_environment(self, store_file, monkeypatch, tmp_path):
        monkeypatch.setenv("DINDIN_OWNER_ID", OWNER_ID)
        output = tmp_path / "backup.json"

        result = self.runner.invoke(main, ["backup", "--output", str(output)])

        assert result.exit_code == 0
        assert output.exists()


@pytest.mark.integration
class TestBackupRestoreCommands:
    """Test backup and restore through the CLI."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_backup_writes_sealed_envelope(self, store_file, tmp_path):
        output = tmp_path / "backup.json"

        result = self.runner.invoke(main, ["--owner", OWNER_ID, "backup", "--output", str(output)])

        assert result.exit_code == 0
        assert "transactions: 2" in result.output
        envelope = read_json(output)
        assert envelope["version"] == "1.0.0"
        assert envelope["ownerSnapshot"]["id"] == OWNER_ID
        assert len(envelope["checksum"]) > 0

    def test_backup_default_location(self, store_file, tmp_path):
        result = self.runner.invoke(main, ["--owner", OWNER_ID, "backup"])

        assert result.exit_code == 0
        assert list((tmp_path / "data" / "backups").glob("dindin-backup-*.json"))

    def test_restore_requires_confirmation(self, store_file, tmp_path):
        output = tmp_path / "backup.json"
        self.runner.invoke(main, ["--owner", OWNER_ID, "backup", "--output", str(output)])

        result = self.runner.invoke(main, ["--owner", OWNER_ID, "restore", str(output)])

        assert result.exit_code != 0
        assert "confirmation required" in result.output

    def test_restore_preview_and_confirm(self, store_file, tmp_path):
        output = tmp_path / "backup.json"
        self.runner.invoke(main, ["--owner", OWNER_ID, "backup", "--output", str(output)])

        preview = self.runner.invoke(main, ["--owner", OWNER_ID, "restore", str(output), "--preview"])
        assert preview.exit_code == 0
        assert '"preview": true' in preview.output

        restored = self.runner.invoke(main, ["--owner", OWNER_ID, "restore", str(output), "--confirm-delete"])
        assert restored.exit_code == 0
        assert "backup restored" in restored.output

        store = JsonFileRowStore(store_file)
        owner_transactions = store.query("transacoes", {"user_id": OWNER_ID})
        assert len(owner_transactions) == 2
        assert all(row["account_id"] is None for row in owner_transactions)

    def test_restore_corrupted_file(self, store_file, tmp_path):
        output = tmp_path / "backup.json"
        self.runner.invoke(main, ["--owner", OWNER_ID, "backup", "--output", str(output)])
        envelope = read_json(output)
        envelope["payload"]["accounts"][0]["saldo"] = 999999
        write_json(output, envelope)

        result = self.runner.invoke(main, ["--owner", OWNER_ID, "restore", str(output), "--confirm-delete"])

        assert result.exit_code != 0
        assert "invalid checksum" in result.output

    def test_restore_missing_file(self, store_file, tmp_path):
        result = self.runner.invoke(main, ["--owner", OWNER_ID, "restore", str(tmp_path / "nope.json")])
        assert result.exit_code != 0
        assert "Input file not found" in result.output


@pytest.mark.integration
class TestImportExportCommands:
    """Test import, export and dedupe through the CLI."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_import_skips_duplicates(self, store_file, tmp_path):
        import_file = tmp_path / "import.json"
        write_json(
            import_file,
            {
                "transacoes": [
                    {"descricao": "Salario", "valor": 8000, "tipo": "INCOME", "data": "2024-08-05"},
                    {"descricao": "Cinema", "valor": 40, "tipo": "EXPENSE", "data": "2024-08-20"},
                ]
            },
        )

        result = self.runner.invoke(main, ["--owner", OWNER_ID, "import", str(import_file)])

        assert result.exit_code == 0
        assert '"skipped": 1' in result.output
        assert len(JsonFileRowStore(store_file).query("transacoes", {"user_id": OWNER_ID})) == 3

    def test_import_keep_duplicates(self, store_file, tmp_path):
        import_file = tmp_path / "import.json"
        write_json(
            import_file,
            {"transactions": [{"descricao": "Salario", "valor": 8000, "tipo": "INCOME", "data": "2024-08-05"}]},
        )

        result = self.runner.invoke(main, ["--owner", OWNER_ID, "import", str(import_file), "--keep-duplicates"])

        assert result.exit_code == 0
        assert '"imported": 1' in result.output

    def test_import_validation_errors_listed(self, store_file, tmp_path):
        import_file = tmp_path / "import.json"
        write_json(
            import_file,
            {"transactions": [{"descricao": "Zero", "valor": 0, "tipo": "EXPENSE", "data": "2024-08-05"}]},
        )

        result = self.runner.invoke(main, ["--owner", OWNER_ID, "import", str(import_file)])

        assert result.exit_code != 0
        assert "transactions[0].valor: valor must be greater than zero" in result.output

    def test_export_csv_to_file(self, store_file, tmp_path):
        output = tmp_path / "transactions.csv"

        result = self.runner.invoke(
            main,
            [
                "--owner",
                OWNER_ID,
                "export",
                "--format",
                "csv",
                "--resource",
                "transactions",
                "--date-from",
                "2024-08-10",
                "--output",
                str(output),
            ],
        )

        assert result.exit_code == 0
        lines = output.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("id,descricao,valor,tipo,data")
        assert len(lines) == 2
        assert lines[1].startswith("tx-2,Supermercado Extra,249.9,EXPENSE,2024-08-15")

    def test_export_csv_all_to_directory(self, store_file, tmp_path):
        output_dir = tmp_path / "export"

        result = self.runner.invoke(
            main, ["--owner", OWNER_ID, "export", "--format", "csv", "--output", str(output_dir)]
        )

        assert result.exit_code == 0
        assert sorted(p.name for p in output_dir.iterdir()) == ["accounts.csv", "categories.csv", "transactions.csv"]

    def test_export_invalid_resource(self, store_file):
        result = self.runner.invoke(main, ["--owner", OWNER_ID, "export", "--resource", "goals"])
        assert result.exit_code != 0
        assert "invalid resource" in result.output

    def test_dedupe_preview(self, store_file, tmp_path):
        candidates_file = tmp_path / "ocr.json"
        write_json(
            candidates_file,
            [{"descricao": "SUPERMERCADO EXTRA", "valor": 249.9, "tipo": "EXPENSE", "data": "2024-08-16"}],
        )
        output = tmp_path / "preview.json"

        result = self.runner.invoke(
            main, ["--owner", OWNER_ID, "dedupe", str(candidates_file), "--output", str(output)]
        )

        assert result.exit_code == 0
        preview = read_json(output)
        assert preview["duplicateCount"] == 1
        assert preview["candidates"][0]["duplicateOf"]["id"] == "tx-2"
