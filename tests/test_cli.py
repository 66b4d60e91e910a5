"""CLI tests using click's CliRunner."""

import json

import responses

from ledgerpost.cli.main import cli

from conftest import JOURNAL_URL, ORG, QBO_BASE, QUERY_URL, REALM

QBO_ENV = {"LEDGERPOST_QBO_BASE_URL": QBO_BASE, "LEDGERPOST_HTTP_RETRIES": "0", "LEDGERPOST_DRY_RUN": "false"}


def _invoke(cli_runner, temp_db, *args, **kwargs):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], **kwargs)


def test_help_does_not_touch_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "export" in result.output


def test_import_sales(cli_runner, temp_db, fixtures_dir):
    result = _invoke(cli_runner, temp_db, "import", "sales", str(fixtures_dir / "sales.csv"), "--org", ORG)

    assert result.exit_code == 0
    assert "Imported: 3 sale rows" in result.output
    assert "Errors: 2" in result.output


def test_import_expenses_with_source(cli_runner, temp_db, fixtures_dir):
    result = _invoke(
        cli_runner, temp_db, "import", "expenses", str(fixtures_dir / "expenses.csv"),
        "--org", ORG, "--source", "bank",
    )

    assert result.exit_code == 0
    assert "Imported: 3 expense rows" in result.output
    assert {r.source_label for r in temp_db.list_records(ORG)} == {"bank"}


def test_mapping_set_list_remove(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "mapping", "set", "revenue", "79", "--org", ORG)
    assert result.exit_code == 0
    assert "Mapped revenue -> 79" in result.output

    result = _invoke(cli_runner, temp_db, "mapping", "list", "--org", ORG)
    assert "revenue" in result.output
    assert "(unmapped)" in result.output

    result = _invoke(cli_runner, temp_db, "mapping", "remove", "revenue", "--org", ORG)
    assert result.exit_code == 0

    result = _invoke(cli_runner, temp_db, "mapping", "remove", "revenue", "--org", ORG)
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_mapping_check_lists_missing_keys(cli_runner, temp_db):
    _invoke(cli_runner, temp_db, "mapping", "set", "revenue", "79", "--org", ORG)

    result = _invoke(cli_runner, temp_db, "mapping", "check", "--org", ORG)

    assert result.exit_code == 1
    assert "Missing account mappings for quickbooks" in result.output
    assert "mapping set --org ORG --provider quickbooks clearing" in result.output


def test_mapping_check_passes(cli_runner, temp_db, full_mappings):
    result = _invoke(cli_runner, temp_db, "mapping", "check", "--org", ORG)
    assert result.exit_code == 0
    assert "All 8 account types are mapped" in result.output


def test_connect_set_and_status(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "connect", "status", "--org", ORG)
    assert "not connected" in result.output

    result = _invoke(
        cli_runner, temp_db, "connect", "set", "--org", ORG, "--access-token", "tok", "--realm-id", REALM
    )
    assert result.exit_code == 0

    result = _invoke(cli_runner, temp_db, "connect", "status", "--org", ORG)
    assert "quickbooks: connected" in result.output
    assert f"Realm: {REALM}" in result.output


def test_journal_preview_text(cli_runner, temp_db, sample_sales):
    result = _invoke(cli_runner, temp_db, "journal", "preview", "--org", ORG, "--start-date", "2024-03-06")

    assert result.exit_code == 0
    assert "Journal 2024-03-06/ebay" in result.output
    assert "2024-03-05" not in result.output
    assert "20.00" in result.output


def test_journal_preview_xero(cli_runner, temp_db, sample_sales):
    result = _invoke(cli_runner, temp_db, "journal", "preview", "--org", ORG, "--provider", "xero")

    assert result.exit_code == 0
    rendered = json.loads(result.output)
    assert [j["Reference"] for j in rendered] == ["LP-2024-03-05-etsy", "LP-2024-03-06-ebay"]


def test_journal_preview_rejects_two_periods(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "journal", "preview", "--org", ORG, "--this-month", "--last-month")
    assert result.exit_code == 1


@responses.activate
def test_export_commit_dry_run(cli_runner, temp_db, sample_sales, full_mappings):
    result = _invoke(cli_runner, temp_db, "export", "commit", "--org", ORG, "--dry-run", env=QBO_ENV)

    assert result.exit_code == 0
    assert "Dry run: 2 journals previewed" in result.output
    assert len(responses.calls) == 0


@responses.activate
def test_export_commit_partial_failure_exits_nonzero(
    cli_runner, temp_db, sample_sales, full_mappings, connected_org
):
    responses.add(responses.POST, JOURNAL_URL, json={"JournalEntry": {"Id": "501"}}, status=200)
    responses.add(responses.POST, JOURNAL_URL, json={"Fault": {"Error": [{"Message": "Closed"}]}}, status=400)

    result = _invoke(cli_runner, temp_db, "export", "commit", "--org", ORG, env=QBO_ENV)

    assert result.exit_code == 1
    assert "COMMITTED 2024-03-05/etsy -> #501" in result.output
    assert "FAILED" in result.output
    assert "Committed 1 of 2 journals." in result.output


def test_export_commit_not_connected(cli_runner, temp_db, sample_sales, full_mappings):
    result = _invoke(cli_runner, temp_db, "export", "commit", "--org", ORG, env=QBO_ENV)

    assert result.exit_code == 1
    assert "quickbooks is not connected" in result.output


def test_export_commit_no_sales(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "export", "commit", "--org", ORG, env=QBO_ENV)
    assert result.exit_code == 0
    assert "No sales found." in result.output


@responses.activate
def test_export_lookup(cli_runner, temp_db, connected_org):
    responses.add(responses.GET, f"{JOURNAL_URL}/501", json={"JournalEntry": {"Id": "501"}}, status=200)
    responses.add(responses.GET, f"{JOURNAL_URL}/502", json={}, status=404)

    result = _invoke(cli_runner, temp_db, "export", "lookup", "501", "502", "--org", ORG, env=QBO_ENV)

    assert result.exit_code == 0
    assert '"Id": "501"' in result.output
    assert "#502: not found" in result.output


def test_export_history(cli_runner, temp_db, sample_sales, full_mappings):
    _invoke(cli_runner, temp_db, "export", "commit", "--org", ORG, "--dry-run", env=QBO_ENV)

    result = _invoke(cli_runner, temp_db, "export", "history", "--org", ORG)

    assert result.exit_code == 0
    assert result.output.count("previewed") == 2


@responses.activate
def test_verify_round_trip(cli_runner, temp_db, full_mappings, connected_org):
    responses.add(responses.POST, JOURNAL_URL, json={"JournalEntry": {"Id": "900"}}, status=200)
    responses.add(responses.POST, JOURNAL_URL, json={"JournalEntry": {"Id": "901"}}, status=200)

    result = _invoke(cli_runner, temp_db, "verify", "round-trip", "--org", ORG, "--same-day", env=QBO_ENV)

    assert result.exit_code == 0
    assert "#900 (committed)" in result.output
    assert "#901 (committed)" in result.output


def test_invalid_settings_rejected(cli_runner, temp_db):
    result = _invoke(
        cli_runner, temp_db, "mapping", "list", "--org", ORG, env={"LEDGERPOST_QBO_BASE_URL": "ftp://nope"}
    )
    assert result.exit_code == 1
    assert "must be an http(s) URL" in result.output


def test_non_numeric_setting_rejected(cli_runner, temp_db):
    result = _invoke(
        cli_runner, temp_db, "mapping", "list", "--org", ORG, env={"LEDGERPOST_HTTP_TIMEOUT": "fast"}
    )
    assert result.exit_code == 1
    assert "Error: LEDGERPOST_HTTP_TIMEOUT must be a number, got 'fast'" in result.output


def _chart_response(*accounts):
    responses.add(responses.GET, QUERY_URL, json={"QueryResponse": {"Account": list(accounts)}}, status=200)


@responses.activate
def test_mapping_accounts_marks_mapped_ids(cli_runner, temp_db, full_mappings, connected_org):
    _chart_response(
        {"Id": "79", "Name": "Sales", "AccountType": "Income"},
        {"Id": "500", "Name": "Office Supplies", "AccountType": "Expense"},
    )

    result = _invoke(cli_runner, temp_db, "mapping", "accounts", "--org", ORG, env=QBO_ENV)

    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert any("Sales" in line and line.rstrip().endswith("revenue") for line in lines)
    assert any("Office Supplies" in line and line.rstrip().endswith("|") for line in lines)


def test_mapping_accounts_requires_connection(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "mapping", "accounts", "--org", ORG, env=QBO_ENV)
    assert result.exit_code == 1
    assert "quickbooks is not connected" in result.output


@responses.activate
def test_mapping_check_verify_accounts_warns(cli_runner, temp_db, full_mappings, connected_org):
    _chart_response({"Id": "79", "Name": "Sales", "AccountType": "Income"})

    result = _invoke(cli_runner, temp_db, "mapping", "check", "--org", ORG, "--verify-accounts", env=QBO_ENV)

    assert result.exit_code == 1
    assert "All 8 account types are mapped" in result.output
    assert "Warning: clearing -> 86: not an active account" in result.output
    assert "Warning: revenue" not in result.output
