"""Integration tests for end-to-end workflows."""

import json

import responses

from ledgerpost.cli.main import cli

from conftest import JOURNAL_URL, QBO_ACCOUNTS, QBO_BASE, REALM


@responses.activate
def test_full_workflow(cli_runner, temp_db, fixtures_dir):
    """Test complete workflow: import → map → connect → preview → dry run → commit → history."""
    env = {"LEDGERPOST_QBO_BASE_URL": QBO_BASE, "LEDGERPOST_HTTP_RETRIES": "0", "LEDGERPOST_DRY_RUN": "false"}

    def run(*args):
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], env=env)

    # Step 1: Import sales
    result = run("import", "sales", str(fixtures_dir / "sales.csv"), "--org", "shop")
    assert result.exit_code == 0

    # Step 2: Re-import is a no-op
    result = run("import", "sales", str(fixtures_dir / "sales.csv"), "--org", "shop")
    assert "Imported: 0 sale rows" in result.output
    assert "Skipped: 3 duplicates" in result.output

    # Step 3: Map every account type
    for account_type, account_id in QBO_ACCOUNTS.items():
        result = run("mapping", "set", account_type, account_id, "--org", "shop")
        assert result.exit_code == 0
    assert run("mapping", "check", "--org", "shop").exit_code == 0

    # Step 4: Connect
    result = run("connect", "set", "--org", "shop", "--access-token", "tok", "--realm-id", REALM)
    assert result.exit_code == 0

    # Step 5: Preview per order
    result = run("journal", "preview", "--org", "shop", "--mode", "per-order")
    assert result.exit_code == 0
    assert "Journal 2024-03-05/etsy/E-1001" in result.output
    assert "Journal 2024-03-06/ebay/B-77" in result.output

    # Step 6: Dry run posts nothing
    result = run("export", "commit", "--org", "shop", "--mode", "per-order", "--dry-run")
    assert result.exit_code == 0
    assert len(responses.calls) == 0

    # Step 7: Commit
    for entry_id in ("11", "12", "13"):
        responses.add(responses.POST, JOURNAL_URL, json={"JournalEntry": {"Id": entry_id}}, status=200)
    result = run("export", "commit", "--org", "shop", "--mode", "per-order")
    assert result.exit_code == 0
    assert "Committed 3 of 3 journals." in result.output

    first = json.loads(responses.calls[0].request.body)["JournalEntry"]
    assert first["PrivateNote"] == "Marketplace: etsy Order: E-1001"
    debits = sum(l["Amount"] for l in first["Line"] if l["JournalEntryLineDetail"]["PostingType"] == "Debit")
    credits = sum(l["Amount"] for l in first["Line"] if l["JournalEntryLineDetail"]["PostingType"] == "Credit")
    assert round(debits, 2) == round(credits, 2) == 118.0

    # Step 8: History shows previews and commits
    result = run("export", "history", "--org", "shop")
    assert result.output.count("previewed") == 3
    assert result.output.count("committed") == 3
