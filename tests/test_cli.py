from finance_tracker.cli import main


def _run(tmp_path, *args):
    return main(["--data-dir", str(tmp_path / "data"), *args])


def test_record_and_report(tmp_path, capsys):
    assert _run(tmp_path, "transaction", "add", "SET_BALANCE", "300", "--date", "2024-03-01T00:00:00") == 0
    assert _run(tmp_path, "transaction", "add", "ADD_SPENDING", "31", "--title", "Books",
                "--date", "2024-03-02T00:00:00") == 0
    assert _run(tmp_path, "savings", "deposit", "100") == 0
    assert _run(tmp_path, "balance") == 0
    out = capsys.readouterr().out
    assert "Balance: 169.00" in out
    assert "Savings: 100.00" in out

    assert _run(tmp_path, "report", "--year", "2024", "--month", "3") == 0
    assert "Average daily spending: 1.00" in capsys.readouterr().out


def test_errors_exit_non_zero(tmp_path, capsys):
    assert _run(tmp_path, "transaction", "add", "ADD_SPENDING", "5") == 1
    assert "Validation error" in capsys.readouterr().err

    assert _run(tmp_path, "savings", "withdraw", "5") == 1
    assert "Not enough funds" in capsys.readouterr().err

    assert _run(tmp_path, "transaction", "discard", "7") == 1
    assert "not found" in capsys.readouterr().err


def test_category_commands(tmp_path, capsys):
    assert _run(tmp_path, "category", "expense", "add", "Rent", "1200") == 0
    assert _run(tmp_path, "category", "expense", "edit", "1", "--value", "1250") == 0
    assert _run(tmp_path, "category", "expense", "list") == 0
    out = capsys.readouterr().out
    assert "[1] Rent: 1250.00" in out
    assert _run(tmp_path, "category", "expense", "delete", "1") == 0
    assert _run(tmp_path, "category", "expense", "delete", "1") == 1


def test_oversized_amount_exits_cleanly(tmp_path, capsys):
    assert _run(tmp_path, "transaction", "add", "ADD_BALANCE", "1e30", "--title", "Big") == 1
    assert "out of range" in capsys.readouterr().err
