"""Tests for JSON persistence and the nickname session."""

from __future__ import annotations

import json

import pytest

from gemini_finance.storage import (
    TransactionRepository,
    clear_session_user,
    load_session_user,
    safe_filename,
    save_session_user,
    user_filename,
)

from conftest import expense, income


def test_safe_filename() -> None:
    assert safe_filename("João Silva!") == "João_Silva"
    assert safe_filename("   ") == "user"
    assert safe_filename("") == "user"
    assert len(safe_filename("a" * 100)) == 64


def test_missing_file_loads_empty(tmp_path) -> None:
    repo = TransactionRepository("ana", data_dir=tmp_path)
    assert repo.load() == []


def test_save_then_load(tmp_path) -> None:
    repo = TransactionRepository("ana", data_dir=tmp_path)
    repo.save([expense(12.5, "Lazer", id="a"), income(300, id="b")])
    assert repo.path == tmp_path / "users" / user_filename("ana")
    assert repo.path.name.startswith("ana-")

    stored = json.loads(repo.path.read_text(encoding="utf-8"))
    assert stored[0]["expenseType"] == "SPORADIC"
    assert "expenseType" not in stored[1]

    loaded = repo.load()
    assert [t.id for t in loaded] == ["a", "b"]
    assert loaded[0].amount == 12.5


def test_corrupt_file_loads_empty(tmp_path) -> None:
    repo = TransactionRepository("ana", data_dir=tmp_path)
    repo.path.parent.mkdir(parents=True)
    repo.path.write_text("{not json", encoding="utf-8")
    assert repo.load() == []
    repo.path.write_text('{"a": 1}', encoding="utf-8")
    assert repo.load() == []


def test_load_normalizes_and_skips_bad_records(tmp_path) -> None:
    repo = TransactionRepository("ana", data_dir=tmp_path)
    repo.path.parent.mkdir(parents=True)
    records = [
        {"id": "x", "description": "Cinema", "amount": "-20", "type": "EXPENSE", "category": "xyz", "date": 1},
        "garbage",
        {"id": "x", "description": "dup", "amount": 1, "type": "EXPENSE", "date": 2},
    ]
    repo.path.write_text(json.dumps(records), encoding="utf-8")
    loaded = repo.load()
    assert len(loaded) == 1
    assert loaded[0].amount == 20.0
    assert loaded[0].category.value == "Outros"


def test_delete(tmp_path) -> None:
    repo = TransactionRepository("ana", data_dir=tmp_path)
    repo.save([income(1, id="a")])
    repo.delete()
    assert not repo.path.exists()
    repo.delete()


def test_blank_username_rejected(tmp_path) -> None:
    with pytest.raises(ValueError):
        TransactionRepository("  ", data_dir=tmp_path)


def test_session_round(tmp_path) -> None:
    assert load_session_user(tmp_path) is None
    assert save_session_user("  Bia ", tmp_path) == "Bia"
    assert load_session_user(tmp_path) == "Bia"
    clear_session_user(tmp_path)
    assert load_session_user(tmp_path) is None


def test_similar_nicknames_get_separate_files(tmp_path) -> None:
    pairs = [("Ana Paula", "Ana_Paula"), ("!!", "??"), ("a" * 70 + "x", "a" * 70 + "y")]
    for first, second in pairs:
        assert user_filename(first) != user_filename(second)

    TransactionRepository("Ana Paula", data_dir=tmp_path).save([income(10, id="a")])
    assert TransactionRepository("Ana_Paula", data_dir=tmp_path).load() == []
    assert len(TransactionRepository("Ana Paula", data_dir=tmp_path).load()) == 1


def test_out_of_range_date_loads_as_now(tmp_path) -> None:
    repo = TransactionRepository("ana", data_dir=tmp_path)
    repo.path.parent.mkdir(parents=True)
    record = {"id": "far", "description": "Erro", "amount": 9, "type": "EXPENSE", "date": 10 ** 20}
    repo.path.write_text(json.dumps([record]), encoding="utf-8")
    loaded = repo.load()
    assert len(loaded) == 1
    assert loaded[0].date < 10 ** 20
