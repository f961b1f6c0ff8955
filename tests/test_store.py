import json
import threading

import pytest

from models.lead import Submission
from services.errors import StorageError
from services.store import LeadStore


def _submission(n, **fields):
    data = {"phone": f"+7 900 000-00-{n:02d}"}
    data.update(fields)
    return Submission.create(f"lead_{n}", "2026-10-19 12:00:00", data)


def test_missing_file_is_empty(tmp_path):
    assert LeadStore(str(tmp_path / "leads.json")).load() == []


def test_sequential_appends_keep_arrival_order(tmp_path):
    store = LeadStore(str(tmp_path / "leads.json"))
    for n in range(5):
        assert store.append(_submission(n)) == n + 1

    leads = store.load()
    assert [lead["id"] for lead in leads] == [f"lead_{n}" for n in range(5)]
    assert len({lead["id"] for lead in leads}) == 5


def test_creates_parent_directory(tmp_path):
    store = LeadStore(str(tmp_path / "data" / "leads.json"))
    store.append(_submission(1))
    assert len(store.load()) == 1


def test_empty_file_treated_as_empty(tmp_path):
    path = tmp_path / "leads.json"
    path.write_text("")
    store = LeadStore(str(path))
    store.append(_submission(1))
    assert len(store.load()) == 1


def test_file_is_pretty_printed_and_keeps_unicode(tmp_path):
    path = tmp_path / "leads.json"
    LeadStore(str(path)).append(_submission(1, name="Иван"))

    text = path.read_text(encoding="utf-8")
    assert "Иван" in text
    assert "\n    {" in text
    assert json.loads(text)[0]["phone_digits"] == "79000000001"


def test_corrupt_file_raises_and_is_left_untouched(tmp_path):
    path = tmp_path / "leads.json"
    path.write_text("[{broken", encoding="utf-8")
    store = LeadStore(str(path))

    with pytest.raises(StorageError):
        store.append(_submission(1))
    assert path.read_text(encoding="utf-8") == "[{broken"


def test_non_array_file_raises(tmp_path):
    path = tmp_path / "leads.json"
    path.write_text('{"id": "x"}', encoding="utf-8")

    with pytest.raises(StorageError):
        LeadStore(str(path)).load()


def test_concurrent_appends_do_not_lose_records(tmp_path):
    store = LeadStore(str(tmp_path / "leads.json"))
    threads = [threading.Thread(target=store.append, args=(_submission(n),)) for n in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(lead["id"] for lead in store.load()) == sorted(f"lead_{n}" for n in range(20))
