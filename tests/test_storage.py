from microlearner.services.storage import InMemoryStore, JsonFileStore


def test_in_memory_store():
    store = InMemoryStore()
    store.set("document", "text")
    assert store.get("document") == "text"
    store.clear("document")
    assert store.get("document") is None
    assert store.get("cards", []) == []
    # clearing a missing key is fine
    store.clear("cards")


def test_json_store_survives_reopen(tmp_path):
    path = tmp_path / "state" / "deck.json"
    store = JsonFileStore(str(path))
    store.set("document", "Doc A")
    store.set("cards", [{"title": "T1"}])

    reopened = JsonFileStore(str(path))
    assert reopened.get("document") == "Doc A"
    assert reopened.get("cards") == [{"title": "T1"}]

    reopened.clear("document")
    assert JsonFileStore(str(path)).get("document") is None
    assert JsonFileStore(str(path)).get("cards") == [{"title": "T1"}]


def test_json_store_ignores_unreadable_file(tmp_path):
    path = tmp_path / "deck.json"
    path.write_text("{not json", encoding="utf-8")

    store = JsonFileStore(str(path))
    assert store.get("document") is None

    store.set("document", "Doc B")
    assert JsonFileStore(str(path)).get("document") == "Doc B"
