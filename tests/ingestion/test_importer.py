import pytest

from herd.ingestion.importer import ContactImporter
from herd.models import ContactRecord
from herd.pacing import DelayPolicy
from herd.storage.base import StorageError
from herd.storage.memory import InMemoryContactStore


def _csv(count: int, *, blank_every: int = 0) -> str:
    lines = ["First name,Last name,Email : home"]
    for index in range(count):
        if blank_every and index % blank_every == 0:
            lines.append(f",,p{index}@example.com")
        else:
            lines.append(f"Person{index},Example,p{index}@example.com")
    return "\n".join(lines)


class FailingStore(InMemoryContactStore):
    def __init__(self, fail_on_call: int) -> None:
        super().__init__()
        self.calls = 0
        self._fail_on_call = fail_on_call

    def insert(self, records):
        self.calls += 1
        if self.calls == self._fail_on_call:
            raise StorageError("duplicate key value")
        return super().insert(records)


def test_parse_keeps_named_records_and_previews_first_three():
    importer = ContactImporter(InMemoryContactStore())

    parsed = importer.parse(_csv(10, blank_every=4), "user-1")

    assert parsed.total == 7
    assert all(record.name.strip() for record in parsed.records)
    assert [record.name for record in parsed.preview] == ["Person1 Example", "Person2 Example", "Person3 Example"]
    assert all(record.owner_id == "user-1" for record in parsed.records)


def test_parse_never_yields_more_records_than_data_lines():
    importer = ContactImporter(InMemoryContactStore())

    parsed = importer.parse(_csv(5), "user-1")

    assert parsed.total <= 5


def test_submit_inserts_in_batches_with_pauses_between():
    store = InMemoryContactStore()
    waits = []
    importer = ContactImporter(store, batch_size=50, delay_policy=DelayPolicy(0.1), sleep=waits.append)
    records = importer.parse(_csv(120), "user-1").records

    summary = importer.submit(records)

    assert summary.total == 120
    assert summary.inserted == 120
    assert summary.batches == 3
    assert waits == [0.1, 0.1]
    assert len(store.select("user-1")) == 120


def test_failed_batch_aborts_and_keeps_committed_batches():
    store = FailingStore(fail_on_call=2)
    importer = ContactImporter(store, batch_size=2, sleep=lambda _: None)
    records = [ContactRecord(name=f"Contact {index}", owner_id="user-1") for index in range(6)]

    with pytest.raises(StorageError) as excinfo:
        importer.submit(records)

    assert str(excinfo.value) == "Database error: duplicate key value"
    assert store.calls == 2
    assert len(store.select("user-1")) == 2


def test_submit_with_no_records_does_nothing():
    store = InMemoryContactStore()
    importer = ContactImporter(store, sleep=lambda _: pytest.fail("should not pause"))

    summary = importer.submit([])

    assert (summary.inserted, summary.batches) == (0, 0)


def test_import_is_idempotent_for_a_fresh_owner():
    store = InMemoryContactStore()
    importer = ContactImporter(store, sleep=lambda _: None)

    summary = importer.import_text(_csv(8), "fresh-owner")

    assert len(store.select("fresh-owner")) == summary.inserted == 8
