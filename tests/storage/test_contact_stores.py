"""Behaviour shared by every contact store implementation."""

import pytest

from herd.models import ContactRecord
from herd.storage.base import DuplicateEntryError, StorageError
from herd.storage.memory import InMemoryContactStore
from herd.storage.sqlite import SqliteContactStore


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryContactStore()
    return SqliteContactStore(tmp_path / "contacts.sqlite3")


def _contact(name, owner="user-1", **kwargs):
    return ContactRecord(name=name, owner_id=owner, **kwargs)


def test_insert_assigns_ids_and_round_trips_fields(store):
    inserted = store.insert(
        [
            _contact(
                "Sarah Jones",
                email="sarah@example.com",
                birthday="1990-03-15",
                interests=["Coffee", "Design"],
                group_name="Friends",
            ),
            _contact("Tom Baker"),
        ]
    )

    assert [record.id for record in inserted] == [1, 2]
    assert all(record.created_at for record in inserted)

    sarah = store.select("user-1", name_contains="sarah")[0]
    assert sarah.email == "sarah@example.com"
    assert sarah.birthday == "1990-03-15"
    assert sarah.interests == ["Coffee", "Design"]
    assert sarah.group_name == "Friends"
    assert sarah.owner_id == "user-1"


def test_select_is_scoped_to_owner(store):
    store.insert([_contact("Sarah Jones"), _contact("Sarah Other", owner="user-2")])

    assert [record.name for record in store.select("user-1")] == ["Sarah Jones"]
    assert store.select("nobody") == []


def test_name_filter_is_case_insensitive_substring(store):
    store.insert([_contact("Sarah Jones"), _contact("Bob SARAHSON"), _contact("Tom Baker")])

    names = [record.name for record in store.select("user-1", name_contains="SaRaH")]

    assert names == ["Sarah Jones", "Bob SARAHSON"]


def test_name_filter_treats_wildcards_literally(store):
    store.insert([_contact("100% Legit"), _contact("Tom Baker")])

    assert [record.name for record in store.select("user-1", name_contains="%")] == ["100% Legit"]
    assert store.select("user-1", name_contains="_") == []


def test_limit_group_and_order(store):
    store.insert(
        [
            _contact("Zed", group_name="Work"),
            _contact("Amy", group_name="Work"),
            _contact("Max", group_name="Family"),
        ]
    )

    assert [record.name for record in store.select("user-1", order_by="name")] == ["Amy", "Max", "Zed"]
    assert [record.name for record in store.select("user-1", group_name="Work")] == ["Zed", "Amy"]
    assert len(store.select("user-1", limit=2)) == 2


def test_unknown_order_field_is_rejected(store):
    with pytest.raises(StorageError):
        store.select("user-1", order_by="name; DROP TABLE contacts")


def test_update_changes_only_owned_contact(store):
    (record,) = store.insert([_contact("Sarah Jones")])

    updated = store.update(record.id, "user-1", {"company": "Acme", "interests": ["Tea"]})

    assert updated.company == "Acme"
    assert updated.interests == ["Tea"]
    assert store.update(record.id, "user-2", {"company": "Other"}) is None
    assert store.select("user-1")[0].company == "Acme"


def test_update_rejects_unknown_fields(store):
    (record,) = store.insert([_contact("Sarah Jones")])

    with pytest.raises(StorageError):
        store.update(record.id, "user-1", {"owner_id": "user-2"})


def test_delete_and_delete_all(store):
    first, second, _ = store.insert([_contact("A"), _contact("B"), _contact("C", owner="user-2")])

    assert store.delete(first.id, "user-2") == 0
    assert store.delete(first.id, "user-1") == 1
    assert store.delete_all("user-1") == 1
    assert store.select("user-1") == []
    assert len(store.select("user-2")) == 1


def test_insert_requires_owner(store):
    with pytest.raises(StorageError):
        store.insert([ContactRecord(name="Nobody's")])


@pytest.mark.parametrize("name", ["", "   "])
def test_insert_requires_name(store, name):
    with pytest.raises(StorageError):
        store.insert([_contact(name)])

    assert store.select("user-1") == []


def test_waitlist_rejects_duplicates_case_insensitively(store):
    entry = store.add_waitlist_entry("friend@example.com")

    assert entry.email == "friend@example.com"
    with pytest.raises(DuplicateEntryError):
        store.add_waitlist_entry("Friend@Example.com")


def test_returned_records_are_copies(store):
    store.insert([_contact("Sarah Jones", interests=["Coffee"])])

    record = store.select("user-1")[0]
    record.interests.append("Wine")

    assert store.select("user-1")[0].interests == ["Coffee"]


def test_sqlite_store_persists_between_instances(tmp_path):
    path = tmp_path / "persist.sqlite3"
    SqliteContactStore(path).insert([_contact("Sarah Jones")])

    assert [record.name for record in SqliteContactStore(path).select("user-1")] == ["Sarah Jones"]
