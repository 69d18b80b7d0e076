"""Tests for master key re-encryption."""
from vaultbox.adapters.memory_store.stores import MemoryDocumentStore
from vaultbox.domain.crypto.field_cipher import FieldCipher
from vaultbox.domain.crypto.rotation import ReencryptionService
from vaultbox.domain.records import NOTES_COLLECTION, PROJECTS_COLLECTION, VAULT_COLLECTION

OLD_MASTER = "old-master-key-0123456789abcdef"
NEW_MASTER = "new-master-key-0123456789abcdef"


def _seed():
    store = MemoryDocumentStore()
    old = FieldCipher(OLD_MASTER)
    entry_id = store.add(VAULT_COLLECTION, {
        "name": "db01",
        "password": old.encrypt("hunter2"),
        "username": old.encrypt("sa"),
        "notes": None,
    })
    store.set(NOTES_COLLECTION, "uid-alice", {"notes": old.encrypt("my notes")})
    store.add(PROJECTS_COLLECTION, {"name": "not encrypted"})
    return store, entry_id


def test_rotation_moves_every_registered_field_to_new_key():
    store, entry_id = _seed()
    old = FieldCipher(OLD_MASTER)
    new = FieldCipher(NEW_MASTER)

    scanned, rotated, failed = ReencryptionService(store, old, new).run()

    assert (scanned, rotated, failed) == (2, 3, 0)

    entry = store.get(VAULT_COLLECTION, entry_id)
    assert entry["name"] == "db01"
    assert entry["notes"] is None
    assert new.decrypt(entry["password"]) == "hunter2"
    assert new.decrypt(entry["username"]) == "sa"
    assert new.decrypt(store.get(NOTES_COLLECTION, "uid-alice")["notes"]) == "my notes"


def test_rotation_leaves_undecryptable_fields_untouched():
    store, entry_id = _seed()
    stray = FieldCipher("unrelated-master-key-000000000").encrypt("x")
    store.set(VAULT_COLLECTION, entry_id, {"email": stray}, merge=True)

    service = ReencryptionService(store, FieldCipher(OLD_MASTER), FieldCipher(NEW_MASTER))
    scanned, rotated, failed = service.run()

    assert failed == 1
    assert rotated == 3
    assert store.get(VAULT_COLLECTION, entry_id)["email"] == stray


def test_second_run_with_same_keys_fails_everything():
    store, _ = _seed()
    service = ReencryptionService(store, FieldCipher(OLD_MASTER), FieldCipher(NEW_MASTER))
    service.run()

    _, rotated, failed = service.run()

    assert rotated == 0
    assert failed == 3


def test_reencrypt_missing_document():
    service = ReencryptionService(MemoryDocumentStore(), FieldCipher(OLD_MASTER), FieldCipher(NEW_MASTER))
    assert service.reencrypt_document(VAULT_COLLECTION, "nope") == (0, 0)
