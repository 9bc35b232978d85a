import threading

import pytest

from credstore.backing import ConcurrentDictStore
from credstore.credential_codec import CredentialCodec
from credstore.domain import Credentials, LoginCredentials
from credstore.errors import InvalidArgumentError
from credstore.transforming_store import TransformingStore


@pytest.fixture
def backing():
    return ConcurrentDictStore()


@pytest.fixture
def store(backing, recording_logger):
    return TransformingStore(backing, CredentialCodec(logger=recording_logger))


def test_put_writes_encoded_bytes_and_get_decodes(store, backing):
    creds = LoginCredentials.for_user("alice", password="p", authenticate_sudo=True)
    assert store.put("acct1", creds) is None
    assert backing["acct1"] == b'{"user":"alice","password":"p","authenticateSudo":true}'
    assert store.get("acct1") == creds
    assert store["acct1"] == creds


def test_put_returns_previous_value(store):
    first = LoginCredentials.for_user("alice", password="old")
    second = LoginCredentials.for_user("alice", password="new")
    store.put("acct1", first)
    assert store.put("acct1", second) == first
    assert store.get("acct1") == second
    assert len(store) == 1


def test_remove_returns_previous_and_clears_presence(store):
    creds = Credentials(identity="id", credential="secret")
    store["k"] = creds
    assert store.remove("k") == creds
    assert store.get("k") is None
    assert "k" not in store
    assert store.remove("k") is None


def test_del_and_missing_key(store):
    store["k"] = Credentials(identity="id")
    del store["k"]
    with pytest.raises(KeyError):
        store["k"]
    with pytest.raises(KeyError):
        del store["k"]


def test_corrupt_entry_is_present_but_unreadable(store, backing, recording_logger):
    backing["bad"] = b"not json"
    assert store.get("bad") is None
    assert "bad" in store
    assert len(store) == 1
    assert list(store.keys()) == ["bad"]
    assert len(recording_logger.warnings) == 1


def test_get_result_separates_absent_from_corrupt(store, backing):
    backing["bad"] = b"not json"
    store["good"] = Credentials(identity="id")
    assert store.get_result("missing") is None
    assert store.get_result("bad").unreadable
    good = store.get_result("good")
    assert good.ok
    assert good.value == Credentials(identity="id")


def test_put_over_corrupt_entry_returns_none(store, backing):
    backing["k"] = b"garbage"
    creds = LoginCredentials.for_user("alice")
    assert store.put("k", creds) is None
    assert store.get("k") == creds


def test_size_tracks_backing_through_mutations(store, backing):
    ops = [
        ("put", "a"),
        ("put", "b"),
        ("raw", "c"),
        ("remove", "a"),
        ("put", "b"),
        ("raw", "a"),
        ("remove", "c"),
        ("remove", "zzz"),
    ]
    for op, key in ops:
        if op == "put":
            store.put(key, Credentials(identity=key))
        elif op == "raw":
            backing[key] = b"\x00corrupt"
        else:
            store.remove(key)
        assert len(store) == len(backing)
        assert set(store.keys()) == set(backing.keys())


def test_entries_yield_none_for_unreadable(store, backing):
    store["a"] = Credentials(identity="a")
    backing["b"] = b"not json"
    entries = dict(store.entries())
    assert entries == {"a": Credentials(identity="a"), "b": None}
    assert len(entries) == len(store)
    assert dict(store.items()) == entries


def test_entries_skip_keys_removed_mid_iteration(store):
    store["a"] = Credentials(identity="a")
    store["b"] = Credentials(identity="b")
    seen = []
    for key, _value in store.entries():
        seen.append(key)
        store.pop("b" if key == "a" else "a", None)
    assert len(seen) == 1


def test_encode_failure_leaves_backing_untouched(store, backing):
    with pytest.raises(InvalidArgumentError):
        store.put("k", None)
    assert "k" not in backing


def test_mutable_mapping_helpers(store):
    store.update({"a": Credentials(identity="a"), "b": Credentials(identity="b")})
    assert sorted(store) == ["a", "b"]
    assert store.pop("a") == Credentials(identity="a")
    assert store.setdefault("b", Credentials(identity="other")) == Credentials(identity="b")


def test_stores_on_same_backing_alias_each_other(backing):
    one = TransformingStore(backing, CredentialCodec())
    two = TransformingStore(backing, CredentialCodec())
    one["k"] = Credentials(identity="shared")
    assert two["k"] == Credentials(identity="shared")
    two.remove("k")
    assert "k" not in one


def test_concurrent_puts_from_threads(store):
    def writer(n):
        for i in range(50):
            store[f"{n}-{i}"] = LoginCredentials.for_user(f"user{n}", password=str(i))

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(store) == 200
    assert store["3-49"] == LoginCredentials.for_user("user3", password="49")


def test_login_without_user_is_not_stored(store, backing):
    with pytest.raises(InvalidArgumentError):
        store["k"] = LoginCredentials.for_user(None, password="p")
    assert "k" not in backing
