# -*- coding: utf-8 -*-

import hashlib
from itertools import islice

import pytest
from fs.memoryfs import MemoryFS

from repoman.errors import FileReadFailure, FileWriteFailure
from repoman.hashing import FileHash
from repoman.models import BlobMapping
from repoman.store import ContentStore


def md5(data):
    return hashlib.md5(data).hexdigest()


@pytest.fixture
def storage():
    return MemoryFS()


@pytest.fixture
def source():
    mem = MemoryFS()
    mem.writebytes("a.txt", b"alpha")
    mem.makedir("sub")
    mem.writebytes("sub/b.txt", b"beta")
    return mem


@pytest.fixture
def store(storage):
    return ContentStore(storage)


def test_store_put(store, storage, source):
    resolution = store.put(source)

    a_name = "{0}-a.txt".format(md5(b"alpha")[:4])
    b_name = "{0}-b.txt".format(md5(b"beta")[:4])

    assert sorted(store.files()) == sorted([a_name, b_name])
    assert storage.readbytes(a_name) == b"alpha"
    assert storage.readbytes(b_name) == b"beta"
    assert [m.install_path for m in resolution.mappings] == ["a.txt", "sub/b.txt"]
    assert len(resolution.added) == 2
    assert resolution.reused == []


def test_store_put_duplicate(store, source):
    first = store.put(source)
    second = store.put(source)

    assert second.added == []
    assert [m.storage_name for m in second.mappings] == [m.storage_name for m in first.mappings]
    assert len(store) == 2


def test_store_same_content_shares_blob(store):
    tree = MemoryFS()
    tree.writebytes("one.txt", b"same")
    tree.writebytes("two.txt", b"same")

    resolution = store.put(tree)

    assert len(store) == 1
    assert len(resolution.added) == 1
    assert resolution.mappings[0].storage_name == resolution.mappings[1].storage_name


def test_store_reuses_blob_across_names(store, source):
    store.put(source)

    renamed = MemoryFS()
    renamed.writebytes("renamed.txt", b"alpha")
    resolution = store.put(renamed)

    assert resolution.added == []
    assert resolution.mappings[0].storage_name == "{0}-a.txt".format(md5(b"alpha")[:4])


def test_store_resolve_preserves_order(store):
    incoming = [FileHash("z.txt", "1111aa"), FileHash("a.txt", "2222bb"), FileHash("m.txt", "3333cc")]
    existing = [FileHash("2222-a.txt", "2222bb")]

    resolution = store.resolve(incoming, existing)

    assert [m.install_path for m in resolution.mappings] == ["z.txt", "a.txt", "m.txt"]
    assert resolution.reused == [BlobMapping("2222-a.txt", "a.txt", "2222bb")]
    assert [m.storage_name for m in resolution.added] == ["1111-z.txt", "3333-m.txt"]


def test_store_resolve_writes_nothing(store, storage):
    store.resolve([FileHash("a.txt", "abcdef")], [])
    assert list(storage.walk.files()) == []


def test_store_name_collision_grows_prefix(store):
    existing = [FileHash("abcd-x.txt", "abcd0000")]

    resolution = store.resolve([FileHash("x.txt", "abcdef12")], existing)

    assert resolution.added[0].storage_name == "abcde-x.txt"


def test_store_name_collision_checks_storage(store, storage):
    storage.writebytes("abcd-x.txt", b"not hashed")

    assert store.storage_name("abcdef12", "dir/x.txt") == "abcde-x.txt"


def test_store_name_collision_after_full_hash(store):
    taken = {"abcd-x.txt", "abcd-0-x.txt"}

    assert store.storage_name("abcd", "x.txt", taken) == "abcd-1-x.txt"


def test_store_candidate_names(store):
    names = list(islice(store.candidate_names("abcdef", "d/f.bin"), 5))

    assert names == [
        "abcd-f.bin",
        "abcde-f.bin",
        "abcdef-f.bin",
        "abcdef-0-f.bin",
        "abcdef-1-f.bin",
    ]


@pytest.mark.parametrize("count", [2, 5, 12])
def test_store_colliding_names_are_unique(store, count):
    hashes = ["aaaa{0:x}".format(i) for i in range(count)]
    incoming = [FileHash("dir{0}/f.bin".format(i), digest) for i, digest in enumerate(hashes)]

    resolution = store.resolve(incoming, [])
    names = [m.storage_name for m in resolution.mappings]

    assert len(set(names)) == count

    for mapping in resolution.mappings:
        bound = len(mapping.content_hash) + count
        candidates = list(islice(store.candidate_names(mapping.content_hash, "f.bin"), bound))
        assert mapping.storage_name in candidates


def test_store_materialize_is_exclusive(store, storage, source):
    resolution = store.resolve([FileHash("a.txt", md5(b"alpha"))], [])
    name = resolution.added[0].storage_name
    storage.writebytes(name, b"raced")

    with pytest.raises(FileWriteFailure) as excinfo:
        store.materialize(source, resolution.added)

    assert excinfo.value.path == name
    assert storage.readbytes(name) == b"raced"


def test_store_materialize_read_failure(store, storage, source):
    added = [BlobMapping("1234-gone.txt", "gone.txt", "1234")]

    with pytest.raises(FileReadFailure) as excinfo:
        store.materialize(source, added)

    assert excinfo.value.path == "gone.txt"
    assert not storage.exists("1234-gone.txt")


def test_store_exists(store, source):
    resolution = store.put(source)
    name = resolution.mappings[0].storage_name

    assert store.exists(name)
    assert name in store
    assert "missing" not in store


def test_store_prefix_size(storage, source):
    store = ContentStore(storage, prefix_size=8)
    store.put(source)

    assert "{0}-a.txt".format(md5(b"alpha")[:8]) in store
