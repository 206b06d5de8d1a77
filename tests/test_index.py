# -*- coding: utf-8 -*-

import errno
import json

import pytest
from fs.memoryfs import MemoryFS

from repoman.errors import (
    ChannelAlreadyExists,
    FileWriteFailure,
    IndexCorrupt,
    IndexNotFound,
    RepositoryAlreadyExists,
    RepositoryMalformed,
    RepositoryNotFound,
    VersionAlreadyExists,
)
from repoman.index import (
    IndexStore,
    add_or_update_channel,
    append_version_summary,
    create_channel,
    create_repository,
    load_index,
    make_channel,
    save_index,
    set_channel,
)
from repoman.models import Channel, Index, Version, VersionSummary


INDEX = {
    "ApiVersion": 0,
    "Channels": [
        {"Id": "stable", "Name": "Stable", "CurrentVersion": 2},
        {"Id": "beta", "Name": "beta"},
    ],
    "Versions": [{"Id": 1, "Name": "1.0"}, {"Id": 2, "Name": "1.1"}],
}


@pytest.fixture
def repopath(tmpdir):
    path = tmpdir.mkdir("repo")
    path.join("index.json").write(json.dumps(INDEX))
    return path


@pytest.fixture
def index():
    return Index.from_dict(INDEX)


def read_json(path):
    return json.loads(path.read())


def test_index_load(repopath):
    index = load_index(str(repopath))

    assert index.channels == (Channel("stable", "Stable", 2), Channel("beta", "beta", None))
    assert index.versions == (VersionSummary(1, "1.0"), VersionSummary(2, "1.1"))
    assert index.api_version == 0


def test_index_round_trip(repopath):
    save_index(str(repopath), load_index(str(repopath)))

    assert read_json(repopath.join("index.json")) == INDEX


def test_index_round_trip_without_api_version(repopath):
    data = {"Channels": [], "Versions": [{"Id": 7, "Name": "7"}]}
    repopath.join("index.json").write(json.dumps(data))

    save_index(str(repopath), load_index(str(repopath)))

    assert read_json(repopath.join("index.json")) == data


def test_index_load_missing_repository(tmpdir):
    with pytest.raises(RepositoryNotFound):
        load_index(str(tmpdir.join("nope")))


def test_index_load_repository_is_file(tmpdir):
    path = tmpdir.join("file")
    path.write("x")

    with pytest.raises(RepositoryNotFound):
        load_index(str(path))


def test_index_load_missing_index(tmpdir):
    with pytest.raises(IndexNotFound):
        load_index(str(tmpdir))


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[]",
        '{"Channels": {}}',
        '{"Channels": [{"Id": 1, "Name": "x"}]}',
        '{"Versions": [{"Id": "1", "Name": "x"}]}',
        '{"Versions": [{"Name": "x"}]}',
    ],
)
def test_index_load_corrupt(repopath, content):
    repopath.join("index.json").write(content)

    with pytest.raises(IndexCorrupt) as excinfo:
        load_index(str(repopath))

    assert isinstance(excinfo.value, RepositoryMalformed)


def test_index_set_new_channel(index):
    updated = add_or_update_channel(index, "nightly", 5)

    assert updated.channels[:2] == index.channels
    assert updated.channels[2] == Channel("nightly", "nightly", 5)


def test_index_set_existing_channel(index):
    updated = add_or_update_channel(index, "beta", 2)

    assert updated.channels == (Channel("stable", "Stable", 2), Channel("beta", "beta", 2))
    assert updated.versions == index.versions


@pytest.mark.parametrize("version_id", [None, -1])
def test_index_remove_channel(index, version_id):
    updated = add_or_update_channel(index, "stable", version_id)

    assert updated.channels == (Channel("beta", "beta", None),)


def test_index_remove_missing_channel(index):
    assert add_or_update_channel(index, "nightly", -1) == index


def test_index_set_channel_never_duplicates(index):
    updated = add_or_update_channel(index, "beta", 1)
    updated = add_or_update_channel(updated, "beta", 2)

    assert [ch.id for ch in updated.channels] == ["stable", "beta"]


def test_index_create_channel(index):
    updated = create_channel(index, "nightly")

    assert updated.channel("nightly") == Channel("nightly", "nightly", None)
    assert not updated.channel("nightly").is_pinned


def test_index_create_channel_exists(index):
    with pytest.raises(ChannelAlreadyExists):
        create_channel(index, "stable")


def test_index_append_version_summary(index):
    updated = append_version_summary(index, 3, "2.0")

    assert updated.versions[-1] == VersionSummary(3, "2.0")
    assert len(index.versions) == 2


def test_index_set_channel_persists(repopath):
    set_channel(str(repopath), "stable", 1)
    set_channel(str(repopath), "beta")

    assert read_json(repopath.join("index.json"))["Channels"] == [
        {"Id": "stable", "Name": "Stable", "CurrentVersion": 1},
    ]


def test_index_make_channel_persists(repopath):
    make_channel(str(repopath), "nightly")

    assert read_json(repopath.join("index.json"))["Channels"][-1] == {
        "Id": "nightly",
        "Name": "nightly",
    }


def test_index_make_channel_exists_leaves_index(repopath):
    before = repopath.join("index.json").read()

    with pytest.raises(ChannelAlreadyExists):
        make_channel(str(repopath), "beta")

    assert repopath.join("index.json").read() == before


def test_index_write_version(repopath):
    store = IndexStore(str(repopath))
    version = Version(3, "2.0")

    store.write_version(version)

    assert store.has_version(3)
    assert store.load_version(3) == version


def test_index_write_version_exists(repopath):
    store = IndexStore(str(repopath))
    repopath.join("3.json").write("original")

    with pytest.raises(VersionAlreadyExists):
        store.write_version(Version(3, "2.0"))

    assert repopath.join("3.json").read() == "original"


def test_create_repository(tmpdir):
    path = tmpdir.join("new")

    create_repository(str(path))

    assert read_json(path.join("index.json")) == {"ApiVersion": 0, "Channels": [], "Versions": []}
    assert load_index(str(path)) == Index()


def test_create_repository_exists(tmpdir):
    with pytest.raises(RepositoryAlreadyExists):
        create_repository(str(tmpdir))


def test_create_repository_missing_parent(tmpdir):
    with pytest.raises(RepositoryNotFound):
        create_repository(str(tmpdir.join("a", "b")))


class DiskFullFile(object):
    def __init__(self, fileobj):
        self._fileobj = fileobj

    def write(self, data):
        self._fileobj.write(data[:2])
        raise OSError(errno.ENOSPC, "No space left on device")

    def close(self):
        self._fileobj.close()


def test_index_write_version_disk_full(monkeypatch):
    store = IndexStore(MemoryFS())
    openbin = store.fs.openbin

    def open_disk_full(path, mode="r", buffering=-1, **options):
        return DiskFullFile(openbin(path, mode, buffering, **options))

    monkeypatch.setattr(store.fs, "openbin", open_disk_full)

    with pytest.raises(FileWriteFailure) as excinfo:
        store.write_version(Version(3, "2.0"))

    assert excinfo.value.path == "3.json"
    assert not store.has_version(3)

    monkeypatch.undo()
    store.write_version(Version(3, "2.0"))

    assert store.load_version(3) == Version(3, "2.0")


def test_index_load_null_lists(repopath):
    repopath.join("index.json").write('{"ApiVersion": 0, "Channels": null, "Versions": null}')

    assert load_index(str(repopath)) == Index()


def test_index_load_go_zero_values(repopath):
    data = {
        "Channels": [{"Id": "stable", "CurrentVersion": None}],
        "Versions": [{"Id": 1}],
    }
    repopath.join("index.json").write(json.dumps(data))

    index = load_index(str(repopath))

    assert index.channels == (Channel("stable", "stable", None),)
    assert index.versions == (VersionSummary(1, ""),)
