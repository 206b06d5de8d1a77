# -*- coding: utf-8 -*-
"""Load, mutate and persist a repository's index.

None of the functions here lock the repository. Callers must serialize
operations that modify the same repository themselves, otherwise one of
two concurrent index updates is lost.
"""

import json
import logging
import os
from contextlib import closing
from typing import Optional, Union

import fs.errors
from fs.base import FS
from fs.osfs import OSFS

from . import utils as u
from .errors import (
    ChannelAlreadyExists,
    IndexCorrupt,
    IndexNotFound,
    RepositoryAlreadyExists,
    RepositoryNotFound,
    VersionAlreadyExists,
)
from .models import Channel, Index, Version, VersionSummary

logger = logging.getLogger(__name__)

INDEX_FILE_NAME = "index.json"


def version_file_name(version_id: int) -> str:
    return "{0}.json".format(version_id)


def _dumps(data) -> bytes:
    return json.dumps(data, separators=(",", ":")).encode("utf-8")


class IndexStore(object):
    """Access to the index and version manifests of one repository.

    Args:
        root: Repository directory as a filesystem or path.

    Raises:
        RepositoryNotFound: If `root` doesn't exist or isn't a directory.
    """

    def __init__(self, root: Union[FS, str]):
        try:
            self.fs = u.load_fs(root)
        except fs.errors.CreateFailed as error:
            raise RepositoryNotFound(
                "Invalid repository: {0} doesn't exist or isn't a directory.".format(root),
                cause=error) from error
        self.root = root

    def load(self) -> Index:
        """Read and parse the index file.

        Raises:
            IndexNotFound: If the index file is missing.
            IndexCorrupt: If it can't be parsed into an :class:`Index`.
            PermissionDenied: If reading it isn't allowed.
        """
        with u.convert_fs_errors(INDEX_FILE_NAME, "read"):
            try:
                data = self.fs.readbytes(INDEX_FILE_NAME)
            except fs.errors.ResourceNotFound as error:
                raise IndexNotFound(
                    "Invalid repository ({0}): index file is missing.".format(self.root),
                    cause=error) from error

        return Index.from_dict(self._parse(data, INDEX_FILE_NAME))

    def save(self, index: Index) -> None:
        """Overwrite the index file with `index`."""
        with u.convert_fs_errors(INDEX_FILE_NAME, "write"):
            self.fs.writebytes(INDEX_FILE_NAME, _dumps(index.to_dict()))
        logger.info("Saved index of %s", self.root)

    def has_version(self, version_id: int) -> bool:
        """Return whether a manifest file for `version_id` exists."""
        return self.fs.exists(version_file_name(version_id))

    def load_version(self, version_id: int) -> Version:
        """Read the manifest of `version_id`."""
        path = version_file_name(version_id)
        with u.convert_fs_errors(path, "read"):
            data = self.fs.readbytes(path)
        return Version.from_dict(self._parse(data, path))

    def write_version(self, version: Version) -> None:
        """Create the manifest file for `version`.

        Raises:
            VersionAlreadyExists: If a manifest for the version ID exists.
            FileWriteFailure: If the file can't be written.
        """
        path = version_file_name(version.id)

        with u.convert_fs_errors(path, "write"):
            try:
                fileobj = self.fs.openbin(path, mode="xb")
            except fs.errors.FileExists as error:
                raise VersionAlreadyExists(
                    "Version {0} already exists.".format(version.id),
                    cause=error) from error

            try:
                with closing(fileobj):
                    fileobj.write(_dumps(version.to_dict()))
            except (OSError, fs.errors.FSError):
                self._discard(path)
                raise

        logger.info("Wrote manifest %s", path)

    def _discard(self, path: str) -> None:
        """Remove a partially written manifest so the version can be retried."""
        try:
            self.fs.remove(path)
        except fs.errors.FSError as error:
            logger.warning("Couldn't remove partial manifest %s: %s", path, error)

    def _parse(self, data: bytes, path: str):
        try:
            return json.loads(data.decode("utf-8"))
        except ValueError as error:
            raise IndexCorrupt(
                "Can't parse {0} in repository {1}.".format(path, self.root),
                cause=error) from error


def load_index(root: Union[FS, str]) -> Index:
    return IndexStore(root).load()


def save_index(root: Union[FS, str], index: Index) -> None:
    IndexStore(root).save(index)


def add_or_update_channel(index: Index, channel_id: str, version_id: Optional[int]) -> Index:
    """Return a copy of `index` with channel `channel_id` pointing at
    `version_id`.

    An existing channel keeps its name and position. A `version_id` of
    ``None`` or below zero removes the channel instead.
    """
    remove = version_id is None or version_id < 0
    existing = index.channel(channel_id)

    if existing is None:
        if remove:
            logger.warning("Channel %s doesn't exist; nothing to remove.", channel_id)
            return index
        return index._replace(channels=index.channels + (Channel(channel_id, channel_id, version_id),))

    if remove:
        channels = tuple(ch for ch in index.channels if ch.id != channel_id)
    else:
        channels = tuple(
            ch._replace(current_version=version_id) if ch.id == channel_id else ch
            for ch in index.channels
        )

    return index._replace(channels=channels)


def create_channel(index: Index, channel_id: str) -> Index:
    """Return a copy of `index` with a new unpinned channel appended.

    Raises:
        ChannelAlreadyExists: If `channel_id` is already used.
    """
    if index.channel(channel_id) is not None:
        raise ChannelAlreadyExists("Channel {0} already exists.".format(channel_id))
    return index._replace(channels=index.channels + (Channel(channel_id),))


def append_version_summary(index: Index, version_id: int, name: str) -> Index:
    """Return a copy of `index` with a summary for a new version appended.

    The version's manifest must already be written.
    """
    return index._replace(versions=index.versions + (VersionSummary(version_id, name),))


def set_channel(root: Union[FS, str], channel_id: str, version_id: Optional[int] = None) -> Index:
    """Point `channel_id` at `version_id` in the repository at `root`, or
    remove the channel when `version_id` is ``None`` or negative.
    """
    store = IndexStore(root)
    index = add_or_update_channel(store.load(), channel_id, version_id)
    store.save(index)
    return index


def make_channel(root: Union[FS, str], channel_id: str) -> Index:
    """Add an unpinned channel to the repository at `root`."""
    store = IndexStore(root)
    index = create_channel(store.load(), channel_id)
    store.save(index)
    return index


def create_repository(path: str) -> IndexStore:
    """Create a repository directory at `path` holding a blank index.

    Raises:
        RepositoryAlreadyExists: If `path` already exists.
        RepositoryNotFound: If the parent directory of `path` doesn't exist.
    """
    parent, name = os.path.split(os.path.abspath(path))

    try:
        parent_fs = OSFS(parent)
    except fs.errors.CreateFailed as error:
        raise RepositoryNotFound(
            "Can't create repository at {0}. Make sure the parent directory exists.".format(path),
            cause=error) from error

    with u.convert_fs_errors(path, "write"):
        try:
            repo_fs = parent_fs.makedir(name)
        except fs.errors.DirectoryExists as error:
            raise RepositoryAlreadyExists(
                "Can't create repository at {0} because the directory already exists.".format(path),
                cause=error) from error

    store = IndexStore(repo_fs)
    store.root = path
    store.save(Index())
    logger.info("Created repository %s", path)
    return store
