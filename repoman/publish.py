# -*- coding: utf-8 -*-
"""Publish a new version into a repository.

Publishing runs these steps in order::

    validate inputs -> diff against storage -> copy new blobs
    -> build manifest -> write manifest -> update index -> save index

A failure before the index is saved leaves the index untouched. Blobs
copied before the failure stay in storage, where later publishes reuse
them. If only the final index save fails, the manifest file remains
without an index entry.

The repository is not locked. Callers must not run a publish while any
other command modifies the same repository.
"""

import logging
from collections import namedtuple
from typing import Iterable, Union

import fs.errors
from fs.base import FS

from . import utils as u
from .builder import build_version
from .errors import (
    BadArgument,
    SourceDirectoryInvalid,
    StorageDirectoryInvalid,
    VersionAlreadyExists,
)
from .hashing import DEFAULT_ALGORITHM, hash_tree
from .index import IndexStore, append_version_summary
from .store import DEFAULT_PREFIX_SIZE, ContentStore

logger = logging.getLogger(__name__)


class PublishResult(namedtuple("PublishResult", ["version", "added", "reused"])):
    """Published :class:`~repoman.models.Version` plus the blob mappings
    that were copied into storage and those that were deduplicated.
    """

    pass


class Publisher(object):
    """Publishes versions into one repository backed by one file storage
    directory.

    Attributes:
        repository: Repository directory as filesystem or path.
        storage: File storage directory as filesystem or path. Blobs in it
            must be reachable by clients under `url_base`.
        url_base (str): Base URL of the storage directory.
        exclude (list, optional): Wildcard patterns of file and directory
            names to leave out of new versions.
        algorithm (str): Hash algorithm. Defaults to ``'md5'``.
        prefix_size (int): Shortest hash prefix used in blob names.
    """

    def __init__(self,
                 repository: Union[FS, str],
                 storage: Union[FS, str],
                 url_base: str,
                 exclude: Iterable[str] = (),
                 algorithm: str = DEFAULT_ALGORITHM,
                 prefix_size: int = DEFAULT_PREFIX_SIZE):
        self.repository = repository
        self.storage = storage
        self.url_base = u.ensure_trailing_slash(url_base)
        self.exclude = list(exclude)
        self.algorithm = algorithm
        self.prefix_size = prefix_size

    def publish(self, source: Union[FS, str], name: str, version_id: int) -> PublishResult:
        """Publish the files under `source` as version `version_id`.

        Raises:
            BadArgument: If `version_id` is negative.
            RepositoryNotFound: If the repository directory is missing.
            RepositoryMalformed: If its index is missing or unparsable.
            StorageDirectoryInvalid: If the storage directory is missing.
            SourceDirectoryInvalid: If `source` is missing.
            VersionAlreadyExists: If `version_id` is already published.
            FileReadFailure: If a file can't be read.
            FileWriteFailure: If a blob or the manifest can't be written.
        """
        index_store, store, source_fs = self._validate(source, version_id)
        index = index_store.load()

        if index.version(version_id) is not None or index_store.has_version(version_id):
            raise VersionAlreadyExists("Version {0} already exists.".format(version_id))

        incoming = hash_tree(source_fs, exclude=self.exclude, algorithm=self.algorithm)
        resolution = store.resolve(incoming, store.entries())
        logger.info(
            "Version %s: %d files, %d new blobs, %d reused",
            version_id, len(resolution.mappings), len(resolution.added), len(resolution.reused),
        )

        store.materialize(source_fs, resolution.added)

        version = build_version(version_id, name, resolution.mappings, self.url_base)
        index_store.write_version(version)

        index = append_version_summary(index, version_id, name)
        index_store.save(index)

        logger.info("Published version %s (%s)", version_id, name)
        return PublishResult(version, resolution.added, resolution.reused)

    def _validate(self, source, version_id):
        if isinstance(version_id, bool) or not isinstance(version_id, int) or version_id < 0:
            raise BadArgument("Version ID must be a positive integer.")

        index_store = IndexStore(self.repository)

        try:
            store = ContentStore(self.storage, prefix_size=self.prefix_size, algorithm=self.algorithm)
        except fs.errors.CreateFailed as error:
            raise StorageDirectoryInvalid(
                "Invalid file storage directory: {0} doesn't exist or isn't a directory.".format(
                    self.storage),
                cause=error) from error

        try:
            source_fs = u.load_fs(source)
        except fs.errors.CreateFailed as error:
            raise SourceDirectoryInvalid(
                "Invalid new version directory: {0} doesn't exist or isn't a directory.".format(source),
                cause=error) from error

        return index_store, store, source_fs


def publish(repository: Union[FS, str],
            storage: Union[FS, str],
            url_base: str,
            source: Union[FS, str],
            name: str,
            version_id: int,
            exclude: Iterable[str] = ()) -> PublishResult:
    """Publish `source` as a new version. See :meth:`Publisher.publish`."""
    publisher = Publisher(repository, storage, url_base, exclude=exclude)
    return publisher.publish(source, name, version_id)
