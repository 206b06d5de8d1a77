"""Module for ContentStore class."""

import logging
from collections import namedtuple
from contextlib import closing
from typing import Iterable, Iterator, List, Optional, Sequence, Union

import fs as pyfs
import fs.errors
import fs.tools
from fs.base import FS

from . import utils as u
from .errors import FileWriteFailure
from .hashing import DEFAULT_ALGORITHM, FileHash, hash_tree
from .models import BlobMapping

logger = logging.getLogger(__name__)

DEFAULT_PREFIX_SIZE = 4


class Resolution(namedtuple("Resolution", ["mappings", "added", "reused"])):
    """Outcome of resolving incoming files against storage.

    Attributes:
        mappings: One :class:`BlobMapping` per incoming file, in input order.
        added: Mappings whose blob has to be copied into storage.
        reused: Mappings served by a blob that is already stored or that
            another incoming file with the same content adds.
    """

    pass


class ContentStore(object):
    """Flat, deduplicated store of immutable blobs.

    Blobs are named ``<hash prefix>-<basename>``. Content already present
    under any name is never stored twice.

    Attributes:
        fs: Filesystem holding the blobs.
        prefix_size (int, optional): Number of hash characters used for the
            shortest name prefix. Defaults to ``4``.
        algorithm (str): Hash algorithm used to fingerprint stored blobs.
            Defaults to ``'md5'``.
    """

    def __init__(self,
                 root: Union[FS, str],
                 prefix_size: int = DEFAULT_PREFIX_SIZE,
                 algorithm: str = DEFAULT_ALGORITHM):
        self.fs = u.load_fs(root)
        self.prefix_size = prefix_size
        self.algorithm = algorithm

    def entries(self, exclude: Iterable[str] = ()) -> List[FileHash]:
        """Return ``(storage name, hash)`` for every stored blob."""
        return hash_tree(self.fs, exclude=exclude, algorithm=self.algorithm)

    def resolve(self,
                incoming: Sequence[FileHash],
                existing: Optional[Sequence[FileHash]] = None) -> Resolution:
        """Map every incoming file onto a blob, choosing names for new ones.

        Args:
            incoming: ``(install path, hash)`` of the new version's files.
            existing: ``(storage name, hash)`` of stored blobs. Computed
                from :attr:`fs` when omitted.

        Returns:
            :class:`Resolution` of the incoming files. Nothing is written.
        """
        if existing is None:
            existing = self.entries()

        by_hash = {}
        for entry in existing:
            by_hash.setdefault(entry.digest, entry.path)
        taken = set(entry.path for entry in existing)

        mappings = []
        added = []
        reused = []

        for path, digest in incoming:
            storage_name = by_hash.get(digest)

            if storage_name is not None:
                logger.debug("%s matches stored blob %s", path, storage_name)
                mapping = BlobMapping(storage_name, path, digest)
                reused.append(mapping)
            else:
                storage_name = self.storage_name(digest, path, taken)
                logger.debug("%s will be stored as %s", path, storage_name)
                mapping = BlobMapping(storage_name, path, digest)
                by_hash[digest] = storage_name
                taken.add(storage_name)
                added.append(mapping)

            mappings.append(mapping)

        return Resolution(mappings, added, reused)

    def storage_name(self, hashid: str, path: str, taken: Iterable[str] = ()) -> str:
        """Return the first candidate name for a blob that is neither in
        `taken` nor present in :attr:`fs`.
        """
        taken = taken if isinstance(taken, (set, frozenset)) else set(taken)

        for name in self.candidate_names(hashid, path):
            if name not in taken and not self.fs.exists(name):
                return name
            logger.debug("Storage name %s is taken", name)

    def candidate_names(self, hashid: str, path: str) -> Iterator[str]:
        """Yield storage names for a blob in probing order.

        The hash prefix grows one character at a time from
        :attr:`prefix_size` up to the full hash. After that an integer
        counter starting at ``0`` is inserted. The sequence is infinite.
        """
        basename = pyfs.path.basename(path)

        for size in range(min(self.prefix_size, len(hashid)), len(hashid) + 1):
            yield "{0}-{1}".format(hashid[:size], basename)

        number = 0
        while True:
            yield "{0}-{1}-{2}".format(hashid, number, basename)
            number += 1

    def materialize(self, source: Union[FS, str], added: Iterable[BlobMapping]) -> None:
        """Copy each added blob from `source` into storage.

        Every blob is created exclusively. A name that appeared since
        :meth:`resolve` ran is reported, never overwritten.

        Raises:
            FileReadFailure: If a source file can't be read.
            FileWriteFailure: If a blob can't be created.
            PermissionDenied: If either is refused by the OS.
        """
        source_fs = u.load_fs(source)

        for mapping in added:
            self._copy(source_fs, mapping)

    def put(self,
            source: Union[FS, str],
            exclude: Iterable[str] = ()) -> Resolution:
        """Hash the tree at `source`, resolve it against storage and copy in
        the blobs that are missing.
        """
        source_fs = u.load_fs(source)
        incoming = hash_tree(source_fs, exclude=exclude, algorithm=self.algorithm)
        resolution = self.resolve(incoming)
        self.materialize(source_fs, resolution.added)
        return resolution

    def files(self) -> Iterable[str]:
        """Return generator that yields the name of every stored blob."""
        return (pyfs.path.relpath(path) for path in self.fs.walk.files())

    def count(self) -> int:
        """Return count of the number of blobs in storage."""
        return sum(1 for _ in self.fs.walk.files())

    def exists(self, name: str) -> bool:
        """Check whether a blob named `name` is stored."""
        return self.fs.isfile(name)

    def __contains__(self, name: str) -> bool:
        return self.exists(name)

    def __iter__(self) -> Iterable[str]:
        return self.files()

    def __len__(self) -> int:
        return self.count()

    def _copy(self, source_fs: FS, mapping: BlobMapping) -> None:
        with u.convert_fs_errors(mapping.install_path, "read"):
            src = source_fs.openbin(mapping.install_path)

        with closing(src):
            with u.convert_fs_errors(mapping.storage_name, "write"):
                try:
                    dst = self.fs.openbin(mapping.storage_name, mode="xb")
                except fs.errors.FileExists as error:
                    raise FileWriteFailure(
                        mapping.storage_name,
                        "Couldn't create blob {0}: it already exists.".format(
                            mapping.storage_name),
                        cause=error) from error

                try:
                    with closing(dst):
                        pyfs.tools.copy_file_data(src, dst)
                except (OSError, fs.errors.FSError):
                    self._discard(mapping.storage_name)
                    raise

        logger.info("Stored %s as %s", mapping.install_path, mapping.storage_name)

    def _discard(self, name: str) -> None:
        """Remove a partially written blob."""
        try:
            self.fs.remove(name)
        except fs.errors.FSError as error:
            logger.warning("Couldn't remove partial blob %s: %s", name, error)
