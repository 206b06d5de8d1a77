# -*- coding: utf-8 -*-
"""Fingerprint every file under a directory tree."""

import logging
from collections import namedtuple
from contextlib import closing
from typing import Iterable, List, Union

import fs as pyfs
from fs.base import FS

from . import utils as u

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "md5"


class FileHash(namedtuple("FileHash", ["path", "digest"])):
    """A file's path relative to the hashed tree and its content digest."""

    pass


def hash_file(filesystem: FS, path: str, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Return the digest of a single file.

    Raises:
        FileReadFailure: If the file can't be read.
        PermissionDenied: If reading the file is not allowed.
    """
    with u.convert_fs_errors(path, "read"):
        with closing(u.Stream(path, fs=filesystem)) as stream:
            return u.computehash(stream, algorithm)


def hash_tree(root: Union[FS, str],
              exclude: Iterable[str] = (),
              algorithm: str = DEFAULT_ALGORITHM) -> List[FileHash]:
    """Hash every file below `root`, recursively.

    Args:
        root: Filesystem or path of the tree to hash.
        exclude: Wildcard patterns. Files and directories whose name
            matches any of them are skipped.
        algorithm: Hash algorithm name understood by ``hashlib``.

    Returns:
        :class:`FileHash` records sorted by path. Paths are relative to
        `root` and use ``/`` as separator.
    """
    filesystem = u.load_fs(root)
    exclude = list(exclude) or None

    with u.convert_fs_errors("/", "read"):
        paths = sorted(filesystem.walk.files(exclude=exclude, exclude_dirs=exclude))

    hashes = []
    for path in paths:
        digest = hash_file(filesystem, path, algorithm)
        relpath = pyfs.path.relpath(path)
        logger.debug("Hashed %s: %s", relpath, digest)
        hashes.append(FileHash(relpath, digest))

    return hashes
