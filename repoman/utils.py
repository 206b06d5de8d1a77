# -*- coding: utf-8 -*-


"""
common utils for repoman
"""


import hashlib
from contextlib import contextmanager
from typing import Iterator, Union

import fs as pyfs
import fs.errors
from fs.base import FS

from .errors import FileReadFailure, FileWriteFailure, PermissionDenied, UnknownIOFailure

CHUNK_SIZE = 64 * 1024


def to_bytes(text) -> bytes:
    if not isinstance(text, bytes):
        text = bytes(text, "utf8")
    return text


def load_fs(root: Union[FS, str]) -> FS:
    """Return `root` if it already is a filesystem, else open it as a
    filesystem URL or OS path.

    Raises:
        fs.errors.CreateFailed: If `root` doesn't exist or isn't a directory.
    """
    if isinstance(root, FS):
        return root
    return pyfs.open_fs(root)


class Stream(object):
    """Chunked reader over a file in a filesystem.

    The file is opened on construction and stays open until :meth:`close`
    is called. Iterating yields successive chunks of at most
    :data:`CHUNK_SIZE` bytes and can be repeated.
    """

    def __init__(self, path: str, fs: FS):
        self._obj = fs.openbin(path)

    def __iter__(self) -> Iterator[bytes]:
        self._obj.seek(0)

        while True:
            data = self._obj.read(CHUNK_SIZE)

            if not data:
                break

            yield data

    def close(self) -> None:
        self._obj.close()


def computehash(stream: Stream, algorithm: str) -> str:
    """Compute the hex digest of `stream` using the ``hashlib`` `algorithm`."""
    hashobj = hashlib.new(algorithm)
    for data in stream:
        hashobj.update(to_bytes(data))
    return hashobj.hexdigest()


def ensure_trailing_slash(url: str) -> str:
    if not url.endswith("/"):
        url += "/"
    return url


@contextmanager
def convert_fs_errors(path: str, operation: str):
    """Translate PyFilesystem errors raised inside the block into repoman
    errors tagged with `path`. `operation` is ``"read"`` or ``"write"``.
    """
    try:
        yield
    except fs.errors.PermissionDenied as error:
        raise PermissionDenied(path, operation, cause=error) from error
    except (fs.errors.ResourceError, fs.errors.OperationFailed) as error:
        exc_class = FileReadFailure if operation == "read" else FileWriteFailure
        raise exc_class(path, cause=error) from error
    except fs.errors.FSError as error:
        raise UnknownIOFailure(
            "An unknown error occurred when trying to {0} {1}.".format(operation, path),
            cause=error) from error
    except PermissionError as error:
        raise PermissionDenied(path, operation, cause=error) from error
    except OSError as error:
        # Raised by the OS file objects PyFilesystem hands out.
        exc_class = FileReadFailure if operation == "read" else FileWriteFailure
        raise exc_class(path, cause=error) from error
