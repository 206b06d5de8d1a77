# -*- coding: utf-8 -*-
"""Error types raised by repoman.

Every error carries a user facing message, a process exit code and an
optional lower level ``cause``.
"""


class RepomanError(Exception):
    """Base class for all repoman errors.

    Args:
        message (str): Message shown to the user.
        cause (Exception, optional): Lower level error that caused this one.
    """

    exit_code = 1
    show_usage = False

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self):
        if self.cause is None:
            return self.message
        return "{0}\n  Caused by: {1}".format(self.message, self.cause)


class BadArgument(RepomanError):
    exit_code = 2
    show_usage = True


class RepositoryNotFound(RepomanError):
    exit_code = 10


class StorageDirectoryInvalid(RepomanError):
    exit_code = 11


class SourceDirectoryInvalid(RepomanError):
    exit_code = 12


class RepositoryMalformed(RepomanError):
    exit_code = 13


class IndexNotFound(RepositoryMalformed):
    """The repository directory exists but has no index file."""


class IndexCorrupt(RepositoryMalformed):
    """The index file can't be parsed into an index."""


class RepositoryAlreadyExists(RepomanError):
    exit_code = 40


class ChannelAlreadyExists(RepomanError):
    exit_code = 41


class VersionAlreadyExists(RepomanError):
    exit_code = 44


class FileAccessFailure(RepomanError):
    """Failure reading or writing a single file.

    Args:
        path (str): Path of the offending file.
        message (str, optional): Override for the generated message.
        cause (Exception, optional): Lower level error.
    """

    operation = None

    def __init__(self, path, message=None, cause=None):
        if message is None:
            message = "Couldn't {0} file {1}.".format(self.operation or "access", path)
        super().__init__(message, cause)
        self.path = path


class FileReadFailure(FileAccessFailure):
    exit_code = 43
    operation = "read"


class FileWriteFailure(FileAccessFailure):
    exit_code = 42
    operation = "write"


class PermissionDenied(FileAccessFailure):
    """Access to a file was refused by the operating system."""

    exit_code = 45

    def __init__(self, path, operation, cause=None):
        self.operation = operation
        message = "Can't {0} file {1}: permission denied.".format(operation, path)
        super().__init__(path, message, cause)


class UnknownIOFailure(RepomanError):
    exit_code = 50
