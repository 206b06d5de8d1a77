# -*- coding: utf-8 -*-
"""Records stored in a repository and their JSON representation."""

from collections import namedtuple

from .errors import IndexCorrupt

API_VERSION = 0
SOURCE_HTTP = "http"


class FileSource(namedtuple("FileSource", ["type", "url"])):
    """Place a client can retrieve a file from."""

    def to_dict(self):
        return {"SourceType": self.type, "Url": self.url}

    @classmethod
    def from_dict(cls, data):
        return cls(_field(data, "SourceType", str), _field(data, "Url", str))


class FileInfo(namedtuple("FileInfo", ["install_path", "content_hash", "sources"])):
    """A single file belonging to a version."""

    def to_dict(self):
        return {
            "Path": self.install_path,
            "Sources": [source.to_dict() for source in self.sources],
            "MD5": self.content_hash,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            _field(data, "Path", str),
            _field(data, "MD5", str),
            tuple(FileSource.from_dict(item) for item in _field(data, "Sources", list)),
        )


class Version(namedtuple("Version", ["id", "name", "files", "api_version"])):
    """Version manifest, stored as ``{id}.json`` in the repository root."""

    def __new__(cls, id, name, files=(), api_version=API_VERSION):
        return super().__new__(cls, id, name, tuple(files), api_version)

    def to_dict(self):
        data = {}
        if self.api_version is not None:
            data["ApiVersion"] = self.api_version
        data["Id"] = self.id
        data["Name"] = self.name
        data["Files"] = [info.to_dict() for info in self.files]
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(
            _field(data, "Id", int),
            _field(data, "Name", str),
            [FileInfo.from_dict(item) for item in _field(data, "Files", list, [])],
            _field(data, "ApiVersion", int, None),
        )


class VersionSummary(namedtuple("VersionSummary", ["id", "name"])):
    """Pointer from the index to a version manifest."""

    def to_dict(self):
        return {"Id": self.id, "Name": self.name}

    @classmethod
    def from_dict(cls, data):
        return cls(_field(data, "Id", int), _field(data, "Name", str, ""))


class Channel(namedtuple("Channel", ["id", "name", "current_version"])):
    """Named pointer to the version clients on that channel should run.

    A ``current_version`` of ``None`` or below zero means no version is
    pinned.
    """

    def __new__(cls, id, name=None, current_version=None):
        return super().__new__(cls, id, id if name is None else name, current_version)

    @property
    def is_pinned(self):
        return self.current_version is not None and self.current_version >= 0

    def to_dict(self):
        data = {"Id": self.id, "Name": self.name}
        if self.current_version is not None:
            data["CurrentVersion"] = self.current_version
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(
            _field(data, "Id", str),
            _field(data, "Name", str, None),
            _field(data, "CurrentVersion", int, None),
        )


class Index(namedtuple("Index", ["channels", "versions", "api_version"])):
    """Root record of a repository."""

    def __new__(cls, channels=(), versions=(), api_version=API_VERSION):
        return super().__new__(cls, tuple(channels), tuple(versions), api_version)

    def channel(self, channel_id):
        """Return the channel with `channel_id` or ``None``."""
        for channel in self.channels:
            if channel.id == channel_id:
                return channel
        return None

    def version(self, version_id):
        """Return the version summary with `version_id` or ``None``."""
        for summary in self.versions:
            if summary.id == version_id:
                return summary
        return None

    def to_dict(self):
        data = {}
        if self.api_version is not None:
            data["ApiVersion"] = self.api_version
        data["Channels"] = [channel.to_dict() for channel in self.channels]
        data["Versions"] = [summary.to_dict() for summary in self.versions]
        return data

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise IndexCorrupt("Index must be a JSON object.")
        return cls(
            [Channel.from_dict(item) for item in _field(data, "Channels", list, [])],
            [VersionSummary.from_dict(item) for item in _field(data, "Versions", list, [])],
            _field(data, "ApiVersion", int, None),
        )


class BlobMapping(namedtuple("BlobMapping", ["storage_name", "install_path", "content_hash"])):
    """Install path of an incoming file and the blob holding its content."""

    pass


_MISSING = object()


def _field(data, key, kind, default=_MISSING):
    """Return ``data[key]`` checked against `kind`, or `default` if absent."""
    if not isinstance(data, dict):
        raise IndexCorrupt("Expected a JSON object, got {0!r}.".format(data))

    if key not in data:
        if default is _MISSING:
            raise IndexCorrupt("Missing field {0!r}.".format(key))
        return default

    value = data[key]
    # null lists and unset numbers are written by other GoUpdate tools.
    if value is None and default is not _MISSING:
        return default
    # bool is an int subclass but never a valid id.
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise IndexCorrupt(
            "Field {0!r} must be of type {1}, got {2!r}.".format(key, kind.__name__, value)
        )
    return value
