# -*- coding: utf-8 -*-
"""repoman publishes versioned update repositories.

A repository is a directory holding an ``index.json`` that lists release
channels and versions, plus one ``{id}.json`` manifest per version. The
files of every version live in a separate, flat storage directory where
each distinct content is stored exactly once and served over HTTP.
"""

from .__meta__ import (
    __title__,
    __summary__,
    __url__,
    __version__,
    __author__,
    __email__,
    __license__,
)

from .errors import RepomanError
from .index import IndexStore, create_repository, make_channel, set_channel
from .models import Channel, FileInfo, FileSource, Index, Version, VersionSummary
from .publish import Publisher, PublishResult, publish
from .store import ContentStore


__all__ = (
    "Channel",
    "ContentStore",
    "FileInfo",
    "FileSource",
    "Index",
    "IndexStore",
    "Publisher",
    "PublishResult",
    "RepomanError",
    "Version",
    "VersionSummary",
    "create_repository",
    "make_channel",
    "publish",
    "set_channel",
)
