# -*- coding: utf-8 -*-
"""Build version manifests from resolved blob mappings."""

from typing import Iterable

from .models import SOURCE_HTTP, BlobMapping, FileInfo, FileSource, Version
from .utils import ensure_trailing_slash


def build_version(version_id: int,
                  name: str,
                  mappings: Iterable[BlobMapping],
                  url_base: str) -> Version:
    """Return the :class:`Version` for `mappings`, in their order.

    Each file gets a single HTTP source pointing at its blob under
    `url_base`.
    """
    url_base = ensure_trailing_slash(url_base)

    files = [
        FileInfo(
            mapping.install_path,
            mapping.content_hash,
            (FileSource(SOURCE_HTTP, url_base + mapping.storage_name),),
        )
        for mapping in mappings
    ]

    return Version(version_id, name, files)
