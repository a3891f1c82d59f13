"""Splitting of multi-document YAML files and discovery of SLO manifests."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterator

from .log import Logger, NoopLogger

_SPLIT_MARK_RE = re.compile(r"^---", re.MULTILINE)
_COMMENTS_RE = re.compile(r"^#.*$", re.MULTILINE)

_YAML_EXTENSIONS = (".yml", ".yaml")


def split_yaml(data: bytes | str) -> list[str]:
    """Split a YAML stream into its non-empty documents, dropping comment lines."""
    text = data.decode("utf-8") if isinstance(data, bytes) else data
    text = _COMMENTS_RE.sub("", text.strip())
    documents = (part.strip() for part in _SPLIT_MARK_RE.split(text))
    return [doc for doc in documents if doc]


def _extension(path: str) -> str:
    name = os.path.basename(path)
    index = name.rfind(".")
    return name[index:] if index >= 0 else ""


def _walk(path: str) -> Iterator[str]:
    """Yield file paths under ``path`` in lexical order, depth first."""
    if not os.path.isdir(path):
        if not os.path.exists(path):
            raise FileNotFoundError(f"no such file or directory: {path!r}")
        yield path
        return
    for name in sorted(os.listdir(path)):
        yield from _walk(os.path.join(path, name))


def _compile(pattern: str | re.Pattern[str] | None) -> re.Pattern[str] | None:
    if pattern is None or isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern) if pattern else None


def discover_slo_manifests(
    path: str | Path,
    exclude: str | re.Pattern[str] | None = None,
    include: str | re.Pattern[str] | None = None,
    logger: Logger | None = None,
) -> list[str]:
    """Find YAML files under ``path``, filtered by exclude and include regexes.

    Exclude takes precedence over include. Raises OSError if the path can't be walked.
    """
    logger = (logger or NoopLogger()).with_values({"svc": "SLODiscovery"})
    exclude_re = _compile(exclude)
    include_re = _compile(include)

    paths: list[str] = []
    try:
        for file_path in _walk(str(path)):
            if _extension(file_path).lower() not in _YAML_EXTENSIONS:
                continue
            if exclude_re is not None and exclude_re.search(file_path):
                logger.debug("Excluding path due to exclude filter %s", file_path)
                continue
            if include_re is not None and not include_re.search(file_path):
                logger.debug("Excluding path due to include filter %s", file_path)
                continue
            paths.append(file_path)
    except OSError as err:
        raise OSError(f"could not find files recursively: {err}") from err
    return paths