"""Example SLI plugin: HTTP availability error ratio based on status codes."""

from __future__ import annotations

import re
from typing import Mapping

SLI_PLUGIN_VERSION = "prometheus/v1"
SLI_PLUGIN_ID = "getting_started_availability"

_FILTER_RE = re.compile(r'([^=]+="[^=,"]+",)+')

_QUERY_TEMPLATE = (
    "\n"
    "sum(rate(http_request_duration_seconds_count{{ {filter}job=\"{job}\",code=~\"(5..|429)\" }}"
    "[{{{{.window}}}}]))\n"
    "/\n"
    "sum(rate(http_request_duration_seconds_count{{ {filter}job=\"{job}\" }}[{{{{.window}}}}]))"
)


class PluginError(ValueError):
    """Raised when the plugin options or labels are not valid."""


def _validate_labels(labels: Mapping[str, str], *required: str) -> None:
    for key in required:
        if not labels.get(key):
            raise PluginError(f'"{key}" label is required')


def sli_plugin(
    meta: Mapping[str, str], labels: Mapping[str, str], options: Mapping[str, str]
) -> str:
    """Return a raw error ratio query counting 5xx and 429 responses as errors."""
    job = options.get("job")
    if job is None:
        raise PluginError("job options is required")

    try:
        _validate_labels(labels, "owner", "tier")
    except PluginError as err:
        raise PluginError(f"invalid labels: {err}") from err

    query_filter = options.get("filter", "")
    if query_filter:
        query_filter = query_filter.strip("{}").strip(",") + ","
        if not _FILTER_RE.search(query_filter):
            raise PluginError(f"invalid prometheus filter: {query_filter}")

    return _QUERY_TEMPLATE.format(filter=query_filter, job=job)