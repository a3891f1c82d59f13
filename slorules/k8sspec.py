"""Loading of Kubernetes PrometheusServiceLevel specs into the SLO model."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Mapping, Protocol

import yaml

from .model import (
    SLI,
    SLO,
    AlertMeta,
    K8sMeta,
    K8sSLOGroup,
    SLIEvents,
    SLIRaw,
    SLOGroup,
    merge_labels,
)

API_VERSION = "sloth.slok.dev/v1"
KIND = "PrometheusServiceLevel"

SLI_PLUGIN_META_SERVICE = "service"
SLI_PLUGIN_META_SLO = "slo"
SLI_PLUGIN_META_OBJECTIVE = "objective"

_KIND_RE = re.compile(r"""^kind: +['"]?PrometheusServiceLevel['"]? *$""", re.MULTILINE)
_API_VERSION_RE = re.compile(r"""^apiVersion: +['"]?sloth.slok.dev/v1['"]? *$""", re.MULTILINE)


class SpecError(ValueError):
    """Raised when a spec can't be loaded or mapped to the model."""


@dataclass(frozen=True)
class SLIPlugin:
    """An SLI plugin: ``func(meta, labels, options)`` returns a raw error ratio query."""

    id: str
    func: Callable[[dict[str, str], dict[str, str], dict[str, str]], str]


class SLIPluginRepo(Protocol):
    def get_sli_plugin(self, plugin_id: str) -> SLIPlugin: ...


def _text(data: bytes | str) -> str:
    return data.decode("utf-8") if isinstance(data, bytes) else data


def _mapping(value: Any, where: str) -> Mapping[Any, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SpecError(f"{where}: expected an object, got {value!r}")
    return value


def _string(value: Any, where: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise SpecError(f"{where}: expected a string, got {value!r}")
    return value


def _string_map(value: Any, where: str) -> dict[str, str]:
    return {
        str(k): _string(v, f"{where}.{k}") for k, v in _mapping(value, where).items()
    }


def _number(value: Any, where: str) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SpecError(f"{where}: expected a number, got {value!r}")
    return float(value)


def _boolean(value: Any, where: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise SpecError(f"{where}: expected a boolean, got {value!r}")
    return value


def _list(value: Any, where: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise SpecError(f"{where}: expected a list, got {value!r}")
    return value


def _alert_meta(alerting: Mapping[Any, Any], key: str) -> AlertMeta:
    alert = _mapping(alerting.get(key), f"alerting.{key}")
    if _boolean(alert.get("disable"), f"alerting.{key}.disable"):
        return AlertMeta(disable=True)
    return AlertMeta(
        name=_string(alerting.get("name"), "alerting.name"),
        labels=merge_labels(
            _string_map(alerting.get("labels"), "alerting.labels"),
            _string_map(alert.get("labels"), f"alerting.{key}.labels"),
        ),
        annotations=merge_labels(
            _string_map(alerting.get("annotations"), "alerting.annotations"),
            _string_map(alert.get("annotations"), f"alerting.{key}.annotations"),
        ),
    )


def _map_slo(
    spec_slo: Mapping[Any, Any],
    service: str,
    group_labels: dict[str, str],
    default_window_period: timedelta,
    plugins_repo: SLIPluginRepo,
) -> SLO:
    name = _string(spec_slo.get("name"), "slo.name")
    objective = _number(spec_slo.get("objective"), "slo.objective")
    slo = SLO(
        id=f"{service}-{name}",
        name=name,
        description=_string(spec_slo.get("description"), "slo.description"),
        service=service,
        time_window=default_window_period,
        objective=objective,
        labels=merge_labels(group_labels, _string_map(spec_slo.get("labels"), "slo.labels")),
        info_labels=_string_map(spec_slo.get("infoLabels"), "slo.infoLabels"),
        page_alert_meta=AlertMeta(disable=True),
        ticket_alert_meta=AlertMeta(disable=True),
    )

    sli = _mapping(spec_slo.get("sli"), "slo.sli")
    events = sli.get("events")
    if events is not None:
        events = _mapping(events, "sli.events")
        slo.sli.events = SLIEvents(
            error_query=_string(events.get("errorQuery"), "sli.events.errorQuery"),
            total_query=_string(events.get("totalQuery"), "sli.events.totalQuery"),
        )
    raw = sli.get("raw")
    if raw is not None:
        raw = _mapping(raw, "sli.raw")
        slo.sli.raw = SLIRaw(
            error_ratio_query=_string(raw.get("errorRatioQuery"), "sli.raw.errorRatioQuery")
        )
    plugin_spec = sli.get("plugin")
    if plugin_spec is not None:
        plugin_spec = _mapping(plugin_spec, "sli.plugin")
        plugin_id = _string(plugin_spec.get("id"), "sli.plugin.id")
        options = _string_map(plugin_spec.get("options"), "sli.plugin.options")
        try:
            plugin = plugins_repo.get_sli_plugin(plugin_id)
        except Exception as err:
            raise SpecError(f"could not get plugin: {err}") from err
        meta = {
            SLI_PLUGIN_META_SERVICE: service,
            SLI_PLUGIN_META_SLO: name,
            SLI_PLUGIN_META_OBJECTIVE: f"{objective:f}",
        }
        try:
            raw_query = plugin.func(meta, dict(group_labels), options)
        except Exception as err:
            raise SpecError(f"plugin {plugin_id!r} execution error: {err}") from err
        slo.sli = SLI(events=slo.sli.events, raw=SLIRaw(error_ratio_query=raw_query))

    alerting = _mapping(spec_slo.get("alerting"), "slo.alerting")
    slo.page_alert_meta = _alert_meta(alerting, "pageAlert")
    slo.ticket_alert_meta = _alert_meta(alerting, "ticketAlert")
    return slo


def map_spec_to_model(
    default_window_period: timedelta,
    plugins_repo: SLIPluginRepo,
    kspec: Mapping[str, Any],
) -> K8sSLOGroup:
    """Map a PrometheusServiceLevel object (as a mapping) to the SLO model."""
    metadata = _mapping(kspec.get("metadata"), "metadata")
    spec = _mapping(kspec.get("spec"), "spec")
    service = _string(spec.get("service"), "spec.service")
    group_labels = _string_map(spec.get("labels"), "spec.labels")

    slos = [
        _map_slo(
            _mapping(spec_slo, "spec.slos[]"),
            service,
            group_labels,
            default_window_period,
            plugins_repo,
        )
        for spec_slo in _list(spec.get("slos"), "spec.slos")
    ]

    return K8sSLOGroup(
        k8s_meta=K8sMeta(
            kind=KIND,
            api_version=API_VERSION,
            uid=_string(metadata.get("uid"), "metadata.uid"),
            name=_string(metadata.get("name"), "metadata.name"),
            namespace=_string(metadata.get("namespace"), "metadata.namespace"),
            labels=_string_map(metadata.get("labels"), "metadata.labels"),
            annotations=_string_map(metadata.get("annotations"), "metadata.annotations"),
        ),
        slo_group=SLOGroup(slos=slos),
    )


class YAMLSpecLoader:
    """Loads PrometheusServiceLevel YAML specs into the model."""

    def __init__(self, plugins_repo: SLIPluginRepo, window_period: timedelta) -> None:
        self._plugins_repo = plugins_repo
        self._window_period = window_period

    def is_spec_type(self, data: bytes | str) -> bool:
        """Tell whether the document looks like a PrometheusServiceLevel spec."""
        text = _text(data)
        return bool(_KIND_RE.search(text)) and bool(_API_VERSION_RE.search(text))

    def load_spec(self, data: bytes | str) -> K8sSLOGroup:
        """Decode a YAML spec and map it to the model."""
        text = _text(data)
        if not text:
            raise SpecError("spec is required")

        try:
            obj = yaml.safe_load(text)
        except yaml.YAMLError as err:
            raise SpecError(f"could not decode kubernetes object: {err}") from err
        if not isinstance(obj, Mapping):
            raise SpecError("could not decode kubernetes object: not an object")
        api_version, kind = obj.get("apiVersion"), obj.get("kind")
        if not api_version or not kind:
            raise SpecError("could not decode kubernetes object: kind or apiVersion missing")
        if api_version != API_VERSION or kind != KIND:
            raise SpecError(
                f"could not decode kubernetes object: no kind {kind!r} is registered "
                f"for version {api_version!r}"
            )

        try:
            slos = _list(_mapping(obj.get("spec"), "spec").get("slos"), "spec.slos")
        except SpecError as err:
            raise SpecError(f"could not decode kubernetes object: {err}") from err
        if not slos:
            raise SpecError("at least one SLO is required")

        try:
            return map_spec_to_model(self._window_period, self._plugins_repo, obj)
        except SpecError as err:
            raise SpecError(f"could not map to model: {err}") from err


class CRSpecLoader:
    """Loads already decoded PrometheusServiceLevel objects into the model."""

    def __init__(self, plugins_repo: SLIPluginRepo, window_period: timedelta) -> None:
        self._plugins_repo = plugins_repo
        self._window_period = window_period

    def load_spec(self, spec: Mapping[str, Any]) -> K8sSLOGroup:
        """Map a PrometheusServiceLevel object to the model."""
        return map_spec_to_model(self._window_period, self._plugins_repo, spec)