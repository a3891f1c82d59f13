"""Storage of generated SLO rules as Prometheus operator PrometheusRule objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, TextIO

import yaml

from .durations import format_duration
from .info import VERSION
from .log import Logger, NoopLogger
from .model import SLO, K8sMeta, Rule, SLORules


class StorageError(Exception):
    """Raised when SLO rules can't be stored."""


class NoSLORulesError(StorageError):
    """Raised when there are no SLO rules to store."""


@dataclass
class StorageSLO:
    """An SLO together with its generated rules."""

    slo: SLO = field(default_factory=SLO)
    rules: SLORules = field(default_factory=SLORules)


class PrometheusRulesEnsurer(Protocol):
    def ensure_prometheus_rule(self, rule: dict[str, Any]) -> None: ...


_DISCLAIMER = f"""
---
# Code generated by slorules ({VERSION}).
# DO NOT EDIT.

"""


def _rules_to_kube(rules: list[Rule]) -> list[dict[str, Any]]:
    result = []
    for rule in rules:
        item: dict[str, Any] = {}
        if rule.record:
            item["record"] = rule.record
        if rule.alert:
            item["alert"] = rule.alert
        item["expr"] = rule.expr
        if rule.for_:
            item["for"] = format_duration(rule.for_)
        if rule.labels:
            item["labels"] = dict(rule.labels)
        if rule.annotations:
            item["annotations"] = dict(rule.annotations)
        result.append(item)
    return result


def map_model_to_prometheus_operator(
    kmeta: K8sMeta, slos: list[StorageSLO]
) -> dict[str, Any]:
    """Build a PrometheusRule object (as a mapping) holding the SLO rule groups."""
    labels = {
        "app.kubernetes.io/component": "SLO",
        "app.kubernetes.io/managed-by": "sloth",
        **kmeta.labels,
    }
    metadata: dict[str, Any] = {}
    if kmeta.name:
        metadata["name"] = kmeta.name
    if kmeta.namespace:
        metadata["namespace"] = kmeta.namespace
    metadata["labels"] = labels
    if kmeta.annotations:
        metadata["annotations"] = dict(kmeta.annotations)

    if not slos:
        raise StorageError("slo rules required")

    groups = []
    for slo in slos:
        for prefix, rules in (
            ("sloth-slo-sli-recordings", slo.rules.sli_error_rec_rules),
            ("sloth-slo-meta-recordings", slo.rules.metadata_rec_rules),
            ("sloth-slo-alerts", slo.rules.alert_rules),
        ):
            if rules:
                groups.append({"name": f"{prefix}-{slo.slo.id}", "rules": _rules_to_kube(rules)})

    # Nothing to store is most likely a mistake (typos, everything disabled...).
    if not groups:
        raise NoSLORulesError("0 SLO Prometheus rules generated")

    return {
        "apiVersion": "monitoring.coreos.com/v1",
        "kind": "PrometheusRule",
        "metadata": metadata,
        "spec": {"groups": groups},
    }


def _map_or_raise(kmeta: K8sMeta, slos: list[StorageSLO]) -> dict[str, Any]:
    try:
        return map_model_to_prometheus_operator(kmeta, slos)
    except StorageError as err:
        raise type(err)(f"could not map model to Prometheus operator CR: {err}") from err


class _Dumper(yaml.SafeDumper):
    pass


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.Node:
    style = "|" if "\n" in value else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", value, style=style)


_Dumper.add_representer(str, _represent_str)


class IOWriterPrometheusOperatorYAMLRepo:
    """Writes SLO rules to a text stream as a Prometheus operator YAML object."""

    def __init__(self, writer: TextIO, logger: Logger | None = None) -> None:
        self._writer = writer
        self._logger = (logger or NoopLogger()).with_values(
            {"svc": "storage.IOWriter", "format": "k8s-prometheus-operator"}
        )

    def store_slos(self, kmeta: K8sMeta, slos: list[StorageSLO]) -> None:
        """Render the rules and write them with a generated-code header."""
        rule = _map_or_raise(kmeta, slos)
        document = {**rule, "metadata": {**rule["metadata"], "creationTimestamp": None}}
        try:
            body = yaml.dump(
                document,
                Dumper=_Dumper,
                sort_keys=True,
                default_flow_style=False,
                allow_unicode=True,
                width=2**31 - 1,
            )
        except yaml.YAMLError as err:
            raise StorageError(f"could not encode prometheus operator object: {err}") from err
        try:
            self._writer.write(_DISCLAIMER + body)
        except OSError as err:
            raise StorageError(f"could not write rules: {err}") from err


class PrometheusOperatorCRDRepo:
    """Stores SLO rules as a PrometheusRule owned by the originating object."""

    def __init__(self, ensurer: PrometheusRulesEnsurer, logger: Logger | None = None) -> None:
        self._ensurer = ensurer
        self._logger = (logger or NoopLogger()).with_values(
            {"svc": "storage.PrometheusOperatorCRDAPIServer", "format": "k8s-prometheus-operator"}
        )

    def store_slos(self, kmeta: K8sMeta, slos: list[StorageSLO]) -> None:
        """Build the PrometheusRule and hand it to the ensurer."""
        rule = _map_or_raise(kmeta, slos)
        rule["metadata"].setdefault("ownerReferences", []).append(
            {
                "apiVersion": kmeta.api_version,
                "kind": kmeta.kind,
                "name": kmeta.name,
                "uid": kmeta.uid,
            }
        )
        try:
            self._ensurer.ensure_prometheus_rule(rule)
        except Exception as err:
            raise StorageError(f"could not ensure Prometheus operator rule CR: {err}") from err