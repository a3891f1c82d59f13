"""SLO domain model, Kubernetes metadata, and their validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Mapping


class ValidationError(ValueError):
    """Raised when a model fails validation."""


def _field_error(key: str, field_name: str, tag: str) -> str:
    return f"Key: '{key}' Error:Field validation for '{field_name}' failed on the '{tag}' tag"


def merge_labels(*args: Mapping[str, str] | None) -> dict[str, str]:
    """Merge label mappings into a new dict; later mappings take precedence."""
    result: dict[str, str] = {}
    for labels in args:
        if labels:
            result.update(labels)
    return result


@dataclass
class SLIEvents:
    """SLI based on error and total event queries."""

    error_query: str = ""
    total_query: str = ""


@dataclass
class SLIRaw:
    """SLI based on a raw error ratio query."""

    error_ratio_query: str = ""


@dataclass
class SLI:
    """The service level indicator of an SLO; one of its kinds is set."""

    events: SLIEvents | None = None
    raw: SLIRaw | None = None


@dataclass
class AlertMeta:
    """Metadata of an SLO alert."""

    disable: bool = False
    name: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass
class SLO:
    """A Prometheus based SLO."""

    id: str = ""
    name: str = ""
    description: str = ""
    service: str = ""
    sli: SLI = field(default_factory=SLI)
    time_window: timedelta = timedelta(0)
    objective: float = 0.0
    labels: dict[str, str] = field(default_factory=dict)
    info_labels: dict[str, str] = field(default_factory=dict)
    page_alert_meta: AlertMeta = field(default_factory=AlertMeta)
    ticket_alert_meta: AlertMeta = field(default_factory=AlertMeta)

    def _errors(self, namespace: str) -> list[str]:
        errors: list[str] = []

        def required(name: str, value: object, key: str | None = None) -> None:
            if not value:
                errors.append(_field_error(key or f"{namespace}.{name}", name, "required"))

        required("ID", self.id)
        required("Name", self.name)
        required("Service", self.service)

        if self.sli.events is None and self.sli.raw is None:
            required("SLI", None)
        if self.sli.events is not None:
            prefix = f"{namespace}.SLI.Events"
            required("ErrorQuery", self.sli.events.error_query, f"{prefix}.ErrorQuery")
            required("TotalQuery", self.sli.events.total_query, f"{prefix}.TotalQuery")
        if self.sli.raw is not None:
            required(
                "ErrorRatioQuery",
                self.sli.raw.error_ratio_query,
                f"{namespace}.SLI.Raw.ErrorRatioQuery",
            )

        required("TimeWindow", self.time_window)

        if not self.objective > 0:
            errors.append(_field_error(f"{namespace}.Objective", "Objective", "gt"))
        elif self.objective > 100:
            errors.append(_field_error(f"{namespace}.Objective", "Objective", "lte"))

        return errors

    def validate(self) -> None:
        """Raise ValidationError if the SLO is not valid."""
        errors = self._errors("SLO")
        if errors:
            raise ValidationError("\n".join(errors))


@dataclass
class SLOGroup:
    """A group of SLOs."""

    slos: list[SLO] = field(default_factory=list)

    def validate(self) -> None:
        """Raise ValidationError if the group or any of its SLOs is not valid."""
        if not self.slos:
            raise ValidationError(_field_error("SLOGroup.SLOs", "SLOs", "required"))
        errors: list[str] = []
        for index, slo in enumerate(self.slos):
            errors.extend(slo._errors(f"SLOGroup.SLOs[{index}]"))
        if errors:
            raise ValidationError("\n".join(errors))


@dataclass
class Rule:
    """A Prometheus recording or alerting rule."""

    record: str = ""
    alert: str = ""
    expr: str = ""
    for_: timedelta = timedelta(0)
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass
class SLORules:
    """The Prometheus rules generated for an SLO."""

    sli_error_rec_rules: list[Rule] = field(default_factory=list)
    metadata_rec_rules: list[Rule] = field(default_factory=list)
    alert_rules: list[Rule] = field(default_factory=list)


@dataclass
class K8sMeta:
    """Simplified Kubernetes object metadata."""

    kind: str = ""
    api_version: str = ""
    name: str = ""
    uid: str = ""
    namespace: str = ""
    annotations: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)

    def _errors(self, namespace: str) -> list[str]:
        return [
            _field_error(f"{namespace}.{name}", name, "required")
            for name, value in (
                ("Kind", self.kind),
                ("APIVersion", self.api_version),
                ("Name", self.name),
            )
            if not value
        ]

    def validate(self) -> None:
        """Raise ValidationError if a required field is missing."""
        errors = self._errors("K8sMeta")
        if errors:
            raise ValidationError("\n".join(errors))


@dataclass
class K8sSLOGroup:
    """An SLO group together with the Kubernetes metadata it came from."""

    k8s_meta: K8sMeta = field(default_factory=K8sMeta)
    slo_group: SLOGroup = field(default_factory=SLOGroup)

    @property
    def slos(self) -> list[SLO]:
        """The SLOs of the group."""
        return self.slo_group.slos

    def validate(self) -> None:
        """Validate the Kubernetes metadata, then the SLO group."""
        self.k8s_meta.validate()
        self.slo_group.validate()