"""Application service that generates the Prometheus rules of an SLO group."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Protocol

from .alert import SLO as AlertSLO
from .alert import MWMBAlertGroup
from .info import Info
from .log import Logger, NoopLogger
from .model import SLO, Rule, SLOGroup, SLORules, ValidationError, merge_labels


class GenerateError(Exception):
    """Raised when the SLO rules can't be generated."""


class AlertGenerator(Protocol):
    def generate_mwmb_alerts(self, slo: AlertSLO) -> MWMBAlertGroup: ...


class SLIRecordingRulesGenerator(Protocol):
    def generate_sli_recording_rules(self, slo: SLO, alerts: MWMBAlertGroup) -> list[Rule]: ...


class MetadataRecordingRulesGenerator(Protocol):
    def generate_metadata_recording_rules(
        self, info: Info, slo: SLO, alerts: MWMBAlertGroup
    ) -> list[Rule]: ...


class SLOAlertRulesGenerator(Protocol):
    def generate_slo_alert_rules(self, slo: SLO, alerts: MWMBAlertGroup) -> list[Rule]: ...


class _DisabledRulesGenerator:
    """Base for generators whose rules are disabled.

    No rules are produced; the IDs of the SLOs whose rules were skipped are
    kept in ``skipped`` in the order they were requested.
    """

    def __init__(self) -> None:
        self.skipped: list[str] = []

    def _skip(self, slo: SLO) -> list[Rule]:
        self.skipped.append(slo.id)
        rules: list[Rule] = []
        return rules


class NoopSLIRecordingRulesGenerator(_DisabledRulesGenerator):
    """SLI recording rules generator that generates nothing."""

    def generate_sli_recording_rules(self, slo: SLO, alerts: MWMBAlertGroup) -> list[Rule]:
        return self._skip(slo)


class NoopMetadataRecordingRulesGenerator(_DisabledRulesGenerator):
    """Metadata recording rules generator that generates nothing."""

    def generate_metadata_recording_rules(
        self, info: Info, slo: SLO, alerts: MWMBAlertGroup
    ) -> list[Rule]:
        return self._skip(slo)


class NoopSLOAlertRulesGenerator(_DisabledRulesGenerator):
    """SLO alert rules generator that generates nothing."""

    def generate_slo_alert_rules(self, slo: SLO, alerts: MWMBAlertGroup) -> list[Rule]:
        return self._skip(slo)


@dataclass
class Request:
    """A generation request."""

    info: Info = field(default_factory=Info)
    extra_labels: dict[str, str] = field(default_factory=dict)
    slo_group: SLOGroup = field(default_factory=SLOGroup)


@dataclass
class SLOResult:
    """The generated alerts and rules of one SLO."""

    slo: SLO
    alerts: MWMBAlertGroup
    slo_rules: SLORules


@dataclass
class Response:
    """The result of a generation request."""

    prometheus_slos: list[SLOResult] = field(default_factory=list)


class Service:
    """Generates SLO alerts and Prometheus rules for SLO groups."""

    def __init__(
        self,
        alert_generator: AlertGenerator | None = None,
        sli_recording_rules_generator: SLIRecordingRulesGenerator | None = None,
        meta_recording_rules_generator: MetadataRecordingRulesGenerator | None = None,
        slo_alert_rules_generator: SLOAlertRulesGenerator | None = None,
        logger: Logger | None = None,
    ) -> None:
        for value, what in (
            (alert_generator, "alert generator"),
            (sli_recording_rules_generator, "sli recording rules generator"),
            (meta_recording_rules_generator, "metadata recording rules generator"),
            (slo_alert_rules_generator, "slo alert rules generator"),
        ):
            if value is None:
                raise GenerateError(f"invalid configuration: {what} is required")
        self._alert_gen = alert_generator
        self._sli_rule_gen = sli_recording_rules_generator
        self._meta_rule_gen = meta_recording_rules_generator
        self._alert_rule_gen = slo_alert_rules_generator
        self._logger = (logger or NoopLogger()).with_values({"svc": "generate.prometheus.Service"})

    def generate(self, request: Request) -> Response:
        """Generate the alerts and rules of every SLO in the request."""
        try:
            request.slo_group.validate()
        except ValidationError as err:
            raise GenerateError(f"invalid SLO group: {err}") from err

        results = []
        for slo in request.slo_group.slos:
            slo = replace(slo, labels=merge_labels(slo.labels, request.extra_labels))
            try:
                results.append(self._generate_slo(request.info, slo))
            except GenerateError as err:
                raise GenerateError(f"could not generate {slo.id!r} slo: {err}") from err
        return Response(prometheus_slos=results)

    def _generate_slo(self, info: Info, slo: SLO) -> SLOResult:
        logger = self._logger.with_ctx_values().with_values({"slo": slo.id})

        try:
            alerts = self._alert_gen.generate_mwmb_alerts(
                AlertSLO(id=slo.id, time_window=slo.time_window, objective=slo.objective)
            )
        except Exception as err:
            raise GenerateError(f"could not generate SLO alerts: {err}") from err
        logger.info("Multiwindow-multiburn alerts generated")

        try:
            sli_rules = list(self._sli_rule_gen.generate_sli_recording_rules(slo, alerts) or [])
        except Exception as err:
            raise GenerateError(
                f"could not generate Prometheus sli recording rules: {err}"
            ) from err
        logger.with_values({"rules": len(sli_rules)}).info("SLI recording rules generated")

        try:
            meta_rules = list(
                self._meta_rule_gen.generate_metadata_recording_rules(info, slo, alerts) or []
            )
        except Exception as err:
            raise GenerateError(
                f"could not generate Prometheus metadata recording rules: {err}"
            ) from err
        logger.with_values({"rules": len(meta_rules)}).info("Metadata recording rules generated")

        try:
            alert_rules = list(self._alert_rule_gen.generate_slo_alert_rules(slo, alerts) or [])
        except Exception as err:
            raise GenerateError(f"could not generate Prometheus alert rules: {err}") from err
        logger.with_values({"rules": len(alert_rules)}).info("SLO alert rules generated")

        return SLOResult(
            slo=slo,
            alerts=alerts,
            slo_rules=SLORules(
                sli_error_rec_rules=sli_rules,
                metadata_rec_rules=meta_rules,
                alert_rules=alert_rules,
            ),
        )