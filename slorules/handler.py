"""Controller handler that turns PrometheusServiceLevel objects into stored rules."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Protocol

from .generate import Request, Response
from .info import VERSION, Info, Mode
from .k8sspec import API_VERSION, KIND
from .k8sstorage import StorageSLO
from .log import Logger, NoopLogger, bind_values
from .model import K8sMeta, K8sSLOGroup

_DEFAULT_IGNORE_HANDLE_BEFORE = timedelta(minutes=3)


class HandlerError(Exception):
    """Raised when the handler is misconfigured or an object can't be handled."""


class SpecLoader(Protocol):
    def load_spec(self, spec: Mapping[str, Any]) -> K8sSLOGroup: ...


class RuleGenerator(Protocol):
    def generate(self, request: Request) -> Response: ...


class Repository(Protocol):
    def store_slos(self, kmeta: K8sMeta, slos: list[StorageSLO]) -> None: ...


class KubeStatusStorer(Protocol):
    def ensure_prometheus_service_level_status(
        self, slo: Mapping[str, Any], err: Exception | None
    ) -> None: ...


def _parse_time(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        moment = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


class Handler:
    """Handles PrometheusServiceLevel objects: load, generate, store, and report status."""

    def __init__(
        self,
        generator: RuleGenerator | None = None,
        spec_loader: SpecLoader | None = None,
        repository: Repository | None = None,
        kube_status_storer: KubeStatusStorer | None = None,
        extra_labels: Mapping[str, str] | None = None,
        ignore_handle_before: timedelta | None = None,
        logger: Logger | None = None,
    ) -> None:
        for value, what in (
            (generator, "generator"),
            (spec_loader, "kubernetes cr spec loader"),
            (kube_status_storer, "kubernetes status storer"),
            (repository, "repository"),
        ):
            if value is None:
                raise HandlerError(f"invalid configuration: {what} is required")
        self._generator = generator
        self._spec_loader = spec_loader
        self._repository = repository
        self._status_storer = kube_status_storer
        self._extra_labels = dict(extra_labels or {})
        self._ignore_handle_before = ignore_handle_before or _DEFAULT_IGNORE_HANDLE_BEFORE
        self._logger = (logger or NoopLogger()).with_values({"service": "kubecontroller.Handler"})

    def handle(self, obj: Any) -> None:
        """Handle a Kubernetes object; unsupported objects are logged and skipped."""
        if (
            isinstance(obj, Mapping)
            and obj.get("kind") == KIND
            and obj.get("apiVersion") == API_VERSION
        ):
            self._handle_prometheus_service_level(obj)
            return
        kind = obj.get("kind") if isinstance(obj, Mapping) else type(obj).__name__
        self._logger.warning("Unsupported Kubernetes object type: %s", kind)

    def _handle_prometheus_service_level(self, psl: Mapping[str, Any]) -> None:
        metadata = psl.get("metadata") or {}
        with bind_values({"ns": metadata.get("namespace", ""), "name": metadata.get("name", "")}):
            logger = self._logger.with_ctx_values()

            reason = self._ignore_reason(psl)
            if reason:
                logger.debug("Ignoring object due to %r", reason)
                return

            error: Exception | None = None
            try:
                self._process(psl)
            except HandlerError as err:
                error = err
                raise
            finally:
                try:
                    self._status_storer.ensure_prometheus_service_level_status(psl, error)
                except Exception as stored_err:
                    logger.error("Could not set PrometheusServiceLevel CRD status: %s", stored_err)

    def _process(self, psl: Mapping[str, Any]) -> None:
        try:
            model = self._spec_loader.load_spec(psl)
        except Exception as err:
            raise HandlerError(f"could not load CR spec into model: {err}") from err

        request = Request(
            info=Info(version=VERSION, mode=Mode.CONTROLLER_GEN_KUBERNETES, spec=API_VERSION),
            extra_labels=dict(self._extra_labels),
            slo_group=model.slo_group,
        )
        try:
            response = self._generator.generate(request)
        except Exception as err:
            raise HandlerError(f"could not generate SLOs: {err}") from err

        storage_slos = [
            StorageSLO(slo=result.slo, rules=result.slo_rules)
            for result in response.prometheus_slos
        ]
        try:
            self._repository.store_slos(model.k8s_meta, storage_slos)
        except Exception as err:
            raise HandlerError(f"could not store SLOs: {err}") from err

    def _ignore_reason(self, psl: Mapping[str, Any]) -> str:
        metadata = psl.get("metadata") or {}
        if metadata.get("deletionTimestamp"):
            return "deletion in progress"

        # A status update triggers a new event; break that loop when the spec didn't
        # change, the last run succeeded, and that success is recent.
        status = psl.get("status") or {}
        last_success = _parse_time(status.get("lastPromOpRulesSuccessfulGenerated"))
        if (
            metadata.get("generation", 0) == status.get("observedGeneration", 0)
            and status.get("promOpRulesGenerated", False)
            and last_success is not None
            and datetime.now(timezone.utc) - last_success < self._ignore_handle_before
        ):
            return "no spec change in correct state object"
        return ""