"""Multiwindow, multi-burn-rate SLO alert generation and alert window catalogs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import yaml

from .durations import DurationError, go_duration_string, parse_duration
from .log import Logger, NoopLogger

API_VERSION = "sloth.slok.dev/v1"
KIND = "AlertWindows"

_HOUR_NS = 3600 * 1_000_000_000


class AlertWindowsError(Exception):
    """Raised when alert windows can't be loaded, validated or found."""


class Severity(Enum):
    """Alert severity."""

    UNKNOWN = 0
    PAGE = 1
    TICKET = 2

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class MWMBAlert:
    """A multiwindow, multi-burn rate alert."""

    id: str
    short_window: timedelta
    long_window: timedelta
    burn_rate_factor: float
    error_budget: float
    severity: Severity


@dataclass(frozen=True)
class MWMBAlertGroup:
    """All the alerts of an SLO: quick and slow page alerts, quick and slow ticket alerts."""

    page_quick: MWMBAlert
    page_slow: MWMBAlert
    ticket_quick: MWMBAlert
    ticket_slow: MWMBAlert


@dataclass(frozen=True)
class SLO:
    """The SLO data needed to generate alerts."""

    id: str
    time_window: timedelta
    objective: float


def _hours(value: timedelta) -> float:
    nanos = (value // timedelta(microseconds=1)) * 1000
    hours, rem = divmod(nanos, _HOUR_NS)
    return hours + rem / _HOUR_NS


@dataclass(frozen=True)
class Window:
    """One alerting window: budget percent consumed over the full period, and windows."""

    error_budget_percent: float = 0.0
    short_window: timedelta = timedelta(0)
    long_window: timedelta = timedelta(0)

    def validate(self) -> None:
        """Raise AlertWindowsError if a required value is missing."""
        if not self.long_window:
            raise AlertWindowsError("long window is required")
        if not self.short_window:
            raise AlertWindowsError("short window is required")
        if self.error_budget_percent == 0:
            raise AlertWindowsError("error budget is required")


@dataclass(frozen=True)
class Windows:
    """Alerting windows for an SLO period, by severity and speed."""

    slo_period: timedelta = timedelta(0)
    page_quick: Window = Window()
    page_slow: Window = Window()
    ticket_quick: Window = Window()
    ticket_slow: Window = Window()

    def validate(self) -> None:
        """Raise AlertWindowsError if the windows are incomplete."""
        if not self.slo_period:
            raise AlertWindowsError("slo period is required")
        for label, window in (
            ("page quick", self.page_quick),
            ("page slow", self.page_slow),
            ("ticket quick", self.ticket_quick),
            ("ticket slow", self.ticket_slow),
        ):
            try:
                window.validate()
            except AlertWindowsError as err:
                raise AlertWindowsError(f"invalid {label}: {err}") from err

    def _burn_rate_factor(self, window: Window) -> float:
        # Hours needed to consume the budget share over the full period, then the
        # speed needed to consume it within the long window instead.
        hours_required = window.error_budget_percent * _hours(self.slo_period) / 100
        return hours_required / _hours(window.long_window)

    def speed_page_quick(self) -> float:
        return self._burn_rate_factor(self.page_quick)

    def speed_page_slow(self) -> float:
        return self._burn_rate_factor(self.page_slow)

    def speed_ticket_quick(self) -> float:
        return self._burn_rate_factor(self.ticket_quick)

    def speed_ticket_slow(self) -> float:
        return self._burn_rate_factor(self.ticket_slow)


def _mapping(value: Any) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise AlertWindowsError(
            f"could not unmarshall YAML spec correctly: expected a mapping, got {value!r}"
        )
    return value


def _duration(value: Any) -> timedelta:
    if value is None:
        return timedelta(0)
    return parse_duration(str(value))


def _window(spec: Mapping[str, Any], severity: str, speed: str) -> Window:
    data = _mapping(_mapping(spec.get(severity)).get(speed))
    percent = data.get("errorBudgetPercent", 0)
    if isinstance(percent, bool):
        raise ValueError(f"invalid error budget percent: {percent!r}")
    return Window(
        error_budget_percent=float(percent or 0),
        short_window=_duration(data.get("shortWindow")),
        long_window=_duration(data.get("longWindow")),
    )


def load_windows(data: bytes | str) -> Windows:
    """Load and validate alert windows from an AlertWindows YAML document."""
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    if not data:
        raise AlertWindowsError("spec is required")

    try:
        doc = _mapping(yaml.safe_load(data))
        spec = _mapping(doc.get("spec"))
        windows = Windows(
            slo_period=_duration(spec.get("sloPeriod")),
            page_quick=_window(spec, "page", "quick"),
            page_slow=_window(spec, "page", "slow"),
            ticket_quick=_window(spec, "ticket", "quick"),
            ticket_slow=_window(spec, "ticket", "slow"),
        )
    except (yaml.YAMLError, DurationError, TypeError, ValueError) as err:
        raise AlertWindowsError(f"could not unmarshall YAML spec correctly: {err}") from err

    if doc.get("apiVersion") != API_VERSION or doc.get("kind") != KIND:
        raise AlertWindowsError("invalid spec version")

    try:
        windows.validate()
    except AlertWindowsError as err:
        raise AlertWindowsError(f"invalid alerting window: {err}") from err
    return windows


def _default_windows(period: timedelta) -> Windows:
    # Google SRE workbook defaults: 2% / 5% page, 10% / 10% ticket.
    return Windows(
        slo_period=period,
        page_quick=Window(2.0, timedelta(minutes=5), timedelta(hours=1)),
        page_slow=Window(5.0, timedelta(minutes=30), timedelta(hours=6)),
        ticket_quick=Window(10.0, timedelta(hours=2), timedelta(days=1)),
        ticket_slow=Window(10.0, timedelta(hours=6), timedelta(days=3)),
    )


_DEFAULT_PERIODS = (timedelta(days=28), timedelta(days=30))


class WindowsRepo:
    """Catalog of alert windows by SLO period, loaded from a directory or defaults."""

    def __init__(self, directory: str | Path | None = None, logger: Logger | None = None) -> None:
        self._logger = (logger or NoopLogger()).with_values({"svc": "alert.WindowsRepo"})
        self._windows: dict[timedelta, Windows] = {}

        if directory is None:
            for period in _DEFAULT_PERIODS:
                self._windows[period] = _default_windows(period)
        else:
            self._logger.info("Using custom slo period windows catalog")
            try:
                self._load(Path(directory))
            except AlertWindowsError as err:
                raise AlertWindowsError(f"could not initialize custom windows: {err}") from err

        self._logger.with_values({"windows": len(self._windows)}).info("SLO period windows loaded")

    def _load(self, directory: Path) -> None:
        if not directory.is_dir():
            raise AlertWindowsError(
                f"could not discover period windows: {str(directory)!r} is not a directory"
            )
        for path in sorted(directory.rglob("*")):
            if not path.is_file() or path.suffix not in (".yaml", ".yml"):
                continue
            try:
                self._load_file(path)
            except AlertWindowsError as err:
                raise AlertWindowsError(f"could not discover period windows: {err}") from err

    def _load_file(self, path: Path) -> None:
        try:
            data = path.read_bytes()
        except OSError as err:
            raise AlertWindowsError(
                f"could not read {str(path)!r} alert windows data from file: {err}"
            ) from err
        try:
            windows = load_windows(data)
        except AlertWindowsError as err:
            raise AlertWindowsError(f"could not load {str(path)!r} alert windows: {err}") from err

        period = windows.slo_period
        stored = self._windows.get(period)
        if stored is not None:
            period_text = go_duration_string(period)
            if stored != windows:
                raise AlertWindowsError(f"{period_text!r} slo period is already loaded")
            self._logger.warning(
                "Identical %r slo periods have been loaded multiple times", period_text
            )
            return
        self._windows[period] = windows

    def get_windows(self, period: timedelta) -> Windows:
        """Return the windows for an SLO period, or raise AlertWindowsError."""
        try:
            return self._windows[period]
        except KeyError:
            raise AlertWindowsError(
                f"window period {go_duration_string(period)} missing"
            ) from None


class Generator:
    """Generates the multiwindow, multi-burn rate alerts of an SLO."""

    def __init__(self, windows_repo: WindowsRepo) -> None:
        self._windows_repo = windows_repo

    def generate_mwmb_alerts(self, slo: SLO) -> MWMBAlertGroup:
        """Build the page and ticket alerts for ``slo``."""
        try:
            windows = self._windows_repo.get_windows(slo.time_window)
        except AlertWindowsError as err:
            raise AlertWindowsError(
                f"the {go_duration_string(slo.time_window)} SLO period time window is not supported"
            ) from err

        error_budget = 100 - slo.objective

        def build(suffix: str, window: Window, speed: float, severity: Severity) -> MWMBAlert:
            return MWMBAlert(
                id=f"{slo.id}-{suffix}",
                short_window=window.short_window,
                long_window=window.long_window,
                burn_rate_factor=speed,
                error_budget=error_budget,
                severity=severity,
            )

        return MWMBAlertGroup(
            page_quick=build(
                "page-quick", windows.page_quick, windows.speed_page_quick(), Severity.PAGE
            ),
            page_slow=build(
                "page-slow", windows.page_slow, windows.speed_page_slow(), Severity.PAGE
            ),
            ticket_quick=build(
                "ticket-quick", windows.ticket_quick, windows.speed_ticket_quick(), Severity.TICKET
            ),
            ticket_slow=build(
                "ticket-slow", windows.ticket_slow, windows.speed_ticket_slow(), Severity.TICKET
            ),
        )