# slorules

`slorules` is a library for building Prometheus service level objective (SLO)
alerting from SLO specs. It provides:

- Prometheus-style durations (`5m`, `1h`, `30d`).
- Alert window catalogs and multiwindow, multi-burn-rate alert calculation,
  split into *page* and *ticket* severities.
- An SLO model with validation.
- Loading of `PrometheusServiceLevel` (`sloth.slok.dev/v1`) YAML specs into
  that model, with SLI plugins.
- A generation service that ties alerts and rule generators together.
- Output of rules as a Prometheus operator `PrometheusRule` document.
- A reconcile handler for `PrometheusServiceLevel` objects.

The only runtime dependency is PyYAML.

## Modules

| Module | Purpose |
| --- | --- |
| `slorules.durations` | `parse_duration`, `format_duration` (`30d`, `1h30m`) and `go_duration_string` (`720h0m0s`). Bad input raises `DurationError`. |
| `slorules.alert` | `Window`, `Windows`, `load_windows`, `WindowsRepo` and the alert `Generator` producing an `MWMBAlertGroup`. |
| `slorules.model` | `SLO`, `SLOGroup`, `SLI`, `SLIEvents`, `SLIRaw`, `AlertMeta`, `Rule`, `SLORules`, `K8sMeta`, `K8sSLOGroup`, `merge_labels`. |
| `slorules.k8sspec` | `YAMLSpecLoader`, `CRSpecLoader`, `map_spec_to_model`, `SLIPlugin`. |
| `slorules.k8sstorage` | `StorageSLO`, `map_model_to_prometheus_operator`, `IOWriterPrometheusOperatorYAMLRepo`, `PrometheusOperatorCRDRepo`. |
| `slorules.generate` | `Service`, `Request`, `Response`, `SLOResult` and the no-op rule generators. |
| `slorules.handler` | `Handler` for `PrometheusServiceLevel` objects given as mappings. |
| `slorules.discovery` | `split_yaml` and `discover_slo_manifests`. |
| `slorules.availability` | An example SLI plugin, `sli_plugin`, for HTTP availability. |
| `slorules.info` | `Info` and `Mode`: metadata passed to rule generators. |
| `slorules.log` | `Logger`, `NoopLogger`, `StdLogger`, `bind_values`, `current_values`. |

## Burn-rate alerts

An SLO period is paired with a catalog of alert windows. With no directory,
`WindowsRepo` holds built-in windows for 28 and 30 day periods (2% / 5% of the
budget for page alerts, 10% / 10% for ticket alerts).

```python
from slorules.alert import Generator, SLO, WindowsRepo
from slorules.durations import parse_duration

generator = Generator(WindowsRepo())
alerts = generator.generate_mwmb_alerts(
    SLO(id="checkout-availability", time_window=parse_duration("30d"), objective=99.9)
)
print(alerts.page_quick.burn_rate_factor)   # 14.4
print(alerts.ticket_slow.burn_rate_factor)  # 1.0
```

A period that is not in the catalog raises `AlertWindowsError`.

To replace the built-in catalog, pass a directory to `WindowsRepo(directory)`.
Every `.yaml` or `.yml` file under it is loaded with `load_windows`:

```yaml
apiVersion: sloth.slok.dev/v1
kind: AlertWindows
spec:
  sloPeriod: 7d
  page:
    quick: {errorBudgetPercent: 8, shortWindow: 5m, longWindow: 1h}
    slow: {errorBudgetPercent: 12.5, shortWindow: 30m, longWindow: 6h}
  ticket:
    quick: {errorBudgetPercent: 20, shortWindow: 2h, longWindow: 1d}
    slow: {errorBudgetPercent: 42, shortWindow: 6h, longWindow: 3d}
```

If two files declare the same period with different windows, loading fails.
Identical duplicates are accepted and a warning is logged.

## Kubernetes specs

`YAMLSpecLoader(plugins_repo, window_period)` has two methods:

- `is_spec_type(data)` checks for `kind: PrometheusServiceLevel` and
  `apiVersion: sloth.slok.dev/v1` lines.
- `load_spec(data)` maps the document to a `K8sSLOGroup`.

Every SLO gets the loader's window period. The group labels are merged into
each SLO's labels. An SLO id is `<service>-<name>`.

An SLI given as `plugin: {id, options}` is resolved through the
`plugins_repo` object. It must have a `get_sli_plugin(plugin_id)` method that
returns an `SLIPlugin`. Its `func(meta, labels, options)` returns the raw
error ratio query. `meta` holds `service`, `slo` and `objective`.
`slorules.availability.sli_plugin` is one such function.

`CRSpecLoader.load_spec` does the same mapping for an object that is already
decoded into a mapping.

## Writing PrometheusRule output

```python
import sys
from slorules.k8sstorage import IOWriterPrometheusOperatorYAMLRepo, StorageSLO
from slorules.model import K8sMeta, Rule, SLO, SLORules

repo = IOWriterPrometheusOperatorYAMLRepo(sys.stdout)
repo.store_slos(
    K8sMeta(name="my-slos", namespace="monitoring"),
    [StorageSLO(
        slo=SLO(id="svc-slo"),
        rules=SLORules(sli_error_rec_rules=[Rule(record="slo:sli_error:ratio_rate5m", expr="...")]),
    )],
)
```

Each SLO gets up to three groups: `sloth-slo-sli-recordings-<id>`,
`sloth-slo-meta-recordings-<id>` and `sloth-slo-alerts-<id>`. Empty groups are
left out. If no group would be written at all, `NoSLORulesError` is raised.

`PrometheusOperatorCRDRepo(ensurer)` builds the same object. It adds an owner
reference from the `K8sMeta` and passes the object to
`ensurer.ensure_prometheus_rule(rule)`.

## Generation service and handler

`Service(alert_generator, sli_recording_rules_generator,
meta_recording_rules_generator, slo_alert_rules_generator, logger)` needs all
four generators, otherwise it raises `GenerateError`.

`Service.generate(Request(...))` does four things:

1. Validates the SLO group.
2. Merges the request's extra labels into each SLO.
3. Builds the alerts.
4. Calls the three rule generators.

`NoopSLIRecordingRulesGenerator`, `NoopMetadataRecordingRulesGenerator` and
`NoopSLOAlertRulesGenerator` produce no rules. They record the ids of the SLOs
they skipped in `skipped`.

`Handler(generator, spec_loader, repository, kube_status_storer, ...)` handles
`PrometheusServiceLevel` mappings in this order:

1. It loads the object, generates the rules and stores them.
2. It reports the outcome through
   `kube_status_storer.ensure_prometheus_service_level_status(obj, error)`.

Objects being deleted are skipped. Objects whose spec did not change, and
whose last successful generation was recent, are skipped too (default: 3
minutes). Other kinds are logged and skipped.

## What the package does not do

- It does not contain generators for the Prometheus rule expressions
  themselves (SLI error-ratio recordings, SLO metadata recordings, burn-rate
  alert expressions). Those must be supplied to `Service`.
- There is no command-line tool.
- There is no Kubernetes API client or controller loop.
- It does not write plain Prometheus rule files.
- It does not read OpenSLO specs.

## Errors

Problems are reported by raising exceptions, each from the module that raises
it:

- `DurationError`
- `AlertWindowsError`
- `ValidationError`
- `SpecError`
- `StorageError` and `NoSLORulesError`
- `GenerateError`
- `HandlerError`
- `PluginError`