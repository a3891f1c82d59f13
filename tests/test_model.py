from datetime import timedelta

import pytest

from slorules.model import (
    SLI,
    SLO,
    AlertMeta,
    K8sMeta,
    K8sSLOGroup,
    SLIEvents,
    SLIRaw,
    SLOGroup,
    ValidationError,
    merge_labels,
)


def good_slo(name):
    return SLO(
        id=f"{name}-id",
        name=name,
        service="test-svc",
        time_window=timedelta(days=30),
        sli=SLI(
            events=SLIEvents(
                error_query='sum(rate(grpc_server_handled_requests_count{job="myapp",code=~"Internal|Unavailable"}[{{ .window }}]))',
                total_query='sum(rate(grpc_server_handled_requests_count{job="myapp"}[{{ .window }}]))',
            )
        ),
        objective=99.99,
        labels={"owner": "myteam", "category": "test"},
        info_labels={"foo": "bar"},
        page_alert_meta=AlertMeta(
            name="testAlert",
            labels={"tier": "1", "severity": "slack", "channel": "#a-myteam"},
            annotations={"message": "This is very important.", "runbook": "http://whatever.com"},
        ),
        ticket_alert_meta=AlertMeta(
            name="testAlert",
            labels={"tier": "1", "severity": "slack", "channel": "#a-not-so-important"},
            annotations={
                "message": "This is not very important.",
                "runbook": "http://whatever.com",
            },
        ),
    )


def good_group():
    return K8sSLOGroup(
        k8s_meta=K8sMeta(
            kind="PrometheusServiceLevel",
            api_version="sloth.slok.dev/v1",
            name="test",
            namespace="test-ns",
        ),
        slo_group=SLOGroup(slos=[good_slo("slo1"), good_slo("slo2")]),
    )


def test_correct_group_validates_and_breaking_it_fails():
    group = good_group()
    assert group.validate() is None
    group.k8s_meta.kind = ""
    with pytest.raises(ValidationError):
        group.validate()


def _clear_kind(g):
    g.k8s_meta.kind = ""


def _clear_api_version(g):
    g.k8s_meta.api_version = ""


def _clear_name(g):
    g.k8s_meta.name = ""


def _clear_first_slo_id(g):
    g.slos[0].id = ""


@pytest.mark.parametrize(
    "mutate, message",
    [
        (
            _clear_kind,
            "Key: 'K8sMeta.Kind' Error:Field validation for 'Kind' failed on the 'required' tag",
        ),
        (
            _clear_api_version,
            "Key: 'K8sMeta.APIVersion' Error:Field validation for 'APIVersion' failed on the 'required' tag",
        ),
        (
            _clear_name,
            "Key: 'K8sMeta.Name' Error:Field validation for 'Name' failed on the 'required' tag",
        ),
        (
            _clear_first_slo_id,
            "Key: 'SLOGroup.SLOs[0].ID' Error:Field validation for 'ID' failed on the 'required' tag",
        ),
    ],
)
def test_validation_errors(mutate, message):
    group = good_group()
    mutate(group)
    with pytest.raises(ValidationError) as exc:
        group.validate()
    assert str(exc.value) == message


def test_empty_slo_group_fails():
    with pytest.raises(ValidationError) as exc:
        SLOGroup().validate()
    assert "'SLOs' failed on the 'required' tag" in str(exc.value)


def test_objective_over_100_fails():
    slo = good_slo("slo1")
    slo.objective = 100.5
    with pytest.raises(ValidationError) as exc:
        slo.validate()
    assert str(exc.value) == (
        "Key: 'SLO.Objective' Error:Field validation for 'Objective' failed on the 'lte' tag"
    )


def test_missing_sli_fails():
    slo = good_slo("slo1")
    slo.sli = SLI()
    with pytest.raises(ValidationError) as exc:
        slo.validate()
    assert "'SLO.SLI'" in str(exc.value)


def test_raw_sli_requires_query():
    slo = good_slo("slo1")
    slo.sli = SLI(raw=SLIRaw())
    with pytest.raises(ValidationError) as exc:
        slo.validate()
    assert "'SLO.SLI.Raw.ErrorRatioQuery'" in str(exc.value)


def test_merge_labels_later_wins_and_skips_none():
    a = {"k1": "v1", "k2": "v2"}
    result = merge_labels(a, None, {"k2": "x", "k3": "v3"})
    assert result == {"k1": "v1", "k2": "x", "k3": "v3"}
    assert a == {"k1": "v1", "k2": "v2"}
    assert merge_labels() == {}