import logging

from slorules.log import NoopLogger, StdLogger, bind_values, current_values

LOGGER_NAME = "slorules.testlog"


def _std(values=None):
    return StdLogger(logging.getLogger(LOGGER_NAME), values)


def test_std_logger_formats_args_and_fields(caplog):
    logger = _std({"svc": "alpha"})
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        logger.info("loaded %d windows", 2)
    assert caplog.records[-1].getMessage() == "loaded 2 windows svc=alpha"


def test_with_values_does_not_mutate_parent(caplog):
    parent = _std({"svc": "alpha"})
    child = parent.with_values({"extra": "beta"})
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        child.info("child")
        parent.info("parent")
    child_msg, parent_msg = (r.getMessage() for r in caplog.records[-2:])
    assert "extra=beta" in child_msg and "svc=alpha" in child_msg
    assert "extra=beta" not in parent_msg
    assert parent.values == {"svc": "alpha"}


def test_levels_are_respected(caplog):
    logger = _std()
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        logger.debug("hidden")
        logger.warning("warned")
        logger.error("failed")
    levels = [r.levelno for r in caplog.records]
    assert levels == [logging.WARNING, logging.ERROR]


def test_bind_values_nesting_and_reset():
    assert current_values() == {}
    with bind_values({"ns": "a"}):
        assert current_values() == {"ns": "a"}
        with bind_values({"name": "b", "ns": "c"}):
            assert current_values() == {"ns": "c", "name": "b"}
        assert current_values() == {"ns": "a"}
    assert current_values() == {}


def test_with_ctx_values_uses_bound_values(caplog):
    logger = _std()
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        with bind_values({"ns": "team"}):
            logger.with_ctx_values().info("hello")
        logger.with_ctx_values().info("outside")
    inside, outside = (r.getMessage() for r in caplog.records[-2:])
    assert "ns=team" in inside
    assert "ns=team" not in outside


def test_noop_logger_returns_itself():
    noop = NoopLogger()
    assert noop.with_values({"a": 1}) is noop
    assert noop.with_ctx_values() is noop