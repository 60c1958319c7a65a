import sys
from contextlib import contextmanager

import pytest
import sentry_sdk
from loguru import logger

from jobmirror.config.settings import settings
from jobmirror.utils import setup_logger


class RecordingScope:
    def __init__(self):
        self.tags: dict[str, str] = {}
        self.extras: dict[str, object] = {}

    def set_tag(self, key, value):
        self.tags[key] = value

    def set_extra(self, key, value):
        self.extras[key] = value


@pytest.fixture
def sentry_calls(monkeypatch):
    calls = []

    @contextmanager
    def new_scope():
        yield RecordingScope()

    monkeypatch.setattr(settings, "sentry_dsn", "https://public@sentry.test/1")
    monkeypatch.setattr(sentry_sdk, "init", lambda **kwargs: None)
    monkeypatch.setattr(sentry_sdk, "new_scope", new_scope)
    monkeypatch.setattr(
        sentry_sdk, "capture_message",
        lambda message, level, scope: calls.append((message, level, scope.tags)),
    )
    monkeypatch.setattr(sentry_sdk, "capture_exception", lambda exc: calls.append(("exception", exc, {})))
    yield calls
    logger.remove()
    logger.add(sys.stderr)


@pytest.mark.parametrize("bound,expected", [
    ({"component": "sync"}, "sync"),
    ({"component": "details"}, "details"),
    ({}, "jobmirror"),
])
def test_sentry_sink_tags_error_with_component(sentry_calls, bound, expected):
    setup_logger("INFO")

    with logger.contextualize(**bound):
        logger.error("Sync run 7 failed: alljobs fetch failed: 502")

    assert sentry_calls == [("Sync run 7 failed: alljobs fetch failed: 502", "error", {"component": expected})]


def test_sentry_sink_ignores_warnings(sentry_calls):
    setup_logger("INFO")

    logger.warning("Catalog reported 50 jobs but 3 pages held 45")

    assert sentry_calls == []


def test_sentry_sink_forwards_exceptions(sentry_calls):
    setup_logger("INFO")
    error = ValueError("bad page")

    try:
        raise error
    except ValueError:
        logger.exception("jobmirror failed")

    assert sentry_calls == [("exception", error, {})]
