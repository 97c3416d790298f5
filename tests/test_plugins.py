"""Plugin registry, middleware and the logging plugin."""

import pytest
from pydantic import ValidationError

from smartnav import NavigationStart, Route, Router
from smartnav.plugins._base_plugin import BasePlugin


class Home:
    pass


class Admin:
    pass


def allow(route, state):
    return True


async def load_profile(route, state):
    return {"name": "ada"}


class QuietGuard:
    plugin_config = {"logging": {"before": False}}

    def can_activate(self, route, state):
        return True


class RecorderPlugin(BasePlugin):
    plugin_code = "recorder"
    plugin_description = "Records wrapped calls and events"

    def __init__(self, router, **config):
        self.calls = []
        self.decorated = []
        self.events = []
        super().__init__(router, **config)

    def on_decore(self, router, func, entry):
        self.decorated.append(entry.name)

    def wrap_handler(self, router, entry, call_next):
        def record(*args, **kwargs):
            self.calls.append(f"recorder {entry.name}")
            return call_next(*args, **kwargs)

        return record

    def on_event(self, router, event):
        self.events.append(type(event).__name__)


Router.register_plugin(RecorderPlugin)


class DummyLogger:
    def __init__(self):
        self.records = []

    def hasHandlers(self):  # noqa: N802
        return True

    def info(self, message):
        self.records.append(message)


def _routes(*guards):
    return [
        Route(path="home", component=Home),
        Route(path="admin", component=Admin, can_activate=list(guards or [allow])),
    ]


def test_register_plugin_validation():
    class NoCode(BasePlugin):
        pass

    class OtherRecorder(BasePlugin):
        plugin_code = "recorder"

    with pytest.raises(TypeError):
        Router.register_plugin(object)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        Router.register_plugin(NoCode)
    with pytest.raises(ValueError):
        Router.register_plugin(OtherRecorder)

    Router.register_plugin(OtherRecorder, name="recorder_alias")
    assert Router.available_plugins()["recorder_alias"] is OtherRecorder
    assert Router.available_plugins()["logging"].plugin_code == "logging"


def test_plug_requires_known_name():
    router = Router(_routes())
    with pytest.raises(ValueError, match="Unknown plugin"):
        router.plug("missing")
    with pytest.raises(TypeError):
        router.plug(RecorderPlugin)  # type: ignore[arg-type]
    with pytest.raises(AttributeError):
        router.recorder  # noqa: B018
    with pytest.raises(AttributeError):
        router.is_plugin_enabled("events", "recorder")


@pytest.mark.asyncio
async def test_logging_plugin_prints_calls_and_events(capsys):
    router = Router(_routes()).plug("logging", print=True)
    assert await router.navigate_by_url("/admin") is True

    out = capsys.readouterr().out
    assert "NavigationStart(id: 1, url: '/admin')" in out
    assert "can_activate:allow start" in out
    assert "can_activate:allow end (" in out
    assert " ms)" in out


@pytest.mark.asyncio
async def test_logging_plugin_uses_logger_with_handlers():
    logger = DummyLogger()
    router = Router(_routes()).plug("logging", logger=logger, events=False)
    assert await router.navigate_by_url("/admin") is True
    assert logger.records[0] == "can_activate:allow start"
    assert logger.records[1].startswith("can_activate:allow end (")
    assert len(logger.records) == 2


@pytest.mark.asyncio
async def test_logging_plugin_times_async_resolvers():
    logger = DummyLogger()
    routes = [Route(path="profile", component=Home, resolve={"profile": load_profile})]
    router = Router(routes).plug("logging", logger=logger, flags="events:off")
    assert await router.navigate_by_url("/profile") is True
    assert logger.records[0] == "resolve:load_profile start"
    assert logger.records[1].startswith("resolve:load_profile end (")
    assert router.router_state.snapshot.root.first_child.data == {"profile": {"name": "ada"}}


@pytest.mark.asyncio
async def test_entry_level_configuration():
    logger = DummyLogger()
    router = Router(_routes()).plug("logging", logger=logger, events=False)
    router.logging.configure(_target="can_activate:allow", before=False)

    assert await router.navigate_by_url("/admin") is True

    assert len(logger.records) == 1
    assert logger.records[0].startswith("can_activate:allow end")
    assert router.get_config("logging", "can_activate:allow")["before"] is False
    assert router.get_config("logging")["events"] is False


@pytest.mark.asyncio
async def test_plugin_config_on_guard_token():
    logger = DummyLogger()
    router = Router(_routes(QuietGuard())).plug("logging", logger=logger, events=False)
    assert await router.navigate_by_url("/admin") is True
    assert [record.split(" ")[1] for record in logger.records] == ["end"]


@pytest.mark.asyncio
async def test_disabling_plugin_for_an_entry():
    logger = DummyLogger()
    router = Router(_routes()).plug("logging", logger=logger)
    router.set_plugin_enabled("can_activate:allow", "logging", False)

    assert await router.navigate_by_url("/admin") is True

    assert not router.is_plugin_enabled("can_activate:allow", "logging")
    assert not any(record.startswith("can_activate") for record in logger.records)
    assert any(record.startswith("NavigationEnd") for record in logger.records)

    router.set_plugin_enabled("events", "logging", False)
    logger.records.clear()
    assert await router.navigate_by_url("/home") is True
    assert logger.records == []


def test_configure_values_are_validated():
    router = Router(_routes()).plug("logging")
    with pytest.raises(ValidationError):
        router.logging.configure(before="maybe")


@pytest.mark.asyncio
async def test_middleware_order_and_hooks():
    logger = DummyLogger()
    router = Router(_routes()).plug("logging", logger=logger, events=False).plug("recorder")
    router.recorder.calls = logger.records

    assert await router.navigate_by_url("/admin") is True

    assert logger.records[0] == "can_activate:allow start"
    assert logger.records[1] == "recorder can_activate:allow"
    assert logger.records[2].startswith("can_activate:allow end")
    assert router.recorder.decorated == ["can_activate:allow"]
    assert router.recorder.events[0] == NavigationStart.__name__
    assert router.recorder.events[-1] == "NavigationEnd"
    assert [plugin.name for plugin in router.iter_plugins()] == ["logging", "recorder"]


@pytest.mark.asyncio
async def test_late_plugin_sees_known_entries():
    router = Router(_routes())
    assert await router.navigate_by_url("/admin") is True

    router.plug("recorder")

    assert router.recorder.decorated == ["can_activate:allow"]


def test_runtime_data_round_trip():
    router = Router(_routes()).plug("recorder")
    router.set_runtime_data("can_activate:allow", "recorder", "hits", 3)
    assert router.get_runtime_data("can_activate:allow", "recorder", "hits") == 3
    assert router.get_runtime_data("can_activate:allow", "recorder", "missing", "x") == "x"
