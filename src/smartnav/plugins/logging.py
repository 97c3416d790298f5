"""Logging plugin (source of truth).

Traces a navigation as it runs: every published event and every guard or
resolver call, the latter with its duration.

Messages
--------
- events: ``str(event)``, e.g. ``NavigationStart(id: 1, url: '/admin')``
- before a call: ``"<entry name> start"``
- after a call: ``"<entry name> end (<ms> ms)"``, two decimals. When the call
  returns an awaitable, the wrapper awaits it so the time covers the whole
  guard or resolver.

Options
-------
``enabled`` (True), ``events`` (True), ``before`` (True), ``after`` (True),
``log`` (True), ``print`` (False). Pass them to ``router.plug("logging", ...)``
or ``router.logging.configure(...)``, as keywords or as a ``flags`` string
(``"before:off,print"``). Per-entry overrides use the entry name as target,
``router.logging.configure(_target="can_activate:AuthGuard", after=False)``,
or a ``plugin_config = {"logging": {...}}`` attribute on the guard itself.

Sink selection: ``print`` wins; otherwise ``log`` sends the message to the
logger (``logging.getLogger("smartnav")`` unless ``logger=`` is given) when
it has handlers anywhere up its hierarchy, and to stdout when it has none.

The class registers itself as ``"logging"`` when the module is imported.
"""

from __future__ import annotations

import inspect
import logging
import time
from typing import Any, Callable, Dict, Optional

from smartnav.core.router import Router
from smartnav.plugins._base_plugin import BasePlugin, CapabilityEntry, parse_flags

_DEFAULTS: Dict[str, bool] = {
    "enabled": True,
    "events": True,
    "before": True,
    "after": True,
    "log": True,
    "print": False,
}


class LoggingPlugin(BasePlugin):
    plugin_code = "logging"
    plugin_description = "Traces navigation events and timed guard/resolver calls"

    __slots__ = ("_logger",)

    def __init__(self, router, *, logger: Optional[logging.Logger] = None, **config):
        self._logger = logger or logging.getLogger("smartnav")
        super().__init__(router, **config)

    def configure(
        self,
        enabled: bool = True,
        events: bool = True,
        before: bool = True,
        after: bool = True,
        log: bool = True,
        print: bool = False,  # noqa: A002
    ):
        """Options are stored by the BasePlugin wrapper."""

    def settings(self, entry_name: Optional[str] = None) -> Dict[str, bool]:
        """Effective switches for ``entry_name`` (router-wide when None)."""
        merged = {**_DEFAULTS, **self.configuration(entry_name)}
        flags = merged.pop("flags", None)
        if isinstance(flags, str):
            merged.update(parse_flags(flags))
        return {
            key: default if merged.get(key) is None else bool(merged[key])
            for key, default in _DEFAULTS.items()
        }

    def _write(self, message: str, settings: Dict[str, bool]) -> None:
        if settings["print"]:
            print(message)
        elif settings["log"]:
            if self._logger.hasHandlers():
                self._logger.info(message)
            else:
                print(message)

    def on_event(self, router: Any, event: Any) -> None:
        settings = self.settings()
        if settings["enabled"] and settings["events"]:
            self._write(str(event), settings)

    def wrap_handler(self, router: Any, entry: CapabilityEntry, call_next: Callable) -> Callable:
        def timed(*args, **kwargs):
            settings = self.settings(entry.name)
            if not settings["enabled"]:
                return call_next(*args, **kwargs)
            if settings["before"]:
                self._write(f"{entry.name} start", settings)
            started = time.perf_counter()
            result = call_next(*args, **kwargs)
            if inspect.isawaitable(result):
                return self._timed_await(entry, result, started, settings)
            self._finished(entry, started, settings)
            return result

        return timed

    async def _timed_await(
        self, entry: CapabilityEntry, pending: Any, started: float, settings: Dict[str, bool]
    ) -> Any:
        result = await pending
        self._finished(entry, started, settings)
        return result

    def _finished(self, entry: CapabilityEntry, started: float, settings: Dict[str, bool]) -> None:
        if settings["after"]:
            elapsed = (time.perf_counter() - started) * 1000
            self._write(f"{entry.name} end ({elapsed:.2f} ms)", settings)


Router.register_plugin(LoggingPlugin)
