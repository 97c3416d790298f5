"""Plugin contract for the navigation router (source of truth).

``CapabilityEntry``
    What plugins see of one guard or resolver. The router builds it the first
    time it resolves a ``(kind, token)`` pair and rebuilds it when the token
    starts resolving to another callable.

    - ``name``: ``"<kind>:<token name>"``, e.g. ``"resolve:load_user"``
    - ``kind``: ``can_activate``, ``can_activate_child``, ``can_deactivate``
      or ``resolve``
    - ``func``: the callable the router will invoke
    - ``router``: owning router
    - ``plugins``: names of the plugins that decorated the entry, in order
    - ``metadata``: ``token`` plus an optional ``plugin_config`` copied from
      the token (``{"logging": {"before": False}}``)

``BasePlugin``
    Subclasses set ``plugin_code`` and ``plugin_description`` and declare
    their options as the keyword arguments of ``configure``. Declaring
    ``configure`` is enough: ``__init_subclass__`` replaces it with a wrapper
    that

    - expands a ``flags`` string (``"before:off,print"``) into booleans,
    - writes to the bucket named by ``_target`` (``"--base--"`` by default,
      any capability entry name, or several names separated by commas),
    - validates the values against the declared signature with
      ``pydantic.validate_call`` before storing them.

    The body of ``configure`` is never needed for storage.

    ``configuration(entry_name=None)`` merges the router-wide bucket with the
    entry bucket. The store itself lives on the router (``_plugin_info``), so
    one plugin class serves any number of routers.

    Hooks, all optional: ``on_decore(router, func, entry)``,
    ``wrap_handler(router, entry, call_next)`` returning a callable with the
    same signature, ``on_event(router, event)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from pydantic import validate_call

__all__ = ["BasePlugin", "CapabilityEntry", "parse_flags"]

BASE_TARGET = "--base--"


@dataclass
class CapabilityEntry:
    name: str
    kind: str
    func: Callable
    router: Any
    plugins: List[str]
    metadata: Dict[str, Any] = field(default_factory=dict)


def parse_flags(flags: str) -> Dict[str, bool]:
    """``"enabled,after:off"`` -> ``{"enabled": True, "after": False}``."""
    parsed: Dict[str, bool] = {}
    for item in (part.strip() for part in flags.split(",")):
        if not item:
            continue
        key, _, value = item.partition(":")
        parsed[key.strip()] = value.strip().lower() != "off"
    return parsed


def _targets(target: str) -> Iterator[str]:
    for name in target.split(","):
        name = name.strip()
        if name:
            yield name


def _storing_configure(declared: Callable) -> Callable:
    check = validate_call(declared)

    def configure(
        self: "BasePlugin", *, _target: str = BASE_TARGET, flags: Optional[str] = None, **options: Any
    ) -> None:
        if flags:
            options.update(parse_flags(flags))
        check(self, **options)
        for target in _targets(_target):
            self._write_config(target, options)

    configure.__doc__ = declared.__doc__
    return configure


class BasePlugin:
    __slots__ = ("name", "_router")

    plugin_code: str = ""
    plugin_description: str = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        declared = cls.__dict__.get("configure")
        if declared is not None:
            cls.configure = _storing_configure(declared)

    def __init__(self, router: Any, **config: Any):
        self.name = self.plugin_code
        self._router = router
        self._get_store().setdefault(self.name, {}).setdefault(
            BASE_TARGET, {"config": {"enabled": True}, "locals": {}}
        )
        self.configure(**config)

    def configure(self, *, _target: str = BASE_TARGET, flags: Optional[str] = None) -> None:
        if flags:
            for target in _targets(_target):
                self._write_config(target, parse_flags(flags))

    def _write_config(self, target: str, config: Dict[str, Any]) -> None:
        if config:
            buckets = self._get_store().setdefault(self.name, {})
            buckets.setdefault(target, {"config": {}, "locals": {}})["config"].update(config)

    def configuration(self, entry_name: Optional[str] = None) -> Dict[str, Any]:
        buckets = self._get_store().get(self.name) or {}
        merged = dict(buckets.get(BASE_TARGET, {}).get("config") or {})
        if entry_name:
            merged.update(buckets.get(entry_name, {}).get("config") or {})
        return merged

    def on_decore(self, router: Any, func: Callable, entry: CapabilityEntry) -> None:
        """Called once per capability entry this plugin decorates."""

    def wrap_handler(self, router: Any, entry: CapabilityEntry, call_next: Callable) -> Callable:
        return call_next

    def on_event(self, router: Any, event: Any) -> None:
        """Called for every published navigation event."""

    def _get_store(self) -> Dict[str, Any]:
        return self._router._plugin_info
