"""Navigation router with plugins (source of truth).

``Router`` is ``BaseRouter`` plus plugins. A plugin class is registered once
per process under its ``plugin_code`` and attached per router with ``plug``.
Attached plugins observe two things: every guard or resolver call, through
``wrap_handler`` middleware, and every published navigation event, through
``on_event``.

Registry
--------
``Router.register_plugin(plugin_class, name=None)`` accepts only
``BasePlugin`` subclasses (``TypeError``) that declare a ``plugin_code``
(``ValueError``). A second class claiming a taken code is refused with
``ValueError`` unless ``name`` is passed, which replaces whatever is stored
under that name. ``available_plugins()`` returns a copy of the registry.

Attachment
----------
``plug(name, **config)`` instantiates the registered class for this router,
runs ``on_decore`` for every capability entry the router already knows and
returns the router so calls chain. Attached plugins are reachable as
attributes (``router.logging``); unknown names raise ``AttributeError``.

Plugin store
------------
``_plugin_info[plugin_code]`` holds a ``"--base--"`` bucket for router-wide
values, one bucket per capability entry (``"can_activate:AuthGuard"``) and
the reserved ``"events"`` entry used to switch event hooks. Each bucket has
``config`` (written by ``configure`` or seeded from a token's
``plugin_config``) and ``locals`` (runtime switches and data).

Middleware order
----------------
The first attached plugin is the outermost layer around a guard, the last one
sits next to it. A layer disabled for the entry passes the call through
untouched.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Type

from smartnav.core.base_router import BaseRouter
from smartnav.plugins._base_plugin import BasePlugin, CapabilityEntry

__all__ = ["Router", "EVENTS_ENTRY"]

EVENTS_ENTRY = "events"
BASE_BUCKET = "--base--"

_PLUGIN_REGISTRY: Dict[str, Type[BasePlugin]] = {}


def _new_bucket() -> Dict[str, Dict[str, Any]]:
    return {"config": {}, "locals": {}}


class Router(BaseRouter):
    """``BaseRouter`` with guard/resolver middleware and event hooks."""

    __slots__ = BaseRouter.__slots__ + ("_plugins", "_plugins_by_name", "_plugin_info")

    def __init__(self, routes=None, **kwargs: Any):
        self._plugins: List[BasePlugin] = []
        self._plugins_by_name: Dict[str, BasePlugin] = {}
        self._plugin_info: Dict[str, Dict[str, Any]] = {}
        super().__init__(routes, **kwargs)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------
    @classmethod
    def register_plugin(cls, plugin_class: Type[BasePlugin], name: Optional[str] = None) -> None:
        """Make ``plugin_class`` available to ``plug`` under its code or ``name``."""
        if not (isinstance(plugin_class, type) and issubclass(plugin_class, BasePlugin)):
            raise TypeError(f"{plugin_class!r} is not a BasePlugin subclass")
        code = getattr(plugin_class, "plugin_code", "")
        if not code:
            raise ValueError(f"{plugin_class.__name__} declares no plugin_code")
        if name is not None:
            _PLUGIN_REGISTRY[name] = plugin_class
            return
        registered = _PLUGIN_REGISTRY.setdefault(code, plugin_class)
        if registered is not plugin_class:
            raise ValueError(
                f"plugin_code '{code}' is taken by {registered.__name__}; pass name= to replace it"
            )

    @classmethod
    def available_plugins(cls) -> Dict[str, Type[BasePlugin]]:
        return dict(_PLUGIN_REGISTRY)

    # ------------------------------------------------------------------
    # Attachment
    # ------------------------------------------------------------------
    def plug(self, plugin: str, **config: Any) -> "Router":
        """Attach the plugin registered as ``plugin``, configured with ``config``."""
        if not isinstance(plugin, str):
            raise TypeError(f"plug() takes a registered plugin name, not {type(plugin).__name__}")
        try:
            plugin_class = _PLUGIN_REGISTRY[plugin]
        except KeyError:
            known = ", ".join(sorted(_PLUGIN_REGISTRY)) or "none"
            raise ValueError(f"Unknown plugin '{plugin}' (registered: {known})") from None
        instance = plugin_class(self, **config)
        self._plugins.append(instance)
        self._plugins_by_name[instance.name] = instance
        for entry in self._entries.values():
            self._decorate(instance, entry)
        return self

    def iter_plugins(self) -> List[BasePlugin]:
        return list(self._plugins)

    def get_config(self, plugin_name: str, entry_name: Optional[str] = None) -> Dict[str, Any]:
        return self._attached(plugin_name).configuration(entry_name)

    def __getattr__(self, name: str) -> Any:
        try:
            return self._plugins_by_name[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__} has no attribute or plugin '{name}'"
            ) from None

    def _attached(self, plugin_name: str) -> BasePlugin:
        plugin = self._plugins_by_name.get(plugin_name)
        if plugin is None:
            raise AttributeError(f"Plugin '{plugin_name}' is not attached to this router")
        return plugin

    # ------------------------------------------------------------------
    # Plugin store
    # ------------------------------------------------------------------
    def _bucket(self, plugin_name: str, entry_name: str) -> Dict[str, Any]:
        store = self._plugin_info.get(plugin_name)
        if store is None:
            raise AttributeError(f"Plugin '{plugin_name}' is not attached to this router")
        bucket = store.setdefault(entry_name, _new_bucket())
        bucket.setdefault("locals", {})
        return bucket

    def set_plugin_enabled(self, entry_name: str, plugin_name: str, enabled: bool = True) -> None:
        self.set_runtime_data(entry_name, plugin_name, "enabled", bool(enabled))

    def is_plugin_enabled(self, entry_name: str, plugin_name: str) -> bool:
        entry_locals = self._bucket(plugin_name, entry_name)["locals"]
        if "enabled" in entry_locals:
            return bool(entry_locals["enabled"])
        return bool(self._bucket(plugin_name, BASE_BUCKET)["locals"].get("enabled", True))

    def set_runtime_data(self, entry_name: str, plugin_name: str, key: str, value: Any) -> None:
        self._bucket(plugin_name, entry_name)["locals"][key] = value

    def get_runtime_data(
        self, entry_name: str, plugin_name: str, key: str, default: Any = None
    ) -> Any:
        return self._bucket(plugin_name, entry_name)["locals"].get(key, default)

    # ------------------------------------------------------------------
    # BaseRouter hooks
    # ------------------------------------------------------------------
    def _publish(self, event: Any) -> None:
        super()._publish(event)
        for plugin in self._plugins:
            if self.is_plugin_enabled(EVENTS_ENTRY, plugin.name):
                plugin.on_event(self, event)

    def _wrap_handler(self, entry: CapabilityEntry, call_next: Callable) -> Callable:
        handler = call_next
        for plugin in reversed(self._plugins):
            handler = self._layer(plugin, entry, handler)
        return handler

    def _layer(self, plugin: BasePlugin, entry: CapabilityEntry, inner: Callable) -> Callable:
        wrapped = plugin.wrap_handler(self, entry, inner)
        if wrapped is inner:
            return inner

        @wraps(inner)
        def layer(*args, **kwargs):
            if self.is_plugin_enabled(entry.name, plugin.name):
                return wrapped(*args, **kwargs)
            return inner(*args, **kwargs)

        return layer

    def _after_entry_registered(self, entry: CapabilityEntry) -> None:
        for plugin_name, options in entry.metadata.get("plugin_config", {}).items():
            store = self._plugin_info.setdefault(plugin_name, {BASE_BUCKET: _new_bucket()})
            store.setdefault(entry.name, _new_bucket())["config"].update(options)
        for plugin in self._plugins:
            self._decorate(plugin, entry)

    def _decorate(self, plugin: BasePlugin, entry: CapabilityEntry) -> None:
        if plugin.name not in entry.plugins:
            entry.plugins.append(plugin.name)
        plugin.on_decore(self, entry.func, entry)
