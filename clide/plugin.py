"""
Plugins: trusted code that extends a Context through hooks.

A plugin is any object with a `name` and an `init(context)` callable (sync or
async) returning whether it is ready; `version`, `description` and `meta` are
optional. Plugin subclasses may be used for convenience:

    class Timer(Plugin):
        name = "timer"
        version = "1.0.0"

        def init(self, context):
            context.hooks.on("before_execute", self.start)
            context.hooks.on("after_execute", self.stop)
            return True

After init, the context keeps a frozen PluginInfo per plugin.
"""
from types import MappingProxyType
from typing import NamedTuple


class Plugin:
    """
    Convenience base class for plugins.
    """
    name = None
    version = None
    description = None
    meta = MappingProxyType({})

    def __init__(self, *, name=None, version=None, description=None, meta=None, init=None):
        if name is not None:
            self.name = name
        if version is not None:
            self.version = version
        if description is not None:
            self.description = description
        if meta is not None:
            self.meta = MappingProxyType(dict(meta))
        if init is not None:
            self.init = init
        if not isinstance(self.name, str) or not self.name:
            raise TypeError("plugin 'name' must be a non-empty string")

    def init(self, context, /):
        return True

    def __repr__(self):
        return f"plugin(name={self.name!r}, version={self.version!r})"


class PluginInfo(NamedTuple):
    name: str
    version: str | None
    description: str | None
    meta: MappingProxyType
    is_ready: bool

    @classmethod
    def of(cls, plugin, is_ready, /):
        """
        Capture a frozen record of a plugin after its init ran.
        """
        return cls(
            plugin.name,
            getattr(plugin, "version", None),
            getattr(plugin, "description", None),
            MappingProxyType(dict(getattr(plugin, "meta", None) or {})),
            bool(is_ready),
        )


__all__ = (
    "Plugin",
    "PluginInfo",
)
