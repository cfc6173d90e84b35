"""Lifecycle plugin registry.

A ringside plugin is any object whose ``@hookimpl`` methods each name a
hook in :class:`RingsideHookSpec`: ``post_transition``,
``post_stable_merge``, ``post_stable_split`` and ``post_pipeline``.
Plugins come from the ``ringside.plugins`` entry-point group and from
single-file modules under ``.ringside/plugins/``. Discovery logs and skips
any candidate that fails to load or validate; direct registration raises.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from pathlib import Path

import pluggy

from ringside.domain.errors import ConfigurationError
from ringside.plugins.hookspecs import RingsideHookSpec

PROJECT_NAME = "ringside"
ENTRY_POINT_GROUP = "ringside.plugins"

_SPEC_ATTR = f"{PROJECT_NAME}_spec"
_IMPL_ATTR = f"{PROJECT_NAME}_impl"

LIFECYCLE_HOOKS: frozenset[str] = frozenset(
    name for name, member in vars(RingsideHookSpec).items() if hasattr(member, _SPEC_ATTR)
)

logger = logging.getLogger(__name__)


def hook_names(plugin: object) -> set[str]:
    """Hook names implemented by *plugin* (a class, instance or module)."""
    names: set[str] = set()
    for attr in dir(plugin):
        if attr.startswith("_"):
            continue
        opts = getattr(getattr(plugin, attr, None), _IMPL_ATTR, None)
        if isinstance(opts, dict):
            names.add(opts.get("specname") or attr)
    return names


class PluginManager:
    """Registers lifecycle plugins and exposes their hook relay."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(RingsideHookSpec)

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Admit entry-point plugins, then single-file plugins in *local_dir*.

        Returns the names of all registered plugins.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._admit_entry_points()
        if local_dir is not None:
            self._discover_local(local_dir)
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Validate and register a plugin instance.

        Raises :class:`ConfigurationError` when *plugin* implements no
        lifecycle hook or names one that does not exist; pluggy raises
        ``PluginValidationError`` when a hook's arguments do not match.
        """
        resolved_name = name or plugin.__class__.__name__
        hooks = hook_names(plugin)
        if not hooks:
            msg = f"Plugin '{resolved_name}' implements no lifecycle hooks"
            raise ConfigurationError(msg)
        unknown = sorted(hooks - LIFECYCLE_HOOKS)
        if unknown:
            msg = (
                f"Plugin '{resolved_name}' implements unknown hooks {unknown} "
                f"(expected among {sorted(LIFECYCLE_HOOKS)})"
            )
            raise ConfigurationError(msg)
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin %s for %s", resolved_name, ", ".join(sorted(hooks)))

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for dispatching events."""
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def _admit_entry_points(self) -> None:
        """Re-register entry-point plugins through :meth:`register_plugin`.

        pluggy registers whatever the entry point names, which may be a
        class; dispatch against a class object leaves ``self`` unbound.
        """
        for plugin, dist in self._pm.list_plugin_distinfo():
            if not self._pm.is_registered(plugin):
                continue
            plugin_name = self._pm.get_name(plugin) or repr(plugin)
            self._pm.unregister(plugin)
            try:
                instance = plugin() if inspect.isclass(plugin) else plugin
                self.register_plugin(instance, name=plugin_name)
            except Exception:
                logger.warning(
                    "Skipping entry-point plugin %s from %s",
                    plugin_name,
                    dist.project_name,
                    exc_info=True,
                )

    def _discover_local(self, local_dir: Path) -> None:
        """Register each hook-carrying class of each ``*.py`` file in *local_dir*.

        ``_``-prefixed files are skipped; classes with no ``@hookimpl``
        methods are helpers and ignored.
        """
        if not local_dir.is_dir():
            return

        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            module_name = f"ringside_local_plugin_{py_file.stem}"
            try:
                spec = importlib.util.spec_from_file_location(module_name, py_file)
                if spec is None or spec.loader is None:
                    logger.warning("Could not create module spec for %s", py_file)
                    continue
                module = importlib.util.module_from_spec(spec)
                sys.modules[module_name] = module
                spec.loader.exec_module(module)
            except Exception:
                logger.warning("Failed to load local plugin %s", py_file, exc_info=True)
                sys.modules.pop(module_name, None)
                continue

            for _attr_name, obj in inspect.getmembers(module, inspect.isclass):
                if obj.__module__ != module_name or not hook_names(obj):
                    continue
                try:
                    self.register_plugin(obj(), name=module_name)
                except Exception:
                    logger.warning(
                        "Skipping plugin class %s from %s", obj.__name__, py_file, exc_info=True
                    )
