"""Plugin discovery, loading, and surface collection.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus local directory discovery from ``.xtaskctl/plugins/``.
Capabilities: surface extension (targets, subcommands, base-command
options, CLI commands),
host-variant task handling, post-task notification.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pluggy

from xtaskctl.plugins.hookspecs import XtaskctlHookSpec

if TYPE_CHECKING:
    import click

    from xtaskctl.domain.vocabulary import VariantSpec

PROJECT_NAME = "xtaskctl"
ENTRY_POINT_GROUP = "xtaskctl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(XtaskctlHookSpec)
        self._loaded: bool = False

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Discover plugins from entry points and an optional local directory.

        Uses pluggy's native setuptools entry_point discovery for the
        ``xtaskctl.plugins`` group, then scans *local_dir* (typically
        ``.xtaskctl/plugins/``) for single-file Python plugins.

        Returns a list of loaded plugin names.
        """
        try:
            self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        except Exception:
            logger.warning("Failed to load entry-point plugins", exc_info=True)
        self._normalize_plugin_instances()
        if local_dir is not None:
            self._discover_local(local_dir)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly (e.g. from tests or a host ``xtask``)."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        """Unregister a plugin instance."""
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for dispatching events."""
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        """Return all registered plugins, in registration order."""
        return [plugin for _name, plugin in self._pm.list_name_plugin()]

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins."""
        return [name for name, _plugin in self._pm.list_name_plugin()]

    # ------------------------------------------------------------------
    # Surface collection
    # ------------------------------------------------------------------

    def collect_targets(self) -> list[VariantSpec]:
        """Target variants from every plugin, in registration order."""
        specs: list[VariantSpec] = []
        for name, result in self._collect("register_targets", list):
            specs.extend(result)
            logger.debug("Plugin %s registered %d target(s)", name, len(result))
        return specs

    def collect_subcommands(self) -> dict[str, list[VariantSpec]]:
        """Subcommand variants keyed by base vocabulary name."""
        merged: dict[str, list[VariantSpec]] = {}
        for _name, result in self._collect("register_subcommands", dict):
            for vocabulary, specs in result.items():
                merged.setdefault(vocabulary, []).extend(specs)
        return merged

    def collect_cli_commands(self) -> list[click.Command]:
        """Host-only click commands from every plugin."""
        commands: list[click.Command] = []
        for _name, result in self._collect("register_cli_commands", list):
            commands.extend(result)
        return commands

    def collect_command_options(self) -> dict[str, list[click.Option]]:
        """Extra options keyed by base command name, in registration order."""
        merged: dict[str, list[click.Option]] = {}
        for name, result in self._collect("register_command_options", dict):
            for command, options in result.items():
                merged.setdefault(command, []).extend(options)
                logger.debug("Plugin %s added %d option(s) to %s", name, len(options), command)
        return merged

    def _collect(self, hook_name: str, expected: type) -> list[tuple[str, Any]]:
        """Call *hook_name* on each plugin, skipping broken or empty answers."""
        results: list[tuple[str, Any]] = []
        for plugin_name, plugin in self._pm.list_name_plugin():
            hook: Callable[[], Any] | None = getattr(plugin, hook_name, None)
            if hook is None:
                continue
            try:
                result = hook()
            except Exception:
                logger.warning(
                    "Failed to call %s on plugin %s",
                    hook_name,
                    plugin_name,
                    exc_info=True,
                )
                continue
            if result is None:
                continue
            if not isinstance(result, expected):
                logger.warning(
                    "Plugin %s returned %s from %s, expected %s",
                    plugin_name,
                    type(result).__name__,
                    hook_name,
                    expected.__name__,
                )
                continue
            results.append((plugin_name, result))
        return results

    # ------------------------------------------------------------------
    # Task hooks
    # ------------------------------------------------------------------

    def run_task(
        self,
        *,
        command: str,
        subcommand: str | None,
        target: str | None,
        exclude: list[str],
        only: list[str],
        answer: bool | None,
        options: dict[str, Any] | None = None,
        environment: str = "std",
    ) -> bool | None:
        """First plugin answer for a host-only task, or None if unhandled."""
        return self._pm.hook.run_task(
            command=command,
            subcommand=subcommand,
            target=target,
            exclude=exclude,
            only=only,
            answer=answer,
            options=options or {},
            environment=environment,
        )

    def post_task(
        self,
        *,
        command: str,
        subcommand: str | None,
        target: str | None,
        ok: bool,
        options: dict[str, Any] | None = None,
        environment: str = "std",
    ) -> None:
        self._pm.hook.post_task(
            command=command,
            subcommand=subcommand,
            target=target,
            ok=ok,
            options=options or {},
            environment=environment,
        )

    # ------------------------------------------------------------------
    # Local directory discovery
    # ------------------------------------------------------------------

    def _discover_local(self, local_dir: Path) -> None:
        """Scan *local_dir* for single-file Python plugins.

        Each ``*.py`` file (excluding ``_``-prefixed names) is loaded as a
        module. Classes inside the module that carry pluggy hookimpl-decorated
        methods are instantiated and registered.

        Errors are logged as warnings but never raised: a broken local plugin
        must not prevent the rest of the system from starting.
        """
        if not local_dir.is_dir():
            return

        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            module_name = f"xtaskctl_local_plugin_{py_file.stem}"
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
                if obj.__module__ != module_name:
                    continue  # skip imported classes
                if not self._has_hook_impls(obj):
                    continue
                try:
                    self.register_plugin(obj(), name=f"{module_name}.{obj.__name__}")
                    logger.debug("Loaded local plugin %s from %s", obj.__name__, py_file)
                except Exception:
                    logger.warning(
                        "Failed to instantiate plugin class %s from %s",
                        obj.__name__,
                        py_file,
                        exc_info=True,
                    )

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin_name, plugin in list(self._pm.list_name_plugin()):
            if not inspect.isclass(plugin):
                continue
            if not self._has_hook_impls(plugin):
                continue

            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Check whether *cls* has any methods decorated with ``@hookimpl``.

        Pluggy's ``HookimplMarker("xtaskctl")`` sets an ``xtaskctl_impl``
        attribute on decorated methods.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, "xtaskctl_impl", None):
                return True
        return False
