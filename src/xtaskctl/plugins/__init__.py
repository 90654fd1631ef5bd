"""Extension layer: plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus single-file plugins from ``.xtaskctl/plugins/``.
INVARIANT: Plugin loading failures are warnings, never errors.
"""

from xtaskctl.plugins.manager import PluginManager

__all__ = ["PluginManager"]
