"""Extension layer — property registry and plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus single-file plugins from a local directory.
INVARIANT: Plugin failures are warnings, never errors.
"""

from fusegraph.plugins.manager import PluginManager
from fusegraph.plugins.registry import PropertyRegistry

__all__ = ["PluginManager", "PropertyRegistry"]
