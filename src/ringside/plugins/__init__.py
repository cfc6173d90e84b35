"""Extension layer: plugin system via pluggy.

Discovery: entry points plus single-file plugins in ``.ringside/plugins/``.
A plugin that fails discovery is a warning; a bad direct registration raises.
"""

import pluggy

from ringside.plugins.event_bus import EventBus
from ringside.plugins.manager import PluginManager

hookimpl = pluggy.HookimplMarker("ringside")

__all__ = ["EventBus", "PluginManager", "hookimpl"]
