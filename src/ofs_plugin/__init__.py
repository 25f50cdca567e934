"""
ofs-plugin: host-communication core for Oracle Field Service plugins.

A plugin subclasses :class:`OFSPlugin`, connects it to a host channel and
receives the host's lifecycle messages (``init``, ``open``, ``wakeup``, ...)
through its extension points, with an authenticated backend proxy acquired
before ``open`` runs.
"""

from ofs_plugin.config import PluginConfig, ReadyOptions, configure_logging, load_logging_policy, load_plugin_config
from ofs_plugin.errors import PluginError, ProxyAcquisitionError, UnknownMethodError
from ofs_plugin.plugin import OFSPlugin
from ofs_plugin.protocol import Environment, EnvelopeParser
from ofs_plugin.storage import JsonFilePropertyStore, MemoryPropertyStore

__version__ = "0.1.0"

__all__ = [
    "Environment",
    "EnvelopeParser",
    "JsonFilePropertyStore",
    "MemoryPropertyStore",
    "OFSPlugin",
    "PluginConfig",
    "PluginError",
    "ProxyAcquisitionError",
    "ReadyOptions",
    "UnknownMethodError",
    "configure_logging",
    "load_logging_policy",
    "load_plugin_config",
    "__version__",
]
