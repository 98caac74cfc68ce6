"""embedframe - auto-sizing iframe widgets and single-file widget bundles.

The widget reports its content height to the host frame over an
origin-restricted message channel; the bundler inlines the compiled widget
script into its HTML shell so the iframe document needs no extra requests.
"""

from .bundler import BundlePaths, BundleResult, bundle, inline_script
from .config import (
    BuildSettings,
    BundleSettings,
    EmbedFrameSettings,
    LogSettings,
    WidgetSettings,
    get_settings,
)
from .exceptions import (
    BuildConfigError,
    BundleError,
    ConfigurationError,
    EmbedFrameException,
    FrameGoneError,
    HostOriginError,
    MissingBuildInputError,
    MissingRootNodeError,
    PreconditionError,
)
from .host import IframeResizer
from .messenger import CrossFrameMessenger, FrameTransport, MessageEvent, ParentFrame
from .observer import HeightObserver, MutationRecord, MutationStream, ObserverOptions
from .protocol import HeightNotification, HostOrigin, resolve_host_origin
from .storage import JsonFileStore, KeyValueStore, MemoryStore, StoragePorts
from .widget import EmbeddedWidget, WidgetFlags, init_widget


__version__ = "0.1.0"

__all__ = [
    "BuildConfigError",
    "BuildSettings",
    "BundleError",
    "BundlePaths",
    "BundleResult",
    "BundleSettings",
    "ConfigurationError",
    "CrossFrameMessenger",
    "EmbedFrameException",
    "EmbedFrameSettings",
    "EmbeddedWidget",
    "FrameGoneError",
    "FrameTransport",
    "HeightNotification",
    "HeightObserver",
    "HostOrigin",
    "HostOriginError",
    "IframeResizer",
    "JsonFileStore",
    "KeyValueStore",
    "LogSettings",
    "MemoryStore",
    "MessageEvent",
    "MissingBuildInputError",
    "MissingRootNodeError",
    "MutationRecord",
    "MutationStream",
    "ObserverOptions",
    "ParentFrame",
    "PreconditionError",
    "StoragePorts",
    "WidgetFlags",
    "WidgetSettings",
    "__version__",
    "bundle",
    "get_settings",
    "init_widget",
    "inline_script",
    "resolve_host_origin",
]
