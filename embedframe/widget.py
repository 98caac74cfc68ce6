"""Widget bootstrap: wires origin resolution, messaging, height observation and storage.

``init_widget`` follows the order of the browser entry point. Configuration
and precondition failures are raised before the first notification is sent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from .config import BuildSettings, WidgetSettings
from .log import debug, info
from .messenger import CrossFrameMessenger
from .observer import HeightObserver, ObserverOptions
from .protocol import HostOrigin, resolve_host_origin
from .storage import StoragePorts


if TYPE_CHECKING:
    from collections.abc import Callable

    from .messenger import MessageTransport
    from .observer import MutationSource
    from .storage import KeyValueStore


class WidgetFlags(BaseModel):
    """Start-up values handed to the widget application."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_endpoint: str | None = Field(default=None, alias="apiEndpoint")
    site_url: str = Field(alias="siteUrl")
    anonymous_username: str | None = Field(default=None, alias="anonymousUsername")
    git_ref: str | None = Field(default=None, alias="gitRef")
    session_token: str | None = Field(default=None, alias="sessionToken")

    def to_js(self) -> dict[str, Any]:
        """Return the flags object with the camelCase keys the application reads."""
        return self.model_dump(by_alias=True)


@dataclass
class EmbeddedWidget:
    """A started widget and the components it is made of."""

    host_origin: HostOrigin
    messenger: CrossFrameMessenger
    observer: HeightObserver
    flags: WidgetFlags
    ports: StoragePorts


def init_widget(
    location: str,
    root: MutationSource | None,
    transport: MessageTransport,
    *,
    window_height: Callable[[], int],
    content_height: Callable[[], int],
    store: KeyValueStore,
    build: BuildSettings | None = None,
    settings: WidgetSettings | None = None,
) -> EmbeddedWidget:
    """Start an embedded widget.

    Parameters
    ----------
    location : str
        The widget document's own URL; must carry the ``host_url`` parameter.
    root : MutationSource or None
        Structural change stream of the widget's root content node.
    transport : MessageTransport
        Adapter delivering messages to the parent frame.
    window_height : Callable[[], int]
        Reads the initial window height.
    content_height : Callable[[], int]
        Reads the current content height.
    store : KeyValueStore
        Persisted storage for the session token and anonymous username.
    build : BuildSettings or None, optional
        Build-time values. Defaults to reading the environment.
    settings : WidgetSettings or None, optional
        Widget settings. Defaults to reading the environment.

    Returns
    -------
    EmbeddedWidget
        The started widget.

    Raises
    ------
    BuildConfigError
        If a production build has no build identifier.
    HostOriginError
        If ``host_url`` is missing or invalid.
    MissingRootNodeError
        If ``root`` is None.
    """
    build = (build or BuildSettings()).require_valid()
    settings = settings or WidgetSettings()

    host_origin = resolve_host_origin(location, settings.host_url_param)
    messenger = CrossFrameMessenger(host_origin, transport)
    observer = HeightObserver(
        root,
        messenger,
        window_height=window_height,
        content_height=content_height,
        options=ObserverOptions(subtree=True, child_list=True, attributes=True),
    )
    observer.start()
    info(f"Widget started for host origin {host_origin}")

    flags = WidgetFlags(
        api_endpoint=build.api_endpoint,
        site_url=str(host_origin),
        anonymous_username=store.get(settings.anonymous_username_key),
        git_ref=build.git_ref,
        session_token=store.get(settings.session_token_key),
    )
    debug(f"Widget flags built (build mode {build.mode})")

    return EmbeddedWidget(
        host_origin=host_origin,
        messenger=messenger,
        observer=observer,
        flags=flags,
        ports=StoragePorts(
            store,
            session_token_key=settings.session_token_key,
            anonymous_username_key=settings.anonymous_username_key,
        ),
    )
