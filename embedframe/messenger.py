"""Cross-frame messaging from the widget to its host frame.

The messenger decides *what* is sent and *to whom*; a ``MessageTransport``
adapter at the system boundary decides *how*. ``ParentFrame`` is the
in-process adapter, with the delivery rules of ``window.postMessage``.
"""

from __future__ import annotations

import copy

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from .exceptions import FrameGoneError
from .log import debug, exception


if TYPE_CHECKING:
    from collections.abc import Callable

    from .protocol import HeightNotification, HostOrigin


class MessageTransport(Protocol):
    """One-way outbound port to the parent frame."""

    def send(self, origin: str, payload: dict[str, Any]) -> None:
        """Post ``payload`` to the parent, restricted to ``origin``.

        Raises ``FrameGoneError`` if the parent no longer exists.
        """


class CrossFrameMessenger:
    """Deliver notifications to the host frame, and only to the host frame."""

    def __init__(self, host_origin: HostOrigin, transport: MessageTransport) -> None:
        """Initialize the messenger.

        Parameters
        ----------
        host_origin : HostOrigin
            Origin every notification is restricted to.
        transport : MessageTransport
            Adapter that performs the actual delivery.
        """
        self._host_origin = host_origin
        self._target_origin = str(host_origin)
        self._transport = transport

    @property
    def host_origin(self) -> HostOrigin:
        """The origin notifications are restricted to."""
        return self._host_origin

    @property
    def target_origin(self) -> str:
        """Serialized target origin passed to the transport."""
        return self._target_origin

    def notify(self, notification: HeightNotification) -> bool:
        """Send a notification to the host frame. Fire-and-forget, no retry.

        Parameters
        ----------
        notification : HeightNotification
            The notification to send.

        Returns
        -------
        bool
            True if the transport accepted the message, False if it was
            dropped because the parent frame is gone.
        """
        payload = notification.to_wire()
        try:
            self._transport.send(self._target_origin, payload)
        except FrameGoneError:
            debug(f"Parent frame gone, dropped {payload} for {self._target_origin}")
            return False
        debug(f"Posted {payload} to {self._target_origin}")
        return True


@dataclass(frozen=True)
class MessageEvent:
    """A message as seen by listeners in the receiving frame."""

    origin: str
    data: Any


class ParentFrame:
    """In-process model of the parent window receiving posted messages.

    Delivery follows ``postMessage``: a message whose target origin does not
    match the frame's current document origin is silently discarded.
    """

    def __init__(self, origin: str) -> None:
        self._origin = origin
        self._listeners: list[Callable[[MessageEvent], None]] = []
        self._detached = False

    @property
    def origin(self) -> str:
        """Origin of the document currently loaded in the frame."""
        return self._origin

    @property
    def detached(self) -> bool:
        """Whether the frame has been torn down."""
        return self._detached

    def navigate(self, origin: str) -> None:
        """Load a document from another origin into the frame."""
        self._origin = origin

    def detach(self) -> None:
        """Tear the frame down. Further posts raise FrameGoneError."""
        self._detached = True
        self._listeners.clear()

    def add_listener(self, callback: Callable[[MessageEvent], None]) -> None:
        """Register a ``message`` event listener."""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[MessageEvent], None]) -> None:
        """Unregister a ``message`` event listener."""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def post_message(self, data: Any, target_origin: str, *, source_origin: str) -> None:
        """Deliver ``data`` to the listeners if ``target_origin`` matches.

        Parameters
        ----------
        data : Any
            The message payload. Listeners receive a deep copy.
        target_origin : str
            Origin the sender restricted delivery to, or ``"*"``.
        source_origin : str
            Origin of the sending document, exposed as ``event.origin``.

        Raises
        ------
        FrameGoneError
            If the frame has been detached.
        """
        if self._detached:
            raise FrameGoneError("Parent frame is detached", target_origin=target_origin)

        if target_origin not in ("*", self._origin):
            debug(f"Discarded message for {target_origin}; frame origin is {self._origin}")
            return

        event = MessageEvent(origin=source_origin, data=copy.deepcopy(data))
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # A failing listener never reaches the sender
                exception(f"Message listener error in frame {self._origin}")


class FrameTransport:
    """``MessageTransport`` adapter posting to a ``ParentFrame``."""

    def __init__(self, parent: ParentFrame, widget_origin: str) -> None:
        """Initialize the adapter.

        Parameters
        ----------
        parent : ParentFrame
            The frame that embeds the widget.
        widget_origin : str
            Origin of the widget document, reported as ``event.origin``.
        """
        self._parent = parent
        self._widget_origin = widget_origin

    def send(self, origin: str, payload: dict[str, Any]) -> None:
        """Post ``payload`` to the parent frame, restricted to ``origin``."""
        self._parent.post_message(payload, origin, source_origin=self._widget_origin)
