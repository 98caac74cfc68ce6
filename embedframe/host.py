"""Host side of the height protocol: resize the iframe from widget messages."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError

from .log import debug, warn
from .protocol import HeightNotification


if TYPE_CHECKING:
    from .messenger import MessageEvent, ParentFrame


class IframeResizer:
    """Apply height notifications from one widget origin to an iframe.

    Messages from any other origin, and payloads that are not a height
    notification, are ignored.
    """

    def __init__(self, widget_origin: str, initial_height: int | None = None) -> None:
        """Initialize the resizer.

        Parameters
        ----------
        widget_origin : str
            Origin of the embedded widget document.
        initial_height : int or None, optional
            Iframe height before the first notification.
        """
        self._widget_origin = widget_origin
        self._height = initial_height
        self._history: list[int] = []

    @property
    def height(self) -> int | None:
        """Current iframe height."""
        return self._height

    @property
    def history(self) -> list[int]:
        """Every height applied, oldest first."""
        return list(self._history)

    def handle_message(self, event: MessageEvent) -> bool:
        """Handle one ``message`` event.

        Returns
        -------
        bool
            True if the iframe height was updated.
        """
        if event.origin != self._widget_origin:
            debug(f"Ignored message from unexpected origin {event.origin}")
            return False

        try:
            notification = HeightNotification.from_wire(event.data)
        except ValidationError as e:
            warn(f"Ignored malformed height message from {event.origin}: {e.error_count()} error(s)")
            return False

        self._height = notification.height
        self._history.append(notification.height)
        return True

    def attach(self, frame: ParentFrame) -> None:
        """Listen for messages posted to ``frame``."""
        frame.add_listener(self.handle_message)

    def detach(self, frame: ParentFrame) -> None:
        """Stop listening on ``frame``."""
        frame.remove_listener(self.handle_message)
