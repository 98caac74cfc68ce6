"""Height observer for the embedded widget.

Watches structural changes under the widget's root content node and
reports the content height to the host frame whenever it changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol

from .exceptions import MissingRootNodeError
from .log import debug
from .protocol import HeightNotification


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .messenger import CrossFrameMessenger


@dataclass(frozen=True)
class MutationRecord:
    """One structural change under the observed node.

    ``target`` identifies the changed node; None means the observed node itself.
    """

    type: Literal["childList", "attributes"]
    target: str | None = None
    attribute_name: str | None = None


@dataclass(frozen=True)
class ObserverOptions:
    """Which structural changes a subscriber receives."""

    subtree: bool = True
    child_list: bool = True
    attributes: bool = True

    def accepts(self, record: MutationRecord, root: str | None = None) -> bool:
        """Whether ``record`` is of a kind these options subscribe to.

        Without ``subtree``, only changes to the observed node ``root`` itself
        are accepted.
        """
        if not self.subtree and record.target not in (None, root):
            return False
        if record.type == "childList":
            return self.child_list
        return self.attributes


class MutationSource(Protocol):
    """Stream of structural change events scoped to one subtree."""

    def observe(
        self,
        callback: Callable[[list[MutationRecord]], None],
        options: ObserverOptions,
    ) -> None:
        """Subscribe ``callback`` to batches of mutation records."""


class MutationStream:
    """In-process structural change stream for one root node.

    Batches are delivered to subscribers synchronously and in order,
    filtered by each subscriber's options.
    """

    def __init__(self, node_id: str | None = None) -> None:
        self.node_id = node_id
        self._subscribers: list[tuple[Callable[[list[MutationRecord]], None], ObserverOptions]] = []

    def observe(
        self,
        callback: Callable[[list[MutationRecord]], None],
        options: ObserverOptions,
    ) -> None:
        """Subscribe ``callback`` to batches of mutation records."""
        self._subscribers.append((callback, options))

    def emit(self, records: Iterable[MutationRecord]) -> None:
        """Deliver one batch of records to every subscriber."""
        batch = list(records)
        for callback, options in list(self._subscribers):
            accepted = [r for r in batch if options.accepts(r, self.node_id)]
            if accepted:
                callback(accepted)

    def child_list_changed(self, target: str | None = None) -> None:
        """Shorthand for emitting a single ``childList`` record."""
        self.emit([MutationRecord(type="childList", target=target)])

    def attribute_changed(self, name: str, target: str | None = None) -> None:
        """Shorthand for emitting a single ``attributes`` record."""
        self.emit([MutationRecord(type="attributes", target=target, attribute_name=name)])


class HeightObserver:
    """Report the widget's content height once at start and then on change.

    ``observed_height`` is the last height reported to the host. It is owned
    by this instance, set by start() and afterwards only updated after a
    successful send.
    """

    def __init__(
        self,
        root: MutationSource | None,
        messenger: CrossFrameMessenger,
        window_height: Callable[[], int],
        content_height: Callable[[], int],
        options: ObserverOptions | None = None,
    ) -> None:
        """Initialize the observer.

        Parameters
        ----------
        root : MutationSource or None
            Structural change stream of the widget's root content node.
        messenger : CrossFrameMessenger
            Messenger used to reach the host frame.
        window_height : Callable[[], int]
            Reads the initial height (``window.innerHeight``).
        content_height : Callable[[], int]
            Reads the current content height (``document.body.offsetHeight``).
        options : ObserverOptions or None, optional
            Subscription options. Defaults to subtree, childList and attributes.

        Raises
        ------
        MissingRootNodeError
            If ``root`` is None.
        """
        if root is None:
            raise MissingRootNodeError("Widget root content node not found")
        self._root = root
        self._messenger = messenger
        self._window_height = window_height
        self._content_height = content_height
        self._options = options or ObserverOptions()
        self._observed_height: int | None = None
        self._started = False

    @property
    def observed_height(self) -> int | None:
        """Last height reported to the host, or None before start()."""
        return self._observed_height

    @property
    def started(self) -> bool:
        """Whether start() has run."""
        return self._started

    def start(self) -> None:
        """Send the initial height and subscribe to structural changes."""
        if self._started:
            return
        self._started = True

        # The host knows nothing about the widget size yet
        height = self._window_height()
        self._observed_height = height
        self._messenger.notify(HeightNotification(height=height))

        self._root.observe(self._on_mutations, self._options)

    def measure(self) -> bool:
        """Re-measure the content height and notify the host if it changed.

        Returns
        -------
        bool
            True if a notification was sent.
        """
        height = self._content_height()
        if height == self._observed_height:
            return False

        if not self._messenger.notify(HeightNotification(height=height)):
            return False
        debug(f"Content height changed {self._observed_height} -> {height}")
        self._observed_height = height
        return True

    def _on_mutations(self, records: list[MutationRecord]) -> None:
        # Any mutation may or may not change the height
        self.measure()
