"""Message contract between the embedded widget and its host frame.

The widget sends exactly one kind of message, ``{"height": <int>}``, and
only ever to the origin named by the ``host_url`` query parameter of its
own location.
"""

from __future__ import annotations

import ipaddress
import json
import re

from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from .exceptions import HostOriginError


DEFAULT_HOST_URL_PARAM = "host_url"

# Schemes accepted for a host page, with their default ports
_DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

# Dot-separated labels, optionally ending in a root dot
_HOST_NAME_RE = re.compile(r"^(?:[a-z0-9_-]+\.)*[a-z0-9_-]+\.?$")


class HeightNotification(BaseModel):
    """Content height reported by the widget to its host frame."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    height: StrictInt = Field(ge=0)

    def to_wire(self) -> dict[str, int]:
        """Return the JSON-serializable payload posted to the host."""
        return {"height": self.height}

    def to_json(self) -> str:
        """Return the payload as compact JSON text."""
        return json.dumps(self.to_wire(), separators=(",", ":"))

    @classmethod
    def from_wire(cls, data: Any) -> HeightNotification:
        """Validate a received payload.

        Parameters
        ----------
        data : Any
            The ``event.data`` of a received message.

        Returns
        -------
        HeightNotification
            The validated notification.

        Raises
        ------
        pydantic.ValidationError
            If the payload is not ``{"height": <non-negative int>}``.
        """
        return cls.model_validate(data)


def _valid_host(host: str) -> bool:
    if ":" in host:
        try:
            ipaddress.IPv6Address(host)
        except ValueError:
            return False
        return True
    return _HOST_NAME_RE.match(host) is not None


@dataclass(frozen=True)
class HostOrigin:
    """Scheme, host and port of the host frame.

    Fixed for the lifetime of a widget. ``str(origin)`` gives the exact
    target origin used for every notification.
    """

    scheme: str
    host: str
    port: int | None = None

    def __str__(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port is None or self.port == _DEFAULT_PORTS.get(self.scheme):
            return f"{self.scheme}://{host}"
        return f"{self.scheme}://{host}:{self.port}"

    @classmethod
    def from_url(cls, url: str) -> HostOrigin:
        """Extract the origin of an absolute http(s) URL.

        Parameters
        ----------
        url : str
            Absolute URL of the host page.

        Returns
        -------
        HostOrigin
            The URL's origin. Default ports are dropped.

        Raises
        ------
        HostOriginError
            If the URL is relative, malformed, or has no tuple origin.
        """
        candidate = url.strip()
        try:
            parts = urlsplit(candidate)
            port = parts.port
        except ValueError as e:
            raise HostOriginError(f"Invalid host URL: {e}", host_url=url) from e

        scheme = parts.scheme.lower()
        if not scheme or not parts.hostname:
            raise HostOriginError("Host URL must be absolute", host_url=url)
        if scheme not in _DEFAULT_PORTS:
            raise HostOriginError(
                f"Host URL scheme '{scheme}' has no addressable origin", host_url=url
            )

        host = parts.hostname
        if not host.isascii():
            try:
                host = host.encode("idna").decode("ascii")
            except UnicodeError as e:
                raise HostOriginError(f"Invalid host name: {e}", host_url=url) from e

        if not _valid_host(host):
            raise HostOriginError(f"Invalid host name '{host}'", host_url=url)

        if port == _DEFAULT_PORTS[scheme]:
            port = None
        return cls(scheme=scheme, host=host, port=port)


def resolve_host_origin(location: str, param: str = DEFAULT_HOST_URL_PARAM) -> HostOrigin:
    """Resolve the host origin from the widget document's own URL.

    Parameters
    ----------
    location : str
        The widget's ``document.location.href``.
    param : str, optional
        Query parameter carrying the host page URL (default ``host_url``).

    Returns
    -------
    HostOrigin
        Origin of the host page.

    Raises
    ------
    HostOriginError
        If the parameter is absent, empty, or not an absolute URL. There is
        no fallback to a wildcard origin.
    """
    try:
        query = urlsplit(location).query
    except ValueError as e:
        raise HostOriginError(f"Invalid widget location: {e}", location=location) from e

    values = parse_qs(query, keep_blank_values=True).get(param)
    if not values:
        raise HostOriginError(f"Missing '{param}' query parameter", location=location)

    # First occurrence wins, as with URLSearchParams.get()
    host_url = values[0]
    if not host_url.strip():
        raise HostOriginError(f"Empty '{param}' query parameter", host_url=host_url)
    return HostOrigin.from_url(host_url)
