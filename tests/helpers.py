"""Shared test doubles and build fixtures."""

from __future__ import annotations

from typing import Any


SHELL_HTML = (
    '<!DOCTYPE html><html><head><meta charset="utf-8"><title>Comments</title>'
    '<script defer="defer" src="app.js"></script></head>'
    '<body><div id="parlezvous-comments"></div></body></html>'
)

# Characters an HTML serializer would normally escape, plus CRLF line endings
APP_JS = (
    "(function(){var a = 1 < 2 && 3 > 2;\r\n"
    "var s = '<b>&amp;</b> \"quoted\" café';\n"
    "window.app = {a: a, s: s};})();\n"
)


class RecordingTransport:
    """MessageTransport that records every send."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, dict[str, Any]]] = []

    def send(self, origin: str, payload: dict[str, Any]) -> None:
        self.sent.append((origin, payload))

    @property
    def heights(self) -> list[int]:
        return [payload["height"] for _, payload in self.sent]

    @property
    def origins(self) -> set[str]:
        return {origin for origin, _ in self.sent}


class Heights:
    """Mutable height readers standing in for window.innerHeight / body.offsetHeight."""

    def __init__(self, window: int = 400, content: int = 400) -> None:
        self.window = window
        self.content = content

    def read_window(self) -> int:
        return self.window

    def read_content(self) -> int:
        return self.content
