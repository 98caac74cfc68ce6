"""JavaScript for both ends of the height protocol.

The widget runtime is what the compiled ``app.js`` entry runs inside the
iframe; the host listener and embed snippet go into the host page.
"""

from __future__ import annotations

import html
import json

from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .config import BuildSettings, WidgetSettings
from .protocol import DEFAULT_HOST_URL_PARAM, HostOrigin


def _js_literal(value: Any) -> str:
    """Encode a value as a JS literal that is safe inside a <script> element."""
    return json.dumps(value).replace("</", "<\\/")


WIDGET_RUNTIME_TEMPLATE = """
(function() {
    'use strict';

    var apiEndpoint = __API_ENDPOINT__;
    // for error-reporting purposes
    var gitRef = __GIT_REF__;

    if (!gitRef && __PRODUCTION__) {
        throw new Error('Missing git ref for production environment');
    }

    var srcUrl = new URL(document.location.href);
    var hostUrlParam = srcUrl.searchParams.get(__HOST_URL_PARAM__);
    if (!hostUrlParam) {
        throw new Error('Missing ' + __HOST_URL_PARAM__ + ' query parameter');
    }
    // Throws on a relative or malformed URL; never fall back to '*'
    var hostUrl = new URL(hostUrlParam);

    var notifyParentFrame = function(data) {
        window.parent.postMessage(data, hostUrl.origin);
    };

    var root = document.getElementById(__ROOT_ELEMENT_ID__);
    if (!root) {
        throw new Error('Missing widget root element #' + __ROOT_ELEMENT_ID__);
    }

    var currentHeight = window.innerHeight;
    notifyParentFrame({ height: currentHeight });

    var domChangeObserver = new MutationObserver(function() {
        var newHeight = document.body.offsetHeight;
        if (newHeight !== currentHeight) {
            notifyParentFrame({ height: newHeight });
            currentHeight = newHeight;
        }
    });

    domChangeObserver.observe(document.body, {
        subtree: true,
        childList: true,
        attributes: true
    });

    var sessionTokenKey = __SESSION_TOKEN_KEY__;

    window.embedframe = {
        root: root,
        flags: {
            apiEndpoint: apiEndpoint,
            siteUrl: hostUrl.origin,
            anonymousUsername: localStorage.getItem(__ANONYMOUS_USERNAME_KEY__),
            gitRef: gitRef,
            sessionToken: localStorage.getItem(sessionTokenKey)
        },
        writeToLocalStorage: function(key, value) {
            localStorage.setItem(key, value);
        },
        removeToken: function() {
            localStorage.removeItem(sessionTokenKey);
        }
    };
})();
"""


HOST_LISTENER_TEMPLATE = """
(function() {
    'use strict';

    var widgetOrigin = __WIDGET_ORIGIN__;
    var iframeId = __IFRAME_ID__;

    window.addEventListener('message', function(event) {
        if (event.origin !== widgetOrigin) {
            return;
        }
        var data = event.data;
        if (!data || typeof data.height !== 'number' || data.height < 0) {
            return;
        }
        var iframe = document.getElementById(iframeId);
        if (iframe) {
            iframe.style.height = Math.round(data.height) + 'px';
        }
    });
})();
"""


def build_widget_runtime_js(
    build: BuildSettings | None = None,
    settings: WidgetSettings | None = None,
) -> str:
    """Render the widget-side runtime script.

    Parameters
    ----------
    build : BuildSettings or None, optional
        Build-time values to inline. Defaults to reading the environment.
    settings : WidgetSettings or None, optional
        Parameter name, root element id and storage keys.

    Returns
    -------
    str
        JavaScript source.

    Raises
    ------
    BuildConfigError
        If a production build has no build identifier.
    """
    build = (build or BuildSettings()).require_valid()
    settings = settings or WidgetSettings()

    replacements = {
        "__API_ENDPOINT__": _js_literal(build.api_endpoint),
        "__GIT_REF__": _js_literal(build.git_ref),
        "__PRODUCTION__": _js_literal(build.is_production),
        "__HOST_URL_PARAM__": _js_literal(settings.host_url_param),
        "__ROOT_ELEMENT_ID__": _js_literal(settings.root_element_id),
        "__SESSION_TOKEN_KEY__": _js_literal(settings.session_token_key),
        "__ANONYMOUS_USERNAME_KEY__": _js_literal(settings.anonymous_username_key),
    }
    script = WIDGET_RUNTIME_TEMPLATE
    for placeholder, value in replacements.items():
        script = script.replace(placeholder, value)
    return script


def build_host_listener_js(iframe_id: str, widget_origin: str) -> str:
    """Render the host page listener that resizes the iframe.

    Parameters
    ----------
    iframe_id : str
        Id of the iframe element in the host page.
    widget_origin : str
        Origin the widget is served from; other senders are ignored.

    Returns
    -------
    str
        JavaScript source.
    """
    return HOST_LISTENER_TEMPLATE.replace("__WIDGET_ORIGIN__", _js_literal(widget_origin)).replace(
        "__IFRAME_ID__", _js_literal(iframe_id)
    )


def widget_src(widget_url: str, host_url: str, param: str = DEFAULT_HOST_URL_PARAM) -> str:
    """Return ``widget_url`` with the host page URL added as a query parameter.

    An existing value for ``param`` is replaced.
    """
    # Validates host_url the same way the widget will
    HostOrigin.from_url(host_url)

    parts = urlsplit(widget_url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != param]
    query.append((param, host_url))
    return urlunsplit(parts._replace(query=urlencode(query)))


def build_embed_html(
    widget_url: str,
    host_url: str,
    iframe_id: str = "embedframe-widget",
    param: str = DEFAULT_HOST_URL_PARAM,
) -> str:
    """Render the iframe element and its resize listener for the host page.

    Parameters
    ----------
    widget_url : str
        URL the bundled widget (``iframe-app.html``) is served from.
    host_url : str
        URL of the host page embedding the widget.
    iframe_id : str, optional
        Id given to the iframe element.
    param : str, optional
        Query parameter the widget reads the host URL from.

    Returns
    -------
    str
        HTML snippet.
    """
    src = widget_src(widget_url, host_url, param)
    widget_origin = str(HostOrigin.from_url(widget_url))
    listener = build_host_listener_js(iframe_id, widget_origin)
    return (
        f'<iframe id="{html.escape(iframe_id)}" src="{html.escape(src)}" '
        'style="width: 100%; border: none; overflow: hidden;" scrolling="no"></iframe>\n'
        f"<script>{listener}</script>\n"
    )
