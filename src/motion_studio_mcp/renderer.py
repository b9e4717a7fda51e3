"""Isolated preview documents for generated animation code.

The generated code is never executed here. :class:`SandboxedRenderer` only
assembles a self-contained HTML document that a host drops into an
``<iframe sandbox="allow-scripts">``. Without ``allow-same-origin`` the frame
gets an opaque origin, so the embedded code cannot script the host page.
"""

from __future__ import annotations

import html
import logging
import re
import uuid
from dataclasses import dataclass
from string import Template

from .config import get_config
from .prompts.animation import ENTRY_COMPONENT, RENDERED_FLAG

logger = logging.getLogger(__name__)

SANDBOX_POLICY = "allow-scripts"
ERROR_MESSAGE_TYPE = "motion-studio:preview-error"

_SCRIPT_CLOSE = re.compile(r"</(script)", re.IGNORECASE)
_STYLE_CLOSE = re.compile(r"</(style)", re.IGNORECASE)

_DOCUMENT = Template("""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
$runtime_tags
  <style>
    * {
      margin: 0;
      padding: 0;
      box-sizing: border-box;
    }
    html, body, #root {
      width: 100%;
      height: 100%;
      display: flex;
      align-items: center;
      justify-content: center;
      background: $background;
      overflow: hidden;
    }
    .preview-error {
      color: #ef4444;
      padding: 20px;
      text-align: center;
      font-family: sans-serif;
    }
$stylesheet
  </style>
</head>
<body>
  <div id="root"></div>
  <script>
    (function () {
      function report(message) {
        var text = String(message || 'Unknown error');
        var root = document.getElementById('root');
        var box = document.createElement('div');
        var title = document.createElement('strong');
        box.className = 'preview-error';
        title.textContent = 'Preview Error:';
        box.appendChild(title);
        box.appendChild(document.createElement('br'));
        box.appendChild(document.createTextNode(text));
        if (root) {
          root.replaceChildren(box);
        }
        try {
          window.parent.postMessage(
            { type: '$message_type', contextId: '$context_id', message: text },
            '*'
          );
        } catch (ignored) {}
      }
      window.__reportPreviewError = report;
      window.addEventListener('error', function (event) {
        report(event.message || (event.error && event.error.message));
      });
    })();
  </script>
  <script type="text/babel">
    window.React = React;
    window.ReactDOM = ReactDOM;
    const { useState, useEffect, useMemo, useCallback, useRef, useContext, useReducer, useLayoutEffect } = React;

    try {
$code

      if (typeof $entry !== 'undefined' && !window.$rendered_flag) {
        const __previewRoot = ReactDOM.createRoot(document.getElementById('root'));
        __previewRoot.render(<$entry key="$mount_key" />);
        window.$rendered_flag = true;
      }
    } catch (error) {
      console.error('Preview Error:', error);
      window.__reportPreviewError(error && error.message ? error.message : error);
    }
  </script>
</body>
</html>
""")


def _guard_script(code: str) -> str:
    """Neutralise ``</script`` so embedded code cannot close its container."""
    return _SCRIPT_CLOSE.sub(r"<\\/\1", code)


def _guard_style(stylesheet: str) -> str:
    return _STYLE_CLOSE.sub(r"<\\/\1", stylesheet)


@dataclass(frozen=True)
class PreviewDocument:
    """One rendered preview: a fresh execution context per instance."""

    html: str
    mount_key: int
    context_id: str
    sandbox: str = SANDBOX_POLICY

    def iframe_markup(self, title: str = "Animation Preview") -> str:
        """Return an ``<iframe>`` element embedding this document via ``srcdoc``."""
        return (
            f'<iframe srcdoc="{html.escape(self.html, quote=True)}" '
            f'sandbox="{self.sandbox}" '
            f'title="{html.escape(title, quote=True)}" '
            f'data-mount-key="{self.mount_key}"></iframe>'
        )


class SandboxedRenderer:
    """Builds preview documents and tracks the remount counter for one editor."""

    def __init__(
        self,
        runtime_urls: tuple[str, ...] | None = None,
        background: str | None = None,
    ) -> None:
        self._runtime_urls = runtime_urls
        self._background = background
        self.mount_key = 0
        self._last_inputs: tuple[str, str] | None = None

    def _build(self, code: str, stylesheet: str) -> PreviewDocument:
        cfg = get_config()
        urls = self._runtime_urls if self._runtime_urls is not None else cfg.runtime_urls
        context_id = uuid.uuid4().hex
        runtime_tags = "\n".join(
            f'  <script src="{html.escape(url, quote=True)}" crossorigin></script>' for url in urls
        )
        document = _DOCUMENT.substitute(
            runtime_tags=runtime_tags,
            background=self._background or cfg.preview_background,
            stylesheet=_guard_style(stylesheet),
            code=_guard_script(code),
            entry=ENTRY_COMPONENT,
            rendered_flag=RENDERED_FLAG,
            mount_key=self.mount_key,
            context_id=context_id,
            message_type=ERROR_MESSAGE_TYPE,
        )
        return PreviewDocument(html=document, mount_key=self.mount_key, context_id=context_id)

    def render(self, code: str, stylesheet: str = "") -> PreviewDocument | None:
        """Build a new document for *code* and *stylesheet*.

        Returns None when there is no code; nothing is rendered in that case.
        """
        if not code:
            self._last_inputs = None
            return None
        self._last_inputs = (code, stylesheet)
        doc = self._build(code, stylesheet)
        logger.debug("Rendered preview %s (mount_key=%d)", doc.context_id, doc.mount_key)
        return doc

    def force_remount(
        self, code: str | None = None, stylesheet: str = ""
    ) -> PreviewDocument | None:
        """Bump the mount key and rebuild in a new context.

        Builds from *code* and *stylesheet* when given, otherwise from the last inputs.
        """
        self.mount_key += 1
        if code is None:
            if self._last_inputs is None:
                return None
            code, stylesheet = self._last_inputs
        return self.render(code, stylesheet)
