"""Shared helper functions for server modules."""

from __future__ import annotations

import re
from urllib.parse import unquote

# ════════════════════════════════════════════════════════════════════
# GitLab URL parsing
# ════════════════════════════════════════════════════════════════════

# Matches:  <host>/<namespace/project>[.git][/-/<anything>]
_PROJECT_RE = re.compile(r"https?://[^/]+/(.+?)(?:\.git)?/?(?:/-/.*)?$")


def _parse_gitlab_project_url(value: str) -> str:
    """Extract project_path from a GitLab project URL.

    If *value* is not a URL, returns it unchanged.
    """
    if not value.startswith(("http://", "https://")):
        return value
    m = _PROJECT_RE.match(value)
    if m:
        return unquote(m.group(1))
    return value
