"""
Synthetic id template rendering.

Templates are mustache-style strings such as
``"{{client_ip}}:{{user_agent}}"``. Double-stash placeholders are HTML-escaped
the way Handlebars escapes them, so identifiers stay bit-identical with
deployments that render the same template through Handlebars. Triple-stash
placeholders (``{{{user_agent}}}``) insert the raw value.

Any rendering problem is a TemplateError: the caller must refuse to serve
rather than fall back to a different identity scheme.
"""

import re
from typing import Iterable, List, Mapping, Optional

from privacy_gate.errors import TemplateError

_PLACEHOLDER = re.compile(r"\{\{(\{?)\s*([^{}]*?)\s*(\}?)\}\}")

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "`": "&#x60;",
    "=": "&#x3D;",
}


def html_escape(value: str) -> str:
    """Escape a value the way Handlebars escapes double-stash output."""
    return "".join(_HTML_ESCAPES.get(c, c) for c in value)


def template_placeholders(template: str) -> List[str]:
    """Return the placeholder names used by a template, in order of appearance."""
    names = []
    for match in _PLACEHOLDER.finditer(template):
        raw_open, name, raw_close = match.groups()
        if bool(raw_open) != bool(raw_close):
            raise TemplateError(f"Unbalanced braces in placeholder {match.group(0)!r}")
        if not name:
            raise TemplateError(f"Empty placeholder {match.group(0)!r}")
        names.append(name)

    residue = _PLACEHOLDER.sub("", template)
    if "{{" in residue or "}}" in residue:
        raise TemplateError("Malformed template: unterminated or stray braces")
    return names


def validate_template(template: str, allowed: Optional[Iterable[str]] = None) -> List[str]:
    """Check template syntax and, if given, that every placeholder is allowed."""
    names = template_placeholders(template)
    if allowed is not None:
        allowed = set(allowed)
        unknown = [n for n in names if n not in allowed]
        if unknown:
            raise TemplateError(
                f"Unknown placeholder(s) {unknown}; expected one of {sorted(allowed)}"
            )
    return names


def render_template(template: str, values: Mapping[str, str]) -> str:
    """Render a template, substituting every placeholder from ``values``."""
    validate_template(template, values.keys())

    def _substitute(match: "re.Match") -> str:
        raw, name, _ = match.groups()
        value = str(values[name])
        return value if raw else html_escape(value)

    return _PLACEHOLDER.sub(_substitute, template)
