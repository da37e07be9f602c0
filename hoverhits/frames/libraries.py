"""Recognise well-known libraries from source URLs."""

from __future__ import annotations

import re
from typing import Final

# Checked in order; the first matching pattern wins.
LIBRARY_PATTERNS: Final[tuple[tuple[str, re.Pattern[str]], ...]] = (
    ("Backbone", re.compile(r"backbone", re.IGNORECASE)),
    ("Babel", re.compile(r"node_modules/@babel", re.IGNORECASE)),
    ("jQuery", re.compile(r"jquery", re.IGNORECASE)),
    ("Preact", re.compile(r"preact", re.IGNORECASE)),
    (
        "React",
        re.compile(r"(node_modules/(?:react(-dom)?(-dev)?/))|(react(-dom)?(-dev)?(\.[a-z]+)*\.js$)"),
    ),
    ("Immutable", re.compile(r"immutable", re.IGNORECASE)),
    ("Webpack", re.compile(r"webpack/bootstrap", re.IGNORECASE)),
    ("Express", re.compile(r"node_modules/express")),
    ("Pug", re.compile(r"node_modules/pug")),
    ("ExtJS", re.compile(r"/ext-all[.\-]")),
    ("MobX", re.compile(r"mobx", re.IGNORECASE)),
    ("Underscore", re.compile(r"underscore", re.IGNORECASE)),
    ("Lodash", re.compile(r"lodash", re.IGNORECASE)),
    ("Ember", re.compile(r"ember", re.IGNORECASE)),
    ("Choo", re.compile(r"choo", re.IGNORECASE)),
    ("VueJS", re.compile(r"vue(?:\.[a-z]+)*\.js", re.IGNORECASE)),
    ("RxJS", re.compile(r"rxjs", re.IGNORECASE)),
    ("Angular", re.compile(r"angular(?!.*/app/)", re.IGNORECASE)),
    ("Redux", re.compile(r"redux", re.IGNORECASE)),
    ("Dojo", re.compile(r"dojo", re.IGNORECASE)),
    ("Marko", re.compile(r"marko", re.IGNORECASE)),
    ("NuxtJS", re.compile(r"[._]nuxt", re.IGNORECASE)),
    ("Aframe", re.compile(r"aframe", re.IGNORECASE)),
    ("NextJS", re.compile(r"[._]next", re.IGNORECASE)),
)


def library_from_url(url: str | None) -> str | None:
    """Return the library label for ``url``, or ``None``."""
    if not url:
        return None
    for label, pattern in LIBRARY_PATTERNS:
        if pattern.search(url):
            return label
    return None
