"""Strip markup and unescape the handful of entities feeds use."""

import re
from typing import Optional

_TAG = re.compile(r"<[^>]*>")

# &amp; is decoded before the other entities
_ENTITIES = (
    ("&amp;", "&"),
    ("&quot;", '"'),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&#39;", "'"),
    ("&nbsp;", " "),
)


def clean(html: Optional[str]) -> str:
    """Remove every tag span, unescape entities and trim."""
    if not html:
        return ""
    text = _TAG.sub("", html)
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return text.strip()
