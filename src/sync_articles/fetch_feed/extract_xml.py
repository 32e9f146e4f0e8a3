"""Pull a tag's inner text out of a raw feed fragment."""

import re

_CDATA = re.compile(r"^<!\[CDATA\[(.*)\]\]>$", re.DOTALL)


def extract(fragment: str, tag_name: str) -> str:
    """Return the trimmed inner text of the first `<tag_name ...>...</tag_name>`.

    Attributes on the opening tag are ignored and the match is
    case-insensitive. Namespaced names such as ``content:encoded`` work as-is.
    Returns "" when the tag is absent.
    """
    if not fragment:
        return ""
    tag = re.escape(tag_name)
    match = re.search(rf"<{tag}[^>]*>(.*?)</{tag}>", fragment, re.IGNORECASE | re.DOTALL)
    if not match:
        return ""
    text = match.group(1).strip()
    cdata = _CDATA.match(text)
    if cdata:
        text = cdata.group(1).strip()
    return text
