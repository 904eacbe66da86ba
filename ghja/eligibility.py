"""Rules deciding whether an element's content may be rewritten.

Text fragments (checked on their parent element) and attributes (checked on
their own element) share this single rule set.
"""

from __future__ import annotations

from typing import Any, FrozenSet, Optional, Tuple

from lxml import etree

OPT_OUT_ATTRIBUTE = "data-no-translate"

SKIPPED_TAGS: FrozenSet[str] = frozenset(
    {"code", "pre", "kbd", "samp", "var", "script", "style", "noscript"}
)

# Source code views, diffs and rich editors.
SKIPPED_REGION_CLASSES: Tuple[str, ...] = (
    "blob-code",
    "highlight",
    "diff-table",
    "CodeMirror",
    "cm-editor",
    "react-code-viewer",
    "js-code-block-container",
)

SKIPPED_MARKUP: Tuple[str, ...] = ("svg", "math")


def _class_test(name: str) -> str:
    return f"contains(concat(' ', normalize-space(@class), ' '), ' {name} ')"


_OPT_OUT = etree.XPath(f"boolean(ancestor-or-self::*[@{OPT_OUT_ATTRIBUTE}])")
_REGION = etree.XPath(
    "boolean(ancestor-or-self::*[{}])".format(
        " or ".join(_class_test(name) for name in SKIPPED_REGION_CLASSES)
    )
)
_SKIPPED_TAG = etree.XPath(
    "boolean(ancestor-or-self::*[{}])".format(
        " or ".join(f"local-name()='{name}'" for name in sorted(SKIPPED_TAGS))
    )
)
_MARKUP = etree.XPath(
    "boolean(ancestor-or-self::*[{}])".format(
        " or ".join(f"local-name()='{name}'" for name in SKIPPED_MARKUP)
    )
)


def local_tag(element: Any) -> Optional[str]:
    """Return the lower-cased tag name, or ``None`` for comments and the like."""

    tag = element.tag
    if not isinstance(tag, str):
        return None
    return etree.QName(tag).localname.lower()


def should_skip(element: Optional[Any]) -> bool:
    """Return ``True`` when the element's content must stay byte-exact."""

    if element is None:
        return True
    tag = local_tag(element)
    if tag is None:
        return True
    if _OPT_OUT(element):
        return True
    if tag in SKIPPED_TAGS or _SKIPPED_TAG(element):
        return True
    if _REGION(element):
        return True
    if _MARKUP(element):
        return True
    return False
