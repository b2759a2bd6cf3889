"""
Heading slugs for anchor-style section queries
"""

import string

_ALNUM = frozenset(string.ascii_letters + string.digits)
_SEPARATORS = frozenset(" _")


def slugify(title: str) -> str:
    """
    Convert a heading title to its anchor slug.

    ASCII letters and digits are kept (lower-cased). Runs of spaces and
    underscores become a single hyphen, never at either end. Everything
    else, including '-' itself, is dropped.

    Args:
        title: Heading text (e.g., "My Section Title")

    Returns:
        Slug (e.g., "my-section-title")

    Example:
        >>> slugify("MY   SECTION")
        'my-section'
        >>> slugify("My-Section-Extra")
        'mysectionextra'
        >>> slugify("  Setup & Install_Guide ")
        'setup-install-guide'
    """
    out: list[str] = []
    pending_dash = False

    for ch in title:
        if ch in _ALNUM:
            if pending_dash:
                out.append("-")
                pending_dash = False
            out.append(ch.lower())
        elif ch in _SEPARATORS and out:
            pending_dash = True

    return "".join(out)
