import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """`"Delegation 101: Let Go!"` -> `"delegation-101-let-go"`."""
    return _NON_ALNUM.sub("-", (title or "").lower()).strip("-")
