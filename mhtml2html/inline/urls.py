"""
mhtml2html/inline/urls.py
-------------------------
Resolution of relative references against an archived document's location.
The result is used verbatim as a key into the media map.
"""

from typing import List


def absolute_url(base: str, relative: str) -> str:
    """
    Resolve `relative` against `base` by plain path-segment arithmetic.

    >>> absolute_url("a/b/c.html", "../d.css")
    'a/d.css'
    """
    if relative.startswith(("http://", "https://")):
        return relative

    stack: List[str] = base.split("/")
    stack.pop()

    for segment in relative.split("/"):
        if segment == ".":
            continue
        if segment == "..":
            if stack:
                stack.pop()
            continue
        stack.append(segment)

    return "/".join(stack)
