from __future__ import annotations

import re

from .contracts import NameParts, OrderingToken, TokenNotFound, ZeroToken

# <major>[<sep><minor>] where sep is "," or "."; "CH.1.5" and "page_1,5" both yield (1, 5).
TOKEN_PATTERN = r"(?P<major>\d+)(?:[.,](?P<minor>\d+))?"

_TOKEN_RE = re.compile(TOKEN_PATTERN)
_SPLIT_RE_TEMPLATE = r"^(?P<prefix>.*?)(?P<token>{token})(?P<marker>{marker})?(?P<ext>\.[A-Za-z0-9]+)$"


def _basename(filename: str) -> str:
    return filename.replace("\\", "/").split("/")[-1]


def _token_from_match(m: re.Match[str], *, filename: str) -> OrderingToken:
    major = int(m.group("major"))
    minor = int(m.group("minor")) if m.group("minor") is not None else 0
    if major == 0:
        raise ZeroToken(
            f"Page number 0 is not valid (pages are 1-indexed): {filename!r}",
            detail={"filename": filename, "token": m.group(0)},
        )
    return OrderingToken(major=major, minor=minor)


def extract(filename: str, prefix: str, *, anywhere: bool = False) -> OrderingToken:
    """
    Extract the ordering token embedded in `filename` after `prefix`.

    With `anywhere=False` (image sequences) the token must start right after
    the prefix. With `anywhere=True` (pdf inputs) the first digit run found in
    the remainder is used.
    """

    name = _basename(filename)
    rest = name[len(prefix) :] if prefix and name.startswith(prefix) else name

    m = _TOKEN_RE.search(rest) if anywhere else _TOKEN_RE.match(rest)
    if m is None:
        raise TokenNotFound(
            f"No page number found in {filename!r} after prefix {prefix!r}",
            detail={"filename": filename, "prefix": prefix},
        )
    return _token_from_match(m, filename=filename)


def split_name(filename: str, *, marker: str = "_small") -> NameParts:
    """
    Split a representative filename into prefix, trailing token, optional
    processed marker and extension.

    >>> split_name("page_0001_small.jpg").prefix
    'page_'
    """

    name = _basename(filename)
    marker_re = re.escape(marker) if marker else "(?!)"
    pattern = _SPLIT_RE_TEMPLATE.format(token=TOKEN_PATTERN, marker=marker_re)
    m = re.match(pattern, name)
    if m is None:
        raise TokenNotFound(
            f"No trailing page number found in {filename!r}",
            detail={"filename": filename},
        )

    return NameParts(
        prefix=m.group("prefix"),
        token_text=m.group("token"),
        token=_token_from_match(m, filename=filename),
        marker=m.group("marker") or "",
        extension=m.group("ext"),
    )
