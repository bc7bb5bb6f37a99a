from __future__ import annotations

from typing import Iterable

from .contracts import OrderingToken
from .tokens import extract


def rank_key(filename: str, prefix: str) -> tuple[OrderingToken, str]:
    """
    Sort key: numeric (major, minor) first, raw filename as tie-break so the
    order stays total even for names that share a token.
    """

    return extract(filename, prefix, anywhere=True), filename


def compare(a: str, b: str, prefix: str) -> int:
    ka = rank_key(a, prefix)
    kb = rank_key(b, prefix)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0


def sort_by_rank(filenames: Iterable[str], prefix: str) -> list[str]:
    # "CH.1", "CH.3", "CH.20" (a plain string sort would put CH.20 before CH.3).
    return sorted(filenames, key=lambda name: rank_key(name, prefix))
