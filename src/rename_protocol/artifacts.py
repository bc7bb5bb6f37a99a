from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .contracts import RenameJournal, RenamePair


def journal_path_for(*, directory: Path, stem: str) -> Path:
    # Leading "." keeps the journal out of every same-prefix listing.
    return directory / f".{stem}.rename-journal.json"


def serialize_rename_journal(journal: RenameJournal) -> str:
    payload: dict[str, Any] = journal.to_dict()
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def write_rename_journal_json(*, journal: RenameJournal, out_file: Path) -> None:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(serialize_rename_journal(journal), encoding="utf-8")


def read_rename_journal_json(journal_file: Path) -> RenameJournal:
    payload = json.loads(journal_file.read_text(encoding="utf-8"))
    if not isinstance(payload, dict) or not isinstance(payload.get("pairs"), list):
        raise ValueError(f"Not a rename journal: {journal_file}")

    pairs: list[RenamePair] = []
    for item in payload["pairs"]:
        if not isinstance(item, dict) or not isinstance(item.get("original"), str) or not isinstance(
            item.get("sanitized"), str
        ):
            raise ValueError(f"Malformed rename journal entry in {journal_file}: {item!r}")
        pairs.append(RenamePair(original=item["original"], sanitized=item["sanitized"]))

    return RenameJournal(
        directory=Path(payload.get("directory") or journal_file.parent),
        pairs=pairs,
        journal_file=journal_file,
    )
