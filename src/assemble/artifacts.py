from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .contracts import AssembleResult


def serialize_assemble_result(result: AssembleResult) -> str:
    payload: dict[str, Any] = result.to_dict()
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def serialize_assemble_report(results: list[AssembleResult]) -> str:
    payload: dict[str, Any] = {
        "ok": all(r.ok for r in results),
        "runs": [r.to_dict() for r in results],
    }
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def write_assemble_report_json(*, results: list[AssembleResult], out_report: Path) -> None:
    out_report.parent.mkdir(parents=True, exist_ok=True)
    out_report.write_text(serialize_assemble_report(results), encoding="utf-8")
