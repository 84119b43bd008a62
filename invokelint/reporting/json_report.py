# JSON output: findings serialized through their pydantic models.

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

from invokelint.findings.models import Finding


def build_report(findings: Sequence[Finding], analyzed_files: Sequence[Path] = ()) -> dict[str, Any]:
    counts: dict[str, int] = {}
    for f in findings:
        counts[f.severity] = counts.get(f.severity, 0) + 1
    return {
        "files": [str(p) for p in analyzed_files],
        "summary": {"total": len(findings), "by_severity": counts},
        "findings": [f.model_dump(mode="json") for f in findings],
    }


def render_json(findings: Sequence[Finding], analyzed_files: Sequence[Path] = ()) -> str:
    return json.dumps(build_report(findings, analyzed_files), indent=2)
