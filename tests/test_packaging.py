from __future__ import annotations

import re
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def test_declared_readme_exists() -> None:
    metadata = (PROJECT_ROOT / "pyproject.toml").read_text(encoding="utf-8")
    match = re.search(r'^readme\s*=\s*"([^"]+)"', metadata, re.MULTILINE)
    if match is None:
        return
    assert (PROJECT_ROOT / match.group(1)).is_file()
    assert match.group(1) != "SPEC_FULL.md"
