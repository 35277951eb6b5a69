from __future__ import annotations

from pathlib import Path


def repo_root() -> Path:
    # backend/app/core/paths.py -> core -> app -> backend -> repo
    return Path(__file__).resolve().parents[3]


def resolve_repo_path(path_value: str) -> Path:
    """
    Resolves a path that may be relative to the repo root.
    - If absolute: returns as-is.
    - Else if it exists relative to the CWD: returns that.
    - Else: anchors it at the repo root (it may not exist yet).
    """
    p = Path(path_value)
    if p.is_absolute():
        return p
    if p.exists():
        return p.resolve()
    return (repo_root() / path_value).resolve()
