# avatoken/utils.py
from __future__ import annotations
from pathlib import Path
import os


# ------------ filesystem helpers ------------
def ensure_dir(path: str | os.PathLike) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p

def path_exists(path: str | os.PathLike) -> bool:
    return Path(path).exists()


__all__ = ["ensure_dir", "path_exists"]
