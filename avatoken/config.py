# avatoken/config.py
from __future__ import annotations
import math
from pathlib import Path
from typing import Any, Dict
import yaml

# ---------- Defaults ----------
def default_config() -> Dict[str, Any]:
    return {
        "render": {
            "scale": 300,
            "border_width": 10,
            "color": None,        # "#RRGGBB", or null/"auto" to derive from the image
        },
        "tint": {
            "brightness": 100,
            "contrast": 10.0,
        },
        "output": {
            "dir": "./tokens",
            "prefix": "token_",
            "strip": ["danimalsound_"],
        },
        "download": {
            "timeout": 15.0,
        },
        "server": {
            "host": "127.0.0.1",
            "port": 8080,
        },
    }

# flat keys written by the old drag-and-drop tool (config.json next to the exe)
_LEGACY_KEYS = {
    "scale": ("render", "scale"),
    "borderWidth": ("render", "border_width"),
    "outputDir": ("output", "dir"),
    "color": ("render", "color"),
}

# ---------- IO ----------
def load_config(path: str | Path) -> Dict[str, Any]:
    """Read YAML (or JSON) config from disk. If the file does not exist, raise FileNotFoundError."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {p}")
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config root must be a mapping: {p}")
    # merge shallowly with defaults
    cfg = default_config()
    for k, v in data.items():
        if k in _LEGACY_KEYS:
            sect, key = _LEGACY_KEYS[k]
            cfg[sect][key] = v
        elif isinstance(v, dict) and k in cfg:
            cfg[k].update(v)
        else:
            cfg[k] = v
    return cfg

def save_config(cfg: Dict[str, Any], path: str | Path) -> None:
    """Write YAML config to disk (pretty)."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        yaml.safe_dump(cfg, f, sort_keys=False, allow_unicode=True)

# ---------- Validation / Normalization ----------
def _number(sect: Dict[str, Any], name: str, key: str, cast):
    v = sect[key]
    try:
        if isinstance(v, bool):
            raise TypeError
        sect[key] = cast(v)
    except (TypeError, ValueError):
        raise ValueError(f"{name}.{key} must be a number, got {v!r}") from None

def resolve_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and normalize config in-place; return cfg."""
    defaults = default_config()
    for sect in defaults:
        if cfg.get(sect) is None:
            cfg[sect] = {}
        if not isinstance(cfg[sect], dict):
            raise ValueError(f"{sect} must be a mapping, got {cfg[sect]!r}")
        for k, v in defaults[sect].items():
            cfg[sect].setdefault(k, v)

    r = cfg["render"]
    _number(r, "render", "scale", int)
    _number(r, "render", "border_width", float)
    if r["scale"] < 1:
        raise ValueError("render.scale must be ≥ 1")
    if not (0 <= r["border_width"] < r["scale"]):
        raise ValueError("render.border_width must be in [0, render.scale)")
    if r["color"] is not None:
        r["color"] = str(r["color"]).strip() or None

    t = cfg["tint"]
    _number(t, "tint", "brightness", int)
    _number(t, "tint", "contrast", float)
    if not math.isfinite(t["contrast"]):
        raise ValueError("tint.contrast must be a finite number")

    o = cfg["output"]
    if not o["dir"]:
        raise ValueError("output.dir must be set")
    o["dir"] = str(o["dir"])
    o["prefix"] = str(o["prefix"] or "")
    strip = o["strip"] or []
    if isinstance(strip, str):
        strip = [strip]
    if not isinstance(strip, (list, tuple)):
        raise ValueError(f"output.strip must be a string or a list, got {strip!r}")
    o["strip"] = [str(s) for s in strip if s]

    d = cfg["download"]
    _number(d, "download", "timeout", float)
    if not d["timeout"] > 0.0:
        raise ValueError("download.timeout must be > 0")

    s = cfg["server"]
    s["host"] = str(s["host"])
    _number(s, "server", "port", int)
    if not (0 <= s["port"] <= 65535):
        raise ValueError("server.port must be in [0, 65535]")

    return cfg
