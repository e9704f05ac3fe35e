# avatoken/batch.py
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from tqdm import tqdm

from .colors import Color, parse_hex_color
from .process import make_token
from .sources import fetch_image, is_url, load_image, output_name, save_png
from .utils import ensure_dir

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemResult:
    """Outcome of one input: `output` on success, `error` otherwise."""
    source: str
    output: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.output is not None


def resolve_color(value: Optional[str]) -> Optional[Color]:
    """None / "" / "auto" mean: derive the ring color from the image."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == "auto":
        return None
    return parse_hex_color(text)


def process_one(source: str, cfg: Dict[str, Any]) -> Path:
    """Load or download one input, render its token and save it. Returns the output path."""
    r, t, o = cfg["render"], cfg["tint"], cfg["output"]

    if is_url(source):
        image, name = fetch_image(source, timeout=cfg["download"]["timeout"])
    else:
        image, name = load_image(source), source

    token = make_token(
        image,
        scale=r["scale"],
        border_width=r["border_width"],
        color=resolve_color(r["color"]),
        brightness=t["brightness"],
        contrast=t["contrast"],
    )
    return save_png(token, o["dir"], output_name(name, prefix=o["prefix"], strip=o["strip"]))


def process_inputs(inputs: Iterable[str], cfg: Dict[str, Any], progress: bool = False) -> List[ItemResult]:
    """Process every input in order. A failing item is recorded and the loop moves on."""
    items = list(inputs)
    results: List[ItemResult] = []
    for src in tqdm(items, desc="tokens", unit="img", disable=not progress):
        try:
            out = process_one(src, cfg)
        except Exception as e:
            log.error("Failed processing %s: %s", src, e)
            results.append(ItemResult(source=src, error=str(e) or type(e).__name__))
            continue
        log.info("Processed %s -> %s", src, out)
        results.append(ItemResult(source=src, output=str(out)))

    n_ok = sum(1 for x in results if x.ok)
    log.info("Done. inputs=%d processed=%d failures=%d", len(results), n_ok, len(results) - n_ok)
    return results


def write_report(results: List[ItemResult], path: str | Path) -> Path:
    """JSON list of {source, output, error}."""
    out_path = Path(path)
    ensure_dir(out_path.parent)
    payload: List[Dict[str, Any]] = [asdict(x) for x in results]
    out_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return out_path
