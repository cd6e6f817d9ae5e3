from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

import orjson

from .settings import settings

COMMIT_EVENT = "drag_commit"
COMMIT_KEYS = ("drag_ms", "cells", "blocks")


@dataclass
class Percentiles:
    count: int
    p50: int
    p95: int


def _percentile(sorted_vals: List[int], p: float) -> int:
    if not sorted_vals:
        return 0
    if p <= 0:
        return int(sorted_vals[0])
    if p >= 1:
        return int(sorted_vals[-1])
    k = p * (len(sorted_vals) - 1)
    lo = int(k)
    hi = min(lo + 1, len(sorted_vals) - 1)
    if lo == hi:
        return int(sorted_vals[lo])
    # linear interpolation
    return int(round(sorted_vals[lo] + (sorted_vals[hi] - sorted_vals[lo]) * (k - lo), 0))


def _summarize(vals: List[int]) -> Percentiles:
    ordered = sorted(int(v) for v in vals)
    return Percentiles(
        count=len(ordered),
        p50=_percentile(ordered, 0.50),
        p95=_percentile(ordered, 0.95),
    )


def read_events(path: str | Path, evt: str | None = None) -> List[Dict]:
    """Read NDJSON events, optionally only those named `evt`. Unparseable lines are skipped."""
    p = Path(path)
    if not p.exists():
        return []
    out: List[Dict] = []
    with p.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                obj = orjson.loads(line)
            except orjson.JSONDecodeError:
                continue
            if not isinstance(obj, dict):
                continue
            if evt is None or obj.get("evt") == evt:
                out.append(obj)
    return out


def summarize_commits(commits: List[Dict]) -> Dict[str, Dict]:
    buckets: Dict[str, List[int]] = {k: [] for k in COMMIT_KEYS}
    for c in commits:
        for k in COMMIT_KEYS:
            v = c.get(k)
            if isinstance(v, (int, float)) and not isinstance(v, bool):
                buckets[k].append(int(v))

    out: Dict[str, Dict] = {}
    for k, vals in buckets.items():
        s = _summarize(vals)
        out[k] = {"count": s.count, "p50": s.p50, "p95": s.p95}
    return out


def summarize_file(path: str | Path | None = None) -> Dict:
    path = path or settings.events_file
    events = read_events(path)
    commits = [e for e in events if e.get("evt") == COMMIT_EVENT]
    by_evt: Dict[str, int] = {}
    for e in events:
        name = str(e.get("evt"))
        by_evt[name] = by_evt.get(name, 0) + 1
    return {
        "commits": len(commits),
        "events": by_evt,
        "metrics": summarize_commits(commits),
    }
