"""Output reporting helpers."""
from __future__ import annotations

import json
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional, TextIO

from .view import ViewSlots


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _fsync_dir(path: str) -> None:
    try:
        dir_fd = os.open(path, os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        pass
    finally:
        os.close(dir_fd)


@contextmanager
def atomic_writer(
    path: str,
    mode: str = "w",
    encoding: str = "utf-8",
    newline: Optional[str] = None,
) -> Iterator[TextIO]:
    dir_path = os.path.dirname(path) or "."
    base = os.path.basename(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{base}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, mode, encoding=encoding, newline=newline) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        _fsync_dir(dir_path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def atomic_write_text(path: str, text: str) -> None:
    with atomic_writer(path, mode="w", encoding="utf-8") as f:
        f.write(text)


def write_json_object(path: str, payload: Any) -> None:
    with atomic_writer(path, mode="w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def write_slots(output_dir: str, slots: ViewSlots) -> List[str]:
    """Write one ``<slot>.html`` file per view slot; returns the written paths."""
    ensure_dir(output_dir)
    written: List[str] = []
    for name, markup in slots.snapshot().items():
        path = os.path.join(output_dir, f"{name}.html")
        atomic_write_text(path, markup + ("\n" if markup else ""))
        written.append(path)
    return written


def write_markers_json(path: str, descriptors: Iterable[Dict[str, Any]]) -> None:
    write_json_object(path, list(descriptors))


def write_summary(path: str, summary: Dict[str, Any]) -> None:
    payload = dict(summary)
    payload.setdefault("generated_at", utc_now_iso())
    write_json_object(path, payload)


def render_summary(summary: Dict[str, Any]) -> str:
    lines = [
        f"Restaurants: {summary.get('restaurants', 0)} (revealed {summary.get('revealed', 0)})",
        f"Markers on map: {summary.get('markers', 0)}",
        f"Neighborhoods: {', '.join(summary.get('neighborhoods') or []) or '-'}",
        f"Cuisines: {', '.join(summary.get('cuisines') or []) or '-'}",
        f"Filter: cuisine={summary.get('selected_cuisine')} neighborhood={summary.get('selected_neighborhood')}",
    ]
    if summary.get("offline"):
        lines.append("Served from the offline store")
    requests = summary.get("requests")
    if requests:
        lines.append(
            "Requests: network={network_requests} failed={network_failures} "
            "store_writes={store_writes} store_write_failures={store_write_failures}".format(**requests)
        )
    return "\n".join(lines)
