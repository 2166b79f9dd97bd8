import json
import os
from pathlib import Path
from typing import Any


def load_json(path: str | Path, *, strict: bool = False) -> dict | None:
    """Read a JSON document.

    A missing file always yields ``None``. A corrupt file yields ``None`` unless
    ``strict`` is set, in which case the ``json.JSONDecodeError`` propagates.
    """
    try:
        with open(path, "r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError:
        return None
    except json.JSONDecodeError:
        if strict:
            raise
        return None


def atomic_write_json(path: str | Path, data: Any) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = target.with_suffix(f"{target.suffix}.tmp")
    payload = json.dumps(data, indent=2, ensure_ascii=False)
    with open(tmp_path, "w", encoding="utf-8") as handle:
        handle.write(payload)
        handle.flush()
        os.fsync(handle.fileno())
    os.replace(tmp_path, target)
