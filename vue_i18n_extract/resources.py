"""Resource dictionary persistence.

On-disk shape (``locales/zh.json``):

    {
      "home": { "key_1": "首页", "key_2": "今天天气{0}, 温度{1}" },
      "common": { "key_1": "提交失败" }
    }
"""

from __future__ import annotations

import copy
import json
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .errors import ConfigError


def load_dictionary(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        raw = path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read resource dictionary {path}: {exc}") from exc
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Resource dictionary is not valid JSON: {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Resource dictionary must be a JSON object: {path}")
    return data


def deep_merge(target: dict[str, Any], source: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``source`` into ``target`` in place; leaves from ``source`` win."""
    for key, value in source.items():
        if isinstance(value, Mapping):
            current = target.get(key)
            if not isinstance(current, dict):
                current = {}
                target[key] = current
            deep_merge(current, value)
        else:
            target[key] = value
    return target


def set_nested_value(data: dict[str, Any], key: str, value: str) -> None:
    parts = [p for p in key.split(".") if p]
    if not parts:
        raise ValueError("Empty key")

    node = data
    for part in parts[:-1]:
        current = node.get(part)
        if not isinstance(current, dict):
            current = {}
            node[part] = current
        node = current
    node[parts[-1]] = value


def flat_to_nested(flat: Mapping[str, str]) -> dict[str, Any]:
    nested: dict[str, Any] = {}
    for key, value in flat.items():
        set_nested_value(nested, key, value)
    return nested


def iter_leaves(data: Mapping[str, Any], prefix: str = ""):
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            yield from iter_leaves(value, path)
        elif isinstance(value, str):
            yield path, value


def merged_with_disk(path: Path, entries: Mapping[str, str]) -> dict[str, Any]:
    base = copy.deepcopy(load_dictionary(path))
    return deep_merge(base, flat_to_nested(entries))


def write_dictionary(path: Path, data: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(data, ensure_ascii=False, indent=2) + "\n"
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(payload)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def save_dictionary(path: Path, entries: Mapping[str, str]) -> dict[str, Any]:
    """Merge the run's ``full.key -> text`` entries on top of the file and write it."""
    merged = merged_with_disk(path, entries)
    write_dictionary(path, merged)
    return merged
