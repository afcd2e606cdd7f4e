"""Project configuration.

``i18n.config.json`` is looked up from the target path upwards and merged over
the defaults; relative paths resolve against the directory holding the file.

    {
      "source_dir": "src/pages",
      "module_roots": ["src/pages", "src/modules/*"],
      "output": { "json": "locales/zh.json", "csv": "output/i18n.csv" },
      "key_strategy": "increment"
    }
"""

from __future__ import annotations

import copy
import fnmatch
import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

from .errors import ConfigError
from .resources import deep_merge

CONFIG_FILE_NAME = "i18n.config.json"
KEY_STRATEGY_ALIASES = {
    "increment": "increment",
    "prefix_increment": "increment",
    "hash": "hash",
}
DEFAULT_CONFIG: dict[str, Any] = {
    "source_dir": "src/pages",
    "module_roots": None,
    "default_module": "common",
    "output": {
        "json": "locales/zh.json",
        "csv": "output/i18n.csv",
    },
    "export_csv": False,
    "languages": ["zh_CN", "en_US"],
    "key_strategy": "increment",
    "extensions": [".vue", ".js", ".ts"],
    "exclude_dirs": [
        ".git",
        "node_modules",
        "dist",
        "build",
        "coverage",
        "locales",
    ],
}


@dataclass(frozen=True)
class ExtractConfig:
    project_root: Path
    source_dir: Path
    module_roots: tuple[str, ...]
    default_module: str
    output_json: Path
    output_csv: Path
    export_csv: bool
    languages: tuple[str, ...]
    key_strategy: str
    extensions: tuple[str, ...]
    exclude_dirs: tuple[str, ...]
    config_path: Path | None = None


def find_project_config(target: Path) -> Path | None:
    current = target if target.is_dir() else target.parent
    current = current.resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def read_config_file(path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file is not valid JSON: {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Config file must be a JSON object: {path}")
    return payload


def _str_list(raw: Any, name: str) -> tuple[str, ...]:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list) or not all(isinstance(v, str) and v for v in raw):
        raise ConfigError(f"'{name}' must be a list of non-empty strings")
    return tuple(raw)


def _str_value(raw: Any, name: str) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ConfigError(f"'{name}' must be a non-empty string")
    return raw.strip()


def normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def relative_root(pattern: str, project_root: Path) -> str:
    """Module roots are matched against project-relative paths."""
    path = Path(pattern)
    if not path.is_absolute():
        return pattern
    try:
        return path.resolve().relative_to(project_root).as_posix()
    except ValueError:
        return pattern


def build_config(
    raw: Mapping[str, Any],
    project_root: Path,
    config_path: Path | None = None,
) -> ExtractConfig:
    data = deep_merge(copy.deepcopy(DEFAULT_CONFIG), raw)

    strategy = _str_value(data.get("key_strategy"), "key_strategy")
    if strategy not in KEY_STRATEGY_ALIASES:
        raise ConfigError(
            f"Unknown key_strategy {strategy!r}; expected one of "
            f"{', '.join(sorted(KEY_STRATEGY_ALIASES))}"
        )

    output = data.get("output")
    if not isinstance(output, dict):
        raise ConfigError("'output' must be an object")

    source_dir = _str_value(data.get("source_dir"), "source_dir")
    module_roots = data.get("module_roots")
    roots = _str_list(module_roots, "module_roots") if module_roots else (source_dir,)
    roots = tuple(relative_root(pattern, project_root) for pattern in roots)

    export_csv = data.get("export_csv")
    if not isinstance(export_csv, bool):
        raise ConfigError("'export_csv' must be true or false")

    extensions = tuple(
        normalize_extension(e) for e in _str_list(data.get("extensions"), "extensions")
    )
    languages = _str_list(data.get("languages"), "languages")
    if not extensions or not languages:
        raise ConfigError("'extensions' and 'languages' must not be empty")

    return ExtractConfig(
        project_root=project_root,
        source_dir=(project_root / source_dir).resolve(),
        module_roots=roots,
        default_module=_str_value(data.get("default_module"), "default_module"),
        output_json=(project_root / _str_value(output.get("json"), "output.json")).resolve(),
        output_csv=(project_root / _str_value(output.get("csv"), "output.csv")).resolve(),
        export_csv=export_csv,
        languages=languages,
        key_strategy=KEY_STRATEGY_ALIASES[strategy],
        extensions=extensions,
        exclude_dirs=_str_list(data.get("exclude_dirs"), "exclude_dirs"),
        config_path=config_path,
    )


def load_config(
    target: Path,
    config_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ExtractConfig:
    target = target.resolve()
    if config_path is None:
        config_path = find_project_config(target)
    elif not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")

    raw: dict[str, Any] = {}
    if config_path is not None:
        config_path = config_path.resolve()
        raw = read_config_file(config_path)
        project_root = config_path.parent
    else:
        project_root = target if target.is_dir() else target.parent

    if overrides:
        deep_merge(raw, {k: v for k, v in overrides.items() if v is not None})
    return build_config(raw, project_root, config_path)


def derive_module_prefix(
    rel_path: PurePosixPath,
    module_roots: tuple[str, ...] | list[str],
    default: str = "common",
) -> str:
    """Module name = the directory right below the first matching module root.

    ``src/pages/home/index.vue`` with root ``src/pages`` -> ``home``;
    roots may use one ``*`` per segment (``src/modules/*``). Files sitting
    directly in a root, or matching no root, fall back to ``default``.
    """
    parts = rel_path.parts
    for pattern in module_roots:
        pattern_parts = [p for p in PurePosixPath(pattern).parts if p not in ("", ".", "/")]
        # root segments + module directory + file name
        if len(parts) < len(pattern_parts) + 2:
            continue
        if not all(
            fnmatch.fnmatchcase(part, pat) for part, pat in zip(parts, pattern_parts)
        ):
            continue
        candidate = parts[len(pattern_parts)]
        if "." not in candidate:
            return candidate
    return default


def module_prefix_for(path: Path, config: ExtractConfig) -> str:
    try:
        rel = path.resolve().relative_to(config.project_root)
    except ValueError:
        return config.default_module
    return derive_module_prefix(
        PurePosixPath(rel.as_posix()), config.module_roots, config.default_module
    )
