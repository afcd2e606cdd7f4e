import json
from pathlib import Path, PurePosixPath

import pytest

from vue_i18n_extract.config import (
    CONFIG_FILE_NAME,
    derive_module_prefix,
    find_project_config,
    load_config,
    module_prefix_for,
)
from vue_i18n_extract.errors import ConfigError


def _write_config(root: Path, data: dict) -> Path:
    path = root / CONFIG_FILE_NAME
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        root = tmp_path.resolve()
        assert config.config_path is None
        assert config.project_root == root
        assert config.source_dir == root / "src" / "pages"
        assert config.module_roots == ("src/pages",)
        assert config.output_json == root / "locales" / "zh.json"
        assert config.key_strategy == "increment"
        assert config.languages == ("zh_CN", "en_US")
        assert config.extensions == (".vue", ".js", ".ts")
        assert config.export_csv is False

    def test_file_merged_over_defaults(self, tmp_path: Path) -> None:
        _write_config(
            tmp_path,
            {
                "source_dir": "src",
                "module_roots": ["src/views", "src/modules/*"],
                "output": {"json": "i18n/zh-CN.json"},
                "key_strategy": "prefix_increment",
                "extensions": ["vue", ".TS"],
            },
        )
        config = load_config(tmp_path)
        root = tmp_path.resolve()
        assert config.source_dir == root / "src"
        assert config.module_roots == ("src/views", "src/modules/*")
        assert config.output_json == root / "i18n" / "zh-CN.json"
        assert config.output_csv == root / "output" / "i18n.csv"
        assert config.key_strategy == "increment"
        assert config.extensions == (".vue", ".ts")

    def test_found_from_nested_target(self, tmp_path: Path) -> None:
        config_path = _write_config(tmp_path, {"key_strategy": "hash"})
        nested = tmp_path / "src" / "pages"
        nested.mkdir(parents=True)
        assert find_project_config(nested) == config_path.resolve()
        config = load_config(nested)
        assert config.key_strategy == "hash"
        assert config.project_root == tmp_path.resolve()

    def test_overrides_win(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"key_strategy": "hash", "export_csv": False})
        config = load_config(
            tmp_path, overrides={"key_strategy": "increment", "export_csv": True}
        )
        assert config.key_strategy == "increment"
        assert config.export_csv is True

    @pytest.mark.parametrize(
        "data",
        [
            {"key_strategy": "random"},
            {"languages": []},
            {"export_csv": "yes"},
            {"output": "zh.json"},
            {"module_roots": [1, 2]},
        ],
    )
    def test_invalid_values(self, tmp_path: Path, data: dict) -> None:
        _write_config(tmp_path, data)
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_invalid_json(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILE_NAME).write_text("{oops", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_missing_explicit_config(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            load_config(tmp_path, tmp_path / "nope.json")

    def test_absolute_roots_made_project_relative(self, tmp_path: Path) -> None:
        root = tmp_path.resolve()
        config = load_config(
            tmp_path,
            overrides={
                "source_dir": str(root / "src" / "pages"),
                "module_roots": [str(root / "src" / "modules" / "*"), "/elsewhere"],
            },
        )
        assert config.source_dir == root / "src" / "pages"
        assert config.module_roots == ("src/modules/*", "/elsewhere")

        config = load_config(tmp_path, overrides={"source_dir": str(root / "src" / "pages")})
        assert config.module_roots == ("src/pages",)
        assert module_prefix_for(root / "src/pages/about/index.vue", config) == "about"


class TestModulePrefix:
    @pytest.mark.parametrize(
        ("rel", "expected"),
        [
            ("src/pages/home/index.vue", "home"),
            ("src/pages/home/components/Card.vue", "home"),
            ("src/pages/index.vue", "common"),
            ("src/pages/home.v2/index.vue", "common"),
            ("src/modules/user/order/list.vue", "order"),
            ("src/modules/user/index.ts", "common"),
            ("src/utils/format.js", "common"),
        ],
    )
    def test_derive(self, rel: str, expected: str) -> None:
        roots = ("src/pages", "src/modules/*")
        assert derive_module_prefix(PurePosixPath(rel), roots) == expected

    def test_first_matching_root_wins(self) -> None:
        roots = ("src", "src/pages")
        assert derive_module_prefix(PurePosixPath("src/pages/home/a.vue"), roots) == "pages"

    def test_custom_default(self) -> None:
        assert derive_module_prefix(PurePosixPath("a.js"), ("src",), "shared") == "shared"

    def test_module_prefix_for_path(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert module_prefix_for(tmp_path / "src/pages/about/index.vue", config) == "about"
        assert module_prefix_for(Path("/elsewhere/x/y.vue"), config) == "common"
