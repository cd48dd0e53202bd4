"""
Tests for engine configuration loading.
"""

from pathlib import Path

import pytest

from mustc import ConfigError, EngineConfig, load_config


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "mustc.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestEngineConfig:

    def test_defaults(self):
        cfg = EngineConfig()
        assert cfg.charset == "utf-8"
        assert cfg.escape_single_quotes is True
        assert cfg.max_depth == 100
        assert cfg.strict_partials is False
        assert cfg.partials_dir is None

    def test_from_dict(self):
        cfg = EngineConfig.from_dict({"charset": "latin-1", "max_depth": 7, "strict_partials": True})
        assert (cfg.charset, cfg.max_depth, cfg.strict_partials) == ("latin-1", 7, True)

    def test_to_dict(self):
        cfg = EngineConfig(partials_dir=Path("/tmp/p"))
        data = cfg.to_dict()
        assert data["partials_dir"] == "/tmp/p"
        assert data["max_depth"] == 100

    @pytest.mark.parametrize(
        "data",
        [
            {"unknown": 1},
            {"max_depth": "ten"},
            {"max_depth": True},
            {"max_depth": 0},
            {"charset": "no-such-charset"},
            {"escape_single_quotes": "yes"},
            {"partials_dir": 3},
        ],
    )
    def test_invalid(self, data):
        with pytest.raises(ConfigError):
            EngineConfig.from_dict(data)


class TestLoadConfig:

    def test_load(self, tmp_path):
        path = write_config(tmp_path, "charset: ascii\nescape_single_quotes: false\npartials_dir: parts\n")
        cfg = load_config(path)
        assert cfg.charset == "ascii"
        assert cfg.escape_single_quotes is False
        assert cfg.partials_dir == tmp_path / "parts"

    def test_absolute_partials_dir(self, tmp_path):
        target = tmp_path / "elsewhere"
        path = write_config(tmp_path, f"partials_dir: {target.as_posix()}\n")
        assert load_config(path).partials_dir == target

    def test_empty_file(self, tmp_path):
        assert load_config(write_config(tmp_path, "")) == EngineConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "absent.yaml")

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(write_config(tmp_path, "- a\n- b\n"))

    def test_unparsable(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(write_config(tmp_path, "a: [1, 2\n"))
