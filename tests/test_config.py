"""Tests for config loading."""

import os

from src.utils.config import DEFAULT_CONFIG, load_config

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class TestLoadConfig:
    def test_project_config(self):
        config = load_config(os.path.join(PROJECT_ROOT, "config.yaml"))
        assert config["tenant"]["root_domain"] == "bloggish.io"
        assert config["migration"]["migrate_unmatched"] is False

    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_config(str(tmp_path / "nope.yaml")) == DEFAULT_CONFIG

    def test_partial_sections_are_filled(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("migration:\n  batch_size: 5\nextra:\n  flag: true\n")
        config = load_config(str(path))
        assert config["migration"]["batch_size"] == 5
        assert config["migration"]["state_path"] == "data/migration_state.yaml"
        assert config["tenant"]["reserved_subdomains"] == ["www", "bloggish"]
        assert config["extra"] == {"flag": True}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(str(path)) == DEFAULT_CONFIG
