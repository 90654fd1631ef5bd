"""Tests for xtaskctl.toml and Cargo workspace discovery."""

from pathlib import Path

import pytest

from xtaskctl.config.discovery import (
    CONFIG_ENV_VAR,
    CONFIG_FILENAME,
    MANIFEST_FILENAME,
    find_config,
    find_workspace_root,
)


@pytest.fixture(autouse=True)
def _no_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestFindConfig:
    def test_finds_in_start_dir(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("[workspace]\n")
        assert find_config(tmp_path) == config_file

    def test_walks_up(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("[workspace]\n")
        child = tmp_path / "crates" / "alpha" / "src"
        child.mkdir(parents=True)
        assert find_config(child) == config_file

    def test_none_when_missing(self, tmp_path: Path) -> None:
        child = tmp_path / "empty"
        child.mkdir()
        assert find_config(child) is None

    def test_defaults_to_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("")
        monkeypatch.chdir(tmp_path)
        assert find_config() == config_file.resolve()

    def test_env_var_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "ci.toml"
        config_file.write_text("")
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))
        assert find_config(tmp_path) == config_file

    def test_env_var_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "nope.toml"))
        assert find_config(tmp_path) is None


class TestFindWorkspaceRoot:
    def test_walks_up_to_workspace_manifest(self, tmp_path: Path) -> None:
        (tmp_path / MANIFEST_FILENAME).write_text('[workspace]\nmembers = ["crates/*"]\n')
        member = tmp_path / "crates" / "alpha"
        (member / "src").mkdir(parents=True)
        (member / MANIFEST_FILENAME).write_text('[package]\nname = "alpha"\n')
        assert find_workspace_root(member / "src") == tmp_path.resolve()

    def test_single_package_project(self, tmp_path: Path) -> None:
        (tmp_path / MANIFEST_FILENAME).write_text('[package]\nname = "solo"\n')
        child = tmp_path / "src"
        child.mkdir()
        assert find_workspace_root(child) == tmp_path.resolve()

    def test_broken_manifest_is_not_a_workspace(self, tmp_path: Path) -> None:
        (tmp_path / MANIFEST_FILENAME).write_text("[workspace\n")
        assert find_workspace_root(tmp_path) == tmp_path.resolve()

    def test_none_outside_cargo_project(self, tmp_path: Path) -> None:
        child = tmp_path / "plain"
        child.mkdir()
        assert find_workspace_root(child) is None

    def test_defaults_to_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / MANIFEST_FILENAME).write_text("[workspace]\n")
        nested = tmp_path / "examples" / "demo"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert find_workspace_root() == tmp_path.resolve()
