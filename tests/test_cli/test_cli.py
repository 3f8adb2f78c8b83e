"""
Tests para la CLI de skill-sync.

Cubre:
- register / unregister / list / status / is-registered
- run: repositorio actual, --all, códigos de salida
- sync SOURCE DESTINATION: resumen, --json, ledger corrupto
- install-hooks / uninstall-hooks
- Errores de configuración (exit 3)
"""

import json
import logging
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from skillsync import __version__
from skillsync.cli import (
    EXIT_CONFIG_ERROR,
    EXIT_FAILED,
    EXIT_PARTIAL,
    EXIT_SUCCESS,
    main,
)
from skillsync.core.ledger import LEDGER_FILENAME


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """HOME temporal, entorno limpio y logging restaurado tras cada test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("SHELL", "/bin/zsh")
    for var in (
        "SKILL_SYNC_CONFIG",
        "SKILL_SYNC_USER_SKILLS",
        "SKILL_SYNC_PLUGIN_SCAN_PATH",
        "SKILL_SYNC_LOG_LEVEL",
        "SKILL_SYNC_LOG_FILE",
    ):
        monkeypatch.delenv(var, raising=False)
    yield
    for handler in list(logging.root.handlers):
        handler.close()
    logging.root.handlers.clear()
    structlog.reset_defaults()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def user_skills(tmp_path: Path) -> Path:
    root = tmp_path / "user-skills"
    _write(root / "a.md", "skill a")
    _write(root / "nested" / "b.md", "skill b")
    return root


@pytest.fixture
def config_file(tmp_path: Path, user_skills: Path) -> Path:
    return _write(
        tmp_path / "sync-config.json",
        json.dumps({
            "repos": [],
            "sources": {
                "userSkills": str(user_skills),
                "pluginScanPath": str(tmp_path / "plugins" / "*" / "skills"),
            },
        }),
    )


@pytest.fixture
def repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "project"
    path.mkdir()
    monkeypatch.chdir(path)
    return path.resolve()


def _cli(runner: CliRunner, config_file: Path, *args: str):
    return runner.invoke(main, ["--config", str(config_file), *args])


# ── Tests: registro ──────────────────────────────────────────────────────


class TestRegistration:
    def test_register(self, runner: CliRunner, config_file: Path, repo: Path) -> None:
        result = _cli(runner, config_file, "register")
        assert result.exit_code == EXIT_SUCCESS
        assert f"Registered {repo}" in result.output
        data = json.loads(config_file.read_text(encoding="utf-8"))
        assert [r["path"] for r in data["repos"]] == [str(repo)]

    def test_register_twice(self, runner: CliRunner, config_file: Path, repo: Path) -> None:
        _cli(runner, config_file, "register")
        result = _cli(runner, config_file, "register")
        assert "Already registered" in result.output

    def test_unregister(self, runner: CliRunner, config_file: Path, repo: Path) -> None:
        _cli(runner, config_file, "register")
        result = _cli(runner, config_file, "unregister")
        assert result.exit_code == EXIT_SUCCESS
        assert "Unregistered" in result.output
        assert json.loads(config_file.read_text(encoding="utf-8"))["repos"] == []

    def test_unregister_unknown(self, runner: CliRunner, config_file: Path, repo: Path) -> None:
        result = _cli(runner, config_file, "unregister")
        assert "Not registered" in result.output

    def test_list(self, runner: CliRunner, config_file: Path, repo: Path) -> None:
        assert "No repositories registered" in _cli(runner, config_file, "list").output
        _cli(runner, config_file, "register")
        result = _cli(runner, config_file, "list")
        assert "Registered repositories (1)" in result.output
        assert str(repo) in result.output

    def test_is_registered_silent(self, runner: CliRunner, config_file: Path, repo: Path) -> None:
        """Usado por los hooks: solo código de salida."""
        result = _cli(runner, config_file, "is-registered", "--silent")
        assert result.exit_code == EXIT_FAILED
        assert result.output == ""

        _cli(runner, config_file, "register")
        result = _cli(runner, config_file, "is-registered", "--silent")
        assert result.exit_code == EXIT_SUCCESS
        assert result.output == ""

    def test_is_registered_verbose(self, runner: CliRunner, config_file: Path, repo: Path) -> None:
        result = _cli(runner, config_file, "is-registered")
        assert result.output.strip() == "no"

    def test_status(self, runner: CliRunner, config_file: Path, repo: Path) -> None:
        result = _cli(runner, config_file, "status")
        assert "not registered" in result.output

        _cli(runner, config_file, "register")
        result = _cli(runner, config_file, "status")
        assert "Repository is registered" in result.output
        assert "Shell hooks: not installed" in result.output

    def test_config_from_env(
        self, runner: CliRunner, config_file: Path, repo: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SKILL_SYNC_CONFIG", str(config_file))
        runner.invoke(main, ["register"])
        assert str(repo) in config_file.read_text(encoding="utf-8")


# ── Tests: run ───────────────────────────────────────────────────────────


class TestRun:
    def test_unregistered_repo_fails(
        self, runner: CliRunner, config_file: Path, repo: Path
    ) -> None:
        result = _cli(runner, config_file, "run")
        assert result.exit_code == EXIT_FAILED
        assert "not registered" in result.output
        assert not (repo / ".claude").exists()

    def test_syncs_current_repo(self, runner: CliRunner, config_file: Path, repo: Path) -> None:
        _cli(runner, config_file, "register")
        result = _cli(runner, config_file, "run")

        assert result.exit_code == EXIT_SUCCESS
        assert (repo / ".claude" / "skills" / "a.md").read_text(encoding="utf-8") == "skill a"
        assert (repo / ".claude" / "skills" / "nested" / "b.md").exists()
        repos = json.loads(config_file.read_text(encoding="utf-8"))["repos"]
        assert repos[0]["lastSync"]

    def test_local_edit_survives_run(
        self, runner: CliRunner, config_file: Path, repo: Path, user_skills: Path
    ) -> None:
        _cli(runner, config_file, "register")
        _cli(runner, config_file, "run")
        _write(repo / ".claude" / "skills" / "a.md", "edited here")
        _write(user_skills / "a.md", "skill a v2")

        result = _cli(runner, config_file, "run", "--quiet")

        assert result.exit_code == EXIT_SUCCESS
        assert (repo / ".claude" / "skills" / "a.md").read_text(encoding="utf-8") == "edited here"

    def test_all_with_missing_repo(
        self, runner: CliRunner, config_file: Path, repo: Path, tmp_path: Path
    ) -> None:
        """--all sigue con los demás repos y devuelve 1 si alguno falla."""
        _cli(runner, config_file, "register")
        data = json.loads(config_file.read_text(encoding="utf-8"))
        data["repos"].append({
            "path": str(tmp_path / "gone"),
            "registered": "2026-01-01T00:00:00Z",
        })
        config_file.write_text(json.dumps(data), encoding="utf-8")

        result = _cli(runner, config_file, "run", "--all", "--jobs", "2")

        assert result.exit_code == EXIT_FAILED
        assert (repo / ".claude" / "skills" / "a.md").exists()

    def test_all_without_repos(self, runner: CliRunner, config_file: Path, repo: Path) -> None:
        result = _cli(runner, config_file, "run", "--all")
        assert result.exit_code == EXIT_SUCCESS
        assert "No repositories registered" in result.output

    def test_partial_exit_code(self, runner: CliRunner, config_file: Path, repo: Path) -> None:
        _cli(runner, config_file, "register")
        (repo / ".claude" / "skills" / "a.md").mkdir(parents=True)
        result = _cli(runner, config_file, "run")
        assert result.exit_code == EXIT_PARTIAL
        assert (repo / ".claude" / "skills" / "nested" / "b.md").exists()

    def test_log_file(
        self, runner: CliRunner, config_file: Path, repo: Path, tmp_path: Path
    ) -> None:
        log_file = tmp_path / "logs" / "run.jsonl"
        _cli(runner, config_file, "register")
        result = _cli(runner, config_file, "run", "--log-file", str(log_file))
        assert result.exit_code == EXIT_SUCCESS
        events = [
            json.loads(line)["event"]
            for line in log_file.read_text(encoding="utf-8").splitlines()
        ]
        assert "sync.pass.complete" in events

    def test_invalid_config_exit_code(
        self, runner: CliRunner, config_file: Path, repo: Path
    ) -> None:
        config_file.write_text("{not json", encoding="utf-8")
        result = _cli(runner, config_file, "run")
        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Configuration error" in result.output


# ── Tests: sync ──────────────────────────────────────────────────────────


class TestSyncCommand:
    def test_sync_dirs(
        self, runner: CliRunner, config_file: Path, user_skills: Path, tmp_path: Path
    ) -> None:
        dest = tmp_path / "out"
        result = _cli(runner, config_file, "sync", str(user_skills), str(dest))
        assert result.exit_code == EXIT_SUCCESS
        assert "Synced 2 files (2 new, 0 updated)" in result.output
        assert (dest / LEDGER_FILENAME).exists()

    def test_sync_json(
        self, runner: CliRunner, config_file: Path, user_skills: Path, tmp_path: Path
    ) -> None:
        dest = tmp_path / "out"
        _cli(runner, config_file, "sync", str(user_skills), str(dest))
        _write(dest / "a.md", "local")

        result = _cli(runner, config_file, "sync", "--json", str(user_skills), str(dest))

        assert result.exit_code == EXIT_SUCCESS
        data = json.loads(result.stdout)
        assert data["skipped"] == 1
        assert data["skipped_paths"] == ["a.md"]
        assert data["errors"] == []

    def test_sync_pattern(
        self, runner: CliRunner, config_file: Path, user_skills: Path, tmp_path: Path
    ) -> None:
        _write(user_skills / "notes.txt", "txt")
        dest = tmp_path / "out"
        result = _cli(runner, config_file, "sync", "--pattern", "*.txt", str(user_skills), str(dest))
        assert result.exit_code == EXIT_SUCCESS
        assert (dest / "notes.txt").exists()
        assert not (dest / "a.md").exists()

    def test_sync_corrupt_ledger(
        self, runner: CliRunner, config_file: Path, user_skills: Path, tmp_path: Path
    ) -> None:
        dest = tmp_path / "out"
        _write(dest / LEDGER_FILENAME, "[]")
        result = _cli(runner, config_file, "sync", str(user_skills), str(dest))
        assert result.exit_code == EXIT_FAILED
        assert not (dest / "a.md").exists()

    def test_sync_partial(
        self, runner: CliRunner, config_file: Path, user_skills: Path, tmp_path: Path
    ) -> None:
        dest = tmp_path / "out"
        (dest / "a.md").mkdir(parents=True)
        result = _cli(runner, config_file, "sync", str(user_skills), str(dest))
        assert result.exit_code == EXIT_PARTIAL
        assert (dest / "nested" / "b.md").exists()

    def test_missing_source(self, runner: CliRunner, config_file: Path, tmp_path: Path) -> None:
        result = _cli(runner, config_file, "sync", str(tmp_path / "nope"), str(tmp_path / "out"))
        assert result.exit_code != EXIT_SUCCESS
        assert not (tmp_path / "out").exists()


# ── Tests: hooks y versión ───────────────────────────────────────────────


class TestHooksCommands:
    def test_install_and_uninstall(self, runner: CliRunner, config_file: Path) -> None:
        home = Path.home()
        result = _cli(runner, config_file, "install-hooks")
        assert result.exit_code == EXIT_SUCCESS
        assert "skill-sync run --quiet" in (home / ".zshrc").read_text(encoding="utf-8")

        result = _cli(runner, config_file, "uninstall-hooks")
        assert "Removed hooks" in result.output
        assert "skill-sync" not in (home / ".zshrc").read_text(encoding="utf-8")

    def test_uninstall_without_hooks(self, runner: CliRunner, config_file: Path) -> None:
        assert "No hooks installed" in _cli(runner, config_file, "uninstall-hooks").output

    def test_unsupported_shell(
        self, runner: CliRunner, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SHELL", "/usr/bin/fish")
        result = _cli(runner, config_file, "install-hooks")
        assert result.exit_code == EXIT_FAILED


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
