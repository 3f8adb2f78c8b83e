"""
Main CLI for skillsync using Click.

Keeps the skills in registered repositories in step with the user's skill
directory and installed plugins, without overwriting local edits.
"""

import json
import sys
from pathlib import Path

import click

from . import __version__
from .config.loader import ConfigStore, load_settings
from .config.schema import LoggingConfig
from .core import Synchronizer
from .errors import ConfigError, LedgerError, UnsupportedShellError
from .git import GitHelper
from .hooks import HookManager
from .logging import configure_logging
from .registry import RepoRegistry, normalize_repo_path
from .runner import SKILLS_DIR, RepoSyncer

# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILED = 1
EXIT_PARTIAL = 2
EXIT_CONFIG_ERROR = 3
EXIT_INTERRUPTED = 130


def _store(ctx: click.Context) -> ConfigStore:
    return ctx.obj["store"]


def _registry(ctx: click.Context) -> RepoRegistry:
    return RepoRegistry(_store(ctx))


def _config_error(e: ConfigError) -> None:
    click.echo(f"Configuration error: {e}", err=True)
    sys.exit(EXIT_CONFIG_ERROR)


@click.group()
@click.version_option(version=__version__, prog_name="skill-sync")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Configuration file (default: ~/.claude/sync-config.json, or $SKILL_SYNC_CONFIG)",
)
@click.pass_context
def main(ctx: click.Context, config_path: Path | None) -> None:
    """skill-sync - Automatic synchronization of skills across repositories.

    Copies new skills into registered repositories and updates the ones
    that were not edited locally. Locally modified files are never
    overwritten; they are reported as skipped.
    """
    ctx.ensure_object(dict)
    ctx.obj["store"] = ConfigStore(config_path)
    # Commands that need more (run, sync) reconfigure with their own options
    configure_logging(LoggingConfig())


@main.command()
@click.pass_context
def register(ctx: click.Context) -> None:
    """Register the current repository for syncing."""
    repo_path = normalize_repo_path(Path.cwd())
    try:
        added = _registry(ctx).register(repo_path)
    except ConfigError as e:
        _config_error(e)
        return
    if added:
        click.echo(f"✓ Registered {repo_path}")
    else:
        click.echo(f"Already registered: {repo_path}")


@main.command()
@click.pass_context
def unregister(ctx: click.Context) -> None:
    """Remove the current repository from sync."""
    repo_path = normalize_repo_path(Path.cwd())
    try:
        removed = _registry(ctx).unregister(repo_path)
    except ConfigError as e:
        _config_error(e)
        return
    if removed:
        click.echo(f"✓ Unregistered {repo_path}")
    else:
        click.echo(f"Not registered: {repo_path}")


@main.command("list")
@click.pass_context
def list_repos(ctx: click.Context) -> None:
    """Show all registered repositories."""
    try:
        repos = _registry(ctx).list()
    except ConfigError as e:
        _config_error(e)
        return

    if not repos:
        click.echo("No repositories registered")
        return

    click.echo(f"\nRegistered repositories ({len(repos)}):\n")
    for repo in repos:
        click.echo(f"  {repo.path}")
        click.echo(f"    Registered: {repo.registered}")
        if repo.last_sync:
            click.echo(f"    Last sync: {repo.last_sync}")
        click.echo()


@main.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the sync status of the current repository."""
    try:
        repo = _registry(ctx).get(Path.cwd())
    except ConfigError as e:
        _config_error(e)
        return

    if repo is None:
        click.echo("✗ Repository is not registered")
        click.echo('  Run "skill-sync register" to enable syncing')
        return

    click.echo("✓ Repository is registered")
    click.echo(f"  Registered: {repo.registered}")
    if repo.last_sync:
        click.echo(f"  Last sync: {repo.last_sync}")

    git = GitHelper()
    if git.is_git_repo(repo.path):
        clean = git.is_clean(repo.path, SKILLS_DIR)
        click.echo(f"  Skills: {'committed' if clean else 'uncommitted changes'}")
    click.echo(f"  Shell hooks: {'installed' if HookManager().is_installed() else 'not installed'}")


@main.command("is-registered")
@click.option("--silent", is_flag=True, help="No output, exit code only")
@click.pass_context
def is_registered(ctx: click.Context, silent: bool) -> None:
    """Check if the current repository is registered (for shell hooks)."""
    try:
        registered = _registry(ctx).is_registered(Path.cwd())
    except ConfigError:
        registered = False

    if not silent:
        click.echo("yes" if registered else "no")
    sys.exit(EXIT_SUCCESS if registered else EXIT_FAILED)


@main.command()
@click.option("-v", "--verbose", count=True, help="Verbosity level (-v, -vv for more detail)")
@click.option("-q", "--quiet", is_flag=True, help="Show only errors and warnings")
@click.option("-a", "--all", "all_repos", is_flag=True, help="Sync all registered repositories")
@click.option(
    "-j",
    "--jobs",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Repositories synced in parallel (with --all)",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="File to save structured logs (JSON)",
)
@click.option("--no-stage", is_flag=True, help="Do not stage synced skills in git")
@click.pass_context
def run(
    ctx: click.Context,
    verbose: int,
    quiet: bool,
    all_repos: bool,
    jobs: int,
    log_file: Path | None,
    no_stage: bool,
) -> None:
    """Sync skills into the current repository (or all with --all)."""
    store = _store(ctx)
    try:
        settings = load_settings(store, {"verbose": verbose, "log_file": log_file})
    except ConfigError as e:
        _config_error(e)
        return

    configure_logging(settings.logging, quiet=quiet)
    registry = RepoRegistry(store)

    if all_repos:
        repos = [r.path for r in settings.repos]
        if not repos:
            if not quiet:
                click.echo("No repositories registered")
            return
    else:
        repo_path = normalize_repo_path(Path.cwd())
        if settings.find_repo(repo_path) is None:
            click.echo('✗ Repository not registered. Run "skill-sync register" first.', err=True)
            sys.exit(EXIT_FAILED)
        repos = [repo_path]

    syncer = RepoSyncer(settings, registry=registry, stage=not no_stage)
    try:
        reports = syncer.sync_repositories(repos, jobs=jobs)
    except KeyboardInterrupt:
        click.echo("\nInterrupted.", err=True)
        sys.exit(EXIT_INTERRUPTED)

    if verbose:
        click.echo(f"  User skills: {syncer.user_skills}", err=True)
        click.echo(f"  Plugins: {', '.join(p.name for p in syncer.plugins) or '(none)'}", err=True)

    statuses = {r.status for r in reports}
    if "failed" in statuses:
        sys.exit(EXIT_FAILED)
    if "partial" in statuses:
        sys.exit(EXIT_PARTIAL)


@main.command("sync")
@click.argument("source", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("destination", type=click.Path(path_type=Path))
@click.option("--pattern", default=None, help="Glob of files to sync (default: **/*.md)")
@click.option("--json", "json_output", is_flag=True, help="Print the outcome as JSON")
@click.option("-v", "--verbose", count=True, help="Verbosity level (-v, -vv for more detail)")
@click.pass_context
def sync_dirs(
    ctx: click.Context,
    source: Path,
    destination: Path,
    pattern: str | None,
    json_output: bool,
    verbose: int,
) -> None:
    """Run one sync pass from SOURCE into DESTINATION."""
    try:
        settings = load_settings(_store(ctx), {"verbose": verbose, "pattern": pattern})
    except ConfigError as e:
        _config_error(e)
        return

    configure_logging(settings.logging, quiet=json_output)

    try:
        outcome = Synchronizer(pattern=settings.artifact_pattern).sync(source, destination)
    except LedgerError as e:
        click.echo(f"✗ Sync failed: {e}", err=True)
        sys.exit(EXIT_FAILED)

    if json_output:
        click.echo(json.dumps(outcome.to_dict(), indent=2))
    else:
        click.echo(
            f"✓ Synced {outcome.synced} files ({outcome.copied} new, {outcome.updated} updated)"
        )
        if outcome.skipped_paths:
            click.echo(f"⚠ Skipped {outcome.skipped} files (locally modified):")
            for rel_path in outcome.skipped_paths:
                click.echo(f"  - {rel_path}")
        for error in outcome.errors:
            click.echo(f"✗ {error.path}: {error.message}", err=True)

    if outcome.has_errors:
        sys.exit(EXIT_PARTIAL)


@main.command("install-hooks")
def install_hooks() -> None:
    """Install shell hooks for automatic syncing."""
    try:
        rc_file = HookManager().install()
    except UnsupportedShellError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(EXIT_FAILED)

    click.echo(f"✓ Installed hooks to {rc_file}")
    click.echo("\nRestart your shell or run:")
    click.echo(f"  source {rc_file}")


@main.command("uninstall-hooks")
def uninstall_hooks() -> None:
    """Remove shell hooks."""
    removed = HookManager().uninstall()
    if not removed:
        click.echo("No hooks installed")
        return
    for rc_file in removed:
        click.echo(f"✓ Removed hooks from {rc_file}")


if __name__ == "__main__":
    main()
