"""
Shell hooks — run ``skill-sync run --quiet`` when entering a registered repo.

The hook is a marker-delimited block appended to ~/.zshrc (chpwd hook) or
~/.bashrc (PROMPT_COMMAND). Installing twice replaces the previous block;
uninstalling strips it from both files.
"""

import os
from pathlib import Path

import structlog

from .errors import UnsupportedShellError

logger = structlog.get_logger()

__all__ = [
    "HOOK_MARKER_END",
    "HOOK_MARKER_START",
    "HookManager",
]

HOOK_MARKER_START = "# Skill Sync Auto-Sync - START"
HOOK_MARKER_END = "# Skill Sync Auto-Sync - END"

_HOOK_FUNCTION = """\
_skill_sync_on_cd() {
  if [ -f ".git/config" ] && skill-sync is-registered --silent 2>/dev/null; then
    skill-sync run --quiet
  fi
}
"""

ZSH_HOOK = (
    f"{HOOK_MARKER_START}\n"
    f"{_HOOK_FUNCTION}"
    "autoload -U add-zsh-hook 2>/dev/null\n"
    "add-zsh-hook chpwd _skill_sync_on_cd 2>/dev/null\n"
    f"{HOOK_MARKER_END}\n"
)

BASH_HOOK = (
    f"{HOOK_MARKER_START}\n"
    f"{_HOOK_FUNCTION}"
    'PROMPT_COMMAND="_skill_sync_on_cd; ${PROMPT_COMMAND}"\n'
    f"{HOOK_MARKER_END}\n"
)


# rc files may hold bytes that are not UTF-8; round-trip them unchanged
def _read_rc(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="surrogateescape")


def _write_rc(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8", errors="surrogateescape")


class HookManager:
    """Installs and removes the auto-sync shell hook."""

    def __init__(self, home: str | Path | None = None, shell: str | None = None):
        self.home = Path(home) if home else Path.home()
        self.shell = shell if shell is not None else os.environ.get("SHELL", "")

    @property
    def rc_files(self) -> list[Path]:
        return [self.home / ".zshrc", self.home / ".bashrc"]

    def install(self) -> Path:
        """Install the hook for the current shell.

        Returns:
            The rc file that was written.

        Raises:
            UnsupportedShellError: If the shell is neither zsh nor bash.
        """
        if "zsh" in self.shell:
            rc_file, hook = self.home / ".zshrc", ZSH_HOOK
        elif "bash" in self.shell:
            rc_file, hook = self.home / ".bashrc", BASH_HOOK
        else:
            raise UnsupportedShellError(
                f"Unsupported shell: {self.shell or '(unknown)'}. Only zsh and bash are supported."
            )

        self._install_to_file(rc_file, hook)
        logger.info("hooks.installed", rc_file=str(rc_file))
        return rc_file

    def uninstall(self) -> list[Path]:
        """Remove the hook from every rc file that has it.

        Returns:
            The rc files that were modified.
        """
        removed = [f for f in self.rc_files if f.exists() and self._remove_from_file(f)]
        for rc_file in removed:
            logger.info("hooks.removed", rc_file=str(rc_file))
        return removed

    def is_installed(self) -> bool:
        return any(
            f.exists() and HOOK_MARKER_START in _read_rc(f)
            for f in self.rc_files
        )

    def _install_to_file(self, rc_file: Path, hook: str) -> None:
        if not rc_file.exists():
            _write_rc(rc_file, hook)
            return

        if HOOK_MARKER_START in _read_rc(rc_file):
            self._remove_from_file(rc_file)

        content = _read_rc(rc_file)
        if content and not content.endswith("\n"):
            content += "\n"
        _write_rc(rc_file, f"{content}\n{hook}")

    def _remove_from_file(self, rc_file: Path) -> bool:
        lines = _read_rc(rc_file).split("\n")

        inside_hook = False
        kept: list[str] = []
        for line in lines:
            if HOOK_MARKER_START in line:
                inside_hook = True
                continue
            if HOOK_MARKER_END in line:
                inside_hook = False
                continue
            if not inside_hook:
                kept.append(line)

        if len(kept) == len(lines):
            return False

        _write_rc(rc_file, "\n".join(kept))
        return True
