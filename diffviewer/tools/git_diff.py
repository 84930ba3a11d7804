from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from diffviewer.core.paths import resolve_within, validate_folder_name
from diffviewer.domain.schemas.git import FolderInfo, GitStatus
from diffviewer.exceptions.errors import (
    FileAccessError,
    GitError,
    InvalidPathError,
    NotARepositoryError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 20


def run_git(args: Sequence[str], cwd: Optional[Path] = None, timeout: int = DEFAULT_TIMEOUT) -> Tuple[int, str, str]:
    """
    Returns (returncode, stdout, stderr)
    """
    try:
        proc = subprocess.run(
            ["git", "-c", "core.quotepath=false", *args],
            cwd=str(cwd) if cwd is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            shell=False,
        )
    except FileNotFoundError as e:
        raise GitError("git executable not found") from e
    except subprocess.TimeoutExpired as e:
        raise GitError(f"git {args[0]} timed out after {timeout}s") from e
    return proc.returncode, proc.stdout or "", proc.stderr or ""


def _git_output(args: Sequence[str], cwd: Path, timeout: int) -> str:
    code, out, err = run_git(args, cwd=cwd, timeout=timeout)
    if code != 0:
        raise GitError(f"git {' '.join(args)} failed: {err.strip()}")
    return out


def is_git_repository(path: Path, timeout: int = DEFAULT_TIMEOUT) -> bool:
    """True only when `path` is the top level of a work tree, not a subdirectory of one."""
    path = Path(path)
    if not path.is_dir():
        return False
    code, out, _ = run_git(["rev-parse", "--show-toplevel"], cwd=path, timeout=timeout)
    if code != 0 or not out.strip():
        return False
    return Path(out.strip()).resolve() == path.resolve()


def get_current_branch(repo_path: Path, timeout: int = DEFAULT_TIMEOUT) -> str:
    code, out, _ = run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=repo_path, timeout=timeout)
    if code != 0 or not out.strip():
        return "unknown"
    return out.strip()


def has_uncommitted_changes(repo_path: Path, timeout: int = DEFAULT_TIMEOUT) -> bool:
    code, out, _ = run_git(["status", "--porcelain"], cwd=repo_path, timeout=timeout)
    return code == 0 and bool(out.strip())


def list_folders(source_dir: Path, timeout: int = DEFAULT_TIMEOUT) -> List[FolderInfo]:
    """Git repositories directly under `source_dir`, hidden directories excluded, sorted by name."""
    source_dir = Path(source_dir)
    try:
        entries = [p for p in source_dir.iterdir() if p.is_dir() and not p.name.startswith(".")]
    except OSError as e:
        raise FileAccessError(f"Failed to read folders: {e}") from e

    folders: List[FolderInfo] = []
    for entry in entries:
        if not is_git_repository(entry, timeout=timeout):
            continue
        folders.append(
            FolderInfo(
                name=entry.name,
                path=str(entry),
                has_changes=has_uncommitted_changes(entry, timeout=timeout),
                branch=get_current_branch(entry, timeout=timeout),
            )
        )

    return sorted(folders, key=lambda f: (f.name.casefold(), f.name))


def resolve_repo(source_dir: Path, folder_name: str, timeout: int = DEFAULT_TIMEOUT) -> Path:
    validate_folder_name(folder_name)
    repo_path = resolve_within(Path(source_dir), folder_name)
    if not is_git_repository(repo_path, timeout=timeout):
        raise NotARepositoryError(f"Not a git repository: {folder_name}")
    return repo_path


def parse_porcelain_status(text: str) -> GitStatus:
    """
    `git status --porcelain=v1 -z` output:
      XY<space><path>\\0   (renames/copies are followed by <orig path>\\0)
    X is the index column, Y the work tree column.
    """
    staged: List[str] = []
    unstaged: List[str] = []
    untracked: List[str] = []

    entries = (text or "").split("\0")
    i = 0
    while i < len(entries):
        entry = entries[i]
        i += 1
        if len(entry) < 4:
            continue

        x, y, path = entry[0], entry[1], entry[3:]
        if x in ("R", "C"):
            i += 1

        if x == "?" and y == "?":
            untracked.append(path)
            continue
        if x == "!":
            continue

        if x != " ":
            staged.append(path)
        if y in ("M", "D"):
            unstaged.append(path)

    return GitStatus(staged=staged, unstaged=unstaged, untracked=untracked)


def get_status(repo_path: Path, timeout: int = DEFAULT_TIMEOUT) -> GitStatus:
    out = _git_output(["status", "--porcelain=v1", "-z", "-uall"], cwd=repo_path, timeout=timeout)
    return parse_porcelain_status(out)


def _diff_args(context_lines: int, *extra: str) -> List[str]:
    return [
        "diff",
        "--no-color",
        "--no-ext-diff",
        "--src-prefix=a/",
        "--dst-prefix=b/",
        f"--unified={context_lines}",
        *extra,
    ]


def synthesize_untracked_diff(repo_path: Path, untracked_files: Sequence[str]) -> str:
    """
    Render untracked files as new-file diffs against /dev/null.

    The content is split on "\\n" as-is, so a file ending with a newline gets
    a trailing empty added line. Files that escape the repo, cannot be read,
    or are not UTF-8 text are skipped.
    """
    if not untracked_files:
        return ""

    diffs: List[str] = []
    for file_path in untracked_files:
        try:
            full_path = resolve_within(repo_path, file_path)
        except InvalidPathError:
            logger.warning("Skipping untracked file outside repository: %s", file_path)
            continue

        try:
            content = full_path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping untracked file %s: %s", file_path, e)
            continue
        if "\0" in content:
            logger.warning("Skipping untracked binary file %s", file_path)
            continue

        lines = content.split("\n")
        parts = [
            f"diff --git a/{file_path} b/{file_path}\n",
            "new file mode 100644\n",
            "index 0000000..0000000\n",
            "--- /dev/null\n",
            f"+++ b/{file_path}\n",
            f"@@ -0,0 +1,{len(lines)} @@\n",
        ]
        parts.extend(f"+{line}\n" for line in lines)
        diffs.append("".join(parts))

    return "\n".join(diffs)


def get_combined_diff(
    repo_path: Path,
    *,
    context_lines: int = 3,
    timeout: int = DEFAULT_TIMEOUT,
) -> str:
    """
    staged (index vs HEAD) + unstaged (work tree vs index) + untracked files,
    joined with a blank line in that order.
    """
    staged = _git_output(_diff_args(context_lines, "--cached"), cwd=repo_path, timeout=timeout)
    unstaged = _git_output(_diff_args(context_lines), cwd=repo_path, timeout=timeout)

    status = get_status(repo_path, timeout=timeout)
    untracked = synthesize_untracked_diff(repo_path, status.untracked)

    return staged + "\n" + unstaged + "\n" + untracked


def read_file_content(repo_path: Path, file_path: str) -> str:
    full_path = resolve_within(repo_path, file_path)
    try:
        return full_path.read_bytes().decode("utf-8", errors="replace")
    except OSError as e:
        raise FileAccessError(f"Failed to read file {file_path}: {e.strerror or e}") from e
