"""
Clone a template repository and strip its git history.
"""
import os
import re
import shutil
import subprocess
from collections import deque
from pathlib import Path

from .config import logger
from .exit_codes import CloneFailed, RepositoryNotFound
from .progress import CloneProgress, NullProgressDisplay

_NOT_FOUND_PATTERNS = [
    re.compile(r"repository '.*' not found", re.IGNORECASE),
    re.compile(r"remote: repository not found", re.IGNORECASE),
    re.compile(r"does not appear to be a git repository", re.IGNORECASE),
    re.compile(r"could not read username .*terminal prompts disabled", re.IGNORECASE),
    re.compile(r"project .* was not found", re.IGNORECASE),
]

_LINE_SPLIT = re.compile(rb"[\r\n]")


def is_repository_not_found(stderr_lines):
    """Whether git's error output says the remote repository does not exist."""
    return any(p.search(line) for line in stderr_lines for p in _NOT_FOUND_PATTERNS)


class Cloner:
    """
    Runs ``git clone --progress`` and feeds its progress into a CloneProgress.

    Args:
        display: Progress display receiving start/reset/update/finish calls.
        git: git executable to run.
    """

    def __init__(self, display=None, git="git"):
        self.display = display or NullProgressDisplay()
        self.git = git

    def clone(self, url, target_dir):
        """
        Clone ``url`` into ``target_dir`` and delete the ``.git`` directory.

        Raises:
            RepositoryNotFound: the remote reports a missing repository.
            CloneFailed: any other clone failure, or ``.git`` could not be removed.
        """
        target_dir = Path(target_dir)
        logger.info(f"Cloning {url} into {target_dir}")

        progress = CloneProgress(display=self.display)
        try:
            returncode, tail = self._run_clone(url, target_dir, progress)
        finally:
            progress.finish()

        if returncode != 0:
            for line in tail:
                logger.debug(f"git: {line}")
            if is_repository_not_found(tail):
                raise RepositoryNotFound(url)
            reason = tail[-1] if tail else f"git exited with status {returncode}"
            raise CloneFailed(url, reason)

        logger.debug(
            f"clone finished: {progress.received_objects}/{progress.total_objects} objects, "
            f"{progress.indexed_deltas}/{progress.total_deltas} deltas, "
            f"{progress.checkout_current}/{progress.checkout_total} files"
        )
        self.remove_git_dir(url, target_dir)
        return progress

    def _run_clone(self, url, target_dir, progress):
        command = [self.git, "clone", "--progress", url, str(target_dir)]
        logger.debug(f"Running command: {' '.join(command)}")

        env = dict(os.environ, GIT_TERMINAL_PROMPT="0")
        try:
            proc = subprocess.Popen(
                command,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            raise CloneFailed(url, f"could not run git: {e}") from e

        tail = deque(maxlen=20)
        buffer = b""
        with proc:
            for chunk in iter(lambda: proc.stderr.read1(4096), b""):
                buffer += chunk
                *lines, buffer = _LINE_SPLIT.split(buffer)
                for raw in lines:
                    self._handle_line(raw, progress, tail)
            if buffer:
                self._handle_line(buffer, progress, tail)
        return proc.returncode, list(tail)

    @staticmethod
    def _handle_line(raw, progress, tail):
        line = raw.decode("utf-8", errors="replace").strip()
        if not line:
            return
        if progress.feed(line):
            return
        # remote-side counting/compressing progress
        if line.startswith("remote:") and "%" in line:
            return
        tail.append(line)

    @staticmethod
    def remove_git_dir(url, target_dir):
        git_dir = Path(target_dir) / ".git"
        if not git_dir.exists():
            return
        logger.debug(f"removing {git_dir}")
        try:
            shutil.rmtree(git_dir)
        except OSError as e:
            raise CloneFailed(url, f"could not remove {git_dir}: {e}") from e
