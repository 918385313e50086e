"""
Shared utility functions for cpr.
"""
import os
import subprocess

from .config import logger


def run_command(command, cwd=".", capture_output=False, check=True, log_stderr=True):
    """
    Runs a command and logs the output.

    Args:
        command (list): The command and its arguments.
        cwd (str): The working directory.
        capture_output (bool): If True, return stdout.
        check (bool): If True, raise CalledProcessError on non-zero exit codes.
        log_stderr (bool): If False, do not log stderr as an error.

    Returns:
        str: The command's stdout if capture_output is True, otherwise None.
    """
    logger.debug(f"Running command in '{cwd}': {' '.join(command)}")
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            cwd=cwd,
            check=False,
            encoding='utf-8'
        )
    except OSError as e:
        if log_stderr:
            logger.error(f"Could not run '{command[0]}': {e}")
        if check:
            raise
        return None

    if result.stdout and result.stdout.strip():
        logger.debug(result.stdout.strip())

    if result.returncode != 0:
        if log_stderr and result.stderr and result.stderr.strip():
            logger.error(result.stderr.strip())
        if check:
            raise subprocess.CalledProcessError(
                result.returncode, command, output=result.stdout, stderr=result.stderr
            )

    return result.stdout.strip() if capture_output else None


def get_git_author():
    """
    The author to suggest for a new project.

    Uses ``git config user.name``, then the USER environment variable.
    """
    name = run_command(
        ["git", "config", "--get", "user.name"],
        capture_output=True,
        check=False,
        log_stderr=False,
    )
    if name:
        return name
    return os.environ.get("USER", "")
