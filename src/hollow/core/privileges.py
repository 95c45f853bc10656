"""Privilege escalation via pkexec for permission-denied deletions."""

from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Callable

from hollow.core.evaluator import is_empty
from hollow.utils import remove_tree

log = logging.getLogger(__name__)

# Timeout for the pkexec subprocess (seconds).
_PKEXEC_TIMEOUT = 300

ElevatedDelete = Callable[[Sequence[Path]], dict[str, str]]
"""Remove paths with elevated privileges, returning ``{path: error}`` for failures."""


class PrivilegeError(Exception):
    """Raised when privilege escalation fails."""


def is_root() -> bool:
    """Check if the current process is running as root."""
    return os.geteuid() == 0


def find_hollow_executable() -> str | None:
    """Find the hollow CLI executable on PATH."""
    return shutil.which("hollow")


def pkexec_available() -> bool:
    """Check if pkexec is available on the system."""
    return shutil.which("pkexec") is not None


def delete_paths_as_root(paths: Sequence[str], include_hidden: bool = True) -> list[dict[str, str]]:
    """Remove directories on behalf of an unprivileged caller.

    Each path is re-checked before removal: it must be absolute, must not
    be the filesystem root, must be a real directory and must still be
    empty.  Anything else is refused rather than deleted.

    Returns:
        One ``{"path", "error"}`` dict per input path; ``error`` is empty
        on success.
    """
    results: list[dict[str, str]] = []
    for raw in paths:
        path = Path(raw)
        error = ""
        if not path.is_absolute() or path == Path(path.anchor):
            error = "Refusing to delete: not an absolute directory path"
        elif path.is_symlink() or not path.is_dir():
            error = "Refusing to delete: not a directory"
        elif not is_empty(path, include_hidden):
            error = "Refusing to delete: directory is not empty"
        else:
            try:
                remove_tree(path)
            except OSError as e:
                error = str(e)
        if error:
            log.warning("Privileged delete of %s failed: %s", path, error)
        results.append({"path": str(path), "error": error})
    return results


def run_privileged_delete(paths: Sequence[str], include_hidden: bool = True) -> list[dict[str, str]]:
    """Run a privileged delete operation via pkexec.

    Serializes *paths* as JSON on stdin, invokes
    ``pkexec hollow delete-as-root``, and parses the JSON results from stdout.

    Args:
        paths: Absolute directory paths to remove.
        include_hidden: Emptiness policy the helper re-checks with.

    Returns:
        List of result dicts (path, error).

    Raises:
        PrivilegeError: On authentication cancel/deny/timeout/bad output.
    """
    hollow_exe = find_hollow_executable()
    if hollow_exe is None:
        raise PrivilegeError("Could not find the 'hollow' executable on PATH")

    payload = json.dumps({"paths": list(paths), "include_hidden": include_hidden})

    try:
        proc = subprocess.run(
            ["pkexec", hollow_exe, "delete-as-root"],
            input=payload,
            capture_output=True,
            text=True,
            timeout=_PKEXEC_TIMEOUT,
        )
    except subprocess.TimeoutExpired:
        raise PrivilegeError("Privileged delete timed out after 5 minutes")

    if proc.returncode == 126:
        raise PrivilegeError("Authentication dismissed by user")
    if proc.returncode == 127:
        raise PrivilegeError("Authentication denied")
    if proc.returncode != 0:
        stderr = proc.stderr.strip()
        raise PrivilegeError(f"Privileged delete failed (exit {proc.returncode}): {stderr}")

    try:
        results = json.loads(proc.stdout)
    except (json.JSONDecodeError, TypeError) as exc:
        raise PrivilegeError(f"Invalid response from privileged process: {exc}")
    if not isinstance(results, list):
        raise PrivilegeError("Invalid response from privileged process: expected a list")
    for item in results:
        if not (
            isinstance(item, dict)
            and isinstance(item.get("path"), str)
            and isinstance(item.get("error"), str)
        ):
            raise PrivilegeError(f"Invalid response from privileged process: malformed entry {item!r}")
    return results


def make_pkexec_delete(include_hidden: bool = True) -> ElevatedDelete:
    """Build the default elevated-delete capability.

    Deletes in-process when already running as root, otherwise escalates
    all paths through a single pkexec call.
    """

    def pkexec_delete(paths: Sequence[Path]) -> dict[str, str]:
        raw_paths = [str(p) for p in paths]
        if not raw_paths:
            return {}
        if is_root():
            raw_results = delete_paths_as_root(raw_paths, include_hidden)
        else:
            if not pkexec_available():
                raise PrivilegeError("Administrator privileges are required (pkexec not available)")
            raw_results = run_privileged_delete(raw_paths, include_hidden)
        return {r["path"]: r["error"] for r in raw_results if r.get("error")}

    return pkexec_delete


pkexec_delete: ElevatedDelete = make_pkexec_delete()
