import functools
import logging
import random
import re
import shutil
import string
import subprocess

import cassandra_integration_tests.utils.types as ttypes

LOGGER = logging.getLogger(__name__)

_SANITIZE_RE = re.compile("[^a-zA-Z0-9_]+")


def run_command(
    command: str | list,
    *,
    workdir: ttypes.FileType = "",
    ignore_fail: bool = False,
) -> bytes:
    """Run command and return its stdout.

    Raise `RuntimeError` with the command's stderr (or stdout) when the command fails.
    """
    cmd: list
    if isinstance(command, str):
        cmd = command.split()
        cmd_str = command
    else:
        cmd = [str(c) for c in command]
        cmd_str = " ".join(cmd)

    LOGGER.debug("Running `%s`", cmd_str)

    try:
        with subprocess.Popen(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, cwd=workdir or None
        ) as p:
            stdout, stderr = p.communicate()
            retcode = p.returncode
    except OSError as exc:
        msg = f"An error occurred while running `{cmd_str}`: {exc}"
        raise RuntimeError(msg) from exc

    if not ignore_fail and retcode != 0:
        err_dec = stderr.decode()
        err_dec = err_dec or stdout.decode()
        msg = f"An error occurred while running `{cmd_str}`: {err_dec}"
        raise RuntimeError(msg)

    return stdout


def get_rand_str(length: int = 8) -> str:
    """Return random string."""
    if length < 1:
        return ""
    return "".join(random.choice(string.ascii_lowercase) for i in range(length))


def sanitize_name(s: str, max_len: int = 0) -> str:
    """Sanitize `s` so it can be used as a part of CQL identifier or CCM cluster name.

    Case is preserved.
    """
    sanitized = _SANITIZE_RE.sub("_", s).strip("_")
    return sanitized[:max_len] if max_len > 0 else sanitized


@functools.cache
def tool_has(command: str) -> bool:
    """Check if an executable is available on PATH."""
    return shutil.which(command) is not None
