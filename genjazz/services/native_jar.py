"""Native batch generator runner.

Both backends shell out to a ``java -jar`` generator per request.  All of
that goes through ``run_jar`` (via ``asyncio.create_subprocess_exec``), so
tests can patch one seam and never spawn a JVM.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class JarExecutionError(RuntimeError):
    """The generator process exited with a non-zero status."""

    def __init__(self, returncode: int | None, stderr: str):
        super().__init__(f"Java process exited with code {returncode}: {stderr}")
        self.returncode = returncode
        self.stderr = stderr


class MalformedJarOutput(ValueError):
    """The generator's stdout could not be parsed as the expected payload."""


@dataclass(frozen=True)
class JarOutput:
    stdout: str
    stderr: str
    returncode: int


async def run_jar(java_bin: str, jar_path: str, args: list[str]) -> JarOutput:
    """Run ``java -jar <jar_path> *args`` and capture its output.

    Raises
    ------
    JarExecutionError
        When the process exits with a non-zero status (``stderr`` attached)
        or the ``java`` binary cannot be started.
    """
    cmd = [java_bin, "-jar", jar_path, *args]
    logger.debug("⏱️  jar subprocess: %s", " ".join(cmd))
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise JarExecutionError(None, str(exc)) from exc

    stdout, stderr = await proc.communicate()
    out = stdout.decode("utf-8", errors="replace")
    err = stderr.decode("utf-8", errors="replace")

    if proc.returncode != 0:
        raise JarExecutionError(proc.returncode, err)
    return JarOutput(stdout=out, stderr=err, returncode=proc.returncode)


def parse_json_output(output: JarOutput) -> object:
    """Parse the generator's stdout as JSON."""
    try:
        return json.loads(output.stdout)
    except json.JSONDecodeError as exc:
        raise MalformedJarOutput(f"Invalid JSON output from Java: {output.stdout[:500]}") from exc
