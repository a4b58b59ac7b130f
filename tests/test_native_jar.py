"""Tests for genjazz.services.native_jar.

The subprocess interface is thin (``asyncio.create_subprocess_exec``), so
patching it at the module level gives complete control over output and exit
codes; no JVM is ever started.
"""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from genjazz.services.native_jar import (
    JarExecutionError,
    JarOutput,
    MalformedJarOutput,
    parse_json_output,
    run_jar,
)


def _make_process(stdout: bytes, returncode: int = 0, stderr: bytes = b"") -> MagicMock:
    """Return a mock asyncio subprocess with the given stdout/stderr/returncode."""
    proc = MagicMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    return proc


@pytest.mark.asyncio
async def test_run_jar_builds_java_command() -> None:
    proc = _make_process(b'{"key": "C"}')
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)) as mock_exec:
        output = await run_jar("java", "./GenJazzChords.jar", ["Random", "AABA", "None"])

    args = mock_exec.call_args.args
    assert args == ("java", "-jar", "./GenJazzChords.jar", "Random", "AABA", "None")
    assert mock_exec.call_args.kwargs["stdout"] is asyncio.subprocess.PIPE
    assert output == JarOutput(stdout='{"key": "C"}', stderr="", returncode=0)


@pytest.mark.asyncio
async def test_run_jar_non_zero_exit_raises_with_stderr() -> None:
    proc = _make_process(b"", returncode=2, stderr=b"Exception in thread main")
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
        with pytest.raises(JarExecutionError) as exc_info:
            await run_jar("java", "x.jar", [])

    assert exc_info.value.returncode == 2
    assert exc_info.value.stderr == "Exception in thread main"
    assert "exited with code 2" in str(exc_info.value)


@pytest.mark.asyncio
async def test_run_jar_missing_java_binary() -> None:
    with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("java"))):
        with pytest.raises(JarExecutionError) as exc_info:
            await run_jar("java", "x.jar", [])

    assert exc_info.value.returncode is None


def test_parse_json_output() -> None:
    assert parse_json_output(JarOutput('{"sections": []}', "", 0)) == {"sections": []}


def test_parse_json_output_rejects_garbage() -> None:
    with pytest.raises(MalformedJarOutput, match="Invalid JSON output from Java"):
        parse_json_output(JarOutput("Picked up _JAVA_OPTIONS", "", 0))
