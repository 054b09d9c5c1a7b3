"""Tests for bubbles/renderer.py: the Graphviz subprocess wrapper.

Uses small Python scripts in place of `dot` so the tests do not need
Graphviz installed.
"""

import asyncio
import sys

import pytest

from bubbles.renderer import RenderResult, render

# Echoes stdin, tagged with the -T flag it was given
ECHO = [
    sys.executable,
    "-c",
    "import sys; "
    "sys.stdout.buffer.write(sys.argv[1].encode() + b':' + sys.stdin.buffer.read())",
]

FAIL = [
    sys.executable,
    "-c",
    "import sys; sys.stdin.read(); sys.stderr.write('syntax error in line 2'); sys.exit(1)",
]

SLOW = [sys.executable, "-c", "import time; time.sleep(30)"]


class TestRender:
    @pytest.mark.asyncio
    async def test_success(self) -> None:
        result = await render("digraph G {}\n", "svg", command=ECHO)
        assert result.ok
        assert result.error is None
        assert result.output == b"-Tsvg:digraph G {}\n"

    @pytest.mark.asyncio
    async def test_png_flag(self) -> None:
        result = await render("digraph G {}", "png", command=ECHO)
        assert result.output.startswith(b"-Tpng:")

    @pytest.mark.asyncio
    async def test_non_ascii_source(self) -> None:
        result = await render('"café" -> "naïve"', "svg", command=ECHO)
        assert result.output.decode("utf-8").endswith('"café" -> "naïve"')

    @pytest.mark.asyncio
    async def test_failure_reports_diagnostic(self) -> None:
        result = await render("digraph {", "svg", command=FAIL)
        assert not result.ok
        assert "syntax error in line 2" in result.error
        assert "exit status 1" in result.error

    @pytest.mark.asyncio
    async def test_missing_executable(self) -> None:
        result = await render(
            "digraph G {}", "svg", command=["/nonexistent/bubbles-dot"]
        )
        assert not result.ok
        assert "cannot start renderer" in result.error

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self) -> None:
        result = await render("digraph G {}", "svg", command=SLOW, timeout=0.5)
        assert not result.ok
        assert "timed out" in result.error

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self) -> None:
        task = asyncio.create_task(render("digraph G {}", "svg", command=SLOW))
        await asyncio.sleep(0.3)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_unknown_format(self) -> None:
        with pytest.raises(ValueError):
            await render("digraph G {}", "gif", command=ECHO)


class TestRenderResult:
    def test_ok(self) -> None:
        assert RenderResult(output=b"<svg/>").ok
        assert not RenderResult(output=b"", error="boom").ok
