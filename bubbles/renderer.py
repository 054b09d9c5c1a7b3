"""Graphviz subprocess wrapper for bubbles.

Feeds DOT source to ``dot -T<format>`` on stdin and collects the drawing.
Renderer failures are returned, not raised, so callers can show the
diagnostic next to the source that failed.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

FORMATS = {
    "svg": "image/svg+xml",
    "png": "image/png",
}

DEFAULT_COMMAND = ("dot",)


@dataclass
class RenderResult:
    """Result of one renderer invocation."""

    output: bytes
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def render(
    source: str,
    fmt: str = "svg",
    command: Sequence[str] = DEFAULT_COMMAND,
    timeout: float | None = 30.0,
) -> RenderResult:
    """Render DOT source with the external renderer.

    Args:
        source: DOT text.
        fmt: One of FORMATS.
        command: Renderer argv prefix; ``-T<fmt>`` is appended.
        timeout: Seconds before the process is killed. None waits forever.

    Raises:
        ValueError: If ``fmt`` is not a supported format.
        asyncio.CancelledError: If the caller is cancelled; the process is
            killed first.
    """
    if fmt not in FORMATS:
        raise ValueError(f"Unsupported render format '{fmt}'")

    argv = [*command, f"-T{fmt}"]
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.warning("Cannot start renderer %s: %s", argv[0], e)
        return RenderResult(output=b"", error=f"cannot start renderer: {e}")

    try:
        stdout, stderr = await asyncio.wait_for(
            proc.communicate(source.encode("utf-8")), timeout=timeout
        )
    except asyncio.TimeoutError:
        await _kill(proc)
        logger.warning("Renderer timed out after %ss", timeout)
        return RenderResult(output=b"", error=f"renderer timed out after {timeout}s")
    except asyncio.CancelledError:
        await _kill(proc)
        raise

    if proc.returncode != 0:
        diagnostic = stderr.decode("utf-8", errors="replace").strip()
        error = f"{diagnostic}\nexit status {proc.returncode}".lstrip()
        logger.warning("Renderer failed: %s", error)
        return RenderResult(output=stdout, error=error)

    return RenderResult(output=stdout)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()
