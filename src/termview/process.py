"""Running external engines: tool discovery, subprocesses and temp workspaces."""

from __future__ import annotations

import re
import shutil
import subprocess
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from threading import Event
from types import TracebackType
from typing import Callable, Sequence

from .errors import CanceledError, CleanupError, SubprocessError, ToolUnavailableError
from .logging import NullLogger, RenderLogger


STDERR_LIMIT = 100
POLL_INTERVAL_S = 0.1
DEFAULT_TIMECODE = "00:00"

_DURATION_RE = re.compile(r"(?m)^duration=(.*)$")


class ToolLocator:
    """Finds external binaries, searching ``PATH`` at most once per tool."""

    def __init__(self, which: Callable[[str], str | None] = shutil.which) -> None:
        self._which = which
        self._paths: dict[str, str | None] = {}
        self._lock = threading.Lock()

    def lookup(self, name: str) -> str | None:
        with self._lock:
            if name not in self._paths:
                self._paths[name] = self._which(name)
            return self._paths[name]

    def find(self, name: str) -> str:
        path = self.lookup(name)
        if not path:
            raise ToolUnavailableError(f"{name} not in path")
        return path


# shared for the lifetime of the process
DEFAULT_TOOLS = ToolLocator()


@dataclass(slots=True)
class ProcessInvocation:
    executable: str
    args: list[str]
    returncode: int
    stdout: bytes
    stderr: bytes
    elapsed_s: float

    @property
    def command(self) -> str:
        return " ".join([self.executable, *self.args])

    def error_excerpt(self) -> str:
        text = (self.stderr or self.stdout).decode("utf-8", errors="replace")
        return text[:STDERR_LIMIT]


def _communicate(process: subprocess.Popen[bytes], cancel: Event | None) -> tuple[bytes, bytes]:
    while True:
        try:
            stdout, stderr = process.communicate(timeout=POLL_INTERVAL_S)
        except subprocess.TimeoutExpired:
            if cancel is not None and cancel.is_set():
                process.kill()
                process.communicate()
                raise CanceledError(f"{Path(str(process.args[0])).name} canceled")
            continue
        return stdout or b"", stderr or b""


def run_tool(
    executable: str,
    args: Sequence[str],
    *,
    cancel: Event | None = None,
    logger: RenderLogger | None = None,
    merge_stderr: bool = False,
    check: bool = True,
) -> ProcessInvocation:
    """Run *executable* and capture its output.

    The process is bound to *cancel*: once the event is set the process is
    killed and reaped, and ``CanceledError`` is raised. An interrupt in the
    calling thread also kills the process before propagating.
    """

    log = logger or NullLogger()
    argv = [str(arg) for arg in args]
    if cancel is not None and cancel.is_set():
        raise CanceledError(f"{Path(executable).name} canceled before start")
    log("executing: %s %s", executable, " ".join(argv))
    start = time.perf_counter()
    try:
        process = subprocess.Popen(
            [executable, *argv],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
        )
    except OSError as exc:
        raise SubprocessError(f"unable to start {executable}: {exc}") from exc
    try:
        stdout, stderr = _communicate(process, cancel)
    finally:
        if process.poll() is None:
            process.kill()
            process.wait()
    invocation = ProcessInvocation(
        executable=executable,
        args=argv,
        returncode=process.returncode,
        stdout=stdout,
        stderr=stderr,
        elapsed_s=time.perf_counter() - start,
    )
    log(
        "finished: %s (status %d, %.1fms)",
        invocation.command,
        invocation.returncode,
        invocation.elapsed_s * 1000,
    )
    if check and invocation.returncode != 0:
        raise SubprocessError(
            f"{Path(executable).name} exited with status {invocation.returncode}: "
            f"{invocation.error_excerpt()}"
        )
    return invocation


def format_timecode(seconds: float) -> str:
    """Format *seconds* as ffmpeg's ``MM:SS`` seek position."""

    if seconds <= 0:
        return DEFAULT_TIMECODE
    minutes, rem = divmod(int(seconds), 60)
    return f"{minutes:02d}:{rem:02d}"


def snapshot_timecode(duration: float | None) -> str:
    """Pick a snapshot offset from a container duration in seconds.

    Frame zero is often blank, so longer videos are sampled further in.
    ``None`` (probe failed) maps to the start of the stream.
    """

    if duration is None:
        return DEFAULT_TIMECODE
    if duration >= 3600:
        return "10:00"
    if duration >= 1800:
        return "05:00"
    if duration >= 900:
        return "03:00"
    if duration >= 300:
        return "02:00"
    if duration > 60:
        return "00:30"
    if duration > 30:
        return "00:10"
    if duration > 5:
        return "00:02"
    return DEFAULT_TIMECODE


def parse_probe_duration(output: str) -> float | None:
    match = _DURATION_RE.search(output)
    if match is None:
        return None
    try:
        return float(match.group(1).strip())
    except ValueError:
        return None


def probe_duration(
    ffprobe: str,
    path: str,
    *,
    cancel: Event | None = None,
    logger: RenderLogger | None = None,
) -> float | None:
    try:
        invocation = run_tool(
            ffprobe,
            ["-loglevel", "quiet", "-show_format", path],
            cancel=cancel,
            logger=logger,
            merge_stderr=True,
        )
    except SubprocessError:
        return None
    return parse_probe_duration(invocation.stdout.decode("utf-8", errors="replace"))


def probe_timecode(
    path: str,
    *,
    explicit: float,
    locator: ToolLocator,
    cancel: Event | None = None,
    logger: RenderLogger | None = None,
) -> str:
    log = logger or NullLogger()
    if explicit:
        return format_timecode(explicit)
    ffprobe = locator.lookup("ffprobe")
    if not ffprobe:
        return DEFAULT_TIMECODE
    duration = probe_duration(ffprobe, path, cancel=cancel, logger=log)
    if duration is not None:
        log("ffprobe duration: %.3fs / %s", duration, format_timecode(duration))
    return snapshot_timecode(duration)


class TempWorkspace:
    """Ephemeral directory removed on every exit path.

    A removal failure raises ``CleanupError`` unless another exception is
    already propagating, in which case it is logged and the first error
    wins.
    """

    def __init__(self, prefix: str = "termview.", logger: RenderLogger | None = None) -> None:
        self._prefix = prefix
        self._logger = logger or NullLogger()
        self.path: Path | None = None

    def __enter__(self) -> Path:
        self.path = Path(tempfile.mkdtemp(prefix=self._prefix))
        self._logger("temp dir: %s", self.path)
        return self.path

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.path is None or not self.path.exists():
            return
        self._logger("removing: %s", self.path)
        try:
            shutil.rmtree(self.path)
        except OSError as err:
            if exc is None:
                raise CleanupError(f"unable to remove {self.path}: {err}") from err
            self._logger("unable to remove %s: %s", self.path, err)


__all__ = [
    "DEFAULT_TIMECODE",
    "DEFAULT_TOOLS",
    "ProcessInvocation",
    "STDERR_LIMIT",
    "TempWorkspace",
    "ToolLocator",
    "format_timecode",
    "parse_probe_duration",
    "probe_duration",
    "probe_timecode",
    "run_tool",
    "snapshot_timecode",
]
