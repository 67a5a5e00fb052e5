"""Subprocess runner: live stdout/stderr chunks from an external agent process."""

import logging
import os
import queue
import subprocess
import threading
import time
from collections.abc import Callable, Iterator, Mapping
from typing import IO

from otto.core.models import TranscriptChunk
from otto.core.protocols import Launch
from otto.errors import RunnerError

logger = logging.getLogger(__name__)

_SENTINEL = object()
TERMINATE_GRACE_SECONDS = 2


def once(fn: Callable[[], None]) -> Callable[[], None]:
    """Wrap a release function so only the first call does anything."""
    lock = threading.Lock()
    done = False

    def release() -> None:
        nonlocal done
        with lock:
            if done:
                return
            done = True
        fn()

    return release


class SubprocessRunner:
    """Starts processes with piped output read line by line on reader threads.

    Output is decoded as UTF-8; undecodable bytes become U+FFFD so a line
    is never dropped. One reader thread per stream puts chunks on a shared
    queue and a sentinel when its stream closes. The chunk iterator ends once both
    sentinels arrived, or early when `timeout` elapses.
    """

    def __init__(self, timeout: float | None = None, cwd: str | None = None):
        self.timeout = timeout
        self.cwd = cwd

    def start(self, name: str, env: Mapping[str, str] | None, *args: str) -> Launch:
        merged_env = {**os.environ, **(env or {})}
        try:
            process = subprocess.Popen(  # noqa: S603
                [name, *args],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
                env=merged_env,
                cwd=self.cwd,
            )
        except OSError as e:
            raise RunnerError(f"{name}: failed to start: {e}") from e

        chunks: queue.Queue[TranscriptChunk | object] = queue.Queue()
        readers = [
            threading.Thread(
                target=_pump, args=(process.stdout, "stdout", chunks), daemon=True
            ),
            threading.Thread(
                target=_pump, args=(process.stderr, "stderr", chunks), daemon=True
            ),
        ]
        for reader in readers:
            reader.start()

        logger.debug(f"Started {name} (pid {process.pid})")

        return Launch(
            pid=process.pid,
            chunks=self._drain(chunks, open_streams=len(readers)),
            cleanup=once(lambda: _release(name, process, readers)),
        )

    def _drain(
        self, chunks: "queue.Queue[TranscriptChunk | object]", open_streams: int
    ) -> Iterator[TranscriptChunk]:
        deadline = time.monotonic() + self.timeout if self.timeout is not None else None
        while open_streams:
            wait = None
            if deadline is not None:
                wait = deadline - time.monotonic()
                if wait <= 0:
                    logger.warning(f"Output stream closed after {self.timeout}s timeout")
                    return
            try:
                item = chunks.get(timeout=wait)
            except queue.Empty:
                continue
            if item is _SENTINEL:
                open_streams -= 1
                continue
            yield item


def _pump(pipe: IO[str], stream: str, chunks: queue.Queue) -> None:
    try:
        for line in pipe:
            chunks.put(TranscriptChunk(stream=stream, data=line))
    except ValueError:
        # Reading a pipe that cleanup already closed.
        if not pipe.closed:
            raise
    finally:
        chunks.put(_SENTINEL)


def _release(name: str, process: subprocess.Popen, readers: list[threading.Thread]) -> None:
    # Output closes slightly before exit; only a process that outlives the grace period is killed.
    try:
        returncode = process.wait(timeout=TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        _terminate_process(process)
        returncode = process.wait()
    for reader in readers:
        reader.join(timeout=TERMINATE_GRACE_SECONDS)
    for pipe in (process.stdout, process.stderr):
        if pipe is not None:
            pipe.close()
    if returncode != 0:
        raise RunnerError(f"{name} exited with status {returncode}")


def _terminate_process(process: subprocess.Popen) -> None:
    try:
        process.terminate()
    except OSError:
        return
    try:
        process.wait(timeout=TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        try:
            process.kill()
        except OSError:
            return
        process.wait(timeout=TERMINATE_GRACE_SECONDS)
