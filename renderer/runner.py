"""Run the external render/transcode tools and collect their output."""

import logging
import os
import signal
import subprocess
import threading
import time
from typing import Sequence

from .config import PipelineConfig
from .errors import CommandTimeout, LaunchError, NonZeroExit
from .models import JobPaths, SubprocessResult

logger = logging.getLogger(__name__)


def _drain(stream, log: list) -> None:
    for line in iter(stream.readline, ""):
        log.append(line)
    stream.close()


def _kill_group(proc) -> None:
    """Kill the tool and anything it spawned into its session."""
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    else:
        proc.kill()


def run_command(executable: str, args: Sequence, *, timeout: float | None = None) -> SubprocessResult:
    """
    Run ``executable`` with ``args`` (no shell) and wait for it to exit.

    stderr is merged into stdout at the pipe, so ``combined_log`` keeps the
    order in which the tool wrote its lines. Exit code 0 is the only success
    signal; anything else raises :class:`NonZeroExit` carrying the log.

    ``timeout`` bounds the whole call, including draining output that
    children of the tool may still be writing after it exits.
    """
    command = [str(executable), *(str(a) for a in args)]
    logger.debug("Executing %s", command)
    start = time.monotonic()
    try:
        proc = subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            start_new_session=True,
        )
    except OSError as exc:
        raise LaunchError(command, exc) from exc

    log: list[str] = []
    reader = threading.Thread(target=_drain, args=(proc.stdout, log), daemon=True)
    reader.start()
    try:
        code = proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill_group(proc)
        proc.wait()
        reader.join(timeout=5)
        raise CommandTimeout(command, timeout, list(log))

    remaining = None if timeout is None else max(0.0, start + timeout - time.monotonic())
    reader.join(timeout=remaining)
    if reader.is_alive():
        logger.warning("%s exited but its children still hold the output pipe; killing them", command[0])
        _kill_group(proc)
        reader.join(timeout=5)
    log = list(log)

    duration = time.monotonic() - start
    if code != 0:
        logger.warning("%s returned non-zero status %s after %.1fs", command[0], code, duration)
        raise NonZeroExit(command, code, log)
    logger.debug("%s completed in %.1fs", command[0], duration)
    return SubprocessResult(exit_code=code, combined_log=log)


def render_arguments(config: PipelineConfig, paths: JobPaths) -> list[str]:
    return [
        "-comp", config.composition,
        "-project", str(paths.template_project_path),
        "-output", str(paths.rendered_intermediate_path),
        "-OMtemplate", config.output_module,
        "-s", str(config.start_frame),
    ]


def transcode_arguments(paths: JobPaths) -> list[str]:
    return [
        "-i", str(paths.rendered_intermediate_path),
        str(paths.final_output_path),
    ]
