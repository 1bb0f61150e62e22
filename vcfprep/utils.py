# File: vcfprep/utils.py
# Location: vcfprep/vcfprep/utils.py

"""
Utility functions module.

Provides helper functions for running commands and command pipelines,
retrieving the bcftools version and detecting the number of CPUs available
to the process.
"""

import logging
import os
import signal
import subprocess
import tempfile
from typing import List, Optional, Sequence, Tuple

import psutil

logger = logging.getLogger("vcfprep")

# Seconds a pipe step gets to exit after SIGTERM before it is killed
TERMINATE_TIMEOUT = 5


class PipedCommandError(subprocess.CalledProcessError):
    """A command inside a pipe chain exited with a non-zero status.

    ``step`` names the failing command within the chain.
    """

    def __init__(self, step: str, returncode: int, cmd: Sequence[str], stderr: str = ""):
        super().__init__(returncode, list(cmd), stderr=stderr)
        self.step = step

    def __str__(self) -> str:
        return f"step '{self.step}': {super().__str__()}"


def run_command(cmd: list, output_file: Optional[str] = None) -> str:
    """
    Run a command and write stdout to output_file if provided, else return stdout.

    Parameters
    ----------
    cmd : list of str
        Command and its arguments.
    output_file : str, optional
        Path to a file where stdout should be written. If None,
        returns stdout as a string.

    Returns
    -------
    str
        If output_file is None, returns the command stdout as a string.
        If output_file is provided, returns output_file after completion.

    Raises
    ------
    subprocess.CalledProcessError
        If the command returns a non-zero exit code.
    """
    logger.debug("Running command: %s", " ".join(cmd))
    if output_file:
        with open(output_file, "w", encoding="utf-8") as out_f:
            result = subprocess.run(
                cmd, stdout=out_f, stderr=subprocess.PIPE, text=True, errors="replace"
            )
    else:
        result = subprocess.run(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True, errors="replace"
        )

    if result.returncode != 0:
        logger.error("Command failed: %s\nError: %s", " ".join(cmd), result.stderr)
        raise subprocess.CalledProcessError(result.returncode, cmd, stderr=result.stderr)

    logger.debug("Command completed successfully.")
    if output_file:
        return output_file
    return result.stdout


def _read_stderr(handle) -> str:
    handle.seek(0)
    return handle.read().decode("utf-8", errors="replace")


def _stop_processes(procs: List[subprocess.Popen]) -> None:
    # SIGTERM first so tools can remove their own scratch files
    running = [proc for proc in procs if proc.poll() is None]
    for proc in running:
        proc.terminate()
    for proc in running:
        try:
            proc.wait(timeout=TERMINATE_TIMEOUT)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()


def run_piped_commands(steps: Sequence[Tuple[str, List[str]]]) -> str:
    """
    Run commands connected stdout-to-stdin, like ``a | b | c`` in a shell.

    Each command gets its own stderr capture so the failing step can be
    identified. When several commands fail, the first one in pipe order is
    reported, skipping upstream commands that only died of a broken pipe.

    Parameters
    ----------
    steps : sequence of (str, list of str)
        Step names and commands, in pipe order.

    Returns
    -------
    str
        Standard output of the last command.

    Raises
    ------
    PipedCommandError
        If any command exits with a non-zero status.
    """
    if not steps:
        raise ValueError("No commands to run")

    procs: List[subprocess.Popen] = []
    stderr_files = []
    try:
        upstream = None
        for name, cmd in steps:
            logger.debug("Running pipe step '%s': %s", name, " ".join(cmd))
            err = tempfile.TemporaryFile()
            stderr_files.append(err)
            proc = subprocess.Popen(cmd, stdin=upstream, stdout=subprocess.PIPE, stderr=err)
            if upstream is not None:
                # Only the child holds the read end now, so it sees SIGPIPE/EOF properly
                upstream.close()
            upstream = proc.stdout
            procs.append(proc)

        stdout, _ = procs[-1].communicate()
        for proc in procs[:-1]:
            proc.wait()

        failures = [
            (name, cmd, proc, err)
            for (name, cmd), proc, err in zip(steps, procs, stderr_files)
            if proc.returncode != 0
        ]
        if failures:
            real = [f for f in failures if f[2].returncode != -signal.SIGPIPE]
            name, cmd, proc, err = (real or failures)[0]
            stderr = _read_stderr(err)
            logger.error("Command failed: %s\nError: %s", " ".join(cmd), stderr)
            raise PipedCommandError(name, proc.returncode, cmd, stderr)

        logger.debug("Command pipeline completed successfully.")
        return stdout.decode("utf-8", errors="replace")
    except BaseException:
        _stop_processes(procs)
        raise
    finally:
        for err in stderr_files:
            err.close()


def get_tool_version(tool_name: str = "bcftools") -> str:
    """
    Retrieve the version line of bcftools.

    Parameters
    ----------
    tool_name : str
        Name or path of the bcftools executable.

    Returns
    -------
    str
        Version string or 'N/A' if it cannot be retrieved.
    """
    try:
        result = subprocess.run(
            [tool_name, "--version"],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
        )
    except OSError as e:
        logger.warning("Failed to retrieve version for %s: %s", tool_name, e)
        return "N/A"

    for line in result.stdout.splitlines():
        if "bcftools" in line.lower():
            return line.strip()
    logger.warning("Could not parse version for %s. Returning 'N/A'.", tool_name)
    return "N/A"


def detect_cpu_count() -> int:
    """
    Detect the number of CPUs this process may run on.

    Returns
    -------
    int
        CPUs in the process affinity mask, falling back to the logical CPU
        count and finally to 1.
    """
    try:
        affinity = psutil.Process().cpu_affinity()
        if affinity:
            return len(affinity)
    except (AttributeError, psutil.Error, OSError) as e:
        # cpu_affinity is not available on every platform
        logger.debug(f"Could not read CPU affinity: {e}")

    cores = psutil.cpu_count(logical=True) or os.cpu_count()
    if cores:
        return cores

    logger.warning("Could not detect CPU count, using 1 thread")
    return 1
