"""Tests for command helpers and CPU detection."""

import signal
import subprocess
from unittest.mock import MagicMock, patch

import psutil
import pytest

from vcfprep.utils import (
    PipedCommandError,
    detect_cpu_count,
    get_tool_version,
    run_command,
    run_piped_commands,
)


@pytest.mark.unit
class TestRunCommand:
    def test_returns_stdout(self):
        assert run_command(["sh", "-c", "printf hello"]) == "hello"

    def test_writes_output_file(self, tmp_path):
        out = tmp_path / "out.txt"
        assert run_command(["sh", "-c", "printf '##fileformat=VCFv4.2\\n'"], str(out)) == str(out)
        assert out.read_text() == "##fileformat=VCFv4.2\n"

    def test_failure_raises_with_stderr(self):
        with pytest.raises(subprocess.CalledProcessError) as exc_info:
            run_command(["sh", "-c", "echo broken >&2; exit 3"])
        assert exc_info.value.returncode == 3
        assert "broken" in exc_info.value.stderr


@pytest.mark.unit
class TestRunPipedCommands:
    def test_streams_between_steps(self):
        steps = [
            ("produce", ["sh", "-c", "printf 'b\\na\\nb\\n'"]),
            ("sort", ["sort"]),
            ("dedup", ["uniq"]),
        ]
        assert run_piped_commands(steps) == "a\nb\n"

    def test_reports_failing_step(self):
        steps = [
            ("filter", ["sh", "-c", "printf 'x\\n'"]),
            ("normalize", ["sh", "-c", "cat >/dev/null; echo 'REF_SEQ mismatch' >&2; exit 1"]),
            ("sort", ["cat"]),
        ]
        with pytest.raises(PipedCommandError) as exc_info:
            run_piped_commands(steps)
        assert exc_info.value.step == "normalize"
        assert exc_info.value.returncode == 1
        assert "REF_SEQ mismatch" in exc_info.value.stderr
        assert "normalize" in str(exc_info.value)

    def test_first_failure_in_pipe_order(self):
        steps = [
            ("filter", ["sh", "-c", "echo first >&2; exit 2"]),
            ("sort", ["sh", "-c", "cat >/dev/null; exit 5"]),
        ]
        with pytest.raises(PipedCommandError) as exc_info:
            run_piped_commands(steps)
        assert exc_info.value.step == "filter"
        assert exc_info.value.returncode == 2

    def test_broken_pipe_is_not_blamed(self):
        """Test an upstream step killed by SIGPIPE is skipped in favour of the reader."""
        steps = [
            ("filter", ["yes"]),
            ("sort", ["sh", "-c", "head -c 1 >/dev/null; exit 4"]),
        ]
        with pytest.raises(PipedCommandError) as exc_info:
            run_piped_commands(steps)
        assert exc_info.value.step == "sort"
        assert exc_info.value.returncode == 4

    def test_missing_executable(self):
        with pytest.raises(OSError):
            run_piped_commands([("filter", ["/nonexistent/bcftools", "view"])])

    def test_empty_pipeline(self):
        with pytest.raises(ValueError):
            run_piped_commands([])

    @pytest.fixture
    def interrupted_popen(self):
        """Popen that records its children and is interrupted while waiting.

        The interrupt comes once the last step printed a line, so a step can
        finish its own setup first.
        """
        real_popen = subprocess.Popen
        started = []

        def popen(*args, **kwargs):
            proc = real_popen(*args, **kwargs)
            started.append(proc)
            return proc

        def communicate(*args, **kwargs):
            if started[-1].args[0] == "sh":
                started[-1].stdout.readline()
            raise KeyboardInterrupt

        with patch.object(real_popen, "communicate", communicate):
            with patch("vcfprep.utils.subprocess.Popen", side_effect=popen):
                yield started

    def test_interrupt_terminates_steps(self, interrupted_popen):
        with pytest.raises(KeyboardInterrupt):
            run_piped_commands([("a", ["sleep", "30"]), ("b", ["sleep", "30"])])

        assert len(interrupted_popen) == 2
        assert [p.returncode for p in interrupted_popen] == [-signal.SIGTERM] * 2

    def test_kill_after_ignored_terminate(self, interrupted_popen):
        with patch("vcfprep.utils.TERMINATE_TIMEOUT", 0.5):
            with pytest.raises(KeyboardInterrupt):
                run_piped_commands(
                    [("stubborn", ["sh", "-c", "trap \"\" TERM; echo ready; exec sleep 30"])]
                )

        assert interrupted_popen[0].returncode == -signal.SIGKILL


@pytest.mark.unit
class TestToolHelpers:
    def test_get_tool_version(self):
        result = MagicMock(stdout="bcftools 1.21\nUsing htslib 1.21\n")
        with patch("vcfprep.utils.subprocess.run", return_value=result):
            assert get_tool_version("bcftools") == "bcftools 1.21"

    def test_get_tool_version_missing_binary(self):
        with patch("vcfprep.utils.subprocess.run", side_effect=FileNotFoundError("bcftools")):
            assert get_tool_version("bcftools") == "N/A"


@pytest.mark.unit
class TestDetectCpuCount:
    def test_uses_affinity(self):
        process = MagicMock()
        process.cpu_affinity.return_value = [0, 1, 2]
        with patch("vcfprep.utils.psutil.Process", return_value=process):
            assert detect_cpu_count() == 3

    def test_falls_back_to_cpu_count(self):
        process = MagicMock()
        process.cpu_affinity.side_effect = AttributeError("cpu_affinity")
        with patch("vcfprep.utils.psutil.Process", return_value=process), patch(
            "vcfprep.utils.psutil.cpu_count", return_value=6
        ):
            assert detect_cpu_count() == 6

    def test_last_resort_is_one(self):
        process = MagicMock()
        process.cpu_affinity.side_effect = psutil.AccessDenied()
        with patch("vcfprep.utils.psutil.Process", return_value=process), patch(
            "vcfprep.utils.psutil.cpu_count", return_value=None
        ), patch("vcfprep.utils.os.cpu_count", return_value=None):
            assert detect_cpu_count() == 1
