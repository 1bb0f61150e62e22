"""
Error handling utilities for the preprocessing pipeline.

This module provides:
- Custom exception classes for the different failure modes
- A context manager that converts unexpected errors into stage errors
- File validation helpers used before any temporary file is created

Every error is fatal: there are no retries and no degraded outputs.
"""

import logging
import subprocess
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, stage: Optional[str] = None, details: Optional[Dict] = None):
        """Initialize pipeline error.

        Parameters
        ----------
        message : str
            Error message
        stage : str, optional
            Stage where error occurred
        details : dict, optional
            Additional error details
        """
        super().__init__(message)
        self.stage = stage
        self.details = details or {}


class ConfigurationError(PipelineError):
    """Raised when a required argument or configuration value is missing."""

    def __init__(self, message: str, option: Optional[str] = None):
        """Initialize configuration error."""
        super().__init__(message, None, {"option": option})
        self.option = option


class MissingFileError(PipelineError):
    """Raised when an input file or its companion index does not exist."""

    def __init__(self, file_path: str, description: str = "file", stage: Optional[str] = None):
        """Initialize missing file error."""
        message = f"{description} not found: {file_path}"
        super().__init__(message, stage, {"file": str(file_path), "description": description})
        self.file_path = str(file_path)


class MissingToolError(PipelineError):
    """Raised when a required external tool is not found."""

    def __init__(self, tool: str, stage: Optional[str] = None):
        """Initialize tool not found error."""
        message = f"Required tool '{tool}' not found in PATH"
        super().__init__(message, stage, {"tool": tool})
        self.tool = tool


class PipelineStageError(PipelineError):
    """Raised when an external command of a stage exits with failure."""

    def __init__(
        self,
        stage: str,
        message: str,
        step: Optional[str] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        """Initialize stage error.

        Parameters
        ----------
        stage : str
            Name of the failing stage
        message : str
            Human-readable description
        step : str, optional
            Name of the failing step inside the stage (e.g. 'normalize')
        returncode : int, optional
            Exit status of the failing command
        stderr : str
            Captured standard error of the failing command
        """
        where = f"{stage}/{step}" if step else stage
        super().__init__(
            f"Stage '{where}' failed: {message}",
            stage,
            {"step": step, "returncode": returncode, "stderr": stderr},
        )
        self.step = step
        self.returncode = returncode
        self.stderr = stderr


class ReferenceMismatchError(PipelineStageError):
    """Raised when normalization finds a REF allele that disagrees with the reference."""


class IndexingError(PipelineStageError):
    """Raised when building a .tbi index fails."""


# Messages bcftools norm prints for REF/reference disagreements
REFERENCE_MISMATCH_MARKERS = (
    "Reference allele mismatch",
    "REF_SEQ:",
    "does not match the reference",
)


def is_reference_mismatch(stderr: str) -> bool:
    """Return True if bcftools stderr reports a REF/reference disagreement."""
    return any(marker in stderr for marker in REFERENCE_MISMATCH_MARKERS)


@contextmanager
def graceful_error_handling(stage_name: str, logger: Optional[logging.Logger] = None):
    """Convert unexpected errors raised inside a stage into ``PipelineStageError``.

    Failed commands, I/O errors and undecodable or malformed data are
    converted. Pipeline errors pass through untouched.

    Examples
    --------
    >>> with graceful_error_handling("merge_inputs"):
    ...     pass
    """
    _logger = logger or logging.getLogger(__name__)

    try:
        yield
    except PipelineError:
        raise
    except subprocess.CalledProcessError as e:
        stderr = e.stderr if isinstance(e.stderr, str) else ""
        _logger.error(f"Command failed in {stage_name}: {e}")
        raise PipelineStageError(
            stage_name, str(e), returncode=e.returncode, stderr=stderr
        ) from e
    except OSError as e:
        _logger.error(f"I/O error in {stage_name}: {e}")
        raise PipelineStageError(stage_name, str(e)) from e
    except ValueError as e:
        # Includes UnicodeDecodeError from unreadable tool output
        _logger.error(f"Invalid data in {stage_name}: {e}")
        raise PipelineStageError(stage_name, str(e)) from e


def validate_file_exists(
    file_path: Union[str, Path], description: str = "File", stage_name: Optional[str] = None
) -> Path:
    """Validate that a regular file exists.

    Parameters
    ----------
    file_path : str or Path
        Path to validate
    description : str
        Label used in the error message (e.g. 'Input VCF')
    stage_name : str, optional
        Stage name for error reporting

    Returns
    -------
    Path
        Validated path object

    Raises
    ------
    MissingFileError
        If the path does not exist or is not a regular file
    """
    path = Path(file_path)

    if not path.is_file():
        raise MissingFileError(str(file_path), description, stage_name)

    return path


def validate_companion_index(
    file_path: Union[str, Path],
    suffix: str,
    description: str = "Index",
    stage_name: Optional[str] = None,
) -> Path:
    """Validate that ``<file_path><suffix>`` exists next to ``file_path``.

    Parameters
    ----------
    file_path : str or Path
        The indexed file
    suffix : str
        Index suffix including the dot, e.g. '.tbi' or '.fai'
    description : str
        Label used in the error message
    stage_name : str, optional
        Stage name for error reporting

    Returns
    -------
    Path
        Path of the index file

    Raises
    ------
    MissingFileError
        If the index is absent
    """
    index_path = Path(f"{file_path}{suffix}")
    return validate_file_exists(index_path, description, stage_name)
