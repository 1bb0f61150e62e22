"""
Workspace - Output naming and temporary artifact registry for a pipeline run.

This module provides the Workspace class that owns every temporary file
created during a run. Files are registered the moment they are created and
removed exactly once when the workspace is closed, whether the run succeeded,
failed or was interrupted by a signal.
"""

import logging
import os
import shutil
import signal
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)

# Signals that are converted into SystemExit so that cleanup runs.
# SIGINT already raises KeyboardInterrupt.
HANDLED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP") if hasattr(signal, name)
)


def _exit_on_signal(signum, frame):
    logger.warning(f"Received signal {signum}, aborting run")
    raise SystemExit(128 + signum)


class Workspace:
    """Manages output paths and temporary artifacts for a pipeline run.

    Attributes
    ----------
    output_prefix : str
        User-supplied prefix of the final artifacts
    output_dir : Path
        Directory the final artifacts are written to
    temp_dir : Path
        Directory temporary artifacts are created in (default: output_dir)
    """

    def __init__(self, output_prefix: str, temp_dir: Optional[Union[str, Path]] = None):
        """Initialize workspace with an output prefix.

        Parameters
        ----------
        output_prefix : str
            Prefix of the final output, e.g. 'output' or 'results/sample1'
        temp_dir : str or Path, optional
            Directory for temporary artifacts; defaults to the output directory.
            Nothing is created on disk until a temporary path is requested.
        """
        self.output_prefix = str(output_prefix)
        self.output_dir = Path(self.output_prefix).parent
        self.temp_dir = Path(temp_dir) if temp_dir else self.output_dir

        self._registered: List[Path] = []
        self._directories: List[Path] = []
        self._sort_dir: Optional[Path] = None
        self._released: set = set()
        self._previous_handlers: Dict[int, object] = {}

        logger.debug(f"Workspace initialized: output_prefix={self.output_prefix}")

    @property
    def output_vcf(self) -> Path:
        """Path of the final compressed VCF."""
        return self.get_output_path(".vcf.gz")

    @property
    def output_index(self) -> Path:
        """Path of the final VCF's tabix index."""
        return self.get_output_path(".vcf.gz.tbi")

    def get_output_path(self, suffix: str) -> Path:
        """Return ``<output_prefix><suffix>``."""
        return Path(f"{self.output_prefix}{suffix}")

    def register(self, path: Union[str, Path]) -> Path:
        """Add a path to the set of artifacts removed on cleanup.

        Registering the same path twice has no effect.
        """
        path = Path(path)
        if path not in self._registered:
            self._registered.append(path)
            logger.debug(f"Registered temporary artifact: {path}")
        return path

    def new_temp_path(
        self, prefix: str, suffix: str = "", with_index: Optional[str] = None
    ) -> Path:
        """Create a uniquely named temporary file and register it.

        The file is created atomically (``mkstemp``), so concurrent runs in the
        same directory never receive the same name. Tools may overwrite it.

        Parameters
        ----------
        prefix : str
            Name prefix, e.g. 'MERGED_'
        suffix : str
            Name suffix, e.g. '.vcf.gz'
        with_index : str, optional
            Index suffix (e.g. '.tbi') whose companion path is registered as well

        Returns
        -------
        Path
            Path of the new, empty temporary file
        """
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=self.temp_dir)
        os.close(fd)
        path = self.register(name)
        if with_index:
            self.register(f"{name}{with_index}")
        return path

    def new_temp_dir(self, prefix: str) -> Path:
        """Create a uniquely named temporary directory and register it.

        The directory and everything in it are removed on cleanup.
        """
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        path = Path(tempfile.mkdtemp(prefix=prefix, dir=self.temp_dir))
        self._directories.append(path)
        logger.debug(f"Registered temporary directory: {path}")
        return path

    def get_sort_temp_prefix(
        self, template: str = "tmp_bcftools.XXXXXX", dir_prefix: str = "SORT_"
    ) -> str:
        """Return a ``bcftools sort -T`` prefix inside a private scratch directory.

        bcftools creates its own directory from ``template``. Nesting it in a
        registered directory lets cleanup remove it even when bcftools was
        killed before it could.
        """
        if self._sort_dir is None:
            self._sort_dir = self.new_temp_dir(dir_prefix)
        return str(self._sort_dir / template)

    @property
    def temp_files(self) -> List[Path]:
        """Registered temporary artifacts, in registration order."""
        return list(self._registered)

    @property
    def temp_dirs(self) -> List[Path]:
        """Registered temporary directories, in creation order."""
        return list(self._directories)

    def cleanup(self) -> None:
        """Remove every registered artifact that has not been removed yet."""
        pending = [p for p in self._registered + self._directories if p not in self._released]
        if pending:
            logger.debug(f"Removing {len(pending)} temporary artifacts")

        for path in pending:
            self._released.add(path)
            remove = shutil.rmtree if path in self._directories else Path.unlink
            try:
                remove(path)
                logger.debug(f"Removed temporary artifact: {path}")
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove temporary artifact {path}: {e}")

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in HANDLED_SIGNALS:
            self._previous_handlers[signum] = signal.signal(signum, _exit_on_signal)

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def __repr__(self) -> str:
        """Return string representation of the workspace."""
        return (
            f"Workspace(output_prefix='{self.output_prefix}', "
            f"temp_files={len(self._registered)})"
        )

    def __enter__(self):
        """Context manager entry; termination signals unwind through cleanup."""
        self._install_signal_handlers()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit with unconditional cleanup."""
        try:
            self.cleanup()
        finally:
            self._restore_signal_handlers()
