"""
Output stages for indexing and reporting the final artifacts.

This module contains stages that finish a run:
- Building the tabix index of the output VCF
- Reporting the artifact paths on standard output
"""

import logging
import subprocess
from typing import Set

from ..pipeline_core import PipelineContext, Stage
from ..pipeline_core.error_handling import IndexingError
from ..utils import run_command
from .processing_stages import build_index_command

logger = logging.getLogger(__name__)


class IndexOutputStage(Stage):
    """Index the output VCF; an unindexable output is removed."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "index_output"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Index output VCF"

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {"normalization"}

    def _process(self, context: PipelineContext) -> PipelineContext:
        """Run bcftools index --tbi on the output."""
        output = context.output
        try:
            run_command(build_index_command(context, str(output.path)))
        except (subprocess.CalledProcessError, OSError) as e:
            for path in (output.path, output.index_path):
                path.unlink(missing_ok=True)
            context.output = None
            raise IndexingError(
                self.name,
                f"bcftools index failed for {output.path}",
                step="index",
                returncode=getattr(e, "returncode", None),
                stderr=getattr(e, "stderr", None) or "",
            ) from e

        logger.info(f"Indexed {output.path}")
        return context


class ReportOutputStage(Stage):
    """Print the paths of the final artifacts."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "report_output"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Report output files"

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {"index_output"}

    def _process(self, context: PipelineContext) -> PipelineContext:
        """Write the artifact summary to stdout."""
        output = context.output
        print("Done:")
        print(f"  VCF : {output.path}")
        print(f"  TBI : {output.index_path}")
        return context
