"""
Setup stages for input validation and run configuration.

This module contains the stage that runs before anything touches the disk:
- Mandatory argument checks
- bcftools availability
- Existence of every input file and its companion index
- Thread count resolution
"""

import logging
from pathlib import Path
from typing import Any, Optional

from ..pipeline_core import PipelineContext, ReferenceGenome, Stage, VcfArtifact
from ..pipeline_core.error_handling import ConfigurationError
from ..utils import detect_cpu_count, get_tool_version
from ..validators import validate_inputs

logger = logging.getLogger(__name__)


def resolve_threads(configured: Optional[Any]) -> int:
    """Return the configured thread count, or the CPUs available to the process.

    Raises
    ------
    ConfigurationError
        If the configured value is not a positive integer.
    """
    if configured is None:
        return detect_cpu_count()

    # bool is an int subclass; "4" from a hand-written config is accepted
    valid = not isinstance(configured, bool) and (
        isinstance(configured, int) or str(configured).isdigit()
    )
    if not valid or int(configured) < 1:
        raise ConfigurationError(
            f"Thread count must be a positive integer, got {configured!r}", option="threads"
        )
    return int(configured)


class InputValidationStage(Stage):
    """Validate arguments, tool and input files; populate the context inputs."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "input_validation"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Validate arguments, bcftools and input files"

    def _process(self, context: PipelineContext) -> PipelineContext:
        """Run the pre-flight checks and record the validated inputs."""
        args = context.args
        additional = list(getattr(args, "additional_vcfs", None) or [])

        validate_inputs(
            getattr(args, "input_vcf", None),
            getattr(args, "reference", None),
            additional,
            tool=context.bcftools,
        )

        context.input_vcf = VcfArtifact.from_path(args.input_vcf)
        context.additional_vcfs = [VcfArtifact.from_path(p) for p in additional]
        context.reference = ReferenceGenome(Path(args.reference))
        context.current_input = context.input_vcf
        context.threads = resolve_threads(context.config.get("threads"))

        logger.info(f"Using {get_tool_version(context.bcftools)}")
        logger.info(
            f"Input VCF: {context.input_vcf} "
            f"(+{len(context.additional_vcfs)} additional), reference: {context.reference}, "
            f"threads: {context.threads}"
        )
        return context
