# File: vcfprep/pipeline.py
# Location: vcfprep/vcfprep/pipeline.py

"""
Pipeline orchestration module for vcfprep.

Builds the list of stages for a run and executes them inside a Workspace,
so that every temporary artifact is removed on success, failure or
interruption:

    input_validation -> [merge_inputs] -> header_inspection -> normalization
    -> index_output -> report_output
"""

import argparse
import logging
from typing import Any, Dict, List

from .pipeline_core import PipelineContext, PipelineRunner, Stage, Workspace
from .stages import (
    HeaderInspectionStage,
    IndexOutputStage,
    InputValidationStage,
    MergeInputsStage,
    NormalizationStage,
    ReportOutputStage,
)

logger = logging.getLogger(__name__)


def build_pipeline_stages(args: argparse.Namespace) -> List[Stage]:
    """Build the list of stages for a run.

    Parameters
    ----------
    args : argparse.Namespace
        Command-line arguments; the merge stage is included only when
        ``args.additional_vcfs`` is non-empty.

    Returns
    -------
    List[Stage]
        Stages in execution order
    """
    stages: List[Stage] = [InputValidationStage()]

    if getattr(args, "additional_vcfs", None):
        stages.append(MergeInputsStage())

    stages.extend(
        [
            HeaderInspectionStage(),
            NormalizationStage(),
            IndexOutputStage(),
            ReportOutputStage(),
        ]
    )
    return stages


def run_pipeline(args: argparse.Namespace, config: Dict[str, Any]) -> PipelineContext:
    """Run the preprocessing pipeline.

    Parameters
    ----------
    args : argparse.Namespace
        Command-line arguments (input_vcf, additional_vcfs, reference, output_prefix)
    config : dict
        Merged configuration

    Returns
    -------
    PipelineContext
        Final context; ``context.output`` holds the indexed output VCF

    Raises
    ------
    PipelineError
        On any validation or stage failure. Temporary artifacts are removed
        before the error propagates.
    """
    output_prefix = getattr(args, "output_prefix", None) or config.get("output_prefix", "output")
    stages = build_pipeline_stages(args)
    runner = PipelineRunner()

    logger.info(f"Pipeline configured with {len(stages)} stages")
    logger.debug(f"Execution order: {runner.dry_run(stages)}")

    with Workspace(output_prefix, config.get("temp_dir")) as workspace:
        context = PipelineContext(args=args, config=config, workspace=workspace)
        context = runner.run(stages, context)

    logger.info("Pipeline completed successfully!")
    return context
