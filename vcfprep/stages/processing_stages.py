"""
Processing stages for merging, header inspection and normalization.

This module contains the stages that call bcftools:
- Merging additional VCFs into the primary input (concat + sort + index)
- Dumping and inspecting the input header to select the record filter
- The streamed filter -> normalize -> deduplicate -> sort chain
"""

import logging
import shutil
import subprocess
from typing import List, Set, Tuple

from ..filters import select_filter_rule
from ..pipeline_core import PipelineContext, Stage, VcfArtifact
from ..pipeline_core.error_handling import (
    IndexingError,
    PipelineStageError,
    ReferenceMismatchError,
    graceful_error_handling,
    is_reference_mismatch,
)
from ..utils import PipedCommandError, run_command, run_piped_commands
from ..vcf_header_parser import extract_header, read_header_file

logger = logging.getLogger(__name__)

Steps = List[Tuple[str, List[str]]]


def _sort_temp_prefix(context: PipelineContext) -> str:
    config = context.config
    return context.workspace.get_sort_temp_prefix(
        config["sort_temp_prefix"], config["sort_dir_prefix"]
    )


def _version_flags(context: PipelineContext) -> List[str]:
    # Without --no-version the header records the command line (temporary
    # names included) and a timestamp, so repeated runs differ
    return [] if context.config.get("header_provenance") else ["--no-version"]


def build_merge_steps(context: PipelineContext, merged_vcf: str) -> Steps:
    """Return the concat | sort chain that merges all inputs into ``merged_vcf``."""
    bcftools = context.bcftools
    inputs = [str(vcf) for vcf in [context.input_vcf, *context.additional_vcfs]]
    sort_prefix = _sort_temp_prefix(context)
    return [
        # -a: allow overlapping records across inputs
        ("concat", [bcftools, "concat", "-a", *_version_flags(context), "-Ou", *inputs]),
        ("sort", [bcftools, "sort", "-T", sort_prefix, "-Oz", "-o", merged_vcf]),
    ]


def build_normalization_steps(context: PipelineContext, output_vcf: str) -> Steps:
    """Return the filter | normalize | deduplicate | sort chain writing ``output_vcf``."""
    bcftools = context.bcftools
    threads = str(context.threads)
    config = context.config
    sort_prefix = _sort_temp_prefix(context)
    no_version = _version_flags(context)
    return [
        (
            "filter",
            [
                bcftools, "view",
                "-v", config["variant_types"],
                "--threads", threads,
                "-i", context.filter_rule.expression,
                *no_version,
                "-Ou",
                str(context.current_input),
            ],
        ),
        (
            "normalize",
            [
                bcftools, "norm",
                "--threads", threads,
                "--check-ref", config["check_ref"],
                "-m", config["multiallelic_mode"],
                "--atomize",
                "-f", str(context.reference),
                *no_version,
                "-Ou",
                "-",
            ],
        ),
        (
            "deduplicate",
            [
                bcftools, "norm",
                "--threads", threads,
                "-d", config["dedup_mode"],
                *no_version,
                "-Ou",
                "-",
            ],
        ),
        ("sort", [bcftools, "sort", "-T", sort_prefix, "-Oz", "-o", output_vcf]),
    ]


def build_index_command(context: PipelineContext, vcf: str) -> List[str]:
    """Return the command writing ``<vcf>.tbi``."""
    return [context.bcftools, "index", "--threads", str(context.threads), "--tbi", vcf]


class MergeInputsStage(Stage):
    """Concatenate the primary and additional VCFs into one sorted, indexed VCF."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "merge_inputs"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Merge additional VCF files into the input"

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {"input_validation"}

    def _process(self, context: PipelineContext) -> PipelineContext:
        """Run concat | sort, index the result and make it the current input."""
        if not context.additional_vcfs:
            logger.debug("No additional VCFs given, skipping merge")
            return context

        logger.info("Merging additional VCF files...")
        merged = context.workspace.new_temp_path(
            context.config["merge_temp_prefix"], ".vcf.gz", with_index=".tbi"
        )
        merged_vcf = VcfArtifact(merged)

        with graceful_error_handling(self.name, logger):
            try:
                run_piped_commands(build_merge_steps(context, str(merged)))
            except PipedCommandError as e:
                raise PipelineStageError(
                    self.name,
                    "bcftools concat/sort step failed",
                    step=e.step,
                    returncode=e.returncode,
                    stderr=e.stderr,
                ) from e

            try:
                run_command(build_index_command(context, str(merged)))
            except subprocess.CalledProcessError as e:
                raise IndexingError(
                    self.name,
                    "bcftools index failed for merged VCF",
                    step="index",
                    returncode=e.returncode,
                    stderr=e.stderr or "",
                ) from e

        logger.info(
            f"Merged {1 + len(context.additional_vcfs)} VCF files into {merged_vcf.path.name}"
        )
        context.current_input = merged_vcf
        return context


class HeaderInspectionStage(Stage):
    """Dump the header of the current input and select the record filter."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "header_inspection"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Inspect VCF header to select the filter"

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {"input_validation"}

    @property
    def soft_dependencies(self) -> Set[str]:
        """Inspect the merged VCF when a merge runs."""
        return {"merge_inputs"}

    def _process(self, context: PipelineContext) -> PipelineContext:
        """Write the header to a temporary file, parse it and pick the filter rule."""
        header_file = context.workspace.new_temp_path(context.config["header_temp_prefix"])

        with graceful_error_handling(self.name, logger):
            try:
                extract_header(context.current_input.path, header_file, context.bcftools)
            except subprocess.CalledProcessError as e:
                raise PipelineStageError(
                    self.name,
                    f"could not read header of {context.current_input}",
                    step="extract_header",
                    returncode=e.returncode,
                    stderr=e.stderr or "",
                ) from e
            context.header = read_header_file(header_file)

        context.filter_rule = select_filter_rule(context.header)
        logger.info(f"Using filter ({context.filter_rule.name}): {context.filter_rule.expression}")
        return context


class NormalizationStage(Stage):
    """Filter, normalize, deduplicate and sort the current input into the output VCF.

    The four bcftools commands are streamed through pipes. The sorted result
    is written to a temporary file and only moved onto ``<prefix>.vcf.gz``
    once every command has succeeded.
    """

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "normalization"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Filter, normalize, deduplicate and sort variants"

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {"header_inspection"}

    def _stage_error(self, error: PipedCommandError) -> PipelineStageError:
        if error.step == "normalize" and is_reference_mismatch(error.stderr or ""):
            return ReferenceMismatchError(
                self.name,
                "REF allele does not match the reference genome",
                step=error.step,
                returncode=error.returncode,
                stderr=error.stderr,
            )
        return PipelineStageError(
            self.name,
            "bcftools normalization failed",
            step=error.step,
            returncode=error.returncode,
            stderr=error.stderr or "",
        )

    def _process(self, context: PipelineContext) -> PipelineContext:
        """Run the streamed chain and publish the sorted output."""
        logger.info("Processing VCF...")
        workspace = context.workspace
        sorted_vcf = workspace.new_temp_path(context.config["output_temp_prefix"], ".vcf.gz")
        output = VcfArtifact(workspace.output_vcf)

        with graceful_error_handling(self.name, logger):
            try:
                run_piped_commands(build_normalization_steps(context, str(sorted_vcf)))
            except PipedCommandError as e:
                raise self._stage_error(e) from e

            output.path.parent.mkdir(parents=True, exist_ok=True)
            # An index left over from an earlier run would describe the old file
            output.index_path.unlink(missing_ok=True)
            shutil.move(str(sorted_vcf), str(output.path))

        context.output = output
        return context
