"""
PipelineContext - Single source of truth for pipeline state and data.

This module provides the PipelineContext dataclass that flows through all stages,
carrying configuration, the workspace, and the file artifacts each stage
produces for the next one.
"""

import argparse
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, TYPE_CHECKING, Union

if TYPE_CHECKING:
    from ..filters import FilterRule
    from ..vcf_header_parser import VcfHeader
    from .workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VcfArtifact:
    """A bgzipped VCF and its co-located tabix index."""

    path: Path

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "VcfArtifact":
        return cls(Path(path))

    @property
    def index_path(self) -> Path:
        return Path(f"{self.path}.tbi")

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class ReferenceGenome:
    """A reference FASTA and its co-located samtools index."""

    path: Path

    @property
    def index_path(self) -> Path:
        return Path(f"{self.path}.fai")

    def __str__(self) -> str:
        return str(self.path)


@dataclass
class PipelineContext:
    """Container for all pipeline state and data - the single source of truth.

    Attributes
    ----------
    args : argparse.Namespace
        Parsed command-line arguments
    config : Dict[str, Any]
        Merged configuration from config.json and the user file
    workspace : Workspace
        Output naming and temporary artifact registry
    threads : int
        Thread hint passed to bcftools
    input_vcf : VcfArtifact, optional
        The primary input as given on the command line
    additional_vcfs : List[VcfArtifact]
        Extra inputs to merge, in command-line order
    reference : ReferenceGenome, optional
        Reference genome used for normalization
    current_input : VcfArtifact, optional
        Input of the downstream stages; the merged VCF when a merge ran
    header : VcfHeader, optional
        Parsed header of ``current_input``
    filter_rule : FilterRule, optional
        Filter rule selected from the header
    output : VcfArtifact, optional
        Final output once the normalization chain succeeded
    completed_stages : Set[str]
        Names of stages that have completed successfully
    """

    args: argparse.Namespace
    config: Dict[str, Any]
    workspace: "Workspace"
    start_time: datetime = field(default_factory=datetime.now)
    threads: int = 1

    # Inputs
    input_vcf: Optional[VcfArtifact] = None
    additional_vcfs: List[VcfArtifact] = field(default_factory=list)
    reference: Optional[ReferenceGenome] = None

    # Artifacts produced by stages
    current_input: Optional[VcfArtifact] = None
    header: Optional["VcfHeader"] = None
    filter_rule: Optional["FilterRule"] = None
    output: Optional[VcfArtifact] = None

    # Stage tracking
    completed_stages: Set[str] = field(default_factory=set)

    @property
    def bcftools(self) -> str:
        """Name or path of the bcftools executable."""
        return self.config.get("bcftools", "bcftools")

    def mark_complete(self, stage_name: str) -> None:
        """Mark a stage as complete."""
        self.completed_stages.add(stage_name)
        logger.debug(f"Stage '{stage_name}' marked as complete")

    def is_complete(self, stage_name: str) -> bool:
        """Check if a stage has been completed."""
        return stage_name in self.completed_stages

    def get_execution_time(self) -> float:
        """Get the elapsed execution time in seconds."""
        return (datetime.now() - self.start_time).total_seconds()

    def __repr__(self) -> str:
        """Return string representation showing key state information."""
        return (
            f"PipelineContext("
            f"stages_completed={len(self.completed_stages)}, "
            f"current_input={self.current_input}, "
            f"execution_time={self.get_execution_time():.1f}s)"
        )
