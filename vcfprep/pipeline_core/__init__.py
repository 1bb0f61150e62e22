"""
Pipeline infrastructure for vcfprep.

This package provides the core abstractions of the preprocessing pipeline:
- PipelineContext: Container for all pipeline state and artifacts
- Stage: Abstract base class for all pipeline components
- Workspace: Output naming and temporary artifact registry
- PipelineRunner: Executes stages in dependency order
"""

from .context import PipelineContext, ReferenceGenome, VcfArtifact
from .runner import PipelineRunner
from .stage import Stage
from .workspace import Workspace

__all__ = [
    "PipelineContext",
    "ReferenceGenome",
    "Stage",
    "VcfArtifact",
    "Workspace",
    "PipelineRunner",
]
