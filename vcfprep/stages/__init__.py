"""
Pipeline stages for vcfprep.

Stages are grouped by their role in the run:
- setup_stages: argument, tool and input file validation
- processing_stages: merge, header inspection, filter/normalize/sort
- output_stages: indexing and reporting of the final artifacts
"""

from .output_stages import IndexOutputStage, ReportOutputStage
from .processing_stages import HeaderInspectionStage, MergeInputsStage, NormalizationStage
from .setup_stages import InputValidationStage

__all__ = [
    "InputValidationStage",
    "MergeInputsStage",
    "HeaderInspectionStage",
    "NormalizationStage",
    "IndexOutputStage",
    "ReportOutputStage",
]
