# File: vcfprep/validators.py
# Location: vcfprep/vcfprep/validators.py

"""
Validation module for vcfprep.

This module provides functions to validate:
- Mandatory parameters (primary VCF, reference FASTA)
- The bcftools executable
- VCF files and their tabix (.tbi) indexes
- The reference FASTA and its samtools (.fai) index

All checks run before any temporary file is created and raise the
corresponding pipeline error on the first problem found.
"""

import logging
import shutil
from typing import Optional, Sequence

from .pipeline_core.error_handling import (
    ConfigurationError,
    MissingToolError,
    validate_companion_index,
    validate_file_exists,
)

logger = logging.getLogger("vcfprep")

VCF_INDEX_SUFFIX = ".tbi"
FASTA_INDEX_SUFFIX = ".fai"


def validate_mandatory_parameters(input_vcf: Optional[str], reference: Optional[str]) -> None:
    """
    Validate that the primary input VCF (-i) and the reference (-r) were given.

    Raises
    ------
    ConfigurationError
        If either parameter is missing or empty.
    """
    if not input_vcf:
        raise ConfigurationError("input VCF (-i) is required", option="-i")
    if not reference:
        raise ConfigurationError("reference FASTA (-r) is required", option="-r")


def validate_tool(tool: str = "bcftools") -> str:
    """
    Validate that an external tool resolves on PATH.

    Returns
    -------
    str
        Full path of the executable.

    Raises
    ------
    MissingToolError
        If the tool cannot be found.
    """
    resolved = shutil.which(tool)
    if not resolved:
        raise MissingToolError(tool)
    logger.debug(f"Found tool in PATH: {resolved}")
    return resolved


def validate_vcf_file(vcf_path: str, description: str = "Input VCF") -> None:
    """
    Validate that a bgzipped VCF exists together with its tabix index.

    Raises
    ------
    MissingFileError
        If the VCF or ``<vcf>.tbi`` is absent.
    """
    validate_file_exists(vcf_path, description)
    validate_companion_index(vcf_path, VCF_INDEX_SUFFIX, f"{description} index")


def validate_reference(reference: str) -> None:
    """
    Validate that the reference FASTA exists together with its .fai index.

    Raises
    ------
    MissingFileError
        If the FASTA or ``<fasta>.fai`` is absent.
    """
    validate_file_exists(reference, "Reference FASTA")
    # Index with 'samtools faidx <fasta>'
    validate_companion_index(reference, FASTA_INDEX_SUFFIX, "Reference FASTA index")


def validate_inputs(
    input_vcf: Optional[str],
    reference: Optional[str],
    additional_vcfs: Sequence[str] = (),
    tool: str = "bcftools",
) -> None:
    """
    Run every pre-flight check in order.

    Order: mandatory parameters, tool, primary VCF, reference, additional VCFs.
    """
    validate_mandatory_parameters(input_vcf, reference)
    validate_tool(tool)
    validate_vcf_file(input_vcf, "Input VCF")
    validate_reference(reference)
    for vcf in additional_vcfs:
        validate_vcf_file(vcf, "Additional VCF")
