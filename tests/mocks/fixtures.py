"""Test fixtures and factory functions."""

from __future__ import annotations

import argparse
from pathlib import Path

from vcfprep.config import load_config
from vcfprep.pipeline_core import PipelineContext, Workspace


def create_test_vcf_header(
    info_ids=("DP",), source: str | None = None, extra_lines=(), samples=("Sample1",)
) -> str:
    """Build the text of a VCF header.

    Parameters
    ----------
    info_ids : iterable of str
        IDs of the ##INFO lines to declare
    source : str, optional
        Value of a ##source line
    extra_lines : iterable of str
        Additional meta-information lines, inserted before #CHROM
    samples : iterable of str
        Sample column names
    """
    lines = ["##fileformat=VCFv4.2"]
    if source is not None:
        lines.append(f"##source={source}")
    lines.append('##FILTER=<ID=PASS,Description="All filters passed">')
    for info_id in info_ids:
        lines.append(
            f'##INFO=<ID={info_id},Number=1,Type=String,Description="{info_id} field">'
        )
    lines.append('##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">')
    lines.append("##contig=<ID=chr1,length=248956422>")
    lines.extend(extra_lines)
    columns = ["#CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO", "FORMAT"]
    lines.append("\t".join([*columns, *samples]))
    return "\n".join(lines) + "\n"


def create_test_inputs(directory, additional: int = 0) -> dict:
    """Create placeholder input files with their companion indexes.

    Parameters
    ----------
    directory : Path
        Directory the files are created in
    additional : int
        Number of additional VCFs to create

    Returns
    -------
    dict
        Paths (as str) under 'input_vcf', 'additional_vcfs' and 'reference'
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    def _vcf(name):
        vcf = directory / name
        vcf.write_bytes(b"\x1f\x8b\x08\x04BGZF")
        Path(f"{vcf}.tbi").write_bytes(b"TBI\x01")
        return str(vcf)

    reference = directory / "ref.fa"
    reference.write_text(">chr1\nACGTACGTAC\n")
    Path(f"{reference}.fai").write_text("chr1\t10\t6\t10\t11\n")

    return {
        "input_vcf": _vcf("input.vcf.gz"),
        "additional_vcfs": [_vcf(f"extra{i}.vcf.gz") for i in range(1, additional + 1)],
        "reference": str(reference),
    }


def create_test_context(
    output_prefix: str,
    input_vcf: str | None = None,
    reference: str | None = None,
    additional_vcfs=None,
    config_overrides: dict | None = None,
    **kwargs,
) -> PipelineContext:
    """Create a test PipelineContext with the packaged default configuration.

    Parameters
    ----------
    output_prefix : str
        Output prefix; temporary files are created in its directory
    input_vcf, reference : str, optional
        Values of the -i and -r arguments
    additional_vcfs : list of str, optional
        Values of the -f arguments
    config_overrides : dict, optional
        Config values to override
    **kwargs
        Additional arguments for argparse.Namespace

    Returns
    -------
    PipelineContext
        Configured test context
    """
    default_args = {
        "input_vcf": input_vcf,
        "additional_vcfs": list(additional_vcfs or []),
        "reference": reference,
        "output_prefix": str(output_prefix),
        "config": None,
        "log_level": "INFO",
        "log_file": None,
    }
    default_args.update(kwargs)
    args = argparse.Namespace(**default_args)

    config = load_config()
    config.update(config_overrides or {})

    return PipelineContext(args=args, config=config, workspace=Workspace(str(output_prefix)))
