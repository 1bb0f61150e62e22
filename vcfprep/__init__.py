# File: vcfprep/__init__.py
# Location: vcfprep/vcfprep/__init__.py

"""
vcfprep Package.

This package prepares VCF files for downstream analysis: optional merging of
additional call sets, PASS filtering, normalization and atomization against a
reference genome, deduplication, sorting and indexing. All variant-level work
is delegated to bcftools.
"""

from .version import __version__
