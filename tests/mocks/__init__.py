"""Test mocks and fixtures for vcfprep tests."""

from .external_tools import MockBCFTools
from .fixtures import create_test_context, create_test_inputs, create_test_vcf_header

__all__ = [
    "MockBCFTools",
    "create_test_context",
    "create_test_inputs",
    "create_test_vcf_header",
]
