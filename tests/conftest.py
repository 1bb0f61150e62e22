"""Shared pytest fixtures for all test modules."""

from unittest.mock import patch

import pytest

from tests.mocks import MockBCFTools, create_test_inputs


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external tools")
    config.addinivalue_line("markers", "integration: tests that run the real bcftools")


@pytest.fixture
def vcf_inputs(tmp_path):
    """Primary VCF, reference and two additional VCFs, all with indexes."""
    return create_test_inputs(tmp_path / "inputs", additional=2)


@pytest.fixture
def mock_bcftools():
    """Replace every bcftools invocation with MockBCFTools."""
    tool = MockBCFTools()
    with patch(
        "vcfprep.stages.processing_stages.run_piped_commands", side_effect=tool.run_piped_commands
    ), patch(
        "vcfprep.stages.processing_stages.run_command", side_effect=tool.run_command
    ), patch(
        "vcfprep.stages.output_stages.run_command", side_effect=tool.run_command
    ), patch(
        "vcfprep.vcf_header_parser.run_command", side_effect=tool.run_command
    ), patch(
        "vcfprep.validators.shutil.which", return_value="/usr/bin/bcftools"
    ), patch(
        "vcfprep.stages.setup_stages.get_tool_version", return_value="bcftools 1.21"
    ):
        yield tool
