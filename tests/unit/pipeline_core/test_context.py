"""Unit tests for PipelineContext and its artifact types."""

from pathlib import Path

import pytest

from tests.mocks.fixtures import create_test_context
from vcfprep.pipeline_core import ReferenceGenome, VcfArtifact


@pytest.mark.unit
class TestArtifacts:
    """Test VcfArtifact and ReferenceGenome."""

    def test_vcf_index_path(self):
        vcf = VcfArtifact.from_path("data/calls.vcf.gz")
        assert vcf.path == Path("data/calls.vcf.gz")
        assert vcf.index_path == Path("data/calls.vcf.gz.tbi")
        assert str(vcf) == "data/calls.vcf.gz"

    def test_reference_index_path(self):
        ref = ReferenceGenome(Path("ref/hg38.fa"))
        assert ref.index_path == Path("ref/hg38.fa.fai")
        assert str(ref) == "ref/hg38.fa"

    def test_artifacts_compare_by_path(self):
        assert VcfArtifact.from_path("a.vcf.gz") == VcfArtifact(Path("a.vcf.gz"))


@pytest.mark.unit
class TestPipelineContext:
    """Test context state tracking."""

    def test_bcftools_from_config(self, tmp_path):
        context = create_test_context(
            tmp_path / "out", config_overrides={"bcftools": "/opt/bcftools"}
        )
        assert context.bcftools == "/opt/bcftools"

    def test_mark_complete(self, tmp_path):
        context = create_test_context(tmp_path / "out")
        context.mark_complete("report_output")
        assert context.is_complete("report_output")
        assert not context.is_complete("index_output")

    def test_repr(self, tmp_path):
        context = create_test_context(tmp_path / "out")
        assert "stages_completed=0" in repr(context)
