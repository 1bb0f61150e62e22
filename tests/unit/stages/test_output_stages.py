"""Unit tests for output stages."""

import pytest

from tests.mocks.fixtures import create_test_context
from vcfprep.pipeline_core import VcfArtifact
from vcfprep.pipeline_core.error_handling import IndexingError
from vcfprep.stages.output_stages import IndexOutputStage, ReportOutputStage


@pytest.fixture
def context(tmp_path, mock_bcftools):
    """Context whose normalization stage produced an output VCF."""
    ctx = create_test_context(tmp_path / "sample")
    ctx.output = VcfArtifact(ctx.workspace.output_vcf)
    ctx.output.path.write_bytes(b"BGZF")
    ctx.mark_complete("normalization")
    return ctx


@pytest.mark.unit
class TestIndexOutputStage:
    def test_creates_index(self, context, mock_bcftools):
        result = IndexOutputStage()(context)
        assert result.output.index_path.exists()
        assert mock_bcftools.commands("index") == [
            ["bcftools", "index", "--threads", "1", "--tbi", str(context.output.path)]
        ]

    def test_failure_removes_output(self, context, mock_bcftools, tmp_path):
        mock_bcftools.fail_index = True
        with pytest.raises(IndexingError) as exc_info:
            IndexOutputStage()(context)

        assert exc_info.value.step == "index"
        assert "Unsorted" in exc_info.value.stderr
        assert context.output is None
        assert not (tmp_path / "sample.vcf.gz").exists()
        assert not (tmp_path / "sample.vcf.gz.tbi").exists()


@pytest.mark.unit
class TestReportOutputStage:
    def test_prints_artifacts(self, context, capsys, tmp_path):
        context = IndexOutputStage()(context)
        ReportOutputStage()(context)

        out = capsys.readouterr().out
        assert out == (
            "Done:\n"
            f"  VCF : {tmp_path / 'sample.vcf.gz'}\n"
            f"  TBI : {tmp_path / 'sample.vcf.gz.tbi'}\n"
        )

    def test_requires_index(self, context):
        with pytest.raises(RuntimeError, match="index_output"):
            ReportOutputStage()(context)
