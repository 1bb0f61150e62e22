"""Tests for configuration loading."""

import json

import pytest

from vcfprep.config import load_config


@pytest.mark.unit
def test_packaged_defaults():
    """Test the defaults shipped with the package."""
    config = load_config()
    assert config["bcftools"] == "bcftools"
    assert config["threads"] is None
    assert config["output_prefix"] == "output"
    assert config["variant_types"] == "snps,indels"
    assert config["multiallelic_mode"] == "-any"
    assert config["check_ref"] == "x"
    assert config["dedup_mode"] == "exact"
    assert config["sort_temp_prefix"] == "tmp_bcftools.XXXXXX"
    assert config["sort_dir_prefix"] == "SORT_"
    assert config["header_provenance"] is False


@pytest.mark.unit
def test_user_file_overrides_defaults(tmp_path):
    """Test that user values win and unknown keys are ignored."""
    user = tmp_path / "user.json"
    user.write_text(json.dumps({"threads": 8, "bcftools": "/opt/bin/bcftools", "bogus": 1}))

    config = load_config(str(user))

    assert config["threads"] == 8
    assert config["bcftools"] == "/opt/bin/bcftools"
    assert config["dedup_mode"] == "exact"
    assert "bogus" not in config


@pytest.mark.unit
def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.json"))


@pytest.mark.unit
def test_invalid_json(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(ValueError, match="Error parsing JSON"):
        load_config(str(bad))


@pytest.mark.unit
def test_non_object_json(tmp_path):
    bad = tmp_path / "list.json"
    bad.write_text("[1, 2]")
    with pytest.raises(ValueError, match="JSON object"):
        load_config(str(bad))
