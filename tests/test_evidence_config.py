"""증적 설정 로드 단위 테스트"""

import json
from pathlib import Path

import pytest

from utils.evidence_config import EvidenceConfig, load_evidence_config


def _write_config(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_defaults_without_config_file(tmp_path):
    config = load_evidence_config(base_dir=tmp_path)

    assert config.enabled
    assert config.generate_pdf
    assert not config.per_test_pdf
    assert config.output_path == tmp_path / "reports" / "evidence"
    assert config.results_path == tmp_path / "reports" / "evidence" / "evidence_results.json"
    assert config.feature_paths == [tmp_path / "features"]


def test_values_from_config_file(tmp_path):
    _write_config(tmp_path, {
        "headless": "N",
        "evidence": {
            "generate_pdf": "N",
            "per_test_pdf": True,
            "feature_dirs": "scenarios",
            "output_dir": "/tmp/evidence-out",
            "report": {
                "organization_name": "Bank QA",
                "environment_name": "QA",
                "generic_labels": ["Captured"],
                "logo_path": "assets/logo.png",
            },
        },
    })

    config = load_evidence_config(base_dir=tmp_path)

    assert not config.headless
    assert not config.generate_pdf
    assert config.per_test_pdf
    assert config.feature_paths == [tmp_path / "scenarios"]
    assert str(config.output_path) == "/tmp/evidence-out"
    assert config.report.organization_name == "Bank QA"
    assert config.report.generic_labels == ("Captured",)
    assert config.report.logo_path == str(tmp_path / "assets" / "logo.png")


def test_env_overrides_config_file(tmp_path, monkeypatch):
    _write_config(tmp_path, {"evidence": {"generate_pdf": True, "report": {"device": "Web"}}})
    monkeypatch.setenv("GENERATE_PDF", "false")
    monkeypatch.setenv("EVIDENCE_OUTPUT_DIR", "custom")
    monkeypatch.setenv("EVIDENCE_DEVICE", "Mobile")
    monkeypatch.setenv("EVIDENCE_EXECUTOR", "ci")

    config = load_evidence_config(base_dir=tmp_path)

    assert not config.generate_pdf
    assert config.output_path == tmp_path / "custom"
    assert config.report.device == "Mobile"
    assert config.report.executor == "ci"


def test_explicit_config_path(tmp_path):
    path = tmp_path / "conf" / "evidence.json"
    path.parent.mkdir()
    path.write_text(json.dumps({"evidence": {"enabled": False}}), encoding="utf-8")

    config = load_evidence_config(base_dir=tmp_path, config_path=path)

    assert not config.enabled


def test_invalid_json_raises(tmp_path):
    (tmp_path / "config.json").write_text("{broken", encoding="utf-8")

    with pytest.raises(RuntimeError):
        load_evidence_config(base_dir=tmp_path)


@pytest.mark.parametrize("data", [
    {"evidence": {"unknown_option": 1}},
    {"evidence": {"report": {"unknown_option": 1}}},
    {"evidence": {"base_dir": "/"}},
])
def test_unknown_keys_raise(tmp_path, data):
    _write_config(tmp_path, data)

    with pytest.raises(ValueError):
        load_evidence_config(base_dir=tmp_path)


def test_resolve_keeps_absolute_paths(tmp_path):
    config = EvidenceConfig(base_dir=tmp_path)

    assert config.resolve("/abs/path") == Path("/abs/path")
    assert config.resolve("rel") == tmp_path / "rel"
