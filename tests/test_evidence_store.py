"""증적 JSON 저장/로드 단위 테스트"""

import json

import pytest

from utils.evidence_log import EvidenceStatus, StepRecord, TestEvidenceLog
from utils.evidence_store import (
    EvidenceStore,
    format_test_title,
    load_results,
    load_results_from_logs,
    safe_filename,
)


def _finished_log(title, status, timestamp):
    log = TestEvidenceLog(title)
    log.append(StepRecord("step", EvidenceStatus.SCREENSHOT, f"{title}.png", timestamp))
    log.finalize(title, status)
    return log


def test_safe_filename():
    assert format_test_title("Login: usuário/válido") == "Login- usuário-válido"
    assert safe_filename("Login: usuário válido") == "login__usu_rio_v_lido"
    assert safe_filename("") == "unnamed"


def test_write_test_log(tmp_path):
    store = EvidenceStore(tmp_path / "logs")
    log = TestEvidenceLog("Login: ok")
    log.append(StepRecord("Login page", screenshot="login.png"))

    path = store.write_test_log(log)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert path.name == "login__ok.json"
    assert data["title"] == "Login: ok"
    assert data["state"] == "collecting"
    assert data["status"] is None
    assert data["steps"][0]["step"] == "Login page"


def test_titles_with_same_safe_filename_keep_separate_logs(tmp_path):
    """파일명이 겹치는 제목도 로그를 덮어쓰지 않음"""
    store = EvidenceStore(tmp_path / "logs")

    first = store.write_test_log(_finished_log("Login", "passed", "2026-01-01T09:00:00"))
    second = store.write_test_log(_finished_log("login", "failed", "2026-01-01T10:00:00"))
    again = store.write_test_log(_finished_log("login", "failed", "2026-01-01T10:00:00"))

    assert first.name == "login.json"
    assert second != first
    assert second.name.startswith("login_")
    assert again == second
    assert store.log_path("Login") == first
    results = load_results_from_logs(tmp_path / "logs")
    assert [r.title for r in results] == ["Login", "login"]


def test_results_file_round_trip(tmp_path):
    store = EvidenceStore(tmp_path / "logs", tmp_path / "out" / "evidence_results.json")
    results = [
        _finished_log("A", "passed", "2026-01-01T10:00:00").result,
        _finished_log("B", "failed", "2026-01-01T10:01:00").result,
    ]

    path = store.write_results(results)
    loaded = load_results(path)

    assert [r.title for r in loaded] == ["A", "B"]
    assert [r.status for r in loaded] == [EvidenceStatus.PASSED, EvidenceStatus.FAILED]
    assert loaded[1].steps[-1].label == "B"


def test_write_results_without_results_file(tmp_path):
    assert EvidenceStore(tmp_path).write_results([]) is None


def test_load_results_rejects_non_list(tmp_path):
    path = tmp_path / "results.json"
    path.write_text('{"title": "x"}', encoding="utf-8")

    with pytest.raises(ValueError):
        load_results(path)


def test_load_results_skips_invalid_items(tmp_path):
    path = tmp_path / "results.json"
    path.write_text('[{"status": "passed"}, {"title": "ok", "status": "passed", "steps": []}]', encoding="utf-8")

    assert [r.title for r in load_results(path)] == ["ok"]


def test_load_results_from_logs_orders_by_first_timestamp(tmp_path):
    store = EvidenceStore(tmp_path / "logs")
    store.write_test_log(_finished_log("zzz first", "passed", "2026-01-01T09:00:00"))
    store.write_test_log(_finished_log("aaa second", "failed", "2026-01-01T11:00:00"))
    (tmp_path / "logs" / "broken.json").write_text("{not json", encoding="utf-8")

    results = load_results_from_logs(tmp_path / "logs")

    assert [r.title for r in results] == ["zzz first", "aaa second"]
    assert results[1].failed


def test_unfinished_log_is_loaded_as_failed(tmp_path):
    store = EvidenceStore(tmp_path / "logs")
    log = TestEvidenceLog("Crashed")
    log.append(StepRecord("before crash", screenshot="c.png"))
    store.write_test_log(log)

    results = load_results_from_logs(tmp_path / "logs")

    assert results[0].status is EvidenceStatus.FAILED


def test_load_results_from_missing_logs_dir(tmp_path):
    assert load_results_from_logs(tmp_path / "nope") == []
