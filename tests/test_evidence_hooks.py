"""pytest-bdd 실행 중 증적 수집 hook 통합 테스트 (pytester)"""

import json
import textwrap

import pytest

FEATURE = """\
Feature: Login
  Scenario: Successful login
    Given the portal is open
    Then the dashboard is shown

  Scenario: Wrong password
    Given the portal is open
    Then an error is raised
"""

CONFTEST = """\
import pytest
from PIL import Image

pytest_plugins = ["utils.evidence_hooks"]


class FakePage:
    def is_closed(self):
        return False

    def screenshot(self, path, timeout=None, full_page=False):
        Image.new("RGB", (640, 480), (30, 30, 200)).save(path)


@pytest.fixture
def page():
    return FakePage()
"""

STEPS_WITH_PAGE = """\
from pytest_bdd import given, scenarios, then

scenarios("features/login.feature")


@given("the portal is open")
def portal_is_open(page, evidence):
    evidence.screenshot(page, "Portal home")


@then("the dashboard is shown")
def dashboard_is_shown():
    pass


@then("an error is raised")
def error_is_raised():
    raise AssertionError("wrong password")
"""

STEPS_WITHOUT_PAGE = """\
from pytest_bdd import given, scenarios, then

scenarios("features/login.feature")


@given("the portal is open")
def portal_is_open(evidence):
    evidence.attach({shot!r}, "Portal home")


@then("the dashboard is shown")
def dashboard_is_shown():
    pass


@then("an error is raised")
def error_is_raised():
    raise AssertionError("wrong password")
"""


def _evidence_config(**evidence):
    section = {
        "output_dir": "out",
        "logs_dir": "out/logs",
        "screenshots_dir": "shots",
        "feature_dirs": ["features"],
        "report": {"generated_at": "2026-01-01 10:00:00"},
    }
    section.update(evidence)
    return json.dumps({"evidence": section})


@pytest.fixture
def bdd_project(pytester):
    """feature 파일과 증적 설정이 있는 pytest-bdd 프로젝트"""
    def _make(steps, conftest=CONFTEST, **evidence):
        pytester.makeconftest(conftest)
        pytester.makefile(".json", config=_evidence_config(**evidence))
        features = pytester.mkdir("features")
        (features / "login.feature").write_text(FEATURE, encoding="utf-8")
        pytester.makepyfile(test_login=steps)
        return pytester
    return _make


def _load_results(pytester):
    return json.loads((pytester.path / "out" / "evidence_results.json").read_text(encoding="utf-8"))


def test_evidence_collected_with_page(bdd_project):
    pytester = bdd_project(STEPS_WITH_PAGE)

    result = pytester.runpytest()

    result.assert_outcomes(passed=1, failed=1)
    results = _load_results(pytester)
    assert [(r["title"], r["status"]) for r in results] == [
        ("Successful login", "passed"),
        ("Wrong password", "failed"),
    ]

    failed_steps = results[1]["steps"]
    assert [s["step"] for s in failed_steps] == [
        "Portal home",
        "Failure Detected: Then an error is raised",
        "Wrong password",
    ]
    assert failed_steps[1]["status"] == "failed"
    assert failed_steps[-1]["status"] == "failed"
    assert all(s["screenshot"] for s in failed_steps)

    passed_steps = results[0]["steps"]
    assert passed_steps[-1]["step"] == "Successful login"
    assert passed_steps[-1]["status"] == "passed"

    assert (pytester.path / "out" / "logs" / "wrong_password.json").exists()
    assert list((pytester.path / "shots" / "wrong_password").glob("after_each_*.png"))
    assert len(list((pytester.path / "out").glob("evidence_report_*.pdf"))) == 1


def test_failed_step_recorded_without_page(bdd_project, make_png):
    pytester = bdd_project(
        STEPS_WITHOUT_PAGE.format(shot=make_png()),
        conftest='pytest_plugins = ["utils.evidence_hooks"]\n',
    )

    result = pytester.runpytest()

    result.assert_outcomes(passed=1, failed=1)
    failed_steps = _load_results(pytester)[1]["steps"]
    assert [(s["step"], s["status"]) for s in failed_steps] == [
        ("Portal home", "screenshot"),
        ("Failure Detected: Then an error is raised", "failed"),
        ("Wrong password", "failed"),
    ]
    assert failed_steps[1]["screenshot"] is None


def test_per_test_pdf(bdd_project):
    pytester = bdd_project(STEPS_WITH_PAGE, per_test_pdf=True, generate_pdf=False)

    result = pytester.runpytest()

    result.assert_outcomes(passed=1, failed=1)
    out = pytester.path / "out"
    assert (out / "successful_login.pdf").exists()
    assert (out / "wrong_password.pdf").exists()
    assert not list(out.glob("evidence_report_*.pdf"))


def test_broken_output_dir_does_not_change_outcome(bdd_project):
    """증적 저장/PDF 생성이 모두 실패해도 테스트 결과와 exit code는 그대로"""
    pytester = bdd_project(STEPS_WITH_PAGE)
    (pytester.path / "out").write_text("not a directory", encoding="utf-8")

    result = pytester.runpytest()

    result.assert_outcomes(passed=1, failed=1)
    assert result.ret == pytest.ExitCode.TESTS_FAILED


def test_disabled_evidence(bdd_project):
    pytester = bdd_project(STEPS_WITH_PAGE, enabled=False)

    result = pytester.runpytest()

    result.assert_outcomes(passed=1, failed=1)
    assert not (pytester.path / "out").exists()
    assert not (pytester.path / "shots").exists()


def test_evidence_fixture_outside_scenario(pytester):
    pytester.makeconftest('pytest_plugins = ["utils.evidence_hooks"]\n')
    pytester.makefile(".json", config=_evidence_config())
    pytester.makepyfile(test_plain=textwrap.dedent("""\
        def test_plain(evidence):
            assert not evidence.active
            assert evidence.attach("missing.png") is None
            assert evidence.step("ignored") is None
    """))

    result = pytester.runpytest()

    result.assert_outcomes(passed=1)
    assert not (pytester.path / "out" / "evidence_results.json").exists()
