"""
증적 수집 pytest 플러그인
pytest / pytest-bdd 라이프사이클 hook을 ReportSession에 연결

conftest.py의 pytest_plugins에 "utils.evidence_hooks"로 등록.
증적 처리 중 오류는 로그만 남기며 테스트 결과(pass/fail, exit status)에 영향을 주지 않음.
"""
import logging
import traceback
from pathlib import Path
from typing import Optional, Union

import pytest

from utils.evidence_config import load_evidence_config
from utils.evidence_log import FAILURE_LABEL, EvidenceStatus, StepRecord
from utils.report_session import ReportSession
from utils.screenshot_helpers import capture_screenshot, get_page_from_request

logger = logging.getLogger(__name__)

report_session_key = pytest.StashKey[ReportSession]()
scenario_title_key = pytest.StashKey[str]()


def get_report_session(config) -> Optional[ReportSession]:
    return config.stash.get(report_session_key, None)


def _step_label(step) -> str:
    return f"{getattr(step, 'keyword', '')} {step.name}".strip()


def _take_screenshot(session: ReportSession, request, label: Optional[str] = None,
                     file_label: Optional[str] = None, failure: bool = False) -> Optional[StepRecord]:
    """현재 page 스크린샷을 찍어 로그에 추가 (page가 없으면 None)"""
    page = get_page_from_request(request)
    if page is None:
        return None
    path = capture_screenshot(page, session.screenshot_path(file_label or label),
                              timeout=session.config.screenshot_timeout)
    if path is None:
        return None
    return session.attach_screenshot(path, label, failure=failure)


class EvidenceRecorder:
    """
    스텝 정의에서 사용하는 증적 기록기 (evidence fixture)

    사용 예:
        @then("조회 결과가 표시된다")
        def result_is_shown(browser_session, evidence):
            evidence.screenshot(browser_session.page, "조회 결과")
    """

    def __init__(self, session: Optional[ReportSession], request):
        self.session = session
        self.request = request

    @property
    def active(self) -> bool:
        return self.session is not None and self.session.current_title is not None

    def screenshot(self, page=None, label: Optional[str] = None, failure: bool = False,
                   full_page: bool = False) -> Optional[StepRecord]:
        """
        스크린샷 촬영 후 로그에 추가

        Args:
            page: Playwright Page (None이면 browser_session/page fixture에서 찾음)
            label: PDF에 표시할 스텝 라벨
            failure: 실패 스크린샷 여부
            full_page: 전체 페이지 캡처 여부
        """
        if not self.active:
            logger.warning("진행 중인 시나리오가 없어 스크린샷을 기록하지 않습니다")
            return None
        page = page or get_page_from_request(self.request)
        path = capture_screenshot(page, self.session.screenshot_path(label),
                                  timeout=self.session.config.screenshot_timeout, full_page=full_page)
        if path is None:
            return None
        return self.session.attach_screenshot(path, label, failure=failure)

    def attach(self, screenshot: Union[str, Path], label: Optional[str] = None,
               failure: bool = False) -> Optional[StepRecord]:
        """이미 저장된 스크린샷 파일을 로그에 추가"""
        if not self.active:
            logger.warning(f"진행 중인 시나리오가 없어 스크린샷을 기록하지 않습니다: {screenshot}")
            return None
        return self.session.attach_screenshot(screenshot, label, failure=failure)

    def step(self, label: str, status=EvidenceStatus.PASSED) -> Optional[StepRecord]:
        """스크린샷 없는 스텝 레코드 추가"""
        if not self.active:
            return None
        return self.session.record(label, status)


@pytest.fixture
def evidence(request) -> EvidenceRecorder:
    """현재 시나리오의 증적 기록기"""
    return EvidenceRecorder(get_report_session(request.config), request)


# ============================================
# pytest hooks
# ============================================
def pytest_configure(config):
    """실행 시작: 설정 로드 후 ReportSession 생성"""
    try:
        evidence_config = load_evidence_config(base_dir=Path(config.rootpath))
    except Exception as e:
        logger.error(f"증적 설정 로드 실패 - 증적 수집 비활성화: {e}")
        return

    if not evidence_config.enabled:
        logger.info("증적 수집 비활성화 (evidence.enabled=false)")
        return

    config.stash[report_session_key] = ReportSession(evidence_config)


def pytest_bdd_before_scenario(request, feature, scenario):
    """시나리오 시작: 테스트 로그 초기화"""
    session = get_report_session(request.config)
    if session is None:
        return
    try:
        session.start_test(scenario.name, getattr(feature, 'name', None))
        request.node.stash[scenario_title_key] = scenario.name
    except Exception as e:
        logger.error(f"증적 수집 시작 실패: {e}")


def pytest_bdd_after_step(request, feature, scenario, step, step_func, step_func_args):
    """스텝 종료: screenshot_on_step 설정 시 스텝별 스크린샷"""
    session = get_report_session(request.config)
    if session is None or not session.config.screenshot_on_step:
        return
    try:
        _take_screenshot(session, request, _step_label(step))
    except Exception as e:
        logger.error(f"스텝 스크린샷 기록 실패: {step.name} ({e})")


def pytest_bdd_step_error(request, feature, scenario, step, step_func, step_func_args, exception):
    """스텝 실패: 실패 시점 스크린샷 (page가 없으면 실패 스텝만 기록)"""
    session = get_report_session(request.config)
    if session is None or session.current_title is None:
        return
    label = f"{FAILURE_LABEL}: {_step_label(step)}"
    try:
        record = None
        if session.config.screenshot_on_failure:
            record = _take_screenshot(session, request, label, file_label="failed", failure=True)
        if record is None:
            session.record(label, EvidenceStatus.FAILED)
    except Exception as e:
        logger.error(f"실패 증적 기록 실패: {step.name} ({e})")


def pytest_bdd_after_scenario(request, feature, scenario):
    """시나리오 종료: 최종 상태 스크린샷 (성공/실패 모두)"""
    session = get_report_session(request.config)
    if session is None or session.current_title is None or not session.config.final_screenshot:
        return
    try:
        _take_screenshot(session, request, file_label="after_each")
    except Exception as e:
        logger.error(f"최종 스크린샷 기록 실패: {scenario.name} ({e})")


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """테스트 종료(call 단계): 최종 결과로 로그 종료"""
    outcome = yield
    report = outcome.get_result()
    if report.when != "call":
        return

    session = get_report_session(item.config)
    title = item.stash.get(scenario_title_key, None)
    if session is None or title is None:
        return
    try:
        session.finalize_test(title, report.outcome)
    except Exception as e:
        logger.error(f"증적 로그 종료 처리 실패: {title} ({e})")
        logger.debug(f"상세:\n{traceback.format_exc()}")


@pytest.hookimpl(trylast=True)
def pytest_sessionfinish(session, exitstatus):
    """전체 테스트 종료: 통합 PDF 생성 (exit status는 변경하지 않음)"""
    report_session = get_report_session(session.config)
    if report_session is None:
        return
    try:
        report_session.finish()
    except Exception as e:
        logger.error(f"증적 리포트 처리 중 예외 발생: {e}")
        logger.debug(f"상세:\n{traceback.format_exc()}")


def pytest_unconfigure(config):
    report_session = get_report_session(config)
    if report_session is None:
        return
    report_session.close()
    del config.stash[report_session_key]
