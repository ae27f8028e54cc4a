"""
증적 리포트 세션
실행(run) 단위로 시나리오 인덱스, 테스트별 로그, 결과 목록을 소유
"""
import logging
import os
import traceback
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from utils.evidence_config import EvidenceConfig
from utils.evidence_log import (
    FAILURE_LABEL,
    SCREENSHOT_LABEL,
    EvidenceAccumulator,
    EvidenceStatus,
    StepRecord,
    TestResult,
)
from utils.evidence_store import EvidenceStore
from utils.feature_index import FeatureScenarioIndex
from utils.pdf_report import PdfReportRenderer, RenderSummary
from utils.scenario_matcher import ScenarioMatcher
from utils.screenshot_helpers import build_screenshot_path

logger = logging.getLogger(__name__)


class ReportSession:
    """
    증적 리포트 세션 - 실행 시작 시 생성, 종료 시 close

    - index: feature 파일 인덱스 (최초 조회 시 한 번만 로드)
    - accumulator: 현재 테스트 로그 + 종료된 테스트 결과 목록
    - store: 로그/결과 JSON 저장소
    """

    def __init__(self, config: EvidenceConfig):
        self.config = config
        self.index = FeatureScenarioIndex(config.feature_paths)
        self.matcher = ScenarioMatcher(self.index)
        self.store = EvidenceStore(config.logs_path, config.results_path)
        self.accumulator = EvidenceAccumulator(persist=self.store.write_test_log)
        self.started_at = datetime.now()
        self.report_path: Optional[Path] = None
        self.closed = False

    @property
    def results(self) -> List[TestResult]:
        return self.accumulator.results

    @property
    def current_title(self) -> Optional[str]:
        current = self.accumulator.current
        if current is None or current.is_finalized:
            return None
        return current.title

    # ------------------------
    # 테스트 단위
    # ------------------------
    def start_test(self, title: str, feature_name: Optional[str] = None) -> None:
        logger.debug(f"증적 수집 시작: {title}")
        self.accumulator.start(title, feature_name)

    def record(self, label: str, status=EvidenceStatus.SCREENSHOT,
               screenshot: Optional[str] = None) -> StepRecord:
        step = StepRecord(label=label, status=EvidenceStatus.parse(status), screenshot=screenshot)
        self.accumulator.record(step)
        return step

    def attach_screenshot(self, screenshot: Union[str, Path], label: Optional[str] = None,
                          failure: bool = False) -> StepRecord:
        """
        캡처된 스크린샷을 현재 테스트 로그에 추가

        Args:
            screenshot: 스크린샷 파일 경로
            label: 스텝 라벨 (None이면 기본 라벨)
            failure: 실패 시점 스크린샷 여부 (failed 상태로 기록)
        """
        if failure:
            return self.record(label or FAILURE_LABEL, EvidenceStatus.FAILED, str(screenshot))
        return self.record(label or SCREENSHOT_LABEL, EvidenceStatus.SCREENSHOT, str(screenshot))

    def screenshot_path(self, label: Optional[str] = None) -> Path:
        """현재 테스트의 스크린샷 저장 경로"""
        return build_screenshot_path(self.config.screenshots_path, self.current_title or 'unknown', label)

    def finalize_test(self, title: str, status) -> TestResult:
        """
        테스트 종료: 로그 보정 후 결과 목록과 통합 JSON 갱신
        per_test_pdf 설정 시 테스트별 PDF 생성 (실패해도 로그만 남김)
        """
        result = self.accumulator.finalize(title, status)
        try:
            self.store.write_results(self.results)
        except OSError as e:
            logger.warning(f"통합 증적 결과 저장 실패: {e}")

        logger.debug(f"증적 수집 종료: {title} (status={result.status.value}, 레코드 {len(result.steps)}건)")

        if self.config.per_test_pdf:
            output_path = self.config.output_path / f"{self.store.log_path(title).stem}.pdf"
            try:
                self.render_report(output_path, [result])
            except Exception as e:
                logger.error(f"테스트별 PDF 생성 실패: {title} ({e})")
        return result

    # ------------------------
    # 실행 단위
    # ------------------------
    def default_report_path(self) -> Path:
        timestamp = self.started_at.strftime("%Y%m%d_%H%M%S")
        return self.config.output_path / f"{self.config.report_prefix}_{timestamp}.pdf"

    def build_renderer(self) -> PdfReportRenderer:
        return PdfReportRenderer(self.config.report, self.matcher)

    def render_report(self, output_path: Optional[Union[str, Path]] = None,
                      results: Optional[List[TestResult]] = None) -> RenderSummary:
        """
        PDF 렌더링 (오류는 호출자에게 전달)

        Args:
            output_path: PDF 경로 (None이면 output_dir/<prefix>_<시작시각>.pdf)
            results: 렌더링할 결과 (None이면 세션 전체 결과)
        """
        output_path = Path(output_path) if output_path else self.default_report_path()
        os.makedirs(output_path.parent, exist_ok=True)
        return self.build_renderer().render(self.results if results is None else results, output_path)

    def finish(self) -> Optional[RenderSummary]:
        """
        실행 종료 처리: 통합 PDF 생성

        증적 생성은 best-effort: 오류는 로그만 남기고 None 반환
        """
        if not self.config.enabled:
            return None
        if self.accumulator.current is not None and not self.accumulator.current.is_finalized:
            logger.warning(f"종료되지 않은 테스트 로그가 있습니다: {self.accumulator.current.title}")
        if not self.config.generate_pdf:
            print(f"[Evidence] PDF 생성 비활성화 - 로그만 저장됨: {self.config.logs_path}")
            return None
        if not self.results:
            logger.info("증적 결과가 없어 PDF를 생성하지 않습니다")
            return None

        try:
            summary = self.render_report()
        except Exception as e:
            logger.error(f"증적 PDF 생성 실패: {e}")
            logger.debug(f"PDF 생성 실패 상세:\n{traceback.format_exc()}")
            return None

        self.report_path = Path(summary.output_path)
        print(f"[PDF] 증적 리포트 생성 완료: {summary.output_path} ({summary.tests}건, {summary.pages}페이지)")
        return summary

    def close(self) -> None:
        self.accumulator.current = None
        self.closed = True
