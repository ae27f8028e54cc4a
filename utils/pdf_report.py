"""
증적 PDF 리포트 생성
테스트 결과(제목, 상태, BDD 스텝, 스크린샷)를 A4 PDF 한 파일로 렌더링
"""
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from utils.evidence_log import SCREENSHOT_LABEL, EvidenceStatus, StepRecord, TestResult

logger = logging.getLogger(__name__)

LINE_SPACING = 1.25


@dataclass
class ReportOptions:
    """
    PDF 렌더링 옵션

    좌표는 모두 pt 단위이며, y는 페이지 상단에서 아래쪽으로 증가하는 값.

    Attributes:
        title: PDF 문서 메타데이터 제목
        organization_name: 헤더 1행 (조직명)
        subtitle: 헤더 2행 (팀/리포트명)
        environment_name: 실행 환경 (예: QA, STG)
        device: 실행 디바이스 (예: Web)
        executor: 실행자 (빈 값이면 생략)
        logo_path: 헤더 우측 로고 이미지 경로 (없으면 생략)
        generated_at: 헤더의 생성 일시 (None이면 렌더링 시각)
        date_format: 생성 일시 포맷
        page_size: 페이지 크기 (기본 A4)
        margin: 좌우/하단 여백
        band_height: 페이지 상단 컬러 띠 높이
        content_start_y: 첫 페이지 본문 시작 y
        continuation_start_y: 이후 페이지 본문 시작 y
        text_break_y: 텍스트 블록 전 페이지 전환 기준 y
        image_break_y: 이미지 블록 전 페이지 전환 기준 y (텍스트보다 엄격)
        image_fit: 스크린샷 최대 크기 (width, height), 비율 유지
        generic_labels: 일반 캡션으로 표시할 스크린샷 라벨
        generic_label_prefix: 일반 캡션으로 표시할 라벨 접두사
    """
    title: str = "Evidence Report"
    organization_name: str = "QA Automation"
    subtitle: str = "E2E Evidence Report"
    environment_name: str = "QA"
    device: str = "Web"
    executor: str = ""
    logo_path: Optional[str] = None
    generated_at: Optional[str] = None
    date_format: str = "%Y-%m-%d %H:%M:%S"

    page_size: Tuple[float, float] = A4
    margin: float = 50
    band_height: float = 20
    content_start_y: float = 130
    continuation_start_y: float = 60
    text_break_y: float = 700
    image_break_y: float = 600
    image_fit: Tuple[float, float] = (450, 250)
    logo_fit: Tuple[float, float] = (100, 50)

    font: str = "Helvetica"
    bold_font: str = "Helvetica-Bold"
    brand_color: str = "#E4002B"
    passed_color: str = "#28a745"
    failed_color: str = "#E4002B"
    text_color: str = "#000000"
    muted_color: str = "#555555"
    bdd_color: str = "#333333"
    separator_color: str = "#cccccc"

    generic_labels: Tuple[str, ...] = (SCREENSHOT_LABEL, "Screenshot Capturado")
    generic_label_prefix: str = "final_"
    screenshot_caption: str = "Screenshot"
    image_error_text: str = "[Error loading image]"
    missing_image_text: str = "[Screenshot not found: {name}]"

    def is_custom_label(self, label: Optional[str]) -> bool:
        return bool(label) and label not in self.generic_labels and not label.startswith(self.generic_label_prefix)


@dataclass
class ImagePlacement:
    """PDF에 배치된 이미지 위치 (y는 페이지 상단 기준)"""
    page: int
    top: float
    bottom: float
    screenshot: str


@dataclass
class RenderSummary:
    """렌더링 결과 요약"""
    output_path: str
    tests: int = 0
    pages: int = 0
    images: int = 0
    missing_images: int = 0
    image_errors: int = 0
    placements: List[ImagePlacement] = field(default_factory=list)


class _TestSection:
    """테스트 섹션 렌더링 상태 (BDD 블록은 테스트당 한 번만 출력)"""

    def __init__(self, bdd_steps: Optional[List[str]]):
        self.bdd_steps = bdd_steps or []
        self.bdd_printed = False


class PdfReportRenderer:
    """
    증적 PDF 렌더러

    Args:
        options: ReportOptions (None이면 기본값)
        matcher: 테스트 제목으로 BDD 스텝을 찾는 ScenarioMatcher (None이면 BDD 블록 생략)
    """

    def __init__(self, options: Optional[ReportOptions] = None, matcher=None):
        self.options = options or ReportOptions()
        self.matcher = matcher
        self.y = 0.0
        self._canvas = None
        self._summary: Optional[RenderSummary] = None

    @property
    def page_width(self) -> float:
        return self.options.page_size[0]

    @property
    def page_height(self) -> float:
        return self.options.page_size[1]

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.options.margin

    @property
    def bottom_limit(self) -> float:
        return self.page_height - self.options.margin

    def render(self, results: Iterable[TestResult], output_path: Union[str, Path]) -> RenderSummary:
        """
        PDF 생성

        파일 저장(close)까지 끝난 뒤 반환.
        개별 스크린샷 오류는 해당 블록만 대체 표시하고, 파일 쓰기 오류는 OSError로 전달.

        Args:
            results: TestResult 목록 (순서대로 출력)
            output_path: PDF 저장 경로

        Returns:
            RenderSummary
        """
        results = list(results)
        summary = RenderSummary(output_path=str(output_path), tests=len(results))
        pdf = canvas.Canvas(str(output_path), pagesize=self.options.page_size)
        pdf.setTitle(self.options.title)
        pdf.setAuthor(self.options.organization_name)

        self._canvas = pdf
        self._summary = summary
        try:
            self._render_header(results)
            for result in results:
                self._render_test(result)
            summary.pages = pdf.getPageNumber()
            pdf.save()
        finally:
            self._canvas = None
            self._summary = None

        logger.info(f"PDF 생성 완료: {output_path} (테스트 {summary.tests}건, {summary.pages}페이지, 이미지 {summary.images}장)")
        return summary

    # ------------------------
    # 레이아웃 헬퍼
    # ------------------------
    def _pdf_y(self, top: float) -> float:
        return self.page_height - top

    def _draw_band(self) -> None:
        pdf = self._canvas
        pdf.setFillColor(HexColor(self.options.brand_color))
        pdf.rect(0, self.page_height - self.options.band_height, self.page_width,
                 self.options.band_height, stroke=0, fill=1)

    def _new_page(self) -> None:
        self._canvas.showPage()
        self._draw_band()
        self.y = self.options.continuation_start_y

    def _check_page_break(self, limit_y: float, needed: float = 0) -> None:
        if self.y > limit_y or self.y + needed > self.bottom_limit:
            self._new_page()

    def _split(self, text: str, font: str, size: float, width: float) -> List[str]:
        return simpleSplit(text or '', font, size, width) or ['']

    def _text_height(self, text: str, font: str, size: float, width: Optional[float] = None) -> float:
        lines = self._split(text, font, size, width or self.content_width)
        return len(lines) * size * LINE_SPACING

    def _draw_text(self, text: str, font: str, size: float, color: str, align: str = 'left',
                   width: Optional[float] = None, check_break: bool = True) -> None:
        pdf = self._canvas
        width = width or self.content_width
        line_height = size * LINE_SPACING
        left = self.options.margin
        for line in self._split(text, font, size, width):
            if check_break:
                self._check_page_break(self.options.text_break_y, line_height)
            pdf.setFont(font, size)
            pdf.setFillColor(HexColor(color))
            baseline = self._pdf_y(self.y + size)
            if align == 'center':
                pdf.drawCentredString(left + width / 2, baseline, line)
            else:
                pdf.drawString(left, baseline, line)
            self.y += line_height

    # ------------------------
    # 섹션 렌더링
    # ------------------------
    def _render_header(self, results: List[TestResult]) -> None:
        o = self.options
        pdf = self._canvas
        self._draw_band()

        if o.logo_path and os.path.exists(o.logo_path):
            logo_w, logo_h = o.logo_fit
            try:
                pdf.drawImage(o.logo_path, self.page_width - o.margin - logo_w, self._pdf_y(40 + logo_h),
                              width=logo_w, height=logo_h, preserveAspectRatio=True, anchor='ne', mask='auto')
            except Exception as e:
                logger.warning(f"로고 이미지 출력 실패: {o.logo_path} ({e})")

        header_width = self.content_width - o.logo_fit[0] - 10
        generated_at = o.generated_at or datetime.now().strftime(o.date_format)

        self.y = 50
        self._draw_text(o.organization_name, o.bold_font, 14, o.text_color, width=header_width, check_break=False)
        self.y += 2
        self._draw_text(o.subtitle, o.font, 12, o.text_color, width=header_width, check_break=False)
        self.y += 2
        self._draw_text(f"Date: {generated_at}", o.font, 10, o.muted_color, width=header_width, check_break=False)

        metadata = [
            f"Environment: {o.environment_name}" if o.environment_name else '',
            f"Device: {o.device}" if o.device else '',
            f"Executed by: {o.executor}" if o.executor else '',
        ]
        metadata_line = "  |  ".join(part for part in metadata if part)
        if metadata_line:
            self._draw_text(metadata_line, o.font, 10, o.muted_color, width=header_width, check_break=False)

        failed = sum(1 for r in results if r.status is EvidenceStatus.FAILED)
        skipped = sum(1 for r in results if r.status is EvidenceStatus.SKIPPED)
        passed = len(results) - failed - skipped
        totals = f"Tests: {len(results)}  |  Passed: {passed}  |  Failed: {failed}"
        if skipped:
            totals += f"  |  Skipped: {skipped}"
        self._draw_text(totals, o.font, 10, o.muted_color, width=header_width, check_break=False)

        self.y = max(self.y + 12, o.content_start_y)

    def _render_test(self, result: TestResult) -> None:
        o = self.options
        self._check_page_break(o.text_break_y)

        self._draw_text(result.title, o.bold_font, 12, o.text_color)
        status_color = o.failed_color if result.failed else o.passed_color
        self._draw_text(f"Status: {result.status.value.upper()}", o.font, 10, status_color)
        self.y += 6

        section = _TestSection(self._find_bdd_steps(result.title))
        for record in result.steps:
            if record.screenshot:
                self._render_evidence(record, section)

        # 스크린샷이 없는 테스트도 BDD 스텝은 출력
        self._render_bdd(section)
        self._render_separator()

    def _find_bdd_steps(self, title: str) -> Optional[List[str]]:
        if self.matcher is None:
            return None
        try:
            return self.matcher.find_steps(title)
        except Exception as e:
            logger.warning(f"BDD 스텝 조회 실패: {title} ({e})")
            return None

    def _render_bdd(self, section: _TestSection) -> None:
        if section.bdd_printed:
            return
        section.bdd_printed = True
        if not section.bdd_steps:
            return
        o = self.options
        for line in section.bdd_steps:
            self._draw_text(line, o.font, 9, o.bdd_color)
        self.y += 6

    def _render_label(self, record: StepRecord, check_break: bool = False) -> None:
        """스크린샷 라벨 출력 (커스텀 라벨은 굵게, 기본 라벨은 가운데 캡션)"""
        o = self.options
        if o.is_custom_label(record.label):
            self._draw_text(record.label, o.bold_font, 10, o.text_color, check_break=check_break)
        else:
            self._draw_text(o.screenshot_caption, o.font, 9, o.muted_color, align='center', check_break=check_break)
        self.y += 3

    def _label_height(self, record: StepRecord) -> float:
        o = self.options
        if o.is_custom_label(record.label):
            return self._text_height(record.label, o.bold_font, 10) + 3
        return self._text_height(o.screenshot_caption, o.font, 9) + 3

    def _fit_image(self, width: float, height: float) -> Tuple[float, float]:
        max_w, max_h = self.options.image_fit
        scale = min(max_w / width, max_h / height)
        return width * scale, height * scale

    def _render_image_error(self) -> None:
        o = self.options
        self._draw_text(o.image_error_text, o.font, 9, o.failed_color)
        self._summary.image_errors += 1

    def _render_evidence(self, record: StepRecord, section: _TestSection) -> None:
        o = self.options
        path = record.screenshot

        if not os.path.exists(path):
            logger.warning(f"스크린샷 파일 없음: {path}")
            self._render_bdd(section)
            self._draw_text(o.missing_image_text.format(name=os.path.basename(path)),
                            o.font, 9, o.muted_color, align='center')
            self._summary.missing_images += 1
            return

        try:
            reader = ImageReader(path)
            image_w, image_h = reader.getSize()
            if not image_w or not image_h:
                raise ValueError("이미지 크기가 0입니다")
        except Exception as e:
            logger.warning(f"스크린샷 로드 실패: {path} ({e})")
            self._render_bdd(section)
            self._render_image_error()
            return

        self._render_bdd(section)

        width, height = self._fit_image(image_w, image_h)
        block_height = self._label_height(record) + height + 12
        if block_height <= self.bottom_limit - o.continuation_start_y:
            # 이미지는 페이지 경계에 걸치지 않도록 라벨과 함께 다음 페이지로 넘김
            self._check_page_break(o.image_break_y, block_height)
            self._render_label(record)
        else:
            # 한 페이지에 들어가지 않는 긴 라벨은 줄 단위로 넘기고 이미지만 따로 확인
            self._render_label(record, check_break=True)
            self._check_page_break(o.image_break_y, height + 12)
        top = self.y
        try:
            self._canvas.drawImage(reader, (self.page_width - width) / 2, self._pdf_y(top + height),
                                   width=width, height=height, mask='auto')
        except Exception as e:
            logger.warning(f"스크린샷 출력 실패: {path} ({e})")
            self._render_image_error()
            return

        self.y = top + height + 12
        self._summary.images += 1
        self._summary.placements.append(
            ImagePlacement(page=self._canvas.getPageNumber(), top=top, bottom=top + height, screenshot=path)
        )

    def _render_separator(self) -> None:
        o = self.options
        pdf = self._canvas
        self.y += 12
        if self.y > self.bottom_limit:
            self._new_page()
        pdf.setStrokeColor(HexColor(o.separator_color))
        pdf.setLineWidth(0.5)
        pdf.line(o.margin, self._pdf_y(self.y), self.page_width - o.margin, self._pdf_y(self.y))
        self.y += 12


def generate_pdf(results: Iterable[TestResult], output_path: Union[str, Path],
                 options: Optional[ReportOptions] = None, matcher=None) -> RenderSummary:
    """
    증적 PDF 생성 (PdfReportRenderer 래퍼)

    Args:
        results: TestResult 목록
        output_path: PDF 저장 경로 (상위 디렉토리는 호출자가 준비)
        options: ReportOptions
        matcher: ScenarioMatcher

    Returns:
        RenderSummary
    """
    return PdfReportRenderer(options, matcher).render(results, output_path)
