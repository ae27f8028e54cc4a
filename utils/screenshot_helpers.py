"""
증적용 스크린샷 헬퍼 함수
"""
import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from playwright.sync_api import Page

from utils.evidence_store import safe_filename

logger = logging.getLogger(__name__)


def get_page_from_request(request) -> Optional[Page]:
    """
    request에서 현재 active page 찾기

    이미 요청된 fixture만 조회 (browser_session → page 순).
    사용하지 않은 page fixture를 새로 만들지 않도록 fixturenames를 먼저 확인.

    Args:
        request: pytest request 객체

    Returns:
        Page 객체 또는 None
    """
    page = None
    fixturenames = getattr(request, 'fixturenames', None) or []

    if "browser_session" in fixturenames:
        try:
            browser_session = request.getfixturevalue("browser_session")
            if browser_session and hasattr(browser_session, 'page'):
                page = browser_session.page
        except Exception as e:
            logger.debug(f"browser_session 조회 실패: {e}")

    if page is None and "page" in fixturenames:
        try:
            page = request.getfixturevalue("page")
        except Exception as e:
            logger.debug(f"page 조회 실패: {e}")

    return page


def build_screenshot_path(screenshots_dir: Union[str, Path], test_title: str,
                          label: Optional[str] = None) -> Path:
    """
    스크린샷 저장 경로 생성

    예: screenshots/login_valido/after_each_20250101_120000_123456.png
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    name = re.sub(r'[^A-Za-z0-9_-]', '_', label or 'screenshot')[:50]
    return Path(screenshots_dir) / safe_filename(test_title) / f"{name}_{timestamp}.png"


def capture_screenshot(page: Optional[Page], screenshot_path: Union[str, Path],
                       timeout: int = 2000, full_page: bool = False) -> Optional[str]:
    """
    스크린샷 캡처 및 저장

    Args:
        page: Playwright Page 객체
        screenshot_path: 저장 경로
        timeout: 스크린샷 타임아웃 (ms)
        full_page: 전체 페이지 캡처 여부

    Returns:
        스크린샷 파일 경로 또는 None (페이지가 없거나 캡처 실패)
    """
    if page is None:
        return None
    try:
        if page.is_closed():
            logger.debug("닫힌 페이지는 스크린샷을 찍을 수 없음")
            return None
        os.makedirs(os.path.dirname(str(screenshot_path)), exist_ok=True)
        page.screenshot(path=str(screenshot_path), timeout=timeout, full_page=full_page)
        logger.debug(f"스크린샷 저장 완료: {screenshot_path}")
        return str(screenshot_path)
    except Exception as e:
        logger.warning(f"스크린샷 저장 실패: {e}")
    return None
