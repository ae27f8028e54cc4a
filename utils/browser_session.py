"""
브라우저 세션 관리 - 증적 스크린샷 대상 page 스택
"""
import logging

logger = logging.getLogger(__name__)


class BrowserSession:
    """
    브라우저 세션 관리 클래스 - 현재 active page 참조 관리
    증적 스크린샷은 항상 stack 최상단 page에서 촬영됨
    """
    def __init__(self, page):
        """
        Args:
            page: fixture에서 생성한 기본 page
        """
        self._page_stack = [page]

    @property
    def page(self):
        """현재 active page 반환 (가장 최근에 전환된 page)"""
        return self._page_stack[-1]

    def switch_to(self, page):
        """
        새 탭/팝업 page로 전환

        Returns:
            bool: 전환 성공 여부
        """
        if not page or page.is_closed():
            logger.warning("BrowserSession: 유효하지 않은 페이지로 전환 시도 실패")
            return False
        self._page_stack.append(page)
        logger.info(f"BrowserSession: 새 페이지로 전환 - URL: {page.url} (stack depth: {len(self._page_stack)})")
        return True

    def restore(self):
        """
        이전 page로 복귀

        Returns:
            bool: 복귀 성공 여부
        """
        if len(self._page_stack) > 1:
            self._page_stack.pop()
            logger.info(f"BrowserSession: 이전 페이지로 복귀 - 현재 URL: {self.page.url}")
            return True
        logger.warning("BrowserSession: 복귀할 이전 페이지가 없음")
        return False
