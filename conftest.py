pytest_plugins = [
    "pytest_bdd",
    "utils.evidence_hooks",
]


import logging
from pathlib import Path

import pytest
from dotenv import load_dotenv  # type: ignore
from playwright.sync_api import sync_playwright, BrowserContext

from utils.browser_session import BrowserSession
from utils.evidence_config import load_evidence_config

# .env 파일 로드 (프로젝트 루트 기준)
project_root = Path(__file__).parent
env_path = project_root / '.env'
load_dotenv(dotenv_path=env_path)


# 로깅 설정
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)


# ------------------------
# Playwright 세션 단위 fixture
# ------------------------
@pytest.fixture(scope="session")
def pw():
    """Playwright 세션 관리"""
    with sync_playwright() as p:
        yield p


@pytest.fixture(scope="session")
def browser(pw, pytestconfig):
    """세션 단위 브라우저 (headless는 config.json / HEADLESS 환경 변수)"""
    headless = load_evidence_config(base_dir=Path(pytestconfig.rootpath)).headless
    browser = pw.chromium.launch(headless=headless)
    yield browser
    browser.close()


@pytest.fixture(scope="function")
def context(browser):
    """각 시나리오마다 독립적인 브라우저 컨텍스트"""
    ctx = browser.new_context()
    yield ctx
    ctx.close()


@pytest.fixture(scope="function")
def page(context: BrowserContext):
    """각 시나리오에서 사용할 page 객체"""
    page = context.new_page()
    page.set_default_timeout(10000)
    yield page
    page.close()


@pytest.fixture(scope="function")
def browser_session(page):
    """BrowserSession fixture - 증적 스크린샷 대상 page 관리"""
    return BrowserSession(page)

