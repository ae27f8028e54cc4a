"""증적 리포트 단위 테스트 공통 fixture"""
import textwrap

import pytest
from PIL import Image

# 설정 파일 값을 덮어쓰는 환경 변수 (테스트 간 격리)
EVIDENCE_ENV_KEYS = [
    "GENERATE_PDF",
    "EVIDENCE_PER_TEST_PDF",
    "EVIDENCE_OUTPUT_DIR",
    "HEADLESS",
    "EVIDENCE_ORGANIZATION",
    "EVIDENCE_ENVIRONMENT",
    "EVIDENCE_DEVICE",
    "EVIDENCE_EXECUTOR",
]


@pytest.fixture(autouse=True)
def clean_evidence_env(monkeypatch):
    for key in EVIDENCE_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def make_png(tmp_path):
    """PNG 스크린샷 파일 생성"""
    def _make(name="shot.png", size=(800, 600), color=(200, 30, 30)):
        path = tmp_path / "shots" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", size, color).save(path)
        return str(path)
    return _make


@pytest.fixture
def features_dir(tmp_path):
    path = tmp_path / "features"
    path.mkdir()
    return path


@pytest.fixture
def write_feature(features_dir):
    """features 디렉토리 하위에 .feature 파일 작성"""
    def _write(relative, content):
        path = features_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path
    return _write
