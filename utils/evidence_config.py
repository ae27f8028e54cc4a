"""
증적(evidence) 리포트 설정 관리
config.json의 "evidence" 섹션과 .env 환경 변수를 읽어 EvidenceConfig로 변환
"""
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from dotenv import load_dotenv  # type: ignore

from utils.pdf_report import ReportOptions

# .env 파일 로드 (프로젝트 루트 기준)
project_root = Path(__file__).parent.parent
env_path = project_root / '.env'
load_dotenv(dotenv_path=env_path)

CONFIG_FILENAME = 'config.json'

# 환경 변수 → (설정 키, 타입) 매핑
_ENV_OVERRIDES = {
    'GENERATE_PDF': ('generate_pdf', bool),
    'EVIDENCE_PER_TEST_PDF': ('per_test_pdf', bool),
    'EVIDENCE_OUTPUT_DIR': ('output_dir', str),
    'HEADLESS': ('headless', bool),
}

# ReportOptions로 전달되는 환경 변수
_ENV_REPORT_OVERRIDES = {
    'EVIDENCE_ORGANIZATION': 'organization_name',
    'EVIDENCE_ENVIRONMENT': 'environment_name',
    'EVIDENCE_DEVICE': 'device',
    'EVIDENCE_EXECUTOR': 'executor',
}


def _to_bool(value: Any) -> bool:
    """'Y', 'true', '1' 등 문자열을 bool로 변환"""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('y', 'yes', 'true', '1', 'on')


@dataclass
class EvidenceConfig:
    """
    증적 수집 및 PDF 리포트 설정

    Attributes:
        enabled: 증적 수집 활성화 여부
        generate_pdf: 실행 종료 시 통합 PDF 생성 여부
        per_test_pdf: 테스트 종료 시마다 개별 PDF 생성 여부
        headless: 브라우저 headless 실행 여부
        feature_dirs: .feature 파일 탐색 디렉토리 목록
        output_dir: PDF 및 통합 결과 JSON 저장 디렉토리
        logs_dir: 테스트별 로그 JSON 저장 디렉토리
        screenshots_dir: 스크린샷 저장 디렉토리
        results_filename: 통합 결과 JSON 파일명
        report_prefix: 통합 PDF 파일명 접두사
        screenshot_on_step: 스텝 종료마다 스크린샷 촬영 여부
        screenshot_on_failure: 스텝 실패 시 스크린샷 촬영 여부
        final_screenshot: 시나리오 종료 시 최종 상태 스크린샷 촬영 여부
        screenshot_timeout: Playwright 스크린샷 타임아웃 (ms)
        report: PDF 렌더링 옵션
    """
    enabled: bool = True
    generate_pdf: bool = True
    per_test_pdf: bool = False
    headless: bool = True
    feature_dirs: List[str] = field(default_factory=lambda: ['features'])
    output_dir: str = 'reports/evidence'
    logs_dir: str = 'reports/evidence/logs'
    screenshots_dir: str = 'screenshots'
    results_filename: str = 'evidence_results.json'
    report_prefix: str = 'evidence_report'
    screenshot_on_step: bool = False
    screenshot_on_failure: bool = True
    final_screenshot: bool = True
    screenshot_timeout: int = 2000
    report: ReportOptions = field(default_factory=ReportOptions)
    base_dir: Path = field(default_factory=lambda: project_root)

    def resolve(self, path: str) -> Path:
        """base_dir 기준으로 상대 경로를 절대 경로로 변환"""
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self.base_dir / candidate

    @property
    def output_path(self) -> Path:
        return self.resolve(self.output_dir)

    @property
    def logs_path(self) -> Path:
        return self.resolve(self.logs_dir)

    @property
    def screenshots_path(self) -> Path:
        return self.resolve(self.screenshots_dir)

    @property
    def results_path(self) -> Path:
        return self.output_path / self.results_filename

    @property
    def feature_paths(self) -> List[Path]:
        return [self.resolve(d) for d in self.feature_dirs]


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    """
    config.json 로드

    파일이 없으면 빈 dict를 반환하고, JSON 형식이 잘못되었으면 RuntimeError
    """
    if not config_path.exists():
        return {}
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise RuntimeError(f"{config_path} 파일의 JSON 형식이 잘못되었습니다: {e}")


def _build_report_options(section: Dict[str, Any]) -> ReportOptions:
    """config.json의 evidence.report 섹션을 ReportOptions로 변환"""
    options = ReportOptions()
    for key, value in section.items():
        if not hasattr(options, key):
            raise ValueError(f"지원하지 않는 리포트 옵션입니다: {key}")
        if isinstance(getattr(options, key), tuple) and isinstance(value, list):
            value = tuple(value)
        setattr(options, key, value)
    return options


def _split_config(raw: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """config.json 원본에서 evidence 설정과 report 설정을 분리"""
    section = dict(raw.get('evidence') or {})
    report_section = dict(section.pop('report', None) or {})
    if 'headless' in raw and 'headless' not in section:
        section['headless'] = raw['headless']
    return section, report_section


def load_evidence_config(base_dir: Optional[Path] = None,
                         config_path: Optional[Path] = None) -> EvidenceConfig:
    """
    EvidenceConfig 로드

    우선순위: 환경 변수 > config.json > 기본값

    Args:
        base_dir: 상대 경로 기준 디렉토리 (기본: 프로젝트 루트)
        config_path: config.json 경로 (기본: base_dir/config.json)

    Returns:
        EvidenceConfig

    Raises:
        RuntimeError: config.json 형식 오류
        ValueError: 알 수 없는 설정 키
    """
    base_dir = Path(base_dir) if base_dir else project_root
    config_path = Path(config_path) if config_path else base_dir / CONFIG_FILENAME

    section, report_section = _split_config(_read_config_file(config_path))

    config = EvidenceConfig(base_dir=base_dir)
    for key, value in section.items():
        if key in ('base_dir', 'report') or not hasattr(config, key):
            raise ValueError(f"지원하지 않는 evidence 설정입니다: {key}")
        if isinstance(getattr(config, key), bool):
            value = _to_bool(value)
        if key == 'feature_dirs' and isinstance(value, str):
            value = [value]
        setattr(config, key, value)
    config.report = _build_report_options(report_section)

    for env_key, (attr, attr_type) in _ENV_OVERRIDES.items():
        env_value = os.getenv(env_key)
        if env_value is None or env_value == '':
            continue
        setattr(config, attr, _to_bool(env_value) if attr_type is bool else env_value)

    for env_key, attr in _ENV_REPORT_OVERRIDES.items():
        env_value = os.getenv(env_key)
        if env_value:
            setattr(config.report, attr, env_value)

    if config.report.logo_path and not Path(config.report.logo_path).is_absolute():
        config.report.logo_path = str(config.resolve(config.report.logo_path))

    return config
