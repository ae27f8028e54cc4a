"""
.feature 파일 파싱 및 시나리오 인덱스
시나리오 제목 → BDD 스텝 목록 (Background 스텝 포함) 매핑 생성
"""
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# Gherkin 키워드 패턴 (영어 / 포르투갈어)
REGEX_FEATURE = re.compile(r'^(Feature|Funcionalidade|Característica|Caracteristica):', re.IGNORECASE)
REGEX_BACKGROUND = re.compile(r'^(Background|Contexto|Fundo):', re.IGNORECASE)
REGEX_SCENARIO = re.compile(
    r'^(Scenario Outline|Scenario Template|Esquema do Cenário|Esquema do Cenario|Scenario|Cenário|Cenario|Cénario):',
    re.IGNORECASE,
)
REGEX_STEPS = re.compile(r'^(Given|When|Then|And|But|Dado|Quando|Então|Entao|E|Mas)\b')

FEATURE_SUFFIX = '.feature'

PathLike = Union[str, Path]


@dataclass(frozen=True)
class ScenarioRecord:
    """파싱된 시나리오 (로드 후 변경 불가)"""
    title: str
    steps: Tuple[str, ...]
    feature_name: Optional[str] = None
    source: Optional[str] = None


def _save_current_scenario(scenarios: Dict[str, ScenarioRecord], title: Optional[str],
                           steps: List[str], feature_name: Optional[str], source: str) -> None:
    # 제목과 스텝이 모두 있는 경우만 저장 (같은 제목은 마지막 것이 덮어씀)
    if title and steps:
        scenarios[title] = ScenarioRecord(title, tuple(steps), feature_name, source)


def parse_feature_file(file_path: PathLike, scenarios: Dict[str, ScenarioRecord]) -> None:
    """
    .feature 파일 하나를 읽어 scenarios에 시나리오를 추가

    Args:
        file_path: .feature 파일 경로
        scenarios: 결과를 누적할 {제목: ScenarioRecord} dict

    Raises:
        OSError, UnicodeDecodeError: 파일을 읽을 수 없는 경우
    """
    source = str(file_path)
    feature_name = None
    current_title = None
    current_steps: List[str] = []
    background_steps: List[str] = []

    with open(file_path, 'r', encoding='utf-8') as f:
        for line in f:
            trimmed = line.strip()
            if not trimmed:
                continue

            if REGEX_FEATURE.match(trimmed):
                feature_name = REGEX_FEATURE.sub('', trimmed, count=1).strip() or None
            elif REGEX_BACKGROUND.match(trimmed):
                # Background 시작: 공통 스텝 버퍼 초기화
                background_steps = []
                current_title = None
            elif REGEX_SCENARIO.match(trimmed):
                _save_current_scenario(scenarios, current_title, current_steps, feature_name, source)
                current_title = REGEX_SCENARIO.sub('', trimmed, count=1).strip()
                current_steps = list(background_steps)
            elif REGEX_STEPS.match(trimmed):
                if current_title:
                    current_steps.append(trimmed)
                else:
                    background_steps.append(trimmed)

    _save_current_scenario(scenarios, current_title, current_steps, feature_name, source)


def iter_feature_files(directory: PathLike) -> Iterator[Path]:
    """디렉토리 하위의 .feature 파일을 정렬된 순서로 순회 (없는 디렉토리는 무시)"""
    directory = Path(directory)
    if not directory.is_dir():
        logger.debug(f"feature 디렉토리 없음, 건너뜀: {directory}")
        return
    for root, dirs, files in os.walk(directory):
        dirs.sort()
        for name in sorted(files):
            if name.endswith(FEATURE_SUFFIX):
                yield Path(root) / name


def load_feature_scenarios(feature_dirs: Iterable[PathLike]) -> Dict[str, ScenarioRecord]:
    """
    여러 디렉토리의 .feature 파일을 모두 파싱

    Args:
        feature_dirs: 탐색할 루트 디렉토리 목록

    Returns:
        {시나리오 제목: ScenarioRecord} (삽입 순서 유지)
    """
    scenarios: Dict[str, ScenarioRecord] = {}
    for directory in feature_dirs:
        logger.debug(f"feature 디렉토리 탐색: {directory}")
        for feature_file in iter_feature_files(directory):
            try:
                parse_feature_file(feature_file, scenarios)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"feature 파일 읽기 실패, 건너뜀: {feature_file} ({e})")
    logger.debug(f"로드된 시나리오 수: {len(scenarios)}")
    return scenarios


class FeatureScenarioIndex:
    """
    시나리오 인덱스

    최초 접근 시 한 번만 feature 파일을 읽고 이후에는 캐시를 사용.
    실행 중에는 feature 파일이 바뀌지 않는다고 가정.
    """

    def __init__(self, feature_dirs: Iterable[PathLike]):
        self.feature_dirs = [Path(d) for d in feature_dirs]
        self._scenarios: Optional[Dict[str, ScenarioRecord]] = None

    @property
    def is_loaded(self) -> bool:
        return self._scenarios is not None

    @property
    def scenarios(self) -> Dict[str, ScenarioRecord]:
        if self._scenarios is None:
            self._scenarios = load_feature_scenarios(self.feature_dirs)
        return self._scenarios

    def get(self, title: str) -> Optional[ScenarioRecord]:
        return self.scenarios.get(title)

    def titles(self) -> List[str]:
        return list(self.scenarios.keys())

    def __len__(self) -> int:
        return len(self.scenarios)

    def __contains__(self, title: str) -> bool:
        return title in self.scenarios
