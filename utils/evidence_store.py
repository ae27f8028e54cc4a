"""
증적 로그 JSON 저장/로드
테스트 실행과 PDF 생성을 분리하기 위해 실행 중 로그를 파일로 남김
"""
import hashlib
import json
import logging
import os
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from utils.evidence_log import TestEvidenceLog, TestResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def format_test_title(title: str) -> str:
    """파일/폴더명용 테스트 제목 (':' 와 '/' 를 '-' 로 치환)"""
    return re.sub(r'[:/]', '-', title or '')


def safe_filename(title: str) -> str:
    """
    테스트 제목을 안전한 파일명으로 변환

    예: "Login: usuário válido" → "login__usu_rio_v_lido"
    """
    name = re.sub(r'[^a-z0-9]', '_', format_test_title(title), flags=re.IGNORECASE).lower()
    return name or 'unnamed'


def _write_json(path: Path, data) -> None:
    os.makedirs(path.parent, exist_ok=True)
    tmp_path = path.with_name(path.name + '.tmp')
    with open(tmp_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    os.replace(tmp_path, path)


class EvidenceStore:
    """
    증적 JSON 저장소

    Args:
        logs_dir: 테스트별 로그 디렉토리 (<safe_title>.json)
        results_file: 전체 결과 통합 JSON 경로
    """

    def __init__(self, logs_dir: PathLike, results_file: Optional[PathLike] = None):
        self.logs_dir = Path(logs_dir)
        self.results_file = Path(results_file) if results_file else None
        # 로그 파일 경로 → 해당 경로를 먼저 사용한 테스트 제목
        self._owners: Dict[Path, str] = {}

    def log_path(self, title: str) -> Path:
        """
        테스트별 로그 파일 경로

        다른 제목이 같은 파일명으로 변환되면 (예: "Login" / "login")
        나중 제목에 짧은 해시를 붙여 덮어쓰기를 방지.
        """
        base = safe_filename(title)
        path = self.logs_dir / f"{base}.json"
        if self._owners.setdefault(path, title) == title:
            return path

        digest = hashlib.sha1(title.encode('utf-8')).hexdigest()[:8]
        path = self.logs_dir / f"{base}_{digest}.json"
        if path not in self._owners:
            logger.warning(f"증적 로그 파일명 충돌: '{title}' → {path.name}")
            self._owners[path] = title
        return path

    def write_test_log(self, log: TestEvidenceLog) -> Path:
        path = self.log_path(log.title)
        _write_json(path, log.to_dict())
        return path

    def write_results(self, results: Iterable[TestResult]) -> Optional[Path]:
        if self.results_file is None:
            return None
        _write_json(self.results_file, [r.to_dict() for r in results])
        return self.results_file


def load_results(results_file: PathLike) -> List[TestResult]:
    """
    통합 결과 JSON 로드

    Raises:
        FileNotFoundError: 파일이 없는 경우
        ValueError: JSON 최상위가 리스트가 아닌 경우
    """
    with open(results_file, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"증적 결과 파일 형식이 잘못되었습니다 (list 필요): {results_file}")

    results = []
    for item in data:
        try:
            results.append(TestResult.from_dict(item))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"잘못된 증적 결과 항목 건너뜀: {e}")
    return results


def load_results_from_logs(logs_dir: PathLike) -> List[TestResult]:
    """
    테스트별 로그 디렉토리에서 결과 로드

    종료되지 않은 로그(status 없음)는 failed로 간주.
    정렬: 첫 레코드 timestamp, 파일명 순.
    """
    logs_dir = Path(logs_dir)
    if not logs_dir.is_dir():
        return []

    loaded = []
    for path in sorted(logs_dir.glob('*.json')):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("dict 형식이 아님")
            if not data.get("status"):
                data = dict(data, status="failed")
            result = TestResult.from_dict(data)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"증적 로그 파일 건너뜀: {path} ({e})")
            continue
        first_ts = result.steps[0].timestamp if result.steps else ''
        loaded.append((first_ts, path.name, result))

    loaded.sort(key=lambda item: (item[0], item[1]))
    return [result for _, _, result in loaded]
