"""
테스트별 증적(스텝/스크린샷/상태) 기록 모델
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# 기본 스크린샷 라벨 (PDF에서는 일반 캡션으로 표시)
SCREENSHOT_LABEL = "Screenshot Captured"
FAILURE_LABEL = "Failure Detected"


class EvidenceStatus(str, Enum):
    """증적 레코드 상태"""
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    SCREENSHOT = "screenshot"

    @classmethod
    def parse(cls, value: Any) -> "EvidenceStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            # pytest outcome 외의 값(pending 등)은 skipped로 취급
            logger.warning(f"알 수 없는 상태값 '{value}' → skipped로 처리")
            return cls.SKIPPED


def now_iso() -> str:
    return datetime.now().isoformat(timespec='milliseconds')


@dataclass
class StepRecord:
    """스텝/스크린샷 증적 레코드"""
    label: str
    status: EvidenceStatus = EvidenceStatus.SCREENSHOT
    screenshot: Optional[str] = None
    timestamp: str = field(default_factory=now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.label,
            "status": self.status.value,
            "screenshot": self.screenshot,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StepRecord":
        return cls(
            label=data.get("step") or data.get("label") or "",
            status=EvidenceStatus.parse(data.get("status", EvidenceStatus.SCREENSHOT.value)),
            screenshot=data.get("screenshot"),
            timestamp=data.get("timestamp") or now_iso(),
        )


@dataclass
class TestResult:
    """테스트 최종 결과 (렌더러 입력)"""
    __test__ = False  # pytest 수집 대상 아님

    title: str
    status: EvidenceStatus
    steps: List[StepRecord] = field(default_factory=list)
    feature_name: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status is EvidenceStatus.FAILED

    @property
    def screenshots(self) -> List[StepRecord]:
        return [s for s in self.steps if s.screenshot]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "status": self.status.value,
            "feature": self.feature_name,
            "steps": [s.to_dict() for s in self.steps],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TestResult":
        if "title" not in data:
            raise ValueError("증적 결과에 title이 없습니다")
        return cls(
            title=data["title"],
            status=EvidenceStatus.parse(data.get("status", EvidenceStatus.PASSED.value)),
            steps=[StepRecord.from_dict(s) for s in data.get("steps") or []],
            feature_name=data.get("feature"),
        )


class TestEvidenceLog:
    """
    테스트 하나의 증적 로그

    상태: collecting → finalized (finalize 시 한 번만 전이)
    finalize 시 마지막 레코드를 테스트 최종 결과에 맞게 보정한다.
    """
    __test__ = False

    COLLECTING = "collecting"
    FINALIZED = "finalized"

    def __init__(self, title: str, feature_name: Optional[str] = None):
        self.title = title
        self.feature_name = feature_name
        self.records: List[StepRecord] = []
        self.state = self.COLLECTING
        self.result: Optional[TestResult] = None

    @property
    def is_finalized(self) -> bool:
        return self.state == self.FINALIZED

    def append(self, record: StepRecord) -> None:
        if self.is_finalized:
            raise RuntimeError(f"이미 종료된 테스트 로그에 기록할 수 없습니다: {self.title}")
        self.records.append(record)

    def finalize(self, title: str, status: Any) -> TestResult:
        """
        로그 종료 및 마지막 레코드 보정

        마지막 레코드에 스크린샷이 있으면 라벨을 테스트 제목으로, 상태를 최종 상태로 변경.
        스크린샷이 없으면 최종 상태 레코드를 추가 (실패 테스트는 항상 failed 레코드로 끝남).

        Args:
            title: 테스트 제목
            status: 최종 상태 (passed/failed/skipped)

        Returns:
            TestResult
        """
        if self.is_finalized:
            raise RuntimeError(f"이미 종료된 테스트 로그입니다: {self.title}")

        final_status = EvidenceStatus.parse(status)
        last = self.records[-1] if self.records else None
        if last is not None and last.screenshot:
            last.label = title
            last.status = final_status
        else:
            self.records.append(StepRecord(label=title, status=final_status))

        self.state = self.FINALIZED
        self.result = TestResult(
            title=title,
            status=final_status,
            steps=list(self.records),
            feature_name=self.feature_name,
        )
        return self.result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "status": self.result.status.value if self.result else None,
            "state": self.state,
            "feature": self.feature_name,
            "steps": [r.to_dict() for r in self.records],
        }


class EvidenceAccumulator:
    """
    실행 중인 테스트의 증적 로그 관리

    한 번에 하나의 테스트만 실행되므로 현재 테스트 로그 하나만 유지.
    record/finalize 마다 persist 콜백으로 로그 사본을 저장.
    """

    def __init__(self, persist: Optional[Callable[[TestEvidenceLog], None]] = None):
        self.persist = persist
        self.current: Optional[TestEvidenceLog] = None
        self.results: List[TestResult] = []

    def start(self, title: str, feature_name: Optional[str] = None) -> TestEvidenceLog:
        """테스트 시작: 로그 초기화"""
        if self.current is not None and not self.current.is_finalized:
            logger.warning(f"종료되지 않은 테스트 로그를 버림: {self.current.title}")
        self.current = TestEvidenceLog(title, feature_name)
        return self.current

    def record(self, step: StepRecord) -> None:
        """현재 테스트 로그에 레코드 추가"""
        if self.current is None:
            raise RuntimeError("시작된 테스트가 없습니다. start()를 먼저 호출하세요")
        self.current.append(step)
        self._persist(self.current)

    def finalize(self, title: str, status: Any) -> TestResult:
        """
        현재 테스트 로그 종료 후 결과를 results에 추가

        start() 없이 호출되면 빈 로그로 종료 처리.
        """
        log = self.current
        if log is None or log.is_finalized:
            log = self.start(title)
        result = log.finalize(title, status)
        self.results.append(result)
        self._persist(log)
        return result

    def _persist(self, log: TestEvidenceLog) -> None:
        if self.persist is None:
            return
        try:
            self.persist(log)
        except OSError as e:
            logger.warning(f"증적 로그 저장 실패: {log.title} ({e})")
