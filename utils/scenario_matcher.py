"""
실행된 테스트 제목으로 .feature 시나리오를 찾는 매칭 로직
정확 일치 → 정규화 일치 → 부분 문자열 일치 순으로 시도
"""
import logging
import re
import unicodedata
from typing import List, Optional

from utils.feature_index import FeatureScenarioIndex, ScenarioRecord

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r'[^a-z0-9]')


def sanitize_title(text: Optional[str]) -> str:
    """
    비교용 제목 정규화
    소문자 변환, 악센트 제거(NFD 분해 후 결합 문자 삭제), 영숫자 외 문자 제거

    Args:
        text: 원본 문자열

    Returns:
        정규화된 문자열 (예: "Usuário faz login!!" → "usuariofazlogin")
    """
    if not text:
        return ''
    decomposed = unicodedata.normalize('NFD', text.lower())
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub('', stripped)


def _contains_either(a: str, b: str) -> bool:
    # 빈 문자열은 모든 문자열에 포함되므로 비교 대상에서 제외
    if not a or not b:
        return False
    return a in b or b in a


class ScenarioMatcher:
    """
    테스트 제목 → 시나리오 매칭

    부분 문자열 매칭은 여러 시나리오 제목이 공통 접두/접미어를 가질 때
    의도하지 않은 시나리오와 매칭될 수 있음. 이 경우 인덱스 삽입 순서상
    첫 번째 시나리오가 선택됨 (알려진 제약).

    부분 문자열 비교에서 빈 문자열은 제외함: 빈 제목은 매칭되지 않고,
    정규화 결과가 빈 문자열인 제목(예: "!!!")은 원본 소문자 비교만 수행.
    빈 문자열은 모든 제목에 포함되므로 그대로 비교하면 첫 번째 시나리오가
    항상 선택됨.
    """

    def __init__(self, index: FeatureScenarioIndex):
        self.index = index

    def find_scenario(self, test_title: str) -> Optional[ScenarioRecord]:
        scenarios = self.index.scenarios

        # 1. 정확 일치
        if test_title in scenarios:
            logger.debug(f"시나리오 정확 일치: \"{test_title}\"")
            return scenarios[test_title]

        normalized_test = sanitize_title(test_title)
        raw_test = (test_title or '').lower().strip()

        # 2. 정규화 일치 (악센트/구두점 무시)
        if normalized_test:
            for title, record in scenarios.items():
                if sanitize_title(title) == normalized_test:
                    logger.debug(f"시나리오 정규화 일치: \"{test_title}\" <--> \"{title}\"")
                    return record

        # 3. 부분 문자열 일치 (원본 소문자 / 정규화 문자열 각각)
        for title, record in scenarios.items():
            if (_contains_either(title.lower().strip(), raw_test)
                    or _contains_either(sanitize_title(title), normalized_test)):
                logger.debug(f"시나리오 부분 일치: \"{test_title}\" <--> \"{title}\"")
                return record

        logger.debug(f"일치하는 시나리오 없음: \"{test_title}\"")
        return None

    def find_steps(self, test_title: str) -> Optional[List[str]]:
        """
        테스트 제목에 해당하는 BDD 스텝 목록 반환

        Returns:
            스텝 목록, 매칭 실패 시 None
        """
        record = self.find_scenario(test_title)
        if record is None:
            return None
        return list(record.steps)
