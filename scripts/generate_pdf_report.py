"""
증적 PDF 수동 생성 스크립트
테스트 실행 중 저장된 증적 JSON으로 PDF를 다시 생성 (테스트 재실행 불필요)

사용 예:
    python scripts/generate_pdf_report.py
    python scripts/generate_pdf_report.py --logs-dir reports/evidence/logs --output report.pdf
"""
import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import List, Optional

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from utils.evidence_config import load_evidence_config
from utils.evidence_store import load_results, load_results_from_logs
from utils.feature_index import FeatureScenarioIndex
from utils.pdf_report import generate_pdf
from utils.scenario_matcher import ScenarioMatcher

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='저장된 증적 JSON으로 PDF 리포트 생성')
    source = parser.add_mutually_exclusive_group()
    source.add_argument('--results', help='통합 증적 결과 JSON 경로 (기본: config의 output_dir/results_filename)')
    source.add_argument('--logs-dir', help='테스트별 증적 로그 디렉토리')
    parser.add_argument('--output', help='PDF 저장 경로 (기본: output_dir/Relatorio_Manual_<timestamp>.pdf)')
    parser.add_argument('--features', action='append', help='.feature 디렉토리 (여러 번 지정 가능)')
    parser.add_argument('--config', help='config.json 경로')
    parser.add_argument('--verbose', action='store_true', help='DEBUG 로그 출력')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    print(">>> 증적 PDF 수동 생성 시작 <<<")

    config_path = Path(args.config) if args.config else None
    base_dir = config_path.parent if config_path else project_root
    try:
        config = load_evidence_config(base_dir=base_dir, config_path=config_path)
    except (RuntimeError, ValueError) as e:
        print(f"[ERROR] 설정 로드 실패: {e}")
        return 1

    if args.logs_dir:
        logs_dir = Path(args.logs_dir)
        if not logs_dir.is_dir():
            print(f"[ERROR] 증적 로그 디렉토리가 없습니다: {logs_dir}")
            return 1
        results = load_results_from_logs(logs_dir)
    else:
        results_file = Path(args.results) if args.results else config.results_path
        if not results_file.exists():
            print("[ERROR] 증적 파일을 찾을 수 없습니다. 테스트를 한 번 이상 실행했는지 확인하세요.")
            print(f"  기대 경로: {results_file}")
            return 1
        try:
            results = load_results(results_file)
        except (OSError, ValueError) as e:
            print(f"[ERROR] 증적 파일을 읽을 수 없습니다: {e}")
            return 1

    if not results:
        print("[WARNING] 증적 파일은 있지만 비어 있습니다.")
        return 0

    print(f"[INFO] 증적 {len(results)}건 발견")

    feature_dirs = [Path(d) for d in args.features] if args.features else config.feature_paths
    matcher = ScenarioMatcher(FeatureScenarioIndex(feature_dirs))

    if args.output:
        output_path = Path(args.output)
    else:
        output_path = config.output_path / f"Relatorio_Manual_{int(time.time() * 1000)}.pdf"

    try:
        os.makedirs(output_path.parent, exist_ok=True)
        summary = generate_pdf(results, output_path, config.report, matcher)
    except Exception as e:
        logger.error(f"PDF 생성 실패: {e}", exc_info=True)
        print(f"[ERROR] PDF 생성 실패: {e}")
        return 1

    print("\n✅ PDF 생성 완료!")
    print(f"📂 경로: {summary.output_path} ({summary.pages}페이지, 이미지 {summary.images}장)")
    return 0


if __name__ == '__main__':
    sys.exit(main())
