"""
Path Model Fit - 명령행 인터페이스

사용법:
    python -m path_model_fit MODEL_FILE --cov COV_CSV --n N
    python -m path_model_fit MODEL_FILE --data DATA_CSV
    python -m path_model_fit --example
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .config import VALID_LOG_LEVELS, create_default_fit_config
from .datasets import MEDIATION_MODEL, MEDIATION_N, load_mediation_vc
from .estimator import fit_model
from .exceptions import PathFitError
from .path_fit import PathModelFitAnalyzer
from .results_exporter import PathFitResultsExporter

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="path_model_fit",
        description="잠재변수 구조방정식모델의 경로모형 적합도 지수 계산 (RMSEA-P, NSCI-P, .s 지수)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
사용 예시:
  python -m path_model_fit model.txt --cov cov.csv --n 232
  python -m path_model_fit model.txt --data survey.csv --export results
  python -m path_model_fit --example
        """
    )

    parser.add_argument('model_file', nargs='?', help='lavaan/semopy 문법의 모델 스펙 파일')
    source = parser.add_mutually_exclusive_group()
    source.add_argument('--cov', help='변수명으로 라벨링된 공분산행렬 CSV (첫 열이 행 이름)')
    source.add_argument('--data', help='원자료 CSV (공분산행렬과 표본 크기를 계산)')
    parser.add_argument('--n', type=int, help='표본 크기 (--cov 사용 시 필수)')
    parser.add_argument('--digits', type=int, default=4, help='출력 유효숫자 수 (기본 4)')
    parser.add_argument('--export', metavar='DIR', help='결과 파일(CSV/JSON/보고서) 저장 디렉토리')
    parser.add_argument('--log-level', default='WARNING', choices=VALID_LOG_LEVELS, help='로깅 레벨')
    parser.add_argument('--example', action='store_true', help='내장 매개모형 예제 실행')
    return parser


def _load_inputs(args: argparse.Namespace, parser: argparse.ArgumentParser):
    """명령행 인자로부터 (모델 스펙, 공분산행렬, N, 원자료) 준비"""
    if args.example:
        return MEDIATION_MODEL, load_mediation_vc(), MEDIATION_N, None

    if not args.model_file:
        parser.error("MODEL_FILE 또는 --example 이 필요합니다.")

    model_text = Path(args.model_file).read_text(encoding='utf-8')

    if args.data:
        return model_text, None, None, pd.read_csv(args.data)
    if args.cov:
        if args.n is None:
            parser.error("--cov 사용 시 --n 이 필요합니다.")
        return model_text, pd.read_csv(args.cov, index_col=0), args.n, None

    parser.error("--cov 또는 --data 중 하나가 필요합니다.")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    model_text, sample_cov, n_obs, data = _load_inputs(args, parser)
    config = create_default_fit_config(digits=args.digits)

    try:
        fitted = fit_model(model_text, sample_cov=sample_cov, n_obs=n_obs, data=data, config=config)
        results = PathModelFitAnalyzer(config).analyze(fitted)
    except (PathFitError, ValueError) as e:
        logger.error(f"경로모형 적합도 계산 실패: {e}")
        print(f"오류: {e}", file=sys.stderr)
        return 1

    print(results['path_fit_indices'].format(config.digits))

    if args.export:
        exporter = PathFitResultsExporter(args.export)
        saved_files = exporter.export_comprehensive_results(results, digits=config.digits)
        print(f"\n결과 저장 위치: {args.export}")
        for name, path in saved_files.items():
            print(f"  {name}: {path}")

    return 0
