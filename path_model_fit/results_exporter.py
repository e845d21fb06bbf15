"""
Path Fit Results Exporter

경로모형 적합도 계산 결과를 CSV, JSON, 텍스트 보고서 형태로 저장하는 모듈입니다.
"""

import pandas as pd
import numpy as np
from typing import Any, Dict, Union
import logging
from pathlib import Path
import json
from datetime import datetime
from dataclasses import fields, is_dataclass
from collections.abc import Mapping

from .results import PathFitResult

logger = logging.getLogger(__name__)


class PathFitResultsExporter:
    """경로모형 적합도 결과 내보내기 클래스"""

    def __init__(self, output_dir: str = "path_fit_results"):
        """
        초기화

        Args:
            output_dir (str): 결과 저장 디렉토리
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"PathFitResultsExporter 초기화 완료: {self.output_dir}")

    def export_comprehensive_results(self,
                                     analysis_results: Union[Dict[str, Any], PathFitResult],
                                     filename_prefix: str = "path_fit",
                                     digits: int = 4) -> Dict[str, str]:
        """
        종합적인 결과 내보내기

        Args:
            analysis_results (Union[Dict[str, Any], PathFitResult]): analyze() 결과 또는 지수 결과표
            filename_prefix (str): 파일명 접두사
            digits (int): 보고서 유효숫자 수

        Returns:
            Dict[str, str]: 저장된 파일들의 경로
        """
        logger.info("경로모형 적합도 결과 내보내기 시작")

        if isinstance(analysis_results, PathFitResult):
            analysis_results = {'path_fit_indices': analysis_results}

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        saved_files = {}

        try:
            # 1. 지수 결과표 저장
            indices_file = self._export_path_fit_indices(
                analysis_results['path_fit_indices'],
                f"{filename_prefix}_indices_{timestamp}"
            )
            saved_files['path_fit_indices'] = str(indices_file)

            # 2. 파생 모델 카이제곱/자유도 저장
            if 'nested_fits' in analysis_results:
                nested_file = self._export_nested_fits(
                    analysis_results['nested_fits'],
                    f"{filename_prefix}_nested_fits_{timestamp}"
                )
                saved_files['nested_fits'] = str(nested_file)

            # 3. 전체 결과 JSON 저장
            json_file = self._export_full_results_json(
                analysis_results,
                f"{filename_prefix}_full_results_{timestamp}"
            )
            saved_files['full_results_json'] = str(json_file)

            # 4. 요약 보고서 생성
            summary_file = self._create_summary_report(
                analysis_results,
                f"{filename_prefix}_summary_{timestamp}",
                digits
            )
            saved_files['summary_report'] = str(summary_file)

        except Exception as e:
            logger.error(f"결과 내보내기 중 오류 발생: {e}")
            raise

        logger.info(f"결과 내보내기 완료: {len(saved_files)}개 파일")
        return saved_files

    def _export_path_fit_indices(self, path_fit: PathFitResult, filename: str) -> Path:
        """지수 결과표 저장"""
        df = path_fit.to_frame()
        df['Interpretation'] = [self._interpret_index(label, value) for label, value in path_fit.items()]

        file_path = self.output_dir / f"{filename}.csv"
        df.to_csv(file_path, index_label='Index', encoding='utf-8-sig')

        logger.info(f"적합도 지수 저장 완료: {file_path}")
        return file_path

    def _interpret_index(self, index_name: str, value: float) -> str:
        """지수 해석"""
        if pd.isna(value) or not np.isfinite(value):
            return "N/A (degenerate statistic)"

        interpretations = {
            'RMSEA-P': 'Lower is better (0 = no path-specific misfit)',
            'RMSEA-P 90% lower bound': 'One-sided 90% lower bound',
            'RMSEA-P 90% upper bound': 'One-sided 90% upper bound',
            'NSCI-P': 'Closer to 1 is better',
            'cfi.s': 'Good: >0.95, Acceptable: >0.90',
            'tli.s': 'Good: >0.95, Acceptable: >0.90',
            'rmsea.s': 'Good: <0.06, Acceptable: <0.08',
            'srmr.s': 'Good: <0.08, Acceptable: <0.10'
        }
        return interpretations.get(index_name, 'See literature for interpretation')

    def _export_nested_fits(self, nested_fits: Dict[str, Any], filename: str) -> Path:
        """파생 모델 추정 결과 저장"""
        rows = []
        for model_name, fit in nested_fits.items():
            rows.append({
                'Model': model_name,
                'Chi_Square': fit.chi_square,
                'DF': fit.df,
                'N': fit.n_obs,
                'Converged': fit.converged
            })

        file_path = self.output_dir / f"{filename}.csv"
        pd.DataFrame(rows).to_csv(file_path, index=False, encoding='utf-8-sig')

        logger.info(f"파생 모델 결과 저장 완료: {file_path}")
        return file_path

    def _export_full_results_json(self, analysis_results: Dict[str, Any], filename: str) -> Path:
        """전체 결과 JSON 저장"""
        json_data = self._prepare_for_json(analysis_results)
        json_data['generated'] = datetime.now().isoformat(timespec='seconds')

        file_path = self.output_dir / f"{filename}.json"
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(json_data, f, indent=2, ensure_ascii=False, allow_nan=False)

        logger.info(f"전체 결과 JSON 저장 완료: {file_path}")
        return file_path

    def _prepare_for_json(self, data: Any) -> Any:
        """JSON 직렬화를 위한 데이터 준비 (nan/inf는 null)"""
        if isinstance(data, PathFitResult):
            return self._prepare_for_json(data.to_dict())
        elif isinstance(data, Mapping):
            return {str(k): self._prepare_for_json(v) for k, v in data.items()}
        elif isinstance(data, (list, tuple)):
            return [self._prepare_for_json(item) for item in data]
        elif isinstance(data, pd.DataFrame):
            return {str(k): self._prepare_for_json(v) for k, v in data.to_dict('index').items()}
        elif isinstance(data, pd.Series):
            return self._prepare_for_json(data.to_dict())
        elif is_dataclass(data) and not isinstance(data, type):
            return self._prepare_for_json({f.name: getattr(data, f.name) for f in fields(data)})
        elif isinstance(data, (bool, np.bool_)):
            return bool(data)
        elif isinstance(data, (int, np.integer)):
            return int(data)
        elif isinstance(data, (float, np.floating)):
            return float(data) if np.isfinite(data) else None
        elif isinstance(data, str) or data is None:
            return data
        return str(data)

    def _create_summary_report(self, analysis_results: Dict[str, Any], filename: str, digits: int) -> Path:
        """요약 보고서 생성"""
        report_lines = []
        report_lines.append("=" * 60)
        report_lines.append("PATH MODEL FIT SUMMARY REPORT")
        report_lines.append("=" * 60)
        report_lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        report_lines.append("")

        # 모델 정보
        if 'model_info' in analysis_results:
            model_info = analysis_results['model_info']
            report_lines.append("MODEL INFORMATION")
            report_lines.append("-" * 30)
            report_lines.append(f"Sample Size: {model_info.get('n_observations', 'N/A')}")
            report_lines.append(f"Objective: {model_info.get('objective', 'N/A')}")
            report_lines.append(f"Structural Equations: {model_info.get('n_structural_equations', 'N/A')}")
            report_lines.append("")

        # 파생 모델
        if 'nested_fits' in analysis_results:
            report_lines.append("NESTED MODELS")
            report_lines.append("-" * 30)
            for model_name, fit in analysis_results['nested_fits'].items():
                report_lines.append(f"{model_name}: chi2 = {fit.chi_square:.4f}, df = {fit.df:g}")
            report_lines.append("")

        report_lines.append("PATH FIT INDICES")
        report_lines.append("-" * 30)
        report_lines.append(analysis_results['path_fit_indices'].format(digits))
        report_lines.append("")

        file_path = self.output_dir / f"{filename}.txt"
        file_path.write_text("\n".join(report_lines), encoding='utf-8')

        logger.info(f"요약 보고서 저장 완료: {file_path}")
        return file_path


def export_path_fit_results(analysis_results: Union[Dict[str, Any], PathFitResult],
                            output_dir: str = "path_fit_results",
                            filename_prefix: str = "path_fit") -> Dict[str, str]:
    """
    경로모형 적합도 결과 내보내기 편의 함수

    Args:
        analysis_results (Union[Dict[str, Any], PathFitResult]): analyze() 결과 또는 지수 결과표
        output_dir (str): 출력 디렉토리
        filename_prefix (str): 파일명 접두사

    Returns:
        Dict[str, str]: 저장된 파일들의 경로
    """
    exporter = PathFitResultsExporter(output_dir)
    return exporter.export_comprehensive_results(analysis_results, filename_prefix)
