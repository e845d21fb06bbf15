"""
Path Model Fit Core Module

잠재변수 구조방정식모델의 경로(구조) 부분에 대한 적합도 지수를 계산합니다.

처리 순서:
1. 원래 모델 스펙에서 세 가지 파생 모델 구축
2. semopy로 구조 영 / 구조 포화 / 잠재 내재 모델 추정
3. 카이제곱/자유도 결합으로 RMSEA-P, 신뢰구간, NSCI-P 계산
4. Hancock & Mueller (2011) 지수(srmr.s, rmsea.s, tli.s, cfi.s) 병합

References:
    Williams, L. J., & O'Boyle, E. H. (2011). The myth of global fit indices and
    alternatives for assessing latent variable relations. Organizational Research
    Methods, 14, 350-369.

    Hancock, G. R., & Mueller, R. O. (2011). The reliability paradox in assessing
    structural relations within covariance structure models. Educational and
    Psychological Measurement, 71(2), 306-324.
"""

from typing import Any, Dict, Optional
import logging

from .config import PathFitConfig
from .estimator import FitResult, FittedModel, SemEstimator
from .exceptions import InvalidInputKindError
from .indices import StructuralStatistics, nsci_p, rmsea_p, rmsea_p_interval
from .model_builder import NestedModelBuilder
from .results import HANCOCK_MUELLER_MEASURES, INDEX_LABELS, PathFitResult

logger = logging.getLogger(__name__)


class PathModelFitAnalyzer:
    """경로모형 적합도 계산 클래스"""

    def __init__(self, config: Optional[PathFitConfig] = None):
        """
        초기화

        Args:
            config (Optional[PathFitConfig]): 계산 설정 (없으면 원래 모델의 설정 사용)
        """
        self.config = config

    def compute(self, fitted: FittedModel) -> PathFitResult:
        """
        경로모형 적합도 지수 계산

        Args:
            fitted (FittedModel): fit_model()로 적합한 원래 모델

        Returns:
            PathFitResult: 8개 지수 결과표
        """
        return self.analyze(fitted)['path_fit_indices']

    def analyze(self, fitted: FittedModel) -> Dict[str, Any]:
        """
        경로모형 적합도 지수 계산 및 중간 결과 반환

        Args:
            fitted (FittedModel): fit_model()로 적합한 원래 모델

        Returns:
            Dict[str, Any]: 모델 정보, 파생 모델 추정 결과, 통계량, 지수 결과표
        """
        if not isinstance(fitted, FittedModel):
            logger.error(f"지원하지 않는 입력 타입: {type(fitted).__name__}")
            raise InvalidInputKindError(fitted)

        config = self.config or fitted.config
        logger.info("경로모형 적합도 계산 시작")

        nested_fits = self._estimate_nested_models(fitted, config)

        stats = StructuralStatistics(
            chi2_full=fitted.result.chi_square,
            df_full=fitted.result.df,
            chi2_saturated=nested_fits['saturated_structural'].chi_square,
            df_saturated=nested_fits['saturated_structural'].df,
            chi2_null=nested_fits['null_structural'].chi_square,
            df_null=nested_fits['null_structural'].df,
            n_obs=fitted.n_obs
        )

        path_fit = self._assemble(stats, nested_fits['latent_implied'], config)

        if path_fit.non_finite:
            logger.warning(f"비정상(nan/inf) 지수가 있습니다: {list(path_fit.non_finite)}")
        logger.info("경로모형 적합도 계산 완료")

        return {
            'model_info': {
                'n_observations': fitted.n_obs,
                'objective': config.objective,
                'optimizer': config.optimizer,
                'model_spec': fitted.model_syntax,
                'n_structural_equations': len(fitted.specification.structural),
                'latent_variables': list(fitted.specification.latent_names)
            },
            'nested_fits': nested_fits,
            'statistics': stats,
            'path_fit_indices': path_fit
        }

    def _estimate_nested_models(self,
                                fitted: FittedModel,
                                config: PathFitConfig) -> Dict[str, FitResult]:
        """구조 영 / 구조 포화 / 잠재 내재 모델 추정"""
        builder = NestedModelBuilder(fitted.specification)
        estimator = SemEstimator(config)

        logger.info("구조 영 모델 추정")
        null_fit = estimator.estimate(builder.null_structural(), fitted.sample_cov, fitted.n_obs)

        logger.info("구조 포화 모델 추정")
        saturated = builder.saturated_structural()
        saturated_fit = estimator.estimate(
            saturated, fitted.sample_cov, fitted.n_obs,
            latent_names=saturated.latent_names
        )

        # 포화 모델의 내재 잠재변수 공분산행렬에 구조 방정식만 다시 적합
        logger.info("잠재 내재 모델 추정")
        implied_fit = estimator.estimate(
            builder.latent_implied(), saturated_fit.implied_latent_cov, fitted.n_obs,
            fit_measures=HANCOCK_MUELLER_MEASURES
        )

        return {
            'null_structural': null_fit,
            'saturated_structural': saturated_fit,
            'latent_implied': implied_fit
        }

    def _assemble(self,
                  stats: StructuralStatistics,
                  implied_fit: FitResult,
                  config: PathFitConfig) -> PathFitResult:
        """지수 계산 및 고정 순서 결과표 구성"""
        lower, upper = rmsea_p_interval(stats, config.z_value)
        values = [rmsea_p(stats), lower, upper, nsci_p(stats)]
        values.extend(implied_fit.fit_measures[name] for name in HANCOCK_MUELLER_MEASURES)
        return PathFitResult(INDEX_LABELS, values)


def compute_path_fit_indices(fitted: FittedModel,
                             config: Optional[PathFitConfig] = None) -> PathFitResult:
    """
    경로모형 적합도 지수 계산 편의 함수

    Args:
        fitted (FittedModel): fit_model()로 적합한 원래 모델
        config (Optional[PathFitConfig]): 계산 설정

    Returns:
        PathFitResult: RMSEA-P, 90% 하한/상한, NSCI-P, srmr.s, rmsea.s, tli.s, cfi.s
    """
    return PathModelFitAnalyzer(config).compute(fitted)
