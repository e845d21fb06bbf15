"""
Path Model Fit Module using semopy

이 모듈은 잠재변수 구조방정식모델(SEM)의 경로(구조) 부분만을 평가하는
적합도 지수를 계산합니다. 전체 모델의 전역 적합도는 측정 부분이 지배하기 때문에
구조 경로의 부적합을 따로 진단할 필요가 있습니다.

주요 기능:
1. 모델 스펙 방정식 분류 (측정 / 구조 / 공분산)
2. 구조 영 / 구조 포화 / 잠재 내재 파생 모델 구축
3. semopy를 이용한 파생 모델 추정
4. RMSEA-P 및 단측 90% 신뢰구간, NSCI-P 계산
5. Hancock & Mueller (2011) 지수 (srmr.s, rmsea.s, tli.s, cfi.s)
6. 결과 저장 (CSV, JSON, 요약 보고서)

Author: Sugar Substitute Research Team
"""

from .path_fit import (
    PathModelFitAnalyzer,
    compute_path_fit_indices
)
from .estimator import (
    FitResult,
    FittedModel,
    SemEstimator,
    calc_baseline,
    calc_srmr,
    fit_model
)
from .equations import (
    Equation,
    EquationKind,
    ModelSpecification,
    Term,
    classify_equation,
    parse_equation,
    parse_model_spec,
    split_equations
)
from .model_builder import (
    NestedModelBuilder,
    Parameter,
    ParameterTable,
    build_latent_implied,
    build_null_structural,
    build_saturated_structural,
    exogenous_covariance_syntax,
    observed_exogenous
)
from .indices import (
    StructuralStatistics,
    nsci_p,
    rmsea_p,
    rmsea_p_interval
)
from .results import (
    INDEX_LABELS,
    PathFitResult
)
from .results_exporter import (
    PathFitResultsExporter,
    export_path_fit_results
)
from .config import (
    PathFitConfig,
    create_default_fit_config,
    create_strict_fit_config
)
from .exceptions import (
    EstimationFailureError,
    InvalidInputKindError,
    ModelSyntaxError,
    PathFitError
)

__version__ = "1.0.0"
__author__ = "Sugar Substitute Research Team"
__all__ = [
    # Core computation
    'PathModelFitAnalyzer',
    'compute_path_fit_indices',

    # Estimation
    'FitResult',
    'FittedModel',
    'SemEstimator',
    'calc_baseline',
    'calc_srmr',
    'fit_model',

    # Model specification
    'Equation',
    'EquationKind',
    'ModelSpecification',
    'Term',
    'classify_equation',
    'parse_equation',
    'parse_model_spec',
    'split_equations',

    # Nested models
    'NestedModelBuilder',
    'Parameter',
    'ParameterTable',
    'build_latent_implied',
    'build_null_structural',
    'build_saturated_structural',
    'exogenous_covariance_syntax',
    'observed_exogenous',

    # Indices
    'StructuralStatistics',
    'nsci_p',
    'rmsea_p',
    'rmsea_p_interval',

    # Results
    'INDEX_LABELS',
    'PathFitResult',
    'PathFitResultsExporter',
    'export_path_fit_results',

    # Configuration
    'PathFitConfig',
    'create_default_fit_config',
    'create_strict_fit_config',

    # Errors
    'EstimationFailureError',
    'InvalidInputKindError',
    'ModelSyntaxError',
    'PathFitError'
]
