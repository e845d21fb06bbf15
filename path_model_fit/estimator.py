"""
SEM Estimation Delegate

semopy를 사용하여 모델 스펙을 표본 공분산행렬에 적합하고
카이제곱/자유도, 내재 잠재변수 공분산행렬, 고전적 적합도 지수를 추출합니다.

이 모듈만이 semopy와 직접 통신하며, 경로모형 적합도 계산의 입력인
FittedModel은 fit_model()을 통해서만 생성됩니다.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union
import logging
import warnings

import numpy as np
import pandas as pd
from semopy import Model
from semopy.stats import calc_stats

from .config import PathFitConfig, create_default_fit_config
from .equations import ModelSpecification, parse_model_spec
from .exceptions import EstimationFailureError
from .indices import cfi, rmsea, tli
from .model_builder import ParameterTable, exogenous_covariance_syntax, observed_exogenous

logger = logging.getLogger(__name__)

Specification = Union[ModelSpecification, ParameterTable]

_ADAPTER_TOKEN = object()

# semopy calc_stats 컬럼명
_STAT_COLUMNS = {
    'chi2': 'chi2',
    'dof': 'DoF',
}


@dataclass(frozen=True)
class FitResult:
    """하나의 스펙을 추정한 결과"""
    chi_square: float
    df: float
    n_obs: int
    implied_latent_cov: Optional[pd.DataFrame] = field(default=None, compare=False, repr=False)
    fit_measures: Optional[Mapping[str, float]] = None
    converged: bool = True


@dataclass(frozen=True, eq=False)
class FittedModel:
    """
    semopy로 적합된 원래 모델

    fit_model()만 생성할 수 있으며, compute_path_fit_indices()의 유일한 입력 형식입니다.
    """
    specification: ModelSpecification
    sample_cov: pd.DataFrame = field(repr=False)
    n_obs: int
    result: FitResult
    config: PathFitConfig = field(repr=False)
    model: Any = field(default=None, repr=False)
    _token: object = field(default=None, repr=False)

    def __post_init__(self):
        if self._token is not _ADAPTER_TOKEN:
            raise TypeError("FittedModel은 fit_model()로만 생성할 수 있습니다.")

    @property
    def chi_square(self) -> float:
        return self.result.chi_square

    @property
    def df(self) -> float:
        return self.result.df

    @property
    def model_syntax(self) -> str:
        return self.specification.to_syntax()


def calc_srmr(sample_cov: np.ndarray, implied_cov: np.ndarray) -> float:
    """
    SRMR 계산 (Bentler 방식: 표본 표준편차로 표준화한 잔차, 대각 포함 하삼각)

    Args:
        sample_cov (np.ndarray): 표본 공분산행렬
        implied_cov (np.ndarray): 모델 내재 공분산행렬

    Returns:
        float: SRMR
    """
    sample_cov = np.asarray(sample_cov, dtype=float)
    implied_cov = np.asarray(implied_cov, dtype=float)
    if sample_cov.shape != implied_cov.shape:
        raise ValueError(f"공분산행렬 크기가 다릅니다: {sample_cov.shape} vs {implied_cov.shape}")

    sd = np.sqrt(np.diag(sample_cov))
    residual = (sample_cov - implied_cov) / np.outer(sd, sd)
    lower = residual[np.tril_indices(sample_cov.shape[0])]
    return float(np.sqrt(np.mean(lower ** 2)))


def calc_baseline(sample_cov: pd.DataFrame,
                  exogenous: Sequence[str],
                  n_obs: int) -> Tuple[float, float]:
    """
    기저(독립) 모델의 카이제곱/자유도

    관측 외생변수 사이의 공분산은 표본값 그대로 두고 나머지 공분산은 0인 모델입니다.
    ML 추정치가 표본 블록과 같으므로 닫힌 형태로 계산합니다:
    X2b = N * (log|Sigma_b| - log|S|), dfb = p(p-1)/2 - q(q-1)/2

    Args:
        sample_cov (pd.DataFrame): 변수명으로 라벨링된 표본 공분산행렬
        exogenous (Sequence[str]): 관측 외생변수 이름
        n_obs (int): 표본 크기

    Returns:
        Tuple[float, float]: (기저 카이제곱, 기저 자유도)
    """
    names = list(sample_cov.columns)
    sample = sample_cov.to_numpy(dtype=float)
    baseline = np.diag(np.diag(sample))

    block = [names.index(name) for name in exogenous]
    baseline[np.ix_(block, block)] = sample[np.ix_(block, block)]

    _, logdet_baseline = np.linalg.slogdet(baseline)
    _, logdet_sample = np.linalg.slogdet(sample)

    p, q = len(names), len(block)
    chi2_base = float(n_obs) * (logdet_baseline - logdet_sample)
    df_base = p * (p - 1) / 2 - q * (q - 1) / 2
    return float(chi2_base), float(df_base)


def latent_covariance(model: Model, latent_names: Sequence[str]) -> pd.DataFrame:
    """
    적합된 모델의 내재 잠재변수 공분산행렬: (I - B)^-1 Psi (I - B)^-T

    Args:
        model (Model): 적합된 semopy 모델
        latent_names (Sequence[str]): 행/열 라벨로 사용할 잠재변수 이름

    Returns:
        pd.DataFrame: 잠재변수 이름으로 라벨링된 공분산행렬
    """
    beta = np.asarray(model.mx_beta, dtype=float)
    psi = np.asarray(model.mx_psi, dtype=float)
    inner_names = list(model.names_psi[0])

    c = np.linalg.inv(np.identity(beta.shape[0]) - beta)
    inner_cov = pd.DataFrame(c @ psi @ c.T, index=inner_names, columns=inner_names)

    missing = [name for name in latent_names if name not in inner_names]
    if missing:
        raise EstimationFailureError(f"적합된 모델에 잠재변수가 없습니다: {missing}")

    names = list(latent_names)
    return inner_cov.loc[names, names].copy()


def _restrict_covariance(sample_cov: pd.DataFrame,
                         observed: Sequence[str],
                         model_syntax: str) -> pd.DataFrame:
    missing = [name for name in observed if name not in sample_cov.columns]
    if missing:
        raise EstimationFailureError(
            f"공분산행렬에 관측변수가 없습니다: {missing}", model_syntax
        )
    names = list(observed)
    return sample_cov.loc[names, names]


class SemEstimator:
    """semopy 추정 어댑터"""

    def __init__(self, config: Optional[PathFitConfig] = None):
        """
        초기화

        Args:
            config (Optional[PathFitConfig]): 추정 설정
        """
        self.config = config or create_default_fit_config()

    def estimate(self,
                 specification: Specification,
                 sample_cov: pd.DataFrame,
                 n_obs: int,
                 latent_names: Optional[Sequence[str]] = None,
                 fit_measures: Optional[Sequence[str]] = None) -> FitResult:
        """
        스펙을 표본 공분산행렬에 적합

        Args:
            specification (Specification): 모델 스펙 또는 파라미터 테이블
            sample_cov (pd.DataFrame): 변수명으로 라벨링된 표본 공분산행렬
            n_obs (int): 표본 크기
            latent_names (Optional[Sequence[str]]): 지정 시 내재 잠재변수 공분산행렬 추출
            fit_measures (Optional[Sequence[str]]): 지정 시 고전적 적합도 지수 추출

        Returns:
            FitResult: 추정 결과
        """
        model, result = self.fit(specification, sample_cov, n_obs)

        if latent_names is not None:
            result = replace(result, implied_latent_cov=latent_covariance(model, latent_names))
        if fit_measures:
            measures = self._extract_fit_measures(model, result, observed_exogenous(specification), fit_measures)
            result = replace(result, fit_measures=MappingProxyType(measures))

        logger.info(f"추정 완료: chi2={result.chi_square:.4f}, df={result.df:g}, N={result.n_obs}")
        return result

    def fit(self,
            specification: Specification,
            sample_cov: pd.DataFrame,
            n_obs: int) -> Tuple[Model, FitResult]:
        """적합된 semopy 모델과 결과를 함께 반환"""
        model, converged = self._fit(specification, sample_cov, n_obs)
        stats = calc_stats(model).loc['Value']
        result = FitResult(
            chi_square=float(stats[_STAT_COLUMNS['chi2']]),
            df=float(stats[_STAT_COLUMNS['dof']]),
            n_obs=int(n_obs),
            converged=converged
        )
        return model, result

    def _fit(self,
             specification: Specification,
             sample_cov: pd.DataFrame,
             n_obs: int) -> Tuple[Model, bool]:
        model_syntax = specification.to_syntax()
        if not len(specification):
            raise EstimationFailureError("추정할 방정식이 없습니다.", model_syntax)

        # 관측 외생변수 적률을 자유 파라미터로 선언 (자유도에서 상쇄)
        exogenous_syntax = exogenous_covariance_syntax(specification)
        if exogenous_syntax:
            model_syntax = f"{model_syntax}\n{exogenous_syntax}"

        cov = _restrict_covariance(sample_cov, specification.observed_names, model_syntax)
        logger.debug(f"semopy 모델 스펙:\n{model_syntax}")

        try:
            model = Model(model_syntax)
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                result = model.fit(
                    cov=cov,
                    n_samples=int(n_obs),
                    obj=self.config.objective,
                    solver=self.config.optimizer
                )
        except Exception as e:
            logger.error(f"모델 추정 중 오류 발생: {e}")
            raise

        converged = bool(getattr(result, 'success', True))
        if not converged:
            message = getattr(result, 'message', '')
            if self.config.require_convergence:
                logger.error(f"모델이 수렴하지 않았습니다: {message}")
                raise EstimationFailureError(f"모델이 수렴하지 않았습니다: {message}", model_syntax)
            logger.warning(f"모델이 수렴하지 않았습니다 (계속 진행): {message}")

        return model, converged

    def _extract_fit_measures(self,
                              model: Model,
                              result: FitResult,
                              exogenous: Sequence[str],
                              names: Sequence[str]) -> Dict[str, float]:
        """
        요청된 적합도 지수 계산

        semopy의 기저 모델은 분산만 추정하므로 TLI/CFI는 관측 외생변수
        공분산을 유지한 기저 모델(calc_baseline)로 직접 계산합니다.
        """
        observed = list(model.vars['observed'])
        sample_cov = pd.DataFrame(model.mx_cov, index=observed, columns=observed)
        chi2_base, df_base = calc_baseline(sample_cov, exogenous, result.n_obs)

        measures = {}
        for name in names:
            key = name.lower()
            if key == 'srmr':
                sigma, _ = model.calc_sigma()
                measures[key] = calc_srmr(model.mx_cov, sigma)
            elif key == 'rmsea':
                measures[key] = rmsea(result.chi_square, result.df, result.n_obs)
            elif key == 'tli':
                measures[key] = tli(result.chi_square, result.df, chi2_base, df_base)
            elif key == 'cfi':
                measures[key] = cfi(result.chi_square, result.df, chi2_base, df_base)
            else:
                raise ValueError(f"지원하지 않는 적합도 지수: {name}")
        logger.debug(f"기저 모델: chi2={chi2_base:.4f}, df={df_base:g}")
        return measures


def _prepare_data(data: pd.DataFrame) -> pd.DataFrame:
    """원자료 전처리 (목록별 결측 제거, 수치형 변수만 사용)"""
    clean_data = data.dropna()
    logger.info(f"결측치 제거 후 관측치 수: {len(clean_data)}")

    numeric_columns = clean_data.select_dtypes(include=[np.number]).columns
    return clean_data[numeric_columns]


def fit_model(model_spec: Union[str, ModelSpecification],
              sample_cov: Optional[pd.DataFrame] = None,
              n_obs: Optional[int] = None,
              data: Optional[pd.DataFrame] = None,
              config: Optional[PathFitConfig] = None) -> FittedModel:
    """
    원래 모델 적합 (경로모형 적합도 계산의 입력 생성)

    Args:
        model_spec (Union[str, ModelSpecification]): semopy/lavaan 문법의 모델 스펙
        sample_cov (Optional[pd.DataFrame]): 표본 공분산행렬
        n_obs (Optional[int]): 표본 크기 (sample_cov 사용 시 필수)
        data (Optional[pd.DataFrame]): 원자료 (지정 시 공분산행렬과 표본 크기를 계산)
        config (Optional[PathFitConfig]): 추정 설정

    Returns:
        FittedModel: 적합된 모델
    """
    config = config or create_default_fit_config()
    spec = parse_model_spec(model_spec) if isinstance(model_spec, str) else model_spec

    if data is not None:
        clean_data = _prepare_data(data)
        sample_cov = clean_data.cov()
        n_obs = len(clean_data)
    elif sample_cov is None:
        raise ValueError("data 또는 sample_cov 중 하나는 반드시 제공해야 합니다.")
    elif n_obs is None:
        raise ValueError("sample_cov를 사용할 때는 n_obs가 필요합니다.")
    elif not isinstance(sample_cov, pd.DataFrame):
        raise ValueError("sample_cov는 변수명으로 라벨링된 pandas DataFrame이어야 합니다.")

    logger.info(f"원래 모델 적합 시작: 방정식 {len(spec)}개, N={n_obs}")
    estimator = SemEstimator(config)
    model, result = estimator.fit(spec, sample_cov, n_obs)

    return FittedModel(
        specification=spec,
        sample_cov=sample_cov.copy(),
        n_obs=int(n_obs),
        result=result,
        config=config,
        model=model,
        _token=_ADAPTER_TOKEN
    )
