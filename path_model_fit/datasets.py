"""
Example Datasets

4개 잠재변수 매개모형(Ldrrew, Jobcom -> Jobsat -> Orgcom) 예제 데이터를 제공합니다.

공분산행렬은 모집단 파라미터로부터 결정적으로 생성됩니다.
모집단에는 분석 모델에 없는 두 가지 요소가 포함되어 있어
구조 부분과 측정 부분 모두에 실제 부적합이 존재합니다:
- Ldrrew -> Orgcom 직접 경로 (구조 부적합)
- JobsatI3 의 Jobcom 교차적재 (측정 부적합)
"""

from typing import List, Optional
import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

MEDIATION_N = 232

MEDIATION_LATENTS = ['Ldrrew', 'Jobcom', 'Jobsat', 'Orgcom']

MEDIATION_MODEL = """
Ldrrew =~ LdrrewI1 + LdrrewI2 + LdrrewI3
Jobcom =~ JobcomI1 + JobcomI2 + JobcomI3
Jobsat =~ JobsatI1 + JobsatI2 + JobsatI3
Orgcom =~ OrgcomI1 + OrgcomI2 + OrgcomI3
Jobsat ~ Ldrrew + Jobcom
Orgcom ~ Jobsat
"""

# 모집단 파라미터
_LOADINGS = (1.0, 0.9, 0.8)
_RESIDUAL_VARIANCES = (0.4, 0.5, 0.6)
_CROSS_LOADING = ('JobsatI3', 'Jobcom', 0.25)
_PATHS = {
    ('Jobsat', 'Ldrrew'): 0.4,
    ('Jobsat', 'Jobcom'): 0.3,
    ('Orgcom', 'Jobsat'): 0.5,
    ('Orgcom', 'Ldrrew'): 0.3,
}
_EXOGENOUS_COVARIANCE = 0.3
_DISTURBANCE_VARIANCES = {'Ldrrew': 1.0, 'Jobcom': 1.0, 'Jobsat': 0.6, 'Orgcom': 0.5}


def mediation_indicators() -> List[str]:
    """지표 변수 이름 (LdrrewI1 ... OrgcomI3)"""
    return [f"{latent}I{i}" for latent in MEDIATION_LATENTS for i in range(1, len(_LOADINGS) + 1)]


def _population_covariance() -> np.ndarray:
    k = len(MEDIATION_LATENTS)
    index = {name: i for i, name in enumerate(MEDIATION_LATENTS)}
    indicators = mediation_indicators()

    beta = np.zeros((k, k))
    for (outcome, predictor), coef in _PATHS.items():
        beta[index[outcome], index[predictor]] = coef

    psi = np.diag([_DISTURBANCE_VARIANCES[name] for name in MEDIATION_LATENTS])
    psi[index['Ldrrew'], index['Jobcom']] = psi[index['Jobcom'], index['Ldrrew']] = _EXOGENOUS_COVARIANCE

    c = np.linalg.inv(np.identity(k) - beta)
    phi = c @ psi @ c.T

    lam = np.zeros((len(indicators), k))
    for j, latent in enumerate(MEDIATION_LATENTS):
        for i, loading in enumerate(_LOADINGS):
            lam[j * len(_LOADINGS) + i, j] = loading
    indicator, latent, loading = _CROSS_LOADING
    lam[indicators.index(indicator), index[latent]] = loading

    theta = np.diag(list(_RESIDUAL_VARIANCES) * k)
    return lam @ phi @ lam.T + theta


def load_mediation_vc(decimals: Optional[int] = 4) -> pd.DataFrame:
    """
    매개모형 예제 공분산행렬 (12 x 12)

    Args:
        decimals (Optional[int]): 반올림 자릿수 (None이면 반올림하지 않음)

    Returns:
        pd.DataFrame: 지표 이름으로 라벨링된 공분산행렬
    """
    cov = _population_covariance()
    if decimals is not None:
        cov = np.round(cov, decimals)
    names = mediation_indicators()
    return pd.DataFrame(cov, index=names, columns=names)


def simulate_mediation_data(n_obs: int = MEDIATION_N, seed: int = 42) -> pd.DataFrame:
    """
    매개모형 모집단에서 원자료 생성

    Args:
        n_obs (int): 관측치 수
        seed (int): 난수 시드

    Returns:
        pd.DataFrame: n_obs x 12 원자료
    """
    rng = np.random.default_rng(seed)
    names = mediation_indicators()
    values = rng.multivariate_normal(np.zeros(len(names)), _population_covariance(), size=n_obs)
    logger.debug(f"매개모형 원자료 생성: {values.shape}")
    return pd.DataFrame(values, columns=names)
