"""
Path Fit Indices

원래 모델, 구조 포화 모델, 구조 영 모델의 카이제곱/자유도를 결합하여
경로모형 전용 적합도 지수를 계산합니다.

- RMSEA-P: 구조 부분에 한정된 RMSEA (Williams & O'Boyle, 2011)
- RMSEA-P 90% 신뢰구간: 비중심 카이제곱 차이의 누적률(cumulant) 근사와
  Wilson-Hilferty 형태의 거듭제곱 변환을 이용한 닫힌 형태 근사
- NSCI-P: 정규화 구조 비교 지수
- RMSEA, TLI, CFI: 잠재 내재 모델의 .s 지수에 쓰이는 고전적 지수의 닫힌 형태

모든 계산은 numpy float64로 수행하며 음수 근호, 음수 밑의 분수 거듭제곱,
0으로 나누기는 nan/inf로 그대로 반환됩니다 (값을 잘라내지 않음).
"""

from dataclasses import dataclass
from typing import Tuple
import logging

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_Z_VALUE = 1.645


@dataclass(frozen=True)
class StructuralStatistics:
    """적합도 지수 계산에 필요한 카이제곱/자유도 묶음"""
    chi2_full: float
    df_full: float
    chi2_saturated: float
    df_saturated: float
    chi2_null: float
    df_null: float
    n_obs: int

    @property
    def structural_df(self) -> np.float64:
        """H = dft - dfss"""
        return np.float64(self.df_full) - np.float64(self.df_saturated)

    @property
    def noncentrality(self) -> np.float64:
        """Ncp = (X2t - X2ss) - H"""
        return (np.float64(self.chi2_full) - np.float64(self.chi2_saturated)) - self.structural_df


def rmsea_p(stats: StructuralStatistics) -> float:
    """
    RMSEA-P = sqrt(((X2t - X2ss) - (dft - dfss)) / ((dft - dfss) * (N - 1)))

    Args:
        stats (StructuralStatistics): 카이제곱/자유도 묶음

    Returns:
        float: RMSEA-P (분자가 음수이면 nan)
    """
    h = stats.structural_df
    n = np.float64(stats.n_obs)
    with np.errstate(divide='ignore', invalid='ignore'):
        value = np.sqrt(stats.noncentrality / (h * (n - 1)))
    return float(value)


def rmsea_p_interval(stats: StructuralStatistics,
                     z_value: float = DEFAULT_Z_VALUE) -> Tuple[float, float]:
    """
    RMSEA-P 단측 90% 신뢰한계

    근사 분포의 적률로 거듭제곱 변환 지수(R)와 이동량(S)을 구하고,
    변환된 척도에서 z 구간을 만든 뒤 역변환하여 비중심도 한계를 얻습니다.

    Args:
        stats (StructuralStatistics): 카이제곱/자유도 묶음
        z_value (float): 표준정규 임계값 (기본 1.645)

    Returns:
        Tuple[float, float]: (하한, 상한)
    """
    h = stats.structural_df
    ncp = stats.noncentrality
    n = np.float64(stats.n_obs)
    z = np.float64(z_value)

    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        o = h + ncp
        p = 2 * h + 4 * ncp
        q = 8 * h + 24 * ncp
        r = 1 - ((o * q) / (3 * (p ** 2)))
        s = (p / (2 * o)) - (q / (4 * p))
        t = 1 + (r / o) * (((p * (r - 1)) / (2 * o)) + s)
        u = (r ** 2) * p / (o ** 2)
        stderr = np.sqrt(u)

        lower_z = t - (stderr * z)
        upper_z = t + (stderr * z)
        y = o * np.power(lower_z, 1 / r) - s
        w = o * np.power(upper_z, 1 / r) - s

        ncp_lower = y - h
        ncp_upper = w - h
        lower = np.sqrt(ncp_lower / (h * n - 1))
        upper = np.sqrt(ncp_upper / (h * n - 1))

    return float(lower), float(upper)


def nsci_p(stats: StructuralStatistics) -> float:
    """
    NSCI-P = ((X2sn - X2t) - (dfsn - dft)) / ((X2sn - X2ss) - (dfsn - dfss))

    Args:
        stats (StructuralStatistics): 카이제곱/자유도 묶음

    Returns:
        float: NSCI-P (분모가 0이면 nan/inf)
    """
    chi2_null = np.float64(stats.chi2_null)
    df_null = np.float64(stats.df_null)
    numerator = (chi2_null - np.float64(stats.chi2_full)) - (df_null - np.float64(stats.df_full))
    denominator = (chi2_null - np.float64(stats.chi2_saturated)) - (df_null - np.float64(stats.df_saturated))
    with np.errstate(divide='ignore', invalid='ignore'):
        value = numerator / denominator
    return float(value)


def rmsea(chi2: float, df: float, n_obs: int) -> float:
    """
    RMSEA = sqrt(max(X2 - df, 0) / (df * (N - 1)))

    Args:
        chi2 (float): 카이제곱
        df (float): 자유도
        n_obs (int): 표본 크기

    Returns:
        float: RMSEA (df가 0이면 nan/inf)
    """
    chi2, df = np.float64(chi2), np.float64(df)
    with np.errstate(divide='ignore', invalid='ignore'):
        value = np.sqrt(np.maximum(chi2 - df, 0.0) / (df * (np.float64(n_obs) - 1)))
    return float(value)


def tli(chi2: float, df: float, chi2_base: float, df_base: float) -> float:
    """TLI = (X2b/dfb - X2/df) / (X2b/dfb - 1)"""
    with np.errstate(divide='ignore', invalid='ignore'):
        base_ratio = np.float64(chi2_base) / np.float64(df_base)
        value = (base_ratio - np.float64(chi2) / np.float64(df)) / (base_ratio - 1)
    return float(value)


def cfi(chi2: float, df: float, chi2_base: float, df_base: float) -> float:
    """CFI = 1 - max(X2 - df, 0) / max(X2 - df, X2b - dfb, 0)"""
    model_ncp = max(np.float64(chi2) - np.float64(df), 0.0)
    base_ncp = max(np.float64(chi2) - np.float64(df), np.float64(chi2_base) - np.float64(df_base), 0.0)
    with np.errstate(divide='ignore', invalid='ignore'):
        value = 1 - np.float64(model_ncp) / np.float64(base_ncp)
    return float(value)
