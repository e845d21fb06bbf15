"""
Path Model Fit Configuration Module

경로모형 적합도 지수 계산을 위한 설정 클래스와 유틸리티 함수들을 제공합니다.
"""

from dataclasses import dataclass

VALID_OBJECTIVES = ['MLW', 'ML', 'ULS', 'GLS', 'WLS', 'DWLS']
VALID_OPTIMIZERS = ['SLSQP', 'L-BFGS-B', 'trust-constr']
VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


@dataclass
class PathFitConfig:
    """경로모형 적합도 계산 설정 클래스"""

    # 추정 방법 (semopy 목적함수 / 최적화기)
    objective: str = 'MLW'  # MLW, ML, ULS, GLS, WLS, DWLS
    optimizer: str = 'SLSQP'  # SLSQP, L-BFGS-B, trust-constr

    # 수렴하지 않은 추정은 치명적 오류로 처리
    require_convergence: bool = True

    # RMSEA-P 신뢰구간 (단측 90%)
    z_value: float = 1.645

    # 출력 설정
    digits: int = 4

    def __post_init__(self):
        """설정 검증"""
        self._validate_estimation()
        self._validate_output()

    def _validate_estimation(self):
        """추정방법 검증"""
        if self.objective not in VALID_OBJECTIVES:
            raise ValueError(f"objective는 {VALID_OBJECTIVES} 중 하나여야 합니다.")
        if self.optimizer not in VALID_OPTIMIZERS:
            raise ValueError(f"optimizer는 {VALID_OPTIMIZERS} 중 하나여야 합니다.")
        if self.z_value <= 0:
            raise ValueError("z_value는 양수여야 합니다.")

    def _validate_output(self):
        """출력 설정 검증"""
        if self.digits < 1:
            raise ValueError("digits는 1 이상이어야 합니다.")


def create_default_fit_config(**kwargs) -> PathFitConfig:
    """
    기본 적합도 계산 설정 생성

    Args:
        **kwargs: 설정 오버라이드

    Returns:
        PathFitConfig: 설정 객체
    """
    return PathFitConfig(**kwargs)


def create_strict_fit_config(**kwargs) -> PathFitConfig:
    """
    엄격한 설정 생성 (ML 목적함수, trust-constr 최적화)

    Args:
        **kwargs: 설정 오버라이드

    Returns:
        PathFitConfig: 엄격한 추정용 설정
    """
    strict_defaults = {
        'objective': 'ML',
        'optimizer': 'trust-constr',
        'require_convergence': True
    }

    # 기본값과 사용자 입력 병합
    merged_kwargs = {**strict_defaults, **kwargs}
    return PathFitConfig(**merged_kwargs)
