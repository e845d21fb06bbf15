"""
Path Model Fit 예외 정의

경로모형 적합도 계산 과정에서 발생하는 치명적 오류들을 정의합니다.
비정상 통계량(음수 근호, 0으로 나누기 등)은 예외가 아니라
결과표의 nan/inf 값으로 보고됩니다.
"""


class PathFitError(Exception):
    """path_model_fit 오류의 기본 클래스"""


class ModelSyntaxError(PathFitError, ValueError):
    """모델 스펙의 방정식을 해석할 수 없는 경우"""

    def __init__(self, message: str, equation: str = ""):
        super().__init__(message)
        self.equation = equation


class InvalidInputKindError(PathFitError, TypeError):
    """적합된 SEM 결과(FittedModel)가 아닌 객체가 입력된 경우"""

    def __init__(self, obj: object):
        super().__init__(
            f"입력은 fit_model()로 생성된 FittedModel이어야 합니다. "
            f"전달된 타입: '{type(obj).__name__}'"
        )
        self.received_type = type(obj)


class EstimationFailureError(PathFitError, RuntimeError):
    """SEM 엔진이 수렴/식별된 해를 찾지 못한 경우"""

    def __init__(self, message: str, model_syntax: str = ""):
        super().__init__(message)
        self.model_syntax = model_syntax
