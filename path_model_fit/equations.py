"""
Model Specification Equations

lavaan/semopy 문법의 모델 스펙을 방정식 단위로 해석하고
측정(measurement), 구조(structural), 공분산(covariance) 방정식으로 분류합니다.

분류 규칙은 순수하게 문법적입니다:
1. '=~' 가 있으면 측정방정식
2. 그렇지 않고 '~~' 가 있으면 공분산방정식
3. 둘 다 없으면 구조방정식 (회귀 경로)

측정 표식을 먼저 검사하므로 두 표식이 모두 있는 방정식은 측정방정식이 됩니다.

제한: '~' 가 전혀 없는 줄은 해석할 수 없어 ModelSyntaxError로 모델 전체가
거부됩니다. 정의 파라미터(':=', 예: 'ind := a*b')와 등식/부등식 제약
('a == b', 'a > 0')은 지원하지 않으므로 모델 텍스트에서 제거한 뒤 입력해야 합니다.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple
import logging
import re

from .exceptions import ModelSyntaxError

logger = logging.getLogger(__name__)

MEASUREMENT_OP = '=~'
COVARIANCE_OP = '~~'
REGRESSION_OP = '~'

_SEPARATORS = re.compile(r'[\n;]')
_LHS_SPLIT = re.compile(r'[+,]')


class EquationKind(Enum):
    """방정식 종류"""
    MEASUREMENT = "measurement"
    STRUCTURAL = "structural"
    COVARIANCE = "covariance"


_OPERATOR_BY_KIND = {
    EquationKind.MEASUREMENT: MEASUREMENT_OP,
    EquationKind.COVARIANCE: COVARIANCE_OP,
    EquationKind.STRUCTURAL: REGRESSION_OP,
}


@dataclass(frozen=True)
class Term:
    """우변 항 (선택적 수식어 포함: '0.5*x', 'a*x')"""
    name: str
    modifier: Optional[str] = None

    def __str__(self) -> str:
        if self.modifier is None:
            return self.name
        return f"{self.modifier}*{self.name}"


@dataclass(frozen=True)
class Equation:
    """해석된 방정식 레코드"""
    lhs: Tuple[str, ...]
    op: str
    rhs: Tuple[Term, ...]
    kind: EquationKind

    @property
    def text(self) -> str:
        return f"{' + '.join(self.lhs)} {self.op} {' + '.join(str(t) for t in self.rhs)}"

    @property
    def variable_names(self) -> Tuple[str, ...]:
        return self.lhs + tuple(t.name for t in self.rhs)

    def __str__(self) -> str:
        return self.text


def classify_equation(text: str) -> EquationKind:
    """
    방정식 문자열 분류

    Args:
        text (str): 방정식 한 줄

    Returns:
        EquationKind: 측정/공분산/구조 중 하나
    """
    if MEASUREMENT_OP in text:
        return EquationKind.MEASUREMENT
    if COVARIANCE_OP in text:
        return EquationKind.COVARIANCE
    return EquationKind.STRUCTURAL


def _parse_term(raw: str, equation: str) -> Term:
    token = raw.strip()
    if not token:
        raise ModelSyntaxError(f"빈 항이 있습니다: '{equation}'", equation)

    modifier, star, name = token.rpartition('*')
    if not star:
        return Term(name=token)

    modifier, name = modifier.strip(), name.strip()
    if not modifier or not name:
        raise ModelSyntaxError(f"잘못된 수식어 표기: '{token}'", equation)
    return Term(name=name, modifier=modifier)


def parse_equation(text: str) -> Equation:
    """
    방정식 한 줄을 구조화된 레코드로 변환

    Args:
        text (str): 방정식 문자열 (예: 'Jobsat ~ Ldrrew + Jobcom')

    Returns:
        Equation: 좌변 변수, 연산자, 우변 항, 종류를 담은 레코드
    """
    equation = text.strip()
    if REGRESSION_OP not in equation:
        raise ModelSyntaxError(f"연산자(=~, ~~, ~)가 없는 방정식입니다: '{equation}'", equation)

    kind = classify_equation(equation)
    op = _OPERATOR_BY_KIND[kind]
    left, _, right = equation.partition(op)

    lhs = tuple(name.strip() for name in _LHS_SPLIT.split(left) if name.strip())
    if not lhs:
        raise ModelSyntaxError(f"좌변이 비어 있습니다: '{equation}'", equation)
    if not right.strip():
        raise ModelSyntaxError(f"우변이 비어 있습니다: '{equation}'", equation)

    rhs = tuple(_parse_term(raw, equation) for raw in right.split('+'))
    return Equation(lhs=lhs, op=op, rhs=rhs, kind=kind)


def _unique(names) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(names))


@dataclass(frozen=True)
class ModelSpecification:
    """순서가 보존된 방정식 모음"""
    equations: Tuple[Equation, ...]

    def __len__(self) -> int:
        return len(self.equations)

    def __iter__(self):
        return iter(self.equations)

    def select(self, *kinds: EquationKind) -> 'ModelSpecification':
        """지정한 종류의 방정식만 원래 순서대로 남긴 새 스펙"""
        return ModelSpecification(tuple(eq for eq in self.equations if eq.kind in kinds))

    @property
    def measurement(self) -> Tuple[Equation, ...]:
        return tuple(eq for eq in self.equations if eq.kind is EquationKind.MEASUREMENT)

    @property
    def structural(self) -> Tuple[Equation, ...]:
        return tuple(eq for eq in self.equations if eq.kind is EquationKind.STRUCTURAL)

    @property
    def covariance(self) -> Tuple[Equation, ...]:
        return tuple(eq for eq in self.equations if eq.kind is EquationKind.COVARIANCE)

    @property
    def latent_names(self) -> Tuple[str, ...]:
        """측정방정식 좌변 변수 (첫 등장 순서)"""
        return _unique(name for eq in self.measurement for name in eq.lhs)

    @property
    def variable_names(self) -> Tuple[str, ...]:
        return _unique(name for eq in self.equations for name in eq.variable_names)

    @property
    def observed_names(self) -> Tuple[str, ...]:
        latents = set(self.latent_names)
        return tuple(name for name in self.variable_names if name not in latents)

    def to_syntax(self) -> str:
        """semopy 모델 스펙 문자열"""
        return "\n".join(eq.text for eq in self.equations)

    def __str__(self) -> str:
        return self.to_syntax()


def split_equations(model_text: str) -> List[str]:
    """모델 텍스트를 방정식 문자열 목록으로 분리 (주석/빈 줄 제거)"""
    equations = []
    for line in model_text.splitlines():
        line = line.split('#', 1)[0]
        for chunk in _SEPARATORS.split(line):
            chunk = chunk.strip()
            if chunk:
                equations.append(chunk)
    return equations


def parse_model_spec(model_text: str) -> ModelSpecification:
    """
    모델 스펙 전체 해석

    Args:
        model_text (str): 줄바꿈(또는 ';')으로 구분된 방정식들

    Returns:
        ModelSpecification: 분류된 방정식 모음
    """
    spec = ModelSpecification(tuple(parse_equation(eq) for eq in split_equations(model_text)))
    if not len(spec):
        raise ModelSyntaxError("모델 스펙에 방정식이 없습니다.")

    logger.debug(
        f"모델 스펙 해석 완료: 측정 {len(spec.measurement)}개, "
        f"구조 {len(spec.structural)}개, 공분산 {len(spec.covariance)}개"
    )
    return spec
