"""
Nested Model Builder

원래 모델 스펙에서 경로모형 적합도 계산에 필요한 세 가지 파생 모델을 구축합니다.

1. 구조 영(null-structural) 모델: 모든 구조 경로를 0으로 고정한 파라미터 테이블
2. 구조 포화(saturated-structural) 모델: 측정 + 공분산 방정식만 남긴 스펙
3. 잠재 내재(latent-implied) 모델: 구조 방정식만 남긴 스펙
   (포화 모델의 내재 잠재변수 공분산행렬에 다시 적합)

모든 빌더는 순수 함수이며 추정을 수행하지 않습니다.

관측 외생변수(구조 방정식 우변에만 나타나는 관측변수)의 분산/공분산은
추정 시점에 명시적 자유 파라미터로 선언됩니다 (observed_exogenous,
exogenous_covariance_syntax). semopy는 이 적률을 표본값으로 고정하면서도
자유도에는 포함하므로, 선언하지 않으면 자유도가 외생 적률 수만큼 커집니다.
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union
import logging

from .equations import EquationKind, ModelSpecification

logger = logging.getLogger(__name__)


def _as_number(modifier: str) -> Optional[float]:
    try:
        return float(modifier)
    except ValueError:
        return None


def _format_value(value: float) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


@dataclass(frozen=True)
class Parameter:
    """파라미터 테이블의 한 행"""
    lhs: str
    op: str
    rhs: str
    kind: EquationKind
    free: bool = True
    value: Optional[float] = None
    label: Optional[str] = None

    @property
    def term(self) -> str:
        """우변 항 표기 (고정값/라벨 포함)"""
        if not self.free and self.value is not None:
            return f"{_format_value(self.value)}*{self.rhs}"
        if self.label is not None:
            return f"{self.label}*{self.rhs}"
        return self.rhs


@dataclass(frozen=True)
class ParameterTable:
    """
    모델 스펙에 명시된 파라미터의 자유/고정 상태 테이블

    엔진이 자동으로 추가하는 기본 파라미터(분산, 표지 적재량 등)는
    포함하지 않으며, 렌더링 후 엔진이 원래 모델과 동일하게 추가합니다.
    """
    parameters: Tuple[Parameter, ...]

    @classmethod
    def from_specification(cls, spec: ModelSpecification) -> 'ParameterTable':
        parameters = []
        for equation in spec:
            for lhs in equation.lhs:
                for term in equation.rhs:
                    value = _as_number(term.modifier) if term.modifier is not None else None
                    parameters.append(Parameter(
                        lhs=lhs,
                        op=equation.op,
                        rhs=term.name,
                        kind=equation.kind,
                        free=value is None,
                        value=value,
                        label=term.modifier if value is None else None
                    ))
        return cls(tuple(parameters))

    def __len__(self) -> int:
        return len(self.parameters)

    def __iter__(self):
        return iter(self.parameters)

    def of_kind(self, kind: EquationKind) -> Tuple[Parameter, ...]:
        return tuple(p for p in self.parameters if p.kind is kind)

    @property
    def n_free(self) -> int:
        return sum(1 for p in self.parameters if p.free)

    @property
    def latent_names(self) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(p.lhs for p in self.of_kind(EquationKind.MEASUREMENT)))

    @property
    def observed_names(self) -> Tuple[str, ...]:
        latents = set(self.latent_names)
        names = dict.fromkeys(name for p in self.parameters for name in (p.lhs, p.rhs))
        return tuple(name for name in names if name not in latents)

    def with_fixed(self, kind: EquationKind, value: float = 0.0) -> 'ParameterTable':
        """
        지정한 종류의 파라미터를 고정한 새 테이블 반환 (원본은 변경되지 않음)

        Args:
            kind (EquationKind): 고정할 방정식 종류
            value (float): 고정값

        Returns:
            ParameterTable: 파생 테이블
        """
        return ParameterTable(tuple(
            replace(p, free=False, value=value, label=None) if p.kind is kind else p
            for p in self.parameters
        ))

    def to_syntax(self) -> str:
        """같은 (좌변, 연산자)의 연속된 파라미터를 한 방정식으로 묶어 렌더링"""
        lines = []
        current_key = None
        terms = []
        for p in self.parameters:
            key = (p.lhs, p.op)
            if key != current_key and terms:
                lines.append(f"{current_key[0]} {current_key[1]} {' + '.join(terms)}")
                terms = []
            current_key = key
            terms.append(p.term)
        if terms:
            lines.append(f"{current_key[0]} {current_key[1]} {' + '.join(terms)}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_syntax()


def build_null_structural(spec: ModelSpecification) -> ParameterTable:
    """
    구조 영 모델 생성 (구조 경로를 0으로 고정, 나머지는 원래 상태 유지)

    Args:
        spec (ModelSpecification): 원래 모델 스펙

    Returns:
        ParameterTable: 구조 경로가 고정된 파라미터 테이블
    """
    table = ParameterTable.from_specification(spec).with_fixed(EquationKind.STRUCTURAL, 0.0)
    logger.info(
        f"구조 영 모델 생성: 구조 파라미터 {len(table.of_kind(EquationKind.STRUCTURAL))}개 고정, "
        f"자유 파라미터 {table.n_free}개"
    )
    return table


def build_saturated_structural(spec: ModelSpecification) -> ModelSpecification:
    """
    구조 포화 모델 생성 (측정 + 공분산 방정식만 유지)

    Args:
        spec (ModelSpecification): 원래 모델 스펙

    Returns:
        ModelSpecification: 구조 방정식이 제거된 스펙
    """
    saturated = spec.select(EquationKind.MEASUREMENT, EquationKind.COVARIANCE)
    logger.info(f"구조 포화 모델 생성: 방정식 {len(saturated)}개 (구조 방정식 {len(spec.structural)}개 제거)")
    return saturated


def build_latent_implied(spec: ModelSpecification) -> ModelSpecification:
    """
    잠재 내재 모델 생성 (구조 방정식만 유지)

    Args:
        spec (ModelSpecification): 원래 모델 스펙

    Returns:
        ModelSpecification: 구조 방정식만 담은 스펙
    """
    structural = spec.select(EquationKind.STRUCTURAL)
    logger.info(f"잠재 내재 모델 생성: 구조 방정식 {len(structural)}개")
    return structural


class NestedModelBuilder:
    """원래 모델 스펙에서 파생 모델들을 구축하는 클래스"""

    def __init__(self, spec: ModelSpecification):
        """
        초기화

        Args:
            spec (ModelSpecification): 원래 모델 스펙
        """
        self.spec = spec

    def null_structural(self) -> ParameterTable:
        return build_null_structural(self.spec)

    def saturated_structural(self) -> ModelSpecification:
        return build_saturated_structural(self.spec)

    def latent_implied(self) -> ModelSpecification:
        return build_latent_implied(self.spec)

    def build_all(self) -> Tuple[ParameterTable, ModelSpecification, ModelSpecification]:
        """(구조 영, 구조 포화, 잠재 내재) 모델 반환"""
        return self.null_structural(), self.saturated_structural(), self.latent_implied()


def observed_exogenous(specification: Union[ModelSpecification, ParameterTable]) -> Tuple[str, ...]:
    """
    관측 외생변수 이름 (첫 등장 순서)

    구조 방정식 우변에 나타나지만 어떤 구조 방정식의 좌변도 아니고
    잠재변수나 지표변수도 아닌 변수입니다.

    Args:
        specification (Union[ModelSpecification, ParameterTable]): 모델 스펙 또는 파라미터 테이블

    Returns:
        Tuple[str, ...]: 관측 외생변수 이름
    """
    table = specification if isinstance(specification, ParameterTable) \
        else ParameterTable.from_specification(specification)

    structural = table.of_kind(EquationKind.STRUCTURAL)
    excluded = set(table.latent_names)
    excluded.update(p.rhs for p in table.of_kind(EquationKind.MEASUREMENT))
    excluded.update(p.lhs for p in structural)
    return tuple(dict.fromkeys(p.rhs for p in structural if p.rhs not in excluded))


def exogenous_covariance_syntax(specification: Union[ModelSpecification, ParameterTable]) -> str:
    """
    관측 외생변수 분산/공분산 선언 (이미 선언된 쌍은 제외)

    Args:
        specification (Union[ModelSpecification, ParameterTable]): 모델 스펙 또는 파라미터 테이블

    Returns:
        str: 'x ~~ y' 형태의 줄들 (외생변수가 없으면 빈 문자열)
    """
    table = specification if isinstance(specification, ParameterTable) \
        else ParameterTable.from_specification(specification)
    declared = {frozenset((p.lhs, p.rhs)) for p in table.of_kind(EquationKind.COVARIANCE)}

    exogenous = observed_exogenous(table)
    lines = []
    for i, first in enumerate(exogenous):
        for second in exogenous[i:]:
            if frozenset((first, second)) not in declared:
                lines.append(f"{first} ~~ {second}")
    return "\n".join(lines)
