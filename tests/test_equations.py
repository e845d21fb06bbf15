"""
Model Specification Equations 테스트

방정식 분류와 해석 규칙을 검증하는 단위 테스트입니다.
"""

import pytest

from path_model_fit.equations import (
    EquationKind,
    Term,
    classify_equation,
    parse_equation,
    parse_model_spec,
    split_equations
)
from path_model_fit.exceptions import ModelSyntaxError, PathFitError


class TestClassifyEquation:
    """방정식 분류 테스트 클래스"""

    def test_measurement(self):
        assert classify_equation("Jobsat =~ JobsatI1 + JobsatI2") is EquationKind.MEASUREMENT

    def test_covariance(self):
        assert classify_equation("Ldrrew ~~ Jobcom") is EquationKind.COVARIANCE

    def test_structural(self):
        assert classify_equation("Jobsat ~ Ldrrew + Jobcom") is EquationKind.STRUCTURAL

    def test_measurement_marker_wins_over_covariance(self):
        """두 표식이 모두 있으면 측정방정식"""
        assert classify_equation("F =~ x1 + x2 ~~ x3") is EquationKind.MEASUREMENT


class TestParseEquation:
    """방정식 해석 테스트 클래스"""

    def test_structural_record(self):
        eq = parse_equation("  Jobsat ~ Ldrrew + Jobcom ")

        assert eq.lhs == ('Jobsat',)
        assert eq.op == '~'
        assert eq.rhs == (Term('Ldrrew'), Term('Jobcom'))
        assert eq.kind is EquationKind.STRUCTURAL
        assert eq.text == "Jobsat ~ Ldrrew + Jobcom"

    def test_modifiers(self):
        eq = parse_equation("F =~ 1*x1 + a*x2 + x3")

        assert eq.rhs == (Term('x1', '1'), Term('x2', 'a'), Term('x3'))
        assert eq.text == "F =~ 1*x1 + a*x2 + x3"

    def test_covariance_does_not_split_on_single_tilde(self):
        eq = parse_equation("Ldrrew ~~ Jobcom")

        assert eq.op == '~~'
        assert eq.lhs == ('Ldrrew',)
        assert eq.rhs == (Term('Jobcom'),)

    def test_variable_names(self):
        eq = parse_equation("Orgcom ~ Jobsat")
        assert eq.variable_names == ('Orgcom', 'Jobsat')

    def test_missing_operator_raises(self):
        with pytest.raises(ModelSyntaxError) as exc_info:
            parse_equation("Jobsat Ldrrew")
        assert exc_info.value.equation == "Jobsat Ldrrew"

    @pytest.mark.parametrize("text", ["~ x1", "y ~", "y ~ x1 + ", "y ~ *x1"])
    def test_malformed_equations_raise(self, text):
        with pytest.raises(ModelSyntaxError):
            parse_equation(text)

    def test_syntax_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_equation("no operator")


class TestModelSpecification:
    """모델 스펙 해석 테스트 클래스"""

    @pytest.fixture
    def spec(self):
        return parse_model_spec("""
        # 측정 부분
        Ldrrew =~ L1 + L2 + L3
        Jobsat =~ J1 + J2 + J3
        Orgcom =~ O1 + O2 + O3
        Jobsat ~ Ldrrew; Orgcom ~ Jobsat
        L1 ~~ J1
        """)

    def test_split_equations_strips_comments_and_blank_lines(self):
        assert split_equations("a ~ b  # 주석\n\n c ~ d; e ~~ f\n") == ['a ~ b', 'c ~ d', 'e ~~ f']

    def test_partition_preserves_order(self, spec):
        assert len(spec) == 6
        assert [eq.text for eq in spec.structural] == ["Jobsat ~ Ldrrew", "Orgcom ~ Jobsat"]
        assert [eq.text for eq in spec.covariance] == ["L1 ~~ J1"]
        assert len(spec.measurement) == 3

    def test_latent_and_observed_names(self, spec):
        assert spec.latent_names == ('Ldrrew', 'Jobsat', 'Orgcom')
        assert spec.observed_names == ('L1', 'L2', 'L3', 'J1', 'J2', 'J3', 'O1', 'O2', 'O3')

    def test_select_keeps_original_order(self, spec):
        selected = spec.select(EquationKind.COVARIANCE, EquationKind.MEASUREMENT)
        assert [eq.kind for eq in selected] == [
            EquationKind.MEASUREMENT,
            EquationKind.MEASUREMENT,
            EquationKind.MEASUREMENT,
            EquationKind.COVARIANCE
        ]

    def test_to_syntax_round_trip(self, spec):
        assert parse_model_spec(spec.to_syntax()) == spec

    def test_empty_spec_raises(self):
        with pytest.raises(PathFitError):
            parse_model_spec("# 주석만 있음\n\n")


class TestUnsupportedSyntax:
    """지원하지 않는 문법 테스트 클래스"""

    @pytest.mark.parametrize("line", ["ind := a*b", "a == b", "a > 0"])
    def test_rejected_with_syntax_error(self, line):
        with pytest.raises(ModelSyntaxError):
            parse_model_spec(f"Jobsat ~ a*Ldrrew\n{line}")
