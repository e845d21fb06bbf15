"""
Path Model Fit 통합 테스트

semopy로 매개모형 예제를 처음부터 끝까지 적합하여
경로모형 적합도 지수 계산 파이프라인을 검증합니다.
"""

import json
import math

import numpy as np
import pandas as pd
import pytest

from path_model_fit import (
    INDEX_LABELS,
    EstimationFailureError,
    FittedModel,
    InvalidInputKindError,
    PathFitResult,
    PathFitResultsExporter,
    PathModelFitAnalyzer,
    calc_srmr,
    compute_path_fit_indices,
    fit_model
)
from path_model_fit.estimator import calc_baseline
from path_model_fit.cli import main
from path_model_fit.datasets import (
    MEDIATION_LATENTS,
    MEDIATION_MODEL,
    MEDIATION_N,
    load_mediation_vc,
    mediation_indicators,
    simulate_mediation_data
)


@pytest.fixture(scope="module")
def mediation_vc():
    return load_mediation_vc()


@pytest.fixture(scope="module")
def fitted(mediation_vc):
    return fit_model(MEDIATION_MODEL, sample_cov=mediation_vc, n_obs=MEDIATION_N)


@pytest.fixture(scope="module")
def analysis(fitted):
    return PathModelFitAnalyzer().analyze(fitted)


class TestExampleData:
    """예제 데이터 테스트 클래스"""

    def test_covariance_shape_and_labels(self, mediation_vc):
        assert mediation_vc.shape == (12, 12)
        assert list(mediation_vc.columns) == mediation_indicators()
        assert np.allclose(mediation_vc.values, mediation_vc.values.T)

    def test_covariance_positive_definite(self, mediation_vc):
        assert np.all(np.linalg.eigvalsh(mediation_vc.values) > 0)

    def test_simulated_data(self):
        data = simulate_mediation_data(n_obs=50, seed=1)
        assert data.shape == (50, 12)
        assert data.equals(simulate_mediation_data(n_obs=50, seed=1))


class TestFitModel:
    """원래 모델 적합 테스트 클래스"""

    def test_fitted_model(self, fitted):
        assert isinstance(fitted, FittedModel)
        assert fitted.n_obs == MEDIATION_N
        assert fitted.df > 0
        assert fitted.chi_square > 0
        assert fitted.result.converged

    def test_direct_construction_rejected(self, fitted):
        with pytest.raises(TypeError):
            FittedModel(
                specification=fitted.specification,
                sample_cov=fitted.sample_cov,
                n_obs=fitted.n_obs,
                result=fitted.result,
                config=fitted.config
            )

    def test_from_raw_data(self):
        data = simulate_mediation_data()
        fitted = fit_model(MEDIATION_MODEL, data=data)

        assert fitted.n_obs == MEDIATION_N
        assert list(fitted.sample_cov.columns) == mediation_indicators()

    def test_missing_variable_raises(self, mediation_vc):
        reduced = mediation_vc.drop(index='OrgcomI3', columns='OrgcomI3')
        with pytest.raises(EstimationFailureError):
            fit_model(MEDIATION_MODEL, sample_cov=reduced, n_obs=MEDIATION_N)

    def test_missing_inputs_raise(self, mediation_vc):
        with pytest.raises(ValueError):
            fit_model(MEDIATION_MODEL)
        with pytest.raises(ValueError):
            fit_model(MEDIATION_MODEL, sample_cov=mediation_vc)
        with pytest.raises(ValueError):
            fit_model(MEDIATION_MODEL, sample_cov=mediation_vc.values, n_obs=MEDIATION_N)


class TestCalcSrmr:
    """SRMR 계산 테스트 클래스"""

    def test_identical_matrices(self, mediation_vc):
        assert calc_srmr(mediation_vc.values, mediation_vc.values) == 0.0

    def test_hand_computed_value(self):
        sample = np.array([[1.0, 0.5], [0.5, 1.0]])
        implied = np.array([[1.0, 0.3], [0.3, 1.0]])
        assert np.isclose(calc_srmr(sample, implied), math.sqrt(0.04 / 3))

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            calc_srmr(np.eye(2), np.eye(3))


class TestCalcBaseline:
    """기저 모델 카이제곱/자유도 테스트 클래스"""

    @pytest.fixture
    def sample_cov(self):
        names = ['x1', 'x2', 'y']
        values = np.array([[1.0, 0.5, 0.3],
                           [0.5, 1.0, 0.4],
                           [0.3, 0.4, 1.0]])
        return pd.DataFrame(values, index=names, columns=names)

    def test_independence_baseline(self, sample_cov):
        chi2_base, df_base = calc_baseline(sample_cov, (), 100)

        assert df_base == 3
        assert np.isclose(chi2_base, -100 * np.log(np.linalg.det(sample_cov.values)))

    def test_exogenous_covariance_kept(self, sample_cov):
        chi2_base, df_base = calc_baseline(sample_cov, ('x1', 'x2'), 100)
        expected = 100 * (np.log(0.75) - np.log(np.linalg.det(sample_cov.values)))

        assert df_base == 2
        assert np.isclose(chi2_base, expected)

    def test_diagonal_sample_fits_exactly(self):
        diagonal = pd.DataFrame(np.diag([1.0, 2.0, 3.0]), index=list('abc'), columns=list('abc'))
        chi2_base, _ = calc_baseline(diagonal, (), 50)
        assert np.isclose(chi2_base, 0.0)


class TestLatentImpliedFit:
    """잠재 내재 모델 자유도와 .s 지수 테스트 클래스"""

    def test_exogenous_moments_not_counted(self, analysis):
        # 4개 잠재변수 적률 10개 - (경로 3 + 외생 분산/공분산 3 + 교란 분산 2)
        assert analysis['nested_fits']['latent_implied'].df == 2

    def test_rmsea_s_closed_form(self, analysis):
        implied_fit = analysis['nested_fits']['latent_implied']
        expected = math.sqrt(
            max(implied_fit.chi_square - implied_fit.df, 0.0) / (implied_fit.df * (MEDIATION_N - 1))
        )

        assert np.isclose(analysis['path_fit_indices']["rmsea.s"], expected)
        assert analysis['path_fit_indices']["rmsea.s"] == pytest.approx(0.2394, abs=2e-3)

    def test_tli_cfi_against_baseline(self, analysis):
        implied_fit = analysis['nested_fits']['latent_implied']
        latent_cov = analysis['nested_fits']['saturated_structural'].implied_latent_cov
        chi2_base, df_base = calc_baseline(latent_cov, ('Ldrrew', 'Jobcom'), MEDIATION_N)
        chi2, df = implied_fit.chi_square, implied_fit.df

        expected_cfi = 1 - max(chi2 - df, 0.0) / max(chi2 - df, chi2_base - df_base, 0.0)
        expected_tli = ((chi2_base / df_base) - (chi2 / df)) / ((chi2_base / df_base) - 1)

        assert df_base == 5
        assert np.isclose(analysis['path_fit_indices']["cfi.s"], expected_cfi)
        assert np.isclose(analysis['path_fit_indices']["tli.s"], expected_tli)

    def test_fit_measures_read_only(self, analysis):
        implied_fit = analysis['nested_fits']['latent_implied']
        with pytest.raises(TypeError):
            implied_fit.fit_measures['cfi'] = 1.0


class TestPathModelFitAnalyzer:
    """경로모형 적합도 계산 테스트 클래스"""

    def test_eight_indices_in_order(self, analysis):
        result = analysis['path_fit_indices']

        assert isinstance(result, PathFitResult)
        assert tuple(result) == INDEX_LABELS

    def test_rmsea_p_range(self, analysis):
        result = analysis['path_fit_indices']
        lower, upper = result.rmsea_p_interval

        assert 0.0 <= result.rmsea_p <= 1.0
        if np.isfinite(lower) and np.isfinite(upper):
            assert lower <= upper

    def test_nsci_p_at_most_one(self, analysis):
        assert analysis['path_fit_indices'].nsci_p <= 1.0

    def test_nested_degrees_of_freedom(self, analysis):
        stats = analysis['statistics']

        assert stats.df_null > stats.df_full > stats.df_saturated
        assert stats.chi2_null >= stats.chi2_full >= stats.chi2_saturated
        assert stats.structural_df > 0

    def test_latent_implied_covariance(self, analysis):
        implied = analysis['nested_fits']['saturated_structural'].implied_latent_cov

        assert list(implied.index) == MEDIATION_LATENTS
        assert np.allclose(implied.values, implied.values.T)

    def test_hancock_mueller_measures(self, analysis):
        result = analysis['path_fit_indices']

        assert result["srmr.s"] >= 0.0
        assert result["rmsea.s"] >= 0.0
        assert result["cfi.s"] <= 1.0

    def test_model_info(self, analysis):
        info = analysis['model_info']

        assert info['n_observations'] == MEDIATION_N
        assert info['n_structural_equations'] == 2
        assert info['latent_variables'] == MEDIATION_LATENTS

    def test_idempotent(self, fitted):
        assert compute_path_fit_indices(fitted) == compute_path_fit_indices(fitted)

    @pytest.mark.parametrize("obj", [None, "model", {'chi2': 1.0}, pd.DataFrame()])
    def test_invalid_input_kind(self, obj):
        with pytest.raises(InvalidInputKindError):
            compute_path_fit_indices(obj)


class TestResultsExporter:
    """결과 내보내기 테스트 클래스"""

    def test_export_files(self, analysis, tmp_path):
        exporter = PathFitResultsExporter(str(tmp_path / "out"))
        saved_files = exporter.export_comprehensive_results(analysis)

        assert set(saved_files) == {'path_fit_indices', 'nested_fits', 'full_results_json', 'summary_report'}

        indices = pd.read_csv(saved_files['path_fit_indices'], index_col=0, encoding='utf-8-sig')
        assert list(indices.index) == list(INDEX_LABELS)
        assert 'Est' in indices.columns

        with open(saved_files['full_results_json'], encoding='utf-8') as f:
            payload = json.load(f)
        assert payload['model_info']['model_spec'] == analysis['model_info']['model_spec']
        assert set(payload['nested_fits']) == {'null_structural', 'saturated_structural', 'latent_implied'}

    def test_export_result_only(self, analysis, tmp_path):
        exporter = PathFitResultsExporter(str(tmp_path))
        saved_files = exporter.export_comprehensive_results(analysis['path_fit_indices'])

        assert 'nested_fits' not in saved_files
        with open(saved_files['summary_report'], encoding='utf-8') as f:
            assert "PATH FIT INDICES" in f.read()

    def test_non_finite_exported_as_null(self, tmp_path):
        result = PathFitResult(INDEX_LABELS, [float('nan'), float('inf')] + [0.5] * 6)
        saved_files = PathFitResultsExporter(str(tmp_path)).export_comprehensive_results(result)

        with open(saved_files['full_results_json'], encoding='utf-8') as f:
            payload = json.load(f)
        assert payload['path_fit_indices']['RMSEA-P'] is None
        assert payload['path_fit_indices']['RMSEA-P 90% lower bound'] is None
        assert payload['path_fit_indices']['NSCI-P'] == 0.5


class TestCommandLine:
    """명령행 인터페이스 테스트 클래스"""

    def test_example(self, capsys):
        assert main(['--example', '--digits', '3']) == 0
        output = capsys.readouterr().out
        for label in INDEX_LABELS:
            assert label in output

    def test_cov_file(self, tmp_path, mediation_vc, capsys):
        model_file = tmp_path / "model.txt"
        model_file.write_text(MEDIATION_MODEL, encoding='utf-8')
        cov_file = tmp_path / "cov.csv"
        mediation_vc.to_csv(cov_file)

        code = main([str(model_file), '--cov', str(cov_file), '--n', str(MEDIATION_N),
                     '--export', str(tmp_path / "out")])

        assert code == 0
        assert "NSCI-P" in capsys.readouterr().out
        assert any((tmp_path / "out").glob("*.json"))

    def test_cov_without_n(self, tmp_path):
        model_file = tmp_path / "model.txt"
        model_file.write_text(MEDIATION_MODEL, encoding='utf-8')
        with pytest.raises(SystemExit):
            main([str(model_file), '--cov', 'cov.csv'])

    def test_syntax_error_returns_failure(self, tmp_path, capsys):
        model_file = tmp_path / "model.txt"
        model_file.write_text("Jobsat Ldrrew\n", encoding='utf-8')
        cov_file = tmp_path / "cov.csv"
        load_mediation_vc().to_csv(cov_file)

        assert main([str(model_file), '--cov', str(cov_file), '--n', '232']) == 1
        assert "오류" in capsys.readouterr().err
