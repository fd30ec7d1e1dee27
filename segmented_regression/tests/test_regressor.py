"""
Segmented Linear Regression - 검증 테스트
=========================================

테스트 항목:
1. 두 직선 elbow 시나리오
2. 점 1~2개 입력은 단일 구간
3. λ 증가 시 구간 수 비증가
4. 예측 / R² / λ 자동 추정
5. 오류 처리 (λ <= 0, x 비단조, x 간격 언더플로)
6. 비등간격 x에서의 λ 자동 추정

Author: Segmented Regression Project
"""

import warnings

import numpy as np
import pandas as pd
import pytest

from segmented_regression import (
    SegmentedLinearRegression,
    SegmentationConfig,
    segmented_least_squares,
    penalty_path,
    estimate_noise_variance,
    suggest_penalty,
    ConfigurationError,
    InputValidationError,
    NumericalDegeneracyError,
    SegmentedRegressionError
)
from segmented_regression.config import validate_penalty


ELBOW_X = [1, 2, 3, 4, 5, 6]
ELBOW_Y = [1, 2, 3, 10, 11, 12]


def _synthetic_elbow(n: int = 40, seed: int = 42):
    """x=10에서 기울기가 바뀌는 두 직선 + 노이즈"""
    rng = np.random.default_rng(seed)
    x = np.linspace(0, 20, n)
    y = np.where(x < 10, 2 * x, 20 - 0.5 * (x - 10)) + rng.normal(0, 0.1, n)
    return x, y


def test_two_segment_elbow():
    """[0..2], [3..5] 두 구간, 비용 ≈ 0, 최적값 ≈ 2λ"""
    print("=" * 50)
    print("Test: Two Segment Elbow")
    print("=" * 50)

    result = segmented_least_squares(ELBOW_X, ELBOW_Y, penalty=1.0)

    assert result.n_segments == 2, f"구간 수 오류: {result.n_segments}"
    assert [(s.start, s.end) for s in result.segments] == [(0, 2), (3, 5)]
    assert result.breakpoints == [3]

    for seg in result.segments:
        assert seg.cost < 1e-12, f"구간 비용이 0이 아님: {seg.cost}"
        assert np.isclose(seg.slope, 1.0)

    assert np.isclose(result.segments[0].intercept, 0.0, atol=1e-9)
    assert np.isclose(result.segments[1].intercept, 6.0)
    assert np.isclose(result.total_cost, 2.0), f"최적값 오류: {result.total_cost}"

    print(f"  ✓ 구간: {[(s.start, s.end) for s in result.segments]}")
    print(f"  ✓ 최적값: {result.total_cost:.6f} (기대: 2.0)")


def test_single_segment_for_tiny_input():
    """점이 2개 이하면 항상 단일 구간"""
    for x, y in [([3.0], [1.0]), ([0.0, 1.0], [5.0, -5.0])]:
        for penalty in [1e-6, 1.0, 1e6]:
            result = segmented_least_squares(x, y, penalty=penalty)
            assert result.n_segments == 1
            assert result.segments[0].cost == 0.0
            assert np.isclose(result.total_cost, penalty)


def test_cost_consistency():
    """Σ(λ + 구간 비용) == OPT[n-1]"""
    x, y = _synthetic_elbow()

    for penalty in [0.01, 0.5, 10.0]:
        result = segmented_least_squares(x, y, penalty=penalty)
        total = sum(penalty + seg.cost for seg in result.segments)
        assert np.isclose(total, result.total_cost, rtol=1e-9)

        # 분할 불변식
        covered = [k for seg in result.segments for k in range(seg.start, seg.end + 1)]
        assert covered == list(range(len(x)))


def test_penalty_sensitivity():
    """λ가 커질수록 구간 수는 늘지 않음"""
    print("\n" + "=" * 50)
    print("Test: Penalty Sensitivity")
    print("=" * 50)

    x, y = _synthetic_elbow()
    penalties = [0.01, 1.0, 100.0]

    counts = [segmented_least_squares(x, y, penalty=p).n_segments for p in penalties]

    for p, c in zip(penalties, counts):
        print(f"  λ={p}: 구간 {c}개")

    assert all(a >= b for a, b in zip(counts, counts[1:])), f"구간 수가 증가함: {counts}"

    # λ=1에서는 elbow 두 구간을 찾아야 함
    assert counts[1] == 2, f"λ=1 구간 수 오류: {counts[1]}"
    print("  ✓ 구간 수 비증가")


def test_penalty_path_reuses_table():
    """penalty_path 결과가 개별 실행과 동일"""
    x, y = _synthetic_elbow(n=25, seed=3)
    penalties = [0.05, 0.5, 5.0, 50.0]

    path = penalty_path(x, y, penalties, n_jobs=2)

    assert len(path) == len(penalties)
    for p, result in zip(penalties, path):
        single = segmented_least_squares(x, y, penalty=p)
        assert result.penalty == p
        assert [(s.start, s.end) for s in result.segments] == \
            [(s.start, s.end) for s in single.segments]
        assert np.isclose(result.total_cost, single.total_cost)

    counts = [r.n_segments for r in path]
    assert all(a >= b for a, b in zip(counts, counts[1:]))


def test_regressor_fit_predict():
    """fit / predict / score"""
    print("\n" + "=" * 50)
    print("Test: Regressor Fit/Predict")
    print("=" * 50)

    model = SegmentedLinearRegression(penalty=1.0)
    assert repr(model) == "SegmentedLinearRegression(not fitted)"

    model.fit(np.array(ELBOW_X), np.array(ELBOW_Y))

    assert model.get_n_segments() == 2
    assert model.penalty_ == 1.0
    assert model.cost_table_.shape == (6, 6)
    assert len(model.value_table_) == 6
    assert len(model.training_history_) == 2
    assert model.training_history_[-1]['opt_value'] == model.total_cost_

    pred = model.predict([0.0, 2.5, 4.5, 10.0])
    assert np.allclose(pred, [0.0, 2.5, 10.5, 16.0]), f"예측 오류: {pred}"

    # 학습 데이터에서 완전 적합
    assert np.isclose(model.score(ELBOW_X, ELBOW_Y), 1.0)

    print(f"  ✓ {model}")
    print(f"  ✓ 예측: {pred}")


def test_regressor_not_fitted():
    with pytest.raises(RuntimeError):
        SegmentedLinearRegression().predict([1.0])


def test_regressor_auto_penalty():
    """penalty='auto'면 노이즈 분산에서 λ 추정"""
    x, y = _synthetic_elbow(n=60, seed=11)

    model = SegmentedLinearRegression(penalty='auto', noise_method='differences')
    model.fit(x, y)

    expected = suggest_penalty(y, c=5.0, method='differences')
    assert np.isclose(model.penalty_, expected)
    assert model.get_n_segments() >= 1
    assert model.score(x, y) > 0.9


def test_regressor_parallel_matches_serial():
    x, y = _synthetic_elbow(n=30, seed=5)

    serial = SegmentedLinearRegression(penalty=0.5, n_jobs=1).fit(x, y)
    parallel = SegmentedLinearRegression(penalty=0.5, n_jobs=-1).fit(x, y)

    assert [(s.start, s.end) for s in serial.segments_] == \
        [(s.start, s.end) for s in parallel.segments_]
    assert serial.total_cost_ == parallel.total_cost_


def test_result_to_frame():
    result = segmented_least_squares(ELBOW_X, ELBOW_Y)
    frame = result.to_frame()

    assert isinstance(frame, pd.DataFrame)
    assert list(frame['start']) == [0, 3]
    assert list(frame['n_points']) == [3, 3]
    assert np.isclose(frame['cost'].sum(), result.residual_sum)


def test_degenerate_rejection():
    """λ = 0은 설정 오류, x 중복은 입력 오류"""
    print("\n" + "=" * 50)
    print("Test: Degenerate Rejection")
    print("=" * 50)

    with pytest.raises(ConfigurationError):
        segmented_least_squares(ELBOW_X, ELBOW_Y, penalty=0)

    with pytest.raises(ConfigurationError):
        segmented_least_squares(ELBOW_X, ELBOW_Y, penalty=-3.0)

    # 설정 오류가 입력 검증보다 먼저
    with pytest.raises(ConfigurationError):
        segmented_least_squares([1, 1, 2], [1, 2, 3], penalty=0)

    with pytest.raises(InputValidationError):
        segmented_least_squares([1, 1, 2], [1, 2, 3])

    with pytest.raises(InputValidationError):
        segmented_least_squares([], [])

    with pytest.raises(ConfigurationError):
        SegmentedLinearRegression(penalty=0).fit(ELBOW_X, ELBOW_Y)

    with pytest.raises(InputValidationError):
        SegmentedLinearRegression().fit([1, 1, 2], [1, 2, 3])

    # 공통 기본 예외로도 구분 가능
    with pytest.raises(SegmentedRegressionError):
        penalty_path(ELBOW_X, ELBOW_Y, [1.0, 0.0])

    print("  ✓ λ <= 0 → ConfigurationError")
    print("  ✓ x 비단조 → InputValidationError")


def test_tiny_spacing_degeneracy():
    """x 간격이 언더플로 수준이면 NaN 결과 대신 NumericalDegeneracyError"""
    print("\n" + "=" * 50)
    print("Test: Tiny Spacing Degeneracy")
    print("=" * 50)

    x = [0, 1e-170, 2e-170, 3e-170]
    y = [0, 1, 3, 2]

    with pytest.raises(NumericalDegeneracyError):
        segmented_least_squares(x, y, penalty=1e-3)

    with pytest.raises(NumericalDegeneracyError):
        SegmentedLinearRegression(penalty=1e-3).fit(x, y)

    print("  ✓ 언더플로 → NumericalDegeneracyError")


def test_bool_penalty_rejected():
    """True/False는 λ로 받지 않음"""
    for value in [True, False, np.bool_(True)]:
        with pytest.raises(ConfigurationError):
            validate_penalty(value)

    with pytest.raises(ConfigurationError):
        segmented_least_squares(ELBOW_X, ELBOW_Y, penalty=True)

    with pytest.raises(ConfigurationError):
        SegmentationConfig(penalty=True)

    with pytest.raises(ConfigurationError):
        SegmentedLinearRegression(penalty=True).fit(ELBOW_X, ELBOW_Y)

    # numpy 실수는 그대로 허용
    assert validate_penalty(np.float64(2.5)) == 2.5
    assert validate_penalty(3) == 3.0


def test_config_validation():
    config = SegmentationConfig()
    assert config.penalty == 1.0
    assert config.resolved_n_jobs() == 1
    assert SegmentationConfig(n_jobs=-1).resolved_n_jobs() >= 1

    with pytest.raises(ConfigurationError):
        SegmentationConfig(n_jobs=0)

    with pytest.raises(ConfigurationError):
        SegmentationConfig(verbose=-1)

    with pytest.raises(ConfigurationError):
        SegmentationConfig(penalty=float('nan'))

    # numpy 정수는 허용, bool과 실수는 거부
    config = SegmentationConfig(n_jobs=np.int64(2), verbose=np.int32(1))
    assert config.n_jobs == 2 and type(config.n_jobs) is int
    assert config.verbose == 1 and type(config.verbose) is int
    assert config.resolved_n_jobs() == 2

    for kwargs in [{'n_jobs': True}, {'n_jobs': 2.0}, {'verbose': True}]:
        with pytest.raises(ConfigurationError):
            SegmentationConfig(**kwargs)

    with pytest.raises(ConfigurationError):
        SegmentedLinearRegression(n_jobs=True).fit(ELBOW_X, ELBOW_Y)


def test_noise_variance_estimation():
    """노이즈 분산 추정 방법별 동작"""
    rng = np.random.default_rng(0)
    y = 0.5 * np.arange(500) + rng.normal(0, 2.0, 500)

    # 선형 추세 + σ=2 노이즈 → 약 4
    assert 3.0 < estimate_noise_variance(y, 'residuals') < 5.0
    assert 3.0 < estimate_noise_variance(y, 'differences') < 5.0
    assert estimate_noise_variance(y, 'residuals_smooth') > 0

    with pytest.raises(ConfigurationError):
        estimate_noise_variance(y, 'unknown')

    with pytest.raises(ConfigurationError):
        suggest_penalty(y, c=0)


def test_noise_variance_floor_warns():
    """노이즈가 없으면 하한값과 경고"""
    with pytest.warns(RuntimeWarning):
        variance = estimate_noise_variance(np.full(20, 3.0))
    assert variance == 1e-10

    with warnings.catch_warnings():
        warnings.simplefilter('error')
        assert estimate_noise_variance([1.0]) == 1e-10


def test_noise_variance_uses_x():
    """비등간격 x에서는 주어진 x로 직선을 적합"""
    print("\n" + "=" * 50)
    print("Test: Noise Variance With Non-uniform x")
    print("=" * 50)

    x = np.array([0, 1, 2, 4, 8, 16, 32, 64, 128, 256], dtype=float)
    y = 2 * x

    # 인덱스 기준으로는 직선이 아니므로 분산이 크게 나옴
    assert estimate_noise_variance(y) > 1.0

    # 실제 x 기준으로는 완전한 직선 → 하한값
    with pytest.warns(RuntimeWarning):
        assert estimate_noise_variance(y, x=x) == 1e-10

    rng = np.random.default_rng(7)
    x = np.cumsum(rng.exponential(2.0, 200)) + 0.01
    y = 0.3 * x + rng.normal(0, 1.0, 200)
    variance = estimate_noise_variance(y, 'residuals', x=x)
    assert 0.6 < variance < 1.5, f"분산 추정 오류: {variance}"
    assert np.isclose(suggest_penalty(y, c=4.0, x=x), 4.0 * variance)

    # x와 y 길이가 다르면 입력 오류
    with pytest.raises(InputValidationError):
        estimate_noise_variance(y, x=x[:-1])

    print(f"  ✓ 비등간격 x 잔차 분산: {variance:.4f}")


def test_regressor_auto_penalty_uses_x():
    """penalty='auto'는 fit에 주어진 x로 노이즈를 추정"""
    x = np.array([0, 1, 2, 4, 8, 16, 32, 64, 128, 256], dtype=float)
    y = 2 * x

    with pytest.warns(RuntimeWarning):
        model = SegmentedLinearRegression(penalty='auto').fit(x, y)

    assert np.isclose(model.penalty_, 5.0 * 1e-10), f"λ 오류: {model.penalty_}"
    assert model.get_n_segments() == 1

    rng = np.random.default_rng(3)
    x = np.cumsum(rng.uniform(0.2, 3.0, 50))
    y = np.where(x < x[25], x, x[25] - 2 * (x - x[25])) + rng.normal(0, 0.05, 50)

    model = SegmentedLinearRegression(penalty='auto', noise_multiplier=3.0).fit(x, y)
    assert np.isclose(model.penalty_, suggest_penalty(y, c=3.0, x=x))


def test_verbose_output(capsys):
    SegmentedLinearRegression(penalty=1.0, verbose=2).fit(ELBOW_X, ELBOW_Y)
    out = capsys.readouterr().out

    assert "학습 시작" in out
    assert "구간 2개" in out


def run_all_tests():
    """모든 테스트 실행"""
    tests = [
        test_two_segment_elbow,
        test_single_segment_for_tiny_input,
        test_cost_consistency,
        test_penalty_sensitivity,
        test_penalty_path_reuses_table,
        test_regressor_fit_predict,
        test_regressor_not_fitted,
        test_regressor_auto_penalty,
        test_regressor_parallel_matches_serial,
        test_result_to_frame,
        test_degenerate_rejection,
        test_tiny_spacing_degeneracy,
        test_bool_penalty_rejected,
        test_config_validation,
        test_noise_variance_estimation,
        test_noise_variance_floor_warns,
        test_noise_variance_uses_x,
        test_regressor_auto_penalty_uses_x
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"\n  ✗ 테스트 실패 ({test.__name__}): {e}")
            failed += 1

    print("\n" + "=" * 60)
    print(f"테스트 결과: {passed} 통과, {failed} 실패")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    exit(0 if success else 1)
