"""
Segment Cost Table - Pairwise OLS Residual Costs
================================================

모든 연속 구간 [i, j]에 대해 직선 하나를 최소제곱(OLS)으로 적합했을 때의
잔차 제곱합을 계산합니다.

수학적 배경:
-----------
구간 [i, j]의 점들에 대한 OLS 직선:

    slope     = Σ(x_k - x̄)(y_k - ȳ) / Σ(x_k - x̄)²
    intercept = ȳ - slope * x̄

구간 비용:
    E[i][j] = Σ_{k=i..j} (y_k - (slope * x_k + intercept))²

특수 경우:
    - 점 1개: 어떤 직선이든 통과 가능 → E = 0
    - 점 2개: 두 점을 지나는 직선이 유일 → E = 0
    - x가 모두 같은 구간: 기울기 정의 불가 → NumericalDegeneracyError
    - x 간격이 극히 작아 언더플로/오버플로: 결과가 유한하지 않음 → NumericalDegeneracyError

복잡도:
    O(n²)개의 구간 × 구간당 O(n) → O(n³)
    (수십 개 점 규모를 대상으로 함)

i > j인 칸은 정의되지 않으므로 NaN으로 채웁니다.

Author: Segmented Regression Project
"""

import numpy as np
from typing import Tuple
from dataclasses import dataclass
from concurrent.futures import ThreadPoolExecutor

from .config import is_integer
from .exceptions import InputValidationError, NumericalDegeneracyError, ConfigurationError


@dataclass(frozen=True)
class LineFit:
    """구간 하나에 대한 OLS 적합 결과"""

    slope: float
    intercept: float
    sse: float    # 잔차 제곱합

    def predict(self, x) -> np.ndarray:
        return self.slope * np.asarray(x, dtype=float) + self.intercept


def validate_points(x, y) -> Tuple[np.ndarray, np.ndarray]:
    """
    입력 점 검증

    - x, y는 같은 길이의 1차원 수치 배열
    - 최소 1개의 점
    - NaN / inf 불가
    - x는 순증가 (x_1 < x_2 < ... < x_n)

    Returns
    -------
    x, y : ndarray of shape (n,)
        float로 변환된 배열
    """
    try:
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
    except (TypeError, ValueError) as e:
        raise InputValidationError(f"x, y를 실수 배열로 변환할 수 없습니다: {e}")

    if x.ndim != 1 or y.ndim != 1:
        raise InputValidationError(
            f"x와 y는 1차원 배열이어야 합니다: x.ndim={x.ndim}, y.ndim={y.ndim}"
        )

    if len(x) != len(y):
        raise InputValidationError(
            f"x와 y의 길이가 일치하지 않습니다: {len(x)} vs {len(y)}"
        )

    if len(x) == 0:
        raise InputValidationError("점이 하나 이상 필요합니다 (n = 0)")

    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        raise InputValidationError("x와 y에 NaN 또는 inf가 포함되어 있습니다")

    steps = np.diff(x)
    if np.any(steps <= 0):
        idx = int(np.argmax(steps <= 0)) + 1
        raise InputValidationError(
            f"x는 순증가해야 합니다: x[{idx - 1}]={x[idx - 1]} >= x[{idx}]={x[idx]}"
        )

    return x, y


def fit_line(x: np.ndarray, y: np.ndarray) -> LineFit:
    """
    OLS 직선 적합

    Parameters
    ----------
    x, y : ndarray of shape (m,)
        구간의 점들 (m >= 1)

    Returns
    -------
    fit : LineFit
        기울기, 절편, 잔차 제곱합
    """
    m = len(x)

    if m == 1:
        return LineFit(slope=0.0, intercept=float(y[0]), sse=0.0)

    # 모든 x가 같으면 수직선 → 기울기 정의 불가
    if np.all(x == x[0]):
        raise NumericalDegeneracyError(
            f"구간 내 x 값이 모두 같아 직선을 적합할 수 없습니다: x={x[0]}, 점 {m}개"
        )

    # 간격이 너무 작으면 Σ(x - x̄)²가 0으로 언더플로되거나 기울기가 발산함
    with np.errstate(over='ignore', under='ignore', divide='ignore', invalid='ignore'):
        if m == 2:
            slope = (y[1] - y[0]) / (x[1] - x[0])
            intercept = y[0] - slope * x[0]
            sse = 0.0
        else:
            x_mean = np.mean(x)
            y_mean = np.mean(y)
            dx = x - x_mean
            sxx = np.dot(dx, dx)

            if sxx == 0:
                raise NumericalDegeneracyError(
                    f"구간 내 x 간격이 너무 작아 Σ(x - x̄)²가 0입니다: "
                    f"x=[{x[0]}, ..., {x[-1]}], 점 {m}개"
                )

            slope = np.dot(dx, y - y_mean) / sxx
            intercept = y_mean - slope * x_mean

            residuals = y - (slope * x + intercept)
            sse = np.dot(residuals, residuals)

    if not (np.isfinite(slope) and np.isfinite(intercept) and np.isfinite(sse)):
        raise NumericalDegeneracyError(
            f"직선 적합 결과가 유한하지 않습니다: slope={slope}, intercept={intercept}, "
            f"sse={sse}, x=[{x[0]}, ..., {x[-1]}], 점 {m}개"
        )

    return LineFit(slope=float(slope), intercept=float(intercept), sse=float(sse))


def segment_line(x: np.ndarray, y: np.ndarray, start: int, end: int) -> LineFit:
    """닫힌 구간 [start, end]에 대한 OLS 적합"""
    return fit_line(x[start:end + 1], y[start:end + 1])


def _fill_row(table: np.ndarray, x: np.ndarray, y: np.ndarray, i: int):
    """행 i의 유효한 칸(j >= i)을 채움. 워커마다 서로 다른 행을 씀."""
    for j in range(i, len(x)):
        table[i, j] = fit_line(x[i:j + 1], y[i:j + 1]).sse


def segment_cost_table(
    x,
    y,
    n_jobs: int = 1,
    verbose: int = 0
) -> np.ndarray:
    """
    구간 비용 테이블 E 계산

    Parameters
    ----------
    x, y : array-like of shape (n,)
        x가 순증가하는 점들

    n_jobs : int, default=1
        병렬 스레드 수. 행 단위로 분배하며, 모든 행이 끝난 뒤에 반환

    verbose : int, default=0
        출력 수준

    Returns
    -------
    E : ndarray of shape (n, n)
        E[i, j] = 구간 [i, j]의 OLS 잔차 제곱합 (i <= j), i > j는 NaN
    """
    x, y = validate_points(x, y)
    n = len(x)

    if not is_integer(n_jobs) or n_jobs < 1:
        raise ConfigurationError(f"n_jobs는 1 이상의 정수여야 합니다: {n_jobs!r}")
    n_jobs = int(n_jobs)

    table = np.full((n, n), np.nan)

    if verbose > 0:
        print(f"비용 테이블 계산 시작: 점 {n}개, 구간 {n * (n + 1) // 2}개, 워커 {n_jobs}개")

    if n_jobs == 1 or n < 2:
        for i in range(n):
            _fill_row(table, x, y, i)

            if verbose > 1 and (i + 1) % max(1, n // 10) == 0:
                print(f"행 {i + 1}/{n} 완료")
    else:
        with ThreadPoolExecutor(max_workers=n_jobs) as executor:
            futures = [executor.submit(_fill_row, table, x, y, i) for i in range(n)]

            # 전체 테이블이 채워질 때까지 대기 (워커 예외는 여기서 다시 발생)
            for future in futures:
                future.result()

    return table
