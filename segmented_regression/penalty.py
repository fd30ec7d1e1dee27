"""
Penalty Selection - 노이즈 분산 기반 λ 추정
==========================================

λ는 "구간 하나를 추가하려면 잔차 제곱합이 최소 λ만큼 줄어야 한다"는 의미이므로
데이터의 노이즈 수준에 비례하게 잡는 것이 자연스럽습니다.

    λ = c * σ̂²

σ̂² 추정 방법:
    - 'residuals': 전체 데이터에 직선 하나를 적합한 잔차의 분산 (x가 없으면 등간격 가정)
    - 'differences': 1차 차분의 분산 / 2 (추세에 둔감)
    - 'residuals_smooth': 중심 이동평균 대비 잔차의 분산

c는 보통 3~10 범위에서 선택합니다.
"""

import warnings
import numpy as np

from .cost_table import fit_line, validate_points
from .exceptions import ConfigurationError


# 분산 추정값의 하한
MIN_VARIANCE = 1e-10

NOISE_METHODS = ('residuals', 'differences', 'residuals_smooth')


def _moving_average(y: np.ndarray, window_size: int) -> np.ndarray:
    """중심 이동평균 (양 끝은 창을 잘라서 평균)"""
    n = len(y)
    if window_size <= 1 or n <= window_size:
        return y.copy()

    half = window_size // 2
    result = np.empty(n)
    for i in range(n):
        result[i] = np.mean(y[max(0, i - half):min(n, i + half + 1)])

    return result


def estimate_noise_variance(y, method: str = 'residuals', x=None) -> float:
    """
    노이즈 분산 추정

    Parameters
    ----------
    y : array-like of shape (n,)
        관측값

    method : str, default='residuals'
        'residuals', 'differences', 'residuals_smooth'

    x : array-like of shape (n,), optional
        y에 대응하는 순증가 x. 'residuals' 직선 적합에 사용하며,
        없으면 등간격 인덱스 0..n-1로 가정

    Returns
    -------
    variance : float
        추정된 노이즈 분산 (하한 MIN_VARIANCE)
    """
    if method not in NOISE_METHODS:
        raise ConfigurationError(
            f"method는 {', '.join(NOISE_METHODS)} 중 하나여야 합니다: {method!r}"
        )

    if x is not None:
        x, y = validate_points(x, y)
    else:
        y = np.asarray(y, dtype=float).ravel()
    n = len(y)
    if n <= 1:
        return MIN_VARIANCE

    if method == 'residuals':
        if x is None:
            x = np.arange(n, dtype=float)
        residuals = y - fit_line(x, y).predict(x)
        variance = np.var(residuals, ddof=1)

    elif method == 'differences':
        variance = np.var(np.diff(y), ddof=1) / 2 if n > 2 else 0.0

    else:
        window_size = max(3, min(10, n // 10))
        if window_size % 2 == 0:
            window_size += 1  # 홀수 창
        residuals = y - _moving_average(y, window_size)
        variance = np.var(residuals, ddof=1)

    if variance < MIN_VARIANCE:
        warnings.warn(
            f"추정된 노이즈 분산이 너무 작아 하한값 {MIN_VARIANCE}을 사용합니다",
            RuntimeWarning
        )
        return MIN_VARIANCE

    return float(variance)


def suggest_penalty(y, c: float = 5.0, method: str = 'residuals', x=None) -> float:
    """
    노이즈 분산에 비례하는 λ 제안

    λ = c * σ̂²
    """
    if not np.isfinite(c) or c <= 0:
        raise ConfigurationError(f"c는 유한한 양수여야 합니다: {c!r}")

    return c * estimate_noise_variance(y, method, x=x)
