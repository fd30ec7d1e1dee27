"""
Segmented Linear Regression - From Scratch Implementation
=========================================================

비용 테이블 → 최적값 테이블 → 역추적 단계를 연결해 최적 분할 회귀 결과를
반환합니다.

처리 흐름:
---------
1. 점 검증 (x 순증가, 길이 일치, n >= 1)
2. 비용 테이블 E 계산 (구간별 OLS 잔차 제곱합)
3. OPT 테이블 계산 (λ 적용)
4. 역추적으로 구간 목록 복원
5. 구간별 직선(기울기, 절편) 적합

E는 λ와 무관하므로 여러 λ를 비교할 때는 한 번만 계산해 재사용합니다
(penalty_path 참고).

Author: Segmented Regression Project
"""

import numpy as np
import pandas as pd
from typing import Optional, List, Dict, Tuple, Union, Sequence
from dataclasses import dataclass, asdict

from .config import DEFAULT_PENALTY, SegmentationConfig, validate_penalty
from .cost_table import validate_points, segment_cost_table, segment_line
from .dynamic_programming import OptimalValueTable, optimal_value_table, reconstruct_segments
from .penalty import suggest_penalty


@dataclass(frozen=True)
class Segment:
    """최적 분할의 구간 하나 (닫힌 인덱스 구간 [start, end])"""

    start: int
    end: int
    slope: float
    intercept: float
    cost: float       # 구간 잔차 제곱합 E[start][end]
    x_start: float
    x_end: float

    @property
    def n_points(self) -> int:
        return self.end - self.start + 1

    def predict(self, x) -> np.ndarray:
        return self.slope * np.asarray(x, dtype=float) + self.intercept

    def to_dict(self) -> Dict:
        result = asdict(self)
        result['n_points'] = self.n_points
        return result


@dataclass(frozen=True)
class SegmentationResult:
    """
    분할 회귀 결과

    Attributes
    ----------
    segments : tuple of Segment
        시작 인덱스 오름차순 구간 목록

    total_cost : float
        최적값 OPT[n-1] = λ * 구간 수 + Σ 구간 비용

    penalty : float
        사용된 λ
    """

    segments: Tuple[Segment, ...]
    total_cost: float
    penalty: float

    @property
    def n_segments(self) -> int:
        return len(self.segments)

    @property
    def breakpoints(self) -> List[int]:
        """두 번째 구간부터의 시작 인덱스"""
        return [seg.start for seg in self.segments[1:]]

    @property
    def residual_sum(self) -> float:
        """페널티를 제외한 잔차 제곱합의 합"""
        return float(sum(seg.cost for seg in self.segments))

    def to_frame(self) -> pd.DataFrame:
        """구간별 한 행의 DataFrame (시각화 / 리포트용)"""
        columns = ['start', 'end', 'n_points', 'x_start', 'x_end', 'slope', 'intercept', 'cost']
        return pd.DataFrame([seg.to_dict() for seg in self.segments], columns=columns)


def _build_result(
    x: np.ndarray,
    y: np.ndarray,
    cost_table: np.ndarray,
    value_table: OptimalValueTable
) -> SegmentationResult:
    """역추적한 구간마다 직선을 적합해 결과 객체 구성"""
    segments = []
    for start, end in reconstruct_segments(value_table):
        line = segment_line(x, y, start, end)
        segments.append(Segment(
            start=start,
            end=end,
            slope=line.slope,
            intercept=line.intercept,
            cost=float(cost_table[start, end]),
            x_start=float(x[start]),
            x_end=float(x[end])
        ))

    return SegmentationResult(
        segments=tuple(segments),
        total_cost=value_table.total_cost,
        penalty=value_table.penalty
    )


def segmented_least_squares(
    x,
    y,
    penalty: float = DEFAULT_PENALTY,
    n_jobs: int = 1,
    verbose: int = 0
) -> SegmentationResult:
    """
    최적 분할 선형 회귀

    Parameters
    ----------
    x : array-like of shape (n,)
        순증가하는 x 좌표

    y : array-like of shape (n,)
        y 좌표

    penalty : float, default=1.0
        구간당 페널티 λ (> 0). 클수록 구간 수가 줄어듦

    n_jobs : int, default=1
        비용 테이블 계산 스레드 수 (-1이면 전체 CPU)

    verbose : int, default=0
        출력 수준

    Returns
    -------
    result : SegmentationResult

    Examples
    --------
    >>> from segmented_regression import segmented_least_squares
    >>> result = segmented_least_squares([1, 2, 3, 4, 5, 6], [1, 2, 3, 10, 11, 12])
    >>> [(seg.start, seg.end) for seg in result.segments]
    [(0, 2), (3, 5)]
    """
    # 계산 전에 설정부터 검증
    config = SegmentationConfig(penalty=penalty, n_jobs=n_jobs, verbose=verbose)
    x, y = validate_points(x, y)

    cost_table = segment_cost_table(x, y, n_jobs=config.resolved_n_jobs(), verbose=config.verbose)
    value_table = optimal_value_table(cost_table, config.penalty)
    result = _build_result(x, y, cost_table, value_table)

    if config.verbose > 0:
        print(f"분할 완료: 구간 {result.n_segments}개, 최적값 {result.total_cost:.6f}")

    return result


def penalty_path(
    x,
    y,
    penalties: Sequence[float],
    n_jobs: int = 1
) -> List[SegmentationResult]:
    """
    여러 λ에 대한 분할 결과

    비용 테이블은 λ와 무관하므로 한 번만 계산합니다.

    Returns
    -------
    results : list of SegmentationResult
        penalties와 같은 순서
    """
    penalties = [validate_penalty(p) for p in penalties]
    config = SegmentationConfig(n_jobs=n_jobs)
    x, y = validate_points(x, y)

    cost_table = segment_cost_table(x, y, n_jobs=config.resolved_n_jobs())

    return [
        _build_result(x, y, cost_table, optimal_value_table(cost_table, p))
        for p in penalties
    ]


class SegmentedLinearRegression:
    """
    최적 분할 선형 회귀 모델 (From Scratch)

    Parameters
    ----------
    penalty : float or 'auto', default=1.0
        구간당 페널티 λ. 'auto'면 노이즈 분산으로부터 추정
        (λ = noise_multiplier * σ̂²)

    n_jobs : int, default=1
        비용 테이블 계산 스레드 수 (-1이면 전체 CPU)

    noise_method : str, default='residuals'
        penalty='auto'일 때의 분산 추정 방법

    noise_multiplier : float, default=5.0
        penalty='auto'일 때의 배수 c

    verbose : int, default=0
        출력 수준

    Attributes
    ----------
    segments_ : list of Segment
        최적 분할 구간

    total_cost_ : float
        최적값 OPT[n-1]

    penalty_ : float
        실제 사용된 λ

    cost_table_ : ndarray of shape (n, n)
        구간 비용 테이블 E

    value_table_ : OptimalValueTable
        OPT 테이블과 구간 시작 인덱스 캐시

    result_ : SegmentationResult
        전체 결과

    training_history_ : list of dict
        구간별 적합 기록 (시각화용)

    Examples
    --------
    >>> from segmented_regression import SegmentedLinearRegression
    >>> import numpy as np
    >>> x = np.arange(1, 7)
    >>> y = np.array([1, 2, 3, 10, 11, 12])
    >>> model = SegmentedLinearRegression(penalty=1.0)
    >>> model.fit(x, y)
    >>> model.predict(np.array([2.5, 4.5]))
    array([ 2.5, 10.5])
    """

    def __init__(
        self,
        penalty: Union[float, str] = DEFAULT_PENALTY,
        n_jobs: int = 1,
        noise_method: str = 'residuals',
        noise_multiplier: float = 5.0,
        verbose: int = 0
    ):
        self.penalty = penalty
        self.n_jobs = n_jobs
        self.noise_method = noise_method
        self.noise_multiplier = noise_multiplier
        self.verbose = verbose

        # 학습 후 설정되는 속성들
        self.segments_: List[Segment] = []
        self.total_cost_: Optional[float] = None
        self.penalty_: Optional[float] = None
        self.cost_table_: Optional[np.ndarray] = None
        self.value_table_: Optional[OptimalValueTable] = None
        self.result_: Optional[SegmentationResult] = None

        # 학습 과정 기록 (시각화용)
        self.training_history_: List[Dict] = []

    def _is_auto_penalty(self) -> bool:
        return isinstance(self.penalty, str) and self.penalty == 'auto'

    def fit(self, x, y) -> 'SegmentedLinearRegression':
        """
        최적 분할 학습

        Parameters
        ----------
        x : array-like of shape (n,)
            순증가하는 x 좌표
        y : array-like of shape (n,)
            y 좌표

        Returns
        -------
        self : SegmentedLinearRegression
            학습된 모델
        """
        # 고정 λ는 데이터를 보기 전에 검증
        if not self._is_auto_penalty():
            validate_penalty(self.penalty)

        x, y = validate_points(x, y)

        if self._is_auto_penalty():
            penalty = suggest_penalty(
                y, c=self.noise_multiplier, method=self.noise_method, x=x
            )
        else:
            penalty = self.penalty

        config = SegmentationConfig(penalty=penalty, n_jobs=self.n_jobs, verbose=self.verbose)

        if self.verbose > 0:
            print(f"Segmented Regression 학습 시작: 점 {len(x)}개, λ={config.penalty:.4g}")

        self.cost_table_ = segment_cost_table(
            x, y, n_jobs=config.resolved_n_jobs(), verbose=config.verbose
        )
        self.value_table_ = optimal_value_table(self.cost_table_, config.penalty)
        self.result_ = _build_result(x, y, self.cost_table_, self.value_table_)

        self.segments_ = list(self.result_.segments)
        self.total_cost_ = self.result_.total_cost
        self.penalty_ = config.penalty

        # 학습 과정 기록
        self.training_history_ = [
            {
                'segment_idx': k + 1,
                'start': seg.start,
                'end': seg.end,
                'n_points': seg.n_points,
                'cost': seg.cost,
                'opt_value': float(self.value_table_.values[seg.end])
            }
            for k, seg in enumerate(self.segments_)
        ]

        if self.verbose > 0:
            print(f"구간 {len(self.segments_)}개, 최적값 {self.total_cost_:.6f}")

        return self

    def _check_fitted(self):
        if self.result_ is None:
            raise RuntimeError("모델이 학습되지 않았습니다. fit()을 먼저 호출하세요.")

    def predict(self, x) -> np.ndarray:
        """
        예측 수행

        각 x는 x_start <= x인 마지막 구간의 직선으로 예측합니다.
        첫 구간보다 왼쪽은 첫 구간, 마지막 구간보다 오른쪽은 마지막 구간으로 외삽.

        Parameters
        ----------
        x : array-like of shape (m,)

        Returns
        -------
        y_pred : ndarray of shape (m,)
        """
        self._check_fitted()

        x = np.asarray(x, dtype=float)
        if x.ndim == 0:
            x = x.reshape(1)

        starts = np.array([seg.x_start for seg in self.segments_])
        idx = np.clip(np.searchsorted(starts, x, side='right') - 1, 0, len(starts) - 1)

        slopes = np.array([seg.slope for seg in self.segments_])
        intercepts = np.array([seg.intercept for seg in self.segments_])

        return slopes[idx] * x + intercepts[idx]

    def score(self, x, y) -> float:
        """R² 점수"""
        y = np.asarray(y, dtype=float)
        y_pred = self.predict(x)

        ss_res = np.sum((y - y_pred) ** 2)
        ss_tot = np.sum((y - np.mean(y)) ** 2)

        return float(1 - ss_res / ss_tot) if ss_tot > 0 else 0.0

    def get_n_segments(self) -> int:
        """구간 수 반환"""
        return len(self.segments_)

    def __repr__(self) -> str:
        if self.result_ is None:
            return "SegmentedLinearRegression(not fitted)"

        return (
            f"SegmentedLinearRegression("
            f"penalty={self.penalty_:.4g}, "
            f"n_segments={self.get_n_segments()}, "
            f"total_cost={self.total_cost_:.4f})"
        )
