"""
Segmented Regression - 최적 분할 선형 회귀
==========================================

순서가 있는 2차원 점들을 연속 구간으로 나누고 구간마다 OLS 직선을 적합합니다.
구간 수에 대한 페널티 λ와 잔차 제곱합의 합을 동적 계획법으로 최소화합니다.

구성:
- segment_cost_table: 구간 [i, j]별 OLS 잔차 제곱합 테이블
- optimal_value_table: OPT 점화식 (단일 전진 패스)
- reconstruct_segments: 역추적으로 구간 복원
- segmented_least_squares / SegmentedLinearRegression: 전체 파이프라인
- SegmentationVisualizer: 결과 시각화

Author: Segmented Regression Project
"""

from .exceptions import (
    SegmentedRegressionError,
    InputValidationError,
    ConfigurationError,
    NumericalDegeneracyError
)
from .config import DEFAULT_PENALTY, SegmentationConfig
from .cost_table import LineFit, fit_line, segment_cost_table, validate_points
from .dynamic_programming import OptimalValueTable, optimal_value_table, reconstruct_segments
from .penalty import estimate_noise_variance, suggest_penalty
from .regressor import (
    Segment,
    SegmentationResult,
    SegmentedLinearRegression,
    segmented_least_squares,
    penalty_path
)
from .visualizer import SegmentationVisualizer

__all__ = [
    'SegmentedRegressionError',
    'InputValidationError',
    'ConfigurationError',
    'NumericalDegeneracyError',
    'DEFAULT_PENALTY',
    'SegmentationConfig',
    'LineFit',
    'fit_line',
    'segment_cost_table',
    'validate_points',
    'OptimalValueTable',
    'optimal_value_table',
    'reconstruct_segments',
    'estimate_noise_variance',
    'suggest_penalty',
    'Segment',
    'SegmentationResult',
    'SegmentedLinearRegression',
    'segmented_least_squares',
    'penalty_path',
    'SegmentationVisualizer'
]

__version__ = '1.0.0'
