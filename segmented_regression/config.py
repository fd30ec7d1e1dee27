"""
Segmented Regression 설정
=========================

λ(구간 페널티)와 실행 옵션을 명시적인 설정 객체로 전달합니다.
전역 가변 상태는 사용하지 않습니다.
"""

import os
import math
import numbers
from dataclasses import dataclass

import numpy as np

from .exceptions import ConfigurationError


# 구간 하나당 부과되는 기본 페널티
DEFAULT_PENALTY = 1.0


def validate_penalty(penalty) -> float:
    """
    페널티 λ 검증

    λ는 유한한 양수여야 함. λ = 0이면 모든 점을 각자 구간으로 두는
    퇴화 해가 되고, 음수면 구간을 늘릴수록 비용이 줄어듦.
    """
    # bool은 int의 하위 클래스지만 λ로 의미가 없음
    if isinstance(penalty, (bool, np.bool_)):
        raise ConfigurationError(f"penalty는 실수여야 합니다: {penalty!r}")

    try:
        value = float(penalty)
    except (TypeError, ValueError):
        raise ConfigurationError(f"penalty는 실수여야 합니다: {penalty!r}")

    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"penalty는 유한한 양수여야 합니다: {penalty!r}")

    return value


def is_integer(value) -> bool:
    """정수 여부 (numpy 정수 포함, bool 제외)"""
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


@dataclass(frozen=True)
class SegmentationConfig:
    """
    분할 회귀 실행 설정

    Parameters
    ----------
    penalty : float, default=1.0
        구간 하나당 페널티 λ (> 0)

    n_jobs : int, default=1
        비용 테이블 계산 스레드 수. -1이면 전체 CPU 사용

    verbose : int, default=0
        출력 수준
    """
    penalty: float = DEFAULT_PENALTY
    n_jobs: int = 1
    verbose: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'penalty', validate_penalty(self.penalty))

        if not is_integer(self.n_jobs) or (self.n_jobs != -1 and self.n_jobs < 1):
            raise ConfigurationError(f"n_jobs는 -1 또는 1 이상의 정수여야 합니다: {self.n_jobs!r}")

        if not is_integer(self.verbose) or self.verbose < 0:
            raise ConfigurationError(f"verbose는 0 이상의 정수여야 합니다: {self.verbose!r}")

        object.__setattr__(self, 'n_jobs', int(self.n_jobs))
        object.__setattr__(self, 'verbose', int(self.verbose))

    def resolved_n_jobs(self) -> int:
        """실제 사용할 워커 수"""
        if self.n_jobs == -1:
            return os.cpu_count() or 1
        return self.n_jobs
