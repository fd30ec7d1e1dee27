"""
Segmented Least Squares - Dynamic Programming
=============================================

구간 비용 테이블 E가 주어졌을 때, 점열을 연속 구간으로 나누는 최적 분할을
동적 계획법으로 구합니다.

수학적 배경:
-----------
목적 함수 (분할 P에 대해):
    cost(P) = λ * |P| + Σ_{[i, j] ∈ P} E[i][j]

점화식 (0-indexed, 닫힌 구간):
    OPT[j] = min_{0 <= i <= j} ( prev(i) + E[i][j] + λ )

    prev(0) = 0            (앞선 구간 없음)
    prev(i) = OPT[i - 1]   (i > 0)

최적 부분 구조:
    prefix [0, j]의 최적 분할에서 마지막 구간이 [i, j]라면,
    나머지 [0, i-1]도 반드시 최적 분할이어야 함

동점 처리:
    최솟값을 주는 i가 여럿이면 가장 작은 i를 선택
    (= 가장 긴 마지막 구간). 선택된 i를 캐시해 두고 역추적에서 그대로 사용하므로
    복원된 구간과 보고된 최적값이 항상 일치함

역추적:
    j = n-1에서 시작 → i* = best_start[j] → 구간 [i*, j] 기록 → j = i* - 1
    앞선 구간이 없을 때까지 반복

Author: Segmented Regression Project
"""

import numpy as np
from typing import List, Tuple
from dataclasses import dataclass

from .config import validate_penalty
from .exceptions import InputValidationError


@dataclass(frozen=True)
class OptimalValueTable:
    """
    최적값 테이블

    Attributes
    ----------
    values : ndarray of shape (n,)
        OPT[j] = prefix [0, j]의 최소 페널티 비용

    best_starts : ndarray of shape (n,)
        OPT[j]를 달성하는 마지막 구간의 시작 인덱스

    penalty : float
        사용된 λ
    """

    values: np.ndarray
    best_starts: np.ndarray
    penalty: float

    def __len__(self) -> int:
        return len(self.values)

    @property
    def total_cost(self) -> float:
        """전체 점에 대한 최적값 OPT[n-1] (점이 없으면 0)"""
        if len(self.values) == 0:
            return 0.0
        return float(self.values[-1])


def previous_cost(values: np.ndarray, start: int) -> float:
    """
    구간 [start, ...] 앞쪽 prefix의 최적값

    start == 0이면 앞선 구간이 없으므로 0
    """
    if start == 0:
        return 0.0
    return float(values[start - 1])


def optimal_value_table(cost_table: np.ndarray, penalty: float) -> OptimalValueTable:
    """
    OPT 테이블 계산 (j = 0 → n-1 단일 전진 패스)

    Parameters
    ----------
    cost_table : ndarray of shape (n, n)
        segment_cost_table()의 결과

    penalty : float
        구간당 페널티 λ (> 0)

    Returns
    -------
    table : OptimalValueTable
    """
    penalty = validate_penalty(penalty)

    cost_table = np.asarray(cost_table, dtype=float)
    if cost_table.ndim != 2 or cost_table.shape[0] != cost_table.shape[1]:
        raise InputValidationError(
            f"비용 테이블은 정방 행렬이어야 합니다: shape={cost_table.shape}"
        )

    n = cost_table.shape[0]
    values = np.zeros(n)
    best_starts = np.zeros(n, dtype=int)

    for j in range(n):
        # 마지막 구간 [i, j]의 후보 비용
        prev = np.array([previous_cost(values, i) for i in range(j + 1)])
        candidates = prev + cost_table[:j + 1, j] + penalty

        # argmin은 첫 번째 최솟값을 반환 → 가장 작은 i
        best = int(np.argmin(candidates))

        values[j] = candidates[best]
        best_starts[j] = best

    return OptimalValueTable(values=values, best_starts=best_starts, penalty=penalty)


def reconstruct_segments(table: OptimalValueTable) -> List[Tuple[int, int]]:
    """
    최적 분할 역추적

    Returns
    -------
    segments : list of (start, end)
        시작 인덱스 오름차순의 닫힌 구간 목록. 서로 겹치지 않고 0..n-1을 모두 덮음
    """
    segments = []
    end = len(table) - 1

    while end >= 0:
        start = int(table.best_starts[end])
        segments.append((start, end))
        end = start - 1

    # 역추적은 뒤에서부터 진행되므로 뒤집음
    segments.reverse()
    return segments
