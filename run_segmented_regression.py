#!/usr/bin/env python3
"""
Segmented Least Squares Demo
============================
동적 계획법 기반 최적 분할 선형 회귀 실행 스크립트

실행 단계:
1. 데이터 로드 (CSV 또는 합성 elbow 데이터)
2. 고정 λ로 분할 회귀
3. λ 자동 추정 결과 비교
4. Penalty path (λ별 구간 수 / 최적값)
5. 그래프 저장 (report_images/)

Author: Segmented Regression Project
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple, List

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from segmented_regression import (
    SegmentedLinearRegression,
    SegmentationVisualizer,
    penalty_path
)


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class Config:
    """실험 설정"""
    # CSV가 없으면 합성 데이터 사용
    data_path: Optional[str] = None
    x_col: str = 'x'
    y_col: str = 'y'

    # 합성 데이터 설정
    n_points: int = 60
    noise_std: float = 0.4
    random_seed: int = 42

    # 분할 설정
    penalty: float = 1.0
    n_jobs: int = 1
    penalties: List[float] = field(
        default_factory=lambda: [0.01, 0.03, 0.1, 0.3, 1.0, 3.0, 10.0, 30.0, 100.0, 300.0]
    )

    output_dir: str = 'report_images'


CONFIG = Config()


# =============================================================================
# Data
# =============================================================================

def load_data(config: Config) -> Tuple[np.ndarray, np.ndarray]:
    """CSV를 읽어 x 기준 정렬, 없으면 세 구간 합성 데이터 생성"""
    if config.data_path:
        df = pd.read_csv(config.data_path)
        df = df[[config.x_col, config.y_col]].dropna()
        df = df.sort_values(config.x_col).drop_duplicates(subset=config.x_col)
        return df[config.x_col].to_numpy(dtype=float), df[config.y_col].to_numpy(dtype=float)

    rng = np.random.default_rng(config.random_seed)
    x = np.linspace(0, 30, config.n_points)
    y = np.piecewise(
        x,
        [x < 10, (x >= 10) & (x < 20), x >= 20],
        [lambda t: 1.5 * t, lambda t: 15 - 0.5 * (t - 10), lambda t: 10 + 2.0 * (t - 20)]
    )
    return x, y + rng.normal(0, config.noise_std, len(x))


def print_segments(model: SegmentedLinearRegression):
    frame = model.result_.to_frame()
    print(frame.to_string(index=False, float_format=lambda v: f"{v:.4f}"))


# =============================================================================
# Main
# =============================================================================

def main(config: Config = CONFIG):
    print("=" * 70)
    print("SEGMENTED LEAST SQUARES")
    print("=" * 70)
    print(f"Start: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    print("\n[1/5] Loading data...")
    x, y = load_data(config)
    print(f"      Points: {len(x)}")
    print(f"      x range: {x.min():.3f} ~ {x.max():.3f}")

    print(f"\n[2/5] Fitting with fixed λ={config.penalty}...")
    model = SegmentedLinearRegression(penalty=config.penalty, n_jobs=config.n_jobs, verbose=1)
    model.fit(x, y)
    print_segments(model)
    print(f"      R²: {model.score(x, y):.4f}")

    print("\n[3/5] Fitting with estimated λ...")
    auto_model = SegmentedLinearRegression(penalty='auto', n_jobs=config.n_jobs)
    auto_model.fit(x, y)
    print(f"      {auto_model}")

    print("\n[4/5] Penalty path...")
    results = penalty_path(x, y, config.penalties, n_jobs=config.n_jobs)
    for p, r in zip(config.penalties, results):
        print(f"      λ={p:>8.2f}  segments={r.n_segments:>3d}  OPT={r.total_cost:.4f}")

    print("\n[5/5] Saving figures...")
    os.makedirs(config.output_dir, exist_ok=True)
    viz = SegmentationVisualizer(dpi=150)

    figures = {
        'segments.png': viz.plot_segments(x, y, model.result_),
        'cost_table.png': viz.plot_cost_table(model.cost_table_),
        'penalty_path.png': viz.plot_penalty_path(config.penalties, results),
        'residuals.png': viz.plot_residual_analysis(x, y, model.result_),
    }
    for name, fig in figures.items():
        viz.save_figure(fig, os.path.join(config.output_dir, name))
        plt.close(fig)

    print("\n" + "=" * 70)
    print(f"Done: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70)

    return model


if __name__ == "__main__":
    main()
