"""
Segmentation Visualizer - 분할 회귀 시각화 도구
===============================================

분할 결과와 내부 테이블을 시각화합니다.

주요 기능:
- 데이터 점과 구간별 적합 직선
- 구간 비용 테이블 E 히트맵
- λ 변화에 따른 구간 수 / 최적값
- 구간별 잔차 분석

Author: Segmented Regression Project
"""

import numpy as np
import matplotlib
import matplotlib.pyplot as plt
from scipy import stats
from typing import Optional, List, Sequence, Tuple

from .regressor import SegmentationResult


class SegmentationVisualizer:
    """
    분할 회귀 시각화 클래스

    Parameters
    ----------
    figsize : tuple, default=(12, 6)
        기본 Figure 크기

    style : str, optional
        Matplotlib 스타일

    dpi : int, default=100
        Figure DPI
    """

    def __init__(
        self,
        figsize: Tuple[int, int] = (12, 6),
        style: Optional[str] = None,
        dpi: int = 100
    ):
        self.figsize = figsize
        self.style = style
        self.dpi = dpi

        if self.style:
            plt.style.use(self.style)

        # 색상 팔레트
        self.colors = {
            'primary': '#2E86AB',
            'secondary': '#A23B72',
            'accent': '#F18F01',
            'neutral': '#3B3B3B'
        }
        self.segment_cmap = matplotlib.colormaps["tab10"]

    def plot_segments(
        self,
        x: np.ndarray,
        y: np.ndarray,
        result: SegmentationResult,
        figsize: Optional[Tuple[int, int]] = None,
        title: str = "Segmented Least Squares"
    ) -> plt.Figure:
        """
        데이터 점과 구간별 직선

        Parameters
        ----------
        x, y : ndarray
            학습에 사용한 점
        result : SegmentationResult
            분할 결과
        figsize : tuple, optional
            Figure 크기
        title : str
            그래프 제목

        Returns
        -------
        fig : matplotlib.Figure
        """
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)

        fig, ax = plt.subplots(figsize=figsize or self.figsize, dpi=self.dpi)

        for k, seg in enumerate(result.segments):
            color = self.segment_cmap(k % 10)
            xs = x[seg.start:seg.end + 1]

            ax.scatter(xs, y[seg.start:seg.end + 1], color=color, s=30, alpha=0.8)
            ax.plot([seg.x_start, seg.x_end], seg.predict([seg.x_start, seg.x_end]),
                    color=color, linewidth=2,
                    label=f'[{seg.start}, {seg.end}] slope={seg.slope:.3f}')

        # 구간 경계
        for bp in result.breakpoints:
            ax.axvline(x=(x[bp - 1] + x[bp]) / 2, color='gray', linestyle=':', alpha=0.6)

        ax.set_xlabel('x', fontsize=11)
        ax.set_ylabel('y', fontsize=11)
        ax.set_title(
            f"{title} (λ={result.penalty:.4g}, segments={result.n_segments}, "
            f"OPT={result.total_cost:.4f})",
            fontsize=12, fontweight='bold'
        )
        if result.n_segments <= 10:
            ax.legend(loc='best', fontsize=9)
        ax.grid(True, alpha=0.3)

        plt.tight_layout()
        return fig

    def plot_cost_table(
        self,
        cost_table: np.ndarray,
        figsize: Optional[Tuple[int, int]] = None,
        title: str = "Segment Cost Table E[i, j]"
    ) -> plt.Figure:
        """
        구간 비용 테이블 히트맵 (i > j인 칸은 정의되지 않으므로 가림)
        """
        # 로그 스케일 (0 비용 칸 때문에 log1p)
        masked = np.ma.masked_invalid(np.log1p(np.asarray(cost_table, dtype=float)))

        fig, ax = plt.subplots(figsize=figsize or (8, 7), dpi=self.dpi)

        im = ax.imshow(masked, cmap='viridis', origin='upper')
        cbar = fig.colorbar(im, ax=ax)
        cbar.set_label('log(1 + SSE)', fontsize=10)

        ax.set_xlabel('Segment end j', fontsize=11)
        ax.set_ylabel('Segment start i', fontsize=11)
        ax.set_title(title, fontsize=12, fontweight='bold')

        plt.tight_layout()
        return fig

    def plot_penalty_path(
        self,
        penalties: Sequence[float],
        results: List[SegmentationResult],
        figsize: Optional[Tuple[int, int]] = None,
        title: str = "Penalty Path"
    ) -> plt.Figure:
        """
        λ에 따른 구간 수와 최적값
        """
        if len(penalties) != len(results):
            raise ValueError(
                f"penalties와 results의 길이가 일치하지 않습니다: {len(penalties)} vs {len(results)}"
            )

        fig, axes = plt.subplots(1, 2, figsize=figsize or (14, 5), dpi=self.dpi)

        # 1. 구간 수
        ax1 = axes[0]
        ax1.step(penalties, [r.n_segments for r in results], where='post',
                 color=self.colors['primary'], linewidth=2, marker='o')
        ax1.set_xscale('log')
        ax1.set_xlabel('λ', fontsize=11)
        ax1.set_ylabel('Number of segments', fontsize=11)
        ax1.set_title('Segments vs λ', fontsize=12, fontweight='bold')
        ax1.grid(True, alpha=0.3)

        # 2. 최적값 = 페널티 + 잔차
        ax2 = axes[1]
        ax2.plot(penalties, [r.total_cost for r in results], label='OPT (total)',
                 color=self.colors['secondary'], linewidth=2, marker='o')
        ax2.plot(penalties, [r.residual_sum for r in results], label='Residual SSE',
                 color=self.colors['accent'], linewidth=2, linestyle='--')
        ax2.set_xscale('log')
        ax2.set_xlabel('λ', fontsize=11)
        ax2.set_ylabel('Cost', fontsize=11)
        ax2.set_title('Cost vs λ', fontsize=12, fontweight='bold')
        ax2.legend(loc='upper left')
        ax2.grid(True, alpha=0.3)

        fig.suptitle(title, fontsize=14, fontweight='bold', y=1.02)
        plt.tight_layout()
        return fig

    def plot_residual_analysis(
        self,
        x: np.ndarray,
        y: np.ndarray,
        result: SegmentationResult,
        figsize: Optional[Tuple[int, int]] = None,
        title: str = "Residual Analysis"
    ) -> plt.Figure:
        """
        구간별 잔차와 정규성 확인 (Q-Q Plot)
        """
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)

        residuals = np.empty(len(y))
        for seg in result.segments:
            sl = slice(seg.start, seg.end + 1)
            residuals[sl] = y[sl] - seg.predict(x[sl])

        fig, axes = plt.subplots(1, 2, figsize=figsize or (14, 5), dpi=self.dpi)

        # 1. 잔차 vs x (구간별 색상)
        ax1 = axes[0]
        for k, seg in enumerate(result.segments):
            sl = slice(seg.start, seg.end + 1)
            ax1.scatter(x[sl], residuals[sl], color=self.segment_cmap(k % 10), alpha=0.7)
        ax1.axhline(y=0, color='red', linestyle='--', linewidth=1)
        ax1.set_xlabel('x', fontsize=10)
        ax1.set_ylabel('Residuals', fontsize=10)
        ax1.set_title('Residuals by Segment', fontsize=11, fontweight='bold')
        ax1.grid(True, alpha=0.3)

        # 2. Q-Q Plot
        ax2 = axes[1]
        stats.probplot(residuals, dist="norm", plot=ax2)
        ax2.set_title('Q-Q Plot (Normality Check)', fontsize=11, fontweight='bold')
        ax2.grid(True, alpha=0.3)

        stats_text = (
            f"SSE: {np.sum(residuals ** 2):.4f}\n"
            f"RMSE: {np.sqrt(np.mean(residuals ** 2)):.4f}\n"
            f"MAE: {np.mean(np.abs(residuals)):.4f}"
        )
        fig.text(0.02, 0.02, stats_text, fontsize=9, family='monospace',
                 bbox=dict(boxstyle='round', facecolor='wheat', alpha=0.5))

        fig.suptitle(title, fontsize=14, fontweight='bold', y=1.02)
        plt.tight_layout()
        return fig

    def save_figure(
        self,
        fig: plt.Figure,
        filepath: str,
        dpi: Optional[int] = None
    ):
        """Figure 저장"""
        fig.savefig(filepath, dpi=dpi or self.dpi, bbox_inches='tight',
                    facecolor='white', edgecolor='none')
        print(f"Figure saved: {filepath}")
