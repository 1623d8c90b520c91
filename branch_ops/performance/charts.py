# branch_ops/performance/charts.py
"""
Altair Chart Builders for Branch Performance

- Target vs actual bars per indicator
- Indicator history (target vs real per day / week)
- Advisor ranking bars
- Fenix compliance bars per advisor
"""

import logging
from typing import List

import altair as alt
import pandas as pd

from .constants import CHART_HEIGHT, CHART_WIDTH, COLORS

logger = logging.getLogger(__name__)


class BranchCharts:
    """
    Chart builders for the branch dashboard.

    All methods are static - can be called without instantiation.

    Usage:
        chart = BranchCharts.build_target_vs_actual_chart(metrics_df)
        st.altair_chart(chart, use_container_width=True)
    """

    @staticmethod
    def _empty_chart(message: str = "Sin datos") -> alt.Chart:
        """Create an empty chart with a message."""
        return alt.Chart(pd.DataFrame({'note': [message]})).mark_text(
            text=message,
            fontSize=16,
            color=COLORS['text_dark']
        ).properties(
            width=CHART_WIDTH,
            height=200
        )

    # =========================================================================
    # TARGET VS ACTUAL
    # =========================================================================

    @staticmethod
    def build_target_vs_actual_chart(metrics_df: pd.DataFrame, title: str = "🎯 Meta vs Real") -> alt.Chart:
        """
        Grouped bars of target and actual per indicator.

        Args:
            metrics_df: BranchMetrics.metrics_to_dataframe output
        """
        if metrics_df.empty:
            return BranchCharts._empty_chart()

        long_df = metrics_df.melt(
            id_vars=['indicator', 'percentage'],
            value_vars=['target', 'actual'],
            var_name='Serie',
            value_name='Valor',
        )
        long_df['Serie'] = long_df['Serie'].map({'target': 'Meta', 'actual': 'Real'})

        color_scale = alt.Scale(domain=['Meta', 'Real'], range=[COLORS['target'], COLORS['actual']])

        return alt.Chart(long_df).mark_bar().encode(
            y=alt.Y('indicator:N', title='', sort=list(metrics_df['indicator'])),
            yOffset='Serie:N',
            x=alt.X('Valor:Q', title='', axis=alt.Axis(format='~s')),
            color=alt.Color('Serie:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            tooltip=[
                alt.Tooltip('indicator:N', title='Indicador'),
                alt.Tooltip('Serie:N'),
                alt.Tooltip('Valor:Q', format=',.0f'),
                alt.Tooltip('percentage:Q', title='Cumplimiento %', format='.0f'),
            ]
        ).properties(
            width=CHART_WIDTH,
            height=max(300, len(metrics_df) * 40),
            title=title
        )

    @staticmethod
    def build_history_chart(history_df: pd.DataFrame, title: str = "") -> alt.Chart:
        """Target line over real bars for BranchMetrics.indicator_history output."""
        if history_df.empty:
            return BranchCharts._empty_chart()

        order = list(history_df['label'])

        bars = alt.Chart(history_df).mark_bar(color=COLORS['actual']).encode(
            x=alt.X('label:N', sort=order, title=''),
            y=alt.Y('real:Q', title=''),
            tooltip=[
                alt.Tooltip('label:N', title='Periodo'),
                alt.Tooltip('real:Q', title='Real', format=',.0f'),
                alt.Tooltip('target:Q', title='Meta', format=',.0f'),
                alt.Tooltip('prev:Q', title='Anterior', format=',.0f'),
            ]
        )

        line = alt.Chart(history_df).mark_line(
            color=COLORS['target'], point=True, strokeDash=[4, 2]
        ).encode(
            x=alt.X('label:N', sort=order),
            y=alt.Y('target:Q'),
        )

        return alt.layer(bars, line).properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)

    # =========================================================================
    # RANKING / COMPLIANCE
    # =========================================================================

    @staticmethod
    def build_ranking_chart(scores: List, title: str = "🏆 Ranking de Asesores") -> alt.Chart:
        """Horizontal bars of AdvisorScore percentages, best on top."""
        if not scores:
            return BranchCharts._empty_chart()

        df = pd.DataFrame([
            {'advisor': s.advisor.name, 'percentage': s.percentage, 'points': s.score_points}
            for s in scores
        ])
        df['color_flag'] = df['percentage'] >= 100

        bars = alt.Chart(df).mark_bar().encode(
            y=alt.Y('advisor:N', sort='-x', title=''),
            x=alt.X('percentage:Q', title='Puntaje %'),
            color=alt.condition(
                alt.datum.color_flag,
                alt.value(COLORS['achievement_good']),
                alt.value(COLORS['achievement_bad'])
            ),
            tooltip=[
                alt.Tooltip('advisor:N', title='Asesor'),
                alt.Tooltip('percentage:Q', title='Puntaje %'),
                alt.Tooltip('points:Q', title='Puntos'),
            ]
        )

        text = alt.Chart(df).mark_text(align='left', dx=5, fontSize=11).encode(
            y=alt.Y('advisor:N', sort='-x'),
            x=alt.X('percentage:Q'),
            text=alt.Text('percentage:Q', format='.0f'),
            color=alt.value(COLORS['text_dark'])
        )

        return alt.layer(bars, text).properties(
            width=CHART_WIDTH,
            height=max(200, len(df) * 30),
            title=title
        )

    @staticmethod
    def build_compliance_chart(compliance_df: pd.DataFrame, title: str = "🛡️ Cumplimiento Fénix") -> alt.Chart:
        """
        Bars of weekly protected-time compliance per advisor.

        Args:
            compliance_df: columns advisor, planned, completed, percentage
        """
        if compliance_df.empty:
            return BranchCharts._empty_chart()

        return alt.Chart(compliance_df).mark_bar().encode(
            y=alt.Y('advisor:N', sort='-x', title=''),
            x=alt.X('percentage:Q', title='Cumplimiento %', scale=alt.Scale(domain=[0, 100])),
            color=alt.Color(
                'percentage:Q',
                scale=alt.Scale(
                    domain=[0, 80, 100],
                    range=[COLORS['achievement_bad'], COLORS['achievement_warn'], COLORS['achievement_good']],
                ),
                legend=None,
            ),
            tooltip=[
                alt.Tooltip('advisor:N', title='Asesor'),
                alt.Tooltip('completed:Q', title='Cumplidos'),
                alt.Tooltip('planned:Q', title='Planeados'),
                alt.Tooltip('percentage:Q', title='%'),
            ]
        ).properties(
            width=CHART_WIDTH,
            height=max(200, len(compliance_df) * 30),
            title=title
        )


__all__ = ['BranchCharts']
