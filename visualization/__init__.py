"""
Visualization package - Plotting tools.

Contains:
- Efficiency heatmap generation
"""

from .heatmap import EfficiencyHeatmap

__all__ = [
    'EfficiencyHeatmap'
]
