"""
Simulation package - Link simulation engine and runners.

Contains:
- Two-endpoint link simulator
- Batch runner for parameter sweeps
"""

from .simulator import LinkSimulator, SimulatorConfig
from .runner import BatchRunner

__all__ = [
    'LinkSimulator',
    'SimulatorConfig',
    'BatchRunner'
]
