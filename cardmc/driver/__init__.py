"""
Drivers that feed the engine: batched convergence runs and fixed-sample
walkthroughs. Cadence and rendering stay with the caller.
"""

from .batch import (
    SampleLog,
    HistoryPoint,
    DemoConfig,
    BatchDriver,
    DEMO_PRESETS,
    demo_config,
    uniform_demo,
    face_biased_demo,
    weighted_convergence_demo,
    mis_convergence_demo,
)
from .walkthrough import WALKTHROUGH_SIZE, StepThrough, weighted_walkthrough, mis_walkthrough

__all__ = [
    'SampleLog',
    'HistoryPoint',
    'DemoConfig',
    'BatchDriver',
    'DEMO_PRESETS',
    'demo_config',
    'uniform_demo',
    'face_biased_demo',
    'weighted_convergence_demo',
    'mis_convergence_demo',
    'WALKTHROUGH_SIZE',
    'StepThrough',
    'weighted_walkthrough',
    'mis_walkthrough',
]
