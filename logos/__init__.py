"""
LOGOS: adaptive-learning decision engine.

Pure-computation core for a language-learning system:
- ability: IRT ability estimation, item selection and calibration
- study: FSRS review scheduling, response grading, mastery stages
- corpus: collocation (PMI) analysis and difficulty mapping
- graph: priority ranking of learnable items
- adaptive: bottleneck and error-cascade detection

Every entry point takes its state and configuration explicitly and returns
new values; persistence and orchestration live outside this package.
"""

__version__ = "1.0.0"
