"""
VGLA Assessment Engine

Scores the 60-question VGLA forced-choice questionnaire, derives the
user's two-letter combination type and tracks it across retakes.

DESIGN PRINCIPLES:
1. The engine is pure: no I/O, no UI, no global state
2. Fixed business constants are never tunable
3. Deterministic results (pinned tie-break order V > G > L > A)
4. Fail early, fail visibly; never finalize a partial assessment
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "VGLA Engine Team"
