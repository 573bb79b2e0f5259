"""
Deterministic weight normalization rules.

This file exists to make the numeric contract explicit and enforceable.
"""

PRECISION = 2  # decimal places for every reported weight
SUM_TOLERANCE = 0.001
TARGET_SUM = 1.0
MAX_PASSES = 3
DEFAULT_MISSING_WEIGHT = 0.2

UNNAMED_CRITERION = "Unnamed Criterion"
RUBRIC_KEYS = ("scoringRubric", "rubricCriteria")
LABEL_KEYS = {"scoringRubric": "criterion", "rubricCriteria": "name"}
