"""Centralized constants for the mastery engine.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Time ----------
MS_PER_DAY = 86_400_000

# ---------- Concepts ----------
INITIAL_CONFIDENCE = 0.3

# ---------- Baseline Bayesian strategy ----------
DEFAULT_DECAY_RATE = 0.95  # 5% per day
BASELINE_MIN_CONFIDENCE = 0.0
BASELINE_MAX_CONFIDENCE = 1.0
BASELINE_QUIZ_CORRECT = 0.95
BASELINE_QUIZ_INCORRECT = 0.10

# ---------- Dampened Bayesian strategy ----------
DEFAULT_INERTIA = 0.8
DEFAULT_MAX_DAILY_DELTA = 0.08
DAMPENED_MIN_CONFIDENCE = 0.05
DAMPENED_MAX_CONFIDENCE = 0.995
DAMPENED_QUIZ_CORRECT = 0.95
DAMPENED_QUIZ_INCORRECT = 0.30
DAMPENED_QUIZ_INCORRECT_TOLERANT = 0.45  # single miss after mastery
ANOMALY_TOLERANCE_THRESHOLD = 0.75
SLOW_DECAY_THRESHOLD = 0.8
SLOW_DECAY_FACTOR = 0.5

# ---------- Leitner scheduling ----------
MIN_BOX = 1
MAX_BOX = 5
BOX_INTERVAL_DAYS = {1: 1, 2: 3, 3: 7, 4: 14, 5: 30}
MASTERED_BOX = 4  # cards at or above this box count as mastered
DEFAULT_DUE_LIMIT = 20

# ---------- Weak concepts ----------
DEFAULT_WEAK_THRESHOLD = 0.6
DEFAULT_WEAK_LIMIT = 10
CONFIDENCE_WEIGHT = 0.7
TIME_WEIGHT = 0.3
NEVER_REVIEWED_PRIORITY = 0.5
# (days strictly greater than, priority), checked in order
TIME_PRIORITY_STEPS = ((14, 1.0), (7, 0.7), (3, 0.4))
RECENT_PRIORITY = 0.1

# ---------- Dashboard ----------
BEGINNER_UPPER = 0.3
LEARNING_UPPER = 0.6
PROFICIENT_UPPER = 0.8
DASHBOARD_WEAKEST_COUNT = 5
RECENT_ACTIVITY_DAYS = 7
DASHBOARD_DUE_SCAN_LIMIT = 100
