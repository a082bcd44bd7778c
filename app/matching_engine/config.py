"""
Matching engine configuration constants.

Fixed points awarded by ``score_match`` and candidate limits used by the
matcher queries.  Scores are unweighted sums capped at 100.
"""

from decimal import Decimal

from app.config import settings

# City match: case-insensitive substring, per side
POINTS_DEPARTURE_CITY = 25
POINTS_ARRIVAL_CITY = 25

# Date proximity: (max days between departure and deadline, points)
# Ordered tightest-first so the first match wins.
DATE_PROXIMITY_TIERS = [
    (7, 30),
    (14, 20),
    (30, 10),
]
POINTS_NO_DEADLINE = 15      # request without deadline is flexible

# Capacity
POINTS_FULL_CAPACITY = 20
POINTS_PARTIAL_CAPACITY = 10
PARTIAL_CAPACITY_RATIO = Decimal("0.7")

MAX_SCORE = 100

# Candidate fetch and result sizes
DEFAULT_LIMIT = settings.MATCHING_DEFAULT_LIMIT
CANDIDATE_LIMIT = settings.MATCHING_CANDIDATE_LIMIT
