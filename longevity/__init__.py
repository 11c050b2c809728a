"""
Longevity League core.

Badge rule engine, league scoring and leaderboard ranking for a
biological-age competition. See `longevity.core.services.container` for
how the services are wired together.
"""

__version__ = "0.1.0"
