"""
Redis subsystem, used for distributed scoring locks.
"""

from longevity.core.redis.service import RedisService

__all__ = ["RedisService"]
