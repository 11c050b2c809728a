"""
Static configuration loaded from the environment (and `.env` via python-dotenv).
"""

from longevity.core.config.config import Config, Environment, LockBackend

__all__ = ["Config", "Environment", "LockBackend"]
