"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, to_utc, to_unix
from utils.keyed_lock import KeyedLock
