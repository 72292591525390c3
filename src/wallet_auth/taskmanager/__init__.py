"""Task manager: periodic background jobs.

Provides ``TaskManager`` for the nonce sweep and the metrics refresh, both
scheduled as asyncio tasks.
"""

from __future__ import annotations

from wallet_auth.taskmanager.manager import CronJob, TaskManager

__all__ = ["CronJob", "TaskManager"]
