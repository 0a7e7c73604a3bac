"""arq worker settings module.

Import path for arq CLI: arq studyquest.workers.settings.WorkerSettings
"""

from __future__ import annotations

from studyquest.workers.progression_worker import WorkerSettings

__all__ = ["WorkerSettings"]
