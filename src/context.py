"""
Application context — wires the layers together once at startup.

The window receives an AppContext instead of constructing its own database,
repository and client, which keeps the UI free of setup code and lets the
seeding script and tests build the same object graph against :memory:.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from src.config import AppConfig
from src.data.database import Database
from src.data.gateway import PersistenceGateway
from src.services.advisory import AdvisoryClient, RequestTracker
from src.services.goal_repository import GoalRepository
from src.services.notification_service import NotificationCenter

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    config: AppConfig
    db: Database
    gateway: PersistenceGateway
    repo: GoalRepository
    advisory: AdvisoryClient
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    requests: RequestTracker = field(default_factory=RequestTracker)

    @classmethod
    def create(cls, config: AppConfig,
               http_client: Optional[httpx.Client] = None) -> "AppContext":
        db = Database(config.db_path)
        gateway = PersistenceGateway(db.connect())
        repo = GoalRepository(gateway)
        repo.load()
        logger.info("Application context ready (db=%s, offline=%s)",
                    config.db_path, config.offline)
        return cls(
            config=config,
            db=db,
            gateway=gateway,
            repo=repo,
            advisory=AdvisoryClient(config, http_client=http_client),
        )

    @classmethod
    def in_memory(cls, config: Optional[AppConfig] = None,
                  http_client: Optional[httpx.Client] = None) -> "AppContext":
        config = config or AppConfig()
        config.db_path = ":memory:"
        return cls.create(config, http_client=http_client)

    def reset(self) -> None:
        """Wipe stored data and reload the (now empty) state."""
        self.gateway.reset_all_data()
        self.notifications.clear()
        self.repo.load()

    def close(self) -> None:
        self.advisory.close()
        self.db.close()
