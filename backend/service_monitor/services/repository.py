"""Durable service list and notification configuration."""
import json
import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import Service, Setting
from ..models.settings import NOTIFICATIONS_KEY
from ..schemas.notifications import NotificationConfig
from ..utils.db_utils import retry_on_lock
from .checker import ServiceSpec
from .vault import CredentialVault

logger = logging.getLogger(__name__)


class ServiceRepository:
    """Ordered list of monitored services."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def list_specs(self) -> List[ServiceSpec]:
        async with self.session_factory() as session:
            result = await session.execute(select(Service).order_by(Service.id))
            return [self._to_spec(row) for row in result.scalars().all()]

    async def get(self, name: str) -> Optional[ServiceSpec]:
        async with self.session_factory() as session:
            result = await session.execute(select(Service).where(Service.name == name))
            row = result.scalar_one_or_none()
            return self._to_spec(row) if row else None

    async def exists(self, name: str) -> bool:
        return await self.get(name) is not None

    async def add(self, spec: ServiceSpec):
        async with self.session_factory() as session:
            session.add(Service(
                name=spec.name,
                url=spec.url,
                timeout_ms=spec.timeout_ms,
                expected_status=spec.expected_status,
            ))
            await retry_on_lock(session.commit)

    async def remove(self, name: str) -> bool:
        """Delete a service. Returns False if it did not exist."""
        async with self.session_factory() as session:
            result = await session.execute(delete(Service).where(Service.name == name))
            await retry_on_lock(session.commit)
            return result.rowcount > 0

    @staticmethod
    def _to_spec(row: Service) -> ServiceSpec:
        return ServiceSpec(
            name=row.name,
            url=row.url,
            timeout_ms=row.timeout_ms,
            expected_status=row.expected_status,
        )


class NotificationRepository:
    """Notification config stored as one JSON document with encrypted secrets."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], vault: CredentialVault):
        self.session_factory = session_factory
        self.vault = vault

    async def load(self) -> NotificationConfig:
        """Load and decrypt the config; defaults when missing or unreadable."""
        async with self.session_factory() as session:
            result = await session.execute(select(Setting).where(Setting.key == NOTIFICATIONS_KEY))
            setting = result.scalar_one_or_none()

        if setting is None:
            return NotificationConfig()

        try:
            config = NotificationConfig.model_validate(json.loads(setting.value))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            logger.error(f"Stored notification config is unreadable, using defaults: {e}")
            return NotificationConfig()

        config.email.smtp.auth.password = self.vault.decrypt(config.email.smtp.auth.password)
        config.sms.account_sid = self.vault.decrypt(config.sms.account_sid)
        config.sms.auth_token = self.vault.decrypt(config.sms.auth_token)
        return config

    async def save(self, config: NotificationConfig):
        """Encrypt secrets on a copy and store the document."""
        stored = config.model_copy(deep=True)
        stored.email.smtp.auth.password = self.vault.encrypt(stored.email.smtp.auth.password)
        stored.sms.account_sid = self.vault.encrypt(stored.sms.account_sid)
        stored.sms.auth_token = self.vault.encrypt(stored.sms.auth_token)
        value = stored.model_dump_json(by_alias=True, indent=2)

        async with self.session_factory() as session:
            setting = await session.get(Setting, NOTIFICATIONS_KEY)
            if setting:
                setting.value = value
            else:
                session.add(Setting(key=NOTIFICATIONS_KEY, value=value))
            await retry_on_lock(session.commit)
