"""Tenant application registration and key lookup."""
from __future__ import annotations

import base64
import secrets
from typing import Iterable, Optional

from loguru import logger

from pushgate.config import settings
from pushgate.db.models import Application
from pushgate.schemas.application import ApplicationCreated, ApplicationIdentity
from pushgate.schemas.results import RequestResult
from pushgate.services.store import SubscriptionStore
from pushgate.utils.exceptions import result_from_exception
from pushgate.utils.validation import RequestValidator

KEY_BYTES = 48


def generate_key() -> str:
    """Return a new opaque bearer secret."""
    return base64.b64encode(secrets.token_bytes(KEY_BYTES)).decode("ascii")


class ApplicationService:
    """Create applications and resolve bearer keys into identities."""

    def __init__(self, store: SubscriptionStore):
        self.store = store

    def create(self, name: str, owner_ids: Optional[Iterable[str]] = None) -> RequestResult:
        validator = RequestValidator().not_blank("name", name)
        if not validator.valid:
            return RequestResult.was_bad_request(data=validator.issues)
        if self.store.application_by_name(name) is not None:
            return RequestResult.was_bad_request(
                data=RequestValidator().add("name", "name is already taken").issues
            )

        try:
            return RequestResult.was_ok(data=self._insert(name, list(owner_ids or []), is_admin=False))
        except Exception as exc:
            return result_from_exception(exc, "create_application", name=name)

    def create_admin(self) -> RequestResult:
        """Create the admin application; only allowed while no application exists."""
        try:
            if self.store.count(Application) > 0:
                logger.warning("Admin application bootstrap refused, applications already exist")
                return RequestResult.was_unauthorized()
            return RequestResult.was_ok(
                data=self._insert(settings.ADMIN_APPLICATION_NAME, [], is_admin=True)
            )
        except Exception as exc:
            return result_from_exception(exc, "create_admin_application")

    def authenticate(self, key: Optional[str]) -> Optional[ApplicationIdentity]:
        if not key:
            return None
        application = self.store.application_by_key(key)
        if application is None:
            return None
        return ApplicationIdentity(id=application.id, name=application.name, is_admin=application.is_admin)

    def _insert(self, name: str, owner_ids: list[str], is_admin: bool) -> ApplicationCreated:
        key = generate_key()
        application = self.store.insert(
            Application(name=name, secret=key, owner_ids=owner_ids, is_admin=is_admin)
        )
        logger.info("Application created", application_id=str(application.id), is_admin=is_admin)
        return ApplicationCreated(id=application.id, key=key)
