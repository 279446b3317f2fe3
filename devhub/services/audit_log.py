from __future__ import annotations

import inspect
import logging
import uuid
from datetime import date, datetime
from enum import Enum
from functools import wraps
from typing import Any, ClassVar, Iterable, Mapping, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from devhub.config import Settings
from devhub.db.database import DataBase
from devhub.db.schemas.audit_log import AuditLogCreate, AuditLogRead
from devhub.utils.sentinels import Missing


class AuditLogService:
    """
    Persists one ``audit_log`` row per workflow action (intake, review, extras, likes).

    Payloads are normalised into JSON-friendly structures before they reach
    :class:`devhub.db.database.DataBase`. Actors are the integer reviewer/admin
    ids handed over by the credential verifier; anonymous actions carry none.
    """

    _instance: ClassVar[Optional["AuditLogService"]] = None

    def __new__(cls) -> "AuditLogService":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        self._logger = logging.getLogger("devhub.audit")
        self._initialized = True

    @property
    def _database(self) -> DataBase:
        # resolved per call so a re-created DataBase singleton is picked up
        return DataBase()

    @property
    def enabled(self) -> bool:
        return Settings().audit_enabled

    async def log(
        self,
        *,
        action: str,
        actor_id: int | None = None,
        payload: Any | None = None,
    ) -> Optional[AuditLogRead]:
        """
        Persist an audit entry.

        :param action: dotted label, e.g. ``services.submission.review``
        :param actor_id: reviewer/admin id, None for anonymous intake
        :param payload: arbitrary structure with details (will be serialised)
        """
        if not self.enabled:
            return None

        entry = await self._database.create_audit_log(
            AuditLogCreate(action=action, actor_id=actor_id, payload=self._prepare_payload(payload))
        )
        self._logger.info(
            "AUDIT action=%s actor=%s entry=%s",
            action,
            actor_id if actor_id is not None else "-",
            entry.id,
        )
        return entry

    async def record(
        self,
        *,
        action: str,
        actor_id: int | None = None,
        payload: Any | None = None,
    ) -> Optional[AuditLogRead]:
        """
        Like :meth:`log`, for callers whose own work is already committed.
        A failed audit write is logged and dropped so it never replaces the
        caller's result or exception.
        """
        try:
            return await self.log(action=action, actor_id=actor_id, payload=payload)
        except SQLAlchemyError:
            self._logger.exception("AUDIT write failed action=%s actor=%s", action, actor_id)
            return None

    async def list_entries(
        self,
        *,
        limit: int = 100,
        offset: int = 0,
        actor_id: int | None = None,
        action: str | None = None,
    ) -> tuple[list[AuditLogRead], int]:
        """Return recent audit entries, newest first."""
        return await self._database.list_audit_logs(
            limit=limit,
            offset=offset,
            actor_id=actor_id,
            action=action,
        )

    def _prepare_payload(self, payload: Any | None) -> dict[str, Any]:
        if payload is None:
            return {}
        serialized = self.serialize(payload)
        if isinstance(serialized, dict):
            return serialized
        return {"value": serialized}

    def serialize(self, value: Any) -> Any:
        if value is None or isinstance(value, (bool, int, float)):
            return value
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, str):
            return value
        if isinstance(value, Missing):
            return repr(value)
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, Mapping):
            return {str(k): self.serialize(v) for k, v in value.items()}
        if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
            return [self.serialize(v) for v in value]
        if hasattr(value, "model_dump"):
            return self.serialize(value.model_dump())
        return str(value)


audit_logger = AuditLogService()


def _error_summary(exc: Exception) -> dict[str, Any]:
    # DevHubError subclasses carry a stable code; anything else is reported by type
    return {"code": getattr(exc, "code", type(exc).__name__), "message": str(exc)}


def _bound_arguments(signature: inspect.Signature, args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
    bound = signature.bind_partial(*args, **kwargs)
    bound.arguments.pop("self", None)
    return {name: audit_logger.serialize(value) for name, value in bound.arguments.items()}


def _wrap_async_method(fn, action: str, actor_fields: Sequence[str]):
    if getattr(fn, "__audit_wrapped__", False):
        return fn

    signature = inspect.signature(fn)

    @wraps(fn)
    async def wrapper(*args, **kwargs):
        arguments = _bound_arguments(signature, args, kwargs)
        actor = next((arguments[f] for f in actor_fields if arguments.get(f) is not None), None)
        payload: dict[str, Any] = {"arguments": arguments}
        try:
            result = await fn(*args, **kwargs)
        except Exception as exc:
            payload["error"] = _error_summary(exc)
            await audit_logger.record(action=f"{action}.error", actor_id=actor, payload=payload)
            raise
        payload["result"] = audit_logger.serialize(result)
        await audit_logger.record(action=action, actor_id=actor, payload=payload)
        return result

    wrapper.__audit_wrapped__ = True  # type: ignore[attr-defined]
    return wrapper


def instrument_service_class(
    cls,
    *,
    prefix: str | None = None,
    exclude: Iterable[str] | None = None,
    actor_fields: Iterable[str] | None = None,
) -> None:
    """Wrap public async methods of a service so every call leaves an audit entry."""
    action_prefix = prefix or cls.__name__
    excluded = set(exclude or ())
    fields = tuple(actor_fields or ())

    for name, attr in list(cls.__dict__.items()):
        if name.startswith("_") or name in excluded:
            continue
        if inspect.iscoroutinefunction(attr):
            setattr(cls, name, _wrap_async_method(attr, f"{action_prefix}.{name}", fields))


__all__ = [
    "AuditLogService",
    "audit_logger",
    "instrument_service_class",
]
