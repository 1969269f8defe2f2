from __future__ import annotations

import logging
from typing import Sequence

from ..codes.generator import CodeGenerator
from ..common.datetime_utils import now_local
from ..common.locks import KeyedLock
from ..common.validators import require_non_empty, require_positive_id
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import ConflictError, NotFoundError
from ..enrollments.repository import EnrollmentRepository
from ..reports.cache import AggregateCache
from .model import Child, NewChild
from .repository import ChildRepository

logger = logging.getLogger(__name__)


class ChildService:
    def __init__(
        self,
        children: ChildRepository,
        codes: CodeGenerator,
        *,
        enrollments: EnrollmentRepository | None = None,
        locks: KeyedLock | None = None,
        cache: AggregateCache | None = None,
    ):
        self._children = children
        self._codes = codes
        self._enrollments = enrollments
        self._locks = locks or KeyedLock()
        self._cache = cache

    def _invalidate(self, organization_id: int) -> None:
        if self._cache:
            self._cache.invalidate(int(organization_id))

    def create_child(self, *, organization_id: int, data: NewChild) -> Child:
        organization_id = require_positive_id(organization_id, "organization_id")
        data = NewChild(
            child_name=require_non_empty(data.child_name, "child_name"),
            guardian_name=require_non_empty(data.guardian_name, "guardian_name"),
            guardian_phone=require_non_empty(data.guardian_phone, "guardian_phone"),
            guardian_email=(data.guardian_email or "").strip() or None,
            date_of_birth=data.date_of_birth,
            allergies=data.allergies,
            medical_conditions=data.medical_conditions,
            special_needs=data.special_needs,
        )
        child_code = self._codes.child_code(organization_id=organization_id)
        child_id = self._children.create(organization_id=organization_id, child_code=child_code, data=data)
        self._invalidate(organization_id)
        logger.info("Created child %s (%s)", child_id, child_code)
        return self.get_child(organization_id=organization_id, child_id=child_id)

    def get_child(self, *, organization_id: int, child_id: int) -> Child:
        child = self._children.get_by_id(organization_id=int(organization_id), child_id=int(child_id))
        if not child or child.is_tombstoned:
            raise NotFoundError("Child not found")
        return child

    def tombstone_child(self, *, organization_id: int, child_id: int) -> None:
        """Hide a child from active lists. Refused while any enrollment is active or paused."""

        organization_id = int(organization_id)
        child_id = int(child_id)
        with self._locks.hold(("child", organization_id, child_id)):
            self.get_child(organization_id=organization_id, child_id=child_id)
            if self._enrollments is not None:
                live = self._enrollments.get_live_for_child(organization_id=organization_id, child_id=child_id)
                if live:
                    raise ConflictError(
                        f"Child has a {live.status.value} enrollment ({live.enrollment_number}); end it first"
                    )
            if not self._children.tombstone(organization_id=organization_id, child_id=child_id, at=now_local()):
                raise NotFoundError("Child not found")
        self._invalidate(organization_id)
        logger.info("Tombstoned child %s", child_id)

    def search_children(self, *, organization_id: int, query: str, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[Child]:
        query = require_non_empty(query, "query")
        return self._children.search(organization_id=int(organization_id), query=query, limit=int(limit))

    def list_active_children(self, *, organization_id: int) -> Sequence[Child]:
        return self._children.list_active(organization_id=int(organization_id))
