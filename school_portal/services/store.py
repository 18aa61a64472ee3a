"""Collection store and typed repository.

The store keeps each named collection as one JSON document and only ever
loads or overwrites a collection whole. The repository sits on top of it,
turning stored dicts into schemas on read and reporting failed writes as a
``SaveResult`` instead of raising.
"""

import json
import logging
from typing import Any, TypeVar

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from school_portal.core.config import settings
from school_portal.core.database import SessionLocal, session_scope
from school_portal.core.exceptions import PersistenceError, StorageQuotaError
from school_portal.models.collection import StoredCollection
from school_portal.models.enums import CollectionName
from school_portal.schemas.assessment import Assessment
from school_portal.schemas.common import BaseSchema, ErrorDetail, SaveResult
from school_portal.schemas.finance import FeeStructure, Payment
from school_portal.schemas.student import Student
from school_portal.schemas.subject import Subject

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseSchema)


class CollectionStore:
    """Whole-collection key-value store backed by SQLAlchemy."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        quota_bytes: int | None = None,
    ):
        self.session_factory = session_factory or SessionLocal
        self.quota_bytes = settings.STORE_QUOTA_BYTES if quota_bytes is None else quota_bytes

    def load(self, name: str) -> list[dict[str, Any]]:
        """Load a collection; an absent collection is an empty list."""
        try:
            with session_scope(self.session_factory) as session:
                row = session.get(StoredCollection, name)
                payload = row.payload if row else None
        except SQLAlchemyError as e:
            logger.error(f"[STORE] Failed to load '{name}': {e}")
            raise PersistenceError(name, message=f"Failed to load collection: {str(e)}")

        if payload is None:
            return []
        try:
            items = json.loads(payload)
        except json.JSONDecodeError:
            logger.warning(f"[STORE] Collection '{name}' holds invalid JSON, treating as empty")
            return []
        if not isinstance(items, list):
            logger.warning(f"[STORE] Collection '{name}' is not a list, treating as empty")
            return []
        return items

    def save(self, name: str, items: list[dict[str, Any]]) -> None:
        """Overwrite a collection.

        Raises:
            StorageQuotaError: the store would grow past its quota.
            PersistenceError: the database write failed.
        """
        payload = json.dumps(items, ensure_ascii=False, separators=(",", ":"))
        size = len(payload.encode("utf-8"))

        try:
            with session_scope(self.session_factory) as session:
                others = session.execute(
                    select(func.coalesce(func.sum(StoredCollection.size_bytes), 0)).where(
                        StoredCollection.name != name
                    )
                ).scalar_one()
                required = int(others) + size
                if required > self.quota_bytes:
                    raise StorageQuotaError(name, required, self.quota_bytes)

                row = session.get(StoredCollection, name)
                if row is None:
                    row = StoredCollection(name=name)
                    session.add(row)
                row.payload = payload
                row.item_count = len(items)
                row.size_bytes = size
        except SQLAlchemyError as e:
            logger.error(f"[STORE] Failed to save '{name}': {e}")
            raise PersistenceError(name, message=f"Failed to save collection: {str(e)}")

        logger.debug(f"[STORE] Saved '{name}': {len(items)} items, {size} bytes")


class SchoolRepository:
    """Typed access to the portal's collections."""

    def __init__(self, store: CollectionStore):
        self.store = store

    def _load(self, name: CollectionName, schema: type[SchemaT]) -> list[SchemaT]:
        records: list[SchemaT] = []
        for idx, item in enumerate(self.store.load(name.value)):
            try:
                records.append(schema.model_validate(item))
            except SchemaValidationError as e:
                logger.warning(f"[REPOSITORY] Skipping unreadable {name.value} item {idx}: {e.errors()[0].get('msg')}")
        return records

    def _save(self, name: CollectionName, records: list[BaseSchema]) -> SaveResult:
        try:
            self.store.save(name.value, [record.to_record() for record in records])
        except PersistenceError as e:
            logger.error(f"[REPOSITORY] Save of {name.value} failed: {e.message}")
            return SaveResult(
                success=False,
                collection=name.value,
                count=len(records),
                error=ErrorDetail(**e.to_dict()),
            )
        return SaveResult(collection=name.value, count=len(records))

    def load_students(self) -> list[Student]:
        return self._load(CollectionName.STUDENTS, Student)

    def save_students(self, students: list[Student]) -> SaveResult:
        return self._save(CollectionName.STUDENTS, students)

    def load_subjects(self) -> list[Subject]:
        return self._load(CollectionName.SUBJECTS, Subject)

    def save_subjects(self, subjects: list[Subject]) -> SaveResult:
        return self._save(CollectionName.SUBJECTS, subjects)

    def load_assessments(self) -> list[Assessment]:
        return self._load(CollectionName.ASSESSMENTS, Assessment)

    def save_assessments(self, assessments: list[Assessment]) -> SaveResult:
        return self._save(CollectionName.ASSESSMENTS, assessments)

    def load_payments(self) -> list[Payment]:
        return self._load(CollectionName.PAYMENTS, Payment)

    def save_payments(self, payments: list[Payment]) -> SaveResult:
        return self._save(CollectionName.PAYMENTS, payments)

    def load_fee_structures(self) -> list[FeeStructure]:
        return self._load(CollectionName.FEE_STRUCTURES, FeeStructure)

    def save_fee_structures(self, fee_structures: list[FeeStructure]) -> SaveResult:
        return self._save(CollectionName.FEE_STRUCTURES, fee_structures)
