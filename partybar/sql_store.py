"""SQLAlchemy implementation of the RecordStore.

Conditional writes are compare-and-swap UPDATEs on the version column, so two
terminals sharing one database cannot silently overwrite each other's record.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from partybar import models
from partybar.database import Base, build_session_factory
from partybar.errors import ConflictError
from partybar.store import Collection, RecordStore, StoredRecord

logger = logging.getLogger(__name__)


def _to_stored(row: models.Record) -> StoredRecord:
    return StoredRecord(key=row.key, data=row.data, version=row.version)


def _find(db, collection: Collection, key: str) -> Optional[models.Record]:
    return (
        db.query(models.Record)
        .filter(models.Record.collection == collection.value, models.Record.key == key)
        .first()
    )


class SqlRecordStore(RecordStore):
    """Database-backed record store (SQLite locally, PostgreSQL in production)."""

    def __init__(self, engine, create_tables: bool = True) -> None:
        self._session_factory = build_session_factory(engine)
        if create_tables:
            # Create tables on startup
            Base.metadata.create_all(bind=engine)

    def list_records(self, collection: Collection) -> List[StoredRecord]:
        with self._session_factory() as db:
            rows = (
                db.query(models.Record)
                .filter(models.Record.collection == collection.value)
                .order_by(models.Record.seq)
                .all()
            )
            return [_to_stored(r) for r in rows]

    def get_record(self, collection: Collection, key: str) -> Optional[StoredRecord]:
        with self._session_factory() as db:
            row = _find(db, collection, key)
            return _to_stored(row) if row else None

    def upsert(self, collection, key, data, expected_version=None) -> int:
        with self._session_factory() as db:
            if expected_version == 0:
                db.add(models.Record(collection=collection.value, key=key, data=data, version=1))
                try:
                    db.commit()
                except IntegrityError:
                    db.rollback()
                    current = _find(db, collection, key)
                    raise ConflictError(collection.value, key, 0, current.version if current else 0)
                return 1

            if expected_version is not None:
                updated = (
                    db.query(models.Record)
                    .filter(
                        models.Record.collection == collection.value,
                        models.Record.key == key,
                        models.Record.version == expected_version,
                    )
                    .update(
                        {"data": data, "version": models.Record.version + 1},
                        synchronize_session=False,
                    )
                )
                db.commit()
                if not updated:
                    current = _find(db, collection, key)
                    raise ConflictError(
                        collection.value, key, expected_version, current.version if current else 0
                    )
                return expected_version + 1

            row = _find(db, collection, key)
            if row:
                row.data = data
                row.version = row.version + 1
            else:
                row = models.Record(collection=collection.value, key=key, data=data, version=1)
                db.add(row)
            db.commit()
            db.refresh(row)
            return row.version

    def delete(self, collection: Collection, key: str) -> bool:
        with self._session_factory() as db:
            deleted = (
                db.query(models.Record)
                .filter(models.Record.collection == collection.value, models.Record.key == key)
                .delete(synchronize_session=False)
            )
            db.commit()
            return bool(deleted)

    def put_all(self, collection: Collection, records: Dict[str, dict]) -> None:
        with self._session_factory() as db:
            existing = {
                row.key: row
                for row in db.query(models.Record).filter(models.Record.collection == collection.value)
            }
            for key, row in existing.items():
                if key not in records:
                    db.delete(row)
            for key, data in records.items():
                row = existing.get(key)
                if row:
                    row.data = data
                    row.version = row.version + 1
                else:
                    db.add(models.Record(collection=collection.value, key=key, data=data, version=1))
            db.commit()
            logger.info("Overwrote collection %s with %d record(s)", collection.value, len(records))
