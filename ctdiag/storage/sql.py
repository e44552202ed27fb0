"""
Relational repository of diagnosis keys

Keys live in a single ``diagnosis_keys`` table whose primary key is the pair
(key, interval_number), so the database itself rejects duplicates. Tested
against SQLite; PostgreSQL is the intended production backend.
"""

__copyright__ = """
    Copyright 2020 EPFL

    Licensed under the Apache License, Version 2.0 (the "License");
    you may not use this file except in compliance with the License.
    You may obtain a copy of the License at

        http://www.apache.org/licenses/LICENSE-2.0

    Unless required by applicable law or agreed to in writing, software
    distributed under the License is distributed on an "AS IS" BASIS,
    WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
    See the License for the specific language governing permissions and
    limitations under the License.
"""
__license__ = "Apache 2.0"

import logging

from sqlalchemy import BigInteger, LargeBinary, create_engine, select, text, tuple_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.pool import StaticPool

from ctdiag.config import LENGTH_TEK
from ctdiag.diag.errors import EmptyBatchError
from ctdiag.diag.keys import DiagnosisKey, unique_diagnosis_keys
from ctdiag.diag.service import Repository

logger = logging.getLogger(__name__)

#: Dialects offering INSERT ... ON CONFLICT DO NOTHING
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class Base(DeclarativeBase):
    pass


class DiagnosisKeyRecord(Base):
    """Row holding one stored diagnosis key."""

    __tablename__ = "diagnosis_keys"

    # (key, interval_number) -> existence means "already stored".
    key: Mapped[bytes] = mapped_column(LargeBinary(LENGTH_TEK), primary_key=True)
    interval_number: Mapped[int] = mapped_column(BigInteger, primary_key=True)

    def to_diagnosis_key(self):
        return DiagnosisKey(self.key, self.interval_number)


def _create_engine(url):
    """Create an engine, sharing one connection for in-memory SQLite"""
    url = make_url(url)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url)


class SQLRepository(Repository):
    """Stores diagnosis keys in a relational database via SQLAlchemy.

    Each call to :meth:`store_diagnosis_keys` runs in its own transaction, so
    a batch is either stored completely or not at all.
    """

    def __init__(self, url_or_engine):
        """Connect to a database

        Args:
            url_or_engine (str or :obj:`sqlalchemy.engine.Engine`): A database
                URL such as ``postgresql+psycopg://...`` or ``sqlite://``, or
                an existing engine
        """
        if isinstance(url_or_engine, Engine):
            self.engine = url_or_engine
        else:
            self.engine = _create_engine(url_or_engine)

    def create_schema(self):
        """Create the diagnosis_keys table if it does not exist yet"""
        logger.info("Creating schema on %s", self.engine.url.render_as_string())
        Base.metadata.create_all(self.engine)

    def ping(self):
        """Check that the database can be reached

        Raises:
            sqlalchemy.exc.SQLAlchemyError: if it cannot
        """
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    def close(self):
        """Release all pooled connections"""
        self.engine.dispose()

    def store_diagnosis_keys(self, diagnosis_keys):
        """Persist a batch of diagnosis keys, ignoring ones already stored

        Args:
            diagnosis_keys ([DiagnosisKey]): The keys to store

        Raises:
            EmptyBatchError: if the batch is empty
            sqlalchemy.exc.SQLAlchemyError: if the database fails
        """
        unique_keys = unique_diagnosis_keys(diagnosis_keys)
        if not unique_keys:
            raise EmptyBatchError("Diagnosis key batch cannot be empty")

        rows = [
            {"key": key.temporary_exposure_key, "interval_number": key.interval_number}
            for key in unique_keys
        ]

        with Session(self.engine) as session, session.begin():
            insert = _UPSERT_INSERTS.get(self.engine.dialect.name)
            if insert is not None:
                table = DiagnosisKeyRecord.__table__
                statement = insert(table).on_conflict_do_nothing()
                session.execute(statement, rows)
            else:
                self._insert_missing(session, rows)

        logger.debug("Stored batch of %d diagnosis keys", len(rows))

    @staticmethod
    def _insert_missing(session, rows):
        """Insert rows whose identity is not stored yet"""
        identities = [(row["key"], row["interval_number"]) for row in rows]
        identity = tuple_(DiagnosisKeyRecord.key, DiagnosisKeyRecord.interval_number)
        stored = {
            (bytes(key), interval_number)
            for key, interval_number in session.execute(
                select(DiagnosisKeyRecord.key, DiagnosisKeyRecord.interval_number)
                .where(identity.in_(identities))
            )
        }
        session.add_all(
            DiagnosisKeyRecord(**row)
            for row in rows
            if (row["key"], row["interval_number"]) not in stored
        )

    def find_all_diagnosis_keys(self):
        """Return every stored diagnosis key

        Returns:
            [DiagnosisKey]: Keys ordered by interval number, then key bytes
        """
        with Session(self.engine) as session:
            records = session.scalars(
                select(DiagnosisKeyRecord).order_by(
                    DiagnosisKeyRecord.interval_number, DiagnosisKeyRecord.key
                )
            )
            return [record.to_diagnosis_key() for record in records]
