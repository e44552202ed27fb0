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

import threading
import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ctdiag.diag.errors import EmptyBatchError
from ctdiag.diag.keys import DiagnosisKey
from ctdiag.storage.memory import MemoryRepository
from ctdiag.storage.sql import SQLRepository


def memory_repository(tmp_path):
    return MemoryRepository()


def sqlite_memory_repository(tmp_path):
    repository = SQLRepository("sqlite://")
    repository.create_schema()
    return repository


def sqlite_file_repository(tmp_path):
    repository = SQLRepository("sqlite:///{}".format(tmp_path / "keys.db"))
    repository.create_schema()
    return repository


@pytest.fixture(
    params=[memory_repository, sqlite_memory_repository, sqlite_file_repository]
)
def repository(request, tmp_path):
    repository = request.param(tmp_path)
    yield repository
    if isinstance(repository, SQLRepository):
        repository.close()


TEK = bytes([1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15, 16])
KEY = DiagnosisKey(TEK, 42)


#######################
### TEST STORE KEYS ###
#######################


def test_store_empty_batch(repository):
    with pytest.raises(EmptyBatchError):
        repository.store_diagnosis_keys([])
    assert repository.find_all_diagnosis_keys() == []


def test_store_valid_batch(repository):
    repository.store_diagnosis_keys([KEY])
    assert repository.find_all_diagnosis_keys() == [KEY]


def test_store_duplicate_batch(repository):
    repository.store_diagnosis_keys([KEY, KEY])
    assert repository.find_all_diagnosis_keys() == [KEY]


def test_store_already_stored_key(repository):
    other = DiagnosisKey(TEK, 43)

    repository.store_diagnosis_keys([KEY])
    repository.store_diagnosis_keys([other, KEY])

    assert sorted(repository.find_all_diagnosis_keys()) == [KEY, other]


@pytest.mark.parametrize("factory", [memory_repository, sqlite_file_repository])
def test_store_concurrently(factory, tmp_path):
    repository = factory(tmp_path)
    keys = [DiagnosisKey(bytes([idx] * 16), idx) for idx in range(14)]

    def upload():
        repository.store_diagnosis_keys(keys)

    threads = [threading.Thread(target=upload) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(repository.find_all_diagnosis_keys()) == keys
    if isinstance(repository, SQLRepository):
        repository.close()


@pytest.mark.parametrize("factory", [memory_repository, sqlite_file_repository])
def test_find_all_never_sees_partial_batch(factory, tmp_path):
    repository = factory(tmp_path)
    keys = [DiagnosisKey(bytes([idx] * 16), idx) for idx in range(14)]
    snapshot_sizes = []

    writer = threading.Thread(target=repository.store_diagnosis_keys, args=(keys,))
    writer.start()
    while writer.is_alive():
        snapshot_sizes.append(len(repository.find_all_diagnosis_keys()))
    writer.join()
    snapshot_sizes.append(len(repository.find_all_diagnosis_keys()))

    assert set(snapshot_sizes) <= {0, len(keys)}
    assert snapshot_sizes[-1] == len(keys)
    if isinstance(repository, SQLRepository):
        repository.close()


######################
### TEST FIND KEYS ###
######################


def test_find_all_without_keys(repository):
    assert repository.find_all_diagnosis_keys() == []


def test_find_all_returns_diagnosis_keys(repository):
    repository.store_diagnosis_keys([KEY])
    keys = repository.find_all_diagnosis_keys()

    assert keys == [KEY]
    assert isinstance(keys[0], DiagnosisKey)
    assert isinstance(keys[0].temporary_exposure_key, bytes)


###########################
### TEST SQL REPOSITORY ###
###########################


def test_sql_store_is_atomic(tmp_path):
    repository = sqlite_file_repository(tmp_path)

    # Reject one of the rows inside the database, the whole batch must go
    with repository.engine.begin() as connection:
        connection.execute(
            text(
                "CREATE TRIGGER reject_interval BEFORE INSERT ON diagnosis_keys "
                "WHEN NEW.interval_number = 666 "
                "BEGIN SELECT RAISE(ABORT, 'rejected'); END"
            )
        )

    with pytest.raises(SQLAlchemyError):
        repository.store_diagnosis_keys([KEY, DiagnosisKey(TEK, 666)])

    assert repository.find_all_diagnosis_keys() == []
    repository.close()


def test_sql_find_all_ordering(tmp_path):
    repository = sqlite_file_repository(tmp_path)
    later = DiagnosisKey(bytes(16), 100)
    earlier_high = DiagnosisKey(bytes([255] * 16), 7)
    earlier_low = DiagnosisKey(bytes([1] * 16), 7)

    repository.store_diagnosis_keys([later, earlier_high, earlier_low])

    assert repository.find_all_diagnosis_keys() == [earlier_low, earlier_high, later]
    repository.close()


def test_sql_repository_survives_reconnect(tmp_path):
    url = "sqlite:///{}".format(tmp_path / "keys.db")

    repository = SQLRepository(url)
    repository.create_schema()
    repository.store_diagnosis_keys([KEY])
    repository.close()

    repository = SQLRepository(url)
    assert repository.find_all_diagnosis_keys() == [KEY]
    repository.close()


def test_sql_repository_from_engine():
    repository = SQLRepository(create_engine("sqlite://"))
    repository.ping()
    repository.close()


def test_sql_repository_without_schema():
    repository = SQLRepository("sqlite://")
    with pytest.raises(SQLAlchemyError):
        repository.find_all_diagnosis_keys()
    repository.close()


def test_sql_insert_missing_fallback(tmp_path):
    repository = sqlite_file_repository(tmp_path)
    other = DiagnosisKey(TEK, 43)
    repository.store_diagnosis_keys([KEY])

    # Path taken by dialects without ON CONFLICT support
    with Session(repository.engine) as session, session.begin():
        SQLRepository._insert_missing(
            session,
            [
                {"key": KEY.temporary_exposure_key, "interval_number": 42},
                {"key": other.temporary_exposure_key, "interval_number": 43},
            ],
        )

    assert repository.find_all_diagnosis_keys() == [KEY, other]
    repository.close()
