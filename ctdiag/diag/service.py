"""
Service for storing and retrieving diagnosis keys
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

from abc import ABC, abstractmethod

from ctdiag.diag.codec import parse_diagnosis_keys
from ctdiag.diag.errors import EmptyBatchError, RetrieveFailedError, StoreFailedError


class Repository(ABC):
    """Durable set of diagnosis keys

    Implementations must store each distinct key once, whether it is repeated
    within a batch or already stored. A batch becomes visible to
    :meth:`find_all_diagnosis_keys` as a whole or not at all.
    """

    @abstractmethod
    def store_diagnosis_keys(self, diagnosis_keys):
        """Persist a batch of diagnosis keys

        Args:
            diagnosis_keys ([DiagnosisKey]): A non-empty batch
        """

    @abstractmethod
    def find_all_diagnosis_keys(self):
        """Return every stored diagnosis key

        Returns:
            [DiagnosisKey]: The distinct keys, in no particular order
        """


class KeyService:
    """Entry point for uploading and downloading diagnosis keys.

    The service holds no state besides its repository and may be shared
    between threads. It neither logs nor retries: every failure is raised to
    the caller, see :mod:`ctdiag.diag.errors`.
    """

    def __init__(self, repository):
        """Create a service on top of a repository

        Args:
            repository (Repository): Where keys are persisted
        """
        self.repository = repository

    def store_diagnosis_keys(self, diagnosis_keys):
        """Persist a batch of diagnosis keys

        Args:
            diagnosis_keys ([DiagnosisKey]): The keys to store

        Raises:
            EmptyBatchError: if the batch is empty
            StoreFailedError: if the repository fails
        """
        diagnosis_keys = list(diagnosis_keys)
        if not diagnosis_keys:
            raise EmptyBatchError("Diagnosis key batch cannot be empty")

        try:
            self.repository.store_diagnosis_keys(diagnosis_keys)
        except Exception as exc:
            raise StoreFailedError(exc) from exc

    def find_all_diagnosis_keys(self):
        """Fetch all diagnosis keys from the repository

        Returns:
            [DiagnosisKey]: All stored keys, empty if there are none

        Raises:
            RetrieveFailedError: if the repository fails
        """
        try:
            return list(self.repository.find_all_diagnosis_keys())
        except Exception as exc:
            raise RetrieveFailedError(exc) from exc

    def parse_diagnosis_keys(self, stream):
        """Read and decode diagnosis keys, see :func:`parse_diagnosis_keys`"""
        return parse_diagnosis_keys(stream)

    def parse_and_store(self, stream):
        """Decode an upload and store it

        Decoding errors are raised as they are, before the repository is used.

        Args:
            stream (file-like): The uploaded byte stream

        Returns:
            [DiagnosisKey]: The decoded batch, as uploaded

        Raises:
            DecodeError: if the upload cannot be decoded
            StoreError: if the batch cannot be stored
        """
        diagnosis_keys = self.parse_diagnosis_keys(stream)
        self.store_diagnosis_keys(diagnosis_keys)
        return diagnosis_keys
