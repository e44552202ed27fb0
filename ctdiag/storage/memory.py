"""
In-memory repository of diagnosis keys
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

import threading

from ctdiag.diag.errors import EmptyBatchError
from ctdiag.diag.keys import unique_diagnosis_keys
from ctdiag.diag.service import Repository


class MemoryRepository(Repository):
    """Keeps diagnosis keys in a dictionary, in order of first storage.

    *Example only.* Nothing survives the process. Use
    :class:`ctdiag.storage.sql.SQLRepository` for durable storage.
    """

    def __init__(self):
        # Used as an ordered set
        self._diagnosis_keys = {}
        self._lock = threading.Lock()

    def store_diagnosis_keys(self, diagnosis_keys):
        unique_keys = unique_diagnosis_keys(diagnosis_keys)
        if not unique_keys:
            raise EmptyBatchError("Diagnosis key batch cannot be empty")

        with self._lock:
            for diagnosis_key in unique_keys:
                self._diagnosis_keys.setdefault(diagnosis_key, None)

    def find_all_diagnosis_keys(self):
        with self._lock:
            return list(self._diagnosis_keys)

    def __len__(self):
        with self._lock:
            return len(self._diagnosis_keys)
