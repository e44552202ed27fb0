"""
Global system constants for diagnosis key exchange.
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

import os


#: Length of a TemporaryExposureKey in bytes
LENGTH_TEK = 16

#: Length of an ENIntervalNumber on the wire in bytes
LENGTH_INTERVAL_NUMBER = 4

#: Size of a diagnosis key on the wire (TEK followed by interval number)
DIAGNOSIS_KEY_SIZE = LENGTH_TEK + LENGTH_INTERVAL_NUMBER

#: Maximum number of diagnosis keys per upload
MAX_UPLOAD_BATCH_SIZE = 14

#: Maximum size of an upload in bytes
UPLOAD_LIMIT = MAX_UPLOAD_BATCH_SIZE * DIAGNOSIS_KEY_SIZE

#: Largest value an interval number can take (unsigned 32 bits)
MAX_INTERVAL_NUMBER = 2 ** 32 - 1

#: The length of an interval in minutes
INTERVAL_LENGTH = 10

#: Seconds in an interval
SECONDS_PER_INTERVAL = INTERVAL_LENGTH * 60

#: Database used when nothing else is configured
DEFAULT_DATABASE_URL = "sqlite:///diagnosis_keys.db"

#: Environment variable overriding the database URL
DATABASE_URL_ENV = "CTDIAG_DATABASE_URL"


def database_url():
    """Return the configured database URL

    Returns:
        str: The value of ``CTDIAG_DATABASE_URL`` if set, else the default
    """
    return os.getenv(DATABASE_URL_ENV) or DEFAULT_DATABASE_URL
