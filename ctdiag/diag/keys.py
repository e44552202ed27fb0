"""
Diagnosis keys and the interval numbers they are tagged with
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

import datetime
from collections import namedtuple

from ctdiag.config import LENGTH_TEK, MAX_INTERVAL_NUMBER, SECONDS_PER_INTERVAL


#########################
### UTILITY FUNCTIONS ###
#########################


def interval_number_from_time(time):
    """Compute the interval number given a time

    Computes the number of 10 minute intervals since the UNIX Epoch.

    Args:
        time (:obj:`datetime.datetime`): A date-time instance

    Returns:
        int: The interval number
    """
    return int(time.timestamp() // SECONDS_PER_INTERVAL)


def time_from_interval_number(interval_number):
    """Return the start of an interval as a UTC date-time

    Args:
        interval_number (int): The interval number

    Returns:
        :obj:`datetime.datetime`: The first second of the interval
    """
    return datetime.datetime.fromtimestamp(
        interval_number * SECONDS_PER_INTERVAL, tz=datetime.timezone.utc
    )


######################
### DIAGNOSIS KEYS ###
######################


class DiagnosisKey(
    namedtuple("DiagnosisKey", ["temporary_exposure_key", "interval_number"])
):
    """A TemporaryExposureKey together with its ENIntervalNumber

    The interval number is the 10 minute window since the UNIX Epoch in which
    the key was generated. Keys are immutable and compare equal when both the
    key bytes and the interval number are equal.
    """

    __slots__ = ()

    def __new__(cls, temporary_exposure_key, interval_number):
        """Create a diagnosis key

        Args:
            temporary_exposure_key (byte array): A 16-byte key
            interval_number (int): An unsigned 32-bit interval number

        Raises:
            ValueError: if the key has the wrong length or the interval
                number does not fit in 32 bits
        """
        if not isinstance(temporary_exposure_key, (bytes, bytearray, memoryview)):
            raise ValueError("Temporary exposure key must be a byte array")
        temporary_exposure_key = bytes(temporary_exposure_key)
        if len(temporary_exposure_key) != LENGTH_TEK:
            raise ValueError(
                "Temporary exposure key must be {} bytes".format(LENGTH_TEK)
            )

        if not isinstance(interval_number, int):
            raise ValueError("Interval number must be an integer")
        if not 0 <= interval_number <= MAX_INTERVAL_NUMBER:
            raise ValueError("Interval number must fit in 32 unsigned bits")

        return super().__new__(cls, temporary_exposure_key, interval_number)

    def __repr__(self):
        return "DiagnosisKey({}, {})".format(
            self.temporary_exposure_key.hex(), self.interval_number
        )


def unique_diagnosis_keys(diagnosis_keys):
    """Drop repeated diagnosis keys, keeping the first occurrence

    Args:
        diagnosis_keys ([DiagnosisKey]): The keys to deduplicate

    Returns:
        [DiagnosisKey]: The distinct keys in their original order
    """
    return list(dict.fromkeys(diagnosis_keys))
