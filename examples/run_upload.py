#!/usr/bin/env python3

""" Simple example/demo of uploading and downloading diagnosis keys

This demo simulates a diagnosed phone uploading its daily keys to the
server, a repeated upload, and a second phone downloading all keys.
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


import io
import secrets
from datetime import datetime, timedelta, timezone

from ctdiag.config import LENGTH_TEK, MAX_UPLOAD_BATCH_SIZE
from ctdiag.diag.codec import (
    decode_diagnosis_keys,
    encode_diagnosis_key,
    encode_diagnosis_keys,
)
from ctdiag.diag.errors import BatchTooLargeError
from ctdiag.diag.keys import DiagnosisKey, interval_number_from_time
from ctdiag.diag.service import KeyService
from ctdiag.storage.memory import MemoryRepository


def daily_keys(last_day, nr_days):
    """
    Convenience function, one fresh key per day ending at last_day
    """
    keys = []
    for days_back in range(nr_days):
        day = last_day - timedelta(days=days_back)
        temporary_exposure_key = secrets.token_bytes(LENGTH_TEK)
        interval_number = interval_number_from_time(day)
        keys.append(DiagnosisKey(temporary_exposure_key, interval_number))
    return keys


def report_keys(name, keys):
    """
    Convenience function to report some diagnosis keys
    """
    print("{} holds {} keys:".format(name, len(keys)))
    for key in keys[:2]:
        print("  * {}".format(encode_diagnosis_key(key).hex()))
    print("  * ...")


def main():
    service = KeyService(MemoryRepository())

    now = datetime.now(timezone.utc)
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    bob_keys = daily_keys(today, MAX_UPLOAD_BATCH_SIZE)

    ### Upload ###

    print("Bob is diagnosed with SARS-CoV-2\n")
    print("[Bob -> Server] Bob uploads his keys of the last 14 days")
    upload = encode_diagnosis_keys(bob_keys)
    stored = service.parse_and_store(io.BytesIO(upload))
    print("  * {} bytes, {} keys accepted".format(len(upload), len(stored)))

    print("[Bob -> Server] Bob's phone retries the same upload")
    service.parse_and_store(io.BytesIO(upload))

    print("[Bob -> Server] Bob tries to upload one key too many")
    oversized = upload + encode_diagnosis_keys(daily_keys(today, 1))
    try:
        service.parse_and_store(io.BytesIO(oversized))
        raise RuntimeError("Example code failed!")
    except BatchTooLargeError as exc:
        print("  * Rejected: {}\n".format(exc))

    ### Download ###

    print("[Server -> Alice] Alice downloads all diagnosis keys")
    download = encode_diagnosis_keys(service.find_all_diagnosis_keys())
    alice_keys = decode_diagnosis_keys(download, limit=None)
    report_keys("Alice", alice_keys)

    if sorted(alice_keys) == sorted(bob_keys):
        print("  * CORRECT: Alice received each of Bob's keys exactly once")
    else:
        print("  * ERROR: Alice's download does not match Bob's upload")
        raise RuntimeError("Example code failed!")


if __name__ == "__main__":
    main()
