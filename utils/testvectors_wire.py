#!/usr/bin/env python3

""" Produces test vectors for the diagnosis key wire format """

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

from datetime import datetime, timezone

from ctdiag.diag.codec import encode_diagnosis_key, encode_diagnosis_keys
from ctdiag.diag.keys import DiagnosisKey, interval_number_from_time

TEK0 = bytes(range(1, 17))
TEK1 = bytes.fromhex("66687aadf862bd776c8fc18b8e9f8e20")

TIME0 = datetime(2020, 4, 10, hour=7, minute=15, tzinfo=timezone.utc)


def main():
    print("## Test vectors of the diagnosis key wire format ##\n")
    keys = [
        DiagnosisKey(TEK0, 42),
        DiagnosisKey(TEK1, interval_number_from_time(TIME0)),
    ]
    for key in keys:
        print("  * TEK = {}".format(key.temporary_exposure_key.hex()))
        print("    interval number = {}".format(key.interval_number))
        print("    record = {}".format(encode_diagnosis_key(key).hex()))

    print("\n  * batch = {}".format(encode_diagnosis_keys(keys).hex()))


if __name__ == "__main__":
    main()
