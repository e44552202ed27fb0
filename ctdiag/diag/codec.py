"""
Wire format of diagnosis keys

A batch is the concatenation of 20-byte records. Each record holds the
16-byte TemporaryExposureKey followed by the ENIntervalNumber as a 4-byte
big-endian unsigned integer.
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

from ctdiag.config import (
    DIAGNOSIS_KEY_SIZE,
    LENGTH_INTERVAL_NUMBER,
    LENGTH_TEK,
    UPLOAD_LIMIT,
)
from ctdiag.diag.errors import (
    BatchTooLargeError,
    DecodeIOError,
    EmptyOrTruncatedError,
)
from ctdiag.diag.keys import DiagnosisKey


################
### ENCODING ###
################


def encode_diagnosis_key(diagnosis_key):
    """Encode a single diagnosis key

    Args:
        diagnosis_key (DiagnosisKey): The key to encode

    Returns:
        byte array: The 20-byte wire record
    """
    interval_bytes = diagnosis_key.interval_number.to_bytes(
        LENGTH_INTERVAL_NUMBER, "big"
    )
    return diagnosis_key.temporary_exposure_key + interval_bytes


def encode_diagnosis_keys(diagnosis_keys):
    """Encode a sequence of diagnosis keys

    No size limit applies, a download may hold far more keys than an upload.

    Args:
        diagnosis_keys ([DiagnosisKey]): The keys to encode

    Returns:
        byte array: The concatenated wire records, in order
    """
    return b"".join(encode_diagnosis_key(key) for key in diagnosis_keys)


################
### DECODING ###
################


def decode_diagnosis_key(record):
    """Decode a single 20-byte wire record

    Args:
        record (byte array): Exactly DIAGNOSIS_KEY_SIZE bytes

    Returns:
        DiagnosisKey: The decoded key

    Raises:
        EmptyOrTruncatedError: if the record does not have the right size
    """
    if len(record) != DIAGNOSIS_KEY_SIZE:
        raise EmptyOrTruncatedError(
            "A diagnosis key record must be {} bytes".format(DIAGNOSIS_KEY_SIZE)
        )

    temporary_exposure_key = bytes(record[:LENGTH_TEK])
    interval_number = int.from_bytes(record[LENGTH_TEK:DIAGNOSIS_KEY_SIZE], "big")
    return DiagnosisKey(temporary_exposure_key, interval_number)


def decode_diagnosis_keys(data, limit=UPLOAD_LIMIT):
    """Decode a batch of diagnosis keys held in memory

    Args:
        data (byte array): The uploaded bytes
        limit (int, optional): Maximum size of data in bytes. Default:
            UPLOAD_LIMIT. Pass None to decode a download of any size.

    Returns:
        [DiagnosisKey]: The decoded keys in upload order, duplicates included

    Raises:
        EmptyOrTruncatedError: if data is empty or ends with a partial record
        BatchTooLargeError: if data is larger than limit
    """
    if len(data) == 0:
        raise EmptyOrTruncatedError("Upload is empty")

    if limit is not None and len(data) > limit:
        raise BatchTooLargeError(
            "Maximum upload batch size of {} bytes exceeded".format(limit)
        )

    if len(data) % DIAGNOSIS_KEY_SIZE != 0:
        raise EmptyOrTruncatedError("Upload ends with a truncated diagnosis key")

    return [
        decode_diagnosis_key(data[idx : idx + DIAGNOSIS_KEY_SIZE])
        for idx in range(0, len(data), DIAGNOSIS_KEY_SIZE)
    ]


def parse_diagnosis_keys(stream):
    """Read and decode an uploaded batch of diagnosis keys

    Exactly one read of at most UPLOAD_LIMIT + 1 bytes is issued. Getting the
    extra byte means the upload is too large, whatever follows it. A stream
    that hands out fewer bytes than were sent in that single read is treated
    as truncated.

    Args:
        stream (file-like): A binary stream with a ``read(size)`` method

    Returns:
        [DiagnosisKey]: The decoded keys in upload order, duplicates included

    Raises:
        DecodeIOError: if reading from the stream fails
        EmptyOrTruncatedError: if nothing was read or a record is incomplete
        BatchTooLargeError: if more than UPLOAD_LIMIT bytes were read
    """
    try:
        data = stream.read(UPLOAD_LIMIT + 1)
    except (OSError, ValueError) as exc:
        # ValueError: read on a closed stream
        raise DecodeIOError("Reading diagnosis keys failed: {}".format(exc)) from exc

    # Non-blocking raw streams return None when no data is available
    if data is None:
        data = b""

    return decode_diagnosis_keys(data)
