"""
Command line interface for uploading and downloading diagnosis keys
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

import argparse
import contextlib
import logging
import sys

from ctdiag.config import database_url
from ctdiag.diag.codec import encode_diagnosis_keys
from ctdiag.diag.errors import (
    BatchTooLargeError,
    DecodeIOError,
    EmptyBatchError,
    EmptyOrTruncatedError,
    RetrieveError,
    StoreFailedError,
)
from ctdiag.diag.service import KeyService
from ctdiag.storage.sql import SQLRepository

logger = logging.getLogger(__name__)

#: Exit status when the upload itself is at fault
EXIT_REJECTED = 1

#: Exit status when the server side failed
EXIT_FAULT = 2


def _open_binary(path, mode):
    """Open a file, or stdin/stdout for '-' (left open on exit)"""
    if path == "-":
        stream = sys.stdin.buffer if "r" in mode else sys.stdout.buffer
        return contextlib.nullcontext(stream)
    return open(path, mode)


def _cmd_init_db(args, repository):
    repository.create_schema()
    return 0


def _cmd_upload(args, repository):
    service = KeyService(repository)
    try:
        with _open_binary(args.file, "rb") as stream:
            diagnosis_keys = service.parse_and_store(stream)
    except (EmptyOrTruncatedError, BatchTooLargeError, EmptyBatchError) as exc:
        logger.warning("Upload rejected: %s", exc)
        return EXIT_REJECTED
    except (DecodeIOError, StoreFailedError) as exc:
        logger.error("Upload failed: %s", exc)
        return EXIT_FAULT
    except OSError as exc:
        logger.error("Cannot read upload: %s", exc)
        return EXIT_FAULT

    logger.info("Accepted %d diagnosis keys", len(diagnosis_keys))
    return 0


def _fetch_all(repository):
    try:
        return KeyService(repository).find_all_diagnosis_keys()
    except RetrieveError as exc:
        logger.error("Download failed: %s", exc)
        return None


def _cmd_download(args, repository):
    diagnosis_keys = _fetch_all(repository)
    if diagnosis_keys is None:
        return EXIT_FAULT

    try:
        with _open_binary(args.output, "wb") as out:
            out.write(encode_diagnosis_keys(diagnosis_keys))
            out.flush()
    except OSError as exc:
        logger.error("Cannot write download: %s", exc)
        return EXIT_FAULT

    logger.info("Wrote %d diagnosis keys", len(diagnosis_keys))
    return 0


def _cmd_list(args, repository):
    diagnosis_keys = _fetch_all(repository)
    if diagnosis_keys is None:
        return EXIT_FAULT

    for key in diagnosis_keys:
        print("{} {}".format(key.temporary_exposure_key.hex(), key.interval_number))
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="ctdiag", description="Store and serve diagnosis keys"
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy database URL (default: $CTDIAG_DATABASE_URL or a "
        "local SQLite file)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_db = subparsers.add_parser("init-db", help="Create the database schema")
    init_db.set_defaults(func=_cmd_init_db)

    upload = subparsers.add_parser("upload", help="Store an uploaded key batch")
    upload.add_argument("file", help="Batch in wire format, '-' for stdin")
    upload.set_defaults(func=_cmd_upload)

    download = subparsers.add_parser("download", help="Write all stored keys")
    download.add_argument(
        "-o", "--output", default="-", help="Output file, '-' for stdout"
    )
    download.set_defaults(func=_cmd_download)

    list_cmd = subparsers.add_parser("list", help="Print all stored keys")
    list_cmd.set_defaults(func=_cmd_list)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    repository = SQLRepository(args.database_url or database_url())
    try:
        return args.func(args, repository)
    finally:
        repository.close()
