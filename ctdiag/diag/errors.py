"""
Errors raised while decoding, storing and retrieving diagnosis keys
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


class DiagError(Exception):
    """Base class of all diagnosis key errors"""


class DecodeError(DiagError):
    """An uploaded byte stream could not be decoded"""


class DecodeIOError(DecodeError):
    """Reading the uploaded byte stream failed"""


class EmptyOrTruncatedError(DecodeError, ValueError):
    """The upload was empty or ended in the middle of a diagnosis key"""


class BatchTooLargeError(DecodeError, ValueError):
    """The upload holds more diagnosis keys than allowed"""


class StoreError(DiagError):
    """Diagnosis keys could not be stored"""


class EmptyBatchError(StoreError, ValueError):
    """An empty batch of diagnosis keys was offered for storage"""


class RepositoryFailure:
    """Mixin for errors wrapping a failure of the underlying repository

    The original exception is kept as ``cause`` and chained as ``__cause__``.
    """

    def __init__(self, cause):
        super().__init__("repository failure: {}".format(cause))
        self.cause = cause


class StoreFailedError(RepositoryFailure, StoreError):
    """The repository failed to store a batch"""


class RetrieveError(DiagError):
    """Diagnosis keys could not be retrieved"""


class RetrieveFailedError(RepositoryFailure, RetrieveError):
    """The repository failed to return its diagnosis keys"""
