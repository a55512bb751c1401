# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""genro-headers - Structured protocol headers for email-style messages.

Main components:
    Header: Name, value and ordered parameters, serialized as
        ``Name: Value; param=val``
    HeaderList / HasHeaders: Ordered, case-insensitive header section

Middleware:
    CsrfMiddleware: CSRF token check on unsafe HTTP methods
    RequestDurationMiddleware: Request timing log and Server-Timing header

Usage:
    from genro_headers import Header

    header = Header("Content-Type", "text/plain", {"charset": "utf-8"})
    str(header)  # "Content-Type: text/plain; charset=utf-8"
"""

__version__ = "0.1.0"

from .exceptions import (
    ConfigError,
    CsrfTokenVerificationError,
    HTTPException,
    InvalidArgument,
)
from .header import Header
from .headers import CRLF, HasHeaders, HeaderList
from .middleware import BaseMiddleware, middleware_chain
from .middleware.csrf import CsrfMiddleware
from .middleware.duration import RequestDurationMiddleware

__all__ = [
    "__version__",
    "Header",
    "HeaderList",
    "HasHeaders",
    "CRLF",
    "InvalidArgument",
    "HTTPException",
    "CsrfTokenVerificationError",
    "ConfigError",
    "BaseMiddleware",
    "middleware_chain",
    "CsrfMiddleware",
    "RequestDurationMiddleware",
]
