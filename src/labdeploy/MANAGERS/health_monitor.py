# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Shallow HTTP health probes for deployed services.
"""
import http.client
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

USER_AGENT = "labdeploy-health/0.1"
MAX_BODY = 64 * 1024


class HealthStatus(str, Enum):
    """Result of a probe."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class ProbeResult:
    """Details of a single HTTP probe."""

    url: str
    status: HealthStatus
    status_code: Optional[int] = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status == HealthStatus.HEALTHY


class HealthProbe:
    """
    Issues bounded-timeout GET requests.

    With ``fail_on_http_error`` an HTTP status >= 400 counts as a failure, the
    way ``curl -f`` behaves. With a ``marker`` the response body (of any
    status) must contain it.
    """

    def __init__(self, opener: Callable = urlopen):
        """
        Initializes the probe.

        :param opener: urlopen-compatible callable, replaceable in tests.
        """
        self.opener = opener

    def probe(self,
              url: str,
              timeout: float = 10.0,
              fail_on_http_error: bool = True,
              marker: Optional[str] = None) -> ProbeResult:
        """
        Runs the probe.

        Args:
            url: Address to GET.
            timeout: Seconds before the request is abandoned.
            fail_on_http_error: Treat 4xx/5xx answers as unhealthy.
            marker: Text that must appear in the response body.

        Returns:
            ProbeResult; never raises for network, protocol or URL errors.
        """
        code = None
        try:
            request = Request(url, headers={"User-Agent": USER_AGENT})
            try:
                with self.opener(request, timeout=timeout) as response:
                    code = response.getcode()
                    body = response.read(MAX_BODY) if marker else b""
            except HTTPError as e:
                code = e.code
                if fail_on_http_error and marker is None:
                    return ProbeResult(url, HealthStatus.UNHEALTHY, code, f"HTTP {code}")
                body = e.read(MAX_BODY) if marker else b""
        except (URLError, OSError) as e:
            reason = getattr(e, "reason", e)
            return ProbeResult(url, HealthStatus.UNHEALTHY, code, str(reason))
        except (http.client.HTTPException, ValueError) as e:
            # malformed responses and unparseable URLs
            reason = str(e) or type(e).__name__
            return ProbeResult(url, HealthStatus.UNHEALTHY, code, reason)

        if marker is not None:
            text = body.decode("utf-8", errors="replace")
            if marker not in text:
                return ProbeResult(url, HealthStatus.UNHEALTHY, code, f"Marker '{marker}' not found")
        return ProbeResult(url, HealthStatus.HEALTHY, code)
