"""
HTTP(S) GET with the vendor-specific headers and cookies some download hosts
insist on.

The quirks live in two small ordered tables so the list stays auditable:
REQUEST_QUIRKS (headers keyed by a substring of the request URL) and
SEEDED_COOKIES (host-only license cookies pre-seeded into the jar for fixed base URLs,
whatever path is actually requested). They are applied to every request and
are not configurable per call.
"""
import os
from http.cookiejar import DefaultCookiePolicy
from dataclasses import dataclass, field
from typing import Mapping, Optional
from urllib.parse import urlsplit

import requests
from requests.cookies import RequestsCookieJar, create_cookie

from fetchexec.internal.constants import DEFAULT_TIMEOUT_SECONDS, ENV_HTTP_TIMEOUT
from fetchexec.internal.logging import get_logger
from fetchexec.kernel.errors import InvalidURLError, NetworkError, UnexpectedStatusError


@dataclass(frozen=True)
class RequestQuirk:
    pattern: str
    headers: Mapping[str, str] = field(default_factory=dict)
    reason: str = ""

    def matches(self, url: str) -> bool:
        return self.pattern in url


@dataclass(frozen=True)
class SeededCookie:
    base_url: str
    name: str
    value: str


REQUEST_QUIRKS: tuple[RequestQuirk, ...] = (
    RequestQuirk(
        pattern="download-codeplex.sec.s-msft.com",
        headers={"User-Agent": "chocolatey command line"},
        reason="CodePlex download redirector rejects default user agents",
    ),
    RequestQuirk(
        pattern="ati.com",
        headers={"Referer": "http://support.amd.com/"},
        reason="AMD Catalyst downloads require a support.amd.com referer",
    ),
)

_ORACLE_LICENSE = ("oraclelicense", "accept-securebackup-cookie")

SEEDED_COOKIES: tuple[SeededCookie, ...] = (
    SeededCookie("http://download.oracle.com", *_ORACLE_LICENSE),
    SeededCookie("https://edelivery.oracle.com", *_ORACLE_LICENSE),
)


def default_timeout() -> float:
    raw = os.environ.get(ENV_HTTP_TIMEOUT)
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        return float(raw)
    except ValueError:
        get_logger(__name__).warning("Ignoring invalid HTTP timeout", value=raw, env=ENV_HTTP_TIMEOUT)
        return DEFAULT_TIMEOUT_SECONDS


class HttpFetcher:
    """
    Issues streaming GET requests. Responses are returned open; use them as
    context managers so the body is always released.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        quirks: tuple[RequestQuirk, ...] = REQUEST_QUIRKS,
        cookies: tuple[SeededCookie, ...] = SEEDED_COOKIES,
    ):
        self.logger = get_logger(self.__class__.__name__)
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else default_timeout()
        self.quirks = quirks
        self.cookies = cookies

    def headers_for(self, url: str) -> dict[str, str]:
        headers: dict[str, str] = {}
        for quirk in self.quirks:
            if quirk.matches(url):
                headers.update(quirk.headers)
        return headers

    def _seed_cookies(self) -> None:
        for cookie in self.cookies:
            try:
                host = urlsplit(cookie.base_url).hostname
                if not host:
                    raise ValueError(f"no host in {cookie.base_url!r}")
                seeded = create_cookie(cookie.name, cookie.value, domain=host, path="/")
                seeded.domain_specified = False
                self.session.cookies.set_cookie(seeded)
            except (ValueError, TypeError) as e:
                # Most hosts never look at the cookie; carry on without it.
                self.logger.warning("Unable to seed cookie", base_url=cookie.base_url, name=cookie.name, error=str(e))

    def _request_jar(self) -> RequestsCookieJar:
        jar = RequestsCookieJar(policy=DefaultCookiePolicy(strict_ns_domain=DefaultCookiePolicy.DomainStrictNonDomain))
        jar.update(self.session.cookies)
        return jar

    def get(self, url: str, timeout: Optional[float] = None) -> requests.Response:
        self._seed_cookies()
        request = requests.Request("GET", url, headers=self.headers_for(url))

        try:
            prepared = self.session.prepare_request(request)
        except (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema, requests.exceptions.InvalidSchema) as e:
            raise InvalidURLError(f"Unable to parse the URL: {url}") from e

        # Cookies without a Domain attribute go back to their exact host only.
        prepared.headers.pop("Cookie", None)
        prepared.prepare_cookies(self._request_jar())

        effective_timeout = timeout if timeout is not None else self.timeout
        self.logger.debug("GET", url=url, timeout=effective_timeout)

        try:
            response = self.session.send(prepared, stream=True, timeout=effective_timeout)
        except (requests.exceptions.InvalidURL, requests.exceptions.InvalidSchema) as e:
            raise InvalidURLError(f"Unable to parse the URL: {url}") from e
        except requests.RequestException as e:
            self.logger.error("Unable to open a connection", url=url, error=str(e))
            raise NetworkError(f"Unable to open a connection to {url}: {e}") from e

        if not 200 <= response.status_code < 300:
            response.close()
            raise UnexpectedStatusError(url, response.status_code, expected="2xx")

        return response

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
