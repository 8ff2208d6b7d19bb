"""Page fetch and site probes.

validate_url() is the SSRF gate: only http(s) URLs whose host is not
localhost or a loopback/private/link-local literal are fetched.
fetch_page() tries the URL as given and then with the scheme toggled, streams
at most MAX_HTML_BYTES, and records the response headers the scorers read.
Site probes (sitemap, robots.txt, external links) degrade to None/0 on failure.
"""

import ipaddress
import logging
import socket
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from types import MappingProxyType
from urllib.parse import urlparse

import charset_normalizer
import requests

import config
from errors import InvalidUrlError, PageFetchError
from models import BrokenLinkSample, ResponseMeta, RobotsProbe, SignalBundle, SiteChecks
from scorers.normalize import round_half_up

logger = logging.getLogger(__name__)

_REQUEST_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/122.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

CAPTURED_HEADERS = (
    "content-encoding",
    "cache-control",
    "strict-transport-security",
    "content-security-policy",
    "x-frame-options",
)
CDN_HEADERS = ("x-cache", "via", "cf-ray", "x-amz-cf-id")

BLOCKED_HOSTNAMES = frozenset({"localhost"})
BLOCKED_NETWORKS = tuple(
    ipaddress.ip_network(net)
    for net in (
        "127.0.0.0/8",
        "0.0.0.0/32",
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "169.254.0.0/16",
        "::1/128",
        "fe80::/10",
    )
)
ALLOWED_SCHEMES = ("http", "https")
MAX_ROBOTS_CHARS = 200000
_CHUNK_SIZE = 16384

FETCH_SUGGESTION = "Check the URL is publicly reachable, then try again in a few moments."


# ---------------------------------------------------------------------------
# URL validation
# ---------------------------------------------------------------------------


def normalize_url(raw: str) -> str:
    url = (raw or "").strip()
    if url and "//" not in url:
        url = "https://" + url
    return url


def _ip_literal(host: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    """Parse `host` as an IP, including the shorthand, decimal, octal and hex
    IPv4 spellings the system resolver also accepts (127.1, 2130706433, 0x7f.0.0.1)."""
    try:
        return ipaddress.ip_address(host)
    except ValueError:
        pass
    try:
        return ipaddress.IPv4Address(socket.inet_aton(host))
    except (OSError, ValueError):
        return None


def is_blocked_host(hostname: str) -> bool:
    host = (hostname or "").strip("[]").lower()
    if host in BLOCKED_HOSTNAMES:
        return True
    address = _ip_literal(host)
    if address is None:
        return False
    if address.version == 6 and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    return any(address.version == net.version and address in net for net in BLOCKED_NETWORKS)


def validate_url(raw: str | None) -> str:
    """Normalized URL, or InvalidUrlError for missing, malformed or blocked targets."""
    if not raw or not str(raw).strip():
        raise InvalidUrlError("URL is required")
    url = normalize_url(str(raw))
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError as exc:
        raise InvalidUrlError(f"Malformed URL: {exc}") from exc
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidUrlError("Only http and https URLs are supported", details={"url": url})
    if not hostname:
        raise InvalidUrlError("URL has no hostname", details={"url": url})
    if is_blocked_host(hostname):
        raise InvalidUrlError("URL points to a private or local address", details={"url": url})
    return url


def scheme_variants(url: str) -> list[str]:
    """The URL as given, then with http/https toggled."""
    variants = [url]
    if url.startswith("https://"):
        variants.append("http://" + url[len("https://") :])
    elif url.startswith("http://"):
        variants.append("https://" + url[len("http://") :])
    return list(dict.fromkeys(variants))


def origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


# ---------------------------------------------------------------------------
# Page fetch
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FetchedPage:
    url: str
    html: str
    response_meta: ResponseMeta


def _read_capped(response: requests.Response, max_bytes: int) -> bytes:
    body = bytearray()
    for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
        if not chunk:
            continue
        body.extend(chunk)
        if len(body) >= max_bytes:
            logger.info("Truncated %s at %d bytes", response.url, max_bytes)
            break
    return bytes(body[:max_bytes])


def _decode_body(body: bytes, declared: str | None) -> str:
    """Decode with the header charset; otherwise UTF-8, then charset detection on the bytes read."""
    if declared:
        try:
            return body.decode(declared, errors="replace")
        except LookupError:
            logger.info("Unknown charset %r, detecting from content", declared)
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        pass
    best = charset_normalizer.from_bytes(body).best()
    if best is None:
        return body.decode("utf-8", errors="replace")
    return str(best)


def _response_meta(response: requests.Response, elapsed_ms: int, size: int) -> ResponseMeta:
    headers = {name: response.headers[name] for name in CAPTURED_HEADERS if name in response.headers}
    return ResponseMeta(
        status=response.status_code,
        elapsed_ms=elapsed_ms,
        byte_size=size,
        final_url=response.url,
        headers=MappingProxyType(headers),
        cdn_detected=any(name in response.headers for name in CDN_HEADERS),
    )


def fetch_page(url: str, timeout: float | None = None, max_bytes: int | None = None) -> FetchedPage:
    """
    GET `url` (then its scheme-toggled variant). Raises PageFetchError with
    502 when every attempt got an HTTP error status, else 504.
    """
    timeout = config.PAGE_FETCH_TIMEOUT_SECONDS if timeout is None else timeout
    max_bytes = config.MAX_HTML_BYTES if max_bytes is None else max_bytes
    attempted: list[str] = []
    errors: list[str] = []
    http_errors_only = True

    for candidate in scheme_variants(url):
        attempted.append(candidate)
        started = time.perf_counter()
        try:
            with requests.get(candidate, timeout=timeout, headers=_REQUEST_HEADERS, stream=True) as response:
                elapsed_ms = int((time.perf_counter() - started) * 1000)
                if response.status_code >= 400:
                    errors.append(f"{candidate}: HTTP {response.status_code}")
                    continue
                body = _read_capped(response, max_bytes)
                html = _decode_body(body, response.encoding)
                meta = _response_meta(response, elapsed_ms, len(body))
        except requests.Timeout:
            http_errors_only = False
            errors.append(f"{candidate}: timed out after {timeout:g}s")
            continue
        except requests.RequestException as exc:
            http_errors_only = False
            errors.append(f"{candidate}: {exc}")
            continue

        logger.info("Fetched %s (%s, %d bytes, %d ms)", candidate, meta.status, meta.byte_size, meta.elapsed_ms)
        return FetchedPage(url=candidate, html=html, response_meta=meta)

    logger.warning("Fetch failed for %s: %s", url, "; ".join(errors))
    raise PageFetchError(
        "Could not fetch the page" + (": the server returned an error" if http_errors_only else ""),
        status_code=502 if http_errors_only and errors else 504,
        details={"url": url, "attempted": attempted, "errors": errors, "suggestion": FETCH_SUGGESTION},
    )


# ---------------------------------------------------------------------------
# Site probes
# ---------------------------------------------------------------------------


def probe_sitemap(origin: str, timeout: float | None = None) -> bool | None:
    """True if /sitemap.xml answers 2xx, False on another status, None on network failure."""
    timeout = config.SITE_PROBE_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        resp = requests.get(f"{origin}/sitemap.xml", timeout=timeout, headers=_REQUEST_HEADERS)
    except requests.RequestException as exc:
        logger.debug("Sitemap probe failed for %s: %s", origin, exc)
        return None
    return 200 <= resp.status_code < 300


def robots_blocks_all(text: str) -> bool:
    """True when a `User-agent: *` group contains a bare `Disallow: /`."""
    agents: list[str] = []
    in_rules = False
    for raw_line in text.splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        field_name, value = (part.strip() for part in line.split(":", 1))
        field_name = field_name.lower()
        if field_name == "user-agent":
            if in_rules:
                agents = []
                in_rules = False
            agents.append(value)
        else:
            in_rules = True
            if field_name == "disallow" and value == "/" and "*" in agents:
                return True
    return False


def probe_robots(origin: str, timeout: float | None = None) -> RobotsProbe:
    timeout = config.SITE_PROBE_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        resp = requests.get(f"{origin}/robots.txt", timeout=timeout, headers=_REQUEST_HEADERS)
    except requests.RequestException as exc:
        logger.debug("robots.txt probe failed for %s: %s", origin, exc)
        return {"present": None, "blocks_all": False}
    if not 200 <= resp.status_code < 300:
        return {"present": False, "blocks_all": False}
    text = resp.text
    blocks = robots_blocks_all(text) if len(text) < MAX_ROBOTS_CHARS else False
    return {"present": True, "blocks_all": blocks}


def external_link_sample(bundle: SignalBundle, limit: int | None = None) -> list[str]:
    limit = config.MAX_EXTERNAL_LINK_CHECKS if limit is None else limit
    urls: list[str] = []
    for link in bundle.links:
        if len(urls) >= limit:
            break
        if link.is_internal or urlparse(link.href).scheme not in ALLOWED_SCHEMES:
            continue
        if link.href not in urls:
            urls.append(link.href)
    return urls


def _link_is_broken(url: str, timeout: float) -> bool:
    try:
        resp = requests.head(url, timeout=timeout, allow_redirects=False, headers=_REQUEST_HEADERS)
    except requests.RequestException:
        return True
    return resp.status_code >= 400


def sample_broken_links(urls: list[str], timeout: float | None = None) -> BrokenLinkSample:
    """HEAD each URL concurrently; a link is broken on status >= 400 or any request error."""
    timeout = config.LINK_CHECK_TIMEOUT_SECONDS if timeout is None else timeout
    if not urls:
        return {"checked": 0, "broken": 0, "rate": 0.0}
    with ThreadPoolExecutor(max_workers=len(urls)) as pool:
        results = list(pool.map(lambda u: _link_is_broken(u, timeout), urls))
    broken = sum(results)
    return {"checked": len(urls), "broken": broken, "rate": float(round_half_up(broken / len(urls) * 100))}


def run_site_checks(bundle: SignalBundle) -> SiteChecks:
    origin = origin_of(bundle.url)
    with ThreadPoolExecutor(max_workers=3) as pool:
        sitemap = pool.submit(probe_sitemap, origin)
        robots = pool.submit(probe_robots, origin)
        links = pool.submit(sample_broken_links, external_link_sample(bundle))
        return {
            "sitemap": sitemap.result(),
            "robots": robots.result(),
            "rss": bundle.page_signals.rss_present,
            "broken_links": links.result(),
        }
