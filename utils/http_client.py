"""HTTP client with retries, response caching and per-host rate limiting."""
import time
import logging
import threading

import requests

from __version__ import __version__

logger = logging.getLogger("signalpulse.http")


class APIError(Exception):
    """API request error with status code and response body."""
    def __init__(self, message, status_code=None, response_body=None, source=None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
        self.source = source


class RateLimiter:
    """Thread-safe token bucket refilled at ``calls_per_minute``."""

    def __init__(self, calls_per_minute):
        self.capacity = float(calls_per_minute)
        self.refill_per_sec = calls_per_minute / 60.0
        self.tokens = self.capacity
        self.updated = time.monotonic()
        self._lock = threading.Lock()

    def wait(self):
        """Block until a token is available, then take it."""
        with self._lock:
            now = time.monotonic()
            self.tokens = min(self.capacity, self.tokens + (now - self.updated) * self.refill_per_sec)
            self.updated = now
            if self.tokens >= 1:
                self.tokens -= 1
                return
            time.sleep((1 - self.tokens) / self.refill_per_sec)
            self.tokens = 0.0
            self.updated = time.monotonic()


class HTTPClient:
    """JSON GET client used by every market-data provider."""

    RETRYABLE_STATUS = {429, 500, 502, 503, 504}

    def __init__(self, base_url, source=None, rate_limiter=None, timeout=15,
                 max_retries=2, cache_ttl=0, backoff=2.0):
        self.base_url = base_url.rstrip("/")
        self.source = source or self.base_url
        self.rate_limiter = rate_limiter
        self.timeout = timeout
        self.max_retries = max_retries
        self.cache_ttl = cache_ttl
        self.backoff = backoff
        self._cache = {}
        self._cache_lock = threading.Lock()
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": f"SignalPulse/{__version__}"})

    def get(self, path="", params=None):
        """GET ``path`` and return decoded JSON (or text). Raises ``APIError``."""
        url = f"{self.base_url}/{path.lstrip('/')}" if path else self.base_url
        key = (url, tuple(sorted((params or {}).items())))

        if self.cache_ttl > 0:
            with self._cache_lock:
                cached = self._cache.get(key)
            if cached and time.monotonic() - cached[0] < self.cache_ttl:
                return cached[1]

        data = self._get_with_retries(url, params)
        if self.cache_ttl > 0:
            with self._cache_lock:
                self._cache[key] = (time.monotonic(), data)
        return data

    def _get_with_retries(self, url, params):
        last_error = None
        for attempt in range(self.max_retries + 1):
            if self.rate_limiter:
                self.rate_limiter.wait()
            delay = min(self.backoff * 2 ** attempt, 60)

            try:
                start = time.monotonic()
                resp = self.session.get(url, params=params, timeout=self.timeout)
            except requests.exceptions.RequestException as e:
                logger.warning(f"{self.source}: request error {e} (attempt {attempt + 1})")
                last_error = APIError(str(e), source=self.source)
                if attempt < self.max_retries:
                    time.sleep(delay)
                continue

            logger.debug(f"GET {url} -> {resp.status_code} "
                         f"({int((time.monotonic() - start) * 1000)}ms)")
            if resp.status_code == 200:
                try:
                    return resp.json()
                except ValueError:
                    return resp.text

            error = APIError(f"HTTP {resp.status_code} from {self.source}",
                             status_code=resp.status_code, response_body=resp.text,
                             source=self.source)
            if resp.status_code not in self.RETRYABLE_STATUS:
                raise error

            last_error = error
            if attempt < self.max_retries:
                retry_after = resp.headers.get("Retry-After")
                wait = float(retry_after) if retry_after and retry_after.isdigit() else delay
                logger.warning(f"{self.source}: retryable {resp.status_code}, "
                               f"waiting {wait:.1f}s (attempt {attempt + 1})")
                time.sleep(wait)

        raise last_error or APIError(f"Max retries exceeded for {url}", source=self.source)

    def close(self):
        self.session.close()
