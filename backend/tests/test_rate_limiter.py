"""
Sliding-window limiter and route grouping, driven by an in-memory sorted-set double
"""

from starlette.requests import Request

from app.utils.rate_limiter import RateLimitMiddleware, SlidingWindowLimiter, client_ip


class _SortedSets:
    """Just enough of the Redis sorted-set pipeline API for the limiter"""

    def __init__(self):
        self.sets = {}
        self._queued = []

    def pipeline(self, transaction=True):
        self._queued = []
        return self

    def zremrangebyscore(self, key, low, high):
        self._queued.append(lambda: self._trim(key, low, high))

    def zrange(self, key, start, end, withscores=False):
        self._queued.append(lambda: sorted(self.sets.get(key, {}).items(), key=lambda kv: kv[1])[start:end + 1])

    def zcard(self, key):
        self._queued.append(lambda: len(self.sets.get(key, {})))

    def zadd(self, key, mapping):
        self._queued.append(lambda: self.sets.setdefault(key, {}).update(mapping))

    def expire(self, key, seconds):
        self._queued.append(lambda: True)

    def execute(self):
        results = [op() for op in self._queued]
        self._queued = []
        return results

    def _trim(self, key, low, high):
        members = self.sets.get(key, {})
        for member in [m for m, score in members.items() if low <= score <= high]:
            del members[member]


def _request(path="/api/wallet/summary", headers=None, client=("10.0.0.9", 5000)):
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
        "query_string": b"",
    }
    return Request(scope)


def test_limiter_allows_up_to_limit_then_blocks():
    limiter = SlidingWindowLimiter(_SortedSets(), limit=3)

    decisions = [limiter.hit("ratelimit:api:1.2.3.4") for _ in range(4)]

    assert [d.allowed for d in decisions] == [True, True, True, False]
    assert [d.remaining for d in decisions] == [2, 1, 0, 0]
    assert decisions[-1].reset_at >= decisions[0].reset_at - 1


def test_limiter_counts_clients_separately():
    limiter = SlidingWindowLimiter(_SortedSets(), limit=1)

    assert limiter.hit("ratelimit:api:a").allowed
    assert limiter.hit("ratelimit:api:b").allowed
    assert not limiter.hit("ratelimit:api:a").allowed


def test_client_ip_prefers_forwarded_headers():
    assert client_ip(_request(headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})) == "203.0.113.5"
    assert client_ip(_request(headers={"X-Real-IP": "198.51.100.7"})) == "198.51.100.7"
    assert client_ip(_request()) == "10.0.0.9"


def test_route_groups():
    middleware = RateLimitMiddleware(app=None, redis_client=_SortedSets())

    assert middleware.match("/api/auth/login")[0] == "auth"
    assert middleware.match("/api/wallet/deposit")[0] == "api"
    assert middleware.match("/admin/profits/3/distribute")[0] == "admin"
    assert middleware.match("/health") is None
    assert middleware.match("/metrics") is None
