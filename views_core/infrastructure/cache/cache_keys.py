"""
Cache key builders for the portal's query cache.

Keys are colon-separated so Pattern invalidation can target a whole family,
e.g. ``Pattern.compile(r"^assets:")``.
"""


def assets(category: str | None = None, user_id: str | None = None) -> str:
    return f"assets:{category or 'all'}:{user_id or 'all'}"


def user(user_id: str) -> str:
    return f"user:{user_id}"


def project(project_id: str) -> str:
    return f"project:{project_id}"


def messages(channel_id: str) -> str:
    return f"messages:{channel_id}"


def stats(kind: str) -> str:
    return f"stats:{kind}"


def pipeline() -> str:
    return "pipeline:stats"


def health() -> str:
    return "health:status"
