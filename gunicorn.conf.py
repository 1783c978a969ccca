import os


def _as_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw is not None else int(default)
    except (TypeError, ValueError):
        return int(default)


# Picked up automatically when gunicorn starts from the project root.
wsgi_app = os.getenv("GUNICORN_APP", "platemate:create_app()")
bind = f"0.0.0.0:{_as_int('PORT', 5000)}"

# Image analysis blocks a thread for the length of the AI call.
workers = max(1, min(_as_int("GUNICORN_WORKERS", _as_int("WEB_CONCURRENCY", 2)), 4))
threads = max(1, min(_as_int("GUNICORN_THREADS", 4), 8))
worker_class = os.getenv("GUNICORN_WORKER_CLASS", "gthread")

timeout = _as_int("GUNICORN_TIMEOUT", 120)
graceful_timeout = _as_int("GUNICORN_GRACEFUL_TIMEOUT", 30)
keepalive = _as_int("GUNICORN_KEEPALIVE", 5)

max_requests = _as_int("GUNICORN_MAX_REQUESTS", 500)
max_requests_jitter = _as_int("GUNICORN_MAX_REQUESTS_JITTER", 50)

# Nutrition lookup caches are per process.
preload_app = os.getenv("GUNICORN_PRELOAD", "false").lower() == "true"

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", os.getenv("LOG_LEVEL", "info")).lower()
