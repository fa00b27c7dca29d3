import os


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw is not None else default
    except ValueError:
        return default


# Loaded automatically by gunicorn from the working directory.
wsgi_app = os.getenv("GUNICORN_APP", "smartscales:create_app()")
bind = os.getenv("GUNICORN_BIND", f"0.0.0.0:{_env_int('PORT', 8000)}")

workers = max(1, min(_env_int("GUNICORN_WORKERS", _env_int("WEB_CONCURRENCY", 2)), 4))
threads = max(1, min(_env_int("GUNICORN_THREADS", 4), 8))
worker_class = os.getenv("GUNICORN_WORKER_CLASS", "gthread")

timeout = _env_int("GUNICORN_TIMEOUT", 60)
graceful_timeout = _env_int("GUNICORN_GRACEFUL_TIMEOUT", 30)
keepalive = _env_int("GUNICORN_KEEPALIVE", 5)

max_requests = _env_int("GUNICORN_MAX_REQUESTS", 500)
max_requests_jitter = _env_int("GUNICORN_MAX_REQUESTS_JITTER", 50)

# Access and error logs go to stdout/stderr for the platform collector.
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
