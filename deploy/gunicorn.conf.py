"""Gunicorn configuration for the TrackTally API."""
import multiprocessing
import os

wsgi_app = "tracktally.wsgi:application"
bind = os.getenv("GUNICORN_BIND", "127.0.0.1:8000")
# Rate-limit buckets and the retention throttle live in each worker's memory.
workers = int(os.getenv("GUNICORN_WORKERS", min(multiprocessing.cpu_count() * 2 + 1, 8)))
worker_class = "gthread"
threads = int(os.getenv("GUNICORN_THREADS", 4))
timeout = 60
keepalive = 5
max_requests = 1000
max_requests_jitter = 50
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
