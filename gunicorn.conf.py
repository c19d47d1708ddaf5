"""
Gunicorn configuration for the Productivity Coach API.

Tuned for single-instance containers.
Env vars that override defaults:
  PORT     — TCP port to bind
  WORKERS  — number of worker processes (default: 2)
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

workers = int(os.environ.get("WORKERS", "2"))

# Each worker runs Uvicorn's ASGI event loop inside Gunicorn's process manager.
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# Coach replies are streamed; a slow generation must not get the worker killed.
timeout = 180

loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
