"""
Gunicorn configuration for production deployment
Run with: gunicorn velai.main:app -c gunicorn.conf.py
"""
import os

# Server socket
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
backlog = 2048

# Worker processes
workers = int(os.getenv("GUNICORN_WORKERS", 2))
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 100

# Worker lifecycle
max_requests = 1000  # Restart worker after 1000 requests (prevent memory leaks)
max_requests_jitter = 100  # Add randomness to prevent all workers restarting at once

# Timeouts
# Chat streams and document uploads can run well past a normal request
timeout = int(os.getenv("GUNICORN_TIMEOUT", 120))
keepalive = 5
graceful_timeout = 30

# Process naming
proc_name = "velai_api"

# Server mechanics
daemon = False  # Don't run as daemon (Docker handles this)
pidfile = None
umask = 0
user = None
group = None
tmp_upload_dir = None

# Logging
accesslog = "-"  # Log to stdout
errorlog = "-"   # Log to stderr
loglevel = os.getenv("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'


# Server hooks
def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info("Starting Velai API")


def when_ready(server):
    """Called just after the server is started."""
    server.log.info("Gunicorn server is ready. Spawning workers")


def worker_abort(worker):
    """Called when a worker is aborted (usually a timeout)."""
    worker.log.warning(f"Worker {worker.pid} aborted")
