# Gunicorn configuration for the expense tracker API
import os

# Application factory
wsgi_app = "app:create_app()"

# Server socket
bind = f"0.0.0.0:{os.environ.get('PORT', '5000')}"

# Worker processes
workers = int(os.environ.get("WEB_CONCURRENCY", 2))
worker_class = "sync"
timeout = 60  # CSV uploads and chart rendering run inside the request
keepalive = 5

# Recycle workers now and then so matplotlib memory does not pile up
max_requests = 500
max_requests_jitter = 50

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()

# Process naming
proc_name = "expense_tracker_api"

# Staged CSV uploads are small; keep worker heartbeat files in memory
worker_tmp_dir = "/dev/shm"

def when_ready(server):
    server.log.info("Server is ready. Spawning workers")

def worker_int(worker):
    worker.log.info("worker received INT or QUIT signal")

def pre_fork(server, worker):
    server.log.info("Worker spawned (pid: %s)", worker.pid)
