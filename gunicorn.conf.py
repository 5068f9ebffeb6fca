# gunicorn.conf.py
import os

# Application
wsgi_app = "feedsite.wsgi:application"

# Worker configuration
# Sync workers are separate processes: JSON file writes are only serialized
# inside one worker, so keep a single worker with FEED_STORE_BACKEND=file.
workers = int(os.getenv("GUNICORN_WORKERS", 1))
worker_class = "sync"
timeout = int(os.getenv("GUNICORN_TIMEOUT", 120))
keepalive = 2
max_requests = 1000
max_requests_jitter = 50

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

# Process naming
proc_name = "feedsite"

# Bind address
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:3001")

# Security headers (if behind proxy)
forwarded_allow_ips = "*"
