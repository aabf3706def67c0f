# -*- coding: utf-8 -*-

import os

bind = f"0.0.0.0:{os.getenv('PORT', '8088')}"
accesslog = "-"
errorlog = "-"
access_log_format = (
    "%(h)s %(l)s %(u)s %(t)s '%(r)s' %(s)s %(b)s '%(f)s' '%(a)s' in %(D)sµs"  # noqa: E501
)

capture_output = True

loglevel = os.getenv("LOG_LEVEL", "info").lower()

# Fault settings and the allocation pool live in process memory, so every
# request has to reach the same process: one worker, many threads.
worker_class = "gthread"
workers = 1
threads = int(os.getenv("PYTHON_MAX_THREADS", 32))

reload = os.getenv("WEB_RELOAD", "false").lower() == "true"

# Delayed and throttled responses can legitimately take a long time.
timeout = int(os.getenv("WEB_TIMEOUT", 0))

wsgi_app = "envbin.app:create_app()"
