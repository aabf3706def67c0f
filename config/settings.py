import os
import sys

SECRET_KEY = os.getenv("SECRET_KEY", "insecure-envbin-key")
DEBUG = os.getenv("FLASK_DEBUG", "false").lower() == "true"

SERVER_NAME = os.getenv("SERVER_NAME")

# Fault settings in effect at startup; all can be changed under /api.
INITIAL_DELAY = int(os.getenv("INITIAL_DELAY", "0"))
INITIAL_BANDWIDTH = int(os.getenv("INITIAL_BANDWIDTH", str(sys.maxsize)))
INITIAL_ERROR_RATE = float(os.getenv("INITIAL_ERROR_RATE", "0.0"))
INITIAL_CPU_TARGET = float(os.getenv("INITIAL_CPU_TARGET", "0.0"))

# CPU load generator.
CPU_LOAD_ENABLED = os.getenv("CPU_LOAD_ENABLED", "true").lower() == "true"
CPU_LOAD_UNITS = int(os.getenv("CPU_LOAD_UNITS", "0")) or None
CPU_PERIOD_SECONDS = float(os.getenv("CPU_PERIOD_SECONDS", "1.0"))

# Bytes per chunk when streaming the status page.
STATUS_CHUNK_SIZE = int(os.getenv("STATUS_CHUNK_SIZE", "16"))
