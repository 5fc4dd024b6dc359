import os
from dotenv import load_dotenv

load_dotenv()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Background stats reporter
ENABLE_REPORTER = os.getenv("ENABLE_REPORTER", "true").lower() in {"true", "1", "yes"}
REPORT_INTERVAL_SECONDS = max(0.01, float(os.getenv("REPORT_INTERVAL_SECONDS", "5")))

# Upper bound for draining in-flight requests and stopping the reporter
SHUTDOWN_TIMEOUT_SECONDS = max(0, int(os.getenv("SHUTDOWN_TIMEOUT_SECONDS", "5")))
