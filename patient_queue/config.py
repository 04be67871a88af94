import os
from dotenv import load_dotenv

load_dotenv()

# Datastore (single JSON file holding the whole queue)
PATIENTS_JSON_PATH = os.getenv("PATIENTS_JSON_PATH", "./patients.json")

# Static front-end
STATIC_DIR = os.getenv("STATIC_DIR", "./www")

# CORS
CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
    if origin.strip()
]

# Rate limiting (mutating routes only)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_WRITE = os.getenv("RATE_LIMIT_WRITE", "60/minute")

# Structured logging
STRUCTURED_LOGGING_ENABLED = os.getenv("STRUCTURED_LOGGING_ENABLED", "false").lower() == "true"
