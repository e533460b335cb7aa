# edupeer/config.py

import os

# Values are read once at import time. main.py calls load_dotenv() before
# importing this module so a local .env file is honoured.

DATABASE_URL = os.getenv("DATABASE_URL")

# Key used to sign the session cookie. The fallback only exists so a
# developer can boot the service without a .env file.
DEV_SESSION_SECRET = "edupeer-dev-secret"
SESSION_SECRET = os.getenv("SESSION_SECRET", DEV_SESSION_SECRET)
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", 60 * 60 * 24))

CORS_ORIGIN = os.getenv("CORS_ORIGIN", "*")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- DOMAIN LIMITS ---
MAX_SKILLS_PER_LIST = int(os.getenv("MAX_SKILLS_PER_LIST", 5))
DEFAULT_MATCH_LIMIT = int(os.getenv("DEFAULT_MATCH_LIMIT", 10))
MAX_PAGE_SIZE = 50
