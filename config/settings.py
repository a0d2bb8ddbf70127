"""
Central configuration for the Cues CLI.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Base paths
CONFIG_DIR = Path(os.getenv("CUES_CONFIG_DIR", Path.home() / ".config" / "cues")).expanduser()

# Local state files
CONFIG_FILE = CONFIG_DIR / "config.json"
CREDENTIALS_FILE = CONFIG_DIR / "credentials.json"

# API settings
API_BASE_URL = os.getenv("CUES_API_URL", "http://localhost:5000/api").rstrip("/")
USER_AGENT = "Cues-CLI"
REQUEST_TIMEOUT = float(os.getenv("CUES_REQUEST_TIMEOUT", "10"))

# Auth settings
ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"
TOKEN_LIFETIME_HOURS = 1

# Due date settings
# Positional template for explicit dates in "cues add --due". The default binds
# the day twice and never a month, so explicit dates are rejected.
DATE_TEMPLATE = os.getenv("CUES_DATE_TEMPLATE", "%d-%d-%Y")
DUE_DATE_EXAMPLES = ["today 16:00", "tomorrow 09:30", "friday 04:00"]

# Logging
LOG_LEVEL = os.getenv("CUES_LOG_LEVEL", "WARNING").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
