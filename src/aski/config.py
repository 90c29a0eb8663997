# aski: Environment-driven constants. Profile settings live in config.yaml (see settings.py); these are process-wide knobs.

import os
import pathlib

# Provider credentials (config.yaml values take precedence)
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY", "")

OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1")
ANTHROPIC_BASE_URL = os.environ.get("ANTHROPIC_BASE_URL", "https://api.anthropic.com/v1")
ANTHROPIC_VERSION = "2023-06-01"

# Home of config.yaml and saved conversations
ASKI_HOME = pathlib.Path(os.environ.get("ASKI_HOME", str(pathlib.Path.home() / ".aski"))).expanduser()

DEFAULT_MODEL = os.environ.get("AI_MODEL", "gpt-4o")

# Model used for one-line conversation titles; empty means "use the profile model"
SUMMARY_MODEL = os.environ.get("ASKI_SUMMARY_MODEL", "").strip()

# Anthropic requires max_tokens on every request
MAX_TOKENS = int(os.environ.get("ASKI_MAX_TOKENS", "4096"))

# Seconds to wait for the initial response headers
HTTP_TIMEOUT = int(os.environ.get("ASKI_HTTP_TIMEOUT", "600"))

# Retries for the initial POST on 5xx/timeouts
HTTP_MAX_RETRIES = int(os.environ.get("ASKI_HTTP_MAX_RETRIES", "3"))

VERBOSE = os.environ.get("ASKI_VERBOSE", "").strip().lower() in ("1", "true", "yes", "on")

# Number of hash characters shown in history listings
SHORT_HASH_LEN = 6

COMMAND_PREFIX = ":"

# When set, every request is dumped in REST Client (.http) format into this directory
HTTP_DUMP_DIR = os.environ.get("ASKI_HTTP_DUMP_DIR", "").strip()
