from pathlib import Path
from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

# Server configuration
PORT = config.get("PORT", 3000)
LOG_LEVEL = config.get("LOG_LEVEL", "info")
BIND_ADDRESS = config.get("BIND_ADDRESS", "127.0.0.1")

# Credential storage (single record per deployment)
CREDENTIAL_FILE = config.get("CREDENTIAL_FILE", str(Path.cwd() / ".stackfish" / "auth.json"))

# OAuth flow
# The callback port is registered with the issuer for this client id; only
# change it together with the redirect URI.
OAUTH_CALLBACK_PORT = config.get("OAUTH_CALLBACK_PORT", 1455)
AUTHORIZATION_TIMEOUT = config.get("AUTHORIZATION_TIMEOUT", 300.0)
TOKEN_EXCHANGE_TIMEOUT = config.get("TOKEN_EXCHANGE_TIMEOUT", 60.0)

# Timeout configuration
# Connection timeout: Time to establish TCP connection
CONNECT_TIMEOUT = config.get("CONNECT_TIMEOUT", 10.0)
# Read timeout: Time between receiving data chunks, detects stalled streams
READ_TIMEOUT = config.get("READ_TIMEOUT", 60.0)
# Request timeout: Total budget for one gateway attempt (charged per attempt)
REQUEST_TIMEOUT = config.get("REQUEST_TIMEOUT", 600.0)

# Codex Responses API (hardcoded endpoint - not user configurable)
CODEX_API_ENDPOINT = "https://chatgpt.com/backend-api/codex/responses"
CODEX_FALLBACK_MODELS = config.get_list("CODEX_FALLBACK_MODELS", [
    "gpt-5.3-codex",
    "gpt-5.2-codex",
    "gpt-5.1-codex",
    "gpt-5.1-codex-mini",
    "gpt-5.1-codex-max",
])
CODEX_MAX_ATTEMPTS = config.get("CODEX_MAX_ATTEMPTS", 3)
CODEX_ORIGINATOR = config.get("CODEX_ORIGINATOR", "opencode")
CODEX_USER_AGENT = config.get("CODEX_USER_AGENT", "stackfish/0.1.0")
DEFAULT_MODEL = config.get("DEFAULT_MODEL", "gpt-5.3-codex")

# Stream tracing / debugging
STREAM_TRACE_ENABLED = config.get("STREAM_TRACE_ENABLED", False)
STREAM_TRACE_DIR = config.get("STREAM_TRACE_DIR", "stream_traces")
STREAM_TRACE_MAX_BYTES = config.get("STREAM_TRACE_MAX_BYTES", 262144)
