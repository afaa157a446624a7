APP_NAME = "fetchexec"

# Environment overrides
ENV_HOME = "FETCHEXEC_HOME"
ENV_CACHE_DIR = "FETCHEXEC_CACHE_DIR"
ENV_HTTP_TIMEOUT = "FETCHEXEC_HTTP_TIMEOUT"
ENV_LOG_LEVEL = "FETCHEXEC_LOG_LEVEL"

LOG_FILE_NAME = "fetchexec.log.json"

# Network
DEFAULT_TIMEOUT_SECONDS = 60.0
DOWNLOAD_CHUNK_SIZE = 1024 * 1024

# Cache
TEMP_SUFFIX = ".tmp"

# msiexec and friends exit with this when the install worked but needs a restart
REBOOT_REQUIRED_EXIT_CODE = 3010
