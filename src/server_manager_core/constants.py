CONFIG_FILENAME = "config.json"
SESSION_FILENAME = "last_session.txt"

# Steam
VALHEIM_APP_ID = 896660
VALHEIM_GAME_APP_ID = 892970
SERVER_BINARY = "valheim_server.x86_64"
STEAMCMD_SCRIPT = "steamcmd.sh"
STEAMCMD_URL = "https://steamcdn-a.akamaihd.net/client/installer/steamcmd_linux.tar.gz"

# Worlds
DEFAULT_PORT = 2456
WORLD_DB_EXT = ".db"
WORLD_META_EXT = ".fwl"
RESERVED_NAME_MARKERS = ("backup", "bak", "copy")

# Backups
MAX_BACKUPS = 10
BACKUP_PAGE_SIZE = 4
ARCHIVE_EXT = "tar.gz"

# Units
SERVER_UNIT_PREFIX = "valheimserver-"
BACKUP_UNIT_PREFIX = "valheim_backup_"

# Polling
POLL_ATTEMPTS = 5
POLL_DELAY_SECONDS = 1.0
READY_TIMEOUT_SECONDS = 18 * 60
