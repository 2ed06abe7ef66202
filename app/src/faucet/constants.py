from dotenv import load_dotenv
import os
import dataclasses
import dacite
import yaml
from typing import List, Mapping, Optional
from faucet.core.base import Config

load_dotenv()

SCRIPT_DIR = os.path.dirname(os.path.realpath(__file__))


def load_config(path: str) -> Config:
    """Read config.yaml and apply environment overrides for the tunables."""
    with open(path, "r") as f:
        config: Config = dacite.from_dict(Config, yaml.safe_load(f))
    limits = dataclasses.replace(
        config.limits,
        window_sec=int(os.environ.get("RATE_LIMIT_WINDOW_SEC", config.limits.window_sec)),
        max_requests=int(os.environ.get("RATE_LIMIT_MAX_REQUESTS", config.limits.max_requests)),
        cooldown_sec=int(os.environ.get("RATE_LIMIT_COOLDOWN_SEC", config.limits.cooldown_sec)),
    )
    return dataclasses.replace(
        config,
        faucet_api_url=os.environ.get("FAUCET_API_URL", config.faucet_api_url),
        timeout_sec=float(os.environ.get("FAUCET_TIMEOUT_SEC", config.timeout_sec)),
        limits=limits,
    )


# load config.yaml
CONFIG: Config = load_config(os.path.join(SCRIPT_DIR, "config.yaml"))

BOT_NAME = CONFIG.name
NETWORK_NAME = CONFIG.network
FAUCET_API_URL = CONFIG.faucet_api_url
FAUCET_TIMEOUT_SEC = CONFIG.timeout_sec
USER_AGENT = CONFIG.user_agent

# checked in main.py so that importing this module never requires credentials
DISCORD_BOT_TOKEN = os.environ.get("DISCORD_BOT_TOKEN", "")
DISCORD_CLIENT_ID = os.environ.get("DISCORD_CLIENT_ID", "")
REQUIRED_CREDENTIALS = ("DISCORD_BOT_TOKEN", "DISCORD_CLIENT_ID")


def missing_credentials(environ: Mapping[str, str] = os.environ) -> List[str]:
    return [name for name in REQUIRED_CREDENTIALS if not environ.get(name, "").strip()]


_guild = os.environ.get("DISCORD_GUILD_ID", "").strip()
DISCORD_GUILD_ID: Optional[int] = int(_guild) if _guild else None

# Send Messages, Embed Links, Use Slash Commands
BOT_INVITE_URL = f"https://discord.com/api/oauth2/authorize?client_id={DISCORD_CLIENT_ID}&permissions=18432&scope=bot%20applications.commands"

RATE_LIMIT_WINDOW_SEC = CONFIG.limits.window_sec
RATE_LIMIT_MAX_REQUESTS = CONFIG.limits.max_requests
RATE_LIMIT_COOLDOWN_SEC = CONFIG.limits.cooldown_sec
# how often idle users are dropped from the in-memory limiter
RATE_LIMIT_SWEEP_SEC = int(os.environ.get("RATE_LIMIT_SWEEP_SEC", "600"))

HEARTBEAT_INTERVAL_SEC = 30

EMBED_COLOR_OK = 0x4ECDC4
EMBED_COLOR_WARN = 0xFFA500
EMBED_COLOR_ERROR = 0xFF6B6B
