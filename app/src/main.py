#!/usr/bin/env python3
import os
import sys
import discord
import logging
import asyncio

sys.path.append(os.path.dirname(os.path.realpath(__file__)))

from faucet.constants import (
    BOT_INVITE_URL,
    BOT_NAME,
    CONFIG,
    DISCORD_BOT_TOKEN,
    DISCORD_GUILD_ID,
    FAUCET_API_URL,
    FAUCET_TIMEOUT_SEC,
    HEARTBEAT_INTERVAL_SEC,
    NETWORK_NAME,
    RATE_LIMIT_COOLDOWN_SEC,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_SWEEP_SEC,
    RATE_LIMIT_WINDOW_SEC,
    USER_AGENT,
    missing_credentials,
)
from faucet.infra.logging import logger, log_event
from faucet.faucet_api import FaucetClient
from faucet.rate_limit import build_rate_limiter
from faucet.service import FaucetService
from faucet import event


logging.basicConfig(
    format="[%(asctime)s] [%(filename)s:%(lineno)d] %(message)s", level=logging.INFO
)

intents = discord.Intents.default()
intents.guilds = True
intents.members = False
intents.typing = False

client = discord.Client(intents=intents)
tree = discord.app_commands.CommandTree(client)

rate_limiter = build_rate_limiter(RATE_LIMIT_WINDOW_SEC, RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_COOLDOWN_SEC)
faucet_service = FaucetService(
    rate_limiter=rate_limiter,
    dispatcher=FaucetClient(FAUCET_API_URL, timeout_sec=FAUCET_TIMEOUT_SEC, user_agent=USER_AGENT),
)

_background_started = False

@client.event
async def on_ready():
    log_event("login", user=str(client.user), bot_name=BOT_NAME, invite_url=BOT_INVITE_URL)
    log_event("guild_connected", guild_count=len(client.guilds))
    await client.change_presence(
        activity=discord.Activity(type=discord.ActivityType.watching, name=f"{NETWORK_NAME} | /faucet-help")
    )
    await sync_commands()
    schedule_background_tasks()

async def sync_commands():
    try:
        if DISCORD_GUILD_ID:
            # guild commands show up immediately, global ones can take an hour
            guild = discord.Object(id=DISCORD_GUILD_ID)
            tree.copy_global_to(guild=guild)
            synced = await tree.sync(guild=guild)
        else:
            synced = await tree.sync()
        log_event("commands_synced", count=len(synced), guild_id=DISCORD_GUILD_ID)
    except discord.HTTPException as e:
        logger.exception(f"[startup] command sync failed: {e}")

async def heartbeat_task():
    while True:
        try:
            latency_ms = client.latency * 1000 if client.latency else None
            log_event("heartbeat", latency_ms=f"{latency_ms:.1f}" if latency_ms is not None else None, tracked_users=len(rate_limiter))
        except Exception as e:
            logger.warning(f"[health] heartbeat error: {e}")
        await asyncio.sleep(HEARTBEAT_INTERVAL_SEC)

async def sweep_task():
    while True:
        await asyncio.sleep(RATE_LIMIT_SWEEP_SEC)
        removed = rate_limiter.sweep()
        log_event("rate_limit_sweep", removed=removed, tracked_users=len(rate_limiter))

def schedule_background_tasks():
    # on_ready fires again after every reconnect
    global _background_started
    if _background_started:
        return
    _background_started = True
    client.loop.create_task(heartbeat_task())
    client.loop.create_task(sweep_task())

# /faucet address:
@tree.command(name="faucet", description="Request testnet tokens for Supra blockchain development")
@discord.app_commands.describe(address="Your Supra wallet address (0x...)")
async def faucet_command(int: discord.Interaction, address: str):
    await event.run_guarded(int, event.faucet_command(int, faucet_service, address=address, network=NETWORK_NAME))

# /faucet-help
@tree.command(name="faucet-help", description="Get help and information about the Supra testnet faucet")
async def faucet_help_command(int: discord.Interaction):
    await event.run_guarded(int, event.help_command(int, faucet_service, bot_name=BOT_NAME, links=CONFIG.links))

# /faucet-status
@tree.command(name="faucet-status", description="Check your current rate limit status")
async def faucet_status_command(int: discord.Interaction):
    await event.run_guarded(int, event.status_command(int, faucet_service))

@client.event
async def on_error(event_method, *args, **kwargs):
    logger.exception(f"[client] unhandled error in {event_method}")


if __name__ == "__main__":
    missing = missing_credentials()
    if missing:
        for name in missing:
            logger.error(f"❌ {name} environment variable is required!")
        sys.exit(1)
    client.run(DISCORD_BOT_TOKEN)
