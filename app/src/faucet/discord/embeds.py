import discord
import math
from datetime import datetime, timezone
from typing import List
from faucet.address import ADDRESS_EXAMPLE
from faucet.core.base import Link
from faucet.rate_limit import RateLimiter, UsageSnapshot
from faucet.service import GrantResult
from faucet.constants import EMBED_COLOR_OK, EMBED_COLOR_WARN, EMBED_COLOR_ERROR

TROUBLESHOOTING = (
    "• Check if your address is correct\n"
    "• Ensure you haven't recently received tokens\n"
    "• Try again in a few minutes\n"
    "• Contact support if the issue persists"
)


def relative_time(ms: int) -> str:
    """Discord relative timestamp markup, e.g. <t:1700000000:R>."""
    return discord.utils.format_dt(datetime.fromtimestamp(ms / 1000, tz=timezone.utc), style="R")


def _embed(title: str, color: int, description: str = None) -> discord.Embed:
    return discord.Embed(
        title=title,
        description=description,
        color=discord.Color(color),
        timestamp=discord.utils.utcnow(),
    )


def _minutes(ms: int) -> str:
    n = math.ceil(ms / 60_000)
    return f"{n} minute" if n == 1 else f"{n} minutes"


def _per_window(window_ms: int) -> str:
    hours, rem = divmod(window_ms, 3_600_000)
    if rem == 0:
        return "per hour" if hours == 1 else f"per {hours} hours"
    return f"per {_minutes(window_ms)}"


def limits_text(rate_limiter: RateLimiter) -> str:
    return (
        f"• **{rate_limiter.max_per_window}** requests {_per_window(rate_limiter.window_ms)}\n"
        f"• **{_minutes(rate_limiter.cooldown_ms)}** between requests"
    )


def invalid_address_embed() -> discord.Embed:
    return _embed(
        "❌ Invalid Address",
        EMBED_COLOR_ERROR,
        "Please provide a valid Supra wallet address.\n\n"
        "**Format:** `0x` followed by 64 hexadecimal characters\n"
        f"**Example:** `{ADDRESS_EXAMPLE}`",
    )


def rate_limited_embed(result: GrantResult, rate_limiter: RateLimiter) -> discord.Embed:
    embed = _embed("⏰ Rate Limited", EMBED_COLOR_WARN, result.decision.message)
    embed.add_field(name="ℹ️ Limits", value=limits_text(rate_limiter), inline=False)
    return embed


def granted_embed(result: GrantResult, network: str) -> discord.Embed:
    embed = _embed(
        "✅ Tokens Sent Successfully!",
        EMBED_COLOR_OK,
        "Testnet tokens have been sent to your address.",
    )
    embed.add_field(name="📧 Address", value=f"`{result.address}`", inline=False)
    embed.add_field(name="🌐 Network", value=network, inline=True)
    embed.add_field(name="⏰ Next Request", value=relative_time(result.next_available_ms), inline=True)
    embed.set_footer(text="Happy building on Supra! 🚀")
    return embed


def faucet_failed_embed(result: GrantResult) -> discord.Embed:
    message = result.outcome.error_message if result.outcome else None
    embed = _embed(
        "❌ Faucet Request Failed",
        EMBED_COLOR_ERROR,
        message or "Failed to request tokens from the faucet.",
    )
    embed.add_field(name="💡 Troubleshooting", value=TROUBLESHOOTING, inline=False)
    return embed


def help_embed(bot_name: str, rate_limiter: RateLimiter, links: List[Link]) -> discord.Embed:
    embed = _embed(
        f"🚿 {bot_name}",
        EMBED_COLOR_OK,
        "Get free testnet tokens for developing on the Supra blockchain!",
    )
    embed.add_field(
        name="📋 Commands",
        value=(
            "• `/faucet <address>` - Request testnet tokens\n"
            "• `/faucet-status` - Check your rate limit status\n"
            "• `/faucet-help` - Show this help message"
        ),
        inline=False,
    )
    embed.add_field(name="🔒 Rate Limits", value=limits_text(rate_limiter), inline=False)
    embed.add_field(
        name="📝 Address Format",
        value="Supra addresses start with `0x` followed by 64 hexadecimal characters",
        inline=False,
    )
    if links:
        embed.add_field(
            name="🌐 Useful Links",
            value=" | ".join(f"[{link.name}]({link.url})" for link in links),
            inline=False,
        )
    embed.set_footer(text="Built for Supra developers ❤️")
    return embed


def status_embed(snapshot: UsageSnapshot) -> discord.Embed:
    embed = _embed("📊 Your Faucet Status", EMBED_COLOR_OK)
    embed.add_field(
        name="📈 Requests This Hour",
        value=f"{snapshot.window_count}/{snapshot.max_per_window}",
        inline=True,
    )
    embed.add_field(
        name="⏰ Next Request Available",
        value=relative_time(snapshot.next_available_ms) if snapshot.next_available_ms else "Now!",
        inline=True,
    )
    return embed


def error_embed() -> discord.Embed:
    return _embed(
        "❌ Bot Error",
        EMBED_COLOR_ERROR,
        "An unexpected error occurred. Please try again later.",
    )
