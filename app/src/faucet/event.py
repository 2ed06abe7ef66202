import discord
from typing import Awaitable, List
from faucet.core.base import Link
from faucet.service import FaucetService, GrantStatus
from faucet.discord import embeds
from faucet.infra.logging import logger, log_event


async def faucet_command(interaction: discord.Interaction, service: FaucetService, address: str, network: str) -> None:
    user_id = interaction.user.id
    log_event("faucet_command", user_id=user_id, address_preview=str(address)[:12])

    # the faucet call may take longer than discord's 3s ack window
    await interaction.response.defer()

    result = await service.request(user_id, address)
    if result.status == GrantStatus.INVALID_ADDRESS:
        embed = embeds.invalid_address_embed()
    elif result.status == GrantStatus.RATE_LIMITED:
        embed = embeds.rate_limited_embed(result, service.rate_limiter)
    elif result.status == GrantStatus.GRANTED:
        embed = embeds.granted_embed(result, network)
    else:
        embed = embeds.faucet_failed_embed(result)
    await interaction.edit_original_response(embed=embed)


async def help_command(interaction: discord.Interaction, service: FaucetService, bot_name: str, links: List[Link]) -> None:
    log_event("help_command", user_id=interaction.user.id)
    await interaction.response.send_message(
        embed=embeds.help_embed(bot_name, service.rate_limiter, links)
    )


async def status_command(interaction: discord.Interaction, service: FaucetService) -> None:
    snapshot = service.status(interaction.user.id)
    log_event(
        "status_command",
        user_id=interaction.user.id,
        window_count=snapshot.window_count,
        allowed=snapshot.decision.allowed,
    )
    await interaction.response.send_message(embed=embeds.status_embed(snapshot), ephemeral=True)


async def reply_with_error(interaction: discord.Interaction) -> None:
    """Always leave the user with a reply, whether or not one was already sent."""
    embed = embeds.error_embed()
    try:
        if interaction.response.is_done():
            await interaction.followup.send(embed=embed, ephemeral=True)
        else:
            await interaction.response.send_message(embed=embed, ephemeral=True)
    except discord.HTTPException as e:
        logger.warning(f"[command] failed to deliver error reply: {e}")


async def run_guarded(interaction: discord.Interaction, handler: Awaitable[None]) -> None:
    """Await a command handler and turn any failure into an error reply."""
    try:
        await handler
    except Exception as e:
        logger.exception(e)
        await reply_with_error(interaction)
