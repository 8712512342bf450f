import asyncio
import logging
import sys

import discord
from discord import app_commands

import settings
from dictionary import Dictionary
from discord_ui import DiscordMessenger, FiltersView, event_from_interaction, session_key
from game import Manager
from health import start_api_server
from question import MODE_LABELS

logger = logging.getLogger(__name__)


class KateBot(discord.Client):
    def __init__(self):
        intents = discord.Intents.default()
        super().__init__(intents=intents)
        self.tree = app_commands.CommandTree(self)
        # Set in main() once the dictionary is loaded
        self.manager = None

    async def setup_hook(self):
        try:
            if settings.GUILD_ID:
                # Guild commands show up instantly, global ones can take an hour
                guild = discord.Object(id=settings.GUILD_ID)
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
            else:
                synced = await self.tree.sync()
            logger.info("Synced %d commands", len(synced))
        except discord.HTTPException as e:
            logger.error("Failed to sync commands: %s", e)

    async def on_ready(self):
        logger.info("Logged in as %s (ID: %s)", self.user, self.user.id)

    async def on_interaction(self, interaction: discord.Interaction):
        # Game buttons aren't tracked by discord.py views; route them by custom_id
        if interaction.type == discord.InteractionType.component and self.manager:
            self.manager.dispatch(event_from_interaction(interaction))


bot = KateBot()

MODE_CHOICES = [
    app_commands.Choice(name=label, value=mode)
    for mode, label in MODE_LABELS.items()
]

# Seconds a user waits between commands
COMMAND_COOLDOWN = 3.0


def user_cooldown():
    return app_commands.checks.cooldown(1, COMMAND_COOLDOWN, key=lambda i: i.user.id)


@bot.tree.error
async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError):
    if isinstance(error, app_commands.CommandOnCooldown):
        await interaction.response.send_message(
            f"Slow down! Try again in {error.retry_after:.1f}s",
            ephemeral=True,
        )
        return
    logger.error("Command failed: %s", error, exc_info=error)


@bot.tree.command(name="start", description="Start a new vocabulary game / ゲームを始める")
@user_cooldown()
@app_commands.describe(mode="Game mode / ゲームモード")
@app_commands.choices(mode=MODE_CHOICES)
async def start(interaction: discord.Interaction, mode: str):
    key = session_key(interaction)

    if key in bot.manager.sessions:
        await interaction.response.send_message(
            "You've already started a game. Please stop it to start a new one.",
            ephemeral=True,
        )
        return

    view = FiltersView(bot.manager, interaction.user.id, key, mode, interaction.id)
    await interaction.response.send_message(
        f"**{MODE_LABELS[mode]}**\nChoose the word pool, then press Create Game.",
        view=view,
        ephemeral=True,
    )


@bot.tree.command(name="stop", description="Stop the running game / ゲームを止める")
@user_cooldown()
async def stop(interaction: discord.Interaction):
    if bot.manager.stop(session_key(interaction)):
        await interaction.response.send_message("Stopping game...")
    else:
        await interaction.response.send_message("There is no running game to stop")


@bot.tree.command(name="info", description="Information about the bot / ボットの情報")
@user_cooldown()
async def info(interaction: discord.Interaction):
    await interaction.response.send_message(
        "Art - <https://x.com/matcha__ore_p/>\n"
        "Questions/Feedback - (discord) sweetenedlegs"
    )


async def main():
    """Run both the Discord bot and the health API"""
    dictionary = Dictionary.load(settings.DICTIONARY_PATH)
    bot.manager = Manager(dictionary, DiscordMessenger(), timeout=settings.ROUND_TIMEOUT)

    api_runner = None
    if settings.HEALTH_API_PORT:
        api_runner = await start_api_server(bot.manager, settings.HEALTH_API_PORT)

    try:
        async with bot:
            await bot.start(settings.TOKEN)
    finally:
        if api_runner:
            await api_runner.cleanup()


def run():
    discord.utils.setup_logging(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))
    if not settings.TOKEN:
        print("Error: DISCORD_TOKEN not found in .env file")
        sys.exit(1)
    asyncio.run(main())


if __name__ == "__main__":
    run()
