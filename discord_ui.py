import logging

import discord

import settings
from dictionary import DEFAULT_CATEGORIES, LEVELS, POS_CATEGORIES, pos_for_categories
from game import AnswerReveal, ComponentEvent, DeliveryError, Messenger, SessionAlreadyActive

logger = logging.getLogger(__name__)

# Discord rejects button labels longer than this
MAX_LABEL_LENGTH = 80

# Seconds the /start form stays usable
FILTERS_TIMEOUT = 60


def session_key(interaction: discord.Interaction):
    """Games run per guild when started in one, otherwise per user"""
    return interaction.guild_id or interaction.user.id


def event_from_interaction(interaction: discord.Interaction):
    data = interaction.data or {}
    return ComponentEvent(
        custom_id=data.get("custom_id", ""),
        user_id=interaction.user.id,
        user_name=interaction.user.name,
        raw=interaction,
    )


def _label(text):
    if not text:
        return "?"
    if len(text) > MAX_LABEL_LENGTH:
        return text[:MAX_LABEL_LENGTH - 1] + "…"
    return text


def option_view(components):
    """
    Render option buttons. Clicks are routed through on_interaction, so the
    view is stopped up front to keep discord.py from tracking it.
    """
    view = discord.ui.View(timeout=None)
    for button in components:
        view.add_item(discord.ui.Button(
            label=_label(button.text),
            custom_id=button.id,
            disabled=button.disabled,
            style=discord.ButtonStyle.secondary,
        ))
    view.stop()
    return view


def answer_embed(reveal: AnswerReveal):
    embed = discord.Embed(title="Answer · 正解", color=discord.Color.green())
    if settings.ANSWER_THUMBNAIL_URL:
        embed.set_thumbnail(url=settings.ANSWER_THUMBNAIL_URL)
    embed.add_field(name=reveal.title, value=reveal.description, inline=False)
    return embed


class DiscordMessenger(Messenger):
    """Game platform calls backed by discord.py"""

    async def send_message(self, channel, content, components=None):
        kwargs = {}
        if components:
            kwargs["view"] = option_view(components)
        try:
            return await channel.send(content, **kwargs)
        except discord.DiscordException as e:
            raise DeliveryError(f"send failed: {e}") from e

    async def edit_message(self, handle, components):
        try:
            await handle.edit(view=option_view(components))
        except discord.DiscordException as e:
            raise DeliveryError(f"edit failed: {e}") from e

    async def respond_to_event(self, event, content):
        interaction = event.raw
        try:
            if isinstance(content, AnswerReveal):
                await interaction.response.send_message(embed=answer_embed(content))
            else:
                await interaction.response.send_message(content)
        except discord.DiscordException as e:
            raise DeliveryError(f"response failed: {e}") from e


# ============ /start Filter Form ============

class LevelSelect(discord.ui.Select):
    def __init__(self, custom_id):
        options = [
            discord.SelectOption(label=lvl, value=lvl, default=True)
            for lvl in LEVELS
        ]
        super().__init__(
            placeholder="Select NLevel Pool(s)",
            options=options,
            min_values=1,
            max_values=len(options),
            custom_id=custom_id,
        )

    async def callback(self, interaction: discord.Interaction):
        self.view.levels = list(self.values)
        await interaction.response.defer()


class PosSelect(discord.ui.Select):
    def __init__(self, custom_id):
        options = [
            discord.SelectOption(label=name, value=name, default=name in DEFAULT_CATEGORIES)
            for name in POS_CATEGORIES
        ]
        super().__init__(
            placeholder="Select parts-of-speech filters",
            options=options,
            min_values=1,
            max_values=len(options),
            custom_id=custom_id,
        )

    async def callback(self, interaction: discord.Interaction):
        self.view.categories = list(self.values)
        await interaction.response.defer()


class FiltersView(discord.ui.View):
    """Ephemeral form collecting level and part-of-speech filters for a new game"""

    def __init__(self, manager, author_id, key, mode, form_id):
        super().__init__(timeout=FILTERS_TIMEOUT)
        self.manager = manager
        self.author_id = author_id
        self.key = key
        self.mode = mode
        self.levels = list(LEVELS)
        self.categories = list(DEFAULT_CATEGORIES)
        self.submitted = False

        # Ids must not start with digits or they'd be routed as game clicks
        self.add_item(LevelSelect(f"filters:{form_id}:levels"))
        self.add_item(PosSelect(f"filters:{form_id}:pos"))
        submit = discord.ui.Button(
            label="Create Game",
            style=discord.ButtonStyle.primary,
            custom_id=f"filters:{form_id}:submit",
        )
        submit.callback = self.submit
        self.add_item(submit)

    async def interaction_check(self, interaction: discord.Interaction):
        return interaction.user.id == self.author_id

    async def submit(self, interaction: discord.Interaction):
        if self.submitted:
            await interaction.response.send_message("Game has already been created", ephemeral=True)
            return

        try:
            self.manager.start(
                self.key,
                interaction.channel,
                self.mode,
                self.levels,
                pos_for_categories(self.categories),
            )
        except SessionAlreadyActive:
            await interaction.response.send_message(
                "You've already started a game. Please stop it to start a new one.",
                ephemeral=True,
            )
            return

        self.submitted = True
        await interaction.response.send_message("Creating game...", ephemeral=True)
