#!/usr/bin/python
import os
import logging

import discord
from discord.ext import commands
from dotenv import load_dotenv
from games_leaderboard.core.config import load_config, required_env
from games_leaderboard.core.runtime import maybe_handle_trigger, post_daily_summary
from games_leaderboard.core.scheduler import schedule_daily

load_dotenv()

CMD_PREFIX = '!'

# Logging setup
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

intents = discord.Intents(messages=True, message_content=True, guilds=True, members=True)
bot = commands.Bot(command_prefix=CMD_PREFIX, intents=intents)

DISCORD_TOKEN = required_env("DISCORD_BOT_TOKEN")
CONFIG = load_config(dotenv=False)


async def _daily_summary():
    channel = bot.get_channel(CONFIG.daily_summary_channel_id)
    if channel is None:
        logger.warning("daily summary: channel %s not visible to the bot", CONFIG.daily_summary_channel_id)
        return
    await post_daily_summary(channel, bot, CONFIG)


@bot.event
async def on_ready():
    logger.info("Bot is ready. Guilds: %s", [g.name for g in bot.guilds])
    if CONFIG.daily_summary_channel_id is not None:
        schedule_daily(
            _daily_summary,
            job_id="daily_summary",
            hour=CONFIG.daily_summary_hour,
            minute=CONFIG.daily_summary_minute,
        )


@bot.command()
async def games(ctx):
    logger.info("!games invoked by %s in #%s", ctx.author, getattr(ctx.channel, "name", ctx.channel))
    lines = ["*Tracked games:*"]
    lines += [f"- {g}" for g in CONFIG.games]
    lines.append("")
    lines.append(f"Share results like `Zip #5 3:12`, then send `{CONFIG.trigger}` for the leaderboard.")
    lines.append(CONFIG.bot_marker)
    await ctx.send("\n".join(lines))


@bot.event
async def on_message(msg):
    if msg.author == bot.user:
        return
    # Triggers never reach command handling
    if await maybe_handle_trigger(msg, bot, CONFIG):
        return
    await bot.process_commands(msg)


bot.run(DISCORD_TOKEN)
