#!/usr/bin/python

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import discord

# Local imports
from .aggregator import SenderResolver, aggregate
from .config import BotConfig
from .dates import LookbackWindow, to_epoch
from .errors import FetchError, SenderResolutionError
from .models import ConversationOrigin, RawMessage
from .summary import build

logger = logging.getLogger(__name__)

# One run at a time per channel
_run_locks: Dict[int, asyncio.Lock] = {}


def _lock_for(channel_id: int) -> asyncio.Lock:
    lock = _run_locks.get(channel_id)
    if lock is None:
        lock = _run_locks[channel_id] = asyncio.Lock()
    return lock


def is_trigger(body: Optional[str], trigger: str) -> bool:
    return bool(body) and trigger.lower() in body.lower()


def display_name(user: Any, fallback_id: Any) -> str:
    """Best human-readable name for a member/user, or its id."""
    return (
        getattr(user, "display_name", None)
        or getattr(user, "global_name", None)
        or getattr(user, "name", None)
        or str(fallback_id)
    )

# -----------------------------------------------------------------------------
# Message history
# -----------------------------------------------------------------------------
def to_raw_message(msg, origin: ConversationOrigin) -> RawMessage:
    return RawMessage(
        timestamp=to_epoch(getattr(msg, "created_at", None)),
        author_id=getattr(getattr(msg, "author", None), "id", None),
        body=getattr(msg, "content", "") or "",
        origin=origin,
        message_id=getattr(msg, "id", None),
    )


async def fetch_recent_messages(text_channel, limit: int, timeout: Optional[float] = None,
                                origin: Optional[ConversationOrigin] = None) -> List[RawMessage]:
    """
    Read the last `limit` messages of a channel, oldest first.
    Any failure, including a timeout, is raised as FetchError.
    """
    origin = origin or ConversationOrigin.of(text_channel)

    async def _read():
        return [msg async for msg in text_channel.history(limit=limit)]

    try:
        history = await asyncio.wait_for(_read(), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise FetchError(f"timed out after {timeout}s reading history of channel "
                         f"{getattr(text_channel, 'id', None)}") from e
    except Exception as e:
        raise FetchError(f"could not read history of channel {getattr(text_channel, 'id', None)}: {e}") from e

    logger.debug("fetch_recent_messages: read %s messages from channel id=%s",
                 len(history), getattr(text_channel, "id", None))
    # Discord returns newest first
    return [to_raw_message(msg, origin) for msg in reversed(history)]

# -----------------------------------------------------------------------------
# Sender resolution
# -----------------------------------------------------------------------------
def make_sender_resolver(text_channel, origin: ConversationOrigin, client) -> SenderResolver:
    """
    Build the sender lookup for one run. Guild channels resolve through the
    guild's members (falling back to the global user for people who left);
    direct channels resolve through the client's users.
    """
    names: Dict[int, str] = {}

    async def _user(author_id: int):
        user = client.get_user(author_id)
        if user is None:
            user = await client.fetch_user(author_id)
        return user

    async def _member(author_id: int):
        guild = text_channel.guild
        member = guild.get_member(author_id)
        if member is not None:
            return member
        try:
            return await guild.fetch_member(author_id)
        except discord.NotFound:
            logger.debug("resolve: member %s not in guild %s, trying user lookup",
                         author_id, getattr(guild, "name", None))
            return await _user(author_id)

    async def resolve(message: RawMessage) -> str:
        author_id = message.author_id
        if author_id is None:
            raise SenderResolutionError(author_id, "message has no author")
        if author_id in names:
            return names[author_id]
        try:
            if origin is ConversationOrigin.GROUP:
                user = await _member(author_id)
            else:
                user = await _user(author_id)
        except discord.DiscordException as e:
            raise SenderResolutionError(author_id, str(e)) from e
        names[author_id] = display_name(user, author_id)
        return names[author_id]

    return resolve

# -----------------------------------------------------------------------------
# Leaderboard runs
# -----------------------------------------------------------------------------
async def build_leaderboard(text_channel, client, config: BotConfig,
                            now: Optional[datetime] = None) -> str:
    """Fetch, aggregate and summarize the recent history of one channel."""
    origin = ConversationOrigin.of(text_channel)
    messages = await fetch_recent_messages(text_channel, config.fetch_limit, config.fetch_timeout, origin)
    window = LookbackWindow(hours=config.lookback_hours)
    results = await aggregate(
        messages,
        window.start(now),
        make_sender_resolver(text_channel, origin, client),
        trigger=config.trigger,
        bot_marker=config.bot_marker,
        games=config.games,
    )
    return build(results, config.games, config.bot_marker)


async def _deliver(send, text: str, config: BotConfig) -> None:
    if not config.send_results:
        # Print the summary to stdout instead of posting it
        print("==== Leaderboard (DEBUG) ====")
        print(text)
        print("==== End Leaderboard (DEBUG) ====")
        return
    try:
        await send(text)
    except discord.DiscordException:
        logger.exception("deliver: failed to send leaderboard")


async def handle_trigger(message, client, config: BotConfig) -> None:
    """
    Answer a trigger message with the leaderboard of its channel.
    Never raises; failures are logged.
    """
    text_channel = message.channel
    channel_id = getattr(text_channel, "id", None)
    logger.info("handle_trigger: run requested by %s in %s",
                getattr(message, "author", None), getattr(text_channel, "name", channel_id))

    async with _lock_for(channel_id):
        try:
            text = await build_leaderboard(text_channel, client, config)
        except FetchError:
            logger.exception("handle_trigger: history fetch failed for channel id=%s", channel_id)
            if not config.reply_on_fetch_failure:
                return
            text = f"{config.failure_notice}\n{config.bot_marker}"
        except Exception:
            logger.exception("handle_trigger: leaderboard run failed for channel id=%s", channel_id)
            return

        await _deliver(message.reply, text, config)


async def post_daily_summary(text_channel, client, config: BotConfig) -> None:
    """Scheduled variant of handle_trigger: posts to a channel, stays silent on failure."""
    channel_id = getattr(text_channel, "id", None)
    async with _lock_for(channel_id):
        try:
            text = await build_leaderboard(text_channel, client, config)
        except Exception:
            logger.exception("post_daily_summary: run failed for channel id=%s", channel_id)
            return
        await _deliver(text_channel.send, text, config)
    logger.info("post_daily_summary: posted to channel id=%s", channel_id)


async def maybe_handle_trigger(message, client, config: BotConfig) -> bool:
    """
    Run handle_trigger if the message is a trigger. Returns True when it was,
    in which case the message is consumed and must not reach command handling.
    """
    if not is_trigger(getattr(message, "content", ""), config.trigger):
        return False
    logger.debug(
        "on_message(trigger): guild=%s channel=%s author=%s",
        getattr(getattr(message, "guild", None), "name", None),
        getattr(getattr(message, "channel", None), "name", None),
        getattr(getattr(message, "author", None), "name", None),
    )
    await handle_trigger(message, client, config)
    return True
