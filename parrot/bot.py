"""The bot itself: its slash commands, access rules and per-guild voice sessions."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _distribution_version
from typing import Any

from parrot.connection import (
    Connection,
    ConnectionKind,
    check_voice_connections,
    get_voice_channel_for_user,
)
from parrot.errors import (
    AlreadyConnectedError,
    AuthorDisconnectedError,
    AuthorNotFoundError,
    NothingPlayingError,
    NotConnectedError,
    WrongVoiceChannelError,
)
from parrot.formatting import Embed, now_playing_embed
from parrot.guild import (
    DEFAULT_IDLE_LIMIT,
    GuildCache,
    GuildSettings,
    IdleMonitor,
    QueueMessage,
    autopause,
    update_queue_messages,
    voteskip,
)
from parrot.messages import MessageKind, ParrotMessage
from parrot.play import PlaylistLoader, TrackLoader, resolve_query
from parrot.play import play as queue_play
from parrot.queue_ops import clear, remove, seek, shuffle
from parrot.queue_view import build_nav_buttons, calculate_num_pages, create_queue_embed
from parrot.sources.query import Mode
from parrot.tracks import TrackQueue, pause, repeat, resume, skip, stop

Reply = ParrotMessage | Embed

_CONTROL_COMMANDS = frozenset(
    {
        "autopause",
        "clear",
        "leave",
        "pause",
        "remove",
        "repeat",
        "resume",
        "seek",
        "shuffle",
        "skip",
        "stop",
        "voteskip",
    }
)
_JOIN_COMMANDS = frozenset({"play", "superplay", "summon"})
_VIEW_COMMANDS = frozenset({"np", "queue"})


@dataclass(frozen=True)
class CommandOption:
    """An option of a slash command; ``kind`` is "string", "integer" or "subcommand"."""

    name: str
    description: str
    kind: str = "string"
    required: bool = False
    min_value: int | None = None
    options: tuple[CommandOption, ...] = ()


@dataclass(frozen=True)
class CommandSpec:
    """A slash command as registered with the chat service."""

    name: str
    description: str
    options: tuple[CommandOption, ...] = ()


def _query_option() -> CommandOption:
    return CommandOption("query", "The media to play", "string", required=True)


def _subcommand(name: str, description: str) -> CommandOption:
    return CommandOption(name, description, "subcommand", options=(_query_option(),))


def command_specs() -> list[CommandSpec]:
    """Every command the bot offers, in registration order."""
    return [
        CommandSpec("autopause", "Toggles whether to pause after a song ends"),
        CommandSpec("clear", "Clears the queue"),
        CommandSpec("leave", "Leave the voice channel the bot is connected to"),
        CommandSpec("np", "Displays information about the current track"),
        CommandSpec("pause", "Pauses the current track"),
        CommandSpec("play", "Add a track to the queue", (_query_option(),)),
        CommandSpec(
            "superplay",
            "Add a track to the queue in a special way",
            (
                _subcommand("next", "Add a track to be played up next"),
                _subcommand("jump", "Instantly plays a track, skipping the current one"),
                _subcommand("all", "Add all tracks if the URL refers to a video and a playlist"),
                _subcommand("reverse", "Add a playlist to the queue in reverse order"),
                _subcommand("shuffle", "Add a playlist to the queue in random order"),
            ),
        ),
        CommandSpec("queue", "Shows the queue"),
        CommandSpec(
            "remove",
            "Removes a track from the queue",
            (
                CommandOption(
                    "index",
                    "Position of the track in the queue (1 is the next track to be played)",
                    "integer",
                    required=True,
                    min_value=1,
                ),
                CommandOption(
                    "until",
                    "Upper range track position to remove a range of tracks",
                    "integer",
                    required=False,
                    min_value=1,
                ),
            ),
        ),
        CommandSpec("repeat", "Toggles looping for the current track"),
        CommandSpec("resume", "Resumes the current track"),
        CommandSpec(
            "seek",
            "Seeks current track to the given position",
            (CommandOption("timestamp", "Timestamp in the format HH:MM:SS", "string", True),),
        ),
        CommandSpec("shuffle", "Shuffles the queue"),
        CommandSpec(
            "skip",
            "Skips the current track",
            (CommandOption("to", "Track index to skip to", "integer", False, 1),),
        ),
        CommandSpec("stop", "Stops the bot and clears the queue"),
        CommandSpec("summon", "Summons the bot in your voice channel"),
        CommandSpec("version", "Displays the current version"),
        CommandSpec("voteskip", "Starts a vote to skip the current track"),
    ]


def _channel_mention(channel_id: Hashable) -> str:
    return f"<#{channel_id}>"


def check_command_access(
    command_name: str,
    voice_states: Mapping[Hashable, Hashable | None],
    user_id: Hashable,
    bot_id: Hashable,
) -> Connection:
    """Check that the user may run the command where everyone sits.

    Returns the voice connection state, or raises the matching ParrotError.
    """
    connection = check_voice_connections(voice_states, user_id, bot_id)
    kind = connection.kind

    if command_name in _CONTROL_COMMANDS:
        if kind in (ConnectionKind.USER, ConnectionKind.NEITHER):
            raise NotConnectedError()
        if kind is ConnectionKind.BOT:
            raise AuthorDisconnectedError(_channel_mention(connection.bot_channel))
        if kind is ConnectionKind.SEPARATE:
            raise WrongVoiceChannelError()
    elif command_name in _JOIN_COMMANDS:
        if kind is ConnectionKind.BOT:
            if command_name == "summon":
                raise AuthorNotFoundError()
            raise WrongVoiceChannelError()
        if kind is ConnectionKind.SEPARATE:
            raise AlreadyConnectedError(_channel_mention(connection.bot_channel))
        if kind is ConnectionKind.NEITHER:
            raise AuthorNotFoundError()
    elif command_name in _VIEW_COMMANDS:
        if kind in (ConnectionKind.USER, ConnectionKind.NEITHER):
            raise NotConnectedError()
    return connection


def _installed_version() -> str:
    try:
        return _distribution_version("parrot")
    except PackageNotFoundError:
        return "Unknown"


def version(current: str | None = None) -> ParrotMessage:
    """The reply naming the running version and where to find the latest."""
    return ParrotMessage(
        MessageKind.VERSION, current=current if current is not None else _installed_version()
    )


def now_playing(queue: TrackQueue) -> Embed:
    """The embed describing the track being played."""
    track = queue.current()
    if track is None:
        raise NothingPlayingError()
    return now_playing_embed(track)


class Bot:
    """The bot's state across guilds and the entry point for its commands.

    ``voice_states`` maps each guild to the voice channel of every user in it,
    the bot included. A guild with a queue is one the bot has joined.
    """

    def __init__(
        self,
        bot_id: Hashable,
        *,
        spotify: Any = None,
        loader: TrackLoader | None = None,
        playlist_loader: PlaylistLoader | None = None,
        idle_limit: int = DEFAULT_IDLE_LIMIT,
        current_version: str | None = None,
    ) -> None:
        self.bot_id = bot_id
        self.spotify = spotify
        self.loader = loader
        self.playlist_loader = playlist_loader
        self.idle_limit = idle_limit
        self.current_version = current_version
        self.voice_states: dict[Hashable, dict[Hashable, Hashable]] = {}
        self.queues: dict[Hashable, TrackQueue] = {}
        self.settings: dict[Hashable, GuildSettings] = {}
        self.caches: dict[Hashable, GuildCache] = {}
        self.idle_monitors: dict[Hashable, IdleMonitor] = {}
        self._message_ids = itertools.count(1)
        self._handlers: dict[str, Callable[[Hashable, Hashable, Mapping[str, Any]], Reply]] = {
            "autopause": self._autopause,
            "clear": self._clear,
            "leave": lambda guild_id, _user, _options: self.leave(guild_id),
            "np": lambda guild_id, _user, _options: now_playing(self._queue(guild_id)),
            "pause": lambda guild_id, _user, _options: pause(self._queue(guild_id)),
            "play": self._play,
            "queue": self._queue_view,
            "remove": self._remove,
            "repeat": lambda guild_id, _user, _options: repeat(self._queue(guild_id)),
            "resume": lambda guild_id, _user, _options: resume(self._queue(guild_id)),
            "seek": lambda guild_id, _user, options: seek(
                self._queue(guild_id), options["timestamp"]
            ),
            "shuffle": self._shuffle,
            "skip": lambda guild_id, _user, options: skip(
                self._queue(guild_id), int(options.get("to", 1))
            ),
            "stop": self._stop,
            "superplay": self._play,
            "summon": lambda guild_id, user_id, _options: self.summon(guild_id, user_id, True),
            "version": lambda _guild, _user, _options: version(self.current_version),
            "voteskip": self._voteskip,
        }

    # -- state helpers -------------------------------------------------------

    def _voice_states(self, guild_id: Hashable) -> dict[Hashable, Hashable]:
        return self.voice_states.setdefault(guild_id, {})

    def _cache(self, guild_id: Hashable) -> GuildCache:
        return self.caches.setdefault(guild_id, GuildCache())

    def _queue(self, guild_id: Hashable) -> TrackQueue:
        queue = self.queues.get(guild_id)
        if queue is None:
            raise NotConnectedError()
        return queue

    def _refresh_views(self, guild_id: Hashable) -> None:
        cache = self.caches.get(guild_id)
        if cache is None:
            return
        queue = self.queues.get(guild_id)
        update_queue_messages(cache, queue.current_queue() if queue is not None else [])

    def _disconnect(self, guild_id: Hashable) -> None:
        queue = self.queues.pop(guild_id)
        queue.stop()
        self.idle_monitors.pop(guild_id, None)
        self._voice_states(guild_id).pop(self.bot_id, None)

    # -- public entry points -------------------------------------------------

    def handle_command(
        self,
        guild_id: Hashable,
        user_id: Hashable,
        name: str,
        options: Mapping[str, Any] | None = None,
    ) -> Reply:
        """Run a command for a user and return the reply.

        Raises ParrotError, whose text is the reply to show, when it fails.
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise ValueError(f"unknown command: {name!r}")
        check_command_access(name, self._voice_states(guild_id), user_id, self.bot_id)
        return handler(guild_id, user_id, options or {})

    def summon(
        self, guild_id: Hashable, user_id: Hashable, send_reply: bool = True
    ) -> ParrotMessage | None:
        """Join the user's voice channel and start watching for idleness."""
        states = self._voice_states(guild_id)
        channel_id = get_voice_channel_for_user(states, user_id)
        if channel_id is None:
            raise AuthorNotFoundError()

        bot_channel = states.get(self.bot_id)
        if guild_id in self.queues and bot_channel is not None and send_reply:
            raise AlreadyConnectedError(_channel_mention(bot_channel))

        states[self.bot_id] = channel_id
        self.queues.setdefault(guild_id, TrackQueue())
        self.idle_monitors[guild_id] = IdleMonitor(
            limit=self.idle_limit, leave=lambda: self.leave(guild_id)
        )

        if send_reply:
            return ParrotMessage(MessageKind.SUMMON, mention=_channel_mention(channel_id))
        return None

    def leave(self, guild_id: Hashable) -> ParrotMessage:
        """Leave the guild's voice channel, dropping its queue."""
        if guild_id not in self.queues:
            raise NotConnectedError()
        self._disconnect(guild_id)
        return ParrotMessage(MessageKind.LEAVING)

    def voice_state_update(
        self, guild_id: Hashable, user_id: Hashable, channel_id: Hashable | None
    ) -> None:
        """Record that a user joined ``channel_id`` (None when they left voice)."""
        states = self._voice_states(guild_id)
        if channel_id is None:
            states.pop(user_id, None)
        else:
            states[user_id] = channel_id

        if user_id != self.bot_id or channel_id is not None:
            return

        if guild_id in self.queues:
            self._disconnect(guild_id)
        cache = self.caches.get(guild_id)
        if cache is not None:
            update_queue_messages(cache, [])

    def tick(self, guild_id: Hashable) -> str | None:
        """Advance the guild's idle watch by one second.

        Returns the alert to post when the bot left for being idle.
        """
        monitor = self.idle_monitors.get(guild_id)
        if monitor is None:
            return None
        queue = self.queues.get(guild_id)
        return monitor.tick(queue.current_queue() if queue is not None else [])

    # -- command handlers ----------------------------------------------------

    def _autopause(self, guild_id: Hashable, _user: Hashable, _options: Mapping[str, Any]) -> Reply:
        return autopause(self.settings.setdefault(guild_id, GuildSettings()))

    def _clear(self, guild_id: Hashable, _user: Hashable, _options: Mapping[str, Any]) -> Reply:
        reply = clear(self._queue(guild_id))
        self._refresh_views(guild_id)
        return reply

    def _remove(self, guild_id: Hashable, _user: Hashable, options: Mapping[str, Any]) -> Reply:
        until = options.get("until")
        reply = remove(
            self._queue(guild_id), int(options["index"]), None if until is None else int(until)
        )
        self._refresh_views(guild_id)
        return reply

    def _shuffle(self, guild_id: Hashable, _user: Hashable, _options: Mapping[str, Any]) -> Reply:
        reply = shuffle(self._queue(guild_id))
        self._refresh_views(guild_id)
        return reply

    def _stop(self, guild_id: Hashable, _user: Hashable, _options: Mapping[str, Any]) -> Reply:
        reply = stop(self._queue(guild_id))
        self._refresh_views(guild_id)
        return reply

    def _play(self, guild_id: Hashable, user_id: Hashable, options: Mapping[str, Any]) -> Reply:
        if not options:
            raise ValueError("play needs a query")
        option_name, value = next(iter(options.items()))
        mode = Mode.from_name(option_name)
        url = value if mode is Mode.END else value["query"]

        self.summon(guild_id, user_id, False)
        queue = self._queue(guild_id)
        query = resolve_query(url, self.spotify)
        try:
            reply = queue_play(queue, mode, query, self.loader, self.playlist_loader)
        finally:
            self._refresh_views(guild_id)
        return reply if reply is not None else ParrotMessage(MessageKind.SEARCH)

    def _queue_view(self, guild_id: Hashable, _user: Hashable, _options: Mapping[str, Any]) -> Reply:
        tracks = self._queue(guild_id).current_queue()
        embed = create_queue_embed(tracks, 0)
        buttons = build_nav_buttons(0, calculate_num_pages(tracks))
        self._cache(guild_id).queue_messages.append(
            QueueMessage(next(self._message_ids), 0, embed=embed, buttons=buttons)
        )
        return embed

    def _voteskip(self, guild_id: Hashable, user_id: Hashable, _options: Mapping[str, Any]) -> Reply:
        states = self._voice_states(guild_id)
        bot_channel = states.get(self.bot_id)
        if bot_channel is None:
            raise NotConnectedError()
        return voteskip(self._cache(guild_id), self._queue(guild_id), user_id, states, bot_channel)