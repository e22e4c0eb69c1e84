"""Per-guild state: settings, cached queue views, skip votes and idle tracking."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from parrot.errors import NothingPlayingError, verify
from parrot.formatting import Embed
from parrot.messages import IDLE_ALERT, MessageKind, ParrotMessage
from parrot.queue_view import NavButton, build_nav_buttons, calculate_num_pages, create_queue_embed
from parrot.tracks import PlayMode, Track, TrackQueue, force_skip_top_track, skip_response

MessageEditor = Callable[[Embed, "list[NavButton]"], None]

DEFAULT_IDLE_LIMIT = 60 * 10


@dataclass
class GuildSettings:
    """Options a guild can toggle."""

    autopause: bool = False


@dataclass
class QueueMessage:
    """A posted queue view that is kept up to date as the queue changes.

    ``editor`` pushes a new rendering to the posted message and raises when
    the message can no longer be edited.
    """

    message_id: Hashable
    page: int = 0
    editor: MessageEditor | None = None
    embed: Embed | None = None
    buttons: list[NavButton] = field(default_factory=list)

    def edit(self, embed: Embed, buttons: list[NavButton]) -> None:
        if self.editor is not None:
            self.editor(embed, buttons)
        self.embed = embed
        self.buttons = buttons


@dataclass
class GuildCache:
    """Transient data kept for a guild while the bot runs."""

    queue_messages: list[QueueMessage] = field(default_factory=list)
    current_skip_votes: set[Hashable] = field(default_factory=set)


def autopause(settings: GuildSettings) -> ParrotMessage:
    """Toggle whether playback pauses after each track ends."""
    settings.autopause = not settings.autopause
    kind = MessageKind.AUTOPAUSE_ON if settings.autopause else MessageKind.AUTOPAUSE_OFF
    return ParrotMessage(kind)


def voteskip(
    cache: GuildCache,
    queue: TrackQueue,
    user_id: Hashable,
    voice_states: Mapping[Hashable, Hashable | None],
    bot_channel_id: Hashable,
) -> ParrotMessage:
    """Record a user's vote to skip and skip once half the listeners agree.

    ``voice_states`` maps each user to the voice channel they are in.
    """
    verify(not queue.is_empty(), NothingPlayingError())
    cache.current_skip_votes.add(user_id)

    listeners = sum(1 for channel in voice_states.values() if channel == bot_channel_id)
    skip_threshold = listeners // 2
    votes = len(cache.current_skip_votes)

    if votes >= skip_threshold:
        force_skip_top_track(queue)
        return skip_response(queue, 1)
    return ParrotMessage(
        MessageKind.VOTE_SKIP,
        mention=f"<@{user_id}>",
        missing=skip_threshold - votes,
    )


def forget_skip_votes(cache: GuildCache) -> None:
    """Discard every vote cast for the current track."""
    cache.current_skip_votes = set()


def forget_queue_message(cache: GuildCache, message_id: Hashable) -> None:
    """Stop keeping the queue view with ``message_id`` up to date."""
    cache.queue_messages = [m for m in cache.queue_messages if m.message_id != message_id]


def handle_track_end(
    settings: GuildSettings | None, cache: GuildCache | None, queue: TrackQueue
) -> None:
    """React to the end of a track: autopause if asked, and reset skip votes."""
    if settings is not None and settings.autopause:
        try:
            queue.pause()
        except RuntimeError:
            pass
    if cache is not None:
        forget_skip_votes(cache)


def update_queue_messages(cache: GuildCache, tracks: Sequence[Track]) -> list[QueueMessage]:
    """Re-render every cached queue view for ``tracks``.

    Views whose page no longer exists move to the last page; views that
    cannot be edited are forgotten. Returns the views that were updated.
    """
    num_pages = calculate_num_pages(tracks)
    updated = []
    for message in list(cache.queue_messages):
        message.page = min(message.page, num_pages - 1)
        embed = create_queue_embed(tracks, message.page)
        buttons = build_nav_buttons(message.page, num_pages)
        try:
            message.edit(embed, buttons)
        except Exception:  # the posted message is gone or no longer editable
            forget_queue_message(cache, message.message_id)
        else:
            updated.append(message)
    return updated


@dataclass
class IdleMonitor:
    """Counts ticks without playback and leaves once the limit is passed.

    ``leave`` disconnects the bot and raises if it could not.
    """

    limit: int = DEFAULT_IDLE_LIMIT
    count: int = 0
    leave: Callable[[], None] | None = None

    def tick(self, tracks: Iterable[Track]) -> str | None:
        """Advance one tick; returns the alert to post when the bot left."""
        if any(track.mode is PlayMode.PLAY for track in tracks):
            self.count = 0
            return None

        previous = self.count
        self.count += 1
        if previous < self.limit:
            return None

        if self.leave is not None:
            try:
                self.leave()
            except Exception:  # leaving failed, stay quiet like a failed disconnect
                return None
        return IDLE_ALERT