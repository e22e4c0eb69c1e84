"""User-facing message texts and the structured messages built from them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

AUTOPAUSE_OFF = "🤖 Autopause OFF!"
AUTOPAUSE_ON = "🤖 Autopause ON!"
CLEARED = "🗑️ Cleared!"
ERROR = "Fatality! Something went wrong ☹️"
FAIL_ALREADY_HERE = "⚠️ I'm already here!"
FAIL_ANOTHER_CHANNEL = "⚠️ I'm already connected to"
FAIL_AUTHOR_DISCONNECTED = "⚠️ You are not connected to"
FAIL_AUTHOR_NOT_FOUND = "⚠️ Could not find you in any voice channel!"
FAIL_LOOP = "⚠️ Failed to toggle loop!"
FAIL_MINUTES_PARSING = "⚠️ Invalid formatting for 'minutes'"
FAIL_NO_SONG_ON_INDEX = "⚠️ There is no queued song on that index!"
FAIL_NO_VOICE_CONNECTION = "⚠️ I'm not connected to any voice channel!"
FAIL_REMOVE_RANGE = "⚠️ `until` needs to be higher than `index`!"
FAIL_SECONDS_PARSING = "⚠️ Invalid formatting for 'seconds'"
FAIL_WRONG_CHANNEL = "⚠️ We are not in the same voice channel!"
IDLE_ALERT = (
    "I've been idle for a while, so I'll leave for now to save resources.\n"
    "Feel free to summon me back any time!"
)
JOINING = "Joining"
LEAVING = "👋 See you soon!"
LOOP_DISABLED = "🔁 Disabled loop!"
LOOP_ENABLED = "🔁 Enabled loop!"
NOTHING_IS_PLAYING = "🔈 Nothing is playing!"
PAUSED = "⏸️ Paused!"
PLAY_ALL_FAILED = "⚠️ Cannot fetch playlist via keywords! Try passing this command an URL."
PLAY_PLAYLIST = "📃 Added playlist to queue!"
PLAY_QUEUE = "📃 Added to queue!"
PLAY_TOP = "📃 Added to top!"
QUEUE_EXPIRED = (
    "In order to save resources, this command has expired.\n"
    "Please feel free to reinvoke it!"
)
QUEUE_IS_EMPTY = "Queue is empty!"
QUEUE_NO_SONGS = "There's no songs up next!"
QUEUE_NOTHING_IS_PLAYING = "Nothing is playing!"
QUEUE_NOW_PLAYING = "🔊 Now playing"
QUEUE_PAGE_OF = "of"
QUEUE_PAGE = "Page"
QUEUE_UP_NEXT = "⌛ Up next"
REMOVED_QUEUE_MULTIPLE = "❌ Removed multiple tracks from queue!"
REMOVED_QUEUE = "❌ Removed from queue"
RESUMED = "▶️ Resumed!"
SEARCHING = "🔎 Searching..."
SEEKED = "⏩ Seeked current track to"
SHUFFLED_SUCCESS = "🔀 Shuffled successfully!"
SKIP_VOTE_EMOJI = "🗳 "
SKIP_VOTE_MISSING = "more vote(s) needed to skip!"
SKIP_VOTE_USER = "has voted to skip!"
SKIPPED_ALL = "⏭️ Skipped until infinity!"
SKIPPED_TO = "⏭️ Skipped to"
SKIPPED = "⏭️ Skipped!"
SPOTIFY_AUTH_FAILED = (
    "⚠️ **Could not authenticate with Spotify!**\n"
    "Did you forget to provide your Spotify application's client ID and secret?"
)
SPOTIFY_INVALID_QUERY = (
    "⚠️ **Could not find any tracks with that link!**\n"
    "Are you sure that is a valid Spotify URL?"
)
SPOTIFY_PLAYLIST_FAILED = (
    "⚠️ **Failed to fetch playlist!**\n"
    "It's likely that this playlist is either private or a personalized "
    "recommendation playlist generated by Spotify."
)
STOPPED = "⏹️ Stopped!"
TRACK_DURATION = "Track duration: "
TRACK_NOT_FOUND = "⚠️ **Could not play track!**\nYour request yielded no results."
TRACK_INAPPROPRIATE = (
    "⚠️ **Could not play track!**\n"
    "The video you requested may be inappropriate for some users, so sign-in is required."
)
TRACK_TIME_TO_PLAY = "Estimated time until play: "
VERSION_LATEST = "Find the latest version [here]"
VERSION = "Version"

RELEASES_LINK = "https://example.com/parrot/releases"


class MessageKind(Enum):
    """Every kind of reply the bot sends."""

    AUTOPAUSE_OFF = auto()
    AUTOPAUSE_ON = auto()
    CLEAR = auto()
    ERROR = auto()
    LEAVING = auto()
    LOOP_DISABLE = auto()
    LOOP_ENABLE = auto()
    NOW_PLAYING = auto()
    PAUSE = auto()
    PLAYLIST_QUEUED = auto()
    PLAY_ALL_FAILED = auto()
    REMOVE_MULTIPLE = auto()
    RESUME = auto()
    SEARCH = auto()
    SEEK = auto()
    SHUFFLE = auto()
    SKIP = auto()
    SKIP_ALL = auto()
    SKIP_TO = auto()
    STOP = auto()
    SUMMON = auto()
    VERSION = auto()
    VOTE_SKIP = auto()


_FIXED_TEXT = {
    MessageKind.AUTOPAUSE_OFF: AUTOPAUSE_OFF,
    MessageKind.AUTOPAUSE_ON: AUTOPAUSE_ON,
    MessageKind.CLEAR: CLEARED,
    MessageKind.ERROR: ERROR,
    MessageKind.LEAVING: LEAVING,
    MessageKind.LOOP_DISABLE: LOOP_DISABLED,
    MessageKind.LOOP_ENABLE: LOOP_ENABLED,
    MessageKind.NOW_PLAYING: QUEUE_NOW_PLAYING,
    MessageKind.PAUSE: PAUSED,
    MessageKind.PLAYLIST_QUEUED: PLAY_PLAYLIST,
    MessageKind.PLAY_ALL_FAILED: PLAY_ALL_FAILED,
    MessageKind.SEARCH: SEARCHING,
    MessageKind.REMOVE_MULTIPLE: REMOVED_QUEUE_MULTIPLE,
    MessageKind.RESUME: RESUMED,
    MessageKind.SHUFFLE: SHUFFLED_SUCCESS,
    MessageKind.STOP: STOPPED,
    MessageKind.SKIP: SKIPPED,
    MessageKind.SKIP_ALL: SKIPPED_ALL,
}


@dataclass(frozen=True)
class ParrotMessage:
    """A reply of a given kind, with whatever details that kind shows."""

    kind: MessageKind
    timestamp: str = ""
    title: str = ""
    url: str = ""
    mention: str = ""
    current: str = ""
    missing: int = 0
    releases_link: str = RELEASES_LINK

    def __str__(self) -> str:
        fixed = _FIXED_TEXT.get(self.kind)
        if fixed is not None:
            return fixed
        if self.kind is MessageKind.VOTE_SKIP:
            return (
                f"{SKIP_VOTE_EMOJI}{self.mention} {SKIP_VOTE_USER} "
                f"{self.missing} {SKIP_VOTE_MISSING}"
            )
        if self.kind is MessageKind.SEEK:
            return f"{SEEKED} **{self.timestamp}**!"
        if self.kind is MessageKind.SKIP_TO:
            return f"{SKIPPED_TO} [**{self.title}**]({self.url})!"
        if self.kind is MessageKind.SUMMON:
            return f"{JOINING} **{self.mention}**!"
        # MessageKind.VERSION
        return (
            f"{VERSION} [{self.current}]({self.releases_link}/tag/v{self.current})\n"
            f"{VERSION_LATEST}({self.releases_link}/latest)"
        )