# parrot

`parrot` is the core of a voice-channel music bot. It keeps a track queue for
each guild and runs the slash commands that act on that queue. It also works
out what a play request asks for and checks whether a user may run a command
from where they sit. For the replies it builds message texts and embeds.

Tracks are loaded with `yt-dlp`, and `ffmpeg` decodes them to PCM. Both must be
on your `PATH` if you use the built-in YouTube loader. Spotify links are turned
into search queries.

The package uses only the standard library.

## Modules

- `parrot.messages`: the reply texts, plus `ParrotMessage` and `MessageKind`.
  `str(ParrotMessage(...))` gives the text shown to users.
- `parrot.errors`: `ParrotError` and its subclasses (`OtherError`,
  `QueueEmptyError`, `NotInRangeError`, `NotConnectedError`,
  `AuthorDisconnectedError`, `WrongVoiceChannelError`, `AuthorNotFoundError`,
  `NothingPlayingError`, `TrackFailError`, `AlreadyConnectedError`).
  - `str(error)` is the reply text.
  - `verify(value, error)` returns `value` unless it is `False`, `None` or an
    exception instance. In those cases it raises `error`.
- `parrot.connection`: `check_voice_connections` works out whether the user and
  the bot share a voice channel. It returns a `Connection` whose `kind` is one of
  the `ConnectionKind` values.
- `parrot.tracks`: `Track`, `TrackMetadata`, `PlayMode`, `TrackQueue`, and the
  commands `skip`, `pause`, `resume`, `stop`, `repeat` and
  `force_skip_top_track`. The first track in a `TrackQueue` is the one playing.
- `parrot.formatting`: `Embed`, `EmbedField`, `now_playing_embed` and
  `human_readable_timestamp`.
  - 53 seconds is written `00:53`.
  - 96548 seconds is written `26:49:08`.
  - `None` or `timedelta.max` is written `∞`.
- `parrot.queue_view`: the paged queue embed, with six upcoming tracks per page
  (`create_queue_embed`, `build_queue_page`, `calculate_num_pages`). It also has
  the `<<`, `<`, `>`, `>>` navigation buttons (`build_nav_buttons`, `next_page`).
- `parrot.queue_ops`: `clear`, `remove`, `shuffle` (Fisher–Yates) and `seek`.
  `seek` takes a `MM:SS` timestamp.
- `parrot.sources.query`: `Mode` (`END`, `NEXT`, `ALL`, `REVERSE`, `SHUFFLE`,
  `JUMP`), `QueryKind` and `Query`.
- `parrot.sources.youtube`:
  - `TrackSource` reads metadata and opens a PCM stream, optionally starting
    from a given position.
  - `ytdl`, `ytdl_search` and `ytdl_playlist` load tracks and playlists.
  - Helpers build the `yt-dlp` and `ffmpeg` command lines.
- `parrot.sources.spotify`:
  - `SpotifyCatalog` is a client-credentials API client. `SpotifyCatalog.from_env`
    reads `SPOTIFY_CLIENT_ID` and `SPOTIFY_CLIENT_SECRET`.
  - `extract` turns a track, album or playlist link into keyword queries.
- `parrot.play`: `play` queues tracks in one of four ways: at the end, next in
  line, by jumping ahead, or as a whole playlist. `calculate_time_until_play`
  estimates how long until a track plays. `resolve_query` classifies a request
  as Spotify, YouTube or plain keywords.
- `parrot.guild`: `GuildSettings` (autopause), `GuildCache`, `voteskip`,
  `handle_track_end`, `update_queue_messages` and `IdleMonitor`. The idle
  monitor leaves after a number of ticks with nothing playing (600 by default).
- `parrot.bot`: `command_specs` lists the slash commands, `check_command_access`
  holds the access rules, and `Bot` dispatches commands across guilds.

## Example

```python
from datetime import timedelta

from parrot.bot import Bot
from parrot.tracks import Track, TrackMetadata


def loader(query):
    return Track(TrackMetadata(title=query.value, duration=timedelta(minutes=3)))


bot = Bot("bot", loader=loader)
bot.voice_state_update("guild", "alice", "lounge")

embed = bot.handle_command("guild", "alice", "play", {"query": "some song"})
print(embed.footer)   # 00:00 / 03:00

print(bot.handle_command("guild", "alice", "skip"))   # ⏭️ Skipped!
```

When a command fails, `Bot.handle_command` raises a `ParrotError`. Its text is
the reply to show:

```python
from parrot.errors import OtherError, verify

verify(True, OtherError("not true"))        # -> True
verify("🦜", OtherError("not something"))   # -> "🦜"
verify(None, OtherError("not something"))   # raises OtherError
```

## Spotify

To play Spotify links, pass an authenticated catalogue client as
`Bot(spotify=...)` or to `resolve_query`. You can get one from
`SpotifyCatalog.from_env()`. Without a client, Spotify links fail with an
authentication message, and other queries still work.

## What it does not do

`parrot` does not connect to a chat service, register commands with one, or
send audio to a voice channel. `Bot` keeps voice states, queues and playback
state in memory. The caller must:

- feed it voice-state updates, commands and idle ticks;
- deliver its replies;
- play the streams that `TrackSource.open` produces.

There is no command-line program, and state is not stored between runs.