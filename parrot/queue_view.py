"""The paginated view of a guild's queue."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from parrot.formatting import Embed, EmbedField, human_readable_timestamp
from parrot.messages import (
    QUEUE_NO_SONGS,
    QUEUE_NOTHING_IS_PLAYING,
    QUEUE_NOW_PLAYING,
    QUEUE_PAGE,
    QUEUE_PAGE_OF,
    QUEUE_UP_NEXT,
)
from parrot.tracks import Track

EMBED_PAGE_SIZE = 6
EMBED_TIMEOUT = 3600

_NAV_LABELS = ("<<", "<", ">", ">>")


@dataclass(frozen=True)
class NavButton:
    """A page navigation button."""

    custom_id: str
    label: str
    disabled: bool


def calculate_num_pages(tracks: Sequence[Track]) -> int:
    """Number of pages needed for the tracks after the playing one (at least 1)."""
    return max(1, math.ceil((len(tracks) - 1) / EMBED_PAGE_SIZE))


def build_queue_page(tracks: Sequence[Track], page: int) -> str:
    """List the upcoming tracks on ``page``, numbered by their queue position."""
    start = EMBED_PAGE_SIZE * page
    shown = tracks[start + 1 : start + 1 + EMBED_PAGE_SIZE]
    if not shown:
        return QUEUE_NO_SONGS
    lines = []
    for number, track in enumerate(shown, start=start + 1):
        metadata = track.metadata
        duration = human_readable_timestamp(metadata.duration)
        lines.append(f"`{number}.` [{metadata.title}]({metadata.source_url}) • `{duration}`\n")
    return "".join(lines)


def create_queue_embed(tracks: Sequence[Track], page: int) -> Embed:
    """Build the queue embed showing the playing track and one page of the rest."""
    embed = Embed()
    if tracks:
        metadata = tracks[0].metadata
        embed.thumbnail = metadata.thumbnail
        description = (
            f"[{metadata.title}]({metadata.source_url}) • "
            f"`{human_readable_timestamp(metadata.duration)}`"
        )
    else:
        description = QUEUE_NOTHING_IS_PLAYING
    embed.fields.append(EmbedField(QUEUE_NOW_PLAYING, description))
    embed.fields.append(EmbedField(QUEUE_UP_NEXT, build_queue_page(tracks, page)))
    embed.footer = f"{QUEUE_PAGE} {page + 1} {QUEUE_PAGE_OF} {calculate_num_pages(tracks)}"
    return embed


def build_nav_buttons(page: int, num_pages: int) -> list[NavButton]:
    """The four navigation buttons, disabled where they cannot move."""
    cant_left = page < 1
    cant_right = page >= num_pages - 1
    disabled = (cant_left, cant_left, cant_right, cant_right)
    return [
        NavButton(label.lower(), label, is_disabled)
        for label, is_disabled in zip(_NAV_LABELS, disabled)
    ]


def next_page(button_id: str, page: int, num_pages: int) -> int | None:
    """The page a navigation button leads to, or None for an unknown button."""
    last = num_pages - 1
    if button_id == "<<":
        return 0
    if button_id == "<":
        return min(max(page - 1, 0), last)
    if button_id == ">":
        return min(page + 1, last)
    if button_id == ">>":
        return last
    return None