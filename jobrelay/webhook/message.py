"""Translation of job payloads into chat-webhook message bodies."""

from __future__ import annotations

from datetime import datetime

from jobrelay.models import Embed, EmbedField, OutboundMessage, iso_timestamp
from jobrelay.webhook.models import JobPayload

EMBED_TITLE = "Job Processing"
_MISSING = "N/A"


def _display(value: str) -> str:
    return value or _MISSING


def build_job_message(payload: JobPayload, now: datetime) -> OutboundMessage:
    """Build the text summary and single embed for a job notification."""
    return OutboundMessage(
        content=f"Job {_display(payload.job_id)} from {_display(payload.player_name)}",
        embeds=[
            Embed(
                title=EMBED_TITLE,
                fields=[
                    EmbedField(name="Job ID", value=_display(payload.job_id)),
                    EmbedField(name="Player", value=_display(payload.player_name)),
                    EmbedField(name="Place ID", value=_display(payload.place_id)),
                ],
                timestamp=iso_timestamp(now),
            ),
        ],
    )
