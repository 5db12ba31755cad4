# ABOUTME: Outbound notifications for import outcomes, delivered as Discord webhook embeds.
# ABOUTME: Delivery failures raise NotifierError; the pipeline logs them and moves on.

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import httpx

from earmark.config import NotifierConfig
from earmark.metadata.types import BookMetadata

logger = logging.getLogger(__name__)

# A malformed host or URL fails outside the httpx.HTTPError hierarchy.
_REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL, UnicodeError)

WEBHOOK_USERNAME = "Earmark Audiobook Importer"

IMPORTED_TITLE = "🎧 New Audiobook Imported"
IMPORTED_COLOR = 0x00FF00
MANUAL_INTERVENTION_TITLE = "⚠️ Manual Intervention Required"
MANUAL_INTERVENTION_COLOR = 0xFFA500

DEFAULT_TIMEOUT = 10.0


class NotifierError(Exception):
    """Raised when a notification cannot be delivered."""


@dataclass
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass
class Embed:
    title: str
    description: str = ""
    color: int = 0
    fields: list[EmbedField] = field(default_factory=list)


@dataclass
class WebhookMessage:
    """A webhook payload: a sender name plus one or more embeds."""

    embeds: list[Embed]
    username: str = WEBHOOK_USERNAME
    content: str = ""

    def to_payload(self) -> dict[str, Any]:
        """Render the JSON body, omitting empty optional keys."""
        payload: dict[str, Any] = {"username": self.username}
        if self.content:
            payload["content"] = self.content
        payload["embeds"] = []
        for embed in self.embeds:
            rendered: dict[str, Any] = {"title": embed.title, "color": embed.color}
            if embed.description:
                rendered["description"] = embed.description
            if embed.fields:
                rendered["fields"] = [
                    {"name": f.name, "value": f.value, "inline": f.inline}
                    for f in embed.fields
                ]
            payload["embeds"].append(rendered)
        return payload


@runtime_checkable
class Notifier(Protocol):
    """Protocol for notification sinks."""

    @property
    def name(self) -> str: ...

    def send(self, message: WebhookMessage) -> None: ...


class DiscordWebhookNotifier:
    """Posts messages to a Discord webhook URL."""

    def __init__(
        self,
        name: str,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        client_kwargs: dict[str, Any] = {"timeout": timeout}
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.Client(**client_kwargs)
        self._name = name
        self._url = url

    @property
    def name(self) -> str:
        return self._name

    def send(self, message: WebhookMessage) -> None:
        """POST the message.

        Raises:
            NotifierError: Network failure or a non-2xx response.
        """
        try:
            response = self._client.post(self._url, json=message.to_payload())
        except _REQUEST_ERRORS as exc:
            raise NotifierError(f"notifier {self._name!r}: {exc}") from exc

        if response.status_code >= 300:
            raise NotifierError(
                f"notifier {self._name!r}: HTTP {response.status_code} {response.text[:200]!r}"
            )
        logger.debug("Delivered notification via %s", self._name)

    def close(self) -> None:
        self._client.close()


def build_imported_message(metadata: BookMetadata) -> WebhookMessage:
    """Success embed: bold title with series, authors, series, and catalog link."""
    description = f"**{metadata.title}**"
    series = metadata.series_label
    if series:
        description += f" - {series}"

    fields = [EmbedField("Author(s)", ", ".join(p.name for p in metadata.authors))]
    if series:
        fields.append(EmbedField("Series", series, inline=True))
    fields.append(EmbedField("Audible", f"[View on Audible]({metadata.catalog_url})", inline=True))

    return WebhookMessage(
        embeds=[
            Embed(
                title=IMPORTED_TITLE,
                description=description,
                color=IMPORTED_COLOR,
                fields=fields,
            )
        ]
    )


def build_manual_intervention_message(name: str, torrent_hash: str, reason: str) -> WebhookMessage:
    return WebhookMessage(
        embeds=[
            Embed(
                title=MANUAL_INTERVENTION_TITLE,
                description=f"Audiobook **{name}** requires manual intervention",
                color=MANUAL_INTERVENTION_COLOR,
                fields=[
                    EmbedField("Reason", reason),
                    EmbedField("Torrent Hash", torrent_hash, inline=True),
                ],
            )
        ]
    )


def build_notifiers(configs: list[NotifierConfig]) -> dict[str, Notifier]:
    """Instantiate configured notifiers keyed by name.

    Unknown notifier types are logged and skipped.
    """
    notifiers: dict[str, Notifier] = {}
    for config in configs:
        if config.type == "discord":
            notifiers[config.name] = DiscordWebhookNotifier(config.name, config.url)
        else:
            logger.error("Unknown notifier type %r for notifier %r", config.type, config.name)
    return notifiers
