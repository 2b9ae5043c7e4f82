"""
RSS + oEmbed live probe.

Detection heuristic for a streamer:
1. Fetch the streamer's RSS feed and take the newest item.
2. The item counts as live only if its title mentions "live".
3. Fetch the item page and find its oEmbed discovery link.
4. The oEmbed href carries the embed URL in its ``url`` query parameter;
   the last path segment of that URL is the reference (embed code).

Any missing piece means "not live". Network and parse failures raise
ProbeError, which the arbitrator treats as "not live" for that source.
"""

from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as ET
from html.parser import HTMLParser
from urllib.parse import parse_qs, urlparse

import requests

from ...infra.exceptions import ProbeError

logger = logging.getLogger(__name__)

OEMBED_TYPE = "application/json+oembed"
PAGE_HEADERS = {"User-Agent": "Mozilla/5.0", "Accept": "text/html"}


class _OEmbedLinkFinder(HTMLParser):
    """Collects the href of the first ``<link type="application/json+oembed">``."""

    def __init__(self) -> None:
        super().__init__()
        self.href: str | None = None

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if self.href is not None or tag != "link":
            return
        attributes = dict(attrs)
        if (attributes.get("type") or "").lower() == OEMBED_TYPE and attributes.get("href"):
            self.href = attributes["href"]


def find_oembed_href(html: str) -> str | None:
    """Return the oEmbed discovery href in an HTML page, if any."""
    finder = _OEmbedLinkFinder()
    finder.feed(html)
    finder.close()
    return finder.href


def reference_from_oembed_href(href: str) -> str | None:
    """Extract the embed code from an oEmbed href's ``url`` parameter."""
    embedded = parse_qs(urlparse(href).query).get("url")
    if not embedded or not embedded[0]:
        return None
    segments = [segment for segment in urlparse(embedded[0]).path.split("/") if segment]
    return segments[-1] if segments else None


def first_feed_item(feed_xml: bytes) -> tuple[str, str] | None:
    """Return ``(title, link)`` of the newest RSS item, or None for an empty feed."""
    root = ET.fromstring(feed_xml)
    item = root.find("./channel/item")
    if item is None:
        item = root.find(".//item")
    if item is None:
        return None
    return (item.findtext("title") or "").strip(), (item.findtext("link") or "").strip()


class RumbleFeedProbe:
    """LiveSourceProbe backed by an RSS feed per streamer."""

    def __init__(
        self,
        feed_url_template: str,
        timeout_sec: float = 10.0,
        session: requests.Session | None = None,
    ):
        """
        Args:
            feed_url_template: Feed URL with a ``{name}`` placeholder
            timeout_sec: Per-request timeout
            session: Optional pre-configured session (tests inject one)
        """
        if "{name}" not in feed_url_template:
            raise ValueError("feed_url_template must contain a {name} placeholder")
        self.feed_url_template = feed_url_template
        self.timeout_sec = timeout_sec
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        # No retry adapter: a failed probe simply waits for the next poll cycle
        session = requests.Session()
        session.headers.update({"User-Agent": "Mozilla/5.0"})
        return session

    async def probe(self, source_name: str) -> str | None:
        return await asyncio.to_thread(self.fetch_live_reference, source_name)

    def fetch_live_reference(self, source_name: str) -> str | None:
        """
        Blocking probe for one streamer.

        Returns:
            The embed code if the streamer looks live, otherwise None

        Raises:
            ProbeError: If a request fails or the feed cannot be parsed
        """
        feed_url = self.feed_url_template.format(name=source_name)
        try:
            response = self.session.get(feed_url, timeout=self.timeout_sec)
            response.raise_for_status()
            item = first_feed_item(response.content)
            if item is None:
                return None

            title, link = item
            if "live" not in title.lower() or not link:
                return None

            page = self.session.get(link, headers=PAGE_HEADERS, timeout=self.timeout_sec)
            page.raise_for_status()
        except requests.RequestException as e:
            raise ProbeError(f"Failed to probe {source_name}: {e}") from e
        except ET.ParseError as e:
            raise ProbeError(f"Malformed feed for {source_name}: {e}") from e

        href = find_oembed_href(page.text)
        if not href:
            logger.debug("No oEmbed link on %s", link)
            return None

        reference_id = reference_from_oembed_href(href)
        logger.debug("Probe %s -> %s", source_name, reference_id)
        return reference_id
