"""
Tests for the RSS + oEmbed live probe.

HTTP is faked with a MagicMock session; nothing touches the network.
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from relaytv.adapters.probes import RumbleFeedProbe, StaticProbe
from relaytv.adapters.probes.rumble_feed import (
    find_oembed_href,
    first_feed_item,
    reference_from_oembed_href,
)
from relaytv.infra.exceptions import ProbeError

TEMPLATE = "http://feeds.test/{name}"


def _feed(title: str, link: str = "https://rumble.com/v5abc-stream.html") -> bytes:
    return f"""<?xml version="1.0"?>
<rss version="2.0"><channel><title>feed</title>
<item><title>{title}</title><link>{link}</link></item>
<item><title>older LIVE</title><link>https://rumble.com/old.html</link></item>
</channel></rss>""".encode()


PAGE = """<html><head>
<link rel="alternate" type="application/json+oembed"
  href="https://rumble.com/api/Media/oembed.json?url=https%3A%2F%2Frumble.com%2Fembed%2Fv5live1%2F">
</head><body></body></html>"""


def _response(content: bytes = b"", text: str = "") -> MagicMock:
    response = MagicMock()
    response.content = content
    response.text = text
    response.raise_for_status.return_value = None
    return response


def _probe(*responses) -> tuple[RumbleFeedProbe, MagicMock]:
    session = MagicMock()
    session.get.side_effect = list(responses)
    return RumbleFeedProbe(TEMPLATE, timeout_sec=3, session=session), session


class TestHelpers:
    def test_find_oembed_href(self):
        href = find_oembed_href(PAGE)
        assert href.startswith("https://rumble.com/api/Media/oembed.json")

    def test_find_oembed_href_missing(self):
        assert find_oembed_href("<html><head><link rel='stylesheet' href='a.css'></head></html>") is None

    def test_reference_from_oembed_href(self):
        href = "https://x/oembed.json?url=https%3A%2F%2Frumble.com%2Fembed%2Fv5live1%2F"
        assert reference_from_oembed_href(href) == "v5live1"

    def test_reference_from_href_without_url_param(self):
        assert reference_from_oembed_href("https://x/oembed.json?format=json") is None

    def test_first_feed_item_takes_newest(self):
        assert first_feed_item(_feed("Going LIVE now")) == (
            "Going LIVE now",
            "https://rumble.com/v5abc-stream.html",
        )

    def test_first_feed_item_empty_feed(self):
        assert first_feed_item(b"<rss><channel><title>x</title></channel></rss>") is None


class TestRumbleFeedProbe:
    def test_live_stream_returns_reference(self):
        probe, session = _probe(_response(content=_feed("Going LIVE now")), _response(text=PAGE))

        assert probe.fetch_live_reference("alpha") == "v5live1"

        feed_call, page_call = session.get.call_args_list
        assert feed_call.args == ("http://feeds.test/alpha",)
        assert feed_call.kwargs["timeout"] == 3
        assert page_call.args == ("https://rumble.com/v5abc-stream.html",)
        assert page_call.kwargs["headers"]["Accept"] == "text/html"

    def test_title_without_live_skips_page_fetch(self):
        probe, session = _probe(_response(content=_feed("Weekly recap")))

        assert probe.fetch_live_reference("alpha") is None
        assert session.get.call_count == 1

    def test_empty_feed_is_not_live(self):
        probe, _ = _probe(_response(content=b"<rss><channel></channel></rss>"))
        assert probe.fetch_live_reference("alpha") is None

    def test_page_without_oembed_link_is_not_live(self):
        probe, _ = _probe(
            _response(content=_feed("live stream")),
            _response(text="<html><head></head></html>"),
        )
        assert probe.fetch_live_reference("alpha") is None

    def test_request_failure_raises_probe_error(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("refused")
        probe = RumbleFeedProbe(TEMPLATE, session=session)

        with pytest.raises(ProbeError, match="alpha"):
            probe.fetch_live_reference("alpha")

    def test_http_error_raises_probe_error(self):
        response = _response()
        response.raise_for_status.side_effect = requests.HTTPError("503")
        probe, _ = _probe(response)

        with pytest.raises(ProbeError):
            probe.fetch_live_reference("alpha")

    def test_malformed_feed_raises_probe_error(self):
        probe, _ = _probe(_response(content=b"<rss><channel>"))

        with pytest.raises(ProbeError, match="Malformed"):
            probe.fetch_live_reference("alpha")

    def test_template_requires_placeholder(self):
        with pytest.raises(ValueError):
            RumbleFeedProbe("http://feeds.test/static", session=MagicMock())

    def test_async_probe(self):
        probe, _ = _probe(_response(content=_feed("LIVE")), _response(text=PAGE))
        assert asyncio.run(probe.probe("alpha")) == "v5live1"


class TestStaticProbe:
    def test_answers_from_mapping_and_records_calls(self):
        probe = StaticProbe({"alpha": "R1"})
        probe.set_live("bravo", None)

        assert asyncio.run(probe.probe("alpha")) == "R1"
        assert asyncio.run(probe.probe("bravo")) is None
        assert asyncio.run(probe.probe("charlie")) is None
        assert probe.calls == ["alpha", "bravo", "charlie"]
