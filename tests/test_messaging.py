"""
Telegram / Discord messengers with requests.post replaced by a script.
"""

from __future__ import annotations

import pytest
import requests

from eodcloser.messaging import (
    DeliveryStatus,
    DiscordWebhookMessenger,
    NullMessenger,
    TelegramMessenger,
    TelegramOptions,
    classify_discord_status,
    classify_telegram_status,
)
from tests.helpers.fakes import FakePost, FakeResponse


def _telegram(**kwargs) -> TelegramMessenger:
    return TelegramMessenger(TelegramOptions(bot_token="123:abc", chat_id="-10042", **kwargs))


class TestTelegramClassification:

    @pytest.mark.parametrize("code,status", [
        (200, DeliveryStatus.OK),
        (401, DeliveryStatus.AUTH_FAILURE),
        (404, DeliveryStatus.AUTH_FAILURE),
        (400, DeliveryStatus.BAD_RECIPIENT),
        (403, DeliveryStatus.BAD_RECIPIENT),
        (429, DeliveryStatus.TRANSIENT_FAILURE),
        (502, DeliveryStatus.TRANSIENT_FAILURE),
        (0, DeliveryStatus.TRANSIENT_FAILURE),
        (418, DeliveryStatus.UNKNOWN),
    ])
    def test_status_codes(self, code, status):
        assert classify_telegram_status(code) == status


class TestTelegramMessenger:

    def test_sends_markdown_to_chat(self, monkeypatch, no_sleep):
        post = FakePost([FakeResponse(200, {"ok": True})])
        monkeypatch.setattr(requests, "post", post)

        status = _telegram().send_message("*hello*")

        assert status == DeliveryStatus.OK
        call = post.calls[0]
        assert call["url"] == "https://api.telegram.org/bot123:abc/sendMessage"
        assert call["data"]["chat_id"] == "-10042"
        assert call["data"]["text"] == "*hello*"
        assert call["data"]["parse_mode"] == "Markdown"
        assert no_sleep == []

    def test_bad_token_is_not_retried(self, monkeypatch, no_sleep):
        post = FakePost([FakeResponse(401, {"ok": False, "description": "Unauthorized"})])
        monkeypatch.setattr(requests, "post", post)

        assert _telegram().send_message("x") == DeliveryStatus.AUTH_FAILURE
        assert len(post.calls) == 1

    def test_bad_chat_is_not_retried(self, monkeypatch, no_sleep):
        post = FakePost([FakeResponse(400, {"ok": False, "description": "Bad Request: chat not found"})])
        monkeypatch.setattr(requests, "post", post)

        assert _telegram().send_message("x") == DeliveryStatus.BAD_RECIPIENT
        assert len(post.calls) == 1

    def test_rate_limit_honours_retry_after(self, monkeypatch, no_sleep):
        post = FakePost([
            FakeResponse(429, {"ok": False, "description": "Too Many Requests", "parameters": {"retry_after": 3}}),
            FakeResponse(200, {"ok": True}),
        ])
        monkeypatch.setattr(requests, "post", post)

        assert _telegram().send_message("x") == DeliveryStatus.OK
        assert len(post.calls) == 2
        assert no_sleep == [3.0]

    def test_network_errors_exhaust_retries(self, monkeypatch, no_sleep):
        post = FakePost([requests.ConnectionError("connection reset")])
        monkeypatch.setattr(requests, "post", post)

        assert _telegram(max_retries=3).send_message("x") == DeliveryStatus.TRANSIENT_FAILURE
        assert len(post.calls) == 3
        assert no_sleep == [1.0, 2.0]

    def test_markdown_rejection_resends_plain(self, monkeypatch, no_sleep):
        post = FakePost([
            FakeResponse(400, {"ok": False, "description": "Bad Request: can't parse entities: at byte 12"}),
            FakeResponse(200, {"ok": True}),
        ])
        monkeypatch.setattr(requests, "post", post)

        assert _telegram().send_message("P&L *bold") == DeliveryStatus.OK
        assert "parse_mode" in post.calls[0]["data"]
        assert "parse_mode" not in post.calls[1]["data"]

    def test_plain_text_resend_does_not_use_a_retry(self, monkeypatch, no_sleep):
        post = FakePost([
            FakeResponse(400, {"ok": False, "description": "Bad Request: can't parse entities: at byte 12"}),
            FakeResponse(200, {"ok": True}),
        ])
        monkeypatch.setattr(requests, "post", post)

        assert _telegram(max_retries=1).send_message("P&L *bold") == DeliveryStatus.OK
        assert len(post.calls) == 2
        assert no_sleep == []

    def test_plain_text_is_resent_only_once(self, monkeypatch, no_sleep):
        post = FakePost([
            FakeResponse(400, {"ok": False, "description": "Bad Request: can't parse entities: at byte 12"}),
        ])
        monkeypatch.setattr(requests, "post", post)

        assert _telegram(max_retries=3).send_message("x") == DeliveryStatus.BAD_RECIPIENT
        assert len(post.calls) == 2

    def test_unparsable_retry_after_falls_back_to_backoff(self, monkeypatch, no_sleep):
        post = FakePost([
            FakeResponse(429, {"ok": False, "parameters": {"retry_after": "soon"}}),
            FakeResponse(200, {"ok": True}),
        ])
        monkeypatch.setattr(requests, "post", post)

        assert _telegram().send_message("x") == DeliveryStatus.OK
        assert no_sleep == [1.0]

    def test_non_json_error_body(self, monkeypatch, no_sleep):
        post = FakePost([FakeResponse(418)])
        monkeypatch.setattr(requests, "post", post)

        assert _telegram().send_message("x") == DeliveryStatus.UNKNOWN

    def test_options_validation(self):
        with pytest.raises(ValueError):
            TelegramOptions(bot_token=" ", chat_id="1")
        with pytest.raises(ValueError):
            TelegramOptions(bot_token="t", chat_id="")
        with pytest.raises(ValueError):
            TelegramOptions(bot_token="t", chat_id="1", max_retries=0)


class TestDiscordMessenger:

    @pytest.mark.parametrize("code,status", [
        (204, DeliveryStatus.OK),
        (200, DeliveryStatus.OK),
        (401, DeliveryStatus.AUTH_FAILURE),
        (404, DeliveryStatus.BAD_RECIPIENT),
        (429, DeliveryStatus.TRANSIENT_FAILURE),
        (503, DeliveryStatus.TRANSIENT_FAILURE),
        (302, DeliveryStatus.UNKNOWN),
    ])
    def test_status_codes(self, code, status):
        assert classify_discord_status(code) == status

    def test_posts_truncated_content(self, monkeypatch, no_sleep):
        post = FakePost([FakeResponse(204)])
        monkeypatch.setattr(requests, "post", post)

        status = DiscordWebhookMessenger("https://discord.test/webhook").send_message("a" * 2500)

        assert status == DeliveryStatus.OK
        assert len(post.calls[0]["json"]["content"]) == 2000

    def test_rate_limit_retry_after_header(self, monkeypatch, no_sleep):
        post = FakePost([FakeResponse(429, headers={"Retry-After": "2"}), FakeResponse(204)])
        monkeypatch.setattr(requests, "post", post)

        assert DiscordWebhookMessenger("https://discord.test/webhook").send_message("x") == DeliveryStatus.OK
        assert no_sleep == [2.0]

    @pytest.mark.parametrize("header", ["soon", "Wed, 21 Oct 2026 07:28:00 GMT", "nan", ""])
    def test_unparsable_retry_after_header(self, monkeypatch, no_sleep, header):
        post = FakePost([FakeResponse(429, headers={"Retry-After": header}), FakeResponse(204)])
        monkeypatch.setattr(requests, "post", post)

        assert DiscordWebhookMessenger("https://discord.test/webhook").send_message("x") == DeliveryStatus.OK
        assert no_sleep == [1]

    def test_deleted_webhook(self, monkeypatch, no_sleep):
        post = FakePost([FakeResponse(404)])
        monkeypatch.setattr(requests, "post", post)

        assert DiscordWebhookMessenger("https://discord.test/webhook").send_message("x") == DeliveryStatus.BAD_RECIPIENT
        assert len(post.calls) == 1

    def test_empty_url_rejected(self):
        with pytest.raises(ValueError):
            DiscordWebhookMessenger("")


class TestNullMessenger:

    def test_logs_and_reports_ok(self, caplog):
        with caplog.at_level("INFO"):
            assert NullMessenger("dry run").send_message("hello") == DeliveryStatus.OK
        assert any("dry run" in r.getMessage() for r in caplog.records)
