"""Tests for on-screen notices."""

import pytest

from conftest import FakeHost
from whiteboard_share.adapters import XapiError
from whiteboard_share.notices import NoticePresenter

PROMPT_DISPLAY = "UserInterface/Message/Prompt/Display"
ALERT_DISPLAY = "UserInterface/Message/Alert/Display"


@pytest.mark.asyncio
async def test_missing_message_is_a_no_op(caplog):
    host = FakeHost()
    presenter = NoticePresenter(host)

    assert await presenter.show(title="Warning") is False
    assert host.commands == []
    assert "message is required" in caplog.text


@pytest.mark.asyncio
async def test_default_notice_is_a_prompt_with_default_title():
    host = FakeHost()
    presenter = NoticePresenter(host)

    assert await presenter.show("Hello") is True

    assert host.commands == [
        (
            PROMPT_DISPLAY,
            {"Duration": 5, "Text": "Hello", "Title": "Sharing Whiteboard"},
            None,
        )
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("title", ["Warning", "WARNING", "warning"])
async def test_warning_title_shows_alert_for_ten_seconds(title):
    host = FakeHost()
    presenter = NoticePresenter(host)

    await presenter.show("Careful", title=title, duration=2)

    assert host.commands == [
        (ALERT_DISPLAY, {"Duration": 10, "Text": "Careful", "Title": title}, None)
    ]


@pytest.mark.asyncio
async def test_other_title_uses_given_duration():
    host = FakeHost()
    presenter = NoticePresenter(host)

    await presenter.show("Done", title="Info", duration=7)

    assert host.commands == [
        (PROMPT_DISPLAY, {"Duration": 7, "Text": "Done", "Title": "Info"}, None)
    ]


@pytest.mark.asyncio
async def test_display_failure_is_logged_not_raised(caplog):
    host = FakeHost()
    host.responses[PROMPT_DISPLAY] = XapiError("Display busy")
    presenter = NoticePresenter(host)

    assert await presenter.show("Hello") is False
    assert "Display busy" in caplog.text
