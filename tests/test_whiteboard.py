"""Tests for the XML documents exchanged with the devices."""

import xml.etree.ElementTree as ET

import pytest

from whiteboard_share.config import ButtonConfig, EmailConfig
from whiteboard_share.whiteboard import (
    WhiteboardStatusError,
    build_email_command,
    build_panel_document,
    extract_board_url,
)

STATUS_WITH_BOARD = """<?xml version="1.0"?>
<Status>
  <Conference item="1" maxOccurrence="1">
    <Presentation item="1" maxOccurrence="1">
      <WhiteBoard item="1" maxOccurrence="1">
        <BoardUrl>https://whiteboard.example.com/boards/1234?x=1&amp;y=2</BoardUrl>
      </WhiteBoard>
    </Presentation>
  </Conference>
</Status>"""


@pytest.mark.parametrize(
    "board_url",
    ["https://x/1", "https://whiteboard.example.com/boards/abc-def", " spaced "],
)
def test_extract_board_url_returns_exact_text(board_url):
    document = f"<Status><WhiteBoard><BoardUrl>{board_url}</BoardUrl></WhiteBoard></Status>"

    assert extract_board_url(document) == board_url


def test_extract_board_url_from_device_status_document():
    assert (
        extract_board_url(STATUS_WITH_BOARD)
        == "https://whiteboard.example.com/boards/1234?x=1&y=2"
    )


@pytest.mark.parametrize(
    "document",
    [
        "",
        "   ",
        '<?xml version="1.0"?><Status><Conference/></Status>',
        "<Status><WhiteBoard><BoardUrl></BoardUrl></WhiteBoard></Status>",
        "<Status><WhiteBoard><BoardUrl/></WhiteBoard></Status>",
    ],
)
def test_extract_board_url_without_board_is_empty(document):
    assert extract_board_url(document) == ""


def test_extract_board_url_rejects_malformed_document():
    with pytest.raises(WhiteboardStatusError):
        extract_board_url("<Status><BoardUrl>https://x/1</Status>")


def test_build_email_command_contains_all_fields():
    email = EmailConfig(
        destination="ignored@example.com",
        subject="Minutes & notes",
        body="Here you have your white board",
        attachment_filename="team-board",
    )

    payload = build_email_command(email, "https://x/1?a=1&b=2", "u@v.com")

    root = ET.fromstring(payload)
    assert root.tag == "Command"
    send = root.find("./Whiteboard/Email/Send")
    assert send is not None
    assert send.findtext("Subject") == "Minutes & notes"
    assert send.findtext("Body") == "Here you have your white board"
    assert send.findtext("Recipients") == "u@v.com"
    assert send.findtext("BoardUrls") == "https://x/1?a=1&b=2"
    assert send.findtext("AttachmentFilenames") == "team-board.pdf"


def test_build_panel_document_with_order():
    button = ButtonConfig(name="Send whiteboard", icon="Tv", panel_id="share-wb")

    panel = ET.fromstring(build_panel_document(button, 3)).find("Panel")

    assert panel is not None
    assert panel.findtext("Order") == "3"
    assert panel.findtext("Origin") == "local"
    assert panel.findtext("Location") == "CallControls"
    assert panel.findtext("Icon") == "Tv"
    assert panel.findtext("Name") == "Send whiteboard"
    assert panel.findtext("ActivityType") == "Custom"


def test_build_panel_document_without_order():
    panel = ET.fromstring(build_panel_document(ButtonConfig())).find("Panel")

    assert panel is not None
    assert panel.find("Order") is None
