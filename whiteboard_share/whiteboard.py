"""XML documents exchanged with the host device and the companion board."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Optional

from .config import ButtonConfig, EmailConfig

ATTACHMENT_SUFFIX = ".pdf"


class WhiteboardStatusError(ValueError):
    """Raised when a companion status document cannot be parsed."""


def extract_board_url(document: str) -> str:
    """Return the text of the first ``BoardUrl`` element in ``document``.

    An absent element, or one without text, yields an empty string.
    """

    if not document or not document.strip():
        return ""

    try:
        root = ET.fromstring(document)
    except ET.ParseError as exc:
        raise WhiteboardStatusError(f"Malformed whiteboard status: {exc}") from exc

    element = root if root.tag == "BoardUrl" else root.find(".//BoardUrl")
    if element is None or element.text is None:
        return ""
    return element.text


def build_email_command(email: EmailConfig, board_url: str, destination: str) -> str:
    """Render the ``Whiteboard Email Send`` command for ``putxml``."""

    command = ET.Element("Command")
    send = ET.SubElement(
        ET.SubElement(ET.SubElement(command, "Whiteboard"), "Email"), "Send"
    )
    ET.SubElement(send, "Subject").text = email.subject
    ET.SubElement(send, "Body").text = email.body
    ET.SubElement(send, "Recipients").text = destination
    ET.SubElement(send, "BoardUrls").text = board_url
    ET.SubElement(send, "AttachmentFilenames").text = (
        email.attachment_filename + ATTACHMENT_SUFFIX
    )
    return ET.tostring(command, encoding="unicode")


def build_panel_document(button: ButtonConfig, order: Optional[int] = None) -> str:
    """Render the UI extension panel saved under ``button.panel_id``."""

    extensions = ET.Element("Extensions")
    panel = ET.SubElement(extensions, "Panel")
    if order is not None:
        ET.SubElement(panel, "Order").text = str(order)
    ET.SubElement(panel, "Origin").text = "local"
    ET.SubElement(panel, "Location").text = button.location
    ET.SubElement(panel, "Icon").text = button.icon
    ET.SubElement(panel, "Name").text = button.name
    ET.SubElement(panel, "ActivityType").text = "Custom"
    return ET.tostring(extensions, encoding="unicode")
