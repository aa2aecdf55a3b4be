import base64

import pytest

from procubot.attachments import (
    attachment_from_bytes,
    attachment_from_path,
    kind_for_mime_type,
    materialize_attachment,
    pick_audio_mime_type,
    resolve_attachment_for_display,
)
from procubot.domain.exceptions import UnsupportedMimeTypeError
from procubot.domain.models import Attachment


def test_kind_for_mime_type():
    assert kind_for_mime_type("image/png") == "image"
    assert kind_for_mime_type("audio/webm;codecs=opus") == "audio"
    assert kind_for_mime_type("application/pdf") == "document"
    assert kind_for_mime_type(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    ) == "document"
    with pytest.raises(UnsupportedMimeTypeError):
        kind_for_mime_type("application/zip")


def test_attachment_from_bytes_image_has_preview():
    att = attachment_from_bytes(b"png-bytes", "image/png", file_name="chart.png")
    encoded = base64.b64encode(b"png-bytes").decode("ascii")
    assert att.kind == "image"
    assert att.inline_data == encoded
    assert att.display_url == f"data:image/png;base64,{encoded}"
    assert att.file_name == "chart.png"


def test_attachment_from_path_document(tmp_path):
    f = tmp_path / "quote.pdf"
    f.write_bytes(b"%PDF-1.7 quote")
    att = attachment_from_path(f)
    assert att.kind == "document"
    assert att.mime_type == "application/pdf"
    assert att.display_url is None
    assert base64.b64decode(att.inline_data) == b"%PDF-1.7 quote"


def test_attachment_from_path_unknown_type(tmp_path):
    f = tmp_path / "data.unknownext"
    f.write_bytes(b"x")
    with pytest.raises(UnsupportedMimeTypeError):
        attachment_from_path(f)


def test_resolve_attachment_for_display():
    linked = Attachment(kind="image", mime_type="image/png", inline_data="eA==", display_url="https://cdn/x.png")
    inline = Attachment(kind="document", mime_type="application/pdf", inline_data="cGRm")
    empty = Attachment(kind="audio", mime_type="audio/webm")
    assert resolve_attachment_for_display(linked) == "https://cdn/x.png"
    assert resolve_attachment_for_display(inline) == "data:application/pdf;base64,cGRm"
    assert resolve_attachment_for_display(empty) is None


def test_materialize_attachment(tmp_path):
    att = attachment_from_bytes(b"contract text", "application/pdf", file_name="contract.pdf")
    path = materialize_attachment(att, tmp_path)
    assert path == tmp_path / "contract.pdf"
    assert path.read_bytes() == b"contract text"


def test_materialize_attachment_bad_base64_is_ignored(tmp_path):
    att = Attachment(kind="document", mime_type="application/pdf", inline_data="not base64!!")
    assert materialize_attachment(att, tmp_path) is None
    assert list(tmp_path.iterdir()) == []


def test_pick_audio_mime_type():
    assert pick_audio_mime_type(["audio/ogg", "audio/mp4"]) == "audio/mp4"
    assert pick_audio_mime_type([]) == "audio/webm"
