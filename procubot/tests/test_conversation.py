from procubot.agents.controller import build_payload
from procubot.domain.conversation import Conversation
from procubot.domain.models import (
    Attachment,
    Citation,
    InlineDataPart,
    Message,
    PartsPayload,
    TextPart,
    TextPayload,
    merge_citations,
)


def test_merge_citations_dedup_by_uri():
    merged = []
    for batch in (
        [Citation(title="a", uri="u1")],
        [Citation(title="b", uri="u1")],
        [Citation(title="c", uri="u2")],
    ):
        merged = merge_citations(merged, batch)
    assert merged == [Citation(title="a", uri="u1"), Citation(title="c", uri="u2")]


def test_merge_citations_ignores_empty_uri():
    merged = merge_citations([], [Citation(title="x", uri=""), Citation(title="y", uri="u")])
    assert merged == [Citation(title="y", uri="u")]


def test_conversation_replace_content():
    conv = Conversation(epoch=1)
    conv.append(Message(id=1, role="user", text="hi"))
    conv.append(Message(id=2, role="model", text=""))
    updated = conv.replace_content(2, "Total", [Citation(title="t", uri="u")])
    assert updated is not None
    assert conv.get(2).text == "Total"
    assert conv.get(2).sources == [Citation(title="t", uri="u")]
    assert conv.replace_content(99, "x") is None
    assert len(conv) == 2


def test_snapshot_is_detached():
    conv = Conversation(epoch=1)
    conv.append(Message(id=1, role="model", text="hello"))
    snap = conv.snapshot()
    snap[0].text = "changed"
    assert conv.get(1).text == "hello"


def test_build_payload_text_only():
    assert build_payload("What is a TCO analysis?", []) == TextPayload("What is a TCO analysis?")


def test_build_payload_with_attachments():
    image = Attachment(kind="image", mime_type="image/png", inline_data="aW1n")
    pdf = Attachment(kind="document", mime_type="application/pdf", inline_data="cGRm", file_name="rfq.pdf")
    payload = build_payload("compare", [image, pdf])
    assert payload == PartsPayload([
        TextPart("compare"),
        InlineDataPart(mime_type="image/png", data="aW1n"),
        InlineDataPart(mime_type="application/pdf", data="cGRm"),
    ])


def test_build_payload_empty_text_has_no_text_part():
    image = Attachment(kind="image", mime_type="image/jpeg", inline_data="aW1n")
    payload = build_payload("", [image])
    assert payload == PartsPayload([InlineDataPart(mime_type="image/jpeg", data="aW1n")])


def test_build_payload_skips_attachments_without_inline_data():
    linked = Attachment(kind="image", mime_type="image/png", display_url="https://example.com/a.png")
    payload = build_payload("see", [linked])
    assert payload == PartsPayload([TextPart("see")])
