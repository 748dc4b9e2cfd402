"""
Tests for identity.py - Conversation and attachment id derivation.
"""
from conftest import make_message, make_node
from identity import derive_conversation_id, extract_attachment_id
from schemas import Conversation


def build_conversation(mapping: dict, title: str = "Test", create_time: float = 1703275200.0) -> Conversation:
    return Conversation.model_validate({
        "title": title,
        "create_time": create_time,
        "update_time": create_time,
        "mapping": mapping,
    })


def test_conversation_id_from_sample(sample_chatgpt_conversation):
    """Test that the smallest qualifying message id is used."""
    conv = Conversation.model_validate(sample_chatgpt_conversation)

    # usr1 starts with an image part, so it does not qualify
    assert derive_conversation_id(conv) == "conv_ast1"


def test_conversation_id_ignores_mapping_order():
    """Test that the id doesn't depend on mapping iteration order."""
    nodes = {
        "n1": make_node("n1", None, ["n2"], make_message("msg-b", "user", ["hi"])),
        "n2": make_node("n2", "n1", [], make_message("msg-a", "assistant", ["hello"])),
    }
    forward = build_conversation(nodes)
    backward = build_conversation(dict(reversed(list(nodes.items()))))

    assert derive_conversation_id(forward) == "conv_msg-a"
    assert derive_conversation_id(backward) == "conv_msg-a"


def test_conversation_id_skips_other_roles_and_empty_text():
    """Test that system/tool messages and empty first parts don't qualify."""
    conv = build_conversation({
        "a": make_node("a", None, ["b"], make_message("aaa", "system", ["sys"])),
        "b": make_node("b", "a", ["c"], make_message("bbb", "tool", ["out"])),
        "c": make_node("c", "b", ["d"], make_message("ccc", "user", ["", "later"])),
        "d": make_node("d", "c", [], make_message("ddd", "assistant", ["answer"])),
    })

    assert derive_conversation_id(conv) == "conv_ddd"


def test_conversation_id_fallback_is_deterministic(rootless_conversation):
    """Test the hash fallback is stable and prefixed."""
    first = derive_conversation_id(Conversation.model_validate(rootless_conversation))
    second = derive_conversation_id(Conversation.model_validate(rootless_conversation))

    assert first == second
    assert first.startswith("conv_")
    assert len(first) == len("conv_") + 16


def test_conversation_id_fallback_depends_on_title_and_time():
    """Test that title and create_time both feed the fallback hash."""
    base = derive_conversation_id(build_conversation({}, title="A", create_time=1.0))

    assert derive_conversation_id(build_conversation({}, title="B", create_time=1.0)) != base
    assert derive_conversation_id(build_conversation({}, title="A", create_time=2.0)) != base


def test_extract_attachment_id():
    """Test id extraction from a typical pointer."""
    assert extract_attachment_id("file-service://file-1qkofbVQL3KKk9uYGpz691") == "1qkofbVQL3KKk9uYGpz691"


def test_extract_attachment_id_uses_last_marker():
    """Test that only the text after the last 'file-' is kept."""
    assert extract_attachment_id("sediment://file-file-xyz") == "xyz"


def test_extract_attachment_id_without_marker():
    """Test that a pointer without 'file-' is used whole."""
    assert extract_attachment_id("sediment://abc") == "sediment://abc"
