"""Tests for the HTML sanitizer."""

from newsniche.models.base import LocalizedText
from newsniche.services.sanitizer import sanitize_html, sanitize_localized


def test_strips_script_tags():
    result = sanitize_html("<p>Hello</p><script>alert(1)</script>")
    assert "<script" not in result
    assert "<p>Hello</p>" in result


def test_strips_event_handler_attributes():
    result = sanitize_html('<p onclick="steal()">Hi</p>')
    assert "onclick" not in result
    assert "<p>Hi</p>" in result


def test_keeps_allowlisted_markup():
    html = "<h2>Title</h2><ul><li>one</li></ul><img src=\"https://cdn.example.com/a.png\" alt=\"a\">"
    result = sanitize_html(html)
    assert "<h2>Title</h2>" in result
    assert "<li>one</li>" in result
    assert "<img" in result


def test_external_links_get_safety_attributes():
    result = sanitize_html('<a href="https://example.com">out</a>')
    assert 'rel="noopener noreferrer"' in result
    assert 'target="_blank"' in result


def test_relative_links_do_not_open_new_tab():
    result = sanitize_html('<a href="/about">about</a>')
    assert 'rel="noopener noreferrer"' in result
    assert "target" not in result


def test_javascript_href_dropped():
    result = sanitize_html('<a href="javascript:alert(1)">x</a>')
    assert "javascript:" not in result


def test_none_becomes_empty_string():
    assert sanitize_html(None) == ""


def test_sanitize_localized_keeps_absent_locale_absent():
    result = sanitize_localized(LocalizedText(en="<b>bold</b><script>x</script>"))
    assert result.bn is None
    assert "<script" not in result.en
    assert "<b>bold</b>" in result.en


def test_angle_bracket_in_attribute_keeps_anchor_whole():
    result = sanitize_html('<a title="a>b" href="https://example.com/x">Read</a>')
    assert result.count("<a ") == 1
    assert result.endswith(">Read</a>")
    assert 'href="https://example.com/x"' in result
    assert 'rel="noopener noreferrer"' in result


def test_quote_in_attribute_keeps_anchor_whole():
    result = sanitize_html("<a title='say \"hi\"' href=\"https://example.com\">ok</a>")
    assert result.count("<a ") == 1
    assert result.endswith(">ok</a>")
    assert 'target="_blank"' in result


def test_existing_rel_is_merged_not_replaced():
    result = sanitize_html('<a href="https://example.com" rel="author NoOpener">me</a>')
    assert 'rel="author noopener noreferrer"' in result


def test_existing_target_forced_to_new_tab_for_external_links():
    result = sanitize_html('<a href="https://example.com" target="_self">out</a>')
    assert 'target="_blank"' in result
    assert "_self" not in result


def test_existing_target_kept_for_relative_links():
    result = sanitize_html('<a href="/about" target="_self">about</a>')
    assert 'target="_self"' in result


def test_sanitizing_twice_is_stable():
    once = sanitize_html('<p>See <a href="https://example.com" title="x>y">docs</a></p>')
    assert sanitize_html(once) == once
