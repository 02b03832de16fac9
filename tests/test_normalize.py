from marketrank.normalize import (
    MAX_INPUT_CHARS,
    basic_clean,
    normalize_label,
    normalize_query,
    query_keywords,
    strip_html,
)


def test_strip_html_basic():
    assert strip_html("<p>Hello <b>world</b>!</p>") == "Hello world !"
    assert strip_html("plain text") == "plain text"


def test_basic_clean_trims_whitespace_and_entities():
    assert basic_clean("   <div>Hello   world</div>\n") == "Hello world"
    assert basic_clean("Food &amp; Drinks") == "Food & Drinks"
    assert basic_clean("“Quoted” – text") == '"Quoted" - text'
    assert basic_clean(None) == ""


def test_basic_clean_caps_length():
    assert len(basic_clean("x" * (MAX_INPUT_CHARS + 50))) == MAX_INPUT_CHARS


def test_normalize_query_lowercases_and_trims():
    assert normalize_query("  Cheap PHONE ") == "cheap phone"
    assert normalize_query(None) == ""


def test_query_keywords_drop_single_letters():
    assert query_keywords("a cheap  phone x") == ["cheap", "phone"]
    assert query_keywords("   ") == []


def test_normalize_label():
    assert normalize_label(" Hostel &amp; Student Essentials ") == "hostel & student essentials"
