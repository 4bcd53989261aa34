import pytest

from annotate_service.heuristics import (
    analyze_sentiment,
    classify_text,
    extract_entities,
    summarize_text,
)

CATEGORIES = {"Sports", "Technology", "Business", "Health", "General"}


@pytest.mark.parametrize("text, expected", [
    ("Our TEAM played well", "Sports"),
    ("new software update", "Technology"),
    ("the economy is slowing", "Business"),
    ("see a doctor", "Health"),
    ("nothing in particular", "General"),
    ("", "General"),
])
def test_classify_text_categories(text, expected):
    assert classify_text(text) == expected


def test_classify_text_precedence():
    assert classify_text("doctor market computer game") == "Sports"
    assert classify_text("doctor market computer") == "Technology"
    assert classify_text("doctor market") == "Business"


def test_classify_text_matches_substrings():
    # "technology" contains "tech"
    assert classify_text("Technology news") == "Technology"


@pytest.mark.parametrize("text", ["", "   ", "\x00\n\t", "ÄÖÜ ✓", "a" * 10000])
def test_heuristics_total_over_odd_input(text):
    assert classify_text(text) in CATEGORIES
    assert analyze_sentiment(text) in {"Positive", "Negative", "Neutral"}
    assert isinstance(extract_entities(text), list)
    assert isinstance(summarize_text(text), str)


@pytest.mark.parametrize("text, expected", [
    ("I love this", "Positive"),
    ("This is terrible", "Negative"),
    ("Good start, awful ending", "Neutral"),
    ("It is a chair", "Neutral"),
    ("", "Neutral"),
])
def test_analyze_sentiment(text, expected):
    assert analyze_sentiment(text) == expected


def test_extract_entities_email_url_person():
    entities = extract_entities("contact a@b.com or https://x.io, Alice Smith")

    emails = [e["text"] for e in entities if e["type"] == "EMAIL"]
    urls = [e["text"] for e in entities if e["type"] == "URL"]
    people = [e["text"] for e in entities if e["type"] == "PERSON"]

    assert emails == ["a@b.com"]
    assert urls == ["https://x.io"]
    assert people == ["Alice Smith"]


def test_extract_entities_caps_person_matches():
    entities = extract_entities("Alice met Bob, then Carol, then Dave, then Eve")
    people = [e["text"] for e in entities if e["type"] == "PERSON"]
    assert people == ["Alice", "Bob", "Carol"]


def test_extract_entities_order_is_email_url_person():
    entities = extract_entities("Mail Joe at joe@corp.io via http://corp.io/help")
    assert [e["type"] for e in entities] == ["EMAIL", "URL", "PERSON"]
    assert entities[2]["text"] == "Mail Joe"


def test_extract_entities_empty():
    assert extract_entities("") == []


def test_summarize_short_text_passthrough():
    text = "one two three four five six seven eight nine ten"
    assert summarize_text(text) == text


def test_summarize_long_text_truncates():
    text = "one two three four five six seven eight nine ten eleven twelve"
    assert summarize_text(text) == "one two three four five six seven eight nine ten..."


def test_summarize_idempotent_on_short_input():
    for text in ["", "short line", "a b c d e f g h i j"]:
        assert summarize_text(summarize_text(text)) == summarize_text(text)


def test_summarize_counts_empty_tokens_from_repeated_spaces():
    text = "a  b  c  d  e  f"
    # eleven tokens once the empty strings between double spaces are counted
    assert summarize_text(text) == "a  b  c  d  e ..."
