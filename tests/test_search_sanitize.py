from familyspots.search import build_tsquery, highlight_search_terms, safe_parse_array
from familyspots.search.sanitize import sanitize_tokens, split_tsquery, transform_record


def test_build_tsquery_and_joins_tokens() -> None:
    assert build_tsquery("沼津 公園") == "沼津 & 公園"


def test_build_tsquery_strips_operators_and_punctuation() -> None:
    assert build_tsquery("park! & (kids) | 'zoo'") == "park & kids & zoo"


def test_build_tsquery_keeps_kana_and_underscore() -> None:
    assert build_tsquery("ひらがな カタカナ snake_case") == "ひらがな & カタカナ & snake_case"


def test_build_tsquery_is_empty_when_nothing_survives() -> None:
    assert build_tsquery("!!!@@@") == ""
    assert build_tsquery("   ") == ""
    assert sanitize_tokens("-- ** ::") == []


def test_split_tsquery() -> None:
    assert split_tsquery("a & b &c") == ["a", "b", "c"]
    assert split_tsquery("") == []


def test_safe_parse_array() -> None:
    assert safe_parse_array('["公園", "川"]') == ["公園", "川"]
    assert safe_parse_array(["a"]) == ["a"]
    assert safe_parse_array(None) == []
    assert safe_parse_array("not json") == []
    assert safe_parse_array('{"a": 1}') == []


def test_transform_record_parses_tags_and_images() -> None:
    record = transform_record({"id": "s1", "tags": '["park"]', "images": None})

    assert record == {"id": "s1", "tags": ["park"], "images": []}


def test_highlight_search_terms_is_case_insensitive() -> None:
    assert highlight_search_terms("Central Park", "park") == "Central <mark>Park</mark>"


def test_highlight_search_terms_escapes_regex() -> None:
    assert highlight_search_terms("a.b axb", "a.b") == "<mark>a.b</mark> axb"
    assert highlight_search_terms("text", "") == "text"
