import pytest

from FlashcardsModule.vocabulary import (
    InvalidVocabularyError,
    VocabularyItem,
    as_vocabulary,
    parse_vocabulary_payload,
)


def test_parse_payload_with_vocabulary_key():
    items = parse_vocabulary_payload(
        {
            "vocabulary": [
                {"word": " serene ", "ipa": "/səˈriːn/", "definition": "宁静的", "example": "A serene lake."},
                {"word": "serene", "definition": "宁静的", "example": "Again.", "extra": 1},
            ]
        }
    )
    assert [i.word for i in items] == ["serene", "serene"]
    assert items[1].ipa is None


def test_lenient_mode_drops_incomplete_items(caplog):
    items = parse_vocabulary_payload(
        [
            {"word": "ok", "definition": "好", "example": "It is ok."},
            {"word": "no example", "definition": "x"},
            {"word": "", "definition": "x", "example": "y"},
            "not an object",
        ]
    )
    assert [i.word for i in items] == ["ok"]
    assert "Dropping vocabulary item 1" in caplog.text


def test_strict_mode_raises():
    with pytest.raises(InvalidVocabularyError):
        parse_vocabulary_payload([{"word": "x", "example": "y"}], strict=True)


def test_payload_must_be_a_list():
    with pytest.raises(InvalidVocabularyError):
        parse_vocabulary_payload({"words": []})
    with pytest.raises(InvalidVocabularyError):
        parse_vocabulary_payload("vocabulary")


def test_items_are_immutable():
    item = VocabularyItem(word="a", definition="b", example="c")
    with pytest.raises(Exception):
        item.word = "z"


def test_as_vocabulary_accepts_models_and_dicts():
    item = VocabularyItem(word="a", definition="b", example="c")
    result = as_vocabulary([item, {"word": "d", "definition": "e", "example": "f"}])
    assert result == (item, VocabularyItem(word="d", definition="e", example="f"))
