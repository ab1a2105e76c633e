"""
Tests unitaires : alignement mot à mot, score et retour textuel.
"""

from app.services.word_alignment import (
    align_words,
    build_feedback,
    levenshtein_distance,
    normalize_word,
    score_alignment,
)


def statuses(words):
    return [w.status for w in words]


def test_normalize_word_ignore_casse_et_ponctuation():
    assert normalize_word("Hello!") == "hello"
    assert normalize_word("don't") == "dont"


def test_levenshtein_distance():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("same", "same") == 0


def test_phrase_parfaite():
    words = align_words("The quick brown fox", "the quick brown fox.")
    assert statuses(words) == ["correct"] * 4
    assert score_alignment(words) == 100
    assert build_feedback(words) == "Great job! Every word was clear."


def test_mot_manquant():
    words = align_words("I like apples", "I like")
    assert statuses(words) == ["correct", "correct", "missing"]
    assert words[2].text == "apples"
    assert score_alignment(words) == 67
    assert build_feedback(words) == "Don't forget: apples."


def test_mot_proche_incorrect():
    words = align_words("brown", "brow")
    assert statuses(words) == ["incorrect"]
    assert words[0].text == "brown"
    assert score_alignment(words) == 0
    assert "Practice these words: brown." in build_feedback(words)


def test_mot_en_trop_non_penalisant():
    words = align_words("I run", "I run fast")
    assert statuses(words) == ["correct", "correct", "extra"]
    assert words[2].transcript_index == 2
    assert score_alignment(words) == 100


def test_transcript_vide():
    words = align_words("Good morning", "")
    assert statuses(words) == ["missing", "missing"]
    assert score_alignment(words) == 0


def test_reference_vide():
    words = align_words("", "hello there")
    assert statuses(words) == ["extra", "extra"]
    assert score_alignment(words) == 0


def test_indices_de_reference():
    words = align_words("one two three", "one two three")
    assert [w.reference_index for w in words] == [0, 1, 2]
    assert [w.transcript_index for w in words] == [0, 1, 2]
