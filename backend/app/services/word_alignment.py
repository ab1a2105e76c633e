"""
Alignement mot à mot entre la phrase de référence et la transcription d'un élève.

Programmation dynamique (type distance d'édition) :
  - correct   : mot identique (casse et ponctuation ignorées)
  - incorrect : mot proche aligné mais différent (ex. « brown » / « brow »)
  - missing   : mot de la référence absent de la transcription
  - extra     : mot prononcé en trop
"""

import re
from typing import List

from app.schemas.family_portal import AlignedWord

_NON_WORD = re.compile(r"[^\w]|_", re.UNICODE)


def normalize_word(word: str) -> str:
    return _NON_WORD.sub("", word).lower()


def tokenize(sentence: str) -> List[str]:
    return sentence.split()


def levenshtein_distance(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def _are_similar(word1: str, word2: str) -> bool:
    return normalize_word(word1) == normalize_word(word2)


def _are_alignable(word1: str, word2: str) -> bool:
    """Mots identiques, ou assez proches (1 à 3 lettres d'écart selon la longueur)."""
    n1, n2 = normalize_word(word1), normalize_word(word2)
    if n1 == n2:
        return True

    distance = levenshtein_distance(n1, n2)
    max_length = max(len(n1), len(n2))
    if max_length <= 3:
        return distance <= 1
    if max_length <= 6:
        return distance <= 2
    return distance <= 3


def align_words(reference: str, transcript: str) -> List[AlignedWord]:
    ref_words = tokenize(reference)
    trans_words = tokenize(transcript)

    if not ref_words:
        return [AlignedWord(text=w, status="extra", transcript_index=j) for j, w in enumerate(trans_words)]
    if not trans_words:
        return [AlignedWord(text=w, status="missing", reference_index=i) for i, w in enumerate(ref_words)]

    m, n = len(ref_words), len(trans_words)
    dp = [[0] * (n + 1) for _ in range(m + 1)]
    back = [[""] * (n + 1) for _ in range(m + 1)]

    for i in range(m + 1):
        dp[i][0] = i
        back[i][0] = "up"
    for j in range(n + 1):
        dp[0][j] = j
        back[0][j] = "left"

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            ref, trans = ref_words[i - 1], trans_words[j - 1]
            diagonal = dp[i - 1][j - 1] + (0 if _are_similar(ref, trans) else 2)
            up = dp[i - 1][j] + 1
            left = dp[i][j - 1] + 1

            # Diagonale préférée dès que les mots sont alignables
            if _are_alignable(ref, trans) and diagonal <= up and diagonal <= left:
                dp[i][j], back[i][j] = diagonal, "diagonal"
            elif up <= left and up <= diagonal:
                dp[i][j], back[i][j] = up, "up"
            elif left <= diagonal:
                dp[i][j], back[i][j] = left, "left"
            else:
                dp[i][j], back[i][j] = diagonal, "diagonal"

    aligned: List[AlignedWord] = []
    i, j = m, n
    while i > 0 or j > 0:
        direction = back[i][j]
        if direction == "diagonal":
            ref, trans = ref_words[i - 1], trans_words[j - 1]
            aligned.append(AlignedWord(
                text=ref,
                status="correct" if _are_similar(ref, trans) else "incorrect",
                reference_index=i - 1,
                transcript_index=j - 1,
            ))
            i -= 1
            j -= 1
        elif direction == "up":
            aligned.append(AlignedWord(text=ref_words[i - 1], status="missing", reference_index=i - 1))
            i -= 1
        else:
            aligned.append(AlignedWord(text=trans_words[j - 1], status="extra", transcript_index=j - 1))
            j -= 1

    aligned.reverse()
    return aligned


def score_alignment(words: List[AlignedWord]) -> int:
    """Pourcentage (0-100, arrondi) des mots de la référence prononcés correctement."""
    reference_count = sum(1 for w in words if w.status != "extra")
    if reference_count == 0:
        return 0
    correct = sum(1 for w in words if w.status == "correct")
    return round(100 * correct / reference_count)


def build_feedback(words: List[AlignedWord]) -> str:
    """Retour textuel court destiné à l'élève et à ses parents (en anglais, langue travaillée)."""
    missing = [w.text for w in words if w.status == "missing"]
    incorrect = [w.text for w in words if w.status == "incorrect"]

    if not missing and not incorrect:
        return "Great job! Every word was clear."

    parts = []
    if incorrect:
        parts.append("Practice these words: " + ", ".join(incorrect) + ".")
    if missing:
        parts.append("Don't forget: " + ", ".join(missing) + ".")
    return " ".join(parts)
