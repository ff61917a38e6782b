"""Porter (1980) stemmer pinned to the lunr/elasticlunr variant.

Swapping the stemming algorithm silently changes the tokens produced for
identical input, so index artifacts built elsewhere with the lunr family of
tools only stay queryable when both sides agree bit for bit. This module
reproduces that variant exactly, including the leading ``y`` guard and the
``^C v [^aeiouwxy]$`` short-syllable rule.
"""

from __future__ import annotations

from functools import lru_cache
import re


_STEP2_SUFFIXES = {
    "ational": "ate",
    "tional": "tion",
    "enci": "ence",
    "anci": "ance",
    "izer": "ize",
    "bli": "ble",
    "alli": "al",
    "entli": "ent",
    "eli": "e",
    "ousli": "ous",
    "ization": "ize",
    "ation": "ate",
    "ator": "ate",
    "alism": "al",
    "iveness": "ive",
    "fulness": "ful",
    "ousness": "ous",
    "aliti": "al",
    "iviti": "ive",
    "biliti": "ble",
    "logi": "log",
}

_STEP3_SUFFIXES = {
    "icate": "ic",
    "ative": "",
    "alize": "al",
    "iciti": "ic",
    "ical": "ic",
    "ful": "",
    "ness": "",
}

_c = "[^aeiou]"
_v = "[aeiouy]"
_C = _c + "[^aeiouy]*"
_V = _v + "[aeiou]*"

_MGR0 = re.compile("^(" + _C + ")?" + _V + _C)
_MEQ1 = re.compile("^(" + _C + ")?" + _V + _C + "(" + _V + ")?$")
_MGR1 = re.compile("^(" + _C + ")?" + _V + _C + _V + _C)
_S_V = re.compile("^(" + _C + ")?" + _v)

_STEP1A_SSES_IES = re.compile(r"^(.+?)(ss|i)es$")
_STEP1A_S = re.compile(r"^(.+?)([^s])s$")
_STEP1B_EED = re.compile(r"^(.+?)eed$")
_STEP1B_ED_ING = re.compile(r"^(.+?)(ed|ing)$")
_STEP1B_AT_BL_IZ = re.compile(r"(at|bl|iz)$")
_STEP1B_DOUBLE = re.compile(r"([^aeiouylsz])\1$")
_CVC = re.compile("^" + _C + _v + "[^aeiouwxy]$")
_STEP1C = re.compile(r"^(.+?)y$")
_STEP2 = re.compile(
    r"^(.+?)(ational|tional|enci|anci|izer|bli|alli|entli|eli|ousli|ization|ation|ator|alism|iveness|fulness"
    r"|ousness|aliti|iviti|biliti|logi)$"
)
_STEP3 = re.compile(r"^(.+?)(icate|ative|alize|iciti|ical|ful|ness)$")
_STEP4 = re.compile(r"^(.+?)(al|ance|ence|er|ic|able|ible|ant|ement|ment|ent|ou|ism|ate|iti|ous|ive|ize)$")
_STEP4_ION = re.compile(r"^(.+?)(s|t)(ion)$")
_STEP5 = re.compile(r"^(.+?)e$")
_STEP5_LL = re.compile(r"ll$")


@lru_cache(maxsize=8192)
def porter_stem(word: str) -> str:
    """Return the Porter stem of ``word`` (expected lowercase)."""

    if len(word) < 3:
        return word

    first_char = word[0]
    if first_char == "y":
        word = "Y" + word[1:]

    word = _step1a(word)
    word = _step1b(word)
    word = _step1c(word)
    word = _step2(word)
    word = _step3(word)
    word = _step4(word)
    word = _step5(word)

    if first_char == "y":
        word = "y" + word[1:]
    return word


def _step1a(word: str) -> str:
    match = _STEP1A_SSES_IES.match(word)
    if match:
        return match.group(1) + match.group(2)
    match = _STEP1A_S.match(word)
    if match:
        return match.group(1) + match.group(2)
    return word


def _step1b(word: str) -> str:
    match = _STEP1B_EED.match(word)
    if match:
        if _MGR0.search(match.group(1)):
            return word[:-1]
        return word

    match = _STEP1B_ED_ING.match(word)
    if not match:
        return word
    stem = match.group(1)
    if not _S_V.search(stem):
        return word
    if _STEP1B_AT_BL_IZ.search(stem):
        return stem + "e"
    if _STEP1B_DOUBLE.search(stem):
        return stem[:-1]
    if _CVC.search(stem):
        return stem + "e"
    return stem


def _step1c(word: str) -> str:
    match = _STEP1C.match(word)
    if match and _S_V.search(match.group(1)):
        return match.group(1) + "i"
    return word


def _step2(word: str) -> str:
    match = _STEP2.match(word)
    if match and _MGR0.search(match.group(1)):
        return match.group(1) + _STEP2_SUFFIXES[match.group(2)]
    return word


def _step3(word: str) -> str:
    match = _STEP3.match(word)
    if match and _MGR0.search(match.group(1)):
        return match.group(1) + _STEP3_SUFFIXES[match.group(2)]
    return word


def _step4(word: str) -> str:
    match = _STEP4.match(word)
    if match:
        if _MGR1.search(match.group(1)):
            return match.group(1)
        return word
    match = _STEP4_ION.match(word)
    if match:
        stem = match.group(1) + match.group(2)
        if _MGR1.search(stem):
            return stem
    return word


def _step5(word: str) -> str:
    match = _STEP5.match(word)
    if match:
        stem = match.group(1)
        if _MGR1.search(stem) or (_MEQ1.search(stem) and not _CVC.search(stem)):
            word = stem
    if _STEP5_LL.search(word) and _MGR1.search(word):
        word = word[:-1]
    return word
