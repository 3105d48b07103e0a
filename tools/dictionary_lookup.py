"""Word enrichment for the card view: thumbnail images and dictionary entries.

Neither lookup affects scheduling. A word without a dictionary entry is a
normal outcome and yields ``None``.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional
from urllib.parse import quote

import nltk
from nltk.corpus import wordnet as wn
from pydantic import BaseModel

logger = logging.getLogger(__name__)

THUMBNAIL_HOSTS = ("tse1", "tse2", "tse3")
THUMBNAIL_SUFFIXES = ("", " photo", " illustration")

POS_LABELS = {
    "n": "noun",
    "v": "verb",
    "a": "adjective",
    "s": "adjective",
    "r": "adverb",
}


class Meaning(BaseModel):
    part_of_speech: str
    definitions: List[str]
    examples: List[str] = []


class DictionaryEntry(BaseModel):
    word: str
    meanings: List[Meaning]
    synonyms: List[str] = []


def lookup_images(word: str) -> List[str]:
    """Return up to three thumbnail URLs showing ``word``."""
    word = word.strip()
    if not word:
        return []
    return [
        f"https://{host}.mm.bing.net/th?q={quote(word + suffix)}&w=300&h=300&c=7&rs=1&p=0"
        for host, suffix in zip(THUMBNAIL_HOSTS, THUMBNAIL_SUFFIXES)
    ]


def _synsets(word: str):
    try:
        return wn.synsets(word)
    except LookupError:
        try:
            nltk.download("wordnet", quiet=True)
            return wn.synsets(word)
        except Exception as e:
            logger.warning("WordNet unavailable, run nltk.download('wordnet'): %s", e)
            return []


def lookup_dictionary(word: str) -> Optional[DictionaryEntry]:
    """Look ``word`` up in WordNet, grouping senses by part of speech."""
    query = word.strip().replace(" ", "_")
    if not query:
        return None
    synsets = _synsets(query)
    if not synsets:
        return None

    grouped: Dict[str, Meaning] = {}
    synonyms: List[str] = []
    for synset in synsets:
        label = POS_LABELS.get(synset.pos(), synset.pos())
        meaning = grouped.setdefault(label, Meaning(part_of_speech=label, definitions=[]))
        definition = synset.definition()
        if definition not in meaning.definitions:
            meaning.definitions.append(definition)
        meaning.examples.extend(e for e in synset.examples() if e not in meaning.examples)
        for lemma in synset.lemma_names():
            name = lemma.replace("_", " ")
            if name.lower() != word.strip().lower() and name not in synonyms:
                synonyms.append(name)

    return DictionaryEntry(word=word.strip(), meanings=list(grouped.values()), synonyms=synonyms[:10])
