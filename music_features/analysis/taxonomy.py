"""Keyword taxonomies for classifier labels

Maps audio-event label names onto the categories the interpreter reports:
instrument, vocal, genre, mood and energy. Matching is case-insensitive on
whole words, so "Bass guitar" is an instrument but "Bassoon" only matches
through its own entry.
"""

import re
from enum import Enum
from typing import FrozenSet, Iterable, Pattern


class LabelCategory(Enum):
    INSTRUMENT = "instrument"
    VOCAL = "vocal"
    GENRE = "genre"
    MOOD = "mood"
    ENERGY = "energy"


INSTRUMENT_KEYWORDS = frozenset([
    # Strings
    'piano', 'guitar', 'electric guitar', 'acoustic guitar', 'bass guitar',
    'steel guitar', 'slide guitar', 'banjo', 'mandolin', 'ukulele', 'sitar',
    'violin', 'fiddle', 'viola', 'cello', 'double bass', 'bass', 'harp',
    'zither', 'harpsichord', 'lute', 'bouzouki', 'string section',
    # Brass and wind
    'saxophone', 'trumpet', 'trombone', 'tuba', 'french horn', 'horn', 'cornet',
    'flute', 'clarinet', 'oboe', 'bassoon', 'recorder', 'piccolo',
    'harmonica', 'accordion', 'concertina', 'bagpipes', 'didgeridoo',
    # Keyboards and electronic
    'keyboard', 'organ', 'electronic organ', 'hammond organ', 'synthesizer',
    'sampler', 'electric piano', 'celesta', 'theremin', 'drum machine',
    # Percussion
    'drum', 'drum kit', 'snare drum', 'bass drum', 'timpani', 'tabla',
    'cymbal', 'crash cymbal', 'hi-hat', 'tom-tom', 'wood block', 'tambourine',
    'maraca', 'gong', 'tubular bells', 'mallet percussion', 'marimba',
    'xylophone', 'glockenspiel', 'vibraphone', 'steelpan', 'rattle',
    'singing bowl', 'kalimba', 'scratching',
])

# Labels that share a keyword with an instrument but are not instruments
EXCLUDED_INSTRUMENT_LABELS = frozenset([
    'computer keyboard', 'car horn', 'vehicle horn', 'air horn', 'foghorn',
    'train horn', 'bicycle bell', 'rattle', 'baby rattle',
    'speech synthesizer', 'drum and bass',
])

# Machine-noise labels whose adjectives look like energy words
EXCLUDED_ENERGY_LABELS = frozenset([
    'heavy engine (low frequency)', 'light engine (high frequency)',
    'medium engine (mid frequency)', 'engine', 'engine knocking', 'engine starting',
])

VOCAL_KEYWORDS = frozenset([
    'singing', 'speech', 'vocal', 'vocals', 'voice', 'choir', 'chorus',
    'chant', 'chanting', 'mantra', 'yodeling', 'rapping', 'humming',
    'a capella', 'vocal music', 'synthetic singing', 'male singing',
    'female singing', 'child singing', 'beatboxing', 'narration',
    'monologue', 'conversation', 'whispering', 'shout', 'yell', 'screaming',
    'whistling', 'speech synthesizer', 'male speech', 'female speech',
])

GENRE_KEYWORDS = frozenset([
    'rock', 'pop', 'jazz', 'classical', 'electronic', 'blues', 'country',
    'hip hop', 'reggae', 'metal', 'folk', 'rhythm and blues', 'soul', 'funk',
    'disco', 'techno', 'house', 'trance', 'dubstep', 'ambient', 'gospel',
    'new-age', 'punk', 'grunge', 'progressive rock', 'psychedelic rock',
    'rock and roll', 'heavy metal', 'punk rock', 'swing', 'bluegrass',
    'opera', 'drum and bass', 'electronica', 'electronic dance music',
    'salsa', 'flamenco', 'afrobeat', 'ska', 'carnatic', 'bollywood',
    'independent music', 'soundtrack', 'lullaby', 'dance music', 'jingle',
])

# Labels containing "music"/"song" that say nothing about genre
GENERIC_MUSIC_LABELS = frozenset([
    'music', 'song', 'musical instrument', 'background music', 'vocal music',
    'happy music', 'sad music', 'tender music', 'exciting music',
    'angry music', 'scary music', 'funny music',
])

MOOD_KEYWORDS = frozenset([
    'happy', 'sad', 'tender', 'exciting', 'angry', 'scary', 'energetic',
    'calm', 'melancholy', 'melancholic', 'upbeat', 'cheerful', 'gloomy',
    'peaceful', 'relaxing', 'relaxed', 'intense', 'aggressive', 'gentle',
    'joyful', 'somber', 'dark', 'serene', 'tranquil', 'uplifting',
    'romantic', 'passionate', 'nostalgic', 'dreamy', 'mysterious',
    'dramatic', 'epic', 'heroic', 'triumphant', 'playful', 'fun',
    'lighthearted', 'funny', 'chill', 'mellow', 'lullaby', 'christmas', 'wedding',
])

ENERGY_KEYWORDS = frozenset([
    'loud', 'quiet', 'soft', 'powerful', 'intense', 'heavy', 'light',
    'dynamic', 'aggressive', 'energetic', 'lively', 'vibrant', 'exciting',
    'fast', 'slow', 'upbeat', 'driving', 'pulsing', 'rhythmic', 'beat',
    'rock', 'metal', 'punk', 'hardcore', 'grunge', 'electronic', 'techno',
    'house', 'trance', 'dubstep', 'drum and bass', 'dance', 'disco', 'funk',
    'ambient', 'new-age', 'classical', 'orchestra', 'lullaby', 'angry',
    'tender', 'calm', 'drum', 'bass drum',
])

# Scalar mood value per keyword, 0 = sad, 1 = very happy
MOOD_VALUES = {
    'happy': 0.8, 'cheerful': 0.8, 'joyful': 0.8, 'upbeat': 0.8,
    'playful': 0.8, 'fun': 0.8, 'funny': 0.8, 'lighthearted': 0.8,
    'sad': 0.2, 'gloomy': 0.2, 'somber': 0.2, 'melancholy': 0.2, 'melancholic': 0.2,
    'energetic': 0.7, 'intense': 0.7, 'powerful': 0.7, 'dynamic': 0.7,
    'vibrant': 0.7, 'lively': 0.7, 'exciting': 0.7,
    'calm': 0.6, 'peaceful': 0.6, 'serene': 0.6, 'tranquil': 0.6,
    'relaxed': 0.6, 'relaxing': 0.6, 'chill': 0.6,
    'angry': 0.3, 'aggressive': 0.3,
    'romantic': 0.7, 'tender': 0.7, 'passionate': 0.7,
    'mysterious': 0.4, 'dark': 0.4, 'scary': 0.4,
    'dramatic': 0.6, 'epic': 0.6, 'heroic': 0.6,
}
DEFAULT_MOOD_VALUE = 0.5


def _compile(keywords: Iterable[str]) -> Pattern:
    ordered = sorted(keywords, key=len, reverse=True)
    return re.compile(r"(?<![\w-])(?:" + "|".join(re.escape(k) for k in ordered) + r")(?![\w-])")


_PATTERNS = {
    LabelCategory.INSTRUMENT: _compile(INSTRUMENT_KEYWORDS),
    LabelCategory.VOCAL: _compile(VOCAL_KEYWORDS),
    LabelCategory.GENRE: _compile(GENRE_KEYWORDS),
    LabelCategory.MOOD: _compile(MOOD_KEYWORDS),
    LabelCategory.ENERGY: _compile(ENERGY_KEYWORDS),
}
_EXCLUDED_LABELS = {
    LabelCategory.INSTRUMENT: EXCLUDED_INSTRUMENT_LABELS,
    LabelCategory.ENERGY: EXCLUDED_ENERGY_LABELS,
}
_MUSIC_WORD = re.compile(r"\b(?:music|song)\b")
_MOOD_WORD = _compile(MOOD_VALUES)


def display_name(label: str) -> str:
    """Primary name of a label: the text before the first comma."""
    return label.split(',')[0].strip()


def categorize(label: str) -> FrozenSet[LabelCategory]:
    """Categories a label belongs to (possibly none, possibly several).

    Args:
        label: Raw label from the classifier's label table

    Returns:
        Frozen set of LabelCategory members
    """
    text = label.lower().strip()
    name = display_name(text)
    categories = set()

    for category, pattern in _PATTERNS.items():
        excluded = _EXCLUDED_LABELS.get(category, frozenset())
        if text in excluded or name in excluded:
            continue
        if pattern.search(text):
            categories.add(category)

    if name not in GENERIC_MUSIC_LABELS and _MUSIC_WORD.search(name):
        categories.add(LabelCategory.GENRE)
    elif name in GENERIC_MUSIC_LABELS:
        categories.discard(LabelCategory.GENRE)

    return frozenset(categories)


def mood_value(label: str) -> float:
    """Scalar mood of a label from its first mood keyword (0.5 if none)."""
    match = _MOOD_WORD.search(label.lower())
    if match is None:
        return DEFAULT_MOOD_VALUE
    return MOOD_VALUES[match.group(0)]
