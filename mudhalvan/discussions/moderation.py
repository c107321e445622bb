import re

BLOCKED_WORDS = (
    "fuck", "shit", "ass", "bitch", "dick", "pussy", "cunt", "asshole",
    "damn", "bastard", "motherfucker", "bullshit", "cock", "piss", "whore",
)

# Whole words plus the common inflections
_BLOCKED = re.compile(
    r"\b(?:%s)(?:s|ing|ed|er)?\b" % "|".join(map(re.escape, BLOCKED_WORDS)),
    re.IGNORECASE,
)


def contains_profanity(text: str) -> bool:
    return _BLOCKED.search(text) is not None
