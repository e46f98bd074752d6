# users/social.py
"""
Known social / coding-profile platforms.

Each entry: label, URL pattern a stored link must match, profile URL
template for bare usernames, and an example shown in validation errors.
"""
import re


PLATFORMS = {
    "linkedin": {
        "label": "LinkedIn",
        "pattern": re.compile(r"^https?://(www\.)?linkedin\.com/.+$", re.I),
        "template": "https://www.linkedin.com/in/{}",
        "example": "https://www.linkedin.com/in/your-username",
    },
    "github": {
        "label": "GitHub",
        "pattern": re.compile(r"^https?://(www\.)?github\.com/.+$", re.I),
        "template": "https://github.com/{}",
        "example": "https://github.com/your-username",
    },
    "stackoverflow": {
        "label": "Stack Overflow",
        "pattern": re.compile(r"^https?://(www\.)?stackoverflow\.com/.+$", re.I),
        "template": "https://stackoverflow.com/users/{}",
        "example": "https://stackoverflow.com/users/your-id",
    },
    "devto": {
        "label": "Dev.to",
        "pattern": re.compile(r"^https?://(www\.)?dev\.to/.+$", re.I),
        "template": "https://dev.to/{}",
        "example": "https://dev.to/your-username",
    },
    "medium": {
        "label": "Medium",
        "pattern": re.compile(r"^https?://(www\.)?medium\.com/.+$", re.I),
        "template": "https://medium.com/@{}",
        "example": "https://medium.com/@your-username",
    },
    "leetcode": {
        "label": "LeetCode",
        "pattern": re.compile(r"^https?://(www\.)?leetcode\.com/.+$", re.I),
        "template": "https://leetcode.com/{}",
        "example": "https://leetcode.com/your-username",
    },
    "geeksforgeeks": {
        "label": "GeeksforGeeks",
        "pattern": re.compile(r"^https?://(www\.)?geeksforgeeks\.org/.+$", re.I),
        "template": "https://www.geeksforgeeks.org/user/{}",
        "example": "https://www.geeksforgeeks.org/user/your-username",
    },
    "kaggle": {
        "label": "Kaggle",
        "pattern": re.compile(r"^https?://(www\.)?kaggle\.com/.+$", re.I),
        "template": "https://www.kaggle.com/{}",
        "example": "https://www.kaggle.com/your-username",
    },
    "codeforces": {
        "label": "Codeforces",
        "pattern": re.compile(r"^https?://(www\.)?codeforces\.com/.+$", re.I),
        "template": "https://codeforces.com/profile/{}",
        "example": "https://codeforces.com/profile/your-username",
    },
    "codechef": {
        "label": "CodeChef",
        "pattern": re.compile(r"^https?://(www\.)?codechef\.com/.+$", re.I),
        "template": "https://www.codechef.com/users/{}",
        "example": "https://www.codechef.com/users/your-username",
    },
}

ALL_PLATFORMS = list(PLATFORMS)

_URL_RE = re.compile(r"^https?://", re.I)


def normalize(platform: str, raw: str) -> str:
    """
    Full URLs pass through; anything else is taken as a username.
    """
    value = (raw or "").strip()
    if not value or _URL_RE.match(value):
        return value
    return PLATFORMS[platform]["template"].format(value.lstrip("@/"))


def is_valid(platform: str, url: str) -> bool:
    return bool(PLATFORMS[platform]["pattern"].match(url))
