import logging
import re

logger = logging.getLogger("draftbot")

# Emoji and pictograph blocks stripped from display names
_EMOJI_RE = re.compile(
    "["
    "\U0001F100-\U0001FAD0"
    "\U0001F300-\U0001F5FF"
    "\U0001F600-\U0001F64F"
    "\U0001F680-\U0001F6FF"
    "\U0001F700-\U0001F77F"
    "\U0001F780-\U0001F7FF"
    "\U0001F800-\U0001F8FF"
    "\U0001F900-\U0001F9FF"
    "\U0001FA00-\U0001FAFF"
    "\u2600-\u26FF"
    "\u2700-\u27BF"
    "]+"
)
_PUNCT_RE = re.compile(r"[|•–—\-()_.@0-9]+")
_NAME_CHARS_RE = re.compile(r"[^a-zA-ZÀ-ÿ'’-]")


def sanitize_first_name(raw: str) -> str:
    """Reduce a display name like 'Jane 🌸 | Photographer' to 'Jane'."""
    if not raw:
        return ""

    stripped = _EMOJI_RE.sub("", str(raw))
    stripped = _PUNCT_RE.sub(" ", stripped)
    stripped = re.sub(r"\s+", " ", stripped).strip()
    if not stripped:
        return ""

    first_token = stripped.split(" ")[0]
    cleaned = _NAME_CHARS_RE.sub("", first_token)
    if not cleaned:
        return ""

    return cleaned[0].upper() + cleaned[1:]


def derive_first_name_from_username(username: str) -> str:
    """
    Guess a first name from a username: the part before the first '_' or '.',
    alphanumerics only, 2-30 characters, capitalized.

    'john_doe' -> 'John', 'maria.k' -> 'Maria', 'x' -> ''
    """
    if not username or not isinstance(username, str):
        return ""

    trimmed = username.strip()
    if not trimmed:
        return ""

    found = [i for i in (trimmed.find("_"), trimmed.find(".")) if i != -1]
    cut = min(found) if found else -1
    if cut > 0:
        name_part = trimmed[:cut]
    else:
        name_part = trimmed[:20]

    name_part = re.sub(r"[^a-zA-Z0-9]", "", name_part)
    if len(name_part) < 2 or len(name_part) > 30:
        return ""

    return name_part[0].upper() + name_part[1:].lower()


def build_draft_message(message_template: str, first_name: str = "", separator: str = "!") -> str:
    """
    Personalize a message template.

    Inserts " Name" before the first separator:
        "Hey! Thanks for following." + "John" -> "Hey John! Thanks for following."
    If the separator is missing the name is prefixed:
        "Thanks for following." -> "John! Thanks for following."
    Without a name the (trimmed) template is returned unchanged.
    """
    if not message_template:
        logger.warning("No message template provided to build_draft_message")
        return ""

    template = message_template.strip()
    name = (first_name or "").strip()
    if not name:
        return template

    index = template.find(separator)
    if index == -1:
        return f"{name}{separator} {template}"

    return f"{template[:index]} {name}{template[index:]}"
