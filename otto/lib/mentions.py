import re

_MENTION = re.compile(r"@([\w-]+)")


def parse_mentions(content: str) -> set[str]:
    """Extract @agent mentions from content."""
    return {match.rstrip("-") for match in _MENTION.findall(content)} - {""}
