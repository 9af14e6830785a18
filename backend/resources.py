"""
Reference links shown next to the analysis results.
The backend never fetches or validates these URLs.
"""

REFERENCE_RESOURCES = [
    {
        "title": "YouTube Audio Library",
        "description": "Free music and sound effects for your videos",
        "url": "https://www.youtube.com/audiolibrary/",
        "link_text": "Visit Library",
    },
    {
        "title": "Copyright Guidelines",
        "description": "Learn about YouTube's copyright policies",
        "url": "https://support.google.com/youtube/answer/2797466",
        "link_text": "Read Guidelines",
    },
    {
        "title": "Fair Use Guidelines",
        "description": "Understand when fair use may apply",
        "url": "https://www.youtube.com/about/copyright/fair-use/",
        "link_text": "Learn More",
    },
    {
        "title": "Creative Commons",
        "description": "Find freely usable content",
        "url": "https://creativecommons.org/",
        "link_text": "Browse Content",
    },
]


def get_resources() -> list[dict]:
    """Return a copy of the reference links"""
    return [dict(r) for r in REFERENCE_RESOURCES]
