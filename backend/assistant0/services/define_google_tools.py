"""Google Tool Schemas - Gmail and Calendar capabilities (need a Google access token).

Invariants:
    - Offered only when the identity provider returned a usable token
    - Dates and times are RFC 3339 strings; the model fills them, handlers never parse prose
"""

GMAIL_SEARCH_TOOL = {
    "name": "gmail_search",
    "description": (
        "Searches the user's Gmail using Gmail search syntax "
        "(e.g. 'from:alice is:unread newer_than:7d') and returns sender, "
        "subject, date and snippet for each match."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Gmail search query"},
            "max_results": {
                "type": "integer",
                "description": "Maximum messages to return (1-20)",
            },
        },
        "required": ["query"],
    },
}

GMAIL_CREATE_DRAFT_TOOL = {
    "name": "gmail_create_draft",
    "description": (
        "Creates a draft email in the user's Gmail. The draft is NOT sent. "
        "Render the email body as markdown in your reply."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "to": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Recipient email addresses",
            },
            "subject": {"type": "string"},
            "message": {"type": "string", "description": "Plain text body"},
            "cc": {"type": "array", "items": {"type": "string"}},
            "bcc": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["to", "subject", "message"],
    },
}

CALENDAR_CREATE_TOOL = {
    "name": "google_calendar_create",
    "description": "Creates an event in the user's Google Calendar.",
    "parameters": {
        "type": "object",
        "properties": {
            "summary": {"type": "string", "description": "Event title"},
            "start": {
                "type": "string",
                "description": "Start time, RFC 3339 (e.g. 2025-03-01T10:00:00-05:00)",
            },
            "end": {"type": "string", "description": "End time, RFC 3339"},
            "description": {"type": "string"},
            "location": {"type": "string"},
            "attendees": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["summary", "start", "end"],
    },
}

CALENDAR_VIEW_TOOL = {
    "name": "google_calendar_view",
    "description": (
        "Lists events from the user's Google Calendar between two times, "
        "optionally filtered by free text."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "time_min": {"type": "string", "description": "RFC 3339 lower bound"},
            "time_max": {"type": "string", "description": "RFC 3339 upper bound"},
            "query": {"type": "string", "description": "Free text filter"},
            "max_results": {"type": "integer"},
        },
        "required": ["time_min", "time_max"],
    },
}

TOOLS_GOOGLE = [
    GMAIL_SEARCH_TOOL,
    GMAIL_CREATE_DRAFT_TOOL,
    CALENDAR_CREATE_TOOL,
    CALENDAR_VIEW_TOOL,
]
