"""Basic Tool Schemas - capabilities that need no user credential.

Invariants:
    - calculator is always available
    - web_search is only offered when SERPAPI_API_KEY is configured
    - Schemas use the OpenAPI subset Gemini accepts (no "default", no "$ref")
"""

CALCULATOR_TOOL = {
    "name": "calculator",
    "description": (
        "Evaluates an arithmetic expression and returns the numeric result. "
        "Supports + - * / // % ** and parentheses. Use it for any math "
        "instead of computing in your head."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "expression": {
                "type": "string",
                "description": "Arithmetic expression, e.g. '(3 + 4) * 2.5'",
            },
        },
        "required": ["expression"],
    },
}

WEB_SEARCH_TOOL = {
    "name": "web_search",
    "description": (
        "Searches the web and returns the top results with title, link and "
        "snippet. Use it for current events or facts you are unsure about."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "Search query",
            },
            "num_results": {
                "type": "integer",
                "description": "How many results to return (1-10)",
            },
        },
        "required": ["query"],
    },
}
