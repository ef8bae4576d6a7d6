"""Google Handlers - Gmail and Calendar tools over the Google REST APIs (4 methods).

Invariants:
    - Constructed per request with that request's access token; never cached
    - Construction without a token raises CapabilityError (degrades the request)
    - HTTP 401/403 from Google map to INSUFFICIENT_SCOPE / TOKEN_REJECTED tool errors
      so the model can tell the user to sign in again

Design Decisions:
    - Raw REST over google-api-python-client: four endpoints, httpx already pooled
    - gmail_search fetches metadata only (From/Subject/Date + snippet), never bodies
"""

import base64
from email.message import EmailMessage

import httpx

from assistant0.core.errors import CapabilityError, ToolExecutionError

GMAIL_API = "https://gmail.googleapis.com/gmail/v1/users/me"
CALENDAR_API = "https://www.googleapis.com/calendar/v3/calendars"


class GoogleHandlers:
    """Credential-requiring tools, bound to one access token."""

    def __init__(
        self, access_token: str, http: httpx.AsyncClient,
        calendar_id: str = "primary",
    ):
        if not access_token or not access_token.strip():
            raise CapabilityError("Cannot build Google tools: empty access token")
        self.http = http
        self.calendar_id = calendar_id
        self._headers = {"Authorization": f"Bearer {access_token}"}

    async def gmail_search(self, input_data: dict) -> dict:
        query = str(input_data.get("query", ""))
        limit = max(1, min(int(input_data.get("max_results") or 10), 20))
        listing = await self._request(
            "gmail_search", "GET", f"{GMAIL_API}/messages",
            params={"q": query, "maxResults": limit},
        )
        messages = []
        for ref in listing.get("messages", [])[:limit]:
            detail = await self._request(
                "gmail_search", "GET", f"{GMAIL_API}/messages/{ref['id']}",
                params={
                    "format": "metadata",
                    "metadataHeaders": ["From", "Subject", "Date"],
                },
            )
            headers = {
                h["name"].lower(): h["value"]
                for h in detail.get("payload", {}).get("headers", [])
            }
            messages.append({
                "id": ref["id"],
                "thread_id": detail.get("threadId"),
                "from": headers.get("from"),
                "subject": headers.get("subject"),
                "date": headers.get("date"),
                "snippet": detail.get("snippet"),
            })
        return {"status": "ok", "query": query, "messages": messages}

    async def gmail_create_draft(self, input_data: dict) -> dict:
        email = EmailMessage()
        email["To"] = ", ".join(input_data.get("to") or [])
        email["Subject"] = input_data.get("subject", "")
        if input_data.get("cc"):
            email["Cc"] = ", ".join(input_data["cc"])
        if input_data.get("bcc"):
            email["Bcc"] = ", ".join(input_data["bcc"])
        email.set_content(input_data.get("message", ""))
        raw = base64.urlsafe_b64encode(email.as_bytes()).decode("ascii")

        draft = await self._request(
            "gmail_create_draft", "POST", f"{GMAIL_API}/drafts",
            json={"message": {"raw": raw}},
        )
        return {"status": "ok", "draft_id": draft.get("id")}

    async def google_calendar_create(self, input_data: dict) -> dict:
        event = {
            "summary": input_data.get("summary"),
            "start": {"dateTime": input_data.get("start")},
            "end": {"dateTime": input_data.get("end")},
        }
        for key in ("description", "location"):
            if input_data.get(key):
                event[key] = input_data[key]
        if input_data.get("attendees"):
            event["attendees"] = [{"email": a} for a in input_data["attendees"]]

        created = await self._request(
            "google_calendar_create", "POST",
            f"{CALENDAR_API}/{self.calendar_id}/events", json=event,
        )
        return {
            "status": "ok",
            "event_id": created.get("id"),
            "link": created.get("htmlLink"),
        }

    async def google_calendar_view(self, input_data: dict) -> dict:
        params = {
            "timeMin": input_data.get("time_min"),
            "timeMax": input_data.get("time_max"),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": max(1, min(int(input_data.get("max_results") or 20), 50)),
        }
        if input_data.get("query"):
            params["q"] = input_data["query"]
        listing = await self._request(
            "google_calendar_view", "GET",
            f"{CALENDAR_API}/{self.calendar_id}/events", params=params,
        )
        events = [
            {
                "summary": e.get("summary"),
                "start": (e.get("start") or {}).get("dateTime")
                or (e.get("start") or {}).get("date"),
                "end": (e.get("end") or {}).get("dateTime")
                or (e.get("end") or {}).get("date"),
                "location": e.get("location"),
            }
            for e in listing.get("items", [])
        ]
        return {"status": "ok", "events": events}

    async def _request(self, tool: str, method: str, url: str, **kwargs) -> dict:
        try:
            response = await self.http.request(
                method, url, headers=self._headers, **kwargs,
            )
        except httpx.HTTPError as e:
            raise ToolExecutionError(tool, f"Google API unreachable: {e}", "GOOGLE_API_ERROR")
        if response.is_success:
            return response.json() if response.content else {}
        raise _google_error(tool, response)


def _google_error(tool: str, response: httpx.Response) -> ToolExecutionError:
    try:
        message = response.json().get("error", {}).get("message", "")
    except (ValueError, AttributeError):
        message = ""
    message = message or f"Google API returned HTTP {response.status_code}"
    if response.status_code == 403 and "scope" in message.lower():
        return ToolExecutionError(tool, message, "INSUFFICIENT_SCOPE")
    if response.status_code in (401, 403):
        return ToolExecutionError(tool, message, "TOKEN_REJECTED")
    return ToolExecutionError(tool, message, "GOOGLE_API_ERROR")
