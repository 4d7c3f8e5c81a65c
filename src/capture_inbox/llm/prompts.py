"""Prompt builders and per-purpose sampling settings for Gemini.

Callers pick a Purpose rather than a raw temperature: extraction-like calls
run cold, conversational replies run warm.
"""

from datetime import date
from enum import Enum

from capture_inbox.models.capture import Capture, ContentType
from capture_inbox.models.context import ClassificationContext

# Gemini model constant -- update here when a newer flash model is adopted
GEMINI_MODEL = "gemini-2.5-flash"

# Captures included as context in a conversational answer
CHAT_CONTEXT_LIMIT = 20


class Purpose(str, Enum):
    """Why a Gemini call is being made. Determines its temperature."""

    EXTRACTION = "extraction"
    CLASSIFICATION = "classification"
    CONVERSATION = "conversation"


TEMPERATURES: dict[Purpose, float] = {
    Purpose.EXTRACTION: 0.2,
    Purpose.CLASSIFICATION: 0.4,
    Purpose.CONVERSATION: 0.7,
}


def temperature_for(purpose: Purpose) -> float:
    return TEMPERATURES[purpose]


_CLASSIFICATION_PROMPT = """\
You are Brain, a personal assistant that files whatever the user jots down. \
You are a smart note-taker with good recall and time-awareness.

TODAY: {weekday}, {today}
{rules_section}{memory_section}
CONTENT TYPE: {content_type}
INPUT:
\"\"\"
{content}
\"\"\"

YOUR JOB:

1. ACKNOWLEDGE CONVERSATIONALLY (response)
   - "Got it, I'll remind you Tuesday", "Saved that idea about wireless DMX"
   - Brief and natural, not formal

2. EXTRACT TIME/DEADLINES (due_date, reminder_date, time_context)
   - "Call John by Tuesday" -> due_date = next Tuesday, reminder_date = Tuesday
   - "Follow up next week" -> due_date = next Monday
   - "Show on Feb 26" -> due_date = the next Feb 26 on or after today
   - "Eventually try this" -> no deadline
   - Convert relative dates to actual dates based on today ({today})
   - Dates MUST be ISO YYYY-MM-DD or null

3. IDENTIFY MENTIONS (mentions)
   - People, companies, projects/shows, topics mentioned

4. CLASSIFY
   - type: task | reminder | idea | note | contact | show | lead | reference
   - category: one of ideas, tasks, contacts, leads, shows, notes, reference, \
quotes, bookmarks, meetings, projects
   - context: business or personal
   - 2-5 short lowercase tags

5. STRUCTURED DATA
   - lead_data only for leads (name, company, email, phone, website, source, \
event_date, event_type, venue, budget, notes)
   - show_data only for shows (client, show_type, date, venue, fee, status)
   - task_data only for tasks (title, due_date, priority, related_to)

6. DOES THIS NEED ACTION?
   - needs_action: true only if the user needs to DO something
   - suggested_action: short imperative ("Call Sarah", "Send quote"), else null

Be conversational, not formal. You're taking notes for a friend, not filing reports.

Return structured JSON.
"""

_CHAT_PROMPT = """\
You are Atlas, a helpful assistant that helps the user organize and retrieve \
their captured knowledge (notes, ideas, tasks, contacts, leads, shows).

User's Captures:
{captures}

User's Question: "{query}"

Instructions:
1. Answer the question based on the captures
2. If asked to find something, reference specific captures
3. If the captures don't cover it, say so helpfully
4. Be concise
5. If the user wants to save something new, tell them to just type or paste it

Respond naturally and conversationally.
"""

_SEARCH_PROMPT = """\
You are a semantic search engine. Given the user's search query and a list \
of captured notes, find the most relevant captures.

Search Query: "{query}"

Available Captures:
{captures}

Instructions:
1. Find captures that semantically match the user's query
2. Consider the summary, category, and tags when matching
3. Return the IDs of matching captures, ordered by relevance (most relevant first)
4. If nothing matches, return an empty list
5. Provide a brief explanation of why these captures match

Return structured JSON.
"""

_LEAD_PROMPT = """\
Extract lead/contact information from this text. It is for an entertainment \
business that books performances.

Text to parse:
\"\"\"
{content}
\"\"\"

Extract:
- name: the contact person's name
- company: company, organization, venue or hotel name
- email, phone
- event_type: corporate event, wedding, private party, conference, gala, ...
- event_date: when the event is, as a readable date
- venue: where the event is
- budget: keep the original format ("$5k", "$5,000")
- notes: any other relevant info
- source: how the lead came in (email inquiry, website form, referral, ...)

Only include fields you can find in the text. Leave the others null.
"""


def build_classification_prompt(
    content: str,
    content_type: ContentType,
    today: date,
    context: ClassificationContext | None = None,
) -> str:
    """Assemble the classification prompt with today's anchor date, rules and memories."""
    context = context or ClassificationContext()

    rules_section = ""
    if context.rules and context.rules.strip():
        rules_section = f"\nUSER'S RULES:\n{context.rules.strip()}\n"

    memory_section = ""
    memories = [m.strip() for m in context.memories if m.strip()]
    if memories:
        memory_list = "\n".join(f"- {m}" for m in memories)
        memory_section = f"\nTHINGS TO REMEMBER:\n{memory_list}\n"

    return _CLASSIFICATION_PROMPT.format(
        weekday=today.strftime("%A"),
        today=today.isoformat(),
        rules_section=rules_section,
        memory_section=memory_section,
        content_type=content_type.value,
        content=content,
    )


def build_chat_prompt(query: str, captures: list[Capture]) -> str:
    """Render up to CHAT_CONTEXT_LIMIT captures as one line each, newest first."""
    lines = [
        f"[{c.category.value.upper()}] {c.summary} (Tags: {', '.join(c.tags)}) "
        f"- Created: {c.created_at.date().isoformat()}"
        for c in captures[:CHAT_CONTEXT_LIMIT]
    ]
    rendered = "\n".join(lines) if lines else "No captures available yet."
    return _CHAT_PROMPT.format(captures=rendered, query=query)


def build_lead_prompt(content: str) -> str:
    return _LEAD_PROMPT.format(content=content)


def build_search_prompt(query: str, captures: list[Capture]) -> str:
    blocks = [
        f"ID: {c.id}\nSummary: {c.summary}\nCategory: {c.category.value}\n"
        f"Tags: {', '.join(c.tags)}"
        for c in captures
    ]
    return _SEARCH_PROMPT.format(query=query, captures="\n\n---\n\n".join(blocks))
