"""
Prompt templates for the weekly newsletter generator.
"""
from .date_range import DateRange

SYSTEM_INSTRUCTION = "You are a helpful assistant that generates informative and accurate event listings."

CORRECTIVE_INSTRUCTION = (
    "Previous attempt failed to parse correctly. Please ensure STRICT adherence to the format "
    "specified above. Each event MUST include ALL required fields with the exact field names "
    "provided. If information is unknown, use \"TBD\" rather than omitting the field."
)


def build_newsletter_prompt(date_range: DateRange, city: str, retry_attempt: int = 0) -> str:
    """Structured-format prompt; retries append the corrective instruction."""
    prompt = f"""Generate a weekly, informational events newsletter for {city} and within 50 miles for the week of {date_range.start_label} to {date_range.end_label}.

Include:

- Notable live-music shows
- Major festivals, family or outdoor events
- Brief planning tips (parking, weather, family-friendly notes)

IMPORTANT: You MUST format your response EXACTLY as follows to ensure proper parsing:

### LIVE MUSIC

**[Event Name]**
* Date: [specific date in format: Day of week, Month Day]
* Time: [specific time]
* Venue: [specific venue name]
* Tickets: [price information]
* Ticket Link: [ticket link]
* Description: [brief artist bio or event description]

### FESTIVALS & EVENTS

**[Event Name]**
* Date: [specific date in format: Day of week, Month Day]
* Time: [specific time or hours]
* Venue: [specific venue or location]
* Admission: [price information]
* Website: [event website if available]
* Description: [brief event description]

### PLANNING TIPS

* **[Topic]**: [tip details]
* **[Topic]**: [tip details]
* **[Topic]**: [tip details]

Do not deviate from this format. Each event must include ALL the fields listed above, even if you need to indicate "Free" for tickets or "TBD" for unknown information. Do not add any additional sections or change the formatting."""

    if retry_attempt > 0:
        prompt += f"\n\n{CORRECTIVE_INSTRUCTION}"
    return prompt


def build_local_activities_prompt(date_range: DateRange, city: str, radius_miles: int = 50) -> str:
    return f"""Generate a list of activities within a {radius_miles}-mile radius of {city} for the week of {date_range.start_label} to {date_range.end_label}.

Include a mix of:
- Outdoor activities and parks
- Family-friendly attractions
- Cultural and historical sites
- Local restaurants and food experiences
- Shopping destinations

For each activity, provide:
- Name
- Location/Address
- Brief description (1-2 sentences)
- Type of activity (e.g., outdoor, family, cultural)
- Cost estimate (free, $, $$, $$$)

IMPORTANT: Your response must be a valid JSON array with the following structure and nothing else:
[
  {{
    "name": "Activity name",
    "location": "Address or venue",
    "description": "Brief description",
    "type": "Activity type",
    "cost": "Cost estimate"
  }}
]

Return only the raw JSON array."""
