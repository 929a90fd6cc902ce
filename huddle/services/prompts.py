"""Prompt templates for classification and digest synthesis."""

CLASSIFICATION_PROMPT = """Classify the message according to the following instructions:

1. label:
- "share" - if the user is sharing a personal highlight or update (anything related to how the user is feeling).
- "request" - if the user is asking others to share their updates or highlights, especially specific ones (e.g., "how are you all doing?").
- "general_request" - if the message is a broad, open-ended or informational question that an AI assistant could answer (e.g., "What's something fun I can ask the group today?", "Any good weekend prompts?").

2. names:
- Extract the names of people the user is checking in on (e.g., "How is Priya doing?").
- If the message refers to everyone (e.g., "everyone", "you all"), set this field to null.
- If the label is "share" or "general_request", set this field to null.

3. request_topic:
- Only populate this field if the user is asking about a specific event, activity, or topic (e.g., "your trip to the zoo", "how the concert was", "how your Monday presentation went").
- If the request is broad or generic (e.g., "how are you?", "how's your week?", "what's new?"), set this field to null.
- If the label is "share" or "general_request", set this field to null.

4. days:
- If the label is "request", give the maximum number of days the user is asking about:
  - "today" -> 1
  - "the previous week" -> 14
  - "the previous month" -> 60
- If the time period is unclear (e.g., "a while ago") or not mentioned, set this field to null.

Respond with ONLY a JSON object (no markdown, no backticks) like this:
{{
  "label": "share" | "request" | "general_request",
  "names": ["..."] | null,
  "request_topic": "..." | null,
  "days": <number of days to look back> | null
}}

Message: "{message}"
"""

DIGEST_PROMPT = """Today's date is {today}. Use this to determine what counts as 'today' in the question.

You are a friendly assistant summarizing life updates from a close group of friends. Each friend has shared personal highlights at various times in the past. Each highlight includes a timestamp in ISO 8601 format.

Based on these highlights, respond to a general question like "How's everyone doing?" or a more specific one like "What's new with Alice and Ben?"

Your response must be a single JSON object with the following structure:
{{
  "summary": "..."
}}

Your summary should:
- Sound warm, caring, and human, like you're chatting with a friend.
- Use simple words and short sentences.
- Mention timing naturally where it adds value (e.g. "Earlier this week, Alice...", "On Friday, Ben...").
- Be accurate to the timestamps; don't assume everything is recent.
- Reflect moods, progress, or concerns.
- Mention specific people and their updates clearly.
- Summarize or connect the highlights into a story instead of repeating each one.
- Use paragraph breaks inside the "summary" string for readability.
- Read well aloud, since the summary may be converted to speech.

Always answer what is actually asked:
- If the question is about today, only use highlights from today.
- If it's about a specific person, only mention them.
- If the question is general, use recent highlights to give a warm, well-rounded picture.
- Never include outdated highlights that aren't relevant to the question.
- Write about the people being asked about, not as if you're speaking to them.
{topic_line}
Here are the highlights to summarize, grouped by person:
{highlights}

Question: {message}
"""


def build_classification_prompt(message: str) -> str:
    """Embed ``message`` in the classification instructions."""
    return CLASSIFICATION_PROMPT.format(message=message.replace('"', '\\"'))


def build_digest_prompt(
    today: str, highlights: str, message: str, topic: str | None = None
) -> str:
    """Embed the serialized highlights and the question in the digest instructions."""
    topic_line = f"\nThe question is specifically about: {topic}\n" if topic else ""
    return DIGEST_PROMPT.format(
        today=today,
        highlights=highlights,
        message=message,
        topic_line=topic_line,
    )
