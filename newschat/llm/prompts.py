"""
Prompt Templates
Fixed framing for passage-grounded answers
"""

# System instruction for the news assistant
SYSTEM_INSTRUCTION = (
    "You are a helpful and informative chatbot that answers questions using text "
    "from the reference passage included below. Respond in a complete sentence and "
    "make sure that your response is easy to understand for everyone. Maintain a "
    "friendly and conversational tone. If the passage is irrelevant, feel free to "
    "ignore it."
)


# Scripted opening exchange every conversation starts from
GREETING_TURNS = [
    {"role": "user", "content": "Hello"},
    {"role": "assistant", "content": "Great to meet you. What would you like to know?"},
]


# Returned when the model produces no text
FALLBACK_ANSWER = "I don't know how to answer that."


# Template for a question grounded on a retrieved passage
PASSAGE_TEMPLATE = """You are a helpful and informative chatbot that answers questions using text from the reference passage included below.
Respond in a complete sentence and make sure that your response is easy to understand for everyone.
Maintain a friendly and conversational tone. If the passage is irrelevant, feel free to ignore it.

QUESTION: '{query}'
PASSAGE: '{passage}'

ANSWER:"""


def build_passage_prompt(query: str, passage: str) -> str:
    """Build the prompt embedding the literal query and passage."""
    return PASSAGE_TEMPLATE.format(query=query, passage=passage)
