"""Generation domain — metered LLM calls for email drafting, summaries and replies."""
