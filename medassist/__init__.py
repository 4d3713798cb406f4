"""
MedAssist - conversational medical assistant.

Answers questions by retrieving reference documents with vector
similarity, grounding a streamed LLM completion in them, and storing both
sides of the conversation.
"""

__version__ = "0.1.0"
