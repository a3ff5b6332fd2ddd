"""
TutorLab - AI-generated lessons with an interactive learning and quiz flow.

Subpackages:
- schemas: pydantic models for lessons, curricula, knowledge and history
- classroom: lesson session, sequencing, navigation and learner state
- generation: Gemini client, response decoding and the tutor service
- viewer: HTML/text rendering
"""

__version__ = "0.1.0"
