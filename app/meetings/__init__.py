"""
Meetings Domain - Real-time chat rooms

This domain handles "meeting" rooms for the JoinUs web client:
- Hosts create meetings with a 6-digit code over HTTP
- Participants join a meeting's room over a WebSocket and chat
- Chat history is mirrored to a Redis document store
- Ended meetings are summarized by an LLM in the background

Architecture:
- WebSocket: /api/v1/socket (join-meeting, send-message events)
- HTTP: /api/v1/meetings (create, end, participants, summary)
"""

from .routes import meetings_bp

__all__ = ["meetings_bp"]
