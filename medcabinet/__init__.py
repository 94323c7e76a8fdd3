"""
medcabinet Package

Recurrence and intake scheduling engine for a medicine cabinet application:
- Resolvers: turn day/time rules into concrete intake days and times
- End resolution: manual, expiry-linked and count-target end conditions
- Reminders: projection of intake events onto a reminder facility
"""

__version__ = "1.0.0"
