"""
charsync - EVE character location and ship tracking.

Periodically polls ESI for each tracked character's location and active
ship, keeps a status record up to date, and flags changed records so an
external notifier can announce them.

Main components:
- esi: ESI HTTP client and response models
- ships: Ship name normalization and ship history
- db: SQLAlchemy models and session management
- tasks: Location sync task, expiring locks and the batch runner
"""

__version__ = "1.0.0"
