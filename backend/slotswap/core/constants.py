"""
Centralized constants for push events and the scheduler.

Change event names or job IDs here instead of scattering literals across services
and routes. Clients subscribe to the event names below.
"""

# Push events (name -> payload)
EVENT_SWAP_REQUEST_CREATED = "swap_request_created"  # full request row, to responder
EVENT_SWAP_REQUEST_CREATED_ACK = "swap_request_created_ack"  # full request row, to requester
EVENT_SWAP_REQUEST_UPDATED = "swap_request_updated"  # {id, status}, to both parties
EVENT_EVENTS_CHANGED = "events_changed"  # {updatedEventIds: [slot_id, slot_id]}, to both parties

# WebSocket close code when the connect-time token is missing or invalid
WS_CLOSE_UNAUTHORIZED = 4401

# Scheduler job IDs (must match ids used in main.py add_job)
SWAP_AUDIT_JOB_ID = "swap_audit"

# Password policy for signup
MIN_PASSWORD_LENGTH = 6
