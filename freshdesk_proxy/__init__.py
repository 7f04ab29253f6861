"""
Freshdesk Ticket Proxy - requester-facing ticket API backed by Freshdesk
"""

__version__ = "1.0.0"
