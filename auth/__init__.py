"""auth/ -- Accounts, tokens, and the signup/session flows.

Layer rule: auth/ imports from core/, otp/, and mail/ (templates only).
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
