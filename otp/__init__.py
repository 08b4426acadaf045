"""
otp/ -- One-time verification codes for email-verified signup.

Layer rule: otp/ imports only stdlib, third-party libraries, and core/.
auth/ and api/ import from otp/, not the other way around.
"""
