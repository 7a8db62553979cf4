"""
Session store and authentication state machine.

Provides:
- Passwordless magic-link login against the founder allowlist
- Startup reconciliation with the server-side session
- Logout and expiry handling
"""
