"""
Utilities Package

Organized by purpose:
- auth: password hashing, session tokens, two-factor authentication
- email: notification emails
- errors: exception taxonomy and HTTP error mapping
- monitoring: structured logging and correlation IDs
"""
