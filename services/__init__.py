"""
Local Jobs Marketplace Services

This package contains the core Python services:
- auth: Phone/PIN accounts, registration and login
- verification: SMS verification codes (Twilio Verify or a local fallback code)
- jobs: Job postings, discovery feeds and interest tracking
- locations: Users' saved addresses
- notifier: In-app notifications and the job fan-out
- shared: Database access, errors, pagination and background dispatch
"""
