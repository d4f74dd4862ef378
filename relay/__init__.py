"""
Relay Application Package

This package contains the backend relay modules:
- api: FastAPI application, dependencies, schemas and routes
- auth: Firebase ID token verification
- billing: PayPal subscriptions and webhook reconciliation
- db: Firestore user record access
- services: External service integrations (OpenAI chat)
- tests: Test suites
"""
