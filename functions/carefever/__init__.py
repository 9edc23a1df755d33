"""
CareFever backend package.

A FastAPI service over Firestore that keeps user profiles, SOS details,
emergency contacts and fever-check history, and syncs users from Clerk.
"""
