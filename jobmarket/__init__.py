"""
Job marketplace API.

Applicants and employers register, log in with revocable sessions,
manage their profiles and uploads, and employers publish job postings.
"""

__version__ = "1.0.0"
