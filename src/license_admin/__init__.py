"""
Maintenance toolkit for the licensing / team-management Firestore database.
"""

__version__ = "0.1.0"
