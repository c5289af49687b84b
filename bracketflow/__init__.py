"""
Bracketflow package: tournament advancement and ranking engine
Contains the repository and service layers used by the Flask application
"""

__version__ = "1.0.0"
