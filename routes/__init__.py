"""
HTTP routes of the tournament engine
"""
