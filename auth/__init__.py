"""Admin authentication - password verification and session tokens"""
