"""External metadata providers"""
