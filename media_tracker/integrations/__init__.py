"""
Third-party integrations (metadata providers).
"""
