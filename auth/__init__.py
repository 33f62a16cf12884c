"""
Authentication package for the Flask app.

This package implements Microsoft Entra ID sign-in/sign-out via MSAL (OAuth2
Authorization Code Flow), state tokens that protect both redirects against
CSRF, and role-based access to the admin area.
"""
