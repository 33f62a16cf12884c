"""
Payment data logic.

This package contains the request-handling core used by the admin views:
  - mapping records between the backend (snake_case) and view (camelCase) shapes
  - combining/splitting day/month/year form inputs
  - declarative validation of form submissions
  - service functions that call the backend and return typed results
"""
