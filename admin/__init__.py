"""
Admin area of the portal.

Server-rendered pages for managing payments and payment summaries, and the
crumb (double-submit CSRF) protection their forms rely on.
"""
