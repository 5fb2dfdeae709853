"""auth/ -- Authentication package for the task server.

Layer rule: auth/ imports only core/, stdlib, and third-party libraries.
It does NOT import from api/ or tasks/.
api/ imports from auth/, not the other way around.
"""
