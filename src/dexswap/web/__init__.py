"""Web layer: the swap form API.

Each action moves the workflow one step; nothing runs without a request.
"""
