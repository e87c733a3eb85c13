"""
Store access for the booking core. Each function takes the request session
and issues one query; decisions live in the services.
"""
