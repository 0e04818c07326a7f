"""
routers/ — HTTP surface: admin clients, integrations, sync + cron, portal.

Routers parse input and map service errors to status codes; the work
happens in services/.
"""
