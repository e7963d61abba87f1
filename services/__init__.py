"""
Weekend Horizon service packages

- weekend_service: weekend math, local store, sync engine, view-models, HTTP app
- cloud_service: remote record store schema and client
- reminder_service: reminder scheduling and local notifications
"""
