"""
Shared Kernel

Domain building blocks (entities, value objects, events) and the
application plumbing (unit of work, message bus) used by the booking apps.
"""
