"""
repositories/ - Data Access Layer
==================================
One repository per table. Repositories run the SQL and hand back
domain objects (Subscription, UserSettings); they hold no business rules.
"""
