"""
services/ - Business Logic Layer
=================================
The billing cycle engine (pure date and money rules) and the services
that combine it with the repositories: subscriptions, reminders,
the chat assistant and charts.
"""
