"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (the AI API, configuration
files, the console) by implementing the interfaces defined in the domain layer.
Also hosts the request queue that guards the AI API.
"""
