"""AI Model Implementations.

Contains the client/adapter for the AI provider (OpenAI), implementing the
`AIModel` interface from the domain layer.
"""
